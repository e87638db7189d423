"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubecascade.models.config import (
    APIConfig,
    ClusterConfig,
    EngineConfig,
    KubeCascadeConfig,
    LogConfig,
    PolicyConfig,
)
from kubecascade.models.resources import normalize_kind

_PROPAGATION_POLICIES = ("Background", "Foreground", "Orphan")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBECASCADE_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_propagation_policy(value: str) -> str:
    for policy in _PROPAGATION_POLICIES:
        if value.lower() == policy.lower():
            return policy
    raise ValueError(f"Invalid propagation policy: {value}. Must be one of {_PROPAGATION_POLICIES}")


def _parse_kinds(value: str) -> frozenset[str]:
    return frozenset(normalize_kind(part) for part in value.split(",") if part.strip())


def _grace_period(value: int) -> int | None:
    # Negative values mean "let the API server use the object's default".
    return None if value < 0 else value


def load_config() -> KubeCascadeConfig:
    """Load configuration from KUBECASCADE_* environment variables."""
    return KubeCascadeConfig(
        cluster_id=_env("CLUSTER_ID", ""),
        engine=EngineConfig(
            cascade_max_depth=_env_int("CASCADE_MAX_DEPTH", 2, min_val=1, max_val=5),
        ),
        policy=PolicyConfig(
            force_denied_kinds=_parse_kinds(_env("FORCE_DENIED_KINDS", "")),
            grace_period_seconds=_grace_period(_env_int("GRACE_PERIOD_SECONDS", -1, max_val=3600)),
            propagation_policy=_validate_propagation_policy(_env("PROPAGATION_POLICY", "Background")),
        ),
        cluster=ClusterConfig(
            enabled=_env_bool("K8S_ENABLED", True),
            list_timeout_seconds=_env_int("LIST_TIMEOUT", 10, min_val=1, max_val=60),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
