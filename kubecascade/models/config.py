"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class EngineConfig:
    """Dependency and cascade analysis configuration."""

    cascade_max_depth: int = 2


@dataclass
class PolicyConfig:
    """Deletion policy configuration."""

    force_denied_kinds: frozenset[str] = frozenset()
    grace_period_seconds: int | None = None
    propagation_policy: str = "Background"


@dataclass
class ClusterConfig:
    """Kubernetes connection configuration."""

    enabled: bool = True
    list_timeout_seconds: int = 10


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeCascadeConfig:
    """Top-level kubecascade configuration."""

    cluster_id: str = ""
    engine: EngineConfig = field(default_factory=EngineConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
