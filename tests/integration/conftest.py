"""Shared fixtures for kubecascade integration tests.

Provides realistic Kubernetes objects plus in-memory lister and prompt
collaborators so the deletion workflow can be exercised end to end without
touching a real cluster.
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from kubecascade.models.findings import ConfirmationView, DeleteOptions, DeletionDecision
from kubecascade.models.resources import ResourceIdentity

# ---------------------------------------------------------------------------
# Resource factory helpers
# ---------------------------------------------------------------------------


def make_configmap(name: str = "app-config", namespace: str = "default") -> dict[str, Any]:
    """Create a ConfigMap object."""
    return {"kind": "ConfigMap", "metadata": {"name": name, "namespace": namespace}, "data": {"key": "value"}}


def make_pod(
    name: str = "nginx-pod",
    namespace: str = "default",
    config_maps: list[str] | None = None,
    owner: tuple[str, str] | None = None,
) -> dict[str, Any]:
    """Create a Pod mounting the given ConfigMaps, optionally owned by (kind, name)."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if owner is not None:
        metadata["ownerReferences"] = [{"kind": owner[0], "name": owner[1], "controller": True}]
    return {
        "kind": "Pod",
        "metadata": metadata,
        "spec": {
            "volumes": [{"name": f"cfg-{cm}", "configMap": {"name": cm}} for cm in config_maps or []],
            "containers": [{"name": "main", "image": "nginx:1.27"}],
        },
    }


def make_deployment(name: str = "nginx", namespace: str = "default") -> dict[str, Any]:
    return {
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"template": {"spec": {"containers": [{"name": "main", "image": "nginx:1.27"}]}}},
    }


def make_deployment_tree(name: str = "nginx", pods: int = 3) -> list[dict[str, Any]]:
    """A ReplicaSet owned by Deployment ``name`` plus ``pods`` Pods owned by that ReplicaSet."""
    rs_name = f"{name}-7d9f8c"
    replica_set = {
        "kind": "ReplicaSet",
        "metadata": {
            "name": rs_name,
            "namespace": "default",
            "ownerReferences": [{"kind": "Deployment", "name": name, "controller": True}],
        },
    }
    return [replica_set] + [make_pod(f"{rs_name}-{i}", owner=("ReplicaSet", rs_name)) for i in range(pods)]


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeLister:
    """In-memory ResourceLister returning a fixed snapshot, or raising ``error``."""

    def __init__(
        self,
        items: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.items = items
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def list_related(self, kind: str, namespace: str) -> list[dict[str, Any]] | None:
        self.calls.append((kind, namespace))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.items


class RecordingPrompt:
    """ConfirmationPrompt that records what it was shown and answers ``answer``."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.shown: list[tuple[ConfirmationView, DeletionDecision]] = []

    async def confirm(self, view: ConfirmationView, decision: DeletionDecision) -> bool:
        self.shown.append((view, decision))
        return self.answer


class RecordingCommit:
    """Commit callback that records its calls, or raises ``error``."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[ResourceIdentity, DeleteOptions]] = []

    async def __call__(self, identity: ResourceIdentity, options: DeleteOptions) -> None:
        self.calls.append((identity, options))
        if self.error is not None:
            raise self.error


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def prompt() -> RecordingPrompt:
    return RecordingPrompt()


@pytest.fixture()
def commit() -> RecordingCommit:
    return RecordingCommit()
