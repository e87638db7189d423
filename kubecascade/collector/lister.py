"""Live candidate listing backed by kubernetes-asyncio."""

from __future__ import annotations

from typing import Any

from kubernetes_asyncio.client.rest import ApiException  # type: ignore[import-untyped]

from kubecascade.collector.apis import KubeApis
from kubecascade.models.resources import normalize_kind
from kubecascade.observability.logging import get_logger
from kubecascade.rules import RULES

_logger = get_logger("collector.lister")

_WORKLOAD_CHILDREN = ("Pod",)

# Kinds the garbage collector removes when the owner is deleted.
OWNED_KINDS: dict[str, tuple[str, ...]] = {
    "Deployment": ("ReplicaSet", "Pod"),
    "StatefulSet": _WORKLOAD_CHILDREN,
    "DaemonSet": _WORKLOAD_CHILDREN,
    "ReplicaSet": _WORKLOAD_CHILDREN,
    "ReplicationController": _WORKLOAD_CHILDREN,
    "Job": _WORKLOAD_CHILDREN,
    "CronJob": ("Job", "Pod"),
}


def _related_kinds(kind: str) -> tuple[str, ...]:
    rule = RULES.get(kind)
    kinds = list(rule.related_kinds) if rule is not None else []
    kinds.extend(OWNED_KINDS.get(kind, ()))
    return tuple(dict.fromkeys(kinds))


# Target kind -> kinds worth listing to analyze its deletion.
RELATED_KINDS: dict[str, tuple[str, ...]] = {
    kind: _related_kinds(kind) for kind in (*RULES, *OWNED_KINDS)
}


class KubernetesResourceLister:
    """Lists the resources related to a target kind within one namespace.

    An empty namespace lists across all namespaces. A failure for one kind
    is logged and that kind is skipped; the rest of the snapshot is kept.
    """

    def __init__(self, apis: KubeApis) -> None:
        self._apis = apis

    async def list_related(self, kind: str, namespace: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        for related in RELATED_KINDS.get(normalize_kind(kind), ()):
            try:
                items.extend(await self._list_kind(related, namespace))
            except Exception as exc:
                _logger.warning(
                    "related_kind_list_failed",
                    kind=related,
                    namespace=namespace,
                    error=str(exc),
                )
        _logger.debug("related_resources_listed", kind=kind, namespace=namespace, count=len(items))
        return items

    async def get_resource(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        """Fetch one resource as a plain dict, or None when it does not exist."""
        canonical = normalize_kind(kind)
        read, namespaced = self._apis.method("read", canonical, namespace)
        try:
            obj = await read(name, namespace) if namespaced else await read(name)
        except ApiException as exc:
            if exc.status == 404:
                return None
            raise
        raw = self._apis.to_dict(obj)
        raw["kind"] = canonical
        return raw

    async def _list_kind(self, kind: str, namespace: str) -> list[dict[str, Any]]:
        list_fn, namespaced = self._apis.method("list", kind, namespace)
        response = await list_fn(namespace) if namespaced else await list_fn()
        payload = self._apis.to_dict(response) or {}
        items = [item for item in payload.get("items") or [] if isinstance(item, dict)]
        for item in items:
            # List responses omit the per-item kind.
            item["kind"] = kind
        return items
