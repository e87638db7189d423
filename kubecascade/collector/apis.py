"""Kind to kubernetes-asyncio API routing shared by the lister and deleter."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubecascade.models.resources import CLUSTER_SCOPED_KINDS, normalize_kind

# kind -> (API group, snake_case resource name used in method names)
_KIND_ROUTES: dict[str, tuple[str, str]] = {
    "Pod": ("core", "pod"),
    "Service": ("core", "service"),
    "ServiceAccount": ("core", "service_account"),
    "ConfigMap": ("core", "config_map"),
    "Secret": ("core", "secret"),
    "PersistentVolumeClaim": ("core", "persistent_volume_claim"),
    "PersistentVolume": ("core", "persistent_volume"),
    "ReplicationController": ("core", "replication_controller"),
    "Namespace": ("core", "namespace"),
    "Node": ("core", "node"),
    "Deployment": ("apps", "deployment"),
    "StatefulSet": ("apps", "stateful_set"),
    "DaemonSet": ("apps", "daemon_set"),
    "ReplicaSet": ("apps", "replica_set"),
    "Job": ("batch", "job"),
    "CronJob": ("batch", "cron_job"),
    "Ingress": ("networking", "ingress"),
}


class UnsupportedKindError(ValueError):
    """Raised when a kind has no known API route."""


class KubeApis:
    """Typed API objects bound to one ApiClient, addressed by kind and verb."""

    def __init__(self, api_client: Any | None = None) -> None:
        self.api_client = api_client if api_client is not None else k8s_client.ApiClient()
        self._groups: dict[str, Any] = {
            "core": k8s_client.CoreV1Api(self.api_client),
            "apps": k8s_client.AppsV1Api(self.api_client),
            "batch": k8s_client.BatchV1Api(self.api_client),
            "networking": k8s_client.NetworkingV1Api(self.api_client),
        }

    @staticmethod
    def supports(kind: str) -> bool:
        return normalize_kind(kind) in _KIND_ROUTES

    def method(self, verb: str, kind: str, namespace: str) -> tuple[Callable[..., Awaitable[Any]], bool]:
        """Return (bound method, namespaced) for ``verb`` on ``kind``.

        ``list`` with an empty namespace on a namespaced kind resolves to the
        ``*_for_all_namespaces`` variant.
        """
        canonical = normalize_kind(kind)
        route = _KIND_ROUTES.get(canonical)
        if route is None:
            raise UnsupportedKindError(f"Unsupported kind: {kind}")
        group, resource = route
        api = self._groups[group]

        if canonical in CLUSTER_SCOPED_KINDS:
            return getattr(api, f"{verb}_{resource}"), False
        if verb == "list" and not namespace:
            return getattr(api, f"list_{resource}_for_all_namespaces"), False
        return getattr(api, f"{verb}_namespaced_{resource}"), True

    def to_dict(self, obj: Any) -> Any:
        """Convert a client model into the camelCase dict the API server sent."""
        return self.api_client.sanitize_for_serialization(obj)

    async def close(self) -> None:
        await self.api_client.close()


async def connect() -> KubeApis:
    """Load in-cluster config, falling back to kubeconfig, and bind the typed APIs."""
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    try:
        # load_incluster_config() is synchronous in kubernetes-asyncio
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        await k8s_config.load_kube_config()
    return KubeApis()
