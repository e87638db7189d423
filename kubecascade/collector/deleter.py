"""Commit callback that deletes the target through the Kubernetes API."""

from __future__ import annotations

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

from kubecascade.collector.apis import KubeApis
from kubecascade.models.findings import DeleteOptions
from kubecascade.models.resources import ResourceIdentity
from kubecascade.observability.logging import get_logger

_logger = get_logger("collector.deleter")


class KubernetesResourceDeleter:
    """Issues the delete call once the workflow has a confirmed, unblocked decision.

    Forced deletions use a zero grace period.
    """

    def __init__(self, apis: KubeApis) -> None:
        self._apis = apis

    async def __call__(self, identity: ResourceIdentity, options: DeleteOptions) -> None:
        grace = 0 if options.force else options.grace_period_seconds
        body = k8s_client.V1DeleteOptions(
            grace_period_seconds=grace,
            propagation_policy=options.propagation_policy,
        )
        delete, namespaced = self._apis.method("delete", identity.kind, identity.namespace)
        if namespaced:
            await delete(identity.name, identity.namespace, body=body)
        else:
            await delete(identity.name, body=body)
        _logger.info(
            "resource_deleted",
            target=str(identity),
            grace_period_seconds=grace,
            propagation_policy=options.propagation_policy,
        )
