"""Kubernetes adapters: candidate listing and deletion."""

from kubecascade.collector.apis import KubeApis, UnsupportedKindError, connect
from kubecascade.collector.deleter import KubernetesResourceDeleter
from kubecascade.collector.lister import OWNED_KINDS, RELATED_KINDS, KubernetesResourceLister

__all__ = [
    "OWNED_KINDS",
    "RELATED_KINDS",
    "KubeApis",
    "KubernetesResourceDeleter",
    "KubernetesResourceLister",
    "UnsupportedKindError",
    "connect",
]
