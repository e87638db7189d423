"""Ownership graph and cascade resolution."""

from kubecascade.graph.cascade import DEFAULT_MAX_DEPTH, resolve_cascading_deletions
from kubecascade.graph.models import GraphNode, OwnershipEdge, TraversalResult, WalkStep
from kubecascade.graph.ownership import OwnershipGraph

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "GraphNode",
    "OwnershipEdge",
    "OwnershipGraph",
    "TraversalResult",
    "WalkStep",
    "resolve_cascading_deletions",
]
