"""Data structures for the ownership graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubecascade.models.resources import ResourceIdentity


@dataclass(frozen=True)
class GraphNode:
    """A node in the ownership graph representing a Kubernetes resource."""

    kind: str
    namespace: str
    name: str
    uid: str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        """Owner lookup key. Owner references resolve within the owned object's namespace."""
        return (self.kind.lower(), self.namespace, self.name)

    @property
    def identity(self) -> ResourceIdentity:
        return ResourceIdentity(kind=self.kind, name=self.name, namespace=self.namespace)


@dataclass(frozen=True)
class OwnershipEdge:
    """An ownerReferences entry linking an owner to the resource that declares it."""

    owner: tuple[str, str, str]
    owned: GraphNode
    controller: bool = False


@dataclass(frozen=True)
class WalkStep:
    """A resource reached during traversal, with the kind of the owner it was reached through."""

    node: GraphNode
    depth: int
    via_kind: str


@dataclass
class TraversalResult:
    """Result of a breadth-first ownership walk."""

    steps: list[WalkStep] = field(default_factory=list)
    depth_reached: int = 0
    truncated: bool = False  # True if max_depth hit before exhausting graph
