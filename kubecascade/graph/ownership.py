"""Owner to owned adjacency built from candidate ownerReferences."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

from kubecascade.graph.models import GraphNode, OwnershipEdge, TraversalResult, WalkStep
from kubecascade.models.resources import OwnedLike, as_owned, normalize_kind

OwnerKey = tuple[str, str, str]


class OwnershipGraph:
    """Adjacency list keyed by (lower-cased owner kind, namespace, owner name).

    An owner reference resolves within the namespace of the object declaring
    it. A graph scoped to a namespace drops candidates from other namespaces;
    an unscoped graph (namespace ``""``) keeps every namespace apart.
    """

    def __init__(self, namespace: str = "") -> None:
        self._namespace = namespace
        self._children: dict[OwnerKey, list[GraphNode]] = {}
        self._edges: list[OwnershipEdge] = []

    @classmethod
    def from_candidates(cls, candidates: Iterable[Any] | None, namespace: str = "") -> OwnershipGraph:
        graph = cls(namespace)
        for raw in candidates or ():
            owned = as_owned(raw)
            if owned is not None:
                graph.add(owned)
        return graph

    @property
    def edges(self) -> list[OwnershipEdge]:
        return list(self._edges)

    def add(self, owned: OwnedLike) -> None:
        identity = owned.identity
        if self._namespace and identity.namespace and identity.namespace != self._namespace:
            return
        node = GraphNode(
            kind=identity.kind,
            namespace=identity.namespace or self._namespace,
            name=identity.name,
            uid=owned.uid,
        )
        for ref in owned.owner_references:
            key = (normalize_kind(ref.kind).lower(), node.namespace, ref.name)
            children = self._children.setdefault(key, [])
            if node in children:
                continue
            children.append(node)
            self._edges.append(OwnershipEdge(owner=key, owned=node, controller=ref.controller))

    def owned_by(self, kind: str, name: str, namespace: str | None = None) -> list[GraphNode]:
        """Resources owned by (kind, name) in ``namespace``; None searches every namespace."""
        owner_kind = normalize_kind(kind).lower()
        if namespace is not None:
            return list(self._children.get((owner_kind, namespace, name), ()))
        found: list[GraphNode] = []
        for (child_kind, _, child_name), children in self._children.items():
            if child_kind == owner_kind and child_name == name:
                found.extend(children)
        return found

    def walk(self, kind: str, name: str, max_depth: int) -> TraversalResult:
        """Breadth-first walk from (kind, name), visiting each resource once.

        An unscoped graph matches the root's owned resources in any namespace.
        """
        result = TraversalResult()
        if max_depth < 1:
            return result

        root_kind = normalize_kind(kind)
        visited: set[OwnerKey] = {(root_kind.lower(), self._namespace, name)}
        queue: deque[tuple[str, str | None, str, int]] = deque([(root_kind, self._namespace or None, name, 0)])

        while queue:
            parent_kind, parent_namespace, parent_name, depth = queue.popleft()
            children = self.owned_by(parent_kind, parent_name, parent_namespace)
            if depth >= max_depth:
                if any(child.key not in visited for child in children):
                    result.truncated = True
                continue
            for child in children:
                if child.key in visited:
                    continue
                visited.add(child.key)
                result.steps.append(WalkStep(node=child, depth=depth + 1, via_kind=parent_kind))
                result.depth_reached = max(result.depth_reached, depth + 1)
                queue.append((child.kind, child.namespace, child.name, depth + 1))

        return result
