"""Base class for per-kind dependency rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from typing import Any

from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import CandidateShape, PodLike, ResourceIdentity
from kubecascade.rules.severity import make_finding


class DependencyRule(ABC):
    """Detects resources that depend on one target kind.

    Subclasses declare the kind they guard and the related kinds worth
    listing, then implement ``inspect`` for a single candidate. Rules that
    need the target's own spec override ``inspect_target``; rules that
    aggregate across candidates override ``evaluate``.
    """

    rule_id: str
    target_kind: str
    related_kinds: tuple[str, ...] = ()

    def evaluate(
        self,
        target: Any,
        target_id: ResourceIdentity,
        candidates: Sequence[CandidateShape],
    ) -> list[DependencyFinding]:
        found: list[DependencyFinding] = []
        for shape in candidates:
            found.extend(self.inspect(target, target_id, shape))
        found.extend(self.inspect_target(target, target_id))
        return found

    @abstractmethod
    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        """Return the findings a single candidate contributes."""

    def inspect_target(self, target: Any, target_id: ResourceIdentity) -> Iterable[DependencyFinding]:
        return ()

    def _finding(
        self,
        relation: RelationKind,
        related: ResourceIdentity,
    ) -> DependencyFinding:
        return make_finding(
            self.target_kind,
            relation,
            related.kind,
            related.name,
            related.namespace,
        )

    def _workload_finding(self, shape: PodLike) -> DependencyFinding:
        """Pods mount the target directly; workload templates only reference it."""
        relation = RelationKind.REFERENCE if shape.from_template else RelationKind.MOUNT
        return self._finding(relation, shape.identity)
