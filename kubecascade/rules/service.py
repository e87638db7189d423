"""Service dependencies: ingress backends and selected pods."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import (
    CandidateShape,
    IngressLike,
    PodLike,
    ResourceIdentity,
    ServiceLike,
    as_shape,
)
from kubecascade.rules.base import DependencyRule
from kubecascade.rules.severity import make_finding


def _selects(selector: Mapping[str, str], labels: Mapping[str, str]) -> bool:
    return all(labels.get(key) == value for key, value in selector.items())


class ServiceRule(DependencyRule):
    """Ingresses routing to the Service, plus a count of the pods it selects."""

    rule_id = "service_consumers"
    target_kind = "Service"
    related_kinds = ("Ingress", "Pod")

    def evaluate(
        self,
        target: Any,
        target_id: ResourceIdentity,
        candidates: Sequence[CandidateShape],
    ) -> list[DependencyFinding]:
        found = super().evaluate(target, target_id, candidates)

        service = as_shape(target, self.target_kind)
        selector = service.selector if isinstance(service, ServiceLike) else {}
        if not selector:
            return found

        selected = [
            shape
            for shape in candidates
            if isinstance(shape, PodLike) and not shape.from_template and _selects(selector, shape.labels)
        ]
        if selected:
            found.append(
                make_finding(
                    self.target_kind,
                    RelationKind.SELECTOR,
                    "Pod",
                    f"{len(selected)} pod(s)",
                    target_id.namespace,
                )
            )
        return found

    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        if isinstance(shape, IngressLike) and target_id.name in shape.backend_services:
            return [self._finding(RelationKind.REFERENCE, shape.identity)]
        return []
