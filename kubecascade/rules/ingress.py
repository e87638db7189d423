"""Ingress dependencies: the services and TLS secrets the ingress itself points at."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import CandidateShape, IngressLike, ResourceIdentity, as_shape
from kubecascade.rules.base import DependencyRule
from kubecascade.rules.severity import make_finding


class IngressRule(DependencyRule):
    """Reports backends and TLS secrets read from the Ingress spec (informational)."""

    rule_id = "ingress_backends"
    target_kind = "Ingress"

    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        return []

    def inspect_target(self, target: Any, target_id: ResourceIdentity) -> Iterable[DependencyFinding]:
        ingress = as_shape(target, self.target_kind)
        if not isinstance(ingress, IngressLike):
            return []
        found = [
            make_finding(self.target_kind, RelationKind.REFERENCE, "Service", name, target_id.namespace)
            for name in dict.fromkeys(ingress.backend_services)
        ]
        found.extend(
            make_finding(self.target_kind, RelationKind.REFERENCE, "Secret", name, target_id.namespace)
            for name in dict.fromkeys(ingress.tls_secrets)
        )
        return found
