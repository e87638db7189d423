"""Dependency classification: which resources break if the target goes away."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.models.findings import SEVERITY_RANK, DependencyFinding, RelationKind
from kubecascade.models.resources import ResourceIdentity, as_shape, identity_of, normalize_kind
from kubecascade.observability.logging import get_logger
from kubecascade.rules.base import DependencyRule
from kubecascade.rules.configmap import ConfigMapRule
from kubecascade.rules.ingress import IngressRule
from kubecascade.rules.pvc import PersistentVolumeClaimRule
from kubecascade.rules.secret import SecretRule
from kubecascade.rules.service import ServiceRule

_logger = get_logger("classifier")

RULES: dict[str, DependencyRule] = {
    rule.target_kind: rule
    for rule in (
        ConfigMapRule(),
        SecretRule(),
        PersistentVolumeClaimRule(),
        ServiceRule(),
        IngressRule(),
    )
}


def order_findings(findings: Iterable[DependencyFinding]) -> list[DependencyFinding]:
    """Errors first (mounts ahead of other relations), then warnings, then info.

    The sort is stable, so candidate order is kept inside each group.
    """
    return sorted(
        findings,
        key=lambda f: (SEVERITY_RANK[f.severity], 0 if f.relation_kind == RelationKind.MOUNT else 1),
    )


def classify_dependencies(
    target_kind: str,
    target: Any,
    candidates: Iterable[Any] | None,
) -> list[DependencyFinding]:
    """Return the findings for every candidate that depends on ``target``.

    Unknown kinds, a target without metadata and malformed candidates all
    yield no findings rather than raising.
    """
    kind = normalize_kind(target_kind)
    rule = RULES.get(kind)
    if rule is None:
        return []

    raw_identity = identity_of(target, kind)
    if raw_identity is None:
        return []
    target_id = ResourceIdentity(kind=kind, name=raw_identity.name, namespace=raw_identity.namespace)

    shapes = []
    for raw in candidates or ():
        shape = as_shape(raw)
        if shape is None or shape.identity.same_as(target_id):
            continue
        namespace = shape.identity.namespace
        if target_id.namespace and namespace and namespace != target_id.namespace:
            continue
        shapes.append(shape)

    findings = order_findings(rule.evaluate(target, target_id, shapes))
    _logger.debug(
        "dependencies_classified",
        rule_id=rule.rule_id,
        target=str(target_id),
        candidates=len(shapes),
        findings=len(findings),
    )
    return findings


__all__ = [
    "RULES",
    "DependencyRule",
    "classify_dependencies",
    "order_findings",
]
