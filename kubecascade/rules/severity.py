"""Severity policy: which (target, relation, related) combination maps to which severity.

Every finding the engine emits is assembled here, so adding a new kind's
dependency rules is a table addition rather than a new code path.
"""

from __future__ import annotations

from dataclasses import dataclass

from kubecascade.models.findings import DependencyFinding, RelationKind, Severity

ANY_KIND = "*"


@dataclass(frozen=True)
class SeverityPolicy:
    """Severity plus a description template for one relationship type.

    Templates may reference ``{target_kind}``, ``{related_kind}`` and
    ``{owner_chain}``.
    """

    severity: Severity
    description: str


_M = RelationKind.MOUNT
_R = RelationKind.REFERENCE
_O = RelationKind.OWNERSHIP
_S = RelationKind.SELECTOR

SEVERITY_POLICY: dict[tuple[str, RelationKind, str], SeverityPolicy] = {
    # ConfigMap
    ("ConfigMap", _M, "Pod"): SeverityPolicy(Severity.ERROR, "Pod will lose access to configuration data"),
    ("ConfigMap", _R, ANY_KIND): SeverityPolicy(
        Severity.ERROR, "{related_kind} pods will fail to start without this ConfigMap"
    ),
    # Secret
    ("Secret", _M, "Pod"): SeverityPolicy(Severity.ERROR, "Pod will lose access to secret data"),
    ("Secret", _R, "ServiceAccount"): SeverityPolicy(
        Severity.ERROR, "Service account will lose authentication credentials"
    ),
    ("Secret", _R, "Ingress"): SeverityPolicy(Severity.ERROR, "Ingress will lose TLS certificate"),
    ("Secret", _R, ANY_KIND): SeverityPolicy(
        Severity.ERROR, "{related_kind} pods will fail to start without this Secret"
    ),
    # PersistentVolumeClaim
    ("PersistentVolumeClaim", _M, "Pod"): SeverityPolicy(Severity.ERROR, "Pod will lose access to persistent storage"),
    ("PersistentVolumeClaim", _R, "PersistentVolume"): SeverityPolicy(
        Severity.WARNING, "Bound persistent volume may be released and data could be lost"
    ),
    ("PersistentVolumeClaim", _R, "StatefulSet"): SeverityPolicy(
        Severity.ERROR, "StatefulSet pods will lose persistent storage"
    ),
    ("PersistentVolumeClaim", _R, ANY_KIND): SeverityPolicy(
        Severity.ERROR, "{related_kind} pods will fail to start without this PersistentVolumeClaim"
    ),
    # Service
    ("Service", _R, "Ingress"): SeverityPolicy(Severity.WARNING, "Ingress will lose backend service"),
    ("Service", _S, "Pod"): SeverityPolicy(Severity.INFO, "Pods will lose network access through this service"),
    # Ingress
    ("Ingress", _R, "Service"): SeverityPolicy(
        Severity.INFO, "Referenced service provides backend for ingress traffic"
    ),
    ("Ingress", _R, "Secret"): SeverityPolicy(Severity.INFO, "TLS secret provides SSL certificate for ingress"),
    # Ownership chains are always cleaned up by the garbage collector.
    (ANY_KIND, _O, ANY_KIND): SeverityPolicy(Severity.INFO, "Owned by {owner_chain}, will be automatically deleted"),
}


def policy_for(target_kind: str, relation: RelationKind, related_kind: str) -> SeverityPolicy:
    """Resolve the most specific policy entry.

    Lookup order: exact, wildcard related kind, wildcard target kind, both
    wildcards. Raises KeyError when nothing matches.
    """
    for key in (
        (target_kind, relation, related_kind),
        (target_kind, relation, ANY_KIND),
        (ANY_KIND, relation, related_kind),
        (ANY_KIND, relation, ANY_KIND),
    ):
        policy = SEVERITY_POLICY.get(key)
        if policy is not None:
            return policy
    raise KeyError(f"No severity policy for {target_kind} {relation.value} {related_kind}")


def make_finding(
    target_kind: str,
    relation: RelationKind,
    related_kind: str,
    related_name: str,
    related_namespace: str | None = None,
    owner_chain: str = "",
) -> DependencyFinding:
    """Build a DependencyFinding whose severity and description come from the table."""
    policy = policy_for(target_kind, relation, related_kind)
    description = policy.description.format(
        target_kind=target_kind,
        related_kind=related_kind,
        owner_chain=owner_chain or target_kind,
    )
    return DependencyFinding(
        relation_kind=relation,
        related_kind=related_kind,
        related_name=related_name,
        related_namespace=related_namespace or None,
        description=description,
        severity=policy.severity,
    )
