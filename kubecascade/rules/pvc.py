"""PersistentVolumeClaim dependencies: mounting pods, StatefulSets and the bound volume."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import CandidateShape, PodLike, ResourceIdentity, pvc_binding
from kubecascade.rules.base import DependencyRule
from kubecascade.rules.configmap import WORKLOAD_KINDS
from kubecascade.rules.severity import make_finding


def _claimed_by_template(claim_name: str, sts: PodLike) -> bool:
    """True when a StatefulSet volumeClaimTemplate produced this claim.

    Claims stamped from a template are named ``<template>-<statefulset>-<ordinal>``.
    """
    for template in sts.claim_templates:
        if claim_name == template:
            return True
        prefix = f"{template}-{sts.identity.name}-"
        if claim_name.startswith(prefix) and claim_name[len(prefix) :].isdigit():
            return True
    return False


class PersistentVolumeClaimRule(DependencyRule):
    """Pods mounting the claim, StatefulSets owning it, and the PV it is bound to."""

    rule_id = "pvc_consumers"
    target_kind = "PersistentVolumeClaim"
    related_kinds = WORKLOAD_KINDS

    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        if not isinstance(shape, PodLike):
            return []
        if shape.uses_claim(target_id.name):
            return [self._workload_finding(shape)]
        if shape.identity.kind == "StatefulSet" and _claimed_by_template(target_id.name, shape):
            return [self._finding(RelationKind.REFERENCE, shape.identity)]
        return []

    def inspect_target(self, target: Any, target_id: ResourceIdentity) -> Iterable[DependencyFinding]:
        bound, volume_name = pvc_binding(target)
        if not bound:
            return []
        # PersistentVolumes are cluster-scoped.
        return [
            make_finding(
                self.target_kind,
                RelationKind.REFERENCE,
                "PersistentVolume",
                volume_name or "unknown",
            )
        ]
