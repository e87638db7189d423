"""ConfigMap dependencies: volumes, projected sources and env references."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.models.findings import DependencyFinding
from kubecascade.models.resources import CandidateShape, PodLike, ResourceIdentity
from kubecascade.rules.base import DependencyRule

WORKLOAD_KINDS = ("Pod", "Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job", "CronJob")


class ConfigMapRule(DependencyRule):
    """Pods and pod templates that mount or read the ConfigMap."""

    rule_id = "configmap_consumers"
    target_kind = "ConfigMap"
    related_kinds = WORKLOAD_KINDS

    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        if isinstance(shape, PodLike) and shape.uses_config_map(target_id.name):
            return [self._workload_finding(shape)]
        return []
