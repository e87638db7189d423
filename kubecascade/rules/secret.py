"""Secret dependencies: pod consumers, service accounts and TLS ingresses."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import (
    CandidateShape,
    IngressLike,
    PodLike,
    ResourceIdentity,
    ServiceAccountLike,
    secret_type,
)
from kubecascade.rules.base import DependencyRule
from kubecascade.rules.configmap import WORKLOAD_KINDS

TLS_SECRET_TYPE = "kubernetes.io/tls"


class SecretRule(DependencyRule):
    """Pods, pod templates, ServiceAccounts and Ingresses that use the Secret.

    Ingresses are only checked for ``kubernetes.io/tls`` secrets.
    """

    rule_id = "secret_consumers"
    target_kind = "Secret"
    related_kinds = WORKLOAD_KINDS + ("ServiceAccount", "Ingress")

    def inspect(
        self,
        target: Any,
        target_id: ResourceIdentity,
        shape: CandidateShape,
    ) -> Iterable[DependencyFinding]:
        name = target_id.name
        if isinstance(shape, PodLike):
            if shape.uses_secret(name):
                return [self._workload_finding(shape)]
        elif isinstance(shape, ServiceAccountLike):
            if name in shape.secret_names:
                return [self._finding(RelationKind.REFERENCE, shape.identity)]
        elif isinstance(shape, IngressLike):
            if secret_type(target) == TLS_SECRET_TYPE and name in shape.tls_secrets:
                return [self._finding(RelationKind.REFERENCE, shape.identity)]
        return []
