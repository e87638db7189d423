"""Core data structures for kubecascade."""

from kubecascade.models.config import KubeCascadeConfig
from kubecascade.models.findings import (
    ConfirmationSection,
    ConfirmationView,
    DeleteOptions,
    DeletionDecision,
    DependencyFinding,
    FindingGroup,
    PresentationState,
    RelationKind,
    Severity,
)
from kubecascade.models.resources import (
    CandidateShape,
    IngressLike,
    OpaqueResource,
    OwnedLike,
    OwnerReference,
    PodLike,
    ResourceIdentity,
    ServiceAccountLike,
    ServiceLike,
    normalize_kind,
)

__all__ = [
    "CandidateShape",
    "ConfirmationSection",
    "ConfirmationView",
    "DeleteOptions",
    "DeletionDecision",
    "DependencyFinding",
    "FindingGroup",
    "IngressLike",
    "KubeCascadeConfig",
    "OpaqueResource",
    "OwnedLike",
    "OwnerReference",
    "PodLike",
    "PresentationState",
    "RelationKind",
    "ResourceIdentity",
    "ServiceAccountLike",
    "ServiceLike",
    "Severity",
    "normalize_kind",
]
