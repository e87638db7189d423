"""Dependency findings and deletion decision structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RelationKind(StrEnum):
    """How a related resource depends on (or is tied to) the deletion target."""

    MOUNT = "mount"
    REFERENCE = "reference"
    OWNERSHIP = "ownership"
    SELECTOR = "selector"


class Severity(StrEnum):
    """Risk severity of a single dependency finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class PresentationState(StrEnum):
    """Mutually exclusive confirmation states driven by a DeletionDecision."""

    BLOCKED = "blocked"
    WARN = "warn"
    CLEAN = "clean"


# Sort rank used to group findings: errors, then warnings, then info.
SEVERITY_RANK: dict[Severity, int] = {
    Severity.ERROR: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


@dataclass(frozen=True)
class DependencyFinding:
    """A single relationship between the deletion target and another resource.

    ``error`` is reserved for relationships whose deletion breaks a live
    consumer, ``warning`` for degraded/orphaned resources, and ``info`` for
    relationships that resolve themselves (cascade-deleted ownership chains).
    """

    relation_kind: RelationKind
    related_kind: str
    related_name: str
    description: str
    severity: Severity
    related_namespace: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "relation_kind": self.relation_kind.value,
            "related_kind": self.related_kind,
            "related_name": self.related_name,
            "related_namespace": self.related_namespace,
            "description": self.description,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class DeletionDecision:
    """Derived verdict for one deletion attempt. Never stored."""

    blocking: bool
    has_warnings: bool
    findings: tuple[DependencyFinding, ...] = ()
    cascading: tuple[DependencyFinding, ...] = ()
    force: bool = False

    @property
    def has_errors(self) -> bool:
        return any(f.severity == Severity.ERROR for f in self.findings)

    @property
    def state(self) -> PresentationState:
        if self.blocking:
            return PresentationState.BLOCKED
        # A forced deletion still surfaces its error findings as advisory.
        if self.has_warnings or self.has_errors:
            return PresentationState.WARN
        return PresentationState.CLEAN

    def to_dict(self) -> dict[str, object]:
        return {
            "blocking": self.blocking,
            "has_warnings": self.has_warnings,
            "force": self.force,
            "state": self.state.value,
            "findings": [f.to_dict() for f in self.findings],
            "cascading": [f.to_dict() for f in self.cascading],
        }


@dataclass(frozen=True)
class FindingGroup:
    """Findings of one severity rendered under a shared heading."""

    heading: str
    severity: Severity
    findings: tuple[DependencyFinding, ...]


@dataclass(frozen=True)
class ConfirmationSection:
    """One block of the confirmation body: a message plus optional finding groups."""

    message: str
    tone: str  # "danger", "warning", "default" or "secondary"
    groups: tuple[FindingGroup, ...] = ()


@dataclass(frozen=True)
class ConfirmationView:
    """Presentation-neutral description of a deletion confirmation dialog."""

    title: str
    state: PresentationState
    sections: tuple[ConfirmationSection, ...] = ()
    footer: str = ""
    confirm_label: str = "Delete"
    confirm_enabled: bool = True

    def to_dict(self) -> dict[str, object]:
        return {
            "title": self.title,
            "state": self.state.value,
            "sections": [
                {
                    "message": s.message,
                    "tone": s.tone,
                    "groups": [
                        {
                            "heading": g.heading,
                            "severity": g.severity.value,
                            "findings": [f.to_dict() for f in g.findings],
                        }
                        for g in s.groups
                    ],
                }
                for s in self.sections
            ],
            "footer": self.footer,
            "confirm_label": self.confirm_label,
            "confirm_enabled": self.confirm_enabled,
        }


@dataclass
class DeleteOptions:
    """Options handed to the commit callback once the user confirms."""

    force: bool = False
    grace_period_seconds: int | None = None
    propagation_policy: str = "Background"
