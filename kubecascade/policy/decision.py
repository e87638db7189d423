"""Deletion verdicts and the confirmation dialog derived from them."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from kubecascade.graph import DEFAULT_MAX_DEPTH, resolve_cascading_deletions
from kubecascade.models.findings import (
    ConfirmationSection,
    ConfirmationView,
    DeletionDecision,
    DependencyFinding,
    FindingGroup,
    PresentationState,
    Severity,
)
from kubecascade.models.resources import ResourceIdentity, identity_of, normalize_kind
from kubecascade.rules import classify_dependencies

GROUP_HEADINGS: dict[Severity, str] = {
    Severity.ERROR: "Critical Dependencies Found",
    Severity.WARNING: "Dependencies Will Be Affected",
    Severity.INFO: "Related Resources",
}

UNDONE_NOTICE = "This action cannot be undone."
FORCE_HINT = "To force deletion, use the force delete option (this may cause system instability)."


def decide(
    findings: Sequence[DependencyFinding],
    cascading: Sequence[DependencyFinding],
    force: bool = False,
) -> DeletionDecision:
    """Any error finding blocks unless forced. Forcing keeps the findings visible."""
    has_errors = any(f.severity == Severity.ERROR for f in findings)
    has_warnings = any(f.severity == Severity.WARNING for f in findings) or bool(cascading)
    return DeletionDecision(
        blocking=has_errors and not force,
        has_warnings=has_warnings,
        findings=tuple(findings),
        cascading=tuple(cascading),
        force=force,
    )


def evaluate_deletion(
    target_kind: str,
    target: Any,
    candidates: Iterable[Any] | None,
    *,
    force: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> DeletionDecision:
    """Classify, resolve the cascade and decide for a target already in hand."""
    kind = normalize_kind(target_kind)
    snapshot = list(candidates or ())
    findings = classify_dependencies(kind, target, snapshot)
    identity = identity_of(target, kind)
    cascading: list[DependencyFinding] = []
    if identity is not None:
        cascading = resolve_cascading_deletions(kind, identity.name, identity.namespace, snapshot, max_depth)
    return decide(findings, cascading, force=force)


def merge_decisions(decisions: Iterable[DeletionDecision]) -> DeletionDecision:
    """Fold per-item decisions of a bulk deletion into one verdict."""
    items = list(decisions)
    findings: list[DependencyFinding] = []
    cascading: list[DependencyFinding] = []
    for item in items:
        findings.extend(item.findings)
        cascading.extend(item.cascading)
    return DeletionDecision(
        blocking=any(d.blocking for d in items),
        has_warnings=any(d.has_warnings for d in items),
        findings=tuple(findings),
        cascading=tuple(cascading),
        force=bool(items) and all(d.force for d in items),
    )


def group_findings(findings: Iterable[DependencyFinding]) -> tuple[FindingGroup, ...]:
    """Split findings into severity groups, most severe first, empty groups dropped."""
    bucket: dict[Severity, list[DependencyFinding]] = {s: [] for s in GROUP_HEADINGS}
    for finding in findings:
        bucket[finding.severity].append(finding)
    return tuple(
        FindingGroup(heading=GROUP_HEADINGS[severity], severity=severity, findings=tuple(items))
        for severity, items in bucket.items()
        if items
    )


def _title(target: ResourceIdentity) -> str:
    if target.namespace:
        return f'Delete {target.kind} "{target.name}" from "{target.namespace}"'
    return f'Delete {target.kind} "{target.name}"'


def _footer(grace_period_seconds: int | None) -> str:
    if grace_period_seconds:
        return f"{UNDONE_NOTICE} Grace period: {grace_period_seconds} seconds."
    return UNDONE_NOTICE


def build_confirmation(
    target: ResourceIdentity,
    decision: DeletionDecision,
    *,
    force_permitted: bool = True,
    grace_period_seconds: int | None = None,
) -> ConfirmationView:
    """Describe the confirmation dialog for one decision.

    Exactly one of three states is rendered. A blocked dialog lists the
    findings that caused the block and disables confirmation; a warn dialog
    lists affected and cascaded resources; a clean dialog is a plain prompt.
    """
    noun = target.kind.lower()
    state = decision.state
    confirm_label = "Force Delete" if decision.force else "Delete"

    if state == PresentationState.BLOCKED:
        footer = FORCE_HINT if force_permitted else f"Force deletion is disabled for {noun} resources."
        return ConfirmationView(
            title=_title(target),
            state=state,
            sections=(
                ConfirmationSection(
                    message=f"This {noun} cannot be deleted because it has critical dependencies.",
                    tone="danger",
                    groups=group_findings(decision.findings),
                ),
            ),
            footer=footer,
            confirm_label=confirm_label,
            confirm_enabled=False,
        )

    sections = [ConfirmationSection(message=f"Are you sure you want to delete this {noun}?", tone="default")]
    if state == PresentationState.WARN:
        affected = any(f.severity in (Severity.ERROR, Severity.WARNING) for f in decision.findings)
        if affected:
            sections.append(
                ConfirmationSection(
                    message="This action will affect the following resources:",
                    tone="warning",
                    groups=group_findings(decision.findings),
                )
            )
        if decision.cascading:
            sections.append(
                ConfirmationSection(
                    message="The following resources will also be deleted:",
                    tone="warning",
                    groups=group_findings(decision.cascading),
                )
            )

    return ConfirmationView(
        title=_title(target),
        state=state,
        sections=tuple(sections),
        footer=_footer(grace_period_seconds),
        confirm_label=confirm_label,
        confirm_enabled=True,
    )


def build_bulk_confirmation(
    kind: str,
    count: int,
    decision: DeletionDecision,
    *,
    force_permitted: bool = True,
    grace_period_seconds: int | None = None,
) -> ConfirmationView:
    """Confirmation for deleting ``count`` resources of one kind at once."""
    canonical = normalize_kind(kind)
    label = f"{count} {canonical}{'s' if count > 1 else ''}"
    return build_confirmation(
        ResourceIdentity(kind=label, name=f"{count} selected items"),
        decision,
        force_permitted=force_permitted,
        grace_period_seconds=grace_period_seconds,
    )
