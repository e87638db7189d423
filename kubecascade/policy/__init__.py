"""Deletion policy: verdicts, bulk merging and confirmation rendering."""

from kubecascade.policy.decision import (
    GROUP_HEADINGS,
    build_bulk_confirmation,
    build_confirmation,
    decide,
    evaluate_deletion,
    group_findings,
    merge_decisions,
)

__all__ = [
    "GROUP_HEADINGS",
    "build_bulk_confirmation",
    "build_confirmation",
    "decide",
    "evaluate_deletion",
    "group_findings",
    "merge_decisions",
]
