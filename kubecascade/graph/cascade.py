"""Resources the garbage collector removes along with the target."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kubecascade.graph.models import WalkStep
from kubecascade.graph.ownership import OwnershipGraph
from kubecascade.models.findings import DependencyFinding, RelationKind
from kubecascade.models.resources import normalize_kind
from kubecascade.observability.logging import get_logger
from kubecascade.rules.severity import make_finding

_logger = get_logger("cascade")

DEFAULT_MAX_DEPTH = 2


def _owner_chain(target_kind: str, step: WalkStep) -> str:
    if step.depth == 1:
        return target_kind
    return f"{target_kind} {step.via_kind}s"


def resolve_cascading_deletions(
    target_kind: str,
    target_name: str,
    target_namespace: str | None,
    candidates: Iterable[Any] | None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[DependencyFinding]:
    """Return one info finding per group of resources deleted with the target.

    Resources reached at the same depth through the same owner kind are
    grouped by kind and namespace. Pods are always reported as a count;
    other kinds are counted only when more than one is affected.
    """
    if max_depth < 1:
        return []

    kind = normalize_kind(target_kind)
    namespace = target_namespace or ""
    graph = OwnershipGraph.from_candidates(candidates, namespace)
    walk = graph.walk(kind, target_name, max_depth)

    groups: dict[tuple[int, str, str, str], list[WalkStep]] = {}
    for step in walk.steps:
        groups.setdefault((step.depth, step.node.kind, step.via_kind, step.node.namespace), []).append(step)

    findings: list[DependencyFinding] = []
    for (_, related_kind, _, related_namespace), steps in groups.items():
        first = steps[0]
        if related_kind == "Pod" or len(steps) > 1:
            related_name = f"{len(steps)} {related_kind.lower()}(s)"
        else:
            related_name = first.node.name
        findings.append(
            make_finding(
                kind,
                RelationKind.OWNERSHIP,
                related_kind,
                related_name,
                related_namespace,
                owner_chain=_owner_chain(kind, first),
            )
        )

    if walk.truncated:
        _logger.debug("cascade_truncated", target_kind=kind, target_name=target_name, max_depth=max_depth)
    return findings
