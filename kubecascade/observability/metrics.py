"""Prometheus metrics for kubecascade.

All collectors live on the default registry so that ``/metrics`` on the REST
app exposes them without extra wiring.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from kubecascade.models.findings import DeletionDecision

deletion_analyses_total = Counter(
    "kubecascade_deletion_analyses_total",
    "Deletion analyses performed, by target kind and presentation state.",
    ["kind", "state"],
)

dependency_findings_total = Counter(
    "kubecascade_dependency_findings_total",
    "Dependency findings produced, by relation and severity.",
    ["relation", "severity"],
)

candidate_list_failures_total = Counter(
    "kubecascade_candidate_list_failures_total",
    "Candidate listings that failed or timed out and degraded to no candidates.",
    ["kind"],
)

stale_results_discarded_total = Counter(
    "kubecascade_stale_results_discarded_total",
    "Analyses discarded because their confirmation was closed first.",
)

deletion_commits_total = Counter(
    "kubecascade_deletion_commits_total",
    "Commit callback invocations after confirmation, by kind and outcome.",
    ["kind", "outcome"],
)

analysis_duration_seconds = Histogram(
    "kubecascade_analysis_duration_seconds",
    "Wall time of the pure classify/resolve/decide phase.",
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
)


def observe_decision(kind: str, decision: DeletionDecision) -> None:
    """Record one analysis outcome and the findings it produced."""
    deletion_analyses_total.labels(kind=kind, state=decision.state.value).inc()
    for finding in (*decision.findings, *decision.cascading):
        dependency_findings_total.labels(
            relation=finding.relation_kind.value,
            severity=finding.severity.value,
        ).inc()
