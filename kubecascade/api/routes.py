"""Route handlers for the REST pre-flight inspector."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Request

from kubecascade.api.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    DecisionModel,
    DeletionRequest,
    FindingModel,
    HealthResponse,
    InspectResponse,
)
from kubecascade.graph import DEFAULT_MAX_DEPTH, resolve_cascading_deletions
from kubecascade.models.findings import DeletionDecision
from kubecascade.models.resources import ResourceIdentity, identity_of, normalize_kind
from kubecascade.observability.metrics import observe_decision
from kubecascade.policy import build_confirmation, evaluate_deletion
from kubecascade.rules import classify_dependencies

_log = structlog.get_logger(component="api.routes")

router = APIRouter()


def _identity(kind: str, target: dict[str, Any]) -> ResourceIdentity:
    raw = identity_of(target, kind)
    if raw is None:
        raise ValueError("Deletion target has no kind")
    return ResourceIdentity(kind=kind, name=raw.name, namespace=raw.namespace)


def _max_depth(request: Request) -> int:
    config = request.app.state.config
    return config.engine.cascade_max_depth if config is not None else DEFAULT_MAX_DEPTH


def _force_permitted(request: Request, kind: str) -> bool:
    workflow = request.app.state.workflow
    if workflow is not None:
        return bool(workflow.force_permitted(kind))
    config = request.app.state.config
    return config is None or kind not in config.policy.force_denied_kinds


def _grace_period(request: Request) -> int | None:
    config = request.app.state.config
    return config.policy.grace_period_seconds if config is not None else None


def _decision_model(decision: DeletionDecision) -> DecisionModel:
    return DecisionModel(
        blocking=decision.blocking,
        has_warnings=decision.has_warnings,
        force=decision.force,
        state=decision.state.value,
        findings=[FindingModel.from_finding(f) for f in decision.findings],
        cascading=[FindingModel.from_finding(f) for f in decision.cascading],
    )


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from kubecascade import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        cluster_id=request.app.state.cluster_id,
        live=request.app.state.workflow is not None,
    )


@router.post("/deletions/inspect", response_model=InspectResponse)
async def inspect_deletion(body: DeletionRequest, request: Request) -> InspectResponse:
    """Return raw dependency and cascade findings for a caller-supplied snapshot."""
    kind = normalize_kind(body.kind)
    identity = _identity(kind, body.target)
    candidates = body.candidates or []

    findings = classify_dependencies(kind, body.target, candidates)
    cascading = resolve_cascading_deletions(
        kind,
        identity.name,
        identity.namespace,
        candidates,
        _max_depth(request),
    )
    return InspectResponse(
        findings=[FindingModel.from_finding(f) for f in findings],
        cascading=[FindingModel.from_finding(f) for f in cascading],
    )


@router.post("/deletions/analyze", response_model=AnalyzeResponse)
async def analyze_deletion(body: AnalyzeRequest, request: Request) -> AnalyzeResponse:
    """Decide whether the target may be deleted and describe the confirmation dialog."""
    kind = normalize_kind(body.kind)
    identity = _identity(kind, body.target)
    force_permitted = _force_permitted(request, kind)
    workflow = request.app.state.workflow

    if body.candidates is None and workflow is not None:
        decision = await workflow.analyze_deletion(body.target, kind=kind, force=body.force)
    else:
        decision = evaluate_deletion(
            kind,
            body.target,
            body.candidates or [],
            force=body.force and force_permitted,
            max_depth=_max_depth(request),
        )
        observe_decision(kind, decision)

    _log.info("deletion_analyzed", target=str(identity), state=decision.state.value)
    view = build_confirmation(
        identity,
        decision,
        force_permitted=force_permitted,
        grace_period_seconds=_grace_period(request),
    )
    return AnalyzeResponse(decision=_decision_model(decision), confirmation=view.to_dict())
