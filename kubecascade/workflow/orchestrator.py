"""Deletion workflow: fetch, analyze, confirm, commit.

One invocation fetches a single candidate snapshot through a
ResourceLister, evaluates it, shows the resulting confirmation through a
ConfirmationPrompt and, once the user confirms an unblocked deletion,
hands the target to the commit callback. Each invocation carries a token;
results that arrive after their token was cancelled are discarded.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from kubecascade.graph import DEFAULT_MAX_DEPTH
from kubecascade.models.config import KubeCascadeConfig
from kubecascade.models.findings import ConfirmationView, DeleteOptions, DeletionDecision
from kubecascade.models.resources import ResourceIdentity, identity_of, normalize_kind
from kubecascade.observability.logging import deletion_context, get_logger
from kubecascade.observability.metrics import (
    analysis_duration_seconds,
    candidate_list_failures_total,
    deletion_commits_total,
    observe_decision,
    stale_results_discarded_total,
)
from kubecascade.policy import build_confirmation, evaluate_deletion

_logger = get_logger("workflow")


class ResourceLister(Protocol):
    """Lists the resources that may relate to a target of ``kind`` in ``namespace``."""

    async def list_related(self, kind: str, namespace: str) -> list[dict[str, Any]] | None: ...


class ConfirmationPrompt(Protocol):
    """Shows a confirmation and resolves to True when the user accepts."""

    async def confirm(self, view: ConfirmationView, decision: DeletionDecision) -> bool: ...


CommitCallback = Callable[[ResourceIdentity, DeleteOptions], Awaitable[None]]


class OutcomeStatus(StrEnum):
    """Terminal state of one workflow invocation."""

    COMMITTED = "committed"
    CANCELLED = "cancelled"
    BLOCKED = "blocked"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class WorkflowOutcome:
    status: OutcomeStatus
    target: ResourceIdentity
    decision: DeletionDecision | None = None
    view: ConfirmationView | None = None
    error: str = ""


class DeletionWorkflow:
    """Orchestrates one or more deletion attempts against a single lister.

    ``prompt`` may be None for non-interactive use, in which case unblocked
    deletions are confirmed automatically.
    """

    def __init__(
        self,
        lister: ResourceLister,
        prompt: ConfirmationPrompt | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        force_denied_kinds: Iterable[str] = (),
        list_timeout_seconds: float = 10.0,
        grace_period_seconds: int | None = None,
        propagation_policy: str = "Background",
    ) -> None:
        self._lister = lister
        self._prompt = prompt
        self._max_depth = max_depth
        self._force_denied = frozenset(normalize_kind(k) for k in force_denied_kinds)
        self._list_timeout = list_timeout_seconds
        self._grace_period = grace_period_seconds
        self._propagation_policy = propagation_policy
        self._open_tokens: set[str] = set()
        self._inflight: dict[str, asyncio.Future[Any]] = {}

    @classmethod
    def from_config(
        cls,
        lister: ResourceLister,
        config: KubeCascadeConfig,
        prompt: ConfirmationPrompt | None = None,
    ) -> DeletionWorkflow:
        return cls(
            lister,
            prompt,
            max_depth=config.engine.cascade_max_depth,
            force_denied_kinds=config.policy.force_denied_kinds,
            list_timeout_seconds=config.cluster.list_timeout_seconds,
            grace_period_seconds=config.policy.grace_period_seconds,
            propagation_policy=config.policy.propagation_policy,
        )

    @property
    def grace_period_seconds(self) -> int | None:
        return self._grace_period

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def open(self) -> str:
        """Open a new invocation token."""
        token = uuid.uuid4().hex
        self._open_tokens.add(token)
        return token

    def cancel(self, token: str) -> None:
        """Close ``token`` and cancel its in-flight fetch, if any."""
        self._open_tokens.discard(token)
        task = self._inflight.pop(token, None)
        if task is not None and not task.done():
            task.cancel()

    def is_open(self, token: str) -> bool:
        return token in self._open_tokens

    def force_permitted(self, kind: str) -> bool:
        return normalize_kind(kind) not in self._force_denied

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze_deletion(
        self,
        target: Mapping[str, Any],
        *,
        kind: str | None = None,
        force: bool = False,
    ) -> DeletionDecision:
        """Fetch candidates for ``target`` and return the deletion verdict."""
        identity = self._identify(target, kind)
        candidates = await self._fetch(identity, token=None)
        return self._evaluate(identity, target, candidates or [], force)

    async def analyze_many(
        self,
        targets: Iterable[Mapping[str, Any]],
        *,
        kind: str | None = None,
        force: bool = False,
    ) -> list[DeletionDecision]:
        """Analyze independent targets concurrently, one snapshot each."""
        return list(
            await asyncio.gather(*(self.analyze_deletion(target, kind=kind, force=force) for target in targets))
        )

    async def run(
        self,
        target: Mapping[str, Any],
        commit: CommitCallback,
        *,
        kind: str | None = None,
        force: bool = False,
        token: str | None = None,
    ) -> WorkflowOutcome:
        """Drive one deletion attempt from fetch to commit.

        The token is closed when the invocation finishes, whatever the outcome.
        """
        identity = self._identify(target, kind)
        if token is None:
            token = self.open()
        with deletion_context(str(identity), token):
            try:
                candidates = await self._fetch(identity, token=token)
                if candidates is None:
                    return self._stale(identity)

                decision = self._evaluate(identity, target, candidates, force)
                view = build_confirmation(
                    identity,
                    decision,
                    force_permitted=self.force_permitted(identity.kind),
                    grace_period_seconds=self._grace_period,
                )

                confirmed = not decision.blocking
                if self._prompt is not None:
                    confirmed = await self._prompt.confirm(view, decision)
                if not self.is_open(token):
                    return self._stale(identity)

                if decision.blocking:
                    _logger.info("deletion_blocked", target=str(identity), findings=len(decision.findings))
                    deletion_commits_total.labels(kind=identity.kind, outcome=OutcomeStatus.BLOCKED.value).inc()
                    return WorkflowOutcome(OutcomeStatus.BLOCKED, identity, decision, view)
                if not confirmed:
                    _logger.info("deletion_cancelled", target=str(identity))
                    deletion_commits_total.labels(kind=identity.kind, outcome=OutcomeStatus.CANCELLED.value).inc()
                    return WorkflowOutcome(OutcomeStatus.CANCELLED, identity, decision, view)

                options = DeleteOptions(
                    force=decision.force,
                    grace_period_seconds=self._grace_period,
                    propagation_policy=self._propagation_policy,
                )
                try:
                    await commit(identity, options)
                except Exception as exc:
                    _logger.error("deletion_commit_failed", target=str(identity), error=str(exc))
                    deletion_commits_total.labels(kind=identity.kind, outcome=OutcomeStatus.FAILED.value).inc()
                    return WorkflowOutcome(OutcomeStatus.FAILED, identity, decision, view, error=str(exc))

                _logger.info("deletion_committed", target=str(identity), force=decision.force)
                deletion_commits_total.labels(kind=identity.kind, outcome=OutcomeStatus.COMMITTED.value).inc()
                return WorkflowOutcome(OutcomeStatus.COMMITTED, identity, decision, view)
            finally:
                self._open_tokens.discard(token)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _identify(target: Mapping[str, Any], kind: str | None) -> ResourceIdentity:
        identity = identity_of(target, kind or "")
        if identity is None:
            raise ValueError("Deletion target has no kind; pass kind= explicitly")
        if kind:
            return ResourceIdentity(kind=normalize_kind(kind), name=identity.name, namespace=identity.namespace)
        return identity

    async def _list(self, identity: ResourceIdentity) -> list[dict[str, Any]] | None:
        return await asyncio.wait_for(
            self._lister.list_related(identity.kind, identity.namespace),
            timeout=self._list_timeout,
        )

    async def _fetch(self, identity: ResourceIdentity, token: str | None) -> list[dict[str, Any]] | None:
        """Return the candidate snapshot, or None when ``token`` was closed meanwhile.

        Lister failures, timeouts and empty responses all degrade to no candidates.
        """
        task = asyncio.ensure_future(self._list(identity))
        if token is not None:
            self._inflight[token] = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if token is not None:
                self._inflight.pop(token, None)

        if token is not None and not self.is_open(token):
            return None

        if task.cancelled():
            error = "listing cancelled"
        elif task.exception() is not None:
            exc = task.exception()
            error = str(exc) or type(exc).__name__
        elif task.result() is None:
            error = "lister returned no result"
        else:
            return list(task.result())

        _logger.warning("candidate_list_failed", target=str(identity), error=error)
        candidate_list_failures_total.labels(kind=identity.kind).inc()
        return []

    def _evaluate(
        self,
        identity: ResourceIdentity,
        target: Mapping[str, Any],
        candidates: list[dict[str, Any]],
        force: bool,
    ) -> DeletionDecision:
        if force and not self.force_permitted(identity.kind):
            _logger.warning("force_denied", target=str(identity))
            force = False

        start = time.monotonic()
        decision = evaluate_deletion(
            identity.kind,
            target,
            candidates,
            force=force,
            max_depth=self._max_depth,
        )
        analysis_duration_seconds.observe(time.monotonic() - start)
        observe_decision(identity.kind, decision)

        _logger.info(
            "deletion_analyzed",
            target=str(identity),
            candidates=len(candidates),
            state=decision.state.value,
            findings=len(decision.findings),
            cascading=len(decision.cascading),
            force=decision.force,
        )
        return decision

    def _stale(self, identity: ResourceIdentity) -> WorkflowOutcome:
        _logger.debug("stale_result_discarded", target=str(identity))
        stale_results_discarded_total.inc()
        return WorkflowOutcome(OutcomeStatus.STALE, identity)
