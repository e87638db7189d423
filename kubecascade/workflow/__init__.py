"""Async deletion workflow orchestration."""

from kubecascade.workflow.orchestrator import (
    CommitCallback,
    ConfirmationPrompt,
    DeletionWorkflow,
    OutcomeStatus,
    ResourceLister,
    WorkflowOutcome,
)

__all__ = [
    "CommitCallback",
    "ConfirmationPrompt",
    "DeletionWorkflow",
    "OutcomeStatus",
    "ResourceLister",
    "WorkflowOutcome",
]
