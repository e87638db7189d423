"""Request and response models for the REST pre-flight inspector."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from kubecascade.models.findings import DependencyFinding


class DeletionRequest(BaseModel):
    """A target resource plus an optional caller-supplied candidate snapshot."""

    kind: str = Field(..., min_length=1, max_length=253, description="Target kind or kubectl alias")
    target: dict[str, Any] = Field(..., description="Raw target resource")
    candidates: list[Any] | None = Field(
        None,
        description="Related resources; omitted means list them from the cluster when connected",
    )

    @field_validator("kind")
    @classmethod
    def _kind_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("kind must not be blank")
        return value.strip()


class AnalyzeRequest(DeletionRequest):
    force: bool = Field(False, description="Request a forced deletion")


class FindingModel(BaseModel):
    relation_kind: str
    related_kind: str
    related_name: str
    related_namespace: str | None = None
    description: str
    severity: str

    @classmethod
    def from_finding(cls, finding: DependencyFinding) -> FindingModel:
        return cls(**finding.to_dict())


class InspectResponse(BaseModel):
    findings: list[FindingModel]
    cascading: list[FindingModel]


class DecisionModel(BaseModel):
    blocking: bool
    has_warnings: bool
    force: bool
    state: str
    findings: list[FindingModel]
    cascading: list[FindingModel]


class AnalyzeResponse(BaseModel):
    decision: DecisionModel
    confirmation: dict[str, Any]


class HealthResponse(BaseModel):
    status: str
    version: str
    cluster_id: str
    live: bool = Field(..., description="True when candidates can be listed from a cluster")


class ErrorResponse(BaseModel):
    error: str
    detail: str
