from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from schemas.base import CamelModel
from schemas.hypothesis import ImpactHypothesis
from schemas.verification import VerificationOutcome


class ConfirmedChange(CamelModel):
    model_config = ConfigDict(frozen=True)

    file: str
    area: str
    reason: str = Field(..., description="Code-level reason taken from verification")


class ImpactReport(CamelModel):
    model_config = ConfigDict(frozen=True)

    summary: str
    tech_stack: str = "unknown"
    confirmed_changes: list[ConfirmedChange] = Field(
        default_factory=list,
        description="Ordered by implementation priority, core logic first",
    )
    ruled_out_files: list[str] = Field(default_factory=list)
    unverified_dependencies: list[str] = Field(
        default_factory=list,
        description="Referenced by verified code but never content-audited",
    )
    confidence_notes: str = ""
    recommended_next_steps: list[str] = Field(default_factory=list)

    @field_validator("recommended_next_steps", mode="before")
    @classmethod
    def _split_single_string(cls, value):
        # the oracle sometimes answers with one paragraph instead of a list
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


class RepoTreeResponse(CamelModel):
    owner: str
    repo: str
    branch: str
    file_count: int
    files: list[str] = Field(default_factory=list)


class AnalysisResponse(CamelModel):
    """JSON document handed to renderers for one completed run."""

    run_id: str
    repo: str
    branch: str
    tech_stack: str
    file_count: int
    hypotheses: list[ImpactHypothesis] = Field(default_factory=list)
    verifications: list[VerificationOutcome] = Field(default_factory=list)
    report: Optional[ImpactReport] = None
