from __future__ import annotations

from enum import Enum

from pydantic import ConfigDict, Field

from schemas.base import CamelModel


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ImpactHypothesis(CamelModel):
    """A named impact area guessed from the path listing alone."""

    model_config = ConfigDict(frozen=True)

    area: str
    reasoning: str
    candidate_files: list[str] = Field(
        default_factory=list,
        description="Paths from the listing that probably belong to this area",
    )
    confidence: Confidence


class HypothesisResult(CamelModel):
    model_config = ConfigDict(frozen=True)

    tech_stack: str = Field(
        default="unknown",
        description="Technology stack inferred from path conventions",
    )
    hypotheses: list[ImpactHypothesis] = Field(default_factory=list)
