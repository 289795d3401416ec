from __future__ import annotations

from pydantic import Field

from schemas.base import CamelModel

DEGRADED_REASONING = (
    "None of the candidate files could be loaded; verification could not be performed."
)


class VerificationOutcome(CamelModel):
    area: str = ""
    confirmed_files: list[str] = Field(default_factory=list)
    rejected_files: list[str] = Field(default_factory=list)
    discovered_files: list[str] = Field(
        default_factory=list,
        description="Listed paths the evidence points to but which were not fetched",
    )
    reasoning: str = ""
    degraded: bool = Field(
        default=False,
        description="True when no evidence loaded and the oracle was not consulted",
    )

    @classmethod
    def degraded_for(cls, area: str, failed_files: list[str]) -> "VerificationOutcome":
        reasoning = DEGRADED_REASONING
        if failed_files:
            reasoning += " Failed to load: " + ", ".join(failed_files) + "."
        else:
            reasoning += " The hypothesis named no candidate files from the listing."
        return cls(area=area, reasoning=reasoning, degraded=True)


class VerificationBatch(CamelModel):
    """Oracle output shape for the batched verification call."""

    results: list[VerificationOutcome] = Field(default_factory=list)
