from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class EvidenceRecord(BaseModel):
    path: str
    content: Optional[str] = None
    loaded: bool = False


class EvidenceBatch(BaseModel):
    """Result of one EvidenceFetcher round-trip, partitioned by outcome."""

    loaded: list[EvidenceRecord] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def loaded_paths(self) -> set[str]:
        return {r.path for r in self.loaded}
