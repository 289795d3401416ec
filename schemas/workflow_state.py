from __future__ import annotations

from enum import Enum
from typing import Optional

from typing_extensions import TypedDict

from schemas.hypothesis import HypothesisResult
from schemas.report import ImpactReport
from schemas.repo import RepoRef
from schemas.verification import VerificationOutcome


class AnalysisPhase(str, Enum):
    LISTING_FILES = "listing_files"
    HYPOTHESIZING = "hypothesizing"
    VERIFYING = "verifying"
    CONSOLIDATING = "consolidating"
    COMPLETED = "completed"
    FAILED = "failed"


class AnalysisState(TypedDict, total=False):
    # ── Identity ─────────────────────────────────────────────────────────────
    run_id: str           # UUID for this analysis run
    started_at: str       # ISO-8601 UTC timestamp
    repo_ref: RepoRef
    change_request: str

    # ── Stage outputs (populated progressively) ──────────────────────────────
    file_paths: list[str]                       # authoritative listing
    hypothesis_result: Optional[HypothesisResult]
    verifications: list[VerificationOutcome]
    report: Optional[ImpactReport]

    # ── Progress / audit ──────────────────────────────────────────────────────
    current_phase: AnalysisPhase
    completed_at: Optional[str]
    total_llm_calls: int
