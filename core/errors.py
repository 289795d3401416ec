"""Error taxonomy for the impact-analysis pipeline.

Everything except per-file fetch failures propagates unchanged to the caller
of ``agents.supervisor.run_analysis``. A degraded verification is not an
error; it is a ``VerificationOutcome`` with ``degraded=True``.
"""

from __future__ import annotations

from typing import Optional


class ImpactAnalysisError(Exception):
    """Base class for every failure the pipeline surfaces to its caller."""


class InputValidationError(ImpactAnalysisError):
    """Missing or malformed repository reference or change request."""


class UpstreamFetchError(ImpactAnalysisError):
    """The source host could not provide a listing or a file's content."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.status_code = status_code


# ── Oracle ────────────────────────────────────────────────────────────────────


class OracleError(ImpactAnalysisError):
    """Base class for failures of the text-generation oracle."""


class OracleCallFailed(OracleError):
    """Transport failure or timeout while invoking the oracle."""


class OracleContractError(OracleError):
    """The oracle answered, but its answer broke the structured-output contract."""


class NoJsonFound(OracleContractError):
    pass


class MalformedJson(OracleContractError):
    pass


class ResultCountMismatch(OracleContractError):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Verification returned {actual} result(s) for {expected} hypothesis(es)."
        )
        self.expected = expected
        self.actual = actual
