from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

from app_logging.activity_logger import ActivityLogger
from llm.oracle import StructuredOracleClient
from schemas.workflow_state import AnalysisState

T = TypeVar("T", bound=BaseModel)


class BaseAgent(ABC):
    """
    Abstract base class for the oracle-backed pipeline stages.

    Provides:
    - Standardised oracle invocation via invoke_oracle_structured()
    - Activity event logging (every oracle call is also captured by llm_logger)
    - The graph-node entry point ``run(state)``; each stage additionally
      exposes its pure async transformation (generate / verify / consolidate)
    """

    def __init__(self, oracle: StructuredOracleClient) -> None:
        self.agent_name = self.__class__.__name__
        self.logger = ActivityLogger(self.agent_name)
        self.oracle = oracle

    # ── Oracle ───────────────────────────────────────────────────────────────

    async def invoke_oracle_structured(
        self,
        system_prompt: str,
        human_prompt: str,
        output_schema: type[T],
        run_id: str,
        prompt_template_name: str,
    ) -> T:
        """
        One oracle call, validated against ``output_schema``.
        Oracle errors propagate unchanged; nothing is retried here.
        """
        start = time.monotonic()
        result = await self.oracle.complete(
            system_prompt,
            human_prompt,
            output_schema,
            run_id=run_id,
            agent_name=self.agent_name,
            prompt_template_name=prompt_template_name,
        )

        self.logger.info(
            "llm_call_completed",
            run_id=run_id,
            prompt_template=prompt_template_name,
            output_schema=output_schema.__name__,
            latency_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return result

    # ── Graph node interface ─────────────────────────────────────────────────

    @abstractmethod
    async def run(self, state: AnalysisState) -> dict:
        """
        Execute the stage against the shared analysis state.
        Returns a partial AnalysisState dict to be merged by LangGraph.
        """
        ...
