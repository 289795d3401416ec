from __future__ import annotations

from agents.base_agent import BaseAgent
from prompts.hypothesis_prompt import HYPOTHESIS_HUMAN_TEMPLATE, HYPOTHESIS_SYSTEM
from schemas.hypothesis import HypothesisResult, ImpactHypothesis
from schemas.workflow_state import AnalysisPhase, AnalysisState


class HypothesisAgent(BaseAgent):
    """Guesses impacted areas from the path listing alone."""

    async def generate(
        self,
        file_paths: list[str],
        change_request: str,
        run_id: str = "-",
    ) -> HypothesisResult:
        if not file_paths:
            self.logger.info("hypothesis_skipped_empty_listing", run_id=run_id)
            return HypothesisResult(tech_stack="unknown", hypotheses=[])

        human_prompt = HYPOTHESIS_HUMAN_TEMPLATE.format(
            change_request=change_request,
            file_count=len(file_paths),
            file_paths="\n".join(file_paths),
        )

        result = await self.invoke_oracle_structured(
            system_prompt=HYPOTHESIS_SYSTEM,
            human_prompt=human_prompt,
            output_schema=HypothesisResult,
            run_id=run_id,
            prompt_template_name="impact_hypothesis",
        )
        return self._restrict_to_listing(result, file_paths, run_id)

    def _restrict_to_listing(
        self,
        result: HypothesisResult,
        file_paths: list[str],
        run_id: str,
    ) -> HypothesisResult:
        """Drop candidate paths the oracle made up; keep its ordering otherwise."""
        listing = set(file_paths)
        hypotheses: list[ImpactHypothesis] = []
        unknown: list[str] = []
        for hypothesis in result.hypotheses:
            kept = []
            for path in dict.fromkeys(hypothesis.candidate_files):
                if path in listing:
                    kept.append(path)
                else:
                    unknown.append(path)
            hypotheses.append(hypothesis.model_copy(update={"candidate_files": kept}))

        if unknown:
            self.logger.warning(
                "hypothesis_unknown_paths_dropped",
                run_id=run_id,
                paths=unknown,
            )
        return result.model_copy(update={"hypotheses": hypotheses})

    async def run(self, state: AnalysisState) -> dict:
        run_id = state["run_id"]
        self.logger.info(
            "agent_node_entered",
            run_id=run_id,
            repo=state["repo_ref"].slug,
            phase=AnalysisPhase.HYPOTHESIZING,
        )

        file_paths = state.get("file_paths", [])
        result = await self.generate(file_paths, state["change_request"], run_id=run_id)

        self.logger.info(
            "agent_node_completed",
            run_id=run_id,
            tech_stack=result.tech_stack,
            hypotheses=len(result.hypotheses),
            areas=[h.area for h in result.hypotheses],
        )
        return {
            "hypothesis_result": result,
            "current_phase": AnalysisPhase.VERIFYING,
            "total_llm_calls": state.get("total_llm_calls", 0) + (1 if file_paths else 0),
        }
