from __future__ import annotations

import json

from agents.base_agent import BaseAgent
from prompts.consolidation_prompt import (
    CONSOLIDATION_HUMAN_TEMPLATE,
    CONSOLIDATION_SYSTEM,
)
from schemas.hypothesis import HypothesisResult
from schemas.report import ConfirmedChange, ImpactReport
from schemas.verification import VerificationOutcome
from schemas.workflow_state import AnalysisPhase, AnalysisState

NO_IMPACT_SUMMARY = (
    "No impacted areas could be identified for this change request "
    "from the repository file listing."
)


def _ordered_union(groups: list[list[str]]) -> list[str]:
    return list(dict.fromkeys(p for group in groups for p in group))


class ConsolidationAgent(BaseAgent):
    """
    Reconciles hypotheses and verifications into the final ImpactReport.

    Verification outranks hypothesis. The oracle writes the narrative and
    orders confirmed changes by priority; every path it reports is then
    checked against the upstream sets so the report cannot name a file the
    earlier stages did not produce.
    """

    async def consolidate(
        self,
        change_request: str,
        hypothesis_result: HypothesisResult,
        verifications: list[VerificationOutcome],
        run_id: str = "-",
    ) -> ImpactReport:
        if not hypothesis_result.hypotheses:
            self.logger.info("consolidation_skipped_no_hypotheses", run_id=run_id)
            return ImpactReport(
                summary=NO_IMPACT_SUMMARY,
                tech_stack=hypothesis_result.tech_stack,
                confidence_notes=(
                    "The hypothesis stage found no meaningful connection between the "
                    "change request and the repository paths; no files were verified."
                ),
            )

        human_prompt = CONSOLIDATION_HUMAN_TEMPLATE.format(
            change_request=change_request,
            tech_stack=hypothesis_result.tech_stack,
            hypotheses=json.dumps(hypothesis_result.to_wire(), indent=2),
            verifications=json.dumps([v.to_wire() for v in verifications], indent=2),
        )

        draft = await self.invoke_oracle_structured(
            system_prompt=CONSOLIDATION_SYSTEM,
            human_prompt=human_prompt,
            output_schema=ImpactReport,
            run_id=run_id,
            prompt_template_name="impact_consolidation",
        )
        return self._enforce_authority(draft, hypothesis_result, verifications, run_id)

    def _enforce_authority(
        self,
        draft: ImpactReport,
        hypothesis_result: HypothesisResult,
        verifications: list[VerificationOutcome],
        run_id: str,
    ) -> ImpactReport:
        confirmed = _ordered_union([v.confirmed_files for v in verifications])
        confirmed_set = set(confirmed)
        all_rejected = _ordered_union([v.rejected_files for v in verifications])
        # ruled out means hypothesised first, then rejected on content
        hypothesised = {p for h in hypothesis_result.hypotheses for p in h.candidate_files}
        rejected = [
            p for p in all_rejected
            if p in hypothesised and p not in confirmed_set
        ]
        audited = confirmed_set | set(all_rejected)
        discovered = [
            p for p in _ordered_union([v.discovered_files for v in verifications])
            if p not in audited
        ]

        dropped: list[str] = []
        changes: list[ConfirmedChange] = []
        for change in draft.confirmed_changes:
            if change.file in confirmed_set:
                changes.append(change)
            else:
                dropped.append(change.file)

        # every verified confirmation is reported, in the oracle's order first
        reported = {c.file for c in changes}
        for outcome in verifications:
            for path in outcome.confirmed_files:
                if path not in reported:
                    reported.add(path)
                    changes.append(
                        ConfirmedChange(file=path, area=outcome.area, reason=outcome.reasoning)
                    )

        ruled_out = self._reconcile(draft.ruled_out_files, rejected, dropped)
        unverified = self._reconcile(draft.unverified_dependencies, discovered, dropped)

        if dropped:
            self.logger.warning(
                "consolidation_unsupported_paths_dropped",
                run_id=run_id,
                paths=list(dict.fromkeys(dropped)),
            )

        return draft.model_copy(
            update={
                "tech_stack": hypothesis_result.tech_stack,
                "confirmed_changes": changes,
                "ruled_out_files": ruled_out,
                "unverified_dependencies": unverified,
            }
        )

    @staticmethod
    def _reconcile(reported: list[str], upstream: list[str], dropped: list[str]) -> list[str]:
        """Oracle order for paths it got right, then any upstream paths it left out."""
        allowed = set(upstream)
        kept = []
        for path in dict.fromkeys(reported):
            if path in allowed:
                kept.append(path)
            else:
                dropped.append(path)
        kept_set = set(kept)
        return kept + [p for p in upstream if p not in kept_set]

    async def run(self, state: AnalysisState) -> dict:
        run_id = state["run_id"]
        hypothesis_result = state.get("hypothesis_result") or HypothesisResult()

        self.logger.info(
            "agent_node_entered",
            run_id=run_id,
            repo=state["repo_ref"].slug,
            phase=AnalysisPhase.CONSOLIDATING,
        )

        report = await self.consolidate(
            state["change_request"],
            hypothesis_result,
            state.get("verifications", []),
            run_id=run_id,
        )

        self.logger.info(
            "agent_node_completed",
            run_id=run_id,
            confirmed_changes=len(report.confirmed_changes),
            ruled_out=len(report.ruled_out_files),
            unverified=len(report.unverified_dependencies),
        )
        return {
            "report": report,
            "current_phase": AnalysisPhase.COMPLETED,
            "total_llm_calls": (
                state.get("total_llm_calls", 0) + (1 if hypothesis_result.hypotheses else 0)
            ),
        }
