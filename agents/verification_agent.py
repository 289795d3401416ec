from __future__ import annotations

import json

from agents.base_agent import BaseAgent
from agents.evidence_fetcher import EvidenceFetcher
from config.settings import settings
from core.errors import ResultCountMismatch
from llm.oracle import StructuredOracleClient
from prompts.verification_prompt import VERIFICATION_HUMAN_TEMPLATE, VERIFICATION_SYSTEM
from schemas.evidence import EvidenceRecord
from schemas.hypothesis import ImpactHypothesis
from schemas.repo import RepoRef
from schemas.verification import VerificationBatch, VerificationOutcome
from schemas.workflow_state import AnalysisPhase, AnalysisState


def _format_hypotheses(hypotheses: list[ImpactHypothesis]) -> str:
    return json.dumps(
        [
            {"index": i, **h.model_dump(mode="json", by_alias=True)}
            for i, h in enumerate(hypotheses, start=1)
        ],
        indent=2,
    )


def _format_file_contents(records: list[EvidenceRecord], max_chars: int) -> str:
    parts = []
    for record in records:
        content = record.content or ""
        if len(content) > max_chars:
            content = content[:max_chars] + "\n... [truncated]"
        parts.append(f"--- FILE: {record.path} ---\n{content}")
    return "\n\n".join(parts)


class VerificationAgent(BaseAgent):
    """
    Checks every hypothesis against real file contents in a single batched
    oracle call.

    Hypotheses none of whose candidate files loaded are not sent to the
    oracle; they get a degraded outcome in place. Outcome order and count
    always match the input hypotheses.
    """

    def __init__(self, oracle: StructuredOracleClient, evidence_fetcher: EvidenceFetcher) -> None:
        super().__init__(oracle)
        self.evidence_fetcher = evidence_fetcher

    async def verify(
        self,
        hypotheses: list[ImpactHypothesis],
        tech_stack: str,
        change_request: str,
        repo: RepoRef,
        authoritative_paths: list[str],
        run_id: str = "-",
    ) -> list[VerificationOutcome]:
        if not hypotheses:
            return []

        candidate_paths = [p for h in hypotheses for p in h.candidate_files]
        evidence = await self.evidence_fetcher.fetch_all(repo, candidate_paths, run_id=run_id)
        loaded = evidence.loaded_paths

        verifiable: list[int] = []
        outcomes: list[VerificationOutcome | None] = [None] * len(hypotheses)
        for i, hypothesis in enumerate(hypotheses):
            if any(p in loaded for p in hypothesis.candidate_files):
                verifiable.append(i)
            else:
                outcomes[i] = VerificationOutcome.degraded_for(
                    hypothesis.area,
                    [p for p in hypothesis.candidate_files if p not in loaded],
                )

        if not verifiable:
            self.logger.warning(
                "verification_degraded",
                run_id=run_id,
                repo=repo.slug,
                hypotheses=len(hypotheses),
                failed=evidence.failed,
            )
            return outcomes

        batch_hypotheses = [hypotheses[i] for i in verifiable]
        human_prompt = VERIFICATION_HUMAN_TEMPLATE.format(
            tech_stack=tech_stack or "unknown",
            change_request=change_request,
            hypothesis_count=len(batch_hypotheses),
            hypotheses=_format_hypotheses(batch_hypotheses),
            failed_files="\n".join(evidence.failed) or "(none)",
            file_tree="\n".join(authoritative_paths[: settings.verification_tree_max_paths]),
            file_contents=_format_file_contents(
                evidence.loaded, settings.verification_max_chars_per_file
            ),
        )

        batch = await self.invoke_oracle_structured(
            system_prompt=VERIFICATION_SYSTEM,
            human_prompt=human_prompt,
            output_schema=VerificationBatch,
            run_id=run_id,
            prompt_template_name="impact_verification",
        )

        if len(batch.results) != len(batch_hypotheses):
            self.logger.error(
                "verification_result_count_mismatch",
                run_id=run_id,
                expected=len(batch_hypotheses),
                actual=len(batch.results),
            )
            raise ResultCountMismatch(expected=len(batch_hypotheses), actual=len(batch.results))

        listing = set(authoritative_paths)
        for i, hypothesis, raw in zip(verifiable, batch_hypotheses, batch.results):
            outcomes[i] = self._sanitize(raw, hypothesis, listing, loaded, run_id)

        return outcomes

    def _sanitize(
        self,
        raw: VerificationOutcome,
        hypothesis: ImpactHypothesis,
        listing: set[str],
        loaded: set[str],
        run_id: str,
    ) -> VerificationOutcome:
        """
        Pin the area to its hypothesis and keep only listed, non-overlapping
        paths. A confirmation of a file whose content was never loaded is
        demoted to a discovery.
        """
        dropped: list[str] = []

        def _listed(paths: list[str], exclude: set[str]) -> list[str]:
            kept = []
            for path in dict.fromkeys(paths):
                if path not in listing:
                    dropped.append(path)
                elif path not in exclude:
                    kept.append(path)
            return kept

        unseen = [p for p in raw.confirmed_files if p in listing and p not in loaded]
        confirmed = _listed([p for p in raw.confirmed_files if p not in unseen], set())
        rejected = _listed(raw.rejected_files, set(confirmed))
        discovered = _listed(unseen + raw.discovered_files, set(confirmed) | set(rejected))

        if dropped:
            self.logger.warning(
                "verification_unknown_paths_dropped",
                run_id=run_id,
                area=hypothesis.area,
                paths=dropped,
            )

        return VerificationOutcome(
            area=hypothesis.area,
            confirmed_files=confirmed,
            rejected_files=rejected,
            discovered_files=discovered,
            reasoning=raw.reasoning,
        )

    async def run(self, state: AnalysisState) -> dict:
        run_id = state["run_id"]
        repo_ref = state["repo_ref"]
        hypothesis_result = state.get("hypothesis_result")
        hypotheses = hypothesis_result.hypotheses if hypothesis_result else []

        self.logger.info(
            "agent_node_entered",
            run_id=run_id,
            repo=repo_ref.slug,
            phase=AnalysisPhase.VERIFYING,
        )

        outcomes = await self.verify(
            hypotheses,
            hypothesis_result.tech_stack if hypothesis_result else "unknown",
            state["change_request"],
            repo_ref,
            state.get("file_paths", []),
            run_id=run_id,
        )

        degraded = sum(1 for o in outcomes if o.degraded)
        self.logger.info(
            "agent_node_completed",
            run_id=run_id,
            outcomes=len(outcomes),
            degraded=degraded,
            confirmed=sum(len(o.confirmed_files) for o in outcomes),
        )
        oracle_called = len(outcomes) > degraded
        return {
            "verifications": outcomes,
            "current_phase": AnalysisPhase.CONSOLIDATING,
            "total_llm_calls": state.get("total_llm_calls", 0) + (1 if oracle_called else 0),
        }
