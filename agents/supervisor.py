from __future__ import annotations

import asyncio
import uuid
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Optional

from langgraph.graph import END, START, StateGraph

from agents.consolidation_agent import ConsolidationAgent
from agents.evidence_fetcher import EvidenceFetcher
from agents.hypothesis_agent import HypothesisAgent
from agents.verification_agent import VerificationAgent
from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from core.errors import InputValidationError
from github_client.client import GitHubClient, get_github_client
from github_client.repo_url import parse_repo_url
from llm.oracle import LangChainOracleClient, StructuredOracleClient
from schemas.report import AnalysisResponse, RepoTreeResponse
from schemas.workflow_state import AnalysisPhase, AnalysisState

logger = ActivityLogger("supervisor")


# ── Nodes ──────────────────────────────────────────────────────────────────────

def make_list_files_node(github: GitHubClient):
    async def list_files_node(state: AnalysisState) -> dict:
        repo_ref = state["repo_ref"]
        logger.info(
            "agent_node_entered",
            run_id=state["run_id"],
            repo=repo_ref.slug,
            phase=AnalysisPhase.LISTING_FILES,
        )
        file_paths = await github.list_files(repo_ref)
        logger.info(
            "repo_files_listed",
            run_id=state["run_id"],
            repo=repo_ref.slug,
            file_count=len(file_paths),
        )
        return {"file_paths": file_paths, "current_phase": AnalysisPhase.HYPOTHESIZING}

    return list_files_node


def end_analysis_node(state: AnalysisState) -> dict:
    """Final node: record completion timestamp."""
    return {
        "current_phase": AnalysisPhase.COMPLETED,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }


# ── Graph construction ─────────────────────────────────────────────────────────

def build_graph(oracle: StructuredOracleClient, github: GitHubClient):
    """
    Construct and compile the LangGraph StateGraph for one analysis.

    Topology:
        START → list_files → hypothesis → verification → consolidation
              → end_analysis → END

    The graph is built per run because its nodes close over the run's
    GitHub client.
    """
    hypothesis = HypothesisAgent(oracle)
    verification = VerificationAgent(oracle, EvidenceFetcher(github))
    consolidation = ConsolidationAgent(oracle)

    graph = StateGraph(AnalysisState)

    graph.add_node("list_files", make_list_files_node(github))
    graph.add_node("hypothesis", hypothesis.run)
    graph.add_node("verification", verification.run)
    graph.add_node("consolidation", consolidation.run)
    graph.add_node("end_analysis", end_analysis_node)

    graph.add_edge(START, "list_files")
    graph.add_edge("list_files", "hypothesis")
    graph.add_edge("hypothesis", "verification")
    graph.add_edge("verification", "consolidation")
    graph.add_edge("consolidation", "end_analysis")
    graph.add_edge("end_analysis", END)

    return graph.compile()


# ── Public entry points ────────────────────────────────────────────────────────

async def run_analysis(
    repo_url: str,
    change_request: str,
    *,
    oracle: Optional[StructuredOracleClient] = None,
    github: Optional[GitHubClient] = None,
) -> AnalysisState:
    """
    Run the full hypothesis → verification → consolidation pipeline.

    Input errors raise InputValidationError before anything is fetched.
    Stage errors are logged and re-raised unchanged; no partial state is
    returned.
    """
    if not (repo_url or "").strip() and not (change_request or "").strip():
        raise InputValidationError("repoUrl and changeRequest are required")
    if not (change_request or "").strip():
        raise InputValidationError("Change request is required")
    repo_ref = parse_repo_url(repo_url)

    run_id = str(uuid.uuid4())
    initial_state: AnalysisState = {
        "run_id": run_id,
        "started_at": datetime.now(timezone.utc).isoformat(),
        "repo_ref": repo_ref,
        "change_request": change_request.strip(),
        "current_phase": AnalysisPhase.LISTING_FILES,
        "total_llm_calls": 0,
    }

    log = logger.bind(run_id=run_id, repo=repo_ref.slug)
    log.info("analysis_started", change_request_chars=len(initial_state["change_request"]))

    async with AsyncExitStack() as stack:
        if github is None:
            github = await stack.enter_async_context(get_github_client())
        graph = build_graph(oracle or LangChainOracleClient(), github)
        try:
            final_state = await graph.ainvoke(initial_state)
        except Exception as exc:
            log.error("analysis_failed", exc=exc)
            raise

    report = final_state.get("report")
    log.info(
        "analysis_completed",
        phase=str(final_state.get("current_phase")),
        llm_calls=final_state.get("total_llm_calls", 0),
        confirmed_changes=len(report.confirmed_changes) if report else 0,
    )
    return final_state


def build_response(state: AnalysisState) -> AnalysisResponse:
    repo_ref = state["repo_ref"]
    hypothesis_result = state.get("hypothesis_result")
    return AnalysisResponse(
        run_id=state["run_id"],
        repo=f"{repo_ref.owner}/{repo_ref.repo}",
        branch=repo_ref.branch,
        tech_stack=hypothesis_result.tech_stack if hypothesis_result else "unknown",
        file_count=len(state.get("file_paths", [])),
        hypotheses=hypothesis_result.hypotheses if hypothesis_result else [],
        verifications=state.get("verifications", []),
        report=state.get("report"),
    )


async def analyze(
    repo_url: str,
    change_request: str,
    timeout: Optional[float] = None,
    **kwargs,
) -> AnalysisResponse:
    """
    run_analysis under the configured deadline, shaped for renderers.
    Raises asyncio.TimeoutError when the deadline passes.
    """
    deadline = settings.analysis_timeout if timeout is None else (timeout or None)
    state = await asyncio.wait_for(
        run_analysis(repo_url, change_request, **kwargs),
        timeout=deadline,
    )
    return build_response(state)


async def explore_repository(
    repo_url: str,
    github: Optional[GitHubClient] = None,
) -> RepoTreeResponse:
    """List the analysable files of a repository without touching the oracle."""
    repo_ref = parse_repo_url(repo_url)
    async with AsyncExitStack() as stack:
        if github is None:
            github = await stack.enter_async_context(get_github_client())
        files = await github.list_files(repo_ref)

    logger.info("repo_explored", repo=repo_ref.slug, file_count=len(files))
    return RepoTreeResponse(
        owner=repo_ref.owner,
        repo=repo_ref.repo,
        branch=repo_ref.branch,
        file_count=len(files),
        files=files,
    )
