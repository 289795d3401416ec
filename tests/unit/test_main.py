"""Unit tests for the CLI entry point (pipeline patched)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

import main
from core.errors import UpstreamFetchError
from schemas.report import AnalysisResponse, RepoTreeResponse

REPO_URL = "https://github.com/acme/shop"


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("main._configure"):
        yield


@patch("agents.supervisor.analyze", new_callable=AsyncMock)
def test_analyze_writes_output_file(mock_analyze, tmp_path, capsys):
    mock_analyze.return_value = AnalysisResponse(
        run_id="run-1", repo="acme/shop", branch="main", tech_stack="Go", file_count=1
    )
    out = tmp_path / "report.json"

    assert main.run_analyze(REPO_URL, "Add caching", str(out)) == 0
    assert json.loads(out.read_text())["techStack"] == "Go"
    assert "Report written to" in capsys.readouterr().out


@pytest.mark.parametrize(
    "exc, line",
    [
        (UpstreamFetchError("Failed to fetch repository tree (404)"), "ERROR: Failed to fetch repository tree (404)"),
        (TimeoutError(), "ERROR: Analysis timed out"),
        (ValueError("bad state"), "ERROR: unexpected failure (ValueError): bad state"),
    ],
)
def test_analyze_failures_print_one_error_line(exc, line, capsys):
    with patch("agents.supervisor.analyze", new_callable=AsyncMock, side_effect=exc):
        assert main.run_analyze(REPO_URL, "Add caching", None) == 1

    captured = capsys.readouterr()
    assert captured.err.strip() == line
    assert captured.out == ""


def test_tree_unexpected_failure_prints_one_error_line(capsys):
    with patch("agents.supervisor.explore_repository", new_callable=AsyncMock, side_effect=RuntimeError("boom")):
        assert main.run_tree(REPO_URL) == 1

    assert capsys.readouterr().err.strip() == "ERROR: unexpected failure (RuntimeError): boom"


@patch("agents.supervisor.explore_repository", new_callable=AsyncMock)
def test_tree_prints_listing(mock_explore, capsys):
    mock_explore.return_value = RepoTreeResponse(owner="acme", repo="shop", branch="main", file_count=1, files=["a.go"])

    assert main.run_tree(REPO_URL) == 0
    assert json.loads(capsys.readouterr().out)["files"] == ["a.go"]
