"""Unit tests for the HTTP API (pipeline patched)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from api.server import app
from core.errors import InputValidationError, NoJsonFound, ResultCountMismatch, UpstreamFetchError
from schemas.report import AnalysisResponse, ImpactReport, RepoTreeResponse

BODY = {"repoUrl": "https://github.com/acme/shop", "changeRequest": "Add OTP"}


@pytest.fixture
def client():
    return TestClient(app)


def _response():
    return AnalysisResponse(
        run_id="run-1",
        repo="acme/shop",
        branch="main",
        tech_stack="Express",
        file_count=3,
        report=ImpactReport(summary="Low risk", tech_stack="Express"),
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


@patch("api.server.analyze", new_callable=AsyncMock)
def test_analyze_success(mock_analyze, client):
    mock_analyze.return_value = _response()
    resp = client.post("/analyze", json=BODY)

    assert resp.status_code == 200
    data = resp.json()
    assert data["techStack"] == "Express"
    assert data["fileCount"] == 3
    assert data["report"]["summary"] == "Low risk"
    mock_analyze.assert_awaited_once_with(BODY["repoUrl"], BODY["changeRequest"])


@patch("api.server.analyze", new_callable=AsyncMock)
def test_analyze_missing_fields_is_400(mock_analyze, client):
    resp = client.post("/analyze", json={"repoUrl": "https://github.com/acme/shop"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "repoUrl and changeRequest are required"}
    mock_analyze.assert_not_awaited()


@pytest.mark.parametrize(
    "exc, status",
    [
        (InputValidationError("Only github.com repos are supported"), 400),
        (UpstreamFetchError("Failed to fetch repository tree (404)"), 502),
        (NoJsonFound("Oracle response did not contain a JSON object."), 502),
        (ResultCountMismatch(expected=2, actual=1), 502),
        (asyncio.TimeoutError(), 504),
    ],
)
def test_analyze_error_mapping(exc, status, client):
    with patch("api.server.analyze", new_callable=AsyncMock, side_effect=exc):
        resp = client.post("/analyze", json=BODY)

    assert resp.status_code == status
    assert list(resp.json()) == ["error"]


@patch("api.server.explore_repository", new_callable=AsyncMock)
def test_tree(mock_explore, client):
    mock_explore.return_value = RepoTreeResponse(
        owner="acme", repo="shop", branch="main", file_count=1, files=["a.py"]
    )
    resp = client.post("/tree", json={"repoUrl": "https://github.com/acme/shop"})

    assert resp.status_code == 200
    assert resp.json() == {"owner": "acme", "repo": "shop", "branch": "main", "fileCount": 1, "files": ["a.py"]}


def test_unexpected_error_is_500_with_error_body():
    # the catch-all handler runs in the outermost middleware, which re-raises
    # after responding unless the test client is told not to
    client = TestClient(app, raise_server_exceptions=False)
    with patch("api.server.analyze", new_callable=AsyncMock, side_effect=ValueError("bad state")):
        resp = client.post("/analyze", json=BODY)

    assert resp.status_code == 500
    assert resp.json() == {"error": "bad state"}
