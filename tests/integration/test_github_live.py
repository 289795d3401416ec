"""
Live GitHub checks: listing and content fetch against a small public repo.

Requires GITHUB_TOKEN in the environment or .env.

Run with: pytest tests/integration/test_github_live.py -v -s
"""

from __future__ import annotations

import os

import pytest

pytestmark = pytest.mark.skipif(not os.getenv("GITHUB_TOKEN"), reason="GITHUB_TOKEN not set")

REPO_URL = os.getenv("TEST_GITHUB_REPO_URL", "https://github.com/octocat/Hello-World/tree/master")


@pytest.mark.asyncio
async def test_list_and_fetch():
    from agents.evidence_fetcher import EvidenceFetcher
    from github_client.client import get_github_client
    from github_client.repo_url import parse_repo_url

    repo_ref = parse_repo_url(REPO_URL)
    async with get_github_client() as gh:
        files = await gh.list_files(repo_ref)
        assert files, "Expected at least one file in the listing"

        batch = await EvidenceFetcher(gh).fetch_all(repo_ref, files[:3] + ["does/not/exist.txt"])

    assert "does/not/exist.txt" in batch.failed
    assert batch.loaded, "Expected at least one file to load"


@pytest.mark.asyncio
@pytest.mark.skipif(
    not (os.getenv("OPENAI_API_KEY") or os.getenv("AWS_ACCESS_KEY_ID") or os.getenv("AWS_PROFILE")),
    reason="LLM credentials not set",
)
async def test_full_analysis():
    from agents.supervisor import analyze

    response = await analyze(REPO_URL, "Translate the README into French")

    assert response.report is not None
    assert len(response.verifications) == len(response.hypotheses)
