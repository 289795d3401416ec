"""Unit tests for the concurrent evidence fetcher."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from agents.evidence_fetcher import EvidenceFetcher


@pytest.mark.asyncio
async def test_partial_failure_routes_path_to_failed(fake_github, repo_ref):
    github = fake_github({"a.py": "print('a')", "missing.py": None})
    batch = await EvidenceFetcher(github).fetch_all(repo_ref, ["a.py", "missing.py"])

    assert [r.path for r in batch.loaded] == ["a.py"]
    assert batch.loaded[0].content == "print('a')"
    assert batch.loaded[0].loaded is True
    assert batch.failed == ["missing.py"]


@pytest.mark.asyncio
async def test_duplicates_fetched_once_in_first_seen_order(fake_github, repo_ref):
    github = fake_github({"a.py": "a", "b.py": "b"})
    batch = await EvidenceFetcher(github).fetch_all(repo_ref, ["b.py", "a.py", "b.py"])

    assert sorted(github.content_requests) == ["a.py", "b.py"]
    assert [r.path for r in batch.loaded] == ["b.py", "a.py"]


@pytest.mark.asyncio
async def test_empty_input_makes_no_requests(fake_github, repo_ref):
    github = fake_github({"a.py": "a"})
    batch = await EvidenceFetcher(github).fetch_all(repo_ref, [])
    assert batch.loaded == [] and batch.failed == []
    assert github.content_requests == []


@pytest.mark.asyncio
async def test_transport_error_does_not_abort_batch(repo_ref):
    class FlakySource:
        async def get_content(self, repo, path):
            if path == "boom.py":
                raise httpx.ConnectError("connection reset")
            return "ok"

    batch = await EvidenceFetcher(FlakySource()).fetch_all(repo_ref, ["boom.py", "fine.py"])
    assert batch.failed == ["boom.py"]
    assert batch.loaded_paths == {"fine.py"}


@pytest.mark.asyncio
async def test_concurrency_is_bounded(repo_ref):
    in_flight = 0
    peak = 0

    class SlowSource:
        async def get_content(self, repo, path):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return path

    paths = [f"f{i}.py" for i in range(10)]
    batch = await EvidenceFetcher(SlowSource(), concurrency=3).fetch_all(repo_ref, paths)

    assert len(batch.loaded) == 10
    assert peak <= 3
