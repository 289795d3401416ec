"""Root conftest.py: loads .env and provides the scripted fakes shared by tests."""
import json
import os
import tempfile

import pytest
from dotenv import load_dotenv

load_dotenv()

# keep test runs out of the real audit logs; must happen before settings import
_LOG_DIR = tempfile.mkdtemp(prefix="impact-analyzer-tests-")
os.environ["ACTIVITY_LOG_PATH"] = os.path.join(_LOG_DIR, "activity.jsonl")
os.environ["LLM_LOG_PATH"] = os.path.join(_LOG_DIR, "llm_calls.jsonl")


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the lru_cache on get_settings so monkeypatch.setenv takes effect."""
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeOracle:
    """
    Scripted StructuredOracleClient: pops one canned response per call and
    parses it exactly like the real client does.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(
        self,
        system_prompt,
        human_prompt,
        output_schema,
        *,
        run_id,
        agent_name,
        prompt_template_name,
    ):
        from llm.oracle import parse_structured

        self.calls.append(
            {
                "system_prompt": system_prompt,
                "human_prompt": human_prompt,
                "schema": output_schema.__name__,
                "template": prompt_template_name,
                "agent": agent_name,
            }
        )
        if not self.responses:
            raise AssertionError(f"Unexpected oracle call: {prompt_template_name}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        text = response if isinstance(response, str) else json.dumps(response)
        return parse_structured(text, output_schema)


class FakeGitHub:
    """In-memory repository: ``files`` maps path -> content (None means unreadable)."""

    def __init__(self, files=None, list_error=None):
        self.files = dict(files or {})
        self.list_error = list_error
        self.content_requests = []

    async def list_files(self, repo):
        if self.list_error:
            raise self.list_error
        return list(self.files)

    async def get_content(self, repo, path):
        from core.errors import UpstreamFetchError

        self.content_requests.append(path)
        content = self.files.get(path)
        if content is None:
            raise UpstreamFetchError(f"Failed to fetch file content: {path} (404)", path=path, status_code=404)
        return content


@pytest.fixture
def fake_oracle():
    return FakeOracle


@pytest.fixture
def fake_github():
    return FakeGitHub


@pytest.fixture
def repo_ref():
    from schemas.repo import RepoRef
    return RepoRef(owner="acme", repo="shop", branch="main")
