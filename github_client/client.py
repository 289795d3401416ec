from __future__ import annotations

import base64
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import quote

import httpx

from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from core.errors import UpstreamFetchError
from schemas.repo import RepoRef

logger = ActivityLogger("github_client")

BINARY_EXTENSIONS = re.compile(
    r"\.(png|jpe?g|gif|ico|pdf|zip|tar|gz|exe|dll|so|woff2?|eot|ttf|mp4|mp3)$",
    re.IGNORECASE,
)


class GitHubClient:
    """
    Thin async wrapper over the two GitHub REST calls the pipeline needs:
    the recursive tree listing and single-file contents.

    The token is passed in explicitly; this class never reads the
    environment. Use as an async context manager so the underlying
    httpx.AsyncClient is closed.
    """

    def __init__(
        self,
        token: str = "",
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        max_files: int = 300,
        max_file_size_bytes: int = 1_000_000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.max_files = max_files
        self.max_file_size_bytes = max_file_size_bytes
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Tree listing ──────────────────────────────────────────────────────────

    async def list_files(self, repo: RepoRef) -> list[str]:
        """Blob paths of the branch, minus binary files, capped at ``max_files``."""
        url = f"/repos/{repo.owner}/{repo.repo}/git/trees/{quote(repo.branch, safe='')}"
        try:
            response = await self._client.get(url, params={"recursive": "1"})
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Failed to fetch repository tree ({exc})") from exc

        if response.status_code != 200:
            raise UpstreamFetchError(
                f"Failed to fetch repository tree ({response.status_code})",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamFetchError("Invalid GitHub tree response") from exc
        tree = data.get("tree") if isinstance(data, dict) else None
        if not isinstance(tree, list):
            raise UpstreamFetchError("Invalid GitHub tree response")

        files = [
            item["path"]
            for item in tree
            if isinstance(item, dict)
            and item.get("type") == "blob"
            and isinstance(item.get("path"), str)
            and not BINARY_EXTENSIONS.search(item["path"])
        ]
        if len(files) > self.max_files:
            logger.warning(
                "repo_tree_truncated",
                repo=repo.slug,
                total_files=len(files),
                kept=self.max_files,
            )
        if data.get("truncated"):
            logger.warning("repo_tree_truncated_by_github", repo=repo.slug)
        return files[: self.max_files]

    # ── File contents ─────────────────────────────────────────────────────────

    async def get_content(self, repo: RepoRef, path: str) -> str:
        """Decoded UTF-8 contents of one file; UpstreamFetchError on anything else."""
        url = f"/repos/{repo.owner}/{repo.repo}/contents/{quote(path, safe='/')}"
        try:
            response = await self._client.get(url, params={"ref": repo.branch})
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(
                f"Failed to fetch file content: {path} ({exc})", path=path
            ) from exc

        if response.status_code != 200:
            raise UpstreamFetchError(
                f"Failed to fetch file content: {path} ({response.status_code})",
                path=path,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamFetchError(f"File {path} returned a non-JSON response.", path=path) from exc
        if isinstance(data, list):
            raise UpstreamFetchError(f'Path "{path}" is a directory, not a file.', path=path)
        if not isinstance(data, dict):
            raise UpstreamFetchError(f"Unexpected contents response for {path}.", path=path)

        size = data.get("size")
        if isinstance(size, int) and size > self.max_file_size_bytes:
            raise UpstreamFetchError(
                f"File {path} is too large (>{self.max_file_size_bytes} bytes) to be processed.",
                path=path,
            )

        content = data.get("content")
        if data.get("encoding") != "base64" or not isinstance(content, str) or not content:
            raise UpstreamFetchError(
                f"File {path} is empty or uses an unsupported encoding.", path=path
            )

        try:
            raw = base64.b64decode(content.replace("\n", ""))
        except ValueError as exc:
            raise UpstreamFetchError(f"File {path} has invalid base64 content.", path=path) from exc
        return raw.decode("utf-8", errors="replace")


@asynccontextmanager
async def get_github_client(token: Optional[str] = None) -> AsyncIterator[GitHubClient]:
    """
    Async context manager yielding a GitHubClient configured from settings.

    Usage:
        async with get_github_client() as gh:
            paths = await gh.list_files(repo_ref)
    """
    resolved_token = settings.github_token if token is None else token
    client = GitHubClient(
        token=resolved_token,
        api_url=settings.github_api_url,
        timeout=settings.github_timeout_seconds,
        max_files=settings.tree_max_files,
        max_file_size_bytes=settings.max_file_size_bytes,
    )
    if not resolved_token:
        logger.warning("github_token_missing", message="Unauthenticated GitHub requests are rate limited")
    try:
        yield client
    finally:
        await client.aclose()
