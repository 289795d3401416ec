from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Protocol

import httpx

from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from core.errors import UpstreamFetchError
from schemas.evidence import EvidenceBatch, EvidenceRecord
from schemas.repo import RepoRef


class ContentSource(Protocol):
    async def get_content(self, repo: RepoRef, path: str) -> str:
        ...


class EvidenceFetcher:
    """
    Loads candidate files for verification in one concurrent batch.

    A path that cannot be loaded lands in ``failed``; it never aborts the
    batch. Duplicate paths are fetched once.
    """

    def __init__(self, source: ContentSource, concurrency: Optional[int] = None) -> None:
        self.source = source
        self.concurrency = max(1, concurrency or settings.evidence_fetch_concurrency)
        self.logger = ActivityLogger("evidence_fetcher")

    async def fetch_all(
        self,
        repo: RepoRef,
        paths: Iterable[str],
        run_id: Optional[str] = None,
    ) -> EvidenceBatch:
        unique_paths = list(dict.fromkeys(paths))
        if not unique_paths:
            return EvidenceBatch()

        semaphore = asyncio.Semaphore(self.concurrency)

        async def _fetch_one(path: str) -> EvidenceRecord:
            async with semaphore:
                try:
                    content = await self.source.get_content(repo, path)
                except (UpstreamFetchError, httpx.HTTPError, ValueError) as exc:
                    self.logger.warning(
                        "evidence_fetch_failed",
                        run_id=run_id,
                        repo=repo.slug,
                        path=path,
                        error_type=type(exc).__name__,
                        error_message=str(exc),
                    )
                    return EvidenceRecord(path=path, loaded=False)
                return EvidenceRecord(path=path, content=content, loaded=True)

        records = await asyncio.gather(*(_fetch_one(p) for p in unique_paths))

        batch = EvidenceBatch(
            loaded=[r for r in records if r.loaded],
            failed=[r.path for r in records if not r.loaded],
        )
        self.logger.info(
            "evidence_fetch_completed",
            run_id=run_id,
            repo=repo.slug,
            requested=len(unique_paths),
            loaded=len(batch.loaded),
            failed=batch.failed,
        )
        return batch
