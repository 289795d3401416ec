from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from config.settings import settings


class ActivityLogger:
    """
    Event log for one pipeline component.

    Each event becomes one JSON line in ACTIVITY_LOG_PATH and one structlog
    entry on stderr. ``bind()`` returns a logger that stamps extra context
    (usually ``run_id`` and ``repo``) onto every later event:

        log = ActivityLogger("supervisor").bind(run_id=run_id, repo=ref.slug)
        log.info("analysis_started")

    Line schema:
    {
        "timestamp": "2025-01-01T00:00:00+00:00",
        "level":     "INFO",
        "event":     "evidence_fetch_completed",
        "agent":     "evidence_fetcher",
        "run_id":    "uuid",            (when bound or passed)
        "repo":      "owner/name@main", (when bound or passed)
        ...event fields
    }
    """

    _lock = threading.Lock()

    def __init__(
        self,
        agent_name: str,
        log_path: Optional[Union[str, Path]] = None,
        **context: Any,
    ) -> None:
        self.agent_name = agent_name
        self.context = context
        self.log_path = Path(log_path or settings.activity_log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._structlog = structlog.get_logger(agent_name)

    def bind(self, **context: Any) -> "ActivityLogger":
        return ActivityLogger(self.agent_name, self.log_path, **{**self.context, **context})

    def _emit(self, level: str, event: str, fields: dict[str, Any]) -> None:
        # None-valued fields are omitted so optional ids never show up as null
        payload = {k: v for k, v in {**self.context, **fields}.items() if v is not None}

        line = json.dumps(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level.upper(),
                "event": event,
                "agent": self.agent_name,
                **payload,
            },
            default=str,
        )
        with self._lock:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

        getattr(self._structlog, level)(event, agent=self.agent_name, **payload)

    # ── Public interface ──────────────────────────────────────────────────────

    def debug(self, event: str, **fields: Any) -> None:
        if settings.log_level.upper() == "DEBUG":
            self._emit("debug", event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("info", event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("warning", event, fields)

    def error(self, event: str, exc: Optional[BaseException] = None, **fields: Any) -> None:
        if exc is not None:
            fields.setdefault("error_type", type(exc).__name__)
            fields.setdefault("error_message", str(exc))
        self._emit("error", event, fields)
