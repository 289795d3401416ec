from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from core.errors import OracleCallFailed, OracleContractError

_activity = ActivityLogger("llm_logger")


class LLMCallRecord(BaseModel):
    """Pydantic schema for a single oracle invocation log entry."""

    call_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str
    agent_name: str

    # Request
    model_id: str
    prompt_template_name: str
    system_prompt: Optional[str] = None
    human_prompt: str = ""
    prompt_token_count: Optional[int] = None

    # Response
    raw_response: str = ""
    parsed_successfully: bool = False
    parse_error: Optional[str] = None
    completion_token_count: Optional[int] = None
    total_token_count: Optional[int] = None

    # Performance
    latency_ms: float = 0.0
    invoked_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    # LLM metadata
    stop_reason: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    # Structured output
    output_schema_name: Optional[str] = None
    structured_output: Optional[dict] = None

    # Error
    error_occurred: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None


def response_text(response: Any) -> str:
    """Flatten a chat-model response into plain text."""
    content = getattr(response, "content", response)
    if isinstance(content, list):
        # Anthropic-style content blocks
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(str(block.get("text", "")))
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content)


def _new_record(
    messages: list,
    run_id: str,
    agent_name: str,
    prompt_template_name: str,
    output_schema_name: Optional[str],
) -> LLMCallRecord:
    from langchain_core.messages import HumanMessage, SystemMessage

    record = LLMCallRecord(
        run_id=run_id,
        agent_name=agent_name,
        model_id=settings.llm_model_id,
        prompt_template_name=prompt_template_name,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        output_schema_name=output_schema_name,
    )
    for m in messages:
        if isinstance(m, HumanMessage):
            record.human_prompt = str(m.content)
        elif isinstance(m, SystemMessage):
            record.system_prompt = str(m.content)
    return record


class LLMLogger:
    """
    Appends every oracle invocation to the LLM_LOG_PATH JSONL audit file.
    Usage:
        parsed, record = await llm_logger.ainvoke_and_log(llm, messages, ...)
    """

    def __init__(self, log_path: Optional[str] = None) -> None:
        self._log_path = Path(log_path or settings.llm_log_path)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    def log_setup_failure(
        self,
        exc: BaseException,
        messages: list,
        run_id: str,
        agent_name: str,
        prompt_template_name: str,
        output_schema_name: Optional[str] = None,
    ) -> str:
        """Record a call that never reached the model because it could not be built."""
        record = _new_record(messages, run_id, agent_name, prompt_template_name, output_schema_name)
        record.error_occurred = True
        record.error_type = type(exc).__name__
        record.error_message = str(exc)
        return self.log_call(record)

    def log_call(self, record: LLMCallRecord) -> str:
        """Write record to the JSONL file. Returns call_id."""
        try:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
        except OSError as exc:
            # the audit trail must never take the run down with it
            _activity.warning(
                "llm_log_write_failed",
                call_id=record.call_id,
                error_message=str(exc),
            )
        return record.call_id

    async def ainvoke_and_log(
        self,
        llm: Any,
        messages: list,
        run_id: str,
        agent_name: str,
        prompt_template_name: str,
        output_schema_name: Optional[str] = None,
        parse_fn: Optional[Callable[[str], Any]] = None,
    ) -> tuple[Any, LLMCallRecord]:
        """
        Invoke the chat model once, parse its text, and log the call.

        Returns (parsed_output_or_raw_response, record). The call is logged
        before any error is raised: transport failures surface as
        OracleCallFailed, parse failures re-raise the OracleContractError
        produced by ``parse_fn``.
        """
        record = _new_record(messages, run_id, agent_name, prompt_template_name, output_schema_name)

        start = time.monotonic()
        try:
            response = await llm.ainvoke(messages)
        except Exception as exc:
            record.latency_ms = (time.monotonic() - start) * 1000
            record.error_occurred = True
            record.error_type = type(exc).__name__
            record.error_message = str(exc)
            self.log_call(record)
            raise OracleCallFailed(f"Oracle call failed ({type(exc).__name__}): {exc}") from exc

        record.latency_ms = (time.monotonic() - start) * 1000
        record.raw_response = response_text(response)

        usage = getattr(response, "usage_metadata", None)
        if usage:
            record.prompt_token_count = usage.get("input_tokens")
            record.completion_token_count = usage.get("output_tokens")
            record.total_token_count = usage.get("total_tokens")

        metadata = getattr(response, "response_metadata", None)
        if metadata:
            record.stop_reason = metadata.get("stop_reason") or metadata.get("finish_reason")

        if parse_fn is None:
            record.parsed_successfully = True
            self.log_call(record)
            return response, record

        try:
            parsed_output = parse_fn(record.raw_response)
        except OracleContractError as exc:
            record.parse_error = str(exc)
            record.error_type = type(exc).__name__
            self.log_call(record)
            raise

        record.parsed_successfully = True
        if hasattr(parsed_output, "model_dump"):
            record.structured_output = parsed_output.model_dump(mode="json", by_alias=True)
        self.log_call(record)
        return parsed_output, record


# Module-level singleton
llm_logger = LLMLogger()
