from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, TypeVar

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError

from core.errors import MalformedJson, OracleCallFailed
from llm.json_extract import extract_json
from llm.llm_logger import LLMLogger, llm_logger
from llm.provider import get_llm

T = TypeVar("T", bound=BaseModel)


def parse_structured(text: str, output_schema: type[T]) -> T:
    """Extract the JSON object from ``text`` and validate it as ``output_schema``."""
    payload = extract_json(text)
    try:
        return output_schema.model_validate(payload)
    except ValidationError as exc:
        raise MalformedJson(
            f"Oracle JSON does not match {output_schema.__name__}: "
            f"{exc.error_count()} validation error(s); first: {exc.errors()[0]['msg']}"
        ) from exc


class StructuredOracleClient(ABC):
    """
    Capability interface over the text-generation oracle.

    One call in, one validated pydantic object out. Implementations never
    retry; a failed call raises OracleCallFailed, unusable output raises
    NoJsonFound or MalformedJson.
    """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        human_prompt: str,
        output_schema: type[T],
        *,
        run_id: str,
        agent_name: str,
        prompt_template_name: str,
    ) -> T:
        ...


class LangChainOracleClient(StructuredOracleClient):
    """Oracle backed by a LangChain chat model (Bedrock or OpenAI, see llm.provider)."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        call_logger: Optional[LLMLogger] = None,
    ) -> None:
        self._llm = llm
        self._call_logger = call_logger or llm_logger

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    async def complete(
        self,
        system_prompt: str,
        human_prompt: str,
        output_schema: type[T],
        *,
        run_id: str,
        agent_name: str,
        prompt_template_name: str,
    ) -> T:
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=human_prompt),
        ]
        try:
            llm = self.llm
        except Exception as exc:
            # misconfigured provider (unknown name, missing key, bad AWS profile)
            self._call_logger.log_setup_failure(
                exc,
                messages=messages,
                run_id=run_id,
                agent_name=agent_name,
                prompt_template_name=prompt_template_name,
                output_schema_name=output_schema.__name__,
            )
            raise OracleCallFailed(
                f"Oracle could not be initialised ({type(exc).__name__}): {exc}"
            ) from exc

        parsed, _record = await self._call_logger.ainvoke_and_log(
            llm=llm,
            messages=messages,
            run_id=run_id,
            agent_name=agent_name,
            prompt_template_name=prompt_template_name,
            output_schema_name=output_schema.__name__,
            parse_fn=lambda text: parse_structured(text, output_schema),
        )
        return parsed
