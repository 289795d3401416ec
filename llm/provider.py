from __future__ import annotations

from functools import lru_cache
from typing import Callable

from langchain_core.language_models import BaseChatModel

from config.settings import Settings, settings


def _bedrock_model(cfg: Settings) -> BaseChatModel:
    import boto3
    from botocore.config import Config
    from langchain_aws import ChatBedrock

    # .env credentials win over cached SSO sessions in ~/.aws/
    if cfg.aws_profile:
        session = boto3.Session(profile_name=cfg.aws_profile)
    elif cfg.aws_access_key_id and cfg.aws_secret_access_key:
        session = boto3.Session(
            aws_access_key_id=cfg.aws_access_key_id,
            aws_secret_access_key=cfg.aws_secret_access_key,
            region_name=cfg.aws_default_region,
        )
    else:
        session = boto3.Session()

    runtime = session.client(
        "bedrock-runtime",
        region_name=cfg.aws_default_region,
        config=Config(
            read_timeout=cfg.llm_timeout_seconds,
            retries={"max_attempts": 1, "mode": "standard"},
        ),
    )
    return ChatBedrock(
        client=runtime,
        model_id=cfg.bedrock_model_id,
        region_name=cfg.aws_default_region,
        model_kwargs={
            "temperature": cfg.llm_temperature,
            "max_tokens": cfg.llm_max_tokens,
            "anthropic_version": "bedrock-2023-05-31",
        },
        streaming=False,
    )


def _openai_model(cfg: Settings) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    if not cfg.openai_api_key:
        raise ValueError(
            "LLM_PROVIDER=openai but OPENAI_API_KEY is not set. "
            "Add it to your .env file."
        )

    return ChatOpenAI(
        model=cfg.openai_model_id,
        api_key=cfg.openai_api_key,
        temperature=cfg.llm_temperature,
        max_tokens=cfg.llm_max_tokens,
        timeout=cfg.llm_timeout_seconds,
        max_retries=0,
        # the oracle contract is "one JSON object per answer"
        model_kwargs={"response_format": {"type": "json_object"}},
        streaming=False,
    )


PROVIDERS: dict[str, Callable[[Settings], BaseChatModel]] = {
    "bedrock": _bedrock_model,
    "openai": _openai_model,
}


def build_chat_model(cfg: Settings) -> BaseChatModel:
    """
    Chat model for the provider named by ``cfg.llm_provider``.

    Client-side retries are disabled for every provider: a failed oracle
    call surfaces once, as OracleCallFailed.
    """
    provider = cfg.llm_provider.lower().strip()
    try:
        builder = PROVIDERS[provider]
    except KeyError:
        raise ValueError(
            f"Unsupported LLM_PROVIDER {cfg.llm_provider!r} "
            f"(expected one of: {', '.join(sorted(PROVIDERS))})"
        ) from None
    return builder(cfg)


@lru_cache(maxsize=1)
def get_llm() -> BaseChatModel:
    """Process-wide chat model built from the loaded settings."""
    return build_chat_model(settings)
