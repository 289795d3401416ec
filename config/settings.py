from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM Provider ─────────────────────────────────────────────────────────
    # Options: "bedrock" (default) or "openai"
    llm_provider: str = "bedrock"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 8192
    llm_timeout_seconds: float = 120.0  # one oracle call; never retried

    # ── AWS Bedrock ──────────────────────────────────────────────────────────
    aws_default_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_profile: str = ""
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"

    # ── OpenAI ───────────────────────────────────────────────────────────────
    openai_api_key: str = ""
    openai_model_id: str = "gpt-4o"

    # ── GitHub ───────────────────────────────────────────────────────────────
    github_token: str = Field(default="", alias="GITHUB_TOKEN")
    github_api_url: str = "https://api.github.com"
    github_default_branch: str = "main"
    github_timeout_seconds: float = 30.0

    # ── Repository listing / evidence ────────────────────────────────────────
    tree_max_files: int = 300
    max_file_size_bytes: int = 1_000_000
    evidence_fetch_concurrency: int = 8

    # ── Verification prompt budget ───────────────────────────────────────────
    verification_max_chars_per_file: int = 12_000
    verification_tree_max_paths: int = 300

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True  # False renders human-readable console lines
    activity_log_path: str = "logs/activity.jsonl"
    llm_log_path: str = "logs/llm_calls.jsonl"

    # ── HTTP API ─────────────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    analysis_timeout_seconds: float = 300.0  # 0 disables the deadline

    # ── Derived helpers ──────────────────────────────────────────────────────
    @property
    def llm_model_id(self) -> str:
        if self.llm_provider.lower().strip() == "openai":
            return self.openai_model_id
        return self.bedrock_model_id

    @property
    def analysis_timeout(self) -> float | None:
        return self.analysis_timeout_seconds or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
