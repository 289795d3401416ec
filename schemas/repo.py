from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from schemas.base import CamelModel


class RepoRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    branch: str = "main"

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}@{self.branch}"


class AnalyzeRequest(CamelModel):
    repo_url: str = Field(default="", description="GitHub repository or branch URL")
    change_request: str = Field(default="", description="Natural-language change request")


class TreeRequest(CamelModel):
    repo_url: str = ""
