from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

from config.settings import settings
from core.errors import InputValidationError
from schemas.repo import RepoRef

_ALLOWED_HOSTS = {"github.com", "www.github.com"}

# Repository sub-pages that do not identify a tree to analyse
_RESTRICTED_SECTIONS = {
    "pulls",
    "pull",
    "issues",
    "issue",
    "actions",
    "projects",
    "security",
    "insights",
    "settings",
    "wiki",
}


def parse_repo_url(url: Optional[str], default_branch: Optional[str] = None) -> RepoRef:
    """
    Turn a github.com repository, tree or blob URL into owner/repo/branch.

        https://github.com/acme/shop                 -> acme/shop@main
        https://github.com/acme/shop.git             -> acme/shop@main
        https://github.com/acme/shop/tree/develop    -> acme/shop@develop
    """
    if not url or not url.strip():
        raise InputValidationError("Repository URL is required")

    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise InputValidationError("Invalid URL")

    if (parsed.hostname or "").lower() not in _ALLOWED_HOSTS:
        raise InputValidationError("Only github.com repos are supported")

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise InputValidationError("Invalid GitHub repository URL")

    owner = parts[0]
    repo = parts[1].removesuffix(".git")
    section = parts[2] if len(parts) > 2 else None

    if section in _RESTRICTED_SECTIONS:
        raise InputValidationError(
            f"URLs for {section} are not supported. "
            "Please provide a repository root or branch URL."
        )

    branch = default_branch or settings.github_default_branch
    if section in ("tree", "blob") and len(parts) > 3:
        branch = parts[3]

    return RepoRef(owner=owner, repo=repo, branch=branch)
