"""Unit tests for GitHub repository URL parsing."""

from __future__ import annotations

import pytest

from core.errors import InputValidationError
from github_client.repo_url import parse_repo_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/acme/shop", ("acme", "shop", "main")),
        ("https://github.com/acme/shop/", ("acme", "shop", "main")),
        ("https://www.github.com/acme/shop.git", ("acme", "shop", "main")),
        ("https://github.com/acme/shop/tree/develop", ("acme", "shop", "develop")),
        ("https://github.com/acme/shop/blob/release/src/app.py", ("acme", "shop", "release")),
        ("  https://github.com/acme/shop  ", ("acme", "shop", "main")),
    ],
)
def test_valid_urls(url, expected):
    ref = parse_repo_url(url)
    assert (ref.owner, ref.repo, ref.branch) == expected


def test_default_branch_override():
    assert parse_repo_url("https://github.com/acme/shop", default_branch="trunk").branch == "trunk"


@pytest.mark.parametrize(
    "url, message",
    [
        ("", "Repository URL is required"),
        ("   ", "Repository URL is required"),
        ("github.com/acme/shop", "Invalid URL"),
        ("https://gitlab.com/acme/shop", "Only github.com repos are supported"),
        ("https://github.com/acme", "Invalid GitHub repository URL"),
        ("https://github.com/acme/shop/pulls", "URLs for pulls are not supported"),
        ("https://github.com/acme/shop/issues/12", "URLs for issues are not supported"),
    ],
)
def test_invalid_urls(url, message):
    with pytest.raises(InputValidationError, match=message):
        parse_repo_url(url)
