"""
Change Impact Analyzer: entry point

Usage:
    # Analyse one change request and print the JSON result
    python main.py --mode analyze --repo https://github.com/acme/shop \
        --change "Add rate limiting to the login endpoint"

    # Write the result to a file instead of stdout
    python main.py --mode analyze --repo ... --change ... --output report.json

    # List the analysable files of a repository
    python main.py --mode tree --repo https://github.com/acme/shop/tree/develop

    # Start the HTTP API
    python main.py --mode server
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys


def _configure() -> None:
    from config.logging_config import configure_logging
    configure_logging()


def _failure_line(exc: BaseException) -> str:
    """One user-facing line per failure; no partial output is ever printed."""
    from core.errors import ImpactAnalysisError

    if isinstance(exc, ImpactAnalysisError):
        return f"ERROR: {exc}"
    if isinstance(exc, asyncio.TimeoutError):
        return "ERROR: Analysis timed out"
    return f"ERROR: unexpected failure ({type(exc).__name__}): {exc}"


def run_analyze(repo_url: str, change_request: str, output: str | None) -> int:
    _configure()
    from agents.supervisor import analyze

    try:
        response = asyncio.run(analyze(repo_url, change_request))
    except Exception as exc:
        print(_failure_line(exc), file=sys.stderr)
        return 1

    text = json.dumps(response.to_wire(), indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"Report written to {output}")
    else:
        print(text)
    return 0


def run_tree(repo_url: str) -> int:
    _configure()
    from agents.supervisor import explore_repository

    try:
        response = asyncio.run(explore_repository(repo_url))
    except Exception as exc:
        print(_failure_line(exc), file=sys.stderr)
        return 1

    print(json.dumps(response.to_wire(), indent=2))
    return 0


def start_server() -> None:
    import uvicorn
    from config.settings import settings
    _configure()
    # log_config=None keeps uvicorn on the structlog handler installed above
    uvicorn.run("api.server:app", host=settings.api_host, port=settings.api_port, log_config=None)


def main() -> None:
    parser = argparse.ArgumentParser(description="Change Impact Analyzer")
    parser.add_argument(
        "--mode",
        choices=["analyze", "tree", "server"],
        default="analyze",
        help="Run mode",
    )
    parser.add_argument("--repo", help="GitHub repository URL")
    parser.add_argument("--change", help="Change request text (required for --mode analyze)")
    parser.add_argument("--output", help="Write the analysis JSON to this file")

    args = parser.parse_args()

    if args.mode == "server":
        start_server()
        return

    if not args.repo:
        print(f"ERROR: --repo is required with --mode {args.mode}", file=sys.stderr)
        sys.exit(1)

    if args.mode == "tree":
        sys.exit(run_tree(args.repo))

    if not args.change:
        print("ERROR: --change is required with --mode analyze", file=sys.stderr)
        sys.exit(1)
    sys.exit(run_analyze(args.repo, args.change, args.output))


if __name__ == "__main__":
    main()
