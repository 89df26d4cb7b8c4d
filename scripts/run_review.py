#!/usr/bin/env python3
"""Run a PR review locally.

Usage:
    python -m scripts.run_review owner/repo#123
    python -m scripts.run_review https://github.com/owner/repo/pull/123
    python -m scripts.run_review 123   # uses DEFAULT_REPO_OWNER / DEFAULT_REPO_NAME
"""
import asyncio
import sys

from dotenv import load_dotenv

load_dotenv()

from src.core.pr_parser import parse_pr_reference  # noqa: E402
from src.services.reviewer.service import review_pull_request  # noqa: E402


async def main(argv: list[str]) -> int:
    reference = parse_pr_reference(" ".join(argv))
    if reference is None:
        print("Usage: run_review.py <owner/repo#N | PR URL | N>", file=sys.stderr)
        return 2

    result = await review_pull_request(
        owner=reference.owner,
        repo=reference.repo,
        pr_number=reference.pr_number,
    )
    print(result.model_dump_json(indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
