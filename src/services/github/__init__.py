"""GitHub service."""

from src.services.github.service import (
    get_file_contents,
    get_pr_diff,
    get_pull_request,
    make_comment_poster,
    make_file_resolver,
    submit_review,
)

__all__ = [
    "get_file_contents",
    "get_pr_diff",
    "get_pull_request",
    "make_comment_poster",
    "make_file_resolver",
    "submit_review",
]
