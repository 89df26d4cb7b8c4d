"""Shared library utilities."""

from src.core.llm import get_chat_llm, invoke_review_model
from src.core.logging import get_logger
from src.core.pr_parser import PRReference, parse_pr_reference

__all__ = [
    "get_chat_llm",
    "invoke_review_model",
    "get_logger",
    "PRReference",
    "parse_pr_reference",
]
