"""Parse pull request references given on the command line or in webhooks."""

import re
from dataclasses import dataclass
from typing import Optional

from src.config import settings

# Patterns carrying owner and repo themselves
QUALIFIED_PATTERNS = (
    re.compile(r"https?://github\.com/([^/\s]+)/([^/\s]+)/pull/(\d+)"),
    re.compile(r"([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)#(\d+)"),
)

# Patterns relying on the default repository from settings
SHORT_PATTERNS = (
    re.compile(r"(?:^|\s)#(\d+)(?:\s|$)"),
    re.compile(r"(?:review|pr|pull\s*request)\s+(\d+)", re.IGNORECASE),
    re.compile(r"^\s*(\d+)\s*$"),
)


@dataclass(frozen=True)
class PRReference:
    """Parsed PR reference."""

    owner: str
    repo: str
    pr_number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.pr_number}"


def parse_pr_reference(text: str) -> Optional[PRReference]:
    """
    Parse PR reference from text.

    Supported formats:
    - https://github.com/owner/repo/pull/123 -> full URL
    - owner/repo#123 -> specific repo
    - #123, "PR 123", "123" -> uses default owner/repo from settings
    """
    for pattern in QUALIFIED_PATTERNS:
        match = pattern.search(text)
        if match:
            owner, repo, number = match.groups()
            return PRReference(owner=owner, repo=repo, pr_number=int(number))

    for pattern in SHORT_PATTERNS:
        match = pattern.search(text)
        if match:
            if not settings.default_repo_owner or not settings.default_repo_name:
                return None
            return PRReference(
                owner=settings.default_repo_owner,
                repo=settings.default_repo_name,
                pr_number=int(match.group(1)),
            )

    return None
