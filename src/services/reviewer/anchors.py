"""Anchor model-proposed comments onto the diff, with a file-level fallback.

A proposed comment becomes an inline comment only when its line is in the
file's whitelist on the new side. Everything else that carries a path, line
and remark is still delivered, as a file-level note saying the anchor failed.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from src.core.exceptions import CommentPostError, LineNotInDiffError
from src.core.logging import get_logger
from src.services.reviewer.diff_parser import normalize_path
from src.services.reviewer.schemas import PostedComment, ProposedComment
from src.services.reviewer.whitelist import LineWhitelist, SideMap

logger = get_logger("reviewer.anchors")

FENCE_LINE_RE = re.compile(r"^[ \t]*(?:`{3,}|~{3,})[^\n`~]*$", re.MULTILINE)
FENCE_RE = re.compile(r"`{3,}|~{3,}")
ANCHOR_FAILED_NOTE = (
    "_Could not anchor this comment to line {line}: the line is not part of the diff._"
)
PATH_NOT_IN_DIFF_NOTE = (
    "_Could not anchor this comment to `{path}` line {line}: the file is not part of the diff._"
)


class CommentPoster(Protocol):
    """Host-side delivery of resolved comments."""

    def post_inline(self, comment: PostedComment) -> None: ...

    def post_file_level(self, comment: PostedComment) -> None: ...

    def post_pr_level(self, comment: PostedComment) -> None: ...


@dataclass
class PublishOutcome:
    """Counts of a publish pass over resolved comments."""

    inline: int = 0
    fallback: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def sanitize_suggestion(suggestion: str | None) -> str:
    """Strip fence delimiters the model may have embedded in a suggestion."""
    if not suggestion:
        return ""
    cleaned = FENCE_RE.sub("", FENCE_LINE_RE.sub("", suggestion))
    return cleaned.strip("\n") if cleaned.strip() else ""


def format_inline_body(remark: str, suggestion: str | None) -> str:
    body = remark.strip()
    replacement = sanitize_suggestion(suggestion)
    if replacement:
        body += f"\n\n```suggestion\n{replacement}\n```"
    return body


def format_fallback_body(
    remark: str,
    suggestion: str | None,
    line: int | None,
    path: str | None = None,
) -> str:
    """Body of a note that could not be anchored. Naming the path marks it as outside the diff."""
    note = (
        PATH_NOT_IN_DIFF_NOTE.format(path=path, line=line)
        if path
        else ANCHOR_FAILED_NOTE.format(line=line)
    )
    parts = [note, remark.strip()]
    replacement = sanitize_suggestion(suggestion)
    if replacement:
        parts.append(f"Suggested change for line {line}:\n\n```\n{replacement}\n```")
    return "\n\n".join(parts)


def is_anchorable(path: str, line: int, whitelist: LineWhitelist, side_map: SideMap) -> bool:
    return (
        path in whitelist
        and line in whitelist[path]
        and side_map.get(path, {}).get(line) is not None
    )


def make_fallback(
    path: str,
    line: int | None,
    remark: str,
    suggestion: str | None,
    path_in_diff: bool = True,
) -> PostedComment:
    return PostedComment(
        path=path,
        body=format_fallback_body(remark, suggestion, line, None if path_in_diff else path),
        remark=remark,
        suggestion=suggestion or None,
        requested_line=line,
        anchor_failed=True,
        path_in_diff=path_in_diff,
    )


def to_fallback(comment: PostedComment) -> PostedComment:
    """Downgrade an inline comment to a file-level note."""
    line = comment.requested_line if comment.requested_line is not None else comment.line
    return make_fallback(
        comment.path, line, comment.remark, comment.suggestion, comment.path_in_diff
    )


def complete_comments(proposed: Iterable[ProposedComment]) -> list[ProposedComment]:
    """Comments that carry a path, a line and a remark, in original order."""
    return [comment for comment in proposed if comment.is_complete]


def resolve_comments(
    proposed: Iterable[ProposedComment],
    whitelist: LineWhitelist,
    side_map: SideMap,
    max_count: int = 0,
) -> list[PostedComment]:
    """Resolve proposed comments into inline comments or file-level fallbacks.

    Args:
        proposed: Comments from the model, in the model's order
        whitelist: Commentable lines per file
        side_map: Side of each commentable line per file
        max_count: Keep only the first max_count complete comments (0 = all)

    Returns:
        One PostedComment per kept comment, in order
    """
    proposed = list(proposed)
    complete = complete_comments(proposed)
    if len(complete) < len(proposed):
        logger.debug(f"Dropped {len(proposed) - len(complete)} incomplete comment(s)")

    if max_count > 0 and len(complete) > max_count:
        logger.info(f"Limiting {len(complete)} comments to {max_count}")
        complete = complete[:max_count]

    resolved: list[PostedComment] = []
    for comment in complete:
        path = normalize_path(comment.path) or comment.path.strip()
        line = comment.line

        if is_anchorable(path, line, whitelist, side_map):
            resolved.append(
                PostedComment(
                    path=path,
                    line=line,
                    side=side_map[path][line],
                    body=format_inline_body(comment.remark, comment.suggestion),
                    remark=comment.remark,
                    suggestion=comment.suggestion or None,
                    requested_line=line,
                )
            )
        elif path not in whitelist:
            logger.debug(f"{path} is not part of the diff, falling back to a PR-level note")
            resolved.append(
                make_fallback(path, line, comment.remark, comment.suggestion, path_in_diff=False)
            )
        else:
            logger.debug(f"{path}:{line} is not commentable, falling back to a file-level note")
            resolved.append(make_fallback(path, line, comment.remark, comment.suggestion))

    return resolved


def publish_comments(comments: Iterable[PostedComment], poster: CommentPoster) -> PublishOutcome:
    """Deliver resolved comments one by one.

    An inline comment rejected with LineNotInDiffError is re-sent as a
    file-level note. A fallback for a file outside the diff goes to the PR
    conversation instead, since the host cannot attach it to that file. Any
    other CommentPostError is logged and counted as failed; comments posted
    before it stay posted. Nothing is retried.
    """
    outcome = PublishOutcome()

    for comment in comments:
        try:
            if comment.is_inline:
                try:
                    poster.post_inline(comment)
                    outcome.inline += 1
                    continue
                except LineNotInDiffError as e:
                    logger.warning(f"Inline comment rejected ({e.message}), posting file-level note")
                    comment = to_fallback(comment)
            if comment.path_in_diff:
                poster.post_file_level(comment)
            else:
                poster.post_pr_level(comment)
            outcome.fallback += 1
        except CommentPostError as e:
            logger.error(f"Failed to post comment: {e.message}")
            outcome.failed += 1
            outcome.errors.append(e.message)

    return outcome
