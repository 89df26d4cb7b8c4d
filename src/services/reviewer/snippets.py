"""Numbered file excerpts around commentable lines, used as model context."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from src.core.logging import get_logger
from src.services.reviewer.diff_parser import FileDiff
from src.services.reviewer.whitelist import commentable_lines

logger = get_logger("reviewer.snippets")

FileContentResolver = Callable[[str], Optional[str]]


@dataclass
class ContextSnippet:
    """Ordered (new-file line number, text) pairs for one file."""

    path: str
    lines: list[tuple[int, str]] = field(default_factory=list)
    from_diff: bool = False

    @property
    def line_numbers(self) -> list[int]:
        return [number for number, _ in self.lines]

    def render(self) -> str:
        return "\n".join(f"{number}: {text}" for number, text in self.lines)


def split_lines(content: str) -> list[str]:
    """Split file content into lines, numbered from 1 by position."""
    lines = [line[:-1] if line.endswith("\r") else line for line in content.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def window_union(anchors: list[int], radius: int, file_length: int) -> list[int]:
    """Union of [L - radius, L + radius] windows, clipped to 1..file_length."""
    radius = max(radius, 0)
    numbers: set[int] = set()
    for anchor in anchors:
        start = max(1, anchor - radius)
        end = min(file_length, anchor + radius)
        numbers.update(range(start, end + 1))
    return sorted(numbers)


def _diff_only_lines(file_diff: FileDiff, include_context: bool) -> list[tuple[int, str]]:
    allowed = set(commentable_lines(file_diff, include_context))
    seen: dict[int, str] = {}
    for change in file_diff.changes:
        if change.new_line in allowed and change.new_line not in seen:
            seen[change.new_line] = change.content
    return sorted(seen.items())


def build_snippet(
    file_diff: FileDiff,
    resolver: FileContentResolver,
    context_radius: int,
    include_context: bool = True,
) -> ContextSnippet:
    """Build the context snippet for one file.

    Args:
        file_diff: Parsed diff of the file
        resolver: Returns the head-revision content of a path, or None if unavailable
        context_radius: Lines of file content to include on each side of a commentable line
        include_context: Whether unchanged diff lines count as commentable

    Returns:
        The padded excerpt, or the diff's own new-side lines when the file
        content is unavailable or yields nothing.
    """
    anchors = commentable_lines(file_diff, include_context)
    content = resolver(file_diff.path) if not file_diff.is_deleted else None

    if content is not None:
        file_lines = split_lines(content)
        numbers = window_union(anchors, context_radius, len(file_lines))
        if numbers:
            return ContextSnippet(
                path=file_diff.path,
                lines=[(number, file_lines[number - 1]) for number in numbers],
            )
        logger.debug(f"No snippet lines within {file_diff.path}, using diff content")
    else:
        logger.debug(f"Content unavailable for {file_diff.path}, using diff content")

    return ContextSnippet(
        path=file_diff.path,
        lines=_diff_only_lines(file_diff, include_context),
        from_diff=True,
    )
