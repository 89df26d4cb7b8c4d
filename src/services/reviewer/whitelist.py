"""Commentable line sets derived from parsed file diffs.

Inline review comments anchor on the head revision, so only new-file line
numbers qualify: added lines, and by default the unchanged context lines shown
around them. Lines that exist only on the old side (deletions) never do.
"""

from typing import Iterable

from src.services.reviewer.diff_parser import ChangeKind, FileDiff

NEW_SIDE = "new"

LineWhitelist = dict[str, list[int]]
SideMap = dict[str, dict[int, str]]


def _eligible_kinds(include_context: bool) -> tuple[ChangeKind, ...]:
    if include_context:
        return (ChangeKind.ADDED, ChangeKind.CONTEXT)
    return (ChangeKind.ADDED,)


def commentable_lines(file_diff: FileDiff, include_context: bool = True) -> list[int]:
    """Sorted unique new-file line numbers of a file that may receive a comment."""
    kinds = _eligible_kinds(include_context)
    return sorted(
        {
            change.new_line
            for change in file_diff.changes
            if change.kind in kinds and change.new_line is not None
        }
    )


def build_whitelist(file_diffs: Iterable[FileDiff], include_context: bool = True) -> LineWhitelist:
    """Map each file path to its ascending list of commentable lines.

    Every file in the input gets an entry, possibly empty, so "changed but
    nothing commentable" stays distinguishable from "not in the diff".
    """
    whitelist: LineWhitelist = {}
    for file_diff in file_diffs:
        lines = set(whitelist.get(file_diff.path, []))
        lines.update(commentable_lines(file_diff, include_context))
        whitelist[file_diff.path] = sorted(lines)
    return whitelist


def build_side_map(file_diffs: Iterable[FileDiff], include_context: bool = True) -> SideMap:
    """Map each file path to {line: side} for the commentable lines."""
    side_map: SideMap = {}
    for file_diff in file_diffs:
        sides = side_map.setdefault(file_diff.path, {})
        for line in commentable_lines(file_diff, include_context):
            sides[line] = NEW_SIDE
    return {path: dict(sorted(sides.items())) for path, sides in side_map.items()}
