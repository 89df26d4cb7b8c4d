"""Review engine entry point: diff text in, model context payload out.

The engine only sees pure data: the diff text, a resolver returning the
head-revision content of a path, and an EngineConfig. All GitHub, LLM and
environment concerns stay with the caller.
"""

from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Iterable, Optional

from src.core.logging import get_logger
from src.services.reviewer.diff_parser import FileDiff, parse_diff
from src.services.reviewer.metadata import DEFAULT_EXTENSIONS, extract_metadata
from src.services.reviewer.schemas import ContextPayload, FileContext, ObjectMetadata
from src.services.reviewer.snippets import ContextSnippet, FileContentResolver, build_snippet
from src.services.reviewer.whitelist import LineWhitelist, SideMap, build_side_map, build_whitelist

logger = get_logger("reviewer.engine")


@dataclass(frozen=True)
class EngineConfig:
    """Knobs consumed by the engine."""

    max_comments: int = 0
    context_radius: int = 12
    include_paths: tuple[str, ...] = ()
    exclude_paths: tuple[str, ...] = ()
    include_context_lines: bool = True
    metadata_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            max_comments=settings.max_comments,
            context_radius=settings.context_radius,
            include_paths=tuple(settings.include_paths),
            exclude_paths=tuple(settings.exclude_paths),
            include_context_lines=settings.whitelist_include_context,
            metadata_extensions=tuple(settings.metadata_extensions),
        )


@dataclass
class ReviewPreparation:
    """Everything derived from one diff, held read-only for one review run."""

    file_diffs: list[FileDiff]
    whitelist: LineWhitelist
    side_map: SideMap
    snippets: dict[str, ContextSnippet] = field(default_factory=dict)
    metadata: list[ObjectMetadata] = field(default_factory=list)
    payload: ContextPayload = field(default_factory=ContextPayload)

    @property
    def files_considered(self) -> int:
        return len(self.file_diffs)

    @property
    def lines_whitelisted(self) -> int:
        return sum(len(lines) for lines in self.whitelist.values())


def path_matches(path: str, patterns: Iterable[str]) -> bool:
    """True if path matches any glob; a pattern ending in '/' matches a directory prefix."""
    for pattern in patterns:
        if pattern.endswith("/") and path.startswith(pattern):
            return True
        if fnmatchcase(path, pattern):
            return True
    return False


def filter_relevant(
    file_diffs: Iterable[FileDiff],
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> list[FileDiff]:
    """Keep files matching include (everything when empty) and not matching exclude."""
    include = tuple(include)
    exclude = tuple(exclude)
    relevant = []
    for file_diff in file_diffs:
        if include and not path_matches(file_diff.path, include):
            continue
        if exclude and path_matches(file_diff.path, exclude):
            continue
        relevant.append(file_diff)
    return relevant


def _memoized(resolver: FileContentResolver) -> FileContentResolver:
    """Resolve each path at most once within a run."""
    cache: dict[str, Optional[str]] = {}

    def resolve(path: str) -> Optional[str]:
        if path not in cache:
            cache[path] = resolver(path)
        return cache[path]

    return resolve


def build_context_payload(
    file_diffs: list[FileDiff],
    whitelist: LineWhitelist,
    snippets: dict[str, ContextSnippet],
    metadata: list[ObjectMetadata],
    pr_title: str = "",
    pr_description: Optional[str] = None,
    extra_context: str = "",
) -> ContextPayload:
    files = [
        FileContext(
            path=file_diff.path,
            snippet=snippets[file_diff.path].render(),
            diff=file_diff.render_diff(),
            from_diff=snippets[file_diff.path].from_diff,
        )
        for file_diff in file_diffs
    ]
    return ContextPayload(
        files=files,
        valid_lines=whitelist,
        object_metadata=metadata,
        pr_title=pr_title,
        pr_description=pr_description,
        extra_context=extra_context,
    )


def prepare_review(
    diff_text: str,
    resolver: FileContentResolver,
    config: EngineConfig,
    pr_title: str = "",
    pr_description: Optional[str] = None,
    extra_context: str = "",
) -> ReviewPreparation:
    """Parse the diff and derive whitelist, side map, snippets, metadata and payload.

    Raises:
        DiffParseError: If the diff text cannot be tokenized at all
    """
    parsed = parse_diff(diff_text)
    file_diffs = filter_relevant(parsed, config.include_paths, config.exclude_paths)
    if len(file_diffs) < len(parsed):
        logger.info(f"Path filters kept {len(file_diffs)} of {len(parsed)} files")

    resolve = _memoized(resolver)
    whitelist = build_whitelist(file_diffs, config.include_context_lines)
    side_map = build_side_map(file_diffs, config.include_context_lines)

    snippets: dict[str, ContextSnippet] = {}
    metadata: list[ObjectMetadata] = []
    for file_diff in file_diffs:
        snippets[file_diff.path] = build_snippet(
            file_diff, resolve, config.context_radius, config.include_context_lines
        )
        object_metadata = extract_metadata(file_diff, resolve, config.metadata_extensions)
        if object_metadata:
            metadata.append(object_metadata)

    payload = build_context_payload(
        file_diffs, whitelist, snippets, metadata, pr_title, pr_description, extra_context
    )
    preparation = ReviewPreparation(
        file_diffs=file_diffs,
        whitelist=whitelist,
        side_map=side_map,
        snippets=snippets,
        metadata=metadata,
        payload=payload,
    )
    logger.info(
        f"Prepared review: {preparation.files_considered} files, "
        f"{preparation.lines_whitelisted} commentable lines, {len(metadata)} objects"
    )
    return preparation
