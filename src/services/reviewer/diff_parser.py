"""Unified diff parser producing a normalized per-file / per-line change model.

Review comments can only be anchored on lines that are visible in the diff, so
every change line keeps both its old-file and new-file line number. The parser
is tolerant: a broken hunk is skipped with a warning, binary and rename-only
entries produce a FileDiff without hunks. Only input that contains no file
record at all is rejected.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.core.exceptions import DiffParseError
from src.core.logging import get_logger

logger = get_logger("reviewer.diff_parser")

HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
DIFF_GIT_RE = re.compile(r'^diff --git ("(?:[^"\\]|\\.)*"|.+?) ("(?:[^"\\]|\\.)*"|b/.+|\S+)$')
BINARY_RE = re.compile(r"^Binary files (.+?) and (.+?) differ$")
DEV_NULL = "/dev/null"


class ChangeKind(str, Enum):
    """Kind of a single line inside a hunk."""

    ADDED = "added"
    DELETED = "deleted"
    CONTEXT = "context"


MARKERS = {
    ChangeKind.ADDED: "+",
    ChangeKind.DELETED: "-",
    ChangeKind.CONTEXT: " ",
}


@dataclass(frozen=True)
class Change:
    """One line of a hunk with its old-file and new-file numbers."""

    kind: ChangeKind
    content: str
    old_line: Optional[int] = None
    new_line: Optional[int] = None

    @property
    def on_new_side(self) -> bool:
        return self.new_line is not None


@dataclass
class Hunk:
    """Contiguous block of changes introduced by one ``@@`` header."""

    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    changes: list[Change] = field(default_factory=list)


@dataclass
class FileDiff:
    """Changes of a single file."""

    path: str
    from_path: Optional[str]
    to_path: Optional[str]
    hunks: list[Hunk] = field(default_factory=list)
    is_binary: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_rename: bool = False

    @property
    def changes(self) -> list[Change]:
        return [change for hunk in self.hunks for change in hunk.changes]

    def line_map(self) -> list[int]:
        """New-file line numbers of added and context lines, in diff order."""
        return [c.new_line for c in self.changes if c.new_line is not None]

    def render_diff(self) -> str:
        """Rebuild a compact diff of this file: each hunk header followed by its lines."""
        blocks = []
        for hunk in self.hunks:
            body = "\n".join(f"{MARKERS[c.kind]}{c.content}" for c in hunk.changes)
            blocks.append("\n".join(part for part in (hunk.header, body) if part))
        return "\n\n".join(blocks)


def _unquote_git_path(path: str) -> str:
    """Undo git's C-style quoting of paths with special characters."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    inner = path[1:-1]
    try:
        # Git escapes non-ASCII bytes as octal sequences of the UTF-8 encoding
        return inner.encode("ascii").decode("unicode_escape").encode("latin-1").decode("utf-8")
    except UnicodeError:
        return inner


def normalize_path(path: Optional[str]) -> Optional[str]:
    """Normalize a diff path to a repo-relative, forward-slash path.

    Strips a leading ``a/`` or ``b/`` segment, leading ``./`` and git quoting.
    ``/dev/null`` (and empty input) normalize to None.
    """
    if path is None:
        return None

    path = path.strip()
    if "\t" in path:
        # "--- a/file.txt\t2024-01-01 10:00:00" style timestamps
        path = path.split("\t", 1)[0].rstrip()
    path = _unquote_git_path(path)

    if not path or path == DEV_NULL:
        return None

    path = path.replace("\\", "/")
    if path.startswith(("a/", "b/")):
        path = path[2:]
    while path.startswith("./"):
        path = path[2:]
    path = re.sub(r"/{2,}", "/", path)

    return path or None


@dataclass
class _FileBuilder:
    """Mutable accumulator for one file record while parsing."""

    from_path: Optional[str] = None
    to_path: Optional[str] = None
    hunks: list[Hunk] = field(default_factory=list)
    is_binary: bool = False
    is_new: bool = False
    is_deleted: bool = False
    is_rename: bool = False
    saw_old_header: bool = False
    saw_new_header: bool = False

    def build(self) -> Optional[FileDiff]:
        from_path = None if self.is_new else normalize_path(self.from_path)
        to_path = None if self.is_deleted else normalize_path(self.to_path)
        path = to_path or from_path
        if not path:
            return None
        return FileDiff(
            path=path,
            from_path=from_path,
            to_path=to_path,
            hunks=self.hunks,
            is_binary=self.is_binary,
            is_new=self.is_new or (from_path is None and to_path is not None),
            is_deleted=self.is_deleted or to_path is None,
            is_rename=self.is_rename or bool(from_path and to_path and from_path != to_path),
        )


class _DiffParser:
    """Line-driven state machine over unified diff text."""

    def __init__(self) -> None:
        self.files: list[FileDiff] = []
        self.current: Optional[_FileBuilder] = None
        self.hunk: Optional[Hunk] = None
        self.old_line = 0
        self.new_line = 0
        self.old_remaining = 0
        self.new_remaining = 0
        self.skipped_hunks = 0
        self.in_skipped_hunk = False

    def parse(self, text: str) -> list[FileDiff]:
        lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
        for index, line in enumerate(lines):
            number = index + 1
            if self.hunk is not None and self._consume_hunk_line(line, number):
                continue
            if self.in_skipped_hunk:
                following = lines[index + 1] if index + 1 < len(lines) else ""
                if not self._resumes_after_skip(line, following):
                    continue
            self._consume_header_line(line, number)

        if self.hunk is not None:
            self._skip_hunk("diff ended before the hunk was complete")
        self._finish_file()

        if self.skipped_hunks:
            logger.warning(f"Skipped {self.skipped_hunks} malformed hunk(s)")
        return self.files

    @staticmethod
    def _resumes_after_skip(line: str, following: str) -> bool:
        """Body lines of a skipped hunk are ignored until a hunk or file header."""
        if line.startswith(("diff --git ", "@@")):
            return True
        return line.startswith("--- ") and following.startswith("+++ ")

    def _consume_hunk_line(self, line: str, number: int) -> bool:
        """Consume a line of the open hunk. Returns False if the line ends the hunk."""
        marker = line[:1]

        if marker == "\\":
            return True

        if marker == "+" and self.new_remaining > 0:
            self._add_change(ChangeKind.ADDED, line[1:], None, self.new_line)
            self.new_line += 1
            self.new_remaining -= 1
        elif marker == "-" and self.old_remaining > 0:
            self._add_change(ChangeKind.DELETED, line[1:], self.old_line, None)
            self.old_line += 1
            self.old_remaining -= 1
        elif marker in (" ", "") and self.old_remaining > 0 and self.new_remaining > 0:
            self._add_change(ChangeKind.CONTEXT, line[1:], self.old_line, self.new_line)
            self.old_line += 1
            self.new_line += 1
            self.old_remaining -= 1
            self.new_remaining -= 1
        else:
            self._skip_hunk(f"unexpected line {number} inside hunk: {line[:60]!r}")
            return False

        if self.old_remaining == 0 and self.new_remaining == 0:
            self._close_hunk()
        return True

    def _consume_header_line(self, line: str, number: int) -> None:
        if line.startswith("diff --git "):
            self._start_file()
            match = DIFF_GIT_RE.match(line)
            if match:
                self.current.from_path = match.group(1)
                self.current.to_path = match.group(2)
            return

        if line.startswith("@@"):
            self._open_hunk(line, number)
            return

        if line.startswith("--- "):
            if self.current is None or self.current.hunks or self.current.saw_old_header:
                self._start_file()
            self.current.saw_old_header = True
            self.current.from_path = line[4:]
            return

        if line.startswith("+++ "):
            if self.current is None or self.current.saw_new_header:
                self._start_file()
            self.current.saw_new_header = True
            self.current.to_path = line[4:]
            return

        if self.current is None:
            match = BINARY_RE.match(line)
            if match:
                self._start_file()
                self.current.from_path, self.current.to_path = match.groups()
                self.current.is_binary = True
            return

        if line.startswith("new file mode"):
            self.current.is_new = True
        elif line.startswith("deleted file mode"):
            self.current.is_deleted = True
        elif line.startswith("rename from "):
            self.current.is_rename = True
            self.current.from_path = line[len("rename from "):]
        elif line.startswith("rename to "):
            self.current.is_rename = True
            self.current.to_path = line[len("rename to "):]
        elif line.startswith("Binary files ") or line.startswith("GIT binary patch"):
            self.current.is_binary = True
        elif line[:1] in ("+", "-") and self.current.hunks:
            logger.warning(f"Ignoring change line {number} outside of any hunk: {line[:60]!r}")

    def _start_file(self) -> None:
        self._finish_file()
        self.in_skipped_hunk = False
        self.current = _FileBuilder()

    def _finish_file(self) -> None:
        if self.current is None:
            return
        file_diff = self.current.build()
        if file_diff is None:
            logger.warning("Dropping file record without a usable path")
        else:
            self.files.append(file_diff)
        self.current = None

    def _open_hunk(self, line: str, number: int) -> None:
        match = HUNK_HEADER_RE.match(line)
        if self.current is None or not match:
            self.skipped_hunks += 1
            self.in_skipped_hunk = True
            logger.warning(f"Skipping unreadable hunk header at line {number}: {line[:60]!r}")
            return

        self.in_skipped_hunk = False
        old_start, old_lines, new_start, new_lines, _ = match.groups()
        self.hunk = Hunk(
            header=line,
            old_start=int(old_start),
            old_lines=int(old_lines) if old_lines is not None else 1,
            new_start=int(new_start),
            new_lines=int(new_lines) if new_lines is not None else 1,
        )
        self.old_line = self.hunk.old_start
        self.new_line = self.hunk.new_start
        self.old_remaining = self.hunk.old_lines
        self.new_remaining = self.hunk.new_lines

        if self.old_remaining == 0 and self.new_remaining == 0:
            self._close_hunk()

    def _add_change(
        self,
        kind: ChangeKind,
        content: str,
        old_line: Optional[int],
        new_line: Optional[int],
    ) -> None:
        self.hunk.changes.append(
            Change(kind=kind, content=content, old_line=old_line, new_line=new_line)
        )

    def _close_hunk(self) -> None:
        self.current.hunks.append(self.hunk)
        self.hunk = None

    def _skip_hunk(self, reason: str) -> None:
        self.skipped_hunks += 1
        self.in_skipped_hunk = True
        logger.warning(f"Skipping malformed hunk {self.hunk.header!r}: {reason}")
        self.hunk = None


def parse_diff(raw_diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into FileDiff records.

    Args:
        raw_diff_text: Unified diff (``git diff`` or ``diff -u`` output)

    Returns:
        One FileDiff per changed file, in diff order. Empty input yields [].

    Raises:
        DiffParseError: If the text is not a string, or contains no file record
    """
    if not isinstance(raw_diff_text, str):
        raise DiffParseError(f"expected diff text, got {type(raw_diff_text).__name__}")

    if not raw_diff_text.strip():
        return []

    files = _DiffParser().parse(raw_diff_text)
    if not files:
        raise DiffParseError("no file headers found", excerpt=raw_diff_text[:120])

    logger.debug(f"Parsed diff: {len(files)} file(s)")
    return files
