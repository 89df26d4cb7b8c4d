#!/usr/bin/env python3
"""Parse a unified diff from stdin and print per-file JSON.

Each entry carries the repo-relative ``path``, a compact rebuilt ``diff``, the
parsed ``chunks`` and the ``lineMap`` of new-file line numbers that inline
comments may target. Exits with status 1 when the diff cannot be parsed.

    git diff origin/main...HEAD | python -m scripts.parse_diff > diff.json
"""
import json
import sys

from src.core.exceptions import DiffParseError
from src.services.reviewer.diff_parser import FileDiff, parse_diff


def file_to_dict(file_diff: FileDiff) -> dict:
    return {
        "path": file_diff.path,
        "from": file_diff.from_path,
        "to": file_diff.to_path,
        "diff": file_diff.render_diff(),
        "chunks": [
            {
                "content": hunk.header,
                "oldStart": hunk.old_start,
                "oldLines": hunk.old_lines,
                "newStart": hunk.new_start,
                "newLines": hunk.new_lines,
                "changes": [
                    {
                        "type": change.kind.value,
                        "content": change.content,
                        "ln1": change.old_line,
                        "ln2": change.new_line,
                        "ln": change.new_line if change.new_line is not None else change.old_line,
                    }
                    for change in hunk.changes
                ],
            }
            for hunk in file_diff.hunks
        ],
        "lineMap": file_diff.line_map(),
    }


def main() -> int:
    try:
        files = parse_diff(sys.stdin.read())
    except DiffParseError as e:
        print(f"{e.message}: {e.details}", file=sys.stderr)
        return 1

    sys.stdout.write(json.dumps([file_to_dict(f) for f in files]))
    return 0


if __name__ == "__main__":
    sys.exit(main())
