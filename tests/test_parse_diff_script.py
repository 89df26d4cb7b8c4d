"""Tests for the parse_diff command line script."""

import io
import json

from scripts.parse_diff import main

DIFF = "\n".join([
    "diff --git a/src/Sales.al b/src/Sales.al",
    "--- a/src/Sales.al",
    "+++ b/src/Sales.al",
    "@@ -1,2 +1,2 @@",
    " codeunit 50100 Sales",
    "-old",
    "+new",
])


class TestParseDiffScript:
    """Tests for scripts.parse_diff.main."""

    def test_prints_json(self, monkeypatch, capsys):
        """Print one JSON entry per file with chunks and line map."""
        monkeypatch.setattr("sys.stdin", io.StringIO(DIFF))

        assert main() == 0

        [entry] = json.loads(capsys.readouterr().out)
        assert entry["path"] == "src/Sales.al"
        assert entry["lineMap"] == [1, 2]
        changes = entry["chunks"][0]["changes"]
        assert [c["type"] for c in changes] == ["context", "deleted", "added"]
        assert [c["ln"] for c in changes] == [1, 2, 2]
        assert changes[1]["ln2"] is None

    def test_unparseable_input(self, monkeypatch, capsys):
        """Exit with status 1 on text that is not a diff."""
        monkeypatch.setattr("sys.stdin", io.StringIO("not a diff"))

        assert main() == 1
        assert "Unparseable diff" in capsys.readouterr().err
