"""Tests for commentable line whitelists."""

from src.services.reviewer.diff_parser import parse_diff
from src.services.reviewer.whitelist import NEW_SIDE, build_side_map, build_whitelist

DIFF = "\n".join([
    "diff --git a/src/Sales.al b/src/Sales.al",
    "--- a/src/Sales.al",
    "+++ b/src/Sales.al",
    "@@ -1,4 +1,5 @@",
    ' codeunit 50100 "Sales Helper"',
    " {",
    "-    Access = Public;",
    "+    Access = Internal;",
    "+    Subtype = Normal;",
    " ",
    "@@ -10,3 +11,3 @@",
    "     begin",
    "-        Old();",
    "+        New();",
    "     end;",
    "diff --git a/src/Legacy.al b/src/Legacy.al",
    "deleted file mode 100644",
    "--- a/src/Legacy.al",
    "+++ /dev/null",
    "@@ -1,2 +0,0 @@",
    "-codeunit 50199 Legacy",
    "-{",
    "diff --git a/img/logo.png b/img/logo.png",
    "Binary files a/img/logo.png and b/img/logo.png differ",
])


class TestBuildWhitelist:
    """Tests for build_whitelist function."""

    def test_added_and_context_lines(self):
        """Added and context lines on the new side are commentable."""
        whitelist = build_whitelist(parse_diff(DIFF))

        assert whitelist["src/Sales.al"] == [1, 2, 3, 4, 5, 11, 12, 13]

    def test_added_lines_only(self):
        """Context lines drop out when include_context is off."""
        whitelist = build_whitelist(parse_diff(DIFF), include_context=False)

        assert whitelist["src/Sales.al"] == [3, 4, 12]

    def test_deleted_lines_never_commentable(self):
        """A file with only deletions has an empty entry."""
        whitelist = build_whitelist(parse_diff(DIFF))

        assert whitelist["src/Legacy.al"] == []

    def test_every_file_has_an_entry(self):
        """Files without hunks still appear in the whitelist."""
        whitelist = build_whitelist(parse_diff(DIFF))

        assert list(whitelist) == ["src/Sales.al", "src/Legacy.al", "img/logo.png"]
        assert whitelist["img/logo.png"] == []

    def test_empty_diff(self):
        """No files, no entries."""
        assert build_whitelist([]) == {}

    def test_repeated_file_is_merged(self):
        """Two records for the same path merge into one ascending list."""
        text = "\n".join([
            "--- a/a.txt",
            "+++ b/a.txt",
            "@@ -5 +5 @@",
            "-x",
            "+y",
            "--- a/a.txt",
            "+++ b/a.txt",
            "@@ -1 +1 @@",
            "-p",
            "+q",
        ])

        whitelist = build_whitelist(parse_diff(text))

        assert whitelist == {"a.txt": [1, 5]}

    def test_deterministic(self):
        """Building twice from the same input gives the same result."""
        files = parse_diff(DIFF)

        assert build_whitelist(files) == build_whitelist(files)


class TestBuildSideMap:
    """Tests for build_side_map function."""

    def test_side_map_matches_whitelist(self):
        """Every whitelisted line maps to the new side."""
        files = parse_diff(DIFF)
        whitelist = build_whitelist(files)
        side_map = build_side_map(files)

        for path, lines in whitelist.items():
            assert list(side_map[path]) == lines
            assert set(side_map[path].values()) <= {NEW_SIDE}

    def test_side_map_without_context(self):
        """Side map follows the same line policy as the whitelist."""
        side_map = build_side_map(parse_diff(DIFF), include_context=False)

        assert side_map["src/Sales.al"] == {3: "new", 4: "new", 12: "new"}
        assert side_map["src/Legacy.al"] == {}
