"""Tests for model output unwrapping."""

import json

import pytest

from src.services.reviewer.model_output import (
    extract_review_object,
    normalize_disposition,
    parse_model_review,
)

REVIEW = {
    "summary": "Looks mostly fine.",
    "disposition": "request_changes",
    "comments": [
        {"path": "src/Sales.al", "line": 42, "remark": "Missing error handling."},
    ],
}


class TestParseModelReview:
    """Tests for parse_model_review function."""

    def test_plain_dict(self):
        """A dict is used as-is."""
        review = parse_model_review(REVIEW)

        assert review.summary == "Looks mostly fine."
        assert review.disposition == "request_changes"
        assert review.comments[0].line == 42

    def test_json_string(self):
        """A JSON string is decoded."""
        review = parse_model_review(json.dumps(REVIEW))

        assert review.comments[0].path == "src/Sales.al"

    def test_fenced_json_in_prose(self):
        """JSON inside a markdown fence with surrounding prose is found."""
        raw = f"Here is my review:\n\n```json\n{json.dumps(REVIEW, indent=2)}\n```\n\nThanks!"

        review = parse_model_review(raw)

        assert review.summary == "Looks mostly fine."

    def test_json_embedded_in_prose_without_fence(self):
        """A bare object between prose is sliced out."""
        raw = f"Review follows {json.dumps(REVIEW)} end of review"

        assert parse_model_review(raw).disposition == "request_changes"

    def test_double_encoded_json(self):
        """A JSON string containing JSON is unwrapped twice."""
        raw = json.dumps(json.dumps(REVIEW))

        assert parse_model_review(raw).comments[0].remark == "Missing error handling."

    def test_content_blocks(self):
        """LangChain content block lists are flattened."""
        raw = [
            {"type": "text", "text": "Thinking about it..."},
            {"type": "text", "text": json.dumps(REVIEW)},
        ]

        assert parse_model_review(raw).summary == "Looks mostly fine."

    def test_last_review_object_wins(self):
        """When several review objects appear, the last one is used."""
        draft = {"summary": "draft", "comments": []}
        raw = [json.dumps(draft), "some prose", REVIEW]

        assert parse_model_review(raw).summary == "Looks mostly fine."

    @pytest.mark.parametrize("raw", ["no json here", "", None, 42, {"comments": []}, [1, 2]])
    def test_no_review_object(self, raw):
        """Output without a review object gives an empty review."""
        review = parse_model_review(raw)

        assert review.summary == ""
        assert review.disposition == "comment"
        assert review.comments == []

    def test_comments_not_a_list(self):
        """A non-list comments field yields no comments."""
        review = parse_model_review({"summary": "s", "comments": "none"})

        assert review.summary == "s"
        assert review.comments == []

    def test_comment_fields_coerced(self):
        """Comment fields are coerced; unusable values become None."""
        raw = {
            "summary": "s",
            "comments": [
                {"path": "a.al", "line": "42", "remark": "r", "severity": "high"},
                {"path": "a.al", "line": "forty", "remark": "r"},
                {"path": "a.al", "line": True, "remark": "r"},
                {"path": "a.al", "line": 7.0, "remark": 5},
                "not a comment",
            ],
        }

        review = parse_model_review(raw)

        assert [c.line for c in review.comments] == [42, None, None, 7]
        assert review.comments[3].remark == "5"

    def test_missing_disposition_defaults_to_comment(self):
        """A review without a disposition is a plain comment review."""
        assert parse_model_review({"summary": "s", "comments": []}).disposition == "comment"


class TestExtractReviewObject:
    """Tests for extract_review_object function."""

    def test_requires_summary_and_comments(self):
        """Objects missing either field are not reviews."""
        assert extract_review_object({"summary": "s"}) is None
        assert extract_review_object({"comments": []}) is None

    def test_nested_in_text_block(self):
        """Review objects inside text blocks are found."""
        block = {"type": "text", "text": json.dumps({"summary": "s", "comments": []})}

        assert extract_review_object(block) == {"summary": "s", "comments": []}


class TestNormalizeDisposition:
    """Tests for normalize_disposition function."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("approve", "approve"),
            ("APPROVE", "approve"),
            ("Request changes", "request_changes"),
            ("request-changes", "request_changes"),
            (" comment ", "comment"),
            ("reject", "comment"),
            ("", "comment"),
            (None, "comment"),
            (5, "comment"),
        ],
    )
    def test_normalize(self, value, expected):
        """Map free-form values onto the closed disposition set."""
        assert normalize_disposition(value) == expected
