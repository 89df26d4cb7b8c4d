"""Unwrap the model's answer into a canonical ModelReview.

Model output arrives in many shapes: a dict, a JSON string, JSON inside a
markdown fence, JSON encoded twice, a list of LangChain content blocks, or any
list of these mixed with prose. All of them go through one rule: flatten the
envelope, keep the candidates that look like a review object (a summary field
and a comments field), and use the last one.
"""

import json
import re
from typing import Any, Iterator, Optional

from src.core.logging import get_logger
from src.services.reviewer.schemas import ModelReview, ProposedComment

logger = get_logger("reviewer.model_output")

DISPOSITIONS = ("approve", "request_changes", "comment")
DEFAULT_DISPOSITION = "comment"
SUMMARY_KEYS = ("summary",)
COMMENTS_KEYS = ("comments",)
MAX_UNWRAP_DEPTH = 6

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)


def normalize_disposition(value: Any) -> str:
    """Map a free-form disposition onto approve / request_changes / comment."""
    if not isinstance(value, str):
        return DEFAULT_DISPOSITION
    normalized = re.sub(r"[\s-]+", "_", value.strip().lower())
    return normalized if normalized in DISPOSITIONS else DEFAULT_DISPOSITION


def _json_fragments(text: str) -> Iterator[str]:
    text = text.strip()
    if not text:
        return

    for match in FENCED_JSON_RE.finditer(text):
        yield match.group(1).strip()

    yield text

    start = text.find("{")
    end = text.rfind("}") + 1
    if start != -1 and end > start:
        yield text[start:end]


def _candidates(raw: Any, depth: int = 0) -> Iterator[Any]:
    """Flatten a noisy envelope into every value it may contain."""
    if depth > MAX_UNWRAP_DEPTH:
        return

    if isinstance(raw, dict):
        yield raw
        if raw.get("type") == "text" and isinstance(raw.get("text"), str):
            yield from _candidates(raw["text"], depth + 1)
    elif isinstance(raw, str):
        for fragment in _json_fragments(raw):
            try:
                decoded = json.loads(fragment)
            except json.JSONDecodeError:
                continue
            yield from _candidates(decoded, depth + 1)
    elif isinstance(raw, (list, tuple)):
        for item in raw:
            yield from _candidates(item, depth + 1)


def looks_like_review(candidate: Any) -> bool:
    return (
        isinstance(candidate, dict)
        and any(key in candidate for key in SUMMARY_KEYS)
        and any(key in candidate for key in COMMENTS_KEYS)
    )


def extract_review_object(raw: Any) -> Optional[dict]:
    """Return the last review-shaped object found in the model output, if any."""
    matches = [candidate for candidate in _candidates(raw) if looks_like_review(candidate)]
    return matches[-1] if matches else None


def _first_value(data: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def parse_model_review(raw: Any) -> ModelReview:
    """Parse raw model output into a ModelReview.

    Output without a review-shaped object yields an empty review with the
    default disposition; it is logged, not raised.
    """
    data = extract_review_object(raw)
    if data is None:
        logger.warning("Model output contained no review object")
        return ModelReview()

    summary = _first_value(data, SUMMARY_KEYS)
    comments = _first_value(data, COMMENTS_KEYS)
    if not isinstance(comments, list):
        comments = []

    review = ModelReview(
        summary=summary.strip() if isinstance(summary, str) else "",
        disposition=normalize_disposition(data.get("disposition")),
        comments=[ProposedComment.model_validate(entry) for entry in comments if isinstance(entry, dict)],
    )
    logger.info(
        f"Parsed model review: {len(review.comments)} comments, disposition={review.disposition}"
    )
    return review
