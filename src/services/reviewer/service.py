"""Reviewer service - orchestration layer."""

from github import GithubException

from src.config import settings
from src.core.exceptions import ExternalServiceError
from src.core.llm import invoke_review_model
from src.core.logging import get_logger
from src.core.prompts import render_review_prompt, render_system_prompt
from src.services.github.service import (
    get_pr_diff,
    get_pull_request,
    make_comment_poster,
    make_file_resolver,
    submit_review,
)
from src.services.reviewer.anchors import complete_comments, publish_comments, resolve_comments
from src.services.reviewer.engine import EngineConfig, prepare_review
from src.services.reviewer.model_output import parse_model_review
from src.services.reviewer.schemas import ModelReview, ReviewResult

logger = get_logger("reviewer.service")


def format_summary_body(review: ModelReview, result: ReviewResult) -> str:
    """Summary review text: the model's summary plus the comment counts."""
    lines = [review.summary or "Automated review completed."]
    counts = f"{result.comments_posted} inline comment(s)"
    if result.comments_fallback:
        counts += f", {result.comments_fallback} fallback note(s) for lines outside the diff"
    if result.comments_failed:
        counts += f", {result.comments_failed} comment(s) could not be posted"
    lines.append(f"_{counts}._")
    return "\n\n".join(lines)


async def review_pull_request(
    owner: str,
    repo: str,
    pr_number: int,
    config: EngineConfig | None = None,
) -> ReviewResult:
    """Review a pull request: build context, ask the model, anchor and post its comments."""
    config = config or EngineConfig.from_settings(settings)
    pr_ref = f"{owner}/{repo}#{pr_number}"
    logger.info(f"Starting review: {pr_ref}")

    pr = get_pull_request(owner, repo, pr_number)
    head_sha = pr.head.sha
    diff_text = get_pr_diff(pr)

    preparation = prepare_review(
        diff_text,
        make_file_resolver(owner, repo, head_sha),
        config,
        pr_title=pr.title,
        pr_description=pr.body,
        extra_context=settings.extra_context,
    )

    result = ReviewResult(
        pr=pr_ref,
        files_considered=preparation.files_considered,
        lines_whitelisted=preparation.lines_whitelisted,
    )

    if not preparation.file_diffs:
        logger.info("No files to review")
        result.summary = "No reviewable changes found."
        return result

    try:
        raw_output = await invoke_review_model(
            render_system_prompt(),
            render_review_prompt(preparation.payload),
            model=settings.review_model,
        )
    except ExternalServiceError as e:
        logger.error(f"Model invocation failed: {e.message}")
        result.success = False
        result.errors.append(e.message)
        return result

    review = parse_model_review(raw_output)
    complete = complete_comments(review.comments)
    resolved = resolve_comments(
        review.comments, preparation.whitelist, preparation.side_map, config.max_comments
    )

    result.summary = review.summary
    result.disposition = review.disposition
    result.comments_proposed = len(review.comments)
    result.comments_dropped = len(review.comments) - len(complete)
    result.comments_truncated = len(complete) - len(resolved)

    outcome = publish_comments(resolved, make_comment_poster(pr, head_sha))
    result.comments_posted = outcome.inline
    result.comments_fallback = outcome.fallback
    result.comments_failed = outcome.failed
    result.errors.extend(outcome.errors)

    logger.info(
        f"Posted {outcome.inline} inline and {outcome.fallback} fallback comments "
        f"({outcome.failed} failed, {result.comments_dropped} dropped)"
    )

    try:
        submit_review(pr, format_summary_body(review, result), review.disposition)
    except GithubException as e:
        result.errors.append(f"summary review: {e}")

    return result
