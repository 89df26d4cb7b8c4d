"""GitHub service - business logic layer."""

from typing import Optional

from fastapi import BackgroundTasks
from github import GithubException
from github.PullRequest import PullRequest
from requests import RequestException

from src.core.logging import get_logger
from src.services.github.client import (
    GitHubCommentPoster,
    build_unified_diff,
    create_review,
    fetch_commit,
    fetch_file_contents,
    fetch_pr_files,
    fetch_pull_request,
)
from src.services.reviewer.snippets import FileContentResolver

logger = get_logger("github.service")

SUPPORTED_ACTIONS = ("opened", "synchronize", "reopened")


def get_pull_request(owner: str, repo: str, pr_number: int) -> PullRequest:
    """Get a pull request by owner/repo and number."""
    logger.info(f"Fetching PR: {owner}/{repo}#{pr_number}")
    return fetch_pull_request(owner, repo, pr_number)


def get_pr_diff(pr: PullRequest) -> str:
    """Get the unified diff of a PR, assembled from its changed files."""
    files = fetch_pr_files(pr)
    logger.info(f"Found {len(files)} files in PR")
    return build_unified_diff(files)


def get_file_contents(owner: str, repo: str, path: str, ref: str = "HEAD") -> str:
    """Get full file contents from repository."""
    logger.debug(f"Fetching file: {owner}/{repo}/{path}@{ref}")
    return fetch_file_contents(owner, repo, path, ref)


def make_file_resolver(owner: str, repo: str, ref: str) -> FileContentResolver:
    """Resolver reading files at the reviewed head revision; None when unreadable."""

    def resolve(path: str) -> Optional[str]:
        try:
            return get_file_contents(owner, repo, path, ref)
        except (GithubException, RequestException, ValueError) as e:
            logger.warning(f"Could not read {path}@{ref[:8]}: {e}")
            return None

    return resolve


def make_comment_poster(pr: PullRequest, head_sha: str) -> GitHubCommentPoster:
    """Comment poster bound to the PR's head commit."""
    return GitHubCommentPoster(pr, fetch_commit(pr, head_sha))


def submit_review(pr: PullRequest, body: str, disposition: str = "comment") -> None:
    """Submit the summary review to a PR."""
    try:
        create_review(pr, body, disposition)
        logger.info(f"Submitted {disposition} review on #{pr.number}")
    except GithubException as e:
        logger.error(f"Failed to submit review: {e}")
        raise


async def handle_pull_request_event(
    payload: dict,
    background_tasks: BackgroundTasks,
) -> dict:
    """Handle pull_request webhook events."""
    action = payload.get("action")
    pr = payload.get("pull_request", {})
    repo = payload.get("repository", {})

    owner = repo.get("owner", {}).get("login")
    repo_name = repo.get("name")
    pr_number = pr.get("number")

    logger.info(f"PR event: {action} on {owner}/{repo_name}#{pr_number}")

    if action not in SUPPORTED_ACTIONS:
        return {
            "message": f"Action {action} not reviewed",
            "supported_actions": list(SUPPORTED_ACTIONS),
        }

    background_tasks.add_task(run_review, owner, repo_name, pr_number)

    return {
        "message": "Review started",
        "pr": f"{owner}/{repo_name}#{pr_number}",
        "action": action,
    }


async def run_review(owner: str, repo: str, pr_number: int) -> dict:
    """Run the review in background."""
    from src.services.reviewer.service import review_pull_request

    try:
        result = await review_pull_request(owner, repo, pr_number)
        logger.info(f"Review completed: {result.model_dump()}")
        return result.model_dump()
    except Exception as e:
        logger.error(f"Review failed: {e}")
        raise
