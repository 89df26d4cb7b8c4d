"""GitHub API client - data layer."""

from typing import Optional

from github import Github, GithubException, GithubIntegration
from github.Commit import Commit
from github.PullRequest import PullRequest
from loguru import logger
from requests import RequestException

from src.config import settings
from src.core.exceptions import CommentPostError, LineNotInDiffError, PRNotFoundError
from src.services.reviewer.schemas import PostedComment

_github_client: Optional[Github] = None

# Side names used by the review engine -> GitHub review comment sides
GITHUB_SIDES = {"new": "RIGHT", "old": "LEFT"}

REVIEW_EVENTS = {
    "approve": "APPROVE",
    "request_changes": "REQUEST_CHANGES",
    "comment": "COMMENT",
}

# Fragments of GitHub's 422 messages for comments on lines outside the diff
LINE_NOT_IN_DIFF_MARKERS = (
    "must be part of the diff",
    "could not be resolved",
    "is not part of the pull request",
    "is outside the diff",
)


def get_github_client() -> Github:
    """Get authenticated GitHub client using App installation."""
    global _github_client

    if _github_client:
        return _github_client

    if not all([settings.github_app_id, settings.github_private_key, settings.github_installation_id]):
        raise ValueError("GitHub App credentials not configured")

    private_key = settings.github_private_key.replace("\\n", "\n")

    integration = GithubIntegration(
        integration_id=int(settings.github_app_id),
        private_key=private_key,
    )

    access_token = integration.get_access_token(int(settings.github_installation_id)).token
    _github_client = Github(access_token)

    logger.info("GitHub App client initialized")
    return _github_client


def fetch_pull_request(owner: str, repo: str, pr_number: int) -> PullRequest:
    """Fetch a pull request from GitHub API."""
    client = get_github_client()
    try:
        repository = client.get_repo(f"{owner}/{repo}")
        return repository.get_pull(pr_number)
    except GithubException as e:
        if e.status == 404:
            raise PRNotFoundError(owner, repo, pr_number) from e
        raise


def fetch_pr_files(pr: PullRequest) -> list[dict]:
    """Fetch changed files from a PR."""
    files = []
    for f in pr.get_files():
        files.append({
            "filename": f.filename,
            "previous_filename": f.previous_filename,
            "status": f.status,
            "additions": f.additions,
            "deletions": f.deletions,
            "patch": f.patch or "",
        })
    return files


def build_unified_diff(files: list[dict]) -> str:
    """Assemble git-style unified diff text from PR file entries.

    GitHub returns each file's patch without file headers; this adds the
    ``diff --git`` / ``---`` / ``+++`` lines around them. Files without a
    patch (binary or too large) are emitted as binary entries.
    """
    sections = []
    for f in files:
        new_path = f["filename"]
        old_path = f.get("previous_filename") or new_path
        status = f.get("status", "modified")

        lines = [f"diff --git a/{old_path} b/{new_path}"]
        if status == "added":
            lines.append("new file mode 100644")
        elif status == "removed":
            lines.append("deleted file mode 100644")
        elif old_path != new_path:
            lines.extend([f"rename from {old_path}", f"rename to {new_path}"])

        patch = f.get("patch") or ""
        if patch:
            lines.append("--- /dev/null" if status == "added" else f"--- a/{old_path}")
            lines.append("+++ /dev/null" if status == "removed" else f"+++ b/{new_path}")
            lines.append(patch.rstrip("\n"))
        elif old_path == new_path:
            lines.append(f"Binary files a/{old_path} and b/{new_path} differ")

        sections.append("\n".join(lines))

    return "\n".join(sections) + "\n" if sections else ""


def fetch_file_contents(owner: str, repo: str, path: str, ref: str = "HEAD") -> str:
    """Fetch full file contents from repository."""
    client = get_github_client()
    repository = client.get_repo(f"{owner}/{repo}")
    try:
        content = repository.get_contents(path, ref=ref)
        if isinstance(content, list):
            raise ValueError(f"Path {path} is a directory, not a file")
        return content.decoded_content.decode("utf-8")
    except Exception as e:
        logger.error(f"Failed to fetch file {path}: {e}")
        raise


def fetch_commit(pr: PullRequest, sha: str) -> Commit:
    """Fetch the commit object comments are attached to."""
    return pr.base.repo.get_commit(sha)


def _is_line_not_in_diff(error: GithubException) -> bool:
    if error.status != 422:
        return False
    detail = str(error.data).lower()
    return any(marker in detail for marker in LINE_NOT_IN_DIFF_MARKERS)


def _error_message(error: GithubException) -> str:
    if isinstance(error.data, dict) and error.data.get("message"):
        return f"{error.status} {error.data['message']}"
    return f"{error.status} {error.data}"


class GitHubCommentPoster:
    """Posts resolved review comments on a pull request, one API call each."""

    def __init__(self, pr: PullRequest, commit: Commit) -> None:
        self.pr = pr
        self.commit = commit

    def post_inline(self, comment: PostedComment) -> None:
        try:
            self.pr.create_review_comment(
                body=comment.body,
                commit=self.commit,
                path=comment.path,
                line=comment.line,
                side=GITHUB_SIDES.get(comment.side or "new", "RIGHT"),
            )
        except GithubException as e:
            if _is_line_not_in_diff(e):
                raise LineNotInDiffError(comment.path, comment.line, _error_message(e)) from e
            raise CommentPostError(comment.path, comment.line, _error_message(e)) from e
        except RequestException as e:
            raise CommentPostError(comment.path, comment.line, str(e)) from e
        logger.info(f"Posted inline comment on {comment.path}:{comment.line}")

    def post_file_level(self, comment: PostedComment) -> None:
        try:
            self.pr.create_review_comment(
                body=comment.body,
                commit=self.commit,
                path=comment.path,
                subject_type="file",
            )
        except GithubException as e:
            raise CommentPostError(comment.path, None, _error_message(e)) from e
        except RequestException as e:
            raise CommentPostError(comment.path, None, str(e)) from e
        logger.info(f"Posted file-level comment on {comment.path}")

    def post_pr_level(self, comment: PostedComment) -> None:
        """Post a note to the PR conversation, for paths the PR does not touch."""
        try:
            self.pr.create_issue_comment(comment.body)
        except GithubException as e:
            raise CommentPostError(comment.path, None, _error_message(e)) from e
        except RequestException as e:
            raise CommentPostError(comment.path, None, str(e)) from e
        logger.info(f"Posted PR-level comment about {comment.path}")


def create_review(pr: PullRequest, body: str, disposition: str = "comment") -> None:
    """Create a summary review on a PR."""
    event = REVIEW_EVENTS.get(disposition, "COMMENT")
    pr.create_review(body=body, event=event)
    logger.info(f"Created {event} review")
