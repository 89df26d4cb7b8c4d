"""Custom exceptions for the application and the review engine."""


class ApiException(Exception):
    """Base exception for all API errors."""

    def __init__(
        self,
        status_code: int,
        message: str,
        details: dict | None = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(ApiException):
    """Resource not found exception."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(404, f"{resource} not found: {identifier}")


class UnauthorizedError(ApiException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(401, message)


class ValidationError(ApiException):
    """Request validation error."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(422, message, details)


class ExternalServiceError(ApiException):
    """External service (GitHub, LLM gateway, etc.) error."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(502, f"{service} error: {message}")


class PRNotFoundError(NotFoundError):
    """Pull request not found."""

    def __init__(self, owner: str, repo: str, pr_number: int) -> None:
        super().__init__("Pull request", f"{owner}/{repo}#{pr_number}")


class SignatureVerificationError(UnauthorizedError):
    """Webhook signature verification failed."""

    def __init__(self, source: str = "webhook") -> None:
        super().__init__(f"Invalid {source} signature")


class DiffParseError(ValidationError):
    """Diff text could not be tokenized into any file record."""

    def __init__(self, reason: str, excerpt: str = "") -> None:
        details = {"reason": reason}
        if excerpt:
            details["excerpt"] = excerpt
        super().__init__(f"Unparseable diff: {reason}", details)


class CommentPostError(ExternalServiceError):
    """Posting a single review comment failed."""

    def __init__(self, path: str, line: int | None, message: str) -> None:
        self.path = path
        self.line = line
        location = f"{path}:{line}" if line is not None else path
        super().__init__("GitHub", f"could not post comment on {location}: {message}")


class LineNotInDiffError(CommentPostError):
    """The remote side rejected the comment because the line is not part of the diff."""
