"""Pydantic schemas for reviewer service."""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

Disposition = Literal["approve", "request_changes", "comment"]


class ObjectMetadata(BaseModel):
    """Header, namespace, usings and properties of an AL object file."""

    path: str
    kind: str
    id: int
    name: str
    extends: Optional[str] = None
    namespace: Optional[str] = None
    usings: list[str] = []
    properties: dict[str, str] = {}


class ProposedComment(BaseModel):
    """Comment proposed by the model. Untrusted: any field may be missing."""

    model_config = ConfigDict(extra="ignore")

    path: Optional[str] = None
    line: Optional[int] = None
    remark: Optional[str] = None
    suggestion: Optional[str] = None

    @field_validator("path", "remark", "suggestion", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator("line", mode="before")
    @classmethod
    def _coerce_line(cls, value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return None

    @property
    def is_complete(self) -> bool:
        """True when path, line and remark are all present."""
        return bool(
            self.path and self.path.strip()
            and self.line is not None
            and self.remark and self.remark.strip()
        )


class PostedComment(BaseModel):
    """Resolved comment: inline on a diff line, or a file-level fallback note."""

    path: str
    line: Optional[int] = None
    side: Optional[str] = None
    body: str
    remark: str
    suggestion: Optional[str] = None
    requested_line: Optional[int] = None
    anchor_failed: bool = False
    path_in_diff: bool = True

    @property
    def is_inline(self) -> bool:
        return not self.anchor_failed

    def to_wire(self) -> dict:
        """Plain dict handed to the comment poster."""
        if self.anchor_failed:
            return {"path": self.path, "body": self.body, "anchorFailed": True}
        return {"path": self.path, "line": self.line, "side": self.side, "body": self.body}


class ModelReview(BaseModel):
    """Canonical model output after unwrapping and validation."""

    summary: str = ""
    disposition: Disposition = "comment"
    comments: list[ProposedComment] = []


class FileContext(BaseModel):
    """Per-file entry of the context payload."""

    path: str
    snippet: str
    diff: str
    from_diff: bool = False


class ContextPayload(BaseModel):
    """Everything the model receives about the pull request."""

    files: list[FileContext] = []
    valid_lines: dict[str, list[int]] = {}
    object_metadata: list[ObjectMetadata] = []
    pr_title: str = ""
    pr_description: Optional[str] = None
    extra_context: str = ""


class ReviewResult(BaseModel):
    """Result of a PR review run."""

    success: bool = True
    pr: str
    files_considered: int = 0
    lines_whitelisted: int = 0
    comments_proposed: int = 0
    comments_dropped: int = 0
    comments_truncated: int = 0
    comments_posted: int = 0
    comments_fallback: int = 0
    comments_failed: int = 0
    summary: str = ""
    disposition: Disposition = "comment"
    errors: list[str] = []
