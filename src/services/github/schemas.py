"""Pydantic schemas for GitHub service."""

from pydantic import BaseModel


class PingResponse(BaseModel):
    """Response schema for GitHub ping event."""

    message: str = "pong"
    zen: str = ""
