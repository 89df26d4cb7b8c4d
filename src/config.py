"""Configuration for the AL PR Reviewer."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    environment: str = "development"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8080

    # LLM - OpenRouter (multi-provider gateway)
    openrouter_api_key: Optional[str] = None

    # GitHub App Authentication
    github_app_id: Optional[str] = None
    github_private_key: Optional[str] = None
    github_installation_id: Optional[str] = None
    github_webhook_secret: Optional[str] = None

    # Default Repository (for #123 shorthand in scripts)
    default_repo_owner: Optional[str] = None
    default_repo_name: Optional[str] = None

    # Review Configuration
    review_model: str = "claude-sonnet-4"
    extra_context: str = ""

    # Engine knobs (0 = unlimited comments)
    max_comments: int = 25
    context_radius: int = 12
    include_paths: list[str] = []
    exclude_paths: list[str] = []
    whitelist_include_context: bool = True
    metadata_extensions: list[str] = [".al"]


settings = Settings()
