"""Prompt templates using Jinja2."""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from src.services.reviewer.schemas import ContextPayload

PROMPTS_DIR = Path(__file__).parent
_env = Environment(loader=FileSystemLoader(PROMPTS_DIR), keep_trailing_newline=True)


def render_system_prompt() -> str:
    """Render the reviewer system prompt."""
    template = _env.get_template("review_system.jinja2")
    return template.render()


def render_review_prompt(payload: ContextPayload) -> str:
    """Render the code review prompt for a prepared context payload."""
    template = _env.get_template("review.jinja2")
    return template.render(
        pr_title=payload.pr_title,
        pr_description=payload.pr_description,
        extra_context=payload.extra_context,
        files=payload.files,
        valid_lines=payload.valid_lines,
        object_metadata=payload.object_metadata,
    )
