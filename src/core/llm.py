"""LLM client using OpenRouter."""

from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from src.config import settings
from src.core.exceptions import ExternalServiceError
from src.core.logging import get_logger

logger = get_logger("llm")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

SUPPORTED_MODELS = {
    "claude-sonnet-4": "anthropic/claude-sonnet-4",
    "claude-opus-4": "anthropic/claude-opus-4",
    "gpt-4o": "openai/gpt-4o",
    "gpt-4o-mini": "openai/gpt-4o-mini",
    "deepseek-r1": "deepseek/deepseek-r1",
}
DEFAULT_MODEL = "claude-sonnet-4"


def get_chat_llm(
    model: str = DEFAULT_MODEL,
    temperature: float = 0.0,
    top_p: float = 0.95,
) -> ChatOpenAI:
    """Get a chat LLM instance via OpenRouter."""
    api_key = settings.openrouter_api_key
    if not api_key:
        raise ValueError("OPENROUTER_API_KEY not configured")

    model_id = SUPPORTED_MODELS.get(model, SUPPORTED_MODELS[DEFAULT_MODEL])

    logger.info(f"[LLM] Using OpenRouter: {model} -> {model_id}")

    return ChatOpenAI(
        model=model_id,
        api_key=api_key,
        base_url=OPENROUTER_BASE_URL,
        temperature=temperature,
        top_p=top_p,
    )


async def invoke_review_model(system_prompt: str, prompt: str, model: str = DEFAULT_MODEL) -> Any:
    """Send one review prompt and return the raw message content.

    The content is returned as-is (string or list of content blocks); turning it
    into a review is left to the model output parser.
    """
    messages = [
        SystemMessage(content=system_prompt),
        HumanMessage(content=prompt),
    ]
    try:
        llm = get_chat_llm(model=model)
        response = await llm.ainvoke(messages)
    except Exception as e:
        raise ExternalServiceError("LLM", str(e)) from e

    logger.info(f"[LLM] Received review response from {model}")
    return response.content
