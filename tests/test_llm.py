"""Tests for the review model call."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.exceptions import ExternalServiceError
from src.core.llm import SUPPORTED_MODELS, get_chat_llm, invoke_review_model


class TestInvokeReviewModel:
    """Tests for invoke_review_model function."""

    @patch("src.core.llm.get_chat_llm")
    def test_returns_raw_content(self, mock_get_llm):
        """Return the message content untouched."""
        blocks = [{"type": "text", "text": "{}"}]
        mock_get_llm.return_value.ainvoke = AsyncMock(return_value=MagicMock(content=blocks))

        result = asyncio.run(invoke_review_model("system", "prompt", model="gpt-4o"))

        assert result is blocks
        mock_get_llm.assert_called_once_with(model="gpt-4o")
        messages = mock_get_llm.return_value.ainvoke.call_args.args[0]
        assert [m.content for m in messages] == ["system", "prompt"]

    @patch("src.core.llm.get_chat_llm")
    def test_failure_is_wrapped(self, mock_get_llm):
        """Provider errors surface as ExternalServiceError."""
        mock_get_llm.return_value.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(ExternalServiceError) as exc_info:
            asyncio.run(invoke_review_model("system", "prompt"))

        assert exc_info.value.service == "LLM"
        assert "rate limited" in exc_info.value.message

    @patch("src.core.llm.settings")
    def test_missing_api_key(self, mock_settings):
        """A missing OpenRouter key fails the call, not the import."""
        mock_settings.openrouter_api_key = None

        with pytest.raises(ExternalServiceError):
            asyncio.run(invoke_review_model("system", "prompt"))


class TestGetChatLLM:
    """Tests for get_chat_llm function."""

    @patch("src.core.llm.ChatOpenAI")
    @patch("src.core.llm.settings")
    def test_unknown_model_falls_back_to_default(self, mock_settings, mock_chat):
        """Unknown model names use the default model id."""
        mock_settings.openrouter_api_key = "key"

        get_chat_llm(model="no-such-model")

        assert mock_chat.call_args.kwargs["model"] == SUPPORTED_MODELS["claude-sonnet-4"]
