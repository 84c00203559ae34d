"""
Claude AI Provider - Anthropic Claude implementation
"""

import logging
import os
from typing import Dict, Optional

import anthropic

from .base import AIProvider, GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class ClaudeProvider(AIProvider):
    """Claude AI provider using the Anthropic API."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Claude provider.

        Args:
            config: Configuration dict with optional 'ai.model' setting
        """
        config = config or {}
        ai_config = config.get("ai", {})
        self._model = ai_config.get("model") or DEFAULT_MODEL

        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY not found. " "Set it in .env or environment variables."
            )

        self._client = anthropic.Anthropic(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "claude"

    @property
    def model_name(self) -> str:
        return self._model

    def _generate(self, prompt: str, max_tokens: int = 1000, system: Optional[str] = None) -> str:
        """Generate a response using Claude."""
        kwargs = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            logger.error(f"Claude generation error: {e}")
            raise GenerationError(str(e)) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        if not text:
            raise GenerationError("Claude returned an empty response")
        return text
