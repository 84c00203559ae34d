"""
Gemini AI Provider - Google Gemini implementation
"""

import logging
import os
from typing import Dict, Optional

import google.generativeai as genai

from .base import AIProvider, GenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-1.5-pro"


class GeminiProvider(AIProvider):
    """Gemini AI provider using the google-generativeai SDK."""

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        ai_config = config.get("ai", {})
        self._model = ai_config.get("model") or DEFAULT_MODEL

        api_key = os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            raise ValueError("GOOGLE_API_KEY not found. " "Set it in .env or environment variables.")

        genai.configure(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model

    def _generate(self, prompt: str, max_tokens: int = 1000, system: Optional[str] = None) -> str:
        """Generate a response using Gemini."""
        model = genai.GenerativeModel(self._model, system_instruction=system)
        try:
            response = model.generate_content(
                prompt,
                generation_config={"max_output_tokens": max_tokens},
            )
            text = (response.text or "").strip()
        except Exception as e:
            # The SDK raises google.api_core errors and ValueError for blocked output
            logger.error(f"Gemini generation error: {e}")
            raise GenerationError(str(e)) from e

        if not text:
            raise GenerationError("Gemini returned an empty response")
        return text
