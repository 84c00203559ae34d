"""
Base AI Provider - Abstract base class for AI providers

This module defines the interface for text-generation backends (Claude, Gemini).
JobFlow treats generation as an opaque call: prompt in, text out. Everything
job-specific (prompts, placeholder handling, result shaping) lives in
jobflow.ai.generation so providers stay interchangeable.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Raised when a provider call fails or returns unusable output."""


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    All providers must return plain text from ``_generate`` so the application
    works identically regardless of which AI is used.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of this AI provider.

        Returns:
            str: Provider name (e.g., 'claude', 'gemini')
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """
        Return the model being used.

        Returns:
            str: Model identifier (e.g., 'claude-sonnet-4-20250514', 'gemini-1.5-pro')
        """
        pass

    @abstractmethod
    def _generate(self, prompt: str, max_tokens: int = 1000, system: Optional[str] = None) -> str:
        """
        Run a single completion.

        Args:
            prompt: User prompt
            max_tokens: Output token ceiling
            system: Optional system instruction

        Returns:
            str: Generated text, stripped

        Raises:
            GenerationError: If the backend call fails or returns no text
        """
        pass

    def generate(self, prompt: str, max_tokens: int = 1000, system: Optional[str] = None) -> str:
        """Public entry point; never retries."""
        return self._generate(prompt, max_tokens=max_tokens, system=system)

    def _parse_json_response(self, text: str) -> Dict[str, Any]:
        """
        Extract JSON from an AI response that might include markdown fences or preamble.

        Args:
            text: Raw AI response text

        Returns:
            dict: Parsed JSON object

        Raises:
            ValueError: If no valid JSON can be extracted

        Example:
            >>> provider._parse_json_response('```json\\n{"key": "value"}\\n```')
            {"key": "value"}
        """
        if not text:
            raise ValueError("Empty response text")

        text = text.strip()

        # Direct parse
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        # Markdown fence, with or without a language tag
        for pattern in (r"```json\s*([\s\S]*?)\s*```", r"```\s*([\s\S]*?)\s*```"):
            match = re.search(pattern, text)
            if match:
                try:
                    return json.loads(match.group(1))
                except json.JSONDecodeError:
                    pass

        # Outermost object in surrounding prose
        match = re.search(r"\{[\s\S]*\}", text)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                pass

        raise ValueError(
            f"Could not extract valid JSON from response. "
            f"Raw text (first 500 chars): {text[:500]}"
        )
