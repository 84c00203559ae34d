"""
AI Provider Factory - resolves ``ai.provider`` to a provider instance

Provider classes are imported on demand, so a missing SDK only fails the
request that actually selects that provider.
"""

import importlib
import logging
import os
from typing import Any, Dict, NamedTuple, Optional

from .base import AIProvider

logger = logging.getLogger(__name__)


class ProviderSpec(NamedTuple):
    label: str
    target: str  # "module:Class"
    sdk: str
    env_var: str


PROVIDERS = {
    "claude": ProviderSpec(
        "Claude (Anthropic)", "jobflow.ai.claude:ClaudeProvider", "anthropic", "ANTHROPIC_API_KEY"
    ),
    "gemini": ProviderSpec(
        "Gemini (Google)", "jobflow.ai.gemini:GeminiProvider", "google.generativeai", "GOOGLE_API_KEY"
    ),
}

DEFAULT_PROVIDER = "claude"


def get_provider(config: Optional[Dict[str, Any]] = None) -> AIProvider:
    """
    Build the configured AI provider.

    Args:
        config: Configuration dict; defaults to the global jobflow configuration

    Raises:
        ValueError: Unknown provider, or its API key is not set
        ImportError: The provider's SDK is not installed
    """
    if config is None:
        from jobflow.config import get_config

        config = get_config().to_dict()

    name = str(config.get("ai", {}).get("provider") or DEFAULT_PROVIDER).lower()
    spec = PROVIDERS.get(name)
    if spec is None:
        raise ValueError(f"Unknown AI provider: '{name}'. Available providers: {', '.join(PROVIDERS)}")

    module_name, class_name = spec.target.split(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.error(f"{spec.label} provider unavailable: {e}")
        raise ImportError(f"Install {spec.sdk} to use the {name} provider ({e})") from e

    return getattr(module, class_name)(config)


def sdk_installed(name: str) -> bool:
    try:
        importlib.import_module(PROVIDERS[name].sdk)
    except ImportError:
        return False
    return True


def describe_providers() -> Dict[str, Dict[str, Any]]:
    """
    Installation and key status for every provider, for the health endpoint.

    Example:
        >>> describe_providers()["claude"]
        {'label': 'Claude (Anthropic)', 'installed': True, 'hasKey': False, 'envVar': 'ANTHROPIC_API_KEY'}
    """
    return {
        name: {
            "label": spec.label,
            "installed": sdk_installed(name),
            "hasKey": bool(os.environ.get(spec.env_var)),
            "envVar": spec.env_var,
        }
        for name, spec in PROVIDERS.items()
    }
