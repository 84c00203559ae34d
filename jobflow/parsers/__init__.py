"""
Parsers Package - job candidate extraction from email bodies

Two extractors are registered:
- heuristic: link-text pattern matching, no network (default)
- ai: LLM extraction with a per-message heuristic fallback

Usage:
    from jobflow.parsers import get_parser, extract_candidates

    parser = get_parser('heuristic')
    candidates = parser.extract(html, ['Backend Engineer'])
"""

import logging
from typing import Dict, List, Optional, Sequence, Type

from jobflow.models import JobCandidate

from .base import BaseParser
from .generic_ai import AIParser
from .heuristic import HeuristicParser

logger = logging.getLogger(__name__)

# Registry of all available extractors
PARSER_REGISTRY: Dict[str, Type[BaseParser]] = {
    "heuristic": HeuristicParser,
    "ai": AIParser,
}

# Singleton instances (created on first use)
_parser_instances: Dict[str, BaseParser] = {}


def get_parser(name: str) -> Optional[BaseParser]:
    """
    Get an extractor instance by name.

    Args:
        name: Extractor identifier ('heuristic' or 'ai')

    Returns:
        Parser instance or None if the name is unknown
    """
    if name not in PARSER_REGISTRY:
        return None

    if name not in _parser_instances:
        _parser_instances[name] = PARSER_REGISTRY[name]()

    return _parser_instances[name]


def extract_candidates(
    html: str, keywords: Optional[Sequence[str]] = None, extractor: str = "heuristic"
) -> List[JobCandidate]:
    """Run the named extractor over one email body."""
    parser = get_parser(extractor)
    if parser is None:
        raise ValueError(f"Unknown extractor: '{extractor}'")
    return parser.extract(html, keywords)


def clean_job_url(url: str) -> str:
    """Clean tracking parameters from job URL."""
    return BaseParser.clean_job_url(url)


def generate_job_id(url: str) -> str:
    """Generate a stable job id from an application URL."""
    return BaseParser.generate_job_id(url)


__all__ = [
    "PARSER_REGISTRY",
    "BaseParser",
    "HeuristicParser",
    "AIParser",
    "get_parser",
    "extract_candidates",
    "clean_job_url",
    "generate_job_id",
]
