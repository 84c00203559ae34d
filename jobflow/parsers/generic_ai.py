"""
Generic AI Parser - Uses AI to extract jobs from email content

Selected with ``scan.extractor: ai``. When the AI call fails for a message,
that message falls back to the heuristic extractor so a scan never loses a
message to a provider outage.
"""

import logging
from typing import List, Optional, Sequence

from jobflow.ai.base import AIProvider, GenerationError
from jobflow.ai.generation import extract_jobs_from_email_html
from jobflow.models import JobCandidate

from .base import BaseParser
from .heuristic import MAX_CANDIDATES, HeuristicParser

logger = logging.getLogger(__name__)


class AIParser(BaseParser):
    """AI-powered extractor with a heuristic fallback."""

    def __init__(self, provider: Optional[AIProvider] = None):
        """
        Initialize the AI parser.

        Args:
            provider: Provider to use; the configured one is resolved per call when omitted
        """
        self._provider = provider
        self._fallback = HeuristicParser()

    @property
    def source_name(self) -> str:
        return "ai"

    def extract(self, html: str, keywords: Optional[Sequence[str]] = None) -> List[JobCandidate]:
        if not html:
            return []

        try:
            extracted = extract_jobs_from_email_html(html, provider=self._provider)
        except GenerationError as e:
            logger.warning(f"AI extraction failed, using heuristic extractor: {e}")
            return self._fallback.extract(html, keywords)

        keywords = [kw for kw in (keywords or []) if kw and kw.strip()]
        if keywords:
            extracted = [c for c in extracted if self.matches_keywords(c.title, keywords)]

        for candidate in extracted:
            candidate.title = self.clean_text_field(candidate.title)[:200]

        return self.dedupe_by_url(extracted, MAX_CANDIDATES)
