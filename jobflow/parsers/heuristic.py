"""
Heuristic Parser - zero-network job extraction from email links

Every anchor in the message is a potential posting. Link text is length-gated,
checked against a blacklist of navigation/boilerplate phrases and then accepted
either by the caller's keyword allow-list or by a generic job-title pattern.
No company or location is known at this point, so fixed placeholders are used.
"""

import logging
import re
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from jobflow.models import (
    DEFAULT_LOCATION,
    HEURISTIC_CONFIDENCE,
    PLACEHOLDER_COMPANY,
    JobCandidate,
)

from .base import BaseParser

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 4
MAX_TITLE_LENGTH = 100
MAX_CANDIDATES = 10

ROLE_FAMILIES = (
    "software",
    "systems",
    "data",
    "site",
    "reliability",
    "qa",
    "test",
    "frontend",
    "backend",
    r"full.?stack",
    "devops",
    "cloud",
    "network",
    "security",
    "product",
    "project",
    "program",
    "account",
    "sales",
    "marketing",
    "business",
    "customer",
    "support",
    r"human.?resources",
    "human",
    "hr",
    "legal",
    "finance",
    "operations",
)

ROLE_LEVELS = (
    "engineer",
    "developer",
    "architect",
    "admin",
    "manager",
    "director",
    "lead",
    "specialist",
    "analyst",
    "associate",
    "representative",
    "executive",
    "consultant",
)

STANDALONE_TITLES = ("programmer", "coder", "technician", "designer")

JOB_TITLE_PATTERN = re.compile(
    r"(?:{families})\s+(?:{levels})|{standalone}".format(
        families="|".join(ROLE_FAMILIES),
        levels="|".join(ROLE_LEVELS),
        standalone="|".join(STANDALONE_TITLES),
    ),
    re.IGNORECASE,
)

BLACKLIST_PATTERN = re.compile(
    r"unsubscribe|privacy|policy|view in browser|profile|settings|preferences|help|support"
    r"|login|sign in|forgot password|password reset|terms|conditions|read more"
    r"|apply now|click here|browser|email me|alert",
    re.IGNORECASE,
)


class HeuristicParser(BaseParser):
    """Pattern-based extractor; deterministic and safe to run per message in a batch."""

    @property
    def source_name(self) -> str:
        return "heuristic"

    def extract(self, html: str, keywords: Optional[Sequence[str]] = None) -> List[JobCandidate]:
        if not html:
            return []

        keywords = [kw for kw in (keywords or []) if kw and kw.strip()]
        soup = BeautifulSoup(html, "html.parser")
        found = []

        for link in soup.find_all("a"):
            href = (link.get("href") or "").strip()
            text = self.clean_text_field(link.get_text())

            if not href:
                continue
            if len(text) < MIN_TITLE_LENGTH or len(text) > MAX_TITLE_LENGTH:
                continue
            if BLACKLIST_PATTERN.search(text):
                continue
            if not self.is_job_title(text, keywords):
                continue

            found.append(
                JobCandidate(
                    title=text,
                    application_url=href,
                    company=PLACEHOLDER_COMPANY,
                    location=DEFAULT_LOCATION,
                    match_score=HEURISTIC_CONFIDENCE,
                )
            )

        candidates = self.dedupe_by_url(found, MAX_CANDIDATES)
        logger.debug(f"Heuristic extraction: {len(found)} links matched, {len(candidates)} kept")
        return candidates

    def is_job_title(self, text: str, keywords: Sequence[str]) -> bool:
        """Keyword allow-list when given, otherwise the generic title pattern."""
        if keywords:
            return self.matches_keywords(text, keywords)
        return bool(JOB_TITLE_PATTERN.search(text))
