"""
Base Parser - Abstract base class for job candidate extractors

All extractors inherit from this base class and share its text and URL helpers.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from jobflow.models import JobCandidate

logger = logging.getLogger(__name__)

TRACKING_PARAMS = {
    "ref",
    "source",
    "click_id",
    "fbclid",
    "gclid",
    "trk",
    "trkEmail",
    "refId",
    "trackingId",
    "lipi",
    "midToken",
    "midSig",
    "eid",
    "otpToken",
}


class BaseParser(ABC):
    """
    Abstract base class for extracting job candidates from email content.

    Subclasses must implement:
        - source_name: Property returning the extractor identifier
        - extract(): Method returning candidates found in HTML content
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the identifier for this extractor (e.g., 'heuristic', 'ai')."""
        pass

    @abstractmethod
    def extract(self, html: str, keywords: Optional[Sequence[str]] = None) -> List[JobCandidate]:
        """
        Extract job candidates from HTML content.

        Args:
            html: Decoded email body (HTML or plain text)
            keywords: Optional allow-list; when non-empty, a candidate title
                must contain one of these (case-insensitive)

        Returns:
            List of JobCandidate records, deduplicated by application URL
        """
        pass

    @staticmethod
    def clean_text_field(text: str) -> str:
        """
        Collapse newlines, tabs and repeated whitespace into single spaces.

        Args:
            text: Input text string

        Returns:
            Cleaned text string
        """
        if not text:
            return ""
        text = text.replace("\n", " ").replace("\r", " ").replace("\t", " ")
        return " ".join(text.split()).strip()

    @staticmethod
    def clean_job_url(url: str) -> str:
        """
        Remove tracking parameters from job URLs so one posting has one identity.

        Args:
            url: Raw job URL with potential tracking parameters

        Returns:
            Cleaned URL with tracking parameters and fragment removed
        """
        if not url:
            return url

        parsed = urlparse(url.strip())

        # LinkedIn: keep only the job id
        if "linkedin.com" in parsed.netloc:
            if "/jobs/view/" in parsed.path:
                job_id = parsed.path.split("/jobs/view/")[-1].split("/")[0]
                return f"https://www.linkedin.com/jobs/view/{job_id}"
            params = parse_qs(parsed.query)
            if params.get("currentJobId"):
                return f"https://www.linkedin.com/jobs/view/{params['currentJobId'][0]}"

        # Indeed: keep only the jk param
        elif "indeed.com" in parsed.netloc:
            params = parse_qs(parsed.query)
            for key in ("jk", "vjk"):
                if key in params:
                    return f"https://www.indeed.com/viewjob?jk={params[key][0]}"

        if not parsed.query:
            return urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, "", ""))

        params = parse_qs(parsed.query, keep_blank_values=True)
        cleaned_params = {
            k: v for k, v in params.items() if k not in TRACKING_PARAMS and not k.startswith("utm_")
        }
        new_query = urlencode(cleaned_params, doseq=True) if cleaned_params else ""
        return urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, new_query, ""))

    @staticmethod
    def generate_job_id(url: str) -> str:
        """
        Generate a deterministic job id from an application URL.

        The URL is cleaned first, so the same posting reached through
        different tracking links maps to the same id.

        Returns:
            16-character hex string
        """
        clean_url = BaseParser.clean_job_url(url or "")
        return hashlib.sha256(clean_url.lower().encode("utf-8")).hexdigest()[:16]

    @staticmethod
    def matches_keywords(text: str, keywords: Sequence[str]) -> bool:
        """Case-insensitive substring test against any keyword."""
        text_lower = (text or "").lower()
        return any(kw.lower() in text_lower for kw in keywords if kw)

    @staticmethod
    def dedupe_by_url(candidates: List[JobCandidate], limit: int) -> List[JobCandidate]:
        """
        Deduplicate by application URL and cap the result.

        A repeated URL keeps its first position but takes the later record.
        """
        unique = {}
        for candidate in candidates:
            unique[candidate.application_url] = candidate
        return list(unique.values())[:limit]
