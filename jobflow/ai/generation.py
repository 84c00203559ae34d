"""
Generation helpers - cover letters, tailored resumes and job extraction

Each helper resolves the configured provider, builds its prompt and converts
failures into a typed outcome. Failures are never retried; the error text is
returned verbatim so the caller can show it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from bs4 import BeautifulSoup

from jobflow.models import JobCandidate

from .base import AIProvider, GenerationError
from .local import local_customize_resume, local_generate_cover_letter
from .prompts import (
    COVER_LETTER_SYSTEM,
    TAILOR_RESUME_SYSTEM,
    build_cover_letter_prompt,
    build_extract_job_prompt,
    build_extract_jobs_prompt,
    build_tailor_resume_prompt,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKERS = ("review", "unknown")
PLACEHOLDER_NAMES = {"n/a", "na", "company", "confidential", "tbd", "-"}

FETCH_TIMEOUT = 15
USER_AGENT = "Mozilla/5.0 (compatible; JobFlow/1.0)"
NEXT_STEPS = ["resume", "cover-letter", "interview"]


@dataclass
class GenerationResult:
    """Outcome of one generation call."""

    success: bool
    text: str = ""
    error: Optional[str] = None
    mode: str = "ai"

    def to_dict(self) -> Dict[str, Any]:
        result = {"success": self.success, "text": self.text, "mode": self.mode}
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class ExtractedJob:
    """Fields pulled from a job posting page."""

    success: bool
    job: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"success": self.success, "job": self.job, "nextSteps": NEXT_STEPS}
        if self.error:
            result["error"] = self.error
        return result


def is_placeholder_company(company: Optional[str]) -> bool:
    """True for empty or stand-in company names that must not reach a prompt."""
    if not company or not company.strip():
        return True
    lowered = company.strip().lower()
    return lowered in PLACEHOLDER_NAMES or any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def _real_company(company: Optional[str]) -> Optional[str]:
    return None if is_placeholder_company(company) else company.strip()


def _resolve_provider(provider: Optional[AIProvider]) -> AIProvider:
    if provider is not None:
        return provider
    from .factory import get_provider

    try:
        return get_provider()
    except (ValueError, ImportError) as e:
        raise GenerationError(str(e)) from e


def generate_cover_letter(
    title: str,
    company: Optional[str],
    description: str,
    resume_text: str,
    name: str = "",
    email: str = "",
    provider: Optional[AIProvider] = None,
    local: bool = False,
) -> GenerationResult:
    """
    Generate a cover letter for one job.

    Args:
        title: Job title
        company: Company name (placeholders are replaced, never echoed)
        description: Job description
        resume_text: Candidate resume
        name: Candidate name
        email: Candidate email
        provider: Provider override (defaults to the configured one)
        local: Use the deterministic local generator instead of an LLM

    Returns:
        GenerationResult with the letter or the failure text
    """
    company = _real_company(company)

    if local:
        text = local_generate_cover_letter(title, company, description, name=name, email=email)
        return GenerationResult(success=True, text=text, mode="local")

    prompt = build_cover_letter_prompt(title, company, description, resume_text, name, email)
    try:
        text = _resolve_provider(provider).generate(
            prompt, max_tokens=1200, system=COVER_LETTER_SYSTEM
        )
    except GenerationError as e:
        logger.error(f"Cover letter generation failed: {e}")
        return GenerationResult(success=False, error=str(e))

    logger.info(f"Generated cover letter for '{title}' ({len(text)} chars)")
    return GenerationResult(success=True, text=text)


def customize_resume(
    title: str,
    company: Optional[str],
    description: str,
    resume_text: str,
    email: str = "",
    provider: Optional[AIProvider] = None,
    local: bool = False,
) -> GenerationResult:
    """Tailor a resume to one job. Mirrors ``generate_cover_letter``."""
    company = _real_company(company)

    if local:
        text = local_customize_resume(title, company, description, resume_text, email=email)
        return GenerationResult(success=True, text=text, mode="local")

    prompt = build_tailor_resume_prompt(title, company, description, resume_text, email)
    try:
        text = _resolve_provider(provider).generate(
            prompt, max_tokens=2500, system=TAILOR_RESUME_SYSTEM
        )
    except GenerationError as e:
        logger.error(f"Resume tailoring failed: {e}")
        return GenerationResult(success=False, error=str(e))

    logger.info(f"Tailored resume for '{title}' ({len(text)} chars)")
    return GenerationResult(success=True, text=text)


def html_to_text(html: str, max_chars: Optional[int] = None) -> str:
    """Visible text of an HTML document, one block per line."""
    soup = BeautifulSoup(html or "", "html.parser")
    for element in soup.find_all(["script", "style", "head", "meta", "link", "noscript"]):
        element.decompose()
    text = soup.get_text("\n", strip=True)
    if max_chars is not None:
        text = text[:max_chars]
    return text


def extract_jobs_from_email_html(html: str, provider: Optional[AIProvider] = None) -> List[JobCandidate]:
    """
    Ask the LLM for job listings in an email body.

    Listings without a title or URL are dropped.

    Raises:
        GenerationError: If the call fails or the response is not parseable
    """
    if not html:
        return []

    provider = _resolve_provider(provider)
    prompt = build_extract_jobs_prompt(html_to_text(html))
    response = provider.generate(prompt, max_tokens=2000)

    try:
        result = provider._parse_json_response(response)
    except ValueError as e:
        raise GenerationError(str(e)) from e

    raw_jobs = result.get("jobs", []) if isinstance(result, dict) else []
    notes = result.get("parsing_notes") if isinstance(result, dict) else None
    if notes:
        logger.info(f"AI parsing notes: {notes}")

    candidates = []
    for item in raw_jobs:
        try:
            candidates.append(JobCandidate.from_dict(item))
        except ValueError as e:
            logger.debug(f"Skipping extracted listing: {e}")

    logger.info(f"AI extracted {len(candidates)} of {len(raw_jobs)} listings")
    return candidates


def manual_entry_template(url: str) -> Dict[str, Any]:
    """Empty job fields for the user to fill in by hand."""
    return {
        "title": "",
        "company": "",
        "location": "",
        "description": "",
        "salary": "",
        "requirements": [],
        "applicationUrl": url,
    }


def fetch_page_text(url: str, timeout: float = FETCH_TIMEOUT) -> str:
    """Download a page and reduce it to visible text."""
    response = requests.get(url, timeout=timeout, headers={"User-Agent": USER_AGENT})
    response.raise_for_status()
    return html_to_text(response.text)


def extract_job_from_url(
    url: str, provider: Optional[AIProvider] = None, timeout: float = FETCH_TIMEOUT
) -> ExtractedJob:
    """
    Extract title, company, location, description, salary and requirements from a posting URL.

    On any failure the result carries a manual-entry template and the error.
    """
    try:
        page_text = fetch_page_text(url, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch job page: {e}")
        return ExtractedJob(
            success=False, job=manual_entry_template(url), error=f"Could not fetch page: {e}"
        )

    if not page_text:
        return ExtractedJob(
            success=False, job=manual_entry_template(url), error="Page has no readable content"
        )

    try:
        provider = _resolve_provider(provider)
        response = provider.generate(build_extract_job_prompt(url, page_text), max_tokens=1500)
        data = provider._parse_json_response(response)
    except (GenerationError, ValueError) as e:
        logger.error(f"Job extraction failed: {e}")
        return ExtractedJob(success=False, job=manual_entry_template(url), error=str(e))

    job = manual_entry_template(url)
    if isinstance(data, dict):
        for key in ("title", "company", "location", "description", "salary"):
            value = data.get(key)
            if value:
                job[key] = str(value).strip()
        requirements = data.get("requirements")
        if isinstance(requirements, list):
            job["requirements"] = [str(r).strip() for r in requirements if str(r).strip()]

    return ExtractedJob(success=True, job=job)
