"""
Local generators - deterministic cover letter and resume drafts without an LLM

Both generators work from keyword frequency in the job description. They are
used when the caller asks for ``mode: "local"`` (offline drafts, no AI credits).
"""

import re
from collections import Counter
from datetime import date
from typing import List, Optional

STOPWORDS = {"the", "and", "or", "a", "an", "in", "on", "at", "to", "for", "of", "with", "by"}

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# From a SUMMARY/OBJECTIVE heading up to the next upper-case heading line
SUMMARY_SECTION = re.compile(r"(?i:SUMMARY|OBJECTIVE)[\s\S]*?(?=\n[A-Z][A-Z _&/]*\s*\n|\Z)")


def extract_keywords(text: str, limit: int = 10) -> List[str]:
    """
    Most frequent words longer than three characters, capitalized.

    Ties keep first-occurrence order.
    """
    words = re.sub(r"[^\w\s]", "", (text or "").lower()).split()
    freq = Counter(w for w in words if w not in STOPWORDS and len(w) > 3)
    return [word.capitalize() for word, _ in freq.most_common(limit)]


def _format_date(day: date) -> str:
    return f"{day:%B} {day.day}, {day.year}"


def local_generate_cover_letter(
    title: str,
    company: Optional[str],
    description: str,
    name: str = "",
    email: str = "",
    today: Optional[date] = None,
) -> str:
    """Template cover letter; ``company`` is None when it is a placeholder."""
    keywords = extract_keywords(description)
    target = company or "Hiring Manager"
    skills = ", ".join(keywords[:3]) or "the areas this role calls for"

    return (
        f"{name}\n{email}\n{_format_date(today or date.today())}\n\n"
        f"{target}\n\n"
        f"RE: Application for {title}\n\n"
        f"Dear {target},\n\n"
        f"I am writing to express my strong interest in the {title} position at {target}. "
        f"Having reviewed the job description, I am excited about the opportunity to contribute "
        f"my skills in {skills} to your team. My experience aligns closely with your "
        f"requirements, and I am eager to discuss how my background can benefit your "
        f"organization.\n\n"
        f"Thank you for your time and consideration.\n\n"
        f"Sincerely,\n\n{name}"
    )


def local_customize_resume(
    title: str,
    company: Optional[str],
    description: str,
    resume_text: str,
    email: str = "",
) -> str:
    """
    Insert a targeted summary into the resume.

    An existing SUMMARY/OBJECTIVE section is replaced; otherwise the summary is
    prepended. Any email address in the resume is replaced with ``email``.
    """
    keywords = extract_keywords(description)
    target = company or "Your Organization"

    summary = (
        f"\nCONTACT: {email}\n\n"
        f"PROFESSIONAL SUMMARY FOR {target.upper()}\n"
        f"{'-' * 50}\n"
        f"Dedicated professional targeting the {title} role. "
        f"Relevant expertise: {', '.join(keywords)}.\n"
    )

    resume = resume_text or ""
    if email:
        resume = EMAIL_PATTERN.sub(email, resume)

    if SUMMARY_SECTION.search(resume):
        return SUMMARY_SECTION.sub(lambda _: summary, resume, count=1)
    return summary + "\n" + resume
