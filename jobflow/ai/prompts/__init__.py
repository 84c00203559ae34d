"""
Shared AI Prompt Templates

Prompt templates shared across all AI providers, so output format is the same
regardless of which backend is configured.
"""

from .cover_letter import COVER_LETTER_SYSTEM, build_cover_letter_prompt
from .extract_job import build_extract_job_prompt
from .extract_jobs import build_extract_jobs_prompt
from .tailor_resume import TAILOR_RESUME_SYSTEM, build_tailor_resume_prompt

__all__ = [
    "COVER_LETTER_SYSTEM",
    "TAILOR_RESUME_SYSTEM",
    "build_cover_letter_prompt",
    "build_tailor_resume_prompt",
    "build_extract_jobs_prompt",
    "build_extract_job_prompt",
]
