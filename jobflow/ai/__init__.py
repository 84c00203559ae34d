"""
AI Package - text generation for JobFlow

Supports Claude and Gemini behind a shared provider interface.

Usage:
    from jobflow.ai import generate_cover_letter, customize_resume

    result = generate_cover_letter(title, company, description, resume_text)
    if not result.success:
        print(result.error)
"""

from .base import AIProvider, GenerationError
from .factory import describe_providers, get_provider
from .generation import (
    ExtractedJob,
    GenerationResult,
    customize_resume,
    extract_job_from_url,
    extract_jobs_from_email_html,
    generate_cover_letter,
    is_placeholder_company,
)
from .local import extract_keywords, local_customize_resume, local_generate_cover_letter

__all__ = [
    "AIProvider",
    "GenerationError",
    "get_provider",
    "describe_providers",
    "GenerationResult",
    "ExtractedJob",
    "generate_cover_letter",
    "customize_resume",
    "extract_jobs_from_email_html",
    "extract_job_from_url",
    "is_placeholder_company",
    "extract_keywords",
    "local_generate_cover_letter",
    "local_customize_resume",
]
