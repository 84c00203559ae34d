"""
Tailor Resume Prompt Template
"""

from typing import Optional

TAILOR_RESUME_SYSTEM = (
    "You are a professional resume writer specializing in ATS optimization and "
    "role-specific tailoring."
)


def build_tailor_resume_prompt(
    title: str,
    company: Optional[str],
    description: str,
    resume_text: str,
    email: str = "",
) -> str:
    """Build the prompt for rewriting a resume toward one job."""
    target = company or "your company"
    contact = f"\nContact email: {email}" if email else ""

    return f"""Tailor this resume for a {title} role at {target}.{contact}

RESUME:
{resume_text}

JOB DESCRIPTION:
{description}

TASK:
1. Rewrite bullet points to emphasize experience relevant to this role
2. Do NOT invent employers, titles, dates or skills that are not in the resume
3. Keep the contact information correct and the layout plain text
4. Do not include placeholders

Return only the tailored resume text."""
