"""
Cover Letter Prompt Template

This prompt is used for generating tailored cover letters.
"""

from typing import Optional

COVER_LETTER_SYSTEM = (
    "You are an expert career coach writing professional, ATS-optimized cover letters "
    "that stand out."
)


def build_cover_letter_prompt(
    title: str,
    company: Optional[str],
    description: str,
    resume_text: str,
    name: str = "",
    email: str = "",
) -> str:
    """
    Build the prompt for cover letter generation.

    Args:
        title: Job title
        company: Company name, or None when it is a placeholder/unknown
        description: Job description text
        resume_text: Candidate's resume content
        name: Candidate name (optional)
        email: Candidate email (optional)

    Returns:
        str: Formatted prompt string
    """
    target = company or "your company"
    candidate = name or "the candidate"
    if email:
        candidate = f"{candidate} ({email})"

    return f"""Write a professional, high-impact cover letter for the {title} position at {target}.

CANDIDATE: {candidate}

RESUME:
{resume_text}

JOB DESCRIPTION:
{description}

INSTRUCTIONS:
1. Match skills to the specific requirements listed in the job description
2. ONLY cite experience and skills that are explicitly in the resume
3. Maintain a professional, confident and persuasive tone
4. ABSOLUTELY NO placeholders like [Company Name] or [Job Title]. Use the data provided.

Write the cover letter now:"""
