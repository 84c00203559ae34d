"""
Extract Jobs Prompt - AI prompt for extracting job listings from email content
"""


def build_extract_jobs_prompt(email_text: str, max_chars: int = 20000) -> str:
    """
    Build a prompt for extracting job listings from an email body.

    Args:
        email_text: Preprocessed email content (will be truncated if too long)
        max_chars: Maximum characters of content to include

    Returns:
        Formatted prompt string
    """
    if len(email_text) > max_chars:
        email_text = email_text[:max_chars] + "\n... [TRUNCATED]"

    return f"""Identify all job listings in this email.

For each job posting found, extract:
- title: The job title/position name
- company: The company name
- location: Job location (city, state, remote, etc.)
- applicationUrl: The job posting or application URL (full URL)

Return a JSON object with this exact structure:
{{
    "jobs": [
        {{
            "title": "Job Title Here",
            "company": "Company Name",
            "location": "City, State or Remote",
            "applicationUrl": "https://example.com/job/123"
        }}
    ],
    "parsing_notes": "Any notes about parsing issues or uncertainty"
}}

Important rules:
1. If a field is missing, use empty string ""
2. Skip listings that have no URL
3. If you can't find any jobs, return {{"jobs": [], "parsing_notes": "explanation"}}
4. Do NOT make up or hallucinate job listings - only extract what's actually in the email

Email content:
---
{email_text}
---

Return ONLY the JSON object, no other text."""
