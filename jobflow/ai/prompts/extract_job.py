"""
Extract Job Prompt - pull structured fields out of a single job posting page
"""


def build_extract_job_prompt(url: str, page_text: str, max_chars: int = 15000) -> str:
    """
    Build a prompt for extracting one job posting from page text.

    Args:
        url: The posting URL (context only)
        page_text: Visible text of the fetched page
        max_chars: Maximum characters of page text to include

    Returns:
        Formatted prompt string
    """
    if len(page_text) > max_chars:
        page_text = page_text[:max_chars] + "\n... [TRUNCATED]"

    return f"""Extract job details from this job posting page.

URL: {url}

PAGE CONTENT:
---
{page_text}
---

Return VALID JSON only with these exact fields:
{{
    "title": "",
    "company": "",
    "location": "",
    "description": "",
    "salary": "",
    "requirements": []
}}

Use empty strings or an empty list for anything the page does not state."""
