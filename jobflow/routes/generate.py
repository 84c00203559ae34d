"""
Generation Routes Blueprint - cover letters, tailored resumes, job extraction

Generation failures are returned verbatim with a 502 so the client can show
them and offer a retry or manual entry.
"""

import logging
from urllib.parse import urlparse

from flask import Blueprint, jsonify

from jobflow.ai import (
    GenerationError,
    customize_resume,
    extract_job_from_url,
    extract_jobs_from_email_html,
    generate_cover_letter,
)
from jobflow.auth import require_auth
from jobflow.parsers import get_parser

from .helpers import BadRequest, json_body, require_fields

logger = logging.getLogger(__name__)

generate_bp = Blueprint("generate", __name__)


def _is_local(data) -> bool:
    return str(data.get("mode") or "").strip().lower() == "local"


@generate_bp.route("/api/cover-letter", methods=["POST"])
@require_auth
def cover_letter():
    """
    Generate a cover letter.

    Route: POST /api/cover-letter

    Request Body (JSON):
        - title, description: required
        - resume: required unless mode is "local"
        - company, name, email: optional
        - mode: "ai" (default) or "local"

    Returns:
        JSON: {success, text, mode}
    """
    data = json_body()
    local = _is_local(data)
    require_fields(data, "title", "description", *(() if local else ("resume",)))

    result = generate_cover_letter(
        title=data["title"],
        company=data.get("company"),
        description=data["description"],
        resume_text=data.get("resume") or "",
        name=data.get("name") or "",
        email=data.get("email") or "",
        local=local,
    )
    if not result.success:
        return jsonify(result.to_dict()), 502
    return jsonify(result.to_dict())


@generate_bp.route("/api/tailor-resume", methods=["POST"])
@require_auth
def tailor_resume():
    """
    Tailor a resume to a job.

    Route: POST /api/tailor-resume

    Request Body (JSON):
        - title, description, resume: required
        - company, email, mode: optional
    """
    data = json_body()
    require_fields(data, "title", "description", "resume")

    result = customize_resume(
        title=data["title"],
        company=data.get("company"),
        description=data["description"],
        resume_text=data["resume"],
        email=data.get("email") or "",
        local=_is_local(data),
    )
    if not result.success:
        return jsonify(result.to_dict()), 502
    return jsonify(result.to_dict())


@generate_bp.route("/api/extract-job", methods=["POST"])
@require_auth
def extract_job():
    """
    Extract job fields from a posting URL.

    On failure the response still carries a manual-entry template in ``job``.
    """
    data = json_body()
    require_fields(data, "url")

    url = str(data["url"]).strip()
    if urlparse(url).scheme not in ("http", "https"):
        raise BadRequest("url must be an http(s) URL")

    result = extract_job_from_url(url)
    if not result.success:
        return jsonify(result.to_dict()), 502
    return jsonify(result.to_dict())


@generate_bp.route("/api/extract-jobs-email", methods=["POST"])
@require_auth
def extract_jobs_email():
    """
    Extract job candidates from an email body.

    Request Body (JSON):
        - html: required
        - keywords: optional allow-list
        - mode: "ai" (default) or "local" for the heuristic extractor
    """
    data = json_body()
    require_fields(data, "html")
    keywords = data.get("keywords") or []
    if not isinstance(keywords, list):
        raise BadRequest("keywords must be a list")

    if _is_local(data):
        candidates = get_parser("heuristic").extract(data["html"], keywords)
    else:
        try:
            candidates = extract_jobs_from_email_html(data["html"])
        except GenerationError as e:
            logger.error(f"Email extraction failed: {e}")
            return jsonify({"error": str(e)}), 502

    return jsonify({"jobs": [c.to_dict() for c in candidates]})
