"""
Health Routes Blueprint - liveness probe (no authentication)
"""

import logging

from flask import Blueprint, jsonify

from jobflow.ai.factory import describe_providers

from .helpers import get_app_config

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/api/health")
def health():
    """
    Route: GET /api/health

    Returns:
        JSON: {status, env, extractor, aiProvider, providers}
    """
    config = get_app_config()
    return jsonify(
        {
            "status": "ok",
            "env": config.env,
            "extractor": config.scan_extractor,
            "aiProvider": config.ai_provider,
            "providers": describe_providers(),
        }
    )
