"""
Routes Package - Flask Blueprints for JobFlow

Blueprint structure:
- health_bp: liveness probe (no auth)
- jobs_bp: job CRUD and status pipeline
- profile_bp: user profile
- email_bp: session-only mailbox connection and inbox scans
- generate_bp: cover letters, tailored resumes, job extraction
"""

import logging

from flask import jsonify

from jobflow.database import StoreError

from .email import email_bp
from .generate import generate_bp
from .health import health_bp
from .helpers import BadRequest
from .jobs import jobs_bp
from .profile import profile_bp

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = (health_bp, jobs_bp, profile_bp, email_bp, generate_bp)


def register_all_blueprints(app):
    """
    Register all Flask blueprints and API error handlers with the application.

    Args:
        app: Flask application instance
    """
    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)
    logger.info(f"Registered {len(ALL_BLUEPRINTS)} blueprints")

    register_error_handlers(app)


def register_error_handlers(app):
    @app.errorhandler(BadRequest)
    def handle_bad_request(e):
        body = {"error": e.message}
        if e.details:
            body["details"] = e.details
        return jsonify(body), 400

    @app.errorhandler(StoreError)
    def handle_store_error(e):
        logger.error(f"Store failure: {e}")
        return jsonify({"error": "Internal server error"}), 500


__all__ = [
    "register_all_blueprints",
    "health_bp",
    "jobs_bp",
    "profile_bp",
    "email_bp",
    "generate_bp",
]
