"""
JobFlow - Application Factory

Job-search tracker API: Gmail job-alert scanning, match scoring against the
user's preferences, a per-user job pipeline, and AI-assisted application
documents.
"""

import logging
import os

from flask import Flask
from flask_cors import CORS

from jobflow.auth import TokenVerifier
from jobflow.config import get_config, set_config
from jobflow.database import JobStore, init_db
from jobflow.email.session import SessionRegistry

logger = logging.getLogger(__name__)

__version__ = "1.0.0"


def create_app(config=None, config_path=None):
    """
    Application factory for creating Flask app instances.

    Args:
        config: Optional Config instance (tests pass one built from overrides)
        config_path: Optional path to config.yaml, used when config is None

    Returns:
        Configured Flask application instance
    """
    # Load environment variables
    from dotenv import load_dotenv

    load_dotenv()

    # Load configuration
    if config is None:
        try:
            config = get_config(config_path)
        except FileNotFoundError as e:
            logger.error(f"Configuration Error: {e}")
            raise
    else:
        set_config(config)

    # Generation degrades to an error response without a key; scanning and tracking still work
    if not (os.getenv("ANTHROPIC_API_KEY") or os.getenv("GOOGLE_API_KEY")):
        logger.warning(
            "No AI provider API key set. Set ANTHROPIC_API_KEY or GOOGLE_API_KEY "
            "to enable cover letters, tailored resumes and AI extraction."
        )

    app = Flask(__name__)
    CORS(app)

    init_db(config.database_path)

    verifier = TokenVerifier.from_config(config)
    if not verifier.configured:
        logger.warning("No auth key configured; every authenticated request will be rejected")

    app.extensions["jobflow"] = {
        "config": config,
        "store": JobStore(config.database_path),
        "sessions": SessionRegistry(),
        "verifier": verifier,
    }

    register_blueprints(app)

    return app


def register_blueprints(app):
    """Register all Flask blueprints."""
    from jobflow.routes import register_all_blueprints

    register_all_blueprints(app)
