#!/usr/bin/env python3
"""
JobFlow - Main Entry Point

Uses the application factory pattern via jobflow.create_app().

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development (default), production, testing
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (optional)
    PORT: listen port (default 5000)
"""

import logging
import os
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

APP_DIR = Path(__file__).parent
load_dotenv(APP_DIR / ".env")

from jobflow.config import get_config
from jobflow.logging_config import setup_logging

config = get_config()
flask_env = config.env

setup_logging(config.logging, env=flask_env)
logger = logging.getLogger(__name__)


def main():
    """Main entry point for JobFlow."""
    from jobflow import create_app

    app = create_app(config)
    port = int(os.environ.get("PORT", 5000))

    logger.info("")
    logger.info("=" * 60)
    logger.info("  JobFlow - Job Search Tracker API")
    logger.info("=" * 60)
    logger.info(f"  Environment: {flask_env}")
    logger.info(f"  Database: {config.database_path}")
    logger.info(f"  Extractor: {config.scan_extractor}")
    logger.info(f"  AI provider: {config.ai_provider} ({config.ai_model or 'default model'})")
    logger.info(
        f"  Scan: batches of {config.scan_batch_size}, "
        f"watchdog {config.scan_watchdog_seconds}s"
    )
    logger.info("")
    logger.info(f"  Health Check: http://localhost:{port}/api/health")
    logger.info("=" * 60)
    logger.info("")

    debug_mode = flask_env != "production"
    # Scans block their request; threaded keeps cancel/disconnect responsive
    app.run(debug=debug_mode, host="0.0.0.0", port=port, threaded=True)


if __name__ == "__main__":
    main()
