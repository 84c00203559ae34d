"""
Shared helpers for the API blueprints.
"""

from typing import Any, Dict, Optional

from flask import current_app, jsonify, request

from jobflow.config import Config
from jobflow.database import JobStore
from jobflow.email.session import SessionRegistry


class BadRequest(Exception):
    """Invalid request payload; rendered as a 400 with ``message``."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


def _state() -> Dict[str, Any]:
    return current_app.extensions["jobflow"]


def get_store() -> JobStore:
    return _state()["store"]


def get_sessions() -> SessionRegistry:
    return _state()["sessions"]


def get_app_config() -> Config:
    return _state()["config"]


def json_body() -> Dict[str, Any]:
    """The request's JSON object, or BadRequest when it is missing or not an object."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Invalid JSON")
    return data


def optional_json_body() -> Dict[str, Any]:
    """Like json_body, but an empty body means {}."""
    if not request.get_data():
        return {}
    return json_body()


def require_fields(data: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if not str(data.get(name) or "").strip()]
    if missing:
        raise BadRequest("Missing required fields", ", ".join(missing))


def token_expired_response(message: str = "Gmail session expired. Please reconnect."):
    return jsonify({"error": message, "code": "TOKEN_EXPIRED"}), 401
