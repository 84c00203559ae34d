"""
Profile Routes Blueprint - one profile per authenticated user
"""

import logging

from flask import Blueprint, g, jsonify

from jobflow.auth import require_auth
from jobflow.models import UserProfile

from .helpers import BadRequest, get_store, json_body

logger = logging.getLogger(__name__)

profile_bp = Blueprint("profile", __name__)


@profile_bp.route("/api/profile", methods=["GET"])
@require_auth
def get_profile():
    """
    Route: GET /api/profile

    Returns:
        JSON: {profile: {...}} or {profile: null} before the first save
    """
    profile = get_store().get_profile(g.user_id)
    return jsonify({"profile": profile.to_dict() if profile else None})


@profile_bp.route("/api/profile", methods=["POST"])
@require_auth
def save_profile():
    """
    Insert or replace the caller's profile.

    Missing preferences are normalized to open filters (no roles, no
    locations, remoteOnly false, language "en").
    """
    data = json_body()
    try:
        profile = UserProfile.from_dict(data, g.user_id)
    except ValueError as e:
        raise BadRequest("Invalid profile payload", str(e))

    saved = get_store().upsert_profile(profile)
    return jsonify({"profile": saved.to_dict()})
