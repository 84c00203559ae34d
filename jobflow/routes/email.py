"""
Email Routes Blueprint - session-only Gmail connection and inbox scans

The access token posted to /api/email/connect stays in process memory for the
caller's session only. Scans are serialized per user.
"""

import logging

from flask import Blueprint, g, jsonify

from jobflow.auth import require_auth
from jobflow.email.client import (
    GmailClient,
    GmailError,
    TokenExpiredError,
    build_inbox_query,
    sanitize_token,
)
from jobflow.email.scanner import ScanOrchestrator
from jobflow.email.session import SessionBusyError
from jobflow.models import EmailAccount

from .helpers import (
    BadRequest,
    get_app_config,
    get_sessions,
    get_store,
    json_body,
    optional_json_body,
    token_expired_response,
)

logger = logging.getLogger(__name__)

email_bp = Blueprint("email", __name__)

SUPPORTED_PROVIDERS = ("gmail",)


@email_bp.route("/api/email/connect", methods=["POST"])
@require_auth
def connect():
    """
    Connect a mailbox for this session.

    Route: POST /api/email/connect

    Request Body (JSON):
        - provider: "gmail" (default)
        - accessToken: OAuth access token (a pasted JSON blob or "Bearer ..." is accepted)

    Raises:
        400: Missing token or unsupported provider
        401: Token rejected by Gmail (code TOKEN_EXPIRED)
        409: A scan is running
        502: Gmail API failure
    """
    data = json_body()
    provider = str(data.get("provider") or "gmail").strip().lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise BadRequest(f"Unsupported email provider: {provider}")

    token = sanitize_token(data.get("accessToken") or data.get("access_token"))
    if not token:
        raise BadRequest("Missing access token")

    sessions = get_sessions()
    if sessions.get(g.user_id).scanning:
        return jsonify({"error": "Cannot reconnect while a scan is running"}), 409

    config = get_app_config()
    try:
        client = GmailClient(token, timeout=config.scan_request_timeout)
        profile = client.get_profile()
    except TokenExpiredError:
        return token_expired_response("Gmail rejected the access token. Please sign in again.")
    except GmailError as e:
        logger.error(f"Gmail profile lookup failed: {e}")
        return jsonify({"error": str(e)}), 502

    account = EmailAccount(
        provider=provider,
        email_address=profile.get("emailAddress", ""),
        access_token=token,
    )
    try:
        session = sessions.connect(g.user_id, account)
    except SessionBusyError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"session": session.to_dict()})


@email_bp.route("/api/email/disconnect", methods=["POST"])
@require_auth
def disconnect():
    """Drop the session credential; a running scan is cancelled."""
    was_connected = get_sessions().disconnect(g.user_id)
    return jsonify({"success": True, "wasConnected": was_connected})


@email_bp.route("/api/email/session", methods=["GET"])
@require_auth
def session_status():
    """Connection status. Never includes the token."""
    return jsonify({"session": get_sessions().get(g.user_id).to_dict()})


@email_bp.route("/api/scan", methods=["POST"])
@require_auth
def scan():
    """
    Scan the connected inbox and import detected jobs.

    Route: POST /api/scan

    Request Body (JSON, optional):
        - days: Only messages newer than this many days (default scan.default_days)
        - limit: Max messages to read (capped at scan.max_messages)
        - import: Persist detected jobs (default true)

    Process:
        1. Lists matching messages with the session token
        2. Runs the batch orchestrator against the caller's preferences
        3. Inserts new Detected jobs; jobs the user already has are left untouched

    Returns:
        JSON: {scan: {...}, imported, skipped}

    Raises:
        400: No mailbox connected or invalid options
        401: Gmail session expired (code TOKEN_EXPIRED); partial results are still imported
        409: A scan is already running
        502: Gmail API failure while listing messages
    """
    data = optional_json_body()
    config = get_app_config()

    try:
        days = int(data.get("days", config.scan_default_days))
        limit = int(data.get("limit", config.scan_max_messages))
    except (TypeError, ValueError):
        raise BadRequest("days and limit must be integers")
    if days < 0 or limit < 1:
        raise BadRequest("days must be >= 0 and limit >= 1")
    limit = min(limit, config.scan_max_messages)
    do_import = data.get("import", True) is not False

    sessions = get_sessions()
    session = sessions.get(g.user_id)
    account = session.account
    if account is None or not account.is_connected:
        raise BadRequest("No email account connected")

    store = get_store()
    profile = store.get_profile(g.user_id)
    prefs = profile.preferences if profile else None
    keywords = prefs.target_roles if prefs else []

    try:
        with session.scan_guard() as signal:
            client = GmailClient(account.access_token, timeout=config.scan_request_timeout)
            query = build_inbox_query(days, config.scan_query)
            logger.info(f"Scan started for user {g.user_id} (limit={limit}, days={days})")

            refs = client.list_messages(limit=limit, query=query)
            orchestrator = ScanOrchestrator.from_config(client, config)
            result = orchestrator.scan(refs, prefs, keywords, signal)
    except SessionBusyError as e:
        return jsonify({"error": str(e)}), 409
    except TokenExpiredError:
        sessions.disconnect(g.user_id)
        return token_expired_response()
    except GmailError as e:
        logger.error(f"Gmail listing failed: {e}")
        return jsonify({"error": str(e)}), 502

    counts = {"imported": 0, "skipped": 0}
    if do_import and result.jobs:
        counts = store.import_detected_jobs(g.user_id, result.jobs)

    payload = {"scan": result.to_dict(), **counts}

    if result.auth_expired:
        sessions.disconnect(g.user_id)
        payload.update({"error": result.message, "code": "TOKEN_EXPIRED"})
        return jsonify(payload), 401

    session.mark_synced()
    logger.info(
        f"Scan {result.state.value}: {len(result.jobs)} jobs, "
        f"{counts['imported']} imported, {counts['skipped']} already known"
    )
    return jsonify(payload)


@email_bp.route("/api/scan/cancel", methods=["POST"])
@require_auth
def cancel_scan():
    """Cancel the caller's running scan. Results gathered so far are kept."""
    cancelled = get_sessions().get(g.user_id).cancel_scan("user")
    return jsonify({"cancelled": cancelled})
