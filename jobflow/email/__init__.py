"""
Email Package - Gmail integration for JobFlow

Usage:
    from jobflow.email import GmailClient, ScanOrchestrator

    client = GmailClient(access_token)
    refs = client.list_messages(limit=30, query=build_inbox_query(3))
    result = ScanOrchestrator(client).scan(refs, prefs, prefs.target_roles)
"""

from .client import (
    SCOPES,
    GmailClient,
    GmailError,
    TokenExpiredError,
    build_inbox_query,
    decode_base64url,
    decode_body,
    sanitize_token,
)
from .scanner import (
    ScanOrchestrator,
    ScanResult,
    ScanSignal,
    ScanState,
    candidates_to_jobs,
)
from .session import EmailSession, SessionBusyError, SessionRegistry

__all__ = [
    # Client
    "SCOPES",
    "GmailClient",
    "GmailError",
    "TokenExpiredError",
    "build_inbox_query",
    "decode_base64url",
    "decode_body",
    "sanitize_token",
    # Scanner
    "ScanOrchestrator",
    "ScanResult",
    "ScanSignal",
    "ScanState",
    "candidates_to_jobs",
    # Sessions
    "EmailSession",
    "SessionBusyError",
    "SessionRegistry",
]
