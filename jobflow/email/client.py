"""
Gmail Client - Gmail API access with a session-only OAuth access token

The token comes from the connected browser session and is never written to
disk or to the store. Each API call runs on its own HTTP connection so one
client can be shared by the worker threads of a scan batch.
"""

import base64
import json
import logging
import re
import threading
from typing import Any, Dict, List, Optional

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from jobflow.config import DEFAULT_QUERY

logger = logging.getLogger(__name__)

# Gmail API scopes - readonly access to messages
SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

DEFAULT_TIMEOUT = 10

_QUOTES = "\"'“”"


class GmailError(Exception):
    """Mail API failure. ``status`` is the HTTP status when there was one."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TokenExpiredError(GmailError):
    """The access token was rejected (HTTP 401); the user must reconnect."""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Access token expired or revoked", status: int = 401):
        super().__init__(message, status)


def sanitize_token(token: Optional[str]) -> str:
    """
    Normalize a pasted access token.

    Accepts a JSON object with an ``access_token`` key, strips a leading
    ``Bearer `` (any case) and surrounding straight or smart quotes.
    """
    if not token:
        return ""

    t = token.strip()

    if t.startswith("{") and t.endswith("}"):
        try:
            parsed = json.loads(t)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict) and parsed.get("access_token"):
            return str(parsed["access_token"]).strip()

    if t.lower().startswith("bearer "):
        t = t[7:].strip()

    return t.strip(_QUOTES)


def build_inbox_query(days: Optional[int] = None, base_query: str = DEFAULT_QUERY) -> str:
    """
    Build the Gmail search query for a scan.

    Example:
        >>> build_inbox_query(3, "subject:(job OR hiring)")
        'subject:(job OR hiring) newer_than:3d'
    """
    query = (base_query or "").strip()
    if days:
        query = f"{query} newer_than:{int(days)}d".strip()
    return query


def _select_part(parts: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Prefer text/html, then text/plain, then the first match in nested parts."""
    if not isinstance(parts, list):
        return None
    parts = [part for part in parts if isinstance(part, dict)]

    for mime_type in ("text/html", "text/plain"):
        for part in parts:
            if part.get("mimeType") == mime_type:
                return part

    for part in parts:
        if part.get("parts"):
            found = _select_part(part["parts"])
            if found is not None:
                return found
    return None


def decode_base64url(data: str) -> str:
    """
    Decode URL-safe base64 (padding optional) into UTF-8 text.

    Raises:
        ValueError: On malformed base64 or non-UTF-8 bytes
    """
    data = "".join(data.split())
    data = data.replace("-", "+").replace("_", "/")
    data += "=" * (-len(data) % 4)
    return base64.b64decode(data).decode("utf-8")


def decode_body(message: Dict[str, Any]) -> str:
    """
    Extract the readable body from a Gmail message or message payload.

    Args:
        message: Full message resource (with ``payload``) or the payload itself

    Returns:
        Decoded body text, or "" when there is no content or decoding fails
    """
    if not isinstance(message, dict):
        return ""

    payload = message.get("payload", message)
    if not isinstance(payload, dict):
        return ""

    if payload.get("parts"):
        body = (_select_part(payload["parts"]) or {}).get("body")
    else:
        body = payload.get("body")

    data = body.get("data") if isinstance(body, dict) else None
    if not data or not isinstance(data, str):
        return ""

    try:
        return decode_base64url(data)
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to decode email body: {e}")
        return ""


class GmailClient:
    """
    Gmail API client bound to one access token.

    Handles:
    - Listing message ids for a search query
    - Fetching full messages
    - Resolving the connected address
    - Translating API failures into GmailError / TokenExpiredError
    """

    def __init__(self, access_token: str, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize Gmail client.

        Args:
            access_token: OAuth2 access token with gmail.readonly scope
            timeout: Per-request socket timeout in seconds
        """
        token = sanitize_token(access_token)
        if not token:
            raise ValueError("Access token is empty")
        self._creds = Credentials(token=token, scopes=SCOPES)
        self.timeout = timeout
        self._service = None
        self._lock = threading.Lock()

    def get_service(self):
        """Build the Gmail API service on first use."""
        with self._lock:
            if self._service is None:
                self._service = build(
                    "gmail", "v1", credentials=self._creds, cache_discovery=False
                )
            return self._service

    def _execute(self, request) -> Dict[str, Any]:
        # httplib2.Http is not thread-safe; give every call its own connection
        http = google_auth_httplib2.AuthorizedHttp(
            self._creds, http=httplib2.Http(timeout=self.timeout)
        )
        try:
            return request.execute(http=http)
        except HttpError as e:
            raise self._translate_error(e) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise GmailError(f"Gmail API network error: {e}") from e

    @staticmethod
    def _translate_error(error: HttpError) -> GmailError:
        status = int(getattr(error.resp, "status", 0) or 0)
        reason = getattr(error, "reason", None) or str(error)

        if status == 401:
            return TokenExpiredError()
        if status == 403:
            return GmailError(
                "Insufficient permissions. Grant the "
                "https://www.googleapis.com/auth/gmail.readonly scope.",
                status,
            )
        return GmailError(f"Gmail API Error: {status} {reason}", status)

    def list_messages(self, limit: int = 30, query: str = DEFAULT_QUERY) -> List[Dict[str, Any]]:
        """
        Search for messages matching a query.

        Args:
            limit: Maximum number of results to return
            query: Gmail search query string

        Returns:
            List of message references ({"id", "threadId"})

        Raises:
            TokenExpiredError: If the token was rejected
            GmailError: On any other API failure
        """
        service = self.get_service()
        request = service.users().messages().list(userId="me", q=query, maxResults=limit)
        results = self._execute(request)
        messages = results.get("messages", [])
        logger.info(f"Gmail query returned {len(messages)} messages")
        return messages

    def get_message(self, msg_id: str, format: str = "full") -> Dict[str, Any]:
        """
        Get a single email message.

        Args:
            msg_id: Gmail message ID
            format: Response format ('full', 'minimal', 'raw')

        Returns:
            Message dictionary from Gmail API
        """
        service = self.get_service()
        request = service.users().messages().get(userId="me", id=msg_id, format=format)
        return self._execute(request)

    def get_profile(self) -> Dict[str, Any]:
        """Return the mailbox profile ({"emailAddress", "messagesTotal", ...})."""
        service = self.get_service()
        return self._execute(service.users().getProfile(userId="me"))
