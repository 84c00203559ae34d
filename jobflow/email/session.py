"""
Email sessions - in-memory, per-user mail connections

A connected account (including its access token) lives only in process
memory and is dropped on disconnect or restart. Connect, disconnect and scan
are serialized per user: a second scan, or a reconnect while a scan runs, is
refused instead of racing the running scan's credential.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from jobflow.models import EmailAccount, utc_now_iso

from .scanner import ScanSignal

logger = logging.getLogger(__name__)


class SessionBusyError(Exception):
    """Raised when an operation would race a running scan."""


class EmailSession:
    """Mail connection state for one user."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.account: Optional[EmailAccount] = None
        self.signal: Optional[ScanSignal] = None
        self._scan_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self.account is not None and self.account.is_connected

    @property
    def scanning(self) -> bool:
        return self._scan_lock.locked()

    @contextmanager
    def scan_guard(self) -> Iterator[ScanSignal]:
        """
        Hold the session for the duration of a scan.

        Yields:
            The ScanSignal the scan must honor

        Raises:
            SessionBusyError: If a scan is already running
        """
        if not self._scan_lock.acquire(blocking=False):
            raise SessionBusyError("A scan is already running")
        self.signal = ScanSignal()
        try:
            yield self.signal
        finally:
            self.signal = None
            self._scan_lock.release()

    def cancel_scan(self, reason: str = "user") -> bool:
        """Cancel the running scan, if any. Returns True when one was signalled."""
        signal = self.signal
        if signal is None:
            return False
        return signal.cancel(reason)

    def mark_synced(self) -> None:
        if self.account is not None:
            self.account.last_synced = utc_now_iso()

    def to_dict(self) -> Dict:
        """Public view of the session; never includes the token."""
        return {
            "connected": self.connected,
            "scanning": self.scanning,
            "account": self.account.to_public_dict() if self.account else None,
        }


class SessionRegistry:
    """Thread-safe map of user id -> EmailSession."""

    def __init__(self):
        self._sessions: Dict[str, EmailSession] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> EmailSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None:
                session = EmailSession(user_id)
                self._sessions[user_id] = session
            return session

    def connect(self, user_id: str, account: EmailAccount) -> EmailSession:
        """
        Attach an account to the user's session, replacing any previous one.

        Raises:
            SessionBusyError: If a scan is running for this user
        """
        session = self.get(user_id)
        if not session._scan_lock.acquire(blocking=False):
            raise SessionBusyError("Cannot reconnect while a scan is running")
        try:
            session.account = account
        finally:
            session._scan_lock.release()
        logger.info(f"Mail account connected for user {user_id} ({account.provider})")
        return session

    def disconnect(self, user_id: str) -> bool:
        """
        Drop the user's credential. A running scan is cancelled; it keeps the
        client it already holds and finishes its current batch.

        Returns:
            True if an account was connected
        """
        session = self.get(user_id)
        session.cancel_scan("disconnect")
        had_account = session.account is not None
        session.account = None
        if had_account:
            logger.info(f"Mail account disconnected for user {user_id}")
        return had_account

    def clear(self) -> None:
        """Forget every session (tests, shutdown)."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.cancel_scan("disconnect")
            session.account = None
