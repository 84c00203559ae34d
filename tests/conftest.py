"""
Pytest configuration and shared fixtures for JobFlow tests.
"""

import base64
import os
import sys
import threading
import time
from datetime import datetime, timedelta

import jwt
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jobflow import create_app
from jobflow.config import Config, reset_config

JWT_SECRET = "jobflow-test-secret-0123456789abcdef"


def make_token(user_id="user-1", secret=JWT_SECRET, expires_in=3600, **claims):
    """Sign an HS256 bearer token the way the identity provider would."""
    payload = {"sub": user_id, "exp": datetime.utcnow() + timedelta(seconds=expires_in)}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def encode_body(text):
    """Gmail-style base64url without padding."""
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def make_message(msg_id, html, plain="Plain text version"):
    """A multipart/alternative Gmail message resource."""
    return {
        "id": msg_id,
        "threadId": f"thread-{msg_id}",
        "payload": {
            "mimeType": "multipart/alternative",
            "parts": [
                {"mimeType": "text/plain", "body": {"data": encode_body(plain)}},
                {"mimeType": "text/html", "body": {"data": encode_body(html)}},
            ],
        },
    }


def alert_html(*links):
    """Job alert email body with one anchor per (href, text) pair plus boilerplate links."""
    anchors = "\n".join(f'<tr><td><a href="{href}">{text}</a></td></tr>' for href, text in links)
    return f"""
    <html>
        <body>
            <table>
                {anchors}
                <tr><td><a href="https://mail.example.com/unsubscribe">Unsubscribe</a></td></tr>
                <tr><td><a href="https://mail.example.com/settings">Manage alert settings</a></td></tr>
            </table>
        </body>
    </html>
    """


class FakeGmailClient:
    """
    In-memory stand-in for GmailClient.

    ``messages`` maps message id to a message resource, or to an exception
    instance that get_message raises. ``delay`` slows every fetch down.
    """

    def __init__(self, messages=None, delay=0.0, email_address="me@example.com"):
        self.messages = dict(messages or {})
        self.delay = delay
        self.email_address = email_address
        self.fetched = []
        self._lock = threading.Lock()

    def list_messages(self, limit=30, query=""):
        return [{"id": msg_id, "threadId": f"thread-{msg_id}"} for msg_id in list(self.messages)[:limit]]

    def get_message(self, msg_id, format="full"):
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.fetched.append(msg_id)
        result = self.messages[msg_id]
        if isinstance(result, Exception):
            raise result
        return result

    def get_profile(self):
        return {"emailAddress": self.email_address, "messagesTotal": len(self.messages)}


@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts without a cached global configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config(tmp_path):
    """
    Configuration backed by a temporary database.

    Environment variables are ignored so a developer's .env cannot leak in.
    """
    return Config(
        overrides={
            "app": {"env": "testing"},
            "database": {"path": str(tmp_path / "jobflow.db")},
            "auth": {"jwt_secret": JWT_SECRET},
            "scan": {"batch_pause_seconds": 0},
        },
        use_env=False,
    )


@pytest.fixture
def app(config):
    """Flask application wired to the temporary database."""
    app = create_app(config)
    app.config["TESTING"] = True
    yield app
    app.extensions["jobflow"]["sessions"].clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Authorization header for user-1."""
    return {"Authorization": f"Bearer {make_token('user-1')}"}


@pytest.fixture
def other_auth_headers():
    """Authorization header for a second, unrelated user."""
    return {"Authorization": f"Bearer {make_token('user-2')}"}


@pytest.fixture
def store(app):
    return app.extensions["jobflow"]["store"]


@pytest.fixture
def sessions(app):
    return app.extensions["jobflow"]["sessions"]


@pytest.fixture
def sample_alert_email():
    """
    A LinkedIn-style alert with two postings and the usual footer links.

    Returns:
        str: HTML content of the alert
    """
    return alert_html(
        ("https://www.linkedin.com/jobs/view/1234567890?refId=abc&trk=email", "Senior Backend Engineer"),
        ("https://www.indeed.com/viewjob?jk=abc123&tk=xyz", "Data Analyst"),
    )


@pytest.fixture
def sample_resume_text():
    """
    Sample resume text for generation tests.

    Returns:
        str: Resume content
    """
    return """Jane Doe
jane.old@example.com | Berlin

SUMMARY
Backend developer with five years of Python experience.
EXPERIENCE
Software Engineer | TechCompany | 2021-Present
- Built REST APIs with Flask and PostgreSQL
"""
