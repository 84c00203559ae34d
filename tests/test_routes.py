"""
Tests for the HTTP surface: authentication, per-user isolation, the job
pipeline, profiles, mailbox sessions, scans and generation endpoints.

Gmail is replaced by FakeGmailClient through the route module's GmailClient.
"""

from unittest.mock import patch

import pytest

from conftest import FakeGmailClient, alert_html, make_message, make_token
from jobflow.ai import GenerationError
from jobflow.email.client import TokenExpiredError
from jobflow.models import EmailAccount


def job_payload(job_id="job-1", **fields):
    payload = {
        "id": job_id,
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Berlin",
        "status": "detected",
        "matchScore": 80,
        "applicationUrl": f"https://acme.example.com/{job_id}",
    }
    payload.update(fields)
    return payload


class TestAuth:
    def test_health_is_public(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["env"] == "testing"
        assert body["extractor"] == "heuristic"

    def test_missing_token(self, client):
        response = client.get("/api/jobs")

        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}

    def test_wrong_signature(self, client):
        token = make_token(secret="some-other-secret-0123456789abcdef")
        response = client.get("/api/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.get_json() == {"error": "Unauthorized"}

    def test_expired_token(self, client):
        token = make_token(expires_in=-60)
        response = client.get("/api/jobs", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_non_bearer_scheme(self, client):
        response = client.get("/api/jobs", headers={"Authorization": f"Token {make_token()}"})

        assert response.status_code == 401

    def test_user_id_claim_alternatives(self, client, store):
        token = make_token(user_id="", userId="user-9")
        headers = {"Authorization": f"Bearer {token}"}

        client.post("/api/jobs", json=job_payload(), headers=headers)

        assert store.get_job("user-9", "job-1") is not None


class TestJobs:
    def test_empty_list(self, client, auth_headers):
        response = client.get("/api/jobs", headers=auth_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["jobs"] == []
        assert body["stats"]["total"] == 0
        assert len(body["activity"]) == 7

    def test_save_and_list(self, client, auth_headers):
        response = client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["job"]["location"] == "Berlin"

        body = client.get("/api/jobs", headers=auth_headers).get_json()
        assert [j["id"] for j in body["jobs"]] == ["job-1"]
        assert body["stats"]["detected"] == 1

    def test_invalid_payload(self, client, auth_headers):
        response = client.post("/api/jobs", json={"title": "No id"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid Job payload"

    def test_non_json_body(self, client, auth_headers):
        response = client.post("/api/jobs", data="not json", headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid JSON"

    def test_users_are_isolated(self, client, auth_headers, other_auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        assert client.get("/api/jobs", headers=other_auth_headers).get_json()["jobs"] == []

        response = client.delete("/api/jobs?id=job-1", headers=other_auth_headers)
        assert response.get_json() == {"success": True, "deleted": False}
        assert len(client.get("/api/jobs", headers=auth_headers).get_json()["jobs"]) == 1

    def test_delete(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        response = client.delete("/api/jobs?id=job-1", headers=auth_headers)

        assert response.get_json() == {"success": True, "deleted": True}
        assert client.get("/api/jobs", headers=auth_headers).get_json()["jobs"] == []

    def test_delete_requires_id(self, client, auth_headers):
        assert client.delete("/api/jobs", headers=auth_headers).status_code == 400


class TestStatus:
    def patch_status(self, client, headers, status, job_id="job-1"):
        return client.patch(f"/api/jobs/{job_id}/status", json={"status": status}, headers=headers)

    def test_forward_move(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        response = self.patch_status(client, auth_headers, "saved")

        assert response.status_code == 200
        assert response.get_json()["job"]["status"] == "saved"

    def test_skipping_stages_refused(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        response = self.patch_status(client, auth_headers, "interview")

        assert response.status_code == 409
        assert response.get_json()["status"] == "detected"

    def test_reject_from_any_active_stage(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        assert self.patch_status(client, auth_headers, "rejected").status_code == 200

    def test_unknown_status(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        assert self.patch_status(client, auth_headers, "ghosted").status_code == 400

    def test_missing_status(self, client, auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        response = client.patch("/api/jobs/job-1/status", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_missing_job(self, client, auth_headers):
        assert self.patch_status(client, auth_headers, "saved", job_id="nope").status_code == 404

    def test_other_users_job_is_not_found(self, client, auth_headers, other_auth_headers):
        client.post("/api/jobs", json=job_payload(), headers=auth_headers)

        assert self.patch_status(client, other_auth_headers, "saved").status_code == 404


class TestProfile:
    def test_no_profile_yet(self, client, auth_headers):
        response = client.get("/api/profile", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json() == {"profile": None}

    def test_save_and_load(self, client, auth_headers):
        payload = {
            "id": "someone-else",
            "fullName": "Jane Doe",
            "preferences": {"targetRoles": ["Backend Engineer"], "targetLocations": ["Berlin"]},
        }

        saved = client.post("/api/profile", json=payload, headers=auth_headers).get_json()["profile"]
        loaded = client.get("/api/profile", headers=auth_headers).get_json()["profile"]

        assert saved["id"] == "user-1"
        assert loaded["fullName"] == "Jane Doe"
        assert loaded["preferences"]["targetRoles"] == ["Backend Engineer"]
        assert loaded["preferences"]["language"] == "en"

    def test_invalid_preferences(self, client, auth_headers):
        response = client.post(
            "/api/profile", json={"preferences": "everything"}, headers=auth_headers
        )

        assert response.status_code == 400


@pytest.fixture
def gmail():
    """A fake mailbox with one alert and one unrelated email, patched into the routes."""
    fake = FakeGmailClient(
        {
            "m1": make_message(
                "m1",
                alert_html(
                    ("https://www.linkedin.com/jobs/view/111?trk=email", "Senior Backend Engineer"),
                    ("https://www.linkedin.com/jobs/view/222?trk=email", "Data Analyst"),
                ),
            ),
            "m2": make_message("m2", "<p>Your order has shipped</p>"),
        }
    )
    with patch("jobflow.routes.email.GmailClient", return_value=fake) as factory:
        factory.fake = fake
        yield factory


def connect(client, headers, token="ya29.session-token"):
    return client.post("/api/email/connect", json={"accessToken": token}, headers=headers)


class TestEmailSession:
    def test_connect(self, client, auth_headers, gmail):
        response = connect(client, auth_headers, token='Bearer "ya29.session-token"')

        assert response.status_code == 200
        session = response.get_json()["session"]
        assert session["connected"] is True
        assert session["account"]["emailAddress"] == "me@example.com"
        assert "ya29.session-token" not in response.get_data(as_text=True)
        gmail.assert_called_once()
        assert gmail.call_args[0][0] == "ya29.session-token"

    def test_connect_requires_token(self, client, auth_headers):
        response = client.post("/api/email/connect", json={}, headers=auth_headers)

        assert response.status_code == 400

    def test_unsupported_provider(self, client, auth_headers):
        response = client.post(
            "/api/email/connect",
            json={"provider": "outlook", "accessToken": "x"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    def test_rejected_token(self, client, auth_headers, gmail):
        def rejected():
            raise TokenExpiredError()

        gmail.fake.get_profile = rejected

        response = connect(client, auth_headers)

        assert response.status_code == 401
        assert response.get_json()["code"] == "TOKEN_EXPIRED"
        status = client.get("/api/email/session", headers=auth_headers).get_json()
        assert status["session"]["connected"] is False

    def test_sessions_are_per_user(self, client, auth_headers, other_auth_headers, gmail):
        connect(client, auth_headers)

        status = client.get("/api/email/session", headers=other_auth_headers).get_json()

        assert status["session"]["connected"] is False

    def test_disconnect(self, client, auth_headers, gmail):
        connect(client, auth_headers)

        response = client.post("/api/email/disconnect", headers=auth_headers)

        assert response.get_json() == {"success": True, "wasConnected": True}
        status = client.get("/api/email/session", headers=auth_headers).get_json()
        assert status["session"]["connected"] is False

    def test_reconnect_during_scan_refused(self, client, auth_headers, sessions, gmail):
        connect(client, auth_headers)

        with sessions.get("user-1").scan_guard():
            response = connect(client, auth_headers)

        assert response.status_code == 409


class TestScan:
    def save_profile(self, client, headers, **preferences):
        client.post("/api/profile", json={"preferences": preferences}, headers=headers)

    def test_requires_connection(self, client, auth_headers):
        response = client.post("/api/scan", headers=auth_headers)

        assert response.status_code == 400

    def test_scan_imports_matching_jobs(self, client, auth_headers, gmail):
        connect(client, auth_headers)
        self.save_profile(client, auth_headers, targetRoles=["Backend Engineer"])

        response = client.post("/api/scan", json={"days": 7}, headers=auth_headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["scan"]["state"] == "succeeded"
        assert body["scan"]["messagesProcessed"] == 2
        assert body["imported"] == 1
        assert [j["title"] for j in body["scan"]["jobs"]] == ["Senior Backend Engineer"]
        assert body["scan"]["jobs"][0]["matchScore"] == 80

        jobs = client.get("/api/jobs", headers=auth_headers).get_json()["jobs"]
        assert len(jobs) == 1
        assert jobs[0]["status"] == "detected"
        assert jobs[0]["source"] == "Gmail"

        session = client.get("/api/email/session", headers=auth_headers).get_json()["session"]
        assert session["account"]["lastSynced"] is not None

    def test_rescan_keeps_tracked_status(self, client, auth_headers, gmail):
        connect(client, auth_headers)
        self.save_profile(client, auth_headers, targetRoles=["Backend Engineer"])
        client.post("/api/scan", headers=auth_headers)
        job_id = client.get("/api/jobs", headers=auth_headers).get_json()["jobs"][0]["id"]
        client.patch(f"/api/jobs/{job_id}/status", json={"status": "saved"}, headers=auth_headers)

        body = client.post("/api/scan", headers=auth_headers).get_json()

        assert body["imported"] == 0
        assert body["skipped"] == 1
        jobs = client.get("/api/jobs", headers=auth_headers).get_json()["jobs"]
        assert jobs[0]["status"] == "saved"

    def test_without_profile_every_job_is_kept(self, client, auth_headers, gmail):
        connect(client, auth_headers)

        body = client.post("/api/scan", headers=auth_headers).get_json()

        assert body["imported"] == 2

    def test_no_matches(self, client, auth_headers, gmail):
        connect(client, auth_headers)
        self.save_profile(client, auth_headers, targetRoles=["Pastry Chef"])

        body = client.post("/api/scan", headers=auth_headers).get_json()

        assert body["scan"]["noMatches"] is True
        assert body["imported"] == 0

    def test_import_can_be_skipped(self, client, auth_headers, gmail):
        connect(client, auth_headers)

        body = client.post("/api/scan", json={"import": False}, headers=auth_headers).get_json()

        assert len(body["scan"]["jobs"]) == 2
        assert body["imported"] == 0
        assert client.get("/api/jobs", headers=auth_headers).get_json()["jobs"] == []

    def test_invalid_options(self, client, auth_headers, gmail):
        connect(client, auth_headers)

        response = client.post("/api/scan", json={"limit": "many"}, headers=auth_headers)

        assert response.status_code == 400

    def test_expired_token_while_listing(self, client, auth_headers, gmail):
        connect(client, auth_headers)

        def expired(limit=30, query=""):
            raise TokenExpiredError()

        gmail.fake.list_messages = expired

        response = client.post("/api/scan", headers=auth_headers)

        assert response.status_code == 401
        assert response.get_json()["code"] == "TOKEN_EXPIRED"
        session = client.get("/api/email/session", headers=auth_headers).get_json()["session"]
        assert session["connected"] is False

    def test_expired_token_mid_scan_keeps_partial_jobs(self, client, auth_headers, gmail):
        connect(client, auth_headers)
        gmail.fake.messages["m2"] = TokenExpiredError()

        response = client.post("/api/scan", headers=auth_headers)

        assert response.status_code == 401
        body = response.get_json()
        assert body["code"] == "TOKEN_EXPIRED"
        assert body["scan"]["state"] == "failed"
        assert body["imported"] == 2

    def test_second_scan_refused(self, client, auth_headers, sessions, gmail):
        connect(client, auth_headers)

        with sessions.get("user-1").scan_guard():
            response = client.post("/api/scan", headers=auth_headers)

        assert response.status_code == 409

    def test_cancel_without_scan(self, client, auth_headers):
        response = client.post("/api/scan/cancel", headers=auth_headers)

        assert response.get_json() == {"cancelled": False}

    def test_cancel_running_scan(self, client, auth_headers, sessions):
        sessions.connect(
            "user-1", EmailAccount(provider="gmail", email_address="me@example.com", access_token="t")
        )

        with sessions.get("user-1").scan_guard() as signal:
            response = client.post("/api/scan/cancel", headers=auth_headers)
            assert signal.cancelled
            assert signal.reason == "user"

        assert response.get_json() == {"cancelled": True}

    def test_disconnect_cancels_running_scan(self, client, auth_headers, sessions):
        sessions.connect(
            "user-1", EmailAccount(provider="gmail", email_address="me@example.com", access_token="t")
        )

        with sessions.get("user-1").scan_guard() as signal:
            client.post("/api/email/disconnect", headers=auth_headers)
            assert signal.reason == "disconnect"


class TestGeneration:
    def test_cover_letter_local(self, client, auth_headers):
        response = client.post(
            "/api/cover-letter",
            json={"title": "Backend Engineer", "description": "Python APIs", "mode": "local"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["mode"] == "local"
        assert "Backend Engineer" in body["text"]

    def test_cover_letter_requires_resume_for_ai(self, client, auth_headers):
        response = client.post(
            "/api/cover-letter",
            json={"title": "Backend Engineer", "description": "Python APIs"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.get_json()["details"] == "resume"

    def test_cover_letter_provider_failure(self, client, auth_headers):
        with patch("jobflow.ai.generation._resolve_provider", side_effect=GenerationError("no key")):
            response = client.post(
                "/api/cover-letter",
                json={"title": "Backend Engineer", "description": "Python", "resume": "CV"},
                headers=auth_headers,
            )

        assert response.status_code == 502
        assert response.get_json()["error"] == "no key"

    def test_tailor_resume_local(self, client, auth_headers):
        response = client.post(
            "/api/tailor-resume",
            json={
                "title": "Backend Engineer",
                "company": "Acme",
                "description": "Python APIs",
                "resume": "SUMMARY\nOld\nEXPERIENCE\nStuff",
                "mode": "local",
            },
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert "PROFESSIONAL SUMMARY FOR ACME" in response.get_json()["text"]

    def test_tailor_resume_missing_fields(self, client, auth_headers):
        response = client.post("/api/tailor-resume", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["details"] == "description, resume"

    def test_extract_job_rejects_non_http(self, client, auth_headers):
        response = client.post(
            "/api/extract-job", json={"url": "file:///etc/passwd"}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_extract_job_failure_returns_template(self, client, auth_headers):
        with patch("jobflow.ai.generation._resolve_provider", side_effect=GenerationError("no key")), patch(
            "jobflow.ai.generation.fetch_page_text", return_value="Backend Engineer at Acme"
        ):
            response = client.post(
                "/api/extract-job", json={"url": "https://acme.example.com/1"}, headers=auth_headers
            )

        assert response.status_code == 502
        body = response.get_json()
        assert body["job"]["applicationUrl"] == "https://acme.example.com/1"
        assert body["error"] == "no key"

    def test_extract_jobs_email_local(self, client, auth_headers, sample_alert_email):
        response = client.post(
            "/api/extract-jobs-email",
            json={"html": sample_alert_email, "mode": "local", "keywords": ["analyst"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert [j["title"] for j in response.get_json()["jobs"]] == ["Data Analyst"]

    def test_extract_jobs_email_ai_failure(self, client, auth_headers):
        with patch("jobflow.ai.generation._resolve_provider", side_effect=GenerationError("no key")):
            response = client.post(
                "/api/extract-jobs-email", json={"html": "<p>jobs</p>"}, headers=auth_headers
            )

        assert response.status_code == 502
