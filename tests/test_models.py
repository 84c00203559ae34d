"""
Tests for domain records: payload validation, status parsing and the
status pipeline.
"""

import pytest

from jobflow.models import (
    EmailAccount,
    Job,
    JobCandidate,
    JobStatus,
    UserPreferences,
    UserProfile,
    can_transition,
)


class TestJobStatus:
    def test_parse_values(self):
        assert JobStatus.parse("saved") is JobStatus.SAVED
        assert JobStatus.parse(" Interview ") is JobStatus.INTERVIEW

    def test_legacy_applied(self):
        assert JobStatus.parse("applied") is JobStatus.APPLIED_MANUAL

    def test_missing_defaults_to_detected(self):
        assert JobStatus.parse(None) is JobStatus.DETECTED

    def test_unknown_rejected(self):
        with pytest.raises(ValueError):
            JobStatus.parse("ghosted")


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.DETECTED, JobStatus.SAVED),
            (JobStatus.SAVED, JobStatus.APPLIED_MANUAL),
            (JobStatus.SAVED, JobStatus.APPLIED_AUTO),
            (JobStatus.APPLIED_AUTO, JobStatus.INTERVIEW),
            (JobStatus.INTERVIEW, JobStatus.OFFER),
            (JobStatus.DETECTED, JobStatus.REJECTED),
            (JobStatus.SAVED, JobStatus.SAVED),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.DETECTED, JobStatus.INTERVIEW),
            (JobStatus.SAVED, JobStatus.DETECTED),
            (JobStatus.OFFER, JobStatus.REJECTED),
            (JobStatus.REJECTED, JobStatus.SAVED),
        ],
    )
    def test_refused(self, current, target):
        assert not can_transition(current, target)


class TestJob:
    def test_from_dict_round_trip_fields(self):
        job = Job.from_dict(
            {
                "id": "abc",
                "title": "Backend Engineer",
                "company": "Acme",
                "status": "saved",
                "requirements": "Python, SQL",
                "matchScore": "72.6",
                "salaryRange": "",
            }
        )

        assert job.status is JobStatus.SAVED
        assert job.requirements == ["Python", "SQL"]
        assert job.match_score == 73
        assert job.salary_range is None
        assert job.to_dict()["status"] == "saved"

    def test_id_required(self):
        with pytest.raises(ValueError, match="id"):
            Job.from_dict({"title": "No id"})

    def test_bad_status(self):
        with pytest.raises(ValueError, match="Unknown job status"):
            Job.from_dict({"id": "x", "status": "ghosted"})

    def test_bad_score(self):
        with pytest.raises(ValueError, match="match score"):
            Job.from_dict({"id": "x", "matchScore": "high"})

    def test_bad_requirements(self):
        with pytest.raises(ValueError):
            Job.from_dict({"id": "x", "requirements": {"a": 1}})


class TestCandidate:
    def test_from_dict_defaults(self):
        c = JobCandidate.from_dict({"title": "Platform Engineer", "url": "https://x.example.com/1"})
        assert c.company == "Review Required"
        assert c.location == "Remote/Hybrid"
        assert c.match_score == 100

    def test_requires_url(self):
        with pytest.raises(ValueError, match="URL"):
            JobCandidate.from_dict({"title": "Platform Engineer"})


class TestProfile:
    def test_missing_preferences_are_open(self):
        profile = UserProfile.from_dict({"fullName": "Jane Doe"}, "user-1")
        assert profile.id == "user-1"
        assert profile.preferences == UserPreferences()
        assert profile.preferences.language == "en"

    def test_preferences_parsed(self):
        profile = UserProfile.from_dict(
            {"preferences": {"targetRoles": ["Backend Engineer"], "remoteOnly": "true"}}, "user-1"
        )
        assert profile.preferences.target_roles == ["Backend Engineer"]
        assert profile.preferences.remote_only is True

    def test_client_cannot_choose_id(self):
        profile = UserProfile.from_dict({"id": "someone-else"}, "user-1")
        assert profile.id == "user-1"


def test_email_account_never_exposes_token():
    account = EmailAccount(provider="gmail", email_address="me@example.com", access_token="ya29.secret")

    assert "ya29.secret" not in repr(account)
    assert "ya29.secret" not in str(account.to_public_dict())
