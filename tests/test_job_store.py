"""
Tests for the SQLite job and profile store.
"""

import sqlite3

import pytest

from jobflow.database import JobStore, StoreError, init_db
from jobflow.models import Job, JobStatus, UserPreferences, UserProfile


@pytest.fixture
def job_store(tmp_path):
    db_path = tmp_path / "nested" / "jobs.db"
    init_db(db_path)
    return JobStore(db_path)


def make_job(job_id="job-1", **fields):
    defaults = {
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "Berlin",
        "requirements": ["Python", "SQL"],
        "application_url": f"https://acme.example.com/{job_id}",
        "match_score": 80,
        "detected_at": "2024-03-10T09:00:00Z",
    }
    defaults.update(fields)
    return Job(id=job_id, **defaults)


def test_init_db_creates_schema(tmp_path):
    db_path = tmp_path / "fresh.db"
    init_db(db_path)
    init_db(db_path)  # idempotent

    conn = sqlite3.connect(db_path)
    columns = {row[1] for row in conn.execute("PRAGMA table_info(jobs)")}
    conn.close()
    assert {"user_id", "id", "status", "data", "status_changed_at"} <= columns


def test_upsert_and_get(job_store):
    saved = job_store.upsert_job("user-1", make_job())

    assert saved.title == "Backend Engineer"
    assert saved.location == "Berlin"
    assert saved.requirements == ["Python", "SQL"]
    assert job_store.get_job("user-1", "job-1") == saved


def test_upsert_updates_but_keeps_detected_at(job_store):
    job_store.upsert_job("user-1", make_job())

    updated = job_store.upsert_job(
        "user-1", make_job(title="Senior Backend Engineer", detected_at="2030-01-01T00:00:00Z")
    )

    assert updated.title == "Senior Backend Engineer"
    assert updated.detected_at == "2024-03-10T09:00:00Z"
    assert len(job_store.list_jobs("user-1")) == 1


def test_jobs_are_scoped_per_user(job_store):
    job_store.upsert_job("user-1", make_job())

    assert job_store.list_jobs("user-2") == []
    assert job_store.get_job("user-2", "job-1") is None
    assert job_store.delete_job("user-2", "job-1") is False
    assert job_store.get_job("user-1", "job-1") is not None


def test_same_id_for_two_users(job_store):
    job_store.upsert_job("user-1", make_job(title="Mine"))
    job_store.upsert_job("user-2", make_job(title="Theirs"))

    assert job_store.get_job("user-1", "job-1").title == "Mine"
    assert job_store.get_job("user-2", "job-1").title == "Theirs"


def test_list_newest_first(job_store):
    job_store.upsert_job("user-1", make_job("old", detected_at="2024-01-01T00:00:00Z"))
    job_store.upsert_job("user-1", make_job("new", detected_at="2024-06-01T00:00:00Z"))

    assert [j.id for j in job_store.list_jobs("user-1")] == ["new", "old"]


def test_import_detected_skips_known_jobs(job_store):
    """Re-importing a posting never resets a job the user is already tracking."""
    job_store.upsert_job("user-1", make_job(status=JobStatus.APPLIED_MANUAL))

    counts = job_store.import_detected_jobs(
        "user-1", [make_job(title="Rescanned"), make_job("job-2")]
    )

    assert counts == {"imported": 1, "skipped": 1}
    kept = job_store.get_job("user-1", "job-1")
    assert kept.status is JobStatus.APPLIED_MANUAL
    assert kept.title == "Backend Engineer"
    assert job_store.get_job("user-1", "job-2").status is JobStatus.DETECTED


def test_delete(job_store):
    job_store.upsert_job("user-1", make_job())

    assert job_store.delete_job("user-1", "job-1") is True
    assert job_store.delete_job("user-1", "job-1") is False
    assert job_store.list_jobs("user-1") == []


def test_update_status(job_store):
    job_store.upsert_job("user-1", make_job())

    updated = job_store.update_status("user-1", "job-1", JobStatus.SAVED)

    assert updated.status is JobStatus.SAVED
    assert job_store.update_status("user-1", "missing", JobStatus.SAVED) is None


def test_profile_round_trip(job_store):
    assert job_store.get_profile("user-1") is None

    profile = UserProfile(
        id="user-1",
        full_name="Jane Doe",
        email="jane@example.com",
        resume_content="Resume text",
        preferences=UserPreferences(target_roles=["Backend Engineer"], remote_only=True),
    )
    saved = job_store.upsert_profile(profile)

    assert saved.full_name == "Jane Doe"
    assert saved.preferences.target_roles == ["Backend Engineer"]
    assert saved.preferences.remote_only is True
    assert saved.updated_at is not None

    profile.full_name = "Jane Q. Doe"
    assert job_store.upsert_profile(profile).full_name == "Jane Q. Doe"


def test_unreadable_database_raises_store_error(tmp_path):
    db_path = tmp_path / "not-a-db"
    db_path.write_text("this is not sqlite")

    with pytest.raises(StoreError):
        JobStore(db_path).list_jobs("user-1")


def status_changed_at(db_path, job_id="job-1"):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute("SELECT status_changed_at FROM jobs WHERE id = ?", (job_id,)).fetchone()[0]
    finally:
        conn.close()


def backdate_status_change(db_path, job_id="job-1"):
    conn = sqlite3.connect(db_path)
    try:
        conn.execute("UPDATE jobs SET status_changed_at = '2020-01-01T00:00:00Z' WHERE id = ?", (job_id,))
        conn.commit()
    finally:
        conn.close()


def test_upsert_stamps_status_change_only_when_status_moves(job_store):
    job_store.upsert_job("user-1", make_job())
    assert status_changed_at(job_store.db_path) is not None

    backdate_status_change(job_store.db_path)
    job_store.upsert_job("user-1", make_job(title="Renamed"))
    assert status_changed_at(job_store.db_path) == "2020-01-01T00:00:00Z"

    job_store.upsert_job("user-1", make_job(status=JobStatus.SAVED))
    assert status_changed_at(job_store.db_path) != "2020-01-01T00:00:00Z"


def test_import_stamps_status_change(job_store):
    job_store.import_detected_jobs("user-1", [make_job()])
    assert status_changed_at(job_store.db_path) is not None
