"""
Database - persistence for jobs and profiles

SQLite store behind the HTTP surface. Every row is owned by one user id and
every query is scoped by it, so one caller can never read or change another
caller's records. Mail credentials are never stored here.
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from jobflow.models import Job, JobStatus, UserPreferences, UserProfile, utc_now_iso

logger = logging.getLogger(__name__)

# Descriptive fields kept in the JSON ``data`` column
DATA_FIELDS = ("location", "salaryRange", "requirements", "notes", "logoUrl")


class StoreError(Exception):
    """Raised when the store cannot complete a read or write."""


def get_db(db_path: Union[str, Path]) -> sqlite3.Connection:
    """
    Create and return a database connection with Row factory.

    The 30-second timeout lets concurrent request threads wait for a writer
    instead of failing immediately.

    Examples:
        >>> conn = get_db("jobflow.db")
        >>> row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        >>> print(row['title'])
    """
    conn = sqlite3.connect(str(db_path), timeout=30.0)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Union[str, Path]) -> None:
    """
    Initialize SQLite database with required tables.

    Creates tables for:
    - jobs: one row per (user, job id), descriptive extras in a JSON column
    - profiles: one row per user, preferences as JSON

    Uses WAL (Write-Ahead Logging) mode for better concurrency.
    """
    path = Path(db_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    conn = get_db(path)
    try:
        conn.execute("PRAGMA journal_mode=WAL")

        conn.execute("""
            CREATE TABLE IF NOT EXISTS jobs (
                user_id TEXT NOT NULL,
                id TEXT NOT NULL,
                title TEXT,
                company TEXT,
                description TEXT,
                status TEXT DEFAULT 'detected',
                source TEXT DEFAULT 'Manual',
                application_url TEXT,
                custom_resume TEXT,
                cover_letter TEXT,
                match_score INTEGER DEFAULT 0,
                data TEXT,
                detected_at TEXT,
                created_at TEXT,
                updated_at TEXT,
                status_changed_at TEXT,
                PRIMARY KEY (user_id, id)
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS profiles (
                user_id TEXT PRIMARY KEY,
                full_name TEXT,
                email TEXT,
                phone TEXT,
                resume_content TEXT,
                resume_file_name TEXT,
                preferences TEXT,
                plan TEXT DEFAULT 'free',
                daily_ai_credits INTEGER DEFAULT 0,
                total_ai_used INTEGER DEFAULT 0,
                updated_at TEXT
            )
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_jobs_user ON jobs(user_id, detected_at)")

        conn.commit()
    finally:
        conn.close()

    logger.info(f"Database initialized at {path}")


def _job_data(job: Job) -> str:
    wire = job.to_dict()
    return json.dumps({key: wire[key] for key in DATA_FIELDS})


def _row_to_job(row: sqlite3.Row) -> Job:
    try:
        data = json.loads(row["data"]) if row["data"] else {}
    except json.JSONDecodeError:
        logger.warning(f"Corrupt data column for job {row['id']}")
        data = {}

    payload: Dict[str, Any] = dict(data)
    payload.update(
        {
            "id": row["id"],
            "title": row["title"],
            "company": row["company"],
            "description": row["description"],
            "status": row["status"],
            "source": row["source"],
            "detectedAt": row["detected_at"] or row["created_at"],
            "applicationUrl": row["application_url"],
            "customizedResume": row["custom_resume"],
            "coverLetter": row["cover_letter"],
            "matchScore": row["match_score"],
        }
    )
    return Job.from_dict(payload)


def _row_to_profile(row: sqlite3.Row) -> UserProfile:
    try:
        prefs = json.loads(row["preferences"]) if row["preferences"] else {}
    except json.JSONDecodeError:
        prefs = {}

    profile = UserProfile(
        id=row["user_id"],
        full_name=row["full_name"] or "",
        email=row["email"] or "",
        phone=row["phone"] or "",
        resume_content=row["resume_content"] or "",
        resume_file_name=row["resume_file_name"] or "",
        preferences=UserPreferences.from_dict(prefs if isinstance(prefs, dict) else {}),
        plan=row["plan"] or "free",
        daily_ai_credits=row["daily_ai_credits"] or 0,
        total_ai_used=row["total_ai_used"] or 0,
        updated_at=row["updated_at"],
    )
    return profile


class JobStore:
    """
    Per-user job and profile persistence.

    Each method opens its own connection, so one store can be shared across
    request threads. sqlite3 failures surface as StoreError.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)

    def _connect(self) -> sqlite3.Connection:
        try:
            return get_db(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Database connection failed: {e}")
            raise StoreError(str(e)) from e

    # ===== JOBS =====

    def list_jobs(self, user_id: str) -> List[Job]:
        """All jobs owned by ``user_id``, newest first."""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM jobs WHERE user_id = ? ORDER BY detected_at DESC, created_at DESC",
                (user_id,),
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to list jobs: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

        jobs = []
        for row in rows:
            try:
                jobs.append(_row_to_job(row))
            except ValueError as e:
                logger.warning(f"Skipping unreadable job {row['id']}: {e}")
        return jobs

    def get_job(self, user_id: str, job_id: str) -> Optional[Job]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT * FROM jobs WHERE user_id = ? AND id = ?", (user_id, job_id)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return _row_to_job(row) if row else None

    def upsert_job(self, user_id: str, job: Job) -> Job:
        """
        Insert or update a job by id within the caller's jobs.

        ``detected_at`` and ``created_at`` keep their first values;
        ``status_changed_at`` moves only when the status does.

        Returns:
            The persisted record
        """
        now = utc_now_iso()
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO jobs (user_id, id, title, company, description, status, source,
                                  application_url, custom_resume, cover_letter, match_score,
                                  data, detected_at, created_at, updated_at, status_changed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, id) DO UPDATE SET
                    status_changed_at = CASE
                        WHEN jobs.status = excluded.status THEN jobs.status_changed_at
                        ELSE excluded.status_changed_at
                    END,
                    title = excluded.title,
                    company = excluded.company,
                    description = excluded.description,
                    status = excluded.status,
                    source = excluded.source,
                    application_url = excluded.application_url,
                    custom_resume = excluded.custom_resume,
                    cover_letter = excluded.cover_letter,
                    match_score = excluded.match_score,
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (
                    user_id,
                    job.id,
                    job.title,
                    job.company,
                    job.description,
                    job.status.value,
                    job.source,
                    job.application_url,
                    job.customized_resume,
                    job.cover_letter,
                    job.match_score,
                    _job_data(job),
                    job.detected_at,
                    now,
                    now,
                    now,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save job {job.id}: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

        return self.get_job(user_id, job.id)

    def import_detected_jobs(self, user_id: str, jobs: Iterable[Job]) -> Dict[str, int]:
        """
        Insert scan results, leaving jobs the user already has untouched.

        Re-scanning a posting the user has saved or applied to must not reset
        its status back to detected.

        Returns:
            {"imported": n, "skipped": m}
        """
        now = utc_now_iso()
        imported = 0
        skipped = 0
        conn = self._connect()
        try:
            for job in jobs:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO jobs (user_id, id, title, company, description, status,
                                                source, application_url, match_score, data,
                                                detected_at, created_at, updated_at,
                                                status_changed_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        job.id,
                        job.title,
                        job.company,
                        job.description,
                        JobStatus.DETECTED.value,
                        job.source,
                        job.application_url,
                        job.match_score,
                        _job_data(job),
                        job.detected_at,
                        now,
                        now,
                        now,
                    ),
                )
                if cursor.rowcount:
                    imported += 1
                else:
                    skipped += 1
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Failed to import detected jobs: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

        logger.info(f"Imported {imported} detected jobs for user {user_id} ({skipped} already known)")
        return {"imported": imported, "skipped": skipped}

    def delete_job(self, user_id: str, job_id: str) -> bool:
        """
        Delete one of the caller's jobs. Deleting a missing job is not an error.

        Returns:
            True if a row was removed
        """
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM jobs WHERE user_id = ? AND id = ?", (user_id, job_id))
            conn.commit()
            return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Failed to delete job {job_id}: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def update_status(self, user_id: str, job_id: str, status: JobStatus) -> Optional[Job]:
        """Set a job's status. Returns None when the job does not exist."""
        now = utc_now_iso()
        conn = self._connect()
        try:
            cursor = conn.execute(
                """
                UPDATE jobs SET status = ?, status_changed_at = ?, updated_at = ?
                WHERE user_id = ? AND id = ?
                """,
                (status.value, now, now, user_id, job_id),
            )
            conn.commit()
            updated = cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Failed to update status for job {job_id}: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

        return self.get_job(user_id, job_id) if updated else None

    # ===== PROFILES =====

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to load profile: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()
        return _row_to_profile(row) if row else None

    def upsert_profile(self, profile: UserProfile) -> UserProfile:
        """Insert or replace the caller's single profile record."""
        now = utc_now_iso()
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO profiles (user_id, full_name, email, phone, resume_content,
                                      resume_file_name, preferences, plan, daily_ai_credits,
                                      total_ai_used, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    full_name = excluded.full_name,
                    email = excluded.email,
                    phone = excluded.phone,
                    resume_content = excluded.resume_content,
                    resume_file_name = excluded.resume_file_name,
                    preferences = excluded.preferences,
                    plan = excluded.plan,
                    daily_ai_credits = excluded.daily_ai_credits,
                    total_ai_used = excluded.total_ai_used,
                    updated_at = excluded.updated_at
                """,
                (
                    profile.id,
                    profile.full_name,
                    profile.email,
                    profile.phone,
                    profile.resume_content,
                    profile.resume_file_name,
                    json.dumps(profile.preferences.to_dict()),
                    profile.plan,
                    profile.daily_ai_credits,
                    profile.total_ai_used,
                    now,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save profile: {e}")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

        return self.get_profile(profile.id)
