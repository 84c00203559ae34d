"""
Domain models for JobFlow.

External payloads (request bodies, mail API blobs, LLM output) are loosely
typed, so every record here is built through a ``from_dict`` adapter that
coerces and validates the fields it knows about and ignores the rest.
Wire format uses camelCase keys; attributes are snake_case.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

PLACEHOLDER_COMPANY = "Review Required"
DEFAULT_LOCATION = "Remote/Hybrid"
HEURISTIC_CONFIDENCE = 80


class JobStatus(str, enum.Enum):
    """Pipeline stages of a persisted job."""

    DETECTED = "detected"
    SAVED = "saved"
    APPLIED_MANUAL = "applied_manual"
    APPLIED_AUTO = "applied_auto"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.DETECTED
        normalized = str(value).strip().lower()
        # Older records store a bare "applied"
        if normalized == "applied":
            return cls.APPLIED_MANUAL
        return cls(normalized)


ACTIVE_STATUSES = {
    JobStatus.DETECTED,
    JobStatus.SAVED,
    JobStatus.APPLIED_MANUAL,
    JobStatus.APPLIED_AUTO,
    JobStatus.INTERVIEW,
}

APPLIED_STATUSES = {JobStatus.APPLIED_MANUAL, JobStatus.APPLIED_AUTO}

# Forward moves; archive moves (offer/rejected) are added below
STATUS_TRANSITIONS = {
    JobStatus.DETECTED: {JobStatus.SAVED},
    JobStatus.SAVED: {JobStatus.APPLIED_MANUAL, JobStatus.APPLIED_AUTO},
    JobStatus.APPLIED_MANUAL: {JobStatus.INTERVIEW},
    JobStatus.APPLIED_AUTO: {JobStatus.INTERVIEW},
    JobStatus.INTERVIEW: set(),
    JobStatus.OFFER: set(),
    JobStatus.REJECTED: set(),
}


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Return True if a job may move from ``current`` to ``target``."""
    if current == target:
        return True
    if current in ACTIVE_STATUSES and target in (JobStatus.OFFER, JobStatus.REJECTED):
        return True
    return target in STATUS_TRANSITIONS[current]


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    raise ValueError(f"Expected a list of strings, got {type(value).__name__}")


def _as_score(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid match score: {value!r}")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def utc_now_iso() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


@dataclass
class UserPreferences:
    """Scoring inputs. Empty role/location lists mean "match everything"."""

    target_roles: List[str] = field(default_factory=list)
    target_locations: List[str] = field(default_factory=list)
    remote_only: bool = False
    min_salary: str = ""
    language: str = "en"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("preferences must be an object")
        return cls(
            target_roles=_as_str_list(data.get("targetRoles")),
            target_locations=_as_str_list(data.get("targetLocations")),
            remote_only=_as_bool(data.get("remoteOnly", False)),
            min_salary=_as_str(data.get("minSalary")),
            language=_as_str(data.get("language"), "en") or "en",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetRoles": list(self.target_roles),
            "targetLocations": list(self.target_locations),
            "remoteOnly": self.remote_only,
            "minSalary": self.min_salary,
            "language": self.language,
        }


@dataclass
class JobCandidate:
    """An unconfirmed job posting pulled out of a single email."""

    title: str
    application_url: str
    company: str = PLACEHOLDER_COMPANY
    location: str = DEFAULT_LOCATION
    match_score: int = HEURISTIC_CONFIDENCE
    description: str = ""
    salary_range: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_score: int = 100) -> "JobCandidate":
        """Build a candidate from LLM output; raises ValueError when unusable."""
        if not isinstance(data, dict):
            raise ValueError("candidate must be an object")
        title = _as_str(data.get("title"))
        url = _as_str(data.get("applicationUrl") or data.get("url"))
        if not title:
            raise ValueError("candidate is missing a title")
        if not url:
            raise ValueError("candidate is missing an application URL")
        return cls(
            title=title,
            application_url=url,
            company=_as_str(data.get("company")) or PLACEHOLDER_COMPANY,
            location=_as_str(data.get("location")) or DEFAULT_LOCATION,
            match_score=_as_score(data.get("matchScore"), default_score),
            description=_as_str(data.get("description")),
            salary_range=_as_optional_str(data.get("salaryRange")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "applicationUrl": self.application_url,
            "matchScore": self.match_score,
            "description": self.description,
            "salaryRange": self.salary_range,
        }


@dataclass
class Job:
    """A persisted job owned by exactly one user."""

    id: str
    title: str
    company: str = ""
    location: str = ""
    description: str = ""
    salary_range: Optional[str] = None
    requirements: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    logo_url: Optional[str] = None
    status: JobStatus = JobStatus.DETECTED
    source: str = "Manual"
    detected_at: str = field(default_factory=utc_now_iso)
    application_url: Optional[str] = None
    customized_resume: Optional[str] = None
    cover_letter: Optional[str] = None
    match_score: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        """Validate an incoming job payload; raises ValueError on bad input."""
        if not isinstance(data, dict):
            raise ValueError("job payload must be an object")
        job_id = _as_str(data.get("id"))
        if not job_id:
            raise ValueError("job payload is missing an id")
        try:
            status = JobStatus.parse(data.get("status"))
        except ValueError:
            raise ValueError(f"Unknown job status: {data.get('status')!r}")

        return cls(
            id=job_id,
            title=_as_str(data.get("title")),
            company=_as_str(data.get("company")),
            location=_as_str(data.get("location")),
            description=_as_str(data.get("description")),
            salary_range=_as_optional_str(data.get("salaryRange")),
            requirements=_as_str_list(data.get("requirements")),
            notes=_as_optional_str(data.get("notes")),
            logo_url=_as_optional_str(data.get("logoUrl")),
            status=status,
            source=_as_str(data.get("source")) or "Manual",
            detected_at=_as_str(data.get("detectedAt")) or utc_now_iso(),
            application_url=_as_optional_str(data.get("applicationUrl")),
            customized_resume=_as_optional_str(data.get("customizedResume")),
            cover_letter=_as_optional_str(data.get("coverLetter")),
            match_score=_as_score(data.get("matchScore")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "salaryRange": self.salary_range,
            "requirements": list(self.requirements),
            "notes": self.notes,
            "logoUrl": self.logo_url,
            "status": self.status.value,
            "source": self.source,
            "detectedAt": self.detected_at,
            "applicationUrl": self.application_url,
            "customizedResume": self.customized_resume,
            "coverLetter": self.cover_letter,
            "matchScore": self.match_score,
        }


@dataclass
class UserProfile:
    """One profile per authenticated identity."""

    id: str
    full_name: str = ""
    email: str = ""
    phone: str = ""
    resume_content: str = ""
    resume_file_name: str = ""
    preferences: UserPreferences = field(default_factory=UserPreferences)
    plan: str = "free"
    daily_ai_credits: int = 0
    total_ai_used: int = 0
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], user_id: str) -> "UserProfile":
        if not isinstance(data, dict):
            raise ValueError("profile payload must be an object")
        return cls(
            id=user_id,
            full_name=_as_str(data.get("fullName")),
            email=_as_str(data.get("email")),
            phone=_as_str(data.get("phone")),
            resume_content=_as_str(data.get("resumeContent")),
            resume_file_name=_as_str(data.get("resumeFileName")),
            preferences=UserPreferences.from_dict(data.get("preferences")),
            plan=_as_str(data.get("plan")) or "free",
            daily_ai_credits=_as_score(data.get("dailyAiCredits")),
            total_ai_used=_as_score(data.get("totalAiUsed")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "resumeContent": self.resume_content,
            "resumeFileName": self.resume_file_name,
            "preferences": self.preferences.to_dict(),
            "plan": self.plan,
            "dailyAiCredits": self.daily_ai_credits,
            "totalAiUsed": self.total_ai_used,
            "updatedAt": self.updated_at,
        }


@dataclass
class EmailAccount:
    """A session-only mail connection. Never written to the store."""

    provider: str
    email_address: str
    access_token: str = field(repr=False)
    is_connected: bool = True
    last_synced: Optional[str] = None

    def to_public_dict(self) -> Dict[str, Any]:
        """Describe the connection without exposing the token."""
        return {
            "provider": self.provider,
            "emailAddress": self.email_address,
            "isConnected": self.is_connected,
            "lastSynced": self.last_synced,
        }
