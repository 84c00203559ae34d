"""
Scoring Module - candidate relevance and dashboard statistics

Scoring components:
1. Role match (50 points): any target role appears in the title as a whole word
2. Location match (50 points): any target location is a substring of the location
3. Remote bonus (10 points): remote-only users get a bonus for remote signals;
   without a remote signal the location check fails outright

An empty role or location list is an open filter and always earns its 50
points. The raw score is not clamped, so 110 is possible; persisted jobs carry
``merge_match_score`` which stays within 0-100.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from jobflow.models import APPLIED_STATUSES, Job, JobCandidate, JobStatus, UserPreferences

logger = logging.getLogger(__name__)

ROLE_POINTS = 50
LOCATION_POINTS = 50
REMOTE_BONUS = 10


@dataclass
class MatchResult:
    """Outcome of scoring one candidate against user preferences."""

    score: int
    is_match: bool
    role_match: bool = True
    location_match: bool = True


def _role_pattern(role: str) -> "re.Pattern":
    # Boundaries are "start/end or any non-word character", so "QA" never hits "squad"
    return re.compile(r"(?:^|[\s\W])" + re.escape(role.lower()) + r"(?:$|[\s\W])", re.IGNORECASE)


def matches_role(title: str, roles: Iterable[str]) -> bool:
    """True if any role appears in ``title`` as a whole word."""
    title = (title or "").lower()
    return any(_role_pattern(role).search(title) for role in roles if role)


def score_candidate(candidate: JobCandidate, prefs: Optional[UserPreferences]) -> MatchResult:
    """
    Score a candidate's title and location against user preferences.

    Args:
        candidate: Extracted candidate (only title and location are read)
        prefs: User preferences, or None for "no filtering"

    Returns:
        MatchResult with the 50/50/10 weighted score and inclusion decision
    """
    if prefs is None:
        return MatchResult(score=100, is_match=True)

    title = (candidate.title or "").lower()
    location = (candidate.location or "").lower()
    score = 0

    if prefs.target_roles:
        role_match = matches_role(title, prefs.target_roles)
        if role_match:
            score += ROLE_POINTS
    else:
        role_match = True
        score += ROLE_POINTS

    if prefs.target_locations:
        loc_match = any(loc.lower() in location for loc in prefs.target_locations if loc)
        if loc_match:
            score += LOCATION_POINTS
    else:
        loc_match = True
        score += LOCATION_POINTS

    if prefs.remote_only:
        if "remote" in location or "remote" in title:
            score += REMOTE_BONUS
        else:
            loc_match = False

    return MatchResult(
        score=score,
        is_match=role_match and loc_match,
        role_match=role_match,
        location_match=loc_match,
    )


def merge_match_score(extraction_score: int, match_score: int) -> int:
    """Combine extractor confidence with the preference score (0-100)."""
    return max(0, min(extraction_score, match_score, 100))


def calculate_job_stats(jobs: List[Job]) -> Dict:
    """
    Calculate dashboard statistics for a list of jobs.

    Args:
        jobs: List of Job records

    Returns:
        Dictionary with stats: total, detected, tracked, applied, interviews,
        offers, rejected, avg_score
    """
    if not jobs:
        return {
            "total": 0,
            "detected": 0,
            "tracked": 0,
            "applied": 0,
            "interviews": 0,
            "offers": 0,
            "rejected": 0,
            "avg_score": 0,
        }

    scores = [j.match_score or 0 for j in jobs]

    return {
        "total": len(jobs),
        "detected": sum(1 for j in jobs if j.status == JobStatus.DETECTED),
        "tracked": sum(1 for j in jobs if j.status != JobStatus.DETECTED),
        "applied": sum(1 for j in jobs if j.status in APPLIED_STATUSES),
        "interviews": sum(1 for j in jobs if j.status == JobStatus.INTERVIEW),
        "offers": sum(1 for j in jobs if j.status == JobStatus.OFFER),
        "rejected": sum(1 for j in jobs if j.status == JobStatus.REJECTED),
        "avg_score": round(sum(scores) / len(scores), 1),
    }


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "").split("+")[0])
    except ValueError:
        return None


def detection_activity(jobs: List[Job], days: int = 7, today: Optional[datetime] = None) -> List[Dict]:
    """
    Count jobs detected per day over the trailing window, oldest day first.

    Jobs with unparseable timestamps are skipped.
    """
    today = (today or datetime.utcnow()).date()
    counts = {today - timedelta(days=offset): 0 for offset in range(days)}

    for job in jobs:
        detected = _parse_timestamp(job.detected_at)
        if detected is None:
            continue
        day = detected.date()
        if day in counts:
            counts[day] += 1

    return [{"date": day.isoformat(), "count": counts[day]} for day in sorted(counts)]


def sort_jobs_by_score(jobs: list) -> list:
    """Sort jobs or candidates by match score, highest first (stable)."""
    return sorted(jobs, key=lambda j: j.match_score or 0, reverse=True)


__all__ = [
    "MatchResult",
    "matches_role",
    "score_candidate",
    "merge_match_score",
    "calculate_job_stats",
    "detection_activity",
    "sort_jobs_by_score",
]
