"""
Inbox Scanner - batch scan orchestration over a list of Gmail messages

Scan flow:
1. Split the message references into fixed-size batches (default 5)
2. Per batch, fetch/decode/extract/score every message concurrently and wait
   for all of them before moving on
3. Merge accepted candidates into one map keyed by cleaned application URL
4. Check the cancellation signal before each new batch
5. Sort by match score and emit Detected jobs

A watchdog timer cancels the scan after a wall-clock ceiling (default 90 s).
Cancellation never pre-empts a running batch and never discards results.
"""

import enum
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from jobflow.logging_config import SCAN_LOGS_DIR, ScanTrace
from jobflow.models import Job, JobCandidate, JobStatus, UserPreferences, utc_now_iso
from jobflow.parsers import BaseParser, get_parser
from jobflow.scoring import merge_match_score, score_candidate, sort_jobs_by_score

from .client import GmailError, TokenExpiredError, decode_body

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
DEFAULT_WATCHDOG_SECONDS = 90.0
DEFAULT_BATCH_PAUSE = 0.1
DEFAULT_SOURCE = "Gmail"

NO_MATCHES_MESSAGE = "No matching jobs found. Try adjusting your preferences."


class ScanState(str, enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScanSignal:
    """
    Cooperative cancellation flag shared by the caller, the watchdog and the scan.

    The first cancel wins; its reason ("user", "timeout", "disconnect") is kept.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "user") -> bool:
        """Request cancellation. Returns False if already cancelled."""
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
        logger.info(f"Scan cancellation requested ({reason})")
        return True

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds, waking early on cancellation."""
        return self._event.wait(timeout)


@dataclass
class MessageOutcome:
    """What processing one message produced."""

    message_id: str
    candidates: List[JobCandidate] = field(default_factory=list)
    error: Optional[str] = None
    auth_expired: bool = False


@dataclass
class ScanResult:
    """Final outcome of one scan, including partial results on cancel/failure."""

    state: ScanState
    jobs: List[Job] = field(default_factory=list)
    messages_total: int = 0
    messages_processed: int = 0
    errors: int = 0
    cancel_reason: Optional[str] = None
    auth_expired: bool = False
    summary: Dict[str, Any] = field(default_factory=dict)

    @property
    def no_matches(self) -> bool:
        """Scanned to completion and found nothing (distinct from 'never scanned')."""
        return self.state == ScanState.SUCCEEDED and not self.jobs

    @property
    def message(self) -> str:
        if self.auth_expired:
            return "Gmail session expired. Please reconnect your account."
        if self.state == ScanState.CANCELLED:
            if self.cancel_reason == "timeout":
                return f"Scan took too long and was stopped. Kept {len(self.jobs)} jobs found so far."
            return f"Scan stopped. Kept {len(self.jobs)} jobs found so far."
        if self.no_matches:
            return NO_MATCHES_MESSAGE
        return f"Found {len(self.jobs)} jobs in {self.messages_processed} emails."

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "jobs": [job.to_dict() for job in self.jobs],
            "messagesTotal": self.messages_total,
            "messagesProcessed": self.messages_processed,
            "errors": self.errors,
            "cancelReason": self.cancel_reason,
            "authExpired": self.auth_expired,
            "noMatches": self.no_matches,
            "message": self.message,
            "summary": self.summary,
        }


def candidates_to_jobs(candidates: Sequence[JobCandidate], source: str = DEFAULT_SOURCE) -> List[Job]:
    """
    Turn merged candidates into Detected jobs, best match first.

    Ids are derived from the cleaned application URL so re-importing the same
    posting updates the existing record.
    """
    detected_at = utc_now_iso()
    jobs = [
        Job(
            id=BaseParser.generate_job_id(c.application_url),
            title=c.title,
            company=c.company,
            location=c.location,
            description=c.description,
            salary_range=c.salary_range,
            status=JobStatus.DETECTED,
            source=source,
            detected_at=detected_at,
            application_url=c.application_url,
            match_score=c.match_score,
        )
        for c in candidates
    ]
    return sort_jobs_by_score(jobs)


class ScanOrchestrator:
    """
    Drives one inbox scan for one user.

    The client must expose ``get_message(msg_id)``; it is shared read-only by
    the worker threads of a batch. An instance can run several scans one
    after another but never two at once.
    """

    def __init__(
        self,
        client,
        parser: Optional[BaseParser] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        watchdog_seconds: float = DEFAULT_WATCHDOG_SECONDS,
        batch_pause: float = DEFAULT_BATCH_PAUSE,
        source: str = DEFAULT_SOURCE,
        log_dir: Optional[Path] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.client = client
        self.parser = parser or get_parser("heuristic")
        self.batch_size = batch_size
        self.watchdog_seconds = watchdog_seconds
        self.batch_pause = batch_pause
        self.source = source
        self.log_dir = log_dir
        self.state = ScanState.IDLE

    @classmethod
    def from_config(cls, client, config) -> "ScanOrchestrator":
        """Build an orchestrator from a jobflow.config.Config."""
        log_dir = SCAN_LOGS_DIR if config.logging.get("operation_logs") else None
        return cls(
            client,
            parser=get_parser(config.scan_extractor),
            batch_size=config.scan_batch_size,
            watchdog_seconds=config.scan_watchdog_seconds,
            batch_pause=config.scan_batch_pause_seconds,
            log_dir=log_dir,
        )

    def _process_message(
        self,
        ref: Dict[str, Any],
        prefs: Optional[UserPreferences],
        keywords: List[str],
    ) -> MessageOutcome:
        """Fetch, decode, extract and score one message. Never raises."""
        msg_id = str(ref.get("id") or "")
        if not msg_id:
            return MessageOutcome(message_id="", error="Message reference has no id")

        try:
            message = self.client.get_message(msg_id)
            html = decode_body(message)
            if not html:
                return MessageOutcome(message_id=msg_id)

            role_filter = bool(prefs and prefs.target_roles)
            accepted = []
            for candidate in self.parser.extract(html, keywords):
                match = score_candidate(candidate, prefs)
                if role_filter and not match.is_match:
                    continue
                candidate.match_score = merge_match_score(candidate.match_score, match.score)
                accepted.append(candidate)

            return MessageOutcome(message_id=msg_id, candidates=accepted)

        except TokenExpiredError as e:
            return MessageOutcome(message_id=msg_id, error=str(e), auth_expired=True)
        except GmailError as e:
            return MessageOutcome(message_id=msg_id, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error processing message {msg_id}")
            return MessageOutcome(message_id=msg_id, error=f"{type(e).__name__}: {e}")

    def scan(
        self,
        message_refs: Sequence[Dict[str, Any]],
        prefs: Optional[UserPreferences] = None,
        allow_keywords: Optional[Sequence[str]] = None,
        signal: Optional[ScanSignal] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> ScanResult:
        """
        Scan messages in batches and return the detected jobs.

        Args:
            message_refs: Message references from list_messages ({"id": ...})
            prefs: User preferences for scoring; None disables filtering
            allow_keywords: Extractor allow-list (usually the target roles)
            signal: Cancellation signal; a private one is created when omitted
            on_progress: Called as (processed, total) after every batch join

        Returns:
            ScanResult; partial jobs are kept on cancellation and auth expiry
        """
        if self.state == ScanState.SCANNING:
            raise RuntimeError("A scan is already running on this orchestrator")

        signal = signal or ScanSignal()
        keywords = [kw for kw in (allow_keywords or []) if kw and kw.strip()]
        refs = list(message_refs)
        total = len(refs)
        batches = [refs[i : i + self.batch_size] for i in range(0, total, self.batch_size)]

        trace = ScanTrace(self.log_dir)
        trace.event(
            "Scan started",
            messages=total,
            batches=len(batches),
            batch_size=self.batch_size,
            extractor=self.parser.source_name,
        )

        self.state = ScanState.SCANNING
        unique: Dict[str, JobCandidate] = {}
        processed = 0
        errors = 0
        auth_expired = False
        stopped_early = False

        watchdog = threading.Timer(self.watchdog_seconds, signal.cancel, kwargs={"reason": "timeout"})
        watchdog.daemon = True
        watchdog.start()

        try:
            with ThreadPoolExecutor(
                max_workers=self.batch_size, thread_name_prefix="inbox-scan"
            ) as executor:
                for index, batch in enumerate(batches):
                    if signal.cancelled:
                        stopped_early = True
                        break

                    futures = [
                        executor.submit(self._process_message, ref, prefs, keywords)
                        for ref in batch
                    ]
                    outcomes = [future.result() for future in futures]

                    # Merge in message-list order, keyed by cleaned URL; a later message wins
                    for outcome in outcomes:
                        if outcome.error:
                            errors += 1
                            trace.warning(
                                "Message failed",
                                message_id=outcome.message_id,
                                error=outcome.error,
                            )
                        if outcome.auth_expired:
                            auth_expired = True
                        for candidate in outcome.candidates:
                            unique[BaseParser.clean_job_url(candidate.application_url)] = candidate

                    processed += len(batch)
                    trace.event(
                        "Batch complete",
                        batch=index + 1,
                        processed=processed,
                        candidates=len(unique),
                    )
                    if on_progress is not None:
                        on_progress(processed, total)

                    if auth_expired:
                        stopped_early = index < len(batches) - 1
                        break

                    if index < len(batches) - 1 and self.batch_pause > 0:
                        signal.wait(self.batch_pause)
        except BaseException:
            # Never stay SCANNING after an unexpected error
            self.state = ScanState.FAILED
            raise
        finally:
            watchdog.cancel()

        jobs = candidates_to_jobs(list(unique.values()), self.source)

        if auth_expired:
            state = ScanState.FAILED
        elif stopped_early:
            state = ScanState.CANCELLED
        else:
            state = ScanState.SUCCEEDED
        self.state = state

        if state == ScanState.SUCCEEDED and not jobs:
            trace.event("No matching jobs found")
        trace.event(
            "Scan finished",
            state=state.value,
            jobs=len(jobs),
            processed=processed,
            errors=errors,
            cancel_reason=signal.reason if state == ScanState.CANCELLED else None,
        )

        return ScanResult(
            state=state,
            jobs=jobs,
            messages_total=total,
            messages_processed=processed,
            errors=errors,
            cancel_reason=signal.reason if state == ScanState.CANCELLED else None,
            auth_expired=auth_expired,
            summary=trace.summary(),
        )
