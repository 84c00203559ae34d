"""
Logging setup for JobFlow.

Development gets a short colored console line; production (or ``logging.json``)
gets one JSON object per record. Inbox scans additionally keep a ScanTrace:
an in-memory event list that becomes the scan's summary and, when
``logging.operation_logs`` is on, a JSON-lines file under logs/scans/.
"""

import json
import logging
import logging.handlers
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

LOGS_DIR = Path(__file__).parent.parent / "logs"
SCAN_LOGS_DIR = LOGS_DIR / "scans"

DEFAULT_LEVELS = {
    "development": logging.DEBUG,
    "testing": logging.WARNING,
    "production": logging.INFO,
}

# Third-party loggers that drown out ours at DEBUG
QUIET_LOGGERS = ("urllib3", "googleapiclient", "google", "anthropic", "httpx", "werkzeug")

MAX_CONSOLE_MESSAGE = 500
ROTATE_BYTES = 10 * 1024 * 1024


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; ``extra={"scan": {...}}`` is carried through."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.lineno}",
            "thread": record.threadName,
        }
        scan = getattr(record, "scan", None)
        if scan:
            entry["scan"] = scan
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ColorConsoleFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if len(message) > MAX_CONSOLE_MESSAGE:
            message = message[:MAX_CONSOLE_MESSAGE] + "..."

        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        text = f"{color}{stamp} {record.levelname[0]}{self.RESET} {record.name}: {message}"
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def _resolve_level(level: Optional[str], env: str) -> int:
    if level:
        resolved = logging.getLevelName(str(level).upper())
        if isinstance(resolved, int):
            return resolved
    return DEFAULT_LEVELS.get(env, logging.INFO)


def setup_logging(settings: Optional[Mapping[str, Any]] = None, env: str = "development") -> logging.Logger:
    """
    Configure the root logger from the ``logging`` config section.

    Args:
        settings: {"level", "json", "file"}; missing keys fall back to the env defaults
        env: app.env; production implies JSON output and a rotating file

    Returns:
        The root logger
    """
    settings = settings or {}
    level = _resolve_level(settings.get("level"), env)
    production = env == "production"

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    use_json = bool(settings.get("json")) or production
    console.setFormatter(JsonLineFormatter() if use_json else ColorConsoleFormatter())
    root.addHandler(console)

    log_file = settings.get("file")
    if log_file or production:
        path = Path(log_file) if log_file else LOGS_DIR / "jobflow.log"
        path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            path, maxBytes=ROTATE_BYTES, backupCount=5, encoding="utf-8"
        )
        rotating.setFormatter(JsonLineFormatter())
        root.addHandler(rotating)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root


class ScanTrace:
    """
    Event log for one inbox scan.

    Every event goes to the ``jobflow.scan`` logger tagged with the scan id.
    Counts by level and the duration end up in ``summary()``.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        self.scan_id = uuid.uuid4().hex[:12]
        self.started = datetime.now()
        self.events: List[Dict[str, Any]] = []
        self.logger = logging.getLogger("jobflow.scan")
        self.path: Optional[Path] = None
        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self.path = log_dir / f"scan_{self.started:%Y%m%d_%H%M%S}_{self.scan_id}.jsonl"

    def event(self, message: str, level: int = logging.INFO, **data) -> None:
        entry = {
            "at": datetime.now().isoformat(timespec="milliseconds"),
            "level": logging.getLevelName(level),
            "event": message,
            **data,
        }
        self.events.append(entry)
        self.logger.log(level, f"[scan {self.scan_id}] {message}", extra={"scan": data})

        if self.path is not None:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")

    def warning(self, message: str, **data) -> None:
        self.event(message, logging.WARNING, **data)

    def summary(self) -> Dict[str, Any]:
        levels = [e["level"] for e in self.events]
        return {
            "scanId": self.scan_id,
            "startedAt": self.started.isoformat(timespec="seconds"),
            "durationSeconds": round((datetime.now() - self.started).total_seconds(), 2),
            "events": len(self.events),
            "warnings": levels.count("WARNING"),
            "logFile": str(self.path) if self.path else None,
        }
