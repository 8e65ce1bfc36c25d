"""Diagnostics for the seedform CLI and export worker.

Everything lives under ~/.seedform:

    logs/seedform.log         JSON lines, rotated at 10 MB, 7 backups
    logs/seedform_fault.log   faulthandler output (native crashes in numpy/PyAV/cv2)
    crash_reports/crash_*.json  unhandled Python exceptions, PII-stripped
"""

import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import sys
import time
import traceback
from pathlib import Path

from security import redact_paths

logger = logging.getLogger(__name__)

APP_DIR = "~/.seedform"

LOG_FILENAME = "seedform.log"
FAULT_FILENAME = "seedform_fault.log"
LOG_MAX_BYTES = 10_000_000
LOG_BACKUPS = 7

MAX_CRASH_REPORTS = 5
MAX_LOG_AGE_DAYS = 7

# LogRecord attributes promoted into the JSON entry when set via extra=
_EXTRA_FIELDS = ("particle_count", "archetype", "elapsed_ms", "frame")

# faulthandler keeps writing to this file object for the life of the process
_fault_file = None


def _app_path(*parts: str) -> str:
    return os.path.join(os.path.expanduser(APP_DIR), *parts)


def _validate_log_dir(requested: str) -> str:
    """Resolve SEEDFORM_LOG_DIR. Anything outside ~/.seedform falls back to the default."""
    default = _app_path("logs")
    if not requested:
        return default

    root = Path(os.path.expanduser(APP_DIR)).resolve()
    candidate = Path(requested).resolve()
    if candidate != root and root not in candidate.parents:
        logger.warning("SEEDFORM_LOG_DIR outside %s, using default", APP_DIR)
        return default
    return str(candidate)


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message (+ exception)."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)
        entry = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": record.threadName,
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


def _prune(directory: str, pattern: str, *, keep: int | None = None, max_age_s: float | None = None):
    """Delete files matching pattern: all but the newest `keep`, and/or older than max_age_s."""
    try:
        files = sorted(
            Path(directory).glob(pattern), key=lambda p: p.stat().st_mtime, reverse=True
        )
        doomed = set(files[keep:]) if keep is not None else set()
        if max_age_s is not None:
            cutoff = time.time() - max_age_s
            doomed.update(p for p in files if p.stat().st_mtime < cutoff)
        for path in doomed:
            path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Pruning %s/%s skipped: %s", directory, pattern, e)


def _cleanup_old_crash_reports(crash_dir: str):
    _prune(crash_dir, "crash_*.json", keep=MAX_CRASH_REPORTS)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Attach the rotating JSON handler to the root logger. Returns the log directory."""
    resolved = _validate_log_dir(log_dir or os.environ.get("SEEDFORM_LOG_DIR", ""))
    os.makedirs(resolved, mode=0o700, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        os.path.join(resolved, LOG_FILENAME),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUPS,
    )
    handler.setFormatter(JSONFormatter())

    level = getattr(logging, os.environ.get("SEEDFORM_LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else logging.INFO)
    root.addHandler(handler)

    _prune(resolved, f"{LOG_FILENAME}*", max_age_s=MAX_LOG_AGE_DAYS * 86400)
    return resolved


def setup_faulthandler(log_dir: str):
    """Route native crash tracebacks to their own file.

    Not the rotating log: rotation would close the descriptor faulthandler holds.
    """
    global _fault_file
    path = os.path.join(log_dir, FAULT_FILENAME)
    try:
        _fault_file = open(path, "a", buffering=1)  # noqa: SIM115
        os.chmod(path, 0o600)
        faulthandler.enable(file=_fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: faulthandler not enabled: {e}", file=sys.stderr)


def write_crash_report(crash_dir: str, exc_type, exc_value, exc_tb) -> str:
    """Dump one unhandled exception as PII-stripped JSON (mode 0600). Returns the path."""
    os.makedirs(crash_dir, mode=0o700, exist_ok=True)

    stamp = datetime.datetime.now(tz=datetime.timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    report = {
        "timestamp": stamp,
        "exception_type": getattr(exc_type, "__name__", "Unknown"),
        "exception_message": str(exc_value),
        "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        "python_version": sys.version,
        "platform": sys.platform,
    }
    report = redact_paths(report)

    path = os.path.join(crash_dir, f"crash_{stamp}.json")
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        json.dump(report, f, indent=2)

    _cleanup_old_crash_reports(crash_dir)
    return path


def setup_excepthook(crash_dir: str | None = None):
    """Write a crash report for every unhandled exception, then defer to the default hook."""
    target = crash_dir or _app_path("crash_reports")

    def _hook(exc_type, exc_value, exc_tb):
        try:
            write_crash_report(target, exc_type, exc_value, exc_tb)
        except Exception as e:
            # Never raise from inside the hook
            print(f"WARNING: crash report not written: {e}", file=sys.stderr)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _hook


def init_diagnostics():
    """Logging, faulthandler and crash hook, in that order. Called once from main()."""
    log_dir = setup_structured_logging()
    setup_faulthandler(log_dir)
    setup_excepthook()
    logger.info("Diagnostics ready (logs=%s)", log_dir)
