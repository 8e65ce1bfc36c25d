"""Input gates and PII scrubbing.

Every validate_* function returns a list of human-readable problems; an empty
list means the value is acceptable. Callers decide whether to raise or print.
"""

import os
import re
from pathlib import Path

from engine.config import MAX_SEED_LENGTH
from engine.hashing import seed_length

MAX_FRAME_COUNT = 216_000  # one hour at 60 fps
MAX_EXPORT_DIMENSION = 3840

ALLOWED_OUTPUT_EXTENSIONS = {".mp4", ".mov", ".mkv", ".webm"}
ALLOWED_IMAGE_EXTENSIONS = {".png"}
ALLOWED_SNAPSHOT_EXTENSIONS = {".json"}
ALLOWED_CSV_EXTENSIONS = {".csv"}

# Resolved output paths may never land under these
SYSTEM_PREFIXES = (
    "/System",
    "/Library",
    "/usr",
    "/bin",
    "/sbin",
    "/etc",
    "/private/var",
    "/private/etc",
)


def validate_seed_text(text) -> list[str]:
    if not isinstance(text, str):
        return [f"Seed text must be a string, got {type(text).__name__}"]

    problems = []
    if len(text) == 0:
        problems.append("Seed text is empty")
    elif seed_length(text) > MAX_SEED_LENGTH:
        problems.append(f"Seed text has {seed_length(text)} characters (max {MAX_SEED_LENGTH})")
    if "\x00" in text:
        problems.append("Seed text contains a NUL character")
    return problems


def validate_frame_count(count: int) -> list[str]:
    if count < 1:
        return [f"Frame count must be positive, got {count}"]
    if count > MAX_FRAME_COUNT:
        return [f"Frame count {count} exceeds the {MAX_FRAME_COUNT} frame cap"]
    return []


def validate_frame_size(width: int, height: int) -> list[str]:
    """Both sides must be even (yuv420p) and within 1..MAX_EXPORT_DIMENSION."""
    problems = []
    for side, value in {"width": width, "height": height}.items():
        if not 0 < value <= MAX_EXPORT_DIMENSION:
            problems.append(f"Frame {side} {value} outside 1..{MAX_EXPORT_DIMENSION}")
        elif value % 2 != 0:
            problems.append(f"Frame {side} {value} must be even")
    return problems


def _system_prefix(resolved: str) -> str | None:
    return next((p for p in SYSTEM_PREFIXES if resolved.startswith(p)), None)


def _parent_problem(parent: Path) -> str | None:
    if not parent.is_dir():
        return f"Output directory does not exist: {parent}"
    if not os.access(parent, os.W_OK):
        return f"Output directory is not writable: {parent}"
    return None


def validate_output_path(
    path: str, allowed_extensions: set[str] = ALLOWED_OUTPUT_EXTENSIONS
) -> list[str]:
    """Gate for every file seedform writes (videos, PNG stills, snapshots).

    Relative paths and system directories stop the check early; the remaining
    problems (extension, parent directory, filename) are all reported together.
    """
    target = Path(path)
    if not target.is_absolute():
        return ["Output path must be absolute"]

    prefix = _system_prefix(str(target.resolve()))
    if prefix is not None:
        return [f"Refusing to write into system directory {prefix}"]

    problems = []
    suffix = target.suffix.lower()
    if suffix not in allowed_extensions:
        allowed = ", ".join(sorted(allowed_extensions))
        problems.append(f"Extension '{suffix}' not allowed (expected {allowed})")

    parent = _parent_problem(target.parent)
    if parent:
        problems.append(parent)

    if any(bad in target.name for bad in ("..", "\\", "\x00")):
        problems.append(f"Unsafe output filename: {target.name!r}")
    return problems


# PII scrubbing, used as Sentry's before_send and on crash reports

_HOME = os.path.expanduser("~")
_USER = os.path.basename(_HOME)
_FOREIGN_HOME = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SECRET_MARKERS = ("token", "auth", "key", "secret", "password", "dsn", "wallet", "signature", "seed_text")


def _redact_text(text: str) -> str:
    if _HOME and _HOME != "/":
        text = text.replace(_HOME, "<HOME>")
    if _USER:
        text = text.replace(_USER, "<USER>")
    return _FOREIGN_HOME.sub("<REDACTED_PATH>", text)


def redact_paths(value):
    """Return a copy of value with home directories and the username masked in every string."""
    if isinstance(value, str):
        return _redact_text(value)
    if isinstance(value, dict):
        return {k: redact_paths(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact_paths(v) for v in value]
    return value


def _mask_secrets(section):
    if not isinstance(section, dict):
        return
    for key in section:
        if any(marker in key.lower() for marker in _SECRET_MARKERS):
            section[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook: mask paths everywhere and secrets in extra/tags/contexts."""
    event = redact_paths(event)
    _mask_secrets(event.get("extra"))
    _mask_secrets(event.get("tags"))
    for context in (event.get("contexts") or {}).values():
        _mask_secrets(context)
    return event
