"""Error taxonomy & redaction for manifest submission.

Every failure surfaced to the calling workflow derives from
:class:`SubmissionError` so callers can handle the whole family with a single
``except`` clause, while the subclasses keep enough context (paths, failure
counts) for a descriptive message.

Public API:
- SubmissionError and its subclasses
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"gh[osu]_[A-Za-z0-9]{20,40}"),  # OAuth / app tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
]

_REDACTION_PLACEHOLDER = "<redacted>"


class SubmissionError(RuntimeError):
    """Base class for every error raised by manifestsubmit."""


class InteractionError(SubmissionError):
    """The confirmation prompt could not be displayed or answered."""


class OutputDirectoryError(SubmissionError):
    def __init__(self, path: Path, reason: BaseException | None = None):
        self.path = Path(path)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to create output directory {self.path}{detail}")


class ChangeWriteError(SubmissionError):
    def __init__(self, path: Path, reason: BaseException | None = None, failed: int = 1):
        self.path = Path(path)
        self.failed = failed
        detail = f": {reason}" if reason else ""
        extra = f" ({failed} entries failed)" if failed > 1 else ""
        super().__init__(f"Failed to write {self.path}{detail}{extra}")


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact GitHub tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - InteractionError -> 'interaction'
    - OutputDirectoryError -> 'filesystem.setup'
    - ChangeWriteError -> 'filesystem.write'
    - ConfigError -> 'config'
    - Fallback -> 'generic'
    """
    # Imported lazily; config imports this module.
    from .config import ConfigError  # noqa: PLC0415

    msg = redact(str(exc) if exc else "")
    name = exc.__class__.__name__

    if isinstance(exc, InteractionError):
        return ErrorInfo("interaction", msg, name)
    if isinstance(exc, OutputDirectoryError):
        return ErrorInfo("filesystem.setup", msg, name, details={"path": str(exc.path)})
    if isinstance(exc, ChangeWriteError):
        return ErrorInfo(
            "filesystem.write",
            msg,
            name,
            details={"path": str(exc.path), "failed": exc.failed},
        )
    if isinstance(exc, ConfigError):
        return ErrorInfo("config", msg, name)
    return ErrorInfo("generic", msg, name)


__all__ = [
    "ChangeWriteError",
    "ErrorInfo",
    "InteractionError",
    "OutputDirectoryError",
    "SubmissionError",
    "classify_error",
    "redact",
]
