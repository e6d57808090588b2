"""Error taxonomy & redaction.

Every failure in the pipeline is raised as a subclass of ``PhabTaskError``
carrying the ``step`` it happened in (``edit``, ``lookup``, ``submit`` ...).
Nothing below the CLI recovers from these; ``format_fatal`` turns the first
one into the single diagnostic line printed before exiting.

Public API:
- PhabTaskError and its subclasses
- format_fatal(exc) -> str
- redact(text) -> str
"""
from __future__ import annotations

import os
import re
import traceback

# Conduit API tokens are "api-" or "cli-" followed by 28 lowercase alnum chars
_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b(?:api|cli)-[a-z0-9]{28}\b"),
]

_REDACTION_PLACEHOLDER = "<redacted>"


class PhabTaskError(RuntimeError):
    """Base class for fatal pipeline errors."""

    step = "phabtask"

    def __init__(self, message: str, *, step: str | None = None):
        super().__init__(message)
        if step is not None:
            self.step = step


class ConfigError(PhabTaskError):
    step = "config"


class EditorError(PhabTaskError):
    """Temp file I/O or editor process failure."""

    step = "edit"


class BridgeError(PhabTaskError):
    """The Conduit transport (arc process or HTTP endpoint) failed."""

    step = "conduit"


class DecodeError(PhabTaskError):
    step = "decode"


class RemoteError(PhabTaskError):
    """Conduit answered with a non-empty error field."""

    step = "conduit"


class ValidationError(PhabTaskError):
    step = "validate"


class ResolutionError(ValidationError):
    """A requested @user / #project name was missing from phid.lookup."""

    step = "lookup"


def redact(text: str) -> str:
    """Replace Conduit tokens in ``text`` with a placeholder."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def _origin(exc: BaseException) -> str:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    if not frames:
        return "<unknown>"
    last = frames[-1]
    return f"{os.path.basename(last.filename)}:{last.lineno}"


def format_fatal(exc: BaseException) -> str:
    """Render ``exc`` as ``<file>:<line> <step>: <message>``.

    The location is the frame that raised the exception, so the line points
    at the failing call without every layer having to pass it along. The
    step is omitted for exceptions outside the ``PhabTaskError`` family.
    """
    message = redact(str(exc) or exc.__class__.__name__)
    if isinstance(exc, PhabTaskError):
        message = f"{exc.step}: {message}"
    return f"{_origin(exc)} {message}"


__all__ = [
    "PhabTaskError",
    "ConfigError",
    "EditorError",
    "BridgeError",
    "DecodeError",
    "RemoteError",
    "ValidationError",
    "ResolutionError",
    "format_fatal",
    "redact",
]
