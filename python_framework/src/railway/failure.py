"""
Failure description — structured error information for the failure track.

An ErrorCode names the category of a failure; a FailureDescription carries
the code together with a message, the originating exception (if any) and
the moment the failure was recorded.

Callers branch on the code, never on the message text:

    match result.error().code:
        case ErrorCode.NOT_FOUND:
            ...
        case ErrorCode.PARSE_ERROR:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Input problems:   VALIDATION_ERROR, NOT_FOUND, PARSE_ERROR
    Collaborators:    POLICY_ERROR
    Infrastructure:   TECHNICAL_ERROR
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """A value violates a construction invariant (empty field, bad length)."""

    NOT_FOUND = "NOT_FOUND"
    """The requested resource is absent or could not be read."""

    PARSE_ERROR = "PARSE_ERROR"
    """Input bytes are not a structurally valid document."""

    POLICY_ERROR = "POLICY_ERROR"
    """An injected policy raised instead of returning a verdict."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected infrastructure failure."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.PARSE_ERROR, "log_id is not valid base64")
    >>> desc.code
    <ErrorCode.PARSE_ERROR: 'PARSE_ERROR'>
    >>> desc.message
    'log_id is not valid base64'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def cause(self) -> str:
        """One-line description of the underlying exception, or the message itself."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {type(self.exception).__name__}: {self.exception}"
