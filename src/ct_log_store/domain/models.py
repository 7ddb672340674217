"""
Domain models — immutable value objects for CT logs and the log-list document.

A log list is published by a CT policy operator as JSON. After parsing it
becomes a LogListDocument: an ordered tuple of LogOperators, each owning
its LogEntry values, plus an id → LogEntry index built once at construction.

All models are frozen dataclasses. Constructors validate their invariants
and raise ValueError; LogEntry.create() is the Result-returning variant.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum, unique
from types import MappingProxyType
from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

LOG_ID_LENGTH = 32
"""Byte length of a log id (a SHA-256 digest of the log's DER public key)."""


def compute_log_id(key_bytes: bytes) -> bytes:
    """Derive the RFC 6962 log id: SHA-256 over the DER SubjectPublicKeyInfo."""
    return hashlib.sha256(key_bytes).digest()


# ─────────────────────── Log status ───────────────────────


@unique
class LogStatus(Enum):
    """Operating status of a CT log, as named in the log list's `state` object."""

    PENDING = "pending"
    QUALIFIED = "qualified"
    USABLE = "usable"
    READONLY = "readonly"
    RETIRED = "retired"
    REJECTED = "rejected"


_ACTIVE_STATUSES = frozenset({LogStatus.QUALIFIED, LogStatus.USABLE, LogStatus.READONLY})


@dataclass(frozen=True, slots=True)
class LogState:
    """A log status together with the UNIX-millisecond time the log entered it."""

    status: LogStatus
    timestamp_millis: int


@dataclass(frozen=True, slots=True)
class TemporalInterval:
    """
    Half-open interval [start_inclusive, end_exclusive) in UNIX milliseconds.

    Describes which certificate expiry dates a log accepts. Either bound may
    be None, meaning the interval is open on that side.
    """

    start_inclusive: int | None = None
    end_exclusive: int | None = None

    def __post_init__(self) -> None:
        if (
            self.start_inclusive is not None
            and self.end_exclusive is not None
            and self.start_inclusive >= self.end_exclusive
        ):
            raise ValueError(
                f"temporal interval is empty: start {self.start_inclusive} "
                f">= end {self.end_exclusive}"
            )

    def contains(self, millis: int) -> bool:
        if self.start_inclusive is not None and millis < self.start_inclusive:
            return False
        if self.end_exclusive is not None and millis >= self.end_exclusive:
            return False
        return True


UNBOUNDED = TemporalInterval()


# ─────────────────────── LogEntry ───────────────────────


@dataclass(frozen=True, slots=True)
class LogEntry:
    """
    One CT log announced by an operator.

    `public_key` is an opaque handle produced by a key decoder (by default
    a `cryptography` public key object). It is left out of equality and
    repr. So are the optional temporal interval and merge delay: two
    entries are equal when their identifying data and `key_bytes` match.
    """

    log_id: bytes
    key_bytes: bytes = field(repr=False)
    public_key: Any = field(compare=False, repr=False)
    description: str
    url: str
    operator_name: str
    state: LogState
    temporal_interval: TemporalInterval = field(default=UNBOUNDED, compare=False)
    max_merge_delay_seconds: int = field(default=0, compare=False)

    def __post_init__(self) -> None:
        if self.public_key is None:
            raise ValueError("public key is required")
        if not self.key_bytes:
            raise ValueError("public key bytes are required")
        if len(self.log_id) != LOG_ID_LENGTH:
            raise ValueError(
                f"log id must be {LOG_ID_LENGTH} bytes, got {len(self.log_id)}"
            )
        for name in ("description", "url", "operator_name"):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")
        if self.max_merge_delay_seconds < 0:
            raise ValueError(
                f"max merge delay must be >= 0, got {self.max_merge_delay_seconds}"
            )

    @staticmethod
    def create(
        *,
        key_bytes: bytes,
        public_key: Any,
        description: str,
        url: str,
        operator_name: str,
        state: LogState,
        temporal_interval: TemporalInterval = UNBOUNDED,
        max_merge_delay_seconds: int = 0,
    ) -> Result[LogEntry]:
        """
        Build a LogEntry whose id is derived from `key_bytes`.

        Returns Failure(VALIDATION_ERROR) instead of raising when an
        invariant does not hold.
        """
        return Result.from_computation(
            lambda: LogEntry(
                log_id=compute_log_id(key_bytes),
                key_bytes=key_bytes,
                public_key=public_key,
                description=description,
                url=url,
                operator_name=operator_name,
                state=state,
                temporal_interval=temporal_interval,
                max_merge_delay_seconds=max_merge_delay_seconds,
            ),
            ErrorCode.VALIDATION_ERROR,
            "Invalid log entry",
        )

    @property
    def status(self) -> LogStatus:
        return self.state.status

    def is_active_at(self, millis: int) -> bool:
        """
        Whether the log counted as trusted at `millis`.

        Qualified, usable and read-only logs are active. A retired log is
        active only before its retirement timestamp.
        """
        if self.state.status in _ACTIVE_STATUSES:
            return True
        if self.state.status is LogStatus.RETIRED:
            return millis < self.state.timestamp_millis
        return False


# ─────────────────────── Document ───────────────────────


@dataclass(frozen=True, slots=True)
class LogOperator:
    """An organisation running one or more CT logs."""

    name: str
    emails: tuple[str, ...] = ()
    logs: tuple[LogEntry, ...] = ()


def _build_index(operators: Iterable[LogOperator]) -> Mapping[bytes, LogEntry]:
    index: dict[bytes, LogEntry] = {}
    for operator in operators:
        for entry in operator.logs:
            if entry.log_id in index:
                log.warning(
                    "document.duplicate_log_id",
                    log_id=entry.log_id.hex(),
                    operator=operator.name,
                )
            index[entry.log_id] = entry
    return MappingProxyType(index)


@dataclass(frozen=True, slots=True)
class LogListDocument:
    """
    The parsed form of a log-list file.

    The id index is built once in __post_init__; duplicate ids in the
    source resolve last-one-wins, and `logs` lists only the entries the
    index holds.
    """

    version: str
    timestamp_millis: int
    operators: tuple[LogOperator, ...] = ()
    _index: Mapping[bytes, LogEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", _build_index(self.operators))

    def find(self, log_id: bytes) -> LogEntry | None:
        return self._index.get(log_id)

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        """Indexed entries, ordered by where each id first appears."""
        return tuple(self._index.values())

    @property
    def log_count(self) -> int:
        return len(self._index)


# ─────────────────────── Store state ───────────────────────


@unique
class StoreState(Enum):
    """Outcome of the most recent log-list load attempt."""

    UNINITIALIZED = "UNINITIALIZED"
    NOT_FOUND = "NOT_FOUND"
    MALFORMED = "MALFORMED"
    COMPLIANT = "COMPLIANT"
    NON_COMPLIANT = "NON_COMPLIANT"


# ─────────────────────── Verification evidence ───────────────────────


@unique
class SctOrigin(Enum):
    """How an SCT reached the client."""

    EMBEDDED = "embedded"
    TLS_EXTENSION = "tls_extension"
    OCSP_RESPONSE = "ocsp_response"


@unique
class SctStatus(Enum):
    VALID = "valid"
    INVALID_SIGNATURE = "invalid_signature"
    UNKNOWN_LOG = "unknown_log"
    INVALID_SCT = "invalid_sct"


@dataclass(frozen=True, slots=True)
class VerifiedSct:
    """One SCT after signature checking by the caller."""

    status: SctStatus
    origin: SctOrigin
    timestamp_millis: int
    log: LogEntry | None = None


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """All SCTs presented for one leaf certificate."""

    scts: tuple[VerifiedSct, ...] = ()

    @property
    def valid_scts(self) -> tuple[VerifiedSct, ...]:
        return tuple(
            sct for sct in self.scts if sct.status is SctStatus.VALID and sct.log is not None
        )


@unique
class PolicyCompliance(Enum):
    COMPLY = "COMPLY"
    NO_SCTS_FOUND = "NO_SCTS_FOUND"
    NOT_ENOUGH_SCTS = "NOT_ENOUGH_SCTS"
    NOT_ENOUGH_DIVERSE_SCTS = "NOT_ENOUGH_DIVERSE_SCTS"
