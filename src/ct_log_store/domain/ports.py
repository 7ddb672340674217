"""
Ports — Protocol-based interfaces for the store's collaborators.

These define WHAT the LogStore needs without specifying HOW it's done.
Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing), so adapters and test fakes
satisfy the contract simply by implementing the methods.

Reload flow:
  1. LogListSource   → raw bytes of the backing file
  2. LogListParser   → LogListDocument
  3. CompliancePolicy → is the candidate document acceptable?
  4. MetricsSink     → told once the new state is published
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cryptography import x509
from railway.result import Result

from ct_log_store.domain.models import (
    LogEntry,
    LogListDocument,
    PolicyCompliance,
    VerificationResult,
)

if TYPE_CHECKING:
    from ct_log_store.store import LogStore

KeyDecoder = Callable[[bytes], Any]
"""Turns a log's published DER key bytes into an opaque key handle."""


@runtime_checkable
class LogListSource(Protocol):
    """
    Port: read the whole backing log-list file.

    The file is opened, read and closed within one call. Any I/O problem
    is returned as Result.failure(NOT_FOUND, ...).
    """

    def read(self) -> Result[bytes]: ...


@runtime_checkable
class LogListParser(Protocol):
    """
    Port: parse raw log-list bytes into a LogListDocument.

    Pure and synchronous. Every structural problem is returned as
    Result.failure(PARSE_ERROR, ...).
    """

    def parse(self, raw: bytes) -> Result[LogListDocument]: ...


@runtime_checkable
class LogStoreReader(Protocol):
    """Read-only view of a set of known logs, as handed to a CompliancePolicy."""

    def get_known_log(self, log_id: bytes | None) -> LogEntry | None: ...

    def get_logs(self) -> tuple[LogEntry, ...]: ...

    def get_timestamp(self) -> int | None: ...


@runtime_checkable
class CompliancePolicy(Protocol):
    """
    Port: the CT policy the store and its callers are judged against.

    Both methods are pure queries.
    """

    def is_log_store_compliant(self, store: LogStoreReader) -> bool:
        """
        Decide whether a freshly loaded set of logs satisfies the policy.

        Called once per successful parse, before the new state is published.
        """
        ...

    def classify_evidence(
        self,
        result: VerificationResult,
        leaf: x509.Certificate,
    ) -> PolicyCompliance:
        """Judge one certificate's SCTs. Never called by the store itself."""
        ...


@runtime_checkable
class MetricsSink(Protocol):
    """
    Port: told about each published store state change.

    Invoked after the new state is visible, so store.get_state() inside
    the callback returns it without triggering a reload.
    """

    def on_state_changed(self, store: LogStore) -> None: ...


@runtime_checkable
class Clock(Protocol):
    """Port: monotonic time source in milliseconds."""

    def now_millis(self) -> int: ...
