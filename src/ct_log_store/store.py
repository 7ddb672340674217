"""
LogStore — cached, time-gated view of the CT log list.

Domain layer. All I/O is injected via ports (Protocol interfaces).

Every query first passes the reload gate:

  now - last_checked < reload interval  → answer from the cached snapshot
  otherwise                             → one reload attempt, then answer

A reload attempt is a railway:

  source.read()                  Failure(NOT_FOUND)   → NOT_FOUND
    → parser.parse(raw)          Failure(PARSE_ERROR) → MALFORMED
      → policy.is_log_store_compliant(view)
                                 True  → COMPLIANT
                                 False → NON_COMPLIANT

The outcome is published as one immutable _Snapshot (state, document,
last-checked time, content digest) by a single reference assignment, so
readers never see a state paired with the wrong document or timestamp.
Only a failed read or parse discards the cached document.
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass

import structlog
from railway import ErrorCode, FailureDescription
from railway.result import Result

from ct_log_store.adapters.clock import SystemClock
from ct_log_store.domain.models import LogEntry, LogListDocument, StoreState
from ct_log_store.domain.ports import (
    Clock,
    CompliancePolicy,
    LogListParser,
    LogListSource,
    MetricsSink,
)

log = structlog.get_logger()

RELOAD_INTERVAL_MILLIS = 10 * 60 * 1000


@dataclass(frozen=True, slots=True)
class _Snapshot:
    state: StoreState
    document: LogListDocument | None = None
    checked_at_millis: int | None = None
    content_digest: bytes | None = None


_UNINITIALIZED = _Snapshot(state=StoreState.UNINITIALIZED)


class LogListView:
    """
    Read-only LogStoreReader over a single document, with no reload gate.

    Handed to the compliance policy while a candidate document is being
    classified, before it is published.
    """

    def __init__(self, document: LogListDocument | None) -> None:
        self._document = document

    def get_known_log(self, log_id: bytes | None) -> LogEntry | None:
        if not log_id or self._document is None:
            return None
        return self._document.find(bytes(log_id))

    def get_logs(self) -> tuple[LogEntry, ...]:
        if self._document is None:
            return ()
        return self._document.logs

    def get_timestamp(self) -> int | None:
        if self._document is None:
            return None
        return self._document.timestamp_millis


def _state_for_failure(error: FailureDescription) -> StoreState:
    if error.code is ErrorCode.NOT_FOUND:
        log.warning("store.log_list_not_found", error=error.cause())
        return StoreState.NOT_FOUND
    log.warning("store.log_list_malformed", error=error.cause())
    return StoreState.MALFORMED


class LogStore:
    """
    Thread-safe store of known CT logs, reloaded at most once per interval.

    Queries never raise for document problems: a missing, unreadable or
    malformed log list is reported through get_state() and makes every
    lookup return None.
    """

    def __init__(
        self,
        source: LogListSource,
        parser: LogListParser,
        policy: CompliancePolicy,
        metrics: MetricsSink,
        clock: Clock | None = None,
        reload_interval_millis: int = RELOAD_INTERVAL_MILLIS,
    ) -> None:
        for name, dependency in (
            ("source", source),
            ("parser", parser),
            ("policy", policy),
            ("metrics", metrics),
        ):
            if dependency is None:
                raise ValueError(f"LogStore requires a {name}")
        if reload_interval_millis <= 0:
            raise ValueError(
                f"reload interval must be positive, got {reload_interval_millis}"
            )

        self._source = source
        self._parser = parser
        self._policy = policy
        self._metrics = metrics
        self._clock = clock or SystemClock()
        self._reload_interval_millis = reload_interval_millis
        self._reload_lock = threading.Lock()
        self._snapshot = _UNINITIALIZED

    @property
    def reload_interval_millis(self) -> int:
        return self._reload_interval_millis

    @property
    def last_checked_millis(self) -> int | None:
        """Clock time of the last reload attempt. Does not trigger the gate."""
        return self._snapshot.checked_at_millis

    # ─────────────────────── Queries ───────────────────────

    def get_state(self) -> StoreState:
        return self._current().state

    def get_known_log(self, log_id: bytes | None) -> LogEntry | None:
        """Entry for `log_id`, or None when the id is empty or unknown."""
        if not log_id:
            return None
        return LogListView(self._current().document).get_known_log(log_id)

    def get_logs(self) -> tuple[LogEntry, ...]:
        """Snapshot of every known entry, in document order."""
        return LogListView(self._current().document).get_logs()

    def get_timestamp(self) -> int | None:
        """`log_list_timestamp` of the current document, if one is loaded."""
        return LogListView(self._current().document).get_timestamp()

    # ─────────────────────── Reload gate ───────────────────────

    def _is_due(self, snapshot: _Snapshot, now: int) -> bool:
        if snapshot.checked_at_millis is None:
            return True
        return now - snapshot.checked_at_millis >= self._reload_interval_millis

    def _current(self) -> _Snapshot:
        snapshot = self._snapshot
        if not self._is_due(snapshot, self._clock.now_millis()):
            return snapshot

        # Before the first load there is nothing to serve, so wait for it.
        # Afterwards, callers racing an in-flight reload get the old snapshot.
        wait = snapshot.state is StoreState.UNINITIALIZED
        if not self._reload_lock.acquire(blocking=wait):
            return snapshot
        try:
            snapshot = self._snapshot
            now = self._clock.now_millis()
            if self._is_due(snapshot, now):
                snapshot = self._reload(snapshot, now)
            return snapshot
        finally:
            self._reload_lock.release()

    # ─────────────────────── Reload ───────────────────────

    def _reload(self, previous: _Snapshot, now: int) -> _Snapshot:
        read = self._source.read()
        digest = read.map(lambda raw: hashlib.sha256(raw).digest()).get_or_else(None)

        snapshot = read.flat_map(self._parser.parse).either(
            on_success=lambda document: _Snapshot(
                state=self._classify(document),
                document=document,
                checked_at_millis=now,
                content_digest=digest,
            ),
            on_failure=lambda error: _Snapshot(
                state=_state_for_failure(error),
                checked_at_millis=now,
                content_digest=digest,
            ),
        )
        self._snapshot = snapshot

        changed = (
            previous.checked_at_millis is None
            or previous.state is not snapshot.state
            or previous.content_digest != snapshot.content_digest
        )
        if not changed:
            log.debug("store.reload_unchanged", state=snapshot.state.value)
            return snapshot

        log.info(
            "store.state_changed",
            previous=previous.state.value,
            state=snapshot.state.value,
            logs=0 if snapshot.document is None else snapshot.document.log_count,
        )
        self._emit_metrics(snapshot.state)
        return snapshot

    def _classify(self, document: LogListDocument) -> StoreState:
        compliant = (
            Result.from_computation(
                lambda: bool(self._policy.is_log_store_compliant(LogListView(document))),
                ErrorCode.POLICY_ERROR,
                "Compliance policy raised",
            )
            .peek_failure(lambda err: log.error("store.policy_failed", error=err.cause()))
            .get_or_else(False)
        )
        return StoreState.COMPLIANT if compliant else StoreState.NON_COMPLIANT

    def _emit_metrics(self, state: StoreState) -> None:
        try:
            self._metrics.on_state_changed(self)
        except Exception:
            log.exception("store.metrics_failed", state=state.value)
