"""
Metrics adapters — implementations of the MetricsSink port.

  - StructlogMetricsSink: emits one structured event per state change
  - RecordingMetricsSink: keeps the sequence of states in memory
  - NoOpMetricsSink: discards everything
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

from ct_log_store.domain.models import StoreState

if TYPE_CHECKING:
    from ct_log_store.store import LogStore

log = structlog.get_logger()


class StructlogMetricsSink:
    """Report each published store state as a `metrics.log_list_state_changed` event."""

    def on_state_changed(self, store: LogStore) -> None:
        log.info(
            "metrics.log_list_state_changed",
            state=store.get_state().value,
            logs=len(store.get_logs()),
            log_list_timestamp=store.get_timestamp(),
        )


class RecordingMetricsSink:
    """Remember every reported state, in order. Safe to share between threads."""

    def __init__(self) -> None:
        self._states: list[StoreState] = []
        self._lock = threading.Lock()

    def on_state_changed(self, store: LogStore) -> None:
        state = store.get_state()
        with self._lock:
            self._states.append(state)

    @property
    def states(self) -> list[StoreState]:
        with self._lock:
            return list(self._states)


class NoOpMetricsSink:
    def on_state_changed(self, store: LogStore) -> None:
        return None
