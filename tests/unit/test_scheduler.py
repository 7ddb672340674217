"""
Unit tests for the scheduler module.

Tests verify scheduler creation, job wiring, startup execution,
and signal handler registration without starting the blocking loop.
"""

from __future__ import annotations

import signal
from unittest.mock import MagicMock, patch

from apscheduler.triggers.cron import CronTrigger
from railway import ErrorCode, ResultAssertions

from ct_log_store.domain.models import StoreState
from ct_log_store.scheduler import JOB_ID, create_scheduler, refresh


def _store(state: StoreState = StoreState.COMPLIANT) -> MagicMock:
    store = MagicMock()
    store.get_state.return_value = state
    return store


class TestRefresh:
    def test_returns_store_state(self) -> None:
        """
        GIVEN a store in NOT_FOUND
        WHEN refresh is called
        THEN the state is returned as a success.
        """
        result = refresh(_store(StoreState.NOT_FOUND))
        assert ResultAssertions.assert_success(result) is StoreState.NOT_FOUND


class TestCreateScheduler:
    """Verify scheduler factory configuration."""

    def test_creates_scheduler_with_job(self) -> None:
        """
        GIVEN a store
        WHEN create_scheduler is called
        THEN the returned scheduler has exactly one refresh job.
        """
        scheduler = create_scheduler(
            _store(), cron="0 */12 * * *", run_on_startup=False, handle_signals=False
        )

        jobs = scheduler.get_jobs()
        assert len(jobs) == 1
        assert jobs[0].id == JOB_ID == "ct_log_store_refresh"

    def test_uses_cron_trigger(self) -> None:
        scheduler = create_scheduler(
            _store(), cron="*/10 * * * *", run_on_startup=False, handle_signals=False
        )

        job = scheduler.get_jobs()[0]
        assert isinstance(job.trigger, CronTrigger)

    def test_run_on_startup_queries_store_immediately(self) -> None:
        """
        GIVEN run_on_startup=True
        WHEN create_scheduler is called
        THEN the store is queried once, which passes its reload gate.
        """
        store = _store()
        create_scheduler(store, run_on_startup=True, handle_signals=False)

        store.get_state.assert_called_once()

    def test_run_on_startup_false_does_not_query(self) -> None:
        store = _store()
        create_scheduler(store, run_on_startup=False, handle_signals=False)

        store.get_state.assert_not_called()

    def test_startup_survives_store_exception(self) -> None:
        """
        GIVEN a store whose query raises
        WHEN run_on_startup executes
        THEN the scheduler is still created (no crash).
        """
        store = MagicMock()
        store.get_state.side_effect = RuntimeError("boom")

        scheduler = create_scheduler(store, run_on_startup=True, handle_signals=False)

        store.get_state.assert_called_once()
        assert scheduler is not None

    def test_scheduled_job_refreshes_store(self) -> None:
        store = _store()
        scheduler = create_scheduler(store, run_on_startup=False, handle_signals=False)

        scheduler.get_jobs()[0].func()

        store.get_state.assert_called_once()

    @patch("ct_log_store.scheduler.signal.signal")
    def test_registers_signal_handlers(self, mock_signal: MagicMock) -> None:
        """
        GIVEN handle_signals left at its default
        WHEN create_scheduler is called
        THEN SIGINT and SIGTERM handlers are registered.
        """
        create_scheduler(_store(), run_on_startup=False)

        calls = {call.args[0] for call in mock_signal.call_args_list}
        assert signal.SIGINT in calls
        assert signal.SIGTERM in calls

    @patch("ct_log_store.scheduler.signal.signal")
    def test_handle_signals_false_leaves_signals_alone(self, mock_signal: MagicMock) -> None:
        create_scheduler(_store(), run_on_startup=False, handle_signals=False)

        mock_signal.assert_not_called()


class TestLoggingContext:
    def test_exception_becomes_technical_error(self) -> None:
        """
        GIVEN a store that raises
        WHEN refresh runs inside the logging execution context
        THEN the exception becomes a TECHNICAL_ERROR failure.
        """
        from railway import LoggingExecutionContext

        store = MagicMock()
        store.get_state.side_effect = OSError("disk gone")

        result = LoggingExecutionContext(operation="LogListRefresh").execute(
            lambda: refresh(store)
        )

        ResultAssertions.assert_failure(result, ErrorCode.TECHNICAL_ERROR)
