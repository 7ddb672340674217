"""
Scheduler — periodic refresh of the log store off the handshake path.

Infrastructure layer — uses APScheduler (3.x) for lightweight in-process
scheduling driven by a standard 5-field cron expression.

Each run simply queries the store's state. If the reload interval has
elapsed that query performs the reload, so handshake threads find a warm
cache. The query is wrapped in a LoggingExecutionContext for timing.

Graceful shutdown: optionally handles SIGINT/SIGTERM to stop the scheduler.
"""

from __future__ import annotations

import signal
import sys

import structlog
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from railway import LoggingExecutionContext
from railway.result import Result

from ct_log_store.domain.models import StoreState
from ct_log_store.store import LogStore

log = structlog.get_logger()

JOB_ID = "ct_log_store_refresh"


def refresh(store: LogStore) -> Result[StoreState]:
    """Pass the store's reload gate once and return the resulting state."""
    return Result.success(store.get_state())


def create_scheduler(
    store: LogStore,
    cron: str = "*/10 * * * *",
    run_on_startup: bool = True,
    handle_signals: bool = True,
) -> BlockingScheduler:
    """
    Create a configured APScheduler that refreshes the store on a cron schedule.

    Args:
        store: The shared LogStore instance.
        cron: Standard 5-field cron expression (minute hour dom month dow).
        run_on_startup: If True, refresh once immediately before entering the loop.
        handle_signals: Register SIGINT/SIGTERM handlers. Must be False when the
                        scheduler is created outside the main thread's control
                        (e.g. under an ASGI server that owns the signals).

    Returns:
        A configured BlockingScheduler (call .start() to begin).
    """
    scheduler = BlockingScheduler()
    ctx = LoggingExecutionContext(operation="LogListRefresh")

    def _job() -> None:
        result = ctx.execute(lambda: refresh(store))
        if result.is_success():
            log.info("scheduler.refresh_completed", state=result.value().value)
        else:
            log.error("scheduler.refresh_failed", failure=result.error().cause())

    minute, hour, dom, month, dow = cron.split()
    scheduler.add_job(
        _job,
        trigger=CronTrigger(
            minute=minute,
            hour=hour,
            day=dom,
            month=month,
            day_of_week=dow,
        ),
        id=JOB_ID,
        name="CT log list refresh",
        replace_existing=True,
    )

    if run_on_startup:
        log.info("scheduler.startup_run", message="Loading log list immediately on startup")
        _job()

    if handle_signals:
        _register_shutdown_signals(scheduler)

    return scheduler


def _register_shutdown_signals(scheduler: BlockingScheduler) -> None:
    """Register SIGINT and SIGTERM handlers for graceful shutdown."""

    def _shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        log.info("scheduler.shutdown_requested", signal=sig_name)
        scheduler.shutdown(wait=False)
        sys.exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
