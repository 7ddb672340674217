"""
Application entry point — wires dependencies and starts the refresh scheduler.

Composition root: creates concrete adapters, injects them into the
LogStore, and hands the store to the scheduler.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog for structured logging
  2. Load and validate configuration from environment
  3. Create the adapters (file source, JSON parser, policy, metrics)
  4. Build the shared LogStore
  5. Create and start the scheduler
"""

from __future__ import annotations

import logging
import sys

import structlog

from ct_log_store import __version__
from ct_log_store.adapters.file_source import FileLogListSource
from ct_log_store.adapters.json_parser import JsonLogListParser
from ct_log_store.adapters.metrics import StructlogMetricsSink
from ct_log_store.adapters.policy import ChromeStylePolicy
from ct_log_store.config import AppSettings
from ct_log_store.domain.ports import MetricsSink
from ct_log_store.scheduler import create_scheduler
from ct_log_store.store import LogStore


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Colored, human-readable console output with ISO timestamps; events
    below `log_level` are filtered out before rendering.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_store(settings: AppSettings, metrics: MetricsSink | None = None) -> LogStore:
    """
    Instantiate all concrete adapters and build the LogStore.

    `metrics` defaults to a StructlogMetricsSink.
    """
    policy = ChromeStylePolicy(
        max_log_list_age_days=settings.policy.max_log_list_age_days,
        min_distinct_operators=settings.policy.min_distinct_operators,
        short_lived_max_days=settings.policy.short_lived_max_days,
        short_lived_min_scts=settings.policy.short_lived_min_scts,
        long_lived_min_scts=settings.policy.long_lived_min_scts,
    )
    return LogStore(
        source=FileLogListSource(settings.log_list.path),
        parser=JsonLogListParser(),
        policy=policy,
        metrics=metrics or StructlogMetricsSink(),
        reload_interval_millis=settings.log_list.reload_interval_millis,
    )


def main() -> None:
    """Wire dependencies and launch the scheduled refresh."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        log_list=str(settings.log_list.path),
        reload_interval_seconds=settings.log_list.reload_interval_seconds,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    store = create_store(settings)
    scheduler = create_scheduler(
        store,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    log.info("app.scheduler_starting", cron=settings.scheduler.cron)

    try:
        scheduler.start()
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")
    except SystemExit:
        log.info("app.shutdown", reason="signal received")
        raise
    except Exception as e:
        log.error("app.fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
