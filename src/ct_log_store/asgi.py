"""
FastAPI + Uvicorn ASGI application exposing the log store over HTTP.

Runs the LogStore with its background refresh scheduler and serves
read-only inspection endpoints plus Kubernetes probes.

Architecture:
  - FastAPI: lightweight web framework
  - Uvicorn: production ASGI server (handles signals, graceful shutdown)
  - APScheduler: runs in background thread while Uvicorn listens
  - K8s Probes: liveness (scheduler thread alive) + readiness (first load attempted)

Store queries may touch the filesystem when the reload gate is due, so
they run in a worker thread to keep the event loop free.

Entry point for production: uvicorn ct_log_store.asgi:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import asyncio
import base64
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ct_log_store import __version__
from ct_log_store.adapters.metrics import RecordingMetricsSink
from ct_log_store.config import AppSettings
from ct_log_store.domain.models import LogEntry
from ct_log_store.main import configure_structlog, create_store
from ct_log_store.scheduler import create_scheduler
from ct_log_store.store import LogStore

# ─────────────────────── Global State ───────────────────────
# Set during app startup and read by the endpoints.

_scheduler_thread: threading.Thread | None = None
_scheduler_started = False
_error_message: str | None = None
_store: LogStore | None = None
_metrics: RecordingMetricsSink | None = None
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan context manager — runs on startup and shutdown.

    Startup: build the store and start the scheduler in a background thread.
    Shutdown: stop the scheduler and join the thread.
    """
    global _scheduler_thread, _error_message, _store, _metrics

    log.info("asgi.startup", event="lifespan_startup")

    try:
        settings = AppSettings()
    except Exception as e:
        error_msg = f"Configuration error: {e}"
        _error_message = error_msg
        log.error("asgi.startup_error", error=error_msg)
        raise

    configure_structlog(settings.log_level)

    log.info(
        "asgi.startup_config",
        version=__version__,
        log_level=settings.log_level,
        log_list=str(settings.log_list.path),
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    try:
        _metrics = RecordingMetricsSink()
        _store = create_store(settings, metrics=_metrics)
        scheduler = create_scheduler(
            _store,
            cron=settings.scheduler.cron,
            run_on_startup=False,
            handle_signals=False,
        )
    except Exception as e:
        error_msg = f"Failed to initialize store/scheduler: {e}"
        _error_message = error_msg
        log.error("asgi.init_error", error=error_msg)
        raise

    def run_scheduler() -> None:
        """Run scheduler in background thread (blocking)."""
        global _scheduler_started, _error_message
        try:
            _scheduler_started = True
            log.info("asgi.scheduler_thread_started")
            if settings.run_on_startup and _store is not None:
                _store.get_state()
            scheduler.start()
        except Exception as e:
            error_msg = f"Scheduler error: {e}"
            _error_message = error_msg
            log.error("asgi.scheduler_error", error=error_msg)

    _scheduler_thread = threading.Thread(target=run_scheduler, daemon=True)
    _scheduler_thread.start()

    log.info("asgi.startup_complete")

    yield

    log.info("asgi.shutdown", reason="SIGTERM or server stop")

    try:
        scheduler.shutdown(wait=True)
        log.info("asgi.scheduler_shutdown_complete")
    except Exception as e:
        log.warning("asgi.scheduler_shutdown_error", error=str(e))

    if _scheduler_thread and _scheduler_thread.is_alive():
        _scheduler_thread.join(timeout=5.0)
        if _scheduler_thread.is_alive():
            log.warning("asgi.scheduler_thread_timeout", timeout_seconds=5.0)

    log.info("asgi.shutdown_complete")


# ─────────────────────── FastAPI Application ───────────────────────

app = FastAPI(
    title="ct-log-store",
    description="Certificate Transparency log-list store — cached, time-gated log list",
    version=__version__,
    lifespan=lifespan,
)


def _unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"status": "unavailable", "reason": "Store not initialized"},
    )


def _entry_summary(entry: LogEntry) -> dict[str, Any]:
    interval = entry.temporal_interval
    return {
        "log_id": base64.b64encode(entry.log_id).decode("ascii"),
        "log_id_hex": entry.log_id.hex(),
        "description": entry.description,
        "url": entry.url,
        "operator": entry.operator_name,
        "status": entry.status.value,
        "status_timestamp": entry.state.timestamp_millis,
        "mmd": entry.max_merge_delay_seconds,
        "temporal_interval": {
            "start_inclusive": interval.start_inclusive,
            "end_exclusive": interval.end_exclusive,
        },
    }


def _describe(store: LogStore) -> dict[str, Any]:
    return {
        "state": store.get_state().value,
        "logs": len(store.get_logs()),
        "log_list_timestamp": store.get_timestamp(),
        "last_checked_millis": store.last_checked_millis,
        "reload_interval_millis": store.reload_interval_millis,
    }


@app.get("/health")
async def health() -> JSONResponse:
    """
    Kubernetes liveness probe.

    Returns 503 if startup failed or the scheduler thread is not running.
    """
    if _error_message:
        log.warning("health.check_failed", error=_error_message)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": _error_message},
        )

    if not _scheduler_thread or not _scheduler_thread.is_alive():
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": "scheduler thread not running"},
        )

    return JSONResponse(
        status_code=200,
        content={"status": "healthy", "scheduler_running": True},
    )


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Kubernetes readiness probe.

    202 until the store has made its first load attempt, whatever its
    outcome; 503 on a startup error; 200 afterwards.
    """
    if _error_message:
        return JSONResponse(
            status_code=503,
            content={"status": "error", "error": _error_message},
        )

    if _store is None or _store.last_checked_millis is None:
        return JSONResponse(
            status_code=202,
            content={"status": "starting", "scheduler_started": _scheduler_started},
        )

    return JSONResponse(status_code=200, content={"status": "ready"})


@app.get("/info")
async def info() -> dict[str, Any]:
    """Application metadata, for debugging and monitoring."""
    return {
        "name": "ct-log-store",
        "version": __version__,
        "scheduler_running": _scheduler_thread is not None and _scheduler_thread.is_alive(),
        "scheduler_started": _scheduler_started,
        "has_error": _error_message is not None,
    }


@app.get("/state")
async def state() -> JSONResponse:
    """Current store state; passes the reload gate."""
    if _store is None:
        return _unavailable()

    content = await asyncio.to_thread(_describe, _store)
    return JSONResponse(status_code=200, content=content)


@app.get("/logs")
async def logs() -> JSONResponse:
    """Every known log, in document order."""
    if _store is None:
        return _unavailable()

    entries = await asyncio.to_thread(_store.get_logs)
    return JSONResponse(
        status_code=200,
        content={"logs": [_entry_summary(entry) for entry in entries]},
    )


@app.get("/logs/{log_id_hex}")
async def known_log(log_id_hex: str) -> JSONResponse:
    """Look up one log by its hex-encoded id."""
    if _store is None:
        return _unavailable()

    try:
        log_id = bytes.fromhex(log_id_hex)
    except ValueError:
        return JSONResponse(
            status_code=400,
            content={"status": "invalid", "reason": "log id must be hex-encoded"},
        )

    entry = await asyncio.to_thread(_store.get_known_log, log_id)
    if entry is None:
        return JSONResponse(
            status_code=404,
            content={"status": "unknown", "log_id_hex": log_id_hex.lower()},
        )
    return JSONResponse(status_code=200, content=_entry_summary(entry))


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Every state the store has published since startup."""
    if _metrics is None:
        return _unavailable()
    return JSONResponse(
        status_code=200,
        content={"transitions": [s.value for s in _metrics.states]},
    )


if __name__ == "__main__":
    # For local testing: python -m uvicorn ct_log_store.asgi:app --reload
    import uvicorn

    uvicorn.run(
        "ct_log_store.asgi:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )
