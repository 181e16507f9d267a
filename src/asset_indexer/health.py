"""Indexer health monitor with metrics and HTTP endpoints.

This module tracks how the indexing pipeline is doing: events dispatched
by outcome, failures awaiting retry, the last indexed block, and whether
the pipeline has halted on an event it could not apply.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from aiohttp import web
from prometheus_client import Counter, Gauge, Histogram, generate_latest

from asset_indexer.engine.dispatcher import DispatchResult

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 8080


class HealthStatus(Enum):
    """Overall health status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class PipelineState(Enum):
    """Lifecycle state of the indexing pipeline."""

    STARTING = "starting"
    RUNNING = "running"
    RETRYING = "retrying"
    HALTED = "halted"
    STOPPED = "stopped"


@dataclass
class HealthReport:
    """Snapshot of the indexer health."""

    status: HealthStatus
    state: PipelineState
    events_applied: int = 0
    events_duplicate: int = 0
    events_unhandled: int = 0
    events_failed: int = 0
    consecutive_failures: int = 0
    last_block_number: int | None = None
    last_event_time: float | None = None
    stream_length: int | None = None
    last_error: str | None = None
    uptime_seconds: float = 0.0
    timestamp: float = field(default_factory=time.time)


# Prometheus metrics
EVENTS_TOTAL = Counter(
    "asset_indexer_events_total",
    "Total number of dispatched events by outcome",
    ["status"],
)

EVENT_FAILURES = Counter(
    "asset_indexer_event_failures_total",
    "Total number of failed dispatch attempts",
    ["error"],
)

LAST_BLOCK_NUMBER = Gauge(
    "asset_indexer_last_block_number",
    "Block number of the last applied event",
)

STREAM_LENGTH = Gauge(
    "asset_indexer_stream_length",
    "Number of entries in the decoded event stream",
)

DISPATCH_LATENCY = Histogram(
    "asset_indexer_dispatch_latency_seconds",
    "Time to apply one event including the store commit",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

HEALTH_STATUS = Gauge(
    "asset_indexer_health_status",
    "Overall health status (1=healthy, 0.5=degraded, 0=unhealthy)",
)


class HealthMonitor:
    """Track pipeline progress and expose metrics.

    Example:
        ```python
        monitor = HealthMonitor()
        await monitor.start_http_server(port=8080)

        monitor.set_state(PipelineState.RUNNING)
        monitor.record_result(result, processing_time=0.002)

        report = monitor.get_health_report()
        ```
    """

    def __init__(self) -> None:
        self._state = PipelineState.STARTING
        self._start_time = time.time()
        self._counts: dict[str, int] = {"applied": 0, "duplicate": 0, "unhandled": 0}
        self._failures = 0
        self._consecutive_failures = 0
        self._last_block: int | None = None
        self._last_event_time: float | None = None
        self._stream_length: int | None = None
        self._last_error: str | None = None

        # HTTP server
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

    @property
    def state(self) -> PipelineState:
        """Return the current pipeline state."""
        return self._state

    def set_state(self, state: PipelineState, error: str | None = None) -> None:
        """Update the pipeline state.

        Args:
            state: New state.
            error: Optional error message explaining the state.
        """
        if state != self._state:
            logger.info("Pipeline state: %s -> %s", self._state.value, state.value)
        self._state = state
        if error is not None:
            self._last_error = error

    def record_result(
        self,
        result: DispatchResult,
        *,
        block_number: int | None = None,
        processing_time: float | None = None,
    ) -> None:
        """Record a dispatched event.

        Args:
            result: Outcome of the dispatch.
            block_number: Block of the dispatched event.
            processing_time: Optional dispatch latency in seconds.
        """
        status = result.status.value
        self._counts[status] = self._counts.get(status, 0) + 1
        self._consecutive_failures = 0
        self._last_event_time = time.time()

        EVENTS_TOTAL.labels(status=status).inc()
        if processing_time is not None:
            DISPATCH_LATENCY.observe(processing_time)

        if block_number is not None:
            self._last_block = block_number
            LAST_BLOCK_NUMBER.set(block_number)

        if self._state == PipelineState.RETRYING:
            self.set_state(PipelineState.RUNNING)

    def record_failure(self, error: BaseException) -> None:
        """Record a failed dispatch attempt.

        Args:
            error: The exception raised while applying the event.
        """
        self._failures += 1
        self._consecutive_failures += 1
        self._last_error = f"{type(error).__name__}: {error}"
        EVENT_FAILURES.labels(error=type(error).__name__).inc()

    def set_stream_length(self, length: int) -> None:
        """Record the current stream length."""
        self._stream_length = length
        STREAM_LENGTH.set(length)

    def _determine_overall_status(self) -> HealthStatus:
        if self._state in (PipelineState.HALTED, PipelineState.STOPPED):
            return HealthStatus.UNHEALTHY
        if self._state == PipelineState.RETRYING or self._consecutive_failures:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def get_health_report(self) -> HealthReport:
        """Generate a health report.

        Returns:
            HealthReport with the current pipeline status.
        """
        overall_status = self._determine_overall_status()
        HEALTH_STATUS.set(
            1.0 if overall_status == HealthStatus.HEALTHY
            else 0.5 if overall_status == HealthStatus.DEGRADED
            else 0.0
        )

        return HealthReport(
            status=overall_status,
            state=self._state,
            events_applied=self._counts["applied"],
            events_duplicate=self._counts["duplicate"],
            events_unhandled=self._counts["unhandled"],
            events_failed=self._failures,
            consecutive_failures=self._consecutive_failures,
            last_block_number=self._last_block,
            last_event_time=self._last_event_time,
            stream_length=self._stream_length,
            last_error=self._last_error,
            uptime_seconds=time.time() - self._start_time,
        )

    # HTTP Server methods

    async def _handle_health(self, _request: web.Request) -> web.Response:
        """Handle /health endpoint."""
        report = self.get_health_report()

        status_code = 200 if report.status == HealthStatus.HEALTHY else 503

        body: dict[str, Any] = {
            "status": report.status.value,
            "state": report.state.value,
            "uptime_seconds": report.uptime_seconds,
            "events": {
                "applied": report.events_applied,
                "duplicate": report.events_duplicate,
                "unhandled": report.events_unhandled,
                "failed": report.events_failed,
            },
            "consecutive_failures": report.consecutive_failures,
            "last_block_number": report.last_block_number,
            "last_event_time": report.last_event_time,
            "stream_length": report.stream_length,
            "last_error": report.last_error,
        }

        return web.json_response(body, status=status_code)

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        """Handle /metrics endpoint (Prometheus format)."""
        # Ensure latest values are calculated
        self.get_health_report()

        metrics = generate_latest()
        return web.Response(
            body=metrics,
            content_type="text/plain",
            charset="utf-8",
        )

    async def _handle_ready(self, _request: web.Request) -> web.Response:
        """Handle /ready endpoint for k8s readiness checks."""
        if self._state == PipelineState.STARTING:
            return web.json_response(
                {"ready": False, "reason": "starting"},
                status=503,
            )

        report = self.get_health_report()
        if report.status == HealthStatus.UNHEALTHY:
            return web.json_response(
                {"ready": False, "reason": report.state.value},
                status=503,
            )

        return web.json_response({"ready": True}, status=200)

    async def _handle_live(self, _request: web.Request) -> web.Response:
        """Handle /live endpoint for k8s liveness checks."""
        # Always return 200 if the server is running
        return web.json_response({"live": True}, status=200)

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        app.router.add_get("/ready", self._handle_ready)
        app.router.add_get("/live", self._handle_live)
        return app

    async def start_http_server(self, port: int = DEFAULT_HTTP_PORT) -> None:
        """Start the HTTP server for health and metrics endpoints.

        Args:
            port: Port to listen on.
        """
        if self._runner:
            logger.warning("HTTP server already running")
            return

        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, "0.0.0.0", port)
        await site.start()

        logger.info("Health HTTP server started on port %d", port)

    async def stop_http_server(self) -> None:
        """Stop the HTTP server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None
            logger.info("Health HTTP server stopped")
