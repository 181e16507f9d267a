"""Graceful shutdown handler for the asset indexer.

This module traps termination signals and coordinates stopping the
pipeline so the event being applied finishes its commit before the
process exits.

Usage:
    ```python
    async def main():
        shutdown = GracefulShutdown()

        async with shutdown:
            pipeline = Pipeline(settings)
            shutdown.register_cleanup(pipeline.stop)
            await pipeline.start()

            # Returns on a signal or when the pipeline exits by itself
            await shutdown.wait_for(pipeline.wait())
    ```
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable
from contextlib import suppress
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

# Default shutdown timeout in seconds
DEFAULT_SHUTDOWN_TIMEOUT = 30.0

# Signals to trap for graceful shutdown
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class ShutdownTimeoutError(Exception):
    """Raised when graceful shutdown exceeds timeout."""


class GracefulShutdown:
    """Graceful shutdown handler with signal trapping.

    Traps SIGTERM and SIGINT, exposes the request as an async event and
    runs registered cleanup callbacks within a time limit on exit. A
    second signal exits immediately.

    Example:
        ```python
        shutdown = GracefulShutdown(timeout=30.0)

        async with shutdown:
            await shutdown.wait()
        ```
    """

    def __init__(
        self,
        timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        *,
        exit_on_timeout: bool = True,
    ) -> None:
        """Initialize the shutdown handler.

        Args:
            timeout: Maximum time in seconds for all cleanup callbacks.
            exit_on_timeout: If True, raise ShutdownTimeoutError when the
                cleanup exceeds the timeout. Otherwise log and continue.
        """
        self._timeout = timeout
        self._exit_on_timeout = exit_on_timeout

        self._shutdown_event: asyncio.Event | None = None
        self._shutdown_requested = False
        self._original_handlers: dict[signal.Signals, Any] = {}
        self._cleanup_callbacks: list[Callable[[], Any]] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def timeout(self) -> float:
        """Shutdown timeout in seconds."""
        return self._timeout

    @property
    def is_shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._shutdown_requested

    def register_cleanup(self, callback: Callable[[], Any]) -> None:
        """Register a cleanup callback to run during shutdown.

        Callbacks run in registration order.

        Args:
            callback: A callable (sync or async) to run during shutdown.
        """
        self._cleanup_callbacks.append(callback)

    def request_shutdown(self) -> None:
        """Programmatically request shutdown."""
        if not self._shutdown_requested:
            self._shutdown_requested = True
            logger.info("Shutdown requested programmatically")
            if self._shutdown_event:
                self._shutdown_event.set()

    def _event(self) -> asyncio.Event:
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
            if self._shutdown_requested:
                self._shutdown_event.set()
        return self._shutdown_event

    async def wait(self) -> None:
        """Wait until shutdown is requested."""
        await self._event().wait()

    async def wait_for(self, work: Awaitable[Any]) -> bool:
        """Wait for either a shutdown request or the given work to finish.

        Args:
            work: Awaitable that ends on its own, such as a pipeline loop.

        Returns:
            True if shutdown was requested first, False if the work finished.
        """
        work_task = asyncio.ensure_future(work)
        shutdown_task = asyncio.create_task(self.wait())

        done, pending = await asyncio.wait(
            [work_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for pending_task in pending:
            pending_task.cancel()
            with suppress(asyncio.CancelledError):
                await pending_task

        if work_task in done:
            work_task.result()
            return False
        return True

    def install_signal_handlers(self) -> None:
        """Install signal handlers for graceful shutdown.

        On Windows, handlers go through ``signal.signal`` since the event
        loop cannot register them.
        """
        self._loop = asyncio.get_running_loop()
        self._event()

        if sys.platform == "win32":
            self._install_windows_handlers()
        else:
            self._install_unix_handlers()

        logger.debug("Signal handlers installed")

    def _install_unix_handlers(self) -> None:
        if self._loop is None:
            return

        for sig in SHUTDOWN_SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self._handle_signal, sig)
            except (ValueError, OSError) as e:
                logger.warning("Could not install handler for %s: %s", sig.name, e)

    def _install_windows_handlers(self) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                self._original_handlers[sig] = signal.signal(sig, self._handle_signal_sync)
            except (ValueError, OSError) as e:
                logger.warning("Could not install handler for %s: %s", sig.name, e)

    def remove_signal_handlers(self) -> None:
        """Remove installed signal handlers and restore originals."""
        if sys.platform == "win32":
            for sig, original in self._original_handlers.items():
                with suppress(ValueError, OSError):
                    signal.signal(sig, original)
            self._original_handlers.clear()
        elif self._loop is not None:
            for sig in SHUTDOWN_SIGNALS:
                with suppress(ValueError, OSError):
                    self._loop.remove_signal_handler(sig)

        logger.debug("Signal handlers removed")

    def _handle_signal(self, sig: signal.Signals) -> None:
        if self._shutdown_requested:
            logger.warning("Received %s again - forcing exit!", sig.name)
            sys.exit(128 + sig.value)

        self._shutdown_requested = True
        logger.info("Received %s - finishing current event and shutting down...", sig.name)
        if self._shutdown_event:
            self._shutdown_event.set()

    def _handle_signal_sync(self, sig: int, _frame: FrameType | None) -> None:
        self._handle_signal(signal.Signals(sig))

    async def run_cleanup_callbacks(self) -> None:
        """Run all registered cleanup callbacks within the timeout.

        Raises:
            ShutdownTimeoutError: If the callbacks take longer than the
                timeout and ``exit_on_timeout`` is set.
        """

        async def run_all() -> None:
            for callback in self._cleanup_callbacks:
                try:
                    result = callback()
                    if asyncio.iscoroutine(result):
                        await result
                except Exception as e:
                    logger.error("Cleanup callback failed: %s", e)

        try:
            await asyncio.wait_for(run_all(), timeout=self._timeout)
        except TimeoutError as e:
            logger.error("Cleanup did not finish within %.1fs", self._timeout)
            if self._exit_on_timeout:
                raise ShutdownTimeoutError(
                    f"Shutdown exceeded {self._timeout:.1f}s timeout"
                ) from e

    async def __aenter__(self) -> GracefulShutdown:
        """Async context manager entry - install signal handlers."""
        self.install_signal_handlers()
        return self

    async def __aexit__(self, *_args: Any) -> None:
        """Async context manager exit - cleanup."""
        self.remove_signal_handlers()
        await self.run_cleanup_callbacks()
