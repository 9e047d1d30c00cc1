"""
tmplforge.termination - Termination Controller
==============================================

Handles SIGINT and SIGTERM during a compile run. On the first signal the
worker registry enters its terminating state and every live compiler
process is sent a kill request. Later signals are ignored: each worker is
killed at most once.

Signal callbacks are scheduled on the event loop (``add_signal_handler``)
rather than run between arbitrary bytecodes, so they never interrupt code
that holds the registry lock.

Usage Example
-------------
>>> controller = TerminationController(registry)
>>> with controller.installed(asyncio.get_running_loop()):
...     await run_jobs()
"""

from __future__ import annotations

import asyncio
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from rich.console import Console

from tmplforge.logs import get_logger
from tmplforge.registry import WorkerRegistry


logger = get_logger(__name__)

# Signals that start a shutdown
TERMINATION_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class TerminationController:
    """
    Kills all live workers of a registry, exactly once.

    Parameters
    ----------
    registry : WorkerRegistry
        The registry shared with the worker pool.

    console : Console | None
        Where kill diagnostics are printed. Defaults to stderr.
    """

    def __init__(self, registry: WorkerRegistry, console: Console | None = None) -> None:
        self.registry = registry
        self.console = console or Console(stderr=True, highlight=False, soft_wrap=True)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._previous: dict[signal.Signals, Any] = {}
        self._loop_handlers: list[signal.Signals] = []

    # -------------------------------------------------------------------------
    # Termination
    # -------------------------------------------------------------------------

    def terminate(self) -> int:
        """
        Enter the terminating state and kill every live worker.

        Does not wait for the processes to exit.

        Returns
        -------
        int
            Number of kill requests sent; 0 when already terminating.
        """
        killed = self.registry.begin_termination()
        if killed is None:
            logger.debug("termination already in progress, ignoring")
            return 0

        for handle in killed:
            self.console.print(f"sending kill signal to worker {handle.pid}")
        logger.debug("terminating: %d workers killed", len(killed))
        return len(killed)

    def _on_signal(self, signum: int) -> None:
        logger.debug("received %s", signal.Signals(signum).name)
        self.terminate()

    # -------------------------------------------------------------------------
    # Signal Handler Installation
    # -------------------------------------------------------------------------

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Route SIGINT and SIGTERM to ``terminate`` for as long as installed.

        Handlers can only be installed from the main thread; elsewhere
        this is a logged no-op and termination must be triggered by
        calling ``terminate`` directly.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("not in main thread, signal handlers not installed")
            return

        self._loop = loop
        for sig in TERMINATION_SIGNALS:
            self._previous[sig] = signal.getsignal(sig)
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
                self._loop_handlers.append(sig)
            except NotImplementedError:
                # Windows event loops: defer to the loop from a plain handler.
                signal.signal(sig, self._threadsafe_handler)
        logger.debug("signal handlers installed")

    def _threadsafe_handler(self, signum: int, frame: object) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._on_signal, signum)

    def uninstall(self) -> None:
        """Remove the handlers and restore whatever was there before."""
        if self._loop is None:
            return

        for sig in self._loop_handlers:
            self._loop.remove_signal_handler(sig)
        for sig, previous in self._previous.items():
            if previous is not None:
                signal.signal(sig, previous)

        self._loop_handlers.clear()
        self._previous.clear()
        self._loop = None
        logger.debug("signal handlers removed")

    @contextmanager
    def installed(self, loop: asyncio.AbstractEventLoop) -> Iterator[TerminationController]:
        """Install handlers for the duration of a ``with`` block."""
        self.install(loop)
        try:
            yield self
        finally:
            self.uninstall()
