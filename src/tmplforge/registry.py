"""
tmplforge.registry - Live Worker Registry
=========================================

The registry is the single source of truth for which compiler processes
are running. It is written by compile jobs (register on spawn, unregister
on exit) and read by the termination controller (kill everything live).

All access goes through one lock. Entries are keyed by a token drawn from
a counter that never repeats, so a recycled OS pid can never alias a
registered worker.

State Transitions
-----------------
    register()          PENDING  -> RUNNING   (or KILLED if terminating)
    begin_termination() RUNNING  -> KILLED
    unregister()        RUNNING  -> SUCCEEDED | FAILED | KILLED
"""

from __future__ import annotations

import itertools
import signal
import threading
from contextlib import suppress
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tmplforge.logs import get_logger
from tmplforge.models import JobState, TemplateJob


if TYPE_CHECKING:
    from asyncio.subprocess import Process


logger = get_logger(__name__)

# Exit statuses of a process ended by SIGINT or SIGTERM. A Ctrl-C from a
# terminal reaches the compilers as well as this process.
INTERRUPTED_RETURNCODES = frozenset({-signal.SIGINT, -signal.SIGTERM})


@dataclass
class WorkerHandle:
    """
    A running compiler process and the job it serves.

    Attributes
    ----------
    token : int
        Registry key, unique for the lifetime of the registry.

    job : TemplateJob
        The job this worker compiles.

    process : Process
        The asyncio subprocess.

    pid : int
        OS process id, kept for diagnostics only.

    state : JobState
        Current lifecycle state.
    """

    token: int
    job: TemplateJob
    process: Process = field(repr=False)
    pid: int
    state: JobState = JobState.PENDING

    def kill(self) -> None:
        """Send a kill request without waiting for the process to exit."""
        # The process may have been reaped already; Popen ignores signals then.
        with suppress(ProcessLookupError):
            self.process.kill()


class WorkerRegistry:
    """
    Mutex-guarded map of live workers plus the terminating flag.

    One registry is created per pool run and discarded when the run
    settles.

    Examples
    --------
    >>> registry = WorkerRegistry()
    >>> registry.terminating
    False
    >>> len(registry)
    0
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens = itertools.count(1)
        self._workers: dict[int, WorkerHandle] = {}
        self._terminating = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._workers)

    @property
    def terminating(self) -> bool:
        with self._lock:
            return self._terminating

    def snapshot(self) -> list[WorkerHandle]:
        """Return the live workers in registration order."""
        with self._lock:
            return list(self._workers.values())

    def register(self, job: TemplateJob, process: Process) -> WorkerHandle:
        """
        Record a freshly spawned compiler process.

        Must be called right after the spawn, with no suspension point in
        between. If termination began while the spawn was in flight, the
        process is killed here so it cannot escape the controller.

        Returns
        -------
        WorkerHandle
            The handle, RUNNING or already KILLED.
        """
        with self._lock:
            handle = WorkerHandle(
                token=next(self._tokens),
                job=job,
                process=process,
                pid=process.pid,
            )
            self._workers[handle.token] = handle

            if self._terminating:
                logger.debug("worker %s spawned during shutdown, killing", handle.pid)
                handle.state = JobState.KILLED
                handle.kill()
            else:
                handle.state = JobState.RUNNING

            return handle

    def unregister(self, handle: WorkerHandle, returncode: int | None) -> JobState:
        """
        Remove an exited worker and settle its final state.

        Parameters
        ----------
        handle : WorkerHandle
            The worker that exited.

        returncode : int | None
            Exit status reported for the process.

        Returns
        -------
        JobState
            KILLED if the controller killed it or it was ended by SIGINT
            or SIGTERM, otherwise SUCCEEDED for a zero exit status and
            FAILED for anything else.
        """
        with self._lock:
            self._workers.pop(handle.token, None)
            if handle.state is JobState.KILLED:
                return handle.state

            if returncode == 0:
                handle.state = JobState.SUCCEEDED
            elif returncode in INTERRUPTED_RETURNCODES:
                handle.state = JobState.KILLED
            else:
                handle.state = JobState.FAILED
            return handle.state

    def begin_termination(self) -> list[WorkerHandle] | None:
        """
        Enter the terminating state and kill every live worker.

        Kill requests are sent while the lock is held, so a worker can
        neither register unseen nor be killed after it unregistered.

        Returns
        -------
        list[WorkerHandle] | None
            The workers that were sent a kill request, or None if the
            registry was already terminating.
        """
        with self._lock:
            if self._terminating:
                return None
            self._terminating = True

            killed: list[WorkerHandle] = []
            for handle in self._workers.values():
                if handle.state is JobState.RUNNING:
                    handle.state = JobState.KILLED
                    handle.kill()
                    killed.append(handle)
            return killed
