"""
tmplforge.pool - Bounded Worker Pool
====================================

Runs compile jobs with at most N compiler processes alive at once and
returns results in job order, whatever order they finish in.

Scheduling
----------
The pool starts ``min(N, len(jobs))`` slots. Each slot takes the next
pending job, compiles it, stores the result at the job's index, and
repeats until no jobs are left. A slot stops taking jobs once any job has
failed or the registry is terminating.

Failure Policy
--------------
- The first error is the one reported.
- A failing job does not cancel its siblings: jobs already running finish
  normally, or get killed if a termination signal arrives.
- The run raises once every started job has settled, so no compiler
  process outlives the call.

Usage Example
-------------
>>> pool = WorkerPool(CompileOptions(concurrency=4))
>>> results = asyncio.run(pool.run(jobs))
"""

from __future__ import annotations

import asyncio
from collections import deque

from tmplforge.compiler import compile_template, resolve_compiler
from tmplforge.logs import get_logger
from tmplforge.models import CompileOptions, CompileResult, TemplateJob
from tmplforge.registry import WorkerRegistry
from tmplforge.termination import TerminationController


logger = get_logger(__name__)


class WorkerPool:
    """
    Order-preserving, bounded fan-out of compile jobs.

    Parameters
    ----------
    options : CompileOptions | None
        Compile options; ``options.max_workers`` sets the ceiling.

    Attributes
    ----------
    registry : WorkerRegistry | None
        Live-worker registry of the current run, None between runs.

    controller : TerminationController | None
        Termination controller of the current run, None between runs.
    """

    def __init__(self, options: CompileOptions | None = None) -> None:
        self.options = options or CompileOptions()
        self.concurrency = self.options.max_workers
        self.registry: WorkerRegistry | None = None
        self.controller: TerminationController | None = None

    def terminate(self) -> int:
        """
        Kill the current run's workers, as if SIGTERM had been received.

        Returns
        -------
        int
            Number of kill requests sent.
        """
        if self.controller is None:
            return 0
        return self.controller.terminate()

    async def run(self, jobs: list[TemplateJob]) -> list[CompileResult]:
        """
        Compile every job and collect the results in job order.

        Parameters
        ----------
        jobs : list[TemplateJob]
            Jobs in their final output order.

        Returns
        -------
        list[CompileResult]
            One result per job, ``results[i]`` belonging to ``jobs[i]``.

        Raises
        ------
        CompilerNotFoundError
            If the compiler cannot be resolved (only when there are jobs).
        CompileError
            If a template failed to compile.
        TerminationInProgress
            If a termination signal interrupted the run.
        """
        if not jobs:
            return []

        compiler = resolve_compiler(self.options.compiler)
        pending: deque[tuple[int, TemplateJob]] = deque(enumerate(jobs))
        results: list[CompileResult | None] = [None] * len(jobs)
        errors: list[BaseException] = []

        registry = WorkerRegistry()
        controller = TerminationController(registry)
        self.registry = registry
        self.controller = controller

        async def slot() -> None:
            while pending and not errors:
                index, job = pending.popleft()
                try:
                    results[index] = await compile_template(
                        job, self.options, registry, compiler=compiler
                    )
                except Exception as e:
                    logger.debug("job %s failed: %s", job.name, e)
                    errors.append(e)

        slots = min(self.concurrency, len(jobs))
        logger.debug(
            "compiling %d templates using a max of %d processes", len(jobs), slots
        )

        try:
            with controller.installed(asyncio.get_running_loop()):
                await asyncio.gather(*(slot() for _ in range(slots)))
        finally:
            self.registry = None
            self.controller = None

        if errors:
            raise errors[0]

        return [result for result in results if result is not None]
