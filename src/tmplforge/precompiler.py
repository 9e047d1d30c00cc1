"""
tmplforge.precompiler - Precompile Pipeline
===========================================

Ties the pieces together:

    1. Discover templates and derive their names (in a worker thread)
    2. Compile them with the bounded worker pool
    3. Assemble the CommonJS module

Nothing is written or returned unless every step succeeds.

Usage Example
-------------
>>> from tmplforge import CompileOptions, precompile, write_artifact
>>> script = precompile("templates", CompileOptions(helpers=["join"]))
>>> write_artifact(script, Path("build/templates.js"))
PosixPath('build/templates.js')
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from tmplforge.assembler import render_module
from tmplforge.discovery import build_jobs
from tmplforge.logs import get_logger
from tmplforge.models import CompileOptions
from tmplforge.pool import WorkerPool


logger = get_logger(__name__)


async def precompile_directory(
    template_dir: str | Path,
    options: CompileOptions | None = None,
) -> str:
    """
    Precompile every template under ``template_dir`` into one module.

    Parameters
    ----------
    template_dir : str | Path
        Template root. Relative paths resolve against the current
        working directory.

    options : CompileOptions | None
        Compile options. Defaults apply when omitted.

    Returns
    -------
    str
        JavaScript source of the assembled module.

    Raises
    ------
    DiscoveryError
        If the template directory cannot be walked.
    CompilerNotFoundError
        If no compiler could be resolved.
    CompileError
        If any template fails to compile.
    TerminationInProgress
        If SIGINT or SIGTERM interrupted the run.
    """
    options = options or CompileOptions()
    root = Path(template_dir).absolute()

    jobs = await asyncio.to_thread(build_jobs, root, options)
    logger.debug("found %d templates: %s", len(jobs), [job.name for job in jobs])

    results = await WorkerPool(options).run(jobs)
    return render_module(results)


def precompile(
    template_dir: str | Path,
    options: CompileOptions | None = None,
) -> str:
    """Synchronous wrapper around ``precompile_directory``."""
    return asyncio.run(precompile_directory(template_dir, options))


def write_artifact(script: str, output: Path) -> Path:
    """
    Write the assembled module to ``output``, creating parent directories.

    Returns
    -------
    Path
        The path written.
    """
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(script, encoding="utf-8")
    return output
