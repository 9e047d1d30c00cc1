"""
tmplforge.compiler - Compiler Invocation
========================================

Runs the external ``handlebars`` compiler for exactly one template and
turns its output into a minified ``Handlebars.template(...)`` expression.

Each invocation is a small state machine tracked by the worker registry:

    PENDING -> RUNNING -> SUCCEEDED | FAILED | KILLED

The compiler's stderr is inherited, so its diagnostics reach the user's
terminal as they are written. Only stdout is captured.

Command Line
------------
    handlebars --simple [--known NAME]... PATH

``--simple`` asks for the bare template spec object, which is what
``Handlebars.template`` expects at runtime.
"""

from __future__ import annotations

import asyncio
import re
import shutil
from pathlib import Path

import rjsmin

from tmplforge.exceptions import CompileError, CompilerNotFoundError, TerminationInProgress
from tmplforge.logs import get_logger
from tmplforge.models import CompileOptions, CompileResult, JobState, TemplateJob
from tmplforge.registry import WorkerRegistry


logger = get_logger(__name__)

# Name of the compiler executable looked up on PATH
DEFAULT_COMPILER = "handlebars"

# Runtime call wrapped around the raw compiler output
TEMPLATE_WRAPPER = "Handlebars.template({source})"

# Quoted literals are skipped; bare line feeds are the ones rjsmin kept
_KEPT_LINE_FEED = re.compile(
    r'"(?:\\.|[^"\\])*"' r"|'(?:\\.|[^'\\])*'" r"|`(?:\\.|[^`\\])*`" r"|\n"
)
_WORD_END = re.compile(r"[\w$]+$")
_WORD_START = re.compile(r"[\w$]+")
_VALUE_END = re.compile(r"[\w$'\")\]}`]$")
_VALUE_START = re.compile(r"[\w$'\"`!~]")

# A line feed after these always ends the statement
_RESTRICTED_WORDS = frozenset({"return", "throw", "break", "continue"})

# Keywords that still need an operand or a statement after them
_OPERATOR_WORDS = frozenset({
    "in", "instanceof", "typeof", "new", "delete", "void",
    "var", "let", "const", "case", "do", "else",
})

# Keywords that continue the statement whose block just closed
_BLOCK_CONTINUATIONS = frozenset({"else", "catch", "finally", "while"})


# =============================================================================
# Command Construction
# =============================================================================

def resolve_compiler(command: list[str] | None = None) -> list[str]:
    """
    Resolve the compiler command line prefix.

    Parameters
    ----------
    command : list[str] | None
        Explicit command. Used as-is when given.

    Returns
    -------
    list[str]
        The command, e.g. ``["/usr/local/bin/handlebars"]``.

    Raises
    ------
    CompilerNotFoundError
        If no command is given and ``handlebars`` is not on PATH.
    """
    if command:
        return list(command)

    executable = shutil.which(DEFAULT_COMPILER)
    if executable is None:
        raise CompilerNotFoundError(
            f"Could not find '{DEFAULT_COMPILER}' on PATH. "
            "Install it with 'npm install -g handlebars' or pass --compiler."
        )
    return [executable]


def build_compiler_args(
    compiler: list[str],
    path: Path,
    helpers: list[str] | None = None,
) -> list[str]:
    """
    Build the full argv for compiling one template.

    Examples
    --------
    >>> build_compiler_args(["handlebars"], Path("/t/a.hbs"), ["join"])
    ['handlebars', '--simple', '--known', 'join', '/t/a.hbs']
    """
    args = [*compiler, "--simple"]
    for helper in helpers or []:
        args.extend(["--known", helper])
    args.append(str(path))
    return args


# =============================================================================
# Output Processing
# =============================================================================

def wrap_template_source(raw: str) -> str:
    """Wrap raw compiler output in the runtime ``Handlebars.template`` call."""
    return TEMPLATE_WRAPPER.format(source=raw.strip())


def _line_feed_separator(before: str, after: str) -> str:
    """
    Return what replaces a line feed between ``before`` and ``after``.

    JavaScript ends a statement at a line feed only when the next token
    cannot continue it, or after ``return``-like keywords. Everywhere
    else the line feed is plain whitespace.
    """
    word = _WORD_END.search(before)
    if word and word.group() in _RESTRICTED_WORDS:
        return ";"
    if word and word.group() in _OPERATOR_WORDS:
        return " "
    if after.startswith(("++", "--")):
        return ";"

    following = _WORD_START.match(after)
    if before.endswith("}") and following and following.group() in _BLOCK_CONTINUATIONS:
        return ""
    if _VALUE_END.search(before) and _VALUE_START.match(after):
        return ";"
    return ""


def minify_source(source: str) -> str:
    """
    Compact JavaScript source onto a single line.

    rjsmin keeps a line feed wherever dropping it could change how
    automatic semicolon insertion reads the code. Each remaining line
    feed is replaced with the separator the parser would have inferred.

    Examples
    --------
    >>> minify_source('a("x"\\n  + y)\\nreturn z')
    'a("x"+y);return z'
    """
    compact = rjsmin.jsmin(source).strip()

    def join(match: re.Match[str]) -> str:
        if match.group() != "\n":
            return match.group()
        start, end = match.span()
        return _line_feed_separator(compact[max(0, start - 16):start], compact[end:end + 16])

    return _KEPT_LINE_FEED.sub(join, compact)


# =============================================================================
# Invocation
# =============================================================================

async def compile_template(
    job: TemplateJob,
    options: CompileOptions,
    registry: WorkerRegistry,
    compiler: list[str] | None = None,
) -> CompileResult:
    """
    Compile a single template in its own compiler process.

    Parameters
    ----------
    job : TemplateJob
        The template to compile.

    options : CompileOptions
        Supplies the known helpers and, when ``compiler`` is None, the
        compiler command.

    registry : WorkerRegistry
        Live-worker registry shared with the termination controller.

    compiler : list[str] | None
        Already resolved compiler command. Pools resolve once and pass it
        to every job.

    Returns
    -------
    CompileResult
        The derived name and minified compiled function.

    Raises
    ------
    TerminationInProgress
        If shutdown began before the job started, or the worker was
        killed by the termination controller.
    CompileError
        If the compiler could not be started, exited non-zero or wrote
        output that is not UTF-8.
    """
    if registry.terminating:
        raise TerminationInProgress()

    command = compiler or resolve_compiler(options.compiler)
    args = build_compiler_args(command, job.source_path, options.helpers)

    logger.debug("precompiling %s", job.name)

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CompileError(job.name) from e

    # No await between spawn and register: the controller must see it.
    handle = registry.register(job, process)
    returncode: int | None = None
    try:
        stdout, _ = await process.communicate()
        returncode = process.returncode
    except asyncio.CancelledError:
        handle.kill()
        raise
    finally:
        state = registry.unregister(handle, returncode)

    if state is JobState.KILLED:
        logger.debug("worker %s for %s was killed", handle.pid, job.name)
        raise TerminationInProgress()

    if state is JobState.FAILED:
        raise CompileError(job.name, returncode)

    try:
        raw = stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CompileError(job.name) from e

    code = minify_source(wrap_template_source(raw))
    logger.debug("precompiled %s (%d bytes)", job.name, len(code))
    return CompileResult(name=job.name, code=code)
