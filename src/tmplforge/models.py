"""
tmplforge.models - Options and Records
======================================

This module defines the data types that flow through a precompile run.
Options are a Pydantic model so user input is validated once, at the edge;
jobs and results are small frozen dataclasses passed between the pool and
the assembler.

Architecture Notes
------------------
    CompileOptions (validated user input)
    ├── helpers: list[str]
    ├── namespace: str
    ├── compiler: list[str] | None
    ├── concurrency: int | None
    ├── extension: str
    └── follow_symlinks: bool

    TemplateJob   -> one per discovered template file
    CompileResult -> one per successfully compiled job
    JobState      -> lifecycle of a single compile job

Usage Example
-------------
>>> from tmplforge.models import CompileOptions
>>> options = CompileOptions(helpers=["join"], namespace="bam/")
>>> options.namespace_prefix
'bam/'
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Enumerations
# =============================================================================

class JobState(str, Enum):
    """
    Lifecycle of a single compile job.

    A job starts PENDING, becomes RUNNING once its compiler process is
    spawned and registered, and ends in exactly one terminal state.
    KILLED is only reachable from RUNNING, and only through the
    termination controller.
    """

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    KILLED = "killed"

    @property
    def is_terminal(self) -> bool:
        """Whether the job has finished, one way or another."""
        return self in {JobState.SUCCEEDED, JobState.FAILED, JobState.KILLED}


# =============================================================================
# Job and Result Records
# =============================================================================

@dataclass(frozen=True)
class TemplateJob:
    """
    A single template file scheduled for compilation.

    Attributes
    ----------
    source_path : Path
        Absolute path to the template file.

    name : str
        Derived name: path relative to the template root, extension
        removed, namespace prefix prepended.
    """

    source_path: Path
    name: str


@dataclass(frozen=True)
class CompileResult:
    """
    Output of one successful compilation.

    Attributes
    ----------
    name : str
        Derived name of the template.

    code : str
        Minified ``Handlebars.template(...)`` expression.
    """

    name: str
    code: str


# =============================================================================
# Compile Options
# =============================================================================

class CompileOptions(BaseModel):
    """
    Options for a precompile run.

    Attributes
    ----------
    helpers : list[str]
        Known helper names, forwarded to the compiler as ``--known NAME``.

    namespace : str
        Optional prefix for every derived template name.

    compiler : list[str] | None
        Compiler command. When None, ``handlebars`` is looked up on PATH.
        A single string is split with shell rules, so
        ``"npx handlebars"`` works.

    concurrency : int | None
        Maximum number of compiler processes running at once. When None,
        the number of CPUs is used.

    extension : str
        Template file extension, including the leading dot.

    follow_symlinks : bool
        Whether discovery descends into symlinked directories.

    Examples
    --------
    >>> CompileOptions(compiler="npx handlebars").compiler
    ['npx', 'handlebars']
    >>> CompileOptions(extension="handlebars").extension
    '.handlebars'
    """

    helpers: list[str] = Field(
        default_factory=list,
        description="Known helper names hinted to the compiler",
    )
    namespace: str = Field(
        default="",
        description="Template namespace (prefix)",
    )
    compiler: list[str] | None = Field(
        default=None,
        description="Compiler command (default: handlebars on PATH)",
    )
    concurrency: int | None = Field(
        default=None,
        ge=1,
        description="Maximum concurrent compiler processes",
    )
    extension: str = Field(
        default=".hbs",
        min_length=1,
        description="Template file extension",
    )
    follow_symlinks: bool = Field(
        default=True,
        description="Follow symbolic links during discovery",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("helpers")
    @classmethod
    def validate_helpers(cls, v: list[str]) -> list[str]:
        """
        Strip helper names and drop duplicates, keeping first occurrence.

        Raises
        ------
        ValueError
            If a helper name is empty.
        """
        seen: list[str] = []
        for helper in v:
            helper = helper.strip()
            if not helper:
                msg = "Known helper names must not be empty."
                raise ValueError(msg)
            if helper not in seen:
                seen.append(helper)
        return seen

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Normalize the namespace so 'bam', 'bam/' and '/bam' agree."""
        return v.strip().strip("/")

    @field_validator("compiler", mode="before")
    @classmethod
    def split_compiler(cls, v: object) -> object:
        """Accept a shell-style command string as well as a list."""
        if isinstance(v, str):
            return shlex.split(v)
        return v

    @field_validator("compiler")
    @classmethod
    def validate_compiler(cls, v: list[str] | None) -> list[str] | None:
        if v is not None and not v:
            msg = "Compiler command must not be empty."
            raise ValueError(msg)
        return v

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("."):
            v = f".{v}"
        if v == ".":
            msg = "Template extension must not be empty."
            raise ValueError(msg)
        return v

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def namespace_prefix(self) -> str:
        """
        Prefix joined in front of derived names.

        Returns
        -------
        str
            ``"<namespace>/"``, or an empty string without a namespace.
        """
        return f"{self.namespace}/" if self.namespace else ""

    @property
    def max_workers(self) -> int:
        """
        Effective concurrency ceiling.

        Returns
        -------
        int
            ``concurrency`` if set, else the CPU count, never below 1.
        """
        if self.concurrency is not None:
            return self.concurrency
        return max(1, os.cpu_count() or 1)
