"""Exception hierarchy for tmplforge.

Every error raised on purpose by the library derives from PrecompileError,
so callers (and the CLI) can report any failed run with a single handler.
"""

from __future__ import annotations


class PrecompileError(Exception):
    """Base exception for all tmplforge errors."""


class DiscoveryError(PrecompileError):
    """Raised when the template directory cannot be walked."""


class CompilerNotFoundError(PrecompileError):
    """Raised when no Handlebars compiler executable can be resolved."""


class CompileError(PrecompileError):
    """Raised when the compiler fails for a single template.

    Attributes
    ----------
    name : str
        Derived name of the template that failed.

    returncode : int | None
        Exit status of the compiler, or None if it never started.
    """

    def __init__(self, name: str, returncode: int | None = None) -> None:
        self.name = name
        self.returncode = returncode
        if returncode is None:
            message = f"failed to precompile {name}"
        else:
            message = f"failed to precompile {name} (exit status {returncode})"
        super().__init__(message)


class TerminationInProgress(PrecompileError):
    """Raised for jobs rejected or killed because shutdown has begun."""

    def __init__(self, message: str = "process terminating") -> None:
        super().__init__(message)


class AssemblyError(PrecompileError):
    """Raised when the module assembler receives malformed results."""
