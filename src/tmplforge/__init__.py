"""
tmplforge - Handlebars Template Precompiler
===========================================

A CLI tool and library that precompiles a directory of Handlebars
templates into a single CommonJS module, so templates can be rendered
by name without shipping the Handlebars compiler.

Features
--------
- **Parallel**: One ``handlebars`` process per template, bounded by CPU count
- **Deterministic**: Output order follows the sorted template tree
- **Namespaced**: Optional prefix for every template name
- **Interrupt-safe**: SIGINT/SIGTERM kill every running compiler

Quick Start
-----------
```bash
# Compile "templates" and print the module to stdout
tmplforge templates

# Write to a file, hint known helpers, namespace templates with bam/
tmplforge -k join -k modChoose -n bam -f templates.js templates
```

Example
-------
>>> from tmplforge import CompileOptions, precompile
>>> script = precompile("templates", CompileOptions(namespace="bam"))
>>> script.startswith("'use strict';")
True

Architecture
------------
- ``cli``: Typer-based command line interface
- ``precompiler``: Discovery, compilation and assembly in one call
- ``discovery``: Template file discovery and name derivation
- ``compiler``: A single ``handlebars`` subprocess per template
- ``pool``: Bounded worker pool
- ``registry``: Live-worker registry shared with the termination handler
- ``termination``: Signal handling that kills running workers
- ``assembler``: Jinja2 rendering of the final module
- ``models``: Pydantic options and job/result records
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================

from tmplforge.exceptions import (
    AssemblyError,
    CompileError,
    CompilerNotFoundError,
    DiscoveryError,
    PrecompileError,
    TerminationInProgress,
)
from tmplforge.models import CompileOptions, CompileResult, TemplateJob
from tmplforge.precompiler import precompile, precompile_directory, write_artifact


__all__ = [
    # Core functions
    "precompile",
    "precompile_directory",
    "write_artifact",
    # Configuration and records
    "CompileOptions",
    "CompileResult",
    "TemplateJob",
    # Errors
    "AssemblyError",
    "CompileError",
    "CompilerNotFoundError",
    "DiscoveryError",
    "PrecompileError",
    "TerminationInProgress",
    # Version info
    "__version__",
]
