"""
tmplforge.cli - Command Line Interface
======================================

Command-line interface for tmplforge, built with Typer.

The tool takes exactly one template directory. The generated module goes
to stdout unless ``--file`` is given; status and error messages always go
to stderr so the module can be piped.

Usage Examples
--------------
Compile "templates" and print to stdout:
    $ tmplforge templates

Write to a file and hint about known helpers:
    $ tmplforge --known join --known modChoose --file myTemplates.js templates

Namespace every template with bam/:
    $ tmplforge -k join -f myTemplates.js -n bam templates

Exit Codes
----------
    0   module generated
    1   discovery, compilation or configuration failed, or interrupted
    2   usage error (e.g. missing template directory)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from tmplforge import __version__
from tmplforge.exceptions import PrecompileError, TerminationInProgress
from tmplforge.logs import configure_logging
from tmplforge.models import CompileOptions
from tmplforge.precompiler import precompile, write_artifact


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="tmplforge",
    help="Compiles handlebars templates into CommonJS modules.",
    rich_markup_mode="rich",
    add_completion=False,
)

# stdout carries the generated module, so everything else goes to stderr
err_console = Console(stderr=True, soft_wrap=True)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        err_console.print(Panel(
            f"[bold green]tmplforge[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Handlebars template precompiler[/]",
            border_style="green",
        ))
        raise typer.Exit()


# =============================================================================
# Main Command
# =============================================================================

@app.command()
def main(
    directory: Annotated[
        Path,
        typer.Argument(
            help="Template directory to compile",
            show_default=False,
        ),
    ],
    file: Annotated[
        Path | None,
        typer.Option(
            "--file",
            "-f",
            help="Output file (default: stdout)",
        ),
    ] = None,
    known: Annotated[
        list[str] | None,
        typer.Option(
            "--known",
            "-k",
            help="Known helper (repeatable)",
        ),
    ] = None,
    namespace: Annotated[
        str,
        typer.Option(
            "--namespace",
            "-n",
            help="Template namespace (prefix)",
        ),
    ] = "",
    compiler: Annotated[
        str | None,
        typer.Option(
            "--compiler",
            "-c",
            help="Compiler command (default: handlebars on PATH)",
            envvar="TMPLFORGE_COMPILER",
        ),
    ] = None,
    jobs: Annotated[
        int | None,
        typer.Option(
            "--jobs",
            "-j",
            help="Max concurrent compiler processes (default: CPU count)",
            envvar="TMPLFORGE_JOBS",
        ),
    ] = None,
    extension: Annotated[
        str,
        typer.Option(
            "--extension",
            "-e",
            help="Template file extension",
        ),
    ] = ".hbs",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Print debug logging to stderr",
            envvar="TMPLFORGE_DEBUG",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Compiles handlebars templates into CommonJS modules.

    [bold]Examples:[/]

        # Compile "templates" directory and print to stdout
        tmplforge templates

        # Output to myTemplates.js, hint about join and modChoose helpers
        tmplforge --known join --known modChoose --file myTemplates.js templates

        # Namespace templates with bam/
        tmplforge -k join -f myTemplates.js -n bam templates
    """
    configure_logging(verbose)

    try:
        options = CompileOptions(
            helpers=known or [],
            namespace=namespace,
            compiler=compiler,
            concurrency=jobs,
            extension=extension,
        )
    except ValueError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    try:
        script = precompile(directory, options)
    except TerminationInProgress:
        err_console.print("[yellow]Interrupted:[/] compilation was terminated")
        raise typer.Exit(1)
    except PrecompileError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)

    if file is None:
        typer.echo(script, nl=False)
        return

    try:
        written = write_artifact(script, file)
    except OSError as e:
        err_console.print(f"[red]Error:[/] Could not write {escape(str(file))}: {escape(str(e))}")
        raise typer.Exit(1)

    err_console.print(f"[green]Wrote[/] {escape(str(written))}")


if __name__ == "__main__":
    app()
