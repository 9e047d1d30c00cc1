"""
tmplforge.assembler - Module Assembler
======================================

Renders the final CommonJS module from compiled templates. The output is
a pure function of the result list: same results in, byte-identical
module out.

The generated module exports:

    handlebars : the Handlebars runtime, with every template registered
                 as a partial under its name
    templates  : map of template name -> compiled template function
    render     : render(name, context, options), throws on unknown names
"""

from __future__ import annotations

from jinja2 import Environment, PackageLoader, select_autoescape

from tmplforge import __version__
from tmplforge.exceptions import AssemblyError
from tmplforge.models import CompileResult


# Jinja2 template that renders the module
MODULE_TEMPLATE = "module.js.j2"


def create_jinja_env() -> Environment:
    """
    Create the Jinja2 environment for module rendering.

    Autoescaping is off because the output is JavaScript, not HTML.
    Template names are emitted through the ``tojson`` filter, which
    yields valid JavaScript string literals.

    Returns
    -------
    Environment
        Environment loading from ``tmplforge.templates``.
    """
    return Environment(
        loader=PackageLoader("tmplforge", "templates"),
        autoescape=select_autoescape([]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def validate_results(results: list[CompileResult]) -> None:
    """
    Check the result list before rendering.

    Raises
    ------
    AssemblyError
        If an entry is not a CompileResult, has an empty name or code,
        or repeats a name.
    """
    seen: set[str] = set()
    for index, result in enumerate(results):
        if not isinstance(result, CompileResult):
            raise AssemblyError(
                f"Entry {index} is {type(result).__name__}, expected CompileResult."
            )
        if not result.name:
            raise AssemblyError(f"Entry {index} has an empty template name.")
        if not result.code:
            raise AssemblyError(f"Template '{result.name}' has no compiled code.")
        if result.name in seen:
            raise AssemblyError(f"Duplicate template name '{result.name}'.")
        seen.add(result.name)


def render_module(
    results: list[CompileResult],
    env: Environment | None = None,
) -> str:
    """
    Render the module source for the given results.

    Parameters
    ----------
    results : list[CompileResult]
        Compiled templates, in the order they should appear.

    env : Environment | None
        Jinja2 environment to use. A fresh one is created when omitted.

    Returns
    -------
    str
        JavaScript source of the CommonJS module.

    Raises
    ------
    AssemblyError
        If the results are malformed.
    """
    validate_results(results)
    env = env or create_jinja_env()
    template = env.get_template(MODULE_TEMPLATE)
    return template.render(results=results, tmplforge_version=__version__)
