"""
tmplforge.templates - Jinja2 Template Files
===========================================

Jinja2 templates used to render the generated JavaScript module.

Available Templates
-------------------
    - module.js.j2: CommonJS module exposing every compiled template

Template Context
----------------
    results : list[CompileResult]
        Compiled templates in output order.

    tmplforge_version : str
        Version of tmplforge, for the header comment.
"""

# Templates are loaded by Jinja2's PackageLoader; nothing to import here.
