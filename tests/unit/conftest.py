"""Shared helpers for the template compiler test suite.

Generated modules are executed with ``exec`` so tests can check what a
compiled template actually renders, not just the code it emits.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from tinybars.compiler import CompileResult, compile_template
from tinybars.context import CompileOptions, OutputFormat

logger = logging.getLogger(__name__)


def load_module(result: CompileResult, options: CompileOptions) -> dict[str, Any]:
    """Execute generated code and return the resulting module namespace."""
    namespace: dict[str, Any] = {}
    exec(compile(result.code, options.src_name, "exec"), namespace)
    return namespace


def load_render(template: str, **options: Any) -> Callable[..., str]:
    """Compile *template* and return the generated render function."""
    opts = CompileOptions(**options)
    result = compile_template(template, opts)
    logger.debug("Generated code:\n%s", result.code)
    namespace = load_module(result, opts)
    if opts.format == OutputFormat.EXPORTS:
        return namespace["exports"]
    return namespace[opts.function_name]


def render(template: str, scope: Any = None, data: Any = None, **options: Any) -> str:
    """Compile *template* and render it against *scope* and *data*."""
    return load_render(template, **options)(scope, data)


def return_line(code: str) -> tuple[int, str]:
    """Return the 1-based line number and text of the generated ``return`` line."""
    for number, line in enumerate(code.splitlines(), start=1):
        if line.lstrip().startswith("return "):
            return number, line
    raise AssertionError("generated code has no return line")
