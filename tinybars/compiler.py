"""Compilation driver: parse, compile, then emit the module and its source map."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from . import constants
from .context import CompilationContext, CompileOptions, OutputFormat
from .parser import Parser
from .sourcemap import Fragment, SourceMap
from .statements import compile_program

logger = logging.getLogger(__name__)

_INDENT = "    "


@dataclass(frozen=True)
class CompileResult:
    """Generated Python module source and the source map back to the template."""

    code: str
    source_map: SourceMap


def compile_template(
    source: str,
    options: CompileOptions | None = None,
    parser: Parser | None = None,
) -> CompileResult:
    """Compile template *source* into a Python module defining one render function.

    Args:
        source: The template text.
        options: Compiler configuration; defaults to ``CompileOptions()``.
        parser: Parser collaborator; defaults to the Lark-backed ``Parser``.

    Returns:
        A ``CompileResult`` with the module code and its source map.

    Raises:
        ParseError: The template is syntactically malformed.
        CompileError: The template uses a construct the compiler cannot translate.
    """
    options = options or CompileOptions()
    ctx = CompilationContext.from_options(options)
    logger.info("Compiling %s (format=%s)", options.src_name, options.format.value)

    program = (parser or Parser()).parse(
        source, ignore_standalone=options.ignore_standalone
    )
    body = compile_program(program, ctx)

    module = Fragment()
    module.add(_function_header(ctx))
    module.add(body)
    module.add(")\n")
    module.add(_epilogue(ctx))
    if ctx.imports:
        prologue = [
            _import_line(alias, symbol, ctx.format)
            for alias, symbol in ctx.imports.items()
        ]
        module.prepend(prologue + ["\n\n"])
    logger.debug("Runtime imports: %s", sorted(ctx.imports.values()))

    code, source_map = module.to_string_with_source_map(
        source_name=options.src_name, file=options.src_name
    )
    return CompileResult(code=code, source_map=source_map)


def _function_header(ctx: CompilationContext) -> str:
    return (
        f"def {ctx.function_name}({ctx.scope_var}, {ctx.data_var}=None):\n"
        f"{_INDENT}if {ctx.data_var} is None:\n"
        f"{_INDENT * 2}{ctx.data_var} = {{}}\n"
        f"{_INDENT}{constants.ROOT_VAR} = {ctx.scope_var}\n"
        f"{_INDENT}return ("
    )


def _epilogue(ctx: CompilationContext) -> str:
    if ctx.format == OutputFormat.EXPORTS:
        return f"\n\n{constants.EXPORTS_VAR} = {ctx.function_name}\n"
    return f"\n\n__all__ = [{json.dumps(ctx.function_name)}]\n"


def _import_line(alias: str, symbol: str, output_format: OutputFormat) -> str:
    module = constants.RUNTIME_MODULE
    if output_format == OutputFormat.EXPORTS:
        return (
            f"{alias} = __import__({json.dumps(module)}, "
            f"fromlist=[{json.dumps(symbol)}]).{symbol}\n"
        )
    return f"from {module} import {symbol} as {alias}\n"
