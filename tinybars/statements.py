"""Statement and program compilers — template statements to string-valued
Python expression fragments.

Every statement compiles to an expression producing ``str``; a program joins
its statements with ``+`` after a leading ``""``. Block bodies are compiled
recursively with a context copy, so a scope rebinding or loop depth only
affects the nested program, never its siblings.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from . import constants
from .context import CompilationContext
from .errors import CompileError
from .expressions import compile_expression, compile_function_call
from .nodes import (
    BlockStatement,
    CommentStatement,
    ContentStatement,
    MustacheStatement,
    Node,
    NodeType,
    Program,
)
from .sourcemap import Fragment

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n\0]+")


def compile_program(program: Program, ctx: CompilationContext) -> Fragment:
    fragment = Fragment(program.loc)
    fragment.add(constants.EMPTY_STRING_LITERAL)
    for statement in program.body:
        compiled = compile_statement(statement, ctx)
        if compiled.is_empty():
            continue
        fragment.add(" + ")
        fragment.add(compiled)
    return fragment


def compile_statement(node: Node, ctx: CompilationContext) -> Fragment:
    handler = _STMT_DISPATCH.get(node.type)
    if handler is None:
        raise CompileError(node.type.value, node.loc)
    return handler(node, ctx)


# ── simple statements ────────────────────────────────────────────


def _compile_content(node: ContentStatement, ctx: CompilationContext) -> Fragment:
    if not node.value:
        return Fragment()
    return Fragment(node.loc, repr(node.value))


def _compile_comment(node: CommentStatement, ctx: CompilationContext) -> Fragment:
    if ctx.omit_comments:
        return Fragment()
    # A line break would end the comment and leak text into the expression.
    text = _LINE_BREAKS.sub(" ", node.value).strip()
    return Fragment(node.loc, f"({constants.EMPTY_STRING_LITERAL}  # {text}\n)")


def _compile_mustache(node: MustacheStatement, ctx: CompilationContext) -> Fragment:
    if node.params:
        value = compile_function_call(node, ctx)
    else:
        value = compile_expression(node.path, ctx)
    helper = constants.ESCAPE_HELPER if node.escaped else constants.STRINGIFY_HELPER
    alias = ctx.require(helper)
    return Fragment(node.loc, [f"{alias}(", value, ")"])


# ── blocks ───────────────────────────────────────────────────────


def _compile_block(node: BlockStatement, ctx: CompilationContext) -> Fragment:
    name = node.path.original
    handler = _BLOCK_DISPATCH.get(name)
    if handler is None:
        raise CompileError(name, node.loc)
    if len(node.params) != 1:
        raise CompileError(f"#{name} with {len(node.params)} arguments", node.loc)
    logger.debug("Compiling #%s block at %s (depth=%d)", name, node.loc, ctx.depth)
    return handler(node, ctx)


def _compile_conditional(
    node: BlockStatement, ctx: CompilationContext, *, negate: bool
) -> Fragment:
    condition = compile_expression(node.params[0], ctx)
    alias = ctx.require(constants.TRUTHY_HELPER)
    primary = compile_program(node.program, ctx)
    alternate: Fragment | str = (
        compile_program(node.inverse, ctx)
        if node.inverse is not None
        else constants.EMPTY_STRING_LITERAL
    )
    when_true, when_false = (alternate, primary) if negate else (primary, alternate)
    return Fragment(
        node.loc,
        ["(", when_true, f" if {alias}(", condition, ") else ", when_false, ")"],
    )


def _compile_if(node: BlockStatement, ctx: CompilationContext) -> Fragment:
    return _compile_conditional(node, ctx, negate=False)


def _compile_unless(node: BlockStatement, ctx: CompilationContext) -> Fragment:
    return _compile_conditional(node, ctx, negate=True)


def _compile_each(node: BlockStatement, ctx: CompilationContext) -> Fragment:
    _reject_inverse(node)
    key_var = constants.KEY_VAR_TEMPLATE.format(depth=ctx.depth)
    value_var = constants.VALUE_VAR_TEMPLATE.format(depth=ctx.depth)
    source = compile_expression(node.params[0], ctx)
    alias = ctx.require(constants.ENTRIES_HELPER)
    body = compile_program(node.program, ctx.rebind(value_var, enter_loop=True))
    return Fragment(
        node.loc,
        [
            f"{constants.EMPTY_STRING_LITERAL}.join((",
            body,
            f") for {key_var}, {value_var} in {alias}(",
            source,
            "))",
        ],
    )


def _compile_with(node: BlockStatement, ctx: CompilationContext) -> Fragment:
    _reject_inverse(node)
    source = compile_expression(node.params[0], ctx)
    body = compile_program(node.program, ctx.rebind(constants.WITH_VAR))
    return Fragment(
        node.loc,
        [f"(lambda {constants.WITH_VAR}: (", body, "))(", source, ")"],
    )


def _reject_inverse(node: BlockStatement) -> None:
    if node.inverse is not None:
        raise CompileError(f"else in #{node.path.original}", node.inverse.loc)


_BLOCK_DISPATCH: dict[str, Callable[[BlockStatement, CompilationContext], Fragment]] = {
    constants.HELPER_IF: _compile_if,
    constants.HELPER_UNLESS: _compile_unless,
    constants.HELPER_EACH: _compile_each,
    constants.HELPER_WITH: _compile_with,
}

_STMT_DISPATCH: dict[NodeType, Callable[[Node, CompilationContext], Fragment]] = {
    NodeType.CONTENT_STATEMENT: _compile_content,
    NodeType.COMMENT_STATEMENT: _compile_comment,
    NodeType.MUSTACHE_STATEMENT: _compile_mustache,
    NodeType.BLOCK_STATEMENT: _compile_block,
}
