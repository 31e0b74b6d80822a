"""Expression compiler — path, literal and call nodes to Python expression fragments."""

from __future__ import annotations

import logging
from typing import Callable

from . import constants
from .context import CompilationContext
from .errors import CompileError
from .nodes import (
    BooleanLiteral,
    Node,
    NodeType,
    NumberLiteral,
    PathExpression,
    StringLiteral,
)
from .sourcemap import Fragment

logger = logging.getLogger(__name__)


def compile_expression(node: Node, ctx: CompilationContext) -> Fragment:
    handler = _EXPR_DISPATCH.get(node.type)
    if handler is None:
        raise CompileError(node.type.value, node.loc)
    return handler(node, ctx)


def compile_function_call(node: Node, ctx: CompilationContext) -> Fragment:
    """Compile a node with ``path`` and ``params`` into ``callee(arg, ...)``.

    Hash arguments (``key=value``) are accepted by the parser but not passed.
    """
    if node.hash is not None:
        logger.debug(
            "Ignoring %d hash argument(s) at %s", len(node.hash.pairs), node.hash.loc
        )
    fragment = Fragment(node.loc)
    fragment.add(compile_expression(node.path, ctx))
    fragment.add("(")
    for i, param in enumerate(node.params):
        if i:
            fragment.add(", ")
        fragment.add(compile_expression(param, ctx))
    fragment.add(")")
    return fragment


# ── paths ────────────────────────────────────────────────────────


def _resolve_base(node: PathExpression, ctx: CompilationContext) -> tuple[str, tuple]:
    """Return the variable a path starts from and the segments still to look up."""
    if not node.data:
        return ctx.scope_var, node.parts

    head, rest = node.head, node.parts[1:]
    if head == constants.DATA_ROOT:
        return constants.ROOT_VAR, rest
    if head == constants.DATA_THIS:
        return ctx.scope_var, rest
    if head in (constants.DATA_KEY, constants.DATA_INDEX):
        if ctx.depth == 0:
            raise CompileError(node.original or f"@{head}", node.loc)
        return constants.KEY_VAR_TEMPLATE.format(depth=ctx.depth - 1), rest
    return ctx.data_var, node.parts


def _compile_path(node: PathExpression, ctx: CompilationContext) -> Fragment:
    base, segments = _resolve_base(node, ctx)
    fragment = Fragment(node.loc)
    if not segments:
        return fragment.add(base)

    # One call walks every segment, however long the path.
    alias = ctx.require(constants.LOOKUP_HELPER)
    fragment.add([f"{alias}(", base])
    for segment in segments:
        fragment.add(", ")
        if isinstance(segment, str):
            fragment.add(repr(segment))
        else:
            fragment.add(compile_expression(segment, ctx))
    fragment.add(")")
    return fragment


# ── literals ─────────────────────────────────────────────────────


def _compile_string(node: StringLiteral, ctx: CompilationContext) -> Fragment:
    return Fragment(node.loc, repr(node.value))


def _compile_boolean(node: BooleanLiteral, ctx: CompilationContext) -> Fragment:
    return Fragment(node.loc, "True" if node.value else "False")


def _compile_number(node: NumberLiteral, ctx: CompilationContext) -> Fragment:
    return Fragment(node.loc, repr(node.value))


def _compile_none(node: Node, ctx: CompilationContext) -> Fragment:
    return Fragment(node.loc, "None")


_EXPR_DISPATCH: dict[NodeType, Callable[[Node, CompilationContext], Fragment]] = {
    NodeType.PATH_EXPRESSION: _compile_path,
    NodeType.SUB_EXPRESSION: compile_function_call,
    NodeType.STRING_LITERAL: _compile_string,
    NodeType.BOOLEAN_LITERAL: _compile_boolean,
    NodeType.NUMBER_LITERAL: _compile_number,
    NodeType.NULL_LITERAL: _compile_none,
    NodeType.UNDEFINED_LITERAL: _compile_none,
}
