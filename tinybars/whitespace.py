"""Whitespace control: trim text around ``~`` markers and standalone tags.

A block, ``{{else}}``, closing or comment tag that is alone on its line
("standalone") takes that line's indentation and line break with it, so
templates can be laid out over several lines without leaking blank lines into
the output. ``{{~`` and ``~}}`` strip all whitespace on that side of a tag.

The pass runs over a mutable working copy of the tree and rebuilds the frozen
AST from it once every body has been trimmed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .nodes import (
    BlockStatement,
    CommentStatement,
    ContentStatement,
    MustacheStatement,
    Node,
    PartialStatement,
    Program,
)

_PREV_LINE_END = re.compile(r"\r?\n\s*?\Z")
_PREV_LINE_END_ROOT = re.compile(r"(?:^|\r?\n)\s*?\Z")
_NEXT_LINE_START = re.compile(r"\s*?\r?\n")
_NEXT_LINE_START_ROOT = re.compile(r"\s*?(?:\r?\n|\Z)")

_LEADING_LINE = re.compile(r"^[ \t]*\r?\n?")
_LEADING_SPACE = re.compile(r"^\s+")
_TRAILING_INDENT = re.compile(r"[ \t]+\Z")
_TRAILING_SPACE = re.compile(r"\s+\Z")


@dataclass
class _Text:
    node: ContentStatement
    value: str
    left_stripped: bool = False
    right_stripped: bool = False


@dataclass
class _Body:
    node: Program
    items: list = field(default_factory=list)


@dataclass
class _Block:
    node: BlockStatement
    program: _Body
    inverse: _Body | None


@dataclass
class _Strip:
    open: bool = False
    close: bool = False
    open_standalone: bool = False
    close_standalone: bool = False
    inline_standalone: bool = False


_Item = Union[_Text, _Block, Node]


def strip_whitespace(program: Program, *, ignore_standalone: bool = False) -> Program:
    """Return *program* with whitespace control applied."""
    body = _thaw_program(program)
    _visit_program(body, is_root=True, standalone=not ignore_standalone)
    return _freeze_program(body)


# ── visitors ─────────────────────────────────────────────────────


def _visit_program(body: _Body, *, is_root: bool, standalone: bool) -> None:
    items = body.items
    for i, current in enumerate(items):
        strip = _visit(current, standalone)
        if strip is None:
            continue

        prev_ws = _is_prev_whitespace(items, i, is_root)
        next_ws = _is_next_whitespace(items, i, is_root)
        open_standalone = strip.open_standalone and prev_ws
        close_standalone = strip.close_standalone and next_ws
        inline_standalone = strip.inline_standalone and prev_ws and next_ws

        if strip.close:
            _omit_right(items, i, multiple=True)
        if strip.open:
            _omit_left(items, i, multiple=True)

        if standalone and inline_standalone:
            _omit_right(items, i)
            _omit_left(items, i)
        if standalone and open_standalone:
            _omit_right(current.program.items)
            _omit_left(items, i)
        if standalone and close_standalone:
            _omit_right(items, i)
            _omit_left((current.inverse or current.program).items)


def _visit(item: _Item, standalone: bool) -> _Strip | None:
    if isinstance(item, _Block):
        return _visit_block(item, standalone)
    if isinstance(item, MustacheStatement):
        return _Strip(open=item.strip.open, close=item.strip.close)
    if isinstance(item, (CommentStatement, PartialStatement)):
        return _Strip(
            open=item.strip.open, close=item.strip.close, inline_standalone=True
        )
    return None


def _visit_block(block: _Block, standalone: bool) -> _Strip:
    _visit_program(block.program, is_root=False, standalone=standalone)
    if block.inverse is not None:
        _visit_program(block.inverse, is_root=False, standalone=standalone)

    node = block.node
    program = block.program
    inverse = block.inverse
    first_inverse = last_inverse = inverse
    if inverse is not None and inverse.node.chained:
        first_inverse = inverse.items[0].program
        while last_inverse.node.chained:
            last_inverse = last_inverse.items[-1].program

    strip = _Strip(
        open=node.open_strip.open,
        close=node.close_strip.close,
        open_standalone=_is_next_whitespace(program.items),
        close_standalone=_is_prev_whitespace((first_inverse or program).items),
    )

    if node.open_strip.close:
        _omit_right(program.items, multiple=True)

    if inverse is not None:
        if node.inverse_strip.open:
            _omit_left(program.items, multiple=True)
        if node.inverse_strip.close:
            _omit_right(first_inverse.items, multiple=True)
        if node.close_strip.open:
            _omit_left(last_inverse.items, multiple=True)
        # A standalone {{else}} line.
        if (
            standalone
            and _is_prev_whitespace(program.items)
            and _is_next_whitespace(first_inverse.items)
        ):
            _omit_left(program.items)
            _omit_right(first_inverse.items)
    elif node.close_strip.open:
        _omit_left(program.items, multiple=True)

    return strip


# ── neighbour tests and trimming ─────────────────────────────────


def _is_prev_whitespace(items: list, i: int | None = None, is_root: bool = False) -> bool:
    if i is None:
        i = len(items)
    if i - 1 < 0:
        return is_root
    prev = items[i - 1]
    if not isinstance(prev, _Text):
        return False
    has_sibling = i - 2 >= 0
    pattern = _PREV_LINE_END if has_sibling or not is_root else _PREV_LINE_END_ROOT
    return pattern.search(prev.node.original) is not None


def _is_next_whitespace(items: list, i: int | None = None, is_root: bool = False) -> bool:
    if i is None:
        i = -1
    if i + 1 >= len(items):
        return is_root
    nxt = items[i + 1]
    if not isinstance(nxt, _Text):
        return False
    has_sibling = i + 2 < len(items)
    pattern = _NEXT_LINE_START if has_sibling or not is_root else _NEXT_LINE_START_ROOT
    return pattern.match(nxt.node.original) is not None


def _omit_right(items: list, i: int | None = None, multiple: bool = False) -> None:
    """Trim the text after position *i* (or the first item when *i* is None)."""
    index = 0 if i is None else i + 1
    if index >= len(items):
        return
    current = items[index]
    if not isinstance(current, _Text) or (not multiple and current.right_stripped):
        return
    original = current.value
    pattern = _LEADING_SPACE if multiple else _LEADING_LINE
    current.value = pattern.sub("", original, count=1)
    current.right_stripped = current.value != original


def _omit_left(items: list, i: int | None = None, multiple: bool = False) -> bool:
    """Trim the text before position *i* (or the last item when *i* is None)."""
    index = len(items) - 1 if i is None else i - 1
    if index < 0:
        return False
    current = items[index]
    if not isinstance(current, _Text) or (not multiple and current.left_stripped):
        return False
    original = current.value
    pattern = _TRAILING_SPACE if multiple else _TRAILING_INDENT
    current.value = pattern.sub("", original, count=1)
    current.left_stripped = current.value != original
    return current.left_stripped


# ── working copy ─────────────────────────────────────────────────


def _thaw_program(program: Program) -> _Body:
    return _Body(node=program, items=[_thaw(node) for node in program.body])


def _thaw(node: Node) -> _Item:
    if isinstance(node, ContentStatement):
        return _Text(node=node, value=node.value)
    if isinstance(node, BlockStatement):
        return _Block(
            node=node,
            program=_thaw_program(node.program),
            inverse=_thaw_program(node.inverse) if node.inverse is not None else None,
        )
    return node


def _freeze_program(body: _Body) -> Program:
    return body.node.model_copy(update={"body": tuple(_freeze(item) for item in body.items)})


def _freeze(item: _Item) -> Node:
    if isinstance(item, _Text):
        return item.node.model_copy(update={"value": item.value})
    if isinstance(item, _Block):
        inverse = _freeze_program(item.inverse) if item.inverse is not None else None
        return item.node.model_copy(
            update={"program": _freeze_program(item.program), "inverse": inverse}
        )
    return item
