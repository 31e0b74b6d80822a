"""Template Parsing Layer — Lark grammar to immutable template AST."""

from __future__ import annotations

import functools
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedInput

from .errors import ParseError
from .nodes import (
    NO_STRIP,
    BlockStatement,
    BooleanLiteral,
    CommentStatement,
    ContentStatement,
    Hash,
    HashPair,
    MustacheStatement,
    Node,
    NullLiteral,
    NumberLiteral,
    PartialStatement,
    PathExpression,
    Program,
    SourceLocation,
    StringLiteral,
    StripFlags,
    SubExpression,
    UndefinedLiteral,
)
from .whitespace import strip_whitespace

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("template.lark")

_COMMENT_OPEN = re.compile(r"^\{\{~?!-?-?")
_COMMENT_CLOSE = re.compile(r"-?-?~?\}\}\Z")
_STRIP_OPEN = "{{~"
_STRIP_CLOSE = "~}}"
_HASH_KEY_SUFFIX = re.compile(r"\s*=\s*\Z")

_THIS_SEGMENT = "this"


@functools.lru_cache(maxsize=None)
def _load_grammar() -> Lark:
    logger.debug("Building template parser from %s", _GRAMMAR_PATH)
    return Lark(
        _GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="lalr",
        start="start",
        propagate_positions=True,
        maybe_placeholders=False,
    )


class ParserFactory(ABC):
    """Abstract factory for obtaining a template grammar parser."""

    @abstractmethod
    def get_parser(self) -> Lark: ...


class LarkParserFactory(ParserFactory):
    """Concrete factory returning the shared LALR parser for ``template.lark``."""

    def get_parser(self) -> Lark:
        return _load_grammar()


class Parser:
    """Thin wrapper around a parser factory that also builds the AST.

    After the tree is built, whitespace control trims text around ``~``
    markers and around tags that stand alone on their line. Pass
    ``ignore_standalone=True`` to keep standalone lines untouched.
    """

    def __init__(self, parser_factory: ParserFactory | None = None):
        self._factory = parser_factory or LarkParserFactory()

    def parse(self, source: str, *, ignore_standalone: bool = False) -> Program:
        parser = self._factory.get_parser()
        try:
            tree = parser.parse(source)
        except UnexpectedInput as exc:
            raise ParseError(
                _describe(exc), _error_location(exc, source)
            ) from exc
        program = _build_program(tree.children[0], SourceLocation(line=1, column=0))
        program = strip_whitespace(program, ignore_standalone=ignore_standalone)
        logger.debug("Parsed template into %d top-level statements", len(program.body))
        return program


def parse_template(source: str, *, ignore_standalone: bool = False) -> Program:
    """Parse *source* with the default Lark-backed parser."""
    return Parser().parse(source, ignore_standalone=ignore_standalone)


# ── error helpers ────────────────────────────────────────────────


def _describe(exc: UnexpectedInput) -> str:
    lines = str(exc).strip().splitlines()
    return lines[0] if lines else exc.__class__.__name__


def _error_location(exc: UnexpectedInput, source: str) -> SourceLocation:
    line = getattr(exc, "line", -1)
    column = getattr(exc, "column", -1)
    if line is None or line < 1:
        # End of input: point just past the last character.
        lines = source.split("\n")
        return SourceLocation(line=len(lines), column=len(lines[-1]))
    return SourceLocation(line=line, column=max(column - 1, 0))


# ── tree → AST builders ──────────────────────────────────────────


def _loc(token: Token) -> SourceLocation:
    return SourceLocation(line=token.line, column=token.column - 1)


def _end_loc(token: Token) -> SourceLocation:
    return SourceLocation(line=token.end_line, column=token.end_column - 1)


def _strip(opener: Token, closer: Token) -> StripFlags:
    return StripFlags(
        open=str(opener).startswith(_STRIP_OPEN), close="~" in str(closer)
    )


def _build_program(tree: Tree, loc: SourceLocation) -> Program:
    body = tuple(_build_statement(child) for child in tree.children)
    return Program(body=body, loc=body[0].loc if body else loc)


def _build_statement(tree: Tree) -> Node:
    kind = tree.data
    if kind == "content":
        token = tree.children[0]
        text = str(token)
        return ContentStatement(value=text, original=text, loc=_loc(token))
    if kind == "comment":
        token = tree.children[0]
        raw = str(token)
        text = _COMMENT_CLOSE.sub("", _COMMENT_OPEN.sub("", raw))
        strip = StripFlags(
            open=raw.startswith(_STRIP_OPEN), close=raw.endswith(_STRIP_CLOSE)
        )
        return CommentStatement(value=text, strip=strip, loc=_loc(token))
    if kind == "mustache":
        opener, call, closer = tree.children
        path, params, hash_ = _build_call(call)
        return MustacheStatement(
            path=path,
            params=params,
            hash=hash_,
            escaped=opener.type == "OPEN",
            strip=_strip(opener, closer),
            loc=_loc(opener),
        )
    if kind == "partial":
        opener, call, closer = tree.children
        name, params, hash_ = _build_call(call)
        return PartialStatement(
            name=name,
            params=params,
            hash=hash_,
            strip=_strip(opener, closer),
            loc=_loc(opener),
        )
    if kind == "block":
        return _build_block(tree)
    raise ParseError(f"Unknown statement rule {kind}")


def _build_block(tree: Tree) -> BlockStatement:
    opener, call, open_close, program_tree, *middle, end_open, close_path_tree, end_close = (
        tree.children
    )
    helper, params, hash_ = _build_call(call)
    _check_helper(helper)
    close_path = _build_path(close_path_tree)
    if close_path.original != helper.original:
        raise ParseError(
            f"{helper.original} doesn't match {close_path.original}", close_path.loc
        )

    close_strip = _strip(end_open, end_close)
    inverse, inverse_strip = _build_inverse(middle[0] if middle else None, close_strip)
    return BlockStatement(
        path=helper,
        params=params,
        hash=hash_,
        program=_build_program(program_tree, _end_loc(open_close)),
        inverse=inverse,
        open_strip=_strip(opener, open_close),
        inverse_strip=inverse_strip,
        close_strip=close_strip,
        loc=_loc(opener),
    )


def _build_inverse(
    tree: Tree | None, close_strip: StripFlags
) -> tuple[Program | None, StripFlags]:
    """Build the inverse of a block and the strip flags of its ``else`` tag.

    ``{{else helper ...}}`` produces a chained program holding one nested
    block, which shares the enclosing block's closing tag.
    """
    if tree is None:
        return None, NO_STRIP
    if tree.data == "inverse":
        else_token, program_tree = tree.children
        text = str(else_token)
        strip = StripFlags(
            open=text.startswith(_STRIP_OPEN), close=text.endswith(_STRIP_CLOSE)
        )
        return _build_program(program_tree, _end_loc(else_token)), strip

    opener, call, chain_close, program_tree, *rest = tree.children
    helper, params, hash_ = _build_call(call)
    _check_helper(helper)
    strip = _strip(opener, chain_close)
    inverse, inverse_strip = _build_inverse(rest[0] if rest else None, close_strip)
    block = BlockStatement(
        path=helper,
        params=params,
        hash=hash_,
        program=_build_program(program_tree, _end_loc(chain_close)),
        inverse=inverse,
        open_strip=strip,
        inverse_strip=inverse_strip,
        close_strip=close_strip,
        loc=_loc(opener),
    )
    return Program(body=(block,), chained=True, loc=block.loc), strip


def _check_helper(helper: Node) -> None:
    if not isinstance(helper, PathExpression) or helper.data:
        raise ParseError("Expected a block helper name", helper.loc)


def _build_call(tree: Tree) -> tuple[Node, tuple[Node, ...], Hash | None]:
    hash_ = None
    exprs = []
    for child in tree.children:
        if isinstance(child, Tree) and child.data == "hash":
            hash_ = _build_hash(child)
        else:
            exprs.append(_build_expr(child))
    return exprs[0], tuple(exprs[1:]), hash_


def _build_hash(tree: Tree) -> Hash:
    pairs = []
    for pair in tree.children:
        key_token, value = pair.children
        pairs.append(
            HashPair(
                key=_HASH_KEY_SUFFIX.sub("", str(key_token)),
                value=_build_expr(value),
                loc=_loc(key_token),
            )
        )
    return Hash(pairs=tuple(pairs), loc=pairs[0].loc)


def _build_expr(item: Tree | Token) -> Node:
    if isinstance(item, Tree):
        if item.data == "path":
            return _build_path(item)
        lpar, call, _rpar = item.children
        path, params, hash_ = _build_call(call)
        return SubExpression(path=path, params=params, hash=hash_, loc=_loc(lpar))

    loc = _loc(item)
    if item.type == "STRING":
        return StringLiteral(value=_decode_string(str(item)), loc=loc)
    if item.type == "NUMBER":
        text = str(item)
        value = float(text) if "." in text else int(text)
        return NumberLiteral(value=value, loc=loc)
    if item.type == "BOOLEAN":
        return BooleanLiteral(value=str(item) == "true", loc=loc)
    if item.type == "NULL":
        return NullLiteral(loc=loc)
    if item.type == "UNDEFINED":
        return UndefinedLiteral(loc=loc)
    raise ParseError(f"Unexpected token {item.type}", loc)


def _build_path(tree: Tree) -> PathExpression:
    tokens: list[Token] = list(tree.children)
    data = tokens[0].type == "DATA"
    segments = tokens[1:] if data else tokens

    raw = [str(tok) for tok in segments]
    parts = [text[1:-1] if tok.type == "SEGMENT" else text for tok, text in zip(segments, raw)]
    if not data and segments[0].type == "ID" and raw[0] == _THIS_SEGMENT:
        parts = parts[1:]

    original = ("@" if data else "") + ".".join(raw)
    return PathExpression(
        data=data, parts=tuple(parts), original=original, loc=_loc(tokens[0])
    )


def _decode_string(text: str) -> str:
    quote = text[0]
    return text[1:-1].replace("\\" + quote, quote)
