"""Template AST — immutable statement and expression nodes produced by the parser."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class NodeType(str, Enum):
    PROGRAM = "Program"
    # Statements
    CONTENT_STATEMENT = "ContentStatement"
    COMMENT_STATEMENT = "CommentStatement"
    MUSTACHE_STATEMENT = "MustacheStatement"
    BLOCK_STATEMENT = "BlockStatement"
    PARTIAL_STATEMENT = "PartialStatement"
    # Expressions
    PATH_EXPRESSION = "PathExpression"
    SUB_EXPRESSION = "SubExpression"
    STRING_LITERAL = "StringLiteral"
    BOOLEAN_LITERAL = "BooleanLiteral"
    NUMBER_LITERAL = "NumberLiteral"
    NULL_LITERAL = "NullLiteral"
    UNDEFINED_LITERAL = "UndefinedLiteral"
    # Hash arguments
    HASH = "Hash"
    HASH_PAIR = "HashPair"


class SourceLocation(BaseModel):
    """Template position of a node: 1-based line, 0-based column."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int

    def is_unknown(self) -> bool:
        return self.line == 0 and self.column == 0

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.line}:{self.column}"


NO_SOURCE_LOCATION = SourceLocation(line=0, column=0)


class StripFlags(BaseModel):
    """``~`` markers on one tag: ``open`` for ``{{~``, ``close`` for ``~}}``."""

    model_config = ConfigDict(frozen=True)

    open: bool = False
    close: bool = False


NO_STRIP = StripFlags()


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: NodeType
    loc: SourceLocation = NO_SOURCE_LOCATION


# ── expressions ──────────────────────────────────────────────────


class PathExpression(Node):
    """A reference such as ``user.name``, ``this`` or ``@key``.

    ``parts`` holds the lookup segments. For data paths (``data`` is true) the
    first part is the sigil name (``root``, ``key``, ...). A part is either a
    literal property name or a nested expression used as a computed key.
    """

    type: NodeType = NodeType.PATH_EXPRESSION
    data: bool = False
    parts: tuple[str | Node, ...] = ()
    original: str = ""

    @property
    def head(self) -> str:
        if self.parts and isinstance(self.parts[0], str):
            return self.parts[0]
        return ""


class HashPair(Node):
    type: NodeType = NodeType.HASH_PAIR
    key: str
    value: Node


class Hash(Node):
    """Trailing ``key=value`` arguments of a call."""

    type: NodeType = NodeType.HASH
    pairs: tuple[HashPair, ...] = ()


class SubExpression(Node):
    type: NodeType = NodeType.SUB_EXPRESSION
    path: Node
    params: tuple[Node, ...] = ()
    hash: Hash | None = None


class StringLiteral(Node):
    type: NodeType = NodeType.STRING_LITERAL
    value: str


class BooleanLiteral(Node):
    type: NodeType = NodeType.BOOLEAN_LITERAL
    value: bool


class NumberLiteral(Node):
    type: NodeType = NodeType.NUMBER_LITERAL
    value: int | float


class NullLiteral(Node):
    type: NodeType = NodeType.NULL_LITERAL


class UndefinedLiteral(Node):
    type: NodeType = NodeType.UNDEFINED_LITERAL


# ── statements ───────────────────────────────────────────────────


class Program(Node):
    """A statement list. ``chained`` marks the inverse built for ``{{else if}}``."""

    type: NodeType = NodeType.PROGRAM
    body: tuple[Node, ...] = ()
    chained: bool = False


class ContentStatement(Node):
    """Literal text. ``original`` keeps the text before whitespace control."""

    type: NodeType = NodeType.CONTENT_STATEMENT
    value: str
    original: str = ""


class CommentStatement(Node):
    type: NodeType = NodeType.COMMENT_STATEMENT
    value: str
    strip: StripFlags = NO_STRIP


class MustacheStatement(Node):
    type: NodeType = NodeType.MUSTACHE_STATEMENT
    path: Node
    params: tuple[Node, ...] = ()
    hash: Hash | None = None
    escaped: bool = True
    strip: StripFlags = NO_STRIP


class BlockStatement(Node):
    type: NodeType = NodeType.BLOCK_STATEMENT
    path: PathExpression
    params: tuple[Node, ...] = ()
    hash: Hash | None = None
    program: Program
    inverse: Program | None = None
    open_strip: StripFlags = NO_STRIP
    inverse_strip: StripFlags = NO_STRIP
    close_strip: StripFlags = NO_STRIP


class PartialStatement(Node):
    type: NodeType = NodeType.PARTIAL_STATEMENT
    name: Node
    params: tuple[Node, ...] = ()
    hash: Hash | None = None
    strip: StripFlags = NO_STRIP
