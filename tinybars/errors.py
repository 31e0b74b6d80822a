"""Template error types shared by the parser and the compiler."""

from __future__ import annotations

from .nodes import NO_SOURCE_LOCATION, SourceLocation


class TemplateError(Exception):
    """Base error carrying the template position it refers to."""

    def __init__(self, message: str, loc: SourceLocation = NO_SOURCE_LOCATION):
        super().__init__(message)
        self.message = message
        self.loc = loc

    @property
    def line(self) -> int:
        return self.loc.line

    @property
    def column(self) -> int:
        return self.loc.column


class ParseError(TemplateError):
    """Malformed template syntax, raised by the parser."""


class CompileError(TemplateError):
    """A well-formed tree that uses a construct the compiler cannot translate."""

    def __init__(self, construct: str, loc: SourceLocation):
        super().__init__(f"Unexpected {construct} at {loc}", loc)
        self.construct = construct
