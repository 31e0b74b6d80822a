"""Compile options and the per-compile context threaded through the compilers."""

from __future__ import annotations

import keyword
import re
from dataclasses import dataclass, field, replace
from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

from . import constants


class OutputFormat(str, Enum):
    """Shape of the emitted module."""

    MODULE = "module"  # `from ... import ...` prologue, plain `def`
    EXPORTS = "exports"  # `__import__` prologue, `exports = <function>`


class CompileOptions(BaseModel):
    """User-facing compiler configuration."""

    scope_var: str = constants.DEFAULT_SCOPE_VAR
    data_var: str = constants.DEFAULT_DATA_VAR
    function_name: str = constants.DEFAULT_FUNCTION_NAME
    omit_comments: bool = False
    ignore_standalone: bool = False
    format: OutputFormat = OutputFormat.MODULE
    src_name: str = constants.DEFAULT_SOURCE_NAME

    @field_validator("scope_var", "data_var", "function_name")
    @classmethod
    def _check_identifier(cls, value: str) -> str:
        if not value.isidentifier() or keyword.iskeyword(value):
            raise ValueError(f"{value!r} is not a valid Python identifier")
        if value in constants.RESERVED_NAMES or re.match(
            constants.RESERVED_NAME_PATTERN, value
        ):
            raise ValueError(f"{value!r} is reserved for generated code")
        return value

    @model_validator(mode="after")
    def _check_distinct_bindings(self) -> CompileOptions:
        if self.scope_var == self.data_var:
            raise ValueError("scope_var and data_var must differ")
        return self


@dataclass(frozen=True)
class CompilationContext:
    """Immutable view of the compile state at one point in the template tree.

    Nested compiles receive a copy with their own scope binding and depth.
    ``imports`` (runtime alias -> helper symbol) is the one shared, growing
    collection; every copy made during a single compile points at the same dict.
    """

    scope_var: str
    data_var: str
    depth: int = 0
    imports: dict[str, str] = field(default_factory=dict, compare=False)
    src_name: str = constants.DEFAULT_SOURCE_NAME
    omit_comments: bool = False
    format: OutputFormat = OutputFormat.MODULE
    function_name: str = constants.DEFAULT_FUNCTION_NAME

    @classmethod
    def from_options(cls, options: CompileOptions) -> CompilationContext:
        return cls(
            scope_var=options.scope_var,
            data_var=options.data_var,
            src_name=options.src_name,
            omit_comments=options.omit_comments,
            format=options.format,
            function_name=options.function_name,
        )

    def rebind(self, scope_var: str, *, enter_loop: bool = False) -> CompilationContext:
        """Copy with a new scope binding, one level deeper when entering a loop."""
        depth = self.depth + 1 if enter_loop else self.depth
        return replace(self, scope_var=scope_var, depth=depth)

    def require(self, symbol: str) -> str:
        """Record that generated code needs runtime *symbol*; return its alias."""
        alias = constants.RUNTIME_ALIASES[symbol]
        self.imports.setdefault(alias, symbol)
        return alias
