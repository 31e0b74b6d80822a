"""Positioned output fragments and Source Map v3 generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

from pydantic import BaseModel

from .nodes import SourceLocation

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_VLQ_SHIFT = 5
_VLQ_MASK = (1 << _VLQ_SHIFT) - 1
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT

Chunk = Union[str, "Fragment", list, tuple]


class Fragment:
    """A tree of generated-code chunks annotated with the template position
    that produced them.

    String chunks inherit the position of the fragment that directly owns
    them; fragments without a position leave their own chunks unmapped.
    """

    def __init__(self, loc: SourceLocation | None = None, chunks: Chunk | None = None):
        self.loc = loc if loc is not None and not loc.is_unknown() else None
        self.children: list[str | Fragment] = []
        if chunks is not None:
            self.add(chunks)

    def add(self, chunk: Chunk) -> Fragment:
        if isinstance(chunk, (list, tuple)):
            for item in chunk:
                self.add(item)
        elif isinstance(chunk, (str, Fragment)):
            self.children.append(chunk)
        else:
            raise TypeError(f"Expected str or Fragment, got {type(chunk).__name__}")
        return self

    def prepend(self, chunk: Chunk) -> Fragment:
        if isinstance(chunk, (list, tuple)):
            for item in reversed(chunk):
                self.prepend(item)
        elif isinstance(chunk, (str, Fragment)):
            self.children.insert(0, chunk)
        else:
            raise TypeError(f"Expected str or Fragment, got {type(chunk).__name__}")
        return self

    def walk(self) -> Iterator[tuple[str, SourceLocation | None]]:
        for child in self.children:
            if isinstance(child, Fragment):
                yield from child.walk()
            elif child:
                yield child, self.loc

    def is_empty(self) -> bool:
        return not any(text for text, _ in self.walk())

    def __str__(self) -> str:
        return "".join(text for text, _ in self.walk())

    def to_string_with_source_map(
        self, source_name: str, file: str | None = None
    ) -> tuple[str, SourceMap]:
        """Render the tree and build a source map pointing at *source_name*."""
        parts: list[str] = []
        mappings: list[Mapping] = []
        line, column = 1, 0
        last_loc: SourceLocation | None = None
        active = False

        for text, loc in self.walk():
            parts.append(text)
            if loc is not None:
                if not active or last_loc != loc:
                    mappings.append(Mapping(line, column, loc))
                last_loc = loc
                active = True
            elif active:
                mappings.append(Mapping(line, column, None))
                last_loc = None
                active = False

            for idx, char in enumerate(text):
                if char != "\n":
                    column += 1
                    continue
                line += 1
                column = 0
                if idx + 1 == len(text):
                    last_loc = None
                    active = False
                elif active:
                    mappings.append(Mapping(line, column, loc))

        source_map = SourceMap(
            file=file,
            sources=[source_name],
            mappings=encode_mappings(mappings),
        )
        return "".join(parts), source_map


@dataclass(frozen=True)
class Mapping:
    """One generated position (1-based line, 0-based column) and its origin."""

    generated_line: int
    generated_column: int
    original: SourceLocation | None = None


class SourceMap(BaseModel):
    """Source Map revision 3 payload."""

    version: int = 3
    file: str | None = None
    sources: list[str] = []
    names: list[str] = []
    mappings: str = ""

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, text: str) -> SourceMap:
        return cls.model_validate_json(text)

    def decoded(self) -> list[Mapping]:
        return decode_mappings(self.mappings)

    def original_position_for(self, line: int, column: int) -> SourceLocation | None:
        """Return the template position for a generated (line, column), if mapped."""
        best: Mapping | None = None
        for mapping in self.decoded():
            if mapping.generated_line != line or mapping.generated_column > column:
                continue
            if best is None or mapping.generated_column >= best.generated_column:
                best = mapping
        return best.original if best else None


# ── VLQ codec ────────────────────────────────────────────────────


def _encode_vlq(value: int) -> str:
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    out: list[str] = []
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq:
            digit |= _VLQ_CONTINUATION
        out.append(_BASE64[digit])
        if not vlq:
            return "".join(out)


def _decode_vlq(segment: str) -> list[int]:
    values: list[int] = []
    value = shift = 0
    for char in segment:
        digit = _BASE64.index(char)
        value += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += _VLQ_SHIFT
            continue
        values.append(-(value >> 1) if value & 1 else value >> 1)
        value = shift = 0
    return values


def encode_mappings(mappings: list[Mapping]) -> str:
    """Encode mappings for a single-source map (source index is always 0)."""
    lines: list[str] = []
    segments: list[str] = []
    current_line = 1
    prev_gen_col = prev_line = prev_col = 0
    for mapping in sorted(mappings, key=lambda m: (m.generated_line, m.generated_column)):
        while current_line < mapping.generated_line:
            lines.append(",".join(segments))
            segments = []
            current_line += 1
            prev_gen_col = 0
        segment = _encode_vlq(mapping.generated_column - prev_gen_col)
        prev_gen_col = mapping.generated_column
        if mapping.original is not None:
            original_line = mapping.original.line - 1
            segment += _encode_vlq(0)
            segment += _encode_vlq(original_line - prev_line)
            segment += _encode_vlq(mapping.original.column - prev_col)
            prev_line = original_line
            prev_col = mapping.original.column
        segments.append(segment)
    lines.append(",".join(segments))
    return ";".join(lines)


def decode_mappings(encoded: str) -> list[Mapping]:
    mappings: list[Mapping] = []
    prev_line = prev_col = 0
    for line_index, line in enumerate(encoded.split(";"), start=1):
        gen_col = 0
        for segment in filter(None, line.split(",")):
            fields = _decode_vlq(segment)
            gen_col += fields[0]
            original = None
            if len(fields) >= 4:
                prev_line += fields[2]
                prev_col += fields[3]
                original = SourceLocation(line=prev_line + 1, column=prev_col)
            mappings.append(Mapping(line_index, gen_col, original))
    return mappings
