"""Tests for positioned fragments and Source Map v3 encoding."""

import json

import pytest

from tinybars.nodes import NO_SOURCE_LOCATION, SourceLocation
from tinybars.sourcemap import (
    Fragment,
    Mapping,
    SourceMap,
    _decode_vlq,
    _encode_vlq,
    decode_mappings,
    encode_mappings,
)


def _loc(line: int, column: int) -> SourceLocation:
    return SourceLocation(line=line, column=column)


class TestVlq:
    @pytest.mark.parametrize(
        "value,encoded",
        [(0, "A"), (1, "C"), (-1, "D"), (15, "e"), (16, "gB"), (-16, "hB"), (123, "2H")],
    )
    def test_known_values(self, value, encoded):
        assert _encode_vlq(value) == encoded
        assert _decode_vlq(encoded) == [value]

    def test_decode_sequence(self):
        assert _decode_vlq("AAgBC") == [0, 0, 16, 1]


class TestMappings:
    def test_encode_relative_segments(self):
        mappings = [
            Mapping(1, 0, _loc(1, 0)),
            Mapping(2, 4, _loc(3, 2)),
        ]
        assert encode_mappings(mappings) == "AAAA;IAEE"

    def test_unmapped_segment_has_one_field(self):
        mappings = [Mapping(1, 0, _loc(1, 0)), Mapping(1, 5, None)]
        assert encode_mappings(mappings) == "AAAA,K"

    def test_empty_lines(self):
        assert encode_mappings([Mapping(3, 0, _loc(1, 0))]) == ";;AAAA"

    def test_decode_inverts_encode(self):
        mappings = [
            Mapping(1, 2, _loc(1, 0)),
            Mapping(1, 9, _loc(1, 7)),
            Mapping(1, 12, None),
            Mapping(3, 1, _loc(2, 3)),
        ]
        assert decode_mappings(encode_mappings(mappings)) == mappings


class TestFragment:
    def test_string_rendering(self):
        fragment = Fragment(_loc(1, 0), ["a", Fragment(_loc(1, 1), "b"), ("c", "d")])
        assert str(fragment) == "abcd"

    def test_prepend(self):
        fragment = Fragment(None, "c")
        fragment.prepend(["a", "b"])
        assert str(fragment) == "abc"

    def test_rejects_other_chunk_types(self):
        with pytest.raises(TypeError):
            Fragment().add(42)
        with pytest.raises(TypeError):
            Fragment().prepend(None)

    def test_unknown_location_is_unmapped(self):
        assert Fragment(NO_SOURCE_LOCATION, "x").loc is None

    def test_is_empty(self):
        assert Fragment().is_empty()
        assert Fragment(None, ["", Fragment()]).is_empty()
        assert not Fragment(None, "x").is_empty()

    def test_walk_reports_owner(self):
        inner = Fragment(_loc(2, 0), "b")
        outer = Fragment(_loc(1, 0), ["a", inner])
        assert list(outer.walk()) == [("a", _loc(1, 0)), ("b", _loc(2, 0))]


class TestFragmentSourceMap:
    def test_same_location_is_not_repeated(self):
        fragment = Fragment(_loc(1, 0), ["ab", Fragment(_loc(1, 0), "cd")])
        _, source_map = fragment.to_string_with_source_map("t.hbs")
        assert source_map.decoded() == [Mapping(1, 0, _loc(1, 0))]

    def test_leaving_mapped_region(self):
        root = Fragment(None, [Fragment(_loc(1, 4), "xy"), "zz"])
        code, source_map = root.to_string_with_source_map("t.hbs")
        assert code == "xyzz"
        assert source_map.decoded() == [
            Mapping(1, 0, _loc(1, 4)),
            Mapping(1, 2, None),
        ]

    def test_newline_inside_mapped_text(self):
        fragment = Fragment(_loc(2, 3), "a\nb")
        _, source_map = fragment.to_string_with_source_map("t.hbs")
        assert source_map.decoded() == [
            Mapping(1, 0, _loc(2, 3)),
            Mapping(2, 0, _loc(2, 3)),
        ]

    def test_trailing_newline_ends_mapping(self):
        root = Fragment(None, [Fragment(_loc(1, 0), "a\n"), Fragment(_loc(1, 0), "b")])
        _, source_map = root.to_string_with_source_map("t.hbs")
        assert source_map.decoded() == [
            Mapping(1, 0, _loc(1, 0)),
            Mapping(2, 0, _loc(1, 0)),
        ]

    def test_unmapped_prefix_shifts_lines(self):
        root = Fragment(None, ["header\n", Fragment(_loc(1, 0), "x")])
        _, source_map = root.to_string_with_source_map("t.hbs")
        assert source_map.original_position_for(1, 0) is None
        assert source_map.original_position_for(2, 0) == _loc(1, 0)


class TestSourceMapModel:
    def test_json_shape(self):
        source_map = SourceMap(sources=["a.hbs"], mappings="AAAA")
        payload = json.loads(source_map.to_json())
        assert payload == {
            "version": 3,
            "sources": ["a.hbs"],
            "names": [],
            "mappings": "AAAA",
        }

    def test_json_includes_file_when_set(self):
        source_map = SourceMap(file="a.hbs", sources=["a.hbs"])
        assert json.loads(source_map.to_json())["file"] == "a.hbs"

    def test_from_json(self):
        text = SourceMap(file="f", sources=["f"], mappings="AAAA,IAAI").to_json()
        restored = SourceMap.from_json(text)
        assert restored.original_position_for(1, 5) == _loc(1, 4)
        assert restored.original_position_for(1, 3) == _loc(1, 0)
