"""Tests for statement and program compilation."""

import pytest

from tinybars.context import CompilationContext
from tinybars.errors import CompileError
from tinybars.parser import parse_template
from tinybars.statements import compile_program


def _compile(template: str, **overrides):
    fields = {"scope_var": "scope", "data_var": "data"}
    fields.update(overrides)
    ctx = CompilationContext(**fields)
    return str(compile_program(parse_template(template), ctx)), ctx


class TestProgram:
    def test_empty_program(self):
        code, ctx = _compile("")
        assert code == '""'
        assert ctx.imports == {}

    def test_content_is_concatenated(self):
        code, _ = _compile("Hello")
        assert code == "\"\" + 'Hello'"

    def test_emptied_text_is_skipped(self):
        code, _ = _compile("a {{~! note ~}}\n", omit_comments=True)
        assert code == "\"\" + 'a'"


class TestMustache:
    def test_escaped(self):
        code, ctx = _compile("{{name}}")
        assert code == "\"\" + _escape(_lookup(scope, 'name'))"
        assert list(ctx.imports) == ["_lookup", "_escape"]

    def test_raw(self):
        code, ctx = _compile("{{{name}}}")
        assert code == "\"\" + _str(_lookup(scope, 'name'))"
        assert "_escape" not in ctx.imports

    def test_with_params_is_a_call(self):
        code, _ = _compile("{{upper name}}")
        assert code == (
            "\"\" + _escape(_lookup(scope, 'upper')(_lookup(scope, 'name')))"
        )


class TestComments:
    def test_comment_becomes_python_comment(self):
        code, _ = _compile("a{{! note }}b")
        assert code == "\"\" + 'a' + (\"\"  # note\n) + 'b'"

    def test_line_breaks_are_flattened(self):
        code, _ = _compile("{{!-- one\ntwo\r\nthree --}}")
        assert "# one two three\n" in code

    def test_omitted_comment_leaves_no_trace(self):
        code, _ = _compile("a{{! note }}b", omit_comments=True)
        assert code == "\"\" + 'a' + 'b'"


class TestConditionals:
    def test_if(self):
        code, ctx = _compile("{{#if c}}A{{/if}}")
        assert code == "\"\" + (\"\" + 'A' if _truthy(_lookup(scope, 'c')) else \"\")"
        assert list(ctx.imports) == ["_lookup", "_truthy"]

    def test_if_else(self):
        code, _ = _compile("{{#if c}}A{{else}}B{{/if}}")
        assert code == (
            "\"\" + (\"\" + 'A' if _truthy(_lookup(scope, 'c')) else \"\" + 'B')"
        )

    def test_unless_swaps_branches(self):
        code, _ = _compile("{{#unless c}}A{{else}}B{{/unless}}")
        assert code == (
            "\"\" + (\"\" + 'B' if _truthy(_lookup(scope, 'c')) else \"\" + 'A')"
        )

    def test_unless_without_inverse(self):
        code, _ = _compile("{{#unless c}}A{{/unless}}")
        assert code == "\"\" + (\"\" if _truthy(_lookup(scope, 'c')) else \"\" + 'A')"


class TestEach:
    def test_loop_variables_follow_depth(self):
        code, ctx = _compile("{{#each xs}}{{@key}}{{/each}}")
        assert code == (
            "\"\" + \"\".join((\"\" + _escape(key0)) "
            "for key0, val0 in _entries(_lookup(scope, 'xs')))"
        )
        assert "_entries" in ctx.imports

    def test_nested_loops_get_fresh_names(self):
        code, _ = _compile("{{#each a}}{{#each this}}{{this}}{{/each}}{{/each}}")
        assert "for key0, val0 in _entries(_lookup(scope, 'a'))" in code
        assert "for key1, val1 in _entries(val0)" in code
        assert "_escape(val1)" in code

    def test_sibling_is_unaffected_by_loop(self):
        code, _ = _compile("{{#each a}}x{{/each}}{{name}}")
        assert code.endswith("_escape(_lookup(scope, 'name'))")

    def test_else_is_rejected(self):
        with pytest.raises(CompileError, match="else in #each") as info:
            _compile("{{#each xs}}a{{else}}b{{/each}}")
        assert (info.value.line, info.value.column) == (1, 21)


class TestWith:
    def test_rebinds_scope(self):
        code, _ = _compile("{{#with user}}{{name}}{{/with}}")
        assert code == (
            "\"\" + (lambda with_scope: (\"\" + _escape(_lookup(with_scope, 'name'))))"
            "(_lookup(scope, 'user'))"
        )

    def test_does_not_enter_a_loop(self):
        with pytest.raises(CompileError, match="@index"):
            _compile("{{#with user}}{{@index}}{{/with}}")


class TestBlockErrors:
    def test_unknown_helper(self):
        with pytest.raises(CompileError, match="Unexpected foo at 1:0"):
            _compile("{{#foo x}}a{{/foo}}")

    def test_wrong_argument_count(self):
        with pytest.raises(CompileError, match="#if with 2 arguments"):
            _compile("{{#if a b}}x{{/if}}")

    def test_partial_is_unsupported(self):
        with pytest.raises(CompileError, match="Unexpected PartialStatement at 1:2"):
            _compile("ab{{> header}}")
