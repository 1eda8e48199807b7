from __future__ import annotations

import unittest

from stubhtml import IllegalDirectiveError, StructuralError, StubType
from stubhtml.directives import (
    Directive,
    decorator_value,
    filter_attrs,
    jsonify_directive,
    process_directive,
    sanitize_attrs,
)
from stubhtml.tokens import AttributeToken, MustacheToken, TextToken


def attr(name, *values):
    tokens = [TextToken(v) if isinstance(v, str) else v for v in values]
    return AttributeToken(name, tokens)


def mustache(ref):
    return MustacheToken(StubType.INTERPOLATOR, ref)


class TestFilterAttrs(unittest.TestCase):
    def test_partition(self) -> None:
        items = [
            attr("class", "a"),
            attr("proxy-click", "go"),
            attr("on-tap", "select"),
            attr("intro", "fade"),
            attr("outro", "slide"),
            attr("decorator", "tooltip"),
        ]
        filtered = filter_attrs(items)

        assert [a.name for a in filtered.attrs] == ["class"]
        assert [p.name for p in filtered.proxies] == ["click", "tap"]
        assert filtered.intro is items[3]
        assert filtered.outro is items[4]
        assert filtered.decorator is items[5]

    def test_input_is_not_modified(self) -> None:
        items = [attr("proxy-click", "go")]
        filter_attrs(items)
        assert items[0].name == "proxy-click"

    def test_duplicate_intro_raises(self) -> None:
        with self.assertRaises(StructuralError):
            filter_attrs([attr("intro", "a"), attr("intro", "b")])

    def test_duplicate_outro_raises(self) -> None:
        with self.assertRaises(StructuralError):
            filter_attrs([attr("outro", "a"), attr("outro", "b")])

    def test_intro_outro_after_intro_raises(self) -> None:
        with self.assertRaises(StructuralError):
            filter_attrs([attr("intro", "a"), attr("intro-outro", "b")])

    def test_intro_after_intro_outro_raises(self) -> None:
        with self.assertRaises(StructuralError):
            filter_attrs([attr("intro-outro", "a"), attr("intro", "b")])

    def test_intro_outro_expands_to_independent_copies(self) -> None:
        filtered = filter_attrs([attr("intro-outro", "fade:", mustache("speed"))])

        assert filtered.intro is not filtered.outro
        assert filtered.intro.value is not filtered.outro.value
        assert filtered.intro.value[1] is not filtered.outro.value[1]
        assert filtered.outro.value[0].value == "fade:"

        filtered.outro.value[0].value = "slide:"
        assert filtered.intro.value[0].value == "fade:"

    def test_second_decorator_wins(self) -> None:
        # Unlike transitions, a repeated decorator is not an error
        filtered = filter_attrs([attr("decorator", "a"), attr("decorator", "b")])
        assert decorator_value(filtered.decorator) == "b"


class TestSanitizeAttrs(unittest.TestCase):
    def test_event_handlers_are_dropped(self) -> None:
        kept = sanitize_attrs([attr("onclick", "x()"), attr("class", "a"), attr("onLoad", "y()"), attr("on", "z")])
        assert [a.name for a in kept] == ["class", "on"]


class TestProcessDirective(unittest.TestCase):
    def test_plain_name(self) -> None:
        directive = process_directive(attr("click", "select"))
        assert isinstance(directive, Directive)
        assert directive.directive_type == "click"
        assert directive.name == "select"
        assert not directive.has_args
        assert directive.dynamic_args is None

    def test_json_args(self) -> None:
        directive = process_directive(attr("foo", "bar:[1,2,3]"))
        assert directive.name == "bar"
        assert directive.has_args
        assert directive.args == [1, 2, 3]

    def test_string_args_fall_back(self) -> None:
        directive = process_directive(attr("foo", "bar:hello world"))
        assert directive.args == "hello world"

    def test_non_standard_json_constants_are_strings(self) -> None:
        assert process_directive(attr("foo", "bar:NaN")).args == "NaN"
        assert process_directive(attr("foo", "bar:Infinity")).args == "Infinity"

    def test_falsy_json_args_still_count(self) -> None:
        directive = process_directive(attr("foo", "bar:0"))
        assert directive.has_args
        assert directive.args == 0

    def test_split_happens_at_first_colon(self) -> None:
        directive = process_directive(attr("foo", "bar:a:b"))
        assert directive.name == "bar"
        assert directive.args == "a:b"

    def test_trailing_colon_has_no_args(self) -> None:
        directive = process_directive(attr("foo", "bar:"))
        assert directive.name == "bar"
        assert not directive.has_args
        assert directive.dynamic_args is None

    def test_dynamic_args(self) -> None:
        id_token = mustache("id")
        directive = process_directive(attr("click", "select:", id_token))
        assert directive.name == "select"
        assert not directive.has_args
        assert directive.dynamic_args == [id_token]

    def test_dynamic_name(self) -> None:
        handler = mustache("handler")
        directive = process_directive(attr("click", handler, ":go"))
        assert directive.name == [handler]
        assert directive.args == "go"

    def test_custom_fragment_builder(self) -> None:
        directive = process_directive(attr("click", "select:", mustache("id")), build_fragment=tuple)
        assert isinstance(directive.dynamic_args, tuple)

    def test_missing_value_raises(self) -> None:
        with self.assertRaises(IllegalDirectiveError):
            process_directive(AttributeToken("click"))
        with self.assertRaises(IllegalDirectiveError):
            process_directive(AttributeToken("click", []))

    def test_missing_name_raises(self) -> None:
        with self.assertRaises(IllegalDirectiveError) as ctx:
            process_directive(attr("", "go"))
        assert ctx.exception.directive.value[0].value == "go"


class TestDecoratorValue(unittest.TestCase):
    def test_literal(self) -> None:
        assert decorator_value(attr("decorator", "tooltip")) == "tooltip"

    def test_dynamic_is_dropped(self) -> None:
        assert decorator_value(attr("decorator", mustache("x"))) is None

    def test_missing_raises(self) -> None:
        with self.assertRaises(IllegalDirectiveError):
            decorator_value(AttributeToken("decorator"))
        with self.assertRaises(IllegalDirectiveError):
            decorator_value(AttributeToken("decorator", []))


class TestJsonifyDirective(unittest.TestCase):
    def test_static(self) -> None:
        assert jsonify_directive(process_directive(attr("click", "go"))) == "go"
        assert jsonify_directive(process_directive(attr("foo", "bar:[1]"))) == {"n": "bar", "a": [1]}

    def test_falsy_args_are_kept(self) -> None:
        assert jsonify_directive(process_directive(attr("foo", "bar:0"))) == {"n": "bar", "a": 0}
        assert jsonify_directive(process_directive(attr("foo", "bar:null"))) == {"n": "bar", "a": None}

    def test_raw_token_lists_are_rejected(self) -> None:
        directive = process_directive(attr("click", "select:", mustache("id")))
        with self.assertRaises(TypeError) as ctx:
            jsonify_directive(directive)
        assert "build_fragment" in str(ctx.exception)

        directive = process_directive(attr("click", mustache("handler")))
        with self.assertRaises(TypeError):
            jsonify_directive(directive)


if __name__ == "__main__":
    unittest.main()
