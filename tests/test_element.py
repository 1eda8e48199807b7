from __future__ import annotations

import contextlib
import io
import unittest

from stubhtml import ElementKind, ElementStub, IllegalDirectiveError, StructuralError, StubType, Template
from stubhtml.constants import VOID_ELEMENTS
from stubhtml.element import camel_case
from stubhtml.stubs import FragmentStub, MustacheStub, SectionStub, TextStub


def build(source, **options):
    return Template(source, **options).root.items


def element(source, **options):
    item = build(source, **options)[0]
    assert isinstance(item, ElementStub)
    return item


class TestElementClosing(unittest.TestCase):
    def test_own_closing_tag_is_consumed(self) -> None:
        items = build("<div>a</div>b")
        assert len(items) == 2
        assert items[0].tag == "div"
        assert items[1].text == "b"

    def test_closing_tag_is_case_insensitive(self) -> None:
        items = build("<DIV>a</div>")
        assert len(items) == 1
        assert items[0].tag == "div"
        assert items[0].raw_tag == "DIV"

    def test_implicit_sibling_close(self) -> None:
        items = build("<li>one<li>two")
        assert len(items) == 2
        assert all(item.tag == "li" for item in items)
        assert items[0].items[0].text == "one"
        assert items[1].items[0].text == "two"

    def test_list_items_inside_list(self) -> None:
        ul = element("<ul><li>one<li>two</ul>after")
        assert [li.tag for li in ul.items] == ["li", "li"]
        assert ul.to_markup() == "<ul><li>one</li><li>two</li></ul>"

    def test_definition_list(self) -> None:
        dl = element("<dl><dt>a<dd>b<dt>c</dl>")
        assert [child.tag for child in dl.items] == ["dt", "dd", "dt"]

    def test_table_rows_and_cells(self) -> None:
        table = element("<table><tr><td>1<td>2</tr><tr><td>3</tr></table>")
        rows = table.items
        assert len(rows) == 2
        assert [len(row.items) for row in rows] == [2, 1]
        assert rows[0].items[1].items[0].text == "2"

    def test_cell_is_not_closed_by_row(self) -> None:
        # Only td/th close a cell; a new row nests inside it
        tr = element("<tr><td>1<tr><td>2</tr>")
        assert len(tr.items) == 1
        assert tr.items[0].items[1].tag == "tr"

    def test_paragraph_closed_by_block(self) -> None:
        items = build("<p>one<div>two</div>")
        assert [item.tag for item in items] == ["p", "div"]

    def test_parent_closing_tag_closes_child(self) -> None:
        div = element("<div><span>a</div>")
        assert len(div.items) == 1
        assert div.items[0].tag == "span"

    def test_section_close_ends_element(self) -> None:
        ul = element("<ul>{{#items}}<li>{{.}}{{/items}}</ul>")
        section = ul.items[0]
        assert isinstance(section, SectionStub)
        li = section.items[0]
        assert li.tag == "li"
        assert isinstance(li.items[0], MustacheStub)

    def test_unclosed_element_runs_to_end(self) -> None:
        div = element("<div><p>a")
        assert div.items[0].items[0].text == "a"


class TestVoidElements(unittest.TestCase):
    def test_void_elements_have_no_children(self) -> None:
        for tag in sorted(VOID_ELEMENTS - {"doctype"}):
            with self.subTest(tag=tag):
                items = build(f"<{tag}>text")
                assert items[0].is_void
                assert items[0].items is None
                assert "f" not in items[0].to_json(no_stringify=True)
                assert items[1].text == "text"

    def test_self_closing_has_no_children(self) -> None:
        items = build("<span/>text")
        assert items[0].self_closing
        assert items[0].items is None
        assert len(items) == 2

    def test_doctype(self) -> None:
        doctype = element("<!DOCTYPE html><div>x</div>")
        assert doctype.doctype
        assert doctype.is_void
        assert doctype.to_json() == {"t": StubType.ELEMENT, "e": "doctype", "y": 1, "a": {"html": None}}


class TestWhitespace(unittest.TestCase):
    def test_boundary_whitespace_is_trimmed(self) -> None:
        div = element("<div>\n  text  \n</div>")
        assert len(div.items) == 1
        assert div.items[0].text == "text"

    def test_interior_whitespace_is_collapsed(self) -> None:
        div = element("<div>a \n\n b</div>")
        assert div.items[0].text == "a b"

    def test_whitespace_only_edges_are_dropped(self) -> None:
        p = element("<p> {{a}} </p>")
        assert len(p.items) == 1
        assert isinstance(p.items[0], MustacheStub)

    def test_pre_preserves_whitespace(self) -> None:
        pre = element("<pre>\n  text  \n</pre>")
        assert pre.items[0].text == "\n  text  \n"

    def test_pre_preserves_nested_whitespace(self) -> None:
        pre = element("<pre><b>  x  </b></pre>")
        assert pre.items[0].items[0].text == "  x  "

    def test_preserve_whitespace_option(self) -> None:
        div = element("<div>  a  </div>", preserve_whitespace=True)
        assert div.items[0].text == "  a  "

    def test_trimming_replaces_text_stub(self) -> None:
        div = element("<div> a </div>")
        assert isinstance(div.items[0], TextStub)
        assert isinstance(div.items, tuple)


class TestAttributes(unittest.TestCase):
    def test_html_attribute_names_are_lowercased(self) -> None:
        div = element('<div CLASS="a" Data-X="b"></div>')
        assert [a.name for a in div.attributes] == ["class", "data-x"]

    def test_svg_case(self) -> None:
        svg = element('<svg viewbox="0 0 1 1"><lineargradient></lineargradient></svg>')
        assert svg.attributes[0].name == "viewBox"
        assert svg.items[0].tag == "linearGradient"

    def test_values_are_fragments(self) -> None:
        div = element('<div class="a {{b}}" hidden></div>')
        value = div.attributes[0].value
        assert isinstance(value, FragmentStub)
        assert value.items[0].text == "a "
        assert value.items[1].ref == "b"
        assert div.attributes[1].value is None

    def test_sanitize_event_attributes(self) -> None:
        a = element('<a onclick="x()" href="y.html">z</a>', sanitize_event_attributes=True)
        assert [attribute.name for attribute in a.attributes] == ["href"]

    def test_event_attributes_kept_by_default(self) -> None:
        a = element('<a onclick="x()" href="y.html">z</a>')
        assert [attribute.name for attribute in a.attributes] == ["onclick", "href"]

    def test_duplicate_attributes_build(self) -> None:
        div = element('<div a="1" a="2"></div>')
        assert len(div.attributes) == 2


class TestDirectivesOnElements(unittest.TestCase):
    def test_proxy_with_dynamic_args(self) -> None:
        button = element('<button proxy-click="select:{{id}}">x</button>')
        proxy = button.proxies[0]
        assert proxy.directive_type == "click"
        assert proxy.name == "select"
        assert isinstance(proxy.dynamic_args, FragmentStub)
        assert proxy.dynamic_args.items[0].ref == "id"

    def test_proxy_with_json_args(self) -> None:
        div = element('<div proxy-foo="bar:[1,2,3]"></div>')
        assert div.proxies[0].name == "bar"
        assert div.proxies[0].args == [1, 2, 3]

    def test_intro_outro_are_independent(self) -> None:
        div = element('<div intro-outro="fade"></div>')
        assert div.intro is not div.outro
        assert div.intro.name == div.outro.name == "fade"

        div.outro.name = "slide"
        assert div.intro.name == "fade"

    def test_intro_outro_dynamic_args_are_not_shared(self) -> None:
        div = element('<div intro-outro="fade:{{speed}}"></div>')
        assert div.intro.dynamic_args is not div.outro.dynamic_args
        assert div.intro.dynamic_args.items[0] is not div.outro.dynamic_args.items[0]

    def test_two_intros_raise(self) -> None:
        with self.assertRaises(StructuralError):
            Template('<div intro="a" intro="b"></div>')

    def test_empty_directive_raises(self) -> None:
        with self.assertRaises(IllegalDirectiveError):
            Template('<div proxy-click=""></div>')
        with self.assertRaises(IllegalDirectiveError):
            Template("<div on-click></div>")

    def test_decorator_last_wins(self) -> None:
        div = element('<div decorator="tip" decorator="pop">x</div>')
        assert div.decorator == "pop"

    def test_dynamic_decorator_is_dropped(self) -> None:
        div = element('<div decorator="{{name}}"></div>')
        assert div.decorator is None
        assert "o" not in div.to_json()

    def test_empty_decorator_raises(self) -> None:
        with self.assertRaises(IllegalDirectiveError):
            Template('<div decorator=""></div>')


class TestComponents(unittest.TestCase):
    def test_component(self) -> None:
        card = element('<rv-user-card user="{{u}}" Title="x" intro="fade"></rv-user-card>')
        assert card.kind is ElementKind.COMPONENT
        assert card.is_component
        assert card.tag == "userCard"
        # Component attributes are not classified or renamed
        assert [a.name for a in card.attributes] == ["user", "Title", "intro"]
        assert card.proxies == ()
        assert card.intro is None
        assert card.decorator is None

    def test_component_prefix_is_case_insensitive(self) -> None:
        modal = element("<RV-Modal></RV-Modal>")
        assert modal.is_component
        assert modal.tag == "Modal"

    def test_html_element_kind(self) -> None:
        div = element("<div></div>")
        assert div.kind is ElementKind.HTML_ELEMENT
        assert not div.is_component

    def test_camel_case(self) -> None:
        assert camel_case("user-card") == "userCard"
        assert camel_case("a-b-c") == "aBC"
        assert camel_case("plain") == "plain"


class TestDebugOutput(unittest.TestCase):
    def test_implicit_close_is_traced(self) -> None:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            Template("<ul><li>a<li>b</ul>", debug=True)
        assert "ElementStub: <li> implicitly closed by sibling <li>" in out.getvalue()

    def test_silent_without_debug(self) -> None:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            Template("<ul><li>a<li>b</ul>")
        assert out.getvalue() == ""


if __name__ == "__main__":
    unittest.main()
