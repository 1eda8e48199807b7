"""Element stubs.

`ElementStub(first_token, parser, preserve_whitespace)` consumes one opening
tag from the parser's token stream and then keeps pulling child stubs until
the element closes. An element closes when one of these appears:

- its own closing tag, which is consumed;
- any other closing tag, left for an ancestor;
- an opening tag listed in ``AUTO_CLOSING_TAGS`` for this element (a sibling);
- a section closing mustache, left for the enclosing section;
- the end of the stream.

Void and self-closing elements have no children at all (``items is None``).

An element is either a custom component (``rv-`` prefix) or a plain HTML
element; the choice is made once and selects the payload type.
"""

import enum
import re

from .constants import (
    AUTO_CLOSING_TAGS,
    COMPONENT_PREFIX,
    PRESERVE_WHITESPACE_ELEMENTS,
    STRINGIFIABLE_ELEMENTS,
    SVG_CASE_SENSITIVE_ATTRIBUTES,
    SVG_CASE_SENSITIVE_ELEMENTS,
    UNSTRINGIFIABLE_ATTRIBUTES,
    VOID_ELEMENTS,
    StubType,
)
from .directives import decorator_value, filter_attrs, jsonify_directive, process_directive, sanitize_attrs
from .errors import StructuralError
from .serialize import (
    UNSTRINGIFIABLE,
    jsonify_stubs,
    quote_attribute_value,
    serialize_markup,
    serialize_structured,
    stringify_stubs,
)
from .stubs import Stub, TextStub

_LEADING_WHITESPACE = re.compile(r"^\s+")
_TRAILING_WHITESPACE = re.compile(r"\s+$")
_HYPHENATED_LETTER = re.compile(r"-([a-zA-Z])")


class ElementKind(enum.Enum):
    COMPONENT = "component"
    HTML_ELEMENT = "element"


class StubAttribute:
    __slots__ = ("name", "value")

    def __init__(self, name, value=None):
        self.name = name
        # FragmentStub, or None for boolean attributes
        self.value = value

    def __repr__(self):
        return f"StubAttribute({self.name!r}, {self.value!r})"


class ComponentPayload:
    __slots__ = ("attributes", "name")

    def __init__(self, name, attributes):
        self.name = name
        self.attributes = attributes


class HtmlPayload:
    __slots__ = ("attributes", "decorator", "intro", "outro", "proxies", "tag")

    def __init__(self, tag, attributes=(), proxies=(), intro=None, outro=None, decorator=None):
        self.tag = tag
        self.attributes = attributes
        self.proxies = proxies
        self.intro = intro
        self.outro = outro
        self.decorator = decorator


def camel_case(hyphenated):
    return _HYPHENATED_LETTER.sub(lambda match: match.group(1).upper(), hyphenated)


def _trim_whitespace(items):
    """Strip whitespace at the inner edges of an element's children."""
    if items and items[0].type == StubType.TEXT:
        text = _LEADING_WHITESPACE.sub("", items[0].text)
        if text:
            items[0] = TextStub(text)
        else:
            del items[0]

    if items and items[-1].type == StubType.TEXT:
        text = _TRAILING_WHITESPACE.sub("", items[-1].text)
        if text:
            items[-1] = TextStub(text)
        else:
            del items[-1]

    return items


class ElementStub(Stub):
    __slots__ = (
        "doctype",
        "is_void",
        "items",
        "kind",
        "lower_tag",
        "payload",
        "raw_tag",
        "self_closing",
        "siblings",
    )

    type = StubType.ELEMENT

    def __init__(self, first_token, parser, preserve_whitespace=False):
        self.raw_tag = first_token.name
        self.lower_tag = first_token.name.lower()

        parser.advance()

        if self.lower_tag.startswith(COMPONENT_PREFIX):
            self.kind = ElementKind.COMPONENT
            self.payload = self._component_payload(first_token, parser)
        else:
            self.kind = ElementKind.HTML_ELEMENT
            self.payload = self._element_payload(first_token, parser)
            if self.lower_tag in PRESERVE_WHITESPACE_ELEMENTS:
                preserve_whitespace = True

        self.doctype = first_token.doctype
        self.self_closing = first_token.self_closing
        self.is_void = self.lower_tag in VOID_ELEMENTS
        self.siblings = AUTO_CLOSING_TAGS.get(self.lower_tag)
        self.items = None

        if self.self_closing or self.is_void:
            return

        items = self._collect_items(parser, preserve_whitespace)
        if not preserve_whitespace:
            items = _trim_whitespace(items)
        self.items = tuple(items)

    # ---------------------
    # Building
    # ---------------------

    def _component_payload(self, first_token, parser):
        attributes = tuple(
            StubAttribute(attr.name, parser.fragment(attr.value) if attr.value is not None else None)
            for attr in first_token.attrs
        )
        return ComponentPayload(camel_case(first_token.name[len(COMPONENT_PREFIX) :]), attributes)

    def _element_payload(self, first_token, parser):
        # HTML doesn't care about case, SVG does
        tag = SVG_CASE_SENSITIVE_ELEMENTS.get(self.lower_tag, self.lower_tag)

        if not first_token.attrs:
            return HtmlPayload(tag)

        filtered = filter_attrs(first_token.attrs)

        attrs = filtered.attrs
        if parser.opts.sanitize_event_attributes:
            kept = sanitize_attrs(attrs)
            if len(kept) != len(attrs):
                self._debug(parser, f"dropped {len(attrs) - len(kept)} event attribute(s) on <{self.lower_tag}>")
            attrs = kept

        attributes = tuple(self._attribute(attr, parser) for attr in attrs)
        proxies = tuple(process_directive(proxy, parser.fragment) for proxy in filtered.proxies)

        intro = outro = decorator = None
        if filtered.intro is not None:
            intro = process_directive(filtered.intro, parser.fragment)
        if filtered.outro is not None:
            outro = process_directive(filtered.outro, parser.fragment)
        if filtered.decorator is not None:
            decorator = decorator_value(filtered.decorator)

        return HtmlPayload(tag, attributes, proxies, intro, outro, decorator)

    def _attribute(self, attr, parser):
        lower_name = attr.name.lower()
        name = SVG_CASE_SENSITIVE_ATTRIBUTES.get(lower_name, lower_name)
        value = parser.fragment(attr.value) if attr.value is not None else None
        return StubAttribute(name, value)

    def _collect_items(self, parser, preserve_whitespace):
        items = []

        token = parser.next()
        while token is not None:
            # A section closing mustache also closes this element, e.g.
            # <ul>{{#items}}<li>{{content}}{{/items}}</ul>
            if token.type == StubType.MUSTACHE and token.mustache_type == StubType.CLOSING:
                self._debug(parser, f"<{self.lower_tag}> closed by {{{{/{token.ref}}}}}")
                break

            if token.type == StubType.TAG:
                if token.closing:
                    if token.name.lower() == self.lower_tag:
                        parser.advance()
                    else:
                        self._debug(parser, f"<{self.lower_tag}> implicitly closed by </{token.name}>")
                    break

                if self.siblings and token.name.lower() in self.siblings:
                    self._debug(parser, f"<{self.lower_tag}> implicitly closed by sibling <{token.name}>")
                    break

            item = parser.get_item(preserve_whitespace)
            if item is not None:
                items.append(item)

            token = parser.next()

        return items

    def _debug(self, parser, message):
        if parser.env_debug:
            parser.debug(f"{self.__class__.__name__}: {message}")

    # ---------------------
    # Accessors
    # ---------------------

    @property
    def is_component(self):
        return self.kind is ElementKind.COMPONENT

    @property
    def tag(self):
        if self.kind is ElementKind.COMPONENT:
            return self.payload.name
        return self.payload.tag

    @property
    def attributes(self):
        return self.payload.attributes

    @property
    def proxies(self):
        if self.kind is ElementKind.COMPONENT:
            return ()
        return self.payload.proxies

    @property
    def intro(self):
        if self.kind is ElementKind.COMPONENT:
            return None
        return self.payload.intro

    @property
    def outro(self):
        if self.kind is ElementKind.COMPONENT:
            return None
        return self.payload.outro

    @property
    def decorator(self):
        if self.kind is ElementKind.COMPONENT:
            return None
        return self.payload.decorator

    # ---------------------
    # Serialization
    # ---------------------

    def _build_json(self, no_stringify):
        if self.kind is ElementKind.COMPONENT:
            json = {"t": StubType.COMPONENT, "e": self.payload.name}
        else:
            json = {"t": StubType.ELEMENT, "e": self.payload.tag}

        if self.doctype:
            json["y"] = 1

        if self.attributes:
            attrs = {}
            for attribute in self.attributes:
                if attribute.name in attrs:
                    raise StructuralError("You cannot have multiple attributes with the same name")

                # Empty attributes (e.g. autoplay, checked)
                if attribute.value is None:
                    attrs[attribute.name] = None
                else:
                    attrs[attribute.name] = serialize_structured(attribute.value, no_stringify)
            json["a"] = attrs

        if self.items:
            json["f"] = jsonify_stubs(self.items, no_stringify)

        if self.kind is ElementKind.HTML_ELEMENT:
            payload = self.payload
            if payload.proxies:
                # Later proxies of the same type replace earlier ones
                json["v"] = {proxy.directive_type: jsonify_directive(proxy) for proxy in payload.proxies}
            if payload.intro is not None:
                json["t1"] = jsonify_directive(payload.intro)
            if payload.outro is not None:
                json["t2"] = jsonify_directive(payload.outro)
            if payload.decorator is not None:
                json["o"] = payload.decorator

        return json

    def _build_markup(self):
        # Components can't be stringified
        if self.kind is ElementKind.COMPONENT:
            return UNSTRINGIFIABLE

        payload = self.payload
        tag = payload.tag
        lower_tag = tag.lower()

        # Only plain HTML survives innerHTML insertion; SVG does not
        if lower_tag not in STRINGIFIABLE_ELEMENTS:
            return UNSTRINGIFIABLE

        # Proxies and transitions need a live node
        if payload.proxies or payload.intro is not None or payload.outro is not None:
            return UNSTRINGIFIABLE

        children = stringify_stubs(self.items)
        if children is UNSTRINGIFIABLE:
            return UNSTRINGIFIABLE

        is_void = lower_tag in VOID_ELEMENTS
        parts = ["<", tag]

        for attribute in payload.attributes:
            name = attribute.name

            # Namespaced attribute
            if ":" in name:
                return UNSTRINGIFIABLE

            # Elements with an id are referenced at runtime
            if name in UNSTRINGIFIABLE_ATTRIBUTES:
                return UNSTRINGIFIABLE

            parts.append(" ")
            parts.append(name)

            if attribute.value is not None:
                value = serialize_markup(attribute.value)
                if value is UNSTRINGIFIABLE:
                    return UNSTRINGIFIABLE
                if value:
                    parts.append("=")
                    parts.append(quote_attribute_value(value))

        if self.self_closing and not is_void:
            parts.append("/>")
            return "".join(parts)

        parts.append(">")
        if is_void:
            return "".join(parts)

        parts.append(children)
        parts.append(f"</{tag}>")
        return "".join(parts)

    def __repr__(self):
        count = len(self.items) if self.items is not None else 0
        return f"ElementStub(<{self.raw_tag}>, items={count})"
