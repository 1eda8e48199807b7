"""Stub types for everything that is not an element.

A stub is the sealed, serializable representation of one parsed construct.
Element stubs live in :mod:`stubhtml.element`; this module holds text,
mustache, section, partial and comment stubs plus the fragment container
used for attribute values and directive arguments.
"""

import re

from .constants import StubType
from .errors import StructuralError
from .serialize import UNSTRINGIFIABLE, jsonify_stubs, serialize_markup, serialize_structured, stringify_stubs

_WHITESPACE_RUN = re.compile(r"\s+")


def collapse_whitespace(text):
    return _WHITESPACE_RUN.sub(" ", text)


class Stub:
    __slots__ = ("__weakref__",)

    type = None

    def to_json(self, no_stringify=False):
        return serialize_structured(self, no_stringify)

    def to_markup(self):
        return serialize_markup(self)

    def _build_json(self, no_stringify):
        raise NotImplementedError

    def _build_markup(self):
        return UNSTRINGIFIABLE


class TextStub(Stub):
    __slots__ = ("text",)

    type = StubType.TEXT

    def __init__(self, text):
        self.text = text

    def _build_json(self, no_stringify):
        return self.text

    def _build_markup(self):
        return self.text

    def __repr__(self):
        return f"TextStub({self.text!r})"


class MustacheStub(Stub):
    """Interpolator ({{ref}}) or triple ({{{ref}}})."""

    __slots__ = ("mustache_type", "ref")

    def __init__(self, token):
        self.mustache_type = StubType(token.mustache_type)
        self.ref = token.ref

    @property
    def type(self):
        return self.mustache_type

    def _build_json(self, no_stringify):
        return {"t": self.mustache_type, "r": self.ref}

    def __repr__(self):
        return f"MustacheStub({self.ref!r})"


class PartialStub(Stub):
    __slots__ = ("ref",)

    type = StubType.PARTIAL

    def __init__(self, token):
        self.ref = token.ref

    def _build_json(self, no_stringify):
        return {"t": StubType.PARTIAL, "r": self.ref}


class CommentStub(Stub):
    __slots__ = ("text",)

    type = StubType.COMMENT

    def __init__(self, token):
        self.text = token.value

    def _build_json(self, no_stringify):
        return {"t": StubType.COMMENT, "f": self.text}

    def _build_markup(self):
        return f"<!--{self.text}-->"


class SectionStub(Stub):
    """A section ({{#ref}}) or inverted section ({{^ref}}) and its content.

    Children are collected until the matching closing mustache, which is
    consumed. A closing mustache for a different reference is an error.
    """

    __slots__ = ("index_ref", "inverted", "items", "ref")

    type = StubType.SECTION

    def __init__(self, first_token, parser, preserve_whitespace=False):
        self.ref = first_token.ref
        self.index_ref = first_token.index_ref
        self.inverted = first_token.mustache_type == StubType.INVERTED

        parser.advance()

        items = []
        token = parser.next()
        while token is not None:
            if token.type == StubType.MUSTACHE and token.mustache_type == StubType.CLOSING:
                if token.ref != self.ref:
                    msg = f"Illegal closing section {{{{/{token.ref}}}}}, expected {{{{/{self.ref}}}}}"
                    raise StructuralError(msg)
                parser.advance()
                break
            item = parser.get_item(preserve_whitespace)
            if item is not None:
                items.append(item)
            token = parser.next()
        self.items = tuple(items)

    def _build_json(self, no_stringify):
        json = {"t": StubType.SECTION, "r": self.ref}
        if self.items:
            json["f"] = jsonify_stubs(self.items, no_stringify)
        if self.inverted:
            json["n"] = 1
        if self.index_ref:
            json["i"] = self.index_ref
        return json

    def __repr__(self):
        return f"SectionStub({self.ref!r}, items={len(self.items)})"


class FragmentStub(Stub):
    """An ordered run of stubs, e.g. the value of one attribute."""

    __slots__ = ("items",)

    def __init__(self, parser, preserve_whitespace=False):
        items = []
        while parser.next() is not None:
            item = parser.get_item(preserve_whitespace)
            if item is None:
                break
            items.append(item)
        self.items = tuple(items)

    def _build_json(self, no_stringify):
        return jsonify_stubs(self.items, no_stringify)

    def _build_markup(self):
        return stringify_stubs(self.items)

    def __repr__(self):
        return f"FragmentStub({list(self.items)!r})"
