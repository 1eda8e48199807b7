from .constants import StubType


class TextToken:
    __slots__ = ("value",)

    type = StubType.TEXT

    def __init__(self, value):
        self.value = value

    def clone(self):
        return TextToken(self.value)

    def __repr__(self):
        return f"<text {self.value!r}>"


class MustacheToken:
    __slots__ = ("index_ref", "mustache_type", "ref")

    def __init__(self, mustache_type, ref, index_ref=None):
        self.mustache_type = mustache_type
        self.ref = ref
        self.index_ref = index_ref

    @property
    def type(self):
        if self.mustache_type == StubType.TRIPLE:
            return StubType.TRIPLE
        return StubType.MUSTACHE

    def clone(self):
        return MustacheToken(self.mustache_type, self.ref, self.index_ref)

    def __repr__(self):
        index = f":{self.index_ref}" if self.index_ref else ""
        return f"<mustache:{StubType(self.mustache_type).name.lower()} {self.ref}{index}>"


class AttributeToken:
    __slots__ = ("name", "value")

    def __init__(self, name, value=None):
        self.name = name
        # None marks a boolean attribute, otherwise a list of text/mustache tokens
        self.value = value

    def clone(self):
        return AttributeToken(self.name, clone_tokens(self.value))

    def __repr__(self):
        if self.value is None:
            return f"<attr {self.name}>"
        return f"<attr {self.name}={self.value!r}>"


class TagToken:
    __slots__ = ("attrs", "closing", "doctype", "name", "self_closing")

    type = StubType.TAG

    def __init__(self, name, attrs=None, closing=False, self_closing=False, doctype=False):
        self.name = name
        self.attrs = attrs if attrs is not None else []
        self.closing = bool(closing)
        self.self_closing = bool(self_closing)
        self.doctype = bool(doctype)

    def clone(self):
        return TagToken(
            self.name,
            [attr.clone() for attr in self.attrs],
            closing=self.closing,
            self_closing=self.self_closing,
            doctype=self.doctype,
        )

    def __repr__(self):
        attrs = " ".join(repr(attr) for attr in self.attrs)
        closing = " /" if self.self_closing else ""
        kind_str = "end" if self.closing else "start"
        return f"<{kind_str}:{self.name}{closing} {attrs}>"


class CommentToken:
    __slots__ = ("value",)

    type = StubType.COMMENT

    def __init__(self, value):
        self.value = value

    def clone(self):
        return CommentToken(self.value)

    def __repr__(self):
        return f"<comment {self.value!r}>"


def clone_tokens(tokens):
    """Deep copy a token list; None passes through."""
    if tokens is None:
        return None
    return [token.clone() for token in tokens]


class ParseError:
    """Represents a recoverable template error with location information."""

    __slots__ = ("code", "column", "line", "message")

    def __init__(self, code, line=None, column=None, message=None):
        self.code = code
        self.line = line
        self.column = column
        self.message = message or code

    def __repr__(self):
        if self.line is not None and self.column is not None:
            return f"ParseError({self.code!r}, line={self.line}, column={self.column})"
        return f"ParseError({self.code!r})"

    def __str__(self):
        if self.line is not None and self.column is not None:
            if self.message != self.code:
                return f"({self.line},{self.column}): {self.code} - {self.message}"
            return f"({self.line},{self.column}): {self.code}"
        if self.message != self.code:
            return f"{self.code} - {self.message}"
        return self.code

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return self.code == other.code and self.line == other.line and self.column == other.column

    __hash__ = None  # Unhashable since we define __eq__
