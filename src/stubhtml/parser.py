"""Template compiler entry point."""

from .constants import StubType
from .element import ElementStub
from .errors import StrictModeError, StructuralError
from .stubs import CommentStub, FragmentStub, MustacheStub, PartialStub, SectionStub, TextStub, collapse_whitespace
from .tokenizer import Tokenizer, TokenizerOpts
from .tokens import ParseError

# Builders and serializers recurse once per nesting level
_TOO_DEEP = "Template nesting too deep"


class ParseOpts:
    __slots__ = (
        "collect_errors",
        "debug",
        "no_stringify",
        "preserve_whitespace",
        "sanitize_event_attributes",
        "strict",
    )

    def __init__(
        self,
        preserve_whitespace=False,
        sanitize_event_attributes=False,
        no_stringify=False,
        collect_errors=False,
        strict=False,
        debug=False,
    ):
        self.preserve_whitespace = bool(preserve_whitespace)
        self.sanitize_event_attributes = bool(sanitize_event_attributes)
        self.no_stringify = bool(no_stringify)
        self.collect_errors = bool(collect_errors)
        self.strict = bool(strict)
        self.debug = bool(debug)


class StubParser:
    """Cursor over a token list, shared by every stub builder.

    Builders peek with ``next()``, consume with ``advance()`` and delegate
    child construction back to ``get_item()``.
    """

    __slots__ = ("env_debug", "errors", "opts", "pos", "tokens")

    def __init__(self, tokens, opts=None, errors=None):
        self.tokens = tokens
        self.pos = 0
        self.opts = opts or ParseOpts()
        self.errors = errors if errors is not None else []
        self.env_debug = self.opts.debug

    def next(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self):
        self.pos += 1

    def get_item(self, preserve_whitespace=False):
        """Build the stub starting at the current token.

        Returns None at the end of input and at a section closing mustache,
        which is left unconsumed for the enclosing section.
        """
        token = self.next()

        # Nothing open claims this closing tag
        while token is not None and token.type == StubType.TAG and token.closing:
            self._error("unexpected-end-tag", f"Unexpected end tag </{token.name}>")
            self.advance()
            token = self.next()

        if token is None:
            return None

        token_type = token.type

        if token_type == StubType.TEXT:
            self.advance()
            text = token.value if preserve_whitespace else collapse_whitespace(token.value)
            return TextStub(text)

        if token_type == StubType.COMMENT:
            self.advance()
            return CommentStub(token)

        if token_type in (StubType.MUSTACHE, StubType.TRIPLE):
            mustache_type = token.mustache_type
            if mustache_type in (StubType.SECTION, StubType.INVERTED):
                return SectionStub(token, self, preserve_whitespace)
            if mustache_type == StubType.CLOSING:
                return None
            self.advance()
            if mustache_type == StubType.PARTIAL:
                return PartialStub(token)
            return MustacheStub(token)

        if token_type == StubType.TAG:
            return ElementStub(token, self, preserve_whitespace)

        raise StructuralError(f"Unexpected token {token!r}")

    def build(self, preserve_whitespace=False):
        """Build a fragment from the remaining tokens, which must all be used."""
        fragment = FragmentStub(self, preserve_whitespace)
        leftover = self.next()
        if leftover is not None:
            raise StructuralError(f"Illegal closing section {{{{/{leftover.ref}}}}}")
        return fragment

    def fragment(self, tokens, preserve_whitespace=False):
        """Build a fragment stub from a separate token list (attribute values)."""
        if self.env_debug:
            self.debug(f"fragment: {len(tokens)} token(s)", indent=8)
        return StubParser(tokens, self.opts, self.errors).build(preserve_whitespace)

    def debug(self, message, indent=4):
        if self.env_debug:
            print(" " * indent + str(message))

    def _error(self, code, message=None):
        error = ParseError(code, message=message)
        if self.opts.strict:
            raise StrictModeError(error)
        if self.opts.collect_errors:
            self.errors.append(error)


def _is_blank_text(token):
    return token.type == StubType.TEXT and not token.value.strip()


class Template:
    """A compiled template.

    ``Template(source)`` tokenizes and builds the stub tree immediately;
    ``to_json()`` and ``to_markup()`` lower it on demand.
    """

    __slots__ = ("errors", "opts", "root", "tokens")

    def __init__(
        self,
        source,
        *,
        preserve_whitespace=False,
        sanitize_event_attributes=False,
        no_stringify=False,
        collect_errors=False,
        strict=False,
        debug=False,
        opts=None,
    ):
        self.opts = opts or ParseOpts(
            preserve_whitespace=preserve_whitespace,
            sanitize_event_attributes=sanitize_event_attributes,
            no_stringify=no_stringify,
            collect_errors=collect_errors,
            strict=strict,
            debug=debug,
        )

        tokenizer = Tokenizer(TokenizerOpts(collect_errors=self.opts.collect_errors, strict=self.opts.strict))
        tokens = tokenizer.run(source or "")
        self.errors = list(tokenizer.errors)

        if not self.opts.preserve_whitespace:
            # Leading and trailing whitespace is never significant
            if tokens and _is_blank_text(tokens[0]):
                tokens = tokens[1:]
            if tokens and _is_blank_text(tokens[-1]):
                tokens = tokens[:-1]
        self.tokens = tokens

        parser = StubParser(tokens, self.opts, self.errors)
        if parser.env_debug:
            parser.debug(f"Template: {len(tokens)} token(s)", indent=0)
        try:
            self.root = parser.build(self.opts.preserve_whitespace)
        except RecursionError:
            raise StructuralError(_TOO_DEEP) from None

    def to_json(self):
        try:
            json = self.root.to_json(self.opts.no_stringify)
        except RecursionError:
            raise StructuralError(_TOO_DEEP) from None
        if isinstance(json, str):
            return [json] if json else []
        return json

    def to_markup(self):
        try:
            return self.root.to_markup()
        except RecursionError:
            raise StructuralError(_TOO_DEEP) from None


def parse(source, **options):
    """Compile a template straight to its structured form."""
    return Template(source, **options).to_json()
