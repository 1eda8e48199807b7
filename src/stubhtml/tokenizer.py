import html
import re

from .constants import RAWTEXT_ELEMENTS, StubType
from .errors import StrictModeError
from .tokens import AttributeToken, CommentToken, MustacheToken, ParseError, TagToken, TextToken

_WHITESPACE = ("\t", "\n", "\f", "\r", " ")
_ATTR_VALUE_UNQUOTED_TERMINATORS = "\t\n\f\r >\"'=<`"
_ATTR_NAME_TERMINATORS = "\t\n\f\r />="

_MUSTACHE_SIGILS = {
    "#": StubType.SECTION,
    "^": StubType.INVERTED,
    "/": StubType.CLOSING,
    ">": StubType.PARTIAL,
    "&": StubType.TRIPLE,
}
_INDEX_REF_PATTERN = re.compile(r"^(.*?)\s*:\s*([A-Za-z_$][\w$]*)$")


class TokenizerOpts:
    __slots__ = ("collect_errors", "delimiters", "strict", "triple_delimiters")

    def __init__(self, collect_errors=False, strict=False, delimiters=None, triple_delimiters=None):
        self.collect_errors = bool(collect_errors)
        self.strict = bool(strict)
        self.delimiters = tuple(delimiters) if delimiters else ("{{", "}}")
        self.triple_delimiters = tuple(triple_delimiters) if triple_delimiters else ("{{{", "}}}")


class Tokenizer:
    DATA = 0
    TAG_OPEN = 1
    END_TAG_OPEN = 2
    TAG_NAME = 3
    BEFORE_ATTRIBUTE_NAME = 4
    ATTRIBUTE_NAME = 5
    AFTER_ATTRIBUTE_NAME = 6
    BEFORE_ATTRIBUTE_VALUE = 7
    ATTRIBUTE_VALUE_DOUBLE = 8
    ATTRIBUTE_VALUE_SINGLE = 9
    ATTRIBUTE_VALUE_UNQUOTED = 10
    SELF_CLOSING_START_TAG = 11
    MARKUP_DECLARATION_OPEN = 12
    COMMENT = 13
    BOGUS_COMMENT = 14
    RAWTEXT = 15

    __slots__ = (
        "buffer",
        "current_attr_name",
        "current_attr_text",
        "current_attr_value",
        "current_tag",
        "current_tag_name",
        "errors",
        "length",
        "opts",
        "pos",
        "rawtext_tag_name",
        "state",
        "text_buffer",
        "tokens",
    )

    def __init__(self, opts=None):
        self.opts = opts or TokenizerOpts()
        self.state = self.DATA
        self.buffer = ""
        self.length = 0
        self.pos = 0
        self.tokens = []
        self.errors = []
        self.text_buffer = []
        self.current_tag = None
        self.current_tag_name = []
        self.current_attr_name = []
        # Attribute value tokens, None until '=' is seen
        self.current_attr_value = None
        self.current_attr_text = []
        self.rawtext_tag_name = None

    def run(self, template):
        self.buffer = template or ""
        self.length = len(self.buffer)
        self.pos = 0
        self.tokens = []
        self.errors = []
        self.text_buffer.clear()
        self.current_tag = None
        self.current_tag_name.clear()
        self.current_attr_name.clear()
        self.current_attr_value = None
        self.current_attr_text.clear()
        self.rawtext_tag_name = None
        self.state = self.DATA

        while True:
            state = self.state
            if state == self.DATA:
                if self._state_data():
                    break
            elif state == self.TAG_OPEN:
                if self._state_tag_open():
                    break
            elif state == self.END_TAG_OPEN:
                if self._state_end_tag_open():
                    break
            elif state == self.TAG_NAME:
                if self._state_tag_name():
                    break
            elif state == self.BEFORE_ATTRIBUTE_NAME:
                if self._state_before_attribute_name():
                    break
            elif state == self.ATTRIBUTE_NAME:
                if self._state_attribute_name():
                    break
            elif state == self.AFTER_ATTRIBUTE_NAME:
                if self._state_after_attribute_name():
                    break
            elif state == self.BEFORE_ATTRIBUTE_VALUE:
                if self._state_before_attribute_value():
                    break
            elif state == self.ATTRIBUTE_VALUE_DOUBLE:
                if self._state_attribute_value_quoted('"'):
                    break
            elif state == self.ATTRIBUTE_VALUE_SINGLE:
                if self._state_attribute_value_quoted("'"):
                    break
            elif state == self.ATTRIBUTE_VALUE_UNQUOTED:
                if self._state_attribute_value_unquoted():
                    break
            elif state == self.SELF_CLOSING_START_TAG:
                if self._state_self_closing_start_tag():
                    break
            elif state == self.MARKUP_DECLARATION_OPEN:
                if self._state_markup_declaration_open():
                    break
            elif state == self.COMMENT:
                if self._state_comment():
                    break
            elif state == self.BOGUS_COMMENT:
                if self._state_bogus_comment():
                    break
            elif state == self.RAWTEXT:
                if self._state_rawtext():
                    break

        self._flush_text()
        return self.tokens

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        buffer = self.buffer
        open_delimiter = self.opts.delimiters[0]
        while True:
            if self.pos >= self.length:
                return True
            c = buffer[self.pos]
            if c == "<":
                self._flush_text()
                self.pos += 1
                self.state = self.TAG_OPEN
                return False
            if buffer.startswith(open_delimiter, self.pos):
                start = self.pos
                matched, token = self._read_mustache()
                if not matched:
                    self.text_buffer.append(buffer[start : self.pos])
                    continue
                self._flush_text()
                if token is not None:
                    self.tokens.append(token)
                continue
            # Plain run up to the next candidate boundary
            end = self._find_any(("<", open_delimiter), self.pos + 1)
            self.text_buffer.append(buffer[self.pos : end])
            self.pos = end

    def _state_tag_open(self):
        c = self._get_char()
        if c is None:
            self.text_buffer.append("<")
            return True
        if c == "!":
            self.state = self.MARKUP_DECLARATION_OPEN
            return False
        if c == "/":
            self.state = self.END_TAG_OPEN
            return False
        if c == "?":
            self._emit_error("unexpected-question-mark")
            self.state = self.BOGUS_COMMENT
            return False
        if c.isascii() and c.isalpha():
            self._start_tag(closing=False)
            self.current_tag_name.append(c)
            self.state = self.TAG_NAME
            return False

        # Not a tag after all, e.g. "a < b"
        self.text_buffer.append("<")
        self.pos -= 1
        self.state = self.DATA
        return False

    def _state_end_tag_open(self):
        c = self._get_char()
        if c is None:
            self.text_buffer.append("</")
            return True
        if c.isascii() and c.isalpha():
            self._start_tag(closing=True)
            self.current_tag_name.append(c)
            self.state = self.TAG_NAME
            return False
        if c == ">":
            self._emit_error("empty-end-tag")
            self.state = self.DATA
            return False

        self._emit_error("invalid-first-character-of-tag-name")
        self.pos -= 1
        self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self):
        while True:
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-tag")
                return True
            if c in _WHITESPACE:
                self.state = self.BEFORE_ATTRIBUTE_NAME
                return False
            if c == "/":
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self.current_tag_name.append(c)

    def _state_before_attribute_name(self):
        while True:
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-tag")
                return True
            if c in _WHITESPACE:
                continue
            if c == "/":
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            if c == "=":
                self._emit_error("unexpected-equals-sign-before-attribute-name")
            self._start_attribute()
            self.current_attr_name.append(c)
            self.state = self.ATTRIBUTE_NAME
            return False

    def _state_attribute_name(self):
        while True:
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-tag")
                return True
            if c in _WHITESPACE:
                self.state = self.AFTER_ATTRIBUTE_NAME
                return False
            if c == "/":
                self._finish_attribute()
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == "=":
                self.current_attr_value = []
                self.state = self.BEFORE_ATTRIBUTE_VALUE
                return False
            if c == ">":
                self._finish_attribute()
                self._emit_current_tag()
                return False
            if c in ('"', "'", "<"):
                self._emit_error("unexpected-character-in-attribute-name")
            self.current_attr_name.append(c)

    def _state_after_attribute_name(self):
        while True:
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-tag")
                return True
            if c in _WHITESPACE:
                continue
            if c == "=":
                self.current_attr_value = []
                self.state = self.BEFORE_ATTRIBUTE_VALUE
                return False
            self._finish_attribute()
            if c == "/":
                self.state = self.SELF_CLOSING_START_TAG
                return False
            if c == ">":
                self._emit_current_tag()
                return False
            self._start_attribute()
            self.current_attr_name.append(c)
            self.state = self.ATTRIBUTE_NAME
            return False

    def _state_before_attribute_value(self):
        while True:
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-tag")
                return True
            if c in _WHITESPACE:
                continue
            if c == '"':
                self.state = self.ATTRIBUTE_VALUE_DOUBLE
                return False
            if c == "'":
                self.state = self.ATTRIBUTE_VALUE_SINGLE
                return False
            if c == ">":
                self._emit_error("missing-attribute-value")
                self._finish_attribute()
                self._emit_current_tag()
                return False
            self.pos -= 1
            self.state = self.ATTRIBUTE_VALUE_UNQUOTED
            return False

    def _state_attribute_value_quoted(self, quote):
        buffer = self.buffer
        open_delimiter = self.opts.delimiters[0]
        while True:
            if self.pos >= self.length:
                self._emit_error("eof-in-attribute-value")
                return True
            if self._consume_attribute_mustache():
                continue
            end = self._find_any((quote, open_delimiter), self.pos)
            if end > self.pos:
                self.current_attr_text.append(buffer[self.pos : end])
                self.pos = end
                continue
            # Closing quote
            self.pos += 1
            self._finish_attribute()
            self.state = self.AFTER_ATTRIBUTE_NAME
            return False

    def _state_attribute_value_unquoted(self):
        while True:
            if self._consume_attribute_mustache():
                continue
            c = self._get_char()
            if c is None:
                self._emit_error("eof-in-attribute-value")
                return True
            if c in _WHITESPACE:
                self._finish_attribute()
                self.state = self.BEFORE_ATTRIBUTE_NAME
                return False
            if c == ">":
                self._finish_attribute()
                self._emit_current_tag()
                return False
            if c in _ATTR_VALUE_UNQUOTED_TERMINATORS:
                self._emit_error("unexpected-character-in-unquoted-attribute-value")
            self.current_attr_text.append(c)

    def _state_self_closing_start_tag(self):
        c = self._get_char()
        if c is None:
            self._emit_error("eof-in-tag")
            return True
        if c == ">":
            self.current_tag.self_closing = True
            self._emit_current_tag()
            return False
        self._emit_error("unexpected-solidus-in-tag")
        self.pos -= 1
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self):
        if self._consume_if("--"):
            self.state = self.COMMENT
            return False
        if self._consume_case_insensitive("DOCTYPE"):
            self._start_tag(closing=False)
            self.current_tag.doctype = True
            self.current_tag_name.extend(self.buffer[self.pos - 7 : self.pos])
            self.state = self.BEFORE_ATTRIBUTE_NAME
            return False
        self._emit_error("incorrectly-opened-comment")
        self.state = self.BOGUS_COMMENT
        return False

    def _state_comment(self):
        end = self.buffer.find("-->", self.pos)
        if end == -1:
            self._emit_error("eof-in-comment")
            self.tokens.append(CommentToken(self.buffer[self.pos :]))
            self.pos = self.length
            return True
        self.tokens.append(CommentToken(self.buffer[self.pos : end]))
        self.pos = end + 3
        self.state = self.DATA
        return False

    def _state_bogus_comment(self):
        end = self.buffer.find(">", self.pos)
        if end == -1:
            self.tokens.append(CommentToken(self.buffer[self.pos :]))
            self.pos = self.length
            return True
        self.tokens.append(CommentToken(self.buffer[self.pos : end]))
        self.pos = end + 1
        self.state = self.DATA
        return False

    def _state_rawtext(self):
        pattern = re.compile(rf"</{re.escape(self.rawtext_tag_name)}[\t\n\f\r />]", re.IGNORECASE)
        match = pattern.search(self.buffer, self.pos)
        end = match.start() if match else self.length
        if end > self.pos:
            self.text_buffer.append(self.buffer[self.pos : end])
        self._flush_text()
        self.pos = end
        self.rawtext_tag_name = None
        self.state = self.DATA
        return not match

    # ---------------------
    # Helpers
    # ---------------------

    def _get_char(self):
        if self.pos >= self.length:
            return None
        c = self.buffer[self.pos]
        self.pos += 1
        return c

    def _find_any(self, needles, start):
        end = self.length
        for needle in needles:
            index = self.buffer.find(needle, start)
            if index != -1 and index < end:
                end = index
        return end

    def _consume_if(self, literal):
        if not self.buffer.startswith(literal, self.pos):
            return False
        self.pos += len(literal)
        return True

    def _consume_case_insensitive(self, literal):
        end = self.pos + len(literal)
        if end > self.length:
            return False
        if self.buffer[self.pos : end].lower() != literal.lower():
            return False
        self.pos = end
        return True

    def _read_mustache(self):
        """Consume the mustache starting at the current position.

        Returns ``(matched, token)``. ``matched`` is False when the mustache is
        unterminated; the opening delimiter is then consumed as plain text.
        ``token`` is None for mustache comments, which produce no token.
        """
        open_delimiter, close_delimiter = self.opts.delimiters
        triple_open, triple_close = self.opts.triple_delimiters
        start = self.pos

        if self.buffer.startswith(triple_open, start):
            end = self.buffer.find(triple_close, start + len(triple_open))
            if end != -1:
                self.pos = end + len(triple_close)
                ref = self.buffer[start + len(triple_open) : end].strip()
                return True, MustacheToken(StubType.TRIPLE, ref)

        end = self.buffer.find(close_delimiter, start + len(open_delimiter))
        if end == -1:
            self._emit_error("unterminated-mustache")
            self.pos = start + len(open_delimiter)
            return False, None

        self.pos = end + len(close_delimiter)
        content = self.buffer[start + len(open_delimiter) : end].strip()
        if content.startswith("!"):
            return True, None
        if not content:
            self._emit_error("empty-mustache")
            return True, None

        mustache_type = _MUSTACHE_SIGILS.get(content[0])
        if mustache_type is None:
            return True, MustacheToken(StubType.INTERPOLATOR, content)

        ref = content[1:].strip()
        index_ref = None
        if mustache_type == StubType.SECTION:
            match = _INDEX_REF_PATTERN.match(ref)
            if match:
                ref, index_ref = match.group(1), match.group(2)
        return True, MustacheToken(mustache_type, ref, index_ref)

    def _consume_attribute_mustache(self):
        if not self.buffer.startswith(self.opts.delimiters[0], self.pos):
            return False
        start = self.pos
        matched, token = self._read_mustache()
        if not matched:
            self.current_attr_text.append(self.buffer[start : self.pos])
            return True
        self._flush_attribute_text()
        if token is not None:
            self.current_attr_value.append(token)
        return True

    def _flush_text(self):
        if not self.text_buffer:
            return
        data = "".join(self.text_buffer)
        self.text_buffer.clear()
        if data:
            self.tokens.append(TextToken(data))

    def _flush_attribute_text(self):
        if not self.current_attr_text:
            return
        data = "".join(self.current_attr_text)
        self.current_attr_text.clear()
        if "&" in data:
            data = html.unescape(data)
        if data:
            self.current_attr_value.append(TextToken(data))

    def _start_tag(self, closing):
        self.current_tag = TagToken("", closing=closing)
        self.current_tag_name.clear()
        self._start_attribute()

    def _start_attribute(self):
        self.current_attr_name.clear()
        self.current_attr_value = None
        self.current_attr_text.clear()

    def _finish_attribute(self):
        if not self.current_attr_name:
            return
        if self.current_attr_value is not None:
            self._flush_attribute_text()
        name = "".join(self.current_attr_name)
        self.current_tag.attrs.append(AttributeToken(name, self.current_attr_value))
        self._start_attribute()

    def _emit_current_tag(self):
        self._finish_attribute()
        tag = self.current_tag
        tag.name = "".join(self.current_tag_name)
        if tag.closing and (tag.attrs or tag.self_closing):
            self._emit_error("end-tag-with-attributes")
            tag.attrs = []
            tag.self_closing = False
        self.tokens.append(tag)
        self.current_tag = None
        self.current_tag_name.clear()
        self.state = self.DATA
        lower_name = tag.name.lower()
        if not tag.closing and not tag.self_closing and lower_name in RAWTEXT_ELEMENTS:
            self.rawtext_tag_name = lower_name
            self.state = self.RAWTEXT

    def _emit_error(self, code, message=None):
        line = self.buffer.count("\n", 0, self.pos) + 1
        column = self.pos - (self.buffer.rfind("\n", 0, self.pos) + 1)
        error = ParseError(code, line=line, column=column, message=message)
        if self.opts.strict:
            raise StrictModeError(error)
        if self.opts.collect_errors:
            self.errors.append(error)
