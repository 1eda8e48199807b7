"""Attribute classification and directive parsing.

An element's raw attributes are split into plain attributes and behavioural
directives: event proxies (``proxy-*`` / ``on-*``), intro/outro transitions
and a decorator. Directive values are then split into a name and optional
arguments at the first colon found in literal text, e.g.::

    proxy-click="select:{{id}}"   ->  type "click", name "select", dynamic args
    proxy-foo="bar:[1,2,3]"       ->  type "foo", name "bar", args [1, 2, 3]
"""

import json
import re

from .constants import StubType
from .errors import IllegalDirectiveError, StructuralError
from .serialize import serialize_structured
from .tokens import AttributeToken, TextToken

_EVENT_ATTRIBUTE_PATTERN = re.compile(r"^on[a-zA-Z]")


class FilteredAttrs:
    __slots__ = ("attrs", "decorator", "intro", "outro", "proxies")

    def __init__(self):
        self.attrs = []
        self.proxies = []
        self.intro = None
        self.outro = None
        self.decorator = None


class Directive:
    """A parsed directive.

    ``name`` is a plain string when it is one run of literal text, otherwise a
    dynamic fragment. ``args`` holds a static argument (JSON-decoded when
    possible) and is only meaningful when ``has_args`` is set; dynamic
    arguments go to ``dynamic_args`` instead.
    """

    __slots__ = ("args", "directive_type", "dynamic_args", "has_args", "name")

    def __init__(self, directive_type, name, args=None, has_args=False, dynamic_args=None):
        self.directive_type = directive_type
        self.name = name
        self.args = args
        self.has_args = bool(has_args)
        self.dynamic_args = dynamic_args

    def __repr__(self):
        parts = [f"{self.directive_type!r}", f"name={self.name!r}"]
        if self.has_args:
            parts.append(f"args={self.args!r}")
        if self.dynamic_args is not None:
            parts.append(f"dynamic_args={self.dynamic_args!r}")
        return f"Directive({', '.join(parts)})"


def filter_attrs(items):
    """Partition raw attribute tokens into attributes and directives.

    Raises StructuralError when an element carries more than one intro or
    outro transition. Input tokens are never modified.
    """
    filtered = FilteredAttrs()

    for item in items:
        name = item.name

        # Transition?
        if name == "intro":
            if filtered.intro is not None:
                raise StructuralError("An element can only have one intro transition")
            filtered.intro = item
        elif name == "outro":
            if filtered.outro is not None:
                raise StructuralError("An element can only have one outro transition")
            filtered.outro = item
        elif name == "intro-outro":
            if filtered.intro is not None or filtered.outro is not None:
                raise StructuralError("An element can only have one intro and one outro transition")
            filtered.intro = item
            filtered.outro = item.clone()

        # Proxy?
        elif name.startswith("proxy-"):
            filtered.proxies.append(AttributeToken(name[6:], item.value))
        elif name.startswith("on-"):
            filtered.proxies.append(AttributeToken(name[3:], item.value))

        # Decorator? No duplicate check, the last one wins
        elif name == "decorator":
            filtered.decorator = item

        else:
            filtered.attrs.append(item)

    return filtered


def sanitize_attrs(attrs):
    """Drop inline event handler attributes such as onclick."""
    return [attr for attr in attrs if not _EVENT_ATTRIBUTE_PATTERN.match(attr.name)]


def _reject_constant(value):
    raise ValueError(f"Invalid JSON constant {value!r}")


def _parse_args(value):
    try:
        return json.loads(value, parse_constant=_reject_constant)
    except ValueError:
        return value


def process_directive(directive, build_fragment=None):
    """Parse a directive attribute token into a Directive.

    ``build_fragment`` turns a token list into a fragment stub for dynamic
    names and arguments; by default the raw token list is kept, which is
    enough for inspection but cannot be passed to ``jsonify_directive``.
    """
    if not directive.name or not directive.value:
        raise IllegalDirectiveError(directive=directive)

    if build_fragment is None:
        build_fragment = list

    tokens = directive.value
    name_tokens = []
    arg_tokens = []

    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token.type != StubType.TEXT:
            # Directive names may themselves be dynamic
            name_tokens.append(token)
            continue

        colon_index = token.value.find(":")
        if colon_index == -1:
            name_tokens.append(token)
            continue

        if colon_index:
            name_tokens.append(TextToken(token.value[:colon_index]))

        # Anything after the colon starts the argument list
        if len(token.value) > colon_index + 1:
            arg_tokens.append(TextToken(token.value[colon_index + 1 :]))
        break

    arg_tokens.extend(tokens[index:])

    if len(name_tokens) == 1 and name_tokens[0].type == StubType.TEXT:
        name = name_tokens[0].value
    else:
        name = build_fragment(name_tokens)

    processed = Directive(directive.name, name)

    if arg_tokens:
        if len(arg_tokens) == 1 and arg_tokens[0].type == StubType.TEXT:
            processed.args = _parse_args(arg_tokens[0].value)
            processed.has_args = True
        else:
            processed.dynamic_args = build_fragment(arg_tokens)

    return processed


def decorator_value(directive):
    """The decorator name: the literal text of its first value token.

    A decorator whose value starts with a mustache has no static name and is
    dropped (None).
    """
    if not directive.value:
        raise IllegalDirectiveError("Illegal decorator", directive=directive)
    if directive.value[0].type != StubType.TEXT:
        return None
    return directive.value[0].value


def _jsonify_fragment(fragment):
    if isinstance(fragment, (list, tuple)):
        raise TypeError("Dynamic directive parts must be fragment stubs, pass build_fragment to process_directive")
    return serialize_structured(fragment)


def jsonify_directive(directive):
    if isinstance(directive.name, str):
        if not directive.has_args and directive.dynamic_args is None:
            return directive.name
        name = directive.name
    else:
        name = _jsonify_fragment(directive.name)

    result = {"n": name}

    # Any present argument counts, falsy JSON values such as 0 or null included
    if directive.has_args:
        result["a"] = directive.args
        return result

    if directive.dynamic_args is not None:
        result["d"] = _jsonify_fragment(directive.dynamic_args)

    return result
