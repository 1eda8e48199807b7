"""Serialization of built stubs.

Two lowering paths exist for every stub:

- the structured form (``serialize_structured``), a compact keyed structure
  interpreted by a runtime renderer, and
- the markup form (``serialize_markup``), literal markup usable as an
  insertion shortcut, or ``UNSTRINGIFIABLE`` when the subtree carries dynamic
  behaviour.

Both are memoized in a cache keyed by stub identity. Stubs are sealed once
built, so a cached form never goes stale.
"""

from __future__ import annotations

import re
import weakref
from typing import Any

_ATTR_NEEDS_QUOTES = re.compile(r"[\s\"'=<>`]")


class _Unstringifiable:
    __slots__ = ()

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSTRINGIFIABLE"

    def __reduce__(self):
        return (_Unstringifiable, ())


UNSTRINGIFIABLE = _Unstringifiable()


class StubCache:
    """Memo table for serialized forms, keyed weakly by stub identity."""

    __slots__ = ("_json", "_markup")

    def __init__(self) -> None:
        self._json: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
        self._markup: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    def structured(self, stub: Any, no_stringify: bool) -> Any:
        forms = self._json.get(stub)
        if forms is None:
            forms = self._json[stub] = {}
        if no_stringify not in forms:
            forms[no_stringify] = stub._build_json(no_stringify)
        return forms[no_stringify]

    def markup(self, stub: Any) -> str | _Unstringifiable:
        try:
            return self._markup[stub]
        except KeyError:
            result = self._markup[stub] = stub._build_markup()
            return result

    def clear(self) -> None:
        self._json.clear()
        self._markup.clear()


_cache = StubCache()


def serialize_structured(stub: Any, no_stringify: bool = False) -> Any:
    """Return the structured form of a sealed stub (memoized per mode)."""
    return _cache.structured(stub, bool(no_stringify))


def serialize_markup(stub: Any) -> str | _Unstringifiable:
    """Return literal markup for a sealed stub, or ``UNSTRINGIFIABLE``."""
    return _cache.markup(stub)


def stringify_stubs(items) -> str | _Unstringifiable:
    if not items:
        return ""
    parts = []
    for item in items:
        item_str = serialize_markup(item)
        if item_str is UNSTRINGIFIABLE:
            return UNSTRINGIFIABLE
        parts.append(item_str)
    return "".join(parts)


def jsonify_stubs(items, no_stringify: bool = False) -> str | list[Any]:
    """Flatten a child sequence.

    Unless ``no_stringify`` is set, a fully stringifiable sequence collapses to
    one markup string.
    """
    if not no_stringify:
        markup = stringify_stubs(items)
        if markup is not UNSTRINGIFIABLE:
            return markup
    return [serialize_structured(item, no_stringify) for item in items]


def quote_attribute_value(value: str) -> str:
    # Attribute text is entity-decoded when tokenized
    value = value.replace("&", "&amp;")
    if _ATTR_NEEDS_QUOTES.search(value):
        return '"' + value.replace('"', "&quot;") + '"'
    return value
