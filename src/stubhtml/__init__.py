from .constants import StubType
from .directives import Directive
from .element import ElementKind, ElementStub
from .errors import IllegalDirectiveError, StrictModeError, StructuralError
from .parser import ParseOpts, StubParser, Template, parse
from .serialize import UNSTRINGIFIABLE, StubCache, serialize_markup, serialize_structured
from .tokenizer import Tokenizer, TokenizerOpts
from .tokens import ParseError

__all__ = [
    "UNSTRINGIFIABLE",
    "Directive",
    "ElementKind",
    "ElementStub",
    "IllegalDirectiveError",
    "ParseError",
    "ParseOpts",
    "StrictModeError",
    "StructuralError",
    "StubCache",
    "StubParser",
    "StubType",
    "Template",
    "Tokenizer",
    "TokenizerOpts",
    "parse",
    "serialize_markup",
    "serialize_structured",
]
