"""Exceptions raised while compiling a template."""


class StructuralError(ValueError):
    """The template is well-formed lexically but cannot be compiled.

    Raised for duplicate attributes, more than one intro/outro transition on an
    element, and closing sections that do not match their opening section.
    """


class IllegalDirectiveError(StructuralError):
    def __init__(self, message="Illegal directive", directive=None):
        super().__init__(message)
        self.directive = directive


class StrictModeError(SyntaxError):
    """Raised by the tokenizer in strict mode on the first recoverable error."""

    def __init__(self, error):
        self.error = error
        super().__init__(str(error))
