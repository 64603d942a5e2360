"""
Centralized exception definitions for exnkit.
"""
from typing import Any, Dict, Optional


class _RenderedError(Exception):
    """Exception whose string form is its human-readable rendering."""

    def __str__(self):
        from .converters import sexp_of_exn
        from ..sexp import to_string_hum
        return to_string_hum(sexp_of_exn(self))


class ExnError(Exception):
    """Base class for all exnkit errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ExnError):
    """Error in configuration."""
    pass


class SexpError(ExnError, ValueError):
    """Value is not a valid structured description."""
    pass


class SexpParseError(SexpError):
    """Text could not be parsed as a structured description."""

    def __init__(self, message: str, position: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"position": position, **(details or {})})
        self.position = position


class StructuredError(_RenderedError):
    """
    Error that serves purely as a message carrying a structured description.

    The structured rendering of a ``StructuredError`` is the object it was
    created from, so ``sexp_of_exn(StructuredError(s)) is s``.
    """

    def __init__(self, sexp: Any):
        super().__init__(sexp)
        self.sexp = sexp


class Finally(_RenderedError):
    """
    Raised when finalization after an exception failed too.

    ``primary`` is the exception raised by the guarded function and
    ``secondary`` the one raised by the finalizer.
    """

    def __init__(self, primary: BaseException, secondary: BaseException):
        super().__init__(primary, secondary)
        self.primary = primary
        self.secondary = secondary


class Reraised(_RenderedError):
    """An exception re-raised with a human-readable context label."""

    def __init__(self, context: str, original: BaseException):
        super().__init__(context, original)
        self.context = context
        self.original = original
