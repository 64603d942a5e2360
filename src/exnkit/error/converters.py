"""
Conversion of exceptions to structured descriptions.

A registry maps exception classes to converters. Lookup tries the exact
type first, then walks the MRO. Exceptions without a converter fall back
to an atomic description built from ``repr``. Conversion never raises.
"""
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Type

from .exceptions import ExnError, Finally, Reraised, StructuredError
from ..sexp import Sexp, sexp_of_pairs, validate_sexp

logger = logging.getLogger(__name__)

Converter = Callable[[BaseException], Sexp]

# Set on exceptions raised through ``raise_without_backtrace``.
NO_BACKTRACE_ATTR = "__exnkit_no_backtrace__"


class ConverterRegistry:
    """Registry of exception-to-structure converters."""

    def __init__(self):
        self._converters: Dict[Type[BaseException], Converter] = {}

    def register(self, exception_class: Type[BaseException], converter: Converter) -> None:
        """
        Register a converter for an exception class and its subclasses.

        Args:
            exception_class: Exception class to register
            converter: Callable turning an instance into a structured description
        """
        self._converters[exception_class] = converter
        logger.debug(f"Registered converter for {exception_class.__name__}")

    def unregister(self, exception_class: Type[BaseException]) -> None:
        """Remove the converter registered for exactly ``exception_class``."""
        self._converters.pop(exception_class, None)

    def find(self, exception: BaseException) -> Optional[Converter]:
        """
        Get the converter for an exception.

        Args:
            exception: Exception to convert

        Returns:
            Converter or None when only the fallback applies
        """
        # Look for exact match
        converter = self._converters.get(type(exception))
        if converter is not None:
            return converter

        # Look for parent class matches, nearest first
        for exc_class in type(exception).__mro__[1:]:
            converter = self._converters.get(exc_class)
            if converter is not None:
                return converter
        return None

    def __contains__(self, exception_class: Type[BaseException]) -> bool:
        return exception_class in self._converters

    def clear(self) -> None:
        """Clear all registered converters, built-ins included."""
        self._converters.clear()


def fallback_sexp(exception: BaseException) -> Sexp:
    """Atomic description of an exception that has no usable converter."""
    try:
        return repr(exception)
    except Exception:
        return f"<{type(exception).__name__}>"


def sexp_of_exn(exception: BaseException) -> Sexp:
    """
    Convert an exception to a structured description without any backtrace.

    Args:
        exception: Exception to convert

    Returns:
        Structured description; the fallback atom if conversion fails
    """
    converter = registry.find(exception)
    if converter is None:
        return fallback_sexp(exception)
    try:
        return validate_sexp(converter(exception))
    except Exception as e:
        logger.debug(f"Converter for {type(exception).__name__} failed: {e!r}")
        return fallback_sexp(exception)


def backtrace_frames(exception: BaseException, limit: Optional[int] = None) -> List[str]:
    """Describe the recorded traceback of ``exception``, innermost frames last."""
    if getattr(exception, NO_BACKTRACE_ATTR, False) or exception.__traceback__ is None:
        return []
    try:
        frames = traceback.extract_tb(exception.__traceback__)
    except Exception:
        return []
    if limit is not None:
        frames = frames[-limit:]
    return [f"{frame.filename}:{frame.lineno} in {frame.name}" for frame in frames]


def render_structured(exception: BaseException, config: Any = None) -> Sexp:
    """
    Convert an exception, attaching its backtrace when elision is disabled.

    Args:
        exception: Exception to convert
        config: ``ExnConfig``; the default configuration when None

    Returns:
        ``sexp_of_exn(exception)`` or ``(<sexp> (backtrace frame...))``
    """
    from ..config import resolve_config

    sexp = sexp_of_exn(exception)
    config = resolve_config(config)
    if not config.never_elide_backtraces:
        return sexp
    frames = backtrace_frames(exception, config.backtrace_limit)
    if not frames:
        return sexp
    return [sexp, ["backtrace", *frames]]


def _sexp_of_structured(exception: StructuredError) -> Sexp:
    return exception.sexp


def _sexp_of_finally(exception: Finally) -> Sexp:
    return ["Finally", sexp_of_exn(exception.primary), sexp_of_exn(exception.secondary)]


def _sexp_of_reraised(exception: Reraised) -> Sexp:
    return ["Reraised", str(exception.context), sexp_of_exn(exception.original)]


def _sexp_of_exn_error(exception: ExnError) -> Sexp:
    return [type(exception).__name__, exception.message, *sexp_of_pairs(exception.details.items())]


def register_builtin_converters(target: ConverterRegistry) -> None:
    """Register the converters for exnkit's own exception types."""
    target.register(StructuredError, _sexp_of_structured)
    target.register(Finally, _sexp_of_finally)
    target.register(Reraised, _sexp_of_reraised)
    target.register(ExnError, _sexp_of_exn_error)


def sexp_converter(exception_class: Type[BaseException]) -> Callable[[Converter], Converter]:
    """
    Decorator registering the decorated function as converter for ``exception_class``.

    Example::

        @sexp_converter(HTTPError)
        def _sexp_of_http_error(exc):
            return ["HTTPError", str(exc.status), exc.url]
    """
    def decorator(func: Converter) -> Converter:
        registry.register(exception_class, func)
        return func
    return decorator


# Global converter registry
registry = ConverterRegistry()
register_builtin_converters(registry)

# Aliases for convenience
register_converter = registry.register
unregister_converter = registry.unregister
