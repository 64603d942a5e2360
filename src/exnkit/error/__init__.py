"""
Error values, their structured rendering and propagation utilities.
"""
from .exceptions import (
    ExnError,
    ConfigurationError,
    SexpError,
    SexpParseError,
    StructuredError,
    Finally,
    Reraised
)

from .converters import (
    ConverterRegistry,
    registry,
    register_converter,
    unregister_converter,
    sexp_converter,
    sexp_of_exn,
    render_structured
)

from .outcome import (
    ErrorKind,
    Outcome,
    classify,
    capture
)

from .handler import (
    create_s,
    clear_backtrace,
    raise_without_backtrace,
    reraise,
    reraisef,
    to_string,
    to_string_mach,
    never_elide_backtraces,
    protectx,
    protect,
    protected,
    protect_async,
    handle_uncaught,
    handle_uncaught_and_exit,
    reraise_uncaught,
    reraise_uncaught_async,
    traced,
    does_raise,
    install_excepthook
)

__all__ = [
    # Exceptions
    'ExnError',
    'ConfigurationError',
    'SexpError',
    'SexpParseError',
    'StructuredError',
    'Finally',
    'Reraised',

    # Converters
    'ConverterRegistry',
    'registry',
    'register_converter',
    'unregister_converter',
    'sexp_converter',
    'sexp_of_exn',
    'render_structured',

    # Outcomes
    'ErrorKind',
    'Outcome',
    'classify',
    'capture',

    # Error handling utilities
    'create_s',
    'clear_backtrace',
    'raise_without_backtrace',
    'reraise',
    'reraisef',
    'to_string',
    'to_string_mach',
    'never_elide_backtraces',
    'protectx',
    'protect',
    'protected',
    'protect_async',
    'handle_uncaught',
    'handle_uncaught_and_exit',
    'reraise_uncaught',
    'reraise_uncaught_async',
    'traced',
    'does_raise',
    'install_excepthook'
]
