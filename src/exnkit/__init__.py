"""
exnkit: structured, serializable error propagation with finalization guarantees.
"""
import logging

# error must be imported before sexp, which depends on its exceptions
from .error import (
    ExnError,
    ConfigurationError,
    SexpError,
    SexpParseError,
    StructuredError,
    Finally,
    Reraised,
    ErrorKind,
    Outcome,
    capture,
    classify,
    register_converter,
    sexp_converter,
    sexp_of_exn,
    render_structured,
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
    install_excepthook,
)
from .config import ExnConfig, load_config

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ExnError",
    "ConfigurationError",
    "SexpError",
    "SexpParseError",
    "StructuredError",
    "Finally",
    "Reraised",
    "ErrorKind",
    "Outcome",
    "capture",
    "classify",
    "register_converter",
    "sexp_converter",
    "sexp_of_exn",
    "render_structured",
    "create_s",
    "clear_backtrace",
    "raise_without_backtrace",
    "reraise",
    "reraisef",
    "to_string",
    "to_string_mach",
    "never_elide_backtraces",
    "protectx",
    "protect",
    "protected",
    "protect_async",
    "handle_uncaught",
    "handle_uncaught_and_exit",
    "reraise_uncaught",
    "reraise_uncaught_async",
    "traced",
    "does_raise",
    "install_excepthook",
    "ExnConfig",
    "load_config",
    "__version__",
]
