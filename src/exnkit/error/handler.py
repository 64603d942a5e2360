"""
Error handling utilities: creation, re-raising, rendering, guaranteed
finalization and top-level handling of exceptions.
"""
import contextlib
import functools
import inspect
import logging
import sys
from typing import Any, Awaitable, Callable, Iterator, NoReturn, Optional, TextIO, TypeVar

from .converters import NO_BACKTRACE_ATTR, render_structured
from .exceptions import Finally, Reraised, StructuredError
from .outcome import capture
from ..sexp import Sexp, to_string_hum, to_string_mach as sexp_to_string_mach, validate_sexp

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def _resolve(config):
    from ..config import resolve_config
    return resolve_config(config)


def create_s(sexp: Sexp) -> StructuredError:
    """
    Create an exception that serves as a message.

    Args:
        sexp: Structured description of the error

    Returns:
        StructuredError whose structured rendering is ``sexp`` itself

    Raises:
        SexpError: If ``sexp`` is not a valid structured description
    """
    return StructuredError(validate_sexp(sexp))


def clear_backtrace(exception: BaseException) -> BaseException:
    """Drop the traceback recorded on ``exception`` and return it."""
    return exception.with_traceback(None)


def raise_without_backtrace(exception: BaseException) -> NoReturn:
    """
    Same as ``raise``, except that no backtrace is kept for rendering.

    The traceback recorded so far is dropped and the exception is marked so
    that structured renderings never attach one, even when backtrace
    elision is disabled. The mark stays on the exception object: raising
    the same object again later still renders it without a backtrace.
    """
    clear_backtrace(exception)
    setattr(exception, NO_BACKTRACE_ATTR, True)
    raise exception


def reraise(exception: BaseException, context: str) -> NoReturn:
    """Raise ``Reraised(context, exception)`` chained from ``exception``."""
    raise Reraised(context, exception) from exception


def reraisef(exception: BaseException, template: str, *args: Any) -> NoReturn:
    """
    Like ``reraise`` with a ``%``-style context.

    Example::

        try:
            ...
        except Exception as exc:
            reraisef(exc, "Foobar is buggy on: %s", name)

    A template that does not match ``args`` raises the formatting error
    itself; it is a programming error, not a failure to wrap.
    """
    context = template % args
    reraise(exception, context)


def to_string(exception: BaseException, config: Any = None) -> str:
    """
    Human-readable, multi-line rendering of an exception.

    Args:
        exception: Exception to render
        config: ExnConfig controlling indentation, width and backtraces

    Returns:
        Rendering including nested causes of composite errors
    """
    config = _resolve(config)
    return to_string_hum(render_structured(exception, config), indent=config.hum_indent, width=config.hum_width)


def to_string_mach(exception: BaseException, config: Any = None) -> str:
    """Machine-format, single-line rendering of an exception."""
    return sexp_to_string_mach(render_structured(exception, _resolve(config)))


def never_elide_backtraces(config: Any = None) -> bool:
    """Whether structured renderings under ``config`` always include backtraces."""
    return _resolve(config).never_elide_backtraces


def protectx(func: Callable[[R], T], resource: R, finally_: Callable[[R], Any]) -> T:
    """
    Execute ``func(resource)`` and afterwards ``finally_(resource)``, whether
    ``func`` raises or not.

    Args:
        func: Guarded function
        resource: Value passed to both callables
        finally_: Cleanup function

    Returns:
        Result of ``func``

    Raises:
        Finally: If ``func`` raises an ``Exception`` and ``finally_`` raises too.
            An interrupt such as ``KeyboardInterrupt`` or ``SystemExit`` from
            ``func`` propagates unchanged, with the cleanup error as its
            ``__context__``.
    """
    try:
        result = func(resource)
    except BaseException as exc:
        try:
            finally_(resource)
        except Exception as finally_exc:
            if not isinstance(exc, Exception):
                raise exc
            raise Finally(exc, finally_exc) from finally_exc
        raise
    finally_(resource)
    return result


def protect(func: Callable[[], T], finally_: Callable[[], Any]) -> T:
    """Execute ``func`` and afterwards ``finally_``, whether ``func`` raises or not."""
    return protectx(lambda _: func(), None, lambda _: finally_())


@contextlib.contextmanager
def protected(finally_: Callable[[], Any]) -> Iterator[None]:
    """
    Context manager form of ``protect``.

    Example::

        with protected(conn.close):
            conn.send(payload)
    """
    try:
        yield
    except BaseException as exc:
        try:
            finally_()
        except Exception as finally_exc:
            if not isinstance(exc, Exception):
                raise exc
            raise Finally(exc, finally_exc) from finally_exc
        raise
    finally_()


async def protect_async(func: Callable[[], Awaitable[T]], finally_: Callable[[], Any]) -> T:
    """
    Async ``protect``: await ``func()`` then run ``finally_``, awaiting it
    when it returns an awaitable.
    """
    async def run_finally():
        outcome = finally_()
        if inspect.isawaitable(outcome):
            await outcome

    try:
        result = await func()
    except BaseException as exc:
        try:
            await run_finally()
        except Exception as finally_exc:
            if not isinstance(exc, Exception):
                raise exc
            raise Finally(exc, finally_exc) from finally_exc
        raise
    await run_finally()
    return result


def _print_uncaught(exception: BaseException, config, stream: Optional[TextIO]) -> None:
    stream = stream if stream is not None else sys.stderr
    rendering = to_string(exception, config)
    logger.debug(f"Uncaught exception: {rendering}")
    body = "\n".join("  " + line for line in rendering.splitlines())
    stream.write(f"{config.uncaught_header}\n\n{body}\n\n")
    stream.flush()


def handle_uncaught(
    func: Callable[[], Any],
    *,
    exit_on_error: bool,
    config: Any = None,
    stream: Optional[TextIO] = None
) -> None:
    """
    Catch an exception escaping ``func`` and print it to stderr.

    Args:
        func: Function to run
        exit_on_error: Exit with ``config.exit_code`` (1 by default) after
            printing; otherwise return None
        config: ExnConfig used for rendering and the exit status
        stream: Output stream, ``sys.stderr`` when None
    """
    config = _resolve(config)
    try:
        func()
    except Exception as exc:
        _print_uncaught(exc, config, stream)
        if exit_on_error:
            sys.exit(config.exit_code)


def handle_uncaught_and_exit(func: Callable[[], T], config: Any = None, stream: Optional[TextIO] = None) -> T:
    """Return ``func()``, unless that raises, in which case print the exception and exit nonzero."""
    config = _resolve(config)
    try:
        return func()
    except Exception as exc:
        _print_uncaught(exc, config, stream)
        sys.exit(config.exit_code)


def reraise_uncaught(label: str, func: Callable[[], T]) -> T:
    """
    Trace exceptions passing through.

    Example::

        def traced_function():
            return reraise_uncaught("rogue_function", rogue_function)

    An exception ``exc`` escaping ``rogue_function`` surfaces as
    ``Reraised("rogue_function", exc)``.
    """
    try:
        return func()
    except Exception as exc:
        raise Reraised(label, exc) from exc


async def reraise_uncaught_async(label: str, func: Callable[[], Awaitable[T]]) -> T:
    """Async ``reraise_uncaught``."""
    try:
        return await func()
    except Exception as exc:
        raise Reraised(label, exc) from exc


def traced(label: Optional[str] = None) -> Callable:
    """
    Decorator wrapping exceptions escaping the function in ``Reraised``.

    Args:
        label: Breadcrumb, defaults to the function's qualified name

    Returns:
        Decorator function
    """
    def decorator(func):
        name = label or func.__qualname__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return reraise_uncaught(name, lambda: func(*args, **kwargs))

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            return await reraise_uncaught_async(name, lambda: func(*args, **kwargs))

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        else:
            return wrapper

    return decorator


def does_raise(func: Callable[[], Any]) -> bool:
    """Return True iff ``func()`` raises an ``Exception``; the exception is discarded."""
    return not capture(func).ok


def install_excepthook(config: Any = None, stream: Optional[TextIO] = None) -> Callable:
    """
    Make ``sys.excepthook`` print uncaught exceptions in the human form.

    ``KeyboardInterrupt`` still goes to the previous hook.

    Returns:
        The previous hook, so callers can restore it
    """
    config = _resolve(config)
    previous = sys.excepthook

    def hook(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt) or exc_value is None:
            previous(exc_type, exc_value, exc_tb)
            return
        _print_uncaught(exc_value.with_traceback(exc_tb), config, stream)

    sys.excepthook = hook
    return previous
