"""
Explicit success/failure values.

``capture`` turns a call into an ``Outcome`` instead of letting an
exception propagate, and ``classify`` tags an error with its kind.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

from .exceptions import Finally, Reraised, StructuredError

T = TypeVar('T')


class ErrorKind(str, Enum):
    """Kinds of error values."""
    LEAF = "leaf"
    STRUCTURED = "structured"
    FINALLY = "finally"
    RERAISED = "reraised"


def classify(exception: BaseException) -> ErrorKind:
    """
    Classify an exception.

    Args:
        exception: Exception to classify

    Returns:
        ErrorKind of the exception
    """
    if isinstance(exception, StructuredError):
        return ErrorKind.STRUCTURED
    elif isinstance(exception, Finally):
        return ErrorKind.FINALLY
    elif isinstance(exception, Reraised):
        return ErrorKind.RERAISED
    else:
        return ErrorKind.LEAF


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a call: either a value or the exception it raised."""
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        """Kind of the error, None on success."""
        return None if self.error is None else classify(self.error)

    def unwrap(self) -> T:
        """Return the value or raise the captured exception."""
        if self.error is not None:
            raise self.error
        return self.value

    def render(self, config: Any = None) -> Optional[str]:
        """Human-readable rendering of the error, None on success."""
        if self.error is None:
            return None
        from .handler import to_string
        return to_string(self.error, config)


def capture(func: Callable[..., T], *args: Any, **kwargs: Any) -> Outcome[T]:
    """
    Call ``func`` and capture its result or the ``Exception`` it raised.

    Args:
        func: Function to execute
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        Outcome holding the result or the exception
    """
    try:
        return Outcome(value=func(*args, **kwargs))
    except Exception as e:
        return Outcome(error=e)
