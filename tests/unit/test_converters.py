import pytest

from exnkit import create_s, raise_without_backtrace
from exnkit.error.converters import (
    ConverterRegistry,
    backtrace_frames,
    registry,
    render_structured,
    sexp_converter,
    sexp_of_exn,
)
from exnkit.error.exceptions import ConfigurationError, Finally, Reraised, SexpError


class PaymentError(Exception):
    """Test"""

    def __init__(self, amount):
        super().__init__(amount)
        self.amount = amount


class CardDeclined(PaymentError):
    """Test"""


class BadRepr(Exception):
    """Test"""

    def __repr__(self):
        raise RuntimeError("no repr")


@pytest.fixture
def clean_registry():
    """Remove converters registered by a test."""
    registered = []
    yield registered
    for exc_class in registered:
        registry.unregister(exc_class)


def test_structured_round_trip_is_identity(config):
    """Test that a structured error renders back to the object it came from."""
    description = ["error", ["code", "42"], ("detail", ["nested", ""])]
    exn = create_s(description)
    assert sexp_of_exn(exn) is description
    assert render_structured(exn, config) is description


def test_create_s_rejects_invalid_description():
    """Test that create_s validates its input."""
    with pytest.raises(SexpError):
        create_s(["error", 42])


def test_finally_keeps_both_errors_in_order():
    """Test the structured form of Finally."""
    exn = Finally(create_s("first"), ValueError("second"))
    assert sexp_of_exn(exn) == ["Finally", "first", "ValueError('second')"]


def test_reraised_keeps_context_and_original():
    """Test the structured form of Reraised."""
    exn = Reraised("loading config", create_s(["missing", "file"]))
    assert sexp_of_exn(exn) == ["Reraised", "loading config", ["missing", "file"]]


def test_exn_error_renders_details():
    """Test the structured form of the library's own errors."""
    exn = ConfigurationError("bad value", details={"path": "exnkit.yaml", "line": 3})
    assert sexp_of_exn(exn) == ["ConfigurationError", "bad value", ["path", "exnkit.yaml"], ["line", "3"]]


def test_leaf_error_falls_back_to_repr():
    """Test the atomic fallback for unregistered exceptions."""
    assert sexp_of_exn(KeyError("k")) == "KeyError('k')"


def test_fallback_survives_failing_repr():
    """Test that a failing repr still yields an atom."""
    assert sexp_of_exn(BadRepr()) == "<BadRepr>"


def test_failing_converter_falls_back(clean_registry):
    """Test that rendering never raises when a converter does."""
    def broken(exc):
        raise RuntimeError("converter bug")

    registry.register(PaymentError, broken)
    clean_registry.append(PaymentError)
    assert sexp_of_exn(PaymentError(10)) == "PaymentError(10)"


def test_invalid_converter_output_falls_back(clean_registry):
    """Test that a converter returning a non-structured value is ignored."""
    registry.register(PaymentError, lambda exc: ["PaymentError", exc.amount])
    clean_registry.append(PaymentError)
    assert sexp_of_exn(PaymentError(10)) == "PaymentError(10)"


def test_converter_lookup_follows_mro(clean_registry):
    """Test exact matches first, then the nearest parent class."""
    @sexp_converter(PaymentError)
    def sexp_of_payment(exc):
        return ["PaymentError", str(exc.amount)]

    clean_registry.append(PaymentError)
    assert sexp_of_exn(CardDeclined(5)) == ["PaymentError", "5"]

    registry.register(CardDeclined, lambda exc: ["CardDeclined", str(exc.amount)])
    clean_registry.append(CardDeclined)
    assert sexp_of_exn(CardDeclined(5)) == ["CardDeclined", "5"]


def test_separate_registry():
    """Test a standalone registry."""
    local = ConverterRegistry()
    local.register(PaymentError, lambda exc: "payment")
    assert PaymentError in local
    assert local.find(CardDeclined(1)) is not None
    local.clear()
    assert local.find(CardDeclined(1)) is None


def test_backtrace_is_elided_by_default(config):
    """Test that the default configuration omits backtraces."""
    try:
        raise create_s("boom")
    except Exception as e:
        assert render_structured(e, config) == "boom"


def test_backtrace_attached_when_never_elided(verbose_config):
    """Test that backtraces are attached when elision is disabled."""
    try:
        raise create_s("boom")
    except Exception as e:
        rendered = render_structured(e, verbose_config)

    assert rendered[0] == "boom"
    assert rendered[1][0] == "backtrace"
    assert any("test_backtrace_attached_when_never_elided" in frame for frame in rendered[1][1:])


def test_backtrace_limit():
    """Test that only the innermost frames are kept."""
    def inner():
        raise ValueError("deep")

    def outer():
        inner()

    try:
        outer()
    except ValueError as e:
        frames = backtrace_frames(e, limit=1)

    assert len(frames) == 1
    assert frames[0].endswith("in inner")


def test_raise_without_backtrace_is_never_rendered_with_one(verbose_config):
    """Test that errors raised without backtrace stay without one."""
    exn = create_s("quiet")
    try:
        raise_without_backtrace(exn)
    except Exception as e:
        assert render_structured(e, verbose_config) == "quiet"


def test_str_of_composite_errors():
    """Test that composite errors print their rendering."""
    exn = Reraised("ctx", create_s(["a", "b"]))
    assert str(exn) == "(Reraised ctx (a b))"
