"""
Structured descriptions: S-expression trees made of atoms and lists.

An atom is a ``str``; a list is a ``list`` (or ``tuple``) of structured
values. Printers and the parser below work on plain Python values so that
an error built from a tree hands back the very same tree.
"""
import logging
from typing import Any, Dict, List, Sequence, Tuple, Union

from .error.exceptions import SexpError, SexpParseError

logger = logging.getLogger(__name__)

Sexp = Union[str, List[Any]]

_SPECIAL_CHARS = frozenset(' \t\n\r\f\v();"\\')
_SPECIAL_PAIRS = ("#|", "|#", "#;")
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\b": "\\b",
}
_UNESCAPES = {
    "\\": "\\",
    '"': '"',
    "'": "'",
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    " ": " ",
}


def is_atom(value: Any) -> bool:
    """Return True if ``value`` is an atom."""
    return isinstance(value, str)


def is_list(value: Any) -> bool:
    """Return True if ``value`` is a list node."""
    return isinstance(value, (list, tuple))


def validate_sexp(value: Any) -> Sexp:
    """
    Check that ``value`` is a well-formed structured description.

    Args:
        value: Candidate tree

    Returns:
        The same value, untouched

    Raises:
        SexpError: If some node is neither a ``str`` nor a list
    """
    stack: List[Tuple[Any, str]] = [(value, "$")]
    while stack:
        node, path = stack.pop()
        if is_atom(node):
            continue
        if not is_list(node):
            raise SexpError(
                f"Invalid structured value at {path}: {type(node).__name__}",
                details={"path": path, "type": type(node).__name__},
            )
        for index, child in enumerate(node):
            stack.append((child, f"{path}[{index}]"))
    return value


def _must_quote(atom: str) -> bool:
    if not atom:
        return True
    if any(pair in atom for pair in _SPECIAL_PAIRS):
        return True
    return any(ch in _SPECIAL_CHARS or not ch.isprintable() for ch in atom)


def _escape_char(ch: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    if ch.isprintable():
        return ch
    code = ord(ch)
    if code < 256:
        return f"\\{code:03d}"
    return f"\\u{{{code:x}}}"


def quote_atom(atom: str) -> str:
    """Render an atom, adding quotes and escapes only when needed."""
    if not _must_quote(atom):
        return atom
    return '"' + "".join(_escape_char(ch) for ch in atom) + '"'


def to_string_mach(sexp: Sexp) -> str:
    """
    Render a tree on a single line.

    Args:
        sexp: Tree to render

    Returns:
        Machine-oriented representation, e.g. ``(Reraised ctx (a b))``
    """
    out: List[str] = []
    # Pending items: text to emit as is, or (node,) to render
    stack: List[Any] = [(sexp,)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        node = item[0]
        if is_atom(node):
            out.append(quote_atom(node))
            continue
        out.append("(")
        stack.append(")")
        for index in range(len(node) - 1, -1, -1):
            stack.append((node[index],))
            if index:
                stack.append(" ")
    return "".join(out)


def _flat_lengths(sexp: Sexp) -> Dict[int, int]:
    """Length of the single-line rendering of every node, keyed by ``id``."""
    lengths: Dict[int, int] = {}
    stack: List[Tuple[Any, bool]] = [(sexp, False)]
    while stack:
        node, children_done = stack.pop()
        if is_atom(node):
            lengths[id(node)] = len(quote_atom(node))
        elif children_done:
            lengths[id(node)] = 2 + max(len(node) - 1, 0) + sum(lengths[id(child)] for child in node)
        elif id(node) not in lengths:
            stack.append((node, True))
            stack.extend((child, False) for child in node)
    return lengths


def to_string_hum(sexp: Sexp, indent: int = 1, width: int = 78) -> str:
    """
    Render a tree for humans, breaking lists that do not fit in ``width``.

    Args:
        sexp: Tree to render
        indent: Extra indentation of broken-out children
        width: Target line width

    Returns:
        Possibly multi-line representation
    """
    lengths = _flat_lengths(sexp)
    out: List[str] = []
    # Pending items: text to emit as is, or (node, column) to lay out
    stack: List[Any] = [(sexp, 0)]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        node, column = item
        if is_atom(node) or not node or column + lengths[id(node)] <= width:
            out.append(to_string_mach(node))
            continue
        pad = "\n" + " " * (column + indent)
        out.append("(")
        stack.append(")")
        for child in reversed(node[1:]):
            stack.append((child, column + indent))
            stack.append(pad)
        stack.append((node[0], column + 1))
    return "".join(out)


class _Parser:
    """Reader over a text buffer; nesting is tracked on an explicit stack."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def error(self, message: str, position: int = None) -> SexpParseError:
        where = self.pos if position is None else position
        return SexpParseError(f"{message} at position {where}", position=where)

    def skip_blank(self) -> None:
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif ch == ";":
                end = text.find("\n", self.pos)
                self.pos = len(text) if end < 0 else end + 1
            else:
                break

    def at_end(self) -> bool:
        self.skip_blank()
        return self.pos >= len(self.text)

    def read(self) -> Sexp:
        # (start position, items) of every list still open
        open_lists: List[Tuple[int, List[Any]]] = []
        while True:
            self.skip_blank()
            if self.pos >= len(self.text):
                if open_lists:
                    raise self.error("Unclosed '('", open_lists[-1][0])
                raise self.error("Unexpected end of input")
            ch = self.text[self.pos]
            if ch == "(":
                open_lists.append((self.pos, []))
                self.pos += 1
                continue
            if ch == ")":
                if not open_lists:
                    raise self.error("Unexpected ')'")
                self.pos += 1
                value: Sexp = open_lists.pop()[1]
            elif ch == '"':
                value = self.read_quoted()
            else:
                value = self.read_bare()
            if not open_lists:
                return value
            open_lists[-1][1].append(value)

    def read_bare(self) -> str:
        start = self.pos
        text = self.text
        while self.pos < len(text):
            ch = text[self.pos]
            if ch.isspace() or ch in '();"':
                break
            self.pos += 1
        return text[start:self.pos]

    def read_quoted(self) -> str:
        start = self.pos
        self.pos += 1
        text = self.text
        out: List[str] = []
        while self.pos < len(text):
            ch = text[self.pos]
            if ch == '"':
                self.pos += 1
                return "".join(out)
            if ch != "\\":
                out.append(ch)
                self.pos += 1
                continue
            self.pos += 1
            if self.pos >= len(text):
                break
            out.append(self.read_escape())
        raise self.error("Unterminated string", start)

    def read_escape(self) -> str:
        text = self.text
        ch = text[self.pos]
        if ch in _UNESCAPES:
            self.pos += 1
            return _UNESCAPES[ch]
        if ch == "\n":
            # line continuation: skip the newline and leading blanks
            self.pos += 1
            while self.pos < len(text) and text[self.pos] in " \t":
                self.pos += 1
            return ""
        digits = text[self.pos:self.pos + 3]
        if len(digits) == 3 and digits.isdigit():
            code = int(digits)
            if code > 255:
                raise self.error(f"Invalid decimal escape '\\{digits}'")
            self.pos += 3
            return chr(code)
        if ch == "u" and text.startswith("{", self.pos + 1):
            end = text.find("}", self.pos)
            if end < 0:
                raise self.error("Unterminated unicode escape")
            try:
                value = chr(int(text[self.pos + 2:end], 16))
            except ValueError:
                raise self.error("Invalid unicode escape") from None
            self.pos = end + 1
            return value
        # unknown escapes are kept verbatim
        self.pos += 1
        return "\\" + ch


def of_string_many(text: str) -> List[Sexp]:
    """
    Parse every structured value in ``text``.

    Raises:
        SexpParseError: On unbalanced parentheses or bad strings
    """
    parser = _Parser(text)
    values = []
    while not parser.at_end():
        values.append(parser.read())
    return values


def of_string(text: str) -> Sexp:
    """
    Parse exactly one structured value from ``text``.

    Raises:
        SexpParseError: If the text holds zero or several values, or is malformed
    """
    parser = _Parser(text)
    value = parser.read()
    if not parser.at_end():
        raise parser.error("Trailing input after value")
    logger.debug(f"Parsed structured value of {len(text)} characters")
    return value


def normalize(sexp: Sexp) -> Sexp:
    """Return a copy of ``sexp`` where every list node is a ``list``."""
    if is_atom(sexp):
        return sexp
    root: List[Any] = []
    stack: List[Tuple[Any, List[Any]]] = [(sexp, root)]
    while stack:
        node, copy = stack.pop()
        for child in node:
            if is_atom(child):
                copy.append(child)
            else:
                child_copy: List[Any] = []
                copy.append(child_copy)
                stack.append((child, child_copy))
    return root


def sexp_of_pairs(pairs: Sequence[Tuple[str, Any]]) -> List[Any]:
    """Turn ``(key, value)`` pairs into ``((key value) ...)`` with ``str`` values."""
    return [[str(key), value if is_atom(value) else str(value)] for key, value in pairs]
