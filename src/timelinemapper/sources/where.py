"""A small SQL-92 style `where` clause parser for in-memory sources.

Supported
---------
- ``field IS NULL`` / ``field IS NOT NULL``
- comparisons ``= <> != < <= > >=`` between fields and literals
- ``field [NOT] IN (1, 2, 'x')`` and ``field [NOT] LIKE 'pat%'``
- ``AND`` / ``OR`` / ``NOT`` and parentheses
- literals: numbers, single-quoted strings (``''`` escapes a quote),
  ``NULL``, ``TRUE``/``FALSE``

Keywords are case-insensitive; field names are matched exactly first and
case-insensitively as a fallback. A field missing from a row reads as NULL.

NULL follows SQL's three-valued logic: a comparison, ``IN`` or ``LIKE``
with a NULL operand is *unknown*, ``NOT`` of unknown stays unknown, and a
row matches only when the whole clause is true. The field names a clause
references are exposed as :attr:`WhereClause.fields` so a source can reject
unknown names once per query.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
Predicate = Callable[[Row], bool | None]
Operand = Callable[[Row], Any]

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<string>'(?:[^']|'')*')
  | (?P<number>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)
  | (?P<quoted>"[^"]+")
  | (?P<ident>[A-Za-z_][A-Za-z0-9_.]*)
  | (?P<op><>|!=|<=|>=|=|<|>)
  | (?P<punct>[(),])
    """,
    re.VERBOSE,
)

_KEYWORDS = frozenset({"AND", "OR", "NOT", "IS", "NULL", "IN", "LIKE", "TRUE", "FALSE"})

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "<>": operator.ne,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class WhereSyntaxError(ValueError):
    """Raised when a where clause cannot be parsed."""


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: str


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise WhereSyntaxError(f"unexpected character {text[pos]!r} at {pos}")
        kind = match.lastgroup or ""
        value = match.group(0)
        pos = match.end()
        if kind == "ws":
            continue
        if kind == "ident" and value.upper() in _KEYWORDS:
            tokens.append(_Token("kw", value.upper()))
        elif kind == "quoted":
            tokens.append(_Token("ident", value[1:-1]))
        else:
            tokens.append(_Token(kind, value))
    return tokens


def _field_getter(name: str) -> Operand:
    def get(row: Row) -> Any:
        if name in row:
            return row[name]
        lowered = name.lower()
        for key, value in row.items():
            if key.lower() == lowered:
                return value
        return None

    return get


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def _safe_compare(fn: Callable[[Any, Any], bool], left: Any, right: Any) -> bool | None:
    if left is None or right is None:
        return None
    try:
        return bool(fn(left, right))
    except TypeError:
        return False


def _all(results: list[bool | None]) -> bool | None:
    if False in results:
        return False
    return None if None in results else True


def _any(results: list[bool | None]) -> bool | None:
    if True in results:
        return True
    return None if None in results else False


def _negate(result: bool | None) -> bool | None:
    return None if result is None else not result


def _member(value: Any, values: tuple[Any, ...]) -> bool | None:
    if value is None:
        return None
    if value in values:
        return True
    return None if None in values else False


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0
        self.fields: set[str] = set()

    # ----- token helpers ---------------------------------------------------
    def _peek(self) -> _Token | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _accept(self, kind: str, value: str | None = None) -> _Token | None:
        tok = self._peek()
        if tok and tok.kind == kind and (value is None or tok.value == value):
            self.pos += 1
            return tok
        return None

    def _expect(self, kind: str, value: str | None = None) -> _Token:
        tok = self._accept(kind, value)
        if tok is None:
            found = self._peek()
            wanted = value or kind
            got = found.value if found else "end of clause"
            raise WhereSyntaxError(f"expected {wanted} but found {got!r} in {self.text!r}")
        return tok

    # ----- grammar ---------------------------------------------------------
    def parse(self) -> Predicate:
        pred = self._or()
        leftover = self._peek()
        if leftover is not None:
            raise WhereSyntaxError(f"unexpected {leftover.value!r} in {self.text!r}")
        return pred

    def _or(self) -> Predicate:
        preds = [self._and()]
        while self._accept("kw", "OR"):
            preds.append(self._and())
        if len(preds) == 1:
            return preds[0]
        return lambda row: _any([p(row) for p in preds])

    def _and(self) -> Predicate:
        preds = [self._not()]
        while self._accept("kw", "AND"):
            preds.append(self._not())
        if len(preds) == 1:
            return preds[0]
        return lambda row: _all([p(row) for p in preds])

    def _not(self) -> Predicate:
        if self._accept("kw", "NOT"):
            inner = self._not()
            return lambda row: _negate(inner(row))
        return self._predicate()

    def _predicate(self) -> Predicate:
        if self._accept("punct", "("):
            inner = self._or()
            self._expect("punct", ")")
            return inner

        left = self._operand()

        if self._accept("kw", "IS"):
            negate = self._accept("kw", "NOT") is not None
            self._expect("kw", "NULL")
            if negate:
                return lambda row: left(row) is not None
            return lambda row: left(row) is None

        negate = self._accept("kw", "NOT") is not None
        if self._accept("kw", "IN"):
            values = self._literal_list()
            if negate:
                return lambda row: _negate(_member(left(row), values))
            return lambda row: _member(left(row), values)
        if self._accept("kw", "LIKE"):
            pattern = _like_to_regex(str(self._literal()))

            def like(row: Row) -> bool | None:
                value = left(row)
                if value is None:
                    return None
                return (pattern.fullmatch(str(value)) is not None) != negate

            return like
        if negate:
            raise WhereSyntaxError(f"NOT must be followed by IN or LIKE in {self.text!r}")

        op = self._expect("op").value
        right = self._operand()
        fn = _COMPARATORS[op]
        return lambda row: _safe_compare(fn, left(row), right(row))

    def _operand(self) -> Operand:
        tok = self._peek()
        if tok is not None and tok.kind == "ident":
            self.pos += 1
            self.fields.add(tok.value)
            return _field_getter(tok.value)
        value = self._literal()
        return lambda row: value

    def _literal(self) -> Any:
        tok = self._peek()
        if tok is None:
            raise WhereSyntaxError(f"unexpected end of clause in {self.text!r}")
        self.pos += 1
        if tok.kind == "string":
            return tok.value[1:-1].replace("''", "'")
        if tok.kind == "number":
            return float(tok.value) if any(c in tok.value for c in ".eE") else int(tok.value)
        if tok.kind == "kw" and tok.value == "NULL":
            return None
        if tok.kind == "kw" and tok.value in ("TRUE", "FALSE"):
            return tok.value == "TRUE"
        raise WhereSyntaxError(f"expected a value but found {tok.value!r} in {self.text!r}")

    def _literal_list(self) -> tuple[Any, ...]:
        self._expect("punct", "(")
        values = [self._literal()]
        while self._accept("punct", ","):
            values.append(self._literal())
        self._expect("punct", ")")
        return tuple(values)


@dataclass(frozen=True, slots=True)
class WhereClause:
    """A parsed where clause, callable on an attribute mapping."""

    text: str
    predicate: Predicate
    fields: frozenset[str] = frozenset()

    def __call__(self, row: Row) -> bool:
        return self.predicate(row) is True


def parse_where(text: str | None) -> WhereClause:
    """Parse ``text``; a blank clause matches every row."""
    if text is None or not text.strip():
        return WhereClause(text="", predicate=lambda row: True)
    parser = _Parser(text)
    predicate = parser.parse()
    return WhereClause(text=text, predicate=predicate, fields=frozenset(parser.fields))


__all__ = ["WhereSyntaxError", "WhereClause", "parse_where"]
