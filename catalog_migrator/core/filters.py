"""
Structured record filters and the filter builder.

Filters are small immutable predicates that in-process providers evaluate
with ``matches`` and remote providers receive as CQL via ``to_cql``. The
builder either parses an explicit expression or produces the default
time-bounded filter, so a run only migrates records that existed when it
started.
"""

from __future__ import annotations

import datetime
import logging
import operator
import re
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from catalog_migrator.constants import MODIFIED_PROPERTY
from catalog_migrator.exceptions import FilterParseError
from catalog_migrator.types import Record
from catalog_migrator.utils.logging import log_with_context
from catalog_migrator.utils.timestamps import EPOCH, format_timestamp, parse_timestamp

# ---------------------------------------------------------------------------
# Filter types
# ---------------------------------------------------------------------------


class Filter:
    """Base class for record predicates."""

    def matches(self, record: Record) -> bool:
        raise NotImplementedError

    def to_cql(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_cql()


def _coerce(left: Any, right: Any) -> Any:
    """Bring a record value into the type of the filter literal."""
    if isinstance(right, datetime.datetime) and isinstance(left, str):
        return parse_timestamp(left)
    if (
        isinstance(right, (int, float))
        and not isinstance(right, bool)
        and isinstance(left, str)
    ):
        return float(left)
    return left


def _cql_literal(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        return format_timestamp(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    return "'" + str(value).replace("'", "''") + "'"


def _cql_property(name: str) -> str:
    if re.fullmatch(r"[A-Za-z_][\w.:\-]*", name) and name.upper() not in _KEYWORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "=": operator.eq,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class MatchAll(Filter):
    """Matches every record."""

    def matches(self, record: Record) -> bool:
        return True

    def to_cql(self) -> str:
        return "INCLUDE"


@dataclass(frozen=True)
class Comparison(Filter):
    """Binary comparison between a record property and a literal."""

    property: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported comparison operator {self.op!r}")

    def matches(self, record: Record) -> bool:
        actual = record.get(self.property)
        if actual is None:
            return False
        try:
            return _OPERATORS[self.op](_coerce(actual, self.value), self.value)
        except (TypeError, ValueError):
            return False

    def to_cql(self) -> str:
        return f"{_cql_property(self.property)} {self.op} {_cql_literal(self.value)}"


@dataclass(frozen=True)
class Like(Filter):
    """CQL ``LIKE``: ``%`` matches any run of characters, ``_`` a single one."""

    property: str
    pattern: str

    def _regex(self) -> re.Pattern[str]:
        parts = []
        for ch in self.pattern:
            if ch == "%":
                parts.append(".*")
            elif ch == "_":
                parts.append(".")
            else:
                parts.append(re.escape(ch))
        return re.compile("".join(parts), re.DOTALL)

    def matches(self, record: Record) -> bool:
        actual = record.get(self.property)
        if actual is None:
            return False
        return self._regex().fullmatch(str(actual)) is not None

    def to_cql(self) -> str:
        return f"{_cql_property(self.property)} LIKE {_cql_literal(self.pattern)}"


@dataclass(frozen=True)
class TemporalFilter(Filter):
    """Inclusive time window over a temporal property; open ends are unbounded."""

    property: str = MODIFIED_PROPERTY
    start: datetime.datetime | None = None
    end: datetime.datetime | None = None

    def matches(self, record: Record) -> bool:
        value = record.get(self.property)
        if value is None:
            return False
        try:
            value = parse_timestamp(value)
        except ValueError:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    def to_cql(self) -> str:
        prop = _cql_property(self.property)
        if self.end is None:
            if self.start is None:
                return "INCLUDE"
            return f"{prop} >= {format_timestamp(self.start)}"
        start = self.start if self.start is not None else EPOCH
        return f"{prop} DURING {format_timestamp(start)}/{format_timestamp(self.end)}"


@dataclass(frozen=True)
class And(Filter):
    filters: tuple[Filter, ...]

    def matches(self, record: Record) -> bool:
        return all(f.matches(record) for f in self.filters)

    def to_cql(self) -> str:
        return " AND ".join(f"({f.to_cql()})" for f in self.filters)


@dataclass(frozen=True)
class Or(Filter):
    filters: tuple[Filter, ...]

    def matches(self, record: Record) -> bool:
        return any(f.matches(record) for f in self.filters)

    def to_cql(self) -> str:
        return " OR ".join(f"({f.to_cql()})" for f in self.filters)


@dataclass(frozen=True)
class Not(Filter):
    filter: Filter

    def matches(self, record: Record) -> bool:
        return not self.filter.matches(record)

    def to_cql(self) -> str:
        return f"NOT ({self.filter.to_cql()})"


# ---------------------------------------------------------------------------
# CQL subset parser
# ---------------------------------------------------------------------------

_KEYWORDS = frozenset(
    ("AND", "OR", "NOT", "LIKE", "BEFORE", "AFTER", "DURING", "INCLUDE", "TRUE", "FALSE")
)

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<timestamp>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:\d{2})?)
  | (?P<number>-?\d+(?:\.\d+)?)
  | (?P<string>'(?:[^']|'')*')
  | (?P<quoted>"(?:[^"]|"")*")
  | (?P<op><=|>=|<>|!=|=|<|>)
  | (?P<lparen>\()
  | (?P<rparen>\))
  | (?P<slash>/)
  | (?P<ident>[A-Za-z_][\w.:\-]*)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    pos: int


def _tokenize(expression: str) -> list[_Token]:
    tokens = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise FilterParseError(
                f"Unexpected character {expression[pos]!r} at position {pos}"
            )
        kind = match.lastgroup
        text = match.group()
        if kind == "ident" and text.upper() in _KEYWORDS:
            tokens.append(_Token("keyword", text.upper(), pos))
        elif kind != "ws":
            tokens.append(_Token(kind, text, pos))
        pos = match.end()
    return tokens


class CqlFilterParser:
    """Parser for the CQL subset understood by the built-in providers.

    Supports comparisons (``=``, ``<>``, ``<``, ``<=``, ``>``, ``>=``),
    ``[NOT] LIKE``, ``BEFORE``/``AFTER``/``DURING`` with ISO-8601
    timestamps, ``AND``/``OR``/``NOT``, parentheses, and ``INCLUDE``.
    """

    def parse(self, expression: str) -> Filter:
        if not expression or not expression.strip():
            raise FilterParseError("Filter expression is empty")
        self._tokens = _tokenize(expression)
        self._pos = 0
        result = self._parse_or()
        if self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            raise FilterParseError(
                f"Unexpected {token.value!r} at position {token.pos}"
            )
        return result

    # -- token helpers -----------------------------------------------------

    def _peek(self) -> _Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _next(self, expected: str) -> _Token:
        token = self._peek()
        if token is None:
            raise FilterParseError(f"Unexpected end of expression, expected {expected}")
        self._pos += 1
        return token

    def _accept_keyword(self, keyword: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == "keyword" and token.value == keyword:
            self._pos += 1
            return True
        return False

    # -- grammar -----------------------------------------------------------

    def _parse_or(self) -> Filter:
        filters = [self._parse_and()]
        while self._accept_keyword("OR"):
            filters.append(self._parse_and())
        return filters[0] if len(filters) == 1 else Or(tuple(filters))

    def _parse_and(self) -> Filter:
        filters = [self._parse_not()]
        while self._accept_keyword("AND"):
            filters.append(self._parse_not())
        return filters[0] if len(filters) == 1 else And(tuple(filters))

    def _parse_not(self) -> Filter:
        if self._accept_keyword("NOT"):
            return Not(self._parse_not())
        return self._parse_primary()

    def _parse_primary(self) -> Filter:
        token = self._next("a predicate")
        if token.kind == "lparen":
            inner = self._parse_or()
            closing = self._next("')'")
            if closing.kind != "rparen":
                raise FilterParseError(
                    f"Expected ')' at position {closing.pos}, got {closing.value!r}"
                )
            return inner
        if token.kind == "keyword" and token.value == "INCLUDE":
            return MatchAll()
        if token.kind == "ident":
            return self._parse_predicate(token.value)
        if token.kind == "quoted":
            return self._parse_predicate(token.value[1:-1].replace('""', '"'))
        raise FilterParseError(
            f"Expected a property name at position {token.pos}, got {token.value!r}"
        )

    def _parse_predicate(self, prop: str) -> Filter:
        token = self._next("an operator")
        if token.kind == "op":
            op = "<>" if token.value == "!=" else token.value
            return Comparison(prop, op, self._parse_literal())
        if token.kind == "keyword":
            if token.value == "NOT" and self._accept_keyword("LIKE"):
                return Not(Like(prop, self._parse_string()))
            if token.value == "LIKE":
                return Like(prop, self._parse_string())
            if token.value == "BEFORE":
                return Comparison(prop, "<", self._parse_timestamp())
            if token.value == "AFTER":
                return Comparison(prop, ">", self._parse_timestamp())
            if token.value == "DURING":
                start = self._parse_timestamp()
                slash = self._next("'/'")
                if slash.kind != "slash":
                    raise FilterParseError(
                        f"Expected '/' in DURING period at position {slash.pos}"
                    )
                end = self._parse_timestamp()
                if start > end:
                    raise FilterParseError(
                        f"DURING period starts after it ends ({format_timestamp(start)}"
                        f" > {format_timestamp(end)})"
                    )
                return TemporalFilter(prop, start, end)
        raise FilterParseError(
            f"Expected an operator after {prop!r} at position {token.pos}, got {token.value!r}"
        )

    def _parse_literal(self) -> Any:
        token = self._next("a literal")
        if token.kind == "string":
            return token.value[1:-1].replace("''", "'")
        if token.kind == "number":
            return float(token.value) if "." in token.value else int(token.value)
        if token.kind == "timestamp":
            return parse_timestamp(token.value)
        if token.kind == "keyword" and token.value in ("TRUE", "FALSE"):
            return token.value == "TRUE"
        raise FilterParseError(
            f"Expected a literal at position {token.pos}, got {token.value!r}"
        )

    def _parse_string(self) -> str:
        token = self._next("a quoted pattern")
        if token.kind != "string":
            raise FilterParseError(
                f"Expected a quoted pattern at position {token.pos}, got {token.value!r}"
            )
        return token.value[1:-1].replace("''", "'")

    def _parse_timestamp(self) -> datetime.datetime:
        token = self._next("a timestamp")
        if token.kind == "string":
            text = token.value[1:-1]
        elif token.kind == "timestamp":
            text = token.value
        else:
            raise FilterParseError(
                f"Expected a timestamp at position {token.pos}, got {token.value!r}"
            )
        try:
            return parse_timestamp(text)
        except ValueError as e:
            raise FilterParseError(f"Invalid timestamp {text!r}: {e}") from e


# ---------------------------------------------------------------------------
# Filter builder
# ---------------------------------------------------------------------------


class FilterParser(Protocol):
    def parse(self, expression: str) -> Filter: ...


class _Clock(Protocol):
    def now(self) -> datetime.datetime: ...


def resolve_time_window(
    now: datetime.datetime,
    *,
    last_seconds: int = 0,
    last_minutes: int = 0,
    last_hours: int = 0,
    last_days: int = 0,
    last_weeks: int = 0,
) -> datetime.datetime | None:
    """Return the start bound ``now - offset`` for a relative window.

    Returns None when no offset is given (no lower bound).
    """
    offset = datetime.timedelta(
        seconds=last_seconds,
        minutes=last_minutes,
        hours=last_hours,
        days=last_days,
        weeks=last_weeks,
    )
    if offset < datetime.timedelta(0):
        raise ValueError("Relative time window must not be negative")
    if not offset:
        return None
    return now - offset


def build_filter(
    expression: str | None,
    parser: FilterParser,
    clock: _Clock,
    *,
    start: datetime.datetime | None = None,
    end: datetime.datetime | None = None,
    temporal_property: str = MODIFIED_PROPERTY,
) -> Filter:
    """Produce the filter for a run.

    An explicit expression is handed to ``parser``; a FilterParseError
    propagates unchanged. Without one, the default filter selects records
    whose ``temporal_property`` lies in ``[start, end]``, where ``end``
    defaults to the current time so records written during the run are
    not picked up.
    """
    if expression:
        parsed = parser.parse(expression)
        log_with_context(logging.DEBUG, f"Using filter: {parsed.to_cql()}")
        return parsed

    upper = end if end is not None else clock.now()
    default = TemporalFilter(temporal_property, start, upper)
    log_with_context(logging.DEBUG, f"Using default filter: {default.to_cql()}")
    return default
