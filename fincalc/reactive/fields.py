"""
Field specs — tagged input kinds and their parsers

Every calculator input is declared as a FieldSpec. The kind selects the parser
that turns raw form text into a typed value:

    NUMBER   "1,250.50" -> 1250.5
    PERCENT  "6.5%"     -> 6.5
    INTEGER  "360"      -> 360
    TEXT     " abc "    -> "abc"
    BOOL     "yes"      -> True
    RECORD   [{...}]    -> [{...}]   (structured values pass through)

Blank input parses to None for every kind; "is it required" is a validation
rule, not a parse concern.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Final, Mapping

Parser = Callable[[Any], Any]


class FieldKind(str, Enum):
    """Input kind of a calculator field."""

    NUMBER = "number"
    PERCENT = "percent"
    INTEGER = "integer"
    TEXT = "text"
    BOOL = "bool"
    RECORD = "record"


class FieldParseError(ValueError):
    """Raw input could not be parsed for the field's kind."""

    def __init__(self, kind: FieldKind, raw: Any):
        super().__init__(f"cannot parse {raw!r} as {kind.value}")
        self.kind = kind
        self.raw = raw


@dataclass(frozen=True)
class FieldSpec:
    """
    Declaration of one calculator input.

    Attributes:
        kind: Selects the parser
        default: Initial (already parsed) value, restored by reset()
        label: Human-readable name used in parse error messages
    """

    kind: FieldKind = FieldKind.NUMBER
    default: Any = None
    label: str = ""

    def display_name(self, field: str) -> str:
        return self.label or field.replace("_", " ").capitalize()


# =============================================================================
# PARSERS
# =============================================================================

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "yes", "1", "on"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "no", "0", "off"})


def _blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _to_float(raw: str, kind: FieldKind) -> float:
    text = raw.strip().replace(",", "").replace("$", "")
    if kind is FieldKind.PERCENT:
        text = text.rstrip("%").strip()
    try:
        value = float(text)
    except ValueError:
        raise FieldParseError(kind, raw) from None
    if not math.isfinite(value):
        raise FieldParseError(kind, raw)
    return value


def parse_number(raw: Any) -> float | None:
    """
    Examples:
        >>> parse_number("1,250.50")
        1250.5
        >>> parse_number("") is None
        True
    """
    if _blank(raw):
        return None
    if isinstance(raw, bool):
        raise FieldParseError(FieldKind.NUMBER, raw)
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            raise FieldParseError(FieldKind.NUMBER, raw) from None
        if not math.isfinite(value):
            raise FieldParseError(FieldKind.NUMBER, raw)
        return value
    if isinstance(raw, str):
        return _to_float(raw, FieldKind.NUMBER)
    raise FieldParseError(FieldKind.NUMBER, raw)


def parse_percent(raw: Any) -> float | None:
    """Like parse_number, tolerating a trailing '%'."""
    if isinstance(raw, str) and not _blank(raw):
        return _to_float(raw, FieldKind.PERCENT)
    try:
        return parse_number(raw)
    except FieldParseError:
        raise FieldParseError(FieldKind.PERCENT, raw) from None


def parse_integer(raw: Any) -> int | None:
    """
    Whole numbers only; "360.0" is accepted, "360.5" is not.

    Examples:
        >>> parse_integer("360")
        360
    """
    if _blank(raw):
        return None
    if isinstance(raw, bool):
        raise FieldParseError(FieldKind.INTEGER, raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        value = raw
    elif isinstance(raw, str):
        value = _to_float(raw, FieldKind.INTEGER)
    else:
        raise FieldParseError(FieldKind.INTEGER, raw)
    if not math.isfinite(value) or not value.is_integer():
        raise FieldParseError(FieldKind.INTEGER, raw)
    return int(value)


def parse_text(raw: Any) -> str | None:
    if _blank(raw):
        return None
    return str(raw).strip()


def parse_bool(raw: Any) -> bool | None:
    if _blank(raw):
        return None
    if isinstance(raw, bool):
        return raw
    word = str(raw).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise FieldParseError(FieldKind.BOOL, raw)


def parse_record(raw: Any) -> Any:
    """Nested values (lists / mappings) are taken as already structured."""
    if _blank(raw):
        return None
    if isinstance(raw, (list, tuple, dict)):
        return raw
    raise FieldParseError(FieldKind.RECORD, raw)


# Exhaustive: resolve_parser fails for a kind missing here
PARSERS: Final[Mapping[FieldKind, Parser]] = {
    FieldKind.NUMBER: parse_number,
    FieldKind.PERCENT: parse_percent,
    FieldKind.INTEGER: parse_integer,
    FieldKind.TEXT: parse_text,
    FieldKind.BOOL: parse_bool,
    FieldKind.RECORD: parse_record,
}


def resolve_parser(spec: FieldSpec) -> Parser:
    """
    Raises:
        ValueError: If no parser is registered for spec.kind
    """
    try:
        return PARSERS[spec.kind]
    except KeyError:
        raise ValueError(f"no parser registered for field kind {spec.kind!r}") from None


def parse_error_message(spec: FieldSpec, field: str) -> str:
    """Field error text for unparseable input."""
    name = spec.display_name(field)
    if spec.kind is FieldKind.BOOL:
        return f"{name} must be yes or no"
    if spec.kind is FieldKind.RECORD:
        return f"{name} is malformed"
    if spec.kind is FieldKind.INTEGER:
        return f"{name} must be a whole number"
    return f"{name} must be a valid number"
