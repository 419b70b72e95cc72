"""
Validation — per-field rules and the engine that evaluates them

A rule is a predicate over (value, all_values) plus the message reported when
it fails. Rules never raise into the caller: a predicate that blows up is a
failed rule.

Evaluation order:
- rules of one field run in declaration order, all of them (no short-circuit)
- fields run in the order given (definition order for validate_all)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

LOGGER = logging.getLogger(__name__)

Predicate = Callable[[Any, Mapping[str, Any]], bool]


@dataclass(frozen=True)
class FieldError:
    """Validation failure attached to one field."""

    field: str
    message: str


@dataclass(frozen=True)
class ValidationRule:
    """predicate(value, all_values) -> True when the value is acceptable."""

    predicate: Predicate
    message: str

    def check(self, value: Any, values: Mapping[str, Any]) -> bool:
        try:
            return bool(self.predicate(value, values))
        except Exception as exc:
            LOGGER.debug("Validation predicate raised %r; counting as violation", exc)
            return False


# =============================================================================
# ENGINE
# =============================================================================


class ValidationEngine:
    """
    Evaluates rules attached to field names.

    Stateless apart from the rule table; callers own the values and the
    resulting error list.
    """

    def __init__(self, rules: Mapping[str, Sequence[ValidationRule]] | None = None):
        self._rules: dict[str, tuple[ValidationRule, ...]] = {
            field: tuple(field_rules) for field, field_rules in (rules or {}).items()
        }

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def rules_for(self, field: str) -> tuple[ValidationRule, ...]:
        return self._rules.get(field, ())

    def validate_field(self, field: str, values: Mapping[str, Any]) -> list[FieldError]:
        """
        Run every rule of one field.

        Returns:
            One FieldError per violated rule, in rule order (duplicates kept)
        """
        value = values.get(field)
        return [
            FieldError(field=field, message=rule.message)
            for rule in self.rules_for(field)
            if not rule.check(value, values)
        ]

    def validate_fields(self, fields: Iterable[str], values: Mapping[str, Any]) -> list[FieldError]:
        errors: list[FieldError] = []
        for field in fields:
            errors.extend(self.validate_field(field, values))
        return errors

    def validate_all(self, values: Mapping[str, Any], order: Iterable[str] | None = None) -> list[FieldError]:
        """Every field with rules, in definition order unless order is given."""
        return self.validate_fields(order if order is not None else self._rules, values)


# =============================================================================
# COMMON RULES
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _numeric_rule(test: Callable[[float], bool], message: str) -> ValidationRule:
    # Empty values are the business of required()
    return ValidationRule(
        predicate=lambda value, _values: value is None or (_is_number(value) and test(value)),
        message=message,
    )


def _format_bound(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def required(message: str = "This field is required") -> ValidationRule:
    """
    Examples:
        >>> required().check("", {})
        False
        >>> required().check(0, {})
        True
    """

    def predicate(value: Any, _values: Mapping[str, Any]) -> bool:
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        if isinstance(value, (list, tuple, dict)):
            return len(value) > 0
        return True

    return ValidationRule(predicate=predicate, message=message)


def min_value(n: float, message: str | None = None) -> ValidationRule:
    return _numeric_rule(lambda v: v >= n, message or f"Value must be at least {_format_bound(n)}")


def max_value(n: float, message: str | None = None) -> ValidationRule:
    return _numeric_rule(
        lambda v: v <= n, message or f"Value must be no more than {_format_bound(n)}"
    )


def positive(message: str = "Value must be positive") -> ValidationRule:
    return _numeric_rule(lambda v: v > 0, message)


def non_negative(message: str = "Value must be greater than or equal to 0") -> ValidationRule:
    return _numeric_rule(lambda v: v >= 0, message)


def percentage(message: str = "Value must be between 0 and 100") -> ValidationRule:
    return _numeric_rule(lambda v: 0 <= v <= 100, message)


def integer(message: str = "Value must be a whole number") -> ValidationRule:
    return _numeric_rule(lambda v: float(v).is_integer(), message)


def one_of(choices: Iterable[Any], message: str | None = None) -> ValidationRule:
    allowed = tuple(choices)
    return ValidationRule(
        predicate=lambda value, _values: value is None or value in allowed,
        message=message or f"Value must be one of: {', '.join(str(c) for c in allowed)}",
    )


def less_or_equal_field(other: str, message: str) -> ValidationRule:
    """
    Cross-field rule: value <= values[other].

    Passes while either side is empty or non-numeric; those are reported by
    the fields' own rules.
    """

    def predicate(value: Any, values: Mapping[str, Any]) -> bool:
        bound = values.get(other)
        if not (_is_number(value) and _is_number(bound)):
            return True
        return value <= bound

    return ValidationRule(predicate=predicate, message=message)
