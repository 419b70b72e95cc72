"""
Reactive calculator layer.

Field parsing, validation, dependency tracking and the calculator state
machine shared by every calculator.
"""

from fincalc.reactive.async_host import AsyncCalculatorHost
from fincalc.reactive.calculator import (
    CalculatorConfig,
    CalculatorState,
    ComputeOutcome,
    NullUsageSink,
    ReactiveCalculatorCore,
    UsageSink,
    evaluate_compute,
)
from fincalc.reactive.dependencies import DependencyGraph
from fincalc.reactive.fields import (
    PARSERS,
    FieldKind,
    FieldParseError,
    FieldSpec,
    parse_bool,
    parse_integer,
    parse_number,
    parse_percent,
    parse_record,
    parse_text,
    resolve_parser,
)
from fincalc.reactive.validation import (
    FieldError,
    ValidationEngine,
    ValidationRule,
    integer,
    less_or_equal_field,
    max_value,
    min_value,
    non_negative,
    one_of,
    percentage,
    positive,
    required,
)

__all__ = [
    # Fields
    "PARSERS",
    "FieldKind",
    "FieldParseError",
    "FieldSpec",
    "parse_bool",
    "parse_integer",
    "parse_number",
    "parse_percent",
    "parse_record",
    "parse_text",
    "resolve_parser",
    # Validation
    "FieldError",
    "ValidationEngine",
    "ValidationRule",
    "integer",
    "less_or_equal_field",
    "max_value",
    "min_value",
    "non_negative",
    "one_of",
    "percentage",
    "positive",
    "required",
    # Dependencies
    "DependencyGraph",
    # Calculator core
    "CalculatorConfig",
    "CalculatorState",
    "ComputeOutcome",
    "NullUsageSink",
    "ReactiveCalculatorCore",
    "UsageSink",
    "evaluate_compute",
    # Async
    "AsyncCalculatorHost",
]
