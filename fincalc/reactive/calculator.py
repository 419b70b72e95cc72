"""
Reactive Calculator Core

Owns the values / errors / result state of one calculator instance and runs
the pipeline on every edit:

    raw input -> parse (FieldSpec) -> validate (rules + dependents)
              -> compute (only when valid and dirty) -> result

STATE RULES:
1. result is only replaced by a compute that ran on a valid, dirty state
2. a failed validation never touches result; it is flagged is_stale instead
3. compute failures never change is_valid:
   - ComputeError       -> result cleared, compute_error recorded
   - anything else      -> logged, previous result kept, compute_error recorded
4. every value mutation bumps revision (async hosts discard outdated results)

The core is generic over the compute callable and knows nothing about loans,
bonds or portfolios.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Generic, Mapping, Protocol, Sequence, TypeVar

from fincalc.core.errors import ComputeError
from fincalc.reactive.dependencies import DependencyGraph
from fincalc.reactive.fields import (
    FieldParseError,
    FieldSpec,
    Parser,
    parse_error_message,
    resolve_parser,
)
from fincalc.reactive.validation import FieldError, ValidationEngine, ValidationRule

LOGGER = logging.getLogger(__name__)

R = TypeVar("R")


# =============================================================================
# USAGE TELEMETRY
# =============================================================================


class UsageSink(Protocol):
    """Receives one usage event per calculator instance."""

    def record_usage(self, calculator_id: str) -> None: ...


class NullUsageSink:
    """Default sink: records nothing."""

    def record_usage(self, calculator_id: str) -> None:
        return None


# =============================================================================
# CONFIG / STATE
# =============================================================================


@dataclass(frozen=True)
class CalculatorConfig:
    """
    Attributes:
        compute_on_change: Run compute synchronously after each validation
            pass. Disabled when a host (e.g. AsyncCalculatorHost) dispatches
            compute itself.
    """

    compute_on_change: bool = True


@dataclass(frozen=True)
class CalculatorState(Generic[R]):
    """Immutable snapshot of a calculator."""

    values: Mapping[str, Any]
    errors: tuple[FieldError, ...]
    result: R | None
    is_valid: bool
    is_dirty: bool
    is_stale: bool
    compute_error: Exception | None
    revision: int

    def errors_for(self, field: str) -> tuple[str, ...]:
        """Messages of one field, in reported order."""
        return tuple(error.message for error in self.errors if error.field == field)

    @property
    def error_fields(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(error.field for error in self.errors))


@dataclass(frozen=True)
class ComputeOutcome(Generic[R]):
    """
    Classified result of one compute call.

    keep_previous is set for unexpected failures: the last good result stays.
    """

    result: R | None = None
    error: Exception | None = None
    keep_previous: bool = False


def evaluate_compute(
    compute: Callable[[Mapping[str, Any]], Any],
    values: Mapping[str, Any],
    calculator_id: str = "",
) -> ComputeOutcome:
    """
    Call compute and classify the outcome. Never raises.

    Safe to run off the event loop thread.
    """
    try:
        return ComputeOutcome(result=compute(values))
    except ComputeError as exc:
        LOGGER.debug("Calculator %s: no result (%s: %s)", calculator_id, exc.kind, exc)
        return ComputeOutcome(error=exc)
    except Exception as exc:
        LOGGER.exception("Calculator %s: compute failed", calculator_id)
        return ComputeOutcome(error=exc, keep_previous=True)


# =============================================================================
# CORE
# =============================================================================


class ReactiveCalculatorCore(Generic[R]):
    """
    State machine behind one calculator form.

    Args:
        calculator_id: Identifier reported to the usage sink
        fields: Field name -> FieldSpec, in display/validation order
        compute: values -> result (None means "no result")
        rules: Field name -> validation rules
        dependencies: Field name -> fields to re-validate when it changes
        usage_sink: Telemetry sink (fire-and-forget)
        parsers: Per-field parser overrides
        config: CalculatorConfig

    Raises:
        ValueError: If rules / dependencies / parsers name undeclared fields,
            or a field kind has no parser
    """

    def __init__(
        self,
        calculator_id: str,
        fields: Mapping[str, FieldSpec],
        compute: Callable[[Mapping[str, Any]], "R | None"],
        rules: Mapping[str, Sequence[ValidationRule]] | None = None,
        dependencies: Mapping[str, Sequence[str]] | DependencyGraph | None = None,
        usage_sink: UsageSink | None = None,
        parsers: Mapping[str, Parser] | None = None,
        config: CalculatorConfig | None = None,
    ):
        self.calculator_id = calculator_id
        self.config = config or CalculatorConfig()
        self._fields: dict[str, FieldSpec] = dict(fields)
        self._compute = compute

        rules = rules or {}
        parsers = parsers or {}
        graph = (
            dependencies
            if isinstance(dependencies, DependencyGraph)
            else DependencyGraph(dependencies)
        )

        self._check_declared("rules", rules)
        self._check_declared("parsers", parsers)
        for field, dependents in graph.as_dict().items():
            self._check_declared("dependencies", [field, *dependents])

        self._engine = ValidationEngine(rules)
        self._graph = graph
        self._parsers: dict[str, Parser] = {
            name: parsers.get(name) or resolve_parser(spec) for name, spec in self._fields.items()
        }

        self._revision = 0
        self._init_state()
        self._record_usage(usage_sink or NullUsageSink())

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def state(self) -> CalculatorState[R]:
        return CalculatorState(
            values=MappingProxyType(dict(self._values)),
            errors=tuple(self._errors),
            result=self._result,
            is_valid=self.is_valid,
            is_dirty=self._is_dirty,
            is_stale=self._is_stale,
            compute_error=self._compute_error,
            revision=self._revision,
        )

    @property
    def is_valid(self) -> bool:
        return not self._errors

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def fields(self) -> Mapping[str, FieldSpec]:
        return MappingProxyType(self._fields)

    @property
    def dependencies(self) -> DependencyGraph:
        return self._graph

    @property
    def compute_fn(self) -> Callable[[Mapping[str, Any]], "R | None"]:
        return self._compute

    def values_snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def update_field(self, field: str, raw_value: Any) -> CalculatorState[R]:
        """
        Parse and store one field, then re-validate it and its dependents.

        Raises:
            KeyError: Unknown field
        """
        self._require_field(field)
        self._store(field, raw_value)
        self._is_dirty = True
        self._revision += 1
        return self.validate_field(field)

    def validate_field(self, field: str) -> CalculatorState[R]:
        """
        Re-check field and its declared dependents.

        Errors of the re-checked fields are replaced; errors of every other
        field are preserved in their order.

        Raises:
            KeyError: Unknown field
        """
        self._require_field(field)
        targets = self._graph.fields_to_revalidate(field)

        kept = [error for error in self._errors if error.field not in targets]
        fresh: list[FieldError] = []
        for target in targets:
            fresh.extend(self._field_errors(target))

        self._errors = kept + fresh
        self._after_validation()
        return self.state

    def validate_all(self) -> CalculatorState[R]:
        """Re-check every field; the error list is replaced, not merged."""
        errors: list[FieldError] = []
        for field in self._fields:
            errors.extend(self._field_errors(field))

        self._errors = errors
        self._after_validation()
        return self.state

    def set_values(self, updates: Mapping[str, Any]) -> CalculatorState[R]:
        """
        Parse and merge several fields at once, then validate_all().

        Raises:
            KeyError: Unknown field (nothing is stored)
        """
        for field in updates:
            self._require_field(field)
        for field, raw_value in updates.items():
            self._store(field, raw_value)
        self._is_dirty = True
        self._revision += 1
        return self.validate_all()

    def reset(self) -> CalculatorState[R]:
        """Back to initial values: no errors, no result, not dirty."""
        self._revision += 1
        self._init_state()
        return self.state

    def calculate(self) -> CalculatorState[R]:
        """
        Validate everything and compute if valid, edited or not.

        Used to show results for the initial values.
        """
        errors: list[FieldError] = []
        for field in self._fields:
            errors.extend(self._field_errors(field))
        self._errors = errors

        if self.is_valid:
            self._run_compute()
        elif self._result is not None:
            self._is_stale = True
        return self.state

    def apply_outcome(self, revision: int, outcome: ComputeOutcome) -> bool:
        """
        Install a compute outcome produced for revision.

        Returns:
            False (and changes nothing) if values changed since revision or
            the state is no longer valid
        """
        if revision != self._revision or not self.is_valid:
            LOGGER.debug(
                "Calculator %s: discarding outcome for revision %d (current %d)",
                self.calculator_id,
                revision,
                self._revision,
            )
            return False
        self._apply(outcome)
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _init_state(self) -> None:
        self._values: dict[str, Any] = {name: spec.default for name, spec in self._fields.items()}
        self._parse_errors: dict[str, FieldError] = {}
        self._errors: list[FieldError] = []
        self._result: R | None = None
        self._is_dirty = False
        self._is_stale = False
        self._compute_error: Exception | None = None

    def _require_field(self, field: str) -> None:
        if field not in self._fields:
            raise KeyError(f"unknown field {field!r} for calculator {self.calculator_id!r}")

    def _check_declared(self, what: str, names: Any) -> None:
        unknown = [name for name in names if name not in self._fields]
        if unknown:
            raise ValueError(f"{what} reference undeclared fields: {', '.join(unknown)}")

    def _store(self, field: str, raw_value: Any) -> None:
        try:
            self._values[field] = self._parsers[field](raw_value)
            self._parse_errors.pop(field, None)
        except FieldParseError:
            # Keep what the user typed so the form can echo it back
            self._values[field] = raw_value
            self._parse_errors[field] = FieldError(
                field=field,
                message=parse_error_message(self._fields[field], field),
            )

    def _field_errors(self, field: str) -> list[FieldError]:
        # Unparseable input: its rules would only repeat the parse error
        if field in self._parse_errors:
            return [self._parse_errors[field]]
        return self._engine.validate_field(field, self._values)

    def _after_validation(self) -> None:
        if not self.is_valid:
            if self._result is not None:
                self._is_stale = True
            return
        if self._is_dirty and self.config.compute_on_change:
            self._run_compute()

    def _run_compute(self) -> None:
        self._apply(evaluate_compute(self._compute, dict(self._values), self.calculator_id))

    def _apply(self, outcome: ComputeOutcome) -> None:
        self._compute_error = outcome.error
        if outcome.keep_previous:
            if self._result is not None:
                self._is_stale = True
            return
        self._result = outcome.result
        self._is_stale = False

    def _record_usage(self, sink: UsageSink) -> None:
        try:
            sink.record_usage(self.calculator_id)
        except Exception:
            LOGGER.warning("Usage sink failed for calculator %s", self.calculator_id, exc_info=True)
