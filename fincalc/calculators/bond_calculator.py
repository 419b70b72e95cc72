"""
Bond calculator

Wraps the YTM solver. A bond whose yield cannot be solved (YTMNonConvergence)
is a valid form with no result, not a validation error.
"""

from typing import Any, Final, Mapping

from fincalc.core.domain.bond import BondAnalysis, BondTerms, PaymentFrequency
from fincalc.core.math.bond_yield import YTMSolverConfig, analyze_bond
from fincalc.reactive.calculator import (
    CalculatorConfig,
    ReactiveCalculatorCore,
    UsageSink,
)
from fincalc.reactive.fields import FieldKind, FieldSpec
from fincalc.reactive.validation import max_value, non_negative, one_of, positive, required

CALCULATOR_ID: Final[str] = "bond"

MAX_FACE_VALUE: Final[float] = 10_000_000.0
MAX_MARKET_PRICE: Final[float] = 10_000_000.0
MAX_YEARS_TO_MATURITY: Final[float] = 100.0


FIELDS: Final[Mapping[str, FieldSpec]] = {
    "face_value": FieldSpec(FieldKind.NUMBER, 1_000.0, "Face value"),
    "coupon_rate": FieldSpec(FieldKind.PERCENT, 5.0, "Coupon rate"),
    "market_price": FieldSpec(FieldKind.NUMBER, 1_000.0, "Market price"),
    "years_to_maturity": FieldSpec(FieldKind.NUMBER, 10.0, "Years to maturity"),
    "payment_frequency": FieldSpec(
        FieldKind.TEXT, PaymentFrequency.SEMI_ANNUAL.value, "Payment frequency"
    ),
}

RULES = {
    "face_value": [
        required(),
        positive("Face value must be positive"),
        max_value(MAX_FACE_VALUE, "Face value exceeds maximum limit"),
    ],
    "coupon_rate": [
        required(),
        non_negative("Coupon rate cannot be negative"),
        max_value(100, "Coupon rate cannot exceed 100%"),
    ],
    "market_price": [
        required(),
        positive("Market price must be positive"),
        max_value(MAX_MARKET_PRICE, "Market price exceeds maximum limit"),
    ],
    "years_to_maturity": [
        required(),
        positive("Years to maturity must be positive"),
        max_value(MAX_YEARS_TO_MATURITY, "Years to maturity cannot exceed 100"),
    ],
    "payment_frequency": [
        required(),
        one_of([f.value for f in PaymentFrequency], "Invalid payment frequency"),
    ],
}


def make_bond_compute(solver_config: YTMSolverConfig | None = None):
    """Compute function bound to a solver configuration."""

    def calculate_bond(values: Mapping[str, Any]) -> BondAnalysis:
        terms = BondTerms(
            face_value=values["face_value"],
            coupon_rate_pct=values["coupon_rate"],
            market_price=values["market_price"],
            years_to_maturity=values["years_to_maturity"],
            frequency=PaymentFrequency(values["payment_frequency"]),
        )
        return analyze_bond(terms, solver_config)

    return calculate_bond


calculate_bond = make_bond_compute()


def create_bond_calculator(
    usage_sink: UsageSink | None = None,
    config: CalculatorConfig | None = None,
    solver_config: YTMSolverConfig | None = None,
) -> ReactiveCalculatorCore[BondAnalysis]:
    """Bond calculator with a par 10-year semi-annual 5% bond as defaults."""
    return ReactiveCalculatorCore(
        calculator_id=CALCULATOR_ID,
        fields=FIELDS,
        compute=make_bond_compute(solver_config),
        rules=RULES,
        usage_sink=usage_sink,
        config=config,
    )
