"""
Mortgage / loan calculator

Inputs are monthly-payment oriented: annual property tax and insurance are
spread over 12 months, PMI is a monthly amount charged only while the down
payment is below PMI_DOWN_PAYMENT_THRESHOLD_PCT of the home value.

Editing home_value re-validates down_payment (down payment cannot exceed the
home value).
"""

from typing import Any, Final, Mapping

from fincalc.core.domain.loan import PERIODS_PER_YEAR, LoanTerms, MortgageResult
from fincalc.core.math.amortization import amortize_loan
from fincalc.reactive.calculator import (
    CalculatorConfig,
    ReactiveCalculatorCore,
    UsageSink,
)
from fincalc.reactive.fields import FieldKind, FieldSpec
from fincalc.reactive.validation import (
    integer,
    less_or_equal_field,
    max_value,
    min_value,
    non_negative,
    required,
)

CALCULATOR_ID: Final[str] = "mortgage"

PMI_DOWN_PAYMENT_THRESHOLD_PCT: Final[float] = 20.0

MIN_HOME_VALUE: Final[float] = 50_000.0
MAX_HOME_VALUE: Final[float] = 50_000_000.0
MAX_INTEREST_RATE_PCT: Final[float] = 20.0
MAX_LOAN_TERM_YEARS: Final[int] = 50


FIELDS: Final[Mapping[str, FieldSpec]] = {
    "home_value": FieldSpec(FieldKind.NUMBER, 500_000.0, "Home value"),
    "down_payment": FieldSpec(FieldKind.NUMBER, 100_000.0, "Down payment"),
    "interest_rate": FieldSpec(FieldKind.PERCENT, 6.5, "Interest rate"),
    "loan_term_years": FieldSpec(FieldKind.INTEGER, 30, "Loan term"),
    "property_tax": FieldSpec(FieldKind.NUMBER, 8_000.0, "Annual property tax"),
    "home_insurance": FieldSpec(FieldKind.NUMBER, 1_200.0, "Annual home insurance"),
    "pmi": FieldSpec(FieldKind.NUMBER, 200.0, "Monthly PMI"),
    "extra_payment": FieldSpec(FieldKind.NUMBER, 0.0, "Extra monthly payment"),
}

RULES = {
    "home_value": [
        required(),
        min_value(MIN_HOME_VALUE),
        max_value(MAX_HOME_VALUE),
    ],
    "down_payment": [
        required(),
        non_negative(),
        less_or_equal_field("home_value", "Down payment cannot exceed home value"),
    ],
    "interest_rate": [
        required(),
        non_negative(),
        max_value(MAX_INTEREST_RATE_PCT),
    ],
    "loan_term_years": [
        required(),
        integer(),
        min_value(1),
        max_value(MAX_LOAN_TERM_YEARS),
    ],
    "property_tax": [non_negative()],
    "home_insurance": [non_negative()],
    "pmi": [non_negative()],
    "extra_payment": [non_negative()],
}

DEPENDENCIES = {
    "home_value": ["down_payment"],
}


def calculate_mortgage(values: Mapping[str, Any]) -> MortgageResult:
    """
    Compute function of the mortgage calculator.

    Args:
        values: Parsed, validated field values

    Returns:
        MortgageResult
    """
    home_value = values["home_value"]
    down_payment = values["down_payment"]
    loan_amount = home_value - down_payment

    terms = LoanTerms(
        principal=loan_amount,
        annual_rate_pct=values["interest_rate"],
        term_periods=values["loan_term_years"] * PERIODS_PER_YEAR,
        extra_payment=values.get("extra_payment") or 0.0,
    )
    amortization = amortize_loan(terms)

    down_payment_pct = down_payment / home_value * 100.0
    monthly_tax = (values.get("property_tax") or 0.0) / PERIODS_PER_YEAR
    monthly_insurance = (values.get("home_insurance") or 0.0) / PERIODS_PER_YEAR
    needs_pmi = down_payment_pct < PMI_DOWN_PAYMENT_THRESHOLD_PCT and loan_amount > 0
    monthly_pmi = (values.get("pmi") or 0.0) if needs_pmi else 0.0

    total_monthly = amortization.periodic_payment + monthly_tax + monthly_insurance + monthly_pmi
    escrow_per_month = monthly_tax + monthly_insurance + monthly_pmi

    return MortgageResult(
        loan_amount=loan_amount,
        down_payment_pct=down_payment_pct,
        loan_to_value_pct=loan_amount / home_value * 100.0,
        monthly_principal_and_interest=amortization.periodic_payment,
        monthly_property_tax=monthly_tax,
        monthly_insurance=monthly_insurance,
        monthly_pmi=monthly_pmi,
        total_monthly_payment=total_monthly,
        total_interest=amortization.total_interest,
        total_cost=amortization.total_paid + escrow_per_month * amortization.payoff_period,
        amortization=amortization,
    )


def create_loan_calculator(
    usage_sink: UsageSink | None = None,
    config: CalculatorConfig | None = None,
) -> ReactiveCalculatorCore[MortgageResult]:
    """Mortgage calculator with the default form values."""
    return ReactiveCalculatorCore(
        calculator_id=CALCULATOR_ID,
        fields=FIELDS,
        compute=calculate_mortgage,
        rules=RULES,
        dependencies=DEPENDENCIES,
        usage_sink=usage_sink,
        config=config,
    )
