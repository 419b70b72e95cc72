"""
Loan — amortizing loan inputs and schedule records

Immutable Pydantic models consumed and produced by the amortization engine.
Shape of AmortizationResult is pinned by contracts/schema/loan_result.json.
"""

from typing import Final

from pydantic import BaseModel, Field


# =============================================================================
# CONSTANTS
# =============================================================================

# Longest supported term (50 years of monthly payments)
MAX_TERM_PERIODS: Final[int] = 600

PERIODS_PER_YEAR: Final[int] = 12


# =============================================================================
# INPUT
# =============================================================================


class LoanTerms(BaseModel):
    """
    Terms of an amortizing loan with monthly payments.

    Rates are percentages (6.5 means 6.5% per year).
    """

    principal: float = Field(..., ge=0, description="Amount borrowed")
    annual_rate_pct: float = Field(..., ge=0, description="Nominal annual rate (%)")
    term_periods: int = Field(
        ..., ge=1, le=MAX_TERM_PERIODS, description="Number of monthly payments"
    )
    extra_payment: float = Field(
        default=0.0, ge=0, description="Extra principal paid every period"
    )

    model_config = {"frozen": True}

    @property
    def periodic_rate(self) -> float:
        """Monthly rate as a fraction."""
        return self.annual_rate_pct / 100.0 / PERIODS_PER_YEAR


# =============================================================================
# OUTPUT
# =============================================================================


class AmortizationEntry(BaseModel):
    """One payment period of the schedule."""

    period: int = Field(..., ge=1)
    payment: float = Field(..., ge=0, description="Total paid this period")
    principal_portion: float = Field(..., ge=0)
    interest_portion: float = Field(..., ge=0)
    remaining_balance: float = Field(..., ge=0)
    cumulative_interest: float = Field(..., ge=0)

    model_config = {"frozen": True}


class AmortizationResult(BaseModel):
    """
    Periodic payment plus the full schedule.

    payoff_period equals term_periods unless extra payments retire the loan
    early, in which case the schedule stops at payoff_period.
    """

    periodic_payment: float = Field(..., ge=0, description="Scheduled payment, extras excluded")
    number_of_payments: int = Field(..., ge=1)
    payoff_period: int = Field(..., ge=0)
    total_paid: float = Field(..., ge=0)
    total_interest: float = Field(..., ge=0)
    schedule: tuple[AmortizationEntry, ...]

    model_config = {"frozen": True}

    @property
    def total_principal(self) -> float:
        return sum(entry.principal_portion for entry in self.schedule)


class MortgageResult(BaseModel):
    """Loan calculator output: amortization plus escrow items."""

    loan_amount: float = Field(..., ge=0)
    down_payment_pct: float
    loan_to_value_pct: float
    monthly_principal_and_interest: float = Field(..., ge=0)
    monthly_property_tax: float = Field(..., ge=0)
    monthly_insurance: float = Field(..., ge=0)
    monthly_pmi: float = Field(..., ge=0)
    total_monthly_payment: float = Field(..., ge=0)
    total_interest: float = Field(..., ge=0)
    total_cost: float = Field(..., ge=0)
    amortization: AmortizationResult

    model_config = {"frozen": True}
