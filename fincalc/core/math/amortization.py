"""
Amortization — level-payment loan schedules

Payment:
    r == 0:  payment = P / n                      (no compound formula, no 0/0)
    r  > 0:  i = r / 100 / 12
             payment = P * i * (1+i)^n / ((1+i)^n - 1)

Schedule (periods 1..n, single pass, no recursion):
    interest_k  = balance_{k-1} * i
    principal_k = min(payment + extra - interest_k, balance_{k-1})
    balance_k   = balance_{k-1} - principal_k

INVARIANTS:
1. remaining_balance is non-increasing and exactly 0 at the last entry
2. sum(principal_portion) == P within one cent
3. O(n) for n up to MAX_TERM_PERIODS
"""

import logging

from fincalc.core.domain.loan import (
    MAX_TERM_PERIODS,
    PERIODS_PER_YEAR,
    AmortizationEntry,
    AmortizationResult,
    LoanTerms,
)
from fincalc.core.math.numerical_safeguards import (
    EPS_MONEY,
    validate_in_range,
    validate_non_negative,
)

LOGGER = logging.getLogger(__name__)


# =============================================================================
# PAYMENT
# =============================================================================


def calculate_periodic_payment(principal: float, annual_rate_pct: float, term_periods: int) -> float:
    """
    Level monthly payment that retires principal in term_periods payments.

    Args:
        principal: Amount borrowed (>= 0)
        annual_rate_pct: Nominal annual rate in percent (>= 0)
        term_periods: Number of monthly payments (>= 1)

    Returns:
        Periodic payment

    Raises:
        ValueError: On negative amounts or a term outside [1, MAX_TERM_PERIODS]

    Examples:
        >>> calculate_periodic_payment(12000, 0, 12)
        1000.0
        >>> round(calculate_periodic_payment(200000, 6, 360), 2)
        1199.1
    """
    _validate_inputs(principal, annual_rate_pct, term_periods)

    if annual_rate_pct == 0:
        return principal / term_periods

    i = annual_rate_pct / 100.0 / PERIODS_PER_YEAR
    growth = (1.0 + i) ** term_periods
    return principal * i * growth / (growth - 1.0)


# =============================================================================
# SCHEDULE
# =============================================================================


def generate_amortization_schedule(
    principal: float,
    annual_rate_pct: float,
    term_periods: int,
    extra_payment: float = 0.0,
) -> list[AmortizationEntry]:
    """
    Period-by-period schedule.

    With extra_payment > 0 the loan is retired early and the schedule stops at
    the period the balance reaches zero. The closing period pays exactly the
    remaining balance so float residue never leaves a phantom balance.

    Args:
        principal: Amount borrowed
        annual_rate_pct: Nominal annual rate in percent
        term_periods: Number of scheduled monthly payments
        extra_payment: Additional principal paid each period

    Returns:
        One AmortizationEntry per paid period
    """
    _validate_inputs(principal, annual_rate_pct, term_periods)
    validate_non_negative(extra_payment, "extra_payment")

    payment = calculate_periodic_payment(principal, annual_rate_pct, term_periods)
    i = annual_rate_pct / 100.0 / PERIODS_PER_YEAR

    schedule: list[AmortizationEntry] = []
    balance = principal
    cumulative_interest = 0.0

    for period in range(1, term_periods + 1):
        interest = balance * i
        principal_portion = payment + extra_payment - interest

        is_last = period == term_periods
        if is_last or principal_portion >= balance - EPS_MONEY:
            # Closing period: absorb rounding residue
            principal_portion = balance
            is_last = True

        principal_portion = max(principal_portion, 0.0)
        balance = 0.0 if is_last else balance - principal_portion
        cumulative_interest += interest

        schedule.append(
            AmortizationEntry(
                period=period,
                payment=principal_portion + interest,
                principal_portion=principal_portion,
                interest_portion=interest,
                remaining_balance=balance,
                cumulative_interest=cumulative_interest,
            )
        )

        if is_last:
            break

    return schedule


def amortize_loan(terms: LoanTerms) -> AmortizationResult:
    """
    Payment, totals and schedule for a loan.

    Args:
        terms: Validated loan terms

    Returns:
        AmortizationResult
    """
    payment = calculate_periodic_payment(
        terms.principal, terms.annual_rate_pct, terms.term_periods
    )
    schedule = generate_amortization_schedule(
        terms.principal,
        terms.annual_rate_pct,
        terms.term_periods,
        extra_payment=terms.extra_payment,
    )

    total_paid = sum(entry.payment for entry in schedule)
    total_interest = schedule[-1].cumulative_interest if schedule else 0.0

    LOGGER.debug(
        "Amortized %.2f at %.4f%% over %d periods: payment=%.2f payoff=%d",
        terms.principal,
        terms.annual_rate_pct,
        terms.term_periods,
        payment,
        len(schedule),
    )

    return AmortizationResult(
        periodic_payment=payment,
        number_of_payments=terms.term_periods,
        payoff_period=len(schedule),
        total_paid=total_paid,
        total_interest=total_interest,
        schedule=tuple(schedule),
    )


# =============================================================================
# INTERNALS
# =============================================================================


def _validate_inputs(principal: float, annual_rate_pct: float, term_periods: int) -> None:
    validate_non_negative(principal, "principal")
    validate_non_negative(annual_rate_pct, "annual_rate_pct")
    if isinstance(term_periods, bool) or not isinstance(term_periods, int):
        raise ValueError(f"term_periods must be an integer, got {term_periods!r}")
    validate_in_range(term_periods, "term_periods", 1, MAX_TERM_PERIODS)
