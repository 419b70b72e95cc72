"""
Bond Yield — YTM via Newton-Raphson, duration and convexity

Notation (k = payments per year, N = periods to maturity, y = annual yield as
a fraction, r = y / k periodic rate):

    CF_t        = coupon for t = 1..N, plus face value at t = N
    price(y)    = sum CF_t * (1 + r)^-t
    price'(r)   = sum -t * CF_t * (1 + r)^-(t+1)
    y_{i+1}     = y_i - k * (price(y_i) - M) / price'(r_i)

    Macaulay    = sum (t / k) * PV_t / price                 (years)
    Modified    = Macaulay / (1 + r)
    Convexity   = sum t (t+1) CF_t / (1 + r)^(t+2) / (price * k^2)

The undiscounted cash flow sequence is built once per bond; price, derivative,
duration and convexity are all folded over that same sequence, so the reported
cash-flow present values sum to the price the solver matched.

Discount factors use negative exponents so deep-discount bonds (very high
yields over many periods) underflow towards zero instead of overflowing.
A Newton step that would put r at or below -100% is halved until the next
iterate is back inside the domain.

Iteration is capped (max_iterations). Failing to converge raises
YTMNonConvergence rather than returning the last iterate.
"""

import logging
import math
from dataclasses import dataclass
from typing import Final, NamedTuple

from fincalc.core.domain.bond import (
    BondAnalysis,
    BondCashFlow,
    BondRiskAnalysis,
    BondTerms,
    RiskLevel,
)
from fincalc.core.errors import YTMNonConvergence
from fincalc.core.math.numerical_safeguards import (
    EPS_CALC,
    is_valid_float,
    validate_positive,
)

LOGGER = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Stop when |price(y) - market price| is below this (price units)
YTM_PRICE_TOLERANCE: Final[float] = 1e-4

YTM_MAX_ITERATIONS: Final[int] = 100

# Yield within this many percentage points of the coupon rate counts as par
PAR_YIELD_TOLERANCE_PCT: Final[float] = 1e-4

# Modified duration thresholds for interest-rate-risk buckets
DURATION_LOW_MAX: Final[float] = 3.0
DURATION_MODERATE_MAX: Final[float] = 7.0

# Yield shift used for the price sensitivity estimate (1%)
PRICE_SENSITIVITY_YIELD_SHIFT: Final[float] = 0.01


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class YTMSolverConfig:
    """Newton-Raphson parameters."""

    tolerance: float = YTM_PRICE_TOLERANCE
    max_iterations: int = YTM_MAX_ITERATIONS


# =============================================================================
# TYPES
# =============================================================================


class ScheduledFlow(NamedTuple):
    """Undiscounted cash flow at period t."""

    period: int
    coupon: float
    principal: float

    @property
    def amount(self) -> float:
        return self.coupon + self.principal


class PriceSensitivities(NamedTuple):
    price: float
    macaulay_duration: float
    modified_duration: float
    convexity: float


@dataclass(frozen=True)
class YieldSolution:
    """Converged solver output."""

    ytm_pct: float
    iterations: int
    price_error: float


# =============================================================================
# CASH FLOWS
# =============================================================================


def build_cash_flow_schedule(terms: BondTerms) -> list[ScheduledFlow]:
    """
    Coupon flows for periods 1..N; the last one also carries face value.

    Examples:
        >>> flows = build_cash_flow_schedule(BondTerms(
        ...     face_value=1000, coupon_rate_pct=5, market_price=1000,
        ...     years_to_maturity=1, frequency="semi-annual"))
        >>> [(f.period, f.coupon, f.principal) for f in flows]
        [(1, 25.0, 0.0), (2, 25.0, 1000.0)]
    """
    n = terms.total_periods
    coupon = terms.coupon_per_period
    return [
        ScheduledFlow(period=t, coupon=coupon, principal=terms.face_value if t == n else 0.0)
        for t in range(1, n + 1)
    ]


def price_at_yield(flows: list[ScheduledFlow], ytm: float, payments_per_year: int) -> float:
    """
    Present value of flows at annual yield ytm (fraction).

    Raises:
        ValueError: If the periodic rate is <= -100%
    """
    r = _periodic_rate(ytm, payments_per_year)
    return sum(flow.amount * _discount(r, flow.period) for flow in flows)


def price_derivative(flows: list[ScheduledFlow], ytm: float, payments_per_year: int) -> float:
    """d price / d r, where r is the periodic rate."""
    r = _periodic_rate(ytm, payments_per_year)
    return sum(-flow.period * flow.amount * _discount(r, flow.period + 1) for flow in flows)


# =============================================================================
# SOLVER
# =============================================================================


def solve_yield_to_maturity(
    terms: BondTerms,
    config: YTMSolverConfig | None = None,
    flows: list[ScheduledFlow] | None = None,
) -> YieldSolution:
    """
    Newton-Raphson YTM starting from the coupon rate.

    Args:
        terms: Bond terms
        config: Solver tolerance / iteration cap
        flows: Pre-built cash flow schedule (built from terms if omitted)

    Returns:
        YieldSolution with the yield in percent

    Raises:
        YTMNonConvergence: Iteration cap reached, or pricing failed at the
            iterate (overflow near r = -100%, zero derivative, NaN/Inf)
    """
    config = config or YTMSolverConfig()
    flows = flows if flows is not None else build_cash_flow_schedule(terms)
    k = terms.payments_per_year
    target = terms.market_price

    ytm = terms.coupon_rate_pct / 100.0
    diff = math.inf

    for iteration in range(config.max_iterations):
        try:
            price = price_at_yield(flows, ytm, k)
            derivative = price_derivative(flows, ytm, k)
        except (ValueError, OverflowError, ZeroDivisionError) as exc:
            raise _non_convergence(f"yield left the solver domain: {exc}", iteration, ytm, diff)

        diff = price - target
        if not is_valid_float(diff):
            raise _non_convergence("price became non-finite", iteration, ytm, diff)

        if abs(diff) < config.tolerance:
            LOGGER.debug("YTM converged to %.6f%% in %d iterations", ytm * 100, iteration)
            return YieldSolution(ytm_pct=ytm * 100.0, iterations=iteration, price_error=diff)

        if not is_valid_float(derivative) or abs(derivative) < EPS_CALC:
            raise _non_convergence("price derivative vanished", iteration, ytm, diff)

        step = k * diff / derivative
        if not is_valid_float(step):
            raise _non_convergence("Newton step became non-finite", iteration + 1, ytm, diff)

        # Halve until the next periodic rate is above -100%
        while (ytm - step) / k <= -1.0:
            step /= 2.0
        ytm -= step

    raise _non_convergence(
        f"no convergence within {config.max_iterations} iterations",
        config.max_iterations,
        ytm,
        diff,
    )


# =============================================================================
# DURATION / CONVEXITY
# =============================================================================


def calculate_sensitivities(
    flows: list[ScheduledFlow], ytm: float, payments_per_year: int
) -> PriceSensitivities:
    """
    Price, Macaulay/modified duration and convexity in one pass over flows.

    Args:
        flows: Cash flow schedule
        ytm: Annual yield (fraction)
        payments_per_year: k

    Returns:
        PriceSensitivities (durations in years)
    """
    k = payments_per_year
    r = _periodic_rate(ytm, k)

    price = 0.0
    weighted_time = 0.0
    convexity_sum = 0.0
    for flow in flows:
        pv = flow.amount * _discount(r, flow.period)
        price += pv
        weighted_time += (flow.period / k) * pv
        convexity_sum += flow.period * (flow.period + 1) * pv * _discount(r, 2)

    validate_positive(price, "price")

    macaulay = weighted_time / price
    return PriceSensitivities(
        price=price,
        macaulay_duration=macaulay,
        modified_duration=macaulay / (1.0 + r),
        convexity=convexity_sum / (price * k * k),
    )


def classify_interest_rate_risk(modified_duration: float) -> RiskLevel:
    """
    Examples:
        >>> classify_interest_rate_risk(2.9).value
        'low'
        >>> classify_interest_rate_risk(3.0).value
        'moderate'
        >>> classify_interest_rate_risk(7.0).value
        'high'
    """
    if modified_duration < DURATION_LOW_MAX:
        return RiskLevel.LOW
    if modified_duration < DURATION_MODERATE_MAX:
        return RiskLevel.MODERATE
    return RiskLevel.HIGH


def classify_reinvestment_risk(coupon_rate_pct: float, years_to_maturity: float) -> RiskLevel:
    """Low coupons or short maturities leave little to reinvest."""
    if coupon_rate_pct < 3 or years_to_maturity < 2:
        return RiskLevel.LOW
    if coupon_rate_pct > 7 or years_to_maturity > 10:
        return RiskLevel.HIGH
    return RiskLevel.MODERATE


def estimate_price_change(modified_duration: float, convexity: float, yield_shift: float) -> float:
    """Duration-convexity price change (fraction) for a yield move of yield_shift."""
    return -modified_duration * yield_shift + 0.5 * convexity * yield_shift**2


# =============================================================================
# ANALYSIS
# =============================================================================


def analyze_bond(terms: BondTerms, config: YTMSolverConfig | None = None) -> BondAnalysis:
    """
    Solve YTM and derive every bond metric from one cash flow schedule.

    Raises:
        YTMNonConvergence: If the solver finds no yield
    """
    flows = build_cash_flow_schedule(terms)
    k = terms.payments_per_year

    solution = solve_yield_to_maturity(terms, config, flows=flows)
    ytm = solution.ytm_pct / 100.0
    r = _periodic_rate(ytm, k)

    sensitivities = calculate_sensitivities(flows, ytm, k)

    cash_flows = tuple(
        BondCashFlow(
            period_index=flow.period,
            time_years=flow.period / k,
            amount=flow.amount,
            coupon_amount=flow.coupon,
            principal_amount=flow.principal,
            present_value=flow.amount * _discount(r, flow.period),
        )
        for flow in flows
    )

    interest_rate_risk = classify_interest_rate_risk(sensitivities.modified_duration)
    reinvestment_risk = classify_reinvestment_risk(terms.coupon_rate_pct, terms.years_to_maturity)

    annual_coupon = terms.coupon_per_period * k
    current_yield_pct = annual_coupon / terms.market_price * 100.0
    price_return_pct = (terms.face_value - terms.market_price) / terms.market_price * 100.0
    total_return_pct = terms.coupon_rate_pct + price_return_pct / terms.years_to_maturity
    total_cash_flows = sum(flow.amount for flow in flows)
    # Every coupon plus face value against the price paid, held to maturity
    holding_period_return_pct = (
        (total_cash_flows - terms.market_price) / terms.market_price * 100.0
    )

    price_change_pct = 100.0 * estimate_price_change(
        sensitivities.modified_duration,
        sensitivities.convexity,
        PRICE_SENSITIVITY_YIELD_SHIFT,
    )

    recommendations, risk_analysis = _build_analysis(
        terms,
        ytm_pct=solution.ytm_pct,
        current_yield_pct=current_yield_pct,
        interest_rate_risk=interest_rate_risk,
        reinvestment_risk=reinvestment_risk,
    )

    return BondAnalysis(
        yield_to_maturity_pct=solution.ytm_pct,
        macaulay_duration=sensitivities.macaulay_duration,
        modified_duration=sensitivities.modified_duration,
        convexity=sensitivities.convexity,
        solver_iterations=solution.iterations,
        present_value=sensitivities.price,
        total_cash_flows=total_cash_flows,
        cash_flows=cash_flows,
        price_change_for_1pct_yield_change_pct=price_change_pct,
        interest_rate_risk=interest_rate_risk,
        reinvestment_risk=reinvestment_risk,
        current_yield_pct=current_yield_pct,
        total_return_pct=total_return_pct,
        holding_period_return_pct=holding_period_return_pct,
        recommendations=tuple(recommendations),
        risk_analysis=risk_analysis,
    )


# =============================================================================
# INTERNALS
# =============================================================================


def _periodic_rate(ytm: float, payments_per_year: int) -> float:
    r = ytm / payments_per_year
    if r <= -1.0:
        raise ValueError(f"periodic rate must be > -100%, got {r:.6f}")
    return r


def _discount(r: float, periods: int) -> float:
    """(1 + r)^-periods; underflows to 0.0 for large periods instead of overflowing."""
    return (1.0 + r) ** -periods


def _non_convergence(reason: str, iterations: int, ytm: float, diff: float) -> YTMNonConvergence:
    LOGGER.debug("YTM solver failed after %d iterations: %s", iterations, reason)
    return YTMNonConvergence(
        f"YTM solver did not converge: {reason}",
        iterations=iterations,
        last_yield_pct=ytm * 100.0,
        price_error=diff,
    )


def _build_analysis(
    terms: BondTerms,
    ytm_pct: float,
    current_yield_pct: float,
    interest_rate_risk: RiskLevel,
    reinvestment_risk: RiskLevel,
) -> tuple[list[str], BondRiskAnalysis]:
    recommendations: list[str] = []
    rate_note = ""
    credit_note = ""
    reinvestment_note = ""

    if ytm_pct > terms.coupon_rate_pct + PAR_YIELD_TOLERANCE_PCT:
        recommendations.append(
            "Bond is trading at a discount, suggesting potential capital appreciation."
        )
    elif ytm_pct < terms.coupon_rate_pct - PAR_YIELD_TOLERANCE_PCT:
        recommendations.append("Bond is trading at a premium, consider reinvestment risk.")

    if interest_rate_risk is RiskLevel.HIGH:
        recommendations.append("Consider shorter duration bonds to reduce interest rate risk.")
        rate_note = "High sensitivity to interest rate changes."
    elif interest_rate_risk is RiskLevel.LOW:
        recommendations.append("Bond offers good protection against interest rate changes.")
        rate_note = "Low sensitivity to interest rate changes."

    if current_yield_pct > terms.coupon_rate_pct + 2:
        recommendations.append("High current yield suggests attractive income opportunity.")

    if terms.years_to_maturity > 10:
        recommendations.append("Long maturity increases both risk and potential return.")
        credit_note = "Extended exposure to credit risk due to long maturity."
    elif terms.years_to_maturity < 3:
        recommendations.append("Short maturity reduces risk but may limit return potential.")
        credit_note = "Limited exposure to credit risk due to short maturity."

    if reinvestment_risk is RiskLevel.HIGH:
        recommendations.append(
            "High coupon rate increases reinvestment risk in falling rate environment."
        )
        reinvestment_note = "Significant exposure to reinvestment risk."
    elif reinvestment_risk is RiskLevel.LOW:
        recommendations.append("Low reinvestment risk due to modest coupon rate.")
        reinvestment_note = "Limited exposure to reinvestment risk."

    return recommendations, BondRiskAnalysis(
        interest_rate_risk=rate_note,
        credit_risk=credit_note,
        reinvestment_risk=reinvestment_note,
    )
