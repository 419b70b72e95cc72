"""
Bond — fixed-coupon bond inputs, cash flows and analytics

Immutable Pydantic models for the YTM solver.
Shape of BondAnalysis is pinned by contracts/schema/bond_result.json.
"""

from enum import Enum

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class PaymentFrequency(str, Enum):
    """Coupon payment frequency."""

    ANNUAL = "annual"
    SEMI_ANNUAL = "semi-annual"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"

    @property
    def payments_per_year(self) -> int:
        return _PAYMENTS_PER_YEAR[self]


_PAYMENTS_PER_YEAR: dict[PaymentFrequency, int] = {
    PaymentFrequency.ANNUAL: 1,
    PaymentFrequency.SEMI_ANNUAL: 2,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.MONTHLY: 12,
}


class RiskLevel(str, Enum):
    """Three-bucket risk classification."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


# =============================================================================
# INPUT
# =============================================================================


class BondTerms(BaseModel):
    """
    Plain-vanilla bond priced on a coupon date.

    coupon_rate_pct is the annual coupon as a percentage of face value.
    """

    face_value: float = Field(..., gt=0)
    coupon_rate_pct: float = Field(..., ge=0, le=100)
    market_price: float = Field(..., gt=0)
    years_to_maturity: float = Field(..., gt=0, le=100)
    frequency: PaymentFrequency = Field(default=PaymentFrequency.SEMI_ANNUAL)

    model_config = {"frozen": True}

    @property
    def payments_per_year(self) -> int:
        return self.frequency.payments_per_year

    @property
    def total_periods(self) -> int:
        """Coupon periods to maturity, rounded to the nearest whole period."""
        return max(1, round(self.years_to_maturity * self.payments_per_year))

    @property
    def coupon_per_period(self) -> float:
        return self.face_value * self.coupon_rate_pct / 100.0 / self.payments_per_year


# =============================================================================
# OUTPUT
# =============================================================================


class BondCashFlow(BaseModel):
    """
    A single scheduled payment.

    Coupon flows carry coupon_amount; the terminal flow at maturity carries the
    face value in principal_amount. present_value is discounted at the solved YTM.
    """

    period_index: int = Field(..., ge=1)
    time_years: float = Field(..., gt=0)
    amount: float = Field(..., ge=0)
    coupon_amount: float = Field(..., ge=0)
    principal_amount: float = Field(..., ge=0)
    present_value: float = Field(..., ge=0)

    model_config = {"frozen": True}


class BondRiskAnalysis(BaseModel):
    """Narrative risk notes (empty string when nothing notable)."""

    interest_rate_risk: str = ""
    credit_risk: str = ""
    reinvestment_risk: str = ""

    model_config = {"frozen": True}


class BondAnalysis(BaseModel):
    """Full bond calculator output."""

    # Core metrics
    yield_to_maturity_pct: float
    macaulay_duration: float = Field(..., ge=0, description="Years")
    modified_duration: float = Field(..., ge=0, description="Years")
    convexity: float = Field(..., ge=0)
    solver_iterations: int = Field(..., ge=0)

    # Cash flows
    present_value: float = Field(..., gt=0)
    total_cash_flows: float = Field(..., ge=0)
    cash_flows: tuple[BondCashFlow, ...]

    # Risk
    price_change_for_1pct_yield_change_pct: float
    interest_rate_risk: RiskLevel
    reinvestment_risk: RiskLevel

    # Performance
    current_yield_pct: float = Field(..., ge=0)
    total_return_pct: float
    holding_period_return_pct: float = Field(..., ge=-100, description="Held to maturity")

    # Analysis
    recommendations: tuple[str, ...] = ()
    risk_analysis: BondRiskAnalysis = Field(default_factory=BondRiskAnalysis)

    model_config = {"frozen": True}
