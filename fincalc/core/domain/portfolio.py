"""
Portfolio — holdings, correlation matrix and risk metrics

Immutable Pydantic models for the portfolio risk aggregator.
Shape of PortfolioMetrics is pinned by contracts/schema/portfolio_result.json.

Units: every *_pct field is a percentage (16.0 means 16%).
"""

from enum import Enum
from typing import Mapping

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class RebalanceAction(str, Enum):
    """Action needed to bring a holding back to its target allocation."""

    BUY = "Buy"
    SELL = "Sell"
    HOLD = "Hold"


class MetricStatus(str, Enum):
    """Rating bucket for a portfolio risk metric."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


# =============================================================================
# INPUT
# =============================================================================


class PortfolioHolding(BaseModel):
    """
    A single position.

    allocation_pct is accepted for round-tripping form data but never trusted:
    the aggregator always re-derives weights from market_value.
    """

    symbol: str = Field(..., min_length=1)
    name: str = ""
    market_value: float = Field(..., ge=0)
    expected_return_pct: float
    volatility_pct: float = Field(..., ge=0)
    beta: float
    allocation_pct: float | None = None

    model_config = {"frozen": True}


class CorrelationMatrix(BaseModel):
    """
    Symmetric symbol x symbol correlation lookup.

    Stored sparse as nested mappings. The diagonal is always 1 and a missing
    pair is 0 (treated as uncorrelated, not as a data error). A pair may be
    given in either orientation; giving both with different values is rejected.
    """

    entries: dict[str, dict[str, float]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("entries")
    @classmethod
    def validate_range(cls, v: dict[str, dict[str, float]]) -> dict[str, dict[str, float]]:
        for a, row in v.items():
            for b, rho in row.items():
                if not -1.0 <= rho <= 1.0:
                    raise ValueError(f"correlation {a}/{b} must be in [-1, 1], got {rho}")
                if a == b and rho != 1.0:
                    raise ValueError(f"diagonal correlation {a}/{a} must be 1, got {rho}")
        return v

    @model_validator(mode="after")
    def validate_symmetry(self) -> "CorrelationMatrix":
        for a, row in self.entries.items():
            for b, rho in row.items():
                mirrored = self.entries.get(b, {}).get(a)
                if mirrored is not None and abs(mirrored - rho) > 1e-12:
                    raise ValueError(
                        f"correlation matrix not symmetric: {a}/{b}={rho} but {b}/{a}={mirrored}"
                    )
        return self

    @classmethod
    def from_pairs(cls, pairs: Mapping[tuple[str, str], float]) -> "CorrelationMatrix":
        """Build from {(a, b): rho}."""
        entries: dict[str, dict[str, float]] = {}
        for (a, b), rho in pairs.items():
            entries.setdefault(a, {})[b] = rho
        return cls(entries=entries)

    def get(self, a: str, b: str) -> float:
        if a == b:
            return 1.0
        rho = self.entries.get(a, {}).get(b)
        if rho is None:
            rho = self.entries.get(b, {}).get(a, 0.0)
        return rho


class AnalysisParameters(BaseModel):
    """
    Market assumptions and rebalancing policy.

    target_allocations_pct maps symbol -> target %. A holding without a target
    is compared against its own current allocation and therefore always Holds.
    """

    risk_free_rate_pct: float = 4.5
    market_return_pct: float = 10.0
    time_horizon_months: int = Field(default=12, ge=1, le=600)
    rebalancing_threshold_pct: float = Field(default=5.0, ge=0, le=100)
    target_allocations_pct: dict[str, float] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("target_allocations_pct")
    @classmethod
    def validate_targets(cls, v: dict[str, float]) -> dict[str, float]:
        for symbol, target in v.items():
            if not 0.0 <= target <= 100.0:
                raise ValueError(f"target allocation for {symbol} must be in [0, 100], got {target}")
        return v


# =============================================================================
# OUTPUT
# =============================================================================


class AllocationSlice(BaseModel):
    symbol: str
    percentage: float = Field(..., ge=0)
    value: float = Field(..., ge=0)

    model_config = {"frozen": True}


class RiskMetric(BaseModel):
    """One rated row of the risk metric table."""

    metric: str
    value: float | None
    benchmark: str
    status: MetricStatus
    description: str

    model_config = {"frozen": True}


class RebalancingNeed(BaseModel):
    symbol: str
    current_pct: float = Field(..., ge=0)
    target_pct: float = Field(..., ge=0)
    action: RebalanceAction
    amount: float = Field(..., ge=0, description="Value to trade to reach target")

    model_config = {"frozen": True}


class PortfolioMetrics(BaseModel):
    """
    Full portfolio risk calculator output.

    Ratios are None when their denominator is zero (e.g. Sharpe of a
    zero-volatility portfolio). var_95 / var_99 are positive loss amounts.
    """

    total_value: float = Field(..., gt=0)
    expected_return_pct: float
    volatility_pct: float = Field(..., ge=0)
    weighted_average_volatility_pct: float = Field(..., ge=0)
    beta: float

    sharpe_ratio: float | None
    treynor_ratio: float | None
    sortino_ratio: float | None
    information_ratio: float
    diversification_ratio: float = Field(..., ge=0)

    var_95: float = Field(..., ge=0)
    var_99: float = Field(..., ge=0)
    max_drawdown_pct: float = Field(..., ge=0)

    allocations: tuple[AllocationSlice, ...]
    risk_metrics: tuple[RiskMetric, ...]
    rebalancing_needs: tuple[RebalancingNeed, ...]
    rebalancing_needed: bool
    recommendations: tuple[str, ...]
    risk_factors: tuple[str, ...]

    model_config = {"frozen": True}
