"""
Portfolio Risk — variance-covariance aggregation

Steps (all pure, no state carried between calls):
1. Weights      w_i = MV_i / sum(MV)          (caller allocations ignored)
2. Return, beta weighted sums
3. Variance     sum_i sum_j w_i w_j s_i s_j rho_ij   (s as fractions)
                volatility = sqrt(variance) * 100
4. Ratios       Sharpe   = (R - rf) / vol
                Treynor  = (R - rf) / beta
                Sortino  = (R - rf) / (vol * DOWNSIDE_DEVIATION_FACTOR)
                Info     = (R - Rm) / |vol - MARKET_VOLATILITY_PCT|
                DivRatio = sum(w s) / vol      (>= 1 for any rho in [-1, 1])
5. Tail risk    parametric VaR: normal-distribution approximation with fixed
                z-scores, linear horizon scaling (months / 12). Not a
                simulation; fat tails are not modelled.
6. Rebalancing  Buy / Sell / Hold against target allocation +- threshold

Missing correlation pairs are 0, the diagonal is 1.
"""

import logging
import math
from dataclasses import dataclass
from typing import Final, Sequence

from fincalc.core.domain.portfolio import (
    AllocationSlice,
    AnalysisParameters,
    CorrelationMatrix,
    MetricStatus,
    PortfolioHolding,
    PortfolioMetrics,
    RebalanceAction,
    RebalancingNeed,
    RiskMetric,
)
from fincalc.core.errors import PortfolioDomainError
from fincalc.core.math.numerical_safeguards import (
    EPS_CALC,
    EPS_FLOAT_COMPARE_REL,
    is_zero,
    safe_divide,
)

LOGGER = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

Z_SCORE_95: Final[float] = 1.645
Z_SCORE_99: Final[float] = 2.326

# Max drawdown estimate as a multiple of volatility
MAX_DRAWDOWN_FACTOR: Final[float] = 2.5

# Downside deviation proxy as a fraction of volatility
DOWNSIDE_DEVIATION_FACTOR: Final[float] = 0.7

# Assumed market volatility for the tracking-error proxy (%)
MARKET_VOLATILITY_PCT: Final[float] = 16.0

# Negative variance smaller than this is float noise from rho ~ -1
VARIANCE_NOISE_FLOOR: Final[float] = 1e-12


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class RatingThresholds:
    """Descending thresholds: value > excellent → EXCELLENT, > good → GOOD, > fair → FAIR."""

    excellent: float
    good: float
    fair: float


@dataclass(frozen=True)
class PortfolioRiskConfig:
    """Model constants and rating tables."""

    z_score_95: float = Z_SCORE_95
    z_score_99: float = Z_SCORE_99
    max_drawdown_factor: float = MAX_DRAWDOWN_FACTOR
    downside_deviation_factor: float = DOWNSIDE_DEVIATION_FACTOR
    market_volatility_pct: float = MARKET_VOLATILITY_PCT

    sharpe: RatingThresholds = RatingThresholds(excellent=1.5, good=1.0, fair=0.5)
    diversification: RatingThresholds = RatingThresholds(excellent=1.4, good=1.2, fair=1.0)
    treynor: RatingThresholds = RatingThresholds(excellent=0.15, good=0.1, fair=0.05)

    # Lower is better: value < excellent → EXCELLENT, ...
    volatility_pct: RatingThresholds = RatingThresholds(excellent=10.0, good=15.0, fair=20.0)
    max_drawdown_pct: RatingThresholds = RatingThresholds(excellent=15.0, good=20.0, fair=30.0)

    # Beta bands: [good_min, good_max] → GOOD, [fair_min, fair_max] → FAIR
    beta_good: tuple[float, float] = (0.8, 1.2)
    beta_fair: tuple[float, float] = (0.6, 1.4)


# =============================================================================
# STEPS
# =============================================================================


def normalize_weights(holdings: Sequence[PortfolioHolding]) -> tuple[float, list[float]]:
    """
    Weights from market value.

    Returns:
        (total_value, weights) with weights summing to 1

    Raises:
        PortfolioDomainError: No holdings or non-positive total value
    """
    if not holdings:
        raise PortfolioDomainError("portfolio has no holdings")

    total_value = sum(h.market_value for h in holdings)
    if total_value <= EPS_CALC:
        raise PortfolioDomainError(f"total portfolio value must be positive, got {total_value}")

    return total_value, [h.market_value / total_value for h in holdings]


def portfolio_variance(
    holdings: Sequence[PortfolioHolding],
    weights: Sequence[float],
    correlations: CorrelationMatrix,
) -> float:
    """
    Double sum over holding pairs, volatility as fractions.

    Raises:
        PortfolioDomainError: Variance meaningfully negative (matrix not PSD)
    """
    variance = 0.0
    for hi, wi in zip(holdings, weights):
        si = hi.volatility_pct / 100.0
        for hj, wj in zip(holdings, weights):
            sj = hj.volatility_pct / 100.0
            variance += wi * wj * si * sj * correlations.get(hi.symbol, hj.symbol)

    if variance < 0:
        if variance < -VARIANCE_NOISE_FLOOR:
            raise PortfolioDomainError(
                f"negative portfolio variance {variance:.3e}: correlation matrix is not "
                f"positive semi-definite"
            )
        variance = 0.0
    return variance


def parametric_var(
    total_value: float,
    expected_return_pct: float,
    volatility_pct: float,
    z_score: float,
    time_horizon_months: int,
) -> float:
    """
    Normal-approximation Value at Risk as a positive loss amount.

    loss = total * (z * vol - R) / 100 * (months / 12), floored at 0.

    Examples:
        >>> round(parametric_var(100000, 8.0, 10.0, 1.645, 12), 2)
        8450.0
    """
    loss_fraction = (z_score * volatility_pct - expected_return_pct) / 100.0
    return max(0.0, total_value * loss_fraction * (time_horizon_months / 12.0))


def analyze_rebalancing(
    holdings: Sequence[PortfolioHolding],
    weights: Sequence[float],
    total_value: float,
    parameters: AnalysisParameters,
) -> list[RebalancingNeed]:
    """
    Compare derived allocations to targets.

    Current > target + threshold → Sell, current < target - threshold → Buy,
    else Hold. Amount is the value traded to land exactly on target.
    """
    threshold = parameters.rebalancing_threshold_pct
    needs: list[RebalancingNeed] = []

    for holding, weight in zip(holdings, weights):
        current = weight * 100.0
        target = parameters.target_allocations_pct.get(holding.symbol, current)

        if current > target + threshold:
            action = RebalanceAction.SELL
        elif current < target - threshold:
            action = RebalanceAction.BUY
        else:
            action = RebalanceAction.HOLD

        target_value = target / 100.0 * total_value
        needs.append(
            RebalancingNeed(
                symbol=holding.symbol,
                current_pct=current,
                target_pct=target,
                action=action,
                amount=abs(target_value - holding.market_value),
            )
        )

    return needs


# =============================================================================
# AGGREGATE
# =============================================================================


def analyze_portfolio(
    holdings: Sequence[PortfolioHolding],
    correlations: CorrelationMatrix | None = None,
    parameters: AnalysisParameters | None = None,
    config: PortfolioRiskConfig | None = None,
) -> PortfolioMetrics:
    """
    Full risk aggregation.

    Args:
        holdings: Positions (allocation_pct ignored)
        correlations: Pairwise correlations (empty → uncorrelated)
        parameters: Market assumptions and rebalancing policy
        config: Model constants

    Returns:
        PortfolioMetrics

    Raises:
        PortfolioDomainError: Degenerate inputs (no value, non-PSD matrix)
    """
    correlations = correlations or CorrelationMatrix()
    parameters = parameters or AnalysisParameters()
    config = config or PortfolioRiskConfig()

    # 1. Weights
    total_value, weights = normalize_weights(holdings)

    # 2. Weighted sums
    expected_return = sum(w * h.expected_return_pct for h, w in zip(holdings, weights))
    beta = sum(w * h.beta for h, w in zip(holdings, weights))
    weighted_avg_vol = sum(w * h.volatility_pct for h, w in zip(holdings, weights))

    # 3. Volatility
    volatility = math.sqrt(portfolio_variance(holdings, weights, correlations)) * 100.0

    # 4. Ratios
    excess_return = expected_return - parameters.risk_free_rate_pct
    sharpe = safe_divide(excess_return, volatility, fallback=None)
    treynor = safe_divide(excess_return, beta, fallback=None)
    sortino = safe_divide(excess_return, volatility * config.downside_deviation_factor, fallback=None)

    tracking_error = abs(volatility - config.market_volatility_pct)
    if is_zero(tracking_error, tol=EPS_FLOAT_COMPARE_REL):
        tracking_error = 1.0
    information_ratio = (expected_return - parameters.market_return_pct) / tracking_error

    if volatility < EPS_CALC and weighted_avg_vol < EPS_CALC:
        diversification = 1.0
    else:
        # Volatility can only reach zero here through perfect hedging
        diversification = safe_divide(weighted_avg_vol, volatility, fallback=math.inf)
        if not math.isfinite(diversification):
            raise PortfolioDomainError("portfolio volatility is zero for risky holdings")

    # 5. Tail risk
    var_95 = parametric_var(
        total_value, expected_return, volatility, config.z_score_95, parameters.time_horizon_months
    )
    var_99 = parametric_var(
        total_value, expected_return, volatility, config.z_score_99, parameters.time_horizon_months
    )
    max_drawdown = volatility * config.max_drawdown_factor

    # 6. Rebalancing
    rebalancing = analyze_rebalancing(holdings, weights, total_value, parameters)

    allocations = tuple(
        AllocationSlice(symbol=h.symbol, percentage=w * 100.0, value=h.market_value)
        for h, w in zip(holdings, weights)
    )

    risk_metrics = _rate_metrics(
        config, sharpe, beta, volatility, diversification, max_drawdown, treynor
    )
    recommendations, risk_factors = _build_recommendations(
        sharpe=sharpe,
        volatility=volatility,
        diversification=diversification,
        beta=beta,
        expected_return=expected_return,
        risk_free_rate=parameters.risk_free_rate_pct,
        rebalancing=rebalancing,
        weights=weights,
    )

    LOGGER.debug(
        "Portfolio of %d holdings: return=%.3f%% vol=%.3f%% div=%.3f",
        len(holdings),
        expected_return,
        volatility,
        diversification,
    )

    return PortfolioMetrics(
        total_value=total_value,
        expected_return_pct=expected_return,
        volatility_pct=volatility,
        weighted_average_volatility_pct=weighted_avg_vol,
        beta=beta,
        sharpe_ratio=sharpe,
        treynor_ratio=treynor,
        sortino_ratio=sortino,
        information_ratio=information_ratio,
        diversification_ratio=diversification,
        var_95=var_95,
        var_99=var_99,
        max_drawdown_pct=max_drawdown,
        allocations=allocations,
        risk_metrics=risk_metrics,
        rebalancing_needs=tuple(rebalancing),
        rebalancing_needed=any(n.action is not RebalanceAction.HOLD for n in rebalancing),
        recommendations=tuple(recommendations),
        risk_factors=tuple(risk_factors),
    )


# =============================================================================
# RATINGS
# =============================================================================


def rate_higher_is_better(value: float | None, thresholds: RatingThresholds) -> MetricStatus:
    if value is None:
        return MetricStatus.POOR
    if value > thresholds.excellent:
        return MetricStatus.EXCELLENT
    if value > thresholds.good:
        return MetricStatus.GOOD
    if value > thresholds.fair:
        return MetricStatus.FAIR
    return MetricStatus.POOR


def rate_lower_is_better(value: float, thresholds: RatingThresholds) -> MetricStatus:
    if value < thresholds.excellent:
        return MetricStatus.EXCELLENT
    if value < thresholds.good:
        return MetricStatus.GOOD
    if value < thresholds.fair:
        return MetricStatus.FAIR
    return MetricStatus.POOR


def rate_beta(beta: float, config: PortfolioRiskConfig) -> MetricStatus:
    if config.beta_good[0] <= beta <= config.beta_good[1]:
        return MetricStatus.GOOD
    if config.beta_fair[0] <= beta <= config.beta_fair[1]:
        return MetricStatus.FAIR
    return MetricStatus.POOR


def _rate_metrics(
    config: PortfolioRiskConfig,
    sharpe: float | None,
    beta: float,
    volatility: float,
    diversification: float,
    max_drawdown: float,
    treynor: float | None,
) -> tuple[RiskMetric, ...]:
    return (
        RiskMetric(
            metric="Sharpe Ratio",
            value=sharpe,
            benchmark="> 1.0",
            status=rate_higher_is_better(sharpe, config.sharpe),
            description="Risk-adjusted return per unit of volatility",
        ),
        RiskMetric(
            metric="Portfolio Beta",
            value=beta,
            benchmark="0.8 - 1.2",
            status=rate_beta(beta, config),
            description="Sensitivity to market movements",
        ),
        RiskMetric(
            metric="Volatility",
            value=volatility,
            benchmark="< 15%",
            status=rate_lower_is_better(volatility, config.volatility_pct),
            description="Portfolio price fluctuation risk",
        ),
        RiskMetric(
            metric="Diversification Ratio",
            value=diversification,
            benchmark="> 1.2",
            status=rate_higher_is_better(diversification, config.diversification),
            description="Effectiveness of diversification",
        ),
        RiskMetric(
            metric="Max Drawdown",
            value=max_drawdown,
            benchmark="< 20%",
            status=rate_lower_is_better(max_drawdown, config.max_drawdown_pct),
            description="Potential peak-to-trough decline",
        ),
        RiskMetric(
            metric="Treynor Ratio",
            value=treynor,
            benchmark="> 0.1",
            status=rate_higher_is_better(treynor, config.treynor),
            description="Risk-adjusted return per unit of systematic risk",
        ),
    )


def _build_recommendations(
    sharpe: float | None,
    volatility: float,
    diversification: float,
    beta: float,
    expected_return: float,
    risk_free_rate: float,
    rebalancing: Sequence[RebalancingNeed],
    weights: Sequence[float],
) -> tuple[list[str], list[str]]:
    recommendations: list[str] = []
    risk_factors: list[str] = []

    if sharpe is not None and sharpe < 0.8:
        recommendations.append(
            "Consider improving risk-adjusted returns by optimizing asset allocation"
        )
    if volatility > 18:
        recommendations.append(
            "Portfolio volatility is high - consider adding more defensive assets"
        )
    if diversification < 1.2:
        recommendations.append("Increase diversification across uncorrelated asset classes")
    if beta > 1.3:
        recommendations.append(
            "Portfolio is highly sensitive to market movements - consider reducing risk"
        )
    if expected_return < risk_free_rate + 3:
        recommendations.append("Expected return may not adequately compensate for risk taken")
    if any(need.action is not RebalanceAction.HOLD for need in rebalancing):
        recommendations.append("Portfolio allocation has drifted - consider rebalancing")

    if not recommendations:
        recommendations.append("Portfolio appears well-balanced for current risk tolerance")
        recommendations.append("Continue monitoring and rebalancing quarterly")

    if beta > 1.2:
        risk_factors.append("High market sensitivity increases volatility during downturns")
    if volatility > 16:
        risk_factors.append("Above-average volatility may lead to larger short-term losses")
    if diversification < 1.3:
        risk_factors.append("Limited diversification increases concentration risk")
    if any(w > 0.5 for w in weights):
        risk_factors.append("High concentration in single asset increases idiosyncratic risk")

    if not risk_factors:
        risk_factors.append("Monitor correlation changes during market stress")
        risk_factors.append("Consider impact of inflation on bond allocation")

    return recommendations, risk_factors
