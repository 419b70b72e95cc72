"""
Portfolio risk calculator

holdings, correlations and target_allocations are nested values: the form
layer hands over lists / mappings which are parsed into domain models here.
A portfolio the aggregator cannot analyze (PortfolioDomainError) yields no
result rather than a field error.
"""

from typing import Any, Final, Mapping

from pydantic import ValidationError

from fincalc.core.domain.portfolio import (
    AnalysisParameters,
    CorrelationMatrix,
    PortfolioHolding,
    PortfolioMetrics,
)
from fincalc.core.math.portfolio_risk import PortfolioRiskConfig, analyze_portfolio
from fincalc.reactive.calculator import (
    CalculatorConfig,
    ReactiveCalculatorCore,
    UsageSink,
)
from fincalc.reactive.fields import FieldKind, FieldParseError, FieldSpec
from fincalc.reactive.validation import (
    ValidationRule,
    integer,
    max_value,
    min_value,
    percentage,
    required,
)

CALCULATOR_ID: Final[str] = "portfolio-risk-analyzer"


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_HOLDINGS: Final[tuple[PortfolioHolding, ...]] = (
    PortfolioHolding(
        symbol="VTI",
        name="Total Stock Market ETF",
        market_value=40_000,
        expected_return_pct=10.0,
        volatility_pct=16.0,
        beta=1.0,
        allocation_pct=40,
    ),
    PortfolioHolding(
        symbol="VTIAX",
        name="International Stock ETF",
        market_value=20_000,
        expected_return_pct=8.5,
        volatility_pct=18.5,
        beta=0.9,
        allocation_pct=20,
    ),
    PortfolioHolding(
        symbol="BND",
        name="Total Bond Market ETF",
        market_value=30_000,
        expected_return_pct=4.0,
        volatility_pct=4.5,
        beta=0.1,
        allocation_pct=30,
    ),
    PortfolioHolding(
        symbol="VNQ",
        name="Real Estate ETF",
        market_value=10_000,
        expected_return_pct=7.5,
        volatility_pct=20.0,
        beta=0.8,
        allocation_pct=10,
    ),
)

# Simplified matrix; real correlations would come from market data
DEFAULT_CORRELATIONS: Final[CorrelationMatrix] = CorrelationMatrix.from_pairs(
    {
        ("VTI", "VTIAX"): 0.85,
        ("VTI", "BND"): -0.1,
        ("VTI", "VNQ"): 0.75,
        ("VTIAX", "BND"): -0.05,
        ("VTIAX", "VNQ"): 0.65,
        ("BND", "VNQ"): 0.2,
    }
)


# =============================================================================
# PARSERS
# =============================================================================


def parse_holdings(raw: Any) -> tuple[PortfolioHolding, ...] | None:
    """
    List of PortfolioHolding or mappings with the same keys.

    Raises:
        FieldParseError: If any entry is not a valid holding
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if not isinstance(raw, (list, tuple)):
        raise FieldParseError(FieldKind.RECORD, raw)
    try:
        return tuple(
            item if isinstance(item, PortfolioHolding) else PortfolioHolding.model_validate(item)
            for item in raw
        )
    except ValidationError:
        raise FieldParseError(FieldKind.RECORD, raw) from None


def parse_correlations(raw: Any) -> CorrelationMatrix | None:
    """Nested {symbol: {symbol: rho}} mapping or a CorrelationMatrix."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, CorrelationMatrix):
        return raw
    if not isinstance(raw, Mapping):
        raise FieldParseError(FieldKind.RECORD, raw)
    try:
        return CorrelationMatrix(entries={a: dict(row) for a, row in raw.items()})
    except (ValidationError, TypeError, ValueError):
        raise FieldParseError(FieldKind.RECORD, raw) from None


def parse_targets(raw: Any) -> dict[str, float] | None:
    """{symbol: target %}."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if not isinstance(raw, Mapping):
        raise FieldParseError(FieldKind.RECORD, raw)
    try:
        return {str(symbol): float(target) for symbol, target in raw.items()}
    except (TypeError, ValueError, OverflowError):
        raise FieldParseError(FieldKind.RECORD, raw) from None


# =============================================================================
# DEFINITION
# =============================================================================


FIELDS: Final[Mapping[str, FieldSpec]] = {
    "holdings": FieldSpec(FieldKind.RECORD, DEFAULT_HOLDINGS, "Holdings"),
    "correlations": FieldSpec(FieldKind.RECORD, DEFAULT_CORRELATIONS, "Correlations"),
    "target_allocations": FieldSpec(FieldKind.RECORD, None, "Target allocations"),
    "risk_free_rate": FieldSpec(FieldKind.PERCENT, 4.5, "Risk-free rate"),
    "market_return": FieldSpec(FieldKind.PERCENT, 10.0, "Market return"),
    "time_horizon_months": FieldSpec(FieldKind.INTEGER, 12, "Time horizon"),
    "rebalancing_threshold": FieldSpec(FieldKind.PERCENT, 5.0, "Rebalancing threshold"),
}

PARSERS = {
    "holdings": parse_holdings,
    "correlations": parse_correlations,
    "target_allocations": parse_targets,
}


def _total_value_positive(holdings: Any, _values: Mapping[str, Any]) -> bool:
    return not holdings or sum(h.market_value for h in holdings) > 0


def _unique_symbols(holdings: Any, _values: Mapping[str, Any]) -> bool:
    symbols = [h.symbol for h in holdings or ()]
    return len(symbols) == len(set(symbols))


def _targets_in_range(targets: Any, _values: Mapping[str, Any]) -> bool:
    return all(0.0 <= target <= 100.0 for target in (targets or {}).values())


RULES = {
    "holdings": [
        required("Add at least one holding"),
        ValidationRule(_total_value_positive, "Total portfolio value must be positive"),
        ValidationRule(_unique_symbols, "Each holding must have a unique symbol"),
    ],
    "target_allocations": [
        ValidationRule(_targets_in_range, "Target allocations must be between 0 and 100"),
    ],
    "risk_free_rate": [required(), percentage()],
    "market_return": [required(), min_value(-100), max_value(100)],
    "time_horizon_months": [required(), integer(), min_value(1), max_value(600)],
    "rebalancing_threshold": [required(), percentage()],
}


def make_portfolio_compute(risk_config: PortfolioRiskConfig | None = None):
    """Compute function bound to a risk model configuration."""

    def calculate_portfolio(values: Mapping[str, Any]) -> PortfolioMetrics:
        parameters = AnalysisParameters(
            risk_free_rate_pct=values["risk_free_rate"],
            market_return_pct=values["market_return"],
            time_horizon_months=values["time_horizon_months"],
            rebalancing_threshold_pct=values["rebalancing_threshold"],
            target_allocations_pct=values.get("target_allocations") or {},
        )
        return analyze_portfolio(
            values["holdings"],
            correlations=values.get("correlations"),
            parameters=parameters,
            config=risk_config,
        )

    return calculate_portfolio


calculate_portfolio = make_portfolio_compute()


def create_portfolio_calculator(
    usage_sink: UsageSink | None = None,
    config: CalculatorConfig | None = None,
    risk_config: PortfolioRiskConfig | None = None,
) -> ReactiveCalculatorCore[PortfolioMetrics]:
    """Portfolio risk analyzer preloaded with a four-fund portfolio."""
    return ReactiveCalculatorCore(
        calculator_id=CALCULATOR_ID,
        fields=FIELDS,
        compute=make_portfolio_compute(risk_config),
        rules=RULES,
        usage_sink=usage_sink,
        parsers=PARSERS,
        config=config,
    )
