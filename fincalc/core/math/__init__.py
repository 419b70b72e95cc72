"""
Core math modules for fincalc

Numerical primitives and the three calculation engines.
"""

# Numerical Safeguards
from fincalc.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_CALC,
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    EPS_MONEY,
    # Safe division
    safe_divide,
    # NaN/Inf detection
    is_valid_float,
    # Zero checks
    is_zero,
    # Validation
    validate_in_range,
    validate_non_negative,
    validate_positive,
)

# Amortization
from fincalc.core.math.amortization import (
    amortize_loan,
    calculate_periodic_payment,
    generate_amortization_schedule,
)

# Bond Yield
from fincalc.core.math.bond_yield import (
    YTM_MAX_ITERATIONS,
    YTM_PRICE_TOLERANCE,
    PriceSensitivities,
    ScheduledFlow,
    YieldSolution,
    YTMSolverConfig,
    analyze_bond,
    build_cash_flow_schedule,
    calculate_sensitivities,
    classify_interest_rate_risk,
    classify_reinvestment_risk,
    estimate_price_change,
    price_at_yield,
    price_derivative,
    solve_yield_to_maturity,
)

# Portfolio Risk
from fincalc.core.math.portfolio_risk import (
    MAX_DRAWDOWN_FACTOR,
    Z_SCORE_95,
    Z_SCORE_99,
    PortfolioRiskConfig,
    RatingThresholds,
    analyze_portfolio,
    analyze_rebalancing,
    normalize_weights,
    parametric_var,
    portfolio_variance,
)

__all__ = [
    # Numerical Safeguards: Epsilon constants
    "EPS_CALC",
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    "EPS_MONEY",
    # Numerical Safeguards: Safe division
    "safe_divide",
    # Numerical Safeguards: NaN/Inf detection
    "is_valid_float",
    # Numerical Safeguards: Zero checks
    "is_zero",
    # Numerical Safeguards: Validation
    "validate_in_range",
    "validate_non_negative",
    "validate_positive",
    # Amortization: Functions
    "amortize_loan",
    "calculate_periodic_payment",
    "generate_amortization_schedule",
    # Bond Yield: Constants
    "YTM_MAX_ITERATIONS",
    "YTM_PRICE_TOLERANCE",
    # Bond Yield: Types
    "PriceSensitivities",
    "ScheduledFlow",
    "YieldSolution",
    "YTMSolverConfig",
    # Bond Yield: Functions
    "analyze_bond",
    "build_cash_flow_schedule",
    "calculate_sensitivities",
    "classify_interest_rate_risk",
    "classify_reinvestment_risk",
    "estimate_price_change",
    "price_at_yield",
    "price_derivative",
    "solve_yield_to_maturity",
    # Portfolio Risk: Constants
    "MAX_DRAWDOWN_FACTOR",
    "Z_SCORE_95",
    "Z_SCORE_99",
    # Portfolio Risk: Types
    "PortfolioRiskConfig",
    "RatingThresholds",
    # Portfolio Risk: Functions
    "analyze_portfolio",
    "analyze_rebalancing",
    "normalize_weights",
    "parametric_var",
    "portfolio_variance",
]
