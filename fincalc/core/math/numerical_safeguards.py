"""
Numerical Safeguards — Safe Math Primitives

Shared guards used by every calculation engine:
- Safe division with an explicit fallback for zero denominators
- NaN/Inf detection so invalid floats never leak into result records
- Tolerance-aware zero checks
- Argument validation helpers for the engines' public functions

INVARIANTS:
1. Division by zero never happens silently (a fallback is returned)
2. NaN/Inf never propagate into results (replaced or rejected)
3. All operations are deterministic
"""

import math
from typing import Final

# =============================================================================
# EPSILON PARAMETERS
# =============================================================================

# Generic epsilon for denominators and zero checks
EPS_CALC: Final[float] = 1e-12

# Money amounts below this are treated as zero (a hundredth of a cent)
EPS_MONEY: Final[float] = 1e-4

# Zero-check tolerances: coarse for derived percentages, fine for raw floats
EPS_FLOAT_COMPARE_REL: Final[float] = 1e-9
EPS_FLOAT_COMPARE_ABS: Final[float] = 1e-12


# =============================================================================
# NaN/Inf DETECTION
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Check that a value is a finite float (not NaN, not Inf).

    Examples:
        >>> is_valid_float(1.5)
        True
        >>> is_valid_float(float("nan"))
        False
    """
    try:
        return math.isfinite(value)
    except TypeError:
        return False


# =============================================================================
# SAFE DIVISION
# =============================================================================


def safe_divide(
    numerator: float,
    denominator: float,
    eps: float = EPS_CALC,
    fallback: float | None = 0.0,
) -> float | None:
    """
    Division that returns fallback instead of dividing by (near) zero.

    Unlike a clamped denominator, a denominator with abs() < eps is treated as
    zero: ratios such as Sharpe over a zero volatility are undefined, not huge.

    Args:
        numerator: Numerator
        denominator: Denominator
        eps: Denominators with abs() below eps count as zero
        fallback: Returned for zero denominators or non-finite results
            (None is allowed so callers can report "undefined")

    Returns:
        numerator / denominator, or fallback

    Examples:
        >>> safe_divide(10.0, 2.0)
        5.0
        >>> safe_divide(10.0, 0.0)
        0.0
        >>> safe_divide(1.0, 0.0, fallback=None) is None
        True
    """
    if eps <= 0:
        raise ValueError(f"eps must be positive, got {eps}")

    if not is_valid_float(numerator) or not is_valid_float(denominator):
        return fallback

    if abs(denominator) < eps:
        return fallback

    result = numerator / denominator
    if not is_valid_float(result):
        return fallback
    return result


def is_zero(value: float, tol: float = EPS_FLOAT_COMPARE_ABS) -> bool:
    """abs(value) < tol; NaN/Inf are never zero."""
    return is_valid_float(value) and abs(value) < tol


# =============================================================================
# ARGUMENT VALIDATION
# =============================================================================


def validate_positive(value: float, name: str, eps: float = EPS_CALC) -> None:
    """
    Validate value > eps.

    Raises:
        ValueError: If value <= eps or NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value <= eps:
        raise ValueError(f"{name} must be positive (> {eps}), got {value}")


def validate_non_negative(value: float, name: str) -> None:
    """
    Validate value >= 0.

    Raises:
        ValueError: If value < 0 or NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_in_range(
    value: float,
    name: str,
    min_value: float | None = None,
    max_value: float | None = None,
) -> None:
    """
    Validate min_value <= value <= max_value (either bound optional).

    Raises:
        ValueError: If value is out of range or NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if min_value is not None and value < min_value:
        raise ValueError(f"{name} must be >= {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise ValueError(f"{name} must be <= {max_value}, got {value}")
