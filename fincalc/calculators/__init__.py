"""
Calculator definitions built on the reactive core.
"""

from fincalc.calculators.bond_calculator import calculate_bond, create_bond_calculator
from fincalc.calculators.loan_calculator import calculate_mortgage, create_loan_calculator
from fincalc.calculators.portfolio_calculator import (
    DEFAULT_CORRELATIONS,
    DEFAULT_HOLDINGS,
    calculate_portfolio,
    create_portfolio_calculator,
)

__all__ = [
    # Loan
    "calculate_mortgage",
    "create_loan_calculator",
    # Bond
    "calculate_bond",
    "create_bond_calculator",
    # Portfolio
    "DEFAULT_CORRELATIONS",
    "DEFAULT_HOLDINGS",
    "calculate_portfolio",
    "create_portfolio_calculator",
]
