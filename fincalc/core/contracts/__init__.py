"""
Contract Validation Module

JSON Schema contracts for the result records handed to the presentation layer.
"""

from .validators import (
    BondResultValidator,
    ContractValidator,
    LoanResultValidator,
    PortfolioResultValidator,
    SchemaLoader,
    validate_bond_result,
    validate_loan_result,
    validate_portfolio_result,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "LoanResultValidator",
    "BondResultValidator",
    "PortfolioResultValidator",
    # Functions
    "validate_loan_result",
    "validate_bond_result",
    "validate_portfolio_result",
]
