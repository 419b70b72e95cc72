"""
Domain models and value objects.

Inputs and result records for the loan, bond and portfolio engines.
"""

from fincalc.core.domain.bond import (
    BondAnalysis,
    BondCashFlow,
    BondRiskAnalysis,
    BondTerms,
    PaymentFrequency,
    RiskLevel,
)
from fincalc.core.domain.loan import (
    MAX_TERM_PERIODS,
    PERIODS_PER_YEAR,
    AmortizationEntry,
    AmortizationResult,
    LoanTerms,
    MortgageResult,
)
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

__all__ = [
    # Loan
    "MAX_TERM_PERIODS",
    "PERIODS_PER_YEAR",
    "LoanTerms",
    "AmortizationEntry",
    "AmortizationResult",
    "MortgageResult",
    # Bond
    "PaymentFrequency",
    "RiskLevel",
    "BondTerms",
    "BondCashFlow",
    "BondRiskAnalysis",
    "BondAnalysis",
    # Portfolio
    "RebalanceAction",
    "MetricStatus",
    "PortfolioHolding",
    "CorrelationMatrix",
    "AnalysisParameters",
    "AllocationSlice",
    "RiskMetric",
    "RebalancingNeed",
    "PortfolioMetrics",
]
