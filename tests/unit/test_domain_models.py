"""
Tests for the domain models

Covers:
1. Field constraints (Pydantic validation)
2. Immutability
3. Derived properties
4. CorrelationMatrix lookups and consistency checks
"""

import pytest
from pydantic import ValidationError

from fincalc.core.domain import (
    AnalysisParameters,
    BondTerms,
    CorrelationMatrix,
    LoanTerms,
    PaymentFrequency,
    PortfolioHolding,
)

# =============================================================================
# LOAN
# =============================================================================


class TestLoanTerms:
    """Tests for LoanTerms"""

    def test_valid_terms(self) -> None:
        """Regular terms construct"""
        terms = LoanTerms(principal=400_000, annual_rate_pct=6.5, term_periods=360)
        assert terms.extra_payment == 0.0
        assert terms.periodic_rate == pytest.approx(0.065 / 12)

    @pytest.mark.parametrize(
        "field,value",
        [("principal", -1.0), ("annual_rate_pct", -0.1), ("term_periods", 0), ("term_periods", 601), ("extra_payment", -5.0)],
    )
    def test_constraints(self, field: str, value: float) -> None:
        """Out-of-domain values are rejected"""
        params = {"principal": 1000.0, "annual_rate_pct": 5.0, "term_periods": 12}
        params[field] = value
        with pytest.raises(ValidationError):
            LoanTerms(**params)

    def test_frozen(self) -> None:
        """Models are immutable"""
        terms = LoanTerms(principal=1000.0, annual_rate_pct=5.0, term_periods=12)
        with pytest.raises(ValidationError):
            terms.principal = 2000.0


# =============================================================================
# BOND
# =============================================================================


class TestBondTerms:
    """Tests for BondTerms"""

    def test_defaults_and_properties(self) -> None:
        """Semi-annual by default; coupon per period = F c / k"""
        terms = BondTerms(face_value=1000, coupon_rate_pct=5, market_price=980, years_to_maturity=10)
        assert terms.frequency is PaymentFrequency.SEMI_ANNUAL
        assert terms.payments_per_year == 2
        assert terms.total_periods == 20
        assert terms.coupon_per_period == pytest.approx(25.0)

    def test_frequency_from_string(self) -> None:
        """Frequency accepts its string value"""
        terms = BondTerms(
            face_value=1000, coupon_rate_pct=5, market_price=1000, years_to_maturity=1, frequency="monthly"
        )
        assert terms.payments_per_year == 12

    @pytest.mark.parametrize(
        "field,value",
        [
            ("face_value", 0.0),
            ("coupon_rate_pct", -1.0),
            ("coupon_rate_pct", 101.0),
            ("market_price", 0.0),
            ("years_to_maturity", 0.0),
            ("years_to_maturity", 101.0),
        ],
    )
    def test_constraints(self, field: str, value: float) -> None:
        """Out-of-domain values are rejected"""
        params = {"face_value": 1000.0, "coupon_rate_pct": 5.0, "market_price": 1000.0, "years_to_maturity": 10.0}
        params[field] = value
        with pytest.raises(ValidationError):
            BondTerms(**params)

    def test_unknown_frequency_rejected(self) -> None:
        """Only the four supported frequencies"""
        with pytest.raises(ValidationError):
            BondTerms(
                face_value=1000, coupon_rate_pct=5, market_price=1000, years_to_maturity=1, frequency="weekly"
            )


# =============================================================================
# PORTFOLIO
# =============================================================================


class TestPortfolioHolding:
    """Tests for PortfolioHolding"""

    def test_valid_holding(self) -> None:
        """allocation_pct is optional"""
        h = PortfolioHolding(symbol="VTI", market_value=1.0, expected_return_pct=10, volatility_pct=16, beta=1)
        assert h.allocation_pct is None
        assert h.name == ""

    def test_negative_market_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PortfolioHolding(symbol="X", market_value=-1, expected_return_pct=1, volatility_pct=1, beta=1)

    def test_empty_symbol_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PortfolioHolding(symbol="", market_value=1, expected_return_pct=1, volatility_pct=1, beta=1)


class TestCorrelationMatrix:
    """Tests for CorrelationMatrix"""

    def test_diagonal_is_one(self) -> None:
        """Diagonal lookups are 1 even when not stored"""
        assert CorrelationMatrix().get("VTI", "VTI") == 1.0

    def test_missing_pair_is_zero(self) -> None:
        """Missing pairs are uncorrelated"""
        assert CorrelationMatrix().get("VTI", "BND") == 0.0

    def test_either_orientation(self) -> None:
        """A pair stored once is found both ways"""
        matrix = CorrelationMatrix.from_pairs({("VTI", "BND"): -0.1})
        assert matrix.get("VTI", "BND") == -0.1
        assert matrix.get("BND", "VTI") == -0.1

    @pytest.mark.parametrize("rho", [1.01, -1.5])
    def test_out_of_range_rejected(self, rho: float) -> None:
        """Correlations must lie in [-1, 1]"""
        with pytest.raises(ValidationError):
            CorrelationMatrix.from_pairs({("A", "B"): rho})

    def test_bad_diagonal_rejected(self) -> None:
        """A stored diagonal entry must be 1"""
        with pytest.raises(ValidationError):
            CorrelationMatrix(entries={"A": {"A": 0.9}})

    def test_asymmetric_rejected(self) -> None:
        """Both orientations given with different values"""
        with pytest.raises(ValidationError, match="symmetric"):
            CorrelationMatrix(entries={"A": {"B": 0.5}, "B": {"A": 0.4}})

    def test_symmetric_full_matrix_accepted(self) -> None:
        """A full symmetric matrix (diagonal included) is fine"""
        matrix = CorrelationMatrix(
            entries={"A": {"A": 1.0, "B": 0.3}, "B": {"A": 0.3, "B": 1.0}}
        )
        assert matrix.get("B", "A") == 0.3


class TestAnalysisParameters:
    """Tests for AnalysisParameters"""

    def test_defaults(self) -> None:
        """Defaults match the analyzer's starting assumptions"""
        params = AnalysisParameters()
        assert params.risk_free_rate_pct == 4.5
        assert params.market_return_pct == 10.0
        assert params.time_horizon_months == 12
        assert params.rebalancing_threshold_pct == 5.0
        assert params.target_allocations_pct == {}

    def test_target_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisParameters(target_allocations_pct={"VTI": 120.0})

    def test_horizon_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisParameters(time_horizon_months=0)
