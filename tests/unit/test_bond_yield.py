"""
Tests for the bond yield solver

Covers:
1. Cash flow schedule construction
2. Newton-Raphson YTM (par / premium / discount / zero coupon)
3. Step halving near r = -100% and non-convergence reporting
4. Duration, convexity and price sensitivity
5. Risk classification and derived analytics
"""

import pytest

from fincalc.core.domain.bond import BondTerms, PaymentFrequency, RiskLevel
from fincalc.core.errors import ComputeError, YTMNonConvergence
from fincalc.core.math.bond_yield import (
    PAR_YIELD_TOLERANCE_PCT,
    YTM_PRICE_TOLERANCE,
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


def make_terms(**overrides) -> BondTerms:
    params = {
        "face_value": 1000.0,
        "coupon_rate_pct": 5.0,
        "market_price": 1000.0,
        "years_to_maturity": 10.0,
        "frequency": PaymentFrequency.SEMI_ANNUAL,
    }
    params.update(overrides)
    return BondTerms(**params)


@pytest.fixture
def par_bond() -> BondTerms:
    return make_terms()


# =============================================================================
# CASH FLOWS
# =============================================================================


class TestCashFlowSchedule:
    """Tests for build_cash_flow_schedule"""

    def test_period_count_and_terminal_principal(self, par_bond: BondTerms) -> None:
        """N = Y * k coupons, face value paid with the last one"""
        flows = build_cash_flow_schedule(par_bond)
        assert len(flows) == 20
        assert [f.period for f in flows] == list(range(1, 21))
        assert all(f.coupon == pytest.approx(25.0) for f in flows)
        assert all(f.principal == 0.0 for f in flows[:-1])
        assert flows[-1].principal == 1000.0
        assert flows[-1].amount == pytest.approx(1025.0)

    @pytest.mark.parametrize(
        "frequency,expected",
        [
            (PaymentFrequency.ANNUAL, 10),
            (PaymentFrequency.SEMI_ANNUAL, 20),
            (PaymentFrequency.QUARTERLY, 40),
            (PaymentFrequency.MONTHLY, 120),
        ],
    )
    def test_frequencies(self, frequency: PaymentFrequency, expected: int) -> None:
        """Every supported frequency maps to k payments per year"""
        assert len(build_cash_flow_schedule(make_terms(frequency=frequency))) == expected

    def test_fractional_maturity_rounds_periods(self) -> None:
        """Periods are rounded to the nearest whole period, at least one"""
        assert make_terms(years_to_maturity=2.3).total_periods == 5
        assert make_terms(years_to_maturity=0.2, frequency=PaymentFrequency.ANNUAL).total_periods == 1

    def test_price_at_coupon_yield_is_par(self, par_bond: BondTerms) -> None:
        """Discounting at the coupon rate gives face value"""
        flows = build_cash_flow_schedule(par_bond)
        assert price_at_yield(flows, 0.05, 2) == pytest.approx(1000.0)

    def test_derivative_negative(self, par_bond: BondTerms) -> None:
        """Price falls as yield rises"""
        flows = build_cash_flow_schedule(par_bond)
        assert price_derivative(flows, 0.05, 2) < 0

    def test_price_below_minus_100pct_rejected(self, par_bond: BondTerms) -> None:
        """Periodic rate <= -100% is outside the pricing domain"""
        flows = build_cash_flow_schedule(par_bond)
        with pytest.raises(ValueError):
            price_at_yield(flows, -2.0, 2)


# =============================================================================
# SOLVER
# =============================================================================


class TestYieldToMaturity:
    """Tests for solve_yield_to_maturity"""

    def test_par_bond_yield_equals_coupon(self, par_bond: BondTerms) -> None:
        """Par bond: YTM == coupon rate"""
        solution = solve_yield_to_maturity(par_bond)
        assert solution.ytm_pct == pytest.approx(5.0, abs=1e-6)
        assert abs(solution.price_error) < YTM_PRICE_TOLERANCE

    def test_premium_bond_yield_below_coupon(self) -> None:
        """Price above par: YTM < coupon"""
        solution = solve_yield_to_maturity(make_terms(market_price=1100.0))
        assert solution.ytm_pct < 5.0

    def test_discount_bond_yield_above_coupon(self) -> None:
        """Price below par: YTM > coupon (10y 5% at 900 ~ 6.37%)"""
        solution = solve_yield_to_maturity(make_terms(market_price=900.0))
        assert solution.ytm_pct > 5.0
        assert solution.ytm_pct == pytest.approx(6.37, abs=0.01)

    def test_zero_coupon_closed_form(self) -> None:
        """Zero coupon: YTM = (F / M)^(1/Y) - 1"""
        terms = make_terms(coupon_rate_pct=0.0, market_price=500.0, frequency=PaymentFrequency.ANNUAL)
        solution = solve_yield_to_maturity(terms)
        expected = ((1000.0 / 500.0) ** (1 / 10) - 1) * 100
        assert solution.ytm_pct == pytest.approx(expected, abs=1e-5)

    def test_solved_price_matches_market(self) -> None:
        """Repricing at the solved yield reproduces the market price"""
        terms = make_terms(market_price=950.0, coupon_rate_pct=4.25, years_to_maturity=7.5)
        solution = solve_yield_to_maturity(terms)
        flows = build_cash_flow_schedule(terms)
        price = price_at_yield(flows, solution.ytm_pct / 100, terms.payments_per_year)
        assert price == pytest.approx(950.0, abs=YTM_PRICE_TOLERANCE)

    def test_iteration_cap_raises(self) -> None:
        """Hitting max_iterations raises instead of returning the last iterate"""
        with pytest.raises(YTMNonConvergence) as exc_info:
            solve_yield_to_maturity(
                make_terms(market_price=800.0), YTMSolverConfig(max_iterations=1)
            )
        assert exc_info.value.iterations == 1
        assert exc_info.value.last_yield_pct > 5.0

    def test_step_halving_keeps_rate_in_domain(self) -> None:
        """Steps past -100% are halved until the iterate is valid again"""
        terms = make_terms(
            coupon_rate_pct=0.0,
            market_price=1_000_000.0,
            years_to_maturity=1.0,
            frequency=PaymentFrequency.ANNUAL,
        )
        solution = solve_yield_to_maturity(terms)
        assert solution.ytm_pct == pytest.approx(-99.9, abs=1e-6)

    def test_step_onto_minus_100pct_is_halved(self) -> None:
        """A full Newton step would land exactly on r = -100%; half of it is the root"""
        terms = make_terms(market_price=2000.0, years_to_maturity=1.0, frequency=PaymentFrequency.ANNUAL)
        solution = solve_yield_to_maturity(terms)
        assert solution.ytm_pct == pytest.approx(-47.5, abs=1e-6)
        assert solution.iterations == 1

    def test_deep_discount_long_bond_converges(self) -> None:
        """100y monthly bond at 0.5% of face: discounting underflows instead of overflowing"""
        terms = make_terms(market_price=5.0, years_to_maturity=100.0, frequency=PaymentFrequency.MONTHLY)
        solution = solve_yield_to_maturity(terms)
        # Effectively a perpetuity: r = coupon / price per month
        assert solution.ytm_pct == pytest.approx(1000.0, rel=1e-6)

    def test_non_convergence_is_compute_error(self) -> None:
        """YTMNonConvergence belongs to the ComputeError family"""
        assert issubclass(YTMNonConvergence, ComputeError)
        assert YTMNonConvergence.kind == "ytm_non_convergence"


# =============================================================================
# DURATION / CONVEXITY
# =============================================================================


class TestSensitivities:
    """Tests for calculate_sensitivities"""

    def test_par_bond_durations(self, par_bond: BondTerms) -> None:
        """10y 5% semi-annual par bond: Macaulay ~7.99y, modified ~7.79y"""
        flows = build_cash_flow_schedule(par_bond)
        s = calculate_sensitivities(flows, 0.05, 2)
        assert s.price == pytest.approx(1000.0)
        assert s.macaulay_duration == pytest.approx(7.9894, abs=1e-3)
        assert s.modified_duration == pytest.approx(s.macaulay_duration / 1.025)

    def test_zero_coupon_duration_equals_maturity(self) -> None:
        """Single cash flow: Macaulay duration is its time"""
        terms = make_terms(coupon_rate_pct=0.0, frequency=PaymentFrequency.ANNUAL)
        s = calculate_sensitivities(build_cash_flow_schedule(terms), 0.06, 1)
        assert s.macaulay_duration == pytest.approx(10.0)

    def test_zero_coupon_convexity(self) -> None:
        """Single cash flow: C = N (N + 1) / ((1 + r)^2 k^2)"""
        terms = make_terms(coupon_rate_pct=0.0, frequency=PaymentFrequency.SEMI_ANNUAL)
        s = calculate_sensitivities(build_cash_flow_schedule(terms), 0.05, 2)
        assert s.convexity == pytest.approx(20 * 21 / (1.025**2 * 4))

    def test_duration_below_maturity_for_coupon_bond(self, par_bond: BondTerms) -> None:
        """Coupons pull duration under maturity"""
        s = calculate_sensitivities(build_cash_flow_schedule(par_bond), 0.05, 2)
        assert 0 < s.macaulay_duration < 10.0
        assert 60.0 < s.convexity < 90.0

    def test_price_change_estimate(self) -> None:
        """-D dy + 1/2 C dy^2"""
        assert estimate_price_change(7.0, 60.0, 0.01) == pytest.approx(-0.07 + 0.003)
        assert estimate_price_change(7.0, 60.0, -0.01) == pytest.approx(0.07 + 0.003)


# =============================================================================
# CLASSIFICATION
# =============================================================================


class TestRiskClassification:
    """Tests for interest rate / reinvestment risk buckets"""

    @pytest.mark.parametrize(
        "duration,expected",
        [
            (0.5, RiskLevel.LOW),
            (2.999, RiskLevel.LOW),
            (3.0, RiskLevel.MODERATE),
            (6.999, RiskLevel.MODERATE),
            (7.0, RiskLevel.HIGH),
            (15.0, RiskLevel.HIGH),
        ],
    )
    def test_interest_rate_risk(self, duration: float, expected: RiskLevel) -> None:
        """< 3 low, < 7 moderate, else high"""
        assert classify_interest_rate_risk(duration) is expected

    @pytest.mark.parametrize(
        "coupon,years,expected",
        [
            (2.0, 10.0, RiskLevel.LOW),
            (5.0, 1.0, RiskLevel.LOW),
            (8.0, 5.0, RiskLevel.HIGH),
            (5.0, 20.0, RiskLevel.HIGH),
            (5.0, 10.0, RiskLevel.MODERATE),
        ],
    )
    def test_reinvestment_risk(self, coupon: float, years: float, expected: RiskLevel) -> None:
        """Low coupon / short maturity low, high coupon / long maturity high"""
        assert classify_reinvestment_risk(coupon, years) is expected


# =============================================================================
# ANALYSIS
# =============================================================================


class TestAnalyzeBond:
    """Tests for analyze_bond"""

    def test_par_bond_analysis(self, par_bond: BondTerms) -> None:
        """Par bond: YTM = coupon, current yield = coupon, high rate risk"""
        analysis = analyze_bond(par_bond)
        assert analysis.yield_to_maturity_pct == pytest.approx(5.0, abs=1e-6)
        assert analysis.current_yield_pct == pytest.approx(5.0)
        assert analysis.total_return_pct == pytest.approx(5.0)
        assert analysis.interest_rate_risk is RiskLevel.HIGH
        assert analysis.reinvestment_risk is RiskLevel.MODERATE
        assert analysis.total_cash_flows == pytest.approx(1500.0)
        assert len(analysis.cash_flows) == 20

    def test_present_values_sum_to_price(self) -> None:
        """Sum of cash flow PVs at the solved YTM equals the market price"""
        analysis = analyze_bond(make_terms(market_price=912.5, coupon_rate_pct=3.75))
        total_pv = sum(cf.present_value for cf in analysis.cash_flows)
        assert total_pv == pytest.approx(912.5, abs=1e-3)
        assert analysis.present_value == pytest.approx(912.5, abs=1e-3)

    def test_discount_bond_derived_metrics(self) -> None:
        """Current yield and approximate total return for a discount bond"""
        analysis = analyze_bond(make_terms(market_price=900.0))
        assert analysis.current_yield_pct == pytest.approx(50.0 / 900.0 * 100)
        assert analysis.total_return_pct == pytest.approx(5.0 + (100.0 / 900.0 * 100) / 10)
        assert any("discount" in r for r in analysis.recommendations)

    def test_premium_bond_recommendation(self) -> None:
        """Premium bonds mention reinvestment risk"""
        analysis = analyze_bond(make_terms(market_price=1100.0))
        assert any("premium" in r for r in analysis.recommendations)

    def test_price_change_negative_for_rising_yield(self, par_bond: BondTerms) -> None:
        """Estimated 1% yield rise lowers price"""
        analysis = analyze_bond(par_bond)
        assert analysis.price_change_for_1pct_yield_change_pct < 0
        assert analysis.price_change_for_1pct_yield_change_pct == pytest.approx(
            -analysis.modified_duration + 0.5 * analysis.convexity * 0.01
        )

    def test_short_bond_notes(self) -> None:
        """Short maturity: low rate risk and limited credit exposure"""
        analysis = analyze_bond(make_terms(years_to_maturity=2.0))
        assert analysis.interest_rate_risk is RiskLevel.LOW
        assert analysis.risk_analysis.credit_risk.startswith("Limited")

    def test_non_convergence_propagates(self) -> None:
        """analyze_bond raises when no yield can be solved"""
        with pytest.raises(YTMNonConvergence):
            analyze_bond(make_terms(market_price=800.0), YTMSolverConfig(max_iterations=1))

    def test_holding_period_return(self, par_bond: BondTerms) -> None:
        """All coupons plus face value against the price paid"""
        assert analyze_bond(par_bond).holding_period_return_pct == pytest.approx(50.0)
        analysis = analyze_bond(make_terms(market_price=900.0))
        assert analysis.holding_period_return_pct == pytest.approx((1500.0 - 900.0) / 900.0 * 100)

    def test_par_bond_has_no_premium_or_discount_note(self, par_bond: BondTerms) -> None:
        """A yield on the coupon rate is neither premium nor discount"""
        recommendations = analyze_bond(par_bond).recommendations
        assert not any("discount" in r or "premium" in r for r in recommendations)

    def test_near_par_discount_measured_in_yield_points(self) -> None:
        """A 0.1 price discount moves the yield by more than the par band"""
        analysis = analyze_bond(make_terms(market_price=999.9))
        assert analysis.yield_to_maturity_pct - 5.0 > PAR_YIELD_TOLERANCE_PCT
        assert any("discount" in r for r in analysis.recommendations)

    def test_deep_discount_long_bond_analysis(self) -> None:
        """Every metric stays finite for a 100y monthly bond priced near zero"""
        analysis = analyze_bond(
            make_terms(market_price=5.0, years_to_maturity=100.0, frequency=PaymentFrequency.MONTHLY)
        )
        assert analysis.present_value == pytest.approx(5.0, abs=1e-3)
        assert len(analysis.cash_flows) == 1200
        assert sum(cf.present_value for cf in analysis.cash_flows) == pytest.approx(5.0, abs=1e-3)
        assert analysis.cash_flows[-1].present_value == pytest.approx(0.0, abs=1e-12)
        assert 0 < analysis.macaulay_duration < 1.0
