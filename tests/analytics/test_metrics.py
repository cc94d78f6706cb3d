from __future__ import annotations

import math

import pytest

from crypto_invest_lab.analytics.metrics import (
    MetricsCalculator,
    adjust_beta,
    calculate_beta,
    calculate_cagr,
    calculate_confidence,
    calculate_financial_metrics,
    calculate_irr,
    calculate_npv,
    calculate_risk_adjusted_npv,
    calculate_roi,
    calculate_sharpe_ratio,
    calculate_volatility,
    capm_expected_return,
    compound_growth,
    discounted_value,
    generate_cash_flows,
    irr_equivalent,
    projected_growth_rate,
    volatility_breakdown,
)
from crypto_invest_lab.core import AssetProfile, ConfidenceLevel, TimeSeries
from crypto_invest_lab.core.constants import SECONDS_PER_YEAR
from crypto_invest_lab.errors import (
    DivideByZeroError,
    InsufficientDataError,
    InvalidRangeError,
)


def _sample_series(initial: float, final: float, years: float, source: str = "secondary") -> TimeSeries:
    return TimeSeries.from_records(
        [(0, initial), (years * SECONDS_PER_YEAR, final)],
        source=source,
    )


def test_cagr_breakdown_for_three_year_scenario() -> None:
    breakdown = compound_growth(20_000.0, 69_000.0, 3.0)
    assert breakdown.growth_ratio == pytest.approx(3.45)
    assert breakdown.exponent == pytest.approx(1 / 3)
    assert breakdown.base == pytest.approx(3.45 ** (1 / 3))
    assert breakdown.cagr_pct == pytest.approx((3.45 ** (1 / 3) - 1) * 100)
    assert breakdown.cagr_pct == pytest.approx(51.10, abs=0.01)


def test_cagr_from_series_round_trips_to_final_value() -> None:
    for initial, final, years in [(100.0, 250.0, 2.5), (50.0, 20.0, 4.0), (1.0, 1.0, 1.0)]:
        cagr = calculate_cagr(_sample_series(initial, final, years))
        assert cagr.years == pytest.approx(years)
        assert initial * (1 + cagr.cagr_pct / 100) ** years == pytest.approx(final)


def test_cagr_is_monotonic_in_final_value() -> None:
    values = [compound_growth(100.0, final, 3.0).cagr_pct for final in (50.0, 100.0, 150.0, 300.0)]
    assert values == sorted(values)
    assert values[1] == pytest.approx(0.0)


def test_cagr_rejects_degenerate_inputs() -> None:
    with pytest.raises(InvalidRangeError):
        compound_growth(100.0, 120.0, 0.0)
    with pytest.raises(DivideByZeroError):
        compound_growth(0.0, 120.0, 1.0)
    with pytest.raises(ZeroDivisionError):
        compound_growth(0.0, 120.0, 1.0)
    with pytest.raises(InvalidRangeError):
        compound_growth(-5.0, 120.0, 1.0)
    with pytest.raises(InsufficientDataError):
        calculate_cagr(TimeSeries.from_records([(0, 1.0)]))


def test_confidence_tiers_and_levels() -> None:
    best = calculate_confidence(1_000, 3.0, "primary")
    assert best.score == 100
    assert best.level is ConfidenceLevel.HIGH

    mid = calculate_confidence(500, 2.0, "secondary")
    assert (mid.data_points_score, mid.time_span_score, mid.source_score) == (30, 20, 20)
    assert mid.score == 70
    assert mid.level is ConfidenceLevel.MEDIUM

    poor = calculate_confidence(50, 0.5, "estimated")
    assert poor.score == 25
    assert poor.level is ConfidenceLevel.LOW

    assert calculate_confidence(50, 0.5, "forum post").source_score == 10


def test_confidence_is_monotonic_in_points_and_span() -> None:
    by_points = [calculate_confidence(n, 1.0, "secondary").score for n in (10, 100, 500, 1_000, 5_000)]
    by_span = [calculate_confidence(100, y, "secondary").score for y in (0.2, 1.0, 2.0, 3.0, 8.0)]
    assert by_points == sorted(by_points)
    assert by_span == sorted(by_span)


def test_projected_growth_rate_applies_network_and_valuation_tilts() -> None:
    assert projected_growth_rate(10.0) == pytest.approx(0.10)
    assert projected_growth_rate(10.0, aviv_ratio=0.8) == pytest.approx(0.12)
    assert projected_growth_rate(10.0, aviv_ratio=2.5) == pytest.approx(0.08)
    assert projected_growth_rate(10.0, aviv_ratio=1.5) == pytest.approx(0.10)
    assert projected_growth_rate(10.0, network_growth=10.0) == pytest.approx(0.11)
    assert projected_growth_rate(10.0, network_growth=-10.0) == pytest.approx(0.09)


def test_npv_discounts_projected_values() -> None:
    series = _sample_series(100.0, 121.0, 2.0)
    projection = calculate_npv(1_000.0, series, 2, 0.10)
    assert projection.growth_rate == pytest.approx(0.10)
    assert projection.projected_values == pytest.approx((1_100.0, 1_210.0))
    assert projection.present_values == pytest.approx((1_000.0, 1_000.0))
    assert projection.npv == pytest.approx(1_000.0)

    harsher = calculate_npv(1_000.0, series, 2, 0.25)
    assert harsher.npv < projection.npv

    with pytest.raises(InvalidRangeError):
        calculate_npv(1_000.0, series, 0, 0.10)
    with pytest.raises(InvalidRangeError):
        calculate_npv(1_000.0, series, 2, -1.0)


def test_irr_solves_cash_flows() -> None:
    assert calculate_irr([-1_000.0, 0.0, 1_210.0]) == pytest.approx(10.0, abs=1e-3)

    flows = [-1_000.0, 500.0, 700.0]
    irr = calculate_irr(flows)
    assert irr == pytest.approx(12.32, abs=0.01)
    assert discounted_value(flows, irr / 100) == pytest.approx(0.0, abs=1e-3)

    with pytest.raises(InsufficientDataError):
        calculate_irr([-1_000.0])


def test_irr_equivalent_and_roi() -> None:
    assert irr_equivalent(1_000.0, 1_210.0, 2) == pytest.approx(10.0)
    assert calculate_roi(100.0, 150.0) == pytest.approx(50.0)
    assert calculate_roi(100.0, 80.0) == pytest.approx(-20.0)
    with pytest.raises(DivideByZeroError):
        calculate_roi(0.0, 10.0)


def test_generate_cash_flows_pays_staking_each_year() -> None:
    flows = generate_cash_flows(1_000.0, 120.0, 100.0, 3, staking_yield=5.0)
    assert flows == pytest.approx([-1_000.0, 50.0, 50.0, 1_250.0])
    with pytest.raises(DivideByZeroError):
        generate_cash_flows(1_000.0, 120.0, 0.0, 3)


def test_beta_matches_scaled_benchmark_and_is_scale_invariant() -> None:
    bench = [0.01, -0.02, 0.03, 0.005, -0.01]
    asset = [2 * r for r in bench]
    assert calculate_beta(asset, bench) == pytest.approx(2.0)

    noisy = [0.02, -0.01, 0.05, 0.0, -0.03]
    beta = calculate_beta(noisy, bench)
    scaled = calculate_beta([10 * r for r in noisy], [10 * r for r in bench])
    assert scaled == pytest.approx(beta)


def test_beta_errors() -> None:
    with pytest.raises(DivideByZeroError):
        calculate_beta([0.01, 0.02, 0.03], [0.0, 0.0, 0.0])
    with pytest.raises(InvalidRangeError):
        calculate_beta([0.01, 0.02], [0.01])
    with pytest.raises(InsufficientDataError):
        calculate_beta([0.01], [0.02])


def test_adjust_beta_blends_supply_dynamics() -> None:
    vaulted = adjust_beta(1.0, vaulted_supply_pct=75.0, active_supply_pct=25.0, network_growth=2.0)
    assert vaulted.on_chain == pytest.approx(0.72)
    assert vaulted.adjusted == pytest.approx(0.6 + 0.4 * 0.72)

    active = adjust_beta(1.0, vaulted_supply_pct=10.0, active_supply_pct=90.0, network_growth=20.0)
    assert active.on_chain == pytest.approx(1.2)
    assert active.traditional == 1.0


def test_volatility_annualises_return_dispersion() -> None:
    series = TimeSeries.from_records([(0, 100.0), (86_400, 110.0), (172_800, 99.0)])
    expected = 0.1 * math.sqrt(2) * math.sqrt(12) * 100
    assert calculate_volatility(series, periods_per_year=12) == pytest.approx(expected)
    with pytest.raises(InsufficientDataError):
        calculate_volatility(_sample_series(1.0, 2.0, 1.0))


def test_financial_metrics_assemble_price_and_staking_returns() -> None:
    series = _sample_series(100.0, 121.0, 2.0)
    profile = AssetProfile(
        id="ETH",
        basket_kind="BlueChip",
        current_price=121.0,
        aviv_ratio=1.5,
        staking_yield=5.0,
    )
    metrics = calculate_financial_metrics(
        profile, series, investment=1_000.0, horizon_years=2, discount_rate=0.10
    )
    assert metrics.npv == pytest.approx(1_000.0)
    assert metrics.cagr == pytest.approx(10.0)
    assert metrics.price_roi == pytest.approx(21.0)
    assert metrics.roi == pytest.approx(26.0)
    assert metrics.staking_roi == pytest.approx(5.0)
    assert metrics.irr > 10.0
    assert 1 <= metrics.risk_factor <= 5
    assert metrics.confidence_score == pytest.approx(50.0)
    assert metrics.beta == 1.0
    assert metrics.expected_return == pytest.approx(25.0)
    assert metrics.sharpe_ratio == pytest.approx((metrics.total_return_cagr - 4.5) / 50.0)
    assert metrics.risk_adjusted_npv == pytest.approx(-1_000.0 + 50.0 / 1.195 + 1_260.0 / 1.195**2)
    assert metrics.systematic_volatility == pytest.approx(50.0)
    assert metrics.idiosyncratic_volatility == pytest.approx(0.0)

    with pytest.raises(InvalidRangeError):
        calculate_financial_metrics(profile, series, investment=0.0, horizon_years=2, discount_rate=0.1)


def test_metrics_calculator_namespace_exposes_functions() -> None:
    assert MetricsCalculator.calculate_cagr is calculate_cagr
    assert MetricsCalculator.calculate_irr([-100.0, 110.0]) == pytest.approx(10.0, abs=1e-3)


def test_confidence_is_monotonic_in_source_quality() -> None:
    for points, years in [(50, 0.5), (500, 2.0), (5_000, 4.0)]:
        scores = [
            calculate_confidence(points, years, source).score
            for source in ("estimated", "secondary", "primary")
        ]
        assert scores == sorted(scores)
        assert scores[0] < scores[2]


def test_scaling_asset_returns_scales_beta() -> None:
    bench = [0.01, -0.02, 0.03, 0.005, -0.01, 0.015]
    asset = [0.024, -0.013, 0.051, -0.004, -0.027, 0.019]
    beta = calculate_beta(asset, bench)
    for k in (-2.0, 0.5, 3.0, 10.0):
        assert calculate_beta([k * r for r in asset], bench) == pytest.approx(k * beta)


def test_projected_growth_never_implies_more_than_total_loss() -> None:
    assert projected_growth_rate(-90.0, aviv_ratio=0.8) == -1.0
    assert projected_growth_rate(-100.0, network_growth=50.0) == -1.0
    assert projected_growth_rate(-50.0, aviv_ratio=0.8) == pytest.approx(-0.6)


@pytest.mark.parametrize("horizon", [1, 2, 3])
def test_crashed_series_is_a_total_loss_at_any_horizon(horizon: int) -> None:
    series = _sample_series(1.0, 0.1, 1.0)
    profile = AssetProfile(id="PEPE", basket_kind="SmallCap", current_price=0.1, aviv_ratio=0.8)
    metrics = calculate_financial_metrics(
        profile, series, investment=1_000.0, horizon_years=horizon, discount_rate=0.20
    )
    assert metrics.npv == pytest.approx(-1_000.0)
    assert metrics.irr == pytest.approx(-100.0)
    assert metrics.roi == pytest.approx(-100.0)
    assert metrics.cagr == pytest.approx(-100.0)

    projection = calculate_npv(1_000.0, series, horizon, 0.20, aviv_ratio=0.8)
    assert all(value >= 0.0 for value in projection.projected_values)


def test_cagr_overflow_is_reported_as_invalid_range() -> None:
    with pytest.raises(InvalidRangeError):
        compound_growth(1.0, 20.0, 1 / 365.25)
    spike = TimeSeries.from_records([(0, 1.0), (86_400, 20.0)])
    with pytest.raises(InvalidRangeError):
        calculate_cagr(spike)


def test_irr_of_a_total_loss_is_minus_one_hundred() -> None:
    assert calculate_irr([-1_000.0, 0.0, 0.0]) == pytest.approx(-100.0)
    assert calculate_irr([-1_000.0, 0.0]) == pytest.approx(-100.0)


def test_capm_expected_return_and_sharpe_ratio() -> None:
    assert capm_expected_return(0.0) == pytest.approx(4.5)
    assert capm_expected_return(1.0) == pytest.approx(25.0)
    assert capm_expected_return(2.0) == pytest.approx(45.5)
    assert capm_expected_return(1.0, risk_free_rate=0.05, market_return=0.15) == pytest.approx(15.0)

    assert calculate_sharpe_ratio(54.5, 50.0) == pytest.approx(1.0)
    assert calculate_sharpe_ratio(4.5, 80.0) == pytest.approx(0.0)
    assert math.isnan(calculate_sharpe_ratio(10.0, 0.0))


def test_risk_adjusted_npv_discounts_at_beta_scaled_rate() -> None:
    flows = [-1_000.0, 0.0, 1_210.0]
    at_ten = calculate_risk_adjusted_npv(flows, 1.0, risk_free_rate=0.05, market_risk_premium=0.05)
    assert at_ten == pytest.approx(0.0, abs=1e-6)
    assert calculate_risk_adjusted_npv(flows, 2.0) < calculate_risk_adjusted_npv(flows, 0.5)
    with pytest.raises(InvalidRangeError):
        calculate_risk_adjusted_npv(flows, -10.0)


def test_volatility_breakdown_splits_market_and_specific_risk() -> None:
    split = volatility_breakdown(50.0, 0.6)
    assert split.systematic == pytest.approx(30.0)
    assert split.idiosyncratic == pytest.approx(40.0)
    assert split.total == 50.0

    capped = volatility_breakdown(40.0, 1.0)
    assert capped.systematic == pytest.approx(50.0)
    assert capped.idiosyncratic == 0.0
    assert volatility_breakdown(50.0, -0.6).systematic == pytest.approx(30.0)
