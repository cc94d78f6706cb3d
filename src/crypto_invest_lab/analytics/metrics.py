from __future__ import annotations

from collections.abc import Sequence
import math

import numpy as np
import pandas as pd

from ..core.constants import (
    ACTIVE_BETA_MULTIPLIER,
    ACTIVE_BETA_THRESHOLD,
    CONFIDENCE_DATA_POINTS,
    CONFIDENCE_HIGH,
    CONFIDENCE_MEDIUM,
    CONFIDENCE_SOURCE,
    CONFIDENCE_TIME_SPAN,
    CRYPTO_MARKET_RETURN,
    MARKET_RISK_PREMIUM,
    MARKET_VOLATILITY_PCT,
    MAX_LOSS_GROWTH,
    ON_CHAIN_BETA_WEIGHT,
    OVERVALUED_AVIV,
    OVERVALUED_GROWTH_MULTIPLIER,
    RISK_FREE_RATE,
    STABLE_NETWORK_GROWTH,
    STABLE_NETWORK_MULTIPLIER,
    TRADITIONAL_BETA_WEIGHT,
    UNDERVALUED_AVIV,
    UNDERVALUED_GROWTH_MULTIPLIER,
    VAULTED_BETA_MULTIPLIER,
    VAULTED_BETA_THRESHOLD,
)
from ..core.enums import ConfidenceLevel, MarketState, SourceKind
from ..core.models import (
    AssetProfile,
    BetaAdjustment,
    CAGRBreakdown,
    ConfidenceScore,
    FinancialMetrics,
    NPVProjection,
    TimeSeries,
    VolatilityBreakdown,
)
from ..errors import DivideByZeroError, InsufficientDataError, InvalidRangeError
from ..risk_scoring import calculate_risk_factor


def _tier(value: float, table: Sequence[tuple[float, int]]) -> int:
    """Return the points of the first ``(minimum, points)`` row ``value`` reaches."""

    for minimum, points in table:
        if value >= minimum:
            return points
    return table[-1][1]


def compound_growth(initial_value: float, final_value: float, years: float) -> CAGRBreakdown:
    """Run the CAGR formula step by step on raw endpoint values."""

    if years <= 0.0 or not math.isfinite(years):
        raise InvalidRangeError("time span must be positive", context={"years": years})
    if initial_value == 0.0:
        raise DivideByZeroError("initial value is zero")
    if initial_value < 0.0 or final_value < 0.0:
        raise InvalidRangeError(
            "CAGR needs non-negative endpoint values",
            context={"initial": initial_value, "final": final_value},
        )

    growth_ratio = final_value / initial_value
    exponent = 1 / years
    try:
        base = growth_ratio**exponent
    except OverflowError as exc:
        raise InvalidRangeError(
            "CAGR overflows for this growth over such a short span",
            context={"growth_ratio": growth_ratio, "years": years},
        ) from exc
    cagr_pct = (base - 1) * 100
    return CAGRBreakdown(
        initial_value=initial_value,
        final_value=final_value,
        years=years,
        growth_ratio=growth_ratio,
        exponent=exponent,
        base=base,
        cagr_pct=cagr_pct,
    )


def calculate_cagr(series: TimeSeries) -> CAGRBreakdown:
    """Compound annual growth rate between the first and last observation.

    Years are measured in 365.25-day units. The returned breakdown exposes the
    initial and final values, span, growth ratio, exponent, base and the
    resulting percentage so every step can be audited.
    """

    series.require(2)
    return compound_growth(series.first.value, series.last.value, series.years)


def calculate_confidence(
    data_points: int,
    years: float,
    source: SourceKind | str,
) -> ConfidenceScore:
    """Heuristic data-quality score on a 0-100 scale.

    The score is an indicator of how much history backs a metric, not a
    probability.
    """

    try:
        source_kind: SourceKind | None = SourceKind(source)
    except ValueError:
        source_kind = None

    points_score = _tier(data_points, CONFIDENCE_DATA_POINTS)
    span_score = _tier(years, CONFIDENCE_TIME_SPAN)
    source_score = CONFIDENCE_SOURCE.get(source_kind, CONFIDENCE_SOURCE[SourceKind.ESTIMATED])
    score = points_score + span_score + source_score

    if score >= CONFIDENCE_HIGH:
        level = ConfidenceLevel.HIGH
    elif score >= CONFIDENCE_MEDIUM:
        level = ConfidenceLevel.MEDIUM
    else:
        level = ConfidenceLevel.LOW
    return ConfidenceScore(score, level, points_score, span_score, source_score)


def projected_growth_rate(
    cagr_pct: float,
    *,
    network_growth: float = 0.0,
    aviv_ratio: float | None = None,
) -> float:
    """Trailing CAGR turned into a forward growth fraction with on-chain tilts.

    The result never drops below ``-1.0``: a position cannot lose more than
    its whole value.
    """

    growth = cagr_pct / 100.0
    growth *= 1 + network_growth / 100.0
    if aviv_ratio is not None:
        if aviv_ratio < UNDERVALUED_AVIV:
            growth *= UNDERVALUED_GROWTH_MULTIPLIER
        elif aviv_ratio > OVERVALUED_AVIV:
            growth *= OVERVALUED_GROWTH_MULTIPLIER
    return max(growth, MAX_LOSS_GROWTH)


def calculate_npv(
    investment: float,
    series: TimeSeries,
    horizon_years: int,
    discount_rate: float,
    *,
    network_growth: float = 0.0,
    aviv_ratio: float | None = None,
) -> NPVProjection:
    """Project yearly position values and discount them back to today.

    ``discount_rate`` is a decimal fraction. The value projected for year
    ``y`` is ``investment * (1 + g) ** y`` where ``g`` is the trailing CAGR
    adjusted by :func:`projected_growth_rate`; NPV is the sum of the
    discounted values less the investment.
    """

    if horizon_years < 1:
        raise InvalidRangeError("horizon must be at least one year", context={"horizon": horizon_years})
    if discount_rate <= -1.0:
        raise InvalidRangeError("discount rate must exceed -100%", context={"rate": discount_rate})

    cagr = calculate_cagr(series)
    growth = projected_growth_rate(cagr.cagr_pct, network_growth=network_growth, aviv_ratio=aviv_ratio)

    projected: list[float] = []
    present: list[float] = []
    try:
        for year in range(1, int(horizon_years) + 1):
            value = investment * (1 + growth) ** year
            projected.append(value)
            present.append(value / (1 + discount_rate) ** year)
    except OverflowError as exc:
        raise InvalidRangeError(
            "projected value overflows",
            context={"growth_rate": growth, "horizon": horizon_years},
        ) from exc

    npv = math.fsum(present) - investment
    return NPVProjection(npv, growth, tuple(projected), tuple(present))


def irr_equivalent(investment: float, terminal_value: float, years: float) -> float:
    """Annualised return (percent) turning ``investment`` into ``terminal_value``."""

    return compound_growth(investment, terminal_value, years).cagr_pct


def generate_cash_flows(
    investment: float,
    expected_price: float,
    current_price: float,
    horizon_years: int,
    staking_yield: float = 0.0,
) -> list[float]:
    """Cash flows of buying now, collecting staking rewards and selling at the horizon."""

    if current_price <= 0.0:
        raise DivideByZeroError("current price must be positive")
    if horizon_years < 1:
        raise InvalidRangeError("horizon must be at least one year", context={"horizon": horizon_years})

    reward = investment * (staking_yield / 100.0)
    flows = [-investment]
    flows.extend(reward for _ in range(1, int(horizon_years)))
    flows.append(investment * expected_price / current_price + reward)
    return flows


def discounted_value(cash_flows: Sequence[float], rate: float) -> float:
    """Net present value of cash flows where index 0 is today."""

    return math.fsum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def calculate_irr(
    cash_flows: Sequence[float],
    *,
    max_iterations: int = 100,
    precision: float = 1e-4,
) -> float:
    """Internal rate of return in percent via Newton-Raphson from a 10% guess.

    When nothing comes back after the initial outlay the position is a total
    loss and the IRR is -100%.
    """

    if len(cash_flows) < 2:
        raise InsufficientDataError(
            "IRR needs at least two cash flows",
            required_count=2,
            available_count=len(cash_flows),
        )
    if all(cf == 0 for cf in cash_flows[1:]):
        return MAX_LOSS_GROWTH * 100

    rate = 0.1
    for _ in range(max_iterations):
        npv = 0.0
        slope = 0.0
        for t, cf in enumerate(cash_flows):
            npv += cf / (1 + rate) ** t
            slope -= t * cf / (1 + rate) ** (t + 1)
        if abs(npv) < precision:
            return rate * 100
        if slope == 0:
            break
        rate = max(rate - npv / slope, -0.99)
    return rate * 100


def calculate_roi(beginning_value: float, ending_value: float) -> float:
    if beginning_value == 0.0:
        raise DivideByZeroError("beginning value is zero")
    return (ending_value - beginning_value) / beginning_value * 100


def calculate_beta(
    asset_returns: Sequence[float] | pd.Series,
    benchmark_returns: Sequence[float] | pd.Series,
) -> float:
    """CAPM beta: sample covariance with the benchmark over benchmark variance.

    Observations are paired by position, so both series must have the same
    length.
    """

    asset = pd.Series(np.asarray(asset_returns, dtype=float))
    bench = pd.Series(np.asarray(benchmark_returns, dtype=float))
    if len(asset) != len(bench):
        raise InvalidRangeError(
            "return series must be paired",
            context={"asset": len(asset), "benchmark": len(bench)},
        )
    if len(asset) < 2:
        raise InsufficientDataError(
            "beta needs at least two paired observations",
            required_count=2,
            available_count=len(asset),
        )

    variance = float(bench.var(ddof=1))
    if variance == 0.0 or not math.isfinite(variance):
        raise DivideByZeroError("benchmark variance is zero")
    return float(asset.cov(bench, ddof=1)) / variance


def adjust_beta(
    beta: float,
    *,
    vaulted_supply_pct: float,
    active_supply_pct: float,
    network_growth: float,
) -> BetaAdjustment:
    """Blend raw beta with a supply-dynamics adjusted on-chain beta."""

    on_chain = beta
    if vaulted_supply_pct > VAULTED_BETA_THRESHOLD:
        on_chain *= VAULTED_BETA_MULTIPLIER
    elif active_supply_pct > ACTIVE_BETA_THRESHOLD:
        on_chain *= ACTIVE_BETA_MULTIPLIER
    if abs(network_growth) < STABLE_NETWORK_GROWTH:
        on_chain *= STABLE_NETWORK_MULTIPLIER

    adjusted = TRADITIONAL_BETA_WEIGHT * beta + ON_CHAIN_BETA_WEIGHT * on_chain
    return BetaAdjustment(traditional=beta, on_chain=on_chain, adjusted=adjusted)


def calculate_volatility(series: TimeSeries, *, periods_per_year: int = 365) -> float:
    """Annualised standard deviation of simple returns, in percent."""

    if periods_per_year <= 0:
        raise ValueError("periods_per_year must be positive")
    returns = series.returns()
    if len(returns) < 2:
        raise InsufficientDataError(
            "volatility needs at least two returns",
            required_count=3,
            available_count=len(series),
        )
    return float(returns.std(ddof=1)) * math.sqrt(periods_per_year) * 100


def calculate_sharpe_ratio(
    return_pct: float,
    volatility_pct: float,
    *,
    risk_free_rate: float = RISK_FREE_RATE,
) -> float:
    """Excess annual return per unit of volatility; NaN when volatility is not positive."""

    if volatility_pct <= 0.0:
        return float("nan")
    return (return_pct - risk_free_rate * 100) / volatility_pct


def capm_expected_return(
    beta: float,
    *,
    risk_free_rate: float = RISK_FREE_RATE,
    market_return: float = CRYPTO_MARKET_RETURN,
) -> float:
    """CAPM required return in percent: ``rf + beta * (market - rf)``."""

    return (risk_free_rate + beta * (market_return - risk_free_rate)) * 100


def calculate_risk_adjusted_npv(
    cash_flows: Sequence[float],
    beta: float,
    *,
    risk_free_rate: float = RISK_FREE_RATE,
    market_risk_premium: float = MARKET_RISK_PREMIUM,
) -> float:
    """NPV of ``cash_flows`` discounted at the beta-scaled rate ``rf + beta * premium``."""

    rate = risk_free_rate + beta * market_risk_premium
    if rate <= -1.0:
        raise InvalidRangeError(
            "risk-adjusted discount rate must exceed -100%",
            context={"rate": rate, "beta": beta},
        )
    return discounted_value(cash_flows, rate)


def volatility_breakdown(
    volatility_pct: float,
    beta: float,
    *,
    market_volatility_pct: float = MARKET_VOLATILITY_PCT,
) -> VolatilityBreakdown:
    """Split total volatility into systematic and idiosyncratic parts.

    The systematic part is ``|beta|`` times market volatility; the
    idiosyncratic part is whatever variance is left, floored at zero.
    """

    systematic = abs(beta) * market_volatility_pct
    idiosyncratic = math.sqrt(max(0.0, volatility_pct**2 - systematic**2))
    return VolatilityBreakdown(systematic=systematic, idiosyncratic=idiosyncratic, total=volatility_pct)


def calculate_financial_metrics(
    profile: AssetProfile,
    series: TimeSeries,
    *,
    investment: float,
    horizon_years: int,
    discount_rate: float,
    market_state: MarketState = MarketState.NEUTRAL,
    fed_rate_change_pct: float = 0.0,
    smart_money_active: bool = False,
    benchmark_returns: Sequence[float] | pd.Series | None = None,
) -> FinancialMetrics:
    """Assemble :class:`FinancialMetrics` for one asset.

    The expected exit price compounds the current price at the projected
    growth rate; staking rewards are paid yearly on the invested amount. Price
    and staking contributions are reported separately. When benchmark returns
    are given, raw beta is estimated from the series instead of taken from the
    profile.

    The risk-adjusted fields use the raw beta: a CAPM expected return, an NPV
    of the cash flows discounted at the beta-scaled rate, a Sharpe ratio of
    the total-return CAGR over the profile volatility, and the split of that
    volatility into systematic and idiosyncratic parts.
    """

    if investment <= 0.0:
        raise InvalidRangeError("investment must be positive", context={"investment": investment})

    projection = calculate_npv(
        investment,
        series,
        horizon_years,
        discount_rate,
        network_growth=profile.on_chain_growth,
        aviv_ratio=profile.aviv_ratio,
    )
    expected_price = profile.current_price * (1 + projection.growth_rate) ** horizon_years
    flows = generate_cash_flows(
        investment,
        expected_price,
        profile.current_price,
        horizon_years,
        profile.staking_yield,
    )

    price_cagr = compound_growth(profile.current_price, expected_price, horizon_years).cagr_pct
    total_return_cagr = irr_equivalent(investment, flows[-1], horizon_years)
    price_roi = calculate_roi(investment, investment * expected_price / profile.current_price)
    roi = calculate_roi(investment, flows[-1])

    if benchmark_returns is not None:
        asset_returns = series.returns()
        raw_beta = calculate_beta(asset_returns.to_numpy(), benchmark_returns)
    else:
        raw_beta = profile.beta_raw
    beta = adjust_beta(
        raw_beta,
        vaulted_supply_pct=profile.vaulted_supply_pct,
        active_supply_pct=profile.active_supply_pct,
        network_growth=profile.on_chain_growth,
    )

    risk = calculate_risk_factor(
        profile.basket_kind,
        profile.volatility_30d,
        profile.fundamentals_score,
        profile.aviv_ratio,
        profile.active_supply_pct,
        profile.vaulted_supply_pct,
        fed_rate_change_pct,
        smart_money_active,
        market_state=market_state,
        network_growth=profile.on_chain_growth,
        profit_taking_ratio=profile.profit_taking_ratio,
    )
    confidence = calculate_confidence(len(series), series.years, series.source)
    vol = volatility_breakdown(profile.volatility_30d, raw_beta)

    return FinancialMetrics(
        npv=projection.npv,
        irr=calculate_irr(flows),
        cagr=price_cagr,
        total_return_cagr=total_return_cagr,
        roi=roi,
        price_roi=price_roi,
        staking_roi=roi - price_roi,
        risk_factor=risk.factor,
        beta_adjusted=beta.adjusted,
        confidence_score=float(confidence.score),
        beta=raw_beta,
        sharpe_ratio=calculate_sharpe_ratio(total_return_cagr, profile.volatility_30d),
        expected_return=capm_expected_return(raw_beta),
        risk_adjusted_npv=calculate_risk_adjusted_npv(flows, raw_beta),
        systematic_volatility=vol.systematic,
        idiosyncratic_volatility=vol.idiosyncratic,
    )


class MetricsCalculator:
    """Namespace exposing the metric helpers under one name."""

    calculate_cagr = staticmethod(calculate_cagr)
    calculate_confidence = staticmethod(calculate_confidence)
    calculate_npv = staticmethod(calculate_npv)
    calculate_irr = staticmethod(calculate_irr)
    irr_equivalent = staticmethod(irr_equivalent)
    calculate_roi = staticmethod(calculate_roi)
    calculate_beta = staticmethod(calculate_beta)
    adjust_beta = staticmethod(adjust_beta)
    calculate_volatility = staticmethod(calculate_volatility)
    calculate_sharpe_ratio = staticmethod(calculate_sharpe_ratio)
    capm_expected_return = staticmethod(capm_expected_return)
    calculate_risk_adjusted_npv = staticmethod(calculate_risk_adjusted_npv)
    volatility_breakdown = staticmethod(volatility_breakdown)
    calculate_risk_factor = staticmethod(calculate_risk_factor)
    calculate_financial_metrics = staticmethod(calculate_financial_metrics)


__all__ = [
    "MetricsCalculator",
    "adjust_beta",
    "calculate_beta",
    "calculate_cagr",
    "calculate_confidence",
    "calculate_financial_metrics",
    "calculate_irr",
    "calculate_npv",
    "calculate_risk_adjusted_npv",
    "calculate_roi",
    "calculate_sharpe_ratio",
    "calculate_volatility",
    "capm_expected_return",
    "compound_growth",
    "discounted_value",
    "generate_cash_flows",
    "irr_equivalent",
    "projected_growth_rate",
    "volatility_breakdown",
]
