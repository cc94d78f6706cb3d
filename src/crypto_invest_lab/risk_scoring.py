from __future__ import annotations

"""Heuristic composite risk scoring for crypto assets."""

import math
from typing import Mapping

from .core.constants import (
    AGGRESSIVE_FED_HIKE_PCT,
    BASKET_RISK_OFFSET,
    MARKET_RISK_MULTIPLIER,
    MAX_RISK_FACTOR,
    RISK_WEIGHTS,
    STRONG_FUNDAMENTALS_SCORE,
)
from .core.enums import BasketKind, MarketState
from .core.models import RiskBreakdown

# Component scores on a 0 (safe) to 100 (risky) scale: thresholds and the
# scores they trigger, with ``neutral`` applying otherwise.
LIQUIDITY_RISK: Mapping[str, float] = {
    "active_above": 80.0,
    "active_score": 70.0,
    "vaulted_above": 75.0,
    "vaulted_score": 25.0,
    "neutral": 40.0,
}
TECHNICAL_RISK: Mapping[str, float] = {
    "profit_taking_above": 1.2,
    "profit_taking_score": 75.0,
    "accumulation_below": 0.95,
    "accumulation_score": 30.0,
    "neutral": 50.0,
}
FUNDAMENTAL_RISK: Mapping[str, float] = {
    "declining_below": -10.0,
    "declining_score": 80.0,
    "growing_above": 15.0,
    "growing_score": 25.0,
    "neutral": 50.0,
}
COINTIME_RISK: Mapping[str, float] = {
    "overvalued_above": 2.5,
    "overvalued_score": 85.0,
    "undervalued_below": 0.6,
    "undervalued_score": 20.0,
    "neutral": 50.0,
}


def liquidity_risk(active_supply_pct: float, vaulted_supply_pct: float) -> float:
    if active_supply_pct > LIQUIDITY_RISK["active_above"]:
        return LIQUIDITY_RISK["active_score"]
    if vaulted_supply_pct > LIQUIDITY_RISK["vaulted_above"]:
        return LIQUIDITY_RISK["vaulted_score"]
    return LIQUIDITY_RISK["neutral"]


def technical_risk(profit_taking_ratio: float) -> float:
    if profit_taking_ratio > TECHNICAL_RISK["profit_taking_above"]:
        return TECHNICAL_RISK["profit_taking_score"]
    if profit_taking_ratio < TECHNICAL_RISK["accumulation_below"]:
        return TECHNICAL_RISK["accumulation_score"]
    return TECHNICAL_RISK["neutral"]


def fundamental_risk(network_growth: float) -> float:
    if network_growth < FUNDAMENTAL_RISK["declining_below"]:
        return FUNDAMENTAL_RISK["declining_score"]
    if network_growth > FUNDAMENTAL_RISK["growing_above"]:
        return FUNDAMENTAL_RISK["growing_score"]
    return FUNDAMENTAL_RISK["neutral"]


def cointime_risk(aviv_ratio: float) -> float:
    if aviv_ratio > COINTIME_RISK["overvalued_above"]:
        return COINTIME_RISK["overvalued_score"]
    if aviv_ratio < COINTIME_RISK["undervalued_below"]:
        return COINTIME_RISK["undervalued_score"]
    return COINTIME_RISK["neutral"]


def risk_level(overall: float) -> int:
    """Map a 0-100 composite onto the 1-5 scale in 20-point steps."""

    return max(1, min(MAX_RISK_FACTOR, math.ceil(overall / 20.0)))


def calculate_risk_factor(
    basket_kind: BasketKind | str,
    volatility: float,
    fundamentals_score: float,
    aviv_ratio: float,
    active_supply_pct: float,
    vaulted_supply_pct: float,
    fed_rate_change_pct: float,
    smart_money_active: bool,
    *,
    market_state: MarketState = MarketState.NEUTRAL,
    network_growth: float = 0.0,
    profit_taking_ratio: float = 1.0,
) -> RiskBreakdown:
    """Combine volatility and on-chain factors into a composite risk score.

    Parameters
    ----------
    basket_kind:
        Basket of the asset; small caps sit one level higher.
    volatility:
        Annualised volatility in percent, used directly as the volatility
        component and capped at 100.
    fundamentals_score:
        Project quality from 0 to 10. Scores above 8 lower the level by one.
    aviv_ratio, active_supply_pct, vaulted_supply_pct:
        Cointime valuation and supply split driving the cointime and liquidity
        components.
    fed_rate_change_pct:
        Latest Fed funds change; hikes above half a point add one level.
    smart_money_active:
        Informed holders net-selling adds one level.
    market_state:
        Scales the composite by 1.2 (bearish), 1.0 (neutral) or 0.9 (bullish)
        before it is clamped to 100.
    """

    components = {
        "volatility": max(0.0, min(volatility, 100.0)),
        "liquidity": liquidity_risk(active_supply_pct, vaulted_supply_pct),
        "technical": technical_risk(profit_taking_ratio),
        "fundamental": fundamental_risk(network_growth),
        "cointime": cointime_risk(aviv_ratio),
    }
    multiplier = MARKET_RISK_MULTIPLIER[MarketState(market_state)]
    composite = math.fsum(RISK_WEIGHTS[name] * value for name, value in components.items())
    overall = min(100.0, composite * multiplier)

    level = risk_level(overall)
    level += BASKET_RISK_OFFSET.get(BasketKind.parse(basket_kind), 0)
    if fundamentals_score > STRONG_FUNDAMENTALS_SCORE:
        level -= 1
    if smart_money_active:
        level += 1
    if fed_rate_change_pct > AGGRESSIVE_FED_HIKE_PCT:
        level += 1

    return RiskBreakdown(
        overall=overall,
        volatility=components["volatility"],
        liquidity=components["liquidity"],
        technical=components["technical"],
        fundamental=components["fundamental"],
        cointime=components["cointime"],
        market_multiplier=multiplier,
        factor=max(1, min(MAX_RISK_FACTOR, level)),
    )


__all__ = [
    "COINTIME_RISK",
    "FUNDAMENTAL_RISK",
    "LIQUIDITY_RISK",
    "TECHNICAL_RISK",
    "calculate_risk_factor",
    "cointime_risk",
    "fundamental_risk",
    "liquidity_risk",
    "risk_level",
    "technical_risk",
]
