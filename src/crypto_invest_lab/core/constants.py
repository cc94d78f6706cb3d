"""Rule tables shared across Crypto Invest Lab modules.

The scoring heuristics and allocation policy are kept here as named data so
they can be inspected and swapped without touching the control flow that
consumes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .enums import BasketKind, MarketState, SourceKind

DAYS_PER_YEAR = 365.25
SECONDS_PER_YEAR = DAYS_PER_YEAR * 24 * 60 * 60

# -----------------
# Confidence scoring
# -----------------

# (minimum, points) pairs checked top-down; the last entry is the floor.
CONFIDENCE_DATA_POINTS: tuple[tuple[float, int], ...] = (
    (1000, 40),
    (500, 30),
    (100, 20),
    (0, 10),
)
CONFIDENCE_TIME_SPAN: tuple[tuple[float, int], ...] = (
    (3.0, 30),
    (2.0, 20),
    (1.0, 10),
    (0.0, 5),
)
CONFIDENCE_SOURCE: Mapping[SourceKind, int] = {
    SourceKind.PRIMARY: 30,
    SourceKind.SECONDARY: 20,
    SourceKind.ESTIMATED: 10,
}
CONFIDENCE_HIGH = 80
CONFIDENCE_MEDIUM = 60

# -----------------
# Growth projection
# -----------------

UNDERVALUED_AVIV = 1.0
OVERVALUED_AVIV = 2.0
UNDERVALUED_GROWTH_MULTIPLIER = 1.2
OVERVALUED_GROWTH_MULTIPLIER = 0.8
# Forward growth floor as a decimal fraction; -1.0 is a total loss.
MAX_LOSS_GROWTH = -1.0

# -----------------
# Beta
# -----------------

VAULTED_BETA_THRESHOLD = 70.0
VAULTED_BETA_MULTIPLIER = 0.8
ACTIVE_BETA_THRESHOLD = 80.0
ACTIVE_BETA_MULTIPLIER = 1.2
STABLE_NETWORK_GROWTH = 5.0
STABLE_NETWORK_MULTIPLIER = 0.9
TRADITIONAL_BETA_WEIGHT = 0.6
ON_CHAIN_BETA_WEIGHT = 0.4

# -----------------
# CAPM and risk-adjusted returns
# -----------------

# Decimal fractions per year.
RISK_FREE_RATE = 0.045
MARKET_RISK_PREMIUM = 0.15
CRYPTO_MARKET_RETURN = 0.25
# Annualised percent.
MARKET_VOLATILITY_PCT = 50.0

# -----------------
# Composite risk
# -----------------

RISK_WEIGHTS: Mapping[str, float] = {
    "volatility": 0.3,
    "liquidity": 0.2,
    "technical": 0.2,
    "fundamental": 0.15,
    "cointime": 0.15,
}
MARKET_RISK_MULTIPLIER: Mapping[MarketState, float] = {
    MarketState.BEARISH: 1.2,
    MarketState.NEUTRAL: 1.0,
    MarketState.BULLISH: 0.9,
}
BASKET_RISK_OFFSET: Mapping[BasketKind, int] = {
    BasketKind.BITCOIN: 0,
    BasketKind.BLUE_CHIP: 0,
    BasketKind.SMALL_CAP: 1,
}
STRONG_FUNDAMENTALS_SCORE = 8.0
AGGRESSIVE_FED_HIKE_PCT = 0.5
FED_RATE_NOTICE_PCT = 0.25

# -----------------
# Market state
# -----------------

ACCUMULATION_VAULTED_PCT = 70.0
DISTRIBUTION_ACTIVE_PCT = 80.0


@dataclass(frozen=True)
class AvivBand:
    """Half-open AVIV interval ``[lower, upper)`` and the lean it implies.

    ``lean`` is ``None`` for bands whose direction comes from supply skew.
    A confirmed lean is the market state outright; an unconfirmed one needs
    smart-money activity to become an extreme.
    """

    name: str
    lower: float
    upper: float
    lean: MarketState | None
    confirmed: bool


AVIV_BANDS: tuple[AvivBand, ...] = (
    AvivBand("strong_accumulation", 0.0, 0.5, MarketState.BULLISH, True),
    AvivBand("neutral", 0.5, 1.5, None, False),
    AvivBand("caution", 1.5, 1.9, MarketState.BEARISH, False),
    AvivBand("distribution", 1.9, float("inf"), MarketState.BEARISH, True),
)

# -----------------
# Allocation policy
# -----------------


@dataclass(frozen=True)
class AllocationBand:
    """Per-basket allocation limits (percent of portfolio) and risk levels."""

    target_min: float
    target_max: float
    hard_min: float
    hard_max: float
    base_risk: int
    over_allocation_risk: int


ALLOCATION_BANDS: Mapping[BasketKind, AllocationBand] = {
    BasketKind.BITCOIN: AllocationBand(60.0, 75.0, 60.0, 80.0, 2, 1),
    BasketKind.BLUE_CHIP: AllocationBand(20.0, 35.0, 0.0, 40.0, 3, 2),
    BasketKind.SMALL_CAP: AllocationBand(5.0, 10.0, 0.0, 15.0, 4, 2),
}
DEFAULT_BASKET = BasketKind.BLUE_CHIP
# Unmapped kinds borrow the BlueChip band but keep the neutral base risk.
DEFAULT_BASE_RISK = 3
MAX_RISK_FACTOR = 5

SMALL_CAP_HURDLE_PREMIUM = 5.0
BITCOIN_NEUTRAL_AVIV_CEILING = 1.0
HIGH_VOLATILITY_PCT = 70.0

__all__ = [
    "ACCUMULATION_VAULTED_PCT",
    "ACTIVE_BETA_MULTIPLIER",
    "ACTIVE_BETA_THRESHOLD",
    "AGGRESSIVE_FED_HIKE_PCT",
    "ALLOCATION_BANDS",
    "AVIV_BANDS",
    "AllocationBand",
    "AvivBand",
    "BASKET_RISK_OFFSET",
    "BITCOIN_NEUTRAL_AVIV_CEILING",
    "CONFIDENCE_DATA_POINTS",
    "CONFIDENCE_HIGH",
    "CONFIDENCE_MEDIUM",
    "CONFIDENCE_SOURCE",
    "CONFIDENCE_TIME_SPAN",
    "CRYPTO_MARKET_RETURN",
    "DAYS_PER_YEAR",
    "DEFAULT_BASE_RISK",
    "DEFAULT_BASKET",
    "DISTRIBUTION_ACTIVE_PCT",
    "FED_RATE_NOTICE_PCT",
    "HIGH_VOLATILITY_PCT",
    "MARKET_RISK_MULTIPLIER",
    "MARKET_RISK_PREMIUM",
    "MARKET_VOLATILITY_PCT",
    "MAX_LOSS_GROWTH",
    "MAX_RISK_FACTOR",
    "ON_CHAIN_BETA_WEIGHT",
    "OVERVALUED_AVIV",
    "OVERVALUED_GROWTH_MULTIPLIER",
    "RISK_FREE_RATE",
    "RISK_WEIGHTS",
    "SECONDS_PER_YEAR",
    "SMALL_CAP_HURDLE_PREMIUM",
    "STABLE_NETWORK_GROWTH",
    "STABLE_NETWORK_MULTIPLIER",
    "STRONG_FUNDAMENTALS_SCORE",
    "TRADITIONAL_BETA_WEIGHT",
    "UNDERVALUED_AVIV",
    "UNDERVALUED_GROWTH_MULTIPLIER",
    "VAULTED_BETA_MULTIPLIER",
    "VAULTED_BETA_THRESHOLD",
]
