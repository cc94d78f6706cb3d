"""Table-driven classification of the market regime from cointime signals.

The AVIV ratio selects a band from :data:`~crypto_invest_lab.core.constants.AVIV_BANDS`.
Each band carries a lean (bullish, bearish or, for the neutral band, whatever
the supply split suggests) and whether that lean is confirmed. Confirmed
leans are the state; unconfirmed ones stay neutral unless smart-money
activity strengthens them. A neutral lean never becomes an extreme and a
bullish lean never turns bearish.
"""

from __future__ import annotations

import math

from .core.constants import (
    ACCUMULATION_VAULTED_PCT,
    AVIV_BANDS,
    DISTRIBUTION_ACTIVE_PCT,
    AvivBand,
)
from .core.enums import MarketState
from .core.models import MarketConditions, MarketInputs
from .errors import InvalidRangeError


def classify_band(aviv_ratio: float) -> AvivBand:
    """Return the AVIV band containing ``aviv_ratio``."""

    if not math.isfinite(aviv_ratio) or aviv_ratio < 0.0:
        raise InvalidRangeError("AVIV ratio must be a finite non-negative number", context={"aviv": aviv_ratio})
    for band in AVIV_BANDS:
        if band.lower <= aviv_ratio < band.upper:
            return band
    # AVIV_BANDS covers [0, inf); only reachable if the table is edited badly.
    raise InvalidRangeError("AVIV ratio outside band table", context={"aviv": aviv_ratio})


def supply_lean(active_supply_pct: float, vaulted_supply_pct: float) -> MarketState:
    """Lean implied by how the circulating supply is split."""

    if vaulted_supply_pct >= ACCUMULATION_VAULTED_PCT:
        return MarketState.BULLISH
    if active_supply_pct >= DISTRIBUTION_ACTIVE_PCT:
        return MarketState.BEARISH
    return MarketState.NEUTRAL


def resolve_state(lean: MarketState, confirmed: bool, smart_money_active: bool) -> MarketState:
    if lean is MarketState.NEUTRAL:
        return MarketState.NEUTRAL
    if confirmed or smart_money_active:
        return lean
    return MarketState.NEUTRAL


def classify(
    aviv_ratio: float,
    active_supply_pct: float,
    vaulted_supply_pct: float,
    smart_money_active: bool,
) -> MarketState:
    band = classify_band(aviv_ratio)
    lean = band.lean if band.lean is not None else supply_lean(active_supply_pct, vaulted_supply_pct)
    return resolve_state(lean, band.confirmed, smart_money_active)


def build_market_conditions(inputs: MarketInputs) -> MarketConditions:
    """Derive :class:`MarketConditions` once per run from raw regime inputs."""

    band = classify_band(inputs.aviv_ratio)
    state = classify(
        inputs.aviv_ratio,
        inputs.active_supply_pct,
        inputs.vaulted_supply_pct,
        inputs.smart_money_active,
    )
    return MarketConditions(
        state=state,
        sentiment_score=inputs.sentiment_score,
        smart_money_active=inputs.smart_money_active,
        fed_rate_change_pct=inputs.fed_rate_change_pct,
        aviv_ratio=inputs.aviv_ratio,
        active_supply_pct=inputs.active_supply_pct,
        vaulted_supply_pct=inputs.vaulted_supply_pct,
        band=band.name,
    )


class MarketStateClassifier:
    """Namespace exposing the classifier functions under one name."""

    classify = staticmethod(classify)
    classify_band = staticmethod(classify_band)
    build_market_conditions = staticmethod(build_market_conditions)


__all__ = [
    "MarketStateClassifier",
    "build_market_conditions",
    "classify",
    "classify_band",
    "resolve_state",
    "supply_lean",
]
