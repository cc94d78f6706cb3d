from __future__ import annotations

import math

from ..core.constants import ALLOCATION_BANDS, DEFAULT_BASKET, AllocationBand
from ..core.enums import AllocationHint, AllocationState, BasketKind
from ..core.models import AllocationStatus, PortfolioSnapshot
from ..errors import DivideByZeroError, InvalidRangeError, UnmappedBasketError

_HINTS = {
    AllocationState.UNDEREXPOSED: AllocationHint.INCREASE,
    AllocationState.OPTIMAL: AllocationHint.MAINTAIN,
    AllocationState.OVEREXPOSED: AllocationHint.DECREASE,
}


def band_for(basket_kind: BasketKind | str) -> AllocationBand:
    """Look up the allocation band, raising for kinds outside the table."""

    kind = BasketKind.parse(basket_kind)
    band = ALLOCATION_BANDS.get(kind) if isinstance(kind, BasketKind) else None
    if band is None:
        raise UnmappedBasketError(
            f"no allocation band for basket {basket_kind!r}",
            basket_kind=basket_kind,
            fallback=DEFAULT_BASKET,
        )
    return band


def portfolio_share(portfolio_value: float, asset_value: float) -> float:
    """Asset value as a percentage of the total portfolio."""

    if not (math.isfinite(portfolio_value) and math.isfinite(asset_value)):
        raise InvalidRangeError("portfolio values must be finite")
    if portfolio_value < 0.0 or asset_value < 0.0:
        raise InvalidRangeError(
            "portfolio values must be non-negative",
            context={"portfolio": portfolio_value, "asset": asset_value},
        )
    if portfolio_value == 0.0:
        raise DivideByZeroError("portfolio value is zero")
    return asset_value * 100 / portfolio_value


def classify_allocation(portfolio_pct: float, band: AllocationBand) -> AllocationState:
    """Compare a share against the hard limits; both limits count as optimal."""

    if portfolio_pct < band.hard_min:
        return AllocationState.UNDEREXPOSED
    if portfolio_pct > band.hard_max:
        return AllocationState.OVEREXPOSED
    return AllocationState.OPTIMAL


def rebalance_amount(
    portfolio_value: float,
    asset_value: float,
    band: AllocationBand,
    status: AllocationState,
) -> float:
    """Value to buy (underexposed) or sell (overexposed) to reach the nearest limit."""

    if status is AllocationState.UNDEREXPOSED:
        return band.hard_min / 100 * portfolio_value - asset_value
    if status is AllocationState.OVEREXPOSED:
        return asset_value - band.hard_max / 100 * portfolio_value
    return 0.0


def analyze_allocation(
    portfolio_value: float,
    asset_value: float,
    basket_kind: BasketKind | str,
) -> AllocationStatus:
    """Classify an asset's share of the portfolio against its basket band.

    Baskets missing from the table use the BlueChip band; the result then has
    ``band_fallback`` set so callers can report the substitution.
    """

    kind = BasketKind.parse(basket_kind)
    try:
        band = band_for(kind)
        fallback = False
    except UnmappedBasketError as exc:
        band = ALLOCATION_BANDS[exc.fallback]
        fallback = True

    pct = portfolio_share(portfolio_value, asset_value)
    status = classify_allocation(pct, band)
    return AllocationStatus(
        portfolio_pct=pct,
        basket_kind=kind,
        status=status,
        target_band=(band.hard_min, band.hard_max),
        recommended_band=(band.target_min, band.target_max),
        hint=_HINTS[status],
        rebalance_amount=rebalance_amount(portfolio_value, asset_value, band, status),
        band_fallback=fallback,
    )


def analyze_snapshot(snapshot: PortfolioSnapshot) -> AllocationStatus:
    return analyze_allocation(
        snapshot.portfolio_total_value,
        snapshot.asset_value,
        snapshot.basket_kind,
    )


class AllocationAnalyzer:
    """Namespace exposing the allocation helpers under one name."""

    analyze = staticmethod(analyze_allocation)
    analyze_snapshot = staticmethod(analyze_snapshot)
    band_for = staticmethod(band_for)


__all__ = [
    "AllocationAnalyzer",
    "analyze_allocation",
    "analyze_snapshot",
    "band_for",
    "classify_allocation",
    "portfolio_share",
    "rebalance_amount",
]
