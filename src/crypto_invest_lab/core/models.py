"""Immutable data models used throughout Crypto Invest Lab."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Any

import pandas as pd

from ..errors import InsufficientDataError, InvalidRangeError
from .constants import SECONDS_PER_YEAR
from .enums import (
    Action,
    AllocationHint,
    AllocationState,
    BasketKind,
    ConfidenceLevel,
    DecisionStage,
    MarketState,
    SourceKind,
)


def to_timestamp(value: Any) -> pd.Timestamp:
    """Normalise epoch seconds, ISO-8601 strings or datetimes to UTC."""

    if isinstance(value, bool):
        raise InvalidRangeError(f"invalid timestamp: {value!r}")
    if isinstance(value, Real):
        ts = pd.Timestamp(value, unit="s", tz="UTC")
    elif isinstance(value, (str, datetime)):
        ts = pd.Timestamp(value)
    else:
        raise InvalidRangeError(f"invalid timestamp: {value!r}")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def _plain(value: Any) -> Any:
    """Convert enums, timestamps and tuples into JSON-friendly primitives."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class _Record:
    """Mixin providing ``to_dict`` for frozen dataclass records."""

    def to_dict(self) -> dict[str, Any]:
        return {k: _plain(v) for k, v in asdict(self).items()}  # type: ignore[call-overload]


@dataclass(frozen=True)
class PricePoint(_Record):
    """Single observation of a price or on-chain value."""

    timestamp: pd.Timestamp
    value: float


@dataclass(frozen=True)
class TimeSeries(_Record):
    """Ordered price/on-chain observations with strictly increasing timestamps."""

    points: tuple[PricePoint, ...]
    source: SourceKind = SourceKind.SECONDARY

    def __post_init__(self) -> None:
        points = tuple(self.points)
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "source", SourceKind(self.source))
        for prev, cur in zip(points, points[1:]):
            if cur.timestamp <= prev.timestamp:
                raise InvalidRangeError(
                    "timestamps must be strictly increasing",
                    context={"previous": prev.timestamp, "current": cur.timestamp},
                )

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any] | tuple[Any, float]],
        source: SourceKind | str = SourceKind.SECONDARY,
    ) -> "TimeSeries":
        """Build a series from ``{"timestamp", "value"}`` mappings or pairs."""

        points: list[PricePoint] = []
        for rec in records:
            if isinstance(rec, Mapping):
                ts, value = rec["timestamp"], rec["value"]
            else:
                ts, value = rec
            points.append(PricePoint(to_timestamp(ts), float(value)))
        return cls(tuple(points), SourceKind(source))

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        *,
        timestamp_col: str = "timestamp",
        value_col: str = "value",
        source: SourceKind | str = SourceKind.SECONDARY,
    ) -> "TimeSeries":
        missing = {timestamp_col, value_col}.difference(df.columns)
        if missing:
            raise InvalidRangeError(f"frame missing columns: {sorted(missing)}")
        pairs = zip(df[timestamp_col].tolist(), df[value_col].tolist())
        return cls.from_records(pairs, source=source)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self.points)

    def require(self, count: int = 2) -> None:
        if len(self.points) < count:
            raise InsufficientDataError(
                f"series needs at least {count} points",
                required_count=count,
                available_count=len(self.points),
            )

    @property
    def first(self) -> PricePoint:
        self.require(1)
        return self.points[0]

    @property
    def last(self) -> PricePoint:
        self.require(1)
        return self.points[-1]

    @property
    def years(self) -> float:
        """Span between first and last observation in 365.25-day years."""

        self.require(2)
        return (self.last.timestamp - self.first.timestamp).total_seconds() / SECONDS_PER_YEAR

    def to_series(self) -> pd.Series:
        index = pd.DatetimeIndex([p.timestamp for p in self.points], name="timestamp")
        return pd.Series([p.value for p in self.points], index=index, dtype=float, name="value")

    def returns(self) -> pd.Series:
        """Simple period-over-period returns as decimal fractions."""

        self.require(2)
        return self.to_series().pct_change().dropna()


@dataclass(frozen=True)
class AssetProfile(_Record):
    """Per-run snapshot of an asset's price and on-chain fundamentals."""

    id: str
    basket_kind: BasketKind | str
    current_price: float
    volatility_30d: float = 50.0  # percent, annualised
    on_chain_growth: float = 0.0  # percent network growth
    aviv_ratio: float = 1.0
    active_supply_pct: float = 50.0
    vaulted_supply_pct: float = 50.0
    staking_yield: float = 0.0  # percent per year
    beta_raw: float = 1.0
    fundamentals_score: float = 5.0  # 0 (weak) to 10 (strong)
    profit_taking_ratio: float = 1.0  # SOPR-style spent output profit ratio

    def __post_init__(self) -> None:
        object.__setattr__(self, "basket_kind", BasketKind.parse(self.basket_kind))


@dataclass(frozen=True)
class MarketInputs(_Record):
    """Raw market-regime signals supplied by the data layer."""

    aviv_ratio: float
    active_supply_pct: float = 50.0
    vaulted_supply_pct: float = 50.0
    smart_money_active: bool = False
    fed_rate_change_pct: float = 0.0
    sentiment_score: float = 0.0


@dataclass(frozen=True)
class MarketConditions(_Record):
    state: MarketState
    sentiment_score: float
    smart_money_active: bool
    fed_rate_change_pct: float
    aviv_ratio: float
    active_supply_pct: float
    vaulted_supply_pct: float
    band: str = ""


@dataclass(frozen=True)
class PortfolioSnapshot(_Record):
    portfolio_total_value: float
    asset_value: float
    basket_kind: BasketKind | str

    def __post_init__(self) -> None:
        object.__setattr__(self, "basket_kind", BasketKind.parse(self.basket_kind))


@dataclass(frozen=True)
class CAGRBreakdown(_Record):
    """Every intermediate step of the CAGR formula, kept for auditing."""

    initial_value: float
    final_value: float
    years: float
    growth_ratio: float
    exponent: float
    base: float
    cagr_pct: float


@dataclass(frozen=True)
class ConfidenceScore(_Record):
    score: int
    level: ConfidenceLevel
    data_points_score: int
    time_span_score: int
    source_score: int


@dataclass(frozen=True)
class NPVProjection(_Record):
    npv: float
    growth_rate: float  # decimal fraction per year
    projected_values: tuple[float, ...]
    present_values: tuple[float, ...]


@dataclass(frozen=True)
class BetaAdjustment(_Record):
    traditional: float
    on_chain: float
    adjusted: float


@dataclass(frozen=True)
class VolatilityBreakdown(_Record):
    """Total volatility split into the market-driven and asset-specific parts."""

    systematic: float
    idiosyncratic: float
    total: float


@dataclass(frozen=True)
class RiskBreakdown(_Record):
    overall: float  # 0-100 composite
    volatility: float
    liquidity: float
    technical: float
    fundamental: float
    cointime: float
    market_multiplier: float
    factor: int  # 1-5


@dataclass(frozen=True)
class FinancialMetrics(_Record):
    npv: float
    irr: float
    cagr: float
    total_return_cagr: float
    roi: float
    price_roi: float
    staking_roi: float
    risk_factor: int
    beta_adjusted: float
    confidence_score: float
    beta: float = 1.0  # raw beta before the on-chain blend
    sharpe_ratio: float = 0.0
    expected_return: float = 0.0  # CAPM, percent per year
    risk_adjusted_npv: float = 0.0
    systematic_volatility: float = 0.0  # percent
    idiosyncratic_volatility: float = 0.0  # percent


@dataclass(frozen=True)
class AllocationStatus(_Record):
    portfolio_pct: float
    basket_kind: BasketKind | str
    status: AllocationState
    target_band: tuple[float, float]
    recommended_band: tuple[float, float]
    hint: AllocationHint
    rebalance_amount: float = 0.0
    band_fallback: bool = False


@dataclass(frozen=True)
class InvestmentRecommendation(_Record):
    action: Action
    worth_investing: bool
    good_timing: bool
    appropriate_amount: bool
    risk_factor: int
    should_diversify: bool
    rationale: str
    risks: str
    rebalancing_actions: tuple[str, ...] = field(default_factory=tuple)
    market_analysis: str = ""
    stage: DecisionStage = DecisionStage.FINAL


@dataclass(frozen=True)
class AnalysisResult(_Record):
    """Everything produced for one asset in one analysis run."""

    asset_id: str
    basket_kind: BasketKind | str
    cagr: CAGRBreakdown
    confidence: ConfidenceScore
    metrics: FinancialMetrics
    conditions: MarketConditions
    allocation: AllocationStatus
    recommendation: InvestmentRecommendation
    realised_volatility: float | None = None  # annualised percent from the series


__all__ = [
    "AllocationStatus",
    "AnalysisResult",
    "AssetProfile",
    "BetaAdjustment",
    "CAGRBreakdown",
    "ConfidenceScore",
    "FinancialMetrics",
    "InvestmentRecommendation",
    "MarketConditions",
    "MarketInputs",
    "NPVProjection",
    "PortfolioSnapshot",
    "PricePoint",
    "RiskBreakdown",
    "TimeSeries",
    "VolatilityBreakdown",
    "to_timestamp",
]
