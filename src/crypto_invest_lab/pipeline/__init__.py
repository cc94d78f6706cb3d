from __future__ import annotations

"""Per-asset orchestration of the metrics, regime, allocation and decision steps."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging

import pandas as pd

from ..analytics.metrics import (
    calculate_cagr,
    calculate_confidence,
    calculate_financial_metrics,
    calculate_volatility,
)
from ..analytics.portfolio import analyze_snapshot
from ..config import AnalysisSettings
from ..core import (
    AnalysisRepository,
    AnalysisResult,
    AssetProfile,
    MarketConditions,
    MarketInputs,
    PortfolioSnapshot,
    TimeSeries,
)
from ..errors import AnalysisError
from ..market_state import build_market_conditions
from ..recommendation import recommend
from ..sources import AssetProfileCSVSource, PriceHistoryCSVSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisRequest:
    """Inputs for analysing one asset within a portfolio."""

    profile: AssetProfile
    series: TimeSeries
    snapshot: PortfolioSnapshot
    benchmark_returns: Sequence[float] | pd.Series | None = None


def analyze_asset(
    profile: AssetProfile,
    series: TimeSeries,
    snapshot: PortfolioSnapshot,
    market: MarketInputs | MarketConditions,
    settings: AnalysisSettings | None = None,
    *,
    benchmark_returns: Sequence[float] | pd.Series | None = None,
) -> AnalysisResult:
    """Run metrics, market state, allocation and recommendation for one asset.

    Errors from the core propagate unchanged; :class:`Pipeline` decides
    whether to skip the asset.
    """

    settings = settings or AnalysisSettings()
    conditions = market if isinstance(market, MarketConditions) else build_market_conditions(market)
    assumptions = settings.assumptions_for(profile.basket_kind)

    series.require(2)
    cagr = calculate_cagr(series)
    confidence = calculate_confidence(len(series), series.years, series.source)
    realised_volatility = (
        calculate_volatility(series, periods_per_year=settings.periods_per_year)
        if len(series) > 2
        else None
    )
    metrics = calculate_financial_metrics(
        profile,
        series,
        investment=settings.investment_amount,
        horizon_years=settings.horizon_years,
        discount_rate=assumptions.discount_rate,
        market_state=conditions.state,
        fed_rate_change_pct=conditions.fed_rate_change_pct,
        smart_money_active=conditions.smart_money_active,
        benchmark_returns=benchmark_returns,
    )
    allocation = analyze_snapshot(snapshot)
    recommendation = recommend(
        profile.basket_kind,
        allocation,
        metrics,
        conditions,
        hurdle_rate=assumptions.hurdle_rate_pct,
        volatility=profile.volatility_30d,
    )
    return AnalysisResult(
        asset_id=profile.id,
        basket_kind=profile.basket_kind,
        cagr=cagr,
        confidence=confidence,
        metrics=metrics,
        conditions=conditions,
        allocation=allocation,
        recommendation=recommendation,
        realised_volatility=realised_volatility,
    )


class Pipeline:
    """Analyse a batch of assets under one market regime.

    Market conditions are derived once per run. Assets whose analysis raises
    an :class:`~crypto_invest_lab.errors.AnalysisError` are logged and skipped.
    """

    def __init__(
        self,
        requests: Iterable[AnalysisRequest],
        market: MarketInputs | MarketConditions,
        settings: AnalysisSettings | None = None,
    ) -> None:
        self._requests: list[AnalysisRequest] = list(requests)
        self._market = market
        self.settings = settings or AnalysisSettings()

    @classmethod
    def from_sources(
        cls,
        prices: PriceHistoryCSVSource,
        assets: AssetProfileCSVSource,
        market: MarketInputs | MarketConditions,
        settings: AnalysisSettings | None = None,
        *,
        portfolio_total_value: float | None = None,
    ) -> "Pipeline":
        """Join asset profiles, holdings and price histories by asset id.

        The portfolio total defaults to the sum of all holdings. Assets with no
        price history are logged and left out.
        """

        profiles = assets.fetch()
        holdings = assets.fetch_holdings()
        series_by_asset = prices.fetch_all()
        total = portfolio_total_value if portfolio_total_value is not None else sum(holdings.values())

        requests: list[AnalysisRequest] = []
        for profile in profiles:
            series = series_by_asset.get(profile.id)
            if series is None:
                logger.warning("No price history for %s; skipping", profile.id)
                continue
            snapshot = PortfolioSnapshot(
                portfolio_total_value=total,
                asset_value=holdings.get(profile.id, 0.0),
                basket_kind=profile.basket_kind,
            )
            requests.append(AnalysisRequest(profile, series, snapshot))
        return cls(requests, market, settings)

    def conditions(self) -> MarketConditions:
        if isinstance(self._market, MarketConditions):
            return self._market
        return build_market_conditions(self._market)

    def run(self) -> AnalysisRepository:
        repo = AnalysisRepository()
        conditions = self.conditions()
        logger.info(
            "Market state %s (AVIV %.2f, band %s)",
            conditions.state.value,
            conditions.aviv_ratio,
            conditions.band,
        )
        for request in self._requests:
            asset_id = request.profile.id
            try:
                result = analyze_asset(
                    request.profile,
                    request.series,
                    request.snapshot,
                    conditions,
                    self.settings,
                    benchmark_returns=request.benchmark_returns,
                )
            except AnalysisError as exc:
                logger.warning("Analysis of %s failed: %s", asset_id, exc)
                continue
            if result.allocation.band_fallback:
                logger.warning(
                    "Basket %r of %s has no allocation band; using BlueChip limits",
                    result.basket_kind,
                    asset_id,
                )
            repo.add(result)
        logger.info("Analysed %d of %d assets", len(repo), len(self._requests))
        return repo


__all__ = ["AnalysisRequest", "Pipeline", "analyze_asset"]
