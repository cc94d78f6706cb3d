"""In-memory repositories for Crypto Invest Lab analysis results."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import pandas as pd

from .enums import Action, BasketKind
from .models import AnalysisResult


def _flatten(result: AnalysisResult) -> dict[str, Any]:
    """One flat row per asset for DataFrame/CSV export."""

    metrics = result.metrics
    rec = result.recommendation
    allocation = result.allocation
    basket = result.basket_kind
    return {
        "asset_id": result.asset_id,
        "basket_kind": basket.value if isinstance(basket, BasketKind) else basket,
        "action": rec.action.value,
        "worth_investing": rec.worth_investing,
        "good_timing": rec.good_timing,
        "appropriate_amount": rec.appropriate_amount,
        "should_diversify": rec.should_diversify,
        "risk_factor": rec.risk_factor,
        "market_state": result.conditions.state.value,
        "aviv_ratio": result.conditions.aviv_ratio,
        "portfolio_pct": allocation.portfolio_pct,
        "allocation_status": allocation.status.value,
        "band_fallback": allocation.band_fallback,
        "npv": metrics.npv,
        "irr": metrics.irr,
        "cagr": metrics.cagr,
        "historical_cagr": result.cagr.cagr_pct,
        "total_return_cagr": metrics.total_return_cagr,
        "roi": metrics.roi,
        "beta": metrics.beta,
        "beta_adjusted": metrics.beta_adjusted,
        "expected_return": metrics.expected_return,
        "risk_adjusted_npv": metrics.risk_adjusted_npv,
        "sharpe_ratio": metrics.sharpe_ratio,
        "systematic_volatility": metrics.systematic_volatility,
        "idiosyncratic_volatility": metrics.idiosyncratic_volatility,
        "metrics_risk_factor": metrics.risk_factor,
        "confidence_score": metrics.confidence_score,
        "confidence_level": result.confidence.level.value,
        "realised_volatility": result.realised_volatility,
        "rationale": rec.rationale,
        "risks": rec.risks,
        "rebalancing_actions": "; ".join(rec.rebalancing_actions),
    }


class AnalysisRepository:
    """Lightweight in-memory collection of per-asset results with pandas export."""

    def __init__(self, results: Iterable[AnalysisResult] | None = None) -> None:
        self._results: list[AnalysisResult] = list(results) if results else []

    def add(self, result: AnalysisResult) -> None:
        self._results.append(result)

    def extend(self, items: Iterable[AnalysisResult]) -> None:
        self._results.extend(items)

    def filter(
        self,
        *,
        actions: list[Action] | None = None,
        baskets: list[BasketKind | str] | None = None,
        min_confidence: float = 0.0,
    ) -> "AnalysisRepository":
        wanted = {BasketKind.parse(b) for b in baskets} if baskets else None
        res: list[AnalysisResult] = []
        for result in self._results:
            if actions and result.recommendation.action not in actions:
                continue
            if wanted is not None and BasketKind.parse(result.basket_kind) not in wanted:
                continue
            if result.metrics.confidence_score < min_confidence:
                continue
            res.append(result)
        return AnalysisRepository(res)

    def get(self, asset_id: str) -> AnalysisResult | None:
        for result in self._results:
            if result.asset_id == asset_id:
                return result
        return None

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([_flatten(result) for result in self._results])

    def to_records(self) -> list[dict[str, Any]]:
        return [result.to_dict() for result in self._results]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[AnalysisResult]:
        return iter(self._results)


__all__ = ["AnalysisRepository"]
