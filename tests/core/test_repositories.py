from __future__ import annotations

from crypto_invest_lab.core import (
    Action,
    AnalysisRepository,
    AssetProfile,
    BasketKind,
    MarketInputs,
    PortfolioSnapshot,
    TimeSeries,
)
from crypto_invest_lab.core.constants import SECONDS_PER_YEAR
from crypto_invest_lab.pipeline import analyze_asset


def _result(asset_id: str, basket: str, pct: float, final: float):
    series = TimeSeries.from_records([(0, 100.0), (2 * SECONDS_PER_YEAR, final)], source="primary")
    profile = AssetProfile(id=asset_id, basket_kind=basket, current_price=final)
    snapshot = PortfolioSnapshot(1_000.0, pct * 10.0, basket)
    return analyze_asset(profile, series, snapshot, MarketInputs(aviv_ratio=0.3))


def test_repository_filters_and_exports() -> None:
    repo = AnalysisRepository([_result("BTC", "Bitcoin", 70.0, 250.0)])
    repo.add(_result("SHIB", "SmallCap", 20.0, 150.0))
    repo.extend([_result("LINK", "BlueChip", 10.0, 90.0)])
    assert len(repo) == 3

    sells = repo.filter(actions=[Action.SELL])
    assert [r.asset_id for r in sells] == ["SHIB"]
    blue = repo.filter(baskets=[BasketKind.BLUE_CHIP])
    assert [r.asset_id for r in blue] == ["LINK"]
    assert repo.get("BTC") is not None
    assert repo.get("DOGE") is None

    df = repo.to_dataframe()
    assert df.shape[0] == 3
    assert df.loc[df["asset_id"] == "SHIB", "allocation_status"].item() == "overexposed"
    assert df.loc[df["asset_id"] == "BTC", "basket_kind"].item() == "Bitcoin"

    records = repo.to_records()
    assert records[0]["allocation"]["status"] == "optimal"
    assert records[0]["confidence"]["level"] in {"high", "medium", "low"}


def test_repository_filter_accepts_display_spellings() -> None:
    repo = AnalysisRepository(
        [
            _result("LINK", "BlueChip", 10.0, 90.0),
            _result("SHIB", "SmallCap", 5.0, 150.0),
            _result("DOGE", "Meme", 5.0, 150.0),
        ]
    )
    assert [r.asset_id for r in repo.filter(baskets=["Blue Chip"])] == ["LINK"]
    assert [r.asset_id for r in repo.filter(baskets=["small-cap", "BlueChip"])] == ["LINK", "SHIB"]
    assert [r.asset_id for r in repo.filter(baskets=[" Meme "])] == ["DOGE"]
