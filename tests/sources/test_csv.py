from __future__ import annotations

from pathlib import Path

import pytest

from crypto_invest_lab.core import BasketKind, SourceKind
from crypto_invest_lab.errors import InvalidRangeError
from crypto_invest_lab.sources import AssetProfileCSVSource, PriceHistoryCSVSource

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def test_price_history_filters_by_asset_and_sorts() -> None:
    src = PriceHistoryCSVSource(str(FIXTURES / "prices.csv"), asset="BBB", source="estimated")
    series = src.fetch()
    assert [p.value for p in series] == [10.0, 11.0, 12.0]
    assert series.source is SourceKind.ESTIMATED
    assert series.first.timestamp.tz is not None


def test_price_history_fetch_all_splits_assets() -> None:
    by_asset = PriceHistoryCSVSource(str(FIXTURES / "prices.csv")).fetch_all()
    assert set(by_asset) == {"AAA", "BBB"}
    assert len(by_asset["AAA"]) == 3
    assert by_asset["AAA"].source is SourceKind.SECONDARY


def test_price_history_requires_columns(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    path.write_text("date,price\n2024-01-01,1\n")
    with pytest.raises(InvalidRangeError):
        PriceHistoryCSVSource(str(path)).fetch()


def test_asset_profiles_fill_defaults_and_holdings() -> None:
    src = AssetProfileCSVSource(str(FIXTURES / "assets.csv"))
    profiles = src.fetch()
    assert [p.id for p in profiles] == ["AAA", "BBB", "CCC"]
    assert profiles[0].basket_kind is BasketKind.BITCOIN
    assert profiles[0].staking_yield == 0.0
    assert profiles[1].basket_kind is BasketKind.BLUE_CHIP
    assert profiles[1].volatility_30d == 50.0
    assert profiles[1].staking_yield == 4.0
    assert profiles[2].aviv_ratio == 1.0
    assert profiles[2].beta_raw == 1.0

    holdings = src.fetch_holdings()
    assert holdings == {"AAA": 7000.0, "BBB": 2000.0, "CCC": 1000.0}
