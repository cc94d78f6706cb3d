"""CSV-backed data source implementations."""

from __future__ import annotations

import pandas as pd

from ..core import AssetProfile, SourceKind, TimeSeries
from ..errors import InvalidRangeError

_PROFILE_DEFAULTS: dict[str, float] = {
    "volatility_30d": 50.0,
    "on_chain_growth": 0.0,
    "aviv_ratio": 1.0,
    "active_supply_pct": 50.0,
    "vaulted_supply_pct": 50.0,
    "staking_yield": 0.0,
    "beta_raw": 1.0,
    "fundamentals_score": 5.0,
    "profit_taking_ratio": 1.0,
}


def _require_columns(df: pd.DataFrame, required: set[str], path: str) -> None:
    missing = required.difference(df.columns)
    if missing:
        raise InvalidRangeError(f"CSV missing columns: {sorted(missing)}", context={"path": path})


class PriceHistoryCSVSource:
    """Load a price series from a CSV with ``timestamp`` and ``value`` columns.

    Files holding several assets carry an ``asset`` column; pass ``asset`` to
    select one of them, or call :meth:`fetch_all` to split the file by asset.
    Rows are sorted by timestamp before the series is built.
    """

    def __init__(
        self,
        path: str,
        *,
        source: SourceKind | str = SourceKind.SECONDARY,
        asset: str | None = None,
    ) -> None:
        self.path = path
        self.source = SourceKind(source)
        self.asset = asset

    def _read(self) -> pd.DataFrame:
        df = pd.read_csv(self.path)
        _require_columns(df, {"timestamp", "value"}, self.path)
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
        return df.sort_values("timestamp")

    def fetch(self) -> TimeSeries:
        df = self._read()
        if self.asset is not None:
            _require_columns(df, {"asset"}, self.path)
            df = df[df["asset"].astype(str) == self.asset]
        return TimeSeries.from_frame(df, source=self.source)

    def fetch_all(self) -> dict[str, TimeSeries]:
        df = self._read()
        _require_columns(df, {"asset"}, self.path)
        return {
            str(name): TimeSeries.from_frame(group, source=self.source)
            for name, group in df.groupby("asset", sort=False)
        }


class AssetProfileCSVSource:
    """Load :class:`AssetProfile` rows plus optional ``holding_value`` per asset."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> pd.DataFrame:
        df = pd.read_csv(self.path)
        _require_columns(df, {"id", "basket_kind", "current_price"}, self.path)
        return df

    def fetch(self) -> list[AssetProfile]:
        df = self._read()
        profiles: list[AssetProfile] = []
        for _, r in df.iterrows():
            values = {
                name: float(r[name]) if name in r and pd.notna(r[name]) else default
                for name, default in _PROFILE_DEFAULTS.items()
            }
            profiles.append(
                AssetProfile(
                    id=str(r["id"]),
                    basket_kind=str(r["basket_kind"]),
                    current_price=float(r["current_price"]),
                    **values,
                )
            )
        return profiles

    def fetch_holdings(self) -> dict[str, float]:
        """Current position value per asset id; zero where the column is empty."""

        df = self._read()
        if "holding_value" not in df.columns:
            return {str(asset_id): 0.0 for asset_id in df["id"]}
        values = df["holding_value"].fillna(0.0).astype(float)
        return dict(zip(df["id"].astype(str), values))


__all__ = ["AssetProfileCSVSource", "PriceHistoryCSVSource"]
