"""Data source adapters used by :mod:`crypto_invest_lab`."""

from __future__ import annotations

from typing import Protocol, TypeVar

from .csv import AssetProfileCSVSource, PriceHistoryCSVSource

T_co = TypeVar("T_co", covariant=True)


class DataSource(Protocol[T_co]):
    """Adapter protocol: ``fetch`` returns core records for the pipeline."""

    def fetch(self) -> T_co: ...


__all__ = [
    "AssetProfileCSVSource",
    "DataSource",
    "PriceHistoryCSVSource",
]
