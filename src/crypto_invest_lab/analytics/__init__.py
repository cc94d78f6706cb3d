"""Analytics subpackage bundling the financial metric and allocation helpers."""

from . import metrics, portfolio

__all__ = [
    "metrics",
    "portfolio",
]
