"""Typed failures raised by the metrics and recommendation core.

Every error is local and recoverable by the caller: the core raises
immediately and leaves fallback decisions (defaulted metrics, low-confidence
banners, skipping an asset) to the layer that invoked it.
"""

from __future__ import annotations

from typing import Any


class AnalysisError(ValueError):
    """Base class for contract violations reported by the analysis core."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


class InsufficientDataError(AnalysisError):
    """Not enough observations for the requested calculation."""

    def __init__(
        self,
        message: str,
        required_count: int | None = None,
        available_count: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count


class InvalidRangeError(AnalysisError):
    """Non-positive time span, unordered timestamps or out-of-range values."""


class UnmappedBasketError(AnalysisError):
    """Basket kind missing from the allocation table."""

    def __init__(self, message: str, basket_kind: object, fallback: object, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.basket_kind = basket_kind
        self.fallback = fallback


class DivideByZeroError(AnalysisError, ZeroDivisionError):
    """Zero denominator such as a zero initial price or flat benchmark."""


__all__ = [
    "AnalysisError",
    "DivideByZeroError",
    "InsufficientDataError",
    "InvalidRangeError",
    "UnmappedBasketError",
]
