"""Enumerations shared by the data model and the rule tables."""

from __future__ import annotations

from enum import Enum


class BasketKind(str, Enum):
    """Risk bucket an asset belongs to."""

    BITCOIN = "Bitcoin"
    BLUE_CHIP = "BlueChip"
    SMALL_CAP = "SmallCap"

    @classmethod
    def parse(cls, value: "BasketKind | str") -> "BasketKind | str":
        """Map display spellings onto a member.

        Unknown kinds come back unchanged as a stripped string so that the
        allocation and decision tables can apply their explicit defaults.
        """

        if isinstance(value, cls):
            return value
        key = "".join(ch for ch in str(value).lower() if ch.isalnum())
        for member in cls:
            if member.value.lower() == key:
                return member
        return str(value).strip()

    @property
    def label(self) -> str:
        """Human-readable name used in rationale text."""

        return _BASKET_LABELS[self]


_BASKET_LABELS = {
    BasketKind.BITCOIN: "Bitcoin",
    BasketKind.BLUE_CHIP: "Blue Chip",
    BasketKind.SMALL_CAP: "Small-Cap",
}


class SourceKind(str, Enum):
    """Quality tag travelling with a price series."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    ESTIMATED = "estimated"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MarketState(str, Enum):
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"


class AllocationState(str, Enum):
    UNDEREXPOSED = "underexposed"
    OPTIMAL = "optimal"
    OVEREXPOSED = "overexposed"


class AllocationHint(str, Enum):
    INCREASE = "increase"
    MAINTAIN = "maintain"
    DECREASE = "decrease"


class Action(str, Enum):
    """Final recommendation, ordered from most to least aggressive."""

    BUY = "Buy"
    BUY_LESS = "BuyLess"
    DO_NOT_BUY = "DoNotBuy"
    SELL = "Sell"

    @property
    def severity(self) -> int:
        return _ACTION_SEVERITY[self]

    def escalate(self, other: "Action") -> "Action":
        """Return the more conservative of ``self`` and ``other``."""

        return other if other.severity > self.severity else self


_ACTION_SEVERITY = {
    Action.BUY: 0,
    Action.BUY_LESS: 1,
    Action.DO_NOT_BUY: 2,
    Action.SELL: 3,
}


class DecisionStage(str, Enum):
    TENTATIVE = "tentative"
    OVERLAY_APPLIED = "overlay_applied"
    FINAL = "final"


__all__ = [
    "Action",
    "AllocationHint",
    "AllocationState",
    "BasketKind",
    "ConfidenceLevel",
    "DecisionStage",
    "MarketState",
    "SourceKind",
]
