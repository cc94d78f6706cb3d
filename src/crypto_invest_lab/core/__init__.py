"""Core data structures for :mod:`crypto_invest_lab`.

This subpackage groups the enumerations, rule tables, immutable records and
repositories used across the project so they can be shared without importing
the analytics modules.
"""

from __future__ import annotations

from .constants import ALLOCATION_BANDS, AVIV_BANDS, AllocationBand, AvivBand
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
from .models import (
    AllocationStatus,
    AnalysisResult,
    AssetProfile,
    BetaAdjustment,
    CAGRBreakdown,
    ConfidenceScore,
    FinancialMetrics,
    InvestmentRecommendation,
    MarketConditions,
    MarketInputs,
    NPVProjection,
    PortfolioSnapshot,
    PricePoint,
    RiskBreakdown,
    TimeSeries,
    VolatilityBreakdown,
)
from .repositories import AnalysisRepository

__all__ = [
    "ALLOCATION_BANDS",
    "AVIV_BANDS",
    "Action",
    "AllocationBand",
    "AllocationHint",
    "AllocationState",
    "AllocationStatus",
    "AnalysisRepository",
    "AnalysisResult",
    "AssetProfile",
    "AvivBand",
    "BasketKind",
    "BetaAdjustment",
    "CAGRBreakdown",
    "ConfidenceLevel",
    "ConfidenceScore",
    "DecisionStage",
    "FinancialMetrics",
    "InvestmentRecommendation",
    "MarketConditions",
    "MarketInputs",
    "MarketState",
    "NPVProjection",
    "PortfolioSnapshot",
    "PricePoint",
    "RiskBreakdown",
    "SourceKind",
    "TimeSeries",
    "VolatilityBreakdown",
]
