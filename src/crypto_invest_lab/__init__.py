"""
CryptoInvestLab: investment metrics and rule-based recommendations for crypto assets.

Design goals:
- Immutable data model (TimeSeries, AssetProfile, FinancialMetrics, ...)
- Pure calculation core: metrics, market regime, allocation, decisions
- Rule thresholds kept as named data tables in :mod:`crypto_invest_lab.core.constants`
- CSV adapters and a small pipeline; no web access, wire your own HTTP client.
"""

from __future__ import annotations

from . import market_state, recommendation, risk_scoring
from .analytics import metrics, portfolio
from .analytics.metrics import MetricsCalculator
from .analytics.portfolio import AllocationAnalyzer
from .config import AnalysisSettings, BasketAssumptions, load_settings
from .core import (
    Action,
    AnalysisRepository,
    AnalysisResult,
    AssetProfile,
    BasketKind,
    FinancialMetrics,
    InvestmentRecommendation,
    MarketConditions,
    MarketInputs,
    MarketState,
    PortfolioSnapshot,
    TimeSeries,
)
from .errors import (
    AnalysisError,
    DivideByZeroError,
    InsufficientDataError,
    InvalidRangeError,
    UnmappedBasketError,
)
from .market_state import MarketStateClassifier
from .pipeline import AnalysisRequest, Pipeline, analyze_asset
from .recommendation import RecommendationEngine
from .sources import AssetProfileCSVSource, DataSource, PriceHistoryCSVSource
from . import reporting

__all__ = [
    "Action",
    "AllocationAnalyzer",
    "AnalysisError",
    "AnalysisRepository",
    "AnalysisRequest",
    "AnalysisResult",
    "AnalysisSettings",
    "AssetProfile",
    "AssetProfileCSVSource",
    "BasketAssumptions",
    "BasketKind",
    "DataSource",
    "DivideByZeroError",
    "FinancialMetrics",
    "InsufficientDataError",
    "InvalidRangeError",
    "InvestmentRecommendation",
    "MarketConditions",
    "MarketInputs",
    "MarketState",
    "MarketStateClassifier",
    "MetricsCalculator",
    "Pipeline",
    "PortfolioSnapshot",
    "PriceHistoryCSVSource",
    "RecommendationEngine",
    "TimeSeries",
    "UnmappedBasketError",
    "analyze_asset",
    "load_settings",
    "market_state",
    "metrics",
    "portfolio",
    "recommendation",
    "reporting",
    "risk_scoring",
]
