"""Rule-based Buy / Buy Less / Do Not Buy / Sell decisions.

A recommendation is produced in a single forward pass:

1. :func:`tentative_decision` applies the basket-specific rules (Bitcoin,
   Blue Chip, Small-Cap, or the default branch for unmapped baskets).
2. :func:`apply_overlays` layers the market-state and Fed-rate rules on top.
   Overlays may only make the action more conservative.
3. :func:`finalize` derives the boolean gates, the basket risk factor, the
   risk text and the rebalancing actions.

Every stage returns a new frozen record; rationale and risk fragments are
only ever appended, so their order reflects the order rules fired in.
"""

from __future__ import annotations

from dataclasses import dataclass

from .core.constants import (
    AGGRESSIVE_FED_HIKE_PCT,
    ALLOCATION_BANDS,
    BITCOIN_NEUTRAL_AVIV_CEILING,
    DEFAULT_BASE_RISK,
    FED_RATE_NOTICE_PCT,
    HIGH_VOLATILITY_PCT,
    MAX_RISK_FACTOR,
    SMALL_CAP_HURDLE_PREMIUM,
)
from .core.enums import Action, AllocationState, BasketKind, DecisionStage, MarketState
from .core.models import (
    AllocationStatus,
    FinancialMetrics,
    InvestmentRecommendation,
    MarketConditions,
)

REGULATORY_RISK = "Regulatory uncertainty remains."


@dataclass(frozen=True)
class TentativeResult:
    """Outcome of the basket rules before any market overlay."""

    basket_kind: BasketKind | str
    action: Action
    returns_gate: bool
    rationale: tuple[str, ...]
    risks: tuple[str, ...] = ()
    stage: DecisionStage = DecisionStage.TENTATIVE


@dataclass(frozen=True)
class OverlayResult:
    """Tentative result with the market-state and Fed overlays applied."""

    tentative: TentativeResult
    action: Action
    rationale: tuple[str, ...]
    risks: tuple[str, ...]
    market_analysis: str
    stage: DecisionStage = DecisionStage.OVERLAY_APPLIED


def returns_gate(metrics: FinancialMetrics, hurdle_rate: float) -> bool:
    """Worth investing on returns alone: positive NPV and IRR above the hurdle."""

    return metrics.npv > 0 and metrics.irr > hurdle_rate


def _bitcoin_rules(
    pct: float,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    hurdle_rate: float,
) -> tuple[Action, tuple[str, ...], tuple[str, ...]]:
    band = ALLOCATION_BANDS[BasketKind.BITCOIN]
    if pct < band.hard_min:
        return (
            Action.BUY,
            (f"Bitcoin allocation ({pct:.1f}%) below minimum {band.hard_min:.0f}%. "
             "Increase for portfolio stability.",),
            (),
        )
    if pct > band.hard_max:
        return (
            Action.DO_NOT_BUY,
            (f"Bitcoin allocation ({pct:.1f}%) exceeds maximum {band.hard_max:.0f}%. "
             "Over-concentrated.",),
            ("Excessive Bitcoin concentration reduces diversification benefits.",),
        )
    if returns_gate(metrics, hurdle_rate) and conditions.state is not MarketState.BEARISH:
        # Neutral markets only earn a full Buy inside the AVIV accumulation zone.
        if (
            conditions.state is MarketState.NEUTRAL
            and conditions.aviv_ratio >= BITCOIN_NEUTRAL_AVIV_CEILING
        ):
            return (
                Action.BUY_LESS,
                (f"Bitcoin allocation optimal ({pct:.1f}%) but AVIV "
                 f"({conditions.aviv_ratio:.2f}) is not below "
                 f"{BITCOIN_NEUTRAL_AVIV_CEILING:.1f} in a neutral market.",),
                (),
            )
        return (
            Action.BUY,
            (f"Bitcoin allocation optimal ({pct:.1f}%). "
             "Strong fundamentals support investment.",),
            (),
        )
    return (
        Action.BUY_LESS,
        ("Bitcoin allocation acceptable but market conditions uncertain.",),
        (),
    )


def _blue_chip_rules(
    pct: float,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    hurdle_rate: float,
) -> tuple[Action, tuple[str, ...], tuple[str, ...]]:
    band = ALLOCATION_BANDS[BasketKind.BLUE_CHIP]
    if pct > band.hard_max:
        return (
            Action.DO_NOT_BUY,
            (f"Blue-chip allocation ({pct:.1f}%) exceeds maximum {band.hard_max:.0f}%. "
             "Reduce exposure.",),
            ("Over-allocation to blue-chips reduces portfolio Bitcoin foundation.",),
        )
    if returns_gate(metrics, hurdle_rate):
        return (
            Action.BUY,
            (f"Blue-chip allocation within limits ({pct:.1f}%). "
             "Good diversification opportunity.",),
            (),
        )
    return (
        Action.BUY_LESS,
        ("Blue-chip investment acceptable but monitor systematic risk.",),
        (),
    )


def _small_cap_rules(
    pct: float,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    hurdle_rate: float,
) -> tuple[Action, tuple[str, ...], tuple[str, ...]]:
    band = ALLOCATION_BANDS[BasketKind.SMALL_CAP]
    if pct > band.hard_max:
        return (
            Action.SELL,
            (f"Small-cap allocation ({pct:.1f}%) exceeds maximum {band.hard_max:.0f}%. "
             "High risk exposure.",),
            ("Excessive small-cap allocation. Risk of major losses in bear market.",),
        )
    if (
        metrics.npv > 0
        and metrics.irr > hurdle_rate + SMALL_CAP_HURDLE_PREMIUM
        and conditions.state is MarketState.BULLISH
    ):
        return (
            Action.BUY_LESS,
            ("Small-cap shows potential but limit position size. High-risk, high-reward.",),
            ("Small-cap investments carry 80%+ volatility. "
             "Only invest what you can afford to lose.",),
        )
    return (
        Action.DO_NOT_BUY,
        ("Small-cap doesn't meet risk-adjusted return requirements "
         "or market conditions unfavorable.",),
        (),
    )


def _default_rules(
    pct: float,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    hurdle_rate: float,
) -> tuple[Action, tuple[str, ...], tuple[str, ...]]:
    if returns_gate(metrics, hurdle_rate):
        return (
            Action.BUY_LESS,
            ("Acceptable returns but unspecified basket requires caution.",),
            (),
        )
    return Action.DO_NOT_BUY, ("Poor risk-adjusted returns.",), ()


_BASKET_RULES = {
    BasketKind.BITCOIN: _bitcoin_rules,
    BasketKind.BLUE_CHIP: _blue_chip_rules,
    BasketKind.SMALL_CAP: _small_cap_rules,
}


def tentative_decision(
    basket_kind: BasketKind | str,
    allocation: AllocationStatus,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    *,
    hurdle_rate: float,
) -> TentativeResult:
    """Apply the basket-specific rules; ``hurdle_rate`` is in percent like IRR."""

    kind = BasketKind.parse(basket_kind)
    rules = _BASKET_RULES.get(kind, _default_rules) if isinstance(kind, BasketKind) else _default_rules
    action, rationale, risks = rules(allocation.portfolio_pct, metrics, conditions, hurdle_rate)
    return TentativeResult(
        basket_kind=kind,
        action=action,
        returns_gate=returns_gate(metrics, hurdle_rate),
        rationale=rationale,
        risks=risks,
    )


def _market_analysis(conditions: MarketConditions) -> str:
    aviv = f"{conditions.aviv_ratio:.2f}"
    if conditions.state is MarketState.BEARISH:
        return f"Bitcoin bearish (AVIV: {aviv}). All crypto carries elevated risk."
    if conditions.state is MarketState.BULLISH:
        return f"Bitcoin bullish (AVIV: {aviv}). Favorable environment for crypto investments."
    return f"Bitcoin neutral (AVIV: {aviv}). Mixed signals require careful position sizing."


def apply_overlays(tentative: TentativeResult, conditions: MarketConditions) -> OverlayResult:
    """Layer market-state and Fed-rate rules over a tentative decision.

    Under a bearish state, smart-money selling forces ``Sell`` and a tentative
    ``Buy`` drops to ``Do Not Buy``. The Fed overlay only adds text. The final
    action is the more conservative of the tentative and overlay actions.
    """

    proposed = tentative.action
    rationale: list[str] = []
    risks: list[str] = []

    if conditions.state is MarketState.BEARISH:
        if conditions.smart_money_active:
            proposed = Action.SELL
            rationale.append(
                "Smart money selling detected. Consider exiting positions to preserve capital."
            )
            risks.append("Major price correction likely. Protect against 50-70% drawdowns.")
        elif tentative.action is Action.BUY:
            proposed = Action.DO_NOT_BUY
            rationale.append("Bear market conditions override positive fundamentals.")
            risks.append("Bitcoin bearish state increases all crypto risk. Wait for AVIV < 0.55.")

    fed = conditions.fed_rate_change_pct
    if abs(fed) > FED_RATE_NOTICE_PCT:
        direction, impact = ("hiking", "decreases") if fed > 0 else ("cutting", "increases")
        rationale.append(f"Fed {direction} rates {impact} crypto attractiveness.")
        if fed > AGGRESSIVE_FED_HIKE_PCT:
            risks.append("Aggressive Fed rate hikes create headwinds for crypto investments.")

    return OverlayResult(
        tentative=tentative,
        action=tentative.action.escalate(proposed),
        rationale=tentative.rationale + tuple(rationale),
        risks=tentative.risks + tuple(risks),
        market_analysis=_market_analysis(conditions),
    )


def basket_risk_factor(basket_kind: BasketKind | str, portfolio_pct: float) -> int:
    """Basket base risk plus the over-allocation increment, capped at 5."""

    kind = BasketKind.parse(basket_kind)
    band = ALLOCATION_BANDS.get(kind) if isinstance(kind, BasketKind) else None
    if band is None:
        return DEFAULT_BASE_RISK
    risk = band.base_risk
    if portfolio_pct > band.hard_max:
        risk += band.over_allocation_risk
    return min(MAX_RISK_FACTOR, risk)


def rebalancing_actions(
    basket_kind: BasketKind | str,
    allocation: AllocationStatus,
    conditions: MarketConditions,
) -> tuple[str, ...]:
    kind = BasketKind.parse(basket_kind)
    label = kind.label if isinstance(kind, BasketKind) else str(kind)
    actions: list[str] = []
    if allocation.status is AllocationState.OVEREXPOSED:
        actions.append(f"Reduce {label} allocation from {allocation.portfolio_pct:.1f}%")
    if allocation.status is AllocationState.UNDEREXPOSED and kind is BasketKind.BITCOIN:
        actions.append(f"Increase Bitcoin allocation to at least {allocation.target_band[0]:.0f}%")
    if conditions.state is MarketState.BEARISH:
        actions.append("Consider reducing crypto allocation by 10-20%")
        actions.append("Increase stablecoin allocation until Bitcoin AVIV <1.0")
    return tuple(actions)


def finalize(
    overlay: OverlayResult,
    allocation: AllocationStatus,
    conditions: MarketConditions,
    *,
    volatility: float = 50.0,
) -> InvestmentRecommendation:
    kind = overlay.tentative.basket_kind
    pct = allocation.portfolio_pct

    risks: list[str] = []
    if volatility > HIGH_VOLATILITY_PCT:
        risks.append(f"High volatility ({volatility:.0f}%).")
    risks.append(REGULATORY_RISK)
    risks.extend(overlay.risks)

    bitcoin_max = ALLOCATION_BANDS[BasketKind.BITCOIN].hard_max
    return InvestmentRecommendation(
        action=overlay.action,
        worth_investing=overlay.tentative.returns_gate and conditions.state is not MarketState.BEARISH,
        good_timing=conditions.state is MarketState.BULLISH,
        appropriate_amount=allocation.status is AllocationState.OPTIMAL,
        risk_factor=basket_risk_factor(kind, pct),
        should_diversify=kind is not BasketKind.BITCOIN or pct > bitcoin_max,
        rationale=" ".join(overlay.rationale),
        risks=" ".join(risks),
        rebalancing_actions=rebalancing_actions(kind, allocation, conditions),
        market_analysis=overlay.market_analysis,
    )


def recommend(
    basket_kind: BasketKind | str,
    allocation: AllocationStatus,
    metrics: FinancialMetrics,
    conditions: MarketConditions,
    *,
    hurdle_rate: float,
    volatility: float = 50.0,
) -> InvestmentRecommendation:
    """Run the tentative, overlay and final stages in order."""

    tentative = tentative_decision(
        basket_kind, allocation, metrics, conditions, hurdle_rate=hurdle_rate
    )
    overlay = apply_overlays(tentative, conditions)
    return finalize(overlay, allocation, conditions, volatility=volatility)


class RecommendationEngine:
    """Namespace exposing the decision stages under one name."""

    tentative_decision = staticmethod(tentative_decision)
    apply_overlays = staticmethod(apply_overlays)
    finalize = staticmethod(finalize)
    recommend = staticmethod(recommend)


__all__ = [
    "OverlayResult",
    "RecommendationEngine",
    "TentativeResult",
    "apply_overlays",
    "basket_risk_factor",
    "finalize",
    "rebalancing_actions",
    "recommend",
    "returns_gate",
    "tentative_decision",
]
