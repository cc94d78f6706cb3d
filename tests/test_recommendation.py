from __future__ import annotations

import itertools

import pytest

from crypto_invest_lab.analytics.portfolio import analyze_allocation
from crypto_invest_lab.core import (
    Action,
    AllocationState,
    BasketKind,
    DecisionStage,
    FinancialMetrics,
    MarketConditions,
    MarketState,
)
from crypto_invest_lab.recommendation import (
    RecommendationEngine,
    TentativeResult,
    apply_overlays,
    basket_risk_factor,
    recommend,
    tentative_decision,
)

HURDLE = 15.0


def _metrics(npv: float = 250.0, irr: float = 30.0) -> FinancialMetrics:
    return FinancialMetrics(
        npv=npv,
        irr=irr,
        cagr=irr,
        total_return_cagr=irr,
        roi=2 * irr,
        price_roi=2 * irr,
        staking_roi=0.0,
        risk_factor=3,
        beta_adjusted=1.0,
        confidence_score=70.0,
    )


def _conditions(
    state: MarketState = MarketState.BULLISH,
    *,
    smart_money: bool = False,
    fed: float = 0.0,
    aviv: float = 0.8,
) -> MarketConditions:
    return MarketConditions(
        state=state,
        sentiment_score=0.0,
        smart_money_active=smart_money,
        fed_rate_change_pct=fed,
        aviv_ratio=aviv,
        active_supply_pct=50.0,
        vaulted_supply_pct=50.0,
    )


def _recommend(basket: str, pct: float, conditions: MarketConditions, **kwargs: float):
    allocation = analyze_allocation(100_000.0, pct * 1_000.0, basket)
    return recommend(
        basket,
        allocation,
        _metrics(**kwargs),
        conditions,
        hurdle_rate=HURDLE,
    )


def test_bitcoin_over_eighty_percent_is_do_not_buy_despite_good_returns() -> None:
    rec = _recommend("Bitcoin", 85.0, _conditions())
    assert rec.action is Action.DO_NOT_BUY
    assert rec.worth_investing is True
    assert rec.appropriate_amount is False
    assert rec.risk_factor == 3
    assert rec.should_diversify is True
    assert "Excessive Bitcoin concentration reduces diversification benefits." in rec.risks
    assert rec.rebalancing_actions == ("Reduce Bitcoin allocation from 85.0%",)


def test_small_cap_over_fifteen_percent_is_sold() -> None:
    rec = _recommend("SmallCap", 18.0, _conditions())
    assert rec.action is Action.SELL
    assert rec.risk_factor == 5
    assert rec.rebalancing_actions[0] == "Reduce Small-Cap allocation from 18.0%"


@pytest.mark.parametrize(
    ("basket", "pct"),
    list(itertools.product(["Bitcoin", "BlueChip", "SmallCap", "Meme"], [0.5, 10.0, 50.0, 70.0, 90.0])),
)
def test_bearish_smart_money_always_sells(basket: str, pct: float) -> None:
    for npv, irr in [(250.0, 30.0), (-10.0, 2.0)]:
        rec = _recommend(basket, pct, _conditions(MarketState.BEARISH, smart_money=True, aviv=2.3), npv=npv, irr=irr)
        assert rec.action is Action.SELL
        assert rec.worth_investing is False


def test_overlays_never_relax_a_tentative_action() -> None:
    states = list(MarketState)
    for action, state, smart_money, fed in itertools.product(Action, states, [False, True], [-1.0, 0.0, 1.0]):
        tentative = TentativeResult(
            basket_kind=BasketKind.BLUE_CHIP,
            action=action,
            returns_gate=True,
            rationale=("base",),
        )
        overlay = apply_overlays(tentative, _conditions(state, smart_money=smart_money, fed=fed))
        assert overlay.action.severity >= action.severity
        assert overlay.rationale[0] == "base"
        assert overlay.stage is DecisionStage.OVERLAY_APPLIED


def test_bearish_state_downgrades_buy_and_appends_text_in_order() -> None:
    rec = _recommend("BlueChip", 20.0, _conditions(MarketState.BEARISH, aviv=1.95))
    assert rec.action is Action.DO_NOT_BUY
    assert rec.rationale.startswith("Blue-chip allocation within limits (20.0%).")
    assert rec.rationale.endswith("Bear market conditions override positive fundamentals.")
    assert rec.risks.index("Regulatory uncertainty remains.") < rec.risks.index("Wait for AVIV < 0.55.")
    assert rec.rebalancing_actions == (
        "Consider reducing crypto allocation by 10-20%",
        "Increase stablecoin allocation until Bitcoin AVIV <1.0",
    )
    assert rec.market_analysis.startswith("Bitcoin bearish (AVIV: 1.95)")


def test_bearish_state_keeps_conservative_small_cap_decision() -> None:
    rec = _recommend("SmallCap", 5.0, _conditions(MarketState.BEARISH), npv=-5.0, irr=1.0)
    assert rec.action is Action.DO_NOT_BUY


def test_fed_overlay_only_adds_text() -> None:
    calm = _recommend("BlueChip", 20.0, _conditions(fed=0.25))
    hike = _recommend("BlueChip", 20.0, _conditions(fed=0.3))
    aggressive = _recommend("BlueChip", 20.0, _conditions(fed=0.75))
    cut = _recommend("BlueChip", 20.0, _conditions(fed=-0.5))

    assert calm.action is hike.action is aggressive.action is cut.action is Action.BUY
    assert "Fed" not in calm.rationale
    assert hike.rationale.endswith("Fed hiking rates decreases crypto attractiveness.")
    assert "Aggressive Fed rate hikes" not in hike.risks
    assert aggressive.risks.endswith("Aggressive Fed rate hikes create headwinds for crypto investments.")
    assert cut.rationale.endswith("Fed cutting rates increases crypto attractiveness.")


def test_bitcoin_neutral_market_needs_low_aviv_for_full_buy() -> None:
    cheap = _recommend("Bitcoin", 70.0, _conditions(MarketState.NEUTRAL, aviv=0.8))
    fair = _recommend("Bitcoin", 70.0, _conditions(MarketState.NEUTRAL, aviv=1.2))
    bullish = _recommend("Bitcoin", 70.0, _conditions(MarketState.BULLISH, aviv=1.2))
    assert cheap.action is Action.BUY
    assert fair.action is Action.BUY_LESS
    assert bullish.action is Action.BUY
    assert bullish.good_timing is True
    assert fair.good_timing is False
    assert cheap.should_diversify is False


def test_bitcoin_underexposure_buys_and_plans_increase() -> None:
    rec = _recommend("Bitcoin", 50.0, _conditions(), npv=-1.0, irr=0.0)
    assert rec.action is Action.BUY
    assert rec.worth_investing is False
    assert rec.rebalancing_actions == ("Increase Bitcoin allocation to at least 60%",)


def test_blue_chip_and_small_cap_gates() -> None:
    assert _recommend("BlueChip", 45.0, _conditions()).action is Action.DO_NOT_BUY
    assert _recommend("BlueChip", 20.0, _conditions(), irr=10.0).action is Action.BUY_LESS
    # small caps need the hurdle plus a premium and a bullish market
    assert _recommend("SmallCap", 5.0, _conditions(), irr=HURDLE + 6.0).action is Action.BUY_LESS
    assert _recommend("SmallCap", 5.0, _conditions(), irr=HURDLE + 4.0).action is Action.DO_NOT_BUY
    assert _recommend("SmallCap", 5.0, _conditions(MarketState.NEUTRAL), irr=40.0).action is Action.DO_NOT_BUY


def test_unmapped_basket_uses_default_branch() -> None:
    good = _recommend("Meme", 10.0, _conditions())
    poor = _recommend("Meme", 10.0, _conditions(), npv=-1.0)
    assert good.action is Action.BUY_LESS
    assert good.risk_factor == 3
    assert good.should_diversify is True
    assert poor.action is Action.DO_NOT_BUY
    assert poor.rationale == "Poor risk-adjusted returns."


def test_high_volatility_leads_the_risk_text() -> None:
    allocation = analyze_allocation(100_000.0, 20_000.0, "BlueChip")
    rec = recommend(
        "BlueChip",
        allocation,
        _metrics(),
        _conditions(),
        hurdle_rate=HURDLE,
        volatility=85.0,
    )
    assert rec.risks.startswith("High volatility (85%). Regulatory uncertainty remains.")


def test_basket_risk_factor_table() -> None:
    assert basket_risk_factor("Bitcoin", 70.0) == 2
    assert basket_risk_factor("Bitcoin", 81.0) == 3
    assert basket_risk_factor("BlueChip", 41.0) == 5
    assert basket_risk_factor("SmallCap", 10.0) == 4
    assert basket_risk_factor("SmallCap", 16.0) == 5
    assert basket_risk_factor("Meme", 99.0) == 3


def test_stages_run_in_order() -> None:
    allocation = analyze_allocation(100_000.0, 70_000.0, "Bitcoin")
    tentative = tentative_decision("Bitcoin", allocation, _metrics(), _conditions(), hurdle_rate=HURDLE)
    assert tentative.stage is DecisionStage.TENTATIVE
    assert tentative.returns_gate is True
    overlay = RecommendationEngine.apply_overlays(tentative, _conditions())
    final = RecommendationEngine.finalize(overlay, allocation, _conditions())
    assert final.action is overlay.action is Action.BUY
    assert allocation.status is AllocationState.OPTIMAL
    assert final.appropriate_amount is True
    assert final.stage is DecisionStage.FINAL
    assert final.to_dict()["stage"] == "final"
