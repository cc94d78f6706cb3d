from __future__ import annotations

from pathlib import Path

import pytest

from crypto_invest_lab.config import AnalysisSettings, BasketAssumptions, load_settings
from crypto_invest_lab.core import BasketKind, SourceKind
from crypto_invest_lab.errors import InvalidRangeError


def test_defaults_cover_every_basket() -> None:
    settings = AnalysisSettings()
    assert settings.investment_amount == 1_000.0
    assert settings.horizon_years == 2
    assert settings.assumptions_for("Bitcoin") == BasketAssumptions(12.0, 15.0)
    assert settings.assumptions_for("Small Cap").hurdle_rate_pct == 25.0
    assert settings.assumptions_for("Meme") == settings.assumptions_for(BasketKind.BLUE_CHIP)
    assert settings.assumptions_for("Bitcoin").discount_rate == pytest.approx(0.12)


def test_load_settings_merges_file_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(
        "[analysis]\n"
        "horizon_years = 5\n"
        'default_source = "primary"\n'
        "[analysis.baskets.SmallCap]\n"
        "hurdle_rate_pct = 40.0\n"
    )
    settings = load_settings(path)
    assert settings.horizon_years == 5
    assert settings.investment_amount == 1_000.0
    assert settings.default_source is SourceKind.PRIMARY
    assert settings.assumptions_for("SmallCap") == BasketAssumptions(20.0, 40.0)
    assert settings.assumptions_for("Bitcoin") == BasketAssumptions(12.0, 15.0)


def test_missing_settings_file_warns_and_uses_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level("WARNING", logger="crypto_invest_lab.config"):
        settings = load_settings(tmp_path / "missing.toml")
    assert settings == AnalysisSettings()
    assert any("not found" in rec.message for rec in caplog.records)


def test_invalid_settings_are_rejected() -> None:
    with pytest.raises(InvalidRangeError):
        AnalysisSettings(horizon_years=0)
    with pytest.raises(InvalidRangeError):
        AnalysisSettings(investment_amount=-5.0)
