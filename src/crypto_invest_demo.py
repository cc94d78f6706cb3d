from __future__ import annotations

import logging
import os
import sys
import tomllib
from pathlib import Path
from typing import Any, cast

import pandas as pd

from crypto_invest_lab import (
    AnalysisSettings,
    AssetProfileCSVSource,
    MarketInputs,
    Pipeline,
    PriceHistoryCSVSource,
)
from crypto_invest_lab.reporting import analysis_report, recommendations_frame


logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = [
    "asset_id",
    "basket_kind",
    "action",
    "portfolio_pct",
    "npv",
    "irr",
    "risk_factor",
    "confidence_level",
]


def load_config(path: str | Path | None) -> dict[str, Any]:
    """Load configuration from a TOML file and merge with defaults.

    Parameters
    ----------
    path:
        Optional path to a configuration file. When ``None`` or missing, the
        built-in defaults are used.

    Returns
    -------
    dict[str, Any]
        Configuration dictionary with any file overrides applied.
    """

    default: dict[str, Any] = {
        "data": {
            "prices_csv": str(Path(__file__).with_name("sample_prices.csv")),
            "assets_csv": str(Path(__file__).with_name("sample_assets.csv")),
            "source": "secondary",
            "portfolio_total_value": None,
        },
        "analysis": {
            "investment_amount": 1_000.0,
            "horizon_years": 2,
            "periods_per_year": 365,
        },
        "market": {
            "aviv_ratio": 1.0,
            "active_supply_pct": 50.0,
            "vaulted_supply_pct": 50.0,
            "smart_money_active": False,
            "fed_rate_change_pct": 0.0,
            "sentiment_score": 0.0,
        },
        "output": {"outdir": None, "show": True},
    }

    cfg_path = Path(path) if path else None

    if cfg_path and cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            file_cfg = tomllib.load(f)

        for k, v in file_cfg.items():
            if isinstance(v, dict) and k in default and isinstance(default[k], dict):
                cast(dict, default[k]).update(v)
            else:
                default[k] = v
    elif cfg_path:
        logger.warning("Config file not found at %s. Using defaults.", cfg_path)

    return default


def apply_env_overrides(cfg: dict[str, Any]) -> dict[str, Any]:
    """Apply ``CRYPTO_INVEST_*`` environment variables on top of ``cfg``."""

    if prices_env := os.getenv("CRYPTO_INVEST_PRICES_CSV"):
        cfg.setdefault("data", {})["prices_csv"] = prices_env
    if assets_env := os.getenv("CRYPTO_INVEST_ASSETS_CSV"):
        cfg.setdefault("data", {})["assets_csv"] = assets_env
    if outdir_env := os.getenv("CRYPTO_INVEST_OUTDIR"):
        cfg.setdefault("output", {})["outdir"] = outdir_env
    return cfg


def main() -> None:
    """Run the demo using configuration from file or environment variables."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    cfg_file = os.getenv("CRYPTO_INVEST_CONFIG") or (sys.argv[1] if len(sys.argv) > 1 else None)
    cfg = apply_env_overrides(load_config(cfg_file))

    data = cfg.get("data", {})
    settings = AnalysisSettings.from_mapping(cfg.get("analysis", {}))
    market = MarketInputs(**cfg.get("market", {}))

    prices = PriceHistoryCSVSource(
        str(data["prices_csv"]),
        source=data.get("source", settings.default_source),
    )
    assets = AssetProfileCSVSource(str(data["assets_csv"]))
    total = data.get("portfolio_total_value")
    pipeline = Pipeline.from_sources(
        prices,
        assets,
        market,
        settings,
        portfolio_total_value=float(total) if total else None,
    )
    repo = pipeline.run()

    conditions = pipeline.conditions()
    print(f"Market state: {conditions.state.value} (AVIV {conditions.aviv_ratio:.2f})")

    df = recommendations_frame(repo)
    print(f"Assets analysed: {len(df)}")
    if not df.empty and bool(cfg.get("output", {}).get("show", True)):
        with pd.option_context("display.width", 120, "display.precision", 2):
            print(df[_SUMMARY_COLUMNS].to_string(index=False))

    outdir = cfg.get("output", {}).get("outdir")
    if outdir:
        paths = analysis_report(repo, Path(outdir))
        for label, path in paths.items():
            logger.info("Wrote %s report to %s", label, path)


if __name__ == "__main__":
    main()
