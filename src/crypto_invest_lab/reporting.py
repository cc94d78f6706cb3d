from __future__ import annotations

from pathlib import Path
import json
from typing import Any

import pandas as pd

from .core import AnalysisRepository
from .core.enums import Action

_ACTION_ORDER = [action.value for action in Action]


def _ensure_outdir(outdir: str | Path) -> Path:
    p = Path(outdir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def recommendations_frame(repo: AnalysisRepository) -> pd.DataFrame:
    """One row per analysed asset, most aggressive action first."""

    df = repo.to_dataframe()
    if df.empty:
        return df
    df["action"] = pd.Categorical(df["action"], categories=_ACTION_ORDER, ordered=True)
    df = df.sort_values(["action", "asset_id"]).reset_index(drop=True)
    df["action"] = df["action"].astype(str)
    return df


def basket_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Aggregate the recommendations frame per basket."""

    if df.empty:
        return df
    g = df.groupby("basket_kind").agg(
        assets=("asset_id", "count"),
        portfolio_pct=("portfolio_pct", "sum"),
        npv_avg=("npv", "mean"),
        irr_avg=("irr", "mean"),
        risk_factor_max=("risk_factor", "max"),
        confidence_avg=("confidence_score", "mean"),
    )
    return g.reset_index()


def action_counts(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["action", "assets"])
    counts = df["action"].value_counts().reindex(_ACTION_ORDER, fill_value=0)
    return counts.rename_axis("action").reset_index(name="assets")


def write_json(repo: AnalysisRepository, path: str | Path) -> Path:
    """Write the full nested analysis records as a JSON array."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    records: list[dict[str, Any]] = repo.to_records()
    target.write_text(json.dumps(records, indent=2, default=float), encoding="utf-8")
    return target


def analysis_report(repo: AnalysisRepository, outdir: str | Path) -> dict[str, Path]:
    """Generate file-first outputs for one analysis run.

    Writes the following files:
      - recommendations.csv: one flat row per asset
      - by_basket.csv: counts, allocation share and average metrics per basket
      - actions.csv: number of assets per action
      - analysis.json: full nested results including CAGR breakdowns
    """

    out = _ensure_outdir(outdir)
    paths: dict[str, Path] = {}

    df = recommendations_frame(repo)
    paths["recommendations"] = out / "recommendations.csv"
    df.to_csv(paths["recommendations"], index=False)

    paths["by_basket"] = out / "by_basket.csv"
    basket_summary(df).to_csv(paths["by_basket"], index=False)

    paths["actions"] = out / "actions.csv"
    action_counts(df).to_csv(paths["actions"], index=False)

    paths["analysis"] = write_json(repo, out / "analysis.json")
    return paths


__all__ = [
    "action_counts",
    "analysis_report",
    "basket_summary",
    "recommendations_frame",
    "write_json",
]
