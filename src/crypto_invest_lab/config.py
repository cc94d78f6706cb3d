"""Analysis settings loaded from TOML and merged over built-in defaults."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .core.constants import DEFAULT_BASKET
from .core.enums import BasketKind, SourceKind
from .errors import InvalidRangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BasketAssumptions:
    """Per-basket discount and hurdle rates, both in percent per year."""

    discount_rate_pct: float
    hurdle_rate_pct: float

    @property
    def discount_rate(self) -> float:
        """Discount rate as a decimal fraction for NPV."""

        return self.discount_rate_pct / 100.0


DEFAULT_ASSUMPTIONS: Mapping[BasketKind, BasketAssumptions] = {
    BasketKind.BITCOIN: BasketAssumptions(discount_rate_pct=12.0, hurdle_rate_pct=15.0),
    BasketKind.BLUE_CHIP: BasketAssumptions(discount_rate_pct=15.0, hurdle_rate_pct=20.0),
    BasketKind.SMALL_CAP: BasketAssumptions(discount_rate_pct=20.0, hurdle_rate_pct=25.0),
}


@dataclass(frozen=True)
class AnalysisSettings:
    investment_amount: float = 1_000.0
    horizon_years: int = 2
    periods_per_year: int = 365
    default_source: SourceKind = SourceKind.SECONDARY
    baskets: Mapping[BasketKind, BasketAssumptions] = field(
        default_factory=lambda: dict(DEFAULT_ASSUMPTIONS)
    )

    def __post_init__(self) -> None:
        if self.investment_amount <= 0:
            raise InvalidRangeError(
                "investment_amount must be positive",
                context={"investment_amount": self.investment_amount},
            )
        if self.horizon_years < 1:
            raise InvalidRangeError(
                "horizon_years must be at least one",
                context={"horizon_years": self.horizon_years},
            )
        if self.periods_per_year <= 0:
            raise InvalidRangeError(
                "periods_per_year must be positive",
                context={"periods_per_year": self.periods_per_year},
            )
        object.__setattr__(self, "default_source", SourceKind(self.default_source))

    def assumptions_for(self, basket_kind: BasketKind | str) -> BasketAssumptions:
        """Rates for ``basket_kind``; unmapped kinds use the BlueChip rates."""

        kind = BasketKind.parse(basket_kind)
        if isinstance(kind, BasketKind) and kind in self.baskets:
            return self.baskets[kind]
        return self.baskets.get(DEFAULT_BASKET, DEFAULT_ASSUMPTIONS[DEFAULT_BASKET])

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AnalysisSettings":
        """Build settings from a parsed TOML document.

        Recognised keys are ``investment_amount``, ``horizon_years``,
        ``periods_per_year``, ``default_source`` and a ``baskets`` table keyed
        by basket name whose entries may set ``discount_rate_pct`` and
        ``hurdle_rate_pct``. Missing keys keep their defaults.
        """

        baskets = dict(DEFAULT_ASSUMPTIONS)
        for name, overrides in dict(data.get("baskets", {})).items():
            kind = BasketKind.parse(name)
            if not isinstance(kind, BasketKind):
                logger.warning("Ignoring assumptions for unknown basket %r", name)
                continue
            base = baskets[kind]
            baskets[kind] = BasketAssumptions(
                discount_rate_pct=float(overrides.get("discount_rate_pct", base.discount_rate_pct)),
                hurdle_rate_pct=float(overrides.get("hurdle_rate_pct", base.hurdle_rate_pct)),
            )

        defaults = cls()
        return cls(
            investment_amount=float(data.get("investment_amount", defaults.investment_amount)),
            horizon_years=int(data.get("horizon_years", defaults.horizon_years)),
            periods_per_year=int(data.get("periods_per_year", defaults.periods_per_year)),
            default_source=SourceKind(data.get("default_source", defaults.default_source)),
            baskets=baskets,
        )


def load_settings(path: str | Path | None) -> AnalysisSettings:
    """Load :class:`AnalysisSettings` from the ``[analysis]`` table of a TOML file.

    Files without an ``[analysis]`` table are read as a flat settings document.
    When ``path`` is ``None`` or does not exist the defaults are returned.
    """

    cfg_path = Path(path) if path else None
    if cfg_path is None:
        return AnalysisSettings()
    if not cfg_path.is_file():
        logger.warning("Config file not found at %s. Using defaults.", cfg_path)
        return AnalysisSettings()

    with open(cfg_path, "rb") as f:
        file_cfg = tomllib.load(f)
    return AnalysisSettings.from_mapping(file_cfg.get("analysis", file_cfg))


__all__ = [
    "AnalysisSettings",
    "BasketAssumptions",
    "DEFAULT_ASSUMPTIONS",
    "load_settings",
]
