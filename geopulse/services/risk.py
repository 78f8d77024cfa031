"""Derived country metrics: GDP per capita estimate and geopolitical risk.

Neither value comes from the facts API. Both are computed from the fixed
reference tables below, so the same (country, region) pair always yields
the same numbers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..hashing import stable_unit

DEFAULT_GDP_BASE = 15000.0
DEFAULT_GDP_MULTIPLIER = 0.5
DEFAULT_RISK_BASE = 3.0
MIN_RISK = 0.1
MAX_RISK = 10.0
UNLISTED_VARIATION = 0.5


@dataclass(frozen=True, slots=True)
class RiskFactors:
    """Signed adjustments; negative values lower the risk score."""

    political_stability: float
    conflict_level: float
    economic_stability: float
    institutional_strength: float
    current_events: float

    def weighted_sum(self) -> float:
        return (
            0.25 * self.political_stability
            + 0.30 * self.conflict_level
            + 0.15 * self.economic_stability
            + 0.20 * self.institutional_strength
            + 0.10 * self.current_events
        )


@dataclass(frozen=True, slots=True)
class RiskAssessment:
    gdp_per_capita: float
    risk_index: float


REGIONAL_GDP_BASE: Mapping[str, float] = MappingProxyType(
    {
        "Europe": 35000.0,
        "Americas": 25000.0,
        "Oceania": 30000.0,
        "Asia": 12000.0,
        "Africa": 3000.0,
    }
)

GDP_MULTIPLIERS: Mapping[str, float] = MappingProxyType(
    {
        "norway": 2.3,
        "switzerland": 2.5,
        "luxembourg": 3.4,
        "denmark": 1.9,
        "sweden": 1.7,
        "netherlands": 1.6,
        "germany": 1.4,
        "united kingdom": 1.3,
        "france": 1.2,
        "italy": 0.95,
        "spain": 0.85,
        "poland": 0.5,
        "russia": 0.35,
        "ukraine": 0.15,
        "united states": 3.0,
        "canada": 2.1,
        "mexico": 0.45,
        "brazil": 0.35,
        "argentina": 0.5,
        "japan": 3.3,
        "south korea": 2.7,
        "singapore": 6.5,
        "china": 1.05,
        "india": 0.2,
        "australia": 2.0,
        "south africa": 2.0,
        "nigeria": 0.7,
    }
)

REGIONAL_RISK_BASE: Mapping[str, float] = MappingProxyType(
    {
        "Europe": 2.0,
        "Americas": 3.0,
        "Oceania": 1.5,
        "Asia": 3.5,
        "Africa": 4.5,
        "Antarctic": 1.0,
    }
)

RISK_FACTORS: Mapping[str, RiskFactors] = MappingProxyType(
    {
        "norway": RiskFactors(-1.5, -1.0, -1.0, -1.5, -0.5),
        "switzerland": RiskFactors(-1.5, -1.0, -1.2, -1.5, -0.5),
        "denmark": RiskFactors(-1.4, -1.0, -1.0, -1.5, -0.5),
        "sweden": RiskFactors(-1.2, -0.8, -0.8, -1.4, -0.3),
        "netherlands": RiskFactors(-1.0, -0.8, -0.8, -1.2, 0.0),
        "germany": RiskFactors(-0.8, -0.5, -0.6, -1.0, 0.2),
        "united kingdom": RiskFactors(-0.5, -0.3, -0.2, -0.9, 0.4),
        "france": RiskFactors(-0.4, -0.3, -0.3, -0.8, 0.5),
        "italy": RiskFactors(0.2, -0.3, 0.4, -0.2, 0.3),
        "spain": RiskFactors(0.0, -0.4, 0.2, -0.4, 0.2),
        "russia": RiskFactors(2.5, 4.0, 2.0, 2.5, 3.5),
        "ukraine": RiskFactors(2.0, 6.0, 2.5, 1.5, 4.0),
        "united states": RiskFactors(0.3, 0.5, -0.5, -0.5, 0.8),
        "canada": RiskFactors(-1.2, -1.0, -0.8, -1.2, -0.3),
        "mexico": RiskFactors(0.8, 1.5, 0.3, 0.8, 0.6),
        "brazil": RiskFactors(0.6, 0.8, 0.5, 0.5, 0.5),
        "argentina": RiskFactors(0.7, -0.2, 1.5, 0.6, 0.8),
        "japan": RiskFactors(-1.0, -0.5, -0.4, -1.0, 0.0),
        "south korea": RiskFactors(-0.3, 0.8, -0.4, -0.6, 0.3),
        "china": RiskFactors(0.5, 1.0, 0.0, 0.5, 1.2),
        "india": RiskFactors(0.4, 1.2, 0.2, 0.3, 0.6),
        "afghanistan": RiskFactors(3.5, 5.0, 3.0, 3.5, 3.0),
        "syria": RiskFactors(3.5, 5.5, 3.5, 3.5, 3.5),
        "australia": RiskFactors(-1.0, -0.8, -0.6, -1.2, -0.2),
        "nigeria": RiskFactors(1.5, 2.0, 1.0, 1.5, 1.0),
    }
)


def _key(country_name: str) -> str:
    return country_name.strip().lower()


def _round_half_up(value: float) -> int:
    # halves go up, not to the nearest even integer
    return math.floor(value + 0.5)


@dataclass(frozen=True, slots=True)
class RiskModel:
    regional_gdp_base: Mapping[str, float] = field(
        default_factory=lambda: REGIONAL_GDP_BASE
    )
    gdp_multipliers: Mapping[str, float] = field(
        default_factory=lambda: GDP_MULTIPLIERS
    )
    regional_risk_base: Mapping[str, float] = field(
        default_factory=lambda: REGIONAL_RISK_BASE
    )
    risk_factors: Mapping[str, RiskFactors] = field(
        default_factory=lambda: RISK_FACTORS
    )

    def gdp_estimate(self, country_name: str, region: str | None) -> float:
        base = self.regional_gdp_base.get(region or "", DEFAULT_GDP_BASE)
        multiplier = self.gdp_multipliers.get(
            _key(country_name), DEFAULT_GDP_MULTIPLIER
        )
        return float(_round_half_up(base * multiplier))

    def risk_score(self, country_name: str, region: str | None) -> float:
        score = self.regional_risk_base.get(region or "", DEFAULT_RISK_BASE)
        factors = self.risk_factors.get(_key(country_name))
        if factors is not None:
            score += factors.weighted_sum()
        else:
            score += self._unlisted_variation(country_name)
        score = min(max(score, MIN_RISK), MAX_RISK)
        return _round_half_up(score * 10) / 10

    def assess(self, country_name: str, region: str | None) -> RiskAssessment:
        return RiskAssessment(
            gdp_per_capita=self.gdp_estimate(country_name, region),
            risk_index=self.risk_score(country_name, region),
        )

    @staticmethod
    def _unlisted_variation(country_name: str) -> float:
        # [-0.5, +0.5]
        return (stable_unit(_key(country_name)) - 0.5) * 2 * UNLISTED_VARIATION
