"""Scale regime selection and the per-regime generation constants."""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Dict, Optional, Union

from .errors import ConfigurationError

# Upper bounds (inclusive) of the city and regional regimes.
CITY_MAX_SCALE = 10.0
REGIONAL_MAX_SCALE = 100.0

# Scale at which atmospheric haze saturates.
HAZE_SATURATION_SCALE = 10000.0
MAX_HAZE = 0.3


class ScaleRegime(enum.Enum):
    CITY = "city"
    REGIONAL = "regional"
    PLANETARY = "planetary"


RegimeOverride = Union[ScaleRegime, str, None]


def _parse_override(override: RegimeOverride) -> Optional[ScaleRegime]:
    if override is None or isinstance(override, ScaleRegime):
        return override
    name = str(override).strip().lower()
    if name in ("", "none", "auto"):
        return None
    try:
        return ScaleRegime(name)
    except ValueError:
        raise ConfigurationError(f"Unknown scale regime override '{override}'") from None


def select_regime(scale: float, override: RegimeOverride = None) -> ScaleRegime:
    """Resolve the active regime; an explicit override other than ``"none"`` wins."""

    explicit = _parse_override(override)
    if explicit is not None:
        return explicit
    value = float(scale)
    if not math.isfinite(value) or value <= 0.0:
        raise ConfigurationError(f"scale must be a positive finite number, got {scale!r}")
    if value <= CITY_MAX_SCALE:
        return ScaleRegime.CITY
    if value <= REGIONAL_MAX_SCALE:
        return ScaleRegime.REGIONAL
    return ScaleRegime.PLANETARY


def haze_factor(scale: float, regime: ScaleRegime) -> float:
    """Atmospheric blend toward sky blue, only applied at planetary scale."""

    if regime is not ScaleRegime.PLANETARY:
        return 0.0
    return min(1.0, float(scale) / HAZE_SATURATION_SCALE) * MAX_HAZE


@dataclass(frozen=True)
class RegimeSettings:
    """Every constant that varies with the scale regime.

    ``resolution`` is the grid step of the triangulator in meters. The three
    ``*_frequency`` values drive the primary fBm, the ridged mountain layer and
    the continental fBm; ``*_weight`` mix them; ``amplitude_scale`` damps
    (city) or boosts (planetary) the summed relief. ``continental_relief`` is
    the height span of the continental layer before weighting.
    """

    regime: ScaleRegime
    resolution: float
    primary_frequency: float
    ridge_frequency: float
    continental_frequency: float
    primary_weight: float
    ridge_weight: float
    continental_weight: float
    amplitude_scale: float
    continental_relief: float
    primary_octaves: int
    ridge_octaves: int
    continental_octaves: int
    apply_local_features: bool
    alpha: int

    @classmethod
    def for_regime(cls, regime: ScaleRegime) -> "RegimeSettings":
        return _REGIME_SETTINGS[regime]


_REGIME_SETTINGS: Dict[ScaleRegime, RegimeSettings] = {
    ScaleRegime.CITY: RegimeSettings(
        regime=ScaleRegime.CITY,
        resolution=50.0,
        primary_frequency=0.001,
        ridge_frequency=0.003,
        continental_frequency=0.0002,
        primary_weight=1.0,
        ridge_weight=0.5,
        continental_weight=0.2,
        amplitude_scale=0.5,
        continental_relief=20.0,
        primary_octaves=4,
        ridge_octaves=4,
        continental_octaves=3,
        apply_local_features=True,
        alpha=220,
    ),
    ScaleRegime.REGIONAL: RegimeSettings(
        regime=ScaleRegime.REGIONAL,
        resolution=100.0,
        primary_frequency=0.0005,
        ridge_frequency=0.002,
        continental_frequency=0.0001,
        primary_weight=1.0,
        ridge_weight=1.0,
        continental_weight=0.5,
        amplitude_scale=1.0,
        continental_relief=200.0,
        primary_octaves=4,
        ridge_octaves=5,
        continental_octaves=3,
        apply_local_features=True,
        alpha=210,
    ),
    ScaleRegime.PLANETARY: RegimeSettings(
        regime=ScaleRegime.PLANETARY,
        resolution=1000.0,
        primary_frequency=0.0001,
        ridge_frequency=0.0005,
        continental_frequency=0.00002,
        primary_weight=0.5,
        ridge_weight=1.0,
        continental_weight=1.0,
        amplitude_scale=4.0,
        continental_relief=2000.0,
        primary_octaves=4,
        ridge_octaves=6,
        continental_octaves=4,
        apply_local_features=False,
        alpha=200,
    ),
}


__all__ = [
    "CITY_MAX_SCALE",
    "REGIONAL_MAX_SCALE",
    "ScaleRegime",
    "RegimeSettings",
    "select_regime",
    "haze_factor",
]
