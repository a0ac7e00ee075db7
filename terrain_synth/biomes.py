"""Regime-specific biome classification from elevation, slope and context."""
from __future__ import annotations

import math
from typing import Dict, Tuple

from .errors import NumericError
from .scale import ScaleRegime

# Slope (rise over run) at or above which land reads as cliffs.
CLIFF_SLOPE = 1.0
# Urban influence fades linearly to zero at this distance from the core.
URBAN_INFLUENCE_RADIUS = 5000.0
URBAN_THRESHOLD = 0.7
SUBURBAN_THRESHOLD = 0.3

# //1.- Ordered (upper bound, tag) bands; the last band is open-ended so every elevation maps.
BandTable = Tuple[Tuple[float, str], ...]

BIOME_BANDS: Dict[ScaleRegime, BandTable] = {
    ScaleRegime.CITY: (
        (-10.0, "water"),
        (5.0, "lowland"),
        (50.0, "grassland"),
        (100.0, "hills"),
        (math.inf, "mountains"),
    ),
    ScaleRegime.REGIONAL: (
        (-50.0, "ocean"),
        (0.0, "coastal"),
        (200.0, "plains"),
        (1000.0, "highlands"),
        (math.inf, "mountains"),
    ),
    ScaleRegime.PLANETARY: (
        (-2000.0, "deep_ocean"),
        (-200.0, "ocean"),
        (0.0, "continental_shelf"),
        (500.0, "lowlands"),
        (1500.0, "plateaus"),
        (3000.0, "mountains"),
        (math.inf, "high_peaks"),
    ),
}

# Low land this close to a channel band reads as shore.
SHORE_DISTANCE = 100.0
SHORE_CANDIDATES = frozenset({"lowland", "grassland", "plains"})

WATER_TAGS = frozenset({"water", "ocean", "coastal", "deep_ocean", "continental_shelf"})
OVERRIDE_TAGS = ("cliffs", "urban", "suburban", "shore")


def urban_factor(distance_to_urban_core: float) -> float:
    return max(0.0, 1.0 - distance_to_urban_core / URBAN_INFLUENCE_RADIUS)


class BiomeClassifier:
    """Map an elevation sample onto the active regime's biome taxonomy.

    Elevation bands are measured relative to ``water_level`` so a profile that
    raises its water table shifts every band with it. City and regional land
    tags may be overridden by steep slopes (``cliffs``), proximity to the
    urban core (``urban``/``suburban``) or low land next to a channel
    (``shore``); water tags are never overridden.
    """

    def __init__(self, water_level: float = 0.0) -> None:
        if not math.isfinite(water_level):
            raise NumericError("water_level must be finite")
        self.water_level = float(water_level)

    def taxonomy(self, regime: ScaleRegime) -> Tuple[str, ...]:
        tags = tuple(tag for _, tag in BIOME_BANDS[regime])
        if regime is ScaleRegime.PLANETARY:
            return tags
        return tags + OVERRIDE_TAGS

    def _band(self, elevation: float, regime: ScaleRegime) -> str:
        relative = elevation - self.water_level
        for upper, tag in BIOME_BANDS[regime]:
            if relative < upper:
                return tag
        # Unreachable: every table closes with +inf.
        return BIOME_BANDS[regime][-1][1]

    def classify(
        self,
        elevation: float,
        slope: float,
        regime: ScaleRegime,
        distance_to_urban_core: float = math.inf,
        distance_to_water: float = math.inf,
    ) -> str:
        if math.isnan(elevation) or math.isnan(slope):
            raise NumericError("cannot classify a NaN sample")
        tag = self._band(elevation, regime)
        if regime is ScaleRegime.PLANETARY or tag in WATER_TAGS:
            return tag
        # //2.- Overrides only relabel land; elevation is never touched.
        if slope >= CLIFF_SLOPE:
            return "cliffs"
        influence = urban_factor(distance_to_urban_core)
        if influence > URBAN_THRESHOLD:
            return "urban"
        if influence > SUBURBAN_THRESHOLD:
            return "suburban"
        if tag in SHORE_CANDIDATES and distance_to_water <= SHORE_DISTANCE:
            return "shore"
        return tag


__all__ = [
    "BiomeClassifier",
    "BIOME_BANDS",
    "WATER_TAGS",
    "CLIFF_SLOPE",
    "urban_factor",
]
