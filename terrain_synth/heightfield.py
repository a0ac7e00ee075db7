"""Elevation synthesis: layered noise, hills, urban leveling and water channels."""
from __future__ import annotations

import math
from typing import Callable, Optional

from .errors import NumericError
from .features import HILL_CUTOFF, FeatureSet, load_feature_set
from .noise import NoiseField
from .profiles import TerrainParameters
from .scale import RegimeSettings, ScaleRegime

# Hills above the cutoff receive this fraction of their height as surface noise.
HILL_SURFACE_VARIATION = 0.12
_HILL_NOISE_FREQUENCY = 0.001
_HILL_NOISE_OFFSET = 0.0001

HeightFunction = Callable[[float, float], float]


def _require_finite(value: float, label: str) -> float:
    if not math.isfinite(value):
        raise NumericError(f"{label} is not finite ({value!r})")
    return value


# //1.- Central differences on a height function; returns the gradient magnitude (rise over run).
def estimate_slope(height_fn: HeightFunction, x: float, y: float, spacing: float) -> float:
    if spacing <= 0.0:
        raise ValueError("spacing must be positive")
    h_x1 = height_fn(x + spacing, y)
    h_x0 = height_fn(x - spacing, y)
    h_y1 = height_fn(x, y + spacing)
    h_y0 = height_fn(x, y - spacing)
    dx = (h_x1 - h_x0) / (2.0 * spacing)
    dy = (h_y1 - h_y0) / (2.0 * spacing)
    return _require_finite(math.hypot(dx, dy), "slope")


class HeightFieldSynthesizer:
    """Combine a :class:`NoiseField` with a :class:`FeatureSet` into elevations.

    The synthesizer borrows the noise field read-only and keeps no state that
    changes between calls, so ``elevation`` is a pure function of its inputs.
    Caching is left to :class:`terrain_synth.cache.TerrainCache`.
    """

    def __init__(self, noise: NoiseField, features: Optional[FeatureSet] = None) -> None:
        self._noise = noise
        self._features = features if features is not None else load_feature_set()

    @property
    def noise(self) -> NoiseField:
        return self._noise

    @property
    def features(self) -> FeatureSet:
        return self._features

    # -- Layers -----------------------------------------------------------

    def _noise_terrain(self, x: float, y: float, settings: RegimeSettings, params: TerrainParameters) -> float:
        # //2.- Three layers: rolling primary fBm, ridged mountains and broad continental swells.
        noise = self._noise
        primary = (
            noise.fractal_brownian_motion(
                x, y, octaves=settings.primary_octaves, frequency=settings.primary_frequency
            )
            * params.mountain_height
            * params.hilliness
        )
        ridges = noise.ridged_noise(
            x,
            y,
            octaves=settings.ridge_octaves,
            frequency=settings.ridge_frequency,
            amplitude=params.mountain_height / 2.0,
        )
        continental = (
            noise.fractal_brownian_motion(
                x, y, octaves=settings.continental_octaves, frequency=settings.continental_frequency
            )
            * settings.continental_relief
        )
        return settings.amplitude_scale * (
            settings.primary_weight * primary
            + settings.ridge_weight * ridges
            + settings.continental_weight * continental
        )

    def _hill_terrain(self, x: float, y: float) -> float:
        total = 0.0
        for hill in self._features.hills:
            height = hill.hill_height(x, y)
            if height < HILL_CUTOFF:
                continue
            # //3.- Break up the smooth dome with low-frequency noise anchored to the hill center.
            variation = self._noise.noise2d(
                x * _HILL_NOISE_FREQUENCY + hill.center[0] * _HILL_NOISE_OFFSET,
                y * _HILL_NOISE_FREQUENCY + hill.center[1] * _HILL_NOISE_OFFSET,
            )
            total += height + variation * height * HILL_SURFACE_VARIATION
        return total

    def relief(self, x: float, y: float, regime: ScaleRegime, params: TerrainParameters) -> float:
        """Noise terrain plus hills, before any urban leveling or carving."""

        _require_finite(x, "x")
        _require_finite(y, "y")
        settings = RegimeSettings.for_regime(regime)
        value = self._noise_terrain(x, y, settings, params)
        if settings.apply_local_features:
            value += self._hill_terrain(x, y)
        return _require_finite(value, "relief")

    # -- Urban leveling ---------------------------------------------------

    def distance_to_urban_core(self, x: float, y: float) -> float:
        return self._features.urban_core.distance(x, y)

    def flattening_factor(self, distance: float) -> float:
        """Share of natural relief kept at ``distance``: 0 inside the flat radius, 1 past the blend radius."""

        core = self._features.urban_core
        if distance <= core.flat_radius:
            return 0.0
        if distance >= core.blend_radius:
            return 1.0
        return (distance - core.flat_radius) / (core.blend_radius - core.flat_radius)

    def flattening_strength(self, distance: float) -> float:
        return 1.0 - self.flattening_factor(distance)

    def _flatten(self, x: float, y: float, relief: float) -> float:
        core = self._features.urban_core
        factor = self.flattening_factor(core.distance(x, y))
        if factor >= 1.0:
            return relief
        # //4.- Leveled land keeps a sliver of relief, clamped, then blends back to nature.
        leveled = max(-core.core_max_relief, min(core.core_max_relief, relief * core.core_factor))
        return leveled + (relief - leveled) * factor

    def base_elevation(self, x: float, y: float, regime: ScaleRegime, params: TerrainParameters) -> float:
        value = self.relief(x, y, regime, params)
        if RegimeSettings.for_regime(regime).apply_local_features:
            value = self._flatten(x, y, value)
        return value

    # -- Hydrology --------------------------------------------------------

    def channel_elevation(self, x: float, y: float) -> Optional[float]:
        """Deepest carve among channels whose band contains the point."""

        deepest: Optional[float] = None
        for channel in self._features.channels:
            carved = channel.carve(x, y)
            if carved is None:
                continue
            if deepest is None or carved < deepest:
                deepest = carved
        return deepest

    def distance_to_water(self, x: float, y: float) -> float:
        if not self._features.channels:
            return math.inf
        return min(
            max(0.0, channel.centerline_distance(x, y) - channel.radius)
            for channel in self._features.channels
        )

    # -- Public -----------------------------------------------------------

    def elevation(self, x: float, y: float, regime: ScaleRegime, params: TerrainParameters) -> float:
        value = self.base_elevation(x, y, regime, params)
        if RegimeSettings.for_regime(regime).apply_local_features:
            # //5.- Channels always win: the lowest surface is the one that survives.
            carved = self.channel_elevation(x, y)
            if carved is not None:
                value = min(value, carved)
        return _require_finite(value, "elevation")


__all__ = ["HeightFieldSynthesizer", "estimate_slope", "HILL_SURFACE_VARIATION"]
