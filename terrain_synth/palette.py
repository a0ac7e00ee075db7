"""Biome colors and surface materials with day/night blending and haze."""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Set, Tuple

from .scale import RegimeSettings, ScaleRegime

LOGGER = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]

SKY_BLUE: RGB = (135, 206, 235)
DEFAULT_BIOME = "unknown"

# Full daylight between these hours, full night outside the transition hours.
DAWN_START = 5.0
DAY_START = 6.0
DAY_END = 18.0
DUSK_END = 19.0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# //1.- 1.0 in daylight, 0.0 at night, linear across the dawn and dusk hours.
def day_factor(hour: float) -> float:
    hour = float(hour) % 24.0
    if DAY_START <= hour <= DAY_END:
        return 1.0
    if hour >= DUSK_END or hour <= DAWN_START:
        return 0.0
    if hour < DAY_START:
        return (hour - DAWN_START) / (DAY_START - DAWN_START)
    return (DUSK_END - hour) / (DUSK_END - DAY_END)


def blend_channel(night: float, day: float, factor: float) -> int:
    return round_half_up(night + (day - night) * factor)


@dataclass(frozen=True)
class Material:
    ambient: float
    diffuse: float
    roughness: float
    metallic: float
    specular: float


@dataclass(frozen=True)
class PaletteEntry:
    day: RGB
    night: RGB
    material: Material


def _entry(day: RGB, night: RGB, ambient: float, diffuse: float, roughness: float, metallic: float, specular: float) -> PaletteEntry:
    return PaletteEntry(day, night, Material(ambient, diffuse, roughness, metallic, specular))


DEFAULT_ENTRY = _entry((128, 128, 128), (64, 64, 64), 0.5, 0.8, 0.9, 0.1, 0.2)

DEFAULT_ENTRIES: Dict[str, PaletteEntry] = {
    # City taxonomy.
    "water": _entry((70, 130, 180), (30, 60, 90), 0.3, 0.6, 0.1, 0.0, 0.8),
    "lowland": _entry((139, 115, 85), (70, 58, 43), 0.6, 0.7, 0.8, 0.0, 0.1),
    "grassland": _entry((74, 124, 89), (37, 62, 45), 0.5, 0.8, 0.9, 0.0, 0.1),
    "hills": _entry((101, 67, 33), (60, 40, 20), 0.4, 0.9, 1.0, 0.0, 0.05),
    "mountains": _entry((105, 105, 105), (55, 55, 55), 0.3, 0.8, 0.7, 0.1, 0.3),
    # Regional taxonomy.
    "ocean": _entry((30, 90, 150), (15, 45, 75), 0.3, 0.6, 0.1, 0.0, 0.8),
    "coastal": _entry((95, 158, 160), (45, 75, 80), 0.4, 0.7, 0.3, 0.0, 0.6),
    "plains": _entry((150, 170, 90), (75, 85, 45), 0.5, 0.8, 0.9, 0.0, 0.1),
    "highlands": _entry((120, 110, 80), (60, 55, 40), 0.4, 0.8, 0.9, 0.0, 0.1),
    # Planetary taxonomy.
    "deep_ocean": _entry((10, 40, 100), (5, 20, 50), 0.2, 0.5, 0.1, 0.0, 0.9),
    "continental_shelf": _entry((60, 130, 170), (30, 65, 85), 0.3, 0.6, 0.2, 0.0, 0.7),
    "lowlands": _entry((90, 140, 70), (45, 70, 35), 0.5, 0.8, 0.9, 0.0, 0.1),
    "plateaus": _entry((160, 130, 90), (80, 65, 45), 0.5, 0.8, 0.8, 0.0, 0.1),
    "high_peaks": _entry((240, 240, 245), (120, 120, 130), 0.7, 0.9, 0.5, 0.0, 0.4),
    # Overrides.
    "cliffs": _entry((95, 95, 95), (47, 47, 47), 0.2, 0.9, 0.6, 0.2, 0.4),
    "urban": _entry((160, 160, 160), (80, 80, 85), 0.4, 0.9, 0.8, 0.0, 0.1),
    "suburban": _entry((192, 192, 192), (96, 96, 100), 0.6, 0.8, 0.4, 0.0, 0.2),
    "shore": _entry((244, 164, 96), (122, 82, 48), 0.7, 0.8, 0.8, 0.0, 0.1),
}


def apply_haze(color: RGB, haze: float) -> RGB:
    """Blend toward sky blue by ``haze`` in ``[0, 1]``."""

    if haze <= 0.0:
        return color
    haze = min(1.0, haze)
    return tuple(
        round_half_up(channel + (sky - channel) * haze) for channel, sky in zip(color, SKY_BLUE)
    )  # type: ignore[return-value]


class MaterialPalette:
    """Look up lit colors and materials for biome tags.

    A tag without an entry resolves to :data:`DEFAULT_ENTRY` and is reported
    once through the module logger.
    """

    def __init__(self, entries: Optional[Mapping[str, PaletteEntry]] = None) -> None:
        self._entries: Dict[str, PaletteEntry] = dict(entries if entries is not None else DEFAULT_ENTRIES)
        self._missing: Set[str] = set()
        self._lock = threading.Lock()

    def __contains__(self, biome: str) -> bool:
        return biome in self._entries

    def entry(self, biome: str) -> PaletteEntry:
        entry = self._entries.get(biome)
        if entry is not None:
            return entry
        # //2.- Missing tags are a data gap, not a failure; warn once and fall back.
        with self._lock:
            first = biome not in self._missing
            self._missing.add(biome)
        if first:
            LOGGER.warning("No palette entry for biome '%s'; using '%s'", biome, DEFAULT_BIOME)
        return DEFAULT_ENTRY

    def color_for(
        self,
        biome: str,
        time_of_day: float,
        regime: ScaleRegime,
        haze: float = 0.0,
    ) -> Tuple[RGBA, Material]:
        entry = self.entry(biome)
        factor = day_factor(time_of_day)
        rgb = tuple(blend_channel(n, d, factor) for n, d in zip(entry.night, entry.day))
        rgb = apply_haze(rgb, haze)  # type: ignore[arg-type]
        alpha = RegimeSettings.for_regime(regime).alpha
        return (rgb[0], rgb[1], rgb[2], alpha), entry.material


__all__ = [
    "MaterialPalette",
    "Material",
    "PaletteEntry",
    "DEFAULT_BIOME",
    "DEFAULT_ENTRY",
    "DEFAULT_ENTRIES",
    "SKY_BLUE",
    "day_factor",
    "blend_channel",
    "apply_haze",
    "round_half_up",
]
