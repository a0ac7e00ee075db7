"""Serializable geographic feature records: hills, water channels and the urban core."""
from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ConfigurationError
from .geometry import Bounds

HILL_KINDS = frozenset({"hill"})
CHANNEL_KINDS = frozenset({"bay", "fjord", "inlet", "river"})
ORIENTATIONS = frozenset({"horizontal", "vertical"})

# Exponential decay rate k in ``amplitude * exp(-k * (d / r) ** p)``.
HILL_DECAY_RATE = 1.0
# Hill contributions smaller than this many meters are dropped.
HILL_CUTOFF = 2.0

DEFAULT_FEATURES_PATH = os.path.join(os.path.dirname(__file__), "config", "features.json")


# //1.- One named feature; hills use center/radius, channels use a centerline band.
@dataclass(frozen=True)
class TerrainFeature:
    kind: str
    center: Tuple[float, float]
    amplitude: float
    radius: float
    falloff_exponent: float
    orientation: Optional[str] = None
    name: str = ""

    def __post_init__(self) -> None:
        if self.kind not in HILL_KINDS | CHANNEL_KINDS:
            raise ConfigurationError(f"Unknown feature kind '{self.kind}'")
        if not math.isfinite(self.amplitude) or self.amplitude <= 0.0:
            raise ConfigurationError(f"Feature '{self.name}' needs a positive amplitude")
        if self.radius <= 0.0:
            raise ConfigurationError(f"Feature '{self.name}' needs a positive radius")
        if self.falloff_exponent <= 0.0:
            raise ConfigurationError(f"Feature '{self.name}' needs a positive falloff exponent")
        if self.is_channel and self.orientation not in ORIENTATIONS:
            raise ConfigurationError(
                f"Channel '{self.name}' orientation must be one of {sorted(ORIENTATIONS)}"
            )

    @property
    def is_channel(self) -> bool:
        return self.kind in CHANNEL_KINDS

    # //2.- Hills decay exponentially with distance and vanish below the cutoff.
    def hill_height(self, x: float, y: float) -> float:
        distance = math.hypot(x - self.center[0], y - self.center[1])
        height = self.amplitude * math.exp(
            -HILL_DECAY_RATE * (distance / self.radius) ** self.falloff_exponent
        )
        if height < HILL_CUTOFF:
            return 0.0
        return height

    # //3.- Channels measure the perpendicular distance to their centerline.
    def centerline_distance(self, x: float, y: float) -> float:
        if self.orientation == "horizontal":
            return abs(y - self.center[1])
        return abs(x - self.center[0])

    def carve(self, x: float, y: float) -> Optional[float]:
        """Carved elevation inside the band, ``None`` outside it."""

        distance = self.centerline_distance(x, y)
        if distance > self.radius:
            return None
        normalized = distance / self.radius
        return -self.amplitude * (1.0 - normalized ** self.falloff_exponent)

    def band(self, bounds: Bounds) -> Optional[Bounds]:
        if self.orientation == "horizontal":
            strip = (bounds.min_x, self.center[1] - self.radius, bounds.max_x, self.center[1] + self.radius)
        else:
            strip = (self.center[0] - self.radius, bounds.min_y, self.center[0] + self.radius, bounds.max_y)
        return bounds.intersection(Bounds(*strip))

    def to_mapping(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind,
            "name": self.name,
            "center": [self.center[0], self.center[1]],
            "amplitude": self.amplitude,
            "radius": self.radius,
            "falloff_exponent": self.falloff_exponent,
        }
        if self.orientation is not None:
            payload["orientation"] = self.orientation
        return payload

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TerrainFeature":
        try:
            center = payload["center"]
            return cls(
                kind=str(payload["kind"]),
                center=(float(center[0]), float(center[1])),
                amplitude=float(payload["amplitude"]),
                radius=float(payload["radius"]),
                falloff_exponent=float(payload.get("falloff_exponent", 2.0)),
                orientation=payload.get("orientation"),
                name=str(payload.get("name", "")),
            )
        except (KeyError, IndexError, TypeError) as exc:
            raise ConfigurationError(f"Malformed feature record {dict(payload)!r}") from exc


# //4.- Leveled city land: fully flat inside flat_radius, blending out by blend_radius.
@dataclass(frozen=True)
class UrbanCore:
    center: Tuple[float, float] = (0.0, 0.0)
    flat_radius: float = 3000.0
    blend_radius: float = 8000.0
    core_factor: float = 0.05
    core_max_relief: float = 2.0

    def __post_init__(self) -> None:
        if not 0.0 < self.flat_radius < self.blend_radius:
            raise ConfigurationError("UrbanCore requires 0 < flat_radius < blend_radius")

    def distance(self, x: float, y: float) -> float:
        return math.hypot(x - self.center[0], y - self.center[1])

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "center": [self.center[0], self.center[1]],
            "flat_radius": self.flat_radius,
            "blend_radius": self.blend_radius,
            "core_factor": self.core_factor,
            "core_max_relief": self.core_max_relief,
        }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "UrbanCore":
        center = payload.get("center", (0.0, 0.0))
        return cls(
            center=(float(center[0]), float(center[1])),
            flat_radius=float(payload.get("flat_radius", 3000.0)),
            blend_radius=float(payload.get("blend_radius", 8000.0)),
            core_factor=float(payload.get("core_factor", 0.05)),
            core_max_relief=float(payload.get("core_max_relief", 2.0)),
        )


@dataclass(frozen=True)
class FeatureSet:
    hills: Tuple[TerrainFeature, ...] = ()
    channels: Tuple[TerrainFeature, ...] = ()
    urban_core: UrbanCore = field(default_factory=UrbanCore)

    def __post_init__(self) -> None:
        for hill in self.hills:
            if hill.is_channel:
                raise ConfigurationError(f"'{hill.name}' is a channel listed among hills")
        for channel in self.channels:
            if not channel.is_channel:
                raise ConfigurationError(f"'{channel.name}' is a hill listed among channels")

    def channel(self, name: str) -> TerrainFeature:
        for channel in self.channels:
            if channel.name == name:
                return channel
        raise KeyError(name)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "hills": [hill.to_mapping() for hill in self.hills],
            "channels": [channel.to_mapping() for channel in self.channels],
            "urban_core": self.urban_core.to_mapping(),
        }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "FeatureSet":
        hills: List[TerrainFeature] = [TerrainFeature.from_mapping(item) for item in payload.get("hills", [])]
        channels = [TerrainFeature.from_mapping(item) for item in payload.get("channels", [])]
        core_payload = payload.get("urban_core")
        core = UrbanCore.from_mapping(core_payload) if core_payload is not None else UrbanCore()
        return cls(hills=tuple(hills), channels=tuple(channels), urban_core=core)


def load_feature_set(path: Optional[str] = None) -> FeatureSet:
    """Read a feature table from JSON, defaulting to the bundled one."""

    with open(path or DEFAULT_FEATURES_PATH, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return FeatureSet.from_mapping(payload)


def save_feature_set(features: FeatureSet, path: str) -> None:
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(features.to_mapping(), handle, indent=2)


__all__ = [
    "TerrainFeature",
    "UrbanCore",
    "FeatureSet",
    "HILL_DECAY_RATE",
    "HILL_CUTOFF",
    "load_feature_set",
    "save_feature_set",
]
