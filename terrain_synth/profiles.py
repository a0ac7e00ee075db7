"""Real-world terrain profile presets and the parameter tuple they resolve to."""
from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ConfigurationError

DEFAULT_PROFILES_PATH = os.path.join(os.path.dirname(__file__), "config", "profiles.json")
CUSTOM_PROFILE = "custom"


# //1.- Shape parameters of a city's surroundings, in meters except for the 0-1 factors.
@dataclass(frozen=True)
class TerrainParameters:
    mountain_height: float = 200.0
    water_level: float = 0.0
    hilliness: float = 0.7
    river_probability: float = 0.3
    coastal_distance: float = 5000.0

    def __post_init__(self) -> None:
        for name in ("mountain_height", "water_level", "hilliness", "river_probability", "coastal_distance"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"{name} must be finite")
        if self.mountain_height < 0.0:
            raise ConfigurationError("mountain_height must be >= 0")
        if not 0.0 <= self.hilliness <= 1.0:
            raise ConfigurationError("hilliness must lie in [0, 1]")
        if not 0.0 <= self.river_probability <= 1.0:
            raise ConfigurationError("river_probability must lie in [0, 1]")

    # //2.- Accept the UI's camelCase payload as well as snake_case keys.
    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "TerrainParameters":
        if not payload:
            return cls()
        defaults = cls()

        def pick(snake: str, camel: str) -> float:
            if snake in payload:
                return float(payload[snake])
            if camel in payload:
                return float(payload[camel])
            return float(getattr(defaults, snake))

        return cls(
            mountain_height=pick("mountain_height", "mountainHeight"),
            water_level=pick("water_level", "waterLevel"),
            hilliness=pick("hilliness", "hilliness"),
            river_probability=pick("river_probability", "riverProbability"),
            coastal_distance=pick("coastal_distance", "coastalDistance"),
        )

    def to_mapping(self) -> Dict[str, float]:
        return {
            "mountain_height": self.mountain_height,
            "water_level": self.water_level,
            "hilliness": self.hilliness,
            "river_probability": self.river_probability,
            "coastal_distance": self.coastal_distance,
        }


@dataclass(frozen=True)
class TerrainProfile:
    key: str
    name: str
    description: str
    parameters: TerrainParameters
    recommended_scale: float
    characteristics: Tuple[str, ...] = ()
    real_world_context: str = ""

    @classmethod
    def from_mapping(cls, key: str, payload: Mapping[str, Any]) -> "TerrainProfile":
        return cls(
            key=key,
            name=str(payload.get("name", key)),
            description=str(payload.get("description", "")),
            parameters=TerrainParameters.from_mapping(payload.get("parameters")),
            recommended_scale=float(payload.get("recommended_scale", 1.0)),
            characteristics=tuple(str(item) for item in payload.get("characteristics", ())),
            real_world_context=str(payload.get("real_world_context", "")),
        )


# //3.- Read the preset table; it is data, so callers may point at their own file.
def load_profiles(path: Optional[str] = None) -> Dict[str, TerrainProfile]:
    with open(path or DEFAULT_PROFILES_PATH, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return {key: TerrainProfile.from_mapping(key, entry) for key, entry in payload.items()}


_DEFAULT_PROFILES: Optional[Dict[str, TerrainProfile]] = None


def default_profiles() -> Dict[str, TerrainProfile]:
    global _DEFAULT_PROFILES
    if _DEFAULT_PROFILES is None:
        _DEFAULT_PROFILES = load_profiles()
    return dict(_DEFAULT_PROFILES)


def get_terrain_profile(
    key: str, profiles: Optional[Mapping[str, TerrainProfile]] = None
) -> Optional[TerrainProfile]:
    table = profiles if profiles is not None else default_profiles()
    return table.get(key)


def profile_list(profiles: Optional[Mapping[str, TerrainProfile]] = None) -> List[Dict[str, str]]:
    table = profiles if profiles is not None else default_profiles()
    return [
        {
            "value": key,
            "label": profile.name,
            "description": profile.description,
            "context": profile.real_world_context,
        }
        for key, profile in table.items()
    ]


def terrain_difficulty(profile: TerrainProfile) -> str:
    """Rate how hard the profile's terrain is to build on."""

    params = profile.parameters
    slope_challenge = params.hilliness * params.mountain_height / 100.0
    flood_risk = params.water_level / 10.0 if params.water_level > 0 else 0.0
    elevation_challenge = abs(params.water_level) / 1000.0
    total = slope_challenge + flood_risk + elevation_challenge
    if total < 0.5:
        return "easy"
    if total < 1.5:
        return "moderate"
    return "challenging"


def development_recommendations(profile: TerrainProfile) -> Dict[str, str]:
    params = profile.parameters
    return {
        "downtown": (
            "Flat areas near water for easy access and trade"
            if params.hilliness < 0.3
            else "Elevated areas with good views and drainage"
        ),
        "residential": (
            "Hills and elevated areas for views and status"
            if params.hilliness > 0.5
            else "Flat areas for efficient development"
        ),
        "industrial": (
            "Flat areas near water for transport and utilities"
            if params.hilliness < 0.2 and params.water_level < 10
            else "Level ground away from flood zones"
        ),
        "transportation": (
            "Winding roads following contours, bridges and tunnels"
            if params.hilliness > 0.6
            else "Grid system possible, efficient straight routes"
        ),
    }


__all__ = [
    "TerrainParameters",
    "TerrainProfile",
    "CUSTOM_PROFILE",
    "load_profiles",
    "default_profiles",
    "get_terrain_profile",
    "profile_list",
    "terrain_difficulty",
    "development_recommendations",
]
