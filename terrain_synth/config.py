"""Terrain configuration as supplied by the host application."""
from __future__ import annotations

import json
import math
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError
from .profiles import CUSTOM_PROFILE, TerrainParameters, TerrainProfile, default_profiles

DEFAULT_ENV_PREFIX = "TERRAIN_SYNTH"
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


def _parse_bool(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ConfigurationError(f"{label} must be a boolean, got {value!r}")


# //1.- Snapshot of the UI terrain state; the seed and scale drive every generation call.
@dataclass(frozen=True)
class TerrainConfig:
    is_enabled: bool = True
    scale: float = 10.0
    seed: int = 12345
    time_of_day: float = 12.0
    terrain_profile: str = "manhattan"
    custom_parameters: TerrainParameters = field(default_factory=TerrainParameters)
    active_layer: Optional[str] = None
    show_atmosphere: bool = False

    def __post_init__(self) -> None:
        if not math.isfinite(self.scale) or self.scale <= 0.0:
            raise ConfigurationError(f"scale must be a positive finite number, got {self.scale!r}")
        if not math.isfinite(self.time_of_day) or not 0.0 <= self.time_of_day <= 24.0:
            raise ConfigurationError(f"time_of_day must lie in [0, 24], got {self.time_of_day!r}")

    # //2.- Both the UI's camelCase keys and snake_case keys are understood.
    @classmethod
    def from_mapping(cls, payload: Optional[Mapping[str, Any]] = None) -> "TerrainConfig":
        if not payload:
            return cls()
        defaults = cls()

        def pick(snake: str, camel: str, fallback: Any) -> Any:
            if snake in payload:
                return payload[snake]
            if camel in payload:
                return payload[camel]
            return fallback

        try:
            custom = pick("custom_parameters", "customParameters", None)
            layer = pick("active_layer", "activeTerrainLayer", defaults.active_layer)
            return cls(
                is_enabled=_parse_bool(pick("is_enabled", "isEnabled", defaults.is_enabled), "is_enabled"),
                scale=float(pick("scale", "scale", defaults.scale)),
                seed=int(pick("seed", "seed", defaults.seed)),
                time_of_day=float(pick("time_of_day", "timeOfDay", defaults.time_of_day)),
                terrain_profile=str(pick("terrain_profile", "terrainProfile", defaults.terrain_profile)),
                custom_parameters=TerrainParameters.from_mapping(custom),
                active_layer=None if layer is None else str(layer),
                show_atmosphere=_parse_bool(
                    pick("show_atmosphere", "showAtmosphere", defaults.show_atmosphere), "show_atmosphere"
                ),
            )
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid terrain configuration: {exc}") from exc

    # //3.- Environment overrides for headless runs and integration tests.
    @classmethod
    def from_environment(cls, prefix: str = DEFAULT_ENV_PREFIX) -> "TerrainConfig":
        mapping: Dict[str, Any] = {}
        for suffix, key in (
            ("SCALE", "scale"),
            ("SEED", "seed"),
            ("TIME_OF_DAY", "time_of_day"),
            ("PROFILE", "terrain_profile"),
            ("ENABLED", "is_enabled"),
            ("LAYER", "active_layer"),
        ):
            value = os.getenv(f"{prefix}_{suffix}")
            if value is not None:
                mapping[key] = value
        return cls.from_mapping(mapping)

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "is_enabled": self.is_enabled,
            "scale": self.scale,
            "seed": self.seed,
            "time_of_day": self.time_of_day,
            "terrain_profile": self.terrain_profile,
            "custom_parameters": self.custom_parameters.to_mapping(),
            "active_layer": self.active_layer,
            "show_atmosphere": self.show_atmosphere,
        }

    def with_overrides(self, **changes: Any) -> "TerrainConfig":
        return replace(self, **changes)

    def profile(self, profiles: Optional[Mapping[str, TerrainProfile]] = None) -> Optional[TerrainProfile]:
        table = profiles if profiles is not None else default_profiles()
        if self.terrain_profile == CUSTOM_PROFILE:
            return None
        return table.get(self.terrain_profile)

    def resolve_parameters(self, profiles: Optional[Mapping[str, TerrainProfile]] = None) -> TerrainParameters:
        """Preset parameters for a known profile, otherwise the custom tuple."""

        preset = self.profile(profiles)
        if preset is None:
            return self.custom_parameters
        return preset.parameters


def read_config_file(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return payload


# //4.- Canonical accessor: explicit mapping, then a JSON file, then the environment.
def load_terrain_config(
    mapping: Optional[Mapping[str, Any]] = None,
    *,
    path: Optional[str] = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> TerrainConfig:
    if mapping is not None:
        return TerrainConfig.from_mapping(mapping)
    if path is not None:
        return TerrainConfig.from_mapping(read_config_file(path))
    return TerrainConfig.from_environment(prefix=env_prefix)


__all__ = [
    "TerrainConfig",
    "DEFAULT_ENV_PREFIX",
    "load_terrain_config",
    "read_config_file",
]
