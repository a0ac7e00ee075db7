"""Tests for the terrain profile presets."""
from __future__ import annotations

import json

import pytest

from terrain_synth.errors import ConfigurationError
from terrain_synth.profiles import (
    TerrainParameters,
    development_recommendations,
    get_terrain_profile,
    load_profiles,
    profile_list,
    terrain_difficulty,
)

EXPECTED_KEYS = {
    "manhattan",
    "san_francisco",
    "denver",
    "miami",
    "seattle",
    "chicago",
    "las_vegas",
    "new_orleans",
    "custom",
}


def test_bundled_presets() -> None:
    profiles = load_profiles()
    assert set(profiles) == EXPECTED_KEYS
    manhattan = profiles["manhattan"]
    assert manhattan.parameters == TerrainParameters(25.0, 0.0, 0.1, 0.9, 800.0)
    assert manhattan.recommended_scale == 1.0
    assert profiles["denver"].recommended_scale == 10.0
    assert "Island setting" in manhattan.characteristics


def test_lookup_and_listing() -> None:
    assert get_terrain_profile("seattle").name == "Seattle"
    assert get_terrain_profile("atlantis") is None
    listing = profile_list()
    assert {entry["value"] for entry in listing} == EXPECTED_KEYS
    assert all(entry["label"] and entry["description"] for entry in listing)


def test_presets_can_come_from_caller_data(tmp_path) -> None:
    path = tmp_path / "profiles.json"
    path.write_text(
        json.dumps({"flatland": {"name": "Flatland", "parameters": {"mountainHeight": 1, "hilliness": 0}, "recommended_scale": 2}}),
        encoding="utf-8",
    )
    profiles = load_profiles(str(path))
    assert list(profiles) == ["flatland"]
    assert profiles["flatland"].parameters.mountain_height == 1.0
    assert profiles["flatland"].parameters.hilliness == 0.0
    assert get_terrain_profile("flatland", profiles).recommended_scale == 2.0


@pytest.mark.parametrize(
    "key,expected",
    [
        ("manhattan", "easy"),
        ("miami", "easy"),
        ("san_francisco", "moderate"),
        ("las_vegas", "challenging"),
        ("denver", "challenging"),
    ],
)
def test_terrain_difficulty(key: str, expected: str) -> None:
    assert terrain_difficulty(get_terrain_profile(key)) == expected


def test_development_recommendations_follow_hilliness() -> None:
    hilly = development_recommendations(get_terrain_profile("san_francisco"))
    flat = development_recommendations(get_terrain_profile("chicago"))
    assert hilly["residential"].startswith("Hills")
    assert hilly["transportation"].startswith("Winding")
    assert flat["downtown"].startswith("Flat areas near water")
    assert flat["industrial"].startswith("Flat areas near water")
    assert set(hilly) == {"downtown", "residential", "industrial", "transportation"}


def test_parameters_validate_ranges() -> None:
    with pytest.raises(ConfigurationError):
        TerrainParameters(hilliness=1.5)
    with pytest.raises(ConfigurationError):
        TerrainParameters(mountain_height=-1.0)
    with pytest.raises(ConfigurationError):
        TerrainParameters(water_level=float("nan"))
    camel = TerrainParameters.from_mapping({"mountainHeight": 50, "waterLevel": -3, "riverProbability": 0.5})
    assert camel == TerrainParameters(50.0, -3.0, 0.7, 0.5, 5000.0)
