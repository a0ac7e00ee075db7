"""Tests for day/night color blending, haze and material fallbacks."""
from __future__ import annotations

import logging

import pytest

from terrain_synth.biomes import BiomeClassifier
from terrain_synth.palette import (
    DEFAULT_ENTRY,
    SKY_BLUE,
    MaterialPalette,
    apply_haze,
    blend_channel,
    day_factor,
)
from terrain_synth.scale import ScaleRegime


@pytest.mark.parametrize(
    "hour,expected",
    [
        (12.0, 1.0),
        (6.0, 1.0),
        (18.0, 1.0),
        (0.0, 0.0),
        (5.0, 0.0),
        (19.0, 0.0),
        (23.5, 0.0),
        (5.5, 0.5),
        (18.5, 0.5),
        (24.0, 0.0),
        (30.0, 1.0),
    ],
)
def test_day_factor(hour: float, expected: float) -> None:
    assert day_factor(hour) == pytest.approx(expected)


def test_blend_channel_rounds_half_up() -> None:
    assert blend_channel(30, 70, 0.5) == 50
    assert blend_channel(0, 1, 0.5) == 1
    assert blend_channel(10, 20, 0.0) == 10
    assert blend_channel(10, 20, 1.0) == 20


def test_day_and_night_colors() -> None:
    palette = MaterialPalette()
    day, material = palette.color_for("water", 12.0, ScaleRegime.CITY)
    night, _ = palette.color_for("water", 0.0, ScaleRegime.REGIONAL)
    assert day == (70, 130, 180, 220)
    assert night == (30, 60, 90, 210)
    assert material.roughness == pytest.approx(0.1)
    dusk, _ = palette.color_for("water", 18.5, ScaleRegime.PLANETARY)
    assert dusk == (50, 95, 135, 200)


def test_haze_blends_toward_sky_blue() -> None:
    assert apply_haze((0, 0, 0), 1.0) == SKY_BLUE
    assert apply_haze((10, 20, 30), 0.0) == (10, 20, 30)
    palette = MaterialPalette()
    hazy, _ = palette.color_for("deep_ocean", 12.0, ScaleRegime.PLANETARY, haze=0.3)
    clear, _ = palette.color_for("deep_ocean", 12.0, ScaleRegime.PLANETARY)
    assert hazy != clear
    assert hazy[:3] == apply_haze(clear[:3], 0.3)


def test_every_taxonomy_tag_has_an_entry() -> None:
    palette = MaterialPalette()
    classifier = BiomeClassifier()
    for regime in ScaleRegime:
        for tag in classifier.taxonomy(regime):
            assert tag in palette


def test_unknown_biome_falls_back_and_warns_once(caplog) -> None:
    palette = MaterialPalette()
    caplog.set_level(logging.WARNING, logger="terrain_synth.palette")
    color, material = palette.color_for("lava", 12.0, ScaleRegime.CITY)
    palette.color_for("lava", 0.0, ScaleRegime.CITY)
    assert color == DEFAULT_ENTRY.day + (220,)
    assert material == DEFAULT_ENTRY.material
    warnings = [record for record in caplog.records if "lava" in record.getMessage()]
    assert len(warnings) == 1


def test_color_for_is_deterministic() -> None:
    a = MaterialPalette()
    b = MaterialPalette()
    for hour in (0.0, 5.25, 6.0, 13.0, 18.75, 21.0):
        assert a.color_for("hills", hour, ScaleRegime.CITY) == b.color_for("hills", hour, ScaleRegime.CITY)
