"""End-to-end tests for generation sessions, render modes and outputs."""
from __future__ import annotations

import logging
import random
import warnings

import pytest

from terrain_synth.biomes import BiomeClassifier
from terrain_synth.config import TerrainConfig
from terrain_synth.errors import ConfigurationError, InvariantViolation, NumericError, ResourceLimitExceeded
from terrain_synth.generator import RenderMode, TerrainGenerator, determine_render_mode
from terrain_synth.geometry import DEFAULT_BOUNDS, Bounds
from terrain_synth.profiles import TerrainParameters
from terrain_synth.scale import ScaleRegime, select_regime

SCENARIO_BOUNDS = Bounds(-1000.0, -1000.0, 1000.0, 1000.0)


@pytest.fixture
def generator() -> TerrainGenerator:
    return TerrainGenerator(12345)


def test_city_scenario(generator) -> None:
    mesh = generator.generate_mesh(SCENARIO_BOUNDS, scale=1.0)
    assert mesh.regime is ScaleRegime.CITY
    assert mesh.resolution == 50.0
    assert len(mesh) == 2 * 40 * 40
    assert mesh.bounding_box() == SCENARIO_BOUNDS
    assert abs(generator.elevation(0.0, 0.0, ScaleRegime.CITY)) < 3.0
    assert generator.elevation(0.0, 2000.0, ScaleRegime.CITY) <= -50.0
    taxonomy = BiomeClassifier().taxonomy(ScaleRegime.CITY)
    assert generator.sample(0.0, 0.0, ScaleRegime.CITY).biome in taxonomy


def test_planetary_scenario(generator) -> None:
    regime = select_regime(500)
    assert regime is ScaleRegime.PLANETARY
    sample = generator.sample(0.0, 0.0, regime)
    assert sample.biome in {"deep_ocean", "ocean", "continental_shelf", "lowlands", "plateaus", "mountains", "high_peaks"}
    assert sample.color[3] == 200
    mesh = generator.generate_mesh(SCENARIO_BOUNDS, scale=500.0)
    assert mesh.regime is ScaleRegime.PLANETARY
    assert len(mesh) == 8


def test_pipeline_is_deterministic() -> None:
    rng = random.Random(31)
    for _ in range(4):
        seed = rng.randrange(0, 2 ** 31)
        scale = rng.choice([1.0, 7.5, 40.0, 500.0])
        hour = rng.uniform(0.0, 24.0)
        params = TerrainParameters(
            mountain_height=rng.uniform(0.0, 400.0),
            water_level=rng.uniform(-20.0, 20.0),
            hilliness=rng.random(),
            river_probability=rng.random(),
            coastal_distance=rng.uniform(100.0, 10000.0),
        )
        bounds = Bounds(-600.0, 1500.0, 400.0, 2400.0)
        first = TerrainGenerator(seed).generate_mesh(bounds, scale=scale, time_of_day=hour, params=params)
        second = TerrainGenerator(seed).generate_mesh(bounds, scale=scale, time_of_day=hour, params=params)
        assert first.triangles == second.triangles
        assert first.truncated == second.truncated


def test_slope_sampling_reuses_grid_elevations(generator) -> None:
    generator.generate_mesh(Bounds(-500.0, -500.0, 500.0, 500.0), scale=1.0)
    assert generator.elevation_cache.hits > 0
    assert len(generator.sample_cache) == 21 * 21


def test_changed_session_drops_stale_results(generator) -> None:
    point = (9000.5, -9000.5)
    calm = TerrainParameters(mountain_height=20.0, hilliness=0.1)
    rugged = TerrainParameters(mountain_height=400.0, hilliness=0.9)
    first = generator.sample(*point, ScaleRegime.CITY, calm)
    second = generator.sample(*point, ScaleRegime.CITY, rugged)
    assert first.elevation != second.elevation
    assert second == TerrainGenerator(12345).sample(*point, ScaleRegime.CITY, rugged)


def test_reseed_replaces_caches(generator) -> None:
    point = (9000.5, -9000.5)
    before = generator.sample(*point, ScaleRegime.REGIONAL)
    generator.reseed(7)
    assert generator.seed == 7
    assert len(generator.elevation_cache) == 0
    after = generator.sample(*point, ScaleRegime.REGIONAL)
    assert after == TerrainGenerator(7).sample(*point, ScaleRegime.REGIONAL)
    assert after.elevation != before.elevation


def test_cache_refuses_foreign_seed(generator) -> None:
    with pytest.raises(InvariantViolation):
        generator.elevation_cache.get_or_compute(0.0, 0.0, lambda: 0.0, seed=54321)


def test_triangle_cap_is_enforced() -> None:
    capped = TerrainGenerator(1, max_triangles=100)
    with pytest.warns(ResourceLimitExceeded):
        mesh = capped.generate_mesh(Bounds(0.0, 0.0, 1000.0, 1000.0), scale=1.0)
    assert mesh.truncated
    assert len(mesh) == 80


def test_patches_tile_the_bounds(generator) -> None:
    patches = generator.generate_patches(SCENARIO_BOUNDS)
    assert len(patches) == 16
    regions = generator.texture_atlas(64).regions()
    for patch in patches:
        for x, y in patch.polygon:
            assert SCENARIO_BOUNDS.contains(x, y)
        assert patch.texture in regions
        assert len(patch.color) == 4
    assert patches[-1].polygon[2] == (1000.0, 1000.0)
    assert len(generator.generate_patches(Bounds(-900.0, -900.0, 900.0, 900.0))) == 9


def test_water_layer_follows_channels(generator) -> None:
    layer = {polygon.name: polygon for polygon in generator.water_polygons(Bounds(-5000.0, -5000.0, 5000.0, 5000.0))}
    assert set(layer) == {"main_bay", "north_fjord", "south_fjord", "east_inlet"}
    assert layer["main_bay"].depth == 60.0
    assert layer["main_bay"].polygon == ((-5000.0, 1250.0), (5000.0, 1250.0), (5000.0, 2750.0), (-5000.0, 2750.0))
    assert layer["east_inlet"].polygon[0] == (4700.0, -5000.0)
    assert generator.water_polygons(SCENARIO_BOUNDS) == ()
    default_layer = generator.water_polygons()
    assert [polygon.name for polygon in default_layer] == ["main_bay"]
    assert default_layer[0].polygon[0] == (-3000.0, 1250.0)


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"isEnabled": False}, RenderMode.NONE),
        ({"scale": 1, "activeTerrainLayer": "mesh"}, RenderMode.MESH),
        ({"scale": 1, "activeTerrainLayer": "planetary"}, RenderMode.MESH),
        ({"scale": 500, "activeTerrainLayer": "basic"}, RenderMode.PATCHES),
        ({"scale": 500, "activeTerrainLayer": "none"}, RenderMode.MESH),
        ({"scale": 50, "terrainProfile": "denver"}, RenderMode.MESH),
        ({"scale": 50, "terrainProfile": "manhattan"}, RenderMode.PATCHES),
        ({"scale": 50, "terrainProfile": "atlantis"}, RenderMode.PATCHES),
        ({"scale": 5, "terrainProfile": "denver"}, RenderMode.PATCHES),
    ],
)
def test_determine_render_mode(payload, expected) -> None:
    assert determine_render_mode(TerrainConfig.from_mapping(payload)) is expected


def test_render_patches_and_water(generator) -> None:
    output = generator.render(TerrainConfig(scale=1.0), Bounds(-5000.0, 1000.0, -3800.0, 2200.0))
    assert output.mode is RenderMode.PATCHES
    assert output.error is None
    assert len(output.patches) == 4
    assert [water.name for water in output.water] == ["main_bay"]


def test_render_planetary_layer_builds_a_mesh(generator) -> None:
    config = TerrainConfig(scale=1.0, active_layer="planetary", seed=99)
    output = generator.render(config, SCENARIO_BOUNDS)
    assert output.mode is RenderMode.MESH
    assert output.mesh is not None and output.mesh.regime is ScaleRegime.PLANETARY
    assert generator.seed == 99


def test_render_disabled_is_empty(generator) -> None:
    output = generator.render(TerrainConfig(is_enabled=False))
    assert output.mode is RenderMode.NONE
    assert output.is_empty and output.error is None


def test_render_never_raises(generator, monkeypatch, caplog) -> None:
    def explode(*args, **kwargs):
        raise NumericError("sample diverged")

    monkeypatch.setattr(generator, "generate_patches", explode)
    caplog.set_level(logging.ERROR, logger="terrain_synth.generator")
    output = generator.render(TerrainConfig(scale=1.0), SCENARIO_BOUNDS)
    assert output.mode is RenderMode.NONE
    assert output.is_empty
    assert "sample diverged" in output.error
    assert any("sample diverged" in record.getMessage() for record in caplog.records)


def test_texture_atlas_is_cached_per_generator(generator) -> None:
    assert generator.texture_atlas(64) is generator.texture_atlas(64)
    generator.reseed(3)
    assert generator.texture_atlas(64) is not None


def test_render_reports_malformed_bounds(generator, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="terrain_synth.generator")
    bounds = {"min_x": "west", "min_y": -100.0, "max_x": 100.0, "max_y": 100.0}
    output = generator.render(TerrainConfig(scale=1.0), bounds)
    assert output.mode is RenderMode.NONE
    assert output.is_empty
    assert "west" in output.error
    with pytest.raises(ConfigurationError):
        Bounds.from_mapping(bounds)


def test_render_contains_unexpected_failures(generator, monkeypatch, caplog) -> None:
    def explode(*args, **kwargs):
        raise RuntimeError("renderer bug")

    monkeypatch.setattr(generator, "generate_mesh", explode)
    caplog.set_level(logging.ERROR, logger="terrain_synth.generator")
    output = generator.render(TerrainConfig(scale=500.0), SCENARIO_BOUNDS)
    assert output.mode is RenderMode.NONE
    assert output.error == "RuntimeError: renderer bug"
    # //1.- The traceback is kept for the host's logs.
    assert any(record.exc_info is not None for record in caplog.records)


def test_default_mesh_fits_the_triangle_cap(generator) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("error", ResourceLimitExceeded)
        mesh = generator.generate_mesh(scale=10.0)
    assert not mesh.truncated
    assert mesh.bounds == DEFAULT_BOUNDS
    assert len(mesh) == 2 * 120 * 120
