"""Tests for the procedural texture atlas and texture selection."""
from __future__ import annotations

import pytest
from PIL import Image

from terrain_synth.atlas import TEXTURE_CONFIGS, TextureAtlas, UVRegion, texture_key
from terrain_synth.errors import ConfigurationError


def test_regions_cover_twelve_textures_on_four_columns() -> None:
    regions = TextureAtlas(atlas_size=2048).regions()
    assert len(regions) == 12
    assert regions["lush_grass"] == UVRegion(0.0, 0.0, 0.25, 0.25)
    assert regions["mountain_stone"] == UVRegion(0.0, 0.25, 0.25, 0.25)
    assert regions["coarse_gravel"] == UVRegion(0.75, 0.5, 0.25, 0.25)
    assert list(regions) == [config.key for config in TEXTURE_CONFIGS]


def test_generate_is_deterministic_per_seed() -> None:
    image_a = TextureAtlas(atlas_size=64, seed=3).generate()
    image_b = TextureAtlas(atlas_size=64, seed=3).generate()
    assert image_a.size == (64, 64)
    assert image_a.mode == "RGB"
    assert image_a.tobytes() == image_b.tobytes()


def test_generated_image_is_cached() -> None:
    atlas = TextureAtlas(atlas_size=64, seed=1)
    assert atlas.generate() is atlas.generate()


def test_tiles_carry_their_base_colors() -> None:
    image = TextureAtlas(atlas_size=256, seed=5).generate()
    # //1.- The unused bottom row keeps the neutral background.
    assert image.getpixel((255, 255)) == (64, 64, 64)
    assert image.getpixel((0, 0)) != (64, 64, 64)


def test_save_writes_a_png(tmp_path) -> None:
    path = tmp_path / "atlas.png"
    TextureAtlas(atlas_size=64, seed=2).save(str(path))
    with Image.open(path) as reloaded:
        assert reloaded.size == (64, 64)


def test_atlas_size_must_fit_the_grid() -> None:
    with pytest.raises(ConfigurationError):
        TextureAtlas(atlas_size=8)


@pytest.mark.parametrize(
    "args,expected",
    [
        ((-5.0, 0.0, 0.0), "marsh_wetland"),
        ((20.0, 0.0, 0.8), "weathered_concrete"),
        ((5.0, 0.0, 0.8), "smooth_concrete"),
        ((8.0, 0.0, 0.5), "dry_grass"),
        ((3.0, 0.0, 0.5), "dark_asphalt"),
        ((200.0, 0.5, 0.0), "mountain_stone"),
        ((200.0, 0.1, 0.0), "rocky_terrain"),
        ((100.0, 0.3, 0.0), "rocky_terrain"),
        ((100.0, 0.1, 0.0), "dry_grass"),
        ((50.0, 0.0, 0.0), "forest_floor"),
        ((20.0, 0.0, 0.0, 100.0), "marsh_wetland"),
        ((20.0, 0.0, 0.0), "lush_grass"),
        ((5.0, 0.0, 0.0, 100.0), "sandy_beach"),
        ((5.0, 0.0, 0.0), "rich_soil"),
        ((-1.0, 0.0, 0.0), "marsh_wetland"),
    ],
)
def test_texture_key_rules(args, expected: str) -> None:
    key = texture_key(*args)
    assert key == expected
    assert TextureAtlas(atlas_size=64).texture_config(key) is not None
