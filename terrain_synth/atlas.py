"""Procedural ground-texture atlas and per-sample texture selection."""
from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw

from .errors import ConfigurationError
from .palette import Material

ATLAS_COLUMNS = 4
ATLAS_BACKGROUND = "#404040"


@dataclass(frozen=True)
class TextureConfig:
    key: str
    surface: str
    base_color: str
    accent_colors: Tuple[str, ...]
    pattern: str
    scale: float
    density: float
    variation: float
    material: Material


@dataclass(frozen=True)
class UVRegion:
    u: float
    v: float
    width: float
    height: float


def _texture(
    key: str,
    surface: str,
    base: str,
    accents: Tuple[str, ...],
    pattern: str,
    scale: float,
    density: float,
    variation: float,
    material: Tuple[float, float, float, float, float],
) -> TextureConfig:
    roughness, metallic, ambient, diffuse, specular = material
    return TextureConfig(
        key=key,
        surface=surface,
        base_color=base,
        accent_colors=accents,
        pattern=pattern,
        scale=scale,
        density=density,
        variation=variation,
        material=Material(ambient=ambient, diffuse=diffuse, roughness=roughness, metallic=metallic, specular=specular),
    )


# //1.- Atlas order is significant: entry ``i`` lands in column ``i % 4`` of row ``i // 4``.
TEXTURE_CONFIGS: Tuple[TextureConfig, ...] = (
    _texture("lush_grass", "grass", "#4A7C59", ("#3D6B4A", "#5A8B6B", "#2F5233", "#6B9B7C"),
             "organic", 0.8, 0.7, 0.9, (0.9, 0.0, 0.5, 0.8, 0.1)),
    _texture("dry_grass", "grass", "#8B7355", ("#A0845C", "#7A6B47", "#6B5D42", "#9C8660"),
             "organic", 0.6, 0.5, 0.8, (0.8, 0.0, 0.6, 0.7, 0.1)),
    _texture("rich_soil", "dirt", "#8B4513", ("#A0522D", "#654321", "#D2691E", "#CD853F"),
             "noise", 0.4, 0.8, 0.6, (1.0, 0.0, 0.4, 0.9, 0.05)),
    _texture("rocky_terrain", "rock", "#696969", ("#778899", "#556B2F", "#2F4F4F", "#8B7D6B"),
             "geometric", 1.2, 0.6, 0.7, (0.7, 0.1, 0.3, 0.8, 0.3)),
    _texture("mountain_stone", "rock", "#5F5F5F", ("#708090", "#2F2F2F", "#696969", "#4A4A4A"),
             "mixed", 1.5, 0.4, 0.9, (0.6, 0.2, 0.2, 0.9, 0.4)),
    _texture("smooth_concrete", "concrete", "#C0C0C0", ("#D3D3D3", "#A9A9A9", "#DCDCDC", "#B0B0B0"),
             "geometric", 0.2, 0.3, 0.4, (0.4, 0.0, 0.6, 0.8, 0.2)),
    _texture("weathered_concrete", "concrete", "#A0A0A0", ("#909090", "#B0B0B0", "#808080", "#C0C0C0"),
             "noise", 0.6, 0.5, 0.7, (0.8, 0.0, 0.4, 0.9, 0.1)),
    _texture("dark_asphalt", "asphalt", "#2F2F2F", ("#404040", "#1A1A1A", "#333333", "#4A4A4A"),
             "noise", 0.3, 0.4, 0.5, (0.9, 0.0, 0.3, 0.7, 0.1)),
    _texture("forest_floor", "forest", "#228B22", ("#32CD32", "#006400", "#8FBC8F", "#2E7D32"),
             "organic", 1.0, 0.9, 1.0, (1.0, 0.0, 0.3, 0.9, 0.05)),
    _texture("sandy_beach", "sand", "#F4A460", ("#DEB887", "#D2B48C", "#F5DEB3", "#CD853F"),
             "noise", 0.5, 0.6, 0.4, (0.8, 0.0, 0.7, 0.8, 0.1)),
    _texture("marsh_wetland", "wetland", "#556B2F", ("#6B8E23", "#808000", "#9ACD32", "#8FBC8F"),
             "mixed", 0.9, 0.7, 0.8, (0.9, 0.0, 0.4, 0.8, 0.3)),
    _texture("coarse_gravel", "gravel", "#808080", ("#A9A9A9", "#696969", "#778899", "#708090"),
             "geometric", 0.8, 0.8, 0.6, (0.9, 0.1, 0.5, 0.8, 0.2)),
)


def texture_key(elevation: float, slope: float, urban_factor: float, distance_to_water: float = 1000.0) -> str:
    """Pick the atlas texture for a ground sample."""

    near_water = distance_to_water < 500.0
    if elevation < -2.0:
        return "marsh_wetland"
    if urban_factor > 0.7:
        return "weathered_concrete" if elevation > 10.0 else "smooth_concrete"
    if urban_factor > 0.3:
        return "dry_grass" if elevation > 5.0 else "dark_asphalt"
    if elevation > 150.0:
        return "mountain_stone" if slope > 0.3 else "rocky_terrain"
    if elevation > 80.0:
        return "rocky_terrain" if slope > 0.2 else "dry_grass"
    if elevation > 30.0:
        return "forest_floor"
    if elevation > 10.0:
        return "marsh_wetland" if near_water else "lush_grass"
    if elevation > 0.0:
        return "sandy_beach" if near_water else "rich_soil"
    return "marsh_wetland"


# -- Raster helpers -------------------------------------------------------

def _value_noise(rng: np.random.Generator, size: int, cells: int) -> np.ndarray:
    # //2.- Bilinearly upsample a coarse lattice of random values to ``size`` x ``size``.
    lattice = rng.uniform(-1.0, 1.0, (cells + 1, cells + 1))
    coords = np.linspace(0.0, float(cells), size, endpoint=False)
    index = coords.astype(int)
    frac = coords - index
    c00 = lattice[np.ix_(index, index)]
    c01 = lattice[np.ix_(index, index + 1)]
    c10 = lattice[np.ix_(index + 1, index)]
    c11 = lattice[np.ix_(index + 1, index + 1)]
    fx = frac[None, :]
    fy = frac[:, None]
    top = c00 * (1.0 - fx) + c01 * fx
    bottom = c10 * (1.0 - fx) + c11 * fx
    return top * (1.0 - fy) + bottom * fy


def _rgba(color: str, alpha: float) -> Tuple[int, int, int, int]:
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, int(max(0.0, min(1.0, alpha)) * 255))


class TextureAtlas:
    """Twelve procedural ground textures packed on a four-column grid.

    Drawing is driven by a numpy generator seeded with ``seed`` so the same
    seed and size always render the same pixels. The image is built on first
    use and kept.
    """

    def __init__(self, atlas_size: int = 2048, seed: int = 0) -> None:
        if atlas_size < ATLAS_COLUMNS * 4:
            raise ConfigurationError(f"atlas_size {atlas_size} is too small for a {ATLAS_COLUMNS}-column grid")
        self._atlas_size = int(atlas_size)
        self._tile_size = self._atlas_size // ATLAS_COLUMNS
        self._seed = int(seed)
        self._image: Optional[Image.Image] = None
        self._lock = threading.Lock()

    @property
    def atlas_size(self) -> int:
        return self._atlas_size

    @property
    def tile_size(self) -> int:
        return self._tile_size

    def texture_config(self, key: str) -> Optional[TextureConfig]:
        for config in TEXTURE_CONFIGS:
            if config.key == key:
                return config
        return None

    def regions(self) -> Dict[str, UVRegion]:
        extent = self._tile_size / self._atlas_size
        regions: Dict[str, UVRegion] = {}
        for index, config in enumerate(TEXTURE_CONFIGS):
            column = index % ATLAS_COLUMNS
            row = index // ATLAS_COLUMNS
            regions[config.key] = UVRegion(
                u=column * self._tile_size / self._atlas_size,
                v=row * self._tile_size / self._atlas_size,
                width=extent,
                height=extent,
            )
        return regions

    def generate(self) -> Image.Image:
        with self._lock:
            if self._image is None:
                self._image = self._render()
            return self._image

    def save(self, path: str) -> None:
        self.generate().save(path)

    # -- Rendering --------------------------------------------------------

    def _render(self) -> Image.Image:
        rng = np.random.default_rng(self._seed)
        atlas = Image.new("RGB", (self._atlas_size, self._atlas_size), ATLAS_BACKGROUND)
        for index, config in enumerate(TEXTURE_CONFIGS):
            column = index % ATLAS_COLUMNS
            row = index // ATLAS_COLUMNS
            tile = self._render_tile(config, rng)
            atlas.paste(tile, (column * self._tile_size, row * self._tile_size))
        return atlas

    def _render_tile(self, config: TextureConfig, rng: np.random.Generator) -> Image.Image:
        size = self._tile_size
        tile = Image.new("RGBA", (size, size), _rgba(config.base_color, 1.0))
        if config.pattern in ("noise", "mixed"):
            tile = self._apply_noise(tile, config, rng)
        if config.pattern == "organic":
            tile = self._apply_organic(tile, config, rng, config.density)
        elif config.pattern == "mixed":
            tile = self._apply_organic(tile, config, rng, config.density * 0.3)
        elif config.pattern == "geometric":
            tile = self._apply_geometric(tile, config, rng)
        tile = self._apply_details(tile, config, rng)
        return tile.convert("RGB")

    def _apply_noise(self, tile: Image.Image, config: TextureConfig, rng: np.random.Generator) -> Image.Image:
        size = self._tile_size
        base_cells = max(2, int(math.ceil(size * config.scale * 0.01)))
        field = (
            _value_noise(rng, size, base_cells) * 0.5
            + _value_noise(rng, size, base_cells * 2) * 0.3
            + _value_noise(rng, size, base_cells * 4) * 0.2
        )
        # //3.- Brightness swings up to +-30 levels scaled by the texture's variation.
        shift = field * config.variation * 30.0
        pixels = np.asarray(tile, dtype=np.float64).copy()
        pixels[..., :3] = np.clip(pixels[..., :3] + shift[..., None], 0.0, 255.0)
        return Image.fromarray(pixels.astype(np.uint8))

    def _apply_organic(
        self, tile: Image.Image, config: TextureConfig, rng: np.random.Generator, density: float
    ) -> Image.Image:
        size = self._tile_size
        overlay = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        count = int(size * size * density * 0.01)
        for _ in range(count):
            cx, cy = rng.uniform(0.0, size, 2)
            radius = (5.0 + rng.uniform(0.0, 15.0)) * config.scale
            points = 8 + int(rng.integers(0, 8))
            outline = []
            for j in range(points):
                angle = j / points * 2.0 * math.pi
                r = radius * (0.7 + rng.uniform(0.0, 0.6))
                outline.append((cx + math.cos(angle) * r, cy + math.sin(angle) * r))
            color = config.accent_colors[int(rng.integers(0, len(config.accent_colors)))]
            draw.polygon(outline, fill=_rgba(color, 0.3 + rng.uniform(0.0, 0.4)))
        return Image.alpha_composite(tile, overlay)

    def _apply_geometric(self, tile: Image.Image, config: TextureConfig, rng: np.random.Generator) -> Image.Image:
        size = self._tile_size
        overlay = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        cell = max(2.0, 20.0 * config.scale)
        tiles = int(size // cell)
        for tx in range(tiles):
            for ty in range(tiles):
                if rng.random() >= config.density:
                    continue
                x0 = tx * cell
                y0 = ty * cell
                color = config.accent_colors[int(rng.integers(0, len(config.accent_colors)))]
                fill = _rgba(color, 0.2 + rng.uniform(0.0, 0.3))
                if rng.random() < 0.5:
                    left = x0 + rng.uniform(0.0, cell * 0.3)
                    top = y0 + rng.uniform(0.0, cell * 0.3)
                    draw.rectangle(
                        (left, top, left + cell * (0.4 + rng.uniform(0.0, 0.3)), top + cell * (0.4 + rng.uniform(0.0, 0.3))),
                        fill=fill,
                    )
                else:
                    sides = 3 + int(rng.integers(0, 3))
                    draw.regular_polygon((x0 + cell * 0.5, y0 + cell * 0.5, cell * 0.3), sides, fill=fill)
        return Image.alpha_composite(tile, overlay)

    def _apply_details(self, tile: Image.Image, config: TextureConfig, rng: np.random.Generator) -> Image.Image:
        size = self._tile_size
        overlay = Image.new("RGBA", (size, size), (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        accents = config.accent_colors

        def accent(alpha: float) -> Tuple[int, int, int, int]:
            return _rgba(accents[int(rng.integers(0, len(accents)))], alpha)

        if config.surface == "grass":
            # Blades.
            for _ in range(int(size * size * 0.002)):
                px, py = rng.uniform(0.0, size, 2)
                tip = (px + rng.uniform(-2.0, 2.0), py - rng.uniform(0.0, 8.0))
                draw.line([(px, py), tip], fill=accent(0.4), width=1)
        elif config.surface == "rock":
            # Cracks.
            for _ in range(10):
                x, y = rng.uniform(0.0, size, 2)
                path = [(x, y)]
                for _ in range(3 + int(rng.integers(0, 5))):
                    x += rng.uniform(-10.0, 10.0)
                    y += rng.uniform(-10.0, 10.0)
                    path.append((x, y))
                draw.line(path, fill=accent(0.3), width=1 + int(rng.integers(0, 3)))
        elif config.surface == "concrete":
            # Seams.
            for _ in range(4 + int(rng.integers(0, 4))):
                offset = rng.uniform(0.0, size)
                if rng.random() < 0.5:
                    draw.line([(0, offset), (size, offset)], fill=accent(0.5), width=1)
                else:
                    draw.line([(offset, 0), (offset, size)], fill=accent(0.5), width=1)
        elif config.surface == "dirt":
            for _ in range(int(size * size * 0.001)):
                px, py = rng.uniform(0.0, size, 2)
                radius = 1.0 + rng.uniform(0.0, 3.0)
                draw.ellipse((px - radius, py - radius, px + radius, py + radius), fill=accent(0.4))
        elif config.surface == "asphalt":
            # Aggregate.
            for _ in range(int(size * size * 0.003)):
                px, py = rng.uniform(0.0, size, 2)
                grain = 0.5 + rng.uniform(0.0, 1.5)
                draw.rectangle((px, py, px + grain, py + grain), fill=accent(0.3))
        return Image.alpha_composite(tile, overlay)


__all__ = [
    "TextureAtlas",
    "TextureConfig",
    "UVRegion",
    "TEXTURE_CONFIGS",
    "ATLAS_COLUMNS",
    "texture_key",
]
