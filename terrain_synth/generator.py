"""Terrain generation sessions: sampling, meshing, patches and the water layer."""
from __future__ import annotations

import enum
import logging
import math
import threading
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from .atlas import TextureAtlas, texture_key
from .biomes import BiomeClassifier, urban_factor
from .cache import TerrainCache
from .config import TerrainConfig
from .errors import TerrainError
from .features import FeatureSet, load_feature_set
from .geometry import Bounds, Polygon, resolve_bounds
from .heightfield import HeightFieldSynthesizer, estimate_slope
from .mesh import DEFAULT_MAX_TRIANGLES, HeightSample, MeshTriangulator, TerrainMesh
from .noise import NoiseField
from .palette import RGBA, MaterialPalette
from .profiles import TerrainParameters, TerrainProfile, default_profiles
from .scale import RegimeOverride, RegimeSettings, ScaleRegime, haze_factor, select_regime

LOGGER = logging.getLogger(__name__)

DEFAULT_PATCH_SIZE = 600.0
# Profiles recommending a coarser view than this get a mesh at regional scale.
MESH_RECOMMENDED_SCALE = 5.0


class RenderMode(enum.Enum):
    MESH = "mesh"
    PATCHES = "patches"
    NONE = "none"


_LAYER_MODES = {
    "mesh": RenderMode.MESH,
    "planetary": RenderMode.MESH,
    "patches": RenderMode.PATCHES,
    "basic": RenderMode.PATCHES,
}


# //1.- Flat rectangle used by the city-scale basic renderer.
@dataclass(frozen=True)
class GroundPatch:
    polygon: Polygon
    elevation: float
    color: RGBA
    biome: str
    texture: str


@dataclass(frozen=True)
class WaterPolygon:
    name: str
    kind: str
    polygon: Polygon
    depth: float


@dataclass(frozen=True)
class TerrainOutput:
    mode: RenderMode
    mesh: Optional[TerrainMesh] = None
    patches: Tuple[GroundPatch, ...] = ()
    water: Tuple[WaterPolygon, ...] = ()
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.mesh is None and not self.patches


def determine_render_mode(
    config: TerrainConfig, profiles: Optional[Mapping[str, TerrainProfile]] = None
) -> RenderMode:
    """Choose between the triangulated mesh and flat patches for ``config``."""

    if not config.is_enabled:
        return RenderMode.NONE
    layer = (config.active_layer or "none").strip().lower()
    if layer in _LAYER_MODES:
        return _LAYER_MODES[layer]
    if layer not in ("none", "auto", ""):
        LOGGER.warning("Unknown terrain layer '%s'; choosing automatically", config.active_layer)
    regime = select_regime(config.scale)
    if regime is ScaleRegime.PLANETARY:
        return RenderMode.MESH
    if regime is ScaleRegime.REGIONAL:
        profile = config.profile(profiles)
        recommended = profile.recommended_scale if profile is not None else 1.0
        return RenderMode.MESH if recommended > MESH_RECOMMENDED_SCALE else RenderMode.PATCHES
    return RenderMode.PATCHES


class TerrainGenerator:
    """Own one seed's noise field, synthesizer and caches.

    A generator is an ordinary object: build one per seed and pass it to
    whoever needs terrain. Results are cached per session, where a session is
    identified by the bounds, regime, parameters, time of day and haze in use;
    any change to that signature clears both caches before new work starts,
    and :meth:`reseed` replaces them outright.
    """

    def __init__(
        self,
        seed: int,
        features: Optional[FeatureSet] = None,
        palette: Optional[MaterialPalette] = None,
        profiles: Optional[Mapping[str, TerrainProfile]] = None,
        cache_cell_size: float = 10.0,
        max_triangles: int = DEFAULT_MAX_TRIANGLES,
    ) -> None:
        self._features = features if features is not None else load_feature_set()
        self._palette = palette if palette is not None else MaterialPalette()
        self._profiles: Dict[str, TerrainProfile] = (
            dict(profiles) if profiles is not None else default_profiles()
        )
        self._cache_cell_size = float(cache_cell_size)
        self._max_triangles = int(max_triangles)
        self._lock = threading.RLock()
        self._atlases: Dict[int, TextureAtlas] = {}
        self._install_seed(int(seed))

    # -- Seed lifecycle ---------------------------------------------------

    def _install_seed(self, seed: int) -> None:
        # //2.- Everything derived from the seed is rebuilt together so nothing stale survives.
        self._seed = seed
        self._noise = NoiseField(seed)
        self._synthesizer = HeightFieldSynthesizer(self._noise, self._features)
        self._elevation_cache: TerrainCache[float] = TerrainCache(seed, self._cache_cell_size)
        self._sample_cache: TerrainCache[HeightSample] = TerrainCache(seed, self._cache_cell_size)
        self._signature: Optional[tuple] = None
        self._atlases = {}

    def reseed(self, seed: int) -> None:
        with self._lock:
            LOGGER.info("Reseeding terrain generator %s -> %s", self._seed, seed)
            self._install_seed(int(seed))

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def synthesizer(self) -> HeightFieldSynthesizer:
        return self._synthesizer

    @property
    def features(self) -> FeatureSet:
        return self._features

    @property
    def profiles(self) -> Dict[str, TerrainProfile]:
        return dict(self._profiles)

    @property
    def elevation_cache(self) -> TerrainCache[float]:
        return self._elevation_cache

    @property
    def sample_cache(self) -> TerrainCache[HeightSample]:
        return self._sample_cache

    def _begin_session(
        self,
        bounds: Optional[Bounds],
        regime: ScaleRegime,
        params: TerrainParameters,
        time_of_day: float,
        haze: float,
        spacing: float,
    ) -> None:
        with self._lock:
            if bounds is None and self._signature is not None:
                bounds = self._signature[0]
            signature = (bounds, regime, params, float(time_of_day), float(haze), float(spacing))
            if signature == self._signature:
                return
            if self._signature is not None:
                LOGGER.debug(
                    "Terrain session changed; dropping %d elevations and %d samples",
                    len(self._elevation_cache),
                    len(self._sample_cache),
                )
            self._elevation_cache.clear()
            self._sample_cache.clear()
            self._signature = signature

    # -- Sampling ---------------------------------------------------------

    def _elevation(self, x: float, y: float, regime: ScaleRegime, params: TerrainParameters) -> float:
        return self._elevation_cache.get_or_compute(
            x, y, lambda: self._synthesizer.elevation(x, y, regime, params), seed=self._seed
        )

    def _evaluate(
        self,
        x: float,
        y: float,
        regime: ScaleRegime,
        params: TerrainParameters,
        time_of_day: float,
        haze: float,
        spacing: float,
    ) -> HeightSample:
        def height(px: float, py: float) -> float:
            return self._elevation(px, py, regime, params)

        elevation = height(x, y)
        slope = estimate_slope(height, x, y, spacing)
        distance_core, distance_water = self._context_distances(x, y, regime)
        biome = BiomeClassifier(params.water_level).classify(
            elevation, slope, regime, distance_core, distance_water
        )
        color, material = self._palette.color_for(biome, time_of_day, regime, haze)
        return HeightSample(
            x=x, y=y, elevation=elevation, slope=slope, biome=biome, color=color, material=material
        )

    def _context_distances(self, x: float, y: float, regime: ScaleRegime) -> Tuple[float, float]:
        # //3.- Urban and water context is sub-grid at planetary scale and ignored there.
        if not RegimeSettings.for_regime(regime).apply_local_features:
            return math.inf, math.inf
        return (
            self._synthesizer.distance_to_urban_core(x, y),
            self._synthesizer.distance_to_water(x, y),
        )

    def _cached_sample(
        self,
        x: float,
        y: float,
        regime: ScaleRegime,
        params: TerrainParameters,
        time_of_day: float,
        haze: float,
        spacing: float,
    ) -> HeightSample:
        return self._sample_cache.get_or_compute(
            x,
            y,
            lambda: self._evaluate(x, y, regime, params, time_of_day, haze, spacing),
            seed=self._seed,
        )

    def elevation(self, x: float, y: float, regime: ScaleRegime, params: Optional[TerrainParameters] = None) -> float:
        params = params if params is not None else TerrainParameters()
        self._begin_session(None, regime, params, 12.0, 0.0, RegimeSettings.for_regime(regime).resolution)
        return self._elevation(x, y, regime, params)

    def sample(
        self,
        x: float,
        y: float,
        regime: ScaleRegime,
        params: Optional[TerrainParameters] = None,
        time_of_day: float = 12.0,
        haze: float = 0.0,
    ) -> HeightSample:
        params = params if params is not None else TerrainParameters()
        spacing = RegimeSettings.for_regime(regime).resolution
        self._begin_session(None, regime, params, time_of_day, haze, spacing)
        return self._cached_sample(x, y, regime, params, time_of_day, haze, spacing)

    # -- Outputs ----------------------------------------------------------

    def generate_mesh(
        self,
        bounds: Optional[Bounds] = None,
        scale: float = 1.0,
        time_of_day: float = 12.0,
        params: Optional[TerrainParameters] = None,
        regime_override: RegimeOverride = None,
        resolution: Optional[float] = None,
        atmosphere: bool = True,
        max_workers: Optional[int] = None,
    ) -> TerrainMesh:
        area = resolve_bounds(bounds)
        regime = select_regime(scale, regime_override)
        params = params if params is not None else TerrainParameters()
        step = float(resolution) if resolution is not None else RegimeSettings.for_regime(regime).resolution
        haze = haze_factor(scale, regime) if atmosphere else 0.0
        self._begin_session(area, regime, params, time_of_day, haze, step)

        triangulator = MeshTriangulator(
            lambda x, y: self._cached_sample(x, y, regime, params, time_of_day, haze, step),
            max_triangles=self._max_triangles,
        )
        mesh = triangulator.triangulate(area, step, regime, max_workers=max_workers)
        LOGGER.debug(
            "Mesh for seed %s: %d triangles, cache %d hits / %d misses",
            self._seed,
            len(mesh),
            self._elevation_cache.hits,
            self._elevation_cache.misses,
        )
        return mesh

    def generate_patches(
        self,
        bounds: Optional[Bounds] = None,
        time_of_day: float = 12.0,
        params: Optional[TerrainParameters] = None,
        patch_size: float = DEFAULT_PATCH_SIZE,
    ) -> Tuple[GroundPatch, ...]:
        """Tile the bounds with flat city-scale patches sampled at their centers."""

        if patch_size <= 0.0:
            raise ValueError("patch_size must be positive")
        area = resolve_bounds(bounds)
        params = params if params is not None else TerrainParameters()
        regime = ScaleRegime.CITY
        spacing = RegimeSettings.for_regime(regime).resolution
        self._begin_session(area, regime, params, time_of_day, 0.0, spacing)

        patches = []
        columns = int(math.ceil(area.width / patch_size))
        rows = int(math.ceil(area.height / patch_size))
        for j in range(rows):
            for i in range(columns):
                # //4.- Edge patches are clipped to the bounds instead of overhanging them.
                cell = Bounds(
                    area.min_x + i * patch_size,
                    area.min_y + j * patch_size,
                    min(area.max_x, area.min_x + (i + 1) * patch_size),
                    min(area.max_y, area.min_y + (j + 1) * patch_size),
                )
                center = cell.center
                sample = self._cached_sample(center.x, center.y, regime, params, time_of_day, 0.0, spacing)
                distance_core, distance_water = self._context_distances(center.x, center.y, regime)
                patches.append(
                    GroundPatch(
                        polygon=cell.polygon(),
                        elevation=sample.elevation,
                        color=sample.color,
                        biome=sample.biome,
                        texture=texture_key(
                            sample.elevation, sample.slope, urban_factor(distance_core), distance_water
                        ),
                    )
                )
        return tuple(patches)

    def water_polygons(self, bounds: Optional[Bounds] = None) -> Tuple[WaterPolygon, ...]:
        area = resolve_bounds(bounds)
        layer = []
        for channel in self._features.channels:
            band = channel.band(area)
            if band is None:
                continue
            layer.append(
                WaterPolygon(name=channel.name, kind=channel.kind, polygon=band.polygon(), depth=channel.amplitude)
            )
        return tuple(layer)

    def texture_atlas(self, atlas_size: int = 2048) -> TextureAtlas:
        with self._lock:
            atlas = self._atlases.get(atlas_size)
            if atlas is None:
                atlas = TextureAtlas(atlas_size=atlas_size, seed=self._seed)
                self._atlases[atlas_size] = atlas
            return atlas

    def render(
        self, config: TerrainConfig, bounds: Optional[Bounds | Mapping[str, float]] = None
    ) -> TerrainOutput:
        """Produce whatever ``config`` asks for; failures yield an empty output, never an exception."""

        try:
            mode = determine_render_mode(config, self._profiles)
            if mode is RenderMode.NONE:
                return TerrainOutput(mode=RenderMode.NONE)
            if config.seed != self._seed:
                self.reseed(config.seed)
            area = resolve_bounds(bounds)
            params = config.resolve_parameters(self._profiles)
            water = self.water_polygons(area)
            if mode is RenderMode.MESH:
                override = "planetary" if (config.active_layer or "").lower() == "planetary" else None
                mesh = self.generate_mesh(
                    area,
                    scale=config.scale,
                    time_of_day=config.time_of_day,
                    params=params,
                    regime_override=override,
                    atmosphere=config.show_atmosphere,
                )
                return TerrainOutput(mode=mode, mesh=mesh, water=water)
            patches = self.generate_patches(area, time_of_day=config.time_of_day, params=params)
            return TerrainOutput(mode=mode, patches=patches, water=water)
        except TerrainError as exc:
            LOGGER.error("Terrain generation failed: %s", exc)
            return TerrainOutput(mode=RenderMode.NONE, error=str(exc))
        except Exception as exc:
            # Anything else is logged with its traceback; render still never raises.
            LOGGER.exception("Unexpected terrain generation failure")
            return TerrainOutput(mode=RenderMode.NONE, error=f"{type(exc).__name__}: {exc}")


__all__ = [
    "TerrainGenerator",
    "TerrainOutput",
    "GroundPatch",
    "WaterPolygon",
    "RenderMode",
    "determine_render_mode",
    "DEFAULT_PATCH_SIZE",
]
