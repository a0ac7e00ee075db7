"""Deterministic terrain and biome synthesis.

Given bounds, a scale factor, a seed, a time of day and terrain parameters,
the package produces a colored triangle mesh (or flat city patches), a water
layer derived from the channel table and a procedural texture atlas.
"""

from .errors import (
    ConfigurationError,
    InvariantViolation,
    NumericError,
    ResourceLimitExceeded,
    TerrainError,
)
from .geometry import DEFAULT_BOUNDS, Bounds, Point2D
from .noise import NoiseField, build_permutation
from .scale import RegimeSettings, ScaleRegime, haze_factor, select_regime
from .features import FeatureSet, TerrainFeature, UrbanCore, load_feature_set
from .profiles import (
    TerrainParameters,
    TerrainProfile,
    development_recommendations,
    get_terrain_profile,
    load_profiles,
    profile_list,
    terrain_difficulty,
)
from .heightfield import HeightFieldSynthesizer, estimate_slope
from .biomes import BiomeClassifier
from .palette import DEFAULT_BIOME, Material, MaterialPalette, day_factor
from .cache import TerrainCache
from .mesh import HeightSample, MeshTriangle, MeshTriangulator, TerrainMesh, export_mesh, payload_bounds
from .atlas import TextureAtlas, UVRegion, texture_key
from .config import TerrainConfig, load_terrain_config
from .generator import (
    GroundPatch,
    RenderMode,
    TerrainGenerator,
    TerrainOutput,
    WaterPolygon,
    determine_render_mode,
)

__version__ = "0.1.0"

__all__ = [
    "TerrainError",
    "ConfigurationError",
    "NumericError",
    "InvariantViolation",
    "ResourceLimitExceeded",
    "Bounds",
    "Point2D",
    "DEFAULT_BOUNDS",
    "NoiseField",
    "build_permutation",
    "ScaleRegime",
    "RegimeSettings",
    "select_regime",
    "haze_factor",
    "TerrainFeature",
    "UrbanCore",
    "FeatureSet",
    "load_feature_set",
    "TerrainParameters",
    "TerrainProfile",
    "load_profiles",
    "get_terrain_profile",
    "profile_list",
    "terrain_difficulty",
    "development_recommendations",
    "HeightFieldSynthesizer",
    "estimate_slope",
    "BiomeClassifier",
    "MaterialPalette",
    "Material",
    "DEFAULT_BIOME",
    "day_factor",
    "TerrainCache",
    "HeightSample",
    "MeshTriangle",
    "MeshTriangulator",
    "TerrainMesh",
    "export_mesh",
    "payload_bounds",
    "TextureAtlas",
    "UVRegion",
    "texture_key",
    "TerrainConfig",
    "load_terrain_config",
    "TerrainGenerator",
    "TerrainOutput",
    "GroundPatch",
    "WaterPolygon",
    "RenderMode",
    "determine_render_mode",
]
