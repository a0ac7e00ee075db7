"""Regular-grid triangulation of sampled terrain and its JSON export."""
from __future__ import annotations

import json
import logging
import math
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError, NumericError, ResourceLimitExceeded
from .geometry import Bounds
from .palette import RGBA, Material, round_half_up
from .scale import ScaleRegime

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_TRIANGLES = 50_000
# Absorbs float error when the extent is an exact multiple of the resolution.
_GRID_EPSILON = 1e-9

Vertex = Tuple[float, float, float]


# //1.- One evaluated grid vertex: height, steepness and how it should look.
@dataclass(frozen=True)
class HeightSample:
    x: float
    y: float
    elevation: float
    slope: float
    biome: str
    color: RGBA
    material: Material

    @property
    def vertex(self) -> Vertex:
        return (self.x, self.y, self.elevation)


@dataclass(frozen=True)
class MeshTriangle:
    vertices: Tuple[Vertex, Vertex, Vertex]
    elevation: float
    color: RGBA

    @classmethod
    def from_samples(cls, a: HeightSample, b: HeightSample, c: HeightSample) -> "MeshTriangle":
        elevation = (a.elevation + b.elevation + c.elevation) / 3.0
        color = tuple(
            round_half_up((ca + cb + cc) / 3.0) for ca, cb, cc in zip(a.color, b.color, c.color)
        )
        return cls(vertices=(a.vertex, b.vertex, c.vertex), elevation=elevation, color=color)  # type: ignore[arg-type]

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "vertices": [list(vertex) for vertex in self.vertices],
            "elevation": self.elevation,
            "color": list(self.color),
        }


@dataclass(frozen=True)
class TerrainMesh:
    triangles: Tuple[MeshTriangle, ...]
    resolution: float
    regime: ScaleRegime
    bounds: Bounds
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.triangles)

    def bounding_box(self) -> Optional[Bounds]:
        if not self.triangles:
            return None
        xs = [vertex[0] for triangle in self.triangles for vertex in triangle.vertices]
        ys = [vertex[1] for triangle in self.triangles for vertex in triangle.vertices]
        return Bounds(min(xs), min(ys), max(xs), max(ys))

    def elevation_range(self) -> Tuple[float, float]:
        if not self.triangles:
            return (0.0, 0.0)
        values = [vertex[2] for triangle in self.triangles for vertex in triangle.vertices]
        return (min(values), max(values))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "bounds": self.bounds.to_mapping(),
            "resolution": self.resolution,
            "regime": self.regime.value,
            "truncated": self.truncated,
            "triangle_count": len(self.triangles),
            "triangles": [triangle.to_mapping() for triangle in self.triangles],
        }


Sampler = Callable[[float, float], HeightSample]


class MeshTriangulator:
    """Walk a regular grid over a bounds and emit two triangles per cell.

    ``sampler`` evaluates a single vertex. A sampler raising
    :class:`NumericError` marks that vertex missing and every cell touching it
    is skipped. Grid rows may be sampled on a thread pool; the emitted
    triangle order is always row-major regardless of ``max_workers``.
    """

    def __init__(self, sampler: Sampler, max_triangles: int = DEFAULT_MAX_TRIANGLES) -> None:
        if max_triangles < 2:
            raise ConfigurationError("max_triangles must allow at least one cell")
        self._sampler = sampler
        self._max_triangles = int(max_triangles)

    @property
    def max_triangles(self) -> int:
        return self._max_triangles

    def _sample(self, x: float, y: float) -> Optional[HeightSample]:
        try:
            return self._sampler(x, y)
        except NumericError as exc:
            LOGGER.debug("Dropping vertex (%s, %s): %s", x, y, exc)
            return None

    def _sample_row(self, xs: Sequence[float], y: float) -> List[Optional[HeightSample]]:
        return [self._sample(x, y) for x in xs]

    @staticmethod
    def grid_steps(extent: float, resolution: float) -> int:
        return int(math.floor(extent / resolution + _GRID_EPSILON))

    @staticmethod
    def grid_axis(minimum: float, steps: int, resolution: float) -> List[float]:
        return [minimum + i * resolution for i in range(steps + 1)]

    def triangulate(
        self,
        bounds: Bounds,
        resolution: float,
        regime: ScaleRegime,
        max_workers: Optional[int] = None,
    ) -> TerrainMesh:
        if not math.isfinite(resolution) or resolution <= 0.0:
            raise ConfigurationError(f"resolution must be positive, got {resolution!r}")
        columns = self.grid_steps(bounds.width, resolution)
        rows = self.grid_steps(bounds.height, resolution)

        # //2.- Enforce the soft cap before sampling: whole rows first, then columns of a single row.
        truncated = False
        requested = 2 * columns * rows
        if requested > self._max_triangles:
            kept_columns = min(columns, self._max_triangles // 2)
            kept_rows = max(1, self._max_triangles // (2 * kept_columns))
            message = (
                f"{requested} triangles requested over {bounds.as_tuple()} at resolution "
                f"{resolution}; truncated to {2 * kept_columns * kept_rows}"
            )
            LOGGER.warning(message)
            warnings.warn(message, ResourceLimitExceeded, stacklevel=2)
            columns = kept_columns
            rows = kept_rows
            truncated = True

        xs = self.grid_axis(bounds.min_x, columns, resolution) if columns > 0 and rows > 0 else []
        row_ys = self.grid_axis(bounds.min_y, rows, resolution) if xs else []
        if max_workers is not None and max_workers > 1 and len(row_ys) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                grid = list(executor.map(lambda y: self._sample_row(xs, y), row_ys))
        else:
            grid = [self._sample_row(xs, y) for y in row_ys]

        # //3.- Consistent diagonal: (p1, p2, p3) and (p2, p3, p4) for every complete cell.
        triangles: List[MeshTriangle] = []
        skipped = 0
        for j in range(len(grid) - 1):
            lower = grid[j]
            upper = grid[j + 1]
            for i in range(columns):
                p1, p2, p3, p4 = lower[i], lower[i + 1], upper[i], upper[i + 1]
                if p1 is None or p2 is None or p3 is None or p4 is None:
                    skipped += 1
                    continue
                triangles.append(MeshTriangle.from_samples(p1, p2, p3))
                triangles.append(MeshTriangle.from_samples(p2, p3, p4))

        LOGGER.debug(
            "Triangulated %s at %s m: %d triangles, %d cells skipped",
            regime.value,
            resolution,
            len(triangles),
            skipped,
        )
        return TerrainMesh(
            triangles=tuple(triangles),
            resolution=float(resolution),
            regime=regime,
            bounds=bounds,
            truncated=truncated,
        )


# -- Export ---------------------------------------------------------------

def export_mesh(
    mesh: TerrainMesh,
    *,
    filepath: str,
    extra: Optional[Mapping[str, Any]] = None,
) -> None:
    """Write the mesh payload, plus any ``extra`` top-level keys, as JSON."""

    payload = mesh.to_payload()
    if extra:
        payload.update(extra)
    with open(filepath, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


def load_mesh_payload(filepath: str) -> Dict[str, Any]:
    with open(filepath, "r", encoding="utf-8") as handle:
        return json.load(handle)


def payload_bounds(payload: Mapping[str, Any]) -> Optional[Bounds]:
    """Recover the vertex bounding box from an exported payload."""

    xs: List[float] = []
    ys: List[float] = []
    for triangle in payload.get("triangles", []):
        for vertex in triangle["vertices"]:
            xs.append(float(vertex[0]))
            ys.append(float(vertex[1]))
    if not xs:
        return None
    return Bounds(min(xs), min(ys), max(xs), max(ys))


__all__ = [
    "HeightSample",
    "MeshTriangle",
    "TerrainMesh",
    "MeshTriangulator",
    "DEFAULT_MAX_TRIANGLES",
    "export_mesh",
    "load_mesh_payload",
    "payload_bounds",
]
