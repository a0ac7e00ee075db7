"""Planar value types used to address the local meter grid."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError

Polygon = Tuple[Tuple[float, float], ...]


# //1.- Immutable coordinate in the local planar system (meters, not lat/lng).
@dataclass(frozen=True)
class Point2D:
    x: float
    y: float

    def distance_to(self, other: "Point2D") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


# //2.- Axis aligned query rectangle; degenerate extents are rejected at construction.
@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def __post_init__(self) -> None:
        values = (self.min_x, self.min_y, self.max_x, self.max_y)
        if not all(math.isfinite(value) for value in values):
            raise ConfigurationError(f"Bounds must be finite, got {values}")
        if self.min_x >= self.max_x or self.min_y >= self.max_y:
            raise ConfigurationError(
                "Bounds require min_x < max_x and min_y < max_y, "
                f"got ({self.min_x}, {self.min_y}, {self.max_x}, {self.max_y})"
            )

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point2D:
        return Point2D((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def intersection(self, other: "Bounds") -> Optional["Bounds"]:
        min_x = max(self.min_x, other.min_x)
        min_y = max(self.min_y, other.min_y)
        max_x = min(self.max_x, other.max_x)
        max_y = min(self.max_y, other.max_y)
        if min_x >= max_x or min_y >= max_y:
            return None
        return Bounds(min_x, min_y, max_x, max_y)

    def polygon(self) -> Polygon:
        return (
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)

    def to_mapping(self) -> Dict[str, float]:
        return {"min_x": self.min_x, "min_y": self.min_y, "max_x": self.max_x, "max_y": self.max_y}

    # //3.- Accept both the renderer's snake_case extents and camelCase payloads.
    @classmethod
    def from_mapping(cls, payload: Mapping[str, float]) -> "Bounds":
        def pick(*names: str) -> float:
            for name in names:
                if name in payload:
                    try:
                        return float(payload[name])
                    except (TypeError, ValueError) as exc:
                        raise ConfigurationError(f"Bounds value '{name}' is not a number: {payload[name]!r}") from exc
            raise ConfigurationError(f"Bounds payload is missing '{names[0]}'")

        return cls(
            min_x=pick("min_x", "minX"),
            min_y=pick("min_y", "minY"),
            max_x=pick("max_x", "maxX"),
            max_y=pick("max_y", "maxY"),
        )

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Bounds":
        xs = []
        ys = []
        for point in points:
            xs.append(float(point[0]))
            ys.append(float(point[1]))
        if not xs:
            raise ConfigurationError("Cannot derive bounds from an empty point set")
        return cls(min(xs), min(ys), max(xs), max(ys))


# //4.- Fallback extents used when the consumer has no city bounds yet.
DEFAULT_BOUNDS = Bounds(-3000.0, -3000.0, 3000.0, 3000.0)


def resolve_bounds(bounds: Optional[Bounds | Mapping[str, float]]) -> Bounds:
    """Return ``bounds`` as :class:`Bounds`, substituting the default box when absent."""

    if bounds is None:
        return DEFAULT_BOUNDS
    if isinstance(bounds, Bounds):
        return bounds
    return Bounds.from_mapping(bounds)


__all__ = ["Point2D", "Bounds", "Polygon", "DEFAULT_BOUNDS", "resolve_bounds"]
