"""Seeded gradient noise and its fractal compositions."""
from __future__ import annotations

import math
from typing import Tuple

PERMUTATION_SIZE = 256

# Linear-congruential shuffle constants used to derive the permutation table.
_LCG_MULTIPLIER = 9301
_LCG_INCREMENT = 49297
_LCG_MODULUS = 233280


# -- Permutation helpers --------------------------------------------------

def build_permutation(seed: int) -> Tuple[int, ...]:
    """Shuffle ``0..255`` deterministically and duplicate it for wraparound."""

    values = list(range(PERMUTATION_SIZE))
    state = int(seed)
    for i in range(PERMUTATION_SIZE - 1, 0, -1):
        state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        j = int(math.floor((state / _LCG_MODULUS) * (i + 1)))
        values[i], values[j] = values[j], values[i]
    return tuple(values + values)


def _fade(t: float) -> float:
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# Four diagonal gradients indexed by the low two hash bits.
_GRADIENTS: Tuple[Tuple[float, float], ...] = ((1.0, 1.0), (-1.0, 1.0), (1.0, -1.0), (-1.0, -1.0))


def _gradient(hash_value: int, x: float, y: float) -> float:
    gx, gy = _GRADIENTS[hash_value & 3]
    return gx * x + gy * y


# -- Noise evaluators -----------------------------------------------------

class NoiseField:
    """Perlin-style 2D gradient noise bound to one seed.

    The permutation table is built once per instance and never mutated, so a
    field can be shared freely between readers. Reseeding means constructing
    a new field.
    """

    def __init__(self, seed: int) -> None:
        self._seed = int(seed)
        self._perm = build_permutation(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def permutation(self) -> Tuple[int, ...]:
        return self._perm

    def noise2d(self, x: float, y: float) -> float:
        """Gradient noise in ``[-1, 1]``; zero on integer lattice points."""

        floor_x = math.floor(x)
        floor_y = math.floor(y)
        cell_x = int(floor_x) & 255
        cell_y = int(floor_y) & 255
        xf = x - floor_x
        yf = y - floor_y

        u = _fade(xf)
        v = _fade(yf)

        perm = self._perm
        a = perm[cell_x] + cell_y
        b = perm[cell_x + 1] + cell_y

        x1 = _lerp(_gradient(perm[a], xf, yf), _gradient(perm[b], xf - 1, yf), u)
        x2 = _lerp(_gradient(perm[a + 1], xf, yf - 1), _gradient(perm[b + 1], xf - 1, yf - 1), u)
        value = _lerp(x1, x2, v)
        return max(-1.0, min(1.0, value))

    def fractal_brownian_motion(
        self,
        x: float,
        y: float,
        octaves: int = 4,
        persistence: float = 0.5,
        frequency: float = 1.0,
    ) -> float:
        """Sum ``octaves`` layers of noise normalized back into ``[-1, 1]``."""

        if octaves < 1:
            raise ValueError("octaves must be >= 1")
        total = 0.0
        amplitude = 1.0
        max_amplitude = 0.0
        current_frequency = frequency
        for _ in range(int(octaves)):
            total += self.noise2d(x * current_frequency, y * current_frequency) * amplitude
            max_amplitude += amplitude
            amplitude *= persistence
            current_frequency *= 2.0
        return total / max_amplitude

    def ridged_noise(
        self,
        x: float,
        y: float,
        octaves: int,
        frequency: float,
        amplitude: float,
    ) -> float:
        """Accumulate absolute noise so crests form sharp ridges."""

        if octaves < 1:
            raise ValueError("octaves must be >= 1")
        total = 0.0
        current_amplitude = amplitude
        current_frequency = frequency
        for _ in range(int(octaves)):
            n = self.noise2d(x * current_frequency, y * current_frequency)
            total += abs(n) * current_amplitude
            current_amplitude *= 0.5
            current_frequency *= 2.0
        return total


__all__ = ["NoiseField", "build_permutation", "PERMUTATION_SIZE"]
