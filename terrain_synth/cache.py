"""Thread-safe memoization of per-point terrain evaluations."""
from __future__ import annotations

import math
import threading
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from .errors import InvariantViolation

T = TypeVar("T")
CellKey = Tuple[int, int]


class TerrainCache(Generic[T]):
    """Bucket results by quantized cell, store them by exact coordinate.

    Entries are bucketed under ``(floor(x / cell_size), floor(y / cell_size))``
    so a whole cell can be inspected or dropped together, while values inside
    a bucket stay keyed by the exact point; two points sharing a cell never
    alias each other. There is no eviction: memory grows with the number of
    distinct points queried until :meth:`clear` is called, so owners clear the
    cache at the end of each generation session.
    """

    def __init__(self, seed: int, cell_size: float = 10.0) -> None:
        if not cell_size > 0.0:
            raise ValueError("cell_size must be positive")
        self._seed = int(seed)
        self._cell_size = float(cell_size)
        self._buckets: Dict[CellKey, Dict[Tuple[float, float], T]] = {}
        self._lock = threading.Lock()
        self._size = 0
        self.hits = 0
        self.misses = 0

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def cell_size(self) -> float:
        return self._cell_size

    def cell_key(self, x: float, y: float) -> CellKey:
        return (int(math.floor(x / self._cell_size)), int(math.floor(y / self._cell_size)))

    def get_or_compute(
        self,
        x: float,
        y: float,
        compute_fn: Callable[[], T],
        seed: Optional[int] = None,
    ) -> T:
        # //1.- A caller holding another seed would read foreign terrain; refuse loudly.
        if __debug__ and seed is not None and int(seed) != self._seed:
            raise InvariantViolation(
                f"cache built for seed {self._seed} queried with seed {seed}"
            )
        key = self.cell_key(x, y)
        point = (x, y)
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is not None and point in bucket:
                self.hits += 1
                return bucket[point]
        # //2.- Compute outside the lock so worker threads do not serialize on noise evaluation.
        value = compute_fn()
        with self._lock:
            bucket = self._buckets.setdefault(key, {})
            if point in bucket:
                self.hits += 1
                return bucket[point]
            bucket[point] = value
            self._size += 1
            self.misses += 1
        return value

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._size = 0
            self.hits = 0
            self.misses = 0

    def cells(self) -> int:
        with self._lock:
            return len(self._buckets)

    def __len__(self) -> int:
        with self._lock:
            return self._size


__all__ = ["TerrainCache", "CellKey"]
