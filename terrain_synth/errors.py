"""Exception hierarchy shared by every terrain synthesis stage."""
from __future__ import annotations


class TerrainError(Exception):
    """Base class for failures raised while synthesizing terrain."""


class ConfigurationError(TerrainError, ValueError):
    """Raised when bounds, scales or configuration payloads are invalid."""


class NumericError(TerrainError, ArithmeticError):
    """Raised when a sample evaluates to NaN or infinity."""


class InvariantViolation(TerrainError, AssertionError):
    """Raised when a cache is queried on behalf of a different seed."""


class ResourceLimitExceeded(UserWarning):
    """Warning emitted when mesh generation hits the triangle cap."""


__all__ = [
    "TerrainError",
    "ConfigurationError",
    "NumericError",
    "InvariantViolation",
    "ResourceLimitExceeded",
]
