"""Tests for grid triangulation, the triangle cap and mesh export."""
from __future__ import annotations

import pytest

from terrain_synth.errors import ConfigurationError, NumericError, ResourceLimitExceeded
from terrain_synth.geometry import Bounds
from terrain_synth.mesh import (
    HeightSample,
    MeshTriangle,
    MeshTriangulator,
    export_mesh,
    load_mesh_payload,
    payload_bounds,
)
from terrain_synth.palette import Material
from terrain_synth.scale import ScaleRegime

MATERIAL = Material(ambient=0.5, diffuse=0.8, roughness=0.9, metallic=0.0, specular=0.1)


def _sample(x: float, y: float, color=(10, 20, 30, 255)) -> HeightSample:
    return HeightSample(x=x, y=y, elevation=x + y, slope=0.0, biome="lowland", color=color, material=MATERIAL)


def test_two_triangles_per_cell_with_consistent_diagonal() -> None:
    mesh = MeshTriangulator(_sample).triangulate(Bounds(0.0, 0.0, 100.0, 100.0), 50.0, ScaleRegime.CITY)
    assert len(mesh) == 8
    first, second = mesh.triangles[:2]
    assert first.vertices == ((0.0, 0.0, 0.0), (50.0, 0.0, 50.0), (0.0, 50.0, 50.0))
    assert second.vertices == ((50.0, 0.0, 50.0), (0.0, 50.0, 50.0), (50.0, 50.0, 100.0))
    assert first.elevation == pytest.approx(100.0 / 3.0)
    assert not mesh.truncated


def test_triangle_color_is_rounded_mean() -> None:
    a = _sample(0.0, 0.0, (0, 0, 0, 255))
    b = _sample(1.0, 0.0, (1, 0, 2, 255))
    c = _sample(0.0, 1.0, (1, 1, 2, 200))
    triangle = MeshTriangle.from_samples(a, b, c)
    assert triangle.color == (1, 0, 1, 237)


def test_grid_stops_at_the_last_whole_step() -> None:
    mesh = MeshTriangulator(_sample).triangulate(Bounds(0.0, 0.0, 120.0, 120.0), 50.0, ScaleRegime.CITY)
    assert len(mesh) == 8
    assert mesh.bounding_box() == Bounds(0.0, 0.0, 100.0, 100.0)


def test_cells_touching_a_failed_sample_are_skipped() -> None:
    def sampler(x: float, y: float) -> HeightSample:
        if (x, y) == (100.0, 100.0):
            raise NumericError("corner")
        return _sample(x, y)

    mesh = MeshTriangulator(sampler).triangulate(Bounds(0.0, 0.0, 100.0, 100.0), 50.0, ScaleRegime.CITY)
    assert len(mesh) == 6
    for triangle in mesh.triangles:
        assert (100.0, 100.0, 200.0) not in triangle.vertices


def test_triangle_cap_truncates_whole_rows_and_warns() -> None:
    triangulator = MeshTriangulator(_sample, max_triangles=45)
    with pytest.warns(ResourceLimitExceeded):
        mesh = triangulator.triangulate(Bounds(0.0, 0.0, 100.0, 100.0), 10.0, ScaleRegime.CITY)
    assert mesh.truncated
    assert len(mesh) == 40
    assert mesh.bounding_box() == Bounds(0.0, 0.0, 100.0, 20.0)


def test_triangle_cap_bounds_sampling_for_very_wide_rows() -> None:
    calls = []

    def sampler(x: float, y: float) -> HeightSample:
        calls.append((x, y))
        return _sample(x, y)

    triangulator = MeshTriangulator(sampler, max_triangles=100)
    with pytest.warns(ResourceLimitExceeded):
        mesh = triangulator.triangulate(Bounds(0.0, 0.0, 200000.0, 100.0), 1.0, ScaleRegime.CITY)
    # //1.- One row of fifty cells survives, so only its two vertex rows are evaluated.
    assert mesh.truncated
    assert len(mesh) == 100
    assert len(calls) == 2 * 51
    assert mesh.bounding_box() == Bounds(0.0, 0.0, 50.0, 1.0)


def test_thread_pool_sampling_preserves_order() -> None:
    bounds = Bounds(-200.0, -150.0, 200.0, 250.0)
    sequential = MeshTriangulator(_sample).triangulate(bounds, 25.0, ScaleRegime.REGIONAL)
    pooled = MeshTriangulator(_sample).triangulate(bounds, 25.0, ScaleRegime.REGIONAL, max_workers=4)
    assert pooled.triangles == sequential.triangles


def test_invalid_resolution_is_rejected() -> None:
    triangulator = MeshTriangulator(_sample)
    with pytest.raises(ConfigurationError):
        triangulator.triangulate(Bounds(0.0, 0.0, 10.0, 10.0), 0.0, ScaleRegime.CITY)
    with pytest.raises(ConfigurationError):
        MeshTriangulator(_sample, max_triangles=1)


def test_export_round_trip_recovers_bounds(tmp_path) -> None:
    query = Bounds(-130.0, -75.0, 170.0, 240.0)
    resolution = 50.0
    mesh = MeshTriangulator(_sample).triangulate(query, resolution, ScaleRegime.CITY)
    path = tmp_path / "mesh.json"
    export_mesh(mesh, filepath=str(path), extra={"seed": 7})

    payload = load_mesh_payload(str(path))
    assert payload["seed"] == 7
    assert payload["regime"] == "city"
    assert payload["triangle_count"] == len(mesh)
    recovered = payload_bounds(payload)
    assert recovered is not None
    for original, derived in zip(query.as_tuple(), recovered.as_tuple()):
        assert abs(original - derived) <= resolution
    assert Bounds.from_mapping(payload["bounds"]) == query


def test_empty_payload_has_no_bounds() -> None:
    assert payload_bounds({"triangles": []}) is None
