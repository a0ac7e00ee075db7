"""Command line entry point: generate a terrain mesh and optional texture atlas."""
from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

from .config import TerrainConfig, load_terrain_config
from .errors import TerrainError
from .generator import TerrainGenerator
from .geometry import DEFAULT_BOUNDS, Bounds
from .mesh import export_mesh
from .profiles import default_profiles

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="terrain-synth",
        description="Generate a deterministic terrain mesh and write it as JSON.",
    )
    parser.add_argument("--config", help="JSON terrain configuration (camelCase or snake_case keys)")
    parser.add_argument("--seed", type=int, help="Noise seed")
    parser.add_argument("--scale", type=float, help="Scale factor; >10 regional, >100 planetary")
    parser.add_argument("--time-of-day", type=float, help="Hour in [0, 24] used for lighting")
    parser.add_argument("--profile", choices=sorted(default_profiles()), help="Terrain profile preset")
    parser.add_argument(
        "--bounds",
        type=float,
        nargs=4,
        metavar=("MIN_X", "MIN_Y", "MAX_X", "MAX_Y"),
        help=f"Query rectangle in meters (default {DEFAULT_BOUNDS.as_tuple()})",
    )
    parser.add_argument("--resolution", type=float, help="Grid step in meters (default depends on scale)")
    parser.add_argument("--output", default="terrain_mesh.json", help="Mesh payload destination")
    parser.add_argument("--atlas", help="Also render the texture atlas PNG to this path")
    parser.add_argument("--atlas-size", type=int, default=2048, help="Atlas edge length in pixels")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def _resolve_config(args: argparse.Namespace) -> TerrainConfig:
    # //1.- File or environment first, then explicit flags win.
    config = load_terrain_config(path=args.config) if args.config else TerrainConfig.from_environment()
    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.scale is not None:
        overrides["scale"] = args.scale
    if args.time_of_day is not None:
        overrides["time_of_day"] = args.time_of_day
    if args.profile is not None:
        overrides["terrain_profile"] = args.profile
    return config.with_overrides(**overrides) if overrides else config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    # //2.- Same log format as the other console entry points.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(message)s",
    )

    try:
        config = _resolve_config(args)
        bounds = Bounds(*args.bounds) if args.bounds else DEFAULT_BOUNDS
        generator = TerrainGenerator(config.seed)
        params = config.resolve_parameters(generator.profiles)
        mesh = generator.generate_mesh(
            bounds,
            scale=config.scale,
            time_of_day=config.time_of_day,
            params=params,
            resolution=args.resolution,
            atmosphere=config.show_atmosphere,
        )
        water: List[dict] = [
            {"name": item.name, "kind": item.kind, "depth": item.depth, "polygon": [list(p) for p in item.polygon]}
            for item in generator.water_polygons(bounds)
        ]
        export_mesh(
            mesh,
            filepath=args.output,
            extra={"seed": config.seed, "scale": config.scale, "profile": config.terrain_profile, "water": water},
        )
        LOGGER.info(
            "Wrote %d triangles (%s regime%s) to %s",
            len(mesh),
            mesh.regime.value,
            ", truncated" if mesh.truncated else "",
            args.output,
        )
        if args.atlas:
            generator.texture_atlas(args.atlas_size).save(args.atlas)
            LOGGER.info("Wrote %dpx texture atlas to %s", args.atlas_size, args.atlas)
    except (TerrainError, OSError) as exc:
        LOGGER.error("Terrain generation failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - exercised via ``python -m`` execution
    raise SystemExit(main())
