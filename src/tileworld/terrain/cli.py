"""Command-line interface for tile generation."""

import argparse
import asyncio
import logging
import time

import structlog
from pydantic import ValidationError


def main() -> None:
    """CLI entry point for tile generation."""
    # Import here to avoid slow startup for --help
    from ..config import WorldConfig, find_config, list_configs, load_config
    from .config import Season

    parser = argparse.ArgumentParser(description="Generate procedural world tiles")
    parser.add_argument(
        "--config",
        type=str,
        help=f"Config name or path (available: {', '.join(list_configs())})",
    )
    parser.add_argument("--seed", type=int, help="World seed (overrides config)")
    parser.add_argument("--tile-x", type=int, default=0, help="Tile x (default: 0)")
    parser.add_argument("--tile-z", type=int, default=0, help="Tile z (default: 0)")
    parser.add_argument(
        "--resolution", type=int, help="Grid resolution per tile (overrides config)"
    )
    parser.add_argument("--harmony", type=float, help="World harmony (overrides config)")
    parser.add_argument(
        "--dissonance", type=float, help="World dissonance (overrides config)"
    )
    parser.add_argument(
        "--season",
        type=str,
        choices=[s.value for s in Season],
        help="Season (overrides config)",
    )
    parser.add_argument(
        "--radius",
        type=int,
        default=0,
        help="Also generate the ring of tiles within this radius (default: 0)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )

    if args.config:
        try:
            config = load_config(find_config(args.config))
        except FileNotFoundError as e:
            parser.error(str(e))
    else:
        config = WorldConfig()

    # Apply CLI overrides
    data = config.model_dump()
    if args.seed is not None:
        data["seed"] = args.seed
    if args.harmony is not None:
        data["metabolism"]["harmony"] = args.harmony
    if args.dissonance is not None:
        data["metabolism"]["dissonance"] = args.dissonance
    if args.resolution is not None:
        data["terrain"]["height"]["resolution"] = args.resolution
    if args.season is not None:
        data["terrain"]["climate"]["season"] = args.season
    try:
        config = WorldConfig.model_validate(data)
    except ValidationError as e:
        parser.error(str(e))

    from ..exceptions import WorldGenError

    try:
        bundles = asyncio.run(_generate(config, args.tile_x, args.tile_z, args.radius))
    except WorldGenError as e:
        parser.exit(1, f"Generation failed: {e}\n")

    for bundle in bundles:
        _print_summary(bundle, config)


def build_prefetcher(config):
    """Cache, metabolism and prefetcher wired from one WorldConfig."""
    from ..cache import TileCache
    from ..metabolism import WorldMetabolism
    from ..prefetch import TilePrefetcher

    metabolism = WorldMetabolism(
        config.metabolism, tile_size=config.terrain.height.tile_size
    )
    return TilePrefetcher(
        seed=config.seed,
        cache=TileCache(config.cache.max_entries, config.cache.max_age_seconds),
        metabolism=metabolism,
        terrain_config=config.terrain,
        max_concurrency=config.prefetch.max_concurrency,
    )


async def _generate(config, tile_x: int, tile_z: int, radius: int) -> list:
    from ..types import TileCoordinate

    center = TileCoordinate(x=tile_x, z=tile_z)
    prefetcher = build_prefetcher(config)
    cache = prefetcher.cache

    print(f"Generating tiles within {radius} of {center} with seed {config.seed}")
    start_time = time.time()
    result = await prefetcher.prefetch(center, radius)
    gen_time = time.time() - start_time
    print(f"Generation complete in {gen_time:.1f}s")
    print()

    if result.failed:
        for coordinate, error in result.failed.items():
            print(f"  {coordinate}: FAILED {error}")

    coordinates = [center, *center.surrounding(radius)]
    return [b for b in (cache.get(c) for c in coordinates) if b is not None]


def _print_summary(bundle, config) -> None:
    from .validation import validate_tile

    validation = validate_tile(bundle, config.terrain)
    heights = bundle.height_field.heights
    print(f"Tile {bundle.coordinate} ({bundle.resolution}x{bundle.resolution})")
    print(f"  Biome:      {bundle.biome.biome.value}")
    print(f"  Heights:    {heights.min():.1f} .. {heights.max():.1f}")
    print(
        f"  Climate:    temperature {bundle.biome.adjusted_temperature:.2f}, "
        f"moisture {bundle.biome.mean_moisture:.2f}"
    )
    print(f"  Water:      {len(bundle.water_bodies)} bodies, {len(bundle.rivers)} rivers")
    print(f"  Caves:      {len(bundle.caves)}")
    print(f"  Vegetation: {len(bundle.vegetation.instances)} instances")
    print(f"  Features:   {', '.join(f.feature_type.value for f in bundle.features) or 'none'}")
    print(f"  Validation: {'passed' if validation.passed else 'FAILED'}")
    for error in validation.errors:
        print(f"    - {error}")
    print()


if __name__ == "__main__":
    main()
