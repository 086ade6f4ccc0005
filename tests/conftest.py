"""Shared test fixtures for tile world tests."""

import numpy as np
import pytest

from tileworld.terrain.config import ErosionConfig, HeightConfig, TerrainConfig
from tileworld.terrain.heightfield import HeightField
from tileworld.types import TileCoordinate


@pytest.fixture
def origin() -> TileCoordinate:
    """Tile at the world origin."""
    return TileCoordinate(x=0, z=0)


@pytest.fixture
def small_config() -> TerrainConfig:
    """Terrain config with 32x32 tiles and a light erosion pass."""
    return TerrainConfig(
        height=HeightConfig(resolution=32),
        erosion=ErosionConfig(droplets=32),
    )


@pytest.fixture
def flat_field(origin: TileCoordinate) -> HeightField:
    """32x32 dry field at height 5."""
    return HeightField(coordinate=origin, heights=np.full((32, 32), 5.0))


@pytest.fixture
def basin_field(origin: TileCoordinate) -> HeightField:
    """20x20 dry field with a 5x5 pit at height -3 (rows and columns 5-9)."""
    heights = np.full((20, 20), 5.0)
    heights[5:10, 5:10] = -3.0
    return HeightField(coordinate=origin, heights=heights)


@pytest.fixture
def cone_field(origin: TileCoordinate) -> HeightField:
    """33x33 cone peaking at 30 in the center and falling to 0 at the rim."""
    idx = np.arange(33, dtype=np.float64)
    xs, zs = np.meshgrid(idx, idx)
    distance = np.hypot(xs - 16, zs - 16)
    heights = np.maximum(30.0 - distance * 1.5, 0.0)
    return HeightField(coordinate=origin, heights=heights)


@pytest.fixture(scope="session")
def tile_bundle():
    """A small generated tile, used as a template for cache entries."""
    from tileworld.terrain.generator import generate_tile

    config = TerrainConfig(height=HeightConfig(resolution=16), erosion=ErosionConfig(droplets=8))
    return generate_tile(42, TileCoordinate(x=0, z=0), config=config)
