"""Tests for CLI wiring."""

from tileworld.config import WorldConfig
from tileworld.metabolism import WorldEvent
from tileworld.terrain.cli import build_prefetcher
from tileworld.terrain.config import HeightConfig, TerrainConfig
from tileworld.types import TileCoordinate


class TestBuildPrefetcher:
    """Tests for build_prefetcher."""

    def test_uses_config_values(self) -> None:
        """Cache and concurrency come from the config."""
        config = WorldConfig.model_validate(
            {"seed": 5, "cache": {"max_entries": 7}, "prefetch": {"max_concurrency": 3}}
        )
        prefetcher = build_prefetcher(config)
        assert prefetcher.seed == 5
        assert prefetcher.cache.max_entries == 7
        assert prefetcher.max_concurrency == 3
        assert prefetcher.terrain_config == config.terrain

    def test_metabolism_uses_terrain_tile_size(self) -> None:
        """Event falloff is measured at centers of the configured tile size."""
        config = WorldConfig(terrain=TerrainConfig(height=HeightConfig(tile_size=10.0)))
        metabolism = build_prefetcher(config).metabolism
        assert metabolism is not None
        assert metabolism.tile_size == 10.0

        # Tile (1, 0) is centered at (15, 5) with 10-unit tiles
        grid = metabolism.grid_state(TileCoordinate(x=1, z=0))
        metabolism.apply_event(
            WorldEvent(x=15.0, z=5.0, radius=1.0, harmony_delta=-0.5),
            observer=(500.0, 500.0),
        )
        assert grid.harmony == 0.5
