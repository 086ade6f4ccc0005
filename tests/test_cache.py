"""Tests for the tile cache."""

from dataclasses import replace

import pytest

from tileworld.cache import TileCache
from tileworld.terrain.generator import TileBundle
from tileworld.types import TileCoordinate


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def at(bundle: TileBundle, x: int, z: int = 0) -> TileBundle:
    return replace(bundle, coordinate=TileCoordinate(x=x, z=z))


class TestTileCache:
    """Tests for TileCache."""

    def test_put_and_get(self, tile_bundle: TileBundle) -> None:
        """Stored tiles come back by coordinate."""
        cache = TileCache()
        cache.put(tile_bundle)
        assert cache.get(tile_bundle.coordinate) is tile_bundle
        assert cache.get(TileCoordinate(x=9, z=9)) is None
        assert len(cache) == 1

    def test_lru_eviction(self, tile_bundle: TileBundle) -> None:
        """The least recently used tile is evicted first."""
        cache = TileCache(max_entries=2)
        cache.put(at(tile_bundle, 0))
        cache.put(at(tile_bundle, 1))
        cache.get(TileCoordinate(x=0, z=0))
        cache.put(at(tile_bundle, 2))

        assert TileCoordinate(x=0, z=0) in cache
        assert TileCoordinate(x=1, z=0) not in cache
        assert TileCoordinate(x=2, z=0) in cache
        assert cache.stats().evictions == 1

    def test_replacing_does_not_evict(self, tile_bundle: TileBundle) -> None:
        """Storing the same coordinate twice keeps one entry."""
        cache = TileCache(max_entries=2)
        cache.put(at(tile_bundle, 0))
        cache.put(at(tile_bundle, 0))
        assert len(cache) == 1
        assert cache.stats().evictions == 0

    def test_expiry_on_get(self, tile_bundle: TileBundle) -> None:
        """Tiles older than max age are dropped when read."""
        clock = FakeClock()
        cache = TileCache(max_age_seconds=10.0, clock=clock)
        cache.put(tile_bundle)

        clock.now = 5.0
        assert cache.get(tile_bundle.coordinate) is tile_bundle
        clock.now = 11.0
        assert tile_bundle.coordinate not in cache
        assert cache.get(tile_bundle.coordinate) is None
        assert len(cache) == 0

    def test_evict_expired(self, tile_bundle: TileBundle) -> None:
        """Expired tiles are swept in bulk."""
        clock = FakeClock()
        cache = TileCache(max_age_seconds=10.0, clock=clock)
        cache.put(at(tile_bundle, 0))
        clock.now = 6.0
        cache.put(at(tile_bundle, 1))
        clock.now = 12.0

        assert cache.evict_expired() == 1
        assert len(cache) == 1
        assert cache.evict_expired() == 0

    def test_stats(self, tile_bundle: TileBundle) -> None:
        """Hits and misses are counted."""
        cache = TileCache()
        assert cache.stats().hit_rate == 0.0
        cache.put(tile_bundle)
        cache.get(tile_bundle.coordinate)
        cache.get(tile_bundle.coordinate)
        cache.get(TileCoordinate(x=5, z=5))

        stats = cache.stats()
        assert stats.entries == 1
        assert stats.hits == 2
        assert stats.misses == 1
        assert stats.hit_rate == pytest.approx(2 / 3)

    def test_contains_leaves_stats(self, tile_bundle: TileBundle) -> None:
        """Membership checks do not count as lookups."""
        cache = TileCache()
        cache.put(tile_bundle)
        assert cache.contains(tile_bundle.coordinate)
        assert not cache.contains(TileCoordinate(x=1, z=1))
        stats = cache.stats()
        assert stats.hits == 0
        assert stats.misses == 0

    def test_invalidate_and_clear(self, tile_bundle: TileBundle) -> None:
        """Tiles can be dropped individually or all at once."""
        cache = TileCache()
        cache.put(at(tile_bundle, 0))
        cache.put(at(tile_bundle, 1))
        assert cache.invalidate(TileCoordinate(x=0, z=0))
        assert not cache.invalidate(TileCoordinate(x=0, z=0))
        cache.clear()
        assert len(cache) == 0

    def test_invalid_size(self) -> None:
        """A cache must hold at least one tile."""
        with pytest.raises(ValueError):
            TileCache(max_entries=0)
