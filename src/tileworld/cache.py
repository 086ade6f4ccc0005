"""In-memory tile cache with LRU and max-age eviction."""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

import structlog

from .terrain.generator import TileBundle
from .types import TileCoordinate

logger = structlog.get_logger()


@dataclass
class CacheEntry:
    """A cached tile and the time it was stored."""

    bundle: TileBundle
    stored_at: float


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int
    misses: int
    evictions: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class TileCache:
    """Bounded cache of generated tiles keyed by coordinate.

    Entries are evicted least-recently-used first when the cache is full,
    and dropped on access once older than max_age_seconds. Only complete
    bundles are ever stored; insertion is a single locked operation.

    Usage:
        cache = TileCache(max_entries=64)
        cache.put(bundle)
        bundle = cache.get(TileCoordinate(x=0, z=0))
    """

    def __init__(
        self,
        max_entries: int = 256,
        max_age_seconds: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._entries: OrderedDict[TileCoordinate, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, coordinate: TileCoordinate) -> bool:
        return self.contains(coordinate)

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.stored_at > self.max_age_seconds

    def get(self, coordinate: TileCoordinate) -> TileBundle | None:
        """Cached tile for coordinate, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(coordinate)
            if entry is not None and self._expired(entry, self._clock()):
                del self._entries[coordinate]
                self._evictions += 1
                logger.debug("tile_expired", x=coordinate.x, z=coordinate.z)
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(coordinate)
            self._hits += 1
            return entry.bundle

    def contains(self, coordinate: TileCoordinate) -> bool:
        """Check for a live entry without touching recency or statistics."""
        with self._lock:
            entry = self._entries.get(coordinate)
            return entry is not None and not self._expired(entry, self._clock())

    def put(self, bundle: TileBundle) -> None:
        """Store a generated tile, evicting the least recently used if full."""
        coordinate = bundle.coordinate
        with self._lock:
            self._entries[coordinate] = CacheEntry(bundle=bundle, stored_at=self._clock())
            self._entries.move_to_end(coordinate)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("tile_evicted", x=evicted.x, z=evicted.z)
        logger.debug("tile_cached", x=coordinate.x, z=coordinate.z)

    def invalidate(self, coordinate: TileCoordinate) -> bool:
        """Drop one tile. Returns True if it was cached."""
        with self._lock:
            return self._entries.pop(coordinate, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def evict_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [c for c, e in self._entries.items() if self._expired(e, now)]
            for coordinate in expired:
                del self._entries[coordinate]
            self._evictions += len(expired)
        if expired:
            logger.info("tiles_expired", count=len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                entries=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )
