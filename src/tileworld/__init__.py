"""Streamed procedural tile world."""

from .cache import TileCache
from .config import (
    CacheConfig,
    MetabolismConfig,
    PrefetchConfig,
    WorldConfig,
    find_config,
    list_configs,
    load_config,
)
from .exceptions import InvalidArgumentError, TileGenerationError, WorldGenError
from .metabolism import (
    GridMetabolism,
    HealthStatus,
    MetabolismLoop,
    MetabolismSnapshot,
    WorldEvent,
    WorldEventType,
    WorldMetabolism,
)
from .prefetch import PrefetchResult, TilePrefetcher
from .types import TILE_SIZE, TileCoordinate

__all__ = [
    # Types
    "TileCoordinate",
    "TILE_SIZE",
    # Config
    "WorldConfig",
    "MetabolismConfig",
    "CacheConfig",
    "PrefetchConfig",
    "load_config",
    "find_config",
    "list_configs",
    # Metabolism
    "WorldMetabolism",
    "MetabolismSnapshot",
    "MetabolismLoop",
    "GridMetabolism",
    "WorldEvent",
    "WorldEventType",
    "HealthStatus",
    # Streaming
    "TileCache",
    "TilePrefetcher",
    "PrefetchResult",
    # Exceptions
    "WorldGenError",
    "InvalidArgumentError",
    "TileGenerationError",
]
