"""Bounded background generation of tiles around a moving center."""

import asyncio
from dataclasses import dataclass, field

import structlog

from .cache import TileCache
from .exceptions import InvalidArgumentError, WorldGenError
from .metabolism import MetabolismSnapshot, WorldMetabolism
from .terrain.config import Season, TerrainConfig
from .terrain.generator import TileBundle, generate_tile
from .terrain.seeding import validate_seed
from .types import TileCoordinate

logger = structlog.get_logger()


@dataclass
class PrefetchResult:
    """Outcome of one prefetch pass."""

    generated: list[TileCoordinate] = field(default_factory=list)
    cached: list[TileCoordinate] = field(default_factory=list)
    failed: dict[TileCoordinate, str] = field(default_factory=dict)
    cancelled: list[TileCoordinate] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed and not self.cancelled


class TilePrefetcher:
    """
    Generates the tiles around a center in worker threads.

    At most max_concurrency tiles generate at once, counting worker threads
    whose tiles were cancelled but have not yet returned. Each tile receives a
    metabolism snapshot taken when it is scheduled, and is put in the cache
    only once generation has finished. A tile cancelled by retarget never
    reaches the cache.

    Usage:
        prefetcher = TilePrefetcher(seed=42, cache=TileCache())
        result = await prefetcher.prefetch(TileCoordinate(x=0, z=0), radius=2)
        prefetcher.retarget(TileCoordinate(x=5, z=0), radius=2)
    """

    def __init__(
        self,
        seed: int,
        cache: TileCache,
        metabolism: WorldMetabolism | None = None,
        terrain_config: TerrainConfig | None = None,
        max_concurrency: int = 4,
        season: Season | None = None,
    ):
        if max_concurrency < 1:
            raise InvalidArgumentError(
                f"max_concurrency must be at least 1, got {max_concurrency}"
            )
        self.seed = validate_seed(seed)
        self.cache = cache
        self.metabolism = metabolism
        self.terrain_config = terrain_config or TerrainConfig()
        self.max_concurrency = max_concurrency
        self.season = season
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._in_flight: dict[TileCoordinate, asyncio.Task[TileBundle]] = {}

    @property
    def in_flight(self) -> list[TileCoordinate]:
        return list(self._in_flight)

    def _snapshot(self, coordinate: TileCoordinate) -> MetabolismSnapshot:
        if self.metabolism is None:
            return MetabolismSnapshot.balanced()
        return self.metabolism.snapshot(coordinate)

    async def _generate(
        self, coordinate: TileCoordinate, snapshot: MetabolismSnapshot
    ) -> TileBundle:
        async with self._semaphore:
            worker = asyncio.ensure_future(
                asyncio.to_thread(
                    generate_tile,
                    self.seed,
                    coordinate,
                    snapshot,
                    self.terrain_config,
                    self.season,
                )
            )
            try:
                bundle = await asyncio.shield(worker)
            except asyncio.CancelledError:
                # The thread runs on; hold the slot until it returns
                await asyncio.wait([worker])
                if not worker.cancelled() and worker.exception() is not None:
                    logger.debug(
                        "cancelled_tile_failed",
                        x=coordinate.x,
                        z=coordinate.z,
                        error=str(worker.exception()),
                    )
                logger.debug("tile_discarded", x=coordinate.x, z=coordinate.z)
                raise
        self.cache.put(bundle)
        logger.debug("tile_generated", x=coordinate.x, z=coordinate.z)
        return bundle

    def _schedule(self, coordinate: TileCoordinate) -> asyncio.Task[TileBundle]:
        task = self._in_flight.get(coordinate)
        if task is not None:
            return task
        snapshot = self._snapshot(coordinate)
        task = asyncio.create_task(self._generate(coordinate, snapshot))
        self._in_flight[coordinate] = task
        task.add_done_callback(lambda t, c=coordinate: self._forget(c, t))
        return task

    def _forget(self, coordinate: TileCoordinate, task: asyncio.Task[TileBundle]) -> None:
        if self._in_flight.get(coordinate) is task:
            del self._in_flight[coordinate]

    async def prefetch(self, center: TileCoordinate, radius: int) -> PrefetchResult:
        """Make sure every tile within radius of center is cached.

        Args:
            center: Tile the viewer is on.
            radius: Chebyshev radius in tiles.

        Returns:
            PrefetchResult listing generated, already cached, failed and
            cancelled tiles.
        """
        if radius < 0:
            raise InvalidArgumentError(f"radius must be non-negative, got {radius}")

        result = PrefetchResult()
        pending: dict[TileCoordinate, asyncio.Task[TileBundle]] = {}
        for coordinate in [center, *center.surrounding(radius)]:
            if self.cache.contains(coordinate):
                result.cached.append(coordinate)
            else:
                pending[coordinate] = self._schedule(coordinate)

        logger.info(
            "prefetch_started",
            x=center.x,
            z=center.z,
            radius=radius,
            cached=len(result.cached),
            pending=len(pending),
        )

        outcomes = await asyncio.gather(*pending.values(), return_exceptions=True)
        for coordinate, outcome in zip(pending, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                result.cancelled.append(coordinate)
            elif isinstance(outcome, WorldGenError):
                result.failed[coordinate] = str(outcome)
                logger.warning(
                    "tile_generation_failed",
                    x=coordinate.x,
                    z=coordinate.z,
                    error=str(outcome),
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.generated.append(coordinate)

        logger.info(
            "prefetch_complete",
            generated=len(result.generated),
            cached=len(result.cached),
            failed=len(result.failed),
            cancelled=len(result.cancelled),
        )
        return result

    def retarget(self, center: TileCoordinate, radius: int) -> list[TileCoordinate]:
        """Cancel in-flight tiles farther than radius from the new center.

        Returns:
            Coordinates whose generation was cancelled.
        """
        stale = [c for c in self._in_flight if c.distance_to(center) > radius]
        for coordinate in stale:
            self._in_flight.pop(coordinate).cancel()
        if stale:
            logger.info("prefetch_retargeted", x=center.x, z=center.z, cancelled=len(stale))
        return stale

    async def close(self) -> None:
        """Cancel and wait out every in-flight tile."""
        tasks = list(self._in_flight.values())
        self._in_flight.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
