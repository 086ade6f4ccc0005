"""World metabolism: global harmony and dissonance, and per-tile lag.

Harmony lives in [0.1, 2.0] and dissonance in [0, 2.0]. Time relaxes
harmony back up toward 1.0 and bleeds dissonance away; external events
push both around with a distance falloff. Generation never reads the
live object, only an immutable MetabolismSnapshot taken beforehand.
"""

import asyncio
import math
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import structlog

from .config import MetabolismConfig
from .exceptions import InvalidArgumentError
from .types import TILE_SIZE, TileCoordinate

logger = structlog.get_logger()

HARMONY_MIN = 0.1
HARMONY_MAX = 2.0
DISSONANCE_MIN = 0.0
DISSONANCE_MAX = 2.0


class WorldEventType(str, Enum):
    """Narrative event hinted by the current balance."""

    CELESTIAL_BLOOM = "celestial_bloom"
    SILENCE_RIFT = "silence_rift"
    HARMONY_WAVE = "harmony_wave"
    NONE = "none"


class HealthStatus(str, Enum):
    FLOURISHING = "flourishing"
    HEALTHY = "healthy"
    UNSTABLE = "unstable"
    CORRUPTED = "corrupted"
    CRITICAL = "critical"


def clamp_harmony(value: float) -> float:
    return min(HARMONY_MAX, max(HARMONY_MIN, value))


def clamp_dissonance(value: float) -> float:
    return min(DISSONANCE_MAX, max(DISSONANCE_MIN, value))


def energy_flow(harmony: float, dissonance: float) -> float:
    return harmony / (1.0 + dissonance)


def stability_index(harmony: float, dissonance: float) -> float:
    imbalance = abs(harmony - 1.0) + dissonance
    return max(0.1, 1.0 - imbalance * 0.5)


def determine_event_type(harmony: float, dissonance: float) -> WorldEventType:
    balance = harmony - dissonance
    if balance > 1.5:
        return WorldEventType.CELESTIAL_BLOOM
    if balance < -1.0:
        return WorldEventType.SILENCE_RIFT
    if abs(balance - 1.0) < 0.1:
        return WorldEventType.HARMONY_WAVE
    return WorldEventType.NONE


def health_status(harmony: float, dissonance: float) -> HealthStatus:
    balance = harmony - dissonance
    if balance >= 1.5:
        return HealthStatus.FLOURISHING
    if balance >= 0.5:
        return HealthStatus.HEALTHY
    if balance >= -0.5:
        return HealthStatus.UNSTABLE
    if balance >= -1.5:
        return HealthStatus.CORRUPTED
    return HealthStatus.CRITICAL


def _check_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise InvalidArgumentError(f"{name} must be finite, got {value}")


@dataclass(frozen=True)
class MetabolismSnapshot:
    """Immutable metabolism values handed to tile generation."""

    harmony: float
    dissonance: float
    energy_flow: float
    stability_index: float

    @classmethod
    def of(cls, harmony: float, dissonance: float) -> "MetabolismSnapshot":
        """Clamp the inputs and derive the dependent values."""
        _check_finite(harmony=harmony, dissonance=dissonance)
        h = clamp_harmony(harmony)
        d = clamp_dissonance(dissonance)
        return cls(
            harmony=h,
            dissonance=d,
            energy_flow=energy_flow(h, d),
            stability_index=stability_index(h, d),
        )

    @classmethod
    def balanced(cls) -> "MetabolismSnapshot":
        return cls.of(1.0, 0.0)

    @property
    def balance(self) -> float:
        return self.harmony - self.dissonance


@dataclass(frozen=True)
class WorldEvent:
    """A harmony/dissonance disturbance centered on a world position."""

    x: float
    z: float
    radius: float
    harmony_delta: float = 0.0
    dissonance_delta: float = 0.0
    name: str = ""

    def strength_at(self, x: float, z: float) -> float:
        """Linear falloff: 1 at the center, 0 at and beyond the radius."""
        distance = math.hypot(x - self.x, z - self.z)
        if self.radius <= 0:
            return 1.0 if distance == 0 else 0.0
        return max(0.0, 1.0 - distance / self.radius)


@dataclass
class GridMetabolism:
    """Per-tile metabolism that lags the world values."""

    harmony: float = 1.0
    dissonance: float = 0.0
    energy_density: float = 1.0

    @classmethod
    def preset(cls, name: str) -> "GridMetabolism":
        """Named starting state; see GRID_PRESETS."""
        try:
            harmony, dissonance, energy = GRID_PRESETS[name]
        except KeyError as exc:
            raise InvalidArgumentError(f"Unknown grid preset: {name!r}") from exc
        return cls(harmony=harmony, dissonance=dissonance, energy_density=energy)

    def _refresh(self) -> None:
        self.energy_density = self.harmony / (1.0 + self.dissonance * 0.5)

    def update(self, dt: float, harmony: float, dissonance: float, rate: float) -> None:
        """First-order lag toward the world values.

        Exponential step: never passes the target, whatever dt is.
        """
        alpha = 1.0 - math.exp(-rate * dt)
        self.harmony = clamp_harmony(self.harmony + (harmony - self.harmony) * alpha)
        self.dissonance = clamp_dissonance(
            self.dissonance + (dissonance - self.dissonance) * alpha
        )
        self._refresh()

    def apply_local_effect(self, harmony_delta: float, dissonance_delta: float) -> None:
        self.harmony = clamp_harmony(self.harmony + harmony_delta)
        self.dissonance = clamp_dissonance(self.dissonance + dissonance_delta)
        self._refresh()


GRID_PRESETS: dict[str, tuple[float, float, float]] = {
    "neutral": (1.0, 0.0, 1.0),
    "harmonious": (1.5, 0.0, 1.3),
    "corrupted": (0.3, 1.2, 0.7),
    "energized": (1.2, 0.1, 1.8),
}


# Called with the hinted event type and the values that crossed a threshold
ThresholdCallback = Callable[[WorldEventType, MetabolismSnapshot], None]


class WorldMetabolism:
    """Global world-health state.

    All mutation goes through a lock, so ticks and events from different
    threads apply one at a time.

    Usage:
        metabolism = WorldMetabolism()
        metabolism.apply_event(WorldEvent(x=0, z=0, radius=50, harmony_delta=0.3))
        metabolism.tick(1.0)
        snapshot = metabolism.snapshot(TileCoordinate(x=0, z=0))
    """

    def __init__(
        self,
        config: MetabolismConfig | None = None,
        on_threshold: ThresholdCallback | None = None,
        tile_size: float = TILE_SIZE,
    ):
        self.config = config or MetabolismConfig()
        self.on_threshold = on_threshold
        self.tile_size = tile_size
        _check_finite(harmony=self.config.harmony, dissonance=self.config.dissonance)
        self._harmony = clamp_harmony(self.config.harmony)
        self._dissonance = clamp_dissonance(self.config.dissonance)
        self._grids: dict[TileCoordinate, GridMetabolism] = {}
        self._triggered = False
        self._lock = threading.RLock()

    @property
    def harmony(self) -> float:
        return self._harmony

    @property
    def dissonance(self) -> float:
        return self._dissonance

    @property
    def energy_flow(self) -> float:
        return energy_flow(self._harmony, self._dissonance)

    @property
    def stability_index(self) -> float:
        return stability_index(self._harmony, self._dissonance)

    @property
    def should_trigger_event(self) -> bool:
        return (
            self._dissonance > self.config.dissonance_event_threshold
            or self._harmony > self.config.harmony_event_threshold
            or self.stability_index < self.config.stability_event_threshold
        )

    def event_type(self) -> WorldEventType:
        return determine_event_type(self._harmony, self._dissonance)

    def health_status(self) -> HealthStatus:
        return health_status(self._harmony, self._dissonance)

    @property
    def tracked_tiles(self) -> list[TileCoordinate]:
        with self._lock:
            return list(self._grids)

    def grid_state(self, coordinate: TileCoordinate) -> GridMetabolism:
        """Per-tile state, created on first reference from the world values."""
        with self._lock:
            grid = self._grids.get(coordinate)
            if grid is None:
                grid = GridMetabolism(harmony=self._harmony, dissonance=self._dissonance)
                grid.apply_local_effect(0.0, 0.0)
                self._grids[coordinate] = grid
                logger.debug("grid_metabolism_created", x=coordinate.x, z=coordinate.z)
            return grid

    def snapshot(self, coordinate: TileCoordinate | None = None) -> MetabolismSnapshot:
        """Immutable copy of the world values, or of one tile's values."""
        with self._lock:
            if coordinate is None:
                return MetabolismSnapshot.of(self._harmony, self._dissonance)
            grid = self.grid_state(coordinate)
            return MetabolismSnapshot.of(grid.harmony, grid.dissonance)

    def tick(self, dt: float) -> None:
        """Advance the metabolism by dt seconds.

        Raises:
            InvalidArgumentError: If dt is negative or non-finite.
        """
        _check_finite(dt=dt)
        if dt < 0:
            raise InvalidArgumentError(f"dt must be non-negative, got {dt}")
        with self._lock:
            if self._harmony < 1.0:
                self._harmony = min(1.0, self._harmony + dt * self.config.harmony_recovery_rate)
            self._dissonance = clamp_dissonance(
                self._dissonance - dt * self.config.dissonance_decay_rate
            )
            for grid in self._grids.values():
                grid.update(dt, self._harmony, self._dissonance, self.config.grid_sync_rate)
            crossed = self._check_threshold()
        self._notify(crossed)

    def apply_event(
        self,
        event: WorldEvent,
        observer: tuple[float, float] | None = None,
    ) -> None:
        """Apply an event's deltas, weighted by distance falloff.

        The world values are weighted by the falloff at observer (full
        strength when no observer is given). Every tracked tile is
        weighted by the falloff at its center.

        Raises:
            InvalidArgumentError: If any event value is non-finite.
        """
        _check_finite(
            x=event.x,
            z=event.z,
            radius=event.radius,
            harmony_delta=event.harmony_delta,
            dissonance_delta=event.dissonance_delta,
        )
        weight = 1.0 if observer is None else event.strength_at(*observer)
        with self._lock:
            self._harmony = clamp_harmony(self._harmony + event.harmony_delta * weight)
            self._dissonance = clamp_dissonance(
                self._dissonance + event.dissonance_delta * weight
            )
            for coordinate, grid in self._grids.items():
                local = event.strength_at(*coordinate.center(self.tile_size))
                if local > 0:
                    grid.apply_local_effect(
                        event.harmony_delta * local, event.dissonance_delta * local
                    )
            logger.info(
                "world_event_applied",
                event_name=event.name or "unnamed",
                weight=round(weight, 3),
                harmony=round(self._harmony, 3),
                dissonance=round(self._dissonance, 3),
            )
            crossed = self._check_threshold()
        self._notify(crossed)

    def _check_threshold(self) -> MetabolismSnapshot | None:
        """Snapshot if a threshold was newly crossed; caller holds the lock."""
        triggered = self.should_trigger_event
        crossed = triggered and not self._triggered
        self._triggered = triggered
        if not crossed:
            return None
        snapshot = MetabolismSnapshot.of(self._harmony, self._dissonance)
        logger.info(
            "metabolism_threshold_crossed",
            harmony=round(snapshot.harmony, 3),
            dissonance=round(snapshot.dissonance, 3),
            stability=round(snapshot.stability_index, 3),
            event_type=self.event_type().value,
        )
        return snapshot

    def _notify(self, crossed: MetabolismSnapshot | None) -> None:
        if crossed is not None and self.on_threshold is not None:
            self.on_threshold(determine_event_type(crossed.harmony, crossed.dissonance), crossed)


class MetabolismLoop:
    """
    Async loop that ticks a WorldMetabolism at a fixed interval.

    Usage:
        loop = MetabolismLoop(metabolism)
        task = asyncio.create_task(loop.run())
        ...
        loop.stop()
        await task
    """

    def __init__(self, metabolism: WorldMetabolism, tick_interval_ms: int | None = None):
        self.metabolism = metabolism
        self.tick_interval_ms = tick_interval_ms or metabolism.config.tick_interval_ms
        self._running = False
        self._stop_event = asyncio.Event()
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False
        self._stop_event.set()

    async def run(self) -> None:
        """Tick until stopped, using measured elapsed time as dt."""
        self._running = True
        self._stop_event.clear()
        logger.info("metabolism_loop_started", tick_interval_ms=self.tick_interval_ms)
        last = time.monotonic()
        try:
            while self._running:
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self.tick_interval_ms / 1000
                    )
                except asyncio.TimeoutError:
                    pass  # Normal - interval elapsed
                now = time.monotonic()
                self.metabolism.tick(now - last)
                last = now
                self.ticks += 1
        finally:
            self._running = False
            logger.info("metabolism_loop_stopped", ticks=self.ticks)
