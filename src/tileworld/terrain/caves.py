"""Procedural cave systems: chambers joined by random-walk tunnels."""

import logging
import math
from dataclasses import dataclass

import numpy as np

from ..types import TileCoordinate
from .config import CaveConfig

logger = logging.getLogger(__name__)

Point = tuple[float, float, float]


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned world-space box."""

    minimum: Point
    maximum: Point

    @classmethod
    def for_tile(
        cls,
        coordinate: TileCoordinate,
        tile_size: float,
        depth_min: float,
        depth_max: float,
    ) -> "BoundingBox":
        ox, oz = coordinate.world_offset(tile_size)
        return cls((ox, depth_min, oz), (ox + tile_size, depth_max, oz + tile_size))

    @property
    def volume(self) -> float:
        return float(np.prod(np.subtract(self.maximum, self.minimum)))

    def contains(self, point: Point) -> bool:
        return all(lo <= p <= hi for lo, p, hi in zip(self.minimum, point, self.maximum))


@dataclass(frozen=True)
class Chamber:
    """Spherical open space."""

    center: Point
    radius: float
    height: float

    def contains(self, point: Point) -> bool:
        return math.dist(point, self.center) < self.radius


@dataclass(frozen=True)
class Tunnel:
    """Polyline passage with a radius at every point."""

    points: tuple[Point, ...]
    radii: tuple[float, ...]

    def contains(self, point: Point) -> bool:
        """True if point lies within the interpolated radius of any segment."""
        if len(self.points) < 2:
            return False
        p = np.asarray(point, dtype=np.float64)
        pts = np.asarray(self.points, dtype=np.float64)
        radii = np.asarray(self.radii, dtype=np.float64)
        a = pts[:-1]
        b = pts[1:]
        ab = b - a
        length2 = np.einsum("ij,ij->i", ab, ab)
        t = np.einsum("ij,ij->i", p - a, ab) / np.where(length2 > 0, length2, 1.0)
        t = np.clip(t, 0.0, 1.0)
        closest = a + ab * t[:, None]
        distance = np.linalg.norm(p - closest, axis=1)
        radius = radii[:-1] + (radii[1:] - radii[:-1]) * t
        return bool(np.any(distance < radius))


@dataclass(frozen=True)
class CaveSystem:
    """Chambers and tunnels radiating from one origin."""

    origin: Point
    chambers: tuple[Chamber, ...]
    tunnels: tuple[Tunnel, ...]
    influence_radius: float = 50.0

    def contains(self, point: Point) -> bool:
        """True if point is inside any chamber or tunnel."""
        return any(c.contains(point) for c in self.chambers) or any(
            t.contains(point) for t in self.tunnels
        )

    def affects(self, point: Point) -> bool:
        """True if point is close enough to the origin to be influenced."""
        return math.dist(point, self.origin) < self.influence_radius


def _uniform(rng: np.random.Generator, bounds: tuple[float, float]) -> float:
    return float(rng.uniform(bounds[0], bounds[1]))


def _normalize(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v)
    return v / norm if norm > 0 else v


def generate_tunnel(
    origin: Point,
    angle: float,
    rng: np.random.Generator,
    config: CaveConfig,
) -> Tunnel:
    """Random-walk tunnel leaving origin at the given heading."""
    direction = _normalize(
        np.array([math.cos(angle), float(rng.uniform(-0.3, 0.3)), math.sin(angle)])
    )
    length = _uniform(rng, config.tunnel_length)
    steps = int(length / config.tunnel_step)
    radius = _uniform(rng, config.tunnel_radius)
    position = np.asarray(origin, dtype=np.float64)

    points = [tuple(float(v) for v in position)]
    radii = [radius]
    for _ in range(steps):
        wobble = np.array(
            [rng.uniform(-0.1, 0.1), rng.uniform(-0.05, 0.05), rng.uniform(-0.1, 0.1)]
        )
        direction = _normalize(direction + wobble)
        position = position + direction * config.tunnel_step
        radius = max(config.min_tunnel_radius, radius + float(rng.uniform(-0.5, 0.5)))
        points.append(tuple(float(v) for v in position))
        radii.append(radius)
    return Tunnel(points=tuple(points), radii=tuple(radii))


def generate_cave_system(origin: Point, rng: np.random.Generator, config: CaveConfig) -> CaveSystem:
    """One main chamber, radiating tunnels, and optional end chambers."""
    chambers = [
        Chamber(
            center=origin,
            radius=_uniform(rng, config.chamber_radius),
            height=_uniform(rng, config.chamber_height),
        )
    ]
    tunnel_count = int(rng.integers(config.tunnel_count[0], config.tunnel_count[1] + 1))
    tunnels = []
    for i in range(tunnel_count):
        angle = 2.0 * math.pi * i / tunnel_count
        tunnel = generate_tunnel(origin, angle, rng, config)
        tunnels.append(tunnel)
        if rng.random() < config.end_chamber_probability:
            chambers.append(
                Chamber(
                    center=tunnel.points[-1],
                    radius=_uniform(rng, config.end_chamber_radius),
                    height=_uniform(rng, config.end_chamber_height),
                )
            )
    return CaveSystem(
        origin=origin,
        chambers=tuple(chambers),
        tunnels=tuple(tunnels),
        influence_radius=config.influence_radius,
    )


def generate_caves(
    bounds: BoundingBox,
    rng: np.random.Generator,
    config: CaveConfig | None = None,
) -> list[CaveSystem]:
    """Generate cave systems inside a bounding volume.

    Args:
        bounds: Volume in which cave origins are placed.
        rng: Random stream for origins and shapes.
        config: Cave parameters.

    Returns:
        int(volume * density / volume_divisor) systems, capped at max_systems.
    """
    config = config or CaveConfig()
    count = min(int(bounds.volume * config.density / config.volume_divisor), config.max_systems)
    systems = []
    for _ in range(count):
        origin = (
            float(rng.uniform(bounds.minimum[0], bounds.maximum[0])),
            float(rng.uniform(bounds.minimum[1], bounds.maximum[1])),
            float(rng.uniform(bounds.minimum[2], bounds.maximum[2])),
        )
        systems.append(generate_cave_system(origin, rng, config))
    logger.debug(f"Caves: {count} systems in volume {bounds.volume:.0f}")
    return systems
