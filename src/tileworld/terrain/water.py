"""Standing water: flood-fill detection, classification and biome water.

Cells below the water threshold are grouped into 4-connected components;
components large enough become water bodies typed by biome and size.
Biomes then inject their own small features (streams, springs, pools).
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import ConvexHull, QhullError

from .biomes import BiomeType, biome_profile
from .config import HydrologyConfig
from .heightfield import HeightField
from .hydrology import steepest_descent_step

logger = logging.getLogger(__name__)

Vertex = tuple[float, float, float]


class WaterType(str, Enum):
    """Kinds of water body."""

    LAKE = "lake"
    RIVER = "river"
    STREAM = "stream"
    POND = "pond"
    SPRING = "spring"
    OCEAN = "ocean"
    HOT_SPRING = "hot_spring"
    HARMONIC_POOL = "harmonic_pool"
    VOID_WATER = "void_water"


@dataclass(frozen=True)
class WaterProfile:
    """Default attributes for a water type."""

    depth: float
    flow_rate: float = 0.0
    clarity: float = 0.8
    temperature: float = 0.5
    harmony: float = 1.0
    salinity: float = 0.0
    oxygen: float = 0.9


WATER_PROFILES: dict[WaterType, WaterProfile] = {
    WaterType.LAKE: WaterProfile(depth=5.0),
    WaterType.RIVER: WaterProfile(depth=2.0, flow_rate=2.0),
    WaterType.STREAM: WaterProfile(depth=0.5, flow_rate=1.0),
    WaterType.POND: WaterProfile(depth=1.5),
    WaterType.SPRING: WaterProfile(depth=1.0),
    WaterType.OCEAN: WaterProfile(
        depth=5.0, clarity=0.6, temperature=0.5, harmony=0.9, salinity=0.9, oxygen=0.8
    ),
    WaterType.HOT_SPRING: WaterProfile(
        depth=1.0, clarity=0.7, temperature=0.9, harmony=1.2, salinity=0.1, oxygen=0.6
    ),
    WaterType.HARMONIC_POOL: WaterProfile(
        depth=1.0, clarity=1.0, temperature=0.7, harmony=1.5, salinity=0.0, oxygen=1.0
    ),
    WaterType.VOID_WATER: WaterProfile(
        depth=3.0, clarity=0.2, temperature=0.1, harmony=0.1, salinity=0.0, oxygen=0.3
    ),
}


@dataclass(frozen=True)
class WaterBody:
    """A typed water body outlined by an ordered world-space polygon."""

    water_type: WaterType
    vertices: tuple[Vertex, ...]
    cells: tuple[tuple[int, int], ...]
    depth: float
    flow_rate: float
    clarity: float
    temperature: float
    harmony_level: float
    salinity: float
    oxygen_level: float
    flow_direction: tuple[float, float] | None = None

    @property
    def cell_count(self) -> int:
        return len(self.cells)

    def surface_area(self) -> float:
        """Shoelace area of the outline on the x/z plane."""
        if len(self.vertices) < 3:
            return 0.0
        xs = np.array([v[0] for v in self.vertices])
        zs = np.array([v[2] for v in self.vertices])
        return float(0.5 * abs(np.dot(xs, np.roll(zs, -1)) - np.dot(zs, np.roll(xs, -1))))

    def volume(self) -> float:
        return self.surface_area() * self.depth


def make_water_body(
    water_type: WaterType,
    vertices: list[Vertex],
    biome: BiomeType,
    cells: list[tuple[int, int]] | None = None,
    depth: float | None = None,
    flow_direction: tuple[float, float] | None = None,
) -> WaterBody:
    """Build a water body with attributes from its type and biome."""
    profile = WATER_PROFILES[water_type]
    biome_info = biome_profile(biome)
    return WaterBody(
        water_type=water_type,
        vertices=tuple(vertices),
        cells=tuple(cells or ()),
        depth=profile.depth if depth is None else depth,
        flow_rate=profile.flow_rate,
        clarity=float(np.clip(profile.clarity * biome_info.water_clarity_factor, 0.0, 1.0)),
        temperature=float(
            np.clip(profile.temperature + biome_info.water_temperature_offset, 0.0, 1.0)
        ),
        harmony_level=profile.harmony,
        salinity=profile.salinity,
        oxygen_level=profile.oxygen,
        flow_direction=flow_direction,
    )


def flood_fill(
    wet: NDArray[np.bool_],
    start: tuple[int, int],
    visited: NDArray[np.bool_],
) -> list[tuple[int, int]]:
    """Collect the 4-connected wet component containing start.

    Uses an explicit stack; marks every collected cell in visited.

    Args:
        wet: Boolean grid of wet cells, indexed [z, x].
        start: Seed cell (x, z).
        visited: Shared visited grid, updated in place.

    Returns:
        Cells (x, z) of the component; empty if start is dry or visited.
    """
    size_z, size_x = wet.shape
    stack = [start]
    cells = []
    while stack:
        x, z = stack.pop()
        if not (0 <= x < size_x and 0 <= z < size_z):
            continue
        if visited[z, x] or not wet[z, x]:
            continue
        visited[z, x] = True
        cells.append((x, z))
        stack.append((x + 1, z))
        stack.append((x - 1, z))
        stack.append((x, z + 1))
        stack.append((x, z - 1))
    return cells


def find_wet_regions(
    heights: NDArray[np.float64],
    threshold: float,
    min_cells: int,
) -> list[list[tuple[int, int]]]:
    """All wet components with at least min_cells cells, in scan order."""
    wet = heights < threshold
    visited = np.zeros(heights.shape, dtype=bool)
    regions = []
    size_z, size_x = heights.shape
    for z in range(size_z):
        for x in range(size_x):
            if wet[z, x] and not visited[z, x]:
                cells = flood_fill(wet, (x, z), visited)
                if len(cells) >= min_cells:
                    regions.append(cells)
    return regions


def classify_water_type(
    cell_count: int,
    mean_depth: float,
    biome: BiomeType,
    config: HydrologyConfig,
) -> WaterType:
    """Type a detected body from its biome, size and depth.

    Args:
        cell_count: Cells in the body.
        mean_depth: Mean absolute height of the body's cells.
        biome: Tile biome.
        config: Size and depth tiers.
    """
    if biome == BiomeType.OCEAN:
        return WaterType.OCEAN
    if biome == BiomeType.ETHEREAL:
        return WaterType.HARMONIC_POOL
    if biome == BiomeType.CORRUPTED:
        return WaterType.VOID_WATER
    if biome == BiomeType.VOLCANIC:
        return WaterType.HOT_SPRING
    if biome == BiomeType.SWAMP:
        return WaterType.LAKE if cell_count > config.swamp_lake_min_cells else WaterType.POND
    if biome == BiomeType.MOUNTAIN:
        if mean_depth > config.mountain_lake_min_depth:
            return WaterType.LAKE
        if cell_count > config.mountain_lake_min_cells:
            return WaterType.LAKE
        return WaterType.POND
    if cell_count > config.lake_min_cells:
        return WaterType.LAKE
    if cell_count > config.pond_min_cells:
        return WaterType.POND
    return WaterType.SPRING


def outline(field: HeightField, cells: list[tuple[int, int]]) -> list[Vertex]:
    """Counter-clockwise convex outline of a component in world space."""
    points = np.array(cells, dtype=np.float64)
    try:
        hull = ConvexHull(points)
        order = [int(i) for i in hull.vertices]
    except QhullError:
        # Collinear cells: the outline degenerates to the two end cells
        ranked = sorted(range(len(cells)), key=lambda i: cells[i])
        order = [ranked[0], ranked[-1]]
    return [field.cell_position(cells[i][0], cells[i][1]) for i in order]


def detect_water_bodies(
    field: HeightField,
    biome: BiomeType,
    config: HydrologyConfig | None = None,
) -> list[WaterBody]:
    """Find standing water by flood fill over low cells.

    Args:
        field: Final height field for the tile.
        biome: Tile biome.
        config: Threshold and size tiers.

    Returns:
        One WaterBody per wet component of at least min_water_cells cells.
    """
    config = config or HydrologyConfig()
    bodies = []
    for cells in find_wet_regions(field.heights, config.water_threshold, config.min_water_cells):
        mean_depth = float(np.mean([abs(field.heights[z, x]) for x, z in cells]))
        water_type = classify_water_type(len(cells), mean_depth, biome, config)
        depths = [field.sea_level - field.heights[z, x] for x, z in cells]
        bodies.append(
            make_water_body(
                water_type,
                outline(field, cells),
                biome,
                cells=cells,
                depth=float(np.mean(depths)),
            )
        )
    logger.debug(f"Water {field.coordinate}: {len(bodies)} bodies detected")
    return bodies


def _margin(resolution: int, preferred: int) -> int:
    return max(1, min(preferred, resolution // 4))


def _ring(
    field: HeightField,
    cx: float,
    cz: float,
    radii: list[float],
    depth_offset: float,
) -> list[Vertex]:
    """Closed polygon around cell (cx, cz), one vertex per radius."""
    ox, oz = field.coordinate.world_offset(field.tile_size)
    y = field.height_at(int(round(cx)), int(round(cz))) - depth_offset
    vertices = []
    for i, r in enumerate(radii):
        angle = 2.0 * math.pi * i / len(radii)
        vx = cx + r * math.cos(angle)
        vz = cz + r * math.sin(angle)
        vertices.append((ox + vx * field.spacing, y, oz + vz * field.spacing))
    return vertices


def mountain_streams(
    field: HeightField,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[WaterBody]:
    """Short steepest-descent streams from high cells."""
    streams = []
    res = field.resolution
    for _ in range(config.stream_attempts):
        x = int(rng.integers(0, res))
        z = int(rng.integers(0, res))
        if field.heights[z, x] <= config.stream_min_height:
            continue
        cells = [(x, z)]
        for _ in range(config.stream_max_steps):
            step = steepest_descent_step(field.heights, x, z)
            if step is None:
                break
            x, z = step
            cells.append(step)
        if len(cells) <= config.stream_min_vertices:
            continue
        vertices = []
        for cx, cz in cells:
            px, py, pz = field.cell_position(cx, cz)
            vertices.append((px, py - 0.5, pz))
        dx = vertices[-1][0] - vertices[0][0]
        dz = vertices[-1][2] - vertices[0][2]
        norm = math.hypot(dx, dz) or 1.0
        streams.append(
            make_water_body(
                WaterType.STREAM,
                vertices,
                BiomeType.MOUNTAIN,
                flow_direction=(dx / norm, dz / norm),
            )
        )
    return streams


def forest_springs(
    field: HeightField,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[WaterBody]:
    """Small octagonal springs away from the tile edge."""
    margin = _margin(field.resolution, 10)
    springs = []
    for _ in range(config.spring_count):
        cx = int(rng.integers(margin, field.resolution - margin))
        cz = int(rng.integers(margin, field.resolution - margin))
        vertices = _ring(field, cx, cz, [config.spring_radius] * 8, 0.3)
        springs.append(make_water_body(WaterType.SPRING, vertices, BiomeType.FOREST))
    return springs


def harmonic_pool(field: HeightField, config: HydrologyConfig) -> list[WaterBody]:
    """A single hexagonal pool at the tile center."""
    center = (field.resolution - 1) / 2
    vertices = _ring(field, center, center, [config.pool_radius] * 6, 1.0)
    return [make_water_body(WaterType.HARMONIC_POOL, vertices, BiomeType.ETHEREAL)]


def hot_springs(
    field: HeightField,
    rng: np.random.Generator,
    config: HydrologyConfig,
) -> list[WaterBody]:
    """Irregular twelve-sided hot springs."""
    margin = _margin(field.resolution, 5)
    springs = []
    for _ in range(config.hot_spring_count):
        cx = int(rng.integers(margin, field.resolution - margin))
        cz = int(rng.integers(margin, field.resolution - margin))
        radii = [config.hot_spring_radius * float(rng.uniform(0.7, 1.3)) for _ in range(12)]
        vertices = _ring(field, cx, cz, radii, 0.8)
        springs.append(make_water_body(WaterType.HOT_SPRING, vertices, BiomeType.VOLCANIC))
    return springs


def biome_water_features(
    field: HeightField,
    biome: BiomeType,
    rng: np.random.Generator,
    config: HydrologyConfig | None = None,
) -> list[WaterBody]:
    """Inject the biome's characteristic small water features.

    Args:
        field: Final height field for the tile.
        biome: Tile biome.
        rng: Random stream for placement.
        config: Hydrology parameters.

    Returns:
        Injected water bodies; empty for biomes without any.
    """
    config = config or HydrologyConfig()
    if biome == BiomeType.MOUNTAIN:
        return mountain_streams(field, rng, config)
    if biome == BiomeType.FOREST:
        return forest_springs(field, rng, config)
    if biome == BiomeType.ETHEREAL:
        return harmonic_pool(field, config)
    if biome == BiomeType.VOLCANIC:
        return hot_springs(field, rng, config)
    return []
