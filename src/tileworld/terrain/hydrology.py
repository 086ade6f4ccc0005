"""Rivers: local-maximum sources and greedy steepest-descent tracing."""

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .config import HydrologyConfig
from .heightfield import HeightField

logger = logging.getLogger(__name__)

# D8 directions: N, NE, E, SE, S, SW, W, NW (clockwise from north)
D8_DY = np.array([-1, -1, 0, 1, 1, 1, 0, -1], dtype=np.int32)
D8_DX = np.array([0, 1, 1, 1, 0, -1, -1, -1], dtype=np.int32)
D8_DIST = np.array([1.0, math.sqrt(2.0)] * 4)


@dataclass(frozen=True)
class RiverNetwork:
    """An ordered downstream trace with per-waypoint width and depth."""

    source: tuple[int, int]
    cells: tuple[tuple[int, int], ...]
    waypoints: tuple[tuple[float, float, float], ...]
    widths: tuple[float, ...]
    depths: tuple[float, ...]
    flow_rate: float

    def __len__(self) -> int:
        return len(self.waypoints)


def steepest_descent_step(
    heights: NDArray[np.float64],
    x: int,
    z: int,
) -> tuple[int, int] | None:
    """Neighbor with the steepest drop from (x, z), scanning in D8 order.

    Ties go to the first neighbor in scan order.

    Returns:
        (x, z) of the next cell, or None if no neighbor is lower.
    """
    size_z, size_x = heights.shape
    here = heights[z, x]
    best: tuple[int, int] | None = None
    best_slope = 0.0
    for d in range(8):
        nx = x + int(D8_DX[d])
        nz = z + int(D8_DY[d])
        if not (0 <= nx < size_x and 0 <= nz < size_z):
            continue
        slope = (here - heights[nz, nx]) / D8_DIST[d]
        if slope > best_slope:
            best_slope = slope
            best = (nx, nz)
    return best


def find_river_sources(
    heights: NDArray[np.float64],
    config: HydrologyConfig,
) -> list[tuple[int, int]]:
    """Local maxima above the source elevation on a sparse sample grid.

    Args:
        heights: Height grid.
        config: Stride, margin, window and elevation parameters.

    Returns:
        Source cells as (x, z), in row-major scan order.
    """
    size_z, size_x = heights.shape
    w = config.river_source_window
    margin = config.river_source_margin
    stride = config.river_source_stride
    sources = []
    for z in range(margin, size_z - margin, stride):
        for x in range(margin, size_x - margin, stride):
            h = heights[z, x]
            if h <= config.river_min_elevation:
                continue
            window = heights[max(0, z - w) : z + w + 1, max(0, x - w) : x + w + 1]
            if h >= window.max():
                sources.append((x, z))
    return sources


def trace_river(
    heights: NDArray[np.float64],
    source: tuple[int, int],
    sea_level: float,
    max_steps: int,
) -> list[tuple[int, int]]:
    """Follow steepest descent from a source.

    Stops at or below sea level, in a basin with no lower neighbor, or at
    the step cap. Heights along the returned path strictly decrease.

    Args:
        heights: Height grid.
        source: Starting cell (x, z).
        sea_level: Height at which the river ends.
        max_steps: Step cap.

    Returns:
        Cells visited, source first.
    """
    path = [source]
    x, z = source
    for _ in range(max_steps):
        if heights[z, x] <= sea_level:
            break
        step = steepest_descent_step(heights, x, z)
        if step is None:
            break
        x, z = step
        path.append(step)
    return path


def build_river(
    field: HeightField,
    cells: list[tuple[int, int]],
    config: HydrologyConfig,
) -> RiverNetwork:
    """Attach world positions and growing width/depth to a traced path."""
    steps = range(len(cells))
    waypoints = tuple(field.cell_position(x, z) for x, z in cells)
    widths = tuple(config.river_initial_width + i * config.river_width_growth for i in steps)
    depths = tuple(config.river_initial_depth + i * config.river_depth_growth for i in steps)
    return RiverNetwork(
        source=cells[0],
        cells=tuple(cells),
        waypoints=waypoints,
        widths=widths,
        depths=depths,
        flow_rate=len(cells) * 0.1,
    )


def generate_rivers(
    field: HeightField,
    rng: np.random.Generator,
    config: HydrologyConfig | None = None,
) -> list[RiverNetwork]:
    """Trace rivers from gated sources.

    Args:
        field: Final height field for the tile.
        rng: Random stream for the per-source probability gate.
        config: Hydrology parameters.

    Returns:
        Rivers with at least river_min_waypoints waypoints.
    """
    config = config or HydrologyConfig()
    sources = find_river_sources(field.heights, config)
    rivers = []
    for source in sources:
        if rng.random() >= config.river_probability:
            continue
        cells = trace_river(field.heights, source, field.sea_level, config.river_max_steps)
        if len(cells) < config.river_min_waypoints:
            logger.debug(f"River from {source} too short ({len(cells)} cells), discarded")
            continue
        rivers.append(build_river(field, cells, config))

    logger.debug(f"Rivers {field.coordinate}: {len(sources)} sources, {len(rivers)} traced")
    return rivers
