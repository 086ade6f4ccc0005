"""Particle-based hydraulic erosion.

Droplets run downhill across the height grid, picking up sediment where
they are fast and under capacity, and dropping it where they slow down.
Droplets are simulated one after another on a single buffer, so results
depend only on the input grid and the random stream.
"""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from ..exceptions import InvalidArgumentError
from .config import ErosionConfig

logger = logging.getLogger(__name__)


def _gradient(heights: NDArray[np.float64], x: float, z: float) -> tuple[float, float]:
    """Unit downhill direction at the cell under (x, z); zero at edges or on flats."""
    size_z, size_x = heights.shape
    ix = int(x)
    iz = int(z)
    if ix <= 0 or iz <= 0 or ix >= size_x - 1 or iz >= size_z - 1:
        return 0.0, 0.0
    dx = float(heights[iz, ix + 1] - heights[iz, ix - 1])
    dz = float(heights[iz + 1, ix] - heights[iz - 1, ix])
    norm = math.hypot(dx, dz)
    if norm == 0.0:
        return 0.0, 0.0
    return -dx / norm, -dz / norm


def bilinear_height(heights: NDArray[np.float64], x: float, z: float) -> float:
    """Bilinearly interpolated height at fractional cell coordinates."""
    size_z, size_x = heights.shape
    x0 = min(int(math.floor(x)), size_x - 1)
    z0 = min(int(math.floor(z)), size_z - 1)
    x1 = min(x0 + 1, size_x - 1)
    z1 = min(z0 + 1, size_z - 1)
    tx = x - x0
    tz = z - z0
    near = heights[z0, x0] * (1 - tx) + heights[z0, x1] * tx
    far = heights[z1, x0] * (1 - tx) + heights[z1, x1] * tx
    return float(near * (1 - tz) + far * tz)


def simulate_droplet(
    heights: NDArray[np.float64],
    x: float,
    z: float,
    config: ErosionConfig,
) -> int:
    """Run one droplet from (x, z), modifying heights in place.

    Args:
        heights: Height buffer to erode.
        x: Starting column (fractional).
        z: Starting row (fractional).
        config: Droplet parameters.

    Returns:
        Number of steps the droplet took.
    """
    size_z, size_x = heights.shape
    vx = vz = 0.0
    water = 1.0
    sediment = 0.0
    steps = 0

    for _ in range(config.max_steps):
        gx, gz = _gradient(heights, x, z)
        if gx == 0.0 and gz == 0.0:
            break

        vx = vx * config.inertia + gx * config.gravity
        vz = vz * config.inertia + gz * config.gravity
        x += vx
        z += vz
        if not (0.0 <= x <= size_x - 1 and 0.0 <= z <= size_z - 1):
            break
        steps += 1

        ix = int(x)
        iz = int(z)
        current = bilinear_height(heights, x, z)
        capacity = math.hypot(vx, vz) * water * config.capacity_factor

        if sediment > capacity:
            deposit = (sediment - capacity) * config.deposition_rate
            heights[iz, ix] += deposit
            sediment -= deposit
        else:
            # Never carve more than the terrain above zero holds
            erosion = min((capacity - sediment) * config.erosion_rate, max(current, 0.0))
            heights[iz, ix] -= erosion
            sediment += erosion

        water *= 1.0 - config.evaporation_rate
        if water < config.min_water:
            break

    return steps


def erode(
    heights: NDArray[np.float64],
    rng: np.random.Generator,
    config: ErosionConfig | None = None,
    droplets: int | None = None,
) -> NDArray[np.float64]:
    """Apply hydraulic erosion to a copy of a height grid.

    Args:
        heights: Input heights; never modified.
        rng: Random stream for droplet start positions.
        config: Droplet parameters.
        droplets: Droplet count override; defaults to config.droplet_count.

    Returns:
        New eroded height grid. Zero droplets returns an identical copy.

    Raises:
        InvalidArgumentError: If droplets is negative.
    """
    config = config or ErosionConfig()
    eroded = np.array(heights, dtype=np.float64, copy=True)
    size_z, size_x = eroded.shape
    count = config.droplet_count(size_x) if droplets is None else droplets
    if count < 0:
        raise InvalidArgumentError(f"Droplet count must be non-negative, got {count}")

    total_steps = 0
    for _ in range(count):
        x = float(rng.uniform(0.0, size_x - 1))
        z = float(rng.uniform(0.0, size_z - 1))
        total_steps += simulate_droplet(eroded, x, z, config)

    if count:
        change = np.abs(eroded - heights)
        logger.debug(
            f"Erosion: {count} droplets, {total_steps} steps, "
            f"max change {change.max():.4f}"
        )
    return eroded
