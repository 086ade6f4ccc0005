"""Height field container and noise-based height synthesis."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..types import TileCoordinate
from .config import HeightConfig
from .noise import NoiseKind, amplitude_span, sample_grid
from .seeding import derive_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeightField:
    """Square height grid for one tile.

    Row index is z, column index is x: ``heights[iz, ix]``.
    """

    coordinate: TileCoordinate
    heights: NDArray[np.float64]
    sea_level: float = 0.0
    tile_size: float = 100.0

    @property
    def resolution(self) -> int:
        return int(self.heights.shape[0])

    @property
    def spacing(self) -> float:
        """World units between adjacent cells."""
        return self.tile_size / (self.resolution - 1)

    def world_x(self) -> NDArray[np.float64]:
        """World x coordinate of each column."""
        ox, _ = self.coordinate.world_offset(self.tile_size)
        return ox + np.arange(self.resolution, dtype=np.float64) * self.spacing

    def world_z(self) -> NDArray[np.float64]:
        """World z coordinate of each row."""
        _, oz = self.coordinate.world_offset(self.tile_size)
        return oz + np.arange(self.resolution, dtype=np.float64) * self.spacing

    def world_grid(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Per-cell world (x, z) grids shaped like heights."""
        xs, zs = np.meshgrid(self.world_x(), self.world_z())
        return xs, zs

    def in_bounds(self, ix: int, iz: int) -> bool:
        return 0 <= ix < self.resolution and 0 <= iz < self.resolution

    def height_at(self, ix: int, iz: int) -> float:
        """Height at a cell, sea level outside the grid."""
        if not self.in_bounds(ix, iz):
            return self.sea_level
        return float(self.heights[iz, ix])

    def cell_position(self, ix: float, iz: float) -> tuple[float, float, float]:
        """World-space (x, y, z) for a (possibly fractional) cell index."""
        ox, oz = self.coordinate.world_offset(self.tile_size)
        y = self.height_at(int(round(ix)), int(round(iz)))
        return (ox + ix * self.spacing, y, oz + iz * self.spacing)

    def with_heights(self, heights: NDArray[np.float64]) -> "HeightField":
        """Copy of this field carrying new heights."""
        return HeightField(
            coordinate=self.coordinate,
            heights=heights,
            sea_level=self.sea_level,
            tile_size=self.tile_size,
        )


def shape_heights(raw: NDArray[np.float64], config: HeightConfig) -> NDArray[np.float64]:
    """Apply the power curve that flattens lowlands and sharpens peaks.

    Args:
        raw: Octave-summed noise.
        config: Height parameters (span, exponent and output range).

    Returns:
        Heights in [height_min, height_min + height_range].
    """
    span = amplitude_span(config.amplitude, config.persistence, config.octaves)
    if span <= 0:
        normalized = np.full_like(raw, 0.5)
    else:
        normalized = np.clip((raw + span) / (2.0 * span), 0.0, 1.0)
    curved = normalized**config.curve_exponent
    return curved * config.height_range + config.height_min


def synthesize_height_field(
    seed: int,
    coordinate: TileCoordinate,
    config: HeightConfig | None = None,
) -> HeightField:
    """Generate the raw (uneroded) height field for a tile.

    Heights are sampled at world positions, so adjacent tiles share
    identical edge rows.

    Args:
        seed: World seed.
        coordinate: Tile to synthesize.
        config: Height parameters.

    Returns:
        HeightField of config.resolution squared cells.
    """
    config = config or HeightConfig()
    empty = HeightField(
        coordinate=coordinate,
        heights=np.zeros((config.resolution, config.resolution), dtype=np.float64),
        sea_level=config.sea_level,
        tile_size=config.tile_size,
    )
    xs, zs = empty.world_grid()
    raw = sample_grid(
        NoiseKind.LAYERED,
        xs,
        zs,
        octaves=config.octaves,
        frequency=config.frequency,
        amplitude=config.amplitude,
        lacunarity=config.lacunarity,
        persistence=config.persistence,
        seed=derive_seed(seed, "height"),
    )
    heights = shape_heights(raw, config)
    logger.debug(
        f"Height synthesis {coordinate}: range [{heights.min():.2f}, {heights.max():.2f}]"
    )
    return empty.with_heights(heights)


def compute_slope(heights: NDArray[np.float64]) -> NDArray[np.float64]:
    """Compute slope magnitude from a height grid.

    Args:
        heights: Height grid.

    Returns:
        Gradient magnitude per cell, in height units per cell.
    """
    dz, dx = np.gradient(heights)
    return np.sqrt(dx**2 + dz**2)
