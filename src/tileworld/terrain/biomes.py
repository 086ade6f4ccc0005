"""Biome types, per-biome constants and biome-specific terrain shaping."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from .heightfield import HeightField
from .noise import NoiseKind, sample_grid
from .seeding import derive_seed


class BiomeType(str, Enum):
    """Biome assigned to a whole tile."""

    OCEAN = "ocean"
    PLAINS = "plains"
    FOREST = "forest"
    SWAMP = "swamp"
    DESERT = "desert"
    MESA = "mesa"
    JUNGLE = "jungle"
    TUNDRA = "tundra"
    TAIGA = "taiga"
    ARCTIC = "arctic"
    MOUNTAIN = "mountain"
    VOLCANIC = "volcanic"
    CRYSTAL = "crystal"
    ETHEREAL = "ethereal"
    CORRUPTED = "corrupted"


@dataclass(frozen=True)
class BiomeProfile:
    """Static constants for one biome."""

    grass_density: float
    tree_density: float
    flower_density: float
    bush_density: float
    default_harmony: float
    descriptor: str
    water_temperature_offset: float = 0.0
    water_clarity_factor: float = 1.0


BIOME_PROFILES: dict[BiomeType, BiomeProfile] = {
    BiomeType.OCEAN: BiomeProfile(0.0, 0.0, 0.0, 0.0, 1.0, "endless waters"),
    BiomeType.PLAINS: BiomeProfile(0.9, 0.3, 0.8, 0.5, 1.0, "rolling meadows"),
    BiomeType.FOREST: BiomeProfile(0.7, 1.0, 0.6, 0.7, 1.1, "ancient woodlands"),
    BiomeType.SWAMP: BiomeProfile(
        0.6, 0.6, 0.4, 0.6, 0.9, "murky wetlands", water_clarity_factor=0.5
    ),
    BiomeType.DESERT: BiomeProfile(
        0.1, 0.0, 0.0, 0.1, 0.8, "shifting sands", water_temperature_offset=0.2
    ),
    BiomeType.MESA: BiomeProfile(
        0.3, 0.0, 0.3, 0.4, 0.9, "weathered plateaus", water_temperature_offset=0.15
    ),
    BiomeType.JUNGLE: BiomeProfile(
        0.8, 1.0, 0.7, 0.7, 1.1, "verdant canopy", water_temperature_offset=0.15
    ),
    BiomeType.TUNDRA: BiomeProfile(
        0.4, 0.0, 0.2, 0.3, 0.9, "frozen plains", water_temperature_offset=-0.3
    ),
    BiomeType.TAIGA: BiomeProfile(
        0.5, 0.8, 0.2, 0.4, 1.0, "snowbound pinewoods", water_temperature_offset=-0.2
    ),
    BiomeType.ARCTIC: BiomeProfile(
        0.1, 0.0, 0.0, 0.0, 0.9, "ice-locked wilderness", water_temperature_offset=-0.4
    ),
    BiomeType.MOUNTAIN: BiomeProfile(
        0.3, 0.2, 0.3, 0.4, 1.0, "towering peaks", water_temperature_offset=-0.1
    ),
    BiomeType.VOLCANIC: BiomeProfile(
        0.1, 0.0, 0.0, 0.0, 0.7, "fire-scorched lands", water_temperature_offset=0.3
    ),
    BiomeType.CRYSTAL: BiomeProfile(0.5, 0.2, 0.9, 0.3, 1.3, "crystalline fields"),
    BiomeType.ETHEREAL: BiomeProfile(1.0, 0.4, 1.2, 0.4, 1.6, "shimmering realm"),
    BiomeType.CORRUPTED: BiomeProfile(
        0.2, 0.1, 0.1, 0.2, 0.4, "tainted wasteland", water_clarity_factor=0.4
    ),
}


def biome_profile(biome: BiomeType) -> BiomeProfile:
    return BIOME_PROFILES[biome]


# Shapers take (heights, world x grid, world z grid, field, seed)
Shaper = Callable[
    [NDArray[np.float64], NDArray[np.float64], NDArray[np.float64], HeightField, int],
    NDArray[np.float64],
]


def _shape_ocean(heights, xs, zs, field, seed):
    flattened = np.minimum(heights, field.sea_level + 0.5)
    waves = np.sin(xs * 0.15) * np.cos(zs * 0.15) * 0.2
    return flattened + waves


def _shape_mountain(heights, xs, zs, field, seed):
    ridges = sample_grid(
        NoiseKind.RIDGED, xs, zs, octaves=3, frequency=0.03, seed=derive_seed(seed, "peaks")
    )
    peaks = np.maximum(ridges, 0.0) ** 2 * 8.0
    return heights * 2.0 + peaks


def _shape_corrupted(heights, xs, zs, field, seed):
    cells = sample_grid(
        NoiseKind.CELLULAR, xs, zs, octaves=1, frequency=0.2, seed=derive_seed(seed, "spikes")
    )
    spikes = np.where(cells > 0.6, (cells - 0.6) * 15.0, 0.0)
    discord = np.sin(xs * 0.5) * np.cos(zs * 0.5) * 0.3
    return heights + spikes + discord


def _shape_volcanic(heights, xs, zs, field, seed):
    cx, cz = field.coordinate.center(field.tile_size)
    radius = field.tile_size * 0.3
    r2 = ((xs - cx) ** 2 + (zs - cz) ** 2) / radius**2
    cone = 25.0 * np.exp(-r2)
    crater = 12.0 * np.exp(-r2 / 0.09)
    return heights + cone - crater


def _shape_swamp(heights, xs, zs, field, seed):
    smoothed = ndimage.gaussian_filter(heights, sigma=2.0, mode="nearest")
    flattened = field.sea_level + (smoothed - field.sea_level) * 0.3
    mounds = sample_grid(
        NoiseKind.LAYERED, xs, zs, octaves=2, frequency=0.08, seed=derive_seed(seed, "mounds")
    )
    return flattened + np.maximum(mounds, 0.0) ** 2 * 1.5


def _shape_crystal(heights, xs, zs, field, seed):
    spires = sample_grid(
        NoiseKind.FRACTAL, xs, zs, octaves=2, frequency=0.06, seed=derive_seed(seed, "spires")
    )
    lift = np.where(spires > 0.4, (spires - 0.4) / 0.6 * 12.0, 0.0)
    return heights + lift


BIOME_SHAPERS: dict[BiomeType, Shaper] = {
    BiomeType.OCEAN: _shape_ocean,
    BiomeType.MOUNTAIN: _shape_mountain,
    BiomeType.CORRUPTED: _shape_corrupted,
    BiomeType.VOLCANIC: _shape_volcanic,
    BiomeType.SWAMP: _shape_swamp,
    BiomeType.CRYSTAL: _shape_crystal,
}


def shape_terrain(field: HeightField, biome: BiomeType, seed: int) -> HeightField:
    """Apply the biome's terrain modifier once.

    Biomes without a shaper return the field unchanged.

    Args:
        field: Eroded height field.
        biome: Tile biome.
        seed: World seed.

    Returns:
        New HeightField; the input is not modified.
    """
    shaper = BIOME_SHAPERS.get(biome)
    if shaper is None:
        return field
    xs, zs = field.world_grid()
    return field.with_heights(shaper(field.heights.copy(), xs, zs, field, seed))
