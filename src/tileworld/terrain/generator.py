"""Tile generation orchestration."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..exceptions import TileGenerationError, WorldGenError
from ..metabolism import MetabolismSnapshot
from ..types import TileCoordinate
from .biomes import shape_terrain
from .caves import BoundingBox, CaveSystem, generate_caves
from .climate import BiomeAssignment, ClimateField, assign_biome, compute_climate
from .config import Season, TerrainConfig
from .erosion import erode
from .features import FeaturePlacement, spawn_features
from .heightfield import HeightField, synthesize_height_field
from .hydrology import RiverNetwork, generate_rivers
from .seeding import tile_rng, validate_seed
from .vegetation import VegetationMap, generate_vegetation
from .water import WaterBody, biome_water_features, detect_water_bodies

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileBundle:
    """Everything generated for one tile. Arrays are read-only."""

    coordinate: TileCoordinate
    seed: int
    metabolism: MetabolismSnapshot
    season: Season
    height_field: HeightField
    climate: ClimateField
    biome: BiomeAssignment
    water_bodies: tuple[WaterBody, ...]
    rivers: tuple[RiverNetwork, ...]
    caves: tuple[CaveSystem, ...]
    vegetation: VegetationMap
    features: tuple[FeaturePlacement, ...]

    @property
    def resolution(self) -> int:
        return self.height_field.resolution


def _freeze(array: NDArray[np.float64]) -> NDArray[np.float64]:
    array.flags.writeable = False
    return array


def generate_tile(
    seed: int,
    coordinate: TileCoordinate,
    metabolism: MetabolismSnapshot | None = None,
    config: TerrainConfig | None = None,
    season: Season | None = None,
) -> TileBundle:
    """Generate a complete tile.

    The result depends only on the arguments: the same seed, coordinate,
    snapshot, config and season always produce an identical bundle.

    Args:
        seed: World seed, 0 <= seed < 2**64.
        coordinate: Tile to generate.
        metabolism: Harmony/dissonance snapshot; balanced when omitted.
        config: Terrain configuration.
        season: Season; defaults to config.climate.season.

    Returns:
        TileBundle with every layer of the tile.

    Raises:
        InvalidArgumentError: If seed or a parameter is malformed.
        TileGenerationError: If the pipeline fails numerically.
    """
    seed = validate_seed(seed)
    config = config or TerrainConfig()
    metabolism = metabolism or MetabolismSnapshot.balanced()
    season = Season(season or config.climate.season)
    harmony = metabolism.harmony

    logger.debug(
        f"Generating tile {coordinate} seed={seed} harmony={harmony:.2f} "
        f"dissonance={metabolism.dissonance:.2f}"
    )

    try:
        # Stage A: Height synthesis
        logger.debug("Stage A: Synthesizing heights...")
        raw = synthesize_height_field(seed, coordinate, config.height)

        # Stage B: Erosion
        logger.debug("Stage B: Eroding...")
        eroded = raw.with_heights(
            erode(raw.heights, tile_rng(seed, coordinate, "erosion"), config.erosion)
        )

        # Stage C: Climate, biome and biome shaping
        logger.debug("Stage C: Classifying climate and biome...")
        climate = compute_climate(eroded, seed, config.climate, season)
        biome = assign_biome(
            eroded, climate, seed, harmony, metabolism.dissonance, config.climate
        )
        field = shape_terrain(eroded, biome.biome, seed)
        if not np.all(np.isfinite(field.heights)):
            raise TileGenerationError(f"Non-finite heights on tile {coordinate}")
        field = field.with_heights(_freeze(field.heights))

        # Stage D: Hydrology
        logger.debug("Stage D: Computing hydrology...")
        water_rng = tile_rng(seed, coordinate, "water")
        water = detect_water_bodies(field, biome.biome, config.hydrology)
        water += biome_water_features(field, biome.biome, water_rng, config.hydrology)
        rivers = generate_rivers(field, tile_rng(seed, coordinate, "rivers"), config.hydrology)
        bounds = BoundingBox.for_tile(
            coordinate, field.tile_size, config.caves.depth_min, config.caves.depth_max
        )
        caves = generate_caves(bounds, tile_rng(seed, coordinate, "caves"), config.caves)

        # Stage E: Placement
        logger.debug("Stage E: Placing vegetation and features...")
        vegetation = generate_vegetation(
            field,
            biome.biome,
            harmony,
            seed,
            tile_rng(seed, coordinate, "vegetation"),
            config.vegetation,
            season,
        )
        _freeze(vegetation.grass_density)
        features = spawn_features(
            field,
            biome.biome,
            harmony,
            seed,
            tile_rng(seed, coordinate, "features"),
            config.features,
        )
    except WorldGenError:
        raise
    except (ArithmeticError, ValueError, IndexError) as exc:
        raise TileGenerationError(f"Tile {coordinate} failed: {exc}") from exc

    _freeze(climate.temperature)
    _freeze(climate.moisture)

    bundle = TileBundle(
        coordinate=coordinate,
        seed=seed,
        metabolism=metabolism,
        season=season,
        height_field=field,
        climate=climate,
        biome=biome,
        water_bodies=tuple(water),
        rivers=tuple(rivers),
        caves=tuple(caves),
        vegetation=vegetation,
        features=tuple(features),
    )
    _log_tile_stats(bundle)
    return bundle


def _log_tile_stats(bundle: TileBundle) -> None:
    """Log tile generation statistics."""
    heights = bundle.height_field.heights
    logger.info(
        f"Tile {bundle.coordinate}: {bundle.biome.biome.value}, "
        f"heights [{heights.min():.1f}, {heights.max():.1f}], "
        f"{len(bundle.water_bodies)} water, {len(bundle.rivers)} rivers, "
        f"{len(bundle.caves)} caves, {len(bundle.vegetation.instances)} plants, "
        f"{len(bundle.features)} features"
    )
