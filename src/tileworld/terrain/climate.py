"""Climate fields and biome classification."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .biomes import BiomeType
from .config import SEASON_TEMPERATURE_MODIFIERS, ClimateConfig, Season
from .heightfield import HeightField
from .noise import NoiseKind, sample, sample_grid
from .seeding import derive_seed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClimateField:
    """Temperature in [-1, 1] and moisture in [0, 1], co-indexed with heights."""

    temperature: NDArray[np.float64]
    moisture: NDArray[np.float64]


@dataclass(frozen=True)
class BiomeAssignment:
    """The biome chosen for a tile and the tile means that chose it."""

    biome: BiomeType
    mean_temperature: float
    mean_moisture: float
    mean_elevation: float
    adjusted_temperature: float


def compute_temperature(
    field: HeightField,
    seed: int,
    config: ClimateConfig,
    season: Season,
) -> NDArray[np.float64]:
    """Temperature from latitude, noise and season, clamped to [-1, 1]."""
    xs, zs = field.world_grid()
    noise = sample_grid(
        NoiseKind.LAYERED,
        xs,
        zs,
        octaves=3,
        frequency=config.temperature_frequency,
        seed=derive_seed(seed, "temperature"),
    )
    latitude = np.abs(zs) * config.latitude_rate
    temperature = (
        1.0
        - latitude
        + noise * config.temperature_noise_weight
        + SEASON_TEMPERATURE_MODIFIERS[Season(season)]
    )
    return np.clip(temperature, -1.0, 1.0)


def compute_moisture(field: HeightField, seed: int, config: ClimateConfig) -> NDArray[np.float64]:
    """Moisture from noise, drier with height, wetter near a water proxy."""
    xs, zs = field.world_grid()
    base = sample_grid(
        NoiseKind.LAYERED,
        xs,
        zs,
        octaves=4,
        frequency=config.moisture_frequency,
        seed=derive_seed(seed, "moisture"),
    )
    base = (base + 1.0) * 0.5

    # Noise stands in for distance to water, which is not known yet
    proximity = sample_grid(
        NoiseKind.LAYERED,
        xs,
        zs,
        octaves=1,
        frequency=config.proximity_frequency,
        seed=derive_seed(seed, "proximity"),
    )
    moisture = (
        base
        - (field.heights / config.elevation_scale) * config.elevation_penalty
        + np.maximum(proximity, 0.0) * config.proximity_weight
    )
    return np.clip(moisture, 0.0, 1.0)


def compute_climate(
    field: HeightField,
    seed: int,
    config: ClimateConfig | None = None,
    season: Season | None = None,
) -> ClimateField:
    """Compute temperature and moisture grids for a tile.

    Args:
        field: Eroded height field.
        seed: World seed.
        config: Climate parameters.
        season: Season modifier; defaults to config.season.

    Returns:
        ClimateField with the field's resolution.
    """
    config = config or ClimateConfig()
    season = season or config.season
    return ClimateField(
        temperature=compute_temperature(field, seed, config, season),
        moisture=compute_moisture(field, seed, config),
    )


def classify_climate(
    adjusted_temperature: float,
    moisture: float,
    elevation: float,
    config: ClimateConfig,
) -> BiomeType:
    """Temperature/moisture decision table.

    Args:
        adjusted_temperature: Temperature after elevation lapse.
        moisture: Moisture in [0, 1].
        elevation: Mean height, used to lift dry hot tiles into mesa.
        config: Climate thresholds.

    Returns:
        The table's biome.
    """
    if adjusted_temperature < -0.3:
        return BiomeType.ARCTIC
    if adjusted_temperature < 0.2:
        return BiomeType.TUNDRA if moisture < 0.3 else BiomeType.TAIGA
    if adjusted_temperature < 0.6:
        if moisture < 0.3:
            return BiomeType.PLAINS
        if moisture < 0.7:
            return BiomeType.FOREST
        return BiomeType.SWAMP
    if moisture < 0.3:
        return BiomeType.MESA if elevation > config.mesa_height else BiomeType.DESERT
    if moisture < 0.6:
        return BiomeType.PLAINS
    return BiomeType.JUNGLE


def assign_biome(
    field: HeightField,
    climate: ClimateField,
    seed: int,
    harmony: float = 1.0,
    dissonance: float = 0.0,
    config: ClimateConfig | None = None,
) -> BiomeAssignment:
    """Choose one biome for the tile from its mean climate.

    Rules are checked in order: ocean depth, metabolism balance, mountain
    height, rare cellular anomalies, then the climate table.

    Args:
        field: Eroded height field.
        climate: Climate grids for the same tile.
        seed: World seed.
        harmony: Harmony at generation time.
        dissonance: Dissonance at generation time.
        config: Climate thresholds.

    Returns:
        BiomeAssignment for the tile.
    """
    config = config or ClimateConfig()
    mean_elevation = float(np.mean(field.heights))
    mean_temperature = float(np.mean(climate.temperature))
    mean_moisture = float(np.mean(climate.moisture))
    adjusted = mean_temperature - (mean_elevation / config.lapse_scale) * 0.5
    balance = harmony - dissonance

    if mean_elevation < config.ocean_depth:
        biome = BiomeType.OCEAN
    elif balance < config.corrupted_balance:
        biome = BiomeType.CORRUPTED
    elif balance > config.ethereal_balance:
        biome = BiomeType.ETHEREAL
    elif mean_elevation > config.mountain_height:
        biome = BiomeType.MOUNTAIN
    else:
        anomaly = sample(
            NoiseKind.CELLULAR,
            float(field.coordinate.x),
            float(field.coordinate.z),
            octaves=1,
            frequency=1.0,
            seed=derive_seed(seed, "anomaly"),
        )
        if abs(anomaly) > config.anomaly_threshold:
            biome = BiomeType.VOLCANIC if adjusted >= 0.6 else BiomeType.CRYSTAL
        else:
            biome = classify_climate(adjusted, mean_moisture, mean_elevation, config)

    logger.debug(
        f"Biome {field.coordinate}: {biome.value} "
        f"(t={mean_temperature:.2f}, adj={adjusted:.2f}, m={mean_moisture:.2f}, "
        f"h={mean_elevation:.2f})"
    )
    return BiomeAssignment(
        biome=biome,
        mean_temperature=mean_temperature,
        mean_moisture=mean_moisture,
        mean_elevation=mean_elevation,
        adjusted_temperature=adjusted,
    )
