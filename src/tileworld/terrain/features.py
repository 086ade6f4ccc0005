"""Points of interest: probabilistic, constraint-checked feature placement.

Each feature type common to the tile's biome gets one spawn roll whose
odds depend on harmony and biome. Successful rolls search a few random
cells for a site that satisfies the type's height, slope and water rules
and keeps clear of features already placed. Harmony extremes and a rare
coordinate hash add special and unique features on top.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

import numpy as np
from numpy.typing import NDArray

from ..types import TileCoordinate
from .biomes import BiomeType, biome_profile
from .config import FeatureConfig
from .heightfield import HeightField, compute_slope
from .seeding import tile_seed

logger = logging.getLogger(__name__)


class FeatureType(str, Enum):
    """Point-of-interest categories."""

    SETTLEMENT = "settlement"
    GARDEN = "garden"
    SHRINE = "shrine"
    TOWER = "tower"
    CAVE = "cave"
    SPRING = "spring"
    BRIDGE = "bridge"
    CORRUPTION = "corruption"
    CRYSTAL = "crystal"
    PORTAL = "portal"
    RUIN = "ruin"
    MONUMENT = "monument"


F = FeatureType

BIOME_FEATURES: dict[BiomeType, tuple[FeatureType, ...]] = {
    BiomeType.OCEAN: (F.BRIDGE, F.RUIN, F.CRYSTAL),
    BiomeType.PLAINS: (F.SETTLEMENT, F.GARDEN, F.SHRINE, F.RUIN, F.SPRING, F.BRIDGE),
    BiomeType.FOREST: (F.SHRINE, F.SPRING, F.RUIN, F.GARDEN, F.SETTLEMENT),
    BiomeType.SWAMP: (F.RUIN, F.SPRING, F.BRIDGE, F.CORRUPTION),
    BiomeType.DESERT: (F.RUIN, F.SETTLEMENT, F.CRYSTAL, F.PORTAL),
    BiomeType.MESA: (F.CAVE, F.RUIN, F.TOWER),
    BiomeType.JUNGLE: (F.RUIN, F.SHRINE, F.SPRING, F.GARDEN),
    BiomeType.TUNDRA: (F.RUIN, F.CAVE, F.SHRINE),
    BiomeType.TAIGA: (F.SETTLEMENT, F.SHRINE, F.CAVE),
    BiomeType.ARCTIC: (F.CAVE, F.CRYSTAL, F.RUIN),
    BiomeType.MOUNTAIN: (F.TOWER, F.CAVE, F.SHRINE, F.SPRING),
    BiomeType.VOLCANIC: (F.CAVE, F.CRYSTAL, F.PORTAL, F.RUIN),
    BiomeType.CRYSTAL: (F.CRYSTAL, F.PORTAL, F.SHRINE, F.CAVE),
    BiomeType.ETHEREAL: (F.GARDEN, F.SHRINE, F.CRYSTAL, F.PORTAL, F.SPRING),
    BiomeType.CORRUPTED: (F.CORRUPTION, F.RUIN, F.PORTAL, F.TOWER),
}

UNIQUE_FEATURES: dict[str, tuple[str, str]] = {
    "Ancient Monolith": (
        "Memory Resonance, Time Echo",
        "A towering stone structure predating known civilizations, found in the {place}. "
        "Local legends speak of voices from the past.",
    ),
    "Singing Stone": (
        "Harmonic Amplification, Song Storage",
        "A crystalline formation in the {place} that resonates with ethereal melodies "
        "when the wind passes through.",
    ),
    "Harmony Nexus": (
        "Harmony Restoration, Energy Convergence",
        "A convergence point of natural energies in the {place}, where harmony flows "
        "like a visible river.",
    ),
    "Echo Chamber": (
        "Sound Multiplication, Voice Preservation",
        "A natural acoustic phenomenon in the {place} that preserves and replays sounds "
        "from ages past.",
    ),
    "Starfall Site": (
        "Celestial Connection, Meteor Attraction",
        "The impact crater of an ancient celestial visitor in the {place}, still humming "
        "with otherworldly energy.",
    ),
    "Time Rift": (
        "Temporal Distortion, Past Glimpses",
        "A tear in reality within the {place}, where past and present bleed together.",
    ),
    "Memory Crystal": (
        "Memory Storage, Experience Sharing",
        "A massive crystal formation in the {place} that pulses with stored memories "
        "of those who came before.",
    ),
    "Void Anchor": (
        "Reality Stabilization, Void Containment",
        "A mysterious structure in the {place} that seems to hold reality together "
        "against encroaching darkness.",
    ),
}

UNIQUE_FEATURE_TYPES = (F.MONUMENT, F.CRYSTAL, F.SHRINE, F.PORTAL)


@dataclass(frozen=True)
class FeaturePlacement:
    """A placed point of interest."""

    feature_type: FeatureType
    position: tuple[float, float, float]
    cell: tuple[int, int]
    metadata: Mapping[str, str] = field(default_factory=dict)
    special: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


def horizontal_distance(a: tuple[float, float, float], b: tuple[float, float, float]) -> float:
    return math.hypot(a[0] - b[0], a[2] - b[2])


def spawn_probability(feature_type: FeatureType, harmony: float, biome: BiomeType) -> float:
    """Chance that a feature type is attempted on a tile."""
    if feature_type == F.CORRUPTION:
        chance = 0.8 if harmony < 0.5 else 0.1
    elif feature_type in (F.GARDEN, F.SPRING):
        chance = 0.7 if harmony > 1.0 else 0.2
    elif feature_type == F.CRYSTAL:
        chance = 0.6 if harmony > 1.2 or harmony < 0.3 else 0.1
    elif feature_type == F.SHRINE:
        chance = 0.4 if harmony > 0.8 else 0.1
    elif feature_type == F.RUIN:
        chance = 0.2
    elif feature_type == F.PORTAL:
        chance = 0.3 if abs(harmony - 1.0) > 0.5 else 0.05
    elif feature_type == F.SETTLEMENT:
        chance = 0.15 if harmony > 0.6 else 0.05
    elif feature_type == F.TOWER:
        chance = 0.4 if biome == BiomeType.MOUNTAIN else 0.2
    elif feature_type == F.CAVE:
        chance = 0.5 if biome in (BiomeType.MOUNTAIN, BiomeType.MESA) else 0.1
    else:
        chance = 0.3

    if biome == BiomeType.CORRUPTED and feature_type in (F.GARDEN, F.SPRING, F.SHRINE):
        chance *= 0.1
    elif biome == BiomeType.ETHEREAL and feature_type in (F.SHRINE, F.GARDEN, F.CRYSTAL):
        chance *= 2.0
    return min(chance, 1.0)


def _near_water(heights: NDArray[np.float64], ix: int, iz: int, radius: int, level: float) -> bool:
    window = heights[max(0, iz - radius) : iz + radius + 1, max(0, ix - radius) : ix + radius + 1]
    return bool(np.any(window < level))


def is_valid_site(
    feature_type: FeatureType,
    heights: NDArray[np.float64],
    slope: NDArray[np.float64],
    ix: int,
    iz: int,
    config: FeatureConfig,
) -> bool:
    """Per-type terrain rules for a candidate cell."""
    h = heights[iz, ix]
    s = slope[iz, ix]
    if feature_type in (F.SETTLEMENT, F.GARDEN, F.SHRINE):
        return h > 0.0 and s < 0.3
    if feature_type == F.TOWER:
        return h > 5.0 and s < 0.5
    if feature_type == F.CAVE:
        return h > 2.0 and s > 0.4
    if feature_type == F.SPRING:
        return -1.0 < h < 3.0 and s < 0.2
    if feature_type == F.BRIDGE:
        return _near_water(heights, ix, iz, config.water_search_radius, config.bridge_water_height)
    if feature_type == F.CORRUPTION:
        return True
    if feature_type == F.CRYSTAL:
        return h > 0.0
    if feature_type == F.PORTAL:
        return h > 0.0 and s < 0.2
    if feature_type == F.RUIN:
        return h > -2.0
    return h > -1.0 and s < 0.6


def is_clear(
    position: tuple[float, float, float],
    existing: list[FeaturePlacement],
    min_distance: float,
) -> bool:
    return all(horizontal_distance(position, f.position) >= min_distance for f in existing)


def _pick(options: list[str], rng: np.random.Generator) -> str:
    return options[int(rng.integers(0, len(options)))]


def feature_metadata(
    feature_type: FeatureType,
    biome: BiomeType,
    harmony: float,
    rng: np.random.Generator,
) -> dict[str, str]:
    """Provenance plus type-specific descriptive metadata."""
    metadata = {"biome": biome.value, "harmony_level": f"{harmony:.2f}", "rarity": "Common"}
    if feature_type == F.CRYSTAL:
        if harmony > 1.5:
            crystal = "Harmony Crystal"
        elif harmony < 0.3:
            crystal = "Void Crystal"
        else:
            crystal = _pick(["Quartz", "Amethyst", "Emerald", "Sapphire"], rng)
        metadata["crystal_type"] = crystal
        metadata["resonance"] = f"{harmony:.2f}"
    elif feature_type == F.CORRUPTION:
        metadata["corruption_level"] = f"{max(0.0, 1.0 - harmony):.2f}"
        metadata["spread_rate"] = f"{rng.uniform(0.001, 0.01):.3f}"
    elif feature_type == F.SPRING:
        if biome == BiomeType.ETHEREAL:
            water = "Harmonic Water"
        elif biome == BiomeType.CORRUPTED:
            water = "Tainted Water"
        elif biome == BiomeType.VOLCANIC:
            water = "Mineral Water"
        else:
            water = "Pure Water" if harmony > 1.0 else "Fresh Water"
        metadata["water_type"] = water
        metadata["purity"] = f"{harmony:.2f}"
    elif feature_type == F.SHRINE:
        if harmony > 1.3:
            shrine = "Harmony Shrine"
        elif harmony < 0.5:
            shrine = "Abandoned Shrine"
        else:
            shrine = _pick(["Echo Shrine", "Memory Shrine", "Song Shrine", "Wind Shrine"], rng)
        metadata["shrine_type"] = shrine
        metadata["power"] = f"{harmony:.2f}"
    elif feature_type == F.SETTLEMENT:
        metadata["population_type"] = {
            BiomeType.PLAINS: "Farmers",
            BiomeType.FOREST: "Foresters",
            BiomeType.MOUNTAIN: "Miners",
            BiomeType.DESERT: "Nomads",
            BiomeType.ETHEREAL: "Songweavers",
            BiomeType.OCEAN: "Fishers",
        }.get(biome, "Travelers")
        if harmony > 1.2:
            metadata["size"] = "Large"
        elif harmony > 0.8:
            metadata["size"] = "Medium"
        else:
            metadata["size"] = "Small"
    elif feature_type == F.RUIN:
        metadata["age"] = _pick(["Ancient", "Old", "Weathered", "Crumbling", "Recent"], rng)
        metadata["civilization"] = {
            BiomeType.DESERT: "Desert Empire",
            BiomeType.MOUNTAIN: "Mountain Kingdom",
            BiomeType.FOREST: "Forest Realm",
            BiomeType.ETHEREAL: "Songweaver Civilization",
            BiomeType.CORRUPTED: "Fallen Empire",
        }.get(biome, "Unknown Civilization")
    return metadata


def place_feature(
    feature_type: FeatureType,
    height_field: HeightField,
    slope: NDArray[np.float64],
    existing: list[FeaturePlacement],
    rng: np.random.Generator,
    config: FeatureConfig,
) -> tuple[int, int] | None:
    """Search random cells for a valid, clear site."""
    res = height_field.resolution
    margin = max(0, min(config.placement_margin, res // 4))
    for _ in range(config.placement_attempts):
        ix = int(rng.integers(margin, res - margin))
        iz = int(rng.integers(margin, res - margin))
        if not is_valid_site(feature_type, height_field.heights, slope, ix, iz, config):
            continue
        if is_clear(height_field.cell_position(ix, iz), existing, config.min_distance):
            return (ix, iz)
    return None


def find_open_area(
    height_field: HeightField,
    existing: list[FeaturePlacement],
    rng: np.random.Generator,
    config: FeatureConfig,
) -> tuple[int, int] | None:
    """Dry cell with nothing within open_area_radius, or None."""
    res = height_field.resolution
    margin = max(0, min(config.open_area_margin, res // 4))
    for _ in range(config.open_area_attempts):
        ix = int(rng.integers(margin, res - margin))
        iz = int(rng.integers(margin, res - margin))
        position = height_field.cell_position(ix, iz)
        if position[1] > 0.0 and is_clear(position, existing, config.open_area_radius):
            return (ix, iz)
    return None


def spawn_special_features(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    seed: int,
    existing: list[FeaturePlacement],
    rng: np.random.Generator,
    config: FeatureConfig,
) -> list[FeaturePlacement]:
    """Harmony-extreme and coordinate-unique features.

    Args:
        height_field: Final height field for the tile.
        biome: Tile biome.
        harmony: Harmony at generation time.
        seed: World seed, for the unique-feature hash.
        existing: Features already on the tile.
        rng: Random stream.
        config: Feature parameters.

    Returns:
        Special features placed, each clear of existing and of each other.
    """
    placed = list(existing)
    specials = []

    def add(feature_type: FeatureType, metadata: dict[str, str]) -> None:
        cell = find_open_area(height_field, placed, rng, config)
        if cell is None:
            logger.debug(f"No open area for {metadata.get('special_type', feature_type.value)}")
            return
        feature = FeaturePlacement(
            feature_type=feature_type,
            position=height_field.cell_position(*cell),
            cell=cell,
            metadata=metadata,
            special=True,
        )
        placed.append(feature)
        specials.append(feature)

    if harmony > config.celestial_harmony and rng.random() < config.celestial_probability:
        add(
            F.GARDEN,
            {
                "special_type": "Celestial Convergence",
                "harmony_bonus": "0.5",
                "rarity": "Legendary",
                "biome": biome.value,
                "harmony_level": f"{harmony:.2f}",
            },
        )

    if harmony < config.nexus_harmony and rng.random() < config.nexus_probability:
        add(
            F.CORRUPTION,
            {
                "special_type": "Corruption Nexus",
                "corruption_radius": "20.0",
                "rarity": "Rare",
                "biome": biome.value,
                "harmony_level": f"{harmony:.2f}",
            },
        )

    coordinate = height_field.coordinate
    if is_unique_tile(seed, coordinate, config.unique_modulus):
        name = _pick(sorted(UNIQUE_FEATURES), rng)
        powers, lore = UNIQUE_FEATURES[name]
        feature_type = UNIQUE_FEATURE_TYPES[int(rng.integers(0, len(UNIQUE_FEATURE_TYPES)))]
        add(
            feature_type,
            {
                "unique_name": name,
                "coordinate_signature": f"{coordinate.x},{coordinate.z}",
                "rarity": "Unique",
                "biome": biome.value,
                "harmony_level": f"{harmony:.2f}",
                "special_powers": powers,
                "lore": lore.format(place=biome_profile(biome).descriptor),
            },
        )
    return specials


def is_unique_tile(seed: int, coordinate: TileCoordinate, modulus: int) -> bool:
    """Whether the tile hosts a unique feature; about one in modulus tiles does."""
    return tile_seed(seed, coordinate, "unique") % modulus == 0


def spawn_features(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    seed: int,
    rng: np.random.Generator,
    config: FeatureConfig | None = None,
) -> list[FeaturePlacement]:
    """Place points of interest for a tile.

    Args:
        height_field: Final height field for the tile.
        biome: Tile biome.
        harmony: Harmony at generation time.
        seed: World seed.
        rng: Random stream.
        config: Feature parameters.

    Returns:
        Regular features (at most max_features) followed by specials.
        Every pair is at least min_distance apart.
    """
    config = config or FeatureConfig()
    slope = compute_slope(height_field.heights)
    features: list[FeaturePlacement] = []

    for feature_type in BIOME_FEATURES[biome]:
        if len(features) >= config.max_features:
            break
        if rng.random() >= spawn_probability(feature_type, harmony, biome):
            continue
        cell = place_feature(feature_type, height_field, slope, features, rng, config)
        if cell is None:
            logger.debug(f"No valid site for {feature_type.value} on {height_field.coordinate}")
            continue
        features.append(
            FeaturePlacement(
                feature_type=feature_type,
                position=height_field.cell_position(*cell),
                cell=cell,
                metadata=feature_metadata(feature_type, biome, harmony, rng),
            )
        )

    specials = spawn_special_features(height_field, biome, harmony, seed, features, rng, config)
    logger.debug(
        f"Features {height_field.coordinate}: {len(features)} regular, {len(specials)} special"
    )
    return features + specials
