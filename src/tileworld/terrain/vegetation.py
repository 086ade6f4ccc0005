"""Vegetation placement: grass density, trees, flower clusters and bushes."""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

import numpy as np
from numpy.typing import NDArray

from .biomes import BiomeType, biome_profile
from .config import Season, VegetationConfig
from .heightfield import HeightField, compute_slope
from .noise import NoiseKind, sample_grid
from .seeding import derive_seed

logger = logging.getLogger(__name__)


class VegetationKind(str, Enum):
    """Vegetation instance categories."""

    TREE = "tree"
    FLOWER_CLUSTER = "flower_cluster"
    BUSH = "bush"


class TreeSpecies(str, Enum):
    OAK = "oak"
    PINE = "pine"
    BIRCH = "birch"
    WILLOW = "willow"
    CRYSTAL_TREE = "crystal_tree"
    CORRUPTED_TREE = "corrupted_tree"
    HARMONY_TREE = "harmony_tree"
    ANCIENT_TREE = "ancient_tree"


class FlowerSpecies(str, Enum):
    WILDFLOWER = "wildflower"
    HARMONY_BLOSSOM = "harmony_blossom"
    VOID_FLOWER = "void_flower"
    CRYSTAL_BLOOM = "crystal_bloom"
    ECHO_FLOWER = "echo_flower"
    SUN_BURST = "sun_burst"
    MOON_PETAL = "moon_petal"


class BushSpecies(str, Enum):
    BERRY = "berry"
    THORN = "thorn"
    HERB = "herb"
    LUMINOUS = "luminous"
    CRYSTAL = "crystal"
    HARMONY = "harmony"


@dataclass(frozen=True)
class TreeTraits:
    default_height: float
    preferred_biomes: frozenset[BiomeType]
    rarity: str = "Common"


TREE_TRAITS: dict[TreeSpecies, TreeTraits] = {
    TreeSpecies.OAK: TreeTraits(
        12.0, frozenset({BiomeType.PLAINS, BiomeType.FOREST, BiomeType.JUNGLE})
    ),
    TreeSpecies.PINE: TreeTraits(
        18.0,
        frozenset({BiomeType.FOREST, BiomeType.MOUNTAIN, BiomeType.TUNDRA, BiomeType.TAIGA}),
    ),
    TreeSpecies.BIRCH: TreeTraits(
        10.0, frozenset({BiomeType.PLAINS, BiomeType.FOREST, BiomeType.TAIGA})
    ),
    TreeSpecies.WILLOW: TreeTraits(
        8.0, frozenset({BiomeType.SWAMP, BiomeType.FOREST, BiomeType.JUNGLE})
    ),
    TreeSpecies.CRYSTAL_TREE: TreeTraits(
        15.0, frozenset({BiomeType.CRYSTAL, BiomeType.ETHEREAL}), "Rare"
    ),
    TreeSpecies.CORRUPTED_TREE: TreeTraits(14.0, frozenset({BiomeType.CORRUPTED}), "Rare"),
    TreeSpecies.HARMONY_TREE: TreeTraits(
        20.0, frozenset({BiomeType.ETHEREAL, BiomeType.PLAINS}), "Rare"
    ),
    TreeSpecies.ANCIENT_TREE: TreeTraits(
        25.0, frozenset({BiomeType.FOREST, BiomeType.ETHEREAL}), "Legendary"
    ),
}

FLOWER_HARMONY_EFFECT: dict[FlowerSpecies, float] = {
    FlowerSpecies.WILDFLOWER: 0.05,
    FlowerSpecies.HARMONY_BLOSSOM: 0.3,
    FlowerSpecies.VOID_FLOWER: -0.2,
    FlowerSpecies.CRYSTAL_BLOOM: 0.4,
    FlowerSpecies.ECHO_FLOWER: 0.15,
    FlowerSpecies.SUN_BURST: 0.2,
    FlowerSpecies.MOON_PETAL: 0.1,
}

FLOWER_BLOOM_SEASONS: dict[FlowerSpecies, frozenset[Season]] = {
    FlowerSpecies.WILDFLOWER: frozenset({Season.SPRING, Season.SUMMER}),
    FlowerSpecies.HARMONY_BLOSSOM: frozenset({Season.SPRING, Season.SUMMER, Season.AUTUMN}),
    FlowerSpecies.VOID_FLOWER: frozenset({Season.AUTUMN, Season.WINTER}),
    FlowerSpecies.CRYSTAL_BLOOM: frozenset(Season),
    FlowerSpecies.ECHO_FLOWER: frozenset({Season.SUMMER, Season.AUTUMN}),
    FlowerSpecies.SUN_BURST: frozenset({Season.SUMMER}),
    FlowerSpecies.MOON_PETAL: frozenset({Season.AUTUMN, Season.WINTER}),
}

# Ordinary flowers, picked by what is in bloom
COMMON_FLOWERS = (
    FlowerSpecies.WILDFLOWER,
    FlowerSpecies.ECHO_FLOWER,
    FlowerSpecies.SUN_BURST,
    FlowerSpecies.MOON_PETAL,
)

EDIBLE_BUSHES = frozenset({BushSpecies.BERRY, BushSpecies.HERB})


@dataclass(frozen=True)
class VegetationInstance:
    """One placed plant."""

    kind: VegetationKind
    species: str
    position: tuple[float, float, float]
    rotation: float
    scale: float
    attributes: Mapping[str, float] = field(default_factory=dict)
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Instances live in cached tiles; expose read-only views
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class VegetationMap:
    """All vegetation for one tile."""

    grass_density: NDArray[np.float64]
    trees: tuple[VegetationInstance, ...] = ()
    flowers: tuple[VegetationInstance, ...] = ()
    bushes: tuple[VegetationInstance, ...] = ()

    @property
    def instances(self) -> tuple[VegetationInstance, ...]:
        return self.trees + self.flowers + self.bushes


def harmony_bias(harmony: float) -> float:
    """Count multiplier: 0.5 at no harmony, 1.0 at balance, 1.5 at peak."""
    return 0.5 + 0.5 * harmony


def compute_grass_density(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    seed: int,
    config: VegetationConfig,
) -> NDArray[np.float64]:
    """Per-cell grass density in [0, 1]."""
    xs, zs = height_field.world_grid()
    noise = sample_grid(
        NoiseKind.LAYERED,
        xs,
        zs,
        octaves=2,
        frequency=config.grass_frequency,
        seed=derive_seed(seed, "grass"),
    )
    base = biome_profile(biome).grass_density
    density = (base + noise * config.grass_noise_weight) * harmony_bias(harmony)
    return np.clip(density, 0.0, 1.0)


def _sample_sites(
    target: int,
    resolution: int,
    rng: np.random.Generator,
    config: VegetationConfig,
    accept: Callable[[int, int], bool],
) -> list[tuple[int, int]]:
    """Rejection-sample up to target interior cells passing accept."""
    sites: list[tuple[int, int]] = []
    for _ in range(target * config.attempts_per_instance):
        if len(sites) >= target:
            break
        ix = int(rng.integers(1, resolution - 1))
        iz = int(rng.integers(1, resolution - 1))
        if accept(ix, iz):
            sites.append((ix, iz))
    return sites


def _provenance(biome: BiomeType, harmony: float, rarity: str) -> dict[str, str]:
    return {"biome": biome.value, "harmony_level": f"{harmony:.2f}", "rarity": rarity}


def select_tree_species(biome: BiomeType, harmony: float, rng: np.random.Generator) -> TreeSpecies:
    """Biome-eligible species, overridden at harmony extremes."""
    if harmony > 1.5:
        return TreeSpecies.HARMONY_TREE
    if harmony < 0.3:
        return TreeSpecies.CORRUPTED_TREE
    eligible = [s for s, traits in TREE_TRAITS.items() if biome in traits.preferred_biomes]
    eligible = [
        s for s in eligible if s not in (TreeSpecies.HARMONY_TREE, TreeSpecies.CORRUPTED_TREE)
    ]
    if not eligible:
        return TreeSpecies.OAK
    return eligible[int(rng.integers(0, len(eligible)))]


def select_flower_species(
    biome: BiomeType,
    harmony: float,
    season: Season,
    rng: np.random.Generator,
) -> FlowerSpecies:
    if harmony > 1.3:
        return FlowerSpecies.HARMONY_BLOSSOM
    if harmony < 0.5:
        return FlowerSpecies.VOID_FLOWER
    if biome in (BiomeType.CRYSTAL, BiomeType.ETHEREAL):
        return FlowerSpecies.CRYSTAL_BLOOM
    blooming = [s for s in COMMON_FLOWERS if season in FLOWER_BLOOM_SEASONS[s]]
    if not blooming:
        return FlowerSpecies.WILDFLOWER
    return blooming[int(rng.integers(0, len(blooming)))]


def select_bush_species(biome: BiomeType, harmony: float, rng: np.random.Generator) -> BushSpecies:
    if biome in (BiomeType.FOREST, BiomeType.PLAINS, BiomeType.JUNGLE):
        return BushSpecies.BERRY if rng.random() > 0.7 else BushSpecies.HERB
    if biome == BiomeType.CORRUPTED:
        return BushSpecies.THORN
    if biome == BiomeType.CRYSTAL:
        return BushSpecies.CRYSTAL
    if biome == BiomeType.ETHEREAL:
        return BushSpecies.HARMONY if harmony > 1.0 else BushSpecies.LUMINOUS
    return BushSpecies.HERB


def place_trees(
    height_field: HeightField,
    slope: NDArray[np.float64],
    biome: BiomeType,
    harmony: float,
    rng: np.random.Generator,
    config: VegetationConfig,
) -> list[VegetationInstance]:
    """Trees on gentle ground above the water line."""
    density = biome_profile(biome).tree_density
    target = int(density * harmony_bias(harmony) * config.tree_count_scale)
    heights = height_field.heights

    def accept(ix: int, iz: int) -> bool:
        return slope[iz, ix] < config.tree_max_slope and heights[iz, ix] > config.tree_min_height

    trees = []
    for ix, iz in _sample_sites(target, height_field.resolution, rng, config, accept):
        species = select_tree_species(biome, harmony, rng)
        traits = TREE_TRAITS[species]
        scale = float(rng.uniform(0.8, 1.2))
        trees.append(
            VegetationInstance(
                kind=VegetationKind.TREE,
                species=species.value,
                position=height_field.cell_position(ix, iz),
                rotation=float(rng.uniform(0.0, 2.0 * math.pi)),
                scale=scale,
                attributes={
                    "height": traits.default_height * scale,
                    "health": float(rng.uniform(0.7, 1.0)),
                    "age": float(rng.uniform(0.1, 1.0)),
                },
                metadata=_provenance(biome, harmony, traits.rarity),
            )
        )
    return trees


def place_flower_clusters(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    season: Season,
    rng: np.random.Generator,
    config: VegetationConfig,
) -> list[VegetationInstance]:
    """Flower clusters on dry land; count scales directly with harmony."""
    density = biome_profile(biome).flower_density
    target = int(density * harmony * config.flower_count_scale)
    heights = height_field.heights

    def accept(ix: int, iz: int) -> bool:
        return heights[iz, ix] > config.flower_min_height

    flowers = []
    for ix, iz in _sample_sites(target, height_field.resolution, rng, config, accept):
        species = select_flower_species(biome, harmony, season, rng)
        in_bloom = season in FLOWER_BLOOM_SEASONS[species]
        rarity = "Common" if species in COMMON_FLOWERS else "Uncommon"
        flowers.append(
            VegetationInstance(
                kind=VegetationKind.FLOWER_CLUSTER,
                species=species.value,
                position=height_field.cell_position(ix, iz),
                rotation=float(rng.uniform(0.0, 2.0 * math.pi)),
                scale=1.0,
                attributes={
                    "radius": float(rng.uniform(2.0, 8.0)),
                    "density": float(rng.uniform(0.3, 0.9)),
                    "bloom_level": float(rng.uniform(0.0, 1.0)) if in_bloom else 0.0,
                    "harmony_effect": FLOWER_HARMONY_EFFECT[species],
                },
                metadata=_provenance(biome, harmony, rarity),
            )
        )
    return flowers


def place_bushes(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    rng: np.random.Generator,
    config: VegetationConfig,
) -> list[VegetationInstance]:
    """Bushes on ground just above the water line."""
    density = biome_profile(biome).bush_density
    target = int(density * harmony_bias(harmony) * config.bush_count_scale)
    heights = height_field.heights

    def accept(ix: int, iz: int) -> bool:
        return heights[iz, ix] > config.bush_min_height

    bushes = []
    for ix, iz in _sample_sites(target, height_field.resolution, rng, config, accept):
        species = select_bush_species(biome, harmony, rng)
        edible = species in EDIBLE_BUSHES
        bushes.append(
            VegetationInstance(
                kind=VegetationKind.BUSH,
                species=species.value,
                position=height_field.cell_position(ix, iz),
                rotation=float(rng.uniform(0.0, 2.0 * math.pi)),
                scale=float(rng.uniform(0.5, 1.5)),
                attributes={
                    "density": float(rng.uniform(0.4, 1.0)),
                    "fruit_stage": float(rng.uniform(0.0, 1.0)) if edible else 0.0,
                },
                metadata=_provenance(biome, harmony, "Common"),
            )
        )
    return bushes


def generate_vegetation(
    height_field: HeightField,
    biome: BiomeType,
    harmony: float,
    seed: int,
    rng: np.random.Generator,
    config: VegetationConfig | None = None,
    season: Season = Season.SPRING,
) -> VegetationMap:
    """Place all vegetation for a tile.

    Args:
        height_field: Final height field for the tile.
        biome: Tile biome.
        harmony: Harmony at generation time.
        seed: World seed, for the grass noise.
        rng: Random stream for placement and attributes.
        config: Vegetation parameters.
        season: Season for flower selection and bloom.

    Returns:
        VegetationMap with grass density and placed instances.
    """
    config = config or VegetationConfig()
    slope = compute_slope(height_field.heights)
    grass = compute_grass_density(height_field, biome, harmony, seed, config)
    trees = place_trees(height_field, slope, biome, harmony, rng, config)
    flowers = place_flower_clusters(height_field, biome, harmony, season, rng, config)
    bushes = place_bushes(height_field, biome, harmony, rng, config)
    logger.debug(
        f"Vegetation {height_field.coordinate}: {len(trees)} trees, "
        f"{len(flowers)} flower clusters, {len(bushes)} bushes"
    )
    return VegetationMap(
        grass_density=grass,
        trees=tuple(trees),
        flowers=tuple(flowers),
        bushes=tuple(bushes),
    )
