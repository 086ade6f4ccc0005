"""Tests for vegetation placement."""

import numpy as np
import pytest

from tileworld.terrain.biomes import BiomeType
from tileworld.terrain.config import Season
from tileworld.terrain.heightfield import HeightField
from tileworld.terrain.vegetation import (
    FlowerSpecies,
    TreeSpecies,
    VegetationKind,
    generate_vegetation,
    harmony_bias,
    select_bush_species,
)
from tileworld.types import TileCoordinate


def vegetate(field: HeightField, biome: BiomeType, harmony: float = 1.0, **kwargs):
    return generate_vegetation(field, biome, harmony, 42, np.random.default_rng(0), **kwargs)


class TestGenerateVegetation:
    """Tests for the full vegetation pass."""

    def test_forest_counts(self, flat_field: HeightField) -> None:
        """Counts follow biome density on open ground."""
        vegetation = vegetate(flat_field, BiomeType.FOREST)
        assert len(vegetation.trees) == 20
        assert len(vegetation.flowers) == 3
        assert len(vegetation.bushes) == 7
        assert len(vegetation.instances) == 30

    def test_kinds(self, flat_field: HeightField) -> None:
        """Each list holds its own kind of plant."""
        vegetation = vegetate(flat_field, BiomeType.FOREST)
        assert {t.kind for t in vegetation.trees} == {VegetationKind.TREE}
        assert {f.kind for f in vegetation.flowers} == {VegetationKind.FLOWER_CLUSTER}
        assert {b.kind for b in vegetation.bushes} == {VegetationKind.BUSH}

    def test_deterministic(self, flat_field: HeightField) -> None:
        """Same inputs and stream give identical vegetation."""
        a = vegetate(flat_field, BiomeType.PLAINS)
        b = vegetate(flat_field, BiomeType.PLAINS)
        assert a.instances == b.instances
        np.testing.assert_array_equal(a.grass_density, b.grass_density)

    def test_nothing_grows_underwater(self, origin: TileCoordinate) -> None:
        """Submerged tiles have no plants."""
        field = HeightField(coordinate=origin, heights=np.full((32, 32), -5.0))
        assert vegetate(field, BiomeType.FOREST).instances == ()

    def test_no_trees_on_steep_ground(self, origin: TileCoordinate) -> None:
        """Slopes at or above the limit reject trees but not flowers."""
        xs, _ = np.meshgrid(np.arange(32.0), np.arange(32.0))
        field = HeightField(coordinate=origin, heights=1.0 + xs)
        vegetation = vegetate(field, BiomeType.FOREST)
        assert vegetation.trees == ()
        assert len(vegetation.flowers) == 3

    def test_positions_inside_tile(self, flat_field: HeightField) -> None:
        """Every plant stands on the tile."""
        for plant in vegetate(flat_field, BiomeType.JUNGLE).instances:
            assert 0.0 < plant.position[0] < 100.0
            assert 0.0 < plant.position[2] < 100.0
            assert plant.position[1] == 5.0

    def test_grass_density_range(self, flat_field: HeightField) -> None:
        """Grass density is per cell and within [0, 1]."""
        grass = vegetate(flat_field, BiomeType.PLAINS).grass_density
        assert grass.shape == (32, 32)
        assert grass.min() >= 0.0
        assert grass.max() <= 1.0

    def test_provenance_metadata(self, flat_field: HeightField) -> None:
        """Instances record biome, harmony and rarity."""
        for plant in vegetate(flat_field, BiomeType.FOREST, harmony=1.2).instances:
            assert plant.metadata["biome"] == "forest"
            assert plant.metadata["harmony_level"] == "1.20"
            assert "rarity" in plant.metadata

    def test_instances_are_read_only(self, flat_field: HeightField) -> None:
        """Plant attributes and metadata cannot be edited in place."""
        tree = vegetate(flat_field, BiomeType.FOREST).trees[0]
        with pytest.raises(TypeError):
            tree.metadata["biome"] = "desert"  # type: ignore[index]
        with pytest.raises(TypeError):
            tree.attributes["health"] = 0.0  # type: ignore[index]
        assert tree.metadata["biome"] == "forest"


class TestHarmonyEffects:
    """Tests for harmony-driven species and counts."""

    def test_high_harmony_trees(self, flat_field: HeightField) -> None:
        """Very harmonious tiles grow harmony trees and blossoms."""
        vegetation = vegetate(flat_field, BiomeType.FOREST, harmony=1.9)
        assert {t.species for t in vegetation.trees} == {TreeSpecies.HARMONY_TREE.value}
        assert {f.species for f in vegetation.flowers} == {FlowerSpecies.HARMONY_BLOSSOM.value}

    def test_low_harmony_trees(self, flat_field: HeightField) -> None:
        """Starved tiles grow corrupted trees and void flowers."""
        vegetation = vegetate(flat_field, BiomeType.FOREST, harmony=0.2)
        assert {t.species for t in vegetation.trees} == {TreeSpecies.CORRUPTED_TREE.value}
        assert {f.species for f in vegetation.flowers} <= {FlowerSpecies.VOID_FLOWER.value}

    def test_harmony_scales_counts(self, flat_field: HeightField) -> None:
        """More harmony, more trees."""
        low = vegetate(flat_field, BiomeType.FOREST, harmony=0.4)
        high = vegetate(flat_field, BiomeType.FOREST, harmony=1.8)
        assert len(high.trees) > len(low.trees)

    def test_harmony_bias(self) -> None:
        """Bias runs from 0.5 to 1.5 across [0, 2]."""
        assert harmony_bias(0.0) == 0.5
        assert harmony_bias(1.0) == 1.0
        assert harmony_bias(2.0) == 1.5


class TestSeasons:
    """Tests for seasonal flowers."""

    def test_winter_flowers(self, flat_field: HeightField) -> None:
        """Only winter bloomers are picked in winter."""
        vegetation = vegetate(flat_field, BiomeType.PLAINS, season=Season.WINTER)
        assert vegetation.flowers
        assert {f.species for f in vegetation.flowers} == {FlowerSpecies.MOON_PETAL.value}

    def test_out_of_season_bloom_is_zero(self, flat_field: HeightField) -> None:
        """Harmony blossoms do not bloom in winter."""
        vegetation = vegetate(flat_field, BiomeType.PLAINS, harmony=1.5, season=Season.WINTER)
        assert vegetation.flowers
        assert all(f.attributes["bloom_level"] == 0.0 for f in vegetation.flowers)


class TestSelectBushSpecies:
    """Tests for bush selection."""

    @pytest.mark.parametrize(
        ("biome", "expected"),
        [
            (BiomeType.CORRUPTED, "thorn"),
            (BiomeType.CRYSTAL, "crystal"),
            (BiomeType.DESERT, "herb"),
        ],
    )
    def test_biome_bushes(self, biome: BiomeType, expected: str) -> None:
        """Special biomes have their own bushes."""
        assert select_bush_species(biome, 1.0, np.random.default_rng(0)).value == expected

    def test_ethereal_depends_on_harmony(self) -> None:
        """Ethereal bushes glow differently by harmony."""
        rng = np.random.default_rng(0)
        assert select_bush_species(BiomeType.ETHEREAL, 1.5, rng).value == "harmony"
        assert select_bush_species(BiomeType.ETHEREAL, 0.8, rng).value == "luminous"
