"""Tests for biome tables and terrain shaping."""

import numpy as np

from tileworld.terrain.biomes import (
    BIOME_PROFILES,
    BIOME_SHAPERS,
    BiomeType,
    shape_terrain,
)
from tileworld.terrain.heightfield import HeightField


class TestBiomeProfiles:
    """Tests for the static biome table."""

    def test_every_biome_has_profile(self) -> None:
        """All fifteen biomes carry constants."""
        assert set(BIOME_PROFILES) == set(BiomeType)
        assert len(BiomeType) == 15

    def test_densities_non_negative(self) -> None:
        """No biome has negative vegetation density."""
        for profile in BIOME_PROFILES.values():
            assert min(
                profile.grass_density,
                profile.tree_density,
                profile.flower_density,
                profile.bush_density,
            ) >= 0.0


class TestShapeTerrain:
    """Tests for biome-specific terrain modifiers."""

    def test_unshaped_biome_returns_same_field(self, flat_field: HeightField) -> None:
        """Biomes without a modifier leave the field alone."""
        assert BiomeType.PLAINS not in BIOME_SHAPERS
        assert shape_terrain(flat_field, BiomeType.PLAINS, 42) is flat_field

    def test_input_not_modified(self, cone_field: HeightField) -> None:
        """Shaping returns a new field."""
        before = cone_field.heights.copy()
        shaped = shape_terrain(cone_field, BiomeType.MOUNTAIN, 42)
        np.testing.assert_array_equal(cone_field.heights, before)
        assert shaped is not cone_field

    def test_ocean_flattens(self, cone_field: HeightField) -> None:
        """Ocean keeps the surface near sea level."""
        shaped = shape_terrain(cone_field, BiomeType.OCEAN, 42)
        assert shaped.heights.max() <= cone_field.sea_level + 0.5 + 0.2

    def test_mountain_lifts(self, cone_field: HeightField) -> None:
        """Mountains at least double the height."""
        shaped = shape_terrain(cone_field, BiomeType.MOUNTAIN, 42)
        assert np.all(shaped.heights >= cone_field.heights * 2.0)

    def test_volcanic_raises_cone(self, flat_field: HeightField) -> None:
        """Volcanic tiles rise around the crater and dip at its heart."""
        shaped = shape_terrain(flat_field, BiomeType.VOLCANIC, 42).heights
        assert shaped[12, 16] > flat_field.heights[12, 16]
        assert shaped[16, 16] < shaped[12, 16]

    def test_swamp_compresses_relief(self, cone_field: HeightField) -> None:
        """Swamps squash height variation."""
        shaped = shape_terrain(cone_field, BiomeType.SWAMP, 42)
        assert shaped.heights.std() < cone_field.heights.std()

    def test_shaping_is_deterministic(self, cone_field: HeightField) -> None:
        """Same inputs give the same shaped heights."""
        for biome in BIOME_SHAPERS:
            a = shape_terrain(cone_field, biome, 7)
            b = shape_terrain(cone_field, biome, 7)
            np.testing.assert_array_equal(a.heights, b.heights)
