"""Tests for standing water detection and biome water features."""

import numpy as np
import pytest

from tileworld.terrain.biomes import BiomeType
from tileworld.terrain.config import HydrologyConfig
from tileworld.terrain.heightfield import HeightField
from tileworld.terrain.water import (
    WaterType,
    biome_water_features,
    classify_water_type,
    detect_water_bodies,
    find_wet_regions,
    flood_fill,
)
from tileworld.types import TileCoordinate


class TestDetectWaterBodies:
    """Tests for flood-fill water detection."""

    def test_single_pit_is_one_body(self, basin_field: HeightField) -> None:
        """A 5x5 pit surrounded by land is exactly one 25-cell body."""
        bodies = detect_water_bodies(basin_field, BiomeType.PLAINS)
        assert len(bodies) == 1
        assert bodies[0].cell_count == 25
        assert set(bodies[0].cells) == {(x, z) for x in range(5, 10) for z in range(5, 10)}

    def test_depth_is_mean_below_sea_level(self, basin_field: HeightField) -> None:
        """Depth averages sea level minus cell height."""
        body = detect_water_bodies(basin_field, BiomeType.PLAINS)[0]
        assert body.depth == pytest.approx(3.0)

    def test_outline_is_world_space_hull(self, basin_field: HeightField) -> None:
        """The outline is the square around the pit's corner cells."""
        body = detect_water_bodies(basin_field, BiomeType.PLAINS)[0]
        spacing = basin_field.spacing
        corners = {(round(v[0] / spacing), round(v[2] / spacing)) for v in body.vertices}
        assert corners == {(5, 5), (9, 5), (9, 9), (5, 9)}
        assert body.surface_area() == pytest.approx((4 * spacing) ** 2)

    def test_small_puddles_ignored(self, origin: TileCoordinate) -> None:
        """Components under nine cells are not water bodies."""
        heights = np.full((12, 12), 5.0)
        heights[2:4, 2:6] = -2.0
        field = HeightField(coordinate=origin, heights=heights)
        assert detect_water_bodies(field, BiomeType.PLAINS) == []

    def test_diagonal_cells_are_separate(self, origin: TileCoordinate) -> None:
        """Only edge-adjacent cells join a component."""
        heights = np.full((20, 20), 5.0)
        heights[2:5, 2:5] = -2.0
        heights[5:8, 5:8] = -2.0
        field = HeightField(coordinate=origin, heights=heights)
        bodies = detect_water_bodies(field, BiomeType.PLAINS)
        assert sorted(b.cell_count for b in bodies) == [9, 9]

    def test_threshold_is_strict(self, origin: TileCoordinate) -> None:
        """Cells exactly at the threshold are dry."""
        heights = np.full((10, 10), 5.0)
        heights[2:6, 2:6] = -1.0
        field = HeightField(coordinate=origin, heights=heights)
        assert detect_water_bodies(field, BiomeType.PLAINS) == []

    def test_volcanic_pit_is_hot_spring(self, basin_field: HeightField) -> None:
        """Detected water in volcanic tiles is a hot spring."""
        body = detect_water_bodies(basin_field, BiomeType.VOLCANIC)[0]
        assert body.water_type == WaterType.HOT_SPRING

    def test_deep_mountain_pit_is_lake(self, origin: TileCoordinate) -> None:
        """A small but deep mountain pit is a lake."""
        heights = np.full((20, 20), 5.0)
        heights[5:10, 5:10] = -8.0
        field = HeightField(coordinate=origin, heights=heights)
        body = detect_water_bodies(field, BiomeType.MOUNTAIN)[0]
        assert body.water_type == WaterType.LAKE

    def test_shallow_mountain_pit_is_pond(self, basin_field: HeightField) -> None:
        """A 25-cell pit at depth 3 is not quite a mountain lake."""
        body = detect_water_bodies(basin_field, BiomeType.MOUNTAIN)[0]
        assert body.water_type == WaterType.POND

    def test_ocean_biome_types_all_bodies_ocean(self, basin_field: HeightField) -> None:
        """In ocean tiles every body is ocean water."""
        body = detect_water_bodies(basin_field, BiomeType.OCEAN)[0]
        assert body.water_type == WaterType.OCEAN
        assert body.salinity > 0.5


class TestClassifyWaterType:
    """Tests for water typing."""

    @pytest.mark.parametrize(
        ("cells", "expected"),
        [
            (101, WaterType.LAKE),
            (100, WaterType.POND),
            (26, WaterType.POND),
            (25, WaterType.SPRING),
        ],
    )
    def test_size_tiers(self, cells: int, expected: WaterType) -> None:
        """Size tiers are strict greater-than."""
        assert classify_water_type(cells, 2.0, BiomeType.PLAINS, HydrologyConfig()) == expected

    @pytest.mark.parametrize(
        ("biome", "expected"),
        [
            (BiomeType.OCEAN, WaterType.OCEAN),
            (BiomeType.ETHEREAL, WaterType.HARMONIC_POOL),
            (BiomeType.CORRUPTED, WaterType.VOID_WATER),
            (BiomeType.VOLCANIC, WaterType.HOT_SPRING),
        ],
    )
    def test_biome_overrides(self, biome: BiomeType, expected: WaterType) -> None:
        """Biome typing takes precedence over size."""
        assert classify_water_type(500, 2.0, biome, HydrologyConfig()) == expected

    @pytest.mark.parametrize(
        ("cells", "expected"),
        [(51, WaterType.LAKE), (50, WaterType.POND), (9, WaterType.POND)],
    )
    def test_swamp_tiers(self, cells: int, expected: WaterType) -> None:
        """Swamp bodies are lakes above 50 cells and ponds otherwise."""
        assert classify_water_type(cells, 1.0, BiomeType.SWAMP, HydrologyConfig()) == expected

    @pytest.mark.parametrize(
        ("cells", "depth", "expected"),
        [
            (9, 3.5, WaterType.LAKE),
            (26, 1.0, WaterType.LAKE),
            (25, 3.0, WaterType.POND),
            (9, 1.0, WaterType.POND),
        ],
    )
    def test_mountain_depth_or_size(self, cells: int, depth: float, expected: WaterType) -> None:
        """Mountain bodies are lakes when deep or large enough."""
        config = HydrologyConfig()
        assert classify_water_type(cells, depth, BiomeType.MOUNTAIN, config) == expected


class TestFloodFill:
    """Tests for the component walk."""

    def test_marks_visited(self) -> None:
        """Collected cells are marked visited and not collected twice."""
        wet = np.zeros((6, 6), dtype=bool)
        wet[1:3, 1:4] = True
        visited = np.zeros_like(wet)
        cells = flood_fill(wet, (1, 1), visited)
        assert len(cells) == 6
        assert visited.sum() == 6
        assert flood_fill(wet, (2, 2), visited) == []

    def test_large_region_no_recursion_limit(self) -> None:
        """A full 200x200 grid fills without overflowing the stack."""
        regions = find_wet_regions(np.full((200, 200), -5.0), -1.0, 9)
        assert len(regions) == 1
        assert len(regions[0]) == 40000


class TestBiomeWaterFeatures:
    """Tests for injected biome water."""

    def test_ethereal_pool_at_center(self, flat_field: HeightField) -> None:
        """Ethereal tiles get one hexagonal harmonic pool."""
        features = biome_water_features(flat_field, BiomeType.ETHEREAL, np.random.default_rng(0))
        assert len(features) == 1
        assert features[0].water_type == WaterType.HARMONIC_POOL
        assert len(features[0].vertices) == 6

    def test_forest_springs(self, flat_field: HeightField) -> None:
        """Forest tiles get two octagonal springs."""
        features = biome_water_features(flat_field, BiomeType.FOREST, np.random.default_rng(0))
        assert [f.water_type for f in features] == [WaterType.SPRING, WaterType.SPRING]
        assert all(len(f.vertices) == 8 for f in features)

    def test_volcanic_hot_springs(self, flat_field: HeightField) -> None:
        """Volcanic tiles get three twelve-sided hot springs."""
        features = biome_water_features(flat_field, BiomeType.VOLCANIC, np.random.default_rng(0))
        assert len(features) == 3
        assert all(f.water_type == WaterType.HOT_SPRING for f in features)
        assert all(len(f.vertices) == 12 for f in features)
        assert all(f.temperature > 0.9 for f in features)

    def test_mountain_streams_flow_downhill(self, cone_field: HeightField) -> None:
        """Mountain streams start high and carry a flow direction."""
        config = HydrologyConfig(stream_attempts=30)
        features = biome_water_features(
            cone_field, BiomeType.MOUNTAIN, np.random.default_rng(1), config
        )
        assert features
        for stream in features:
            assert stream.water_type == WaterType.STREAM
            assert len(stream.vertices) > config.stream_min_vertices
            assert stream.vertices[0][1] > stream.vertices[-1][1]
            assert stream.flow_direction is not None

    def test_plains_have_no_injected_water(self, flat_field: HeightField) -> None:
        """Biomes without characteristic water inject nothing."""
        assert biome_water_features(flat_field, BiomeType.PLAINS, np.random.default_rng(0)) == []
