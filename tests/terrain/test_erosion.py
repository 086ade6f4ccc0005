"""Tests for hydraulic erosion."""

import numpy as np
import pytest

from tileworld.exceptions import InvalidArgumentError
from tileworld.terrain.config import ErosionConfig, HeightConfig
from tileworld.terrain.erosion import bilinear_height, erode, simulate_droplet
from tileworld.terrain.heightfield import synthesize_height_field
from tileworld.types import TileCoordinate


@pytest.fixture
def terrain() -> np.ndarray:
    """Synthesized 32x32 heights."""
    field = synthesize_height_field(42, TileCoordinate(x=0, z=0), HeightConfig(resolution=32))
    return field.heights


class TestErode:
    """Tests for the droplet erosion pass."""

    def test_zero_droplets_is_identity(self, terrain: np.ndarray) -> None:
        """No droplets leaves the heights untouched."""
        eroded = erode(terrain, np.random.default_rng(0), droplets=0)
        np.testing.assert_array_equal(eroded, terrain)

    def test_returns_copy(self, terrain: np.ndarray) -> None:
        """The input grid is never modified."""
        before = terrain.copy()
        eroded = erode(terrain, np.random.default_rng(0), droplets=64)
        np.testing.assert_array_equal(terrain, before)
        assert eroded is not terrain

    def test_deterministic(self, terrain: np.ndarray) -> None:
        """Same random stream gives the same result."""
        a = erode(terrain, np.random.default_rng(5), droplets=64)
        b = erode(terrain, np.random.default_rng(5), droplets=64)
        np.testing.assert_array_equal(a, b)

    def test_changes_are_bounded(self, terrain: np.ndarray) -> None:
        """Erosion nudges terrain rather than reshaping it."""
        eroded = erode(terrain, np.random.default_rng(1), droplets=128)
        assert np.all(np.isfinite(eroded))
        assert np.abs(eroded - terrain).max() < 1.0

    def test_default_droplet_count_scales_with_resolution(self) -> None:
        """Without an override, four droplets run per grid row."""
        assert ErosionConfig().droplet_count(32) == 128
        assert ErosionConfig(droplets=7).droplet_count(32) == 7

    def test_flat_terrain_unchanged(self) -> None:
        """Droplets on flat ground never move."""
        flat = np.full((16, 16), 3.0)
        eroded = erode(flat, np.random.default_rng(2), droplets=50)
        np.testing.assert_array_equal(eroded, flat)

    def test_submerged_terrain_not_carved(self) -> None:
        """Terrain at or below zero is never eroded."""
        xs, _ = np.meshgrid(np.arange(16.0), np.arange(16.0))
        slope = -1.0 - xs
        eroded = erode(slope, np.random.default_rng(3), droplets=50)
        np.testing.assert_array_equal(eroded, slope)

    def test_negative_droplets_rejected(self, terrain: np.ndarray) -> None:
        """Negative droplet counts are invalid."""
        with pytest.raises(InvalidArgumentError):
            erode(terrain, np.random.default_rng(0), droplets=-1)


class TestSimulateDroplet:
    """Tests for a single droplet."""

    def test_step_cap(self) -> None:
        """A droplet never runs more than max_steps."""
        xs, _ = np.meshgrid(np.arange(64.0), np.arange(64.0))
        heights = 100.0 - xs
        steps = simulate_droplet(heights, 1.5, 32.0, ErosionConfig(max_steps=5))
        assert 0 < steps <= 5

    def test_edge_start_stops_immediately(self) -> None:
        """Droplets on the border have no gradient."""
        heights = np.arange(100.0).reshape(10, 10)
        assert simulate_droplet(heights, 0.0, 5.0, ErosionConfig()) == 0


class TestBilinearHeight:
    """Tests for interpolated height lookup."""

    def test_interpolates_between_cells(self) -> None:
        """Midpoints average their corners."""
        heights = np.array([[0.0, 2.0], [4.0, 6.0]])
        assert bilinear_height(heights, 0.5, 0.5) == pytest.approx(3.0)
        assert bilinear_height(heights, 1.0, 0.0) == pytest.approx(2.0)
