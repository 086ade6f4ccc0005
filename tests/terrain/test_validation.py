"""Tests for tile validation."""

import dataclasses

import numpy as np
import pytest

from tileworld.terrain.config import TerrainConfig
from tileworld.terrain.features import FeaturePlacement, FeatureType
from tileworld.terrain.generator import TileBundle, generate_tile
from tileworld.terrain.hydrology import RiverNetwork
from tileworld.terrain.validation import ValidationResult, validate_tile
from tileworld.types import TileCoordinate


@pytest.fixture
def bundle(origin: TileCoordinate, small_config: TerrainConfig) -> TileBundle:
    """A generated 32x32 tile."""
    return generate_tile(42, origin, config=small_config)


class TestValidateTile:
    """Tests for post-generation checks."""

    @pytest.mark.parametrize("x", range(4))
    def test_generated_tiles_pass(self, x: int, small_config: TerrainConfig) -> None:
        """Freshly generated tiles satisfy every invariant."""
        bundle = generate_tile(42, TileCoordinate(x=x, z=-x), config=small_config)
        result = validate_tile(bundle, small_config)
        assert result.passed, result.errors

    def test_non_finite_heights(self, bundle: TileBundle, small_config: TerrainConfig) -> None:
        """NaN heights are reported."""
        heights = bundle.height_field.heights.copy()
        heights[0, 0] = np.nan
        broken = dataclasses.replace(bundle, height_field=bundle.height_field.with_heights(heights))
        result = validate_tile(broken, small_config)
        assert not result.passed
        assert any("non-finite" in e for e in result.errors)

    def test_missing_water_detected(self, bundle: TileBundle, small_config: TerrainConfig) -> None:
        """A wet component without a water body is reported."""
        heights = np.full((32, 32), 5.0)
        heights[4:8, 4:8] = -3.0
        field = bundle.height_field.with_heights(heights)
        broken = dataclasses.replace(bundle, height_field=field, water_bodies=())
        result = validate_tile(broken, small_config)
        assert any("do not match" in e for e in result.errors)

    def test_uphill_river(self, bundle: TileBundle, small_config: TerrainConfig) -> None:
        """Rivers that climb are reported."""
        river = RiverNetwork(
            source=(0, 0),
            cells=((0, 0), (1, 0)),
            waypoints=((0.0, 1.0, 0.0), (1.0, 2.0, 0.0)),
            widths=(1.0, 1.1),
            depths=(0.5, 0.55),
            flow_rate=0.2,
        )
        result = validate_tile(dataclasses.replace(bundle, rivers=(river,)), small_config)
        assert any("descend" in e for e in result.errors)

    def test_crowded_features(self, bundle: TileBundle, small_config: TerrainConfig) -> None:
        """Features closer than the minimum are reported."""
        features = (
            FeaturePlacement(FeatureType.RUIN, (10.0, 1.0, 10.0), (3, 3)),
            FeaturePlacement(FeatureType.SHRINE, (12.0, 1.0, 10.0), (4, 3)),
        )
        result = validate_tile(dataclasses.replace(bundle, features=features), small_config)
        assert any("apart" in e for e in result.errors)


class TestValidationResult:
    """Tests for the result container."""

    def test_warnings_do_not_fail(self) -> None:
        """Only errors fail validation."""
        result = ValidationResult()
        result.add_warning("minor")
        assert result.passed
        result.add_error("major")
        assert not result.passed
        assert result.errors == ["major"]
        assert result.warnings == ["minor"]
