"""Post-generation validation of tile bundles."""

import logging

import numpy as np
from scipy import ndimage
from scipy.spatial.distance import pdist

from .config import TerrainConfig
from .generator import TileBundle

logger = logging.getLogger(__name__)

# 4-connectivity, matching the flood fill
_FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


class ValidationResult:
    """Result of tile validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_tile(bundle: TileBundle, config: TerrainConfig | None = None) -> ValidationResult:
    """Validate a generated tile against its invariants.

    Args:
        bundle: Generated tile.
        config: Configuration the tile was generated with.

    Returns:
        ValidationResult with any errors/warnings.
    """
    config = config or TerrainConfig()
    result = ValidationResult()

    # Check 1: Heights are finite
    _check_finite_heights(bundle, result)

    # Check 2: Layers share one resolution
    _check_shared_resolution(bundle, result)

    # Check 3: Detected water matches connected wet regions
    _check_water_components(bundle, config, result)

    # Check 4: Rivers run downhill with growing width and depth
    _check_rivers(bundle, result)

    # Check 5: Features keep their distance
    _check_feature_spacing(bundle, config.features.min_distance, result)

    # Check 6: Vegetation lies on the tile
    _check_vegetation_bounds(bundle, result)

    if result.passed:
        logger.debug(f"Tile {bundle.coordinate} validation passed")
    else:
        logger.warning(
            f"Tile {bundle.coordinate} validation failed with {len(result.errors)} errors"
        )
        for error in result.errors:
            logger.error(f"  - {error}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")

    return result


def _check_finite_heights(bundle: TileBundle, result: ValidationResult) -> None:
    if not np.all(np.isfinite(bundle.height_field.heights)):
        result.add_error("Height field contains non-finite values")


def _check_shared_resolution(bundle: TileBundle, result: ValidationResult) -> None:
    shape = bundle.height_field.heights.shape
    layers = {
        "temperature": bundle.climate.temperature.shape,
        "moisture": bundle.climate.moisture.shape,
        "grass_density": bundle.vegetation.grass_density.shape,
    }
    if shape[0] != shape[1]:
        result.add_error(f"Height field is not square: {shape}")
    for name, other in layers.items():
        if other != shape:
            result.add_error(f"{name} shape {other} differs from heights {shape}")


def _check_water_components(
    bundle: TileBundle,
    config: TerrainConfig,
    result: ValidationResult,
) -> None:
    """Cross-check flood-fill bodies against scipy component labelling."""
    hydrology = config.hydrology
    wet = bundle.height_field.heights < hydrology.water_threshold
    labels, count = ndimage.label(wet, structure=_FOUR_CONNECTED)
    sizes = np.bincount(labels.ravel())[1:] if count else np.array([], dtype=np.int64)
    expected = sorted(int(s) for s in sizes if s >= hydrology.min_water_cells)

    detected = [body for body in bundle.water_bodies if body.cell_count > 0]
    actual = sorted(body.cell_count for body in detected)
    if actual != expected:
        result.add_error(
            f"Water bodies {actual} do not match wet components {expected}"
        )

    for body in detected:
        if body.cell_count < hydrology.min_water_cells:
            result.add_error(f"Water body with {body.cell_count} cells is below minimum")
        if len({labels[z, x] for x, z in body.cells}) != 1:
            result.add_error("Water body spans more than one wet component")


def _check_rivers(bundle: TileBundle, result: ValidationResult) -> None:
    for i, river in enumerate(bundle.rivers):
        heights = [w[1] for w in river.waypoints]
        if any(b >= a for a, b in zip(heights, heights[1:])):
            result.add_error(f"River {i} does not strictly descend")
        if any(b < a for a, b in zip(river.widths, river.widths[1:])):
            result.add_error(f"River {i} width decreases downstream")
        if any(b < a for a, b in zip(river.depths, river.depths[1:])):
            result.add_error(f"River {i} depth decreases downstream")


def _check_feature_spacing(
    bundle: TileBundle,
    min_distance: float,
    result: ValidationResult,
) -> None:
    if len(bundle.features) < 2:
        return
    points = np.array([(f.position[0], f.position[2]) for f in bundle.features])
    closest = float(pdist(points).min())
    # Small tolerance for float rounding of cell positions
    if closest < min_distance - 1e-9:
        result.add_error(f"Features {closest:.2f} apart, minimum is {min_distance}")


def _check_vegetation_bounds(bundle: TileBundle, result: ValidationResult) -> None:
    field = bundle.height_field
    ox, oz = field.coordinate.world_offset(field.tile_size)
    outside = [
        v
        for v in bundle.vegetation.instances
        if not (
            ox <= v.position[0] <= ox + field.tile_size
            and oz <= v.position[2] <= oz + field.tile_size
        )
    ]
    if outside:
        result.add_warning(f"{len(outside)} vegetation instances lie outside the tile")
