"""Procedural tile terrain generation package.

This package turns a world seed and a tile coordinate into a complete tile:
heights shaped by noise and erosion, a climate-driven biome, water bodies,
rivers and caves, vegetation, and landmark features.
"""

from .biomes import BiomeType, shape_terrain
from .config import Season, TerrainConfig
from .generator import TileBundle, generate_tile
from .heightfield import HeightField, synthesize_height_field
from .noise import NoiseKind, sample, sample_grid
from .validation import ValidationResult, validate_tile

__all__ = [
    "BiomeType",
    "HeightField",
    "NoiseKind",
    "Season",
    "TerrainConfig",
    "TileBundle",
    "ValidationResult",
    "generate_tile",
    "sample",
    "sample_grid",
    "shape_terrain",
    "synthesize_height_field",
    "validate_tile",
]
