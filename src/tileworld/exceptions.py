"""Custom exceptions for tile generation."""


class WorldGenError(Exception):
    """Base exception for world generation errors."""

    pass


class InvalidArgumentError(WorldGenError, ValueError):
    """Raised when a generation parameter is malformed or non-finite."""

    pass


class TileGenerationError(WorldGenError):
    """Raised when a tile's pipeline fails and no bundle is produced."""

    pass
