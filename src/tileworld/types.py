"""Core types for tile addressing."""

import math

from pydantic import BaseModel

# World-space edge length of one tile
TILE_SIZE = 100.0


class TileCoordinate(BaseModel, frozen=True):
    """Immutable integer tile address on the x/z plane."""

    x: int
    z: int

    @classmethod
    def from_world(cls, x: float, z: float, tile_size: float = TILE_SIZE) -> "TileCoordinate":
        """Return the tile containing world position (x, z)."""
        return cls(x=math.floor(x / tile_size), z=math.floor(z / tile_size))

    def world_offset(self, tile_size: float = TILE_SIZE) -> tuple[float, float]:
        """World-space position of the tile's (0, 0) corner."""
        return (self.x * tile_size, self.z * tile_size)

    def center(self, tile_size: float = TILE_SIZE) -> tuple[float, float]:
        """World-space position of the tile's center."""
        ox, oz = self.world_offset(tile_size)
        return (ox + tile_size / 2, oz + tile_size / 2)

    def distance_to(self, other: "TileCoordinate") -> int:
        """Chebyshev distance in tiles."""
        return max(abs(self.x - other.x), abs(self.z - other.z))

    def neighbors(self) -> list["TileCoordinate"]:
        """The eight surrounding tiles."""
        return self.surrounding(1)

    def surrounding(self, radius: int) -> list["TileCoordinate"]:
        """Tiles within Chebyshev radius, excluding this one, nearest first."""
        coords = [
            TileCoordinate(x=self.x + dx, z=self.z + dz)
            for dz in range(-radius, radius + 1)
            for dx in range(-radius, radius + 1)
            if dx != 0 or dz != 0
        ]
        coords.sort(key=self.distance_to)
        return coords

    def __hash__(self) -> int:
        return hash((self.x, self.z))

    def __str__(self) -> str:
        return f"({self.x}, {self.z})"

    def __repr__(self) -> str:
        return f"TileCoordinate(x={self.x}, z={self.z})"
