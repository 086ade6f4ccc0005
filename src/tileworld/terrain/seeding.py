"""Seed derivation so every tile and subsystem draws from its own stream."""

import hashlib

import numpy as np

from ..exceptions import InvalidArgumentError
from ..types import TileCoordinate

SEED_LIMIT = 2**64


def validate_seed(seed: int) -> int:
    """Return seed unchanged if it is a 64-bit unsigned integer.

    Raises:
        InvalidArgumentError: If seed is not an int in [0, 2**64).
    """
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise InvalidArgumentError(f"Seed must be an integer, got {type(seed).__name__}")
    seed = int(seed)
    if not 0 <= seed < SEED_LIMIT:
        raise InvalidArgumentError(f"Seed must be in [0, 2**64), got {seed}")
    return seed


def _digest(text: str) -> int:
    h = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(h, "little")


def derive_seed(seed: int, tag: str) -> int:
    """World-wide seed for a named field (continuous across tiles)."""
    return _digest(f"{seed}|{tag}")


def tile_seed(seed: int, coordinate: TileCoordinate, tag: str) -> int:
    """Seed for one subsystem of one tile."""
    return _digest(f"{seed}|{tag}|{coordinate.x}|{coordinate.z}")


def tile_rng(seed: int, coordinate: TileCoordinate, tag: str) -> np.random.Generator:
    """Independent random stream for one subsystem of one tile."""
    return np.random.default_rng(tile_seed(seed, coordinate, tag))
