"""Coordinate-pure noise functions for terrain generation.

Every value is a function of (x, z, seed) alone: a hashed integer lattice
supplies pseudo-random values, which are interpolated (layered), folded
(ridged), blended across frequencies (fractal) or sampled raw (cellular),
then summed over octaves. Tiles therefore agree along shared edges.
"""

import math
from enum import Enum

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..exceptions import InvalidArgumentError

_MASK64 = 0xFFFFFFFFFFFFFFFF

# splitmix/murmur finalizer constants
_PRIME_X = np.uint64(0x9E3779B97F4A7C15)
_PRIME_Z = np.uint64(0xC2B2AE3D27D4EB4F)
_PRIME_SEED = 0x165667B19E3779F9
_MIX_1 = np.uint64(0xFF51AFD7ED558CCD)
_MIX_2 = np.uint64(0xC4CEB9FE1A85EC53)
_SHIFT_MIX = np.uint64(33)
_SHIFT_MANTISSA = np.uint64(11)
_INV_2_53 = 1.0 / float(1 << 53)

# Seed offset between successive octaves
_OCTAVE_SEED_STEP = 1000


class NoiseKind(str, Enum):
    """Noise variants offered by the provider."""

    LAYERED = "layered"
    RIDGED = "ridged"
    FRACTAL = "fractal"
    CELLULAR = "cellular"


def smoothstep(edge0: float, edge1: float, x: NDArray[np.float64]) -> NDArray[np.float64]:
    """Hermite smoothstep interpolation.

    Args:
        edge0: Lower edge.
        edge1: Upper edge.
        x: Input values.

    Returns:
        Smoothly interpolated values in [0, 1].
    """
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quintic fade curve with zero first and second derivatives at 0 and 1."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def lattice_hash(
    ix: NDArray[np.int64],
    iz: NDArray[np.int64],
    seed: int,
) -> NDArray[np.float64]:
    """Hash integer lattice points to pseudo-random values in [-1, 1).

    Args:
        ix: Integer x lattice coordinates.
        iz: Integer z lattice coordinates.
        seed: Any integer; reduced modulo 2**64.

    Returns:
        Array of hashed values with the broadcast shape of ix and iz.
    """
    seed_term = np.uint64(((seed & _MASK64) * _PRIME_SEED) & _MASK64)
    with np.errstate(over="ignore"):
        h = np.asarray(ix, dtype=np.int64).astype(np.uint64) * _PRIME_X
        h ^= np.asarray(iz, dtype=np.int64).astype(np.uint64) * _PRIME_Z
        h ^= seed_term
        h ^= h >> _SHIFT_MIX
        h = h * _MIX_1
        h ^= h >> _SHIFT_MIX
        h = h * _MIX_2
        h ^= h >> _SHIFT_MIX
    unit = (h >> _SHIFT_MANTISSA).astype(np.float64) * _INV_2_53
    return unit * 2.0 - 1.0


def _value_noise(
    x: NDArray[np.float64], z: NDArray[np.float64], seed: int
) -> NDArray[np.float64]:
    """Interpolated lattice noise in [-1, 1]."""
    x0 = np.floor(x)
    z0 = np.floor(z)
    sx = _fade(x - x0)
    sz = _fade(z - z0)
    ix = x0.astype(np.int64)
    iz = z0.astype(np.int64)

    v00 = lattice_hash(ix, iz, seed)
    v10 = lattice_hash(ix + 1, iz, seed)
    v01 = lattice_hash(ix, iz + 1, seed)
    v11 = lattice_hash(ix + 1, iz + 1, seed)

    near = v00 + sx * (v10 - v00)
    far = v01 + sx * (v11 - v01)
    return near + sz * (far - near)


def _ridged_noise(
    x: NDArray[np.float64], z: NDArray[np.float64], seed: int
) -> NDArray[np.float64]:
    # Folded so that zero crossings become ridge crests at 1
    return 1.0 - 2.0 * np.abs(_value_noise(x, z, seed))


def _fractal_noise(
    x: NDArray[np.float64], z: NDArray[np.float64], seed: int
) -> NDArray[np.float64]:
    blended = (
        _value_noise(x, z, seed)
        + 0.5 * _value_noise(x * 3.0, z * 3.0, seed + 1)
        + 0.25 * _value_noise(x * 7.0, z * 7.0, seed + 2)
    )
    return blended / 1.75


def _cellular_noise(
    x: NDArray[np.float64], z: NDArray[np.float64], seed: int
) -> NDArray[np.float64]:
    return lattice_hash(np.floor(x).astype(np.int64), np.floor(z).astype(np.int64), seed)


_BASES = {
    NoiseKind.LAYERED: _value_noise,
    NoiseKind.RIDGED: _ridged_noise,
    NoiseKind.FRACTAL: _fractal_noise,
    NoiseKind.CELLULAR: _cellular_noise,
}


def _check_parameters(
    kind: NoiseKind | str,
    octaves: int,
    seed: int,
    **scalars: float,
) -> NoiseKind:
    try:
        resolved = NoiseKind(kind)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown noise kind: {kind!r}") from exc
    if isinstance(octaves, bool) or not isinstance(octaves, (int, np.integer)):
        raise InvalidArgumentError(f"octaves must be an integer, got {octaves!r}")
    if octaves < 0:
        raise InvalidArgumentError(f"octaves must be non-negative, got {octaves}")
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise InvalidArgumentError(f"seed must be an integer, got {seed!r}")
    for name, value in scalars.items():
        if not math.isfinite(value):
            raise InvalidArgumentError(f"{name} must be finite, got {value}")
    return resolved


def sample_grid(
    kind: NoiseKind | str,
    x: ArrayLike,
    z: ArrayLike,
    octaves: int = 6,
    frequency: float = 0.01,
    amplitude: float = 1.0,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    seed: int = 0,
) -> NDArray[np.float64]:
    """Sample octave-summed noise at many world positions.

    Each octave multiplies frequency by lacunarity and amplitude by
    persistence, and hashes with its own seed.

    Args:
        kind: Noise variant.
        x: World x coordinates (any shape broadcastable with z).
        z: World z coordinates.
        octaves: Number of octaves; zero yields all zeros.
        frequency: Frequency of the first octave.
        amplitude: Amplitude of the first octave.
        lacunarity: Frequency multiplier per octave.
        persistence: Amplitude multiplier per octave.
        seed: Noise seed.

    Returns:
        Noise values with the broadcast shape of x and z.

    Raises:
        InvalidArgumentError: On unknown kind, bad octave count, non-integer
            seed, or any non-finite coordinate or parameter.
    """
    resolved = _check_parameters(
        kind,
        octaves,
        seed,
        frequency=frequency,
        amplitude=amplitude,
        lacunarity=lacunarity,
        persistence=persistence,
    )
    seed = int(seed)
    xs, zs = np.broadcast_arrays(
        np.asarray(x, dtype=np.float64), np.asarray(z, dtype=np.float64)
    )
    if not (np.all(np.isfinite(xs)) and np.all(np.isfinite(zs))):
        raise InvalidArgumentError("Noise coordinates must be finite")

    base = _BASES[resolved]
    total = np.zeros(xs.shape, dtype=np.float64)
    amp = amplitude
    freq = frequency
    for octave in range(int(octaves)):
        total += amp * base(xs * freq, zs * freq, seed + octave * _OCTAVE_SEED_STEP)
        amp *= persistence
        freq *= lacunarity
    return total


def sample(
    kind: NoiseKind | str,
    x: float,
    z: float,
    octaves: int = 6,
    frequency: float = 0.01,
    amplitude: float = 1.0,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    seed: int = 0,
) -> float:
    """Sample octave-summed noise at a single world position.

    Equivalent to ``sample_grid`` on one point; see it for arguments.
    """
    for name, value in (("x", x), ("z", z)):
        if not math.isfinite(value):
            raise InvalidArgumentError(f"{name} must be finite, got {value}")
    values = sample_grid(
        kind,
        np.array([x], dtype=np.float64),
        np.array([z], dtype=np.float64),
        octaves=octaves,
        frequency=frequency,
        amplitude=amplitude,
        lacunarity=lacunarity,
        persistence=persistence,
        seed=seed,
    )
    return float(values[0])


def amplitude_span(amplitude: float, persistence: float, octaves: int) -> float:
    """Largest absolute value an octave sum of unit-range noise can reach."""
    return float(sum(abs(amplitude) * abs(persistence) ** i for i in range(octaves)))
