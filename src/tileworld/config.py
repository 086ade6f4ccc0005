"""World configuration loading from TOML files."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from .terrain.config import TerrainConfig


class MetabolismConfig(BaseModel):
    """World health dynamics."""

    harmony: float = Field(default=1.0, description="Initial harmony")
    dissonance: float = Field(default=0.0, description="Initial dissonance")
    harmony_recovery_rate: float = Field(
        default=0.01, description="Harmony regained per second while below 1.0"
    )
    dissonance_decay_rate: float = Field(default=0.02, description="Dissonance lost per second")
    grid_sync_rate: float = Field(
        default=0.1, description="Per-second rate tile metabolism follows the world"
    )
    harmony_event_threshold: float = Field(default=1.8, description="Harmony that triggers events")
    dissonance_event_threshold: float = Field(
        default=1.5, description="Dissonance that triggers events"
    )
    stability_event_threshold: float = Field(
        default=0.3, description="Stability below which events trigger"
    )
    tick_interval_ms: int = Field(default=1000, gt=0, description="Metabolism tick interval")


class CacheConfig(BaseModel):
    """Tile cache bounds."""

    max_entries: int = Field(default=256, ge=1, description="Tiles kept in memory")
    max_age_seconds: float = Field(default=3600.0, gt=0, description="Tile lifetime in cache")


class PrefetchConfig(BaseModel):
    """Background tile generation around the viewer."""

    radius: int = Field(default=2, ge=0, description="Tiles prefetched around the center")
    max_concurrency: int = Field(default=4, ge=1, description="Tiles generated at once")


class WorldConfig(BaseModel):
    """Complete configuration for a tile world."""

    seed: int = Field(default=42, ge=0, lt=2**64, description="World seed")
    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    metabolism: MetabolismConfig = Field(default_factory=MetabolismConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    prefetch: PrefetchConfig = Field(default_factory=PrefetchConfig)


def load_config(config_path: Path) -> WorldConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed WorldConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values are out of range.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return WorldConfig.model_validate(data)


def _configs_dir() -> Path:
    return Path(__file__).parent.parent.parent / "configs"


def find_config(name: str) -> Path:
    """Find a config file by name.

    Searches in the following order:
    1. Exact path if name contains path separator or ends in .toml
    2. configs/{name}.toml
    3. configs/{name}

    Args:
        name: Config name or path.

    Returns:
        Path to the config file.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    configs_dir = _configs_dir()
    for candidate in (configs_dir / f"{name}.toml", configs_dir / name):
        if candidate.exists():
            return candidate

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir}. "
        f"Available configs: {list_configs()}"
    )


def list_configs() -> list[str]:
    """List available config names."""
    configs_dir = _configs_dir()
    if not configs_dir.exists():
        return []
    return sorted(p.stem for p in configs_dir.glob("*.toml"))
