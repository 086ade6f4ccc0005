"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tileworld.config import WorldConfig, find_config, list_configs, load_config
from tileworld.terrain.config import ErosionConfig, Season


class TestLoadConfig:
    """Tests for TOML loading."""

    def test_default_config_ships(self) -> None:
        """The repository default config loads."""
        assert "default" in list_configs()
        config = load_config(find_config("default"))
        assert config.seed == 42
        assert config.terrain.height.resolution == 64
        assert config.terrain.climate.season == Season.SPRING

    def test_partial_file_uses_defaults(self, tmp_path: Path) -> None:
        """Missing sections fall back to defaults."""
        path = tmp_path / "world.toml"
        path.write_text('seed = 9\n\n[terrain.climate]\nseason = "winter"\n')
        config = load_config(path)
        assert config.seed == 9
        assert config.terrain.climate.season == Season.WINTER
        assert config.terrain.height.resolution == 64
        assert config.metabolism.harmony == 1.0

    def test_invalid_values_rejected(self, tmp_path: Path) -> None:
        """Out-of-range values fail validation."""
        path = tmp_path / "bad.toml"
        path.write_text("[terrain.height]\nresolution = 2\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_missing_file(self) -> None:
        """Unknown config names raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            find_config("no_such_world")

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Paths are used as given."""
        path = tmp_path / "explicit.toml"
        path.write_text("seed = 3\n")
        assert find_config(str(path)) == path


class TestWorldConfig:
    """Tests for config models."""

    @pytest.mark.parametrize("seed", [-1, 2**64])
    def test_seed_range(self, seed: int) -> None:
        """Seeds must fit in 64 unsigned bits."""
        with pytest.raises(ValidationError):
            WorldConfig(seed=seed)

    def test_droplet_override(self) -> None:
        """An explicit droplet count wins over the per-row default."""
        assert ErosionConfig(droplets=0).droplet_count(64) == 0
        assert ErosionConfig().droplet_count(64) == 256
