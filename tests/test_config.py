"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

from hangulfinder.config import AppConfig
from hangulfinder.match.bitap import MatchOptions


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.vault_path == Path(".")
        assert config.extensions == (".md",)
        assert config.threshold == 0.4
        assert config.max_results == 50
        assert config.index_content is True
        assert config.hydrate_top_k == 20
        assert config.build_batch_size == 100

    def test_default_field_weights(self) -> None:
        """Should weigh the decomposed name highest."""
        weights = AppConfig().field_weights
        assert weights == {"jamo": 0.4, "display": 0.3, "content_jamo": 0.2, "content": 0.1}

    def test_field_weights_not_shared(self) -> None:
        """Should give every config its own weights."""
        first = AppConfig()
        first.field_weights["jamo"] = 1.0
        assert AppConfig().field_weights["jamo"] == 0.4

    def test_resolve_vault_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(vault_path=Path("/vault"))
        assert config.resolve_vault_path(Path("/base")) == Path("/vault")

    def test_resolve_vault_path_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        config = AppConfig(vault_path=Path("notes"))
        assert config.resolve_vault_path() == Path("notes")

    def test_resolve_vault_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(vault_path=Path("notes"))
        assert config.resolve_vault_path(Path("/base")) == Path("/base/notes")

    def test_match_options(self) -> None:
        """Should carry matcher settings over."""
        config = AppConfig(threshold=0.2, distance=50, include_matches=True)
        options = config.match_options()

        assert isinstance(options, MatchOptions)
        assert options.threshold == 0.2
        assert options.distance == 50
        assert options.include_matches is True
        assert options.ignore_location is True
