"""
Tests for configuration loading.

Covers defaults, environment overrides, YAML files and env-over-YAML merge.
"""

import pytest
from pydantic import ValidationError

from nexus_core.config import (
    MIB,
    AssetCacheConfig,
    CanvasStoreConfig,
    Config,
    MemorySearchConfig,
)
from nexus_core.utils.exceptions import ConfigurationError


class TestConfigDefaults:
    """Test default configuration values."""

    def test_default_config(self):
        """Test default values match the engine's built-in constants."""
        config = Config()

        assert config.asset_cache.user_agent == "Nexus/1.0"
        assert config.asset_cache.timeout == 60.0
        assert config.asset_cache.max_image_bytes == 50 * MIB
        assert config.asset_cache.max_media_bytes == 300 * MIB

        assert config.canvas_store.debounce_ms == 650
        assert config.canvas_store.data_dir == "data/nexus-canvas"

        assert config.memory_search.limit == 6
        assert config.memory_search.min_score == 0.12

        assert config.api.host == "127.0.0.1"
        assert config.api.port == 8000
        assert config.debug is False

    def test_limits_must_be_positive(self):
        """Test that size limits and debounce reject zero."""
        with pytest.raises(ValidationError):
            AssetCacheConfig(max_image_bytes=0)
        with pytest.raises(ValidationError):
            CanvasStoreConfig(debounce_ms=0)
        with pytest.raises(ValidationError):
            MemorySearchConfig(limit=0)


class TestConfigFromEnv:
    """Test loading configuration from environment variables."""

    def test_from_env_paths(self, monkeypatch, tmp_path):
        """Test directory overrides."""
        monkeypatch.setenv("NEXUS_CACHE_DIR", str(tmp_path / "cache"))
        monkeypatch.setenv("NEXUS_CANVAS_DIR", str(tmp_path / "canvas"))

        config = Config.from_env()

        assert config.asset_cache.cache_dir == str(tmp_path / "cache")
        assert config.canvas_store.data_dir == str(tmp_path / "canvas")

    def test_from_env_with_numbers(self, monkeypatch):
        """Test loading numeric values from environment."""
        monkeypatch.setenv("NEXUS_ASSET_TIMEOUT", "12.5")
        monkeypatch.setenv("NEXUS_MAX_IMAGE_BYTES", "1024")
        monkeypatch.setenv("NEXUS_CANVAS_DEBOUNCE_MS", "50")
        monkeypatch.setenv("NEXUS_MEMORY_SEARCH_LIMIT", "3")
        monkeypatch.setenv("NEXUS_MEMORY_MIN_SCORE", "0.3")
        monkeypatch.setenv("NEXUS_API_PORT", "9100")

        config = Config.from_env()

        assert config.asset_cache.timeout == 12.5
        assert config.asset_cache.max_image_bytes == 1024
        assert config.canvas_store.debounce_ms == 50
        assert config.memory_search.limit == 3
        assert config.memory_search.min_score == 0.3
        assert config.api.port == 9100

    def test_from_env_with_booleans(self, monkeypatch):
        """Test loading boolean values from environment."""
        monkeypatch.setenv("NEXUS_LOG_TO_FILE", "false")
        monkeypatch.setenv("NEXUS_LOG_SERIALIZE", "0")
        monkeypatch.setenv("NEXUS_DEBUG", "true")

        config = Config.from_env()

        assert config.logging.log_to_file is False
        assert config.logging.serialize is False
        assert config.debug is True

    def test_empty_env_value_uses_default(self, monkeypatch):
        """Test that empty strings fall back to defaults."""
        monkeypatch.setenv("NEXUS_ASSET_USER_AGENT", "")

        config = Config.from_env()

        assert config.asset_cache.user_agent == "Nexus/1.0"

    def test_from_env_file(self, monkeypatch, tmp_path):
        """Test loading values from an explicit .env file."""
        # Register the variable so monkeypatch restores it after load_dotenv sets it
        monkeypatch.setenv("NEXUS_LOG_LEVEL", "unused")
        monkeypatch.delenv("NEXUS_LOG_LEVEL")
        env_file = tmp_path / ".env.test"
        env_file.write_text("NEXUS_LOG_LEVEL=DEBUG\n")

        config = Config.from_env(env_file=env_file)

        assert config.logging.level == "DEBUG"

    def test_invalid_number(self, monkeypatch):
        """Test malformed numeric values raise ConfigurationError."""
        monkeypatch.setenv("NEXUS_API_PORT", "eighty")

        with pytest.raises(ConfigurationError, match="NEXUS_API_PORT"):
            Config.from_env()


class TestConfigFromYaml:
    """Test loading configuration from YAML files."""

    def test_from_yaml(self, tmp_path):
        """Test nested sections are parsed."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "canvas_store:\n"
            "  data_dir: /var/nexus/canvas\n"
            "  debounce_ms: 1000\n"
            "memory_search:\n"
            "  limit: 10\n"
        )

        config = Config.from_yaml(path)

        assert config.canvas_store.data_dir == "/var/nexus/canvas"
        assert config.canvas_store.debounce_ms == 1000
        assert config.memory_search.limit == 10
        # Untouched sections keep defaults
        assert config.asset_cache.user_agent == "Nexus/1.0"

    def test_from_yaml_missing_file(self, tmp_path):
        """Test missing YAML file raises."""
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "missing.yaml")

    def test_env_overrides_yaml(self, monkeypatch, tmp_path):
        """Test env values win over YAML values."""
        path = tmp_path / "config.yaml"
        path.write_text("canvas_store:\n  data_dir: /from/yaml\n")
        monkeypatch.setenv("NEXUS_CANVAS_DIR", "/from/env")

        config = Config.from_env_or_yaml(yaml_path=path)

        assert config.canvas_store.data_dir == "/from/env"

    def test_yaml_used_without_env(self, monkeypatch, tmp_path):
        """Test YAML values apply when env is unset."""
        monkeypatch.delenv("NEXUS_CANVAS_DIR", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("canvas_store:\n  data_dir: /from/yaml\n")

        config = Config.from_env_or_yaml(yaml_path=path)

        assert config.canvas_store.data_dir == "/from/yaml"
