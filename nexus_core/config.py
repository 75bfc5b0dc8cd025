"""
Configuration for Nexus Core.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from nexus_core.utils.exceptions import ConfigurationError

MIB = 1024 * 1024


class AssetCacheConfig(BaseModel):
    """Remote asset cache configuration."""

    cache_dir: str = "data/cache"
    user_agent: str = "Nexus/1.0"
    timeout: float = 60.0
    max_image_bytes: int = Field(default=50 * MIB, ge=1)
    max_media_bytes: int = Field(default=300 * MIB, ge=1)


class CanvasStoreConfig(BaseModel):
    """Canvas snapshot persistence configuration."""

    data_dir: str = "data/nexus-canvas"
    # Idle period before pending snapshots are flushed
    debounce_ms: int = Field(default=650, ge=1)


class MemorySearchConfig(BaseModel):
    """Lexical memory retrieval defaults."""

    limit: int = Field(default=6, ge=1)
    min_score: float = 0.12


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"
    file_rotation: str = "2 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True


class APIConfig(BaseModel):
    """Local command API configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


class Config(BaseModel):
    """Main configuration."""

    asset_cache: AssetCacheConfig = Field(default_factory=AssetCacheConfig)
    canvas_store: CanvasStoreConfig = Field(default_factory=CanvasStoreConfig)
    memory_search: MemorySearchConfig = Field(default_factory=MemorySearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    debug: bool = False

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed

        Environment variables:
            NEXUS_CACHE_DIR: Root directory of the asset caches
            NEXUS_ASSET_USER_AGENT: User-Agent sent when fetching assets
            NEXUS_ASSET_TIMEOUT: Asset request timeout in seconds
            NEXUS_MAX_IMAGE_BYTES: Largest image body accepted
            NEXUS_MAX_MEDIA_BYTES: Largest media body accepted
            NEXUS_CANVAS_DIR: Directory holding canvas snapshots
            NEXUS_CANVAS_DEBOUNCE_MS: Save worker idle period
            NEXUS_MEMORY_SEARCH_LIMIT: Default number of memory hits
            NEXUS_MEMORY_MIN_SCORE: Default minimum composite score
            NEXUS_LOG_LEVEL: Log level
            NEXUS_API_HOST / NEXUS_API_PORT: Command API bind address
        """
        # Load .env file if provided or exists
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            # If value is empty string, return default
            if value == "":
                return default
            # Convert boolean strings
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            # Convert numeric strings
            try:
                if isinstance(default, int):
                    return int(value)
                if isinstance(default, float):
                    return float(value)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {key}: {value!r}", context={"key": key}
                ) from e
            return value

        return cls(
            asset_cache=AssetCacheConfig(
                cache_dir=get_env("NEXUS_CACHE_DIR", "data/cache"),
                user_agent=get_env("NEXUS_ASSET_USER_AGENT", "Nexus/1.0"),
                timeout=get_env("NEXUS_ASSET_TIMEOUT", 60.0),
                max_image_bytes=get_env("NEXUS_MAX_IMAGE_BYTES", 50 * MIB),
                max_media_bytes=get_env("NEXUS_MAX_MEDIA_BYTES", 300 * MIB),
            ),
            canvas_store=CanvasStoreConfig(
                data_dir=get_env("NEXUS_CANVAS_DIR", "data/nexus-canvas"),
                debounce_ms=get_env("NEXUS_CANVAS_DEBOUNCE_MS", 650),
            ),
            memory_search=MemorySearchConfig(
                limit=get_env("NEXUS_MEMORY_SEARCH_LIMIT", 6),
                min_score=get_env("NEXUS_MEMORY_MIN_SCORE", 0.12),
            ),
            logging=LoggingConfig(
                level=get_env("NEXUS_LOG_LEVEL", "INFO"),
                log_to_file=get_env("NEXUS_LOG_TO_FILE", True),
                log_dir=get_env("NEXUS_LOG_DIR", "logs"),
                file_rotation=get_env("NEXUS_LOG_FILE_ROTATION", "2 MB"),
                file_retention=get_env("NEXUS_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("NEXUS_LOG_COMPRESSION", "zip"),
                serialize=get_env("NEXUS_LOG_SERIALIZE", True),
            ),
            api=APIConfig(
                host=get_env("NEXUS_API_HOST", "127.0.0.1"),
                port=get_env("NEXUS_API_PORT", 8000),
            ),
            debug=get_env("NEXUS_DEBUG", False),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        return cls(**(data or {}))

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        # Start with YAML if provided
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        # Override with env vars if present
        env_config = cls.from_env(env_file=env_file)

        # Merge: env vars override YAML
        final_dict = {**config_dict}

        # Apply env overrides (non-default values)
        default = cls()
        if env_config.asset_cache != default.asset_cache:
            final_dict["asset_cache"] = env_config.asset_cache.model_dump()
        if env_config.canvas_store != default.canvas_store:
            final_dict["canvas_store"] = env_config.canvas_store.model_dump()
        if env_config.memory_search != default.memory_search:
            final_dict["memory_search"] = env_config.memory_search.model_dump()
        if env_config.logging != default.logging:
            final_dict["logging"] = env_config.logging.model_dump()
        if env_config.api != default.api:
            final_dict["api"] = env_config.api.model_dump()

        # Also check top-level fields
        if env_config.debug != default.debug:
            final_dict["debug"] = env_config.debug

        return cls(**final_dict) if final_dict else env_config


