"""Utility modules for Nexus Core."""

from nexus_core.utils.codec import compress_json, decompress_json
from nexus_core.utils.exceptions import (
    AssetError,
    CodecError,
    ConfigurationError,
    NexusError,
    SerializationError,
    SizeLimitExceededError,
    StorageError,
    StoreError,
    TransportError,
    ValidationError,
)
from nexus_core.utils.logger import get_logger, relay_frontend_log, setup_logging
from nexus_core.utils.text import normalize_text, safe_slice, take_chars, value_string

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "relay_frontend_log",
    # Text
    "normalize_text",
    "safe_slice",
    "take_chars",
    "value_string",
    # Codec
    "compress_json",
    "decompress_json",
    # Exceptions
    "NexusError",
    "ValidationError",
    "AssetError",
    "TransportError",
    "SizeLimitExceededError",
    "StoreError",
    "StorageError",
    "SerializationError",
    "CodecError",
    "ConfigurationError",
]
