"""
Compact JSON codec used by the canvas front end for large payloads.

Format: base64(lz4 block with a 4-byte little-endian uncompressed size prefix)
of the compact UTF-8 JSON encoding.
"""

import base64
import binascii
import json
from typing import Any

import lz4.block

from nexus_core.utils.exceptions import CodecError
from nexus_core.utils.logger import get_logger

logger = get_logger(__name__)


def compress_json(value: Any) -> str:
    """
    Compress a JSON-compatible value into a base64 string.

    Args:
        value: JSON-compatible value

    Returns:
        Base64 text of the size-prefixed lz4 block

    Raises:
        CodecError: If the value cannot be encoded as JSON
    """
    try:
        raw = json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise CodecError(f"Value is not JSON serializable: {e}") from e

    compressed = lz4.block.compress(raw, store_size=True)
    return base64.b64encode(compressed).decode("ascii")


def decompress_json(b64: str) -> Any:
    """
    Decode a payload produced by compress_json.

    Args:
        b64: Base64 text

    Returns:
        Decoded JSON value

    Raises:
        CodecError: If base64, lz4 or JSON decoding fails
    """
    try:
        compressed = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CodecError(f"Invalid base64 payload: {e}") from e

    try:
        raw = lz4.block.decompress(compressed)
    except lz4.block.LZ4BlockError as e:
        logger.bind(payload_bytes=len(compressed), error=str(e)).error("LZ4 decompression failed")
        raise CodecError(f"Invalid lz4 payload: {e}") from e

    try:
        return json.loads(raw)
    except ValueError as e:
        raise CodecError(f"Invalid JSON payload: {e}") from e
