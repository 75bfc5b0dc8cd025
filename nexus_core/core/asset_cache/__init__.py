"""
Remote asset cache for canvas images and media.

Downloads are stored under content-addressed filenames so repeated
requests for the same (url, token) reuse the same file.
"""

from nexus_core.core.asset_cache.asset_cache import (
    AssetCache,
    cache_key,
    extension_from_content_type,
    extension_from_url,
    is_inline_url,
    sanitize_extension,
)

__all__ = [
    "AssetCache",
    "cache_key",
    "extension_from_content_type",
    "extension_from_url",
    "is_inline_url",
    "sanitize_extension",
]
