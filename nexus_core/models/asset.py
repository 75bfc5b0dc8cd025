"""Asset cache models."""

from enum import Enum


class AssetKind(str, Enum):
    """Kind of cached asset; also the cache filename prefix."""

    IMAGE = "image"
    MEDIA = "media"
