"""
Content-addressed cache for remote images and media.

Files are stored as {kind}-{sha256(url + token)}.{ext} under a per-kind
directory. The file's existence is the cache hit signal; there is no index.

Images are buffered in memory and rejected above the image limit before
anything is written. Media is streamed straight to disk and the partial
file is removed as soon as the media limit is crossed. A transport or disk
failure in the middle of a media stream can still leave a partial file
behind, and a later call will treat it as a hit.

There is no per-key lock: concurrent fetches of the same URL may both
download, and existence checks keep the final state idempotent.
"""

import hashlib
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import aiofiles
import httpx

from nexus_core.config import AssetCacheConfig
from nexus_core.models.asset import AssetKind
from nexus_core.utils.exceptions import (
    SizeLimitExceededError,
    StorageError,
    TransportError,
    ValidationError,
)
from nexus_core.utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_CACHE_DIR = "nexus-image-cache"
MEDIA_CACHE_DIR = "nexus-media-cache"

INLINE_URL_PREFIXES = ("data:", "blob:")

# Checked in order with a prefix match on the lower-cased Content-Type
CONTENT_TYPE_EXTENSIONS: tuple[tuple[str, str], ...] = (
    ("image/png", "png"),
    ("image/jpeg", "jpg"),
    ("image/jpg", "jpg"),
    ("image/webp", "webp"),
    ("image/gif", "gif"),
    ("image/svg+xml", "svg"),
    ("image/avif", "avif"),
    ("image/heic", "heic"),
    ("image/heif", "heif"),
    ("video/mp4", "mp4"),
    ("video/webm", "webm"),
    ("video/quicktime", "mov"),
    ("audio/mpeg", "mp3"),
    ("audio/mp4", "m4a"),
    ("audio/m4a", "m4a"),
    ("audio/wav", "wav"),
)

DEFAULT_EXTENSIONS = {AssetKind.IMAGE: "png", AssetKind.MEDIA: "bin"}
CACHE_DIRS = {AssetKind.IMAGE: IMAGE_CACHE_DIR, AssetKind.MEDIA: MEDIA_CACHE_DIR}


def is_inline_url(url: str) -> bool:
    """data: and blob: URLs are already local and are never cached."""
    return url.startswith(INLINE_URL_PREFIXES)


def cache_key(url: str, auth_token: str | None = None) -> str:
    """Lower-case hex SHA-256 of the URL followed by the token (if any)."""
    hasher = hashlib.sha256()
    hasher.update(url.encode("utf-8"))
    if auth_token:
        hasher.update(auth_token.encode("utf-8"))
    return hasher.hexdigest()


def sanitize_extension(ext: str | None) -> str | None:
    """
    Normalize a file extension.

    Returns:
        Lower-case extension of 2-6 ASCII alphanumeric characters, or None
    """
    if ext is None:
        return None
    trimmed = ext.strip().lstrip(".").lower()
    if not 2 <= len(trimmed) <= 6:
        return None
    if not all(ch.isascii() and ch.isalnum() for ch in trimmed):
        return None
    return trimmed


def extension_from_url(url: str) -> str | None:
    """Extension of the URL path's last segment, sanitized."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme:
        return None
    suffix = PurePosixPath(parsed.path).suffix
    if not suffix:
        return None
    return sanitize_extension(suffix)


def validate_remote_url(url: str) -> httpx.URL:
    """
    Parse a remote URL the way the HTTP client will.

    Raises:
        ValidationError: The URL cannot be parsed
    """
    try:
        return httpx.URL(url)
    except (httpx.InvalidURL, ValueError) as e:
        raise ValidationError(f"Invalid asset URL: {e}", context={"url": url}) from e


def extension_from_content_type(content_type: str | None) -> str | None:
    """Map a Content-Type header onto a cache file extension."""
    if not content_type:
        return None
    lowered = content_type.lower()
    for prefix, ext in CONTENT_TYPE_EXTENSIONS:
        if lowered.startswith(prefix):
            return ext
    return None


class AssetCache:
    """
    Async remote asset cache.

    Usage:
        cache = AssetCache(config=AssetCacheConfig(cache_dir="/tmp/cache"))
        path = await cache.cache_remote_image("https://example.com/a.png", token)
        await cache.close()
    """

    def __init__(
        self,
        config: AssetCacheConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize asset cache.

        Args:
            config: Cache directory, limits and HTTP settings
            client: Optional shared HTTP client; created lazily when omitted
        """
        self.config = config or AssetCacheConfig()
        self.cache_dir = Path(self.config.cache_dir)
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Lazily created HTTP client shared by all fetches.

        Returns:
            httpx async client
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent},
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this cache created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def cache_root(self, kind: AssetKind) -> Path:
        """Directory holding cached files of one kind (created on demand)."""
        root = self.cache_dir / CACHE_DIRS[kind]
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create cache directory {root}: {e}") from e
        return root

    def _request_headers(self, auth_token: str | None) -> dict[str, str]:
        headers = {"User-Agent": self.config.user_agent}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        return headers

    async def fetch_and_cache(
        self,
        url: str,
        auth_token: str | None = None,
        kind: AssetKind = AssetKind.IMAGE,
    ) -> str:
        """
        Return a local path for a remote asset, downloading it if needed.

        Args:
            url: Remote URL (data: and blob: URLs are returned unchanged)
            auth_token: Optional bearer token; part of the cache key
            kind: IMAGE (buffered) or MEDIA (streamed)

        Returns:
            Local file path, or the original URL for inline URLs

        Raises:
            ValidationError: Malformed URL (no request is made)
            TransportError: Non-2xx status, network failure or timeout
            SizeLimitExceededError: Body larger than the configured limit
            StorageError: Cache directory or file could not be written
        """
        if is_inline_url(url):
            return url

        validate_remote_url(url)
        kind = AssetKind(kind)
        root = self.cache_root(kind)
        stem = f"{kind.value}-{cache_key(url, auth_token)}"

        url_ext = extension_from_url(url)
        if url_ext:
            cached = root / f"{stem}.{url_ext}"
            if cached.exists():
                logger.debug(f"Asset cache hit: {cached.name}")
                return str(cached)

        if kind == AssetKind.MEDIA:
            return await self._fetch_media(url, auth_token, root, stem, url_ext)
        return await self._fetch_image(url, auth_token, root, stem, url_ext)

    async def cache_remote_image(self, url: str, auth_token: str | None = None) -> str:
        """Cache a remote image (buffered, 50 MiB limit by default)."""
        return await self.fetch_and_cache(url, auth_token, AssetKind.IMAGE)

    async def cache_remote_media(self, url: str, auth_token: str | None = None) -> str:
        """Cache a remote video/audio file (streamed, 300 MiB limit by default)."""
        return await self.fetch_and_cache(url, auth_token, AssetKind.MEDIA)

    @staticmethod
    def _check_status(response: httpx.Response, url: str) -> None:
        if not response.is_success:
            logger.bind(url=url, status_code=response.status_code).error(
                f"Asset download failed with HTTP {response.status_code}"
            )
            raise TransportError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                context={"url": url},
            )

    @staticmethod
    def _resolve_extension(kind: AssetKind, url_ext: str | None, content_type: str | None) -> str:
        return url_ext or extension_from_content_type(content_type) or DEFAULT_EXTENSIONS[kind]

    async def _fetch_image(
        self,
        url: str,
        auth_token: str | None,
        root: Path,
        stem: str,
        url_ext: str | None,
    ) -> str:
        try:
            response = await self.client.get(url, headers=self._request_headers(auth_token))
        except httpx.HTTPError as e:
            logger.bind(url=url, error=str(e)).error("Image request failed")
            raise TransportError(f"Request failed: {e}", context={"url": url}) from e
        except (httpx.InvalidURL, ValueError) as e:
            raise ValidationError(f"Invalid asset URL: {e}", context={"url": url}) from e

        self._check_status(response, url)

        body = response.content
        if len(body) > self.config.max_image_bytes:
            raise SizeLimitExceededError(
                "Image too large, refusing to cache",
                context={"url": url, "bytes": len(body), "limit": self.config.max_image_bytes},
            )

        ext = self._resolve_extension(AssetKind.IMAGE, url_ext, response.headers.get("content-type"))
        target = root / f"{stem}.{ext}"

        if not target.exists():
            try:
                async with aiofiles.open(target, "wb") as f:
                    await f.write(body)
            except OSError as e:
                raise StorageError(f"Failed to write {target}: {e}") from e
            logger.info(f"Cached image {target.name} ({len(body)} bytes)")

        return str(target)

    async def _fetch_media(
        self,
        url: str,
        auth_token: str | None,
        root: Path,
        stem: str,
        url_ext: str | None,
    ) -> str:
        try:
            async with self.client.stream(
                "GET", url, headers=self._request_headers(auth_token)
            ) as response:
                self._check_status(response, url)

                ext = self._resolve_extension(
                    AssetKind.MEDIA, url_ext, response.headers.get("content-type")
                )
                target = root / f"{stem}.{ext}"
                if target.exists():
                    logger.debug(f"Asset cache hit after content-type lookup: {target.name}")
                    return str(target)

                size = await self._stream_to_file(response, target, url)
        except httpx.HTTPError as e:
            logger.bind(url=url, error=str(e)).error("Media request failed")
            raise TransportError(f"Request failed: {e}", context={"url": url}) from e
        except (httpx.InvalidURL, ValueError) as e:
            raise ValidationError(f"Invalid asset URL: {e}", context={"url": url}) from e

        logger.info(f"Cached media {target.name} ({size} bytes)")
        return str(target)

    async def _stream_to_file(self, response: httpx.Response, target: Path, url: str) -> int:
        """
        Append response chunks to target, enforcing the media size limit.

        Returns:
            Number of bytes written
        """
        limit = self.config.max_media_bytes
        size = 0
        overflow = False
        try:
            async with aiofiles.open(target, "wb") as f:
                async for chunk in response.aiter_bytes():
                    size += len(chunk)
                    if size > limit:
                        overflow = True
                        break
                    await f.write(chunk)
                await f.flush()
        except OSError as e:
            raise StorageError(f"Failed to write {target}: {e}") from e

        if overflow:
            target.unlink(missing_ok=True)
            raise SizeLimitExceededError(
                "Media file too large, refusing to cache",
                context={"url": url, "limit": limit},
            )
        return size
