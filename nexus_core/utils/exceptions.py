"""
Custom exception hierarchy for Nexus Core.

Provides structured error types for the asset cache, canvas persistence
and JSON codec. All exceptions inherit from NexusError for easy catching.
"""


class NexusError(Exception):
    """
    Base exception for all Nexus Core errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Nexus error.
        Args:
            message: Human-readable error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ValidationError(NexusError):
    """
    Validation errors.
    Raised when an identifier is empty or input is otherwise unusable.
    """

    pass


class AssetError(NexusError):
    """
    Base exception for asset cache operations.
    """

    pass


class TransportError(AssetError):
    """
    Transport errors.
    Raised on non-2xx HTTP status, network failure or timeout.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict | None = None,
    ):
        """
        Initialize transport error.
        Args:
            message: Error message
            status_code: HTTP status code when the server answered
            context: Optional context dictionary
        """
        super().__init__(message, context)
        self.status_code = status_code


class SizeLimitExceededError(AssetError):
    """
    Size limit errors.
    Raised when a downloaded image or media file exceeds its byte limit.
    """

    pass


class StoreError(NexusError):
    """
    Base exception for local storage operations (snapshots and cached files).
    """

    pass


class StorageError(StoreError):
    """
    Filesystem errors.
    Raised when reading, writing, renaming or removing a snapshot or cached
    asset fails, or when the save queue has been closed.
    """

    pass


class SerializationError(StoreError):
    """
    Serialization errors.
    Raised when a snapshot cannot be encoded or a stored file is not valid JSON.
    """

    pass


class CodecError(NexusError):
    """
    JSON codec errors.
    Raised when compressed payloads cannot be encoded or decoded.
    """

    pass


class ConfigurationError(NexusError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
