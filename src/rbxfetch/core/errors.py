"""
Structured error types for rbxfetch.

Every failure raised by a filter, a chain resolution or the client is an
``RbxFetchError`` subclass carrying a category, a retryable flag, structured
context (chain, stage, guid, url, status, path) and the chained cause.

Manifesto:
    - **Typed Error Hierarchy:** One error type per failure kind
    - **Rich Context:** Errors carry the address or path that failed
    - **Error Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       RbxFetchError                              │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError        ResolutionError     TransientError          │
        │  (CONFIG)           (CONFIG)            (NETWORK, retryable)    │
        │       │                  │                    │                  │
        │  InvalidConfig      ChainNotFound        NetworkError           │
        │                     FilterNotFound                               │
        │                     BadParams                                    │
        │                                                                  │
        │  SourceError        ParseError          CacheError              │
        │  (SOURCE)           (PARSE)             (STORAGE)               │
        │       │                  │                                       │
        │  SourceNotFound     DecodeError         StreamClosedError       │
        │  StatusError                            (INTERNAL)              │
        │  ArchiveError ── MemberNotFound                                  │
        │  ScanError                                                       │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = StatusError(404, "Not Found", url="https://setup.rbxcdn.com/x")
    >>> error.status
    404
    >>> error.context.url
    'https://setup.rbxcdn.com/x'

Tags:
    error-handling, exception-hierarchy, error-context, rbxfetch

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification.

    Attributes:
        NETWORK: Connection, DNS, transport errors
        STORAGE: Cache directory, temp file, rename errors
        SOURCE: Origin returned an error, file or member missing
        PARSE: Malformed structured content
        CONFIG: Unknown chain, unknown filter, bad parameters
        INTERNAL: Misuse of a stream handle
        UNKNOWN: Uncategorized errors
    """

    NETWORK = "NETWORK"
    STORAGE = "STORAGE"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        chain: Name of the chain being resolved or read
        stage: Filter kind of the stage that failed
        guid: Build identifier in effect
        url: Address that was being fetched
        http_status: HTTP status code if applicable
        path: Local path (file, cache entry) involved
        metadata: Additional key-value pairs
    """

    chain: str | None = None
    stage: str | None = None
    guid: str | None = None
    url: str | None = None
    http_status: int | None = None
    path: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["chain", "stage", "guid", "url", "http_status", "path"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RbxFetchError(Exception):
    """
    Base exception for all rbxfetch errors.

    Subclasses set ``default_category`` and ``default_retryable``. Context is
    added fluently with :meth:`with_context`, and the original exception is
    kept as ``cause`` (and ``__cause__``) when wrapping.

    Examples:
        >>> error = RbxFetchError("Fetch failed").with_context(chain="APIDump")
        >>> error.context.chain
        'APIDump'
        >>> error.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RbxFetchError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("Failed").with_context(
                url="https://setup.rbxcdn.com/DeployHistory.txt"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION / RESOLUTION ERRORS
# =============================================================================


class ConfigError(RbxFetchError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


class ResolutionError(RbxFetchError):
    """A named chain could not be turned into a live filter chain."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ChainNotFoundError(ResolutionError):
    """Chain not found in the chain set."""

    def __init__(self, name: str):
        self.chain_name = name
        super().__init__(f"Chain not found: {name}")
        self.context.chain = name


class FilterNotFoundError(ResolutionError):
    """Filter kind not registered with the chain set."""

    def __init__(self, name: str):
        self.filter_name = name
        super().__init__(f"Filter not found: {name}")
        self.context.stage = name


class BadParamsError(ResolutionError):
    """Invalid stage parameters."""

    def __init__(
        self,
        message: str,
        *,
        missing_params: list[str] | None = None,
        invalid_params: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.missing_params = missing_params or []
        self.invalid_params = invalid_params or []


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(RbxFetchError):
    """Temporary error that may succeed if the caller tries again."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class NetworkError(TransientError):
    """The transport failed before a response was received."""

    default_category = ErrorCategory.NETWORK


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(RbxFetchError):
    """
    Error from a data source.

    Default not retryable (e.g., file not found, 404).
    """

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class SourceNotFoundError(SourceError):
    """Source data not found (local file)."""

    pass


class StatusError(SourceError):
    """The origin answered with a non-2xx status."""

    def __init__(self, status: int, reason: str, *, url: str | None = None):
        self.status = status
        self.reason = reason
        self.url = url
        detail = f"{status} {reason}".strip()
        message = f"{detail} ({status})"
        if url:
            message = f"download from {url}: {message}"
        super().__init__(message)
        self.context.url = url
        self.context.http_status = status


class ArchiveError(SourceError):
    """The upstream could not be read as an archive."""

    pass


class MemberNotFoundError(ArchiveError):
    """The requested member is not in the archive."""

    def __init__(self, member: str, archive: str | None = None):
        self.member = member
        self.archive = archive
        message = f"{member!r} not in archive"
        if archive:
            message = f"{message} {archive}"
        super().__init__(message)
        self.context.metadata["member"] = member


class ScanError(SourceError):
    """No qualifying embedded image was found."""

    pass


# =============================================================================
# PARSE ERRORS
# =============================================================================


class ParseError(RbxFetchError):
    """Error parsing source data."""

    default_category = ErrorCategory.PARSE
    default_retryable = False


class DecodeError(ParseError):
    """Structured content (JSON) could not be decoded."""

    pass


# =============================================================================
# STORAGE / STREAM ERRORS
# =============================================================================


class CacheError(RbxFetchError):
    """Cache directory, temp file, sync or rename failed."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class StreamClosedError(RbxFetchError):
    """The stream handle was already closed."""

    default_category = ErrorCategory.INTERNAL
    default_retryable = False

    def __init__(self, message: str = "stream is closed", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, RbxFetchError):
        return error.category
    if isinstance(error, ConnectionError):
        return ErrorCategory.NETWORK
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    if isinstance(error, ValueError):
        return ErrorCategory.PARSE
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RbxFetchError",
    # Config / resolution
    "ConfigError",
    "InvalidConfigError",
    "ResolutionError",
    "ChainNotFoundError",
    "FilterNotFoundError",
    "BadParamsError",
    # Transient
    "TransientError",
    "NetworkError",
    # Source
    "SourceError",
    "SourceNotFoundError",
    "StatusError",
    "ArchiveError",
    "MemberNotFoundError",
    "ScanError",
    # Parse
    "ParseError",
    "DecodeError",
    # Storage / stream
    "CacheError",
    "StreamClosedError",
    # Utilities
    "categorize_error",
]
