"""
rbxfetch core - errors, logging and settings shared by every module.
"""

from rbxfetch.core.errors import (
    ArchiveError,
    BadParamsError,
    CacheError,
    ChainNotFoundError,
    ConfigError,
    DecodeError,
    ErrorCategory,
    ErrorContext,
    FilterNotFoundError,
    InvalidConfigError,
    MemberNotFoundError,
    NetworkError,
    ParseError,
    RbxFetchError,
    ResolutionError,
    ScanError,
    SourceError,
    SourceNotFoundError,
    StatusError,
    StreamClosedError,
    TransientError,
    categorize_error,
)
from rbxfetch.core.logging import configure_logging, get_logger
from rbxfetch.core.settings import CacheMode, RbxFetchSettings

__all__ = [
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "RbxFetchError",
    "ConfigError",
    "InvalidConfigError",
    "ResolutionError",
    "ChainNotFoundError",
    "FilterNotFoundError",
    "BadParamsError",
    "TransientError",
    "NetworkError",
    "SourceError",
    "SourceNotFoundError",
    "StatusError",
    "ArchiveError",
    "MemberNotFoundError",
    "ScanError",
    "ParseError",
    "DecodeError",
    "CacheError",
    "StreamClosedError",
    "categorize_error",
    # Logging
    "configure_logging",
    "get_logger",
    # Settings
    "CacheMode",
    "RbxFetchSettings",
]
