"""
Lazy filter protocol for chained byte streams.

A filter is one stage of a chain: a readable, closable byte stream that either
originates data (``url``, ``file``) or wraps an upstream stream (``zip``,
``iconscan``). Building a chain performs no I/O; the first non-empty ``read``
opens the stage, and a failure to open is stored and raised again on every
later ``read`` or ``close``.

Stages may also accept configuration injected after resolution. The client
probes each stage for the optional capability protocols below and configures
only the stages that implement them.

Design Principles:
    - Protocol over Inheritance: capabilities are runtime-checkable protocols
    - Lazy execution: resolution and I/O are separate phases
    - Explicit release: a handle is closed exactly once by its owner

Usage:
    from rbxfetch.framework.filters import FileFilter, ZipFilter, apply

    f = ZipFilter(FileFilter(path="$GUID.zip"), file="ReflectionMetadata.xml")
    apply(f, lambda stage: isinstance(stage, GuidAware) and stage.set_guid("version-abc"))
    with f:
        data = f.read()
"""

from __future__ import annotations

import re
from abc import abstractmethod
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import IO, Any, ClassVar, Protocol, runtime_checkable

import httpx

from rbxfetch.core.errors import BadParamsError, RbxFetchError, StreamClosedError
from rbxfetch.core.settings import CacheMode

# $name, ${name}, or a single special character / digit after $
_EXPAND_RE = re.compile(r"\$(?:\{(?P<braced>[^}]*)\}|(?P<special>[*#$@!?\-0-9])|(?P<name>[A-Za-z_][A-Za-z0-9_]*))")


def expand_guid(template: str, guid: str) -> str:
    """Replace ``$GUID`` / ``${guid}`` tokens in *template* with *guid*.

    Token names are matched case-insensitively. Any other token expands to
    the empty string. A ``$`` that does not start a token is left as is.

    >>> expand_guid("https://setup.rbxcdn.com/$GUID-API-Dump.json", "version-1")
    'https://setup.rbxcdn.com/version-1-API-Dump.json'
    >>> expand_guid("${Guid}/$OTHER/x", "v")
    'v//x'
    """

    def _sub(match: re.Match[str]) -> str:
        name = match.group("braced")
        if name is None:
            name = match.group("special") or match.group("name")
        if name.lower() == "guid":
            return guid
        return ""

    return _EXPAND_RE.sub(_sub, template)


class Params(dict[str, Any]):
    """Stage parameters with typed accessors.

    Missing keys read as the zero value of the requested type.
    """

    def get_string(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise BadParamsError(
                f"Parameter {key!r} must be a string, got {type(value).__name__}",
                invalid_params=[key],
            )
        return value

    def get_int(self, key: str) -> int:
        value = self.get(key)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise BadParamsError(
                f"Parameter {key!r} must be an integer, got {type(value).__name__}",
                invalid_params=[key],
            )
        try:
            return int(value)
        except ValueError as e:
            raise BadParamsError(
                f"Parameter {key!r} must be an integer, got {value!r}",
                invalid_params=[key],
                cause=e,
            ) from e


# =============================================================================
# CAPABILITIES
# =============================================================================


@runtime_checkable
class GuidAware(Protocol):
    """Stage that substitutes the build identifier into its address."""

    def set_guid(self, guid: str) -> None:
        ...


@runtime_checkable
class TransportAware(Protocol):
    """Stage that performs HTTP requests and may cache their responses."""

    def set_client(self, client: httpx.Client | None) -> None:
        ...

    def set_cache(self, mode: CacheMode, location: str | Path | None) -> None:
        ...


# =============================================================================
# BASE FILTER
# =============================================================================


class Filter:
    """
    Base class for lazy chain stages.

    Subclasses implement :meth:`_open`, which performs the stage's I/O and
    returns the stream that ``read`` delegates to. ``_open`` runs at most once.

    State:
        - ``_stream`` is ``None`` until the first successful open
        - ``_err`` holds the open failure, or ``StreamClosedError`` once closed
    """

    kind: ClassVar[str] = ""

    def __init__(self, source: Any = None):
        self._source = source
        self._stream: IO[bytes] | Any = None
        self._err: BaseException | None = None

    @property
    def source(self) -> Any:
        """Upstream stage or stream (``None`` for origin stages)."""
        return self._source

    @property
    def closed(self) -> bool:
        """True once the filter has been closed or has failed to open."""
        return self._err is not None

    def describe(self) -> str:
        """Short label naming where this stage's bytes come from."""
        if isinstance(self._source, Filter):
            return self._source.describe()
        return f"<{self.kind or type(self).__name__}>"

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    @abstractmethod
    def _open(self) -> IO[bytes] | Any:
        """Perform the stage's I/O and return a readable stream."""
        raise NotImplementedError

    def read(self, size: int = -1) -> bytes:
        """Read up to *size* bytes (all remaining bytes if negative)."""
        if self._err is not None:
            raise self._err
        if size == 0:
            return b""
        if self._stream is None:
            try:
                self._stream = self._open()
            except Exception as exc:
                self._err = exc
                raise
        if size is None or size < 0:
            return self._stream.read()
        return self._stream.read(size)

    def readall(self) -> bytes:
        return self.read(-1)

    def close(self) -> None:
        """Release the opened stream, or the upstream if never opened.

        Raises the stored failure if the filter failed, or
        ``StreamClosedError`` if it was already closed.
        """
        if self._err is not None:
            raise self._err
        target = self._stream if self._stream is not None else self._source
        try:
            if target is not None:
                target.close()
        except Exception as exc:
            self._err = exc
            raise
        self._err = StreamClosedError(f"{self.describe()}: stream is closed")

    def __enter__(self) -> Filter:
        return self

    def __exit__(self, *args: Any) -> None:
        if not self.closed:
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()!r})"


# =============================================================================
# CHAIN WALKING
# =============================================================================


def walk(f: Any) -> Iterator[Filter]:
    """Yield *f* and each upstream ``Filter`` behind it, outermost first."""
    while isinstance(f, Filter):
        yield f
        f = f.source


def apply(f: Any, fn: Callable[[Filter], None]) -> None:
    """Call *fn* on every stage of the chain ending in *f*."""
    for stage in walk(f):
        fn(stage)


def is_random_access(stream: Any) -> bool:
    """True when *stream* can be used directly as a seekable container."""
    seekable = getattr(stream, "seekable", None)
    if not callable(seekable) or not callable(getattr(stream, "seek", None)):
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError, RbxFetchError):
        return False


__all__ = [
    "expand_guid",
    "Params",
    "GuidAware",
    "TransportAware",
    "Filter",
    "walk",
    "apply",
    "is_random_access",
]
