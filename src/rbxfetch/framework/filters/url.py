"""
URL filter: fetch over HTTP with an on-disk cache.

The cache key is derived from the expanded address's host and path only, so
the same resource requested with a different scheme, query or fragment maps
to the same cache file. A cached entry is served as-is; nothing is
revalidated.

Cache population never exposes a partial file under the final key: the body
is written to a temp file in the cache directory, synced, and renamed into
place. If the rename fails the temp file is served for this call.

Usage:
    from rbxfetch.framework.filters.url import URLFilter

    f = URLFilter(url="https://setup.rbxcdn.com/$GUID-API-Dump.json")
    f.set_guid("version-123")
    f.set_cache(CacheMode.TEMP, None)
    with f:
        dump = f.read()
"""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Any
from urllib.parse import quote, unquote, urlsplit

import httpx

from rbxfetch.core.errors import CacheError, NetworkError, StatusError
from rbxfetch.core.logging import get_logger
from rbxfetch.core.settings import CacheMode
from rbxfetch.framework.filters.protocol import Filter, Params, expand_guid

logger = get_logger(__name__)

CACHE_DIR_NAME = "roblox-fetch"

# Characters left unescaped in a single path segment; "/" is escaped.
_SEGMENT_SAFE = "$&+,:;=@"


def cache_key(url: str) -> str:
    """Cache file name for *url*: percent-escaped host and path.

    >>> cache_key("https://setup.rbxcdn.com/version-1-API-Dump.json?x=1")
    'setup.rbxcdn.com%2Fversion-1-API-Dump.json'
    """
    parts = urlsplit(url)
    host = parts.netloc.rpartition("@")[2]
    return quote(host + unquote(parts.path), safe=_SEGMENT_SAFE)


def user_cache_dir() -> Path:
    """Per-user cache directory for the current platform.

    Raises:
        OSError: If the directory cannot be determined.
    """
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        if not local:
            raise OSError("%LOCALAPPDATA% is not defined")
        return Path(local)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches"
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg:
        return Path(xdg)
    home = os.environ.get("HOME")
    if not home:
        raise OSError("neither $XDG_CACHE_HOME nor $HOME are defined")
    return Path(home) / ".cache"


def cache_dir_for(mode: CacheMode, location: str | Path | None) -> Path | None:
    """Cache directory for *mode*, or ``None`` when caching is disabled."""
    match mode:
        case CacheMode.TEMP:
            return Path(tempfile.gettempdir()) / CACHE_DIR_NAME
        case CacheMode.PERM:
            try:
                base = user_cache_dir()
            except OSError:
                base = Path(tempfile.gettempdir())
            return base / CACHE_DIR_NAME
        case CacheMode.CUSTOM:
            if not location:
                raise CacheError("Custom cache mode requires a cache location")
            return Path(location)
        case _:
            return None


class ResponseReader:
    """File-like view over a streamed ``httpx.Response`` body."""

    def __init__(self, response: httpx.Response, owner: httpx.Client | None = None):
        self._response = response
        self._owner = owner
        self._chunks = response.iter_bytes()
        self._buffer = bytearray()
        self._eof = False

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the remaining body in transport-sized chunks."""
        if self._buffer:
            yield bytes(self._buffer)
            self._buffer.clear()
        yield from self._chunks
        self._eof = True

    def read(self, size: int = -1) -> bytes:
        try:
            if size is None or size < 0:
                for chunk in self._chunks:
                    self._buffer += chunk
                self._eof = True
                data = bytes(self._buffer)
                self._buffer.clear()
                return data
            while len(self._buffer) < size and not self._eof:
                try:
                    self._buffer += next(self._chunks)
                except StopIteration:
                    self._eof = True
        except httpx.HTTPError as e:
            url = str(self._response.url)
            raise NetworkError(f"download from {url}: {e}", cause=e).with_context(url=url) from e
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def close(self) -> None:
        try:
            self._response.close()
        finally:
            if self._owner is not None:
                self._owner.close()


class URLFilter(Filter):
    """Fetches the content at a templated URL, caching it on disk."""

    kind = "url"

    def __init__(
        self,
        source: Any = None,
        *,
        url: str,
        guid: str = "",
        client: httpx.Client | None = None,
        cache_mode: CacheMode = CacheMode.NONE,
        cache_location: str | Path | None = None,
    ):
        super().__init__(source)
        self.url = url
        self.guid = guid
        self.client = client
        self.cache_mode = cache_mode
        self.cache_location = cache_location

    @classmethod
    def new(cls, params: Params, source: Any) -> URLFilter:
        return cls(source, url=params.get_string("URL"))

    def set_guid(self, guid: str) -> None:
        self.guid = guid

    def set_client(self, client: httpx.Client | None) -> None:
        self.client = client

    def set_cache(self, mode: CacheMode, location: str | Path | None) -> None:
        self.cache_mode = mode
        self.cache_location = location

    def describe(self) -> str:
        return expand_guid(self.url, self.guid)

    # -------------------------------------------------------------------------
    # TRANSPORT
    # -------------------------------------------------------------------------

    def _download(self, url: str) -> ResponseReader:
        """Send a GET for *url* and return its body as a stream."""
        owner = None
        client = self.client
        if client is None:
            client = owner = httpx.Client(follow_redirects=True)
        try:
            response = client.send(client.build_request("GET", url), stream=True)
        except httpx.HTTPError as e:
            if owner is not None:
                owner.close()
            raise NetworkError(f"download from {url}: {e}", cause=e).with_context(url=url) from e
        if not response.is_success:
            response.close()
            if owner is not None:
                owner.close()
            raise StatusError(response.status_code, response.reason_phrase, url=url)
        return ResponseReader(response, owner)

    # -------------------------------------------------------------------------
    # CACHE
    # -------------------------------------------------------------------------

    def _populate(self, url: str, cache_dir: Path, cached_path: Path) -> Path:
        """Download *url* into *cache_dir* and move it to *cached_path*.

        Returns the path holding the complete download.
        """
        try:
            tmp = tempfile.NamedTemporaryFile(dir=cache_dir, prefix="temp", delete=False)
        except OSError as e:
            raise CacheError(f"create temp file in {cache_dir}: {e}", cause=e).with_context(
                path=str(cache_dir)
            ) from e

        tmp_path = Path(tmp.name)
        try:
            with tmp:
                body = self._download(url)
                try:
                    for chunk in body.iter_chunks():
                        tmp.write(chunk)
                finally:
                    body.close()
                tmp.flush()
                os.fsync(tmp.fileno())
        except httpx.HTTPError as e:
            tmp_path.unlink(missing_ok=True)
            raise NetworkError(f"download from {url}: {e}", cause=e).with_context(url=url) from e
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise CacheError(f"write {tmp_path}: {e}", cause=e).with_context(
                url=url, path=str(tmp_path)
            ) from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        try:
            os.replace(tmp_path, cached_path)
        except OSError as e:
            logger.debug("cache.rename_failed", temp=str(tmp_path), path=str(cached_path), error=str(e))
            return tmp_path
        logger.debug("cache.populated", url=url, path=str(cached_path))
        return cached_path

    def _open(self) -> IO[bytes] | ResponseReader:
        url = expand_guid(self.url, self.guid)
        cache_dir = cache_dir_for(self.cache_mode, self.cache_location)
        if cache_dir is None:
            logger.debug("fetch.direct", url=url)
            return self._download(url)

        try:
            cache_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"create cache directory {cache_dir}: {e}", cause=e).with_context(
                path=str(cache_dir)
            ) from e

        cached_path = cache_dir / cache_key(url)
        try:
            f = open(cached_path, "rb")
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheError(f"open {cached_path}: {e}", cause=e).with_context(path=str(cached_path)) from e
        else:
            logger.debug("cache.hit", url=url, path=str(cached_path))
            return f

        path = self._populate(url, cache_dir, cached_path)
        try:
            return open(path, "rb")
        except OSError as e:
            raise CacheError(f"open {path}: {e}", cause=e).with_context(path=str(path)) from e


__all__ = [
    "CACHE_DIR_NAME",
    "cache_key",
    "cache_dir_for",
    "user_cache_dir",
    "ResponseReader",
    "URLFilter",
]
