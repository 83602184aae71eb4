"""
File filter: read a local file whose path may contain ``$GUID``.

Usage:
    from rbxfetch.framework.filters.file import FileFilter

    source = FileFilter(path="/mirror/$GUID-API-Dump.json", guid="version-123")
    with source:
        dump = source.read()
"""

from __future__ import annotations

from typing import IO, Any

from rbxfetch.core.errors import SourceError, SourceNotFoundError
from rbxfetch.framework.filters.protocol import Filter, Params, expand_guid


class FileFilter(Filter):
    """Opens a templated local path on first read."""

    kind = "file"

    def __init__(self, source: Any = None, *, path: str, guid: str = ""):
        super().__init__(source)
        self.path = path
        self.guid = guid

    @classmethod
    def new(cls, params: Params, source: Any) -> FileFilter:
        return cls(source, path=params.get_string("Path"))

    def set_guid(self, guid: str) -> None:
        self.guid = guid

    def describe(self) -> str:
        return expand_guid(self.path, self.guid)

    def _open(self) -> IO[bytes]:
        path = self.describe()
        try:
            return open(path, "rb")
        except FileNotFoundError as e:
            raise SourceNotFoundError(f"File not found: {path}", cause=e).with_context(path=path) from e
        except OSError as e:
            raise SourceError(f"Failed to open file: {path}", cause=e).with_context(path=path) from e


__all__ = ["FileFilter"]
