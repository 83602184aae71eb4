"""
Zip filter: expose one member of a zip archive read from the upstream.

The zip central directory sits at the end of the file, so the container must
be random-access. A seekable upstream is used in place; anything else is
read into memory in full first and closed.

Usage:
    from rbxfetch.framework.filters.archive import ZipFilter

    f = ZipFilter(upstream, file="ReflectionMetadata.xml")
    with f:
        xml = f.read()
"""

from __future__ import annotations

import io
import zipfile
from typing import IO, Any

from rbxfetch.core.errors import ArchiveError, MemberNotFoundError
from rbxfetch.core.logging import get_logger
from rbxfetch.framework.filters.protocol import Filter, Params, is_random_access

logger = get_logger(__name__)


class MemberReader:
    """An open archive member that also owns the archive's container."""

    def __init__(self, member: IO[bytes], archive: zipfile.ZipFile, container: Any):
        self._member = member
        self._archive = archive
        self._container = container

    def read(self, size: int = -1) -> bytes:
        return self._member.read(size)

    def close(self) -> None:
        """Close the member, then the container.

        If both fail, the member's failure is raised.
        """
        member_err: Exception | None = None
        try:
            self._member.close()
        except Exception as e:
            member_err = e
        try:
            try:
                self._archive.close()
            finally:
                self._container.close()
        except Exception:
            if member_err is None:
                raise
        if member_err is not None:
            raise member_err


def open_member(container: Any, name: str, archive: str | None = None) -> MemberReader:
    """Open member *name* of the zip archive in the seekable *container*.

    The container is closed if the member cannot be opened.

    Raises:
        MemberNotFoundError: If no member is named *name*.
        ArchiveError: If *container* is not a readable zip archive.
    """
    try:
        zf = zipfile.ZipFile(container)
    except (zipfile.BadZipFile, OSError, ValueError) as e:
        container.close()
        raise ArchiveError(f"read archive {archive or ''}: {e}".strip(), cause=e) from e

    try:
        for info in zf.infolist():
            if info.filename == name:
                return MemberReader(zf.open(info), zf, container)
        raise MemberNotFoundError(name, archive)
    except MemberNotFoundError:
        zf.close()
        container.close()
        raise
    except (zipfile.BadZipFile, OSError, RuntimeError, NotImplementedError) as e:
        zf.close()
        container.close()
        raise ArchiveError(f"open {name!r} in archive {archive or ''}: {e}".strip(), cause=e) from e


class ZipFilter(Filter):
    """Reads a single named member from a zip archive upstream."""

    kind = "zip"

    def __init__(self, source: Any = None, *, file: str):
        super().__init__(source)
        self.file = file

    @classmethod
    def new(cls, params: Params, source: Any) -> ZipFilter:
        return cls(source, file=params.get_string("File"))

    def describe(self) -> str:
        return f"{super().describe()}#{self.file}"

    def _archive_label(self) -> str:
        if isinstance(self._source, Filter):
            return self._source.describe()
        return repr(self._source)

    def _open(self) -> MemberReader:
        source = self._source
        if source is None:
            raise ArchiveError(f"zip filter for {self.file!r} has no upstream")
        archive = self._archive_label()
        if is_random_access(source):
            container = source
        else:
            try:
                data = source.read()
            except Exception:
                if not getattr(source, "closed", False):
                    source.close()
                raise
            source.close()
            logger.debug("archive.buffered", archive=archive, size=len(data))
            container = io.BytesIO(data)
        return open_member(container, self.file, archive)


__all__ = ["MemberReader", "open_member", "ZipFilter"]
