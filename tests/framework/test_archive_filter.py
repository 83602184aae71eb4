"""Tests for the zip member filter."""

from __future__ import annotations

import io
import zipfile

import pytest

from rbxfetch.core.errors import ArchiveError, MemberNotFoundError
from rbxfetch.framework.filters.archive import MemberReader, ZipFilter, open_member
from rbxfetch.framework.filters.file import FileFilter
from rbxfetch.framework.filters.protocol import Params


class OneShotStream:
    """Non-seekable upstream that tracks whether it was closed."""

    def __init__(self, data: bytes):
        self._buf = io.BytesIO(data)
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        return self._buf.read(size)

    def close(self) -> None:
        self.closed = True


class TestZipFilter:
    def test_extracts_named_member(self, make_zip):
        data = make_zip({"a.txt": b"alpha", "b.txt": b"beta"})
        f = ZipFilter.new(Params({"File": "b.txt"}), OneShotStream(data))
        with f:
            assert f.read() == b"beta"

    def test_missing_member(self, make_zip):
        upstream = OneShotStream(make_zip({"a.txt": b"alpha"}))
        f = ZipFilter(upstream, file="c.txt")
        with pytest.raises(MemberNotFoundError) as exc:
            f.read()
        assert exc.value.member == "c.txt"
        assert upstream.closed

    def test_not_an_archive(self):
        f = ZipFilter(OneShotStream(b"definitely not a zip"), file="a.txt")
        with pytest.raises(ArchiveError):
            f.read()

    def test_non_seekable_upstream_is_buffered_and_closed(self, make_zip):
        upstream = OneShotStream(make_zip({"a.txt": b"alpha"}))
        f = ZipFilter(upstream, file="a.txt")
        assert f.read(2) == b"al"
        assert upstream.closed
        assert f.read() == b"pha"
        f.close()

    def test_seekable_upstream_used_in_place(self, make_zip):
        container = io.BytesIO(make_zip({"a.txt": b"alpha"}))
        f = ZipFilter(container, file="a.txt")
        assert f.read() == b"alpha"
        assert not container.closed
        f.close()
        assert container.closed

    def test_over_file_filter(self, tmp_path, make_zip):
        (tmp_path / "version-1.zip").write_bytes(make_zip({"ReflectionMetadata.xml": b"<roblox/>"}))
        inner = FileFilter(path=str(tmp_path / "$GUID.zip"), guid="version-1")
        with ZipFilter(inner, file="ReflectionMetadata.xml") as f:
            assert f.read() == b"<roblox/>"

    def test_no_upstream(self):
        with pytest.raises(ArchiveError):
            ZipFilter(file="a.txt").read()

    def test_describe(self):
        inner = FileFilter(path="/m/$GUID.zip", guid="v")
        assert ZipFilter(inner, file="a.txt").describe() == "/m/v.zip#a.txt"


class TestOpenMember:
    @pytest.mark.filterwarnings("ignore:Duplicate name")
    def test_first_match_wins(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("dup.txt", b"first")
            zf.writestr("dup.txt", b"second")
        buf.seek(0)
        reader = open_member(buf, "dup.txt")
        try:
            assert reader.read() == b"first"
        finally:
            reader.close()

    def test_missing_member_closes_container(self, make_zip):
        container = io.BytesIO(make_zip({"a.txt": b""}))
        with pytest.raises(MemberNotFoundError):
            open_member(container, "b.txt", "archive.zip")
        assert container.closed


class Closer:
    """Stand-in for a member, archive or container; optionally fails on close."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.closed = False

    def close(self) -> None:
        self.closed = True
        if self.error is not None:
            raise self.error


class TestMemberReaderClose:
    def test_closes_everything(self):
        member, archive, container = Closer(), Closer(), Closer()
        MemberReader(member, archive, container).close()
        assert member.closed and archive.closed and container.closed

    def test_member_failure_takes_precedence(self):
        member = Closer(OSError("member"))
        container = Closer(OSError("container"))
        with pytest.raises(OSError, match="member"):
            MemberReader(member, Closer(), container).close()
        assert container.closed

    def test_container_failure_raised_alone(self):
        container = Closer(OSError("container"))
        with pytest.raises(OSError, match="container"):
            MemberReader(Closer(), Closer(), container).close()

    def test_container_closed_when_archive_close_fails(self):
        archive = Closer(OSError("archive"))
        container = Closer()
        with pytest.raises(OSError, match="archive"):
            MemberReader(Closer(), archive, container).close()
        assert container.closed
