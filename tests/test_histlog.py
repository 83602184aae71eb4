"""Tests for the deploy-history lexer."""

from datetime import datetime

import pytest

from rbxfetch.histlog import Job, Raw, Status, Version, jobs, lex

HISTORY = b"""\
New Studio version-1a2b3c4d5e6f7a8b at 3/15/2019 4:56:21 PM, file version: 0, 373, 0, 283457...
Done!
New Studio64 version-0f1e2d3c4b5a6978 at 8/14/2019 6:23:31 AM, file version: 0, 393, 0, 353659, git hash: 6b3b0e1f ... Done!
Revert Studio64 version-1a2b3c4d5e6f7a8b at 12/1/2019 11:02:03 PM... Error!
some free text
"""


class TestVersion:
    def test_str(self):
        assert str(Version(0, 420, 0, 12345)) == "0.420.0.12345"

    def test_parse(self):
        assert Version.parse("0.420.0.12345") == Version(0, 420, 0, 12345)
        assert Version.parse("0, 373, 0, 283457") == Version(0, 373, 0, 283457)

    def test_parse_rejects_short(self):
        with pytest.raises(ValueError):
            Version.parse("1.2.3")


class TestLex:
    def test_token_sequence(self):
        tokens = lex(HISTORY)
        kinds = [type(t).__name__ for t in tokens]
        assert kinds == ["Job", "Status", "Job", "Status", "Job", "Status", "Raw"]

    def test_job_fields(self):
        first, _, second, _, revert, _, raw = lex(HISTORY)
        assert first == Job(
            action="New",
            build="Studio",
            guid="version-1a2b3c4d5e6f7a8b",
            time=datetime(2019, 3, 15, 16, 56, 21),
            version=Version(0, 373, 0, 283457),
        )
        assert second.build == "Studio64"
        assert second.time == datetime(2019, 8, 14, 6, 23, 31)
        assert second.git_hash == "6b3b0e1f"
        assert revert.action == "Revert"
        assert revert.version == Version()
        assert raw == Raw("some free text")

    def test_status_text(self):
        statuses = [t for t in lex(HISTORY) if isinstance(t, Status)]
        assert [s.text for s in statuses] == ["Done!", "Done!", "Error!"]

    def test_accepts_str(self):
        assert lex(HISTORY.decode()) == lex(HISTORY)

    def test_empty(self):
        assert lex(b"") == []
        assert lex("\n\n  \n") == []

    def test_impossible_date_is_raw(self):
        tokens = lex("New Studio version-x at 13/45/2019 1:00:00 PM")
        assert tokens == [Raw("New Studio version-x at 13/45/2019 1:00:00 PM")]

    def test_never_fails_on_binary(self):
        tokens = lex(b"\xff\xfe\x00garbage")
        assert all(isinstance(t, Raw) for t in tokens)


def test_jobs_filters_tokens():
    assert [j.guid for j in jobs(HISTORY)] == [
        "version-1a2b3c4d5e6f7a8b",
        "version-0f1e2d3c4b5a6978",
        "version-1a2b3c4d5e6f7a8b",
    ]
