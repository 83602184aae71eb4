"""
Deploy-history log lexer.

``DeployHistory.txt`` is an append-only log of deployments. Each deployment is
recorded as a job line, usually followed by a status marker::

    New Studio64 version-1a2b3c4d5e6f7a8b at 3/15/2019 4:56:21 PM, file version: 0, 373, 0, 283457, git hash: 8ef0d5f ... Done!

``lex`` splits such content into a flat list of tokens:

- ``Job`` for each ``New``/``Revert`` entry
- ``Status`` for ``Done!`` and ``Error!`` markers
- ``Raw`` for any other non-blank text

Lexing never fails. Text that does not match a known form (including a job
whose timestamp is not a real date) is returned as ``Raw``.

Usage:
    from rbxfetch.histlog import Job, lex

    jobs = [t for t in lex(content) if isinstance(t, Job)]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Union


class Version(NamedTuple):
    """Four-part build version number."""

    major: int = 0
    minor: int = 0
    maint: int = 0
    build: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.maint}.{self.build}"

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse ``"0.420.0.12345"`` (or comma-separated parts).

        Raises:
            ValueError: If *text* does not have four integer parts.
        """
        parts = [p.strip() for p in re.split(r"[.,]", text)]
        if len(parts) != 4:
            raise ValueError(f"version must have four parts: {text!r}")
        return cls(*(int(p) for p in parts))


@dataclass(frozen=True)
class Job:
    """One deployment entry."""

    action: str  # New or Revert
    build: str  # build type, e.g. Studio64
    guid: str
    time: datetime
    version: Version = Version()
    git_hash: str = ""


@dataclass(frozen=True)
class Status:
    """A ``Done!`` or ``Error!`` marker."""

    text: str


@dataclass(frozen=True)
class Raw:
    """Unrecognized text."""

    text: str


Token = Union[Job, Status, Raw]

TIME_FORMAT = "%m/%d/%Y %I:%M:%S %p"

_JOB = (
    r"(?P<action>New|Revert)[ \t]+(?P<build>\S+)[ \t]+(?P<guid>\S+)[ \t]+at[ \t]+"
    r"(?P<date>\d{1,2}/\d{1,2}/\d{4})[ \t]+(?P<clock>\d{1,2}:\d{2}:\d{2})[ \t]*(?P<meridiem>[AaPp][Mm])"
    r"(?:,[ \t]*file[ \t]+version:[ \t]*(?P<version>\d+,[ \t]*\d+,[ \t]*\d+,[ \t]*\d+))?"
    r"(?:,[ \t]*git[ \t]+hash:[ \t]*(?P<hash>[0-9A-Fa-f]+))?"
    r"(?:[ \t]*\.\.\.)?"
)
_STATUS = r"(?P<status>Done!|Error!)"

_TOKEN_RE = re.compile(rf"{_JOB}|{_STATUS}")


def _job(match: re.Match[str]) -> Job | None:
    stamp = f"{match.group('date')} {match.group('clock')} {match.group('meridiem').upper()}"
    try:
        when = datetime.strptime(stamp, TIME_FORMAT)
    except ValueError:
        return None
    version = Version()
    if match.group("version"):
        version = Version.parse(match.group("version"))
    return Job(
        action=match.group("action"),
        build=match.group("build"),
        guid=match.group("guid"),
        time=when,
        version=version,
        git_hash=match.group("hash") or "",
    )


def _raw(text: str, tokens: list[Token]) -> None:
    text = text.strip()
    if text:
        tokens.append(Raw(text))


def lex(content: bytes | str) -> list[Token]:
    """Split deploy-history *content* into tokens, in order of appearance."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")

    tokens: list[Token] = []
    pos = 0
    for match in _TOKEN_RE.finditer(content):
        _raw(content[pos : match.start()], tokens)
        pos = match.end()
        if match.group("status"):
            tokens.append(Status(match.group("status")))
            continue
        job = _job(match)
        if job is None:
            _raw(match.group(0), tokens)
        else:
            tokens.append(job)
    _raw(content[pos:], tokens)
    return tokens


def jobs(content: bytes | str) -> list[Job]:
    """Only the job tokens of *content*."""
    return [t for t in lex(content) if isinstance(t, Job)]


__all__ = ["Version", "Job", "Status", "Raw", "Token", "TIME_FORMAT", "lex", "jobs"]
