"""
Shared pytest fixtures for rbxfetch tests.

This module provides:
- An in-memory HTTP origin (``httpx.MockTransport``) that counts requests
- Zip archive and PNG builders
- A cache directory under ``tmp_path``

Usage:
    def test_something(origin, http_client):
        origin.routes["https://setup.rbxcdn.com/versionQTStudio"] = b"version-abc"
        ...
"""

from __future__ import annotations

import io
import zipfile
from collections import Counter
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from PIL import Image

from rbxfetch.client import Client, ClientConfig


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# HTTP
# =============================================================================


class Origin:
    """A fake origin server keyed by full URL.

    A route value is the body (served with 200), a ``(status, body)`` pair,
    an exception to raise from the transport, or a callable taking the
    request and returning the response.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.hits: Counter[str] = Counter()

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.hits[url] += 1
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, content=b"not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        if isinstance(route, tuple):
            status, body = route
            return httpx.Response(status, content=body)
        return httpx.Response(200, content=route)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def origin() -> Origin:
    return Origin()


@pytest.fixture
def http_client(origin: Origin) -> Iterator[httpx.Client]:
    with httpx.Client(transport=origin.transport(), follow_redirects=True) as client:
        yield client


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def client(http_client: httpx.Client, cache_dir: Path) -> Client:
    """Default-configured client over the fake origin, caching under tmp_path."""
    return Client(cache_mode="custom", cache_location=cache_dir, http_client=http_client)


@pytest.fixture
def make_client(http_client: httpx.Client, cache_dir: Path) -> Callable[[dict], Client]:
    """Build a client from a plain ``{"methods": ..., "chains": ...}`` dict."""

    def _make(config: dict) -> Client:
        return Client(
            ClientConfig.model_validate(config),
            cache_mode="custom",
            cache_location=cache_dir,
            http_client=http_client,
        )

    return _make


# =============================================================================
# CONTENT BUILDERS
# =============================================================================


def zip_bytes(members: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


def png_bytes(width: int, height: int, color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_zip() -> Callable[[dict[str, bytes]], bytes]:
    return zip_bytes


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    return png_bytes
