"""
Built-in filters, chains and methods.

A default :class:`~rbxfetch.client.Client` registers four filter kinds:

- ``url``: :class:`~rbxfetch.framework.filters.URLFilter`
- ``file``: :class:`~rbxfetch.framework.filters.FileFilter`
- ``zip``: :class:`~rbxfetch.framework.filters.ZipFilter`
- ``iconscan``: :class:`~rbxfetch.framework.filters.IconScanFilter`

and configures these chains:

- ``Latest``: GUID of the latest build
- ``Live`` / ``Live64``: GUID of the live 32-bit / 64-bit Studio build
- ``Builds``: the deploy history
- ``APIDump``: API dump of a build
- ``ReflectionMetadata``: reflection metadata of a build
- ``ClassImages``: class icon sheet of a build
- ``ExplorerIcons``: class icon sheet scanned out of the Studio executable

The ``#member`` fragment on some URLs is ignored by the cache key and by the
server; it only makes error messages name what was being fetched.
"""

from __future__ import annotations

from typing import Any

from rbxfetch.framework.chains import FilterDef
from rbxfetch.framework.filters import FileFilter, IconScanFilter, URLFilter, ZipFilter

SETUP_URL = "https://setup.rbxcdn.com"
VERSION_COMPATIBILITY_URL = (
    "https://versioncompatibility.api.roblox.com/GetCurrentClientVersionUpload/"
    "?apiKey=76e5a40c-3ae1-4028-9f10-7c62520bd94f"
)


def default_filters() -> list[FilterDef]:
    """Filter definitions every default client starts with."""
    return [
        FilterDef("url", URLFilter.new),
        FilterDef("file", FileFilter.new),
        FilterDef("zip", ZipFilter.new),
        FilterDef("iconscan", IconScanFilter.new),
    ]


def _url(url: str) -> dict[str, Any]:
    return {"filter": "url", "params": {"URL": url}}


def _zip(member: str) -> dict[str, Any]:
    return {"filter": "zip", "params": {"File": member}}


def default_chains() -> dict[str, list[dict[str, Any]]]:
    return {
        "Latest": [_url(f"{SETUP_URL}/versionQTStudio")],
        "Live": [_url(f"{VERSION_COMPATIBILITY_URL}&binaryType=WindowsStudio")],
        "Live64": [_url(f"{VERSION_COMPATIBILITY_URL}&binaryType=WindowsStudio64")],
        "Builds": [_url(f"{SETUP_URL}/DeployHistory.txt")],
        "APIDump": [_url(f"{SETUP_URL}/$GUID-API-Dump.json")],
        "ReflectionMetadata": [
            _url(f"{SETUP_URL}/$GUID-RobloxStudio.zip"),
            _zip("ReflectionMetadata.xml"),
        ],
        "ClassImages": [
            _url(f"{SETUP_URL}/$GUID-content-textures2.zip#ClassImages.PNG"),
            _zip("ClassImages.PNG"),
        ],
        "ExplorerIcons": [
            _url(f"{SETUP_URL}/$GUID-RobloxStudio.zip#RobloxStudioBeta.exe"),
            _zip("RobloxStudioBeta.exe"),
            {"filter": "iconscan", "params": {"Size": 16}},
        ],
    }


def default_methods() -> dict[str, list[str]]:
    """Chains tried, in order, for each client method."""
    return {
        "Builds": ["Builds"],
        "Latest": ["Latest"],
        "APIDump": ["APIDump"],
        "ReflectionMetadata": ["ReflectionMetadata"],
        "ClassImages": ["ClassImages", "ExplorerIcons"],
        "Live": ["Live64", "Live"],
    }


__all__ = [
    "SETUP_URL",
    "VERSION_COMPATIBILITY_URL",
    "default_filters",
    "default_chains",
    "default_methods",
]
