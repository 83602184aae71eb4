"""
Chain filters.

Provides the lazy filter base and the built-in stages:

- ``url``: fetch over HTTP with on-disk caching
- ``file``: read a local file
- ``zip``: extract one member of a zip archive
- ``iconscan``: pick an icon sheet out of a binary
"""

from rbxfetch.framework.filters.archive import ZipFilter
from rbxfetch.framework.filters.file import FileFilter
from rbxfetch.framework.filters.iconscan import IconScanFilter
from rbxfetch.framework.filters.protocol import (
    Filter,
    GuidAware,
    Params,
    TransportAware,
    apply,
    expand_guid,
    walk,
)
from rbxfetch.framework.filters.url import URLFilter

__all__ = [
    # Base
    "Filter",
    "Params",
    "GuidAware",
    "TransportAware",
    "apply",
    "walk",
    "expand_guid",
    # Stages
    "URLFilter",
    "FileFilter",
    "ZipFilter",
    "IconScanFilter",
]
