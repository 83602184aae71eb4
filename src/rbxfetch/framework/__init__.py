"""
rbxfetch framework - lazy filters and the named chains built from them.

Use: from rbxfetch.framework.filters import URLFilter, ZipFilter
"""

from rbxfetch.framework.chains import ChainSet, ChainsConfig, FilterDef, Params, StageSpec

__all__ = [
    "ChainSet",
    "ChainsConfig",
    "FilterDef",
    "Params",
    "StageSpec",
]
