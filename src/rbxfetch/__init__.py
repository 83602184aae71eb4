"""
rbxfetch - retrieve information about Roblox builds.

- rbxfetch.core: errors, logging, settings
- rbxfetch.framework: lazy filters and named chains
- rbxfetch.client: the ``Client`` that runs methods over chains
- rbxfetch.histlog: deploy-history lexer
"""

__version__ = "0.1.0"

from rbxfetch.client import Build, Client, ClientConfig  # noqa: E402
from rbxfetch.core.settings import CacheMode  # noqa: E402
from rbxfetch.histlog import Version  # noqa: E402

__all__ = ["__version__", "Build", "CacheMode", "Client", "ClientConfig", "Version"]
