"""
Client: run named methods over configured filter chains.

Each client method is configured with an ordered list of chain names. How
that list is used depends on the method:

    ┌──────────────────────┬──────────────────────────────┬──────────────────┐
    │ Method               │ Policy                       │ Result           │
    ├──────────────────────┼──────────────────────────────┼──────────────────┤
    │ latest()             │ first chain that reads       │ str              │
    │ live()               │ every chain, fail fast       │ list[str]        │
    │ builds()             │ first chain that reads       │ list[Build]      │
    │ api_dump(guid) ...   │ first chain that resolves    │ Filter | None    │
    └──────────────────────┴──────────────────────────────┴──────────────────┘

When every candidate chain fails, the last failure is raised. A method with no
configured chains returns an empty result.

Build endpoints (``latest``, ``live``, ``builds``) are resolved without a GUID
and are never cached; their content changes over time. Per-build methods
inject the GUID and the client's cache settings into every stage that accepts
them. The HTTP client is injected in both cases.

Usage:
    from rbxfetch.client import Client

    client = Client()
    guid = client.latest()
    with client.api_dump(guid) as f:
        dump = f.read()
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx
from pydantic import Field

from rbxfetch import histlog
from rbxfetch.core.errors import DecodeError, RbxFetchError
from rbxfetch.core.logging import LogContext, get_logger
from rbxfetch.core.settings import CacheMode, RbxFetchSettings
from rbxfetch.defaults import default_chains, default_filters, default_methods
from rbxfetch.framework.chains import ChainsConfig, ChainSet, FilterDef
from rbxfetch.framework.filters import Filter, GuidAware, TransportAware, apply
from rbxfetch.histlog import Version

logger = get_logger(__name__)

_JSON = json.JSONDecoder()


@dataclass(frozen=True)
class Build:
    """One deployed build, as listed in the deploy history."""

    type: str = ""
    guid: str = ""
    date: datetime = datetime.min
    version: Version = field(default_factory=Version)

    @classmethod
    def from_json(cls, data: str | bytes | Any) -> Build:
        """Decode a build from JSON.

        Accepts either a bare string (taken as the GUID) or an object with
        ``type``, ``guid``, ``date`` and ``version`` fields. Field names are
        matched case-insensitively. *data* may be JSON text or an already
        decoded value.

        Raises:
            DecodeError: If *data* is neither form.
        """
        value = data
        if isinstance(data, (str, bytes)):
            try:
                value = json.loads(data)
            except json.JSONDecodeError as e:
                raise DecodeError(f"decode build: {e}", cause=e) from e

        if isinstance(value, str):
            return cls(guid=value)
        if not isinstance(value, dict):
            raise DecodeError(f"decode build: expected string or object, got {type(value).__name__}")

        fields = {str(k).lower(): v for k, v in value.items()}
        try:
            return cls(
                type=str(fields.get("type", "")),
                guid=str(fields.get("guid", "")),
                date=_parse_date(fields.get("date")),
                version=_parse_version(fields.get("version")),
            )
        except (TypeError, ValueError) as e:
            raise DecodeError(f"decode build: {e}", cause=e) from e

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        data["version"] = str(self.version)
        return data


def _parse_date(value: Any) -> datetime:
    if value is None or value == "":
        return datetime.min
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _parse_version(value: Any) -> Version:
    if value is None or value == "":
        return Version()
    if isinstance(value, str):
        return Version.parse(value)
    if isinstance(value, dict):
        parts = {str(k).lower(): int(v) for k, v in value.items()}
        return Version(*(parts.get(k, 0) for k in Version._fields))
    return Version(*(int(v) for v in value))


class ClientConfig(ChainsConfig):
    """Methods and the chains they use.

    Round-trips through :meth:`Client.config` and :meth:`Client.set_config`,
    and through YAML or JSON::

        methods:
          APIDump: [LocalDump, APIDump]
        chains:
          LocalDump:
            - filter: file
              params: {Path: /mirror/$GUID-API-Dump.json}
    """

    methods: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def default(cls) -> ClientConfig:
        return cls.model_validate({"methods": default_methods(), "chains": default_chains()})


class Client:
    """
    Fetches build information through configured chains.

    Attributes:
        cache_mode: How per-build content is cached.
        cache_location: Cache directory used with ``CacheMode.CUSTOM``.
        http_client: Transport injected into HTTP stages. ``None`` makes each
            fetch use a private client.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        cache_mode: CacheMode | str = CacheMode.TEMP,
        cache_location: str | Path | None = None,
        http_client: httpx.Client | None = None,
        filters: Sequence[FilterDef] | None = None,
    ):
        self.cache_mode = CacheMode(cache_mode)
        self.cache_location = cache_location
        self.http_client = http_client
        self._owns_http_client = False
        self._chain_set = ChainSet(*(default_filters() if filters is None else filters))
        self._methods: dict[str, list[str]] = {}
        self.set_config(ClientConfig.default() if config is None else config)

    @classmethod
    def from_settings(cls, settings: RbxFetchSettings | None = None) -> Client:
        """Build a client from environment settings.

        The client owns its HTTP transport; close it with :meth:`close` or use
        the client as a context manager.
        """
        settings = settings or RbxFetchSettings()
        config = None
        if settings.config_file is not None:
            config = ClientConfig.from_yaml_file(settings.config_file)
        client = cls(
            config,
            cache_mode=settings.cache_mode,
            cache_location=settings.cache_location,
            http_client=httpx.Client(timeout=settings.timeout, follow_redirects=True),
        )
        client._owns_http_client = True
        return client

    def close(self) -> None:
        """Close the HTTP transport if this client created it."""
        if self._owns_http_client and self.http_client is not None:
            self.http_client.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------

    def config(self) -> ClientConfig:
        """Return a copy of the client's configuration."""
        return ClientConfig(
            methods={name: list(chains) for name, chains in self._methods.items()},
            chains=self._chain_set.config().chains,
        )

    def set_config(self, config: ClientConfig) -> Client:
        """Replace every method and chain with those in *config*.

        Raises:
            InvalidConfigError: If a chain uses an undefined filter. The
                client is left unchanged.
        """
        self._chain_set.set_config(config)
        self._methods = {name: list(chains) for name, chains in config.methods.items()}
        logger.debug("client.configured", methods=sorted(self._methods))
        return self

    def methods(self) -> list[str]:
        """Names of the configured methods."""
        return sorted(self._methods)

    # -------------------------------------------------------------------------
    # RESOLUTION
    # -------------------------------------------------------------------------

    def _resolve(self, chain: str, guid: str = "") -> Filter:
        """Resolve *chain* and inject transport, cache and GUID.

        An empty *guid* marks a build endpoint: caching is disabled and no
        GUID is injected.
        """
        f = self._chain_set.resolve(chain)
        if guid:
            mode, location = self.cache_mode, self.cache_location
        else:
            mode, location = CacheMode.NONE, None

        def _configure(stage: Filter) -> None:
            if isinstance(stage, TransportAware):
                stage.set_client(self.http_client)
                stage.set_cache(mode, location)
            if guid and isinstance(stage, GuidAware):
                stage.set_guid(guid)

        apply(f, _configure)
        return f

    def _read(self, chain: str) -> bytes:
        with self._resolve(chain) as f:
            return f.read()

    def _first_content(self, method: str) -> bytes | None:
        """Content of the first chain of *method* that resolves and reads."""
        err: Exception | None = None
        for chain in self._methods.get(method, []):
            with LogContext(method=method, chain=chain):
                try:
                    return self._read(chain)
                except Exception as e:
                    logger.info("method.candidate_failed", error=str(e))
                    err = e
        if err is not None:
            raise err
        return None

    def _first_resolved(self, method: str, guid: str) -> Filter | None:
        """Handle for the first chain of *method* that resolves."""
        err: RbxFetchError | None = None
        for chain in self._methods.get(method, []):
            with LogContext(method=method, chain=chain):
                try:
                    return self._resolve(chain, guid)
                except RbxFetchError as e:
                    logger.info("method.candidate_failed", error=str(e))
                    err = e
        if err is not None:
            raise err
        return None

    # -------------------------------------------------------------------------
    # BUILD ENDPOINTS
    # -------------------------------------------------------------------------

    def latest(self) -> str:
        """GUID of the latest build.

        The content of a chain is taken as a raw GUID. Returns ``""`` if no
        ``Latest`` method is configured.
        """
        content = self._first_content("Latest")
        if content is None:
            return ""
        return content.decode("utf-8", errors="replace")

    def live(self) -> list[str]:
        """GUIDs of the current live builds, one per configured chain.

        The content of each chain must be a JSON string. The first failure
        of any chain is raised. Returns ``[]`` if no ``Live`` method is
        configured.
        """
        guids: list[str] = []
        for chain in self._methods.get("Live", []):
            content = self._read(chain)
            try:
                guid, _ = _JSON.raw_decode(content.decode("utf-8").lstrip())
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise DecodeError(f"decode live GUID: {e}", cause=e).with_context(chain=chain) from e
            if not isinstance(guid, str):
                raise DecodeError(
                    f"decode live GUID: expected a JSON string, got {type(guid).__name__}"
                ).with_context(chain=chain)
            guids.append(guid)
        return guids

    def builds(self) -> list[Build]:
        """Builds listed in the deploy history, in log order.

        Returns ``[]`` if no ``Builds`` method is configured.
        """
        content = self._first_content("Builds")
        if content is None:
            return []
        return [
            Build(type=job.build, guid=job.guid, date=job.time, version=job.version)
            for job in histlog.jobs(content)
        ]

    # -------------------------------------------------------------------------
    # PER-BUILD CONTENT
    # -------------------------------------------------------------------------

    def api_dump(self, guid: str) -> Filter | None:
        """API dump of the build *guid*."""
        return self._first_resolved("APIDump", guid)

    def reflection_metadata(self, guid: str) -> Filter | None:
        """Reflection metadata of the build *guid*."""
        return self._first_resolved("ReflectionMetadata", guid)

    def class_images(self, guid: str) -> Filter | None:
        """Class explorer icon sheet of the build *guid*."""
        return self._first_resolved("ClassImages", guid)

    def method(self, name: str, guid: str) -> Filter | None:
        """Run the configured method *name* for the build *guid*.

        Returns ``None`` if no such method is configured. The caller owns the
        returned handle and must close it.
        """
        return self._first_resolved(name, guid)


__all__ = ["Build", "ClientConfig", "Client"]
