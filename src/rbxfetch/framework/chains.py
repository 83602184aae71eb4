"""Named filter chains: definitions, configuration and resolution.

A *filter definition* maps a filter kind (``url``, ``zip`` ...) to a factory.
A *chain* is an ordered list of stages, each naming a filter kind and its
parameters. ``ChainSet.resolve`` turns a chain name into a live stage chain,
the first stage innermost, and returns the outermost stage. Resolution
constructs objects only; no stage performs I/O until it is read.

Chains are plain data and round-trip through YAML or JSON::

    chains:
      ReflectionMetadata:
        - filter: url
          params: {URL: "https://setup.rbxcdn.com/$GUID-RobloxStudio.zip"}
        - filter: zip
          params: {File: ReflectionMetadata.xml}

Tags:
    rbxfetch, framework, chains, registry, config-driven

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from rbxfetch.core.errors import (
    BadParamsError,
    ChainNotFoundError,
    FilterNotFoundError,
    InvalidConfigError,
    ResolutionError,
)
from rbxfetch.core.logging import get_logger
from rbxfetch.framework.filters.protocol import Filter, Params

logger = get_logger(__name__)


FilterFactory = Callable[[Params, Any], Filter]


@dataclass(frozen=True)
class FilterDef:
    """Definition of a filter kind."""

    name: str
    new: FilterFactory


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================


class StageSpec(BaseModel):
    """One stage of a chain."""

    model_config = ConfigDict(extra="forbid")

    filter: str = Field(..., min_length=1, description="Registered filter kind")
    params: dict[str, Any] = Field(default_factory=dict, description="Filter parameters")


class ChainsConfig(BaseModel):
    """Named chain definitions."""

    chains: dict[str, list[StageSpec]] = Field(default_factory=dict)

    @classmethod
    def from_yaml(cls, content: str) -> ChainsConfig:
        """Load and validate from a YAML (or JSON) string.

        Raises:
            InvalidConfigError: If the document is not valid YAML.
            pydantic.ValidationError: If it does not match the schema.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise InvalidConfigError("config", "<yaml>", f"Invalid YAML: {e}") from e
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> ChainsConfig:
        """Load and validate from a YAML or JSON file."""
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False)


# =============================================================================
# CHAIN SET
# =============================================================================


class ChainSet:
    """
    Filter definitions plus the named chains built from them.

    Usage:
        chain_set = ChainSet(FilterDef("file", FileFilter.new))
        chain_set.set_config(ChainsConfig(chains={"Local": [StageSpec(filter="file", params={"Path": "x"})]}))
        f = chain_set.resolve("Local")
    """

    def __init__(self, *defs: FilterDef):
        self._defs: dict[str, FilterDef] = {}
        self._chains: dict[str, list[StageSpec]] = {}
        for d in defs:
            if d.name in self._defs:
                raise ValueError(f"Filter '{d.name}' is already defined")
            self._defs[d.name] = d

    def filters(self) -> list[str]:
        """List defined filter kinds."""
        return sorted(self._defs)

    def chains(self) -> list[str]:
        """List configured chain names."""
        return sorted(self._chains)

    def config(self) -> ChainsConfig:
        """Return a copy of the chain configuration."""
        return ChainsConfig(chains=self._chains).model_copy(deep=True)

    def set_config(self, config: ChainsConfig) -> ChainSet:
        """Replace all chains with those in *config*.

        Raises:
            InvalidConfigError: If a stage names an undefined filter.
        """
        for name, stages in config.chains.items():
            for stage in stages:
                if stage.filter not in self._defs:
                    raise InvalidConfigError(
                        f"chains.{name}",
                        stage.filter,
                        f"Chain {name!r} uses undefined filter {stage.filter!r}",
                    )
        self._chains = config.model_copy(deep=True).chains
        logger.debug("chains.configured", chains=len(self._chains))
        return self

    def resolve(self, name: str, upstream: Any = None) -> Filter:
        """Build the chain *name* on top of *upstream* and return its last stage.

        Raises:
            ChainNotFoundError: If no chain is named *name*.
            FilterNotFoundError: If a stage's filter kind is undefined.
            ResolutionError: If the chain is empty or a stage rejects its params.
        """
        stages = self._chains.get(name)
        if stages is None:
            raise ChainNotFoundError(name)
        if not stages:
            raise ResolutionError(f"Chain {name!r} has no stages").with_context(chain=name)

        f: Any = upstream
        for stage in stages:
            definition = self._defs.get(stage.filter)
            if definition is None:
                raise FilterNotFoundError(stage.filter).with_context(chain=name)
            try:
                f = definition.new(Params(stage.params), f)
            except ResolutionError as e:
                raise e.with_context(chain=name, stage=stage.filter)
            except (TypeError, ValueError) as e:
                raise BadParamsError(
                    f"Stage {stage.filter!r} of chain {name!r}: {e}",
                    cause=e,
                ).with_context(chain=name, stage=stage.filter) from e
        return f


__all__ = [
    "Params",
    "FilterFactory",
    "FilterDef",
    "StageSpec",
    "ChainsConfig",
    "ChainSet",
]
