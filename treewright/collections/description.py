"""Collection and schematic descriptions."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SchematicDescription(BaseModel):
    """A named rule factory and how to call it.

    ``factory`` is either a callable ``(options) -> Rule`` or a
    ``"package.module:symbol"`` reference resolved when the rule is created.
    ``options_model`` validates (and fills defaults into) the options before
    the factory sees them; without it the factory receives a plain dict.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str = ""
    factory: Union[str, Callable[..., Any]]
    options_model: Optional[type[BaseModel]] = None
    aliases: list[str] = Field(default_factory=list)
    hidden: bool = False
    private: bool = False
    path: Optional[Path] = Field(default=None, description="Directory that url() sources resolve against")


class CollectionDescription(BaseModel):
    """A named group of schematics, optionally inheriting from other collections."""

    name: str
    description: str = ""
    schematics: dict[str, SchematicDescription] = Field(default_factory=dict)
    extends: list[str] = Field(default_factory=list)
    path: Optional[Path] = None

    def find(self, name: str) -> Optional[SchematicDescription]:
        """Return the schematic registered as *name* or aliased to it."""
        if name in self.schematics:
            return self.schematics[name]
        for schematic in self.schematics.values():
            if name in schematic.aliases:
                return schematic
        return None
