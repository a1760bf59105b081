"""Collection resolvers.

A resolver maps a collection name to a :class:`CollectionDescription`, or
returns ``None`` when it does not know the name.  The engine asks one
resolver; :class:`ChainedCollectionResolver` combines several.

Manifest format (``collection.yaml`` or ``collection.json``)::

    name: my-collection
    description: Generators for my projects
    extends: [treewright.collections.project]
    schematics:
      service:
        description: Add a service module
        factory: my_generators.service:factory
        options_model: my_generators.service:ServiceOptions
        aliases: [svc]
        path: ./service
"""

from __future__ import annotations

import importlib
import json
import re
from collections.abc import Callable, Iterable
from pathlib import Path
from types import ModuleType
from typing import Any, Optional, Protocol

import yaml
from pydantic import BaseModel, ValidationError

from treewright.registry import InvalidHandlerNameError, ModuleRegistry

from .description import CollectionDescription, SchematicDescription

MANIFEST_NAMES = ("collection.yaml", "collection.yml", "collection.json")

_MODULE_NAME_RE = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


class InvalidCollectionManifestError(ValueError):
    """A collection manifest could not be parsed or validated."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Invalid collection manifest {path}: {message}")


class CollectionResolver(Protocol):
    def resolve(self, name: str) -> Optional[CollectionDescription]: ...


# ---------------------------------------------------------------------------
# Static
# ---------------------------------------------------------------------------


class StaticCollectionResolver:
    """Collections registered in memory."""

    def __init__(self, collections: Iterable[CollectionDescription] = ()) -> None:
        self._collections: dict[str, CollectionDescription] = {}
        for collection in collections:
            self.register(collection)

    def register(self, collection: CollectionDescription) -> None:
        self._collections[collection.name] = collection

    def resolve(self, name: str) -> Optional[CollectionDescription]:
        return self._collections.get(name)


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------


class ModuleCollectionResolver:
    """Imports the module named like the collection and reads its ``COLLECTION``.

    ``COLLECTION`` may be a :class:`CollectionDescription` or a plain mapping
    with the same fields.
    """

    def __init__(self, loader: Callable[[str], ModuleType] = importlib.import_module) -> None:
        self._loader = loader

    def resolve(self, name: str) -> Optional[CollectionDescription]:
        if not _MODULE_NAME_RE.match(name):
            return None
        try:
            module = self._loader(name)
        except ModuleNotFoundError as exc:
            missing = exc.name or ""
            if missing and (name == missing or name.startswith(missing + ".")):
                return None
            raise

        collection = getattr(module, "COLLECTION", None)
        if collection is None:
            return None
        if isinstance(collection, CollectionDescription):
            return collection
        return CollectionDescription.model_validate(collection)


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class ManifestCollectionResolver:
    """Reads collection manifests from disk.

    A name resolves if it is a path to a manifest file, a path to a directory
    holding one, or a directory of that name under one of *search_paths*.
    """

    def __init__(
        self,
        search_paths: Iterable[str | Path] = (),
        symbols: Optional[ModuleRegistry] = None,
    ) -> None:
        self.search_paths = [Path(p) for p in search_paths]
        self._symbols = symbols or ModuleRegistry()

    def _find(self, name: str) -> Optional[Path]:
        candidates = [Path(name)] + [base / name for base in self.search_paths]
        for candidate in candidates:
            if candidate.is_file() and candidate.name in MANIFEST_NAMES:
                return candidate
            if candidate.is_dir():
                for manifest in MANIFEST_NAMES:
                    if (candidate / manifest).is_file():
                        return candidate / manifest
        return None

    def resolve(self, name: str) -> Optional[CollectionDescription]:
        manifest = self._find(name)
        if manifest is None:
            return None
        return self.load(manifest, default_name=name)

    def load(self, manifest: Path, default_name: Optional[str] = None) -> CollectionDescription:
        """Parse *manifest* into a collection description.

        Raises:
            InvalidCollectionManifestError: On unreadable or invalid content.
        """
        text = manifest.read_text(encoding="utf-8")
        try:
            data = json.loads(text) if manifest.suffix == ".json" else yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise InvalidCollectionManifestError(manifest, str(exc)) from exc
        if not isinstance(data, dict):
            raise InvalidCollectionManifestError(manifest, f"expected a mapping, got {type(data).__name__}")

        base_dir = manifest.parent
        schematics: dict[str, SchematicDescription] = {}
        for schematic_name, raw in (data.get("schematics") or {}).items():
            if not isinstance(raw, dict):
                raise InvalidCollectionManifestError(manifest, f"schematic {schematic_name!r} must be a mapping")
            fields: dict[str, Any] = {"name": schematic_name, **raw}
            if fields.get("options_model"):
                fields["options_model"] = self._options_model(manifest, fields["options_model"])
            fields["path"] = (base_dir / fields["path"]).resolve() if fields.get("path") else base_dir
            try:
                schematics[schematic_name] = SchematicDescription.model_validate(fields)
            except ValidationError as exc:
                raise InvalidCollectionManifestError(manifest, str(exc)) from exc

        try:
            return CollectionDescription(
                name=data.get("name") or default_name or base_dir.name,
                description=data.get("description", ""),
                schematics=schematics,
                extends=list(data.get("extends") or []),
                path=base_dir,
            )
        except ValidationError as exc:
            raise InvalidCollectionManifestError(manifest, str(exc)) from exc

    def _options_model(self, manifest: Path, reference: str) -> type[BaseModel]:
        try:
            handler = self._symbols.get(reference)
        except (InvalidHandlerNameError, LookupError) as exc:
            raise InvalidCollectionManifestError(manifest, str(exc)) from exc
        model = handler.func if handler is not None else None
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise InvalidCollectionManifestError(manifest, f"{reference!r} is not a pydantic model")
        return model


# ---------------------------------------------------------------------------
# Chained
# ---------------------------------------------------------------------------


class ChainedCollectionResolver:
    """Asks each resolver in turn; the first description found wins."""

    def __init__(self, resolvers: Iterable[CollectionResolver]) -> None:
        self._resolvers = list(resolvers)

    def resolve(self, name: str) -> Optional[CollectionDescription]:
        for resolver in self._resolvers:
            description = resolver.resolve(name)
            if description is not None:
                return description
        return None


def default_resolver(search_paths: Iterable[str | Path] = (".",)) -> ChainedCollectionResolver:
    """Module collections first, then manifests on disk."""
    return ChainedCollectionResolver(
        [ModuleCollectionResolver(), ManifestCollectionResolver(search_paths)]
    )
