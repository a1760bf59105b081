"""Schematic engine.

The engine turns a ``(collection, schematic, options)`` triple into a rule
and a context to run it in:

1. :meth:`SchematicEngine.create_collection` asks the resolver for the
   collection and for every collection it extends (results are cached);
2. :meth:`SchematicEngine.create_schematic` finds the schematic by name or
   alias, searching inherited collections after the collection's own;
3. :meth:`SchematicEngine.transform_options` runs registered option
   transforms and validates the result with the schematic's options model;
4. :meth:`SchematicEngine.create_rule` calls the schematic's factory.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError

from treewright.cancellation import CancellationToken
from treewright.registry import HandlerExportNotFoundError, InvalidHandlerNameError, ModuleRegistry
from treewright.rules.base import Rule, SchematicsException, call_rule
from treewright.tasks.scheduler import TaskScheduler
from treewright.tree import MergeStrategy, Tree

from .context import SchematicContext
from .description import CollectionDescription, SchematicDescription
from .resolvers import CollectionResolver, default_resolver

OptionsTransform = Callable[["Schematic", dict[str, Any]], dict[str, Any]]

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownCollectionError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Invalid collection ({name}).")


class UnknownSchematicError(Exception):
    def __init__(self, collection: str, name: str, reason: str = "") -> None:
        self.collection = collection
        self.name = name
        message = f"Schematic {name!r} not found in collection {collection!r}."
        super().__init__(f"{message} {reason}" if reason else message)


class PrivateSchematicError(Exception):
    def __init__(self, collection: str, name: str) -> None:
        self.collection = collection
        self.name = name
        super().__init__(f"Schematic {name!r} from collection {collection!r} is private.")


class InvalidSchematicOptionsError(ValueError):
    def __init__(self, schematic: str, errors: ValidationError) -> None:
        self.schematic = schematic
        self.errors = errors.errors()
        super().__init__(f"Invalid options for schematic {schematic!r}:\n{errors}")


# ---------------------------------------------------------------------------
# Runtime objects
# ---------------------------------------------------------------------------


class Collection:
    """A resolved collection, with its inherited collections in lookup order."""

    def __init__(
        self,
        description: CollectionDescription,
        engine: SchematicEngine,
        bases: list["Collection"],
    ) -> None:
        self.description = description
        self.engine = engine
        self.bases = bases

    def __repr__(self) -> str:
        return f"<Collection {self.name!r}>"

    @property
    def name(self) -> str:
        return self.description.name

    def create_schematic(self, name: str, allow_private: bool = False) -> "Schematic":
        return self.engine.create_schematic(self, name, allow_private=allow_private)

    def list_schematics(self) -> list[str]:
        return self.engine.list_schematics(self)


class Schematic:
    """A schematic bound to the collection it was found in."""

    def __init__(self, description: SchematicDescription, collection: Collection) -> None:
        self.description = description
        self.collection = collection

    def __repr__(self) -> str:
        return f"<Schematic {self.collection.name}:{self.name}>"

    @property
    def name(self) -> str:
        return self.description.name

    @property
    def path(self) -> Optional[Path]:
        return self.description.path

    @property
    def engine(self) -> SchematicEngine:
        return self.collection.engine

    async def call(
        self,
        options: Any,
        tree: Tree,
        parent: Optional[SchematicContext] = None,
        **context_options: Any,
    ) -> Tree:
        """Validate *options*, build the rule and run it on *tree*."""
        resolved = self.engine.transform_options(self, options)
        context = self.engine.create_context(self, resolved, parent=parent, **context_options)
        rule = self.engine.create_rule(self, resolved)
        context.logger.debug("Running schematic %s:%s", self.collection.name, self.name)
        return await call_rule(rule, tree, context)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SchematicEngine:
    """Resolves collections and schematics and creates their rules."""

    def __init__(
        self,
        resolver: Optional[CollectionResolver] = None,
        *,
        symbols: Optional[ModuleRegistry] = None,
    ) -> None:
        self.resolver = resolver or default_resolver()
        self._symbols = symbols or ModuleRegistry()
        self._collections: dict[str, Collection] = {}
        self._schematics: dict[tuple[str, str], Schematic] = {}
        self._transforms: list[OptionsTransform] = []

    # -- Resolution ----------------------------------------------------------

    def create_collection(self, name: str) -> Collection:
        """Return the collection *name*, resolving it on first use.

        Raises:
            UnknownCollectionError: If no resolver knows the name.
        """
        return self._create_collection(name, ())

    def _create_collection(self, name: str, resolving: tuple[str, ...]) -> Collection:
        if name in self._collections:
            return self._collections[name]
        if name in resolving:
            raise SchematicsException(f"Collection {name!r} extends itself: {' -> '.join((*resolving, name))}")

        description = self.resolver.resolve(name)
        if description is None:
            raise UnknownCollectionError(name)
        bases = [self._create_collection(base, (*resolving, name)) for base in description.extends]
        collection = Collection(description, self, bases)
        self._collections[name] = collection
        if description.name != name:
            self._collections.setdefault(description.name, collection)
        return collection

    def create_schematic(
        self,
        collection: Union[str, Collection],
        name: str,
        allow_private: bool = False,
    ) -> Schematic:
        """Find schematic *name* in *collection* or the collections it extends.

        Raises:
            UnknownSchematicError: If no collection in the chain has it.
            PrivateSchematicError: If it is private and *allow_private* is false.
        """
        if isinstance(collection, str):
            collection = self.create_collection(collection)

        key = (collection.name, name)
        schematic = self._schematics.get(key)
        if schematic is None:
            schematic = self._find(collection, name)
            if schematic is None:
                raise UnknownSchematicError(collection.name, name)
            self._schematics[key] = schematic

        if schematic.description.private and not allow_private:
            raise PrivateSchematicError(collection.name, name)
        return schematic

    def _find(self, collection: Collection, name: str) -> Optional[Schematic]:
        description = collection.description.find(name)
        if description is not None:
            return Schematic(description, collection)
        for base in collection.bases:
            found = self._find(base, name)
            if found is not None:
                return found
        return None

    def list_schematics(self, collection: Union[str, Collection]) -> list[str]:
        """Return the public, visible schematic names including inherited ones."""
        if isinstance(collection, str):
            collection = self.create_collection(collection)
        names: set[str] = set()
        for base in collection.bases:
            names.update(self.list_schematics(base))
        names.update(
            name
            for name, description in collection.description.schematics.items()
            if not description.hidden and not description.private
        )
        return sorted(names)

    # -- Options -------------------------------------------------------------

    def register_options_transform(self, transform: OptionsTransform) -> None:
        """Add a transform applied to raw options before validation."""
        self._transforms.append(transform)

    def transform_options(self, schematic: Schematic, options: Any) -> Any:
        """Run option transforms, then validate with the schematic's model.

        Returns the validated model instance, or the transformed dict when
        the schematic declares no options model.

        Raises:
            InvalidSchematicOptionsError: If validation fails.
        """
        if isinstance(options, BaseModel):
            values = options.model_dump()
        else:
            values = dict(options or {})
        for transform in self._transforms:
            values = transform(schematic, values)

        model = schematic.description.options_model
        if model is None:
            return values
        try:
            return model.model_validate(values)
        except ValidationError as exc:
            raise InvalidSchematicOptionsError(schematic.name, exc) from exc

    # -- Context & rule ------------------------------------------------------

    def create_context(
        self,
        schematic: Schematic,
        options: Any = None,
        *,
        parent: Optional[SchematicContext] = None,
        scheduler: Optional[TaskScheduler] = None,
        cancellation: Optional[CancellationToken] = None,
        strategy: Optional[MergeStrategy] = None,
        debug: Optional[bool] = None,
    ) -> SchematicContext:
        """Build a context, inheriting unset values from *parent*."""
        if scheduler is None:
            scheduler = parent.scheduler if parent is not None else TaskScheduler()
        if cancellation is None:
            cancellation = parent.cancellation if parent is not None else CancellationToken()
        if strategy is None:
            strategy = parent.strategy if parent is not None else MergeStrategy.DEFAULT
        if debug is None:
            debug = parent.debug if parent is not None else False

        return SchematicContext(
            engine=self,
            schematic=schematic,
            options=options,
            scheduler=scheduler,
            cancellation=cancellation,
            logger=logging.getLogger(f"treewright.{schematic.collection.name}.{schematic.name}"),
            strategy=strategy,
            debug=debug,
            parent=parent,
        )

    def create_rule(self, schematic: Schematic, options: Any) -> Rule:
        """Call the schematic's factory with *options* and return its rule."""
        factory = schematic.description.factory
        if isinstance(factory, str):
            factory = self._load_factory(schematic, factory)
        rule = factory(options)
        if not callable(rule):
            raise SchematicsException(
                f"Factory of schematic {schematic.name!r} returned {type(rule).__name__}, not a rule."
            )
        return rule

    def _load_factory(self, schematic: Schematic, reference: str) -> Callable[..., Rule]:
        try:
            handler = self._symbols.get(reference)
        except (InvalidHandlerNameError, HandlerExportNotFoundError) as exc:
            raise UnknownSchematicError(schematic.collection.name, schematic.name, str(exc)) from exc
        if handler is None:
            raise UnknownSchematicError(
                schematic.collection.name, schematic.name, f"Factory module for {reference!r} was not found."
            )
        return handler.func
