"""treewright collections -- named schematics and the engine that runs them."""

from .context import SchematicContext
from .description import CollectionDescription, SchematicDescription
from .engine import (
    Collection,
    InvalidSchematicOptionsError,
    PrivateSchematicError,
    Schematic,
    SchematicEngine,
    UnknownCollectionError,
    UnknownSchematicError,
)
from .resolvers import (
    ChainedCollectionResolver,
    CollectionResolver,
    InvalidCollectionManifestError,
    ManifestCollectionResolver,
    ModuleCollectionResolver,
    StaticCollectionResolver,
    default_resolver,
)

__all__ = [
    # Engine
    "SchematicEngine",
    "SchematicContext",
    "Collection",
    "Schematic",
    # Descriptions
    "CollectionDescription",
    "SchematicDescription",
    # Resolvers
    "CollectionResolver",
    "StaticCollectionResolver",
    "ModuleCollectionResolver",
    "ManifestCollectionResolver",
    "ChainedCollectionResolver",
    "default_resolver",
    # Errors
    "UnknownCollectionError",
    "UnknownSchematicError",
    "PrivateSchematicError",
    "InvalidSchematicOptionsError",
    "InvalidCollectionManifestError",
]
