"""Rules that run other schematics or schedule tasks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

from treewright.tree import MergeStrategy, Tree

from .base import Rule

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext
    from treewright.collections.engine import Schematic
    from treewright.tasks.scheduler import TaskConfigurationGenerator


async def _run_nested(
    schematic: Schematic,
    options: Any,
    tree: Tree,
    context: SchematicContext,
) -> Tree:
    # The nested schematic works on a branch so only its own actions are
    # replayed on merge.
    result = await schematic.call(options, tree.branch(), parent=context)
    tree.merge(result, MergeStrategy.ALLOW_OVERWRITE_CONFLICT)
    return tree


def schematic(name: str, options: Optional[dict[str, Any]] = None) -> Rule:
    """Run schematic *name* from the current schematic's collection.

    Private schematics of the same collection are allowed.
    """

    async def _schematic(tree: Tree, context: SchematicContext) -> Tree:
        nested = context.schematic.collection.create_schematic(name, allow_private=True)
        return await _run_nested(nested, options or {}, tree, context)

    return _schematic


def external_schematic(
    collection: str,
    name: str,
    options: Optional[dict[str, Any]] = None,
) -> Rule:
    """Run schematic *name* from another collection."""

    async def _external(tree: Tree, context: SchematicContext) -> Tree:
        nested = context.engine.create_collection(collection).create_schematic(name)
        return await _run_nested(nested, options or {}, tree, context)

    return _external


def add_task(task: TaskConfigurationGenerator, dependencies: Iterable[int] = ()) -> Rule:
    """Schedule *task* to run after the tree is committed."""
    dependencies = list(dependencies)

    def _add_task(tree: Tree, context: SchematicContext) -> None:
        context.add_task(task, dependencies)

    return _add_task
