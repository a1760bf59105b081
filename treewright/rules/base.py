"""Rule and source primitives plus the structural combinators.

A *rule* is ``rule(tree, context)`` returning one of:

* a :class:`~treewright.tree.Tree` -- the tree to continue with;
* ``None`` -- continue with the tree that was passed in;
* another rule -- called with the same tree and context;
* an awaitable resolving to any of the above.

A *source* is ``source(context)`` returning a tree (or an awaitable of one).
Awaiting a rule's or source's result is the only place rule execution
suspends, so it is also where cancellation is observed.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, Optional, Union

from treewright.tree import FileEntry, MergeStrategy, Tree

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext

Rule = Callable[[Tree, "SchematicContext"], Any]
Source = Callable[["SchematicContext"], Union[Tree, Awaitable[Tree]]]
FileOperator = Callable[[FileEntry], Optional[FileEntry]]
FilePredicate = Callable[[str, FileEntry], bool]

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SchematicsException(Exception):
    """Raised by a rule to abort the schematic it belongs to."""


class InvalidRuleResultError(SchematicsException):
    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__(
            f"Invalid rule result: {type(result).__name__}. "
            "A rule must return a Tree, a Rule, None, or an awaitable of one of these."
        )


class InvalidSourceResultError(SchematicsException):
    def __init__(self, result: Any) -> None:
        self.result = result
        super().__init__(f"Invalid source result: {type(result).__name__}. A source must return a Tree.")


# ---------------------------------------------------------------------------
# Calling rules & sources
# ---------------------------------------------------------------------------


async def call_rule(rule: Rule, tree: Tree, context: SchematicContext) -> Tree:
    """Run *rule* against *tree* and resolve its result to a tree."""
    context.cancellation.raise_if_cancelled()
    result = rule(tree, context)
    while True:
        if inspect.isawaitable(result):
            result = await result
            context.cancellation.raise_if_cancelled()
        elif result is None:
            return tree
        elif isinstance(result, Tree):
            return result
        elif callable(result):
            result = result(tree, context)
        else:
            raise InvalidRuleResultError(result)


async def call_source(source: Source, context: SchematicContext) -> Tree:
    """Run *source* and resolve its result to a tree."""
    context.cancellation.raise_if_cancelled()
    result = source(context)
    if inspect.isawaitable(result):
        result = await result
        context.cancellation.raise_if_cancelled()
    if not isinstance(result, Tree):
        raise InvalidSourceResultError(result)
    return result


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


def empty() -> Source:
    """A source producing a new, empty tree."""
    return lambda context: Tree()


def source(tree: Tree) -> Source:
    """A source producing *tree* itself."""
    return lambda context: tree


def apply(source: Source, rules: Iterable[Rule]) -> Source:
    """A source that runs *rules* in order over the tree produced by *source*."""
    rule = chain(rules)

    async def _apply(context: SchematicContext) -> Tree:
        tree = await call_source(source, context)
        return await call_rule(rule, tree, context)

    return _apply


# ---------------------------------------------------------------------------
# Structural rules
# ---------------------------------------------------------------------------


def noop() -> Rule:
    return lambda tree, context: tree


def chain(rules: Iterable[Rule]) -> Rule:
    """Run *rules* strictly in order, each on the tree produced by the previous one.

    The first failing rule aborts the chain; later rules never run.
    """
    rules = list(rules)

    async def _chain(tree: Tree, context: SchematicContext) -> Tree:
        for rule in rules:
            tree = await call_rule(rule, tree, context)
        return tree

    return _chain


def when(
    condition: Union[bool, Callable[[Tree, "SchematicContext"], Any]],
    rule: Rule,
    otherwise: Optional[Rule] = None,
) -> Rule:
    """Run *rule* if *condition* holds, else *otherwise* (or nothing).

    *condition* is a bool or a callable ``(tree, context)`` returning a bool
    or an awaitable of one.
    """

    async def _when(tree: Tree, context: SchematicContext) -> Tree:
        if callable(condition):
            result = condition(tree, context)
            if inspect.isawaitable(result):
                result = await result
        else:
            result = condition
        if result:
            return await call_rule(rule, tree, context)
        if otherwise is not None:
            return await call_rule(otherwise, tree, context)
        return tree

    return _when


def merge_with(source: Source, strategy: Optional[MergeStrategy] = None) -> Rule:
    """Merge the tree produced by *source* into the current tree.

    Without an explicit *strategy* the context's strategy is used.
    """

    async def _merge_with(tree: Tree, context: SchematicContext) -> Tree:
        other = await call_source(source, context)
        tree.merge(other, strategy if strategy is not None else context.strategy)
        return tree

    return _merge_with


def branch_and_merge(rule: Rule, strategy: MergeStrategy = MergeStrategy.DEFAULT) -> Rule:
    """Run *rule* on a branch of the current tree, then merge the branch back."""

    async def _branch_and_merge(tree: Tree, context: SchematicContext) -> Tree:
        branch = tree.branch()
        result = await call_rule(rule, branch, context)
        tree.merge(result, strategy)
        return tree

    return _branch_and_merge


# ---------------------------------------------------------------------------
# Per-file rules
# ---------------------------------------------------------------------------


def for_each(operator: FileOperator) -> Rule:
    """Run *operator* over every file of the tree.

    Returning ``None`` deletes the file; a different path renames it; a
    different content overwrites it.  Each file is visited at most once,
    including files renamed onto a path that was still pending.
    """

    def _for_each(tree: Tree, context: SchematicContext) -> Tree:
        done: set[str] = set()
        for path in tree.files():
            if path in done:
                continue
            entry = tree.get(path)
            if entry is None:
                continue
            new_entry = operator(entry)
            if new_entry is None:
                tree.delete(path)
                continue
            if new_entry.path != path:
                tree.rename(path, new_entry.path)
            if new_entry.content != entry.content:
                tree.overwrite(new_entry.path, new_entry.content)
            done.add(new_entry.path)
        return tree

    return _for_each


def compose_file_operators(operators: Iterable[FileOperator]) -> FileOperator:
    """Chain file operators; a ``None`` from any of them short-circuits."""
    operators = list(operators)

    def _composed(entry: FileEntry) -> Optional[FileEntry]:
        current: Optional[FileEntry] = entry
        for operator in operators:
            if current is None:
                return None
            current = operator(current)
        return current

    return _composed


def filter_files(predicate: FilePredicate) -> Rule:
    """Remove every file for which ``predicate(path, entry)`` is false.

    On a template source this drops the file before it is merged; on a tree
    over a real store it stages deletions.
    """

    def _filter(tree: Tree, context: SchematicContext) -> Tree:
        for path in tree.files():
            entry = tree.get(path)
            if entry is not None and not predicate(path, entry):
                tree.delete(path)
        return tree

    return _filter
