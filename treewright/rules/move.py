"""Path relocation rule."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from treewright.tree import Tree, normalize_path
from treewright.tree.paths import join_path, relative_to

from .base import Rule

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext


def move(from_: str, to: Optional[str] = None) -> Rule:
    """Move a file or a whole directory.

    ``move("app")`` moves every file of the tree under ``/app``.
    ``move("/src/a.py", "/lib/a.py")`` renames one file, and
    ``move("/src", "/lib")`` re-roots every file under ``/src``.
    """
    if to is None:
        from_, to = "/", from_
    source = normalize_path(from_)
    target = normalize_path(to)

    def _move(tree: Tree, context: SchematicContext) -> Tree:
        if source == target:
            return tree
        if tree.exists(source):
            tree.rename(source, target)
            return tree
        for path in tree.files(source):
            tree.rename(path, join_path(target, relative_to(path, source)))
        return tree

    return _move
