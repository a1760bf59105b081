"""treewright virtual tree -- staged file actions over a base store.

Quick usage::

    from treewright.tree import FileSystemStore, Tree

    tree = Tree(FileSystemStore("./my-project"))
    tree.create("/README.md", "# Hello\\n")
    tree.overwrite("/README.md", "# Hello, world\\n")
    tree.actions  # [CreateAction(path='/README.md', content=b'# Hello, world\\n')]
"""

from .actions import (
    Action,
    CreateAction,
    DeleteAction,
    FileEntry,
    OverwriteAction,
    RenameAction,
)
from .paths import InvalidPathError, normalize_path
from .recorder import UpdateRecorder
from .store import FileStore, FileSystemStore, MemoryFileStore
from .tree import (
    ContentHasMutatedError,
    HostCreateTree,
    MergeConflictError,
    MergeStrategy,
    PathAlreadyExistsError,
    PathConflictError,
    PathDoesNotExistError,
    Tree,
)

__all__ = [
    # Tree
    "Tree",
    "HostCreateTree",
    "MergeStrategy",
    "UpdateRecorder",
    # Actions
    "Action",
    "CreateAction",
    "OverwriteAction",
    "DeleteAction",
    "RenameAction",
    "FileEntry",
    # Stores
    "FileStore",
    "MemoryFileStore",
    "FileSystemStore",
    # Paths
    "normalize_path",
    # Errors
    "InvalidPathError",
    "PathConflictError",
    "PathAlreadyExistsError",
    "PathDoesNotExistError",
    "MergeConflictError",
    "ContentHasMutatedError",
]
