"""Virtual file tree.

A :class:`Tree` is an in-memory overlay of staged file operations on top of a
read-only base :class:`~treewright.tree.store.FileStore`.  Rules mutate the
tree; nothing reaches the base store until the workflow commits the tree's
effective :attr:`Tree.actions`.

Internally the tree keeps:

* an append-only log of :mod:`~treewright.tree.actions` records, indexed by
  path (``history()``);
* a live view built by replaying that log, so reads and precondition checks
  do not re-scan the log;
* branch points towards its ancestors, so a branch merged back into the tree
  it came from only replays what was staged on the branch.
"""

from __future__ import annotations

import enum
import itertools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from .actions import (
    Action,
    CreateAction,
    DeleteAction,
    FileEntry,
    OverwriteAction,
    RenameAction,
    to_bytes,
)
from .paths import is_under, normalize_path, relative_to
from .recorder import UpdateRecorder
from .store import FileStore, MemoryFileStore

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PathConflictError(Exception):
    """A create/overwrite/delete/rename precondition was violated."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class PathAlreadyExistsError(PathConflictError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Path {path!r} already exists.")


class PathDoesNotExistError(PathConflictError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Path {path!r} does not exist.")


class MergeConflictError(Exception):
    """The merge strategy rejected an action that collides with this tree."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"A merge conflicted on path {path!r}.")


class ContentHasMutatedError(Exception):
    """An update recorder was committed after its file changed underneath it."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Content at path {path!r} has changed between the start and the end of an update.")


# ---------------------------------------------------------------------------
# Merge strategy
# ---------------------------------------------------------------------------


class MergeStrategy(enum.IntFlag):
    """How actions from another tree reconcile with this tree's own changes."""

    DEFAULT = 0
    ERROR = 1
    ALLOW_OVERWRITE_CONFLICT = 2
    ALLOW_CREATION_CONFLICT = 4
    ALLOW_DELETE_CONFLICT = 8
    OVERWRITE = ALLOW_OVERWRITE_CONFLICT | ALLOW_CREATION_CONFLICT | ALLOW_DELETE_CONFLICT


# ---------------------------------------------------------------------------
# Live view
# ---------------------------------------------------------------------------


@dataclass
class _Entry:
    """A staged live file.

    ``origin`` is the base path the file descends from (``None`` for files
    created in the tree); ``content`` is ``None`` while the base content is
    still current.  The ``*_at`` fields hold log positions used to order the
    effective actions.
    """

    origin: Optional[str]
    content: Optional[bytes]
    created_at: Optional[int] = None
    renamed_at: Optional[int] = None
    modified_at: Optional[int] = None


_tree_ids = itertools.count(1)


class Tree:
    """Staged overlay of file actions over a base file store."""

    def __init__(self, base: FileStore | None = None) -> None:
        self._id = next(_tree_ids)
        self._base: FileStore = base if base is not None else MemoryFileStore()
        self._log: list[Action] = []
        self._index: dict[str, list[int]] = {}
        self._entries: dict[str, _Entry] = {}
        # Base paths that are no longer live at their own location.
        self._removed: dict[str, int] = {}
        # ancestor tree id -> position in this log where own actions start.
        self._branch_points: dict[int, int] = {}

    def __repr__(self) -> str:
        return f"<Tree #{self._id} actions={len(self._log)}>"

    @property
    def id(self) -> int:
        return self._id

    @property
    def base(self) -> FileStore:
        return self._base

    # -- Reading -----------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self._is_live(normalize_path(path))

    def read(self, path: str) -> bytes | None:
        """Return the effective content of *path*, or ``None`` if it is not live."""
        return self._content(normalize_path(path))

    def read_text(self, path: str) -> str | None:
        content = self.read(path)
        return content.decode("utf-8") if content is not None else None

    def get(self, path: str) -> FileEntry | None:
        key = normalize_path(path)
        content = self._content(key)
        if content is None:
            return None
        return FileEntry(key, content)

    def files(self, root: str = "/") -> list[str]:
        """Return every live file path under *root*, sorted."""
        live = {p for p in self._base.iter_files() if self._is_live(normalize_path(p))}
        live.update(self._entries)
        return sorted(p for p in live if is_under(p, root))

    def visit(self, visitor: Callable[[str, FileEntry], None], root: str = "/") -> None:
        """Call *visitor* for each live file under *root*.

        Paths are collected up front, so the visitor may mutate the tree.
        Files removed by an earlier visitor call are skipped.
        """
        for path in self.files(root):
            entry = self.get(path)
            if entry is not None:
                visitor(path, entry)

    def list_dir(self, path: str = "/") -> list[str]:
        """Return the names of the direct children (files and directories) of *path*."""
        root = normalize_path(path)
        names = set()
        for file_path in self.files(root):
            rel = relative_to(file_path, root)
            if rel:
                names.add(rel.split("/", 1)[0])
        return sorted(names)

    def history(self, path: str) -> list[Action]:
        """Return every staged action that touched *path*, in staging order."""
        return [self._log[i] for i in self._index.get(normalize_path(path), [])]

    # -- Mutation ----------------------------------------------------------

    def create(self, path: str, content: str | bytes) -> None:
        key = normalize_path(path)
        if self._is_live(key):
            raise PathAlreadyExistsError(key)
        self._record(CreateAction(key, to_bytes(content)))

    def overwrite(self, path: str, content: str | bytes) -> None:
        key = normalize_path(path)
        if not self._is_live(key):
            raise PathDoesNotExistError(key)
        self._record(OverwriteAction(key, to_bytes(content)))

    def delete(self, path: str) -> None:
        key = normalize_path(path)
        if not self._is_live(key):
            raise PathDoesNotExistError(key)
        self._record(DeleteAction(key))

    def rename(self, from_path: str, to_path: str) -> None:
        source = normalize_path(from_path)
        target = normalize_path(to_path)
        if not self._is_live(source):
            raise PathDoesNotExistError(source)
        if source == target:
            return
        if self._is_live(target):
            raise PathAlreadyExistsError(target)
        self._record(RenameAction(source, target))

    def begin_update(self, path: str) -> UpdateRecorder:
        key = normalize_path(path)
        content = self._content(key)
        if content is None:
            raise PathDoesNotExistError(key)
        return UpdateRecorder(key, content)

    def commit_update(self, recorder: UpdateRecorder) -> None:
        current = self._content(recorder.path)
        if current is None:
            raise PathDoesNotExistError(recorder.path)
        if current != recorder.original:
            raise ContentHasMutatedError(recorder.path)
        self.overwrite(recorder.path, recorder.apply())

    # -- Branching & merging -----------------------------------------------

    def branch(self) -> "Tree":
        """Return an independent child tree that starts from this tree's state."""
        child = Tree(self._base)
        for action in self._log:
            child._record(action)
        child._branch_points = dict(self._branch_points)
        child._branch_points[self._id] = len(self._log)
        return child

    def merge(self, other: "Tree", strategy: MergeStrategy = MergeStrategy.DEFAULT) -> None:
        """Replay *other*'s changes into this tree under *strategy*.

        If *other* was branched from this tree, only the actions staged on the
        branch are replayed and conflicts are judged against what this tree
        staged after the branch point.  Otherwise *other*'s effective actions
        are replayed and any staged change here counts as a collision.

        Raises:
            MergeConflictError: When the strategy rejects a colliding action.
        """
        if other is self:
            return
        # Actions replayed by this merge are not concurrent changes.
        until = len(self._log)
        if self._id in other._branch_points:
            point = other._branch_points[self._id]
            since = point
            actions = other._log[point:]
        else:
            since = 0
            actions = other.actions

        for action in actions:
            self._merge_action(action, strategy, since, until)

    def _merge_action(self, action: Action, strategy: MergeStrategy, since: int, until: int) -> None:
        strict = bool(strategy & MergeStrategy.ERROR)
        allow_create = not strict and bool(strategy & MergeStrategy.ALLOW_CREATION_CONFLICT)
        allow_overwrite = not strict and bool(strategy & MergeStrategy.ALLOW_OVERWRITE_CONFLICT)
        allow_delete = not strict and bool(strategy & MergeStrategy.ALLOW_DELETE_CONFLICT)
        path = action.path

        if isinstance(action, CreateAction):
            if not self._is_live(path):
                self.create(path, action.content)
                return
            if strict:
                raise MergeConflictError(path)
            if self._content(path) == action.content:
                return
            if not allow_create:
                raise MergeConflictError(path)
            self.overwrite(path, action.content)

        elif isinstance(action, OverwriteAction):
            if not self._is_live(path):
                if not allow_overwrite:
                    raise MergeConflictError(path)
                self.create(path, action.content)
                return
            if self._touched_since(path, since, until):
                if strict:
                    raise MergeConflictError(path)
                if self._content(path) == action.content:
                    return
                if not allow_overwrite:
                    raise MergeConflictError(path)
            self.overwrite(path, action.content)

        elif isinstance(action, RenameAction):
            if not self._is_live(path):
                moved = self._entries.get(action.to)
                if not strict and moved is not None and moved.origin == path:
                    return
                raise MergeConflictError(path)
            if self._is_live(action.to):
                if not allow_overwrite:
                    raise MergeConflictError(action.to)
                self.delete(action.to)
            self.rename(path, action.to)

        elif isinstance(action, DeleteAction):
            if not self._is_live(path):
                if not strict and (allow_delete or self._touched_since(path, since, until)):
                    return
                raise MergeConflictError(path)
            if strict and self._touched_since(path, since, until):
                raise MergeConflictError(path)
            self.delete(path)

    def _touched_since(self, path: str, since: int, until: int) -> bool:
        return any(since <= i < until for i in self._index.get(path, ()))

    # -- Effective actions ---------------------------------------------------

    @property
    def actions(self) -> list[Action]:
        """The log folded to one effective change per path, in staging order.

        * create then overwrite -> create with the latest content
        * create then delete -> nothing
        * overwrite then delete -> delete
        * rename chains -> a single rename from the base path
        * rename of a created file -> create at the new path
        * delete then create of a base path -> overwrite
        """
        origins = {e.origin for e in self._entries.values() if e.origin is not None}
        records: list[tuple[int, int, Action]] = []

        for path, entry in self._entries.items():
            if entry.origin is None:
                assert entry.content is not None and entry.created_at is not None
                if path in self._removed and path not in origins:
                    records.append((self._removed[path], 0, OverwriteAction(path, entry.content)))
                else:
                    records.append((entry.created_at, 0, CreateAction(path, entry.content)))
                continue

            renamed = entry.origin != path
            if renamed:
                assert entry.renamed_at is not None
                records.append((entry.renamed_at, 0, RenameAction(entry.origin, path)))
            if entry.content is not None:
                assert entry.modified_at is not None
                position = max(entry.modified_at, entry.renamed_at or 0) if renamed else entry.modified_at
                records.append((position, 1, OverwriteAction(path, entry.content)))

        for path, position in self._removed.items():
            if path in origins:
                continue
            replaced = self._entries.get(path)
            if replaced is not None and replaced.origin is None:
                continue
            records.append((position, 0, DeleteAction(path)))

        records.sort(key=lambda r: (r[0], r[1]))
        return [action for _, _, action in records]

    # -- Internals -----------------------------------------------------------

    def _is_live(self, path: str) -> bool:
        if path in self._entries:
            return True
        if path in self._removed:
            return False
        return self._base.exists(path)

    def _content(self, path: str) -> bytes | None:
        entry = self._entries.get(path)
        if entry is not None:
            if entry.content is not None:
                return entry.content
            assert entry.origin is not None
            return self._base.read(entry.origin)
        if path in self._removed or not self._base.exists(path):
            return None
        return self._base.read(path)

    def _record(self, action: Action) -> None:
        position = len(self._log)
        self._log.append(action)
        self._index.setdefault(action.path, []).append(position)
        if isinstance(action, RenameAction):
            self._index.setdefault(action.to, []).append(position)
        self._apply(action, position)

    def _apply(self, action: Action, position: int) -> None:
        if isinstance(action, CreateAction):
            self._entries[action.path] = _Entry(
                origin=None, content=action.content, created_at=position
            )

        elif isinstance(action, OverwriteAction):
            entry = self._entries.get(action.path)
            if entry is None:
                entry = _Entry(origin=action.path, content=None)
                self._entries[action.path] = entry
            if entry.origin is not None and entry.modified_at is None:
                entry.modified_at = position
            entry.content = action.content

        elif isinstance(action, DeleteAction):
            entry = self._entries.pop(action.path, None)
            if entry is None:
                self._removed.setdefault(action.path, position)
            elif entry.origin is not None:
                self._removed.setdefault(entry.origin, position)

        elif isinstance(action, RenameAction):
            entry = self._entries.pop(action.path, None)
            if entry is None:
                entry = _Entry(origin=action.path, content=None)
            if entry.origin is not None:
                self._removed.setdefault(entry.origin, position)
                if entry.renamed_at is None:
                    entry.renamed_at = position
            self._entries[action.to] = entry


class HostCreateTree(Tree):
    """A tree holding every file of *store* as a staged create.

    Used for template sources: their files are new relative to whatever tree
    they are merged into.
    """

    def __init__(self, store: FileStore) -> None:
        super().__init__(MemoryFileStore())
        for path in store.iter_files():
            self.create(path, store.read(path))
