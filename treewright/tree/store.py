"""Backing file stores.

A :class:`FileStore` is the persistent side of the commit boundary.  The tree
only ever *reads* from it while rules run; the workflow's commit phase is the
single place that calls the mutating methods.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol, runtime_checkable

from .paths import normalize_path

DEFAULT_IGNORED_DIRS: frozenset[str] = frozenset(
    {".git", "node_modules", "__pycache__", ".venv", ".mypy_cache", ".pytest_cache"}
)


@runtime_checkable
class FileStore(Protocol):
    """Minimal file API consumed by trees and by the commit phase."""

    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, content: bytes) -> None: ...

    def delete(self, path: str) -> None: ...

    def rename(self, from_path: str, to_path: str) -> None: ...

    def iter_files(self) -> Iterator[str]: ...


class MemoryFileStore:
    """Dictionary-backed store, used for template sources and in tests."""

    def __init__(self, files: dict[str, str | bytes] | None = None) -> None:
        self._files: dict[str, bytes] = {}
        for path, content in (files or {}).items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            self._files[normalize_path(path)] = data

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def read(self, path: str) -> bytes:
        key = normalize_path(path)
        try:
            return self._files[key]
        except KeyError:
            raise FileNotFoundError(key) from None

    def write(self, path: str, content: bytes) -> None:
        self._files[normalize_path(path)] = content

    def delete(self, path: str) -> None:
        key = normalize_path(path)
        if key not in self._files:
            raise FileNotFoundError(key)
        del self._files[key]

    def rename(self, from_path: str, to_path: str) -> None:
        source = normalize_path(from_path)
        if source not in self._files:
            raise FileNotFoundError(source)
        self._files[normalize_path(to_path)] = self._files.pop(source)

    def iter_files(self) -> Iterator[str]:
        return iter(sorted(self._files))

    def snapshot(self) -> dict[str, bytes]:
        """Return a copy of the stored files."""
        return dict(self._files)


class FileSystemStore:
    """Store rooted at a directory on disk.

    Tree paths map onto ``root`` (``/src/a.py`` -> ``<root>/src/a.py``).
    Parent directories are created on write and rename; empty directories
    left behind by deletes are not pruned.
    """

    def __init__(
        self,
        root: str | Path,
        ignored_dirs: frozenset[str] = DEFAULT_IGNORED_DIRS,
    ) -> None:
        self.root = Path(root).resolve()
        self.ignored_dirs = ignored_dirs

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_path(path).lstrip("/")

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def write(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def delete(self, path: str) -> None:
        self._resolve(path).unlink()

    def rename(self, from_path: str, to_path: str) -> None:
        target = self._resolve(to_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._resolve(from_path).rename(target)

    def iter_files(self) -> Iterator[str]:
        if not self.root.is_dir():
            return
        for file_path in sorted(self.root.rglob("*")):
            rel = file_path.relative_to(self.root)
            if any(part in self.ignored_dirs for part in rel.parts):
                continue
            if file_path.is_file():
                yield "/" + rel.as_posix()
