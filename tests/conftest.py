"""Shared pytest fixtures for the treewright test suite.

Provides reusable fixtures for:
- In-memory and on-disk file stores (plus a store that records its calls)
- A schematic engine over an in-memory collection
- A schematic context for calling rules directly
- Mock subprocess helpers
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from treewright.cancellation import CancellationToken
from treewright.collections import (
    CollectionDescription,
    SchematicContext,
    SchematicDescription,
    SchematicEngine,
    StaticCollectionResolver,
)
from treewright.tasks import TaskScheduler
from treewright.tree import FileSystemStore, MemoryFileStore

# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class SpyStore(MemoryFileStore):
    """A memory store that records every mutating call.

    ``fail_on`` names a path whose write/delete/rename raises ``OSError``.
    """

    def __init__(self, files: dict[str, str | bytes] | None = None, fail_on: str | None = None) -> None:
        super().__init__(files)
        self.calls: list[tuple[str, ...]] = []
        self.fail_on = fail_on

    def _check(self, path: str) -> None:
        if self.fail_on is not None and path == self.fail_on:
            raise OSError(f"disk full while writing {path}")

    def write(self, path: str, content: bytes) -> None:
        self.calls.append(("write", path))
        self._check(path)
        super().write(path, content)

    def delete(self, path: str) -> None:
        self.calls.append(("delete", path))
        self._check(path)
        super().delete(path)

    def rename(self, from_path: str, to_path: str) -> None:
        self.calls.append(("rename", from_path, to_path))
        self._check(from_path)
        super().rename(from_path, to_path)


@pytest.fixture
def memory_store() -> MemoryFileStore:
    """Memory store seeded with a small project."""
    return MemoryFileStore({
        "/README.md": "# demo\n",
        "/src/app.py": "print('hi')\n",
        "/src/util.py": "X = 1\n",
    })


@pytest.fixture
def spy_store() -> SpyStore:
    return SpyStore({"/existing.txt": "old"})


@pytest.fixture
def fs_store(tmp_path: Path) -> FileSystemStore:
    """File system store rooted at an empty temporary directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return FileSystemStore(root)


# ---------------------------------------------------------------------------
# Engine & context
# ---------------------------------------------------------------------------


@pytest.fixture
def make_engine() -> Callable[..., SchematicEngine]:
    """Factory building an engine over one in-memory collection.

    Usage:
        def test_x(make_engine):
            engine = make_engine({"hello": lambda options: rule})
            schematic = engine.create_schematic("test", "hello")
    """

    def factory(
        schematics: dict[str, Any],
        name: str = "test",
        path: Path | None = None,
        extra: list[CollectionDescription] | None = None,
    ) -> SchematicEngine:
        descriptions = {}
        for schematic_name, value in schematics.items():
            if isinstance(value, SchematicDescription):
                descriptions[schematic_name] = value
            else:
                descriptions[schematic_name] = SchematicDescription(
                    name=schematic_name, factory=value, path=path
                )
        collection = CollectionDescription(name=name, schematics=descriptions)
        return SchematicEngine(StaticCollectionResolver([collection, *(extra or [])]))

    return factory


@pytest.fixture
def engine(make_engine) -> SchematicEngine:
    return make_engine({"noop": lambda options: (lambda tree, context: None)})


@pytest.fixture
def context(engine: SchematicEngine) -> SchematicContext:
    """A context for calling rules directly, outside a workflow."""
    schematic = engine.create_schematic("test", "noop")
    return SchematicContext(
        engine=engine,
        schematic=schematic,
        options={},
        scheduler=TaskScheduler(),
        cancellation=CancellationToken(),
        logger=logging.getLogger("treewright.test.noop"),
    )


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """

    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


@pytest.fixture
def make_spy_store() -> Callable[..., SpyStore]:
    """Factory for :class:`SpyStore` instances."""
    return SpyStore
