"""Template directory sources."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from treewright.tree import FileSystemStore, HostCreateTree, Tree

from .base import SchematicsException, Source

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext


def url(path: str | Path) -> Source:
    """A source loading every file under a directory as staged creates.

    Relative paths resolve against the directory of the running schematic.
    The directory is read off the event loop.
    """

    async def _url(context: SchematicContext) -> Tree:
        directory = Path(path)
        if not directory.is_absolute():
            base = context.schematic.path
            if base is None:
                raise SchematicsException(
                    f"Schematic {context.schematic.name!r} has no directory to resolve {str(path)!r} against."
                )
            directory = Path(base) / directory
        if not directory.is_dir():
            raise SchematicsException(f"Template directory {str(directory)!r} does not exist.")
        return await asyncio.to_thread(HostCreateTree, FileSystemStore(directory))

    return _url
