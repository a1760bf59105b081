"""Staged file actions and file entries.

Actions are immutable records of a single file operation.  A tree's log is an
append-only sequence of them; the effective action set handed to the commit
phase is computed by folding that log per path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union


@dataclass(frozen=True)
class CreateAction:
    path: str
    content: bytes
    kind: ClassVar[str] = "c"


@dataclass(frozen=True)
class OverwriteAction:
    path: str
    content: bytes
    kind: ClassVar[str] = "o"


@dataclass(frozen=True)
class DeleteAction:
    path: str
    kind: ClassVar[str] = "d"


@dataclass(frozen=True)
class RenameAction:
    path: str
    to: str
    kind: ClassVar[str] = "r"


Action = Union[CreateAction, OverwriteAction, DeleteAction, RenameAction]


@dataclass(frozen=True)
class FileEntry:
    """A file as seen through a tree: its path and current content."""

    path: str
    content: bytes

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


def to_bytes(content: str | bytes) -> bytes:
    """Coerce rule-supplied content to bytes (text is UTF-8 encoded)."""
    if isinstance(content, str):
        return content.encode("utf-8")
    return bytes(content)
