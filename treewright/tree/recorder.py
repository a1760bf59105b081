"""Offset-based content edits.

An :class:`UpdateRecorder` collects insertions and removals expressed as
offsets into a file's *original* content, so several edits computed from one
parse of the file can be applied together without re-computing positions.
"""

from __future__ import annotations

from .actions import to_bytes


class UpdateRecorder:
    """Collects edits against a snapshot of one file's content.

    ``insert_left`` at an offset lands before anything already inserted there
    (later calls end up further left); ``insert_right`` lands after (later
    calls end up further right).  Removed ranges never swallow insertions.
    """

    def __init__(self, path: str, content: bytes) -> None:
        self.path = path
        self.original = content
        self._left: dict[int, list[bytes]] = {}
        self._right: dict[int, list[bytes]] = {}
        self._removals: list[tuple[int, int]] = []

    def _check(self, index: int, length: int = 0) -> None:
        if index < 0 or length < 0 or index + length > len(self.original):
            raise IndexError(
                f"Edit [{index}, {index + length}) is outside {self.path} "
                f"({len(self.original)} bytes)"
            )

    def insert_left(self, index: int, content: str | bytes) -> "UpdateRecorder":
        self._check(index)
        self._left.setdefault(index, []).append(to_bytes(content))
        return self

    def insert_right(self, index: int, content: str | bytes) -> "UpdateRecorder":
        self._check(index)
        self._right.setdefault(index, []).append(to_bytes(content))
        return self

    def remove(self, index: int, length: int) -> "UpdateRecorder":
        self._check(index, length)
        if length:
            self._removals.append((index, length))
        return self

    def apply(self) -> bytes:
        """Return the original content with every recorded edit applied."""
        data = self.original
        bounds = {0, len(data), *self._left, *self._right}
        for start, length in self._removals:
            bounds.update((start, start + length))
        points = sorted(bounds)

        out = bytearray()
        for i, point in enumerate(points):
            out += b"".join(reversed(self._left.get(point, [])))
            out += b"".join(self._right.get(point, []))
            if i + 1 == len(points):
                break
            removed = any(start <= point < start + length for start, length in self._removals)
            if not removed:
                out += data[point:points[i + 1]]
        return bytes(out)
