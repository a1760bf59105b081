"""Path normalisation for the virtual tree.

Every path inside a :class:`~treewright.tree.Tree` is absolute and POSIX
styled (``/src/app.py``), whatever the host platform.  Rules may pass
relative or back-slashed paths; they are normalised here once so the action
log never holds two spellings of the same file.
"""

from __future__ import annotations


class InvalidPathError(ValueError):
    """Raised when a path cannot be represented inside the tree."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Invalid path {path!r}: {reason}")


def normalize_path(path: str) -> str:
    """Return the canonical absolute form of *path*.

    ``.`` segments and duplicate slashes are dropped and ``..`` is resolved.
    A ``..`` that would climb above the root raises :class:`InvalidPathError`.

    Examples::

        normalize_path("a/./b//c.txt") -> "/a/b/c.txt"
        normalize_path("src/../x.py")  -> "/x.py"
    """
    parts: list[str] = []
    for part in path.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise InvalidPathError(path, "escapes the tree root")
            parts.pop()
            continue
        parts.append(part)
    return "/" + "/".join(parts)


def join_path(base: str, *segments: str) -> str:
    """Join *segments* onto *base* and normalise the result."""
    return normalize_path("/".join([base, *segments]))


def dirname(path: str) -> str:
    """Return the parent directory of a normalised path (``/`` for top level)."""
    head = normalize_path(path).rsplit("/", 1)[0]
    return head or "/"


def basename(path: str) -> str:
    """Return the final segment of a normalised path."""
    return normalize_path(path).rsplit("/", 1)[-1]


def is_under(path: str, root: str) -> bool:
    """Return ``True`` if *path* equals *root* or lives beneath it."""
    root = normalize_path(root)
    if root == "/":
        return True
    return path == root or path.startswith(root + "/")


def relative_to(path: str, root: str) -> str:
    """Return *path* relative to *root*, without a leading slash."""
    root = normalize_path(root)
    if root == "/":
        return path.lstrip("/")
    return path[len(root):].lstrip("/")
