"""Unit tests for path helpers (treewright.tree.paths)."""

from __future__ import annotations

import pytest

from treewright.tree import InvalidPathError, normalize_path
from treewright.tree.paths import basename, dirname, is_under, join_path, relative_to


class TestNormalizePath:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("a.txt", "/a.txt"),
            ("/a/./b//c.txt", "/a/b/c.txt"),
            ("src/../x.py", "/x.py"),
            ("src\\pkg\\mod.py", "/src/pkg/mod.py"),
            ("", "/"),
            ("/", "/"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.unit
    def test_escaping_the_root_raises(self):
        with pytest.raises(InvalidPathError) as exc_info:
            normalize_path("../outside.txt")
        assert exc_info.value.path == "../outside.txt"


class TestPathHelpers:
    @pytest.mark.unit
    def test_join_path(self):
        assert join_path("/app", "src/main.py") == "/app/src/main.py"
        assert join_path("/", "a") == "/a"

    @pytest.mark.unit
    def test_dirname_and_basename(self):
        assert dirname("/src/app.py") == "/src"
        assert dirname("/app.py") == "/"
        assert basename("/src/app.py") == "app.py"

    @pytest.mark.unit
    def test_is_under(self):
        assert is_under("/src/app.py", "/src")
        assert is_under("/src", "/src")
        assert not is_under("/srcs/app.py", "/src")
        assert is_under("/anything", "/")

    @pytest.mark.unit
    def test_relative_to(self):
        assert relative_to("/src/pkg/a.py", "/src") == "pkg/a.py"
        assert relative_to("/a.py", "/") == "a.py"
