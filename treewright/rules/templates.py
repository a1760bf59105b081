"""Jinja2 templating for tree files.

Template content is rendered with :class:`TemplateRenderer`; template paths
use ``__name__`` / ``__name@filter__`` placeholders, so a template source
file at ``/src/__name@snake_case__/__init__.py.j2`` with ``name="My App"``
lands at ``/src/my_app/__init__.py``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any, Optional

from jinja2 import Environment, TemplateError, select_autoescape
from pydantic import BaseModel

from treewright.tree import FileEntry

from .base import FileOperator, Rule, SchematicsException, for_each

TEMPLATE_SUFFIX = ".j2"

_PATH_PLACEHOLDER = re.compile(r"__(\w+?)(?:@(\w+))?__")


class TemplateRenderError(SchematicsException):
    """A template failed to render."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Template {path!r}: {message}")


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders inline Jinja2 templates with the case-conversion filters.

    Filters available inside templates and in path placeholders:
    ``slugify``, ``pascal_case``, ``snake_case``, ``camel_case`` and
    ``dasherize``.
    """

    def __init__(self, filters: Optional[Mapping[str, Callable[[str], str]]] = None) -> None:
        self.env = Environment(
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter
        self.env.filters["dasherize"] = _dasherize_filter
        if filters:
            self.env.filters.update(filters)

    def render_string(self, template_string: str, context: Mapping[str, Any]) -> str:
        """Render an inline template string with the provided context."""
        template = self.env.from_string(template_string)
        return template.render(**context)

    def apply_filter(self, name: str, value: str) -> str:
        """Apply the registered filter *name* to *value*."""
        try:
            func = self.env.filters[name]
        except KeyError:
            raise SchematicsException(f"Unknown template filter {name!r}.") from None
        return func(value)

    def render_path(self, path: str, context: Mapping[str, Any]) -> str:
        """Replace ``__name[@filter]__`` placeholders in *path*.

        Placeholders naming no option (``__init__``, ``__main__``) are kept.
        """

        def _replace(match: re.Match[str]) -> str:
            key, filter_name = match.group(1), match.group(2)
            if key not in context:
                return match.group(0)
            value = str(context[key])
            return self.apply_filter(filter_name, value) if filter_name else value

        return _PATH_PLACEHOLDER.sub(_replace, path)


def _as_context(options: Any) -> dict[str, Any]:
    if isinstance(options, BaseModel):
        return options.model_dump()
    return dict(options or {})


# ---------------------------------------------------------------------------
# File operators & rules
# ---------------------------------------------------------------------------


def content_template(options: Any, renderer: Optional[TemplateRenderer] = None) -> FileOperator:
    """A file operator rendering each file's content as a template."""
    renderer = renderer or _default_renderer
    context = _as_context(options)

    def _content(entry: FileEntry) -> FileEntry:
        try:
            rendered = renderer.render_string(entry.text, context)
        except (TemplateError, UnicodeDecodeError) as exc:
            raise TemplateRenderError(entry.path, str(exc)) from exc
        return FileEntry(entry.path, rendered.encode("utf-8"))

    return _content


def path_template(options: Any, renderer: Optional[TemplateRenderer] = None) -> FileOperator:
    """A file operator expanding ``__name[@filter]__`` placeholders in paths."""
    renderer = renderer or _default_renderer
    context = _as_context(options)

    def _path(entry: FileEntry) -> FileEntry:
        new_path = renderer.render_path(entry.path, context)
        if new_path == entry.path:
            return entry
        return FileEntry(new_path, entry.content)

    return _path


def apply_content_template(options: Any, renderer: Optional[TemplateRenderer] = None) -> Rule:
    return for_each(content_template(options, renderer))


def apply_path_template(options: Any, renderer: Optional[TemplateRenderer] = None) -> Rule:
    return for_each(path_template(options, renderer))


def apply_templates(options: Any, renderer: Optional[TemplateRenderer] = None) -> Rule:
    """Expand path placeholders everywhere and render ``*.j2`` files.

    Rendered files lose their ``.j2`` suffix; other files keep their
    content untouched.
    """
    to_path = path_template(options, renderer)
    to_content = content_template(options, renderer)

    def _operator(entry: FileEntry) -> FileEntry:
        entry = to_path(entry)
        if not entry.path.endswith(TEMPLATE_SUFFIX):
            return entry
        rendered = to_content(entry)
        return FileEntry(rendered.path[: -len(TEMPLATE_SUFFIX)], rendered.content)

    return for_each(_operator)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", _snake_case_filter(value))
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s_]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def _dasherize_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some_thing`` to ``some-thing``."""
    return _snake_case_filter(value).replace("_", "-")


_default_renderer = TemplateRenderer()
