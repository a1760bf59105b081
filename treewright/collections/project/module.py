"""``module``: add a module (and its test) to an existing package."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

from treewright.rules import (
    Rule,
    SchematicsException,
    apply,
    apply_templates,
    chain,
    filter_files,
    for_each,
    merge_with,
    url,
)
from treewright.rules.templates import TemplateRenderer
from treewright.tree import FileEntry, Tree, normalize_path

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext

_renderer = TemplateRenderer()

_IMPORT_LINE = re.compile(rb"^(?:from|import)\s.*$", re.MULTILINE)


def _exports(content: bytes, module_name: str) -> bool:
    pattern = rb"^from \. import " + re.escape(module_name.encode("utf-8")) + rb"[ \t]*\r?$"
    return re.search(pattern, content, re.MULTILINE) is not None


class ModuleOptions(BaseModel):
    name: str
    package: str
    description: str = ""
    with_test: bool = True
    export: bool = True
    tests_directory: str = "/tests"


def _place(package_dir: str, tests_dir: str, module_name: str):
    targets = {
        "/module.py": f"{package_dir}/{module_name}.py",
        "/test_module.py": f"{tests_dir}/test_{module_name}.py",
    }

    def _operator(entry: FileEntry) -> Optional[FileEntry]:
        target = targets.get(entry.path)
        if target is None:
            return entry
        return FileEntry(target, entry.content)

    return _operator


def _export(init_path: str, module_name: str) -> Rule:
    """Import the new module from the package ``__init__.py``."""

    def _edit(tree: Tree, context: SchematicContext) -> None:
        if not tree.exists(init_path):
            raise SchematicsException(f"Package {init_path!r} not found; is the package path right?")
        line = f"from . import {module_name}\n".encode("utf-8")
        recorder = tree.begin_update(init_path)
        content = recorder.original
        if _exports(content, module_name):
            return
        imports = list(_IMPORT_LINE.finditer(content))
        if imports:
            end = imports[-1].end()
            # Insert after the newline closing the last import line.
            if end < len(content):
                recorder.insert_right(end + 1, line)
            else:
                recorder.insert_right(end, b"\n" + line)
        elif content and not content.endswith(b"\n"):
            recorder.insert_right(len(content), b"\n" + line)
        else:
            recorder.insert_right(len(content), line)
        tree.commit_update(recorder)
        context.logger.debug("Exported %s from %s", module_name, init_path)

    return _edit


def factory(options: ModuleOptions) -> Rule:
    module_name = _renderer.apply_filter("snake_case", options.name)
    package_dir = normalize_path(options.package)
    tests_dir = normalize_path(options.tests_directory)
    package_name = package_dir.rsplit("/", 1)[-1]
    template_options = {
        **options.model_dump(),
        "module_name": module_name,
        "package_name": package_name,
    }

    rules = [
        merge_with(
            apply(url("./files/module"), [
                filter_files(lambda path, entry: options.with_test or not path.startswith("/test_")),
                apply_templates(template_options),
                for_each(_place(package_dir, tests_dir, module_name)),
            ])
        ),
    ]
    if options.export:
        rules.append(_export(f"{package_dir}/__init__.py", module_name))
    return chain(rules)
