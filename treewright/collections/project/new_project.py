"""``new-project``: a Python project skeleton plus install and git tasks.

The project is assembled on an empty tree from the private ``workspace`` and
``package`` schematics, moved under its directory, and merged into the host
tree.  Post-commit, dependencies are installed, an optional local package is
linked, and the directory becomes a git repository once installation is done.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field

from treewright.rules import (
    Rule,
    apply,
    apply_templates,
    chain,
    empty,
    merge_with,
    move,
    noop,
    schematic,
    url,
)
from treewright.rules.templates import TemplateRenderer
from treewright.tasks import (
    PackageInstallTask,
    PackageLinkTask,
    RepositoryInitializerTask,
)
from treewright.tasks.builtin import CommitOptions
from treewright.tree import Tree
from treewright.utils import sanitize_name

if TYPE_CHECKING:
    from treewright.collections.context import SchematicContext

_renderer = TemplateRenderer()


class WorkspaceOptions(BaseModel):
    name: str
    description: str = ""
    version: str = "0.1.0"
    python_version: str = "3.10"


class PackageOptions(WorkspaceOptions):
    package_name: Optional[str] = None


class NewProjectOptions(PackageOptions):
    directory: Optional[str] = None
    minimal: bool = Field(default=False, description="Only generate the workspace files")
    skip_install: bool = False
    skip_git: bool = False
    commit: bool = True
    commit_options: CommitOptions = Field(default_factory=CommitOptions)
    package_manager: Optional[str] = None
    link: Optional[str] = Field(default=None, description="Local package to link after install")


def _template_options(options: WorkspaceOptions) -> dict[str, Any]:
    values = options.model_dump()
    values["package_name"] = values.get("package_name") or _renderer.apply_filter("snake_case", options.name)
    values["dot"] = "."
    return values


def workspace(options: WorkspaceOptions) -> Rule:
    return merge_with(apply(url("./files/workspace"), [apply_templates(_template_options(options))]))


def package(options: PackageOptions) -> Rule:
    return merge_with(apply(url("./files/package"), [apply_templates(_template_options(options))]))


def _schedule_tasks(options: NewProjectOptions, directory: str) -> Rule:
    def _tasks(tree: Tree, context: SchematicContext) -> None:
        install_task: Optional[int] = None
        if not options.skip_install:
            install_task = context.add_task(
                PackageInstallTask(
                    working_directory=directory,
                    package_manager=options.package_manager,
                )
            )
            if options.link:
                context.add_task(
                    PackageLinkTask(options.link, working_directory=directory),
                    [install_task],
                )
        if not options.skip_git:
            context.add_task(
                RepositoryInitializerTask(
                    directory,
                    options.commit_options if options.commit else None,
                ),
                [install_task] if install_task is not None else [],
            )

    return _tasks


def factory(options: NewProjectOptions) -> Rule:
    directory = options.directory or sanitize_name(options.name)
    shared = options.model_dump(include=set(PackageOptions.model_fields))
    return chain([
        merge_with(
            apply(empty(), [
                schematic("workspace", shared),
                schematic("package", shared) if not options.minimal else noop(),
                move(directory),
            ])
        ),
        _schedule_tasks(options, directory),
    ])
