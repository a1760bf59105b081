"""Task configuration generators for the built-in executors."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from ..scheduler import TaskConfiguration
from .options import (
    LINT_FIX_TASK,
    PACKAGE_MANAGER_TASK,
    REPOSITORY_INIT_TASK,
    RUN_SCHEMATIC_TASK,
    CommitOptions,
    LintFixTaskOptions,
    PackageManagerTaskOptions,
    RepositoryInitializerTaskOptions,
    RunSchematicTaskOptions,
)


class PackageInstallTask:
    """Install a project's dependencies, or one package when *package_name* is set."""

    def __init__(
        self,
        working_directory: Optional[str] = None,
        package_name: Optional[str] = None,
        package_manager: Optional[str] = None,
        *,
        quiet: bool = True,
        hide_output: bool = True,
        allow_scripts: Optional[bool] = None,
    ) -> None:
        self.working_directory = working_directory
        self.package_name = package_name
        self.package_manager = package_manager
        self.quiet = quiet
        self.hide_output = hide_output
        self.allow_scripts = allow_scripts

    def to_configuration(self) -> TaskConfiguration:
        return TaskConfiguration(
            name=PACKAGE_MANAGER_TASK,
            options=PackageManagerTaskOptions(
                command="install",
                working_directory=self.working_directory,
                package_name=self.package_name,
                package_manager=self.package_manager,
                quiet=self.quiet,
                hide_output=self.hide_output,
                allow_scripts=self.allow_scripts,
            ),
        )


class PackageLinkTask:
    """Link a local package into the environment (editable install for pip)."""

    def __init__(self, package_name: str, working_directory: Optional[str] = None) -> None:
        self.package_name = package_name
        self.working_directory = working_directory

    def to_configuration(self) -> TaskConfiguration:
        return TaskConfiguration(
            name=PACKAGE_MANAGER_TASK,
            options=PackageManagerTaskOptions(
                command="link",
                package_name=self.package_name,
                working_directory=self.working_directory,
            ),
        )


class RepositoryInitializerTask:
    """``git init`` the directory and, when commit options are given, commit it."""

    def __init__(
        self,
        working_directory: Optional[str] = None,
        commit_options: Optional[CommitOptions | dict[str, Any]] = None,
    ) -> None:
        self.working_directory = working_directory
        self.commit_options = commit_options

    def to_configuration(self) -> TaskConfiguration:
        commit = self.commit_options is not None
        if isinstance(self.commit_options, CommitOptions):
            commit_options = self.commit_options
        else:
            commit_options = CommitOptions.model_validate(self.commit_options or {})
        return TaskConfiguration(
            name=REPOSITORY_INIT_TASK,
            options=RepositoryInitializerTaskOptions(
                working_directory=self.working_directory,
                commit=commit,
                commit_options=commit_options,
            ),
        )


class RunSchematicTask:
    """Run another schematic after this one has been committed.

    ``RunSchematicTask("module", {...})`` uses the calling schematic's
    collection; ``RunSchematicTask("pkg.collection", "module", {...})`` names
    one explicitly.
    """

    def __init__(self, collection_or_name: str, name_or_options: Any = None, options: Any = None) -> None:
        if isinstance(name_or_options, str):
            self.collection: Optional[str] = collection_or_name
            self.name = name_or_options
            self.options = dict(options or {})
        else:
            self.collection = None
            self.name = collection_or_name
            self.options = dict(name_or_options or {})

    def to_configuration(self) -> TaskConfiguration:
        return TaskConfiguration(
            name=RUN_SCHEMATIC_TASK,
            options=RunSchematicTaskOptions(
                collection=self.collection,
                name=self.name,
                options=self.options,
            ),
        )


class LintFixTask:
    """Run a lint fixer over generated files (``ruff check --fix`` by default)."""

    def __init__(
        self,
        files: Iterable[str] = (),
        working_directory: Optional[str] = None,
        command: Optional[list[str]] = None,
        *,
        ignore_errors: bool = False,
    ) -> None:
        self.files = list(files)
        self.working_directory = working_directory
        self.command = command
        self.ignore_errors = ignore_errors

    def to_configuration(self) -> TaskConfiguration:
        options = LintFixTaskOptions(
            files=self.files,
            working_directory=self.working_directory,
            ignore_errors=self.ignore_errors,
        )
        if self.command:
            options.command = list(self.command)
        return TaskConfiguration(name=LINT_FIX_TASK, options=options)
