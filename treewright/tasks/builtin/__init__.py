"""Built-in tasks.

The task classes are cheap to import; each executor module is imported only
when the first task of its kind is about to run.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable

from treewright.registry import SimpleRegistry

from ..runner import TaskExecutor, TaskExecutorFactory, register_executor
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
from .tasks import (
    LintFixTask,
    PackageInstallTask,
    PackageLinkTask,
    RepositoryInitializerTask,
    RunSchematicTask,
)


def _lazy(module: str) -> Callable[[], TaskExecutor]:
    def create() -> TaskExecutor:
        return importlib.import_module(f"{__name__}.{module}").create()

    return create


BUILTIN_EXECUTORS: tuple[TaskExecutorFactory, ...] = (
    TaskExecutorFactory(PACKAGE_MANAGER_TASK, _lazy("package_manager")),
    TaskExecutorFactory(REPOSITORY_INIT_TASK, _lazy("repo_init")),
    TaskExecutorFactory(RUN_SCHEMATIC_TASK, _lazy("run_schematic")),
    TaskExecutorFactory(LINT_FIX_TASK, _lazy("lint_fix")),
)


def builtin_registry() -> SimpleRegistry:
    """Return a new registry holding every built-in executor factory."""
    registry = SimpleRegistry()
    for factory in BUILTIN_EXECUTORS:
        register_executor(registry, factory)
    return registry


__all__ = [
    "BUILTIN_EXECUTORS",
    "builtin_registry",
    # Tasks
    "PackageInstallTask",
    "PackageLinkTask",
    "RepositoryInitializerTask",
    "RunSchematicTask",
    "LintFixTask",
    # Options
    "CommitOptions",
    "PackageManagerTaskOptions",
    "RepositoryInitializerTaskOptions",
    "RunSchematicTaskOptions",
    "LintFixTaskOptions",
    "PACKAGE_MANAGER_TASK",
    "REPOSITORY_INIT_TASK",
    "RUN_SCHEMATIC_TASK",
    "LINT_FIX_TASK",
]
