"""treewright tasks -- post-commit scheduling and execution."""

from .builtin import (
    LintFixTask,
    PackageInstallTask,
    PackageLinkTask,
    RepositoryInitializerTask,
    RunSchematicTask,
    builtin_registry,
)
from .runner import (
    TaskExecutionError,
    TaskExecutor,
    TaskExecutorContext,
    TaskExecutorFactory,
    TaskRunner,
    UnregisteredTaskError,
    register_executor,
)
from .scheduler import (
    TaskConfiguration,
    TaskConfigurationGenerator,
    TaskCycleError,
    TaskInfo,
    TaskScheduler,
    UnknownTaskDependencyError,
)

__all__ = [
    # Scheduling
    "TaskConfiguration",
    "TaskConfigurationGenerator",
    "TaskInfo",
    "TaskScheduler",
    # Execution
    "TaskExecutor",
    "TaskExecutorContext",
    "TaskExecutorFactory",
    "TaskRunner",
    "register_executor",
    "builtin_registry",
    # Built-in tasks
    "PackageInstallTask",
    "PackageLinkTask",
    "RepositoryInitializerTask",
    "RunSchematicTask",
    "LintFixTask",
    # Errors
    "UnknownTaskDependencyError",
    "TaskCycleError",
    "UnregisteredTaskError",
    "TaskExecutionError",
]
