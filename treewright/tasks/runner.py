"""Task execution.

Executors are looked up by task name in a handler registry.  The registry
holds *factories*; a factory is only called the first time a task with that
name is about to run, and the executor it returns is reused for later tasks
of the same name.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from treewright.cancellation import CancellationToken, WorkflowCancelledError
from treewright.config import Config
from treewright.registry import InvalidHandlerNameError, Registry, SimpleRegistry
from treewright.tree import FileStore

from .scheduler import TaskInfo

TaskExecutor = Callable[[Any, "TaskExecutorContext"], Awaitable[Any]]

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnregisteredTaskError(LookupError):
    """No executor is registered for a task name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unregistered task {name!r}.")


class TaskExecutionError(Exception):
    """A task executor failed; later tasks were not started."""

    def __init__(self, task: TaskInfo, cause: BaseException) -> None:
        self.task_id = task.id
        self.task_name = task.name
        self.cause = cause
        super().__init__(f"Task {task.id} ({task.name}) failed: {cause}")


# ---------------------------------------------------------------------------
# Executor plumbing
# ---------------------------------------------------------------------------


@dataclass
class TaskExecutorContext:
    """What an executor can see: the committed store and its surroundings."""

    store: FileStore
    root: Optional[Path] = None
    workflow: Any = None
    config: Config = field(default_factory=Config)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("treewright.tasks"))


@dataclass(frozen=True)
class TaskExecutorFactory:
    """A named, lazily called executor factory."""

    name: str
    create: Callable[[], TaskExecutor | Awaitable[TaskExecutor]]


def register_executor(registry: SimpleRegistry, factory: TaskExecutorFactory) -> None:
    registry.register(factory.name, factory.create)


class TaskRunner:
    """Runs finalized tasks one after another."""

    def __init__(
        self,
        registry: Registry,
        cancellation: Optional[CancellationToken] = None,
    ) -> None:
        self.registry = registry
        self.cancellation = cancellation or CancellationToken()
        self._executors: dict[str, TaskExecutor] = {}
        self.executed: list[int] = []

    async def _executor(self, name: str) -> TaskExecutor:
        if name in self._executors:
            return self._executors[name]
        try:
            factory = self.registry.get(name)
        except (InvalidHandlerNameError, LookupError) as exc:
            raise UnregisteredTaskError(name) from exc
        if factory is None:
            raise UnregisteredTaskError(name)
        executor = factory()
        if inspect.isawaitable(executor):
            executor = await executor
        self._executors[name] = executor
        return executor

    async def run(self, tasks: Iterable[TaskInfo], context: TaskExecutorContext) -> list[int]:
        """Run *tasks* in the given order and return the ids that completed.

        Raises:
            UnregisteredTaskError: If a task's executor cannot be resolved.
            TaskExecutionError: On the first executor failure.
            WorkflowCancelledError: If cancelled between tasks.
        """
        for task in tasks:
            self.cancellation.raise_if_cancelled()
            executor = await self._executor(task.name)
            context.logger.debug("Running task %d (%s)", task.id, task.name)
            try:
                result = executor(task.configuration.options, context)
                if inspect.isawaitable(result):
                    await result
            except WorkflowCancelledError:
                raise
            except Exception as exc:
                raise TaskExecutionError(task, exc) from exc
            self.executed.append(task.id)
        return list(self.executed)
