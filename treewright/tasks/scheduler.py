"""Post-commit task scheduling.

Tasks are registered while rules run and execute only after the tree has been
committed.  Each task gets an arena id (its creation index).  A task may only
depend on ids that already exist, which rules out cycles for everything
registered through :meth:`TaskScheduler.schedule`; :meth:`finalize` still
re-validates the graph so out-of-band edits are caught before anything runs.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownTaskDependencyError(Exception):
    """A dependency references a task id that does not exist (yet)."""

    def __init__(self, task_id: Optional[int], dependency: int) -> None:
        self.task_id = task_id
        self.dependency = dependency
        owner = "new task" if task_id is None else f"task {task_id}"
        super().__init__(f"Unknown task dependency {dependency} for {owner}.")


class TaskCycleError(Exception):
    """The dependency graph contains a cycle."""

    def __init__(self, task_ids: list[int]) -> None:
        self.task_ids = task_ids
        super().__init__(f"Task dependency cycle between tasks {task_ids}.")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaskConfiguration:
    """What to run: an executor name, its options, and extra dependency ids."""

    name: str
    options: Any = None
    dependencies: tuple[int, ...] = ()


@runtime_checkable
class TaskConfigurationGenerator(Protocol):
    def to_configuration(self) -> TaskConfiguration: ...


@dataclass
class TaskInfo:
    id: int
    configuration: TaskConfiguration
    dependencies: set[int] = field(default_factory=set)
    collection: Optional[str] = None
    schematic: Optional[str] = None

    @property
    def name(self) -> str:
        return self.configuration.name

    @property
    def priority(self) -> int:
        return self.id


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class TaskScheduler:
    """Collects tasks and orders them for execution."""

    def __init__(self) -> None:
        self._tasks: list[TaskInfo] = []

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> list[TaskInfo]:
        return list(self._tasks)

    def schedule(
        self,
        configuration: TaskConfiguration | TaskConfigurationGenerator,
        dependencies: Iterable[int] = (),
        *,
        collection: Optional[str] = None,
        schematic: Optional[str] = None,
    ) -> int:
        """Register a task and return its id.

        Raises:
            UnknownTaskDependencyError: If a dependency is not an existing id.
        """
        if not isinstance(configuration, TaskConfiguration):
            configuration = configuration.to_configuration()

        task_id = len(self._tasks)
        deps = set(configuration.dependencies)
        deps.update(dependencies)
        for dep in deps:
            if not isinstance(dep, int) or not 0 <= dep < task_id:
                raise UnknownTaskDependencyError(None, dep)

        self._tasks.append(
            TaskInfo(
                id=task_id,
                configuration=configuration,
                dependencies=deps,
                collection=collection,
                schematic=schematic,
            )
        )
        return task_id

    def add_dependency(self, task_id: int, dependency: int) -> None:
        """Make *task_id* wait for *dependency*, which must be an earlier task."""
        if not 0 <= task_id < len(self._tasks):
            raise UnknownTaskDependencyError(None, task_id)
        if not 0 <= dependency < task_id:
            raise UnknownTaskDependencyError(task_id, dependency)
        self._tasks[task_id].dependencies.add(dependency)

    def finalize(self) -> list[TaskInfo]:
        """Return the tasks in a stable topological order.

        Among tasks that are free to run, the earliest created goes first.

        Raises:
            UnknownTaskDependencyError: If a dependency id does not exist.
            TaskCycleError: If the graph is not acyclic.
        """
        by_id = {task.id: task for task in self._tasks}
        waiting: dict[int, int] = {}
        dependants: dict[int, list[int]] = {task_id: [] for task_id in by_id}
        for task in self._tasks:
            for dep in task.dependencies:
                if dep not in by_id:
                    raise UnknownTaskDependencyError(task.id, dep)
                dependants[dep].append(task.id)
            waiting[task.id] = len(task.dependencies)

        ready = [task_id for task_id, count in waiting.items() if count == 0]
        heapq.heapify(ready)
        order: list[TaskInfo] = []
        while ready:
            task_id = heapq.heappop(ready)
            order.append(by_id[task_id])
            for dependant in dependants[task_id]:
                waiting[dependant] -= 1
                if waiting[dependant] == 0:
                    heapq.heappush(ready, dependant)

        if len(order) != len(self._tasks):
            placed = {task.id for task in order}
            raise TaskCycleError(sorted(set(by_id) - placed))
        return order
