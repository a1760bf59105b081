"""Unit tests for task execution (treewright.tasks.runner).

Tests cover:
- Executors resolved lazily through the registry and cached per name
- Sync, async and awaitable-returning factories
- Stop on first failure, unregistered tasks
- Cancellation between tasks
- The two-task dependency scenario end to end through scheduler and runner
"""

from __future__ import annotations

import pytest

from treewright.cancellation import CancellationToken, WorkflowCancelledError
from treewright.registry import FallbackRegistry, ModuleRegistry, SimpleRegistry
from treewright.tasks import (
    TaskConfiguration,
    TaskExecutionError,
    TaskExecutorContext,
    TaskExecutorFactory,
    TaskRunner,
    TaskScheduler,
    UnregisteredTaskError,
    register_executor,
)
from treewright.tree import MemoryFileStore


@pytest.fixture
def executor_context() -> TaskExecutorContext:
    return TaskExecutorContext(store=MemoryFileStore())


def _recording_registry(log: list, names=("a", "b")):
    registry = SimpleRegistry()
    for name in names:
        def create(name=name):
            async def execute(options, context):
                log.append((name, options))

            return execute

        register_executor(registry, TaskExecutorFactory(name, create))
    return registry


class TestTaskRunner:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_tasks_in_given_order(self, executor_context):
        log = []
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("b", {"n": 1}))
        scheduler.schedule(TaskConfiguration("a", {"n": 2}))
        runner = TaskRunner(_recording_registry(log))
        executed = await runner.run(scheduler.finalize(), executor_context)
        assert executed == [0, 1]
        assert runner.executed == [0, 1]
        assert log == [("b", {"n": 1}), ("a", {"n": 2})]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_factory_called_once_per_name(self, executor_context):
        created = []

        def create():
            created.append(1)
            return lambda options, context: None

        registry = SimpleRegistry()
        register_executor(registry, TaskExecutorFactory("x", create))
        scheduler = TaskScheduler()
        for _ in range(3):
            scheduler.schedule(TaskConfiguration("x"))
        await TaskRunner(registry).run(scheduler.finalize(), executor_context)
        assert created == [1]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_async_factory(self, executor_context):
        log = []

        async def create():
            async def execute(options, context):
                log.append(options)

            return execute

        registry = SimpleRegistry()
        register_executor(registry, TaskExecutorFactory("x", create))
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("x", "opts"))
        await TaskRunner(registry).run(scheduler.finalize(), executor_context)
        assert log == ["opts"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_failure_stops_the_run(self, executor_context):
        log = []
        registry = _recording_registry(log, names=("ok",))

        def create():
            async def execute(options, context):
                raise RuntimeError("exit 1")

            return execute

        register_executor(registry, TaskExecutorFactory("fails", create))
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("fails"))
        scheduler.schedule(TaskConfiguration("ok"))
        runner = TaskRunner(registry)
        with pytest.raises(TaskExecutionError) as exc_info:
            await runner.run(scheduler.finalize(), executor_context)
        assert exc_info.value.task_id == 0
        assert exc_info.value.task_name == "fails"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert log == []
        assert runner.executed == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unregistered_task(self, executor_context):
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("nobody"))
        with pytest.raises(UnregisteredTaskError) as exc_info:
            await TaskRunner(SimpleRegistry()).run(scheduler.finalize(), executor_context)
        assert exc_info.value.name == "nobody"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_name_through_module_registry(self, executor_context):
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("not a module"))
        runner = TaskRunner(FallbackRegistry([SimpleRegistry(), ModuleRegistry()]))
        with pytest.raises(UnregisteredTaskError):
            await runner.run(scheduler.finalize(), executor_context)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancellation_between_tasks(self, executor_context):
        token = CancellationToken()
        log = []

        def create():
            async def execute(options, context):
                log.append(options)
                token.cancel("enough")

            return execute

        registry = SimpleRegistry()
        register_executor(registry, TaskExecutorFactory("x", create))
        scheduler = TaskScheduler()
        scheduler.schedule(TaskConfiguration("x", 1))
        scheduler.schedule(TaskConfiguration("x", 2))
        runner = TaskRunner(registry, token)
        with pytest.raises(WorkflowCancelledError):
            await runner.run(scheduler.finalize(), executor_context)
        assert log == [1]
        assert runner.executed == [0]


class TestDependencyScenario:
    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize("register_task2_first", [False, True])
    async def test_dependency_runs_strictly_first(self, executor_context, register_task2_first):
        log = []
        names = ("task2", "task1") if register_task2_first else ("task1", "task2")
        registry = _recording_registry(log, names=names)

        scheduler = TaskScheduler()
        if register_task2_first:
            task2 = scheduler.schedule(TaskConfiguration("task2"))
            task1 = scheduler.schedule(TaskConfiguration("task1"))
            scheduler.tasks[task2].dependencies.add(task1)
        else:
            task1 = scheduler.schedule(TaskConfiguration("task1"))
            scheduler.schedule(TaskConfiguration("task2"), [task1])

        await TaskRunner(registry).run(scheduler.finalize(), executor_context)
        assert [name for name, _ in log] == ["task1", "task2"]
