"""Workflow engine.

Runs one schematic against a file store in phases::

    IDLE -> DRY_RUN -> COMMIT    -> TASKS_RUNNING -> DONE
                    -> DISCARDED -> TASKS_RUNNING -> DONE   (dry run)
    DRY_RUN / COMMIT / TASKS_RUNNING -> ERRORED

DRY_RUN
    Applies the rule to a fresh :class:`~treewright.tree.Tree` over the store,
    validates every effective action against the store and emits one
    :class:`DryRunEvent` per action on :attr:`Workflow.reporter`.  Nothing is
    written.  Any ``error`` event fails the workflow.
COMMIT (skipped in dry-run mode)
    Applies the effective actions in order, one store call each.  The first
    failing call stops the commit; actions already applied stay applied.
TASKS_RUNNING
    Runs the scheduled tasks in dependency order.  In dry-run mode tasks are
    listed in the result but never executed.

Lifecycle events on :attr:`Workflow.lifecycle` mark the phase boundaries so
reporters can hold back output until a phase finished without errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from treewright.cancellation import CancellationToken, WorkflowCancelledError
from treewright.collections import Schematic, SchematicEngine, default_resolver
from treewright.config import Config
from treewright.registry import FallbackRegistry, ModuleRegistry, Registry
from treewright.tasks import (
    TaskExecutorContext,
    TaskInfo,
    TaskRunner,
    TaskScheduler,
    builtin_registry,
)
from treewright.tree import (
    Action,
    CreateAction,
    DeleteAction,
    FileStore,
    FileSystemStore,
    OverwriteAction,
    RenameAction,
    Tree,
)

from .events import DryRunEvent, EventChannel, LifeCycleEvent
from .state import WorkflowState, transition

logger = logging.getLogger("treewright.workflow")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnsuccessfulWorkflowExecution(Exception):
    """The workflow failed; nothing after the failing step was applied.

    ``cause`` is ``None`` when the dry run reported errors (they were already
    emitted as events), otherwise the exception that stopped the workflow.
    """

    def __init__(
        self,
        phase: WorkflowState,
        cause: Optional[BaseException] = None,
        events: Optional[list[DryRunEvent]] = None,
    ) -> None:
        self.phase = phase
        self.cause = cause
        self.events = events or []
        self.result: Optional[WorkflowResult] = None
        if cause is None:
            message = "The schematic workflow failed. See above."
        else:
            message = f"The schematic workflow failed during {phase.value}: {cause}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class WorkflowExecutionContext:
    collection: str
    schematic: str
    options: Any
    debug: bool
    dry_run: bool
    tree: Optional[Tree] = None
    tasks: list[TaskInfo] = field(default_factory=list)
    parent: Optional["WorkflowExecutionContext"] = None


@dataclass
class WorkflowResult:
    state: WorkflowState
    events: list[DryRunEvent] = field(default_factory=list)
    tasks: list[TaskInfo] = field(default_factory=list)
    executed_tasks: list[int] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def nothing_done(self) -> bool:
        return not self.events

    @property
    def success(self) -> bool:
        return self.state == WorkflowState.DONE


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class Workflow:
    """Drives schematic executions against one file store.

    Args:
        store: Store read during the dry run and written on commit.  Defaults
            to a :class:`FileSystemStore` rooted at ``config.root``.
        engine: Schematic engine.  When omitted one is built whose options
            transform applies ``config.schematic_defaults``.
        config: Global configuration.
        dry_run: Overrides ``config.dry_run``.
        force: Overrides ``config.force``.
        registry: Task executor registry.  Defaults to the built-in executors
            followed by module-path resolution.
        cancel_on_unsubscribe: Cancel the workflow when the last reporter
            subscriber unsubscribes.
    """

    def __init__(
        self,
        store: Optional[FileStore] = None,
        *,
        engine: Optional[SchematicEngine] = None,
        config: Optional[Config] = None,
        dry_run: Optional[bool] = None,
        force: Optional[bool] = None,
        registry: Optional[Registry] = None,
        cancel_on_unsubscribe: bool = False,
    ) -> None:
        self.config = config or Config()
        self.store: FileStore = store if store is not None else FileSystemStore(self.config.root)
        self.dry_run = self.config.dry_run if dry_run is None else dry_run
        self.force = self.config.force if force is None else force
        if engine is None:
            engine = SchematicEngine(default_resolver([self.config.root]))
            engine.register_options_transform(self._apply_config_defaults)
        self.engine = engine
        self.registry = registry or FallbackRegistry([builtin_registry(), ModuleRegistry()])
        self.cancellation = CancellationToken()

        on_drained = self._on_reporter_drained if cancel_on_unsubscribe else None
        self.reporter: EventChannel[DryRunEvent] = EventChannel(on_drained=on_drained)
        self.lifecycle: EventChannel[LifeCycleEvent] = EventChannel()
        self.state = WorkflowState.IDLE
        self._contexts: list[WorkflowExecutionContext] = []

    @property
    def context(self) -> Optional[WorkflowExecutionContext]:
        """The innermost running execution, if any."""
        return self._contexts[-1] if self._contexts else None

    @property
    def root(self) -> Path:
        root = getattr(self.store, "root", None)
        return Path(root) if root is not None else self.config.root

    def cancel(self, reason: str = "") -> None:
        """Stop rule and task execution at the next suspension point."""
        self.cancellation.cancel(reason)

    def _on_reporter_drained(self) -> None:
        self.cancel("reporter unsubscribed")

    def _apply_config_defaults(self, schematic: Schematic, options: dict[str, Any]) -> dict[str, Any]:
        return {**self.config.defaults_for(schematic.collection.name, schematic.name), **options}

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        collection: str,
        schematic: str,
        options: Optional[dict[str, Any]] = None,
        *,
        debug: bool = False,
        allow_private: bool = False,
        parent: Optional[WorkflowExecutionContext] = None,
    ) -> WorkflowResult:
        """Run ``collection:schematic`` with *options*.

        Raises:
            UnsuccessfulWorkflowExecution: If the dry run reported errors, or
                a rule, the commit or a task failed.
            WorkflowCancelledError: If the workflow was cancelled.
        """
        is_root = not self._contexts
        context = WorkflowExecutionContext(
            collection=collection,
            schematic=schematic,
            options=options or {},
            debug=debug,
            dry_run=self.dry_run,
            parent=parent if parent is not None else self.context,
        )
        self._contexts.append(context)
        state = WorkflowState.IDLE
        events: list[DryRunEvent] = []
        runner: Optional[TaskRunner] = None

        if is_root:
            self.lifecycle.emit(LifeCycleEvent("start"))
        try:
            # -- DRY_RUN ------------------------------------------------
            state = self._enter(state, WorkflowState.DRY_RUN, is_root)
            scheduler = TaskScheduler()
            target = self.engine.create_schematic(collection, schematic, allow_private=allow_private)
            tree = await target.call(
                context.options,
                Tree(self.store),
                scheduler=scheduler,
                cancellation=self.cancellation,
                debug=debug,
            )
            context.tree = tree
            actions = tree.actions
            events = self._validate(actions)
            for event in events:
                self.reporter.emit(event)
            self.lifecycle.emit(LifeCycleEvent("workflow-end"))
            if any(event.kind == "error" for event in events):
                raise UnsuccessfulWorkflowExecution(state, events=events)
            context.tasks = scheduler.finalize()

            # -- COMMIT / DISCARDED -------------------------------------
            if self.dry_run:
                state = self._enter(state, WorkflowState.DISCARDED, is_root)
            else:
                state = self._enter(state, WorkflowState.COMMIT, is_root)
                await self._commit(actions)

            # -- TASKS_RUNNING ------------------------------------------
            state = self._enter(state, WorkflowState.TASKS_RUNNING, is_root)
            if not self.dry_run:
                self.lifecycle.emit(LifeCycleEvent("post-tasks-start"))
                runner = TaskRunner(self.registry, self.cancellation)
                await runner.run(
                    context.tasks,
                    TaskExecutorContext(
                        store=self.store,
                        root=self.root,
                        workflow=self,
                        config=self.config,
                        logger=logging.getLogger("treewright.tasks"),
                    ),
                )
                self.lifecycle.emit(LifeCycleEvent("post-tasks-end"))

            state = self._enter(state, WorkflowState.DONE, is_root)
            return WorkflowResult(
                state=state,
                events=events,
                tasks=context.tasks,
                executed_tasks=runner.executed if runner is not None else [],
            )

        except Exception as exc:
            failed_in = state
            state = self._enter(state, WorkflowState.ERRORED, is_root)
            result = WorkflowResult(
                state=state,
                events=events,
                tasks=context.tasks,
                executed_tasks=runner.executed if runner is not None else [],
                error=exc,
            )
            if isinstance(exc, (UnsuccessfulWorkflowExecution, WorkflowCancelledError)):
                exc.result = result
                raise
            logger.debug("Workflow failed in %s", failed_in.value, exc_info=True)
            error = UnsuccessfulWorkflowExecution(failed_in, cause=exc, events=events)
            error.result = result
            raise error from exc
        finally:
            self._contexts.pop()
            if is_root:
                self.lifecycle.emit(LifeCycleEvent("end"))

    def _enter(self, current: WorkflowState, to: WorkflowState, is_root: bool) -> WorkflowState:
        state = transition(current, to)
        if is_root:
            self.state = state
        return state

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _validate(self, actions: list[Action]) -> list[DryRunEvent]:
        """Turn effective actions into reporter events, checking them against the store.

        Existence is tracked across the action list, so an action sees the
        effect of every action before it.
        """
        overlay: dict[str, bool] = {}

        def exists(path: str) -> bool:
            if path in overlay:
                return overlay[path]
            return self.store.exists(path)

        events: list[DryRunEvent] = []
        for action in actions:
            if isinstance(action, CreateAction):
                if exists(action.path) and not self.force:
                    events.append(DryRunEvent("error", action.path, description="already_exists"))
                elif exists(action.path):
                    events.append(DryRunEvent("update", action.path, content=action.content))
                else:
                    events.append(DryRunEvent("create", action.path, content=action.content))
                overlay[action.path] = True
            elif isinstance(action, OverwriteAction):
                if not exists(action.path):
                    events.append(DryRunEvent("error", action.path, description="does_not_exist"))
                else:
                    events.append(DryRunEvent("update", action.path, content=action.content))
            elif isinstance(action, DeleteAction):
                if not exists(action.path):
                    events.append(DryRunEvent("error", action.path, description="does_not_exist"))
                else:
                    events.append(DryRunEvent("delete", action.path))
                overlay[action.path] = False
            elif isinstance(action, RenameAction):
                if not exists(action.path):
                    events.append(DryRunEvent("error", action.path, description="does_not_exist"))
                elif exists(action.to) and not self.force:
                    events.append(DryRunEvent("error", action.to, description="already_exists"))
                else:
                    events.append(DryRunEvent("rename", action.path, to=action.to))
                overlay[action.path] = False
                overlay[action.to] = True
        return events

    async def _commit(self, actions: list[Action]) -> None:
        """Apply *actions* to the store, one call per action, in order."""
        for action in actions:
            self.cancellation.raise_if_cancelled()
            if isinstance(action, (CreateAction, OverwriteAction)):
                self.store.write(action.path, action.content)
            elif isinstance(action, DeleteAction):
                self.store.delete(action.path)
            elif isinstance(action, RenameAction):
                self.store.rename(action.path, action.to)
