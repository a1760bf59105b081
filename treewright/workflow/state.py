from __future__ import annotations

from enum import Enum


class WorkflowState(str, Enum):
    IDLE = "idle"
    DRY_RUN = "dry_run"
    COMMIT = "commit"
    DISCARDED = "discarded"
    TASKS_RUNNING = "tasks_running"
    DONE = "done"
    ERRORED = "errored"


ALLOWED_TRANSITIONS: dict[WorkflowState, set[WorkflowState]] = {
    WorkflowState.IDLE: {WorkflowState.DRY_RUN},
    WorkflowState.DRY_RUN: {WorkflowState.COMMIT, WorkflowState.DISCARDED, WorkflowState.ERRORED},
    WorkflowState.COMMIT: {WorkflowState.TASKS_RUNNING, WorkflowState.ERRORED},
    # A dry run still lists its tasks, it just never executes them.
    WorkflowState.DISCARDED: {WorkflowState.TASKS_RUNNING, WorkflowState.ERRORED},
    WorkflowState.TASKS_RUNNING: {WorkflowState.DONE, WorkflowState.ERRORED},
    WorkflowState.DONE: set(),
    WorkflowState.ERRORED: set(),
}


class IllegalTransitionError(ValueError):
    def __init__(self, current: WorkflowState, to: WorkflowState) -> None:
        self.current = current
        self.to = to
        super().__init__(f"Illegal transition: {current.value} -> {to.value}")


def transition(current: WorkflowState, to: WorkflowState) -> WorkflowState:
    if to not in ALLOWED_TRANSITIONS.get(current, set()):
        raise IllegalTransitionError(current, to)
    return to
