"""treewright workflow -- dry run, commit and post-commit tasks."""

from treewright.cancellation import CancellationToken, WorkflowCancelledError

from .events import DryRunEvent, EventChannel, LifeCycleEvent, Subscription
from .reporter import ConsoleReporter
from .state import ALLOWED_TRANSITIONS, IllegalTransitionError, WorkflowState, transition
from .workflow import (
    UnsuccessfulWorkflowExecution,
    Workflow,
    WorkflowExecutionContext,
    WorkflowResult,
)

__all__ = [
    "Workflow",
    "WorkflowResult",
    "WorkflowExecutionContext",
    "UnsuccessfulWorkflowExecution",
    # State
    "WorkflowState",
    "ALLOWED_TRANSITIONS",
    "IllegalTransitionError",
    "transition",
    # Events
    "DryRunEvent",
    "LifeCycleEvent",
    "EventChannel",
    "Subscription",
    "ConsoleReporter",
    # Cancellation
    "CancellationToken",
    "WorkflowCancelledError",
]
