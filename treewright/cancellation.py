"""Cooperative cancellation shared by rules, commits and tasks."""

from __future__ import annotations


class WorkflowCancelledError(Exception):
    """Raised at a suspension point after the workflow was cancelled."""

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(f"Workflow cancelled: {reason}" if reason else "Workflow cancelled")


class CancellationToken:
    """A flag checked between steps; cancelling never interrupts a running step."""

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise WorkflowCancelledError(self._reason)
