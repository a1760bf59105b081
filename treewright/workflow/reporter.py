"""Rich console reporter for workflow events.

Dry-run events are queued and only printed once the phase that produced them
finishes without an error, so a failing run prints its errors and nothing
else.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.markup import escape

from treewright.utils import console as default_console

from .events import DryRunEvent, LifeCycleEvent, Subscription

if TYPE_CHECKING:
    from .workflow import Workflow

_ERROR_DESCRIPTIONS = {
    "already_exists": "already exists",
    "does_not_exist": "does not exist",
}


def _display(path: str) -> str:
    return escape(path.lstrip("/"))


class ConsoleReporter:
    """Prints CREATE/UPDATE/DELETE/RENAME lines for a workflow."""

    def __init__(self, console: Optional[Console] = None, *, dry_run: bool = False) -> None:
        self.console = console or default_console
        self.dry_run = dry_run
        self.nothing_done = True
        self.error = False
        self._queue: list[str] = []
        self._subscriptions: list[Subscription] = []

    def attach(self, workflow: "Workflow") -> "ConsoleReporter":
        self.dry_run = workflow.dry_run
        self._subscriptions = [
            workflow.reporter.subscribe(self.on_event),
            workflow.lifecycle.subscribe(self.on_lifecycle),
        ]
        return self

    def detach(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_event(self, event: DryRunEvent) -> None:
        self.nothing_done = False
        if event.kind == "error":
            self.error = True
            description = _ERROR_DESCRIPTIONS.get(event.description or "", event.description)
            self.console.print(f"[bold red]ERROR![/bold red] {_display(event.path)} {description}.")
        elif event.kind == "create":
            self._queue.append(f"[green]CREATE[/green] {_display(event.path)} ({event.content_length} bytes)")
        elif event.kind == "update":
            self._queue.append(f"[cyan]UPDATE[/cyan] {_display(event.path)} ({event.content_length} bytes)")
        elif event.kind == "delete":
            self._queue.append(f"[yellow]DELETE[/yellow] {_display(event.path)}")
        elif event.kind == "rename":
            self._queue.append(
                f"[blue]RENAME[/blue] {_display(event.path)} => {_display(event.to or '')}"
            )

    def on_lifecycle(self, event: LifeCycleEvent) -> None:
        if event.kind in ("workflow-end", "post-tasks-start"):
            if not self.error:
                for line in self._queue:
                    self.console.print(line)
            self._queue = []
            self.error = False
        elif event.kind == "end":
            if self.nothing_done:
                self.console.print("Nothing to be done.")
            elif self.dry_run:
                self.console.print(
                    '\n[bold yellow]NOTE:[/bold yellow] The "dryRun" flag means no changes were made.'
                )
