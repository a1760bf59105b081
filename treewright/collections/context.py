"""Context handed to every rule of a running schematic."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from treewright.cancellation import CancellationToken
from treewright.tasks.scheduler import TaskConfiguration, TaskConfigurationGenerator, TaskScheduler
from treewright.tree import MergeStrategy

if TYPE_CHECKING:
    from .engine import Schematic, SchematicEngine


@dataclass
class SchematicContext:
    """Per-schematic state shared by the rules of one invocation.

    Nested schematics get their own context whose ``parent`` points here;
    they share the scheduler and cancellation token.
    """

    engine: SchematicEngine
    schematic: Schematic
    options: Any
    scheduler: TaskScheduler
    cancellation: CancellationToken
    logger: logging.Logger
    strategy: MergeStrategy = MergeStrategy.DEFAULT
    debug: bool = False
    parent: Optional["SchematicContext"] = None

    @property
    def collection(self) -> str:
        return self.schematic.collection.name

    def add_task(
        self,
        task: TaskConfiguration | TaskConfigurationGenerator,
        dependencies: Iterable[int] = (),
    ) -> int:
        """Schedule *task* to run after commit and return its id."""
        return self.scheduler.schedule(
            task,
            dependencies,
            collection=self.collection,
            schematic=self.schematic.name,
        )
