"""Executor for run-schematic tasks."""

from __future__ import annotations

from typing import Any

from ..runner import TaskExecutor, TaskExecutorContext
from .options import RunSchematicTaskOptions


async def execute(options: Any, context: TaskExecutorContext) -> None:
    opts = RunSchematicTaskOptions.model_validate(options)
    workflow = context.workflow
    if workflow is None:
        raise RuntimeError("The run-schematic task needs a workflow to run in.")

    parent = workflow.context
    collection = opts.collection or (parent.collection if parent is not None else None)
    if collection is None:
        raise RuntimeError(f"No collection to run schematic {opts.name!r} from.")

    await workflow.execute(
        collection,
        opts.name,
        opts.options,
        allow_private=True,
        parent=parent,
    )


def create() -> TaskExecutor:
    return execute
