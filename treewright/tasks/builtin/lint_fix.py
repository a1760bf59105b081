"""Executor for lint-fix tasks."""

from __future__ import annotations

from typing import Any

from treewright.utils import print_warning

from ..runner import TaskExecutor, TaskExecutorContext
from .commands import CommandError, run_checked, working_directory
from .options import LintFixTaskOptions


async def execute(options: Any, context: TaskExecutorContext) -> None:
    opts = LintFixTaskOptions.model_validate(options)
    cwd = working_directory(context, opts.working_directory)
    cmd = [*opts.command, *(path.lstrip("/") for path in opts.files)]
    try:
        await run_checked(cmd, cwd=cwd)
    except CommandError as exc:
        if not opts.ignore_errors:
            raise
        print_warning(f"Lint fixer reported problems: {exc.stderr or exc}")


def create() -> TaskExecutor:
    return execute
