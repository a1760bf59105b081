"""Executor for repository-init tasks."""

from __future__ import annotations

import shutil
from typing import Any

from treewright.utils import console, print_success, print_warning, run_command

from ..runner import TaskExecutor, TaskExecutorContext
from .commands import run_checked, working_directory
from .options import RepositoryInitializerTaskOptions


async def execute(options: Any, context: TaskExecutorContext) -> None:
    opts = RepositoryInitializerTaskOptions.model_validate(options)
    cwd = working_directory(context, opts.working_directory)

    if shutil.which("git") is None:
        context.logger.info("Git is not installed; skipping repository initialization.")
        return

    returncode, _, _ = await run_command(["git", "rev-parse", "--is-inside-work-tree"], cwd=cwd)
    if returncode == 0:
        context.logger.info("Directory is already under version control; skipping git init.")
        return

    await run_checked(["git", "init"], cwd=cwd)
    if not opts.commit:
        print_success("Successfully initialized git.")
        return

    git = context.config.git
    name = opts.commit_options.name or git.author_name
    email = opts.commit_options.email or git.author_email
    message = opts.commit_options.message or git.commit_message
    env = {
        "GIT_AUTHOR_NAME": name,
        "GIT_COMMITTER_NAME": name,
        "GIT_AUTHOR_EMAIL": email,
        "GIT_COMMITTER_EMAIL": email,
    }

    await run_checked(["git", "add", "."], cwd=cwd)
    returncode, _, stderr = await run_command(["git", "commit", "-m", message], cwd=cwd, env=env)
    if returncode != 0:
        # The repository stays initialized; only the first commit is missing.
        print_warning("Initial commit failed; the repository was initialized without it.")
        console.print(stderr, markup=False)
        return
    print_success("Successfully initialized git.")


def create() -> TaskExecutor:
    return execute
