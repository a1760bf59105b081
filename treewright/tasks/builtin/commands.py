"""Subprocess helpers shared by the built-in executors."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from treewright.utils import run_command

from ..runner import TaskExecutorContext


class CommandError(Exception):
    """Raised when an executor's command exits with a non-zero code."""

    def __init__(self, message: str, command: str = "", stderr: str = "", returncode: int = 0) -> None:
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)


async def run_checked(
    cmd: list[str],
    cwd: str | Path | None = None,
    *,
    capture: bool = True,
    env: dict[str, str] | None = None,
    timeout: int = 600,
) -> str:
    """Run *cmd* and return its stdout.

    Raises:
        CommandError: If the command exits with a non-zero code or times out.
    """
    cmd_str = " ".join(cmd)
    returncode, stdout, stderr = await run_command(cmd, cwd=cwd, timeout=timeout, capture=capture, env=env)
    if returncode != 0:
        raise CommandError(
            f"Command failed (exit {returncode}): {cmd_str}" + (f"\n{stderr}" if stderr else ""),
            command=cmd_str,
            stderr=stderr,
            returncode=returncode,
        )
    return stdout


def working_directory(context: TaskExecutorContext, relative: Optional[str]) -> Path:
    """Resolve a task's working directory against the workflow root."""
    base = Path(context.root) if context.root is not None else Path.cwd()
    if not relative:
        return base
    return base / relative.lstrip("/")
