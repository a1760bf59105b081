"""Names and option models of the built-in tasks."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

PACKAGE_MANAGER_TASK = "package-manager"
REPOSITORY_INIT_TASK = "repo-init"
RUN_SCHEMATIC_TASK = "run-schematic"
LINT_FIX_TASK = "lint-fix"


class PackageManagerTaskOptions(BaseModel):
    command: Literal["install", "link"] = "install"
    working_directory: Optional[str] = None
    package_name: Optional[str] = None
    package_manager: Optional[str] = None
    quiet: bool = True
    hide_output: bool = True
    allow_scripts: Optional[bool] = None


class CommitOptions(BaseModel):
    message: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class RepositoryInitializerTaskOptions(BaseModel):
    working_directory: Optional[str] = None
    commit: bool = False
    commit_options: CommitOptions = Field(default_factory=CommitOptions)


class RunSchematicTaskOptions(BaseModel):
    collection: Optional[str] = None
    name: str
    options: dict[str, Any] = Field(default_factory=dict)


class LintFixTaskOptions(BaseModel):
    files: list[str] = Field(default_factory=list)
    working_directory: Optional[str] = None
    command: list[str] = Field(default_factory=lambda: ["ruff", "check", "--fix"])
    ignore_errors: bool = False
