"""treewright configuration.

Centralised, typed configuration for workflow runs. All settings use Pydantic
v2 models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


class GitConfig(BaseModel):
    """Identity and defaults used by the repository-init task."""

    author_name: str = Field(default="treewright")
    author_email: str = Field(default="treewright@localhost")
    commit_message: str = Field(default="initial commit")


class Config(BaseModel):
    """Global treewright configuration.

    Holds every tuneable parameter used by a workflow run. Instances are
    typically created once by the CLI entry point (or a test) and passed to
    :class:`~treewright.workflow.Workflow`.
    """

    root: Path = Field(default=Path("."))
    dry_run: bool = Field(default=False, description="Report changes without committing them")
    force: bool = Field(default=False, description="Allow creating files that already exist")
    debug: bool = Field(default=False)
    package_manager: str = Field(default="pip")
    package_registry: Optional[str] = Field(
        default=None, description="Alternative package index passed to install tasks"
    )
    allow_scripts: bool = Field(default=False)
    default_collection: str = Field(default="treewright.collections.project")
    log_level: str = Field(default="INFO")
    git: GitConfig = Field(default_factory=GitConfig)

    # Per-schematic option defaults, keyed by "collection:schematic".
    schematic_defaults: dict[str, dict[str, Any]] = Field(default_factory=dict)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def config_path(self) -> Path:
        """Default location of the persisted configuration file."""
        return self.root / ".treewright.json"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<root>/.treewright.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or self.config_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            TREEWRIGHT_ROOT, TREEWRIGHT_DRY_RUN, TREEWRIGHT_FORCE,
            TREEWRIGHT_DEBUG, TREEWRIGHT_PACKAGE_MANAGER,
            TREEWRIGHT_PACKAGE_REGISTRY, TREEWRIGHT_DEFAULT_COLLECTION,
            TREEWRIGHT_LOG_LEVEL, TREEWRIGHT_GIT_AUTHOR_NAME,
            TREEWRIGHT_GIT_AUTHOR_EMAIL.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("TREEWRIGHT_ROOT"):
            kwargs["root"] = Path(os.environ["TREEWRIGHT_ROOT"])
        for flag in ("dry_run", "force", "debug"):
            raw = os.environ.get(f"TREEWRIGHT_{flag.upper()}")
            if raw is not None:
                kwargs[flag] = raw.strip().lower() in _TRUTHY
        if os.environ.get("TREEWRIGHT_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["TREEWRIGHT_PACKAGE_MANAGER"]
        if os.environ.get("TREEWRIGHT_PACKAGE_REGISTRY"):
            kwargs["package_registry"] = os.environ["TREEWRIGHT_PACKAGE_REGISTRY"]
        if os.environ.get("TREEWRIGHT_DEFAULT_COLLECTION"):
            kwargs["default_collection"] = os.environ["TREEWRIGHT_DEFAULT_COLLECTION"]
        if os.environ.get("TREEWRIGHT_LOG_LEVEL"):
            kwargs["log_level"] = os.environ["TREEWRIGHT_LOG_LEVEL"]

        git_kwargs: dict[str, Any] = {}
        if os.environ.get("TREEWRIGHT_GIT_AUTHOR_NAME"):
            git_kwargs["author_name"] = os.environ["TREEWRIGHT_GIT_AUTHOR_NAME"]
        if os.environ.get("TREEWRIGHT_GIT_AUTHOR_EMAIL"):
            git_kwargs["author_email"] = os.environ["TREEWRIGHT_GIT_AUTHOR_EMAIL"]

        return cls(git=GitConfig(**git_kwargs), **kwargs)

    def defaults_for(self, collection: str, schematic: str) -> dict[str, Any]:
        """Return configured option defaults for ``collection:schematic``."""
        return dict(self.schematic_defaults.get(f"{collection}:{schematic}", {}))
