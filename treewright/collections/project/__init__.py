"""Built-in ``treewright.collections.project`` collection."""

from pathlib import Path

from ..description import CollectionDescription, SchematicDescription
from . import module, new_project

_HERE = Path(__file__).parent

COLLECTION = CollectionDescription(
    name="treewright.collections.project",
    description="Python project generators",
    path=_HERE,
    schematics={
        "new-project": SchematicDescription(
            name="new-project",
            description="Create a new Python project with a src/ package and tests",
            factory=new_project.factory,
            options_model=new_project.NewProjectOptions,
            aliases=["new"],
            path=_HERE,
        ),
        "workspace": SchematicDescription(
            name="workspace",
            description="Project metadata files (pyproject.toml, README, .gitignore)",
            factory=new_project.workspace,
            options_model=new_project.WorkspaceOptions,
            private=True,
            path=_HERE,
        ),
        "package": SchematicDescription(
            name="package",
            description="Importable package under src/ plus a smoke test",
            factory=new_project.package,
            options_model=new_project.PackageOptions,
            private=True,
            path=_HERE,
        ),
        "module": SchematicDescription(
            name="module",
            description="Add a module and its test to an existing package",
            factory=module.factory,
            options_model=module.ModuleOptions,
            aliases=["m"],
            path=_HERE,
        ),
    },
)
