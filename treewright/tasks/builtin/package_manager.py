"""Executor for package install/link tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from treewright.utils import console, print_error, print_success

from ..runner import TaskExecutor, TaskExecutorContext
from .commands import CommandError, run_checked, working_directory
from .options import PackageManagerTaskOptions


class UnknownPackageManagerError(ValueError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown package manager {name!r}. Supported: {', '.join(sorted(PROFILES))}.")


@dataclass(frozen=True)
class PackageManagerProfile:
    executable: tuple[str, ...]
    install_all: tuple[str, ...]
    install_package: tuple[str, ...]
    link: tuple[str, ...]
    quiet: Optional[str] = None
    registry_flag: Optional[str] = None
    ignore_scripts: Optional[str] = None


PROFILES: dict[str, PackageManagerProfile] = {
    "pip": PackageManagerProfile(
        executable=("pip",),
        install_all=("install", "-e", "."),
        install_package=("install",),
        link=("install", "-e"),
        quiet="--quiet",
        registry_flag="--index-url",
    ),
    "uv": PackageManagerProfile(
        executable=("uv",),
        install_all=("sync",),
        install_package=("add",),
        link=("pip", "install", "-e"),
        quiet="--quiet",
        registry_flag="--index-url",
    ),
    "poetry": PackageManagerProfile(
        executable=("poetry",),
        install_all=("install",),
        install_package=("add",),
        link=("add", "--editable"),
        quiet="--quiet",
    ),
    "npm": PackageManagerProfile(
        executable=("npm",),
        install_all=("install",),
        install_package=("install",),
        link=("link",),
        quiet="--quiet",
        registry_flag="--registry",
        ignore_scripts="--ignore-scripts",
    ),
    "yarn": PackageManagerProfile(
        executable=("yarn",),
        install_all=("install",),
        install_package=("add",),
        link=("link",),
        quiet="--silent",
        registry_flag="--registry",
        ignore_scripts="--ignore-scripts",
    ),
    "pnpm": PackageManagerProfile(
        executable=("pnpm",),
        install_all=("install",),
        install_package=("install",),
        link=("link",),
        quiet="--silent",
        registry_flag="--registry",
        ignore_scripts="--ignore-scripts",
    ),
}


def build_command(
    options: PackageManagerTaskOptions,
    *,
    package_manager: str,
    registry: Optional[str] = None,
    allow_scripts: bool = False,
) -> list[str]:
    """Return the argv for a package-manager task."""
    profile = PROFILES.get(package_manager)
    if profile is None:
        raise UnknownPackageManagerError(package_manager)

    cmd = list(profile.executable)
    if options.command == "link":
        if not options.package_name:
            raise ValueError("A link task needs a package name.")
        cmd += [*profile.link, options.package_name]
    elif options.package_name:
        cmd += [*profile.install_package, options.package_name]
    else:
        cmd += list(profile.install_all)

    if options.quiet and profile.quiet:
        cmd.append(profile.quiet)
    if not allow_scripts and profile.ignore_scripts:
        cmd.append(profile.ignore_scripts)
    if registry and profile.registry_flag and options.command == "install":
        cmd += [profile.registry_flag, registry]
    return cmd


async def execute(options: Any, context: TaskExecutorContext) -> None:
    opts = PackageManagerTaskOptions.model_validate(options)
    manager = opts.package_manager or context.config.package_manager
    allow_scripts = opts.allow_scripts if opts.allow_scripts is not None else context.config.allow_scripts
    cmd = build_command(
        opts,
        package_manager=manager,
        registry=context.config.package_registry,
        allow_scripts=allow_scripts,
    )
    cwd = working_directory(context, opts.working_directory)

    verb = "Linking" if opts.command == "link" else "Installing"
    console.print(f"[cyan]{verb} packages ({manager})...[/cyan]")
    context.logger.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        await run_checked(cmd, cwd=cwd, capture=opts.hide_output)
    except CommandError as exc:
        if exc.stderr:
            console.print(exc.stderr, markup=False)
        print_error(f"Package {opts.command} failed, see above.")
        raise
    print_success("Packages installed successfully." if opts.command == "install" else "Package linked successfully.")


def create() -> TaskExecutor:
    return execute
