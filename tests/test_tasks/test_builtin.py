"""Unit tests for the built-in tasks (treewright.tasks.builtin).

Tests cover:
- Task configuration generators
- Package-manager command building per profile
- Executors with mocked subprocesses (install, link, git init, lint fix)
- The run-schematic executor against a stub workflow
- Lazy executor registration
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from treewright.config import Config, GitConfig
from treewright.tasks import (
    LintFixTask,
    PackageInstallTask,
    PackageLinkTask,
    RepositoryInitializerTask,
    RunSchematicTask,
    TaskExecutorContext,
    builtin_registry,
)
from treewright.tasks.builtin import (
    LINT_FIX_TASK,
    PACKAGE_MANAGER_TASK,
    REPOSITORY_INIT_TASK,
    RUN_SCHEMATIC_TASK,
    CommitOptions,
    PackageManagerTaskOptions,
)
from treewright.tasks.builtin import lint_fix, package_manager, repo_init, run_schematic
from treewright.tasks.builtin.commands import CommandError, working_directory
from treewright.tasks.builtin.package_manager import UnknownPackageManagerError, build_command
from treewright.tree import MemoryFileStore


@pytest.fixture
def task_context(tmp_path: Path) -> TaskExecutorContext:
    return TaskExecutorContext(
        store=MemoryFileStore(),
        root=tmp_path,
        config=Config(root=tmp_path, git=GitConfig(author_name="Ada", author_email="ada@example.com")),
    )


def _argv(mock_exec: AsyncMock, index: int = -1) -> list[str]:
    return list(mock_exec.call_args_list[index].args)


# ---------------------------------------------------------------------------
# Configuration generators
# ---------------------------------------------------------------------------


class TestTaskGenerators:
    @pytest.mark.unit
    def test_package_install(self):
        config = PackageInstallTask("app", package_manager="uv", quiet=False).to_configuration()
        assert config.name == PACKAGE_MANAGER_TASK
        assert config.options.command == "install"
        assert config.options.package_manager == "uv"
        assert config.options.quiet is False

    @pytest.mark.unit
    def test_package_link(self):
        config = PackageLinkTask("../lib", working_directory="app").to_configuration()
        assert config.options.command == "link"
        assert config.options.package_name == "../lib"

    @pytest.mark.unit
    def test_repository_init_commit_flag(self):
        assert RepositoryInitializerTask("app").to_configuration().options.commit is False
        config = RepositoryInitializerTask("app", {"message": "first"}).to_configuration()
        assert config.name == REPOSITORY_INIT_TASK
        assert config.options.commit is True
        assert config.options.commit_options == CommitOptions(message="first")

    @pytest.mark.unit
    def test_run_schematic_forms(self):
        short = RunSchematicTask("module", {"name": "x"}).to_configuration()
        assert short.name == RUN_SCHEMATIC_TASK
        assert (short.options.collection, short.options.name) == (None, "module")
        full = RunSchematicTask("pkg.gen", "module", {"name": "x"}).to_configuration()
        assert (full.options.collection, full.options.name, full.options.options) == ("pkg.gen", "module", {"name": "x"})

    @pytest.mark.unit
    def test_lint_fix(self):
        config = LintFixTask(["/src/a.py"], command=["black"]).to_configuration()
        assert config.name == LINT_FIX_TASK
        assert config.options.command == ["black"]
        assert LintFixTask().to_configuration().options.command == ["ruff", "check", "--fix"]


# ---------------------------------------------------------------------------
# Package manager
# ---------------------------------------------------------------------------


class TestBuildCommand:
    @pytest.mark.unit
    def test_pip_install_all(self):
        cmd = build_command(PackageManagerTaskOptions(), package_manager="pip")
        assert cmd == ["pip", "install", "-e", ".", "--quiet"]

    @pytest.mark.unit
    def test_pip_with_index(self):
        cmd = build_command(
            PackageManagerTaskOptions(quiet=False),
            package_manager="pip",
            registry="https://pypi.example/simple",
        )
        assert cmd == ["pip", "install", "-e", ".", "--index-url", "https://pypi.example/simple"]

    @pytest.mark.unit
    def test_npm_ignores_scripts_unless_allowed(self):
        options = PackageManagerTaskOptions(package_name="left-pad")
        assert build_command(options, package_manager="npm") == [
            "npm", "install", "left-pad", "--quiet", "--ignore-scripts",
        ]
        assert build_command(options, package_manager="npm", allow_scripts=True) == [
            "npm", "install", "left-pad", "--quiet",
        ]

    @pytest.mark.unit
    def test_link(self):
        options = PackageManagerTaskOptions(command="link", package_name="../lib", quiet=False)
        assert build_command(options, package_manager="pip", registry="x") == ["pip", "install", "-e", "../lib"]
        assert build_command(options, package_manager="yarn") == ["yarn", "link", "../lib", "--ignore-scripts"]

    @pytest.mark.unit
    def test_link_needs_a_package(self):
        with pytest.raises(ValueError):
            build_command(PackageManagerTaskOptions(command="link"), package_manager="pip")

    @pytest.mark.unit
    def test_unknown_manager(self):
        with pytest.raises(UnknownPackageManagerError) as exc_info:
            build_command(PackageManagerTaskOptions(), package_manager="conda")
        assert exc_info.value.name == "conda"


class TestPackageManagerExecutor:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_install_uses_config_manager(self, task_context, mock_subprocess):
        task_context.config.package_manager = "uv"
        proc = mock_subprocess(returncode=0)
        with patch("asyncio.create_subprocess_exec", return_value=proc) as mock_exec:
            await package_manager.execute(PackageInstallTask("app").to_configuration().options, task_context)
        assert _argv(mock_exec) == ["uv", "sync", "--quiet"]
        assert mock_exec.call_args.kwargs["cwd"] == str(task_context.root / "app")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_raises(self, task_context, mock_subprocess):
        proc = mock_subprocess(stderr="resolution failed", returncode=1)
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(CommandError) as exc_info:
                await package_manager.execute(PackageManagerTaskOptions(), task_context)
        assert exc_info.value.returncode == 1
        assert exc_info.value.stderr == "resolution failed"


# ---------------------------------------------------------------------------
# Repository init
# ---------------------------------------------------------------------------


class TestRepositoryInitExecutor:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skips_without_git(self, task_context):
        options = RepositoryInitializerTask().to_configuration().options
        with patch("shutil.which", return_value=None), \
             patch("asyncio.create_subprocess_exec") as mock_exec:
            await repo_init.execute(options, task_context)
        mock_exec.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skips_inside_a_work_tree(self, task_context, mock_subprocess):
        options = RepositoryInitializerTask().to_configuration().options
        with patch("shutil.which", return_value="/usr/bin/git"), \
             patch("asyncio.create_subprocess_exec", return_value=mock_subprocess(stdout="true")) as mock_exec:
            await repo_init.execute(options, task_context)
        assert mock_exec.call_count == 1
        assert _argv(mock_exec) == ["git", "rev-parse", "--is-inside-work-tree"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_init_and_commit(self, task_context, mock_subprocess):
        options = RepositoryInitializerTask("app", CommitOptions(message="scaffold")).to_configuration().options
        procs = [
            mock_subprocess(returncode=128),
            mock_subprocess(),
            mock_subprocess(),
            mock_subprocess(),
        ]
        with patch("shutil.which", return_value="/usr/bin/git"), \
             patch("asyncio.create_subprocess_exec", side_effect=procs) as mock_exec:
            await repo_init.execute(options, task_context)
        assert [_argv(mock_exec, i)[:2] for i in range(4)] == [
            ["git", "rev-parse"],
            ["git", "init"],
            ["git", "add"],
            ["git", "commit"],
        ]
        assert _argv(mock_exec) == ["git", "commit", "-m", "scaffold"]
        env = mock_exec.call_args.kwargs["env"]
        assert env["GIT_AUTHOR_NAME"] == "Ada"
        assert env["GIT_COMMITTER_EMAIL"] == "ada@example.com"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_init_without_commit(self, task_context, mock_subprocess):
        options = RepositoryInitializerTask().to_configuration().options
        procs = [mock_subprocess(returncode=128), mock_subprocess()]
        with patch("shutil.which", return_value="/usr/bin/git"), \
             patch("asyncio.create_subprocess_exec", side_effect=procs) as mock_exec:
            await repo_init.execute(options, task_context)
        assert mock_exec.call_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_commit_is_only_a_warning(self, task_context, mock_subprocess):
        options = RepositoryInitializerTask(commit_options={}).to_configuration().options
        procs = [
            mock_subprocess(returncode=128),
            mock_subprocess(),
            mock_subprocess(),
            mock_subprocess(stderr="nothing to commit", returncode=1),
        ]
        with patch("shutil.which", return_value="/usr/bin/git"), \
             patch("asyncio.create_subprocess_exec", side_effect=procs):
            await repo_init.execute(options, task_context)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_init_raises(self, task_context, mock_subprocess):
        options = RepositoryInitializerTask().to_configuration().options
        procs = [mock_subprocess(returncode=128), mock_subprocess(stderr="denied", returncode=1)]
        with patch("shutil.which", return_value="/usr/bin/git"), \
             patch("asyncio.create_subprocess_exec", side_effect=procs):
            with pytest.raises(CommandError):
                await repo_init.execute(options, task_context)


# ---------------------------------------------------------------------------
# Lint fix & run schematic
# ---------------------------------------------------------------------------


class TestLintFixExecutor:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_fixer_on_files(self, task_context, mock_subprocess):
        options = LintFixTask(["/src/a.py", "/src/b.py"]).to_configuration().options
        with patch("asyncio.create_subprocess_exec", return_value=mock_subprocess()) as mock_exec:
            await lint_fix.execute(options, task_context)
        assert _argv(mock_exec) == ["ruff", "check", "--fix", "src/a.py", "src/b.py"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ignore_errors(self, task_context, mock_subprocess):
        proc = mock_subprocess(stderr="E501", returncode=1)
        strict = LintFixTask(["/a.py"]).to_configuration().options
        lenient = LintFixTask(["/a.py"], ignore_errors=True).to_configuration().options
        with patch("asyncio.create_subprocess_exec", return_value=proc):
            with pytest.raises(CommandError):
                await lint_fix.execute(strict, task_context)
            await lint_fix.execute(lenient, task_context)


class TestRunSchematicExecutor:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_the_running_collection(self, task_context):
        workflow = MagicMock()
        workflow.context = MagicMock(collection="pkg.gen")
        workflow.execute = AsyncMock()
        task_context.workflow = workflow
        options = RunSchematicTask("module", {"name": "x"}).to_configuration().options
        await run_schematic.execute(options, task_context)
        workflow.execute.assert_awaited_once_with(
            "pkg.gen", "module", {"name": "x"}, allow_private=True, parent=workflow.context
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_needs_a_workflow(self, task_context):
        options = RunSchematicTask("module").to_configuration().options
        with pytest.raises(RuntimeError, match="needs a workflow"):
            await run_schematic.execute(options, task_context)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestBuiltinRegistry:
    @pytest.mark.unit
    def test_every_builtin_is_registered(self):
        registry = builtin_registry()
        assert registry.names() == sorted([
            PACKAGE_MANAGER_TASK, REPOSITORY_INIT_TASK, RUN_SCHEMATIC_TASK, LINT_FIX_TASK,
        ])

    @pytest.mark.unit
    def test_factory_returns_the_executor(self):
        assert builtin_registry().get(LINT_FIX_TASK)() is lint_fix.execute

    @pytest.mark.unit
    def test_working_directory(self, task_context):
        assert working_directory(task_context, None) == task_context.root
        assert working_directory(task_context, "/app") == task_context.root / "app"
