"""Unit tests for utility functions (treewright.utils).

Tests cover:
- run_command (success, failure, timeout, list vs string, env vars, cwd)
- sanitize_name (various inputs)
- parse_option_value
- format_duration
- configure_logging
- Rich output helpers (print_summary_table, print_success, etc.)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest
from rich.logging import RichHandler

from treewright.utils import (
    configure_logging,
    format_duration,
    parse_option_value,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
    sanitize_name,
)

PY = sys.executable


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        returncode, stdout, stderr = await run_command([PY, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout == "hello"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_string(self):
        returncode, stdout, stderr = await run_command("echo hello")
        assert returncode == 0
        assert "hello" in stdout

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, _, _ = await run_command([PY, "-c", "import sys; sys.exit(3)"])
        assert returncode == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, _ = await run_command([PY, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)
        assert returncode == 0
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout(self):
        returncode, _, stderr = await run_command([PY, "-c", "import time; time.sleep(10)"], timeout=1)
        assert returncode == -1
        assert "timed out" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_env_is_merged_over_os_environ(self, monkeypatch):
        monkeypatch.setenv("TREEWRIGHT_TEST_BASE", "base")
        returncode, stdout, _ = await run_command(
            [PY, "-c", "import os; print(os.environ['TREEWRIGHT_TEST_BASE'], os.environ['EXTRA'])"],
            env={"EXTRA": "extra"},
        )
        assert returncode == 0
        assert stdout == "base extra"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_returns_stderr(self):
        _, _, stderr = await run_command([PY, "-c", "import sys; sys.stderr.write('error_msg\\n')"])
        assert stderr == "error_msg"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_capture(self):
        returncode, stdout, stderr = await run_command([PY, "-c", "pass"], capture=False)
        assert (returncode, stdout, stderr) == (0, "", "")


# ---------------------------------------------------------------------------
# Name / option helpers
# ---------------------------------------------------------------------------


class TestSanitizeName:
    @pytest.mark.unit
    def test_simple_name(self):
        assert sanitize_name("My Project") == "my-project"

    @pytest.mark.unit
    def test_special_chars(self):
        assert sanitize_name("  2FA (TOTP)  ") == "2fa-totp"

    @pytest.mark.unit
    def test_underscores_preserved(self):
        assert sanitize_name("my_app_v2") == "my_app_v2"

    @pytest.mark.unit
    def test_leading_trailing_hyphens_stripped(self):
        assert sanitize_name("---demo---") == "demo"

    @pytest.mark.unit
    def test_empty_string(self):
        assert sanitize_name("") == ""


class TestParseOptionValue:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("true", True),
            ("false", False),
            ("3", 3),
            ("1.5", 1.5),
            ("null", None),
            ('["a", "b"]', ["a", "b"]),
            ('{"k": 1}', {"k": 1}),
            ("hello", "hello"),
            ("src/app", "src/app"),
        ],
    )
    def test_values(self, raw, expected):
        assert parse_option_value(raw) == expected


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds_only(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes_and_seconds(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_hours_minutes_seconds(self):
        assert format_duration(3661.0) == "1h 1m 1s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-5.0) == "0.0s"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    @pytest.mark.unit
    def test_sets_level_and_rich_handler(self):
        logger = configure_logging("debug")
        assert logger is logging.getLogger("treewright")
        assert logger.level == logging.DEBUG
        assert [type(h) for h in logger.handlers] == [RichHandler]
        assert logger.propagate is False

    @pytest.mark.unit
    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging()
        logger = configure_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichOutputHelpers:
    @pytest.mark.unit
    def test_print_summary_table(self):
        # Should not raise
        print_summary_table({"new-project": "Create a project", "module": "Add a module"}, title="project")

    @pytest.mark.unit
    def test_print_success(self):
        print_success("Done in 1.2s.")

    @pytest.mark.unit
    def test_print_error(self):
        print_error("Something failed")

    @pytest.mark.unit
    def test_print_warning(self):
        print_warning("Check your config")
