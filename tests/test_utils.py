"""Unit tests for utility functions (stackforge.utils).

Tests cover:
- run_command (success, failure, cwd, env vars, capture=False)
- tail_lines
- format_duration
- Rich output helpers (print_summary_table, print_warning)
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from stackforge.utils import (
    format_duration,
    print_summary_table,
    print_warning,
    run_command,
    tail_lines,
)

pytestmark = pytest.mark.unit

PY = sys.executable


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_successful_command(self):
        returncode, stdout, stderr = await run_command([PY, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout == "hello"

    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, _, _ = await run_command([PY, "-c", "import sys; sys.exit(2)"])
        assert returncode == 2

    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, _ = await run_command(
            [PY, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert returncode == 0
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_command_with_env(self):
        returncode, stdout, _ = await run_command(
            [PY, "-c", "import os; print(os.environ['TEST_VAR'])"],
            env={"TEST_VAR": "test_value"},
        )
        assert returncode == 0
        assert stdout == "test_value"

    @pytest.mark.asyncio
    async def test_capture_false_returns_empty(self):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "print('x')"], capture=False
        )
        assert returncode == 0
        assert (stdout, stderr) == ("", "")

    @pytest.mark.asyncio
    async def test_missing_program_raises(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["stackforge-no-such-binary-xyz"])


class TestTailLines:
    def test_short_text_unchanged(self):
        assert tail_lines("a\nb", limit=5) == "a\nb"

    def test_keeps_last_lines(self):
        assert tail_lines("1\n2\n3\n4", limit=2) == "3\n4"

    def test_empty(self):
        assert tail_lines("") == ""


class TestFormatDuration:
    def test_seconds(self):
        assert format_duration(3.7) == "3.7s"

    def test_minutes(self):
        assert format_duration(65.2) == "1m 5s"

    def test_hours(self):
        assert format_duration(3661.0) == "1h 1m 1s"

    def test_negative(self):
        assert format_duration(-1) == "0.0s"


class TestRichHelpers:
    def test_summary_table(self, recording_console):
        print_summary_table({"Project": "shop", "Steps": "16"}, title="Plan", out=recording_console)
        output = recording_console.file.getvalue()
        assert "Plan" in output
        assert "shop" in output
        assert "16" in output

    def test_warning_is_not_parsed_as_markup(self, recording_console):
        print_warning("careful [b]", out=recording_console)
        output = recording_console.file.getvalue()
        assert "careful [b]" in output
