"""Shared pytest fixtures for the stackforge test suite.

Provides reusable fixtures for:
- Resolved configurations rooted in a temporary directory
- A recording fake ``ProcessRunner`` that simulates generator output
- A recording Rich console whose output can be asserted on
- Sample generated ``main.ts`` sources
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable

import pytest
from rich.console import Console

from stackforge.config import Config
from stackforge.errors import ExecutionError


# ---------------------------------------------------------------------------
# Sample generated sources
# ---------------------------------------------------------------------------

NEST_MAIN_TS = """\
import { NestFactory } from '@nestjs/core';
import { AppModule } from './app.module';

async function bootstrap() {
  const app = await NestFactory.create(AppModule);
  await app.listen(3000);
}
bootstrap();
"""

NEST_MAIN_TS_HOST = NEST_MAIN_TS.replace(
    "await app.listen(3000);", "await app.listen(3000, '0.0.0.0');"
)

NEST_MAIN_TS_ENV = NEST_MAIN_TS.replace(
    "await app.listen(3000);", "await app.listen(process.env.PORT ?? 3000);"
)


# ---------------------------------------------------------------------------
# Fake process runner
# ---------------------------------------------------------------------------


class FakeRunner:
    """Stands in for ``ProcessRunner``; records calls instead of spawning.

    Generator invocations create the directories and files the real tools
    would, so later steps (installs, the port patch) find what they expect.

    Attributes:
        calls: ``(command, args, cwd, hide_output)`` tuples in call order.
        available: Commands ``is_available`` reports as installed.
        fail_when: Predicate on ``(command, args)``; when it returns ``True``
            the call raises ``ExecutionError`` with exit code 1.
        main_ts: Content written to ``backend/src/main.ts`` by the server
            generator (``None`` skips the file).
    """

    def __init__(
        self,
        available: tuple[str, ...] = ("pnpm", "npm"),
        fail_when: Callable[[str, list[str]], bool] | None = None,
        main_ts: str | None = NEST_MAIN_TS,
    ) -> None:
        self.calls: list[tuple[str, list[str], Path, bool]] = []
        self.available = set(available)
        self.fail_when = fail_when
        self.main_ts = main_ts

    async def run(
        self,
        command: str,
        args: list[str],
        cwd: str | Path,
        hide_output: bool = True,
    ) -> str:
        cwd = Path(cwd)
        self.calls.append((command, list(args), cwd, hide_output))
        if self.fail_when is not None and self.fail_when(command, list(args)):
            raise ExecutionError(command, list(args), 1, "simulated failure")

        if "create-next-app@latest" in args:
            (cwd / args[args.index("create-next-app@latest") + 1]).mkdir(parents=True)
        elif "@nestjs/cli@latest" in args:
            backend = cwd / args[args.index("new") + 1]
            (backend / "src").mkdir(parents=True)
            if self.main_ts is not None:
                (backend / "src" / "main.ts").write_text(self.main_ts, encoding="utf-8")
        return ""

    async def is_available(self, command: str) -> bool:
        return command in self.available

    def commands(self) -> list[str]:
        """Each call rendered as a single command line."""
        return [" ".join([command, *args]) for command, args, _, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner() -> Callable[..., FakeRunner]:
    """Factory for ``FakeRunner`` instances with custom behaviour."""
    return FakeRunner


@pytest.fixture
def nest_main_ts() -> str:
    """A freshly generated Nest entry point with the literal port binding."""
    return NEST_MAIN_TS


@pytest.fixture
def nest_main_ts_host() -> str:
    """Entry point binding an explicit host (two-argument listen)."""
    return NEST_MAIN_TS_HOST


@pytest.fixture
def nest_main_ts_env() -> str:
    """Entry point that already reads PORT with a different fallback."""
    return NEST_MAIN_TS_ENV


# ---------------------------------------------------------------------------
# Config & console
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory for configs rooted in ``tmp_path`` with the UX prompt disabled."""

    def factory(**overrides: Any) -> Config:
        values: dict[str, Any] = {
            "project_name": "demo-app",
            "base_dir": tmp_path,
            "ux": False,
        }
        values.update(overrides)
        return Config(**values)

    return factory


@pytest.fixture
def recording_console() -> Console:
    """A wide, colourless console writing into an in-memory buffer.

    Read its output with ``recording_console.file.getvalue()``.
    """
    return Console(file=io.StringIO(), width=400, color_system=None, force_terminal=False)
