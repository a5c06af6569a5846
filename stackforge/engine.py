"""Step engine and step executor.

``StepEngine`` wraps one labelled unit of work and announces its lifecycle
(started, then exactly one of succeeded/failed) to registered listeners.
Failures are re-raised unchanged so the first failing step aborts the run.

``StepExecutor`` turns pipeline step models into engine invocations,
dispatching on the step's ``kind`` tag to the process runner, the source
patcher, or a direct file write.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.status import Status

from stackforge.patcher import PatchOutcome, PatchResult, SourcePatcher
from stackforge.runner import ProcessRunner
from stackforge.steps import GeneratorStep, InstallStep, PatchStep, Step, WriteStep
from stackforge.utils import console as default_console
from stackforge.utils import format_duration

T = TypeVar("T")

EventKind = Literal["started", "succeeded", "failed", "warning"]


@dataclass
class StepEvent:
    """A lifecycle notification for one step, keyed by its label."""

    kind: EventKind
    label: str
    result: Any = None
    error: BaseException | None = None
    details: list[str] = field(default_factory=list)
    elapsed: float = 0.0


StepListener = Callable[[StepEvent], None]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class StepEngine:
    """Runs labelled actions one at a time and reports on each.

    The engine keeps no state between steps apart from its listeners.
    Nothing is retried.
    """

    def __init__(self, listeners: list[StepListener] | None = None) -> None:
        self.listeners: list[StepListener] = list(listeners or [])

    def subscribe(self, listener: StepListener) -> None:
        self.listeners.append(listener)

    def emit(self, event: StepEvent) -> None:
        for listener in self.listeners:
            listener(event)

    def warn(self, label: str, message: str, details: list[str] | None = None) -> None:
        """Report a non-fatal problem inside the running step."""
        self.emit(StepEvent("warning", label, result=message, details=list(details or [])))

    async def execute(self, label: str, action: Callable[[], Awaitable[T]]) -> T:
        """Run *action*, announcing start and outcome under *label*.

        Returns:
            Whatever *action* returns.

        Raises:
            Any exception raised by *action*, unchanged.
        """
        self.emit(StepEvent("started", label))
        started = time.monotonic()
        try:
            result = await action()
        except BaseException as exc:
            self.emit(
                StepEvent("failed", label, error=exc, elapsed=time.monotonic() - started)
            )
            raise
        self.emit(
            StepEvent("succeeded", label, result=result, elapsed=time.monotonic() - started)
        )
        return result


class ConsoleStepListener:
    """Renders step events as a spinner followed by a tick or cross line."""

    def __init__(self, out: Console | None = None, spinner: str = "dots12") -> None:
        self.console = out or default_console
        self.spinner = spinner
        self._status: Status | None = None

    def __call__(self, event: StepEvent) -> None:
        label = escape(event.label)
        if event.kind == "started":
            self._stop()
            self._status = self.console.status(
                f"[green]{label}[/green]", spinner=self.spinner, spinner_style="green"
            )
            self._status.start()
        elif event.kind == "succeeded":
            self._stop()
            self.console.print(
                f"[bright_green]✓[/bright_green] [green]{label}[/green] "
                f"[dim]({format_duration(event.elapsed)})[/dim]"
            )
        elif event.kind == "failed":
            self._stop()
            self.console.print(f"[red]✗[/red] [dim]{label}[/dim]")
        elif event.kind == "warning":
            self.console.print()
            self.console.print(f"[yellow]⚠ WARNING: {escape(str(event.result))}[/yellow]")
            for line in event.details:
                self.console.print(f"[dim]  {escape(line)}[/dim]")
            self.console.print()

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class StepExecutor:
    """Executes pipeline step models through a ``StepEngine``.

    Attributes:
        engine: Lifecycle reporting and failure propagation.
        runner: Used by generator and install steps.  Tests inject a fake.
        patcher: Used by patch steps.
    """

    _HANDLERS: dict[str, str] = {
        "generator": "_run_process",
        "install": "_run_process",
        "patch": "_run_patch",
        "write": "_run_write",
    }

    def __init__(
        self,
        engine: StepEngine,
        runner: ProcessRunner | None = None,
        patcher: SourcePatcher | None = None,
    ) -> None:
        self.engine = engine
        self.runner = runner or ProcessRunner()
        self.patcher = patcher or SourcePatcher()

    async def run(self, step: Step) -> Any:
        """Execute a single step under the engine."""
        handler = getattr(self, self._HANDLERS[step.kind])
        return await self.engine.execute(step.label, lambda: handler(step))

    async def run_all(self, steps: list[Step]) -> list[Any]:
        """Execute *steps* in order, stopping at the first failure.

        Returns:
            One result per step, in order.
        """
        results: list[Any] = []
        for step in steps:
            results.append(await self.run(step))
        return results

    # -- Handlers ----------------------------------------------------------

    async def _run_process(self, step: GeneratorStep | InstallStep) -> str:
        return await self.runner.run(
            step.command, step.argv, step.cwd, hide_output=step.hide_output
        )

    async def _run_patch(self, step: PatchStep) -> PatchResult:
        result = await asyncio.to_thread(self.patcher.apply, step.path, step.rule)

        if result.outcome is PatchOutcome.AMBIGUOUS:
            self.engine.warn(
                step.label,
                f"{step.path.name} uses multi-argument {step.rule.call}()",
                [
                    f"Found: {result.snippet}",
                    "The template binds to a specific host or has custom config.",
                    "Please ensure your app reads PORT from process.env manually.",
                ],
            )
        elif result.outcome is PatchOutcome.NOT_FOUND:
            details = ["Please ensure your app reads PORT from process.env manually."]
            if result.reason:
                details.insert(0, f"{step.path.name} is {result.reason}")
            self.engine.warn(
                step.label,
                f"await {step.rule.call}(...) not found in {step.path}",
                details,
            )
        return result

    async def _run_write(self, step: WriteStep) -> Path:
        await asyncio.to_thread(_write_file, step.path, step.content)
        return step.path


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
