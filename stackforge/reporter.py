"""Top-level failure and success reporting.

``FailureReporter.handle`` is the single place fatal messages are printed.
It never deletes anything: a partially scaffolded project (say, a working
frontend when the backend step failed) is left for the operator to inspect.
"""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule

from stackforge.config import Config
from stackforge.errors import ScaffoldValidationError
from stackforge.scaffolder.manifests import BACKEND_ENV_FILENAME, FRONTEND_ENV_FILENAME
from stackforge.utils import console as default_console


class FailureReporter:
    """Reports fatal errors and, when a partial project exists, how to remove it.

    Attributes:
        project_root: Directory the run was scaffolding into.
        console: Where output goes.
    """

    def __init__(self, project_root: Path | None, out: Console | None = None) -> None:
        self.project_root = project_root
        self.console = out or default_console

    def handle(self, error: BaseException) -> int:
        """Report *error* and return the process exit code (always 1)."""
        self.console.print()

        if isinstance(error, ScaffoldValidationError):
            # Raised before anything was written: no cleanup to suggest.
            self.console.print(f"[bold red]✗ ERROR:[/bold red] [dim]{escape(str(error))}[/dim]")
            for line in error.hint:
                self.console.print(f"  {escape(line)}")
            self.console.print()
            return 1

        message = str(error) or type(error).__name__
        self.console.print("[bold red]✗ FATAL ERROR[/bold red]")
        self.console.print(Rule(style="red"))
        self.console.print(f"[dim]{escape(message)}[/dim]")
        self.console.print(Rule(style="red"))

        if self.project_root is not None and self.project_root.exists():
            self.console.print()
            self.console.print("[bold yellow]⚠ Partial scaffold created.[/bold yellow]")
            self.console.print("[dim]  You may want to delete the folder:[/dim]")
            self.console.print(
                f"[yellow]  rm -rf {escape(str(self.project_root))}[/yellow]",
                soft_wrap=True,
            )

        self.console.print()
        return 1

    def success(self, config: Config) -> None:
        """Print the quick-start summary after a successful run."""
        dev_cmd = "pnpm dev" if config.use_pnpm else "npm run dev"
        self.console.print()
        self.console.print(
            Panel(
                "[bold bright_green]PROJECT INITIALIZED SUCCESSFULLY[/bold bright_green]\n\n"
                "[dim]Your full-stack project is ready to go![/dim]",
                border_style="bright_green",
                expand=False,
            )
        )
        lines = [
            "[bold bright_green]  ⚡ Quick Start[/bold bright_green]",
            "",
            "[dim]  1. Navigate to your project[/dim]",
            f"[green]     cd {escape(config.project_name)}[/green]",
            "",
            "[dim]  2. Run development servers (frontend + backend)[/dim]",
            f"[green]     {dev_cmd}[/green]",
            "",
            "[dim]  Your services:[/dim]",
            f"     ▸ Frontend: [green]http://localhost:{config.ports.frontend}[/green]",
            f"     ▸ Backend:  [green]http://localhost:{config.ports.backend}[/green]",
            "",
            "[dim]  Environment files:[/dim]",
            f"     ▸ Frontend: [orange1]{config.frontend_dir_name}/{FRONTEND_ENV_FILENAME}[/orange1]",
            f"     ▸ Backend:  [orange1]{config.backend_dir_name}/{BACKEND_ENV_FILENAME}[/orange1]",
            "[dim]     Copy these to .env.local and .env respectively[/dim]",
            "",
        ]
        for line in lines:
            self.console.print(line)
