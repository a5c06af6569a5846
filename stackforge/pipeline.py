"""stackforge pipeline: plan and run a full-stack scaffold.

The run is a fixed, ordered list of steps built once from a resolved
``Config``:

1. Generate the web app (create-next-app) into ``frontend/``.
2. Install and initialise the UI kit (shadcn) and add its components.
3. Install the frontend dependencies.
4. Generate the server app (Nest CLI) into ``backend/`` and install it.
5. Install the backend dependencies and initialise the ORM (Prisma).
6. Patch the server entry point to read its port from ``PORT``.
7. Write example env files, the root ``package.json`` and the project contract.
8. Install the root dependencies.

The first failing step aborts the run; ``FailureReporter`` then reports the
error and points at any partial output.

Usage::

    stackforge my-app
    stackforge my-app --pm npm --no-ux
    python -m stackforge.pipeline my-app --dry-run
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from pathlib import Path
from typing import Callable, Literal

import pydantic
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from stackforge.config import PROFILES, Config
from stackforge.engine import ConsoleStepListener, StepEngine, StepExecutor
from stackforge.errors import ScaffoldValidationError
from stackforge.reporter import FailureReporter
from stackforge.runner import ProcessRunner
from stackforge.scaffolder.catalog import (
    BACKEND_PACKAGES,
    BACKEND_TYPE_PACKAGES,
    FRONTEND_PACKAGES,
    UI_BASE_COLOR,
    UI_CLI_PACKAGE,
    UI_COMPONENTS,
    pinned,
)
from stackforge.scaffolder.manifests import (
    BACKEND_ENV_FILENAME,
    FRONTEND_ENV_FILENAME,
    build_contract,
    build_root_manifest,
    render_env_files,
    to_json,
)
from stackforge.scaffolder.templates import TemplateRenderer
from stackforge.steps import (
    GeneratorStep,
    InstallStep,
    PatchRule,
    PatchStep,
    Step,
    WriteStep,
    describe_step,
)
from stackforge.utils import console, format_duration, print_summary_table, print_warning

RunStatus = Literal["completed", "cancelled", "planned"]

# ---------------------------------------------------------------------------
# Pipeline definition
# ---------------------------------------------------------------------------


def build_pipeline(
    config: Config, renderer: TemplateRenderer | None = None
) -> list[Step]:
    """Assemble the ordered step list for *config*.

    Every value a step needs is captured here; nothing is re-read while the
    pipeline runs.
    """
    pm = config.package_manager
    root = config.project_root
    frontend = config.frontend_dir
    backend = config.backend_dir

    if config.use_pnpm:
        ui_command, ui_prefix = "pnpm", ("exec", "shadcn")
    else:
        ui_command, ui_prefix = "npx", ("shadcn",)

    web_args = [
        "create-next-app@latest",
        config.frontend_dir_name,
        "--ts",
        "--eslint",
        "--tailwind",
        "--app",
        "--yes",
        "--use-pnpm" if config.use_pnpm else "--use-npm",
        "--src-dir" if config.layout.use_src_dir else "--no-src-dir",
    ]
    if config.import_alias:
        web_args += ["--import-alias", config.import_alias]

    env_files = render_env_files(config, renderer)
    backend_env_path = config.backend_dir / BACKEND_ENV_FILENAME
    frontend_env_path = config.frontend_dir / FRONTEND_ENV_FILENAME

    return [
        GeneratorStep(
            label="Creating NextJS App in Frontend",
            command="npx",
            args=tuple(web_args),
            cwd=root,
        ),
        InstallStep(
            label="Installing ShadcnUI CLI",
            command=pm,
            install_args=("add", "-D"),
            packages=(UI_CLI_PACKAGE,),
            cwd=frontend,
        ),
        GeneratorStep(
            label=f"Initializing ShadcnUI ({UI_BASE_COLOR.capitalize()})",
            command=ui_command,
            args=(*ui_prefix, "init", "--yes", "--base-color", UI_BASE_COLOR),
            cwd=frontend,
        ),
        GeneratorStep(
            label="Adding ShadcnUI Components",
            command=ui_command,
            args=(*ui_prefix, "add", "--yes", *UI_COMPONENTS),
            cwd=frontend,
        ),
        InstallStep(
            label="Installing Frontend Deps",
            command=pm,
            install_args=("add",),
            packages=pinned(FRONTEND_PACKAGES),
            cwd=frontend,
        ),
        GeneratorStep(
            label="Creating NestJS App in Backend",
            command="npx",
            args=(
                "@nestjs/cli@latest",
                "new",
                config.backend_dir_name,
                "--package-manager",
                pm,
                "--skip-git",
                "--skip-install",
            ),
            cwd=root,
        ),
        InstallStep(
            label="Installing Backend Base Dependencies",
            command=pm,
            cwd=backend,
        ),
        InstallStep(
            label="Installing Backend Deps",
            command=pm,
            install_args=("add",),
            packages=pinned(BACKEND_PACKAGES),
            cwd=backend,
        ),
        InstallStep(
            label="Installing Backend Type Definitions",
            command=pm,
            install_args=("add", "-D"),
            packages=BACKEND_TYPE_PACKAGES,
            cwd=backend,
        ),
        GeneratorStep(
            label="Initializing Prisma",
            command="npx",
            args=("prisma", "init"),
            cwd=backend,
        ),
        PatchStep(
            label="Configuring Backend Port",
            path=config.backend_entry_path,
            rule=PatchRule(
                replacement_args=f"Number(process.env.PORT) || {config.ports.backend}",
            ),
        ),
        WriteStep(
            label="Generating Backend .env.example",
            path=backend_env_path,
            content=env_files[backend_env_path],
        ),
        WriteStep(
            label="Generating Frontend .env.local.example",
            path=frontend_env_path,
            content=env_files[frontend_env_path],
        ),
        WriteStep(
            label="Creating Root Package Configuration",
            path=root / "package.json",
            content=to_json(build_root_manifest(config)),
        ),
        WriteStep(
            label=f"Creating Project Contract ({config.contract_path.name})",
            path=config.contract_path,
            content=to_json(build_contract(config).as_manifest()),
        ),
        InstallStep(
            label="Installing Root Dependencies",
            command=pm,
            cwd=root,
        ),
    ]


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


def _ask_confirm(out: Console) -> bool:
    return Confirm.ask(
        "[bright_green]Start scaffolding your project?[/bright_green]",
        default=True,
        console=out,
    )


class Pipeline:
    """Runs the scaffold for one resolved ``Config``.

    Attributes:
        config: Immutable run configuration.
        runner: Process runner shared by all generator and install steps.
        engine: Step lifecycle reporting.
        executor: Dispatches step models to runner, patcher or file writes.
    """

    def __init__(
        self,
        config: Config,
        runner: ProcessRunner | None = None,
        out: Console | None = None,
        confirm: Callable[[Console], bool] | None = None,
    ) -> None:
        self.config = config
        self.console = out or console
        self.runner = runner or ProcessRunner()
        self.engine = StepEngine([ConsoleStepListener(self.console)])
        self.executor = StepExecutor(self.engine, self.runner)
        self.confirm = confirm or _ask_confirm

    # ------------------------------------------------------------------
    # Pre-flight checks
    # ------------------------------------------------------------------

    async def preflight(self) -> None:
        """Validate inputs before anything touches the filesystem.

        Raises:
            ScaffoldValidationError: On an unusable project name, an existing
                target directory, or a missing package manager.
        """
        name = self.config.project_name
        if name in (".", "..") or os.sep in name or (os.altsep and os.altsep in name):
            raise ScaffoldValidationError(
                f"Project name must be a plain directory name: {name}"
            )

        root = self.config.project_root
        if root.exists():
            raise ScaffoldValidationError(
                "Folder already exists", hint=[str(root)]
            )

        pm = self.config.package_manager
        if not await self.runner.is_available(pm):
            raise ScaffoldValidationError(
                f"{pm} is not installed", hint=_package_manager_hint(pm)
            )

        if not self.config.layout.alias_configurable and not self.config.import_alias_enabled:
            print_warning(
                f"Import alias cannot be disabled in the {self.config.profile} profile; "
                f"using {self.config.layout.import_alias}",
                out=self.console,
            )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, dry_run: bool = False) -> RunStatus:
        """Validate, confirm, and execute every step in order.

        Returns:
            ``"completed"`` after a full run, ``"cancelled"`` if the operator
            declined the prompt, ``"planned"`` for a dry run.

        Raises:
            ScaffoldError: The first fatal error, unchanged.
        """
        await self.preflight()
        steps = build_pipeline(self.config)

        if dry_run:
            print_summary_table(
                {f"{i}. {step.label}": describe_step(step) for i, step in enumerate(steps, 1)},
                title=f"Planned steps for {self.config.project_name}",
                out=self.console,
            )
            return "planned"

        if self.config.ux:
            self._print_banner()
            if not self.confirm(self.console):
                self.console.print()
                self.console.print("[yellow]⚠ Scaffolding cancelled[/yellow]")
                self.console.print()
                return "cancelled"
        else:
            self.console.print("[dim]UX disabled[/dim]")

        started = time.monotonic()
        self.config.project_root.mkdir(parents=True)
        await self.executor.run_all(steps)

        FailureReporter(self.config.project_root, out=self.console).success(self.config)
        self.console.print(
            f"[dim]Completed {len(steps)} steps in "
            f"{format_duration(time.monotonic() - started)}[/dim]"
        )
        return "completed"

    def _print_banner(self) -> None:
        self.console.print(
            Panel(
                "[bold bright_green]stackforge[/bold bright_green]\n"
                "[bright_green]Next.js + NestJS full-stack scaffold in one command[/bright_green]\n\n"
                f"Project         : {escape(self.config.project_name)}\n"
                f"Output          : {escape(str(self.config.project_root))}\n"
                f"Package manager : {self.config.package_manager}\n"
                f"Profile         : {self.config.profile}\n"
                f"Ports           : web {self.config.ports.frontend} / api {self.config.ports.backend}",
                title="[bold]Scaffold Start[/bold]",
                border_style="bright_green",
            )
        )


def _package_manager_hint(pm: str) -> list[str]:
    if pm == "pnpm":
        return [
            "Install pnpm with:",
            "  npm install -g pnpm",
            "Or enable it via Corepack (Node 16.13+ / 18+):",
            "  corepack enable",
            "More info: https://pnpm.io/installation",
        ]
    return [
        "npm ships with Node.js",
        "Visit: https://nodejs.org/",
    ]


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="stackforge",
        description="stackforge -- Next.js + NestJS full-stack scaffold in one command",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  stackforge my-app\n"
            "  stackforge my-app --pm npm --no-ux\n"
            "  stackforge my-app --profile flat-layout --backend-port 4100\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", help="Directory to create")
    parser.add_argument(
        "--pm",
        choices=["pnpm", "npm"],
        default=None,
        help="Package manager (default: pnpm)",
    )
    parser.add_argument(
        "--no-ux",
        dest="ux",
        action="store_false",
        help="Disable the banner and confirmation prompt",
    )
    parser.add_argument(
        "--no-alias",
        dest="alias",
        action="store_false",
        help="Disable the @/* import alias (src-layout profile only)",
    )
    parser.add_argument(
        "--profile",
        choices=sorted(PROFILES),
        default=None,
        help="Frontend layout profile (default: src-layout)",
    )
    parser.add_argument("--frontend-port", type=int, default=None, help="Frontend port (default: 3000)")
    parser.add_argument("--backend-port", type=int, default=None, help="Backend port (default: 4000)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned steps without changing anything",
    )
    return parser


def resolve_config(args, base_dir: Path | None = None) -> Config:
    """Turn parsed CLI arguments into a validated, frozen ``Config``.

    Raises:
        ScaffoldValidationError: Missing project name or invalid option values.
    """
    if not args.project_name:
        raise ScaffoldValidationError(
            "Project name is required", hint=["Example: stackforge my-project"]
        )
    try:
        return Config.from_env(
            args.project_name,
            base_dir=base_dir or Path.cwd(),
            package_manager=args.pm,
            ux=args.ux,
            import_alias_enabled=args.alias,
            profile=args.profile,
            frontend_port=args.frontend_port,
            backend_port=args.backend_port,
        )
    except (pydantic.ValidationError, ValueError) as exc:
        raise ScaffoldValidationError(f"Invalid configuration: {exc}") from exc


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``stackforge`` / ``python -m stackforge.pipeline``."""
    args = _build_parser().parse_args(argv)

    project_root = Path.cwd() / args.project_name if args.project_name else None
    reporter = FailureReporter(project_root)

    try:
        config = resolve_config(args)
        reporter.project_root = config.project_root
        asyncio.run(Pipeline(config).run(dry_run=args.dry_run))
    except (Exception, KeyboardInterrupt) as exc:
        sys.exit(reporter.handle(exc))

    sys.exit(0)


if __name__ == "__main__":
    main()
