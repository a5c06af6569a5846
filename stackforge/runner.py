"""Process runner for external generator and package-manager commands.

Wraps :func:`stackforge.utils.run_command` with the contract every step
relies on: the working directory must exist, a non-zero exit becomes an
``ExecutionError``, and quiet mode captures output and turns down the
package managers' log level.
"""

from __future__ import annotations

from pathlib import Path

from stackforge.errors import ExecutionError, PrerequisiteMissing
from stackforge.utils import run_command, tail_lines

# Environment applied when a command's output is hidden.
QUIET_ENV: dict[str, str] = {
    "npm_config_loglevel": "error",
    "PNPM_REPORTER": "silent",
}


class ProcessRunner:
    """Runs one external command at a time and waits for it to finish.

    There is no timeout and no retry: a generator either completes or its
    step fails.
    """

    def __init__(self, stderr_tail: int = 20) -> None:
        self.stderr_tail = stderr_tail

    async def run(
        self,
        command: str,
        args: list[str],
        cwd: str | Path,
        hide_output: bool = True,
    ) -> str:
        """Run ``command args...`` inside *cwd*.

        Args:
            command: Executable name (resolved on ``PATH``).
            args: Arguments passed verbatim.
            cwd: Working directory.  Must already exist.
            hide_output: Capture stdout/stderr instead of streaming them to
                the terminal, and silence package-manager logging.

        Returns:
            Captured stdout (empty when output is not hidden).

        Raises:
            PrerequisiteMissing: If *cwd* does not exist.
            ExecutionError: If the command cannot be started or exits non-zero.
        """
        workdir = Path(cwd)
        if not workdir.is_dir():
            raise PrerequisiteMissing(
                workdir, f"Working directory does not exist: {workdir}"
            )

        try:
            returncode, stdout, stderr = await run_command(
                [command, *args],
                cwd=workdir,
                capture=hide_output,
                env=QUIET_ENV if hide_output else None,
            )
        except FileNotFoundError as exc:
            raise ExecutionError(command, args, None, str(exc)) from exc

        if returncode != 0:
            raise ExecutionError(
                command, args, returncode, tail_lines(stderr, self.stderr_tail)
            )
        return stdout

    async def is_available(self, command: str) -> bool:
        """Return ``True`` if ``command --version`` runs successfully."""
        try:
            returncode, _, _ = await run_command([command, "--version"])
        except (FileNotFoundError, PermissionError):
            return False
        return returncode == 0
