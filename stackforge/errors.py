"""Error taxonomy for the scaffolding pipeline.

Every fatal error derives from ``ScaffoldError`` and propagates unchanged to
the top-level ``FailureReporter``.  Non-fatal patch outcomes are *not*
exceptions; see ``stackforge.patcher.PatchOutcome``.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all scaffolding failures."""


class ScaffoldValidationError(ScaffoldError):
    """Bad or missing input, detected before anything is written to disk.

    Attributes:
        hint: Optional follow-up lines shown to the operator below the
            error message (e.g. how to install a missing package manager).
    """

    def __init__(self, message: str, hint: list[str] | None = None) -> None:
        self.hint = list(hint or [])
        super().__init__(message)


class PrerequisiteMissing(ScaffoldError):
    """A file or directory an upstream generator should have produced is absent."""

    def __init__(self, path: object, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Required path not found: {path}")


class ExecutionError(ScaffoldError):
    """An external command exited with a non-zero status (or could not start)."""

    def __init__(
        self,
        command: str,
        args: list[str],
        returncode: int | None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr

        invocation = " ".join([command, *self.args_list])
        if returncode is None:
            message = f"Command could not be started: {invocation}"
        else:
            message = f"Command failed with exit code {returncode}: {invocation}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)
