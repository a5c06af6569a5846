"""Pipeline step variants.

A pipeline is a plain ordered list of these models.  Each variant carries
only the data needed to execute it; ``StepExecutor`` dispatches on the
``kind`` tag.  Because steps are data rather than closures, a pipeline can
be printed, compared and tested without spawning any process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class PatchRule(BaseModel):
    """Describes the invocation a patch step rewrites.

    With the defaults, ``await app.listen(3000);`` becomes
    ``await app.listen(Number(process.env.PORT) || 4000);``.
    """

    model_config = ConfigDict(frozen=True)

    call: str = "app.listen"
    literal_args: str = "3000"
    replacement_args: str = "Number(process.env.PORT) || 4000"

    @property
    def literal(self) -> str:
        return f"await {self.call}({self.literal_args});"

    @property
    def replacement(self) -> str:
        return f"await {self.call}({self.replacement_args});"


class _StepBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., min_length=1)


class GeneratorStep(_StepBase):
    """Invoke an external scaffolding tool."""

    kind: Literal["generator"] = "generator"
    command: str
    args: tuple[str, ...] = ()
    cwd: Path
    hide_output: bool = True

    @property
    def argv(self) -> list[str]:
        return list(self.args)


class InstallStep(_StepBase):
    """Install packages with the package manager into one directory.

    ``packages`` empty means a plain ``install`` of the existing manifest.
    """

    kind: Literal["install"] = "install"
    command: str
    install_args: tuple[str, ...] = ("install",)
    packages: tuple[str, ...] = ()
    cwd: Path
    hide_output: bool = True

    @property
    def argv(self) -> list[str]:
        return [*self.install_args, *self.packages]


class PatchStep(_StepBase):
    """Rewrite one invocation in a previously generated source file."""

    kind: Literal["patch"] = "patch"
    path: Path
    rule: PatchRule = Field(default_factory=PatchRule)


class WriteStep(_StepBase):
    """Write a file whose content was fully rendered at planning time."""

    kind: Literal["write"] = "write"
    path: Path
    content: str


Step = Annotated[
    Union[GeneratorStep, InstallStep, PatchStep, WriteStep],
    Field(discriminator="kind"),
]


def describe_step(step: Step) -> str:
    """One-line, human-readable summary of what *step* will do."""
    if isinstance(step, (GeneratorStep, InstallStep)):
        return " ".join([step.command, *step.argv]) + f"  (in {step.cwd})"
    if isinstance(step, PatchStep):
        return f"patch {step.rule.call}() in {step.path}"
    return f"write {step.path}"
