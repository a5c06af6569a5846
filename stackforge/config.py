"""stackforge configuration.

Every value the pipeline needs is resolved once, before any step is planned,
into a frozen ``Config``.  Steps close over the values they need at build
time, so nothing read here can change while the pipeline is running.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

PackageManager = Literal["pnpm", "npm"]
ProfileName = Literal["src-layout", "flat-layout"]

DEFAULT_IMPORT_ALIAS = "@/*"
CONTRACT_FILENAME = "stackforge.json"


class PortConfig(BaseModel):
    """Port allocation for the two generated services."""

    model_config = ConfigDict(frozen=True)

    frontend: int = Field(default=3000, ge=1, le=65535)
    backend: int = Field(default=4000, ge=1, le=65535)

    @model_validator(mode="after")
    def _ports_disjoint(self) -> "PortConfig":
        if self.frontend == self.backend:
            raise ValueError(
                f"frontend and backend ports must differ (both are {self.frontend})"
            )
        return self

    def as_dict(self) -> dict[str, int]:
        """Return a plain ``{service: port}`` mapping."""
        return {"frontend": self.frontend, "backend": self.backend}


class LayoutProfile(BaseModel):
    """How the web-app generator lays out the frontend.

    The two profiles differ in whether a ``src/`` directory is used and in
    whether the operator may switch the import alias off.
    """

    model_config = ConfigDict(frozen=True)

    name: ProfileName
    use_src_dir: bool
    alias_configurable: bool
    import_alias: str = DEFAULT_IMPORT_ALIAS


PROFILES: dict[str, LayoutProfile] = {
    "src-layout": LayoutProfile(
        name="src-layout", use_src_dir=True, alias_configurable=True
    ),
    "flat-layout": LayoutProfile(
        name="flat-layout", use_src_dir=False, alias_configurable=False
    ),
}


class Config(BaseModel):
    """Resolved configuration for one scaffolding run.

    Instances are immutable.  Build one with the CLI (or ``from_env``) and
    hand it to ``build_pipeline``.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., min_length=1)
    base_dir: Path = Field(default_factory=Path.cwd)
    package_manager: PackageManager = "pnpm"
    ux: bool = True
    import_alias_enabled: bool = True
    profile: ProfileName = "src-layout"
    ports: PortConfig = Field(default_factory=PortConfig)
    runtime_version: str = "20"
    frontend_dir_name: str = "frontend"
    backend_dir_name: str = "backend"

    @model_validator(mode="after")
    def _check_names(self) -> "Config":
        if self.frontend_dir_name == self.backend_dir_name:
            raise ValueError("frontend and backend directories must differ")
        for name in (self.frontend_dir_name, self.backend_dir_name):
            if Path(name).is_absolute() or ".." in Path(name).parts:
                raise ValueError(f"service directory must stay inside the project: {name}")
        return self

    # ------------------------------------------------------------------
    # Derived values (read-only properties)
    # ------------------------------------------------------------------

    @property
    def layout(self) -> LayoutProfile:
        return PROFILES[self.profile]

    @property
    def use_pnpm(self) -> bool:
        return self.package_manager == "pnpm"

    @property
    def import_alias(self) -> str:
        """The alias passed to the web-app generator, or ``""`` for none."""
        if not self.layout.alias_configurable:
            return self.layout.import_alias
        return self.layout.import_alias if self.import_alias_enabled else ""

    @property
    def project_root(self) -> Path:
        """Absolute path of the directory being scaffolded."""
        return (Path(self.base_dir) / self.project_name).resolve()

    @property
    def frontend_dir(self) -> Path:
        return self.project_root / self.frontend_dir_name

    @property
    def backend_dir(self) -> Path:
        return self.project_root / self.backend_dir_name

    @property
    def contract_path(self) -> Path:
        """Path to the persisted project contract."""
        return self.project_root / CONTRACT_FILENAME

    @property
    def backend_entry_path(self) -> Path:
        """The server entry file whose port binding gets patched."""
        return self.backend_dir / "src" / "main.ts"

    @classmethod
    def from_env(cls, project_name: str, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables plus explicit overrides.

        Recognised variables (all optional):
            STACKFORGE_PM, STACKFORGE_PROFILE,
            STACKFORGE_FRONTEND_PORT, STACKFORGE_BACKEND_PORT.

        Keyword overrides whose value is ``None`` are ignored, so CLI
        options that were not given fall through to the environment.
        """
        port_kwargs: dict[str, Any] = {}
        if os.environ.get("STACKFORGE_FRONTEND_PORT"):
            port_kwargs["frontend"] = int(os.environ["STACKFORGE_FRONTEND_PORT"])
        if os.environ.get("STACKFORGE_BACKEND_PORT"):
            port_kwargs["backend"] = int(os.environ["STACKFORGE_BACKEND_PORT"])

        kwargs: dict[str, Any] = {"project_name": project_name}
        if os.environ.get("STACKFORGE_PM"):
            kwargs["package_manager"] = os.environ["STACKFORGE_PM"]
        if os.environ.get("STACKFORGE_PROFILE"):
            kwargs["profile"] = os.environ["STACKFORGE_PROFILE"]

        frontend_port = overrides.pop("frontend_port", None)
        backend_port = overrides.pop("backend_port", None)
        if frontend_port is not None:
            port_kwargs["frontend"] = frontend_port
        if backend_port is not None:
            port_kwargs["backend"] = backend_port
        kwargs["ports"] = PortConfig(**port_kwargs)

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
