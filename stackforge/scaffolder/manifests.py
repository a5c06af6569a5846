"""Files stackforge authors itself: root manifest, project contract, env templates.

Everything here is rendered from a resolved ``Config`` into strings before
the pipeline starts; the pipeline's write steps only put them on disk.
"""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stackforge.config import Config
from stackforge.scaffolder.catalog import ROOT_DEV_DEPENDENCIES
from stackforge.scaffolder.templates import TemplateRenderer

BACKEND_ENV_TEMPLATE = "backend.env.example.j2"
FRONTEND_ENV_TEMPLATE = "frontend.env.local.example.j2"
BACKEND_ENV_FILENAME = ".env.example"
FRONTEND_ENV_FILENAME = ".env.local.example"


# ---------------------------------------------------------------------------
# Project contract
# ---------------------------------------------------------------------------


class ServiceDescriptor(BaseModel):
    """One generated sub-application in the project contract."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1, description="Path relative to the project root")
    port: int = Field(..., ge=1, le=65535)
    health: str = Field(default="/", description="Health-check path")


class ProjectContract(BaseModel):
    """Durable record of what was scaffolded and where each service lives.

    Ports must be pairwise distinct and every path must be a unique,
    relative location inside the project root.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    services: list[ServiceDescriptor]
    package_manager: str
    runtime_version: str

    @model_validator(mode="after")
    def _check_services(self) -> "ProjectContract":
        ports = [s.port for s in self.services]
        if len(set(ports)) != len(ports):
            raise ValueError(f"service ports must be distinct: {ports}")

        names = [s.name for s in self.services]
        if len(set(names)) != len(names):
            raise ValueError(f"service names must be unique: {names}")

        seen: set[str] = set()
        for service in self.services:
            rel = PurePosixPath(service.path)
            if rel.is_absolute() or ".." in rel.parts or str(rel) in ("", "."):
                raise ValueError(
                    f"service path must resolve inside the project root: {service.path}"
                )
            if str(rel) in seen:
                raise ValueError(f"duplicate service path: {service.path}")
            seen.add(str(rel))
        return self

    def service(self, name: str) -> ServiceDescriptor:
        for descriptor in self.services:
            if descriptor.name == name:
                return descriptor
        raise KeyError(name)

    def as_manifest(self) -> dict[str, Any]:
        """Return the on-disk JSON shape."""
        return {
            "name": self.name,
            "apps": {
                s.name: {"path": s.path, "port": s.port, "health": s.health}
                for s in self.services
            },
            "packageManager": self.package_manager,
            "node": self.runtime_version,
        }

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> "ProjectContract":
        """Inverse of :meth:`as_manifest`."""
        return cls(
            name=data["name"],
            services=[
                ServiceDescriptor(name=name, **entry)
                for name, entry in data.get("apps", {}).items()
            ],
            package_manager=data["packageManager"],
            runtime_version=str(data["node"]),
        )

    @classmethod
    def load(cls, path: Path) -> "ProjectContract":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.from_manifest(json.loads(raw))


def build_contract(config: Config) -> ProjectContract:
    """Describe the two services the pipeline generates."""
    return ProjectContract(
        name=config.project_name,
        services=[
            ServiceDescriptor(
                name="web",
                path=config.frontend_dir_name,
                port=config.ports.frontend,
                health="/",
            ),
            ServiceDescriptor(
                name="api",
                path=config.backend_dir_name,
                port=config.ports.backend,
                health="/health",
            ),
        ],
        package_manager=config.package_manager,
        runtime_version=config.runtime_version,
    )


# ---------------------------------------------------------------------------
# Root manifest
# ---------------------------------------------------------------------------


def service_script(
    package_manager: str, service_dir: str, script: str, extra: str = ""
) -> str:
    """Command that runs *script* inside *service_dir* from the project root.

    pnpm uses ``pnpm -C <dir> <script>``; npm uses
    ``npm --prefix <dir> run <script>``.
    """
    if package_manager == "pnpm":
        command = f"pnpm -C {service_dir} {script}"
    else:
        command = f"npm --prefix {service_dir} run {script}"
    return f"{command} -- {extra}" if extra else command


def build_root_manifest(config: Config) -> dict[str, Any]:
    """Root ``package.json`` that drives both services."""
    pm = config.package_manager
    web = config.frontend_dir_name
    api = config.backend_dir_name

    dev_web = service_script(pm, web, "dev")
    dev_api = service_script(pm, api, "start:dev")
    build_web = service_script(pm, web, "build")
    build_api = service_script(pm, api, "build")

    return {
        "name": config.project_name,
        "private": True,
        "scripts": {
            "dev": f'concurrently "{dev_web}" "{dev_api}"',
            "dev:web": dev_web,
            "dev:api": dev_api,
            "build": f"{build_web} && {build_api}",
            "build:web": build_web,
            "build:api": build_api,
            "start:web": service_script(pm, web, "start", f"-p {config.ports.frontend}"),
            "start:api": service_script(pm, api, "start:prod"),
        },
        "devDependencies": dict(ROOT_DEV_DEPENDENCIES),
    }


# ---------------------------------------------------------------------------
# Environment templates
# ---------------------------------------------------------------------------


def render_env_files(
    config: Config, renderer: TemplateRenderer | None = None
) -> dict[Path, str]:
    """Render the backend and frontend example-environment files.

    Returns:
        Mapping of absolute output path to file content, backend first.
    """
    renderer = renderer or TemplateRenderer()
    context = {
        "project_name": config.project_name,
        "ports": config.ports.as_dict(),
        "app_env": "development",
        "throttle_ttl": 60,
        "throttle_limit": 120,
    }
    return {
        config.backend_dir / BACKEND_ENV_FILENAME: renderer.render(
            BACKEND_ENV_TEMPLATE, context
        ),
        config.frontend_dir / FRONTEND_ENV_FILENAME: renderer.render(
            FRONTEND_ENV_TEMPLATE, context
        ),
    }


def to_json(data: dict[str, Any]) -> str:
    """Pretty-printed JSON with a trailing newline."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
