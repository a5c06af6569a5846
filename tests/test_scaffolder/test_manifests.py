"""Tests for the files stackforge writes itself (stackforge.scaffolder).

Covers:
- Root manifest scripts for pnpm and npm (never mixed)
- Project contract shape and invariants
- Example-environment rendering and port consistency
- Template discovery
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from stackforge.config import PortConfig
from stackforge.scaffolder import (
    ProjectContract,
    ServiceDescriptor,
    TemplateRenderer,
    build_contract,
    build_root_manifest,
    render_env_files,
    service_script,
    to_json,
)

pytestmark = pytest.mark.unit


def _env_map(content: str) -> dict[str, str]:
    pairs = {}
    for line in content.splitlines():
        if line and not line.startswith("#"):
            key, _, value = line.partition("=")
            pairs[key] = value
    return pairs


# ---------------------------------------------------------------------------
# Root manifest
# ---------------------------------------------------------------------------


class TestServiceScript:
    def test_pnpm_form(self):
        assert service_script("pnpm", "frontend", "dev") == "pnpm -C frontend dev"

    def test_npm_form(self):
        assert service_script("npm", "backend", "build") == "npm --prefix backend run build"

    def test_extra_args(self):
        assert service_script("pnpm", "frontend", "start", "-p 3000") == (
            "pnpm -C frontend start -- -p 3000"
        )


class TestRootManifest:
    EXPECTED_SCRIPTS = {
        "dev", "dev:web", "dev:api", "build", "build:web", "build:api", "start:web", "start:api",
    }

    def test_pnpm_scripts_only_use_dash_c(self, make_config):
        manifest = build_root_manifest(make_config(package_manager="pnpm"))
        scripts = manifest["scripts"]

        assert set(scripts) == self.EXPECTED_SCRIPTS
        for command in scripts.values():
            assert "pnpm -C " in command
            assert "npm --prefix" not in command
        assert scripts["dev"] == 'concurrently "pnpm -C frontend dev" "pnpm -C backend start:dev"'
        assert scripts["start:web"] == "pnpm -C frontend start -- -p 3000"

    def test_npm_scripts_only_use_prefix(self, make_config):
        manifest = build_root_manifest(make_config(package_manager="npm"))
        scripts = manifest["scripts"]

        for command in scripts.values():
            assert "npm --prefix " in command
            assert "pnpm" not in command
        assert scripts["build"] == (
            "npm --prefix frontend run build && npm --prefix backend run build"
        )
        assert scripts["start:api"] == "npm --prefix backend run start:prod"

    def test_metadata(self, make_config):
        manifest = build_root_manifest(make_config(project_name="shop"))
        assert manifest["name"] == "shop"
        assert manifest["private"] is True
        assert "concurrently" in manifest["devDependencies"]

    def test_start_web_uses_configured_port(self, make_config):
        config = make_config(ports=PortConfig(frontend=3500, backend=4000))
        assert build_root_manifest(config)["scripts"]["start:web"].endswith("-p 3500")


# ---------------------------------------------------------------------------
# Project contract
# ---------------------------------------------------------------------------


class TestProjectContract:
    def test_build_contract(self, make_config):
        contract = build_contract(make_config(project_name="shop", package_manager="npm"))

        assert contract.name == "shop"
        assert contract.package_manager == "npm"
        assert contract.runtime_version == "20"
        assert contract.service("web") == ServiceDescriptor(
            name="web", path="frontend", port=3000, health="/"
        )
        assert contract.service("api").health == "/health"

    def test_manifest_shape(self, make_config):
        data = build_contract(make_config(project_name="shop")).as_manifest()
        assert data == {
            "name": "shop",
            "apps": {
                "web": {"path": "frontend", "port": 3000, "health": "/"},
                "api": {"path": "backend", "port": 4000, "health": "/health"},
            },
            "packageManager": "pnpm",
            "node": "20",
        }

    def test_round_trip_through_disk(self, make_config, tmp_path: Path):
        contract = build_contract(make_config())
        path = tmp_path / "stackforge.json"
        path.write_text(to_json(contract.as_manifest()), encoding="utf-8")
        assert ProjectContract.load(path) == contract

    def test_duplicate_ports_rejected(self):
        with pytest.raises(ValidationError, match="distinct"):
            ProjectContract(
                name="x",
                services=[
                    ServiceDescriptor(name="web", path="web", port=3000),
                    ServiceDescriptor(name="api", path="api", port=3000),
                ],
                package_manager="pnpm",
                runtime_version="20",
            )

    @pytest.mark.parametrize("bad_path", ["/abs", "../outside", ".", "a/../../b"])
    def test_paths_must_stay_inside_root(self, bad_path: str):
        with pytest.raises(ValidationError, match="inside the project root"):
            ProjectContract(
                name="x",
                services=[ServiceDescriptor(name="web", path=bad_path, port=3000)],
                package_manager="pnpm",
                runtime_version="20",
            )

    def test_duplicate_paths_rejected(self):
        with pytest.raises(ValidationError, match="duplicate service path"):
            ProjectContract(
                name="x",
                services=[
                    ServiceDescriptor(name="web", path="app", port=3000),
                    ServiceDescriptor(name="api", path="app/", port=4000),
                ],
                package_manager="pnpm",
                runtime_version="20",
            )

    def test_unknown_service(self, make_config):
        with pytest.raises(KeyError):
            build_contract(make_config()).service("worker")


# ---------------------------------------------------------------------------
# Environment templates
# ---------------------------------------------------------------------------


class TestEnvFiles:
    def test_backend_env(self, make_config):
        config = make_config()
        files = render_env_files(config)
        backend = _env_map(files[config.backend_dir / ".env.example"])

        assert backend["PORT"] == "4000"
        assert backend["CORS_ORIGIN"] == "http://localhost:3000"
        assert backend["THROTTLE_TTL"] == "60"
        assert backend["THROTTLE_LIMIT"] == "120"
        for key in ("JWT_SECRET", "SUPABASE_URL", "SUPABASE_ANON_KEY", "DATABASE_URL"):
            assert key in backend

    def test_frontend_env(self, make_config):
        config = make_config(project_name="shop")
        files = render_env_files(config)
        frontend = _env_map(files[config.frontend_dir / ".env.local.example"])

        assert frontend == {
            "NEXT_PUBLIC_API_URL": "http://localhost:4000",
            "NEXT_PUBLIC_APP_NAME": "shop",
            "NEXT_PUBLIC_APP_ENV": "development",
        }

    def test_ports_match_contract(self, make_config):
        config = make_config(ports=PortConfig(frontend=3210, backend=4321))
        contract = build_contract(config)
        files = render_env_files(config)
        backend = _env_map(files[config.backend_dir / ".env.example"])
        frontend = _env_map(files[config.frontend_dir / ".env.local.example"])

        assert backend["PORT"] == str(contract.service("api").port)
        assert backend["CORS_ORIGIN"].endswith(f":{contract.service('web').port}")
        assert frontend["NEXT_PUBLIC_API_URL"].endswith(f":{contract.service('api').port}")

    @pytest.mark.parametrize(
        "template", ["backend.env.example.j2", "frontend.env.local.example.j2"]
    )
    def test_templates_are_packaged(self, template: str):
        renderer = TemplateRenderer()
        assert (renderer.template_dir / template).is_file()
        assert renderer.env.get_template(template) is not None

    def test_to_json_trailing_newline(self):
        text = to_json({"a": 1})
        assert text.endswith("}\n")
        assert json.loads(text) == {"a": 1}
