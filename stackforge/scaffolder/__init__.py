"""stackforge scaffolder -- the files stackforge writes itself.

Generators (create-next-app, the Nest CLI, ...) produce the bulk of the
workspace.  This package renders the remaining pieces from a resolved
``Config``: the root ``package.json``, the project contract, and the two
example-environment files.

Quick usage::

    from stackforge.scaffolder import build_contract, build_root_manifest

    contract = build_contract(config)
    manifest = build_root_manifest(config)
"""

from stackforge.scaffolder.manifests import (
    ProjectContract,
    ServiceDescriptor,
    build_contract,
    build_root_manifest,
    render_env_files,
    service_script,
    to_json,
)
from stackforge.scaffolder.templates import TemplateRenderer

__all__ = [
    "ProjectContract",
    "ServiceDescriptor",
    "TemplateRenderer",
    "build_contract",
    "build_root_manifest",
    "render_env_files",
    "service_script",
    "to_json",
]
