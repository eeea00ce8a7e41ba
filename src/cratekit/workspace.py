# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Package manifests for a service-organised Cargo workspace.

Crates live two levels below the service root::

    <workspace>/
    └── sdk/                        ← service root
        ├── core/                   ← service directory "core"
        │   ├── azure_core/         ← crate
        │   └── typespec_client_core/
        └── storage/
            └── azure_storage_blob/

A metadata record becomes a :class:`PackageManifest` only when it is
publishable, lies inside the requested scope, and matches that shape.
Anything else is dropped; shape mismatches are logged at debug level
only since they are expected for tooling crates outside ``sdk/``.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Service directory   │ The folder that groups crates of one Azure    │
    │                     │ service, e.g. "storage" or "keyvault".        │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SDK type            │ "mgmt" for management-plane crates (name      │
    │                     │ contains "mgmt"), "client" for everything     │
    │                     │ else. Decided by the name alone.              │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Scope               │ A directory; only crates under it are kept.   │
    │                     │ "storage" means <workspace>/sdk/storage.      │
    └─────────────────────┴────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from cratekit.logging import get_logger
from cratekit.metadata import ManifestRecord

logger = get_logger(__name__)

DEFAULT_SERVICE_ROOT = 'sdk'

SDK_TYPE_MGMT = 'mgmt'
SDK_TYPE_CLIENT = 'client'


def classify_sdk_type(name: str) -> str:
    """Return ``'mgmt'`` for management-plane crate names, else ``'client'``."""
    return SDK_TYPE_MGMT if SDK_TYPE_MGMT in name.lower() else SDK_TYPE_CLIENT


def service_directory(package_dir: Path, service_root: str = DEFAULT_SERVICE_ROOT) -> str | None:
    """Return the service directory name for a crate directory.

    The crate must sit at ``<...>/<service_root>/<service>/<crate...>``;
    at least one path component has to follow the service name.

    Args:
        package_dir: The crate directory (parent of its ``Cargo.toml``).
        service_root: Name of the directory holding the services.

    Returns:
        The ``<service>`` component, or ``None`` if the path has another
        shape.
    """
    parts = package_dir.parts
    for i, part in enumerate(parts):
        if part == service_root and len(parts) - i >= 3:
            return parts[i + 1]
    return None


@dataclass(frozen=True)
class PackageManifest:
    """A workspace crate that takes part in the dependency graph.

    Attributes:
        name: Crate name; unique within a graph.
        version: Version string from the manifest.
        path: Crate directory.
        service_directory: Service the crate belongs to.
        sdk_type: ``'mgmt'`` or ``'client'``.
        dependencies: Declared dependency names, in manifest order,
            without duplicates.
    """

    name: str
    version: str
    path: Path
    service_directory: str
    sdk_type: str
    dependencies: tuple[str, ...] = field(default_factory=tuple)


def resolve_scope(
    scope: Path | str | None,
    workspace_root: Path,
    service_root: str = DEFAULT_SERVICE_ROOT,
) -> Path:
    """Turn a scope argument into an absolute, symlink-free directory.

    ``None`` selects the whole service root. A relative scope is taken
    relative to ``<workspace_root>/<service_root>``.
    """
    base = workspace_root.resolve() / service_root
    if scope is None or str(scope) == '':
        return base
    scope_path = Path(scope)
    return (scope_path if scope_path.is_absolute() else base / scope_path).resolve()


def manifests_from_records(
    records: Iterable[ManifestRecord],
    *,
    workspace_root: Path,
    scope: Path | str | None = None,
    service_root: str = DEFAULT_SERVICE_ROOT,
) -> list[PackageManifest]:
    """Select and convert metadata records into package manifests.

    ``cargo metadata`` reports absolute manifest paths, so the workspace
    root, the scope and every crate directory are resolved before they are
    compared; a relative or symlinked root selects the same crates as its
    absolute form.

    Args:
        records: Raw records from :mod:`cratekit.metadata`.
        workspace_root: Workspace root directory.
        scope: Optional directory restricting which crates are kept.
        service_root: Name of the directory holding the services.

    Returns:
        Manifests in record order, with resolved crate paths.
    """
    root = workspace_root.resolve()
    scope_dir = resolve_scope(scope, root, service_root)
    manifests: list[PackageManifest] = []

    for record in records:
        package_dir = record.manifest_path.parent.resolve()
        if not record.is_publishable:
            logger.debug('skip_unpublishable', crate=record.name)
            continue
        if not package_dir.is_relative_to(scope_dir):
            logger.debug('skip_out_of_scope', crate=record.name, path=str(package_dir))
            continue

        relative = package_dir.relative_to(root) if package_dir.is_relative_to(root) else package_dir
        service = service_directory(relative, service_root)
        if service is None:
            logger.debug('skip_unexpected_layout', crate=record.name, path=str(package_dir))
            continue

        manifests.append(
            PackageManifest(
                name=record.name,
                version=record.version,
                path=package_dir,
                service_directory=service,
                sdk_type=classify_sdk_type(record.name),
                dependencies=tuple(dict.fromkeys(record.dependencies)),
            )
        )

    logger.debug('manifests_selected', scope=str(scope_dir), kept=len(manifests))
    return manifests


__all__ = [
    'DEFAULT_SERVICE_ROOT',
    'SDK_TYPE_CLIENT',
    'SDK_TYPE_MGMT',
    'PackageManifest',
    'classify_sdk_type',
    'manifests_from_records',
    'resolve_scope',
    'service_directory',
]
