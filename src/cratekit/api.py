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

"""Programmatic entry point for cratekit.

:class:`Cratekit` ties one workspace root to its ``cratekit.toml`` and
hands every setting to the operation that needs it.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Cratekit                │ One workspace. Create it, then call         │
    │                         │ ``graph()`` or ``plan()``.                  │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ config                  │ ``cratekit.toml`` from the root, read the   │
    │                         │ first time it is needed.                    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ oracle                  │ A fresh registry memo for each ``plan()``   │
    │                         │ call, so answers never leak between runs.   │
    └─────────────────────────┴─────────────────────────────────────────────┘

Where each setting goes::

    registry_url, user_agent,      → CratesIoRegistry.from_config()
    http_timeout, http_pool_size,
    max_retries
    service_root                   → build_workspace_graph(service_root=...)
    artifacts_dir, work_dir        → coordinate_release(), resolved against the root
    concurrency                    → coordinate_release() and VersionOracle

Usage::

    from cratekit.api import Cratekit

    ck = Cratekit('/path/to/azure-sdk-for-rust')
    plan = await ck.plan(['azure_core'])
    plan.save(Path('release-plan.json'))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from cratekit.backends.registry import CratesIoRegistry, Registry
from cratekit.config import CratekitConfig, load_config
from cratekit.graph import DependencyGraph, build_workspace_graph
from cratekit.logging import get_logger
from cratekit.metadata import DEFAULT_METADATA_TIMEOUT, ManifestRecord, load_cargo_metadata
from cratekit.oracle import VersionOracle
from cratekit.plan import ReleasePlan, coordinate_release

logger = get_logger(__name__)


class Cratekit:
    """High-level cratekit API bound to one workspace.

    Args:
        workspace_root: Workspace root, holding ``Cargo.toml`` and
            optionally ``cratekit.toml``.
        registry: Registry backend to use instead of the configured
            crates.io one.
        metadata_timeout: Seconds allowed for ``cargo metadata``.
    """

    def __init__(
        self,
        workspace_root: str | Path,
        *,
        registry: Registry | None = None,
        metadata_timeout: int = DEFAULT_METADATA_TIMEOUT,
    ) -> None:
        """Initialize with the workspace root and optional overrides."""
        self._root = Path(workspace_root).resolve()
        self._registry = registry
        self._metadata_timeout = metadata_timeout
        self._config: CratekitConfig | None = None

    @property
    def root(self) -> Path:
        """Resolved workspace root."""
        return self._root

    @property
    def config(self) -> CratekitConfig:
        """Loaded ``cratekit.toml`` (lazy)."""
        if self._config is None:
            self._config = load_config(self._root)
        return self._config

    @property
    def artifacts_dir(self) -> Path:
        """Configured artifacts directory."""
        return self.config.resolve(self._root, self.config.artifacts_dir)

    @property
    def work_dir(self) -> Path:
        """Configured scratch directory."""
        return self.config.resolve(self._root, self.config.work_dir)

    def registry(self) -> Registry:
        """Return the injected registry, or crates.io as configured."""
        if self._registry is None:
            self._registry = CratesIoRegistry.from_config(self.config)
        return self._registry

    def oracle(self) -> VersionOracle:
        """Return a new per-run memo over :meth:`registry`."""
        return VersionOracle(self.registry(), concurrency=self.config.concurrency)

    def _cargo_metadata(self) -> list[ManifestRecord]:
        return load_cargo_metadata(self._root, timeout=self._metadata_timeout)

    def graph(
        self,
        scope: Path | str | None = None,
        *,
        source: Callable[[], Iterable[ManifestRecord]] | None = None,
    ) -> DependencyGraph:
        """Build the dependency graph of the workspace.

        Args:
            scope: Directory restricting the graph; relative to the
                configured service root.
            source: Metadata source; ``cargo metadata`` in the root by
                default.
        """
        return build_workspace_graph(
            source if source is not None else self._cargo_metadata,
            workspace_root=self._root,
            scope=scope,
            service_root=self.config.service_root,
        )

    async def plan(
        self,
        candidates: Iterable[str],
        *,
        graph: DependencyGraph | None = None,
        scope: Path | str | None = None,
    ) -> ReleasePlan:
        """Build the release plan for ``candidates``.

        Args:
            candidates: Crate names to release.
            graph: Prebuilt graph; built with :meth:`graph` when omitted.
            scope: Scope for the graph when it is built here.
        """
        if graph is None:
            graph = self.graph(scope)
        logger.debug(
            'planning_release',
            root=str(self._root),
            artifacts=str(self.artifacts_dir),
            concurrency=self.config.concurrency,
        )
        return await coordinate_release(
            candidates,
            graph,
            artifacts_dir=self.artifacts_dir,
            oracle=self.oracle(),
            work_dir=self.work_dir,
            concurrency=self.config.concurrency,
        )


__all__ = [
    'Cratekit',
]
