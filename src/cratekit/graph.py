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

"""Dependency graph and impact analysis for workspace crates.

Builds one :class:`PackageNode` per crate name, links nodes along declared
dependencies, inverts those links into a dependents index, and answers
"what could break if this crate changes?".

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dependency              │ If crate A uses crate B, B is a dependency │
    │                         │ of A. Arrow A → B.                         │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dependent               │ The same arrow read backwards: A is a      │
    │                         │ dependent of B.                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Impact set              │ Everyone who depends on B, directly or     │
    │                         │ through a chain. Changing B may break all  │
    │                         │ of them, so they get validated too.        │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Visited set             │ A list of crates already looked at. Stops  │
    │                         │ the walk from going round a cycle forever. │
    └─────────────────────────┴─────────────────────────────────────────────┘

Architecture — Edge Direction::

    azure_storage_blob ──→ azure_core ←── azure_identity
           (depends on)        (depended on by)

    nodes["azure_storage_blob"].dependencies = {azure_core}
    nodes["azure_core"].dependents = {azure_storage_blob, azure_identity}

Data Flow::

    metadata snapshot      manifests_from_records()    build_graph()
    ┌────────────────┐    ┌─────────────────────┐    ┌──────────────────┐
    │ cargo metadata │───→│ scope + shape       │───→│ nodes, forward   │
    │ packages[]     │    │ filtering           │    │ edges, dependents│
    └────────────────┘    └─────────────────────┘    └────────┬─────────┘
                                                              │
                                              transitive_dependents(root)

Usage::

    from cratekit.graph import build_workspace_graph, transitive_dependents
    from cratekit.metadata import load_cargo_metadata

    graph = build_workspace_graph(lambda: load_cargo_metadata(root), workspace_root=root)
    impacted = transitive_dependents(graph, 'azure_core')
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from cratekit.errors import CratekitError
from cratekit.logging import get_logger
from cratekit.metadata import ManifestRecord
from cratekit.workspace import DEFAULT_SERVICE_ROOT, PackageManifest, manifests_from_records

logger = get_logger(__name__)


@dataclass(eq=False)
class PackageNode:
    """A crate in the graph.

    Nodes compare and hash by identity, so sets of nodes never merge two
    distinct crates and a node can live in its neighbours' edge sets.

    Attributes:
        manifest: The crate's manifest.
        dependencies: Nodes this crate depends on.
        dependents: Nodes that depend on this crate. Filled in by
            :func:`index_dependents`.
    """

    manifest: PackageManifest
    dependencies: set[PackageNode] = field(default_factory=set)
    dependents: set[PackageNode] = field(default_factory=set)

    @property
    def name(self) -> str:
        """The crate name."""
        return self.manifest.name

    @property
    def version(self) -> str:
        """The crate version."""
        return self.manifest.version

    @property
    def path(self) -> Path:
        """The crate directory."""
        return self.manifest.path

    def __repr__(self) -> str:
        """Short form; the edge sets are cyclic."""
        return f'PackageNode({self.name!r})'


@dataclass
class DependencyGraph:
    """Crate name → :class:`PackageNode` mapping for one metadata snapshot.

    Attributes:
        nodes: One node per unique crate name.
        indexed: Whether :func:`index_dependents` has run.
    """

    nodes: dict[str, PackageNode] = field(default_factory=dict)
    indexed: bool = False

    @property
    def names(self) -> list[str]:
        """Sorted list of all crate names in the graph."""
        return sorted(self.nodes)

    def get(self, name: str) -> PackageNode | None:
        """Return the node named ``name``, or ``None``."""
        return self.nodes.get(name)

    def __contains__(self, name: object) -> bool:
        """Return whether a crate named ``name`` is in the graph."""
        return name in self.nodes

    def __len__(self) -> int:
        """Return the number of crates in the graph."""
        return len(self.nodes)


def index_dependents(graph: DependencyGraph) -> None:
    """Record every dependency edge A → B as A in ``B.dependents``.

    Runs once per graph; later calls do nothing.
    """
    if graph.indexed:
        return
    for node in graph.nodes.values():
        for dep in node.dependencies:
            dep.dependents.add(node)
    graph.indexed = True


def build_graph(manifests: Iterable[PackageManifest]) -> DependencyGraph:
    """Build an indexed dependency graph from package manifests.

    The first manifest for a name wins; later duplicates are dropped.
    Dependencies on names outside the graph (external crates) and
    self-dependencies create no edge.

    Args:
        manifests: Manifests from
            :func:`~cratekit.workspace.manifests_from_records`.

    Returns:
        A :class:`DependencyGraph` with forward edges and dependents.
    """
    graph = DependencyGraph()
    for manifest in manifests:
        if manifest.name in graph.nodes:
            logger.warning('duplicate_crate_ignored', crate=manifest.name, path=str(manifest.path))
            continue
        graph.nodes[manifest.name] = PackageNode(manifest=manifest)

    edges = 0
    for node in graph.nodes.values():
        for dep_name in node.manifest.dependencies:
            dep = graph.nodes.get(dep_name)
            if dep is None or dep is node:
                continue
            if dep not in node.dependencies:
                node.dependencies.add(dep)
                edges += 1

    index_dependents(graph)
    logger.debug('built_dependency_graph', packages=len(graph), edges=edges)
    return graph


def build_workspace_graph(
    source: Callable[[], Iterable[ManifestRecord]],
    *,
    workspace_root: Path,
    scope: Path | str | None = None,
    service_root: str = DEFAULT_SERVICE_ROOT,
) -> DependencyGraph:
    """Capture a metadata snapshot and build the graph for ``scope``.

    A metadata source that cannot be read is logged and yields an empty
    graph; the caller decides whether that is fatal.

    Args:
        source: Callable returning the snapshot records, e.g.
            ``lambda: load_cargo_metadata(root)``.
        workspace_root: Workspace root directory.
        scope: Optional directory restricting the graph.
        service_root: Name of the directory holding the services.

    Returns:
        The indexed :class:`DependencyGraph`.
    """
    try:
        records = list(source())
    except CratekitError as exc:
        logger.error('workspace_metadata_unavailable', code=exc.code.value, error=str(exc))
        return DependencyGraph(indexed=True)

    manifests = manifests_from_records(
        records,
        workspace_root=workspace_root,
        scope=scope,
        service_root=service_root,
    )
    return build_graph(manifests)


def _walk(start: PackageNode, neighbours: Callable[[PackageNode], set[PackageNode]]) -> set[PackageNode]:
    visited: set[PackageNode] = set()
    queue: deque[PackageNode] = deque(neighbours(start))
    while queue:
        current = queue.popleft()
        if current is start or current in visited:
            continue
        visited.add(current)
        queue.extend(neighbours(current))
    return visited


def _node(graph: DependencyGraph, root: PackageNode | str) -> PackageNode | None:
    if isinstance(root, PackageNode):
        return root if graph.nodes.get(root.name) is root else None
    return graph.nodes.get(root)


def transitive_dependents(graph: DependencyGraph, root: PackageNode | str) -> set[PackageNode]:
    """Return every crate that depends on ``root``, directly or transitively (BFS).

    If B depends on A, and C depends on B, then
    ``transitive_dependents(graph, "A")`` returns the nodes ``{B, C}``.
    Cycles are tolerated and ``root`` is never part of the result.

    Args:
        graph: The dependency graph.
        root: A crate name or node of ``graph``.

    Returns:
        A fresh set of nodes; empty if ``root`` is not in the graph or
        has no dependents.
    """
    node = _node(graph, root)
    if node is None:
        return set()
    index_dependents(graph)
    return _walk(node, lambda n: n.dependents)


def transitive_dependencies(graph: DependencyGraph, root: PackageNode | str) -> set[PackageNode]:
    """Return every crate ``root`` depends on, directly or transitively (BFS)."""
    node = _node(graph, root)
    if node is None:
        return set()
    return _walk(node, lambda n: n.dependencies)


def validation_paths(graph: DependencyGraph, root: PackageNode | str) -> list[Path]:
    """Return the sorted directories of every crate impacted by ``root``.

    These are the extra crates a change to ``root`` must be validated
    against.
    """
    return sorted((n.path for n in transitive_dependents(graph, root)), key=str)


__all__ = [
    'DependencyGraph',
    'PackageNode',
    'build_graph',
    'build_workspace_graph',
    'index_dependents',
    'transitive_dependencies',
    'transitive_dependents',
    'validation_paths',
]
