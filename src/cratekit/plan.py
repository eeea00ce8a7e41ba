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

"""Release coordination: impact analysis plus descriptors for a batch.

For every candidate crate the coordinator records who else must be
validated and builds the crate's release descriptor. One candidate
failing never stops the others.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Candidate           │ A crate someone wants to release.              │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Impacted set        │ Crates that (transitively) depend on the       │
    │                     │ candidate and must be re-validated.            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Plan entry          │ Either a descriptor or the error that stopped  │
    │                     │ it. Never both, never neither.                 │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Semaphore           │ At most N candidates extract and query at      │
    │                     │ once.                                          │
    └─────────────────────┴────────────────────────────────────────────────┘

Plan JSON (written by :meth:`ReleasePlan.save`)::

    {
      "entries": {
        "azure_core": {"descriptor": {"package_id": "azure_core", ..., "deployable": true}, "error": null},
        "azure_identity": {"descriptor": null, "error": "[CK-EXTRACTION-FAILED] ...", "error_code": "CK-EXTRACTION-FAILED"}
      },
      "impacted": {"azure_core": ["azure_identity", "azure_storage_blob"]},
      "validation_paths": {"azure_core": ["/ws/sdk/identity/azure_identity", ...]}
    }
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cratekit.artifacts import find_artifact
from cratekit.backends.registry import Registry
from cratekit.descriptor import Deployable, ReleaseDescriptor, build_release_descriptor
from cratekit.errors import CratekitError, E
from cratekit.graph import DependencyGraph, transitive_dependents
from cratekit.logging import candidate_context, get_logger

logger = get_logger(__name__)

DEFAULT_CONCURRENCY = 4


@dataclass(frozen=True)
class PlanEntry:
    """Outcome for one candidate: a descriptor or an error.

    Attributes:
        candidate: Candidate crate name.
        descriptor: The release descriptor, if it could be built.
        error: Why the descriptor could not be built.
        error_code: ``CK-*`` code of the error, if it was a cratekit error.
    """

    candidate: str
    descriptor: ReleaseDescriptor | None = None
    error: str | None = None
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        """Whether a descriptor was built."""
        return self.descriptor is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        data: dict[str, Any] = {
            'descriptor': self.descriptor.to_dict() if self.descriptor is not None else None,
            'error': self.error,
        }
        if self.error_code is not None:
            data['error_code'] = self.error_code
        return data


@dataclass
class ReleasePlan:
    """Batch result of :func:`coordinate_release`.

    Attributes:
        entries: Candidate → descriptor-or-error.
        impacted: Candidate → sorted names of transitively dependent crates.
        validation_paths: Candidate → sorted directories of those crates.
    """

    entries: dict[str, PlanEntry] = field(default_factory=dict)
    impacted: dict[str, list[str]] = field(default_factory=dict)
    validation_paths: dict[str, list[str]] = field(default_factory=dict)

    @property
    def descriptors(self) -> dict[str, ReleaseDescriptor]:
        """Candidates whose descriptor was built."""
        return {name: e.descriptor for name, e in self.entries.items() if e.descriptor is not None}

    @property
    def failures(self) -> dict[str, str]:
        """Candidate → error message for every failed candidate."""
        return {name: e.error or '' for name, e in self.entries.items() if not e.ok}

    @property
    def deployable(self) -> list[str]:
        """Sorted candidates whose version is confirmed unpublished."""
        return sorted(name for name, d in self.descriptors.items() if d.deployable is Deployable.YES)

    @property
    def ok(self) -> bool:
        """Whether every candidate produced a descriptor."""
        return all(e.ok for e in self.entries.values())

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            'entries': {name: entry.to_dict() for name, entry in self.entries.items()},
            'impacted': self.impacted,
            'validation_paths': self.validation_paths,
        }

    def save(self, path: Path) -> None:
        """Write the plan as JSON.

        Args:
            path: Destination file path.

        Raises:
            OSError: If the file cannot be written.
        """
        try:
            path.write_text(json.dumps(self.to_dict(), indent=2) + '\n', encoding='utf-8')
        except OSError as exc:
            raise OSError(f'Failed to write release plan to {path}: {exc}') from exc
        logger.info('release_plan_saved', path=str(path), candidates=len(self.entries))

    @classmethod
    def load(cls, path: Path) -> ReleasePlan:
        """Load a plan written by :meth:`save`.

        Raises:
            CratekitError: ``CK-PLAN-INVALID`` if the file cannot be read
                or does not hold a release plan.
        """
        try:
            data = json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as exc:
            raise CratekitError(
                code=E.PLAN_INVALID,
                message=f'Cannot read release plan {path}: {exc}',
            ) from exc

        try:
            entries: dict[str, PlanEntry] = {}
            for name, raw in data['entries'].items():
                descriptor = raw.get('descriptor')
                entries[name] = PlanEntry(
                    candidate=name,
                    descriptor=ReleaseDescriptor.from_dict(descriptor) if descriptor is not None else None,
                    error=raw.get('error'),
                    error_code=raw.get('error_code'),
                )
            plan = cls(
                entries=entries,
                impacted={k: list(v) for k, v in data.get('impacted', {}).items()},
                validation_paths={k: list(v) for k, v in data.get('validation_paths', {}).items()},
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise CratekitError(
                code=E.PLAN_INVALID,
                message=f'Release plan {path} is malformed: {exc!r}',
            ) from exc
        return plan


async def _describe(
    candidate: str,
    *,
    artifacts_dir: Path,
    oracle: Registry,
    work_dir: Path,
    semaphore: asyncio.Semaphore,
) -> ReleaseDescriptor:
    # The sidecar must name the candidate: work_dir/<candidate> is then
    # owned by exactly one task.
    async with semaphore:
        with candidate_context(candidate):
            pair = find_artifact(artifacts_dir, candidate)
            return await build_release_descriptor(
                pair.metadata_path,
                pair.archive_path,
                oracle=oracle,
                work_dir=work_dir,
                package_id=candidate,
            )


async def coordinate_release(
    candidates: Iterable[str],
    graph: DependencyGraph,
    *,
    artifacts_dir: Path,
    oracle: Registry,
    work_dir: Path,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> ReleasePlan:
    """Build a release plan for ``candidates``.

    Args:
        candidates: Candidate crate names; duplicates are processed once.
        graph: The workspace dependency graph.
        artifacts_dir: Directory holding ``<name>.json`` + archive pairs.
        oracle: Registry answering published-version queries.
        work_dir: Scratch root for archive extraction.
        concurrency: Maximum candidates processed at once.

    Returns:
        A :class:`ReleasePlan` with one entry per distinct candidate.
    """
    names = list(dict.fromkeys(candidates))
    plan = ReleasePlan()

    for name in names:
        impacted = transitive_dependents(graph, name)
        if name not in graph:
            logger.debug('candidate_not_in_graph', candidate=name)
        plan.impacted[name] = sorted(n.name for n in impacted)
        plan.validation_paths[name] = sorted(str(n.path) for n in impacted)

    semaphore = asyncio.Semaphore(max(1, concurrency))
    tasks = [
        asyncio.create_task(
            _describe(
                name,
                artifacts_dir=artifacts_dir,
                oracle=oracle,
                work_dir=work_dir,
                semaphore=semaphore,
            ),
            name=f'describe-{name}',
        )
        for name in names
    ]
    done = await asyncio.gather(*tasks, return_exceptions=True)

    for name, outcome in zip(names, done, strict=True):
        if isinstance(outcome, CratekitError):
            logger.error('candidate_failed', candidate=name, code=outcome.code.value, error=str(outcome))
            plan.entries[name] = PlanEntry(candidate=name, error=str(outcome), error_code=outcome.code.value)
        elif isinstance(outcome, Exception):
            logger.error('candidate_failed', candidate=name, error=repr(outcome))
            plan.entries[name] = PlanEntry(candidate=name, error=f'Unexpected error: {outcome!r}')
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            plan.entries[name] = PlanEntry(candidate=name, descriptor=outcome)

    logger.info(
        'release_plan_built',
        candidates=len(names),
        failed=len(plan.failures),
        deployable=len(plan.deployable),
    )
    return plan


__all__ = [
    'PlanEntry',
    'ReleasePlan',
    'coordinate_release',
]
