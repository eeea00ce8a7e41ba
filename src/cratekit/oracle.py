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

"""Per-run memo of registry answers.

A :class:`VersionOracle` wraps a :class:`~cratekit.backends.registry.Registry`
so each package name is asked about at most once per run, however many
candidates need it::

    descriptor(azure_core) ─┐
    descriptor(azure_core) ─┼──→ one task: GET /api/v1/crates/azure_core/versions
    prefetch([azure_core])─┘

Names are case-insensitive: ``Azure_Core`` and ``azure_core`` share an
entry. A fresh oracle is made for every run, so nothing outlives it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from cratekit.backends.registry import Registry, VersionQueryResult
from cratekit.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFETCH_CONCURRENCY = 8


class VersionOracle:
    """Memoising facade over a registry.

    Args:
        registry: Backend answering published-version queries.
        concurrency: Upper bound on queries in flight during
            :meth:`prefetch`.
    """

    def __init__(self, registry: Registry, *, concurrency: int = DEFAULT_PREFETCH_CONCURRENCY) -> None:
        """Initialize with a registry backend and a prefetch bound."""
        self._registry = registry
        self._concurrency = max(1, concurrency)
        self._results: dict[str, asyncio.Task[VersionQueryResult]] = {}

    async def _query(self, key: str) -> VersionQueryResult:
        try:
            return await self._registry.list_published_versions(key)
        except Exception as exc:  # noqa: BLE001 - every registry failure is an unknown answer
            reason = f'{type(exc).__name__}: {exc}'
            logger.warning('registry_query_failed', crate=key, error=reason)
            return VersionQueryResult.unknown(reason)

    async def list_published_versions(self, package_name: str) -> VersionQueryResult:
        """Return the registry answer for ``package_name``, asking at most once."""
        key = package_name.lower()
        task = self._results.get(key)
        if task is None:
            task = asyncio.ensure_future(self._query(key))
            self._results[key] = task
        else:
            logger.debug('registry_query_memoised', crate=key)
        return await asyncio.shield(task)

    async def prefetch(self, names: Iterable[str]) -> dict[str, VersionQueryResult]:
        """Query several packages concurrently.

        Args:
            names: Package names; duplicates (ignoring case) are asked once.

        Returns:
            Lower-cased name → result.
        """
        keys = list(dict.fromkeys(name.lower() for name in names))
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _one(key: str) -> VersionQueryResult:
            async with semaphore:
                return await self.list_published_versions(key)

        results = await asyncio.gather(*(_one(key) for key in keys))
        logger.debug('registry_prefetched', crates=len(keys))
        return dict(zip(keys, results, strict=True))

    def __len__(self) -> int:
        """Return the number of distinct names queried so far."""
        return len(self._results)


__all__ = [
    'VersionOracle',
]
