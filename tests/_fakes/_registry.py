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

"""Fake Registry backend for tests.

Provides a configurable :class:`FakeRegistry` that satisfies the
:class:`~cratekit.backends.registry.Registry` protocol.
"""

from __future__ import annotations

import asyncio

from cratekit.backends.registry import VersionQueryResult
from cratekit.versions import sort_versions


class FakeRegistry:
    """Configurable Registry test double."""

    def __init__(
        self,
        *,
        published: dict[str, list[str]] | None = None,
        failing: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        """Initialize with configurable state.

        Args:
            published: Crate name → published versions. Crates not listed
                are reported as never published.
            failing: Crate names whose query reports an unknown answer.
            delay: Seconds each query sleeps before answering.
        """
        self._published = {k.lower(): v for k, v in (published or {}).items()}
        self._failing = {n.lower() for n in failing or set()}
        self._delay = delay
        self.calls: list[str] = []

    async def list_published_versions(self, package_name: str) -> VersionQueryResult:
        """Answer from the configured state and record the call."""
        self.calls.append(package_name)
        if self._delay:
            await asyncio.sleep(self._delay)
        key = package_name.lower()
        if key in self._failing:
            return VersionQueryResult.unknown('ConnectError: connection refused')
        if key not in self._published:
            return VersionQueryResult.not_found()
        return VersionQueryResult.confirmed(sort_versions(self._published[key]))
