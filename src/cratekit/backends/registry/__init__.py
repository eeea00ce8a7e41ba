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

"""Registry protocol for cratekit.

The :class:`Registry` protocol defines the async interface for asking a
package registry which versions of a package it has published.
Implementations:

- :class:`~cratekit.backends.registry.crates_io.CratesIoRegistry` — crates.io API

Operations are async because they involve network I/O with potential
latency and rate limiting. They never raise for registry trouble; the
outcome is always a :class:`VersionQueryResult`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cratekit.backends.registry._types import QueryStatus as QueryStatus, VersionQueryResult as VersionQueryResult
from cratekit.backends.registry.crates_io import CratesIoRegistry as CratesIoRegistry

__all__ = [
    'CratesIoRegistry',
    'QueryStatus',
    'Registry',
    'VersionQueryResult',
]


@runtime_checkable
class Registry(Protocol):
    """Protocol for package registry queries."""

    async def list_published_versions(self, package_name: str) -> VersionQueryResult:
        """Return the published versions of ``package_name``.

        Args:
            package_name: Package name on the registry; matched
                case-insensitively.

        Returns:
            ``confirmed`` with ascending versions, ``not_found`` if the
            package was never published, or ``unknown`` if the registry
            could not be queried.
        """
        ...
