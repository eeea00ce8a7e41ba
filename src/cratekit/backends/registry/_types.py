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

"""Shared types for the registry subpackage."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

__all__ = [
    'QueryStatus',
    'VersionQueryResult',
]


class QueryStatus(enum.Enum):
    """Outcome of a published-versions query."""

    CONFIRMED = 'confirmed'
    NOT_FOUND = 'not_found'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class VersionQueryResult:
    """Published versions of one package, or why they are not known.

    Build instances with :meth:`confirmed`, :meth:`not_found` or
    :meth:`unknown`. ``NOT_FOUND`` (never published) and ``UNKNOWN``
    (the registry could not be asked) are different answers and must not
    be folded together by callers.

    Attributes:
        status: Which of the three outcomes this is.
        versions: Ascending published versions; only set when
            ``CONFIRMED``.
        error: Why the query failed; only set when ``UNKNOWN``.
    """

    status: QueryStatus
    versions: tuple[str, ...] = field(default_factory=tuple)
    error: str = ''

    @classmethod
    def confirmed(cls, versions: list[str] | tuple[str, ...]) -> VersionQueryResult:
        """The registry answered with this (ascending) version list."""
        return cls(status=QueryStatus.CONFIRMED, versions=tuple(versions))

    @classmethod
    def not_found(cls) -> VersionQueryResult:
        """The registry has never seen this package."""
        return cls(status=QueryStatus.NOT_FOUND)

    @classmethod
    def unknown(cls, error: str) -> VersionQueryResult:
        """The registry could not be queried."""
        return cls(status=QueryStatus.UNKNOWN, error=error)

    @property
    def is_confirmed(self) -> bool:
        """Whether the registry returned a version list."""
        return self.status is QueryStatus.CONFIRMED

    @property
    def is_not_found(self) -> bool:
        """Whether the package was never published."""
        return self.status is QueryStatus.NOT_FOUND

    @property
    def is_unknown(self) -> bool:
        """Whether the query failed."""
        return self.status is QueryStatus.UNKNOWN

    def contains(self, version: str) -> bool | None:
        """Return whether ``version`` is published.

        ``None`` when the answer is unknown; ``False`` for a package
        that was never published.
        """
        if self.status is QueryStatus.UNKNOWN:
            return None
        return version in self.versions
