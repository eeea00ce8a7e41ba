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

"""Semantic version ordering for registry version lists.

Ordering rules::

    1.0.0-alpha < 1.0.0-alpha.1 < 1.0.0-alpha.2 < 1.0.0-beta < 1.0.0 < 1.0.1 < 2.0.0
    └── label text first, then numeric suffix ──┘   release after its prereleases

Build metadata (``+...``) is ignored for ordering. Strings that are not
``MAJOR.MINOR.PATCH[-PRE][+BUILD]`` sort before every valid version,
alphabetically among themselves.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from cratekit.errors import CratekitError, E

_SEMVER_RE = re.compile(
    r'^v?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)'
    r'(?:-(?P<pre>[0-9A-Za-z.-]+))?'
    r'(?:\+[0-9A-Za-z.-]+)?$'
)

# Splits "beta.2" / "rc2" / "alpha-10" into label and numeric suffix.
_PRE_SUFFIX_RE = re.compile(r'^(?P<label>.*?)[.-]?(?P<num>\d+)$')

# Sort key shape: (valid, major, minor, patch, is_release, label, number, text).
VersionKey = tuple[int, int, int, int, int, str, int, str]


@dataclass(frozen=True)
class SemanticVersion:
    """A parsed ``MAJOR.MINOR.PATCH[-PRE]`` version.

    Attributes:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        label: Prerelease label without its numeric suffix (``"beta"``
            for ``1.0.0-beta.2``); empty for releases.
        number: Prerelease numeric suffix, ``-1`` when there is none.
        prerelease: Whether this is a prerelease.
    """

    major: int
    minor: int
    patch: int
    label: str = ''
    number: int = -1
    prerelease: bool = False

    def __str__(self) -> str:
        """Canonical form without build metadata."""
        base = f'{self.major}.{self.minor}.{self.patch}'
        if not self.prerelease:
            return base
        if self.number < 0:
            return f'{base}-{self.label}'
        return f'{base}-{self.label}.{self.number}' if self.label else f'{base}-{self.number}'


def parse_version(text: str) -> SemanticVersion:
    """Parse ``text`` as a semantic version.

    Raises:
        CratekitError: ``CK-VERSION-INVALID`` if ``text`` is not a
            semantic version.
    """
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        raise CratekitError(
            code=E.VERSION_INVALID,
            message=f'Not a semantic version: {text!r}',
            hint='Expected MAJOR.MINOR.PATCH with an optional -prerelease suffix.',
        )

    pre = m.group('pre')
    label, number = '', -1
    if pre is not None:
        s = _PRE_SUFFIX_RE.match(pre)
        if s is not None:
            label, number = s.group('label'), int(s.group('num'))
        else:
            label = pre

    return SemanticVersion(
        major=int(m.group('major')),
        minor=int(m.group('minor')),
        patch=int(m.group('patch')),
        label=label,
        number=number,
        prerelease=pre is not None,
    )


def version_sort_key(text: str) -> VersionKey:
    """Return a key that sorts version strings by semantic precedence."""
    try:
        v = parse_version(text)
    except CratekitError:
        return (0, 0, 0, 0, 0, '', 0, text)
    return (1, v.major, v.minor, v.patch, 0 if v.prerelease else 1, v.label, v.number, text)


def sort_versions(versions: Iterable[str]) -> list[str]:
    """Return ``versions`` in ascending semantic order.

    >>> sort_versions(['1.0.0', '1.0.0-beta', '2.0.0'])
    ['1.0.0-beta', '1.0.0', '2.0.0']
    """
    return sorted(versions, key=version_sort_key)


__all__ = [
    'SemanticVersion',
    'parse_version',
    'sort_versions',
    'version_sort_key',
]
