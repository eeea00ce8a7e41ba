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

"""Version-scoped changelog sections.

Given a ``CHANGELOG.md`` such as::

    # Release History

    ## 0.3.0 (Unreleased)          ← heading for 0.3.0, status is optional

    ### Features Added             ← deeper headings stay in the section
    - Blob tiering.

    ## 0.2.0 (2025-01-14)          ← same level: the 0.3.0 section ends here

:func:`extract_changelog_entry` returns the body of exactly one release
section. ``0.3.0`` never matches ``0.3.0-beta.1``. Lines inside fenced
code blocks are never treated as headings.
"""

from __future__ import annotations

import re

_HEADING_RE = re.compile(r'^(?P<hashes>#{1,6})\s+(?P<title>.*?)\s*#*\s*$')
_FENCE_RE = re.compile(r'^\s{0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$')


def _version_heading_re(version: str) -> re.Pattern[str]:
    # Optional "[...]" or "v" around the version, then end of title or a
    # separator before the status / date.
    return re.compile(rf'^\[?v?{re.escape(version)}\]?(?:$|[\s:(])')


def _closes(fence: str, line: str) -> bool:
    # Same character, at least as long, nothing after it.
    match = _FENCE_RE.match(line)
    if match is None or match.group('info').strip():
        return False
    closing = match.group('fence')
    return closing[0] == fence[0] and len(closing) >= len(fence)


def extract_changelog_entry(text: str, version: str) -> str:
    """Return the changelog section for ``version``.

    Args:
        text: Full changelog markdown.
        version: Version whose section is wanted.

    Returns:
        The section body without its heading and without surrounding
        blank lines; empty if no heading matches.
    """
    wanted = _version_heading_re(version)
    level = 0
    collected: list[str] = []
    fence = ''

    for line in text.splitlines():
        heading = None
        opening = None if fence else _FENCE_RE.match(line)
        if fence:
            if _closes(fence, line):
                fence = ''
        elif opening is not None:
            fence = opening.group('fence')
        else:
            heading = _HEADING_RE.match(line)

        if level:
            if heading is not None and len(heading.group('hashes')) <= level:
                break
            collected.append(line)
        elif heading is not None and wanted.match(heading.group('title')):
            level = len(heading.group('hashes'))

    return '\n'.join(collected).strip('\n').rstrip()


__all__ = [
    'extract_changelog_entry',
]
