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

"""Tests for cratekit.changelog module."""

from __future__ import annotations

from cratekit.changelog import extract_changelog_entry

CHANGELOG = """# Release History

## 0.3.0 (Unreleased)

### Features Added

- Blob tiering.

### Bugs Fixed

- Retry on 503.

## 0.3.0-beta.1 (2025-02-01)

- Preview of tiering.

## 0.2.0 (2025-01-14)

### Breaking Changes

- Renamed `BlobClient::get`.

## [0.1.0] - 2024-12-01

Initial release.
"""


class TestExtractChangelogEntry:
    """extract_changelog_entry returns exactly one release section."""

    def test_section_with_subheadings(self) -> None:
        """Deeper headings stay inside the section."""
        entry = extract_changelog_entry(CHANGELOG, '0.3.0')
        assert entry == '### Features Added\n\n- Blob tiering.\n\n### Bugs Fixed\n\n- Retry on 503.'

    def test_exact_version_only(self) -> None:
        """0.3.0 does not match the 0.3.0-beta.1 heading."""
        assert extract_changelog_entry(CHANGELOG, '0.3.0-beta.1') == '- Preview of tiering.'

    def test_dated_heading(self) -> None:
        """A date after the version is allowed."""
        assert 'Renamed' in extract_changelog_entry(CHANGELOG, '0.2.0')
        assert 'Preview' not in extract_changelog_entry(CHANGELOG, '0.2.0')

    def test_bracketed_last_section(self) -> None:
        """A bracketed version at the end of the file runs to EOF."""
        assert extract_changelog_entry(CHANGELOG, '0.1.0') == 'Initial release.'

    def test_missing_version(self) -> None:
        """No matching heading yields an empty string."""
        assert extract_changelog_entry(CHANGELOG, '9.9.9') == ''

    def test_empty_text(self) -> None:
        """An empty changelog yields an empty string."""
        assert extract_changelog_entry('', '1.0.0') == ''

    def test_prefix_version_not_matched(self) -> None:
        """1.0.0 does not match a 1.0.01 heading."""
        assert extract_changelog_entry('## 1.0.01\n\nx\n', '1.0.0') == ''

    def test_higher_level_heading_ends_section(self) -> None:
        """A shallower heading closes the section."""
        text = '### 1.0.0\n\nnotes\n\n## Older\n\nstuff\n'
        assert extract_changelog_entry(text, '1.0.0') == 'notes'

    def test_fenced_heading_ignored(self) -> None:
        """Headings inside code fences do not end the section."""
        text = '## 1.0.0\n\n```md\n## 0.9.0\n```\n\n## 0.9.0\n\nold\n'
        assert extract_changelog_entry(text, '1.0.0') == '```md\n## 0.9.0\n```'

    def test_tilde_line_inside_backtick_fence(self) -> None:
        """A ~~~ line does not close a ``` fence."""
        text = '## 1.0.0\n\n```\n~~~\n## 0.9.0\n```\n\nafter\n\n## 0.9.0\n\nold\n'
        assert extract_changelog_entry(text, '1.0.0') == '```\n~~~\n## 0.9.0\n```\n\nafter'

    def test_shorter_fence_does_not_close(self) -> None:
        """A closing fence must be at least as long as the opening one."""
        text = '## 1.0.0\n\n````\n```\n## 0.9.0\n````\n\n## 0.9.0\n'
        assert extract_changelog_entry(text, '1.0.0') == '````\n```\n## 0.9.0\n````'

    def test_fence_with_info_string_does_not_close(self) -> None:
        """A fence line carrying an info string opens, never closes."""
        text = '## 1.0.0\n\n```\n```rust\n## 0.9.0\n```\n\n## 0.9.0\n'
        assert extract_changelog_entry(text, '1.0.0') == '```\n```rust\n## 0.9.0\n```'
