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

"""Release descriptors for built crates.

A :class:`ReleaseDescriptor` is everything the publish stage needs to
decide about and describe one candidate: identity, tag, whether the
version can still be published, and its release notes.

Deployability Mapping::

    ┌──────────────────────────────────┬──────────────┬──────────┐
    │ Registry answer                  │ Deployable   │ JSON     │
    ├──────────────────────────────────┼──────────────┼──────────┤
    │ confirmed, version not listed    │ YES          │ true     │
    │ not found (never published)      │ YES          │ true     │
    │ confirmed, version listed        │ NO           │ false    │
    │ unknown (query failed)           │ UNKNOWN      │ null     │
    └──────────────────────────────────┴──────────────┴──────────┘

An unknown registry answer is never defaulted to yes or no.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cratekit.artifacts import SidecarMetadata, extracted_archive, find_document, read_document, read_sidecar
from cratekit.backends.registry import Registry, VersionQueryResult
from cratekit.changelog import extract_changelog_entry
from cratekit.errors import CratekitError, E
from cratekit.logging import get_logger

logger = get_logger(__name__)

CHANGELOG_FILENAME = 'CHANGELOG.md'
README_FILENAME = 'README.md'


class Deployable(enum.Enum):
    """Whether a version can be published."""

    YES = 'yes'
    NO = 'no'
    UNKNOWN = 'unknown'

    @classmethod
    def from_query(cls, result: VersionQueryResult, version: str) -> Deployable:
        """Map a registry answer for ``version`` to a deployable state."""
        published = result.contains(version)
        if published is None:
            return cls.UNKNOWN
        return cls.NO if published else cls.YES

    def to_json(self) -> bool | None:
        """Return ``True``, ``False`` or ``None``."""
        if self is Deployable.UNKNOWN:
            return None
        return self is Deployable.YES

    @classmethod
    def from_json(cls, value: bool | None) -> Deployable:
        """Inverse of :meth:`to_json`."""
        if value is None:
            return cls.UNKNOWN
        return cls.YES if value else cls.NO


def release_tag(package_id: str, version: str) -> str:
    """Return the git tag for a release, ``{package_id}_{version}``."""
    return f'{package_id}_{version}'


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Release metadata for one candidate.

    Attributes:
        package_id: Crate name.
        version: Crate version being released.
        tag: ``{package_id}_{version}``.
        deployable: Whether the version is still unpublished.
        changelog: Changelog section for ``version``; may be empty.
        readme: README content; may be empty.
    """

    package_id: str
    version: str
    tag: str
    deployable: Deployable
    changelog: str = ''
    readme: str = ''

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            'package_id': self.package_id,
            'version': self.version,
            'tag': self.tag,
            'deployable': self.deployable.to_json(),
            'changelog': self.changelog,
            'readme': self.readme,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseDescriptor:
        """Deserialize from :meth:`to_dict` output."""
        try:
            return cls(
                package_id=data['package_id'],
                version=data['version'],
                tag=data['tag'],
                deployable=Deployable.from_json(data.get('deployable')),
                changelog=data.get('changelog', ''),
                readme=data.get('readme', ''),
            )
        except (KeyError, TypeError) as exc:
            raise CratekitError(
                code=E.PLAN_INVALID,
                message=f'Malformed release descriptor: {exc}',
            ) from exc


def _read_release_notes(archive_path: Path, work_dir: Path, sidecar: SidecarMetadata) -> tuple[str, str]:
    with extracted_archive(archive_path, work_dir, sidecar.name, sidecar.version) as root:
        changelog = ''
        changelog_path = find_document(root, CHANGELOG_FILENAME)
        if changelog_path is not None:
            changelog = extract_changelog_entry(read_document(changelog_path), sidecar.version)
        else:
            logger.debug('no_changelog', crate=sidecar.name)

        readme_path = find_document(root, README_FILENAME)
        readme = read_document(readme_path) if readme_path is not None else ''
    return changelog, readme


async def build_release_descriptor(
    metadata_path: Path,
    archive_path: Path,
    *,
    oracle: Registry,
    work_dir: Path,
    package_id: str | None = None,
) -> ReleaseDescriptor:
    """Build the release descriptor for one artifact pair.

    Extraction runs in a worker thread. The scratch directory
    ``work_dir/<name>`` is cleared before and removed after, so repeated
    runs give identical descriptors.

    Args:
        metadata_path: Sidecar JSON file.
        archive_path: Archive sharing the sidecar's base name.
        oracle: Registry answering published-version queries, normally a
            :class:`~cratekit.oracle.VersionOracle`.
        work_dir: Scratch root for extraction.
        package_id: Crate the sidecar must name, when known.

    Returns:
        The :class:`ReleaseDescriptor`.

    Raises:
        CratekitError: ``CK-ARTIFACT-INVALID`` for a bad sidecar or one
            naming a crate other than ``package_id``,
            ``CK-EXTRACTION-FAILED`` for a bad archive.
    """
    sidecar = read_sidecar(metadata_path)
    if package_id is not None and sidecar.name != package_id:
        raise CratekitError(
            code=E.ARTIFACT_INVALID,
            message=f'Sidecar {metadata_path} names {sidecar.name!r}, expected {package_id!r}',
            hint='The artifact was packaged for a different crate; rebuild it.',
        )
    changelog, readme = await asyncio.to_thread(_read_release_notes, archive_path, work_dir, sidecar)

    result = await oracle.list_published_versions(sidecar.name)
    deployable = Deployable.from_query(result, sidecar.version)

    descriptor = ReleaseDescriptor(
        package_id=sidecar.name,
        version=sidecar.version,
        tag=release_tag(sidecar.name, sidecar.version),
        deployable=deployable,
        changelog=changelog,
        readme=readme,
    )
    logger.info(
        'release_descriptor_built',
        crate=descriptor.package_id,
        version=descriptor.version,
        deployable=deployable.value,
        registry=result.status.value,
    )
    return descriptor


__all__ = [
    'Deployable',
    'ReleaseDescriptor',
    'build_release_descriptor',
    'release_tag',
]
