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

"""Built package artifacts: sidecar metadata and archive extraction.

The packaging step leaves one pair per crate in the artifacts directory::

    artifacts/
    ├── azure_core.json        ← sidecar: {"name": "azure_core", "vers": "0.22.0", ...}
    └── azure_core.crate       ← gzip tar (.crate, .tar.gz or .tgz)
                                  └── azure_core-0.22.0/
                                      ├── Cargo.toml
                                      ├── CHANGELOG.md
                                      └── README.md

Extraction Lifecycle::

    extracted_archive(archive, work_dir, "azure_core")
        │
        ├── rm -rf work_dir/azure_core     (leftovers from a crashed run)
        ├── check every member stays inside work_dir/azure_core
        ├── extract
        ├── yield crate root  ──→ caller reads CHANGELOG.md / README.md
        └── rm -rf work_dir/azure_core     (always, even on error)
"""

from __future__ import annotations

import json
import shutil
import tarfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from cratekit.errors import CratekitError, E
from cratekit.logging import get_logger

logger = get_logger(__name__)

SIDECAR_SUFFIX = '.json'
ARCHIVE_SUFFIXES: tuple[str, ...] = ('.crate', '.tar.gz', '.tgz')


@dataclass(frozen=True)
class SidecarMetadata:
    """Package identity recorded next to a built archive."""

    name: str
    version: str


@dataclass(frozen=True)
class ArtifactPair:
    """A sidecar file and the archive sharing its base name."""

    name: str
    metadata_path: Path
    archive_path: Path


def read_sidecar(path: Path) -> SidecarMetadata:
    """Read package name and version from a sidecar JSON file.

    The version is taken from ``vers`` (cargo's publish metadata) or
    ``version``.

    Raises:
        CratekitError: ``CK-ARTIFACT-INVALID`` if the file is unreadable,
            not a JSON object, or lacks a name or version.
    """
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CratekitError(
            code=E.ARTIFACT_INVALID,
            message=f'Cannot read sidecar {path}: {exc}',
        ) from exc

    if not isinstance(data, dict):
        raise CratekitError(code=E.ARTIFACT_INVALID, message=f'Sidecar {path} is not a JSON object')

    name = data.get('name')
    version = data.get('vers', data.get('version'))
    if not isinstance(name, str) or not name or not isinstance(version, str) or not version:
        raise CratekitError(
            code=E.ARTIFACT_INVALID,
            message=f'Sidecar {path} has no "name" and "vers" string fields',
            hint='Regenerate the artifact with the packaging step.',
        )
    return SidecarMetadata(name=name, version=version)


def find_artifact(artifacts_dir: Path, name: str) -> ArtifactPair:
    """Locate the sidecar/archive pair for ``name`` in ``artifacts_dir``.

    Raises:
        CratekitError: ``CK-ARTIFACT-NOT-FOUND`` if either file is missing.
    """
    metadata_path = artifacts_dir / f'{name}{SIDECAR_SUFFIX}'
    archive_path = next(
        (p for p in (artifacts_dir / f'{name}{suffix}' for suffix in ARCHIVE_SUFFIXES) if p.is_file()),
        None,
    )
    if not metadata_path.is_file() or archive_path is None:
        missing = metadata_path.name if not metadata_path.is_file() else f'{name}.crate'
        raise CratekitError(
            code=E.ARTIFACT_NOT_FOUND,
            message=f'No artifact for {name} in {artifacts_dir} (missing {missing})',
            hint=f'Each artifact needs {name}.json next to {name}.crate.',
        )
    return ArtifactPair(name=name, metadata_path=metadata_path, archive_path=archive_path)


def _check_members(tar: tarfile.TarFile, dest: Path) -> list[tarfile.TarInfo]:
    root = dest.resolve()
    members = tar.getmembers()
    for member in members:
        target = (root / member.name).resolve()
        if not target.is_relative_to(root):
            raise CratekitError(
                code=E.EXTRACTION_FAILED,
                message=f'Archive member {member.name!r} escapes the extraction directory',
            )
        if member.issym() or member.islnk():
            link = (target.parent / member.linkname).resolve()
            if member.islnk():
                link = (root / member.linkname).resolve()
            if not link.is_relative_to(root):
                raise CratekitError(
                    code=E.EXTRACTION_FAILED,
                    message=f'Archive link {member.name!r} points outside the extraction directory',
                )
    return members


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _crate_root(dest: Path, name: str, version: str | None) -> Path:
    if version is not None and (dest / f'{name}-{version}').is_dir():
        return dest / f'{name}-{version}'
    entries = list(dest.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return dest


@contextmanager
def extracted_archive(
    archive_path: Path,
    work_dir: Path,
    name: str,
    version: str | None = None,
) -> Iterator[Path]:
    """Extract ``archive_path`` into ``work_dir/<name>`` for the duration of the block.

    Anything already at ``work_dir/<name>`` is removed first, and the
    directory is removed again on exit, whether or not the block raised.

    Args:
        archive_path: Gzip tar archive.
        work_dir: Scratch root.
        name: Package name; names the scratch directory.
        version: Package version, used to find ``<name>-<version>/``.

    Yields:
        The crate root inside the extracted tree.

    Raises:
        CratekitError: ``CK-EXTRACTION-FAILED`` if the archive is corrupt
            or has members escaping the scratch directory.
    """
    dest = work_dir / name
    if dest.exists():
        logger.debug('removing_stale_extraction', path=str(dest))
    _remove(dest)
    dest.mkdir(parents=True)

    try:
        try:
            with tarfile.open(archive_path, mode='r:gz') as tar:
                members = _check_members(tar, dest)
                tar.extractall(dest, members=members, filter='data')  # noqa: S202 - members checked above
        except (OSError, EOFError, zlib.error, tarfile.TarError) as exc:
            raise CratekitError(
                code=E.EXTRACTION_FAILED,
                message=f'Cannot extract {archive_path}: {exc}',
                hint='Rebuild the artifact; the archive may be truncated or corrupt.',
            ) from exc
        logger.debug('archive_extracted', archive=str(archive_path), dest=str(dest))
        yield _crate_root(dest, name, version)
    finally:
        _remove(dest)


def find_document(root: Path, filename: str) -> Path | None:
    """Return the file in ``root`` named ``filename``, ignoring case."""
    exact = root / filename
    if exact.is_file():
        return exact
    wanted = filename.lower()
    for candidate in sorted(root.iterdir()):
        if candidate.name.lower() == wanted and candidate.is_file():
            return candidate
    return None


def read_document(path: Path) -> str:
    """Read a text document from an extracted archive.

    Raises:
        CratekitError: ``CK-EXTRACTION-FAILED`` if the file cannot be
            read as UTF-8.
    """
    try:
        return path.read_bytes().decode('utf-8')
    except (OSError, UnicodeDecodeError) as exc:
        raise CratekitError(
            code=E.EXTRACTION_FAILED,
            message=f'Cannot read {path.name}: {exc}',
        ) from exc


__all__ = [
    'ARCHIVE_SUFFIXES',
    'ArtifactPair',
    'SidecarMetadata',
    'extracted_archive',
    'find_artifact',
    'find_document',
    'read_document',
    'read_sidecar',
]
