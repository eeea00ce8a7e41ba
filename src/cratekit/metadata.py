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

"""Workspace metadata snapshot for Cargo workspaces.

The snapshot is the JSON document printed by::

    cargo metadata --format-version 1 --no-deps

It is captured once per invocation and never re-read. Only the fields
cratekit needs are kept::

    {
      "packages": [
        {
          "name": "azure_storage_blob",
          "version": "0.2.0",
          "manifest_path": "/ws/sdk/storage/azure_storage_blob/Cargo.toml",
          "dependencies": [{"name": "azure_core", ...}, ...],
          "publish": null          ← null: publishable; [] or false: private
        },
        ...
      ]
    }

Every failure to obtain or decode the snapshot raises
``CK-METADATA-UNAVAILABLE``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cratekit.backends._run import TimeoutExpired, run_command
from cratekit.errors import CratekitError, E
from cratekit.logging import get_logger

logger = get_logger(__name__)

CARGO_METADATA_CMD: list[str] = ['cargo', 'metadata', '--format-version', '1', '--no-deps']

# cargo metadata on a large workspace can take a while.
DEFAULT_METADATA_TIMEOUT = 120


@dataclass(frozen=True)
class ManifestRecord:
    """One raw ``packages[]`` entry from the metadata snapshot.

    Attributes:
        name: Crate name.
        version: Crate version string.
        manifest_path: Absolute path to the crate's ``Cargo.toml``.
        dependencies: Declared dependency names in manifest order.
        is_publishable: ``False`` when the manifest sets ``publish = false``.
    """

    name: str
    version: str
    manifest_path: Path
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    is_publishable: bool = True


def _unavailable(message: str, exc: BaseException | None = None) -> CratekitError:
    hint = 'Run the command manually in the workspace root to see the full error.'
    if exc is not None and not isinstance(exc, CratekitError):
        message = f'{message}: {exc}'
    return CratekitError(code=E.METADATA_UNAVAILABLE, message=message, hint=hint)


def _is_publishable(publish: Any) -> bool:  # noqa: ANN401 - raw JSON value
    # cargo emits null for "publish anywhere", a registry list otherwise.
    if publish is None or publish is True:
        return True
    if publish is False:
        return False
    return bool(publish)


def parse_metadata(data: Any) -> list[ManifestRecord]:  # noqa: ANN401 - raw JSON value
    """Convert a decoded metadata document into manifest records.

    Args:
        data: The decoded ``cargo metadata`` JSON document.

    Returns:
        Records in snapshot order.

    Raises:
        CratekitError: ``CK-METADATA-UNAVAILABLE`` if the document does
            not have the expected shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get('packages'), list):
        raise _unavailable("Workspace metadata has no 'packages' list")

    records: list[ManifestRecord] = []
    for entry in data['packages']:
        try:
            deps = tuple(dep['name'] for dep in entry.get('dependencies') or [])
            records.append(
                ManifestRecord(
                    name=entry['name'],
                    version=entry['version'],
                    manifest_path=Path(entry['manifest_path']),
                    dependencies=deps,
                    is_publishable=_is_publishable(entry.get('publish')),
                )
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise _unavailable('Malformed package entry in workspace metadata', exc) from exc

    logger.debug('metadata_parsed', packages=len(records))
    return records


def read_metadata_file(path: Path) -> list[ManifestRecord]:
    """Read a previously captured metadata snapshot from ``path``."""
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as exc:
        raise _unavailable(f'Cannot read workspace metadata from {path}', exc) from exc
    return parse_metadata(data)


def load_cargo_metadata(
    workspace_root: Path,
    *,
    timeout: int = DEFAULT_METADATA_TIMEOUT,
) -> list[ManifestRecord]:
    """Run ``cargo metadata`` in ``workspace_root`` and parse its output.

    The command runs with an explicit working directory; the process
    working directory is never changed.

    Args:
        workspace_root: Directory containing the workspace ``Cargo.toml``.
        timeout: Seconds before the command is killed.

    Returns:
        Manifest records for every workspace member.

    Raises:
        CratekitError: ``CK-METADATA-UNAVAILABLE`` if cargo is missing,
            fails, times out, or prints something that is not metadata.
    """
    try:
        result = run_command(CARGO_METADATA_CMD, cwd=workspace_root, timeout=timeout)
    except (FileNotFoundError, TimeoutExpired) as exc:
        raise _unavailable('cargo metadata could not be run', exc) from exc

    if not result.ok:
        stderr = result.stderr.strip().splitlines()
        detail = stderr[-1] if stderr else f'exit code {result.return_code}'
        raise _unavailable(f'cargo metadata failed in {workspace_root}: {detail}')

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise _unavailable('cargo metadata printed invalid JSON', exc) from exc
    return parse_metadata(data)


__all__ = [
    'CARGO_METADATA_CMD',
    'ManifestRecord',
    'load_cargo_metadata',
    'parse_metadata',
    'read_metadata_file',
]
