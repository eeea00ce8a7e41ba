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

"""Builders for on-disk artifact pairs.

:func:`write_artifact` lays out what the packaging step would produce::

    <dir>/<name>.json    {"name": ..., "vers": ...}
    <dir>/<name>.crate   gzip tar with <name>-<version>/<files>
"""

from __future__ import annotations

import io
import json
import tarfile
from pathlib import Path


def write_crate(path: Path, members: dict[str, str | bytes]) -> Path:
    """Write a gzip tar at ``path`` with the given member paths and contents."""
    with tarfile.open(path, mode='w:gz') as tar:
        for name, content in members.items():
            data = content.encode('utf-8') if isinstance(content, str) else content
            info = tarfile.TarInfo(name=name)
            info.size = len(data)
            info.mtime = 0
            tar.addfile(info, io.BytesIO(data))
    return path


def write_artifact(
    artifacts_dir: Path,
    name: str,
    version: str,
    files: dict[str, str | bytes] | None = None,
    *,
    suffix: str = '.crate',
) -> tuple[Path, Path]:
    """Write ``<name>.json`` and ``<name><suffix>``; return both paths."""
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    metadata_path = artifacts_dir / f'{name}.json'
    metadata_path.write_text(json.dumps({'name': name, 'vers': version}), encoding='utf-8')
    members = {f'{name}-{version}/{rel}': content for rel, content in (files or {}).items()}
    members.setdefault(f'{name}-{version}/Cargo.toml', f'[package]\nname = "{name}"\nversion = "{version}"\n')
    archive_path = write_crate(artifacts_dir / f'{name}{suffix}', members)
    return metadata_path, archive_path
