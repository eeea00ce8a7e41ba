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

"""Tests for cratekit.workspace module."""

from __future__ import annotations

from pathlib import Path

import pytest
from cratekit.logging import configure_logging
from cratekit.metadata import ManifestRecord
from cratekit.workspace import (
    PackageManifest,
    classify_sdk_type,
    manifests_from_records,
    resolve_scope,
    service_directory,
)

configure_logging(quiet=True)

WS = Path('/ws')


def _record(name: str, rel: str, *, deps: tuple[str, ...] = (), publishable: bool = True) -> ManifestRecord:
    return ManifestRecord(
        name=name,
        version='1.0.0',
        manifest_path=WS / rel / 'Cargo.toml',
        dependencies=deps,
        is_publishable=publishable,
    )


class TestClassifySdkType:
    """classify_sdk_type depends on the name only."""

    @pytest.mark.parametrize(
        ('name', 'expected'),
        [
            ('azure_mgmt_compute', 'mgmt'),
            ('Azure_MGMT_Storage', 'mgmt'),
            ('azure_resourcemanager_mgmt', 'mgmt'),
            ('azure_core', 'client'),
            ('azure_storage_blob', 'client'),
            ('', 'client'),
        ],
    )
    def test_classification(self, name: str, expected: str) -> None:
        """Names containing 'mgmt' in any case are management-plane."""
        assert classify_sdk_type(name) == expected


class TestServiceDirectory:
    """service_directory extracts <service> from <root>/<service>/<crate>."""

    def test_nested(self) -> None:
        """Crate two levels below the service root."""
        assert service_directory(Path('sdk/storage/azure_storage_blob')) == 'storage'

    def test_deeper(self) -> None:
        """Deeper crates still belong to the first-level service."""
        assert service_directory(Path('sdk/core/typespec/typespec_macros')) == 'core'

    def test_too_shallow(self) -> None:
        """A crate directly under the service root has no service."""
        assert service_directory(Path('sdk/azure_core')) is None

    def test_outside_service_root(self) -> None:
        """Crates outside the service root have no service."""
        assert service_directory(Path('eng/tools/xtask')) is None

    def test_custom_root(self) -> None:
        """The service root name is configurable."""
        assert service_directory(Path('crates/net/http'), 'crates') == 'net'


class TestResolveScope:
    """resolve_scope anchors relative scopes at the service root."""

    def test_none(self) -> None:
        """No scope means the whole service root."""
        assert resolve_scope(None, WS) == WS / 'sdk'

    def test_relative(self) -> None:
        """A relative scope is under the service root."""
        assert resolve_scope('storage', WS) == WS / 'sdk' / 'storage'

    def test_absolute(self) -> None:
        """An absolute scope is used as is."""
        assert resolve_scope(Path('/elsewhere'), WS) == Path('/elsewhere')


class TestManifestsFromRecords:
    """manifests_from_records filters and converts metadata records."""

    def test_converts(self) -> None:
        """A well-placed record becomes a manifest."""
        result = manifests_from_records(
            [_record('azure_mgmt_x', 'sdk/x/azure_mgmt_x', deps=('azure_core', 'azure_core', 'serde'))],
            workspace_root=WS,
        )
        assert result == [
            PackageManifest(
                name='azure_mgmt_x',
                version='1.0.0',
                path=WS / 'sdk/x/azure_mgmt_x',
                service_directory='x',
                sdk_type='mgmt',
                dependencies=('azure_core', 'serde'),
            )
        ]

    def test_unexpected_layout_dropped(self) -> None:
        """Records not shaped <root>/<service>/<crate> are silently dropped."""
        result = manifests_from_records(
            [_record('azure_core', 'sdk/core/azure_core'), _record('flat', 'sdk/flat')],
            workspace_root=WS,
        )
        assert [m.name for m in result] == ['azure_core']

    def test_unpublishable_dropped(self) -> None:
        """publish = false crates are excluded."""
        result = manifests_from_records(
            [_record('perf', 'sdk/core/perf', publishable=False)],
            workspace_root=WS,
        )
        assert result == []

    def test_scope_filter(self) -> None:
        """Only records under the scope survive."""
        records = [
            _record('azure_core', 'sdk/core/azure_core'),
            _record('azure_storage_blob', 'sdk/storage/azure_storage_blob'),
        ]
        result = manifests_from_records(records, workspace_root=WS, scope='storage')
        assert [m.name for m in result] == ['azure_storage_blob']

    def test_scope_prefix_is_not_a_match(self) -> None:
        """Scope 'core' does not select 'core_extra'."""
        records = [_record('thing', 'sdk/core_extra/thing')]
        assert manifests_from_records(records, workspace_root=WS, scope='core') == []

    def test_order_preserved(self) -> None:
        """Manifests come back in record order."""
        records = [
            _record('b', 'sdk/s/b'),
            _record('a', 'sdk/s/a'),
        ]
        assert [m.name for m in manifests_from_records(records, workspace_root=WS)] == ['b', 'a']


class TestPathResolution:
    """Paths are resolved before scope and layout checks."""

    @staticmethod
    def _layout(ws: Path) -> list[ManifestRecord]:
        records = []
        for rel in ('sdk/core/azure_core', 'sdk/storage/azure_storage_blob'):
            (ws / rel).mkdir(parents=True)
            records.append(ManifestRecord(rel.rsplit('/', 1)[1], '1.0.0', ws.resolve() / rel / 'Cargo.toml'))
        return records

    def test_dot_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """workspace_root='.' keeps every crate under the service root."""
        records = self._layout(tmp_path)
        monkeypatch.chdir(tmp_path)
        result = manifests_from_records(records, workspace_root=Path('.'))
        assert [m.name for m in result] == ['azure_core', 'azure_storage_blob']
        assert [m.service_directory for m in result] == ['core', 'storage']

    def test_relative_root_with_scope(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A relative root and a relative scope still filter correctly."""
        records = self._layout(tmp_path / 'ws')
        monkeypatch.chdir(tmp_path)
        result = manifests_from_records(records, workspace_root=Path('ws'), scope='storage')
        assert [m.name for m in result] == ['azure_storage_blob']

    def test_symlinked_root(self, tmp_path: Path) -> None:
        """A root reached through a symlink matches the real manifest paths."""
        records = self._layout(tmp_path / 'real')
        link = tmp_path / 'link'
        link.symlink_to(tmp_path / 'real', target_is_directory=True)
        result = manifests_from_records(records, workspace_root=link)
        assert [m.name for m in result] == ['azure_core', 'azure_storage_blob']
        assert result[0].path == (tmp_path / 'real' / 'sdk/core/azure_core').resolve()

    def test_resolve_scope_relative_root(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """resolve_scope returns an absolute path for a relative root."""
        monkeypatch.chdir(tmp_path)
        scope = resolve_scope('core', Path('.'))
        assert scope.is_absolute()
        assert scope == tmp_path.resolve() / 'sdk' / 'core'
