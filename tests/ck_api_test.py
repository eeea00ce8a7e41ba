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

"""Tests for cratekit.api module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from cratekit.api import Cratekit
from cratekit.backends.registry import CratesIoRegistry
from cratekit.config import load_config
from cratekit.logging import configure_logging
from cratekit.metadata import ManifestRecord
from cratekit.oracle import VersionOracle
from cratekit.plan import ReleasePlan

from tests._fakes import FakeRegistry, write_artifact

configure_logging(quiet=True)


def _records(root: Path, service_root: str) -> list[ManifestRecord]:
    base = root / service_root / 'net'
    return [
        ManifestRecord('http_core', '0.4.0', base / 'http_core/Cargo.toml'),
        ManifestRecord('http_client', '0.4.0', base / 'http_client/Cargo.toml', dependencies=('http_core',)),
    ]


class TestCratekit:
    """Tests for the Cratekit facade."""

    def test_root_resolved(self, tmp_path: Path) -> None:
        """A string root is resolved."""
        ck = Cratekit(str(tmp_path))
        assert ck.root == tmp_path.resolve()

    def test_config_lazy_loaded(self, tmp_path: Path) -> None:
        """cratekit.toml is not read until needed."""
        ck = Cratekit(tmp_path)
        assert ck._config is None
        assert ck.config.concurrency == 4
        assert ck._config is not None

    def test_default_paths(self, tmp_path: Path) -> None:
        """Without cratekit.toml the default directories are under the root."""
        ck = Cratekit(tmp_path)
        assert ck.artifacts_dir == tmp_path.resolve() / 'artifacts'
        assert ck.work_dir == tmp_path.resolve() / 'target' / 'cratekit'

    def test_injected_registry_wins(self, tmp_path: Path) -> None:
        """An injected registry is used instead of crates.io."""
        registry = FakeRegistry()
        assert Cratekit(tmp_path, registry=registry).registry() is registry

    def test_default_registry_is_crates_io(self, tmp_path: Path) -> None:
        """Without injection the configured crates.io backend is built."""
        assert isinstance(Cratekit(tmp_path).registry(), CratesIoRegistry)

    def test_fresh_oracle_per_call(self, tmp_path: Path) -> None:
        """Each oracle() call starts an empty memo."""
        ck = Cratekit(tmp_path, registry=FakeRegistry())
        first, second = ck.oracle(), ck.oracle()
        assert isinstance(first, VersionOracle)
        assert first is not second

    def test_graph_uses_cargo_metadata(self, tmp_path: Path) -> None:
        """graph() runs cargo metadata in the workspace root by default."""
        root = tmp_path.resolve()
        with patch('cratekit.api.load_cargo_metadata', return_value=_records(root, 'sdk')) as loader:
            graph = Cratekit(tmp_path, metadata_timeout=5).graph()
        loader.assert_called_once_with(root, timeout=5)
        assert graph.names == ['http_client', 'http_core']


class TestConfiguredBehaviour:
    """Values in cratekit.toml change what the operations do."""

    def test_service_root(self, tmp_path: Path) -> None:
        """service_root selects which directory holds the services."""
        root = tmp_path.resolve()
        records = _records(root, 'crates')
        assert len(Cratekit(root).graph(source=lambda: records)) == 0

        (root / 'cratekit.toml').write_text('service_root = "crates"\n', encoding='utf-8')
        graph = Cratekit(root).graph(source=lambda: records)
        assert graph.names == ['http_client', 'http_core']

    @pytest.mark.asyncio
    async def test_plan_directories(self, tmp_path: Path) -> None:
        """artifacts_dir and work_dir come from cratekit.toml."""
        root = tmp_path.resolve()
        (root / 'cratekit.toml').write_text(
            'service_root = "crates"\nartifacts_dir = "dist"\nwork_dir = "scratch"\n',
            encoding='utf-8',
        )
        write_artifact(root / 'dist', 'http_core', '0.5.0', {'README.md': 'core'})
        ck = Cratekit(root, registry=FakeRegistry(published={'http_core': ['0.4.0']}))
        records = _records(root, 'crates')

        plan = await ck.plan(['http_core'], graph=ck.graph(source=lambda: records))

        assert plan.ok
        assert plan.impacted == {'http_core': ['http_client']}
        assert plan.deployable == ['http_core']
        assert (root / 'scratch').is_dir()
        assert not (root / 'target').exists()

    @pytest.mark.asyncio
    async def test_plan_concurrency(self, tmp_path: Path) -> None:
        """concurrency from cratekit.toml bounds the coordinator and the oracle."""
        (tmp_path / 'cratekit.toml').write_text('concurrency = 1\n', encoding='utf-8')
        ck = Cratekit(tmp_path, registry=FakeRegistry())
        coordinate = AsyncMock(return_value=ReleasePlan())
        with patch('cratekit.api.coordinate_release', coordinate):
            await ck.plan(['http_core'], graph=ck.graph(source=list))
        assert coordinate.await_args.kwargs['concurrency'] == 1
        assert coordinate.await_args.kwargs['oracle']._concurrency == 1

    @pytest.mark.asyncio
    async def test_registry_settings(self, tmp_path: Path) -> None:
        """registry_url, user_agent and max_retries reach the HTTP layer."""
        (tmp_path / 'cratekit.toml').write_text(
            'registry_url = "http://localhost:3000"\nuser_agent = "ck-test/1.0"\nmax_retries = 0\n',
            encoding='utf-8',
        )
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(503)

        registry = CratesIoRegistry.from_config(load_config(tmp_path), transport=httpx.MockTransport(handler))
        result = await registry.list_published_versions('HTTP_Core')

        assert result.is_unknown
        assert len(seen) == 1
        assert str(seen[0].url) == 'http://localhost:3000/api/v1/crates/http_core/versions'
        assert seen[0].headers['User-Agent'] == 'ck-test/1.0'
