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

"""crates.io registry backend for cratekit.

The :class:`CratesIoRegistry` implements the
:class:`~cratekit.backends.registry.Registry` protocol using the
`crates.io API <https://crates.io/api/v1>`_.

API endpoint used::

    GET /api/v1/crates/{name}/versions   → {"versions": [{"num": "1.2.3", ...}, ...]}
                                           404 when the crate was never published

Response mapping::

    200 + "versions" list      → VersionQueryResult.confirmed(sorted nums)
    404                        → VersionQueryResult.not_found()
    anything else              → VersionQueryResult.unknown(reason), logged
    (5xx after retries, bad JSON, timeout, connection refused)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from cratekit.backends.registry._types import VersionQueryResult
from cratekit.logging import get_logger
from cratekit.net import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT, MAX_RETRIES, http_client, request_with_retry
from cratekit.versions import sort_versions

if TYPE_CHECKING:
    from cratekit.config import CratekitConfig

log = get_logger('cratekit.backends.registry.crates_io')

DEFAULT_USER_AGENT = 'cratekit (https://github.com/firebase/genkit)'


class CratesIoRegistry:
    """crates.io :class:`~cratekit.backends.registry.Registry` implementation.

    Args:
        base_url: Base URL for the crates.io API. Defaults to
            ``crates.io``. Use :data:`TEST_BASE_URL` for a local
            Alexandrie or similar test registry.
        user_agent: ``User-Agent`` header; crates.io rejects requests
            without one.
        pool_size: HTTP connection pool size.
        timeout: HTTP request timeout in seconds.
        max_retries: Retries for transient failures (429, 5xx, connect
            errors, timeouts).
        transport: Optional httpx transport override for tests.
    """

    #: Base URL for the production crates.io registry.
    DEFAULT_BASE_URL: str = 'https://crates.io'
    #: Base URL for a local Alexandrie test registry (common default).
    TEST_BASE_URL: str = 'http://localhost:3000'

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        pool_size: int = DEFAULT_POOL_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with crates.io base URL, client limits and retry policy."""
        self._base_url = base_url.rstrip('/')
        self._user_agent = user_agent
        self._pool_size = pool_size
        self._timeout = timeout
        self._max_retries = max_retries
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: CratekitConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> CratesIoRegistry:
        """Create a registry from the ``cratekit.toml`` HTTP settings."""
        return cls(
            base_url=config.registry_url,
            user_agent=config.user_agent,
            pool_size=config.http_pool_size,
            timeout=config.http_timeout,
            max_retries=config.max_retries,
            transport=transport,
        )

    async def list_published_versions(self, package_name: str) -> VersionQueryResult:
        """Return every published version of a crate, ascending.

        The crate name is looked up case-insensitively.

        Args:
            package_name: Crate name (e.g. ``azure_core``).
        """
        crate = package_name.lower()
        url = f'{self._base_url}/api/v1/crates/{crate}/versions'
        try:
            async with http_client(
                pool_size=self._pool_size,
                timeout=self._timeout,
                headers={'User-Agent': self._user_agent},
                transport=self._transport,
            ) as client:
                response = await request_with_retry(client, 'GET', url, max_retries=self._max_retries)
        except httpx.HTTPError as exc:
            reason = f'{type(exc).__name__}: {exc}' if str(exc) else type(exc).__name__
            log.warning('registry_query_failed', crate=crate, error=reason)
            return VersionQueryResult.unknown(reason)

        if response.status_code == 404:
            log.debug('crate_not_published', crate=crate)
            return VersionQueryResult.not_found()

        if response.status_code != 200:
            reason = f'unexpected status {response.status_code}'
            log.warning('registry_query_failed', crate=crate, error=reason)
            return VersionQueryResult.unknown(reason)

        try:
            entries = response.json()['versions']
            nums = [str(entry['num']) for entry in entries]
        except (ValueError, KeyError, TypeError) as exc:
            reason = f'malformed versions response: {exc!r}'
            log.warning('crates_io_parse_error', crate=crate, error=reason)
            return VersionQueryResult.unknown(reason)

        versions = sort_versions(nums)
        log.debug('crate_versions_listed', crate=crate, count=len(versions))
        return VersionQueryResult.confirmed(versions)


__all__ = [
    'CratesIoRegistry',
]
