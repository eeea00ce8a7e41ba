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

"""HTTP plumbing for registry queries.

Every crates.io request made by cratekit goes through two helpers:

- :func:`http_client` opens a pooled :class:`httpx.AsyncClient` whose
  timeout covers connect, read, write and pool acquisition, so a stalled
  registry turns into an exception instead of a hung run.
- :func:`request_with_retry` repeats a request while the failure looks
  transient, a fixed number of times.

Retry Policy::

    attempt 1 ──→ 200 / 404 / other 4xx ──→ returned as is
        │
        ├── 429 / 5xx ──→ wait Retry-After (capped) or base * 2**attempt
        ├── connect error / timeout ──→ wait base * 2**attempt
        ▼
    attempt 2 ... attempt max_retries + 1
        │
        └── still failing ──→ raise (HTTPStatusError or the transport error)

crates.io answers rate-limited clients with ``429`` and a ``Retry-After``
header in seconds; that value is honoured up to :data:`MAX_RETRY_AFTER`.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Final

import httpx

from cratekit.logging import get_logger

log = get_logger('cratekit.net')

DEFAULT_POOL_SIZE: Final[int] = 10
DEFAULT_TIMEOUT: Final[float] = 30.0

MAX_RETRIES: Final[int] = 3
RETRY_BACKOFF_BASE: Final[float] = 1.0
MAX_RETRY_AFTER: Final[float] = 60.0

RETRYABLE_STATUS_CODES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    base_url: str = '',
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncGenerator[httpx.AsyncClient]:
    """Open a pooled async client for the duration of the block.

    Args:
        pool_size: Connection limit, also used as the keep-alive limit.
        timeout: Seconds allowed for each phase of a request.
        base_url: Prefix for relative request URLs.
        headers: Headers sent with every request (crates.io needs a
            ``User-Agent``).
        transport: Replacement transport, e.g. :class:`httpx.MockTransport`.
    """
    async with httpx.AsyncClient(
        limits=httpx.Limits(max_connections=pool_size, max_keepalive_connections=pool_size),
        timeout=httpx.Timeout(timeout),
        base_url=base_url,
        headers=headers or {},
        follow_redirects=True,
        transport=transport,
    ) as client:
        yield client


def retry_delay(attempt: int, backoff_base: float, response: httpx.Response | None = None) -> float:
    """Seconds to wait before retry number ``attempt + 1``.

    A numeric ``Retry-After`` header on ``response`` wins over the
    exponential backoff, capped at :data:`MAX_RETRY_AFTER`.
    """
    if response is not None:
        retry_after = response.headers.get('Retry-After', '')
        try:
            return min(max(float(retry_after), 0.0), MAX_RETRY_AFTER)
        except ValueError:
            pass
    return backoff_base * (2**attempt)


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = MAX_RETRIES,
    backoff_base: float = RETRY_BACKOFF_BASE,
    **kwargs: object,
) -> httpx.Response:
    """Send a request, repeating it while the failure is transient.

    Args:
        client: Client from :func:`http_client`.
        method: HTTP method.
        url: Request URL.
        max_retries: Extra attempts after the first one.
        backoff_base: Delay before the first retry; doubled each time.
        **kwargs: Passed through to :meth:`httpx.AsyncClient.request`.

    Returns:
        The first response whose status is not retryable.

    Raises:
        httpx.HTTPStatusError: The final attempt still got 429 or 5xx.
        httpx.TransportError: The final attempt could not connect or
            timed out.
    """
    attempts = max_retries + 1
    for attempt in range(attempts):
        last_attempt = attempt == attempts - 1
        try:
            response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            if last_attempt:
                raise
            delay = retry_delay(attempt, backoff_base)
            log.warning('http_retry_error', url=url, error=str(exc) or type(exc).__name__, attempt=attempt + 1, delay=delay)
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response
            if last_attempt:
                response.raise_for_status()
            delay = retry_delay(attempt, backoff_base, response)
            log.warning('http_retry', url=url, status=response.status_code, attempt=attempt + 1, delay=delay)
        await asyncio.sleep(delay)

    msg = f'request_with_retry: max_retries must not be negative, got {max_retries}'
    raise ValueError(msg)


__all__ = [
    'DEFAULT_POOL_SIZE',
    'DEFAULT_TIMEOUT',
    'MAX_RETRIES',
    'MAX_RETRY_AFTER',
    'RETRYABLE_STATUS_CODES',
    'http_client',
    'request_with_retry',
    'retry_delay',
]
