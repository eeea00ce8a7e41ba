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

"""Structured logging for cratekit.

Events go through structlog into the standard library root logger on
stderr; stdout is left for the release plan. Events are snake_case names
with keyword fields (``log.info('release_plan_built', candidates=3)``).

Renderers::

    configure_logging()               → console, coloured on a TTY
    configure_logging(json_log=True)  → one JSON object per line (CI)

While a candidate is being described, :func:`candidate_context` binds its
name, so every event logged by extraction, changelog parsing or the
registry carries ``candidate=...`` without passing it down explicitly.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def _renderer(*, json_log: bool) -> structlog.types.Processor:
    if json_log:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for cratekit. The last call wins.

    Args:
        verbose: Show debug events (skipped crates, memoised queries).
        quiet: Warnings and errors only; overrides ``verbose``.
        json_log: Render JSON lines instead of console text.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_log=json_log),
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def candidate_context(name: str) -> Iterator[None]:
    """Tag every event logged inside the block with ``candidate=name``.

    Bindings live in a context variable, so concurrent asyncio tasks each
    see only their own candidate.
    """
    with structlog.contextvars.bound_contextvars(candidate=name):
        yield


def get_logger(name: str = 'cratekit') -> structlog.stdlib.BoundLogger:
    """Return the structlog logger ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'candidate_context',
    'configure_logging',
    'get_logger',
]
