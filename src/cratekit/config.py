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

"""Configuration reader for cratekit.

Reads ``cratekit.toml`` from the workspace root and returns a validated,
frozen :class:`CratekitConfig`. A missing file yields the defaults.

Validation Pipeline::

    cratekit.toml
    ┌──────────────────────┐
    │ registy_url = "..."  │  ← typo!
    └──────────┬───────────┘
               │
               ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ CK-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'registry_url'?"       │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ CK-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ 'concurrency' must be int    │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ CratekitConfig() │
    └──────────────────┘

Supported keys::

    registry_url   = "https://crates.io"   # crates.io API base URL
    user_agent     = "cratekit (...)"      # crates.io rejects anonymous clients
    service_root   = "sdk"                 # <root>/<service_root>/<service>/<crate>
    work_dir       = "target/cratekit"     # scratch space for archive extraction
    artifacts_dir  = "artifacts"           # <name>.json + <name>.crate pairs
    http_timeout   = 30.0                  # seconds, per request
    http_pool_size = 10
    max_retries    = 3
    concurrency    = 4                     # candidates processed at once
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from cratekit.backends.registry.crates_io import DEFAULT_USER_AGENT, CratesIoRegistry
from cratekit.errors import CratekitError, E
from cratekit.logging import get_logger
from cratekit.net import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT, MAX_RETRIES
from cratekit.plan import DEFAULT_CONCURRENCY
from cratekit.workspace import DEFAULT_SERVICE_ROOT

logger = get_logger(__name__)

CONFIG_FILENAME = 'cratekit.toml'
DEFAULT_WORK_DIR = 'target/cratekit'
DEFAULT_ARTIFACTS_DIR = 'artifacts'


@dataclass(frozen=True)
class CratekitConfig:
    """Validated configuration for a cratekit run.

    Defaults are the same constants the modules use when called without
    a config. Relative paths (``work_dir``, ``artifacts_dir``) are
    interpreted against the workspace root by :meth:`resolve`.
    """

    registry_url: str = CratesIoRegistry.DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    service_root: str = DEFAULT_SERVICE_ROOT
    work_dir: str = DEFAULT_WORK_DIR
    artifacts_dir: str = DEFAULT_ARTIFACTS_DIR
    http_timeout: float = DEFAULT_TIMEOUT
    http_pool_size: int = DEFAULT_POOL_SIZE
    max_retries: int = MAX_RETRIES
    concurrency: int = DEFAULT_CONCURRENCY
    config_path: Path | None = None

    def resolve(self, workspace_root: Path, value: str) -> Path:
        """Resolve a configured path against ``workspace_root``."""
        path = Path(value)
        return path if path.is_absolute() else workspace_root / path


_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'registry_url': str,
    'user_agent': str,
    'service_root': str,
    'work_dir': str,
    'artifacts_dir': str,
    'http_timeout': (int, float),
    'http_pool_size': int,
    'max_retries': int,
    'concurrency': int,
}

VALID_KEYS: frozenset[str] = frozenset(_TYPE_MAP)

# Keys that must be strictly positive.
_POSITIVE_KEYS: frozenset[str] = frozenset({'http_timeout', 'http_pool_size', 'concurrency'})


def _validate_value(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type or range."""
    expected = _TYPE_MAP[key]
    # bool is an int subclass; never accept it for numeric keys.
    if isinstance(value, bool) or not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else 'number'
        raise CratekitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )
    if key in _POSITIVE_KEYS and value <= 0:
        raise CratekitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be greater than zero, got {value}",
        )
    if key == 'max_retries' and value < 0:
        raise CratekitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'max_retries' must not be negative, got {value}",
        )


def load_config(workspace_root: Path) -> CratekitConfig:
    """Load and validate ``cratekit.toml`` from ``workspace_root``.

    Args:
        workspace_root: Directory that may contain ``cratekit.toml``.

    Returns:
        A validated :class:`CratekitConfig`; defaults when the file is absent.

    Raises:
        CratekitError: If the file cannot be read or parsed, contains an
            unknown key, or a value of the wrong type.
    """
    config_path = workspace_root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_cratekit_config', path=str(config_path))
        return CratekitConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise CratekitError(
            code=E.CONFIG_UNREADABLE,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        raw: dict[str, Any] = tomlkit.parse(text).unwrap()  # noqa: ANN401
    except tomlkit.exceptions.TOMLKitError as exc:
        raise CratekitError(
            code=E.CONFIG_UNREADABLE,
            message=f'Failed to parse {config_path}: {exc}',
        ) from exc

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = difflib.get_close_matches(key, VALID_KEYS, n=1, cutoff=0.6)
            raise CratekitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=f"Did you mean '{suggestion[0]}'?" if suggestion else f'Valid keys: {sorted(VALID_KEYS)}',
            )
        _validate_value(key, raw[key])

    if 'http_timeout' in raw:
        raw['http_timeout'] = float(raw['http_timeout'])

    config = CratekitConfig(**raw, config_path=config_path)
    logger.debug(
        'config_loaded',
        path=str(config_path),
        keys=sorted(f.name for f in fields(config) if f.name in raw),
    )
    return config


__all__ = [
    'CONFIG_FILENAME',
    'VALID_KEYS',
    'CratekitConfig',
    'load_config',
]
