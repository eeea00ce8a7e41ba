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

"""Structured error system for cratekit.

Every error carries a unique ``CK-NAMED-KEY`` code, a human-readable
message, and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A named ID like "CK-ARTIFACT-INVALID" for     │
    │                     │ each failure. Readable at a glance in CI logs.│
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ CratekitError       │ The exception you raise. Carries the code,    │
    │                     │ message and hint so renderers can show them.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ERRORS catalog      │ Canned explanations for the common failures.  │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    CK-CONFIG-*       cratekit.toml errors
    CK-METADATA-*     Workspace metadata (cargo metadata) errors
    CK-VERSION-*      Version string errors
    CK-ARTIFACT-*     Sidecar / archive lookup errors
    CK-EXTRACTION-*   Archive extraction errors
    CK-PLAN-*         Release plan persistence errors

Registry lookups never raise: "never published" and "could not tell" are
values of :class:`~cratekit.backends.registry.VersionQueryResult`.

Usage::

    from cratekit.errors import CratekitError, E

    raise CratekitError(
        code=E.ARTIFACT_INVALID,
        message='Sidecar azure_core.json has no "vers" field',
        hint='Regenerate the artifact with the packaging step.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """All cratekit diagnostic codes."""

    # Configuration
    CONFIG_UNREADABLE = 'CK-CONFIG-UNREADABLE'
    CONFIG_INVALID_KEY = 'CK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'CK-CONFIG-INVALID-VALUE'

    # Workspace metadata
    METADATA_UNAVAILABLE = 'CK-METADATA-UNAVAILABLE'

    # Versions
    VERSION_INVALID = 'CK-VERSION-INVALID'

    # Artifacts
    ARTIFACT_NOT_FOUND = 'CK-ARTIFACT-NOT-FOUND'
    ARTIFACT_INVALID = 'CK-ARTIFACT-INVALID'
    EXTRACTION_FAILED = 'CK-EXTRACTION-FAILED'

    # Release plan
    PLAN_INVALID = 'CK-PLAN-INVALID'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``CK-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class CratekitError(Exception):
    """Base exception for all cratekit errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.METADATA_UNAVAILABLE: ErrorInfo(
        code=E.METADATA_UNAVAILABLE,
        message='Workspace metadata could not be retrieved.',
        hint="Run 'cargo metadata --format-version 1 --no-deps' in the workspace root to see the underlying error.",
    ),
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='cratekit.toml contains an unknown key.',
        hint='Remove the key or fix its spelling.',
    ),
    E.ARTIFACT_NOT_FOUND: ErrorInfo(
        code=E.ARTIFACT_NOT_FOUND,
        message='No sidecar/archive pair was found for the package.',
        hint='Each artifact needs <name>.json next to <name>.crate (or .tar.gz).',
    ),
    E.EXTRACTION_FAILED: ErrorInfo(
        code=E.EXTRACTION_FAILED,
        message='The package archive could not be extracted.',
        hint='Rebuild the artifact; the archive may be truncated or corrupt.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"CK-ARTIFACT-INVALID"``.

    Returns:
        A formatted explanation, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: CratekitError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style.

    Output format::

        error[CK-ARTIFACT-INVALID]: Sidecar azure_core.json is not valid JSON.
          |
          = hint: Regenerate the artifact with the packaging step.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'CratekitError',
    'ErrorCode',
    'ErrorInfo',
    'explain',
    'render_error',
]
