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

"""Shared test fakes for cratekit.

Usage::

    from tests._fakes import FakeRegistry, write_artifact

    registry = FakeRegistry(published={'azure_core': ['0.21.0', '0.22.0']})
    metadata, archive = write_artifact(tmp_path, 'azure_core', '0.23.0', {'README.md': '# azure_core'})
"""

from tests._fakes._artifacts import write_artifact as write_artifact, write_crate as write_crate
from tests._fakes._registry import FakeRegistry as FakeRegistry

__all__ = [
    'FakeRegistry',
    'write_artifact',
    'write_crate',
]
