# Copyright 2026 Firefly Software Solutions Inc.
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
"""Preflight cache protocol."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable


@runtime_checkable
class PreflightCache(Protocol):
    """Cache of approved (origin, method, header-set) preflight triples.

    Purely an optimization: a miss must fall back to full evaluation.
    ``lookup`` returns ``True`` for an unexpired approval and ``None``
    otherwise. ``expires_at`` is expressed on the cache's own clock.
    Entries are scoped to the policy ``generation`` they were computed under.
    """

    def lookup(self, origin: str, method: str, header_set: Iterable[str], generation: int = 0) -> bool | None: ...

    def record(
        self,
        origin: str,
        method: str,
        header_set: Iterable[str],
        approved: bool,
        expires_at: float,
        generation: int = 0,
    ) -> None: ...

    def now(self) -> float: ...

    def clear(self) -> None: ...
