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
"""In-memory preflight cache."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable

CacheKey = tuple[int, str, str, frozenset[str]]


def make_key(origin: str, method: str, header_set: Iterable[str], generation: int = 0) -> CacheKey:
    """Header names are case- and order-insensitive; the method is upper-cased."""
    return generation, origin, method.upper(), frozenset(h.strip().lower() for h in header_set if h.strip())


class InMemoryPreflightCache:
    """Process-local preflight approval table with explicit expiry timestamps.

    Expired entries are treated as absent and dropped when looked up. When
    ``max_entries`` is reached, expired entries are purged first, then the
    oldest insertions are evicted. All access is serialized by a lock held
    only for dictionary operations.
    """

    def __init__(self, max_entries: int = 10000, clock: Callable[[], float] = time.monotonic) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[CacheKey, float] = OrderedDict()
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def lookup(self, origin: str, method: str, header_set: Iterable[str], generation: int = 0) -> bool | None:
        """Return ``True`` for a live approval, ``None`` when absent or expired.

        Approvals recorded under another policy *generation* never match.
        """
        key = make_key(origin, method, header_set, generation)
        now = self._clock()
        with self._lock:
            expires_at = self._store.get(key)
            if expires_at is None:
                return None
            if now >= expires_at:
                del self._store[key]
                return None
            return True

    def record(
        self,
        origin: str,
        method: str,
        header_set: Iterable[str],
        approved: bool,
        expires_at: float,
        generation: int = 0,
    ) -> None:
        """Store an approval until *expires_at*; a denial removes any approval."""
        key = make_key(origin, method, header_set, generation)
        with self._lock:
            self._store.pop(key, None)
            if not approved or expires_at <= self._clock():
                return
            if len(self._store) >= self._max_entries:
                self._evict()
            self._store[key] = expires_at

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _evict(self) -> None:
        now = self._clock()
        for key in [k for k, exp in self._store.items() if now >= exp]:
            del self._store[key]
        while len(self._store) >= self._max_entries:
            self._store.popitem(last=False)
