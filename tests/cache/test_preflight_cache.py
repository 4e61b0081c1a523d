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
"""Tests for the in-memory preflight approval cache."""

from __future__ import annotations

import threading

import pytest

from flycors.cache.adapters.memory import InMemoryPreflightCache, make_key
from flycors.cache.ports.outbound import PreflightCache

ORIGIN = "https://client.com"


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryPreflightCache:
    return InMemoryPreflightCache(clock=clock)


class TestConformance:
    def test_implements_port(self, cache: InMemoryPreflightCache):
        assert isinstance(cache, PreflightCache)


class TestLookupAndRecord:
    def test_miss_is_absent(self, cache: InMemoryPreflightCache):
        assert cache.lookup(ORIGIN, "PUT", ["Content-Type"]) is None

    def test_recorded_approval_found(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", ["Content-Type"], approved=True, expires_at=clock.now + 10)
        assert cache.lookup(ORIGIN, "PUT", ["Content-Type"]) is True

    def test_header_set_case_and_order_insensitive(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "put", ["X-B", "Content-Type"], approved=True, expires_at=clock.now + 10)
        assert cache.lookup(ORIGIN, "PUT", ["content-type", "x-b"]) is True

    def test_different_origin_or_method_is_absent(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now + 10)
        assert cache.lookup("https://other.example", "PUT", []) is None
        assert cache.lookup(ORIGIN, "DELETE", []) is None

    def test_denial_removes_approval(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now + 10)
        cache.record(ORIGIN, "PUT", [], approved=False, expires_at=clock.now + 10)
        assert cache.lookup(ORIGIN, "PUT", []) is None

    def test_approval_scoped_to_generation(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now + 10, generation=1)
        assert cache.lookup(ORIGIN, "PUT", [], generation=1) is True
        assert cache.lookup(ORIGIN, "PUT", [], generation=2) is None


class TestExpiry:
    def test_expired_entry_is_absent(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now + 5)
        clock.now += 5
        assert cache.lookup(ORIGIN, "PUT", []) is None
        assert len(cache) == 0

    def test_already_expired_not_stored(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now)
        assert len(cache) == 0


class TestEviction:
    def test_oldest_evicted_when_full(self, clock: FakeClock):
        cache = InMemoryPreflightCache(max_entries=2, clock=clock)
        for origin in ("https://a.example", "https://b.example", "https://c.example"):
            cache.record(origin, "GET", [], approved=True, expires_at=clock.now + 60)
        assert len(cache) == 2
        assert cache.lookup("https://a.example", "GET", []) is None
        assert cache.lookup("https://c.example", "GET", []) is True

    def test_expired_evicted_before_live(self, clock: FakeClock):
        cache = InMemoryPreflightCache(max_entries=2, clock=clock)
        cache.record("https://a.example", "GET", [], approved=True, expires_at=clock.now + 60)
        cache.record("https://b.example", "GET", [], approved=True, expires_at=clock.now + 1)
        clock.now += 2
        cache.record("https://c.example", "GET", [], approved=True, expires_at=clock.now + 60)
        assert cache.lookup("https://a.example", "GET", []) is True
        assert cache.lookup("https://c.example", "GET", []) is True

    def test_invalid_max_entries(self):
        with pytest.raises(ValueError):
            InMemoryPreflightCache(max_entries=0)


class TestClear:
    def test_clear(self, cache: InMemoryPreflightCache, clock: FakeClock):
        cache.record(ORIGIN, "PUT", [], approved=True, expires_at=clock.now + 10)
        cache.clear()
        assert cache.lookup(ORIGIN, "PUT", []) is None


class TestConcurrency:
    def test_concurrent_record_and_lookup(self):
        cache = InMemoryPreflightCache(max_entries=50)
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                for i in range(200):
                    origin = f"https://w{n}-{i % 20}.example"
                    cache.record(origin, "GET", ["X-A"], approved=True, expires_at=cache.now() + 60)
                    cache.lookup(origin, "GET", ["x-a"])
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(cache) <= 50


class TestMakeKey:
    def test_blank_names_ignored(self):
        assert make_key(ORIGIN, "get", [" ", "A"]) == (0, ORIGIN, "GET", frozenset({"a"}))

    def test_generation_is_part_of_key(self):
        assert make_key(ORIGIN, "GET", [], generation=3) != make_key(ORIGIN, "GET", [], generation=4)
