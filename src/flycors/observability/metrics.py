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
"""Metrics collection with Prometheus-compatible counters."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter

from flycors.policy.types import Decision


class MetricsRegistry:
    """Registry for engine metrics.

    Wraps prometheus_client to provide a clean API for creating and
    managing metrics. Ensures each metric name is registered only once.
    Pass a dedicated ``CollectorRegistry`` to keep metrics out of the
    process-wide default registry (useful in tests).
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, Counter] = {}

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def counter(self, name: str, description: str, labels: list[str] | None = None) -> Counter:
        """Get or create a counter metric."""
        if name not in self._counters:
            self._counters[name] = Counter(name, description, labels or [], registry=self._registry)
        return self._counters[name]


class CorsMetrics:
    """Counters for engine decisions and preflight cache hits."""

    def __init__(self, registry: MetricsRegistry | None = None) -> None:
        self._registry = registry or MetricsRegistry()
        self._decisions = self._registry.counter(
            "flycors_decisions_total",
            "Cross-origin decisions by classification and verdict",
            ["classification", "verdict"],
        )
        self._cache_hits = self._registry.counter(
            "flycors_preflight_cache_hits_total",
            "Preflight requests answered from the approval cache",
        )

    def record_decision(self, decision: Decision) -> None:
        self._decisions.labels(
            classification=decision.classification.value,
            verdict=decision.verdict.value,
        ).inc()

    def record_cache_hit(self) -> None:
        self._cache_hits.inc()
