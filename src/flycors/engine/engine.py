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
"""CorsEngine — evaluates requests against the active policy."""

from __future__ import annotations

import structlog

from flycors.cache.adapters.memory import InMemoryPreflightCache
from flycors.cache.ports.outbound import PreflightCache
from flycors.config.properties.cache import PreflightCacheProperties
from flycors.core.config import Config
from flycors.engine.classifier import classify
from flycors.engine.composer import PREFLIGHT_VARY, VARY, HeaderComposer, parse_header_list
from flycors.kernel.exceptions import MalformedRequestException, PolicyConflictException
from flycors.observability.metrics import CorsMetrics
from flycors.policy.origins import OriginMatcher
from flycors.policy.store import PolicyStore
from flycors.policy.types import (
    NO_MATCH,
    Classification,
    Decision,
    DenialReason,
    PolicySnapshot,
    RequestDescriptor,
    Verdict,
)

logger = structlog.get_logger("flycors.engine")


class CorsEngine:
    """Synchronous, CPU-only cross-origin decision function.

    Each call to :meth:`evaluate` reads one policy snapshot from the store
    and returns a fresh :class:`Decision`. The only shared mutable state is
    the optional preflight cache. Its entries are keyed by policy
    generation and the cache is cleared whenever the store publishes a new
    policy.
    """

    def __init__(
        self,
        store: PolicyStore,
        cache: PreflightCache | None = None,
        metrics: CorsMetrics | None = None,
        matcher: OriginMatcher | None = None,
        composer: HeaderComposer | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._metrics = metrics
        self._matcher = matcher or OriginMatcher()
        self._composer = composer or HeaderComposer()
        if cache is not None:
            store.add_listener(lambda _snapshot: cache.clear())

    @classmethod
    def from_config(cls, config: Config, metrics: CorsMetrics | None = None) -> CorsEngine:
        """Build an engine, its policy store and (when enabled) its preflight cache."""
        store = PolicyStore.from_config(config)
        cache_props = config.bind(PreflightCacheProperties)
        cache = InMemoryPreflightCache(max_entries=cache_props.max_entries) if cache_props.enabled else None
        return cls(store, cache=cache, metrics=metrics)

    @property
    def store(self) -> PolicyStore:
        return self._store

    def evaluate(self, request: RequestDescriptor) -> Decision:
        """Classify *request* and compose the response headers it should carry."""
        snapshot = self._store.snapshot()
        classification = classify(request)
        decision = self._decide(snapshot, classification, request)
        if self._metrics is not None:
            self._metrics.record_decision(decision)
        return decision

    def _decide(
        self,
        snapshot: PolicySnapshot,
        classification: Classification,
        request: RequestDescriptor,
    ) -> Decision:
        if classification is Classification.NOT_CROSS_ORIGIN:
            return self._composer.compose(classification, snapshot.policy, NO_MATCH)

        origin = request.origin or ""
        policy = snapshot.policy

        if policy.has_conflict:
            decision = self._composer.conflict(classification)
            self._log(decision, request)
            return decision

        if classification is Classification.PREFLIGHT:
            return self._preflight(snapshot, request, origin)

        try:
            decision = self._composer.compose(classification, policy, self._matcher.match(policy, origin))
        except PolicyConflictException:
            decision = self._composer.conflict(classification)
        self._log(decision, request)
        return decision

    def _preflight(self, snapshot: PolicySnapshot, request: RequestDescriptor, origin: str) -> Decision:
        policy = snapshot.policy
        method = (request.get("access-control-request-method") or "").strip().upper()

        try:
            requested = parse_header_list(request.get_combined("access-control-request-headers"))
        except MalformedRequestException as exc:
            decision = self._composer.denial(Classification.PREFLIGHT, DenialReason.MALFORMED)
            self._log(decision, request, error=str(exc))
            return decision

        if self._cache is not None and self._cache.lookup(origin, method, requested, snapshot.generation):
            match = self._matcher.match(policy, origin)
            if match.matched and match.echo_origin is not None:
                if self._metrics is not None:
                    self._metrics.record_cache_hit()
                headers = self._composer.preflight_headers(policy, match.echo_origin, requested)
                headers[VARY] = PREFLIGHT_VARY
                return Decision(
                    classification=Classification.PREFLIGHT,
                    verdict=Verdict.ALLOWED,
                    headers=headers,
                    terminal=True,
                )

        try:
            decision = self._composer.compose(
                Classification.PREFLIGHT,
                policy,
                self._matcher.match(policy, origin),
                request_method=method,
                request_headers=requested,
            )
        except PolicyConflictException:
            decision = self._composer.conflict(Classification.PREFLIGHT)

        self._log(decision, request)
        self._remember(snapshot, origin, method, requested, decision)
        return decision

    def _remember(
        self,
        snapshot: PolicySnapshot,
        origin: str,
        method: str,
        requested: list[str],
        decision: Decision,
    ) -> None:
        max_age = snapshot.policy.max_age
        if self._cache is None or not max_age:
            return
        # Keyed by generation: a reload landing before the write leaves the
        # entry unreachable for evaluations under the new policy.
        if self._store.generation != snapshot.generation:
            return
        self._cache.record(
            origin,
            method,
            requested,
            decision.allowed,
            self._cache.now() + max_age,
            generation=snapshot.generation,
        )

    def _log(self, decision: Decision, request: RequestDescriptor, **extra: object) -> None:
        fields = {
            "classification": decision.classification.value,
            "origin": request.origin,
            "method": request.method,
            "path": request.path,
            **extra,
        }
        if decision.verdict is Verdict.POLICY_CONFLICT:
            logger.error("cors_policy_conflict", **fields)
        elif decision.verdict is Verdict.DENIED:
            logger.info("cors_denied", reason=decision.reason.value if decision.reason else None, **fields)
        else:
            logger.debug("cors_allowed", **fields)
