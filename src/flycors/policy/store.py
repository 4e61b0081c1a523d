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
"""PolicyStore — atomically replaceable holder of the active policy."""

from __future__ import annotations

import threading
from collections.abc import Callable

import structlog

from flycors.config.properties.cors import CorsProperties
from flycors.core.config import Config
from flycors.kernel.exceptions import PolicyConflictException
from flycors.policy.types import Policy, PolicySnapshot

logger = structlog.get_logger("flycors.policy")

PolicyListener = Callable[[PolicySnapshot], None]


class PolicyStore:
    """Single-writer, multi-reader store for the active :class:`Policy`.

    Readers call :meth:`snapshot` once per evaluation and work on the
    returned immutable object, so a concurrent :meth:`replace` can never
    produce a half-old/half-new view. Writers are serialized by a lock;
    publication is a single reference assignment.

    A policy combining the wildcard origin with credentials is logged as an
    error when loaded. With ``strict=True`` it is refused instead and the
    previous policy stays active.
    """

    def __init__(self, policy: Policy | None = None, strict: bool = False) -> None:
        self._strict = strict
        self._write_lock = threading.Lock()
        self._listeners: list[PolicyListener] = []
        initial = policy if policy is not None else Policy.create()
        self._check(initial)
        self._snapshot = PolicySnapshot(policy=initial, generation=0)
        logger.info("cors_policy_loaded", generation=0, **_describe(initial))

    @classmethod
    def from_config(cls, config: Config) -> PolicyStore:
        """Build a store from the ``flycors.cors`` configuration section."""
        props = config.bind(CorsProperties)
        return cls(props.to_policy(), strict=props.strict)

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def policy(self) -> Policy:
        return self._snapshot.policy

    @property
    def generation(self) -> int:
        return self._snapshot.generation

    def snapshot(self) -> PolicySnapshot:
        """Return the currently published policy and its generation."""
        return self._snapshot

    def replace(self, policy: Policy) -> PolicySnapshot:
        """Publish *policy* as the active policy.

        Raises:
            PolicyConflictException: In strict mode, when *policy* combines
                the wildcard origin with credentials.
        """
        with self._write_lock:
            self._check(policy)
            snapshot = PolicySnapshot(policy=policy, generation=self._snapshot.generation + 1)
            self._snapshot = snapshot
            listeners = list(self._listeners)

        logger.info("cors_policy_reloaded", generation=snapshot.generation, **_describe(policy))
        for listener in listeners:
            listener(snapshot)
        return snapshot

    def reload(self, config: Config) -> PolicySnapshot:
        """Rebind ``flycors.cors`` from *config* and publish the result."""
        return self.replace(config.bind(CorsProperties).to_policy())

    def add_listener(self, listener: PolicyListener) -> None:
        """Register a callback invoked after every successful replacement."""
        with self._write_lock:
            self._listeners.append(listener)

    def _check(self, policy: Policy) -> None:
        if not policy.has_conflict:
            return
        if self._strict:
            raise PolicyConflictException(context=_describe(policy))
        logger.error(
            "cors_policy_conflict",
            detail="wildcard origin with allow_credentials=True; every cross-origin request will be refused",
            **_describe(policy),
        )


def _describe(policy: Policy) -> dict[str, object]:
    origins = policy.allowed_origins
    return {
        "allowed_origins": origins if isinstance(origins, str) else list(origins),
        "allowed_methods": list(policy.allowed_methods),
        "allow_credentials": policy.allow_credentials,
        "max_age": policy.max_age,
    }
