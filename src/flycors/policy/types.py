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
"""Value types shared by the policy store, matcher, composer and engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

WILDCARD = "*"

ALL_METHODS: tuple[str, ...] = ("DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT")


class Classification(str, Enum):
    """How a request relates to the cross-origin protocol."""

    NOT_CROSS_ORIGIN = "not_cross_origin"
    SIMPLE = "simple"
    PREFLIGHT = "preflight"
    ACTUAL_AFTER_PREFLIGHT = "actual_after_preflight"


class Verdict(str, Enum):
    """Outcome reported to the transport collaborator."""

    ALLOWED = "allowed"
    DENIED = "denied"
    POLICY_CONFLICT = "policy_conflict"


class DenialReason(str, Enum):
    """Why a cross-origin request was not approved."""

    ORIGIN = "origin"
    METHOD = "method"
    HEADERS = "headers"
    MALFORMED = "malformed"
    POLICY_CONFLICT = "policy_conflict"


@dataclass(frozen=True)
class Policy:
    """An immutable cross-origin access policy.

    Build instances with :meth:`create`, which normalizes method tokens to
    upper case and header names to lower case so evaluation can use exact
    set lookups.

    ``allowed_origins`` is either the wildcard marker ``"*"`` or a tuple of
    exact origins and ``scheme://host:*`` port patterns, in declared order.
    ``max_age`` is ``None`` when unset.
    """

    allowed_origins: str | tuple[str, ...] = ()
    allowed_methods: tuple[str, ...] = ("GET", "HEAD", "POST")
    allowed_headers: frozenset[str] = frozenset()
    exposed_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int | None = None

    @classmethod
    def create(
        cls,
        allowed_origins: Iterable[str] | str = (),
        allowed_methods: Iterable[str] = ("GET", "HEAD", "POST"),
        allowed_headers: Iterable[str] = (),
        exposed_headers: Iterable[str] = (),
        allow_credentials: bool = False,
        max_age: int | None = None,
    ) -> Policy:
        if isinstance(allowed_origins, str):
            allowed_origins = [allowed_origins]
        origins = tuple(_dedupe(o.strip() for o in allowed_origins if o.strip()))
        resolved_origins: str | tuple[str, ...] = WILDCARD if WILDCARD in origins else origins

        methods = [m.strip().upper() for m in allowed_methods if m.strip()]
        if WILDCARD in methods:
            methods = list(ALL_METHODS)

        if max_age is not None and max_age < 0:
            raise ValueError(f"max_age must be non-negative, got {max_age}")

        return cls(
            allowed_origins=resolved_origins,
            allowed_methods=tuple(_dedupe(methods)),
            allowed_headers=frozenset(h.strip().lower() for h in allowed_headers if h.strip()),
            exposed_headers=tuple(_dedupe(h.strip() for h in exposed_headers if h.strip())),
            allow_credentials=allow_credentials,
            max_age=max_age,
        )

    @property
    def allows_any_origin(self) -> bool:
        return self.allowed_origins == WILDCARD

    @property
    def allows_any_header(self) -> bool:
        return WILDCARD in self.allowed_headers

    @property
    def has_conflict(self) -> bool:
        """True when the wildcard origin is combined with credentials."""
        return self.allows_any_origin and self.allow_credentials


@dataclass(frozen=True)
class PolicySnapshot:
    """A policy together with the store generation it was published under."""

    policy: Policy
    generation: int


@dataclass(frozen=True)
class RequestDescriptor:
    """What the transport collaborator knows about an inbound request.

    Header names are normalized to lower case on construction; values
    for repeated names are kept in arrival order.
    """

    method: str
    headers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    path: str = "/"

    @classmethod
    def from_pairs(cls, method: str, headers: Iterable[tuple[str, str]] = (), path: str = "/") -> RequestDescriptor:
        collected: dict[str, list[str]] = {}
        for name, value in headers:
            collected.setdefault(name.strip().lower(), []).append(value)
        return cls(
            method=method.strip().upper(),
            headers={name: tuple(values) for name, values in collected.items()},
            path=path,
        )

    @classmethod
    def from_mapping(cls, method: str, headers: Mapping[str, str] | None = None, path: str = "/") -> RequestDescriptor:
        return cls.from_pairs(method, (headers or {}).items(), path=path)

    def get(self, name: str) -> str | None:
        """Return the first value of a header, or ``None`` when absent."""
        values = self.headers.get(name.lower())
        return values[0] if values else None

    def get_combined(self, name: str) -> str | None:
        """Return all values of a list-valued header joined by commas."""
        values = self.headers.get(name.lower())
        return ", ".join(values) if values else None

    def has(self, name: str) -> bool:
        return name.lower() in self.headers

    @property
    def origin(self) -> str | None:
        return self.get("origin")


@dataclass(frozen=True)
class OriginMatch:
    """Result of matching a request origin against a policy.

    ``echo_origin`` is the value to send in ``Access-Control-Allow-Origin``:
    ``"*"`` for an uncredentialed wildcard policy, otherwise the literal
    request origin. ``matched_entry`` is the first policy entry that
    accepted the origin.
    """

    matched: bool
    echo_origin: str | None = None
    matched_entry: str | None = None
    conflict: bool = False


NO_MATCH = OriginMatch(matched=False)


@dataclass(frozen=True)
class Decision:
    """The engine's answer for one request. Never cached."""

    classification: Classification
    verdict: Verdict
    headers: dict[str, str] = field(default_factory=dict)
    terminal: bool = False
    reason: DenialReason | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is Verdict.ALLOWED


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        key = item.lower()
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result
