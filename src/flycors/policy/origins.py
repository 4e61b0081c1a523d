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
"""Origin matching: exact origins, the wildcard marker, and port patterns.

A pattern entry has the form ``scheme://host:*`` and accepts the given
scheme and host on any port (or on no explicit port). Everything else in
``allowed_origins`` is compared as a literal string. There is no substring,
glob or regex matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from flycors.policy.types import NO_MATCH, WILDCARD, OriginMatch, Policy

ANY_PORT = "*"


@dataclass(frozen=True)
class OriginPattern:
    """A parsed ``scheme://host:*`` entry."""

    scheme: str
    host: str

    def matches(self, origin: str) -> bool:
        parsed = split_origin(origin)
        if parsed is None:
            return False
        scheme, host, port = parsed
        if port is not None and not port.isdigit():
            return False
        return scheme == self.scheme and host == self.host


def split_origin(origin: str) -> tuple[str, str, str | None] | None:
    """Split a serialized origin into ``(scheme, host, port)``.

    Scheme and host are lower-cased. Returns ``None`` when the value is not
    a ``scheme://host[:port]`` origin (``"null"``, paths, userinfo, ...).
    """
    scheme, sep, rest = origin.partition("://")
    if not sep or not scheme or not rest:
        return None
    if any(c in rest for c in "/?#@"):
        return None
    if rest.startswith("["):
        host, bracket, tail = rest.partition("]")
        if not bracket:
            return None
        host += bracket
        if tail and not tail.startswith(":"):
            return None
        port = tail[1:] if tail else None
    else:
        host, colon, port_part = rest.partition(":")
        port = port_part if colon else None
    if not host or port == "":
        return None
    return scheme.lower(), host.lower(), port


@lru_cache(maxsize=256)
def parse_origin_pattern(entry: str) -> OriginPattern | None:
    """Return the pattern for a ``scheme://host:*`` entry, or ``None`` for literals."""
    parsed = split_origin(entry)
    if parsed is None:
        return None
    scheme, host, port = parsed
    if port != ANY_PORT or WILDCARD in host:
        return None
    return OriginPattern(scheme=scheme, host=host)


class OriginMatcher:
    """Decides whether an ``Origin`` value is permitted under a policy."""

    def match(self, policy: Policy, origin: str) -> OriginMatch:
        if policy.allows_any_origin:
            if policy.allow_credentials:
                return OriginMatch(matched=False, conflict=True)
            return OriginMatch(matched=True, echo_origin=WILDCARD, matched_entry=WILDCARD)

        for entry in policy.allowed_origins:
            if entry == origin:
                return OriginMatch(matched=True, echo_origin=origin, matched_entry=entry)
            pattern = parse_origin_pattern(entry)
            if pattern is not None and pattern.matches(origin):
                return OriginMatch(matched=True, echo_origin=origin, matched_entry=entry)

        return NO_MATCH
