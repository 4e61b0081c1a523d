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
"""HeaderComposer — builds the CORS response header set for a classified request."""

from __future__ import annotations

import re

from flycors.kernel.exceptions import MalformedRequestException, PolicyConflictException
from flycors.policy.types import (
    WILDCARD,
    Classification,
    Decision,
    DenialReason,
    OriginMatch,
    Policy,
    Verdict,
)

ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
EXPOSE_HEADERS = "Access-Control-Expose-Headers"
MAX_AGE = "Access-Control-Max-Age"
VARY = "Vary"

ACTUAL_VARY = "Origin"
PREFLIGHT_VARY = "Origin, Access-Control-Request-Method, Access-Control-Request-Headers"

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def parse_header_list(value: str | None) -> list[str]:
    """Split an ``Access-Control-Request-Headers`` value into header names.

    Items are trimmed and empty items skipped. Original casing is kept.

    Raises:
        MalformedRequestException: If an item is not a valid header name.
    """
    if value is None:
        return []
    tokens: list[str] = []
    for item in value.split(","):
        token = item.strip()
        if not token:
            continue
        if not _TOKEN_RE.match(token):
            raise MalformedRequestException(
                f"Invalid header name {token!r} in Access-Control-Request-Headers",
                context={"value": value},
            )
        tokens.append(token)
    return tokens


class HeaderComposer:
    """Turns a classification plus an origin match into a :class:`Decision`.

    Never emits ``Access-Control-Allow-*`` headers for a denied request, and
    refuses to emit ``Access-Control-Allow-Origin: *`` under a credentialed
    policy.
    """

    def compose(
        self,
        classification: Classification,
        policy: Policy,
        match: OriginMatch,
        request_method: str | None = None,
        request_headers: list[str] | None = None,
    ) -> Decision:
        if classification is Classification.NOT_CROSS_ORIGIN:
            return Decision(classification=classification, verdict=Verdict.ALLOWED)

        preflight = classification is Classification.PREFLIGHT

        if match.conflict or (match.matched and policy.has_conflict):
            return self.conflict(classification)

        if not match.matched or match.echo_origin is None:
            return self.denial(classification, DenialReason.ORIGIN)

        if not preflight:
            return Decision(
                classification=classification,
                verdict=Verdict.ALLOWED,
                headers=self.actual_headers(policy, match.echo_origin),
            )

        method = (request_method or "").strip().upper()
        if method not in policy.allowed_methods:
            return self.denial(classification, DenialReason.METHOD)

        requested = request_headers or []
        if not policy.allows_any_header and any(h.lower() not in policy.allowed_headers for h in requested):
            return self.denial(classification, DenialReason.HEADERS)

        headers = self.preflight_headers(policy, match.echo_origin, requested)
        headers[VARY] = PREFLIGHT_VARY
        return Decision(classification=classification, verdict=Verdict.ALLOWED, headers=headers, terminal=True)

    def actual_headers(self, policy: Policy, echo_origin: str) -> dict[str, str]:
        """Headers annotating an approved simple or actual response."""
        _guard(policy, echo_origin)
        headers = {ALLOW_ORIGIN: echo_origin}
        if policy.allow_credentials:
            headers[ALLOW_CREDENTIALS] = "true"
        if policy.exposed_headers:
            headers[EXPOSE_HEADERS] = ", ".join(policy.exposed_headers)
        headers[VARY] = ACTUAL_VARY
        return headers

    def preflight_headers(self, policy: Policy, echo_origin: str, requested_headers: list[str]) -> dict[str, str]:
        """Headers approving a preflight.

        ``Access-Control-Allow-Headers`` echoes the requested names only, so
        capabilities the client did not ask about are not advertised.
        """
        _guard(policy, echo_origin)
        headers = {
            ALLOW_ORIGIN: echo_origin,
            ALLOW_METHODS: ", ".join(policy.allowed_methods),
        }
        if requested_headers:
            headers[ALLOW_HEADERS] = ", ".join(requested_headers)
        if policy.allow_credentials:
            headers[ALLOW_CREDENTIALS] = "true"
        if policy.max_age is not None:
            headers[MAX_AGE] = str(policy.max_age)
        return headers

    def denial(self, classification: Classification, reason: DenialReason) -> Decision:
        return Decision(
            classification=classification,
            verdict=Verdict.DENIED,
            headers={VARY: _vary_for(classification)},
            terminal=classification is Classification.PREFLIGHT,
            reason=reason,
        )

    def conflict(self, classification: Classification) -> Decision:
        return Decision(
            classification=classification,
            verdict=Verdict.POLICY_CONFLICT,
            headers={VARY: _vary_for(classification)},
            terminal=classification is Classification.PREFLIGHT,
            reason=DenialReason.POLICY_CONFLICT,
        )


def _vary_for(classification: Classification) -> str:
    return PREFLIGHT_VARY if classification is Classification.PREFLIGHT else ACTUAL_VARY


def _guard(policy: Policy, echo_origin: str) -> None:
    if policy.allow_credentials and echo_origin == WILDCARD:
        raise PolicyConflictException(
            "Refusing to emit Access-Control-Allow-Origin: * for a credentialed policy",
        )
