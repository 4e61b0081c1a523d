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
"""Tests for HeaderComposer and Access-Control-Request-Headers parsing."""

from __future__ import annotations

import pytest

from flycors.engine.composer import HeaderComposer, parse_header_list
from flycors.kernel.exceptions import MalformedRequestException, PolicyConflictException
from flycors.policy.types import (
    NO_MATCH,
    Classification,
    DenialReason,
    OriginMatch,
    Policy,
    Verdict,
)

ORIGIN = "https://client.com"
MATCHED = OriginMatch(matched=True, echo_origin=ORIGIN, matched_entry=ORIGIN)


@pytest.fixture
def composer() -> HeaderComposer:
    return HeaderComposer()


@pytest.fixture
def policy() -> Policy:
    return Policy.create(
        allowed_origins=[ORIGIN],
        allowed_methods=["GET", "PUT"],
        allowed_headers=["Content-Type", "X-Trace-Id"],
        exposed_headers=["X-Request-Id", "X-Total-Count"],
        allow_credentials=True,
        max_age=600,
    )


class TestParseHeaderList:
    def test_none_is_empty(self):
        assert parse_header_list(None) == []

    def test_trims_and_skips_empty_items(self):
        assert parse_header_list(" Content-Type ,, x-trace-id ") == ["Content-Type", "x-trace-id"]

    def test_invalid_token_raises(self):
        with pytest.raises(MalformedRequestException):
            parse_header_list("Content-Type, bad header")

    def test_invalid_characters_raise(self):
        with pytest.raises(MalformedRequestException):
            parse_header_list("X-Ok, X-(bad)")


class TestNotCrossOrigin:
    def test_no_headers(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(Classification.NOT_CROSS_ORIGIN, policy, NO_MATCH)
        assert decision.headers == {}
        assert decision.allowed is True
        assert decision.terminal is False


class TestActualResponses:
    @pytest.mark.parametrize("classification", [Classification.SIMPLE, Classification.ACTUAL_AFTER_PREFLIGHT])
    def test_matched(self, composer: HeaderComposer, policy: Policy, classification: Classification):
        decision = composer.compose(classification, policy, MATCHED)
        assert decision.verdict is Verdict.ALLOWED
        assert decision.terminal is False
        assert decision.headers == {
            "Access-Control-Allow-Origin": ORIGIN,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Expose-Headers": "X-Request-Id, X-Total-Count",
            "Vary": "Origin",
        }

    def test_matched_without_credentials_or_exposed(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=[ORIGIN])
        decision = composer.compose(Classification.SIMPLE, policy, MATCHED)
        assert decision.headers == {"Access-Control-Allow-Origin": ORIGIN, "Vary": "Origin"}

    def test_not_matched_has_no_cors_headers(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(Classification.SIMPLE, policy, NO_MATCH)
        assert decision.allowed is False
        assert decision.verdict is Verdict.DENIED
        assert decision.reason is DenialReason.ORIGIN
        assert not any(name.startswith("Access-Control-") for name in decision.headers)
        assert decision.headers["Vary"] == "Origin"


class TestPreflight:
    def test_approved(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(
            Classification.PREFLIGHT, policy, MATCHED, request_method="PUT", request_headers=["content-type"]
        )
        assert decision.allowed is True
        assert decision.terminal is True
        assert decision.headers["Access-Control-Allow-Origin"] == ORIGIN
        assert decision.headers["Access-Control-Allow-Methods"] == "GET, PUT"
        assert decision.headers["Access-Control-Allow-Headers"] == "content-type"
        assert decision.headers["Access-Control-Allow-Credentials"] == "true"
        assert decision.headers["Access-Control-Max-Age"] == "600"
        assert "Access-Control-Expose-Headers" not in decision.headers

    def test_echoes_only_requested_headers(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(
            Classification.PREFLIGHT, policy, MATCHED, request_method="GET", request_headers=["X-Trace-Id"]
        )
        assert decision.headers["Access-Control-Allow-Headers"] == "X-Trace-Id"

    def test_no_requested_headers_omits_allow_headers(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(Classification.PREFLIGHT, policy, MATCHED, request_method="GET")
        assert decision.allowed is True
        assert "Access-Control-Allow-Headers" not in decision.headers

    def test_max_age_unset_omitted(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=[ORIGIN], allowed_methods=["PUT"])
        decision = composer.compose(Classification.PREFLIGHT, policy, MATCHED, request_method="PUT")
        assert "Access-Control-Max-Age" not in decision.headers

    def test_max_age_zero_emitted(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=[ORIGIN], allowed_methods=["PUT"], max_age=0)
        decision = composer.compose(Classification.PREFLIGHT, policy, MATCHED, request_method="PUT")
        assert decision.headers["Access-Control-Max-Age"] == "0"

    def test_method_not_allowed(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(Classification.PREFLIGHT, policy, MATCHED, request_method="DELETE")
        assert decision.verdict is Verdict.DENIED
        assert decision.reason is DenialReason.METHOD
        assert decision.terminal is True
        assert not any(name.startswith("Access-Control-") for name in decision.headers)

    def test_header_not_allowed(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(
            Classification.PREFLIGHT,
            policy,
            MATCHED,
            request_method="PUT",
            request_headers=["Content-Type", "Authorization"],
        )
        assert decision.reason is DenialReason.HEADERS
        assert not any(name.startswith("Access-Control-") for name in decision.headers)

    def test_origin_not_allowed(self, composer: HeaderComposer, policy: Policy):
        decision = composer.compose(Classification.PREFLIGHT, policy, NO_MATCH, request_method="PUT")
        assert decision.reason is DenialReason.ORIGIN
        assert decision.terminal is True

    def test_any_header_policy_echoes_request(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=[ORIGIN], allowed_headers=["*"])
        decision = composer.compose(
            Classification.PREFLIGHT, policy, MATCHED, request_method="POST", request_headers=["X-Anything"]
        )
        assert decision.headers["Access-Control-Allow-Headers"] == "X-Anything"


class TestCredentialsWildcardGuard:
    def test_conflict_match_yields_policy_conflict(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=["*"], allow_credentials=True)
        decision = composer.compose(Classification.SIMPLE, policy, OriginMatch(matched=False, conflict=True))
        assert decision.verdict is Verdict.POLICY_CONFLICT
        assert decision.reason is DenialReason.POLICY_CONFLICT
        assert "Access-Control-Allow-Origin" not in decision.headers

    def test_refuses_star_with_credentials(self, composer: HeaderComposer):
        policy = Policy.create(allowed_origins=[ORIGIN], allow_credentials=True)
        bogus = OriginMatch(matched=True, echo_origin="*")
        with pytest.raises(PolicyConflictException):
            composer.compose(Classification.SIMPLE, policy, bogus)

    def test_conflict_on_preflight_is_terminal(self, composer: HeaderComposer):
        decision = composer.conflict(Classification.PREFLIGHT)
        assert decision.terminal is True
        assert decision.allowed is False
