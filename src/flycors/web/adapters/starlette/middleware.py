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
"""CORS policy middleware for Starlette — pure ASGI."""

from __future__ import annotations

from typing import Any

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from flycors.engine.composer import VARY
from flycors.engine.engine import CorsEngine
from flycors.policy.store import PolicyStore
from flycors.policy.types import Decision, RequestDescriptor, Verdict


class CorsPolicyMiddleware:
    """Applies a :class:`CorsEngine` decision to every HTTP exchange.

    Preflights are answered here without reaching the application: ``200
    OK`` on approval, ``denied_preflight_status`` on denial and ``500`` when
    the policy itself is in conflict. Every other cross-origin response is
    delivered unchanged apart from the composed headers; a denied request
    still gets its body, the browser enforces the denial.

    Uses raw ASGI protocol instead of ``BaseHTTPMiddleware`` so streaming
    responses pass through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        engine: CorsEngine | None = None,
        store: PolicyStore | None = None,
        denied_preflight_status: int = 200,
    ) -> None:
        if engine is None:
            if store is None:
                raise ValueError("CorsPolicyMiddleware requires an engine or a policy store")
            engine = CorsEngine(store)
        self.app = app
        self.engine = engine
        self._denied_preflight_status = denied_preflight_status

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = RequestDescriptor.from_pairs(
            scope["method"],
            Headers(scope=scope).items(),
            path=scope.get("path", "/"),
        )
        decision = self.engine.evaluate(request)

        if decision.terminal:
            response = self._preflight_response(decision)
            await response(scope, receive, send)
            return

        if not decision.headers:
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Any) -> None:
            if message["type"] == "http.response.start":
                apply_decision(MutableHeaders(scope=message), decision)
            await send(message)

        await self.app(scope, receive, send_with_cors)

    def _preflight_response(self, decision: Decision) -> Response:
        if decision.verdict is Verdict.ALLOWED:
            return PlainTextResponse("OK", status_code=200, headers=decision.headers)
        if decision.verdict is Verdict.POLICY_CONFLICT:
            return PlainTextResponse("CORS policy misconfigured", status_code=500, headers=decision.headers)
        reason = decision.reason.value if decision.reason else "request"
        return PlainTextResponse(
            f"Disallowed CORS {reason}",
            status_code=self._denied_preflight_status,
            headers=decision.headers,
        )


def apply_decision(headers: MutableHeaders, decision: Decision) -> None:
    """Merge decision headers into a response; ``Vary`` is extended, not replaced."""
    for name, value in decision.headers.items():
        if name == VARY:
            for token in value.split(","):
                headers.add_vary_header(token.strip())
        else:
            headers[name] = value
