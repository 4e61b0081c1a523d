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
"""Request classification per the Fetch CORS rules."""

from __future__ import annotations

from flycors.policy.types import Classification, RequestDescriptor

SIMPLE_METHODS = frozenset({"GET", "HEAD", "POST"})

SAFELISTED_HEADERS = frozenset({"accept", "accept-language", "content-language", "content-type"})

SAFELISTED_CONTENT_TYPES = frozenset({
    "application/x-www-form-urlencoded",
    "multipart/form-data",
    "text/plain",
})

# Set by the user agent itself; scripts cannot add them, so they never
# make a request non-simple.
USER_AGENT_HEADERS = frozenset({
    "accept-charset",
    "accept-encoding",
    "access-control-request-headers",
    "access-control-request-method",
    "connection",
    "content-length",
    "cookie",
    "cookie2",
    "date",
    "dnt",
    "expect",
    "host",
    "keep-alive",
    "origin",
    "referer",
    "set-cookie",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
    # No longer forbidden to scripts, but every browser sends one and the
    # server cannot tell the two apart.
    "user-agent",
    "via",
})

USER_AGENT_HEADER_PREFIXES = ("sec-", "proxy-")


def is_author_header(name: str) -> bool:
    """True when *name* (lower case) could have been set by page script."""
    return name not in USER_AGENT_HEADERS and not name.startswith(USER_AGENT_HEADER_PREFIXES)


def essence(content_type: str) -> str:
    """Media type without parameters: ``"text/plain; charset=utf-8"`` -> ``"text/plain"``."""
    return content_type.split(";", 1)[0].strip().lower()


def classify(request: RequestDescriptor) -> Classification:
    """Classify *request*. Pure; identical input yields identical output."""
    if request.origin is None:
        return Classification.NOT_CROSS_ORIGIN

    if request.method == "OPTIONS" and request.has("access-control-request-method"):
        return Classification.PREFLIGHT

    if request.method in SIMPLE_METHODS and _has_simple_headers(request):
        return Classification.SIMPLE

    return Classification.ACTUAL_AFTER_PREFLIGHT


def _has_simple_headers(request: RequestDescriptor) -> bool:
    for name, values in request.headers.items():
        if not is_author_header(name):
            continue
        if name not in SAFELISTED_HEADERS:
            return False
        if name == "content-type" and any(essence(v) not in SAFELISTED_CONTENT_TYPES for v in values):
            return False
    return True
