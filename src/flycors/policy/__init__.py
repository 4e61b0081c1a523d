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
"""flycors Policy — policy values and origin matching.

The atomically swappable holder lives in :mod:`flycors.policy.store`.
"""

from flycors.policy.origins import OriginMatcher, OriginPattern, parse_origin_pattern
from flycors.policy.types import (
    WILDCARD,
    Classification,
    Decision,
    DenialReason,
    OriginMatch,
    Policy,
    PolicySnapshot,
    RequestDescriptor,
    Verdict,
)

__all__ = [
    "WILDCARD",
    "Classification",
    "Decision",
    "DenialReason",
    "OriginMatch",
    "OriginMatcher",
    "OriginPattern",
    "Policy",
    "PolicySnapshot",
    "RequestDescriptor",
    "Verdict",
    "parse_origin_pattern",
]
