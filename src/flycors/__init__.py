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
"""flycors — Cross-Origin Policy Engine.

Evaluates inbound requests against a configured cross-origin access policy
and produces the response headers they should carry, including full
preflight negotiation.
"""

from flycors.cache.adapters.memory import InMemoryPreflightCache
from flycors.core.config import Config
from flycors.engine.classifier import classify
from flycors.engine.engine import CorsEngine
from flycors.kernel.exceptions import (
    FlyCorsException,
    MalformedRequestException,
    PolicyConflictException,
)
from flycors.policy.store import PolicyStore
from flycors.policy.types import (
    Classification,
    Decision,
    DenialReason,
    Policy,
    RequestDescriptor,
    Verdict,
)

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "Config",
    "CorsEngine",
    "Decision",
    "DenialReason",
    "FlyCorsException",
    "InMemoryPreflightCache",
    "MalformedRequestException",
    "Policy",
    "PolicyConflictException",
    "PolicyStore",
    "RequestDescriptor",
    "Verdict",
    "classify",
    "__version__",
]
