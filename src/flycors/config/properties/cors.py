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
"""CORS policy configuration properties."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from flycors.core.config import config_properties
from flycors.policy.types import Policy


@config_properties(prefix="flycors.cors")
class CorsProperties(BaseModel):
    """Configuration for the cross-origin policy (flycors.cors.*).

    List fields also accept a comma-separated string so they can be set
    from environment variables, e.g.
    ``FLYCORS_CORS_ALLOWED_ORIGINS="https://a.example, https://b.example"``.
    """

    allowed_origins: list[str] = Field(default_factory=list)
    allowed_methods: list[str] = Field(default_factory=lambda: ["GET", "HEAD", "POST"])
    allowed_headers: list[str] = Field(default_factory=list)
    exposed_headers: list[str] = Field(default_factory=list)
    allow_credentials: bool = False
    max_age: int | None = Field(default=None, ge=0)
    strict: bool = False

    @field_validator("allowed_origins", "allowed_methods", "allowed_headers", "exposed_headers", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("max_age", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in ("", "none", "null", "unset"):
            return None
        return value

    def to_policy(self) -> Policy:
        return Policy.create(
            allowed_origins=self.allowed_origins,
            allowed_methods=self.allowed_methods,
            allowed_headers=self.allowed_headers,
            exposed_headers=self.exposed_headers,
            allow_credentials=self.allow_credentials,
            max_age=self.max_age,
        )
