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
"""Tests for Config loading and CorsProperties binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from flycors.config.properties import CorsProperties, PreflightCacheProperties
from flycors.core.config import Config, config_properties
from flycors.policy.types import WILDCARD


@config_properties(prefix="myapp.limits")
@dataclass
class LimitsProperties:
    retries: int = 3
    verbose: bool = False


class Undecorated:
    pass


class TestConfigGet:
    def test_dot_notation(self):
        config = Config({"flycors": {"cors": {"max_age": 60}}})
        assert config.get("flycors.cors.max_age") == 60

    def test_missing_returns_default(self):
        assert Config({}).get("flycors.cors.max_age", 5) == 5

    def test_env_var_overrides_value(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYCORS_CORS_MAX_AGE", "120")
        config = Config({"flycors": {"cors": {"max_age": 60}}})
        assert config.get("flycors.cors.max_age") == "120"

    def test_placeholder_with_default(self):
        config = Config({"flycors": {"cors": {"origin": "${FLYCORS_TEST_UNSET_ORIGIN:https://a.example}"}}})
        assert config.get("flycors.cors.origin") == "https://a.example"

    def test_placeholder_from_config_reference(self):
        config = Config({"app": {"host": "https://b.example"}, "flycors": {"cors": {"origin": "${app.host}"}}})
        assert config.get("flycors.cors.origin") == "https://b.example"

    def test_unresolvable_placeholder_raises(self):
        config = Config({"flycors": {"cors": {"origin": "${FLYCORS_TEST_NOPE}"}}})
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            config.get("flycors.cors.origin")


class TestConfigFromFile:
    def test_yaml_file_merged_over_defaults(self, tmp_path: Path):
        path = tmp_path / "cors.yaml"
        path.write_text("flycors:\n  cors:\n    allowed_origins: [https://client.com]\n")
        config = Config.from_file(path)
        assert config.get("flycors.cors.allowed_origins") == ["https://client.com"]
        # Value from packaged defaults
        assert config.get("flycors.cors.max_age") == 600
        assert len(config.loaded_sources) == 2

    def test_toml_file(self, tmp_path: Path):
        path = tmp_path / "cors.toml"
        path.write_text('[flycors.cors]\nallowed_origins = ["https://client.com"]\nallow_credentials = true\n')
        config = Config.from_file(path, load_defaults=False)
        props = config.bind(CorsProperties)
        assert props.allowed_origins == ["https://client.com"]
        assert props.allow_credentials is True

    def test_profile_overlay(self, tmp_path: Path):
        (tmp_path / "cors.yaml").write_text("flycors:\n  cors:\n    max_age: 10\n")
        (tmp_path / "cors-prod.yaml").write_text("flycors:\n  cors:\n    max_age: 3600\n")
        config = Config.from_file(tmp_path / "cors.yaml", active_profiles=["prod"])
        assert config.get("flycors.cors.max_age") == 3600

    def test_missing_file_uses_defaults_only(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("flycors.cors.allow_credentials") is False


class TestCorsPropertiesBinding:
    def test_defaults(self):
        props = Config({}).bind(CorsProperties)
        assert props.allowed_origins == []
        assert props.allowed_methods == ["GET", "HEAD", "POST"]
        assert props.max_age is None
        assert props.strict is False

    def test_provided_values(self):
        config = Config({
            "flycors": {
                "cors": {
                    "allowed_origins": ["https://client.com"],
                    "allowed_methods": ["get", "put"],
                    "allowed_headers": ["Content-Type"],
                    "exposed_headers": ["X-Request-Id"],
                    "allow_credentials": True,
                    "max_age": 300,
                }
            }
        })
        policy = config.bind(CorsProperties).to_policy()
        assert policy.allowed_origins == ("https://client.com",)
        assert policy.allowed_methods == ("GET", "PUT")
        assert policy.allowed_headers == frozenset({"content-type"})
        assert policy.exposed_headers == ("X-Request-Id",)
        assert policy.allow_credentials is True
        assert policy.max_age == 300

    def test_comma_separated_env_values(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYCORS_CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("FLYCORS_CORS_ALLOW_CREDENTIALS", "true")
        props = Config({}).bind(CorsProperties)
        assert props.allowed_origins == ["https://a.example", "https://b.example"]
        assert props.allow_credentials is True

    def test_wildcard_origin_resolves_to_marker(self):
        config = Config({"flycors": {"cors": {"allowed_origins": ["*"]}}})
        assert config.bind(CorsProperties).to_policy().allowed_origins == WILDCARD

    def test_negative_max_age_fails_fast(self):
        config = Config({"flycors": {"cors": {"max_age": -1}}})
        with pytest.raises(ValueError, match="Configuration validation failed"):
            config.bind(CorsProperties)

    def test_unset_max_age_string(self):
        config = Config({"flycors": {"cors": {"max_age": "unset"}}})
        assert config.bind(CorsProperties).max_age is None


class TestDataclassBinding:
    def test_cache_properties(self):
        config = Config({"flycors": {"cache": {"enabled": False, "max_entries": 5}}})
        props = config.bind(PreflightCacheProperties)
        assert props.enabled is False
        assert props.max_entries == 5

    def test_string_coercion(self):
        config = Config({"myapp": {"limits": {"retries": "7", "verbose": "yes"}}})
        props = config.bind(LimitsProperties)
        assert props.retries == 7
        assert props.verbose is True

    def test_undecorated_class_rejected(self):
        with pytest.raises(ValueError, match="not decorated"):
            Config({}).bind(Undecorated)
