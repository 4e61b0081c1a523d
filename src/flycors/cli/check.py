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
"""'flycors check' — Validate a CORS policy file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flycors.cli.console import console, print_policy
from flycors.config.properties.cors import CorsProperties
from flycors.core.config import Config


@click.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--profile", "profiles", multiple=True, help="Active profile overlay (repeatable).")
def check_command(config_file: Path, profiles: tuple[str, ...]) -> None:
    """Validate CONFIG_FILE and report policy conflicts."""
    config = Config.from_file(config_file, active_profiles=list(profiles))
    try:
        props = config.bind(CorsProperties)
    except ValueError as exc:
        console.print(f"[error]Invalid configuration:[/error] {exc}")
        sys.exit(2)

    policy = props.to_policy()
    print_policy(policy)

    if policy.has_conflict:
        console.print(
            "[error]PolicyConflict:[/error] allowed_origins '*' cannot be combined with "
            "allow_credentials=true. Every cross-origin request would be refused."
        )
        sys.exit(1)

    console.print("[success]Policy OK[/success]")
