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
"""'flycors evaluate' — Show the decision for a hypothetical request."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from flycors.cli.console import console, print_decision
from flycors.core.config import Config
from flycors.engine.engine import CorsEngine
from flycors.kernel.exceptions import PolicyConflictException
from flycors.logging.structlog_adapter import StructlogAdapter
from flycors.policy.types import RequestDescriptor


def _parse_header(value: str) -> tuple[str, str]:
    name, sep, header_value = value.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"expected 'Name: value', got {value!r}", param_hint="--header")
    return name.strip(), header_value.strip()


@click.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--origin", default=None, help="Origin header value; omit for a same-origin request.")
@click.option("--method", default="GET", show_default=True, help="HTTP method.")
@click.option("--header", "-H", "headers", multiple=True, help="Extra request header 'Name: value' (repeatable).")
@click.option("--path", default="/", show_default=True, help="Request path (informational).")
def evaluate_command(
    config_file: Path,
    origin: str | None,
    method: str,
    headers: tuple[str, ...],
    path: str,
) -> None:
    """Evaluate a request against the policy in CONFIG_FILE."""
    pairs = [_parse_header(h) for h in headers]
    if origin is not None:
        pairs.append(("Origin", origin))

    config = Config.from_file(config_file)
    StructlogAdapter().configure(config)
    try:
        engine = CorsEngine.from_config(config)
    except (ValueError, PolicyConflictException) as exc:
        console.print(f"[error]Cannot load policy:[/error] {exc}")
        sys.exit(2)

    decision = engine.evaluate(RequestDescriptor.from_pairs(method, pairs, path=path))
    print_decision(decision)
