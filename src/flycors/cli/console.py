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
"""Shared Rich console for CLI output."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from flycors.policy.types import Decision, Policy, Verdict

FLYCORS_THEME = Theme({
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
    "flycors": "bold magenta",
    "dim": "dim",
})

console = Console(theme=FLYCORS_THEME)

_VERDICT_STYLES = {
    Verdict.ALLOWED: "success",
    Verdict.DENIED: "warning",
    Verdict.POLICY_CONFLICT: "error",
}


def print_banner() -> None:
    """Print the flycors header line."""
    from flycors import __version__

    console.print(f"[flycors]flycors[/flycors] [dim]:: Cross-Origin Policy Engine :: (v{__version__})[/dim]")
    console.print("  [dim]Copyright 2026 Firefly Software Solutions Inc. | Apache 2.0 License[/dim]\n")


def print_policy(policy: Policy) -> None:
    """Print a table describing *policy*."""
    table = Table(title="CORS Policy", show_header=False, border_style="dim")
    table.add_column("Setting", style="info")
    table.add_column("Value")
    origins = policy.allowed_origins
    table.add_row("allowed_origins", origins if isinstance(origins, str) else ", ".join(origins) or "(none)")
    table.add_row("allowed_methods", ", ".join(policy.allowed_methods) or "(none)")
    table.add_row("allowed_headers", ", ".join(sorted(policy.allowed_headers)) or "(none)")
    table.add_row("exposed_headers", ", ".join(policy.exposed_headers) or "(none)")
    table.add_row("allow_credentials", str(policy.allow_credentials).lower())
    table.add_row("max_age", "unset" if policy.max_age is None else str(policy.max_age))
    console.print(table)


def print_decision(decision: Decision) -> None:
    """Print the classification, verdict and header set of *decision*."""
    style = _VERDICT_STYLES[decision.verdict]
    console.print(f"Classification: [info]{decision.classification.value}[/info]")
    console.print(f"Verdict:        [{style}]{decision.verdict.value}[/{style}]")
    if decision.reason is not None:
        console.print(f"Reason:         {decision.reason.value}")
    if decision.terminal:
        console.print("[dim]Terminal: answer without invoking the handler[/dim]")

    if not decision.headers:
        console.print("[dim]No response headers[/dim]")
        return
    console.print("Response headers:")
    for name, value in decision.headers.items():
        console.print(f"  [info]{name}[/info]: {escape(value)}", soft_wrap=True)
