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
"""flycors CLI — policy validation and request evaluation."""

from __future__ import annotations

import click

from flycors.cli.check import check_command
from flycors.cli.console import print_banner
from flycors.cli.evaluate import evaluate_command


class FlyCorsCLI(click.Group):
    """Custom Click group that shows the flycors banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=FlyCorsCLI)
@click.version_option(package_name="flycors")
def cli() -> None:
    """flycors — Cross-Origin Policy Engine CLI."""


cli.add_command(check_command, name="check")
cli.add_command(evaluate_command, name="evaluate")
