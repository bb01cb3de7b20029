# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

from typing import Any, Dict
import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..config import ConfigError, GlobalConfig, ProjectConfig, redact
from ..migrations import MigrationScope
from ._context import get_migrator

console = Console()


def _render(title: str, values: Dict[str, Any]) -> Table:
    table = Table(title=title)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in redact(values).items():
        table.add_row(key, "" if value is None else str(value))
    return table


@click.command('config-show', context_settings={'help_option_names': ['-h', '--help']})
@click.pass_context
def config_show(ctx):
    """Show the global and project configuration with secrets redacted."""
    config: GlobalConfig = ctx.obj['config']
    console.print(_render("Global configuration", config.model_dump()))

    migrator = get_migrator(ctx)
    try:
        project_data = migrator.load(MigrationScope.PROJECT)
    except ConfigError as e:
        console.print(f"[yellow]Warning: {e}[/yellow]")
        return

    if not project_data:
        console.print("[dim]No project configuration for this repository[/dim]")
        return

    try:
        project = ProjectConfig(**project_data)
    except ValidationError as e:
        console.print(f"[yellow]Warning: Project configuration is invalid: {e}[/yellow]")
        return

    console.print(_render("Project configuration", project.model_dump()))
