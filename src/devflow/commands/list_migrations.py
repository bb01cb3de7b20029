# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

import sys
import click
from rich.console import Console
from rich.table import Table

from ..config import ConfigError
from ..migrations import MigrationError
from ._context import get_migrator, selected_scopes

console = Console()


@click.command('list-migrations', context_settings={'help_option_names': ['-h', '--help']})
@click.option(
    '--scope',
    type=click.Choice(['global', 'project', 'all']),
    default='all',
    show_default=True,
    help='Which configuration file to inspect'
)
@click.option('--pending', 'pending_only', is_flag=True, help='Only show migrations that still have to run')
@click.pass_context
def list_migrations(ctx, scope: str, pending_only: bool):
    """
    List config migrations and whether they were applied.

    Examples:

      devflow list-migrations                   # Both configuration files

      devflow list-migrations --scope project   # Current repository only

      devflow list-migrations --pending         # What update-config would run
    """
    migrator = get_migrator(ctx)

    for config_scope in selected_scopes(scope):
        try:
            status = migrator.status(config_scope)
        except (ConfigError, MigrationError) as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

        if status.path is None:
            console.print(f"[dim]{config_scope.value}: not inside a git repository[/dim]\n")
            continue

        title = f"{config_scope.value.capitalize()} migrations ({status.path})"
        if not status.exists:
            title += " - file not created yet"

        rows = [row for row in status.rows if not (pending_only and row.applied)]
        if not rows:
            console.print(f"[dim]{title}: none[/dim]\n")
            continue

        table = Table(title=title)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Description")
        table.add_column("Required", justify="center")
        table.add_column("Status", justify="center")

        for row in rows:
            table.add_row(
                row.migration_id,
                row.description,
                "yes" if row.is_prerequisite else "no",
                "[green]applied[/green]" if row.applied else "[yellow]pending[/yellow]"
            )

        console.print(table)
        console.print(f"Current version: {status.current_version} ({status.pending_count} pending)\n")
