# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

import sys
import click
from rich.console import Console

from ..config import ConfigError
from ..migrations import MigrationError, MigrationScope, current_version
from ._context import get_migrator, skip_prompts

console = Console()


@click.command('rollback-migration', context_settings={'help_option_names': ['-h', '--help']})
@click.option(
    '--scope',
    type=click.Choice(['global', 'project']),
    default='global',
    show_default=True,
    help='Which configuration file to revert'
)
@click.option('-y', '--assume-yes', is_flag=True, help='Assume "yes" for confirmation prompts')
@click.pass_context
def rollback_migration(ctx, scope: str, assume_yes: bool):
    """Revert the last applied config migration.

    Runs the migration's best-effort reversal and moves the migration
    version back one step. Only one migration is reverted per call.
    """
    migrator = get_migrator(ctx)
    config_scope = MigrationScope(scope)

    try:
        config = migrator.load(config_scope)
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if config is None:
        console.print(f"[red]Error: No {scope} configuration file found[/red]")
        sys.exit(1)

    version = current_version(config)
    if not skip_prompts(ctx, assume_yes):
        if not click.confirm(f"Revert migration {version} of the {scope} configuration?"):
            console.print("[yellow]Rollback cancelled[/yellow]")
            return

    try:
        new_version = migrator.rollback(config_scope)
    except (ConfigError, MigrationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]✓ Reverted migration {version}; {scope} configuration is now at version {new_version}[/green]")
    console.print("[dim]The migration is pending again and will run on the next update-config.[/dim]")
