# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

import sys
import click
from rich.console import Console

from ..config import ConfigError
from ..migrations import FatalMigrationError, MigrationError
from ._context import get_migrator, selected_scopes, skip_prompts

console = Console()


@click.command('update-config', context_settings={'help_option_names': ['-h', '--help']})
@click.option(
    '--scope',
    type=click.Choice(['global', 'project', 'all']),
    default='all',
    show_default=True,
    help='Which configuration file to upgrade'
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Show pending migrations without making changes'
)
@click.option(
    '--prerequisites-only',
    is_flag=True,
    help='Only run migrations that must succeed before updating devflow'
)
@click.option('-y', '--assume-yes', is_flag=True, help='Assume "yes" for confirmation prompts')
@click.pass_context
def update_config(ctx, scope: str, dry_run: bool, prerequisites_only: bool, assume_yes: bool):
    """Apply pending migrations to the configuration files.

    The global file and the project file (inside the current repository's
    git directory) are migrated independently. Every migration is saved as
    soon as it succeeds.
    """
    migrator = get_migrator(ctx)
    failed = False

    for config_scope in selected_scopes(scope):
        path = migrator.config_path(config_scope)
        if path is None or not migrator.store.exists(path):
            console.print(f"[dim]No {config_scope.value} configuration file found, skipping[/dim]")
            continue

        console.print(f"[blue]Checking {config_scope.value} configuration file: {path}[/blue]")

        try:
            plan = migrator.migrate(config_scope, prerequisites_only=prerequisites_only, dry_run=True)
        except (ConfigError, MigrationError) as e:
            console.print(f"[red]Error: {e}[/red]")
            failed = True
            continue

        console.print(f"Current version: [yellow]{plan.from_version}[/yellow]")
        if not plan.pending:
            console.print("[green]✓ Configuration is already up to date![/green]\n")
            continue

        console.print("[blue]Pending migrations:[/blue]")
        for migration in plan.pending:
            marker = " [bold](required)[/bold]" if migration.is_prerequisite else ""
            console.print(f"  • {migration.migration_id}: {migration.description}{marker}")
        console.print()

        if dry_run:
            console.print("[yellow]Dry-run mode: No changes made[/yellow]\n")
            continue

        if not skip_prompts(ctx, assume_yes):
            if not click.confirm(f"Apply {len(plan.pending)} migration(s) to the {config_scope.value} configuration?"):
                console.print("[yellow]Upgrade cancelled[/yellow]\n")
                continue

        try:
            run = migrator.migrate(config_scope, prerequisites_only=prerequisites_only)
        except FatalMigrationError as e:
            console.print(f"[red]Error: {e}[/red]")
            console.print(f"[red]  Migration: {e.migration_id} ({e.description})[/red]")
            console.print(f"[red]  Cause: {e.cause}[/red]")
            console.print("[yellow]Earlier migrations were saved; fix the problem and run update-config again.[/yellow]")
            sys.exit(1)
        except (ConfigError, MigrationError) as e:
            console.print(f"[red]Error: {e}[/red]")
            failed = True
            continue

        console.print(f"[green]✓ Applied {len(run.applied)} migration(s), now at version {run.to_version}[/green]")
        if run.skipped:
            console.print(
                f"[yellow]{len(run.skipped)} optional migration(s) were skipped and may be retried next time[/yellow]"
            )
        console.print()

    if failed:
        sys.exit(1)
