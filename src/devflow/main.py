# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Main CLI for devflow."""

import sys
import logging
from typing import Optional
import click
from rich.console import Console

from .config import ConfigError, load_config
from .logger import Logger
from .migrations import FatalMigrationError, MigrationError
from .commands.init_config import init_config
from .commands.update_config import update_config
from .commands.list_migrations import list_migrations
from .commands.rollback import rollback_migration
from .commands.config_show import config_show

console = Console()

# Commands that manage the config files themselves and must work on an outdated config
CONFIG_COMMANDS = ['init-config', 'update-config', 'list-migrations', 'rollback-migration']


@click.group(context_settings={'help_option_names': ['-h', '--help']})
@click.option(
    '--config',
    '-c',
    type=click.Path(dir_okay=False),
    help='Path to the global configuration file'
)
@click.option(
    '--project-dir',
    type=click.Path(file_okay=False),
    help='Repository whose project configuration is used (default: current directory)'
)
@click.option(
    '--auto',
    is_flag=True,
    help='Run in non-interactive mode (auto-apply migrations and defaults, skip prompts)'
)
@click.option(
    '-y', '--assume-yes',
    is_flag=True,
    help='Assume "yes" for all confirmation prompts'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase output verbosity (repeatable)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Show detailed debug output'
)
@click.pass_context
def cli(ctx, config: Optional[str], project_dir: Optional[str], auto: bool, assume_yes: bool, verbose: int, debug: bool):
    """Developer workflow helpers for Jira and Git hosting providers."""
    ctx.ensure_object(dict)
    verbosity = Logger.DEBUG if debug else min(verbose, Logger.DEBUG)

    ctx.obj['auto'] = auto
    ctx.obj['assume_yes'] = assume_yes
    ctx.obj['debug'] = debug
    ctx.obj['config_path'] = config
    ctx.obj['project_dir'] = project_dir
    ctx.obj['logger'] = Logger(verbosity=verbosity)

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    # Config management commands load the config files themselves
    if ctx.invoked_subcommand not in CONFIG_COMMANDS:
        try:
            ctx.obj['config'] = load_config(
                config,
                project_dir=project_dir,
                auto_upgrade=auto or assume_yes,
                logger=ctx.obj['logger']
            )
        except FatalMigrationError as e:
            console.print(f"[red]Error: {e}[/red]")
            console.print("Fix the problem above and run: devflow update-config")
            sys.exit(1)
        except (FileNotFoundError, ConfigError, MigrationError) as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)


# Register commands
cli.add_command(init_config)
cli.add_command(update_config)
cli.add_command(list_migrations)
cli.add_command(rollback_migration)
cli.add_command(config_show)


def main():
    # GitPython logs every command it spawns at debug level
    logging.getLogger('git').setLevel(logging.WARNING)

    cli(obj={})


if __name__ == "__main__":
    main()
