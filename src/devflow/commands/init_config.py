# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

from typing import Any, Dict, Optional
import sys
import click
from rich.console import Console

from ..config import ConfigError
from ..migrations import MigrationScope, PersistenceError, VERSION_KEY
from ._context import get_migrator, skip_prompts

console = Console()

LANGUAGES = ['en', 'fr', 'es', 'nl', 'ru', 'el', 'af', 'vi']


def _ask(value: Optional[str], label: str, default: Optional[str], interactive: bool) -> Optional[str]:
    """Use the option value, else prompt (interactive) or fall back to the default."""
    if value is not None:
        return value
    if not interactive:
        return default
    return click.prompt(label, default=default or '', show_default=bool(default)) or default


def _ask_secret(value: Optional[str], label: str, existing: Optional[str], interactive: bool) -> Optional[str]:
    """Like _ask, but hides input and keeps the existing secret when left blank."""
    if value is not None:
        return value or existing
    if not interactive:
        return existing
    hint = " (leave empty to keep the current one)" if existing else ""
    entered = click.prompt(f"{label}{hint}", default='', hide_input=True, show_default=False)
    return entered or existing


@click.command('init-config', context_settings={'help_option_names': ['-h', '--help']})
@click.option('--language', type=click.Choice(LANGUAGES), help='Interface language')
@click.option('--jira-url', help='Base URL of your Jira instance')
@click.option('--jira-email', help='Email of your Jira account')
@click.option('--jira-token', help='Jira API token')
@click.option('--github-token', help='GitHub personal access token')
@click.option('--gitlab-token', help='GitLab personal access token')
@click.option(
    '--jira-transition/--no-jira-transition',
    default=None,
    help='Move Jira issues to "In Progress" when starting work on them'
)
@click.option('-y', '--assume-yes', is_flag=True, help='Assume "yes" for confirmation prompts')
@click.pass_context
def init_config(
    ctx,
    language: Optional[str],
    jira_url: Optional[str],
    jira_email: Optional[str],
    jira_token: Optional[str],
    github_token: Optional[str],
    gitlab_token: Optional[str],
    jira_transition: Optional[bool],
    assume_yes: bool
):
    """Create or update the global configuration file.

    Values already present in the file are offered as defaults. The file is
    marked as up to date with the latest config migration, unless it already
    records a migration version.
    """
    migrator = get_migrator(ctx)
    path = migrator.config_path(MigrationScope.GLOBAL)
    interactive = not skip_prompts(ctx, assume_yes)

    existing: Dict[str, Any] = {}
    if migrator.store.exists(path):
        try:
            existing = migrator.store.read(path)
        except ConfigError as e:
            console.print(f"[yellow]Warning: {e}[/yellow]")
            console.print("[yellow]Starting from an empty configuration...[/yellow]")

        console.print(f"[yellow]Configuration file already exists at {path}[/yellow]")
        if interactive and not click.confirm("Update it?", default=True):
            return

    console.print(f"[blue]Configuring {path}[/blue]\n")

    config = dict(existing)
    config['LANGUAGE'] = _ask(language, "Language", existing.get('LANGUAGE', 'en'), interactive)

    url = _ask(jira_url, "Jira URL", existing.get('JIRA_URL'), interactive)
    config['JIRA_URL'] = url.rstrip('/') if url else url
    config['JIRA_EMAIL'] = _ask(jira_email, "Jira email", existing.get('JIRA_EMAIL'), interactive)
    config['JIRA_API_TOKEN'] = _ask_secret(jira_token, "Jira API token", existing.get('JIRA_API_TOKEN'), interactive)
    config['GITHUB_TOKEN'] = _ask_secret(github_token, "GitHub token", existing.get('GITHUB_TOKEN'), interactive)
    config['GITLAB_TOKEN'] = _ask_secret(gitlab_token, "GitLab token", existing.get('GITLAB_TOKEN'), interactive)

    if jira_transition is None:
        current = bool(existing.get('JIRA_TRANSITION_ENABLED', False))
        jira_transition = click.confirm(
            "Move Jira issues to 'In Progress' when starting work?",
            default=current
        ) if interactive else current
    config['JIRA_TRANSITION_ENABLED'] = jira_transition

    # TOML has no null value
    config = {key: value for key, value in config.items() if value is not None}
    config = migrator.stamp(MigrationScope.GLOBAL, config)

    try:
        migrator.store.write(path, config)
    except PersistenceError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]Saved configuration file: {path}[/green]")
    console.print(f"[dim]Migration version: {config.get(VERSION_KEY, '0')}[/dim]")
    console.print("\n[blue]Next steps:[/blue]")
    console.print("1. Check the values with: devflow config-show")
    console.print("2. Keep the file up to date with: devflow update-config")
