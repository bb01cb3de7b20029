# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Helpers shared by commands to read the click context."""

from typing import List

import click

from ..config import global_config_path, project_config_path
from ..logger import Logger
from ..migrations import ConfigMigrator, MigrationScope


def get_logger(ctx: click.Context) -> Logger:
    obj = ctx.obj or {}
    if 'logger' not in obj:
        obj['logger'] = Logger()
    return obj['logger']


def get_migrator(ctx: click.Context) -> ConfigMigrator:
    """Build a ConfigMigrator for the config files selected by the global options."""
    obj = ctx.obj or {}
    return ConfigMigrator(
        logger=get_logger(ctx),
        global_path=obj.get('config_path') or global_config_path(),
        project_path=project_config_path(obj.get('project_dir'))
    )


def skip_prompts(ctx: click.Context, assume_yes: bool = False) -> bool:
    """Merge the local -y flag with the global --auto and -y flags."""
    obj = ctx.obj or {}
    return assume_yes or obj.get('auto', False) or obj.get('assume_yes', False)


def selected_scopes(scope: str) -> List[MigrationScope]:
    if scope == 'all':
        return [MigrationScope.GLOBAL, MigrationScope.PROJECT]
    return [MigrationScope(scope)]
