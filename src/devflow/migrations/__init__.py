# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Config migration system.

Migrations for the global config live in global_migrations/, migrations for
the per-repository config in project_migrations/. Files are named
m<id>_<summary>.py where <id> is a zero-padded timestamp, e.g.
m20250115000000001_git_token_format.py.
"""

from .base import (
    NO_MIGRATIONS,
    VERSION_KEY,
    Migration,
    MigrationId,
    MigrationScope,
    compare_migration_ids,
    current_version,
    is_sentinel,
)
from .errors import (
    DiscoveryError,
    FatalMigrationError,
    MigrationError,
    PersistenceError,
    RecoverableMigrationWarning,
    TransformError,
)
from .executor import MigrationExecutor
from .registry import MigrationRegistry, PackageCatalog, StaticCatalog
from .service import ConfigMigrator, MigrationRun, MigrationStatus

__all__ = [
    'NO_MIGRATIONS',
    'VERSION_KEY',
    'Migration',
    'MigrationId',
    'MigrationScope',
    'compare_migration_ids',
    'current_version',
    'is_sentinel',
    'DiscoveryError',
    'FatalMigrationError',
    'MigrationError',
    'PersistenceError',
    'RecoverableMigrationWarning',
    'TransformError',
    'MigrationExecutor',
    'MigrationRegistry',
    'PackageCatalog',
    'StaticCatalog',
    'ConfigMigrator',
    'MigrationRun',
    'MigrationStatus',
]
