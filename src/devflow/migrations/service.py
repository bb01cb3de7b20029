# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Migration workflows over the global and project config files.

ConfigMigrator connects the registry, the executor and the config store for
one scope at a time. GLOBAL and PROJECT documents are always handled
separately, each with its own catalog and migration_version.
"""

import itertools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..logger import Logger
from .base import (
    NO_MIGRATIONS,
    VERSION_KEY,
    Document,
    Migration,
    MigrationId,
    MigrationScope,
    current_version,
    is_sentinel,
)
from .errors import MigrationError, RecoverableMigrationWarning
from .executor import MigrationExecutor
from .registry import MigrationRegistry


@dataclass
class MigrationStatusRow:
    """One catalog entry and whether it is reflected in the document."""
    migration_id: str
    description: str
    is_prerequisite: bool
    applied: bool


@dataclass
class MigrationStatus:
    """Catalog status of one config document."""
    scope: MigrationScope
    path: Optional[Path]
    exists: bool
    current_version: str = NO_MIGRATIONS
    rows: List[MigrationStatusRow] = field(default_factory=list)

    @property
    def pending_count(self) -> int:
        return sum(1 for row in self.rows if not row.applied)


@dataclass
class MigrationRun:
    """Summary of one migrate() call."""
    scope: MigrationScope
    path: Optional[Path]
    from_version: str = NO_MIGRATIONS
    to_version: str = NO_MIGRATIONS
    pending: List[Migration] = field(default_factory=list)
    applied: List[str] = field(default_factory=list)
    skipped: List[RecoverableMigrationWarning] = field(default_factory=list)
    dry_run: bool = False


class ConfigMigrator:
    """Runs migration workflows for the config documents."""

    def __init__(
        self,
        store=None,
        registry: Optional[MigrationRegistry] = None,
        executor: Optional[MigrationExecutor] = None,
        logger: Optional[Logger] = None,
        global_path: Optional[Path] = None,
        project_path: Optional[Path] = None
    ):
        self.logger = logger or Logger()
        if store is None:
            from ..config import ConfigStore
            store = ConfigStore()
        self.store = store
        self.registry = registry or MigrationRegistry(self.logger)
        self.executor = executor or MigrationExecutor(self.logger)
        self.paths: Dict[MigrationScope, Optional[Path]] = {
            MigrationScope.GLOBAL: Path(global_path) if global_path else None,
            MigrationScope.PROJECT: Path(project_path) if project_path else None,
        }

    def config_path(self, scope: MigrationScope) -> Optional[Path]:
        return self.paths[scope]

    def load(self, scope: MigrationScope) -> Optional[Document]:
        """Read the document of a scope, or None when it does not exist."""
        path = self.config_path(scope)
        if path is None or not self.store.exists(path):
            return None
        return self.store.read(path)

    def pending(self, scope: MigrationScope, prerequisites_only: bool = False) -> List[Migration]:
        """Pending migrations for the document of a scope (empty if there is no document)."""
        config = self.load(scope)
        if config is None:
            return []
        return self._select(scope, config, prerequisites_only)

    def _select(self, scope: MigrationScope, config: Document, prerequisites_only: bool) -> List[Migration]:
        available = self.registry.discover(scope)
        pending = self.registry.get_pending_migrations(available, current_version(config))
        if prerequisites_only:
            # Stop at the first optional migration so the marker never passes it
            pending = list(itertools.takewhile(lambda m: m.is_prerequisite, pending))
        return pending

    def status(self, scope: MigrationScope) -> MigrationStatus:
        path = self.config_path(scope)
        config = self.load(scope)
        status = MigrationStatus(scope=scope, path=path, exists=config is not None)

        if config is not None:
            status.current_version = current_version(config)

        available = self.registry.discover(scope)
        pending_ids = {
            m.migration_id
            for m in self.registry.get_pending_migrations(available, status.current_version)
        }
        for migration in available:
            status.rows.append(MigrationStatusRow(
                migration_id=migration.migration_id,
                description=migration.description,
                is_prerequisite=migration.is_prerequisite,
                applied=config is not None and migration.migration_id not in pending_ids
            ))
        return status

    def migrate(
        self,
        scope: MigrationScope,
        prerequisites_only: bool = False,
        dry_run: bool = False
    ) -> MigrationRun:
        """
        Apply the pending migrations of one scope.

        Args:
            scope: Which config document to migrate
            prerequisites_only: Only run the prerequisite migrations that come before
                any pending optional one (self-update path)
            dry_run: Compute the pending list without running anything

        Returns:
            MigrationRun summary; empty when the document does not exist

        Raises:
            FatalMigrationError: If a prerequisite migration fails or a step cannot be saved
        """
        path = self.config_path(scope)
        run = MigrationRun(scope=scope, path=path, dry_run=dry_run)

        config = self.load(scope)
        if config is None:
            self.logger.debug(f"No {scope.value} config found, nothing to migrate")
            return run

        run.from_version = run.to_version = current_version(config)
        run.pending = self._select(scope, config, prerequisites_only)
        if dry_run or not run.pending:
            return run

        migrated = self.executor.execute_migrations(
            run.pending,
            config,
            lambda document: self.store.write(path, document)
        )

        run.skipped = list(self.executor.skipped)
        skipped_ids = {warning.migration_id for warning in run.skipped}
        run.applied = [m.migration_id for m in run.pending if m.migration_id not in skipped_ids]
        run.to_version = current_version(migrated)
        return run

    def rollback(self, scope: MigrationScope) -> str:
        """
        Revert the last applied migration of one scope.

        Only a single step is reverted: down() of the migration whose id is
        the current migration_version. The marker moves to the previous
        catalog entry, or to the sentinel when there is none.

        Returns:
            The new migration_version

        Raises:
            MigrationError: If there is no document, nothing applied, or the
                marker does not match a known migration
            TransformError: If the migration's down() fails
            PersistenceError: If the document cannot be saved
        """
        path = self.config_path(scope)
        config = self.load(scope)
        if config is None:
            raise MigrationError(f"No {scope.value} config found")

        version = current_version(config)
        if is_sentinel(version):
            raise MigrationError(f"No migration has been applied to the {scope.value} config")

        try:
            marker = MigrationId.parse(version)
        except ValueError as e:
            raise MigrationError(f"Invalid migration_version {version!r} in config: {e}") from e

        available = self.registry.discover(scope)
        target = next((m for m in available if MigrationId.parse(m.migration_id) == marker), None)
        if target is None:
            raise MigrationError(
                f"Migration {version} is not part of the {scope.value} catalog; cannot revert it"
            )

        older = [m for m in available if MigrationId.parse(m.migration_id) < marker]
        previous_version = older[-1].migration_id if older else NO_MIGRATIONS

        self.executor.revert_migration(
            target,
            config,
            previous_version,
            lambda document: self.store.write(path, document)
        )
        return previous_version

    def stamp(self, scope: MigrationScope, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mark a freshly written document as up to date.

        An existing non-sentinel migration_version is kept so re-running the
        init wizard never hides migrations that still need to run.
        """
        if not is_sentinel(config.get(VERSION_KEY)):
            return config

        latest = self.registry.latest_id(self.registry.discover(scope))
        if latest is not None:
            config[VERSION_KEY] = latest
        return config
