# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Sequential migration executor.

Applies migrations one at a time and persists the document after each
success, so an interrupted run never loses or repeats completed work.
"""

import copy
from typing import Callable, List, Optional

from ..logger import Logger
from .base import VERSION_KEY, Document, Migration
from .errors import (
    FatalMigrationError,
    PersistenceError,
    RecoverableMigrationWarning,
    TransformError,
)

PersistCallback = Callable[[Document], None]


class MigrationExecutor:
    """Runs an ordered list of migrations against one config document."""

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or Logger()
        self.skipped: List[RecoverableMigrationWarning] = []

    def execute_migrations(
        self,
        migrations: List[Migration],
        config: Document,
        persist: PersistCallback
    ) -> Document:
        """
        Apply migrations in the given order.

        Each migration works on a copy of the document; only a successful
        result replaces it, gets the new migration_version and is persisted
        before the next migration starts.

        Args:
            migrations: Pending migrations, sorted by id
            config: The current config document
            persist: Callback that durably writes a document

        Returns:
            The migrated document

        Raises:
            FatalMigrationError: If a prerequisite migration fails, or a
                migrated document cannot be persisted
        """
        self.skipped = []
        migrated = config

        for migration in migrations:
            self.logger.text(
                Logger.NORMAL,
                f"Running migration {migration.migration_id}: {migration.description}"
            )

            try:
                candidate = migration.execute(copy.deepcopy(migrated))
            except TransformError as e:
                self._handle_failure(migration, e)
                continue

            candidate[VERSION_KEY] = migration.migration_id

            try:
                persist(candidate)
            except (PersistenceError, OSError) as e:
                self.logger.error(
                    Logger.NORMAL,
                    [
                        f"Migration {migration.migration_id} ({migration.description}) could not be saved",
                        str(e),
                    ]
                )
                raise FatalMigrationError(
                    migration.migration_id,
                    migration.description,
                    e,
                    message=f"Could not save config after migration {migration.migration_id}: {e}"
                ) from e

            migrated = candidate
            self.logger.text(
                Logger.NORMAL,
                f"Migration version updated to {migration.migration_id}"
            )

        return migrated

    def _handle_failure(self, migration: Migration, error: TransformError) -> None:
        if migration.is_prerequisite:
            fatal = FatalMigrationError(migration.migration_id, migration.description, error)
            self.logger.error(
                Logger.NORMAL,
                [
                    f"Migration {migration.migration_id} failed: {error}",
                    f"{migration.description}",
                    "This migration is required; fix the problem and run the command again.",
                ]
            )
            raise fatal from error

        warning = RecoverableMigrationWarning(migration.migration_id, migration.description, error)
        self.skipped.append(warning)
        self.logger.warning(
            Logger.NORMAL,
            [
                f"Migration {migration.migration_id} failed: {error}",
                f"{migration.description}",
                "The migration was skipped and may be retried on the next run.",
            ]
        )

    def revert_migration(
        self,
        migration: Migration,
        config: Document,
        previous_version: str,
        persist: PersistCallback
    ) -> Document:
        """
        Run one migration's down() and move the marker back.

        Raises:
            TransformError: If down() fails; nothing is persisted
            PersistenceError: If the reverted document cannot be written
        """
        self.logger.text(
            Logger.NORMAL,
            f"Reverting migration {migration.migration_id}: {migration.description}"
        )
        reverted = migration.revert(copy.deepcopy(config))
        reverted[VERSION_KEY] = previous_version
        persist(reverted)
        self.logger.text(Logger.NORMAL, f"Migration version set back to {previous_version}")
        return reverted
