# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Exceptions raised by the config migration system."""

from typing import Optional


class MigrationError(Exception):
    """Base class for migration failures."""
    pass


class DiscoveryError(MigrationError):
    """A catalog entry could not be turned into a migration."""
    pass


class TransformError(MigrationError):
    """Raised when a migration's up() or down() fails."""

    def __init__(self, migration_id: str, message: str):
        super().__init__(message)
        self.migration_id = migration_id


class PersistenceError(MigrationError):
    """Raised when a config document could not be written."""

    def __init__(self, path: str, message: str):
        super().__init__(f"Failed to write {path}: {message}")
        self.path = path


class _MigrationFailure(MigrationError):
    """Failure of one migration, with enough context to show the user."""

    def __init__(self, migration_id: str, description: str, cause: Optional[BaseException], message: str):
        super().__init__(message)
        self.migration_id = migration_id
        self.description = description
        self.cause = cause


class FatalMigrationError(_MigrationFailure):
    """A migration failed and the calling workflow must stop."""

    def __init__(
        self,
        migration_id: str,
        description: str,
        cause: Optional[BaseException] = None,
        message: Optional[str] = None
    ):
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(
            migration_id,
            description,
            cause,
            message or f"Prerequisite migration {migration_id} ({description}) failed: {reason}"
        )


class RecoverableMigrationWarning(_MigrationFailure):
    """An optional migration failed; it was skipped and may be retried."""

    def __init__(self, migration_id: str, description: str, cause: Optional[BaseException] = None):
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(
            migration_id,
            description,
            cause,
            f"Migration {migration_id} ({description}) failed and was skipped: {reason}"
        )
