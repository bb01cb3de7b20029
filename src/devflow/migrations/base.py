# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Migration contract, identity type and scope.

A migration is one ordered transformation of a config document. Concrete
migrations live in global_migrations/ and project_migrations/ and subclass
Migration, declaring their identity, description, scope and prerequisite
flag as class attributes.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from ..logger import Logger
from .errors import TransformError

Document = Dict[str, Any]

VERSION_KEY = "migration_version"
NO_MIGRATIONS = "0"

_ID_PATTERN = re.compile(r"[0-9]+")


def _check_id(value: str) -> str:
    if not _ID_PATTERN.fullmatch(value):
        raise ValueError(f"Invalid migration id {value!r}: expected a string of digits")
    if int(value) == 0:
        raise ValueError(f"Invalid migration id {value!r}: zero is reserved for \"no migration applied\"")
    return value


class MigrationScope(str, Enum):
    """Which config document a migration targets."""
    GLOBAL = "global"
    PROJECT = "project"


class MigrationId(BaseModel):
    """Validated migration identity.

    Identities are digit strings, by convention a zero-padded timestamp
    (YYYYMMDDHHMMSS plus a 3 digit sequence). Ordering is numeric, which
    matches string ordering for equal widths.
    """
    model_config = ConfigDict(frozen=True)

    value: str

    @field_validator("value")
    @classmethod
    def validate_digits(cls, value: str) -> str:
        return _check_id(value)

    @classmethod
    def parse(cls, raw: Any) -> "MigrationId":
        """
        Parse a raw identity.

        Raises:
            ValueError: If the identity is not a non-empty digit string or is all zeros
        """
        if raw is None:
            raise ValueError("Invalid migration id None")
        return cls(value=_check_id(str(raw).strip()))

    def _key(self) -> int:
        return int(self.value)

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MigrationId):
            return False
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: "MigrationId") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "MigrationId") -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: "MigrationId") -> bool:
        return self._key() > other._key()

    def __ge__(self, other: "MigrationId") -> bool:
        return self._key() >= other._key()


def compare_migration_ids(id1: str, id2: str) -> int:
    """
    Compare two migration ids.

    Returns:
        -1 if id1 < id2
        0 if id1 == id2
        1 if id1 > id2

    Raises:
        ValueError: If either id is malformed
    """
    left = MigrationId.parse(id1)
    right = MigrationId.parse(id2)

    if left < right:
        return -1
    elif left > right:
        return 1
    else:
        return 0


def is_sentinel(version: Any) -> bool:
    """True when a stored version means no migration has ever run ("", "0", "00", ...)."""
    if version is None:
        return True
    text = str(version).strip()
    return text == "" or (_ID_PATTERN.fullmatch(text) is not None and int(text) == 0)


def current_version(document: Document) -> str:
    """Read the migration marker of a document, defaulting to the sentinel."""
    version = document.get(VERSION_KEY)
    if is_sentinel(version):
        return NO_MIGRATIONS
    return str(version).strip()


class Migration(ABC):
    """Base class for config migrations.

    execute() runs up() between the before_up() and after_up() hooks and
    turns any failure into a TransformError.
    """

    migration_id: str = ""
    description: str = ""
    scope: Optional[MigrationScope] = None
    is_prerequisite: bool = False

    def __init__(self, logger: Optional[Logger] = None):
        self.logger = logger or Logger()

    @abstractmethod
    def up(self, config: Document) -> Document:
        """Transform the config to the new format."""

    @abstractmethod
    def down(self, config: Document) -> Document:
        """Best-effort reversal of up()."""

    def before_up(self, config: Document) -> None:
        pass

    def after_up(self, config: Document) -> None:
        pass

    def execute(self, config: Document) -> Document:
        return self._run("up", self._forward, config)

    def revert(self, config: Document) -> Document:
        return self._run("down", self.down, config)

    def _forward(self, config: Document) -> Optional[Document]:
        self.before_up(config)
        migrated = self.up(config)
        if migrated is not None:
            self.after_up(migrated)
        return migrated

    def _run(self, name: str, transform, config: Document) -> Document:
        try:
            result = transform(config)
        except TransformError:
            raise
        except Exception as e:
            raise TransformError(self.migration_id, str(e) or e.__class__.__name__) from e

        if result is None:
            raise TransformError(self.migration_id, f"{name}() returned no document")
        if not isinstance(result, dict):
            raise TransformError(
                self.migration_id,
                f"{name}() returned {type(result).__name__} instead of a document"
            )
        return result

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.migration_id} ({self.scope.value if self.scope else '?'})>"
