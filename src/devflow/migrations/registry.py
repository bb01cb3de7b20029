# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Migration discovery and ordering.

A catalog source hands out one factory per candidate migration. The registry
calls each factory, keeps the results that honour the Migration contract for
the requested scope, and sorts them by id. A broken entry is logged and
skipped so that it never prevents the CLI from running.
"""

import importlib
import inspect
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from ..logger import Logger
from .base import Migration, MigrationId, MigrationScope, is_sentinel
from .errors import DiscoveryError, MigrationError

MigrationFactory = Callable[[Logger], Migration]


class StaticCatalog:
    """Catalog built from explicit factory lists, keyed by scope."""

    def __init__(self, entries: Optional[Dict[MigrationScope, List[MigrationFactory]]] = None):
        self.entries = entries or {}

    def candidates(self, scope: MigrationScope) -> List[MigrationFactory]:
        return list(self.entries.get(scope, []))


class PackageCatalog:
    """Catalog of migration modules shipped inside the migrations package.

    Each m<digits>_<name>.py file in the scope's directory becomes one
    factory. Factories are built once per catalog instance; a module is only
    imported when its factory is called.
    """

    PACKAGES = {
        MigrationScope.GLOBAL: "global_migrations",
        MigrationScope.PROJECT: "project_migrations",
    }
    FILE_PATTERN = "m[0-9]*.py"

    def __init__(self, base_package: str = __package__, base_dir: Optional[Path] = None):
        self.base_package = base_package
        # Defaults to this package's own directory
        self.base_dir = base_dir or Path(__file__).parent
        self._factories: Dict[MigrationScope, List[MigrationFactory]] = {}

    def candidates(self, scope: MigrationScope) -> List[MigrationFactory]:
        if scope not in self._factories:
            self._factories[scope] = self._build_factories(scope)
        return list(self._factories[scope])

    def _build_factories(self, scope: MigrationScope) -> List[MigrationFactory]:
        directory = self.base_dir / self.PACKAGES[scope]
        if not directory.is_dir():
            # No migrations shipped for this scope
            return []

        module_prefix = f"{self.base_package}.{self.PACKAGES[scope]}"
        return [
            self._module_factory(f"{module_prefix}.{file.stem}")
            for file in sorted(directory.glob(self.FILE_PATTERN))
        ]

    @staticmethod
    def _module_factory(module_name: str) -> MigrationFactory:
        def factory(logger: Logger) -> Migration:
            module = importlib.import_module(module_name)
            classes = [
                obj for _, obj in inspect.getmembers(module, inspect.isclass)
                if obj.__module__ == module.__name__
                and issubclass(obj, Migration)
                and not inspect.isabstract(obj)
            ]
            if len(classes) != 1:
                raise DiscoveryError(
                    f"{module_name} must define exactly one Migration subclass, found {len(classes)}"
                )
            return classes[0](logger)

        factory.__qualname__ = f"load[{module_name}]"
        return factory


class MigrationRegistry:
    """Discovers available migrations and selects the pending ones."""

    def __init__(self, logger: Optional[Logger] = None, catalog=None):
        self.logger = logger or Logger()
        self.catalog = catalog if catalog is not None else PackageCatalog()

    def discover_global_migrations(self) -> List[Migration]:
        return self.discover(MigrationScope.GLOBAL)

    def discover_project_migrations(self) -> List[Migration]:
        return self.discover(MigrationScope.PROJECT)

    def discover(self, scope: MigrationScope) -> List[Migration]:
        """
        Instantiate every valid migration of a scope.

        Entries that fail to load, break the contract, carry a malformed or
        duplicate id are logged and skipped. Entries declaring another scope
        are left out silently.

        Returns:
            Migrations sorted by id, ascending
        """
        try:
            factories = self.catalog.candidates(scope)
        except Exception as e:
            self.logger.warning(
                Logger.VERBOSE,
                f"Could not enumerate {scope.value} migrations: {e}"
            )
            return []

        migrations: List[Migration] = []
        seen: Set[MigrationId] = set()

        for factory in factories:
            try:
                migration = self._materialize(factory)
            except Exception as e:
                self.logger.warning(Logger.VERBOSE, f"Skipping migration entry: {e}")
                continue

            if migration.scope != scope:
                self.logger.debug(
                    f"Ignoring {migration.migration_id}: declared scope "
                    f"{migration.scope.value} instead of {scope.value}"
                )
                continue

            migration_id = MigrationId.parse(migration.migration_id)
            if migration_id in seen:
                self.logger.warning(
                    Logger.VERBOSE,
                    f"Skipping migration entry: duplicate id {migration.migration_id} in {scope.value} catalog"
                )
                continue

            seen.add(migration_id)
            migrations.append(migration)

        return self.sort_migrations(migrations)

    def _materialize(self, factory: MigrationFactory) -> Migration:
        """Call a factory and check the result against the contract."""
        try:
            migration = factory(self.logger)
        except DiscoveryError:
            raise
        except Exception as e:
            name = getattr(factory, "__qualname__", repr(factory))
            raise DiscoveryError(f"{name} could not be instantiated: {e}") from e

        if not isinstance(migration, Migration):
            raise DiscoveryError(f"{migration!r} does not implement the Migration contract")

        if not isinstance(migration.scope, MigrationScope):
            raise DiscoveryError(f"{migration!r} has no valid scope")

        try:
            MigrationId.parse(migration.migration_id)
        except ValueError as e:
            raise DiscoveryError(f"{migration.__class__.__name__}: {e}") from e

        return migration

    def get_pending_migrations(self, migrations: List[Migration], current_version: str) -> List[Migration]:
        """
        Select migrations not yet applied to a document.

        Args:
            migrations: Available migrations
            current_version: The document's migration_version ("0" or "" when none ran)

        Returns:
            Pending migrations sorted by id

        Raises:
            MigrationError: If current_version is not a valid migration id
        """
        if is_sentinel(current_version):
            return self.sort_migrations(migrations)

        try:
            current = MigrationId.parse(current_version)
        except ValueError as e:
            raise MigrationError(f"Invalid migration_version {current_version!r} in config: {e}") from e

        pending = [m for m in migrations if MigrationId.parse(m.migration_id) > current]
        return self.sort_migrations(pending)

    def latest_id(self, migrations: List[Migration]) -> Optional[str]:
        """Id of the newest migration, or None for an empty catalog."""
        if not migrations:
            return None
        return self.sort_migrations(migrations)[-1].migration_id

    @staticmethod
    def sort_migrations(migrations: List[Migration]) -> List[Migration]:
        return sorted(migrations, key=lambda m: MigrationId.parse(m.migration_id))
