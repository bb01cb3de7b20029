# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Configuration management for devflow.

Two TOML documents are used: the global one in the user's config directory
and a per-repository one stored inside the repository's git directory.
Both carry their own migration_version marker.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlparse

import click
import tomlkit
from tomlkit.exceptions import TOMLKitError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .logger import Logger
from .migrations.errors import PersistenceError

CONFIG_DIR_ENV = "DEVFLOW_CONFIG_DIR"
CONFIG_DIR_NAME = "devflow"
CONFIG_FILE_NAME = "config.toml"
PROJECT_CONFIG_FILE_NAME = "devflow.toml"

PathLike = Union[str, Path]


class ConfigError(Exception):
    """Raised when a config file is missing, unreadable or out of date."""
    pass


def global_config_path() -> Path:
    """Path of the user-wide config file.

    Resolution order: $DEVFLOW_CONFIG_DIR, $XDG_CONFIG_HOME/devflow,
    ~/.config/devflow.
    """
    override = os.getenv(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser() / CONFIG_FILE_NAME

    xdg_home = os.getenv("XDG_CONFIG_HOME")
    base = Path(xdg_home).expanduser() if xdg_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def project_config_path(start: Optional[PathLike] = None) -> Optional[Path]:
    """Path of the per-repository config file, or None outside a git repository."""
    from git import Repo
    from git.exc import InvalidGitRepositoryError, NoSuchPathError

    try:
        repo = Repo(str(start or Path.cwd()), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return None

    return Path(repo.git_dir) / PROJECT_CONFIG_FILE_NAME


def _values_equal(current: Any, new: Any) -> bool:
    """Compare a tomlkit item with a plain value."""
    unwrapped = current.unwrap() if hasattr(current, "unwrap") else current
    return type(unwrapped) is type(new) and unwrapped == new


def _merge_into(target, data: Dict[str, Any]) -> None:
    """Update a tomlkit container in place so it holds exactly `data`.

    Unchanged values are left untouched, which keeps their comments.
    """
    for key in list(target.keys()):
        if key not in data:
            del target[key]

    for key, value in data.items():
        if key in target:
            current = target[key]
            if isinstance(current, dict) and isinstance(value, dict):
                _merge_into(current, value)
                continue
            if _values_equal(current, value):
                continue
        target[key] = value


class ConfigStore:
    """Read/write access to TOML config documents.

    Documents are exchanged as plain dicts. The parsed TOML document of each
    path is kept so that writes preserve the user's comments and layout.
    """

    def __init__(self):
        self._documents: Dict[Path, tomlkit.TOMLDocument] = {}

    def exists(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def read(self, path: PathLike) -> Dict[str, Any]:
        """
        Load a config document.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = tomlkit.load(f)
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e
        except TOMLKitError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        self._documents[path.resolve()] = doc
        return doc.unwrap()

    def write(self, path: PathLike, data: Dict[str, Any]) -> None:
        """
        Durably write a config document.

        The content goes to a temporary file in the same directory which then
        replaces the target, so readers never see a half-written file.

        Raises:
            PersistenceError: If the document cannot be written
        """
        path = Path(path)
        doc = self._documents.get(path.resolve())
        if doc is None:
            doc = tomlkit.document()

        tmp_name = None
        try:
            _merge_into(doc, data)
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=str(path.parent),
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(tomlkit.dumps(doc))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError, TOMLKitError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(str(path), str(e)) from e

        self._documents[path.resolve()] = doc


class GlobalConfig(BaseModel):
    """User-wide settings."""
    model_config = ConfigDict(extra="allow")

    LANGUAGE: str = Field(default="en", description="Interface language code")
    JIRA_URL: Optional[str] = Field(default=None, description="Base URL of the Jira instance")
    JIRA_EMAIL: Optional[str] = Field(default=None, description="Account email used for Jira API calls")
    JIRA_API_TOKEN: Optional[str] = Field(
        default=None,
        description="Jira API token (can also use JIRA_API_TOKEN env var)"
    )
    GITHUB_TOKEN: Optional[str] = Field(
        default=None,
        description="GitHub token (can also use GITHUB_TOKEN env var)"
    )
    GITLAB_TOKEN: Optional[str] = Field(
        default=None,
        description="GitLab token (can also use GITLAB_TOKEN env var)"
    )
    JIRA_TRANSITION_ENABLED: bool = Field(
        default=False,
        description="Move the Jira issue to 'In Progress' when starting work on it"
    )
    migration_version: str = Field(default="0", description="Id of the last applied config migration")

    @field_validator("migration_version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> str:
        return "0" if value is None else str(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobalConfig":
        """Build from a document, filling tokens from the environment."""
        data = dict(data)
        for key in ("JIRA_API_TOKEN", "GITHUB_TOKEN", "GITLAB_TOKEN"):
            if not data.get(key):
                data[key] = os.getenv(key)
        return cls(**data)


class ProjectConfig(BaseModel):
    """Per-repository settings."""
    model_config = ConfigDict(extra="allow")

    projectKey: Optional[str] = Field(default=None, description="Jira project key for this repository")
    transitionId: Optional[int] = Field(default=None, description="Jira transition used when starting work")
    migration_version: str = Field(default="0", description="Id of the last applied config migration")

    @field_validator("migration_version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> str:
        return "0" if value is None else str(value)


REDACTED_PLACEHOLDER = "*** REDACTED ***"
KNOWN_SECRET_KEYS = ["JIRA_API_TOKEN", "GITHUB_TOKEN", "GITLAB_TOKEN"]
SECRET_KEY_PATTERNS = ["TOKEN", "PASSWORD", "SECRET"]


def is_secret_key(key: str) -> bool:
    if key in KNOWN_SECRET_KEYS:
        return True
    return any(pattern in key.upper() for pattern in SECRET_KEY_PATTERNS)


def redact(config: Dict[str, Any]) -> Dict[str, Any]:
    """Hide secret values of a flat config for display. Nested values are kept as-is."""
    result = {}
    for key, value in config.items():
        if is_secret_key(key):
            result[key] = REDACTED_PLACEHOLDER
        elif isinstance(value, str) and urlparse(value).scheme and urlparse(value).query:
            # URLs with a query string may carry credentials
            result[key] = REDACTED_PLACEHOLDER
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[PathLike] = None,
    project_dir: Optional[PathLike] = None,
    auto_upgrade: bool = False,
    logger: Optional[Logger] = None,
    confirm: Optional[Callable[[str], bool]] = None
) -> GlobalConfig:
    """Load the global config, applying pending migrations first.

    Args:
        config_path: Global config file (defaults to global_config_path())
        project_dir: Directory inside the repository whose project config is migrated too
        auto_upgrade: If True, apply pending migrations without prompting
        logger: Output logger
        confirm: Prompt used when auto_upgrade is off (defaults to click.confirm)

    Returns:
        GlobalConfig object

    Raises:
        FileNotFoundError: If the global config does not exist
        ConfigError: If the user declines a required upgrade
        FatalMigrationError: If a prerequisite migration fails
    """
    from .migrations import ConfigMigrator, MigrationScope

    logger = logger or Logger()
    path = Path(config_path) if config_path else global_config_path()
    store = ConfigStore()

    if not store.exists(path):
        raise FileNotFoundError(
            f"Config file not found: {path}. Create one with: devflow init-config"
        )

    migrator = ConfigMigrator(
        store=store,
        logger=logger,
        global_path=path,
        project_path=project_config_path(project_dir)
    )
    ask = confirm or (lambda message: click.confirm(message, default=True))

    for scope in (MigrationScope.GLOBAL, MigrationScope.PROJECT):
        pending = migrator.pending(scope)
        if not pending:
            continue

        if not auto_upgrade:
            logger.note(
                Logger.NORMAL,
                f"The {scope.value} config has {len(pending)} pending migration(s):"
            )
            for migration in pending:
                logger.text(Logger.NORMAL, f"  • {migration.migration_id}: {migration.description}")
            if not ask(f"Upgrade the {scope.value} config now?"):
                raise ConfigError(
                    f"The {scope.value} config is out of date. "
                    f"Please upgrade it using: devflow update-config"
                )

        migrator.migrate(scope)

    return GlobalConfig.from_dict(store.read(path))
