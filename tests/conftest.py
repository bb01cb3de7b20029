# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Shared pytest fixtures."""

import pytest

from devflow.config import ConfigStore
from devflow.migrations import MigrationExecutor, MigrationRegistry
from helpers.config_helpers import init_git_repo, minimal_config, write_config_file
from helpers.migration_helpers import make_logger


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the user's real config and tokens."""
    monkeypatch.setenv("DEVFLOW_CONFIG_DIR", str(tmp_path / "home" / "devflow"))
    for key in ("JIRA_API_TOKEN", "GITHUB_TOKEN", "GITLAB_TOKEN", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def logger_and_output():
    """
    Logger writing to a buffer.

    Returns:
        Tuple of (Logger, StringIO)
    """
    return make_logger()


@pytest.fixture
def logger(logger_and_output):
    return logger_and_output[0]


@pytest.fixture
def registry(logger):
    """Registry over the built-in migration packages."""
    return MigrationRegistry(logger)


@pytest.fixture
def executor(logger):
    return MigrationExecutor(logger)


@pytest.fixture
def store():
    return ConfigStore()


@pytest.fixture
def global_config_file(tmp_path):
    """
    Global config file with no migration applied.

    Returns:
        Path to config file
    """
    return write_config_file(tmp_path / "global" / "config.toml", minimal_config())


@pytest.fixture
def tmp_git_repo(tmp_path):
    """
    Create a temporary git repository.

    Returns:
        Tuple of (repo_path, Repo object)
    """
    repo_path = tmp_path / "test_repo"
    repo = init_git_repo(repo_path)
    yield repo_path, repo
