# SPDX-FileCopyrightText: 2025 Sequent Tech Inc <legal@sequentech.io>
#
# SPDX-License-Identifier: MIT

"""Tests for configuration management."""

import os
from pathlib import Path

import pytest

from devflow.config import (
    REDACTED_PLACEHOLDER,
    ConfigError,
    ConfigStore,
    GlobalConfig,
    ProjectConfig,
    global_config_path,
    is_secret_key,
    load_config,
    project_config_path,
    redact,
)
from devflow.migrations import FatalMigrationError, PersistenceError
from helpers.config_helpers import minimal_config, read_config_file, write_config_file
from helpers.migration_helpers import make_logger


class TestPaths:
    def test_global_path_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEVFLOW_CONFIG_DIR", str(tmp_path / "custom"))
        assert global_config_path() == tmp_path / "custom" / "config.toml"

    def test_global_path_from_xdg(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEVFLOW_CONFIG_DIR")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert global_config_path() == tmp_path / "xdg" / "devflow" / "config.toml"

    def test_global_path_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEVFLOW_CONFIG_DIR")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert global_config_path() == tmp_path / ".config" / "devflow" / "config.toml"

    def test_project_path_inside_repo(self, tmp_git_repo):
        repo_path, repo = tmp_git_repo
        subdir = repo_path / "src" / "pkg"
        subdir.mkdir(parents=True)

        path = project_config_path(subdir)

        assert path == Path(repo.git_dir) / "devflow.toml"

    def test_project_path_outside_repo(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        assert project_config_path(plain) is None

    def test_project_path_missing_directory(self, tmp_path):
        assert project_config_path(tmp_path / "does-not-exist") is None


class TestConfigStore:
    def test_read_returns_plain_dict(self, store, global_config_file):
        data = store.read(global_config_file)

        assert type(data) is dict
        assert data == minimal_config()

    def test_read_missing_file(self, store, tmp_path):
        with pytest.raises(ConfigError, match="Could not read config file"):
            store.read(tmp_path / "missing.toml")

    def test_read_invalid_toml(self, store, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("LANGUAGE = \n")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            store.read(path)

    def test_write_new_file(self, store, tmp_path):
        path = tmp_path / "nested" / "dir" / "config.toml"

        store.write(path, {"LANGUAGE": "fr", "migration_version": "1"})

        assert read_config_file(path) == {"LANGUAGE": "fr", "migration_version": "1"}

    def test_write_removes_dropped_keys(self, store, global_config_file):
        data = store.read(global_config_file)
        del data["JIRA_EMAIL"]

        store.write(global_config_file, data)

        assert "JIRA_EMAIL" not in read_config_file(global_config_file)

    def test_write_keeps_comments_and_tables(self, store, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            '# devflow settings\n'
            'LANGUAGE = "en"\n'
            'GIT_TOKEN = "old"  # to be migrated\n'
            '\n'
            '[aliases]\n'
            '# shortcuts\n'
            'co = "checkout"\n'
        )
        data = store.read(path)
        data["GITHUB_TOKEN"] = data.pop("GIT_TOKEN")
        data["aliases"]["st"] = "status"

        store.write(path, data)

        text = path.read_text()
        assert "# devflow settings" in text
        assert "# shortcuts" in text
        assert "GIT_TOKEN" not in text
        assert read_config_file(path) == {
            "LANGUAGE": "en",
            "GITHUB_TOKEN": "old",
            "aliases": {"co": "checkout", "st": "status"},
        }

    def test_write_leaves_no_temp_files(self, store, global_config_file):
        store.write(global_config_file, store.read(global_config_file))
        assert os.listdir(global_config_file.parent) == ["config.toml"]

    def test_write_failure_raises_persistence_error(self, store, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(PersistenceError, match="Failed to write"):
            store.write(blocker / "config.toml", {"LANGUAGE": "en"})

    def test_unserializable_value(self, store, tmp_path):
        path = tmp_path / "config.toml"

        with pytest.raises(PersistenceError):
            store.write(path, {"LANGUAGE": None})

        assert not path.exists()

    def test_exists(self, store, global_config_file, tmp_path):
        assert store.exists(global_config_file)
        assert not store.exists(tmp_path / "other.toml")
        assert not store.exists(tmp_path)


class TestModels:
    def test_global_defaults(self):
        config = GlobalConfig()
        assert config.LANGUAGE == "en"
        assert config.JIRA_TRANSITION_ENABLED is False
        assert config.migration_version == "0"

    def test_global_keeps_unknown_keys(self):
        config = GlobalConfig.from_dict(minimal_config(CUSTOM_KEY="x"))
        assert config.model_dump()["CUSTOM_KEY"] == "x"

    def test_tokens_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        config = GlobalConfig.from_dict(minimal_config())
        assert config.GITHUB_TOKEN == "env-token"

    def test_file_token_wins_over_env(self, monkeypatch):
        monkeypatch.setenv("JIRA_API_TOKEN", "env-token")
        config = GlobalConfig.from_dict(minimal_config())
        assert config.JIRA_API_TOKEN == "jira-token"

    def test_migration_version_coerced(self):
        assert GlobalConfig(migration_version=20250115000000001).migration_version == "20250115000000001"
        assert ProjectConfig(migration_version=None).migration_version == "0"

    def test_project_config(self):
        config = ProjectConfig(projectKey="DEV", transitionId="31")
        assert config.transitionId == 31


class TestRedaction:
    @pytest.mark.parametrize("key,expected", [
        ("JIRA_API_TOKEN", True),
        ("GITHUB_TOKEN", True),
        ("my_password", True),
        ("CLIENT_SECRET", True),
        ("JIRA_URL", False),
        ("LANGUAGE", False),
    ])
    def test_is_secret_key(self, key, expected):
        assert is_secret_key(key) is expected

    def test_redact(self):
        result = redact({
            "JIRA_URL": "https://jira.example.com",
            "JIRA_API_TOKEN": "secret",
            "WEBHOOK": "https://hooks.example.com/x?key=abc",
            "JIRA_TRANSITION_ENABLED": True,
        })

        assert result == {
            "JIRA_URL": "https://jira.example.com",
            "JIRA_API_TOKEN": REDACTED_PLACEHOLDER,
            "WEBHOOK": REDACTED_PLACEHOLDER,
            "JIRA_TRANSITION_ENABLED": True,
        }


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="devflow init-config"):
            load_config(tmp_path / "missing.toml", project_dir=tmp_path)

    def test_auto_upgrade_applies_migrations(self, tmp_path):
        path = write_config_file(
            tmp_path / "config.toml",
            minimal_config(GIT_TOKEN="ghp_abc", GIT_PROVIDER="github")
        )
        logger, _ = make_logger()

        config = load_config(path, project_dir=tmp_path, auto_upgrade=True, logger=logger)

        assert config.GITHUB_TOKEN == "ghp_abc"
        assert config.migration_version == "20250115000000001"
        assert "GIT_TOKEN" not in read_config_file(path)

    def test_prompt_accepted(self, tmp_path):
        path = write_config_file(tmp_path / "config.toml", minimal_config())
        logger, output = make_logger()
        prompts = []

        def confirm(message):
            prompts.append(message)
            return True

        config = load_config(path, project_dir=tmp_path, logger=logger, confirm=confirm)

        assert prompts == ["Upgrade the global config now?"]
        assert "20250115000000001" in output.getvalue()
        assert config.migration_version == "20250115000000001"

    def test_prompt_declined(self, tmp_path):
        path = write_config_file(tmp_path / "config.toml", minimal_config())
        logger, _ = make_logger()

        with pytest.raises(ConfigError, match="devflow update-config"):
            load_config(path, project_dir=tmp_path, logger=logger, confirm=lambda message: False)

        assert read_config_file(path)["migration_version"] == "0"

    def test_up_to_date_does_not_prompt(self, tmp_path):
        path = write_config_file(tmp_path / "config.toml", minimal_config(migration_version="20250115000000001"))

        def confirm(message):
            raise AssertionError("should not prompt")

        config = load_config(path, project_dir=tmp_path, confirm=confirm, logger=make_logger()[0])

        assert config.JIRA_URL == "https://jira.example.com"

    def test_default_path_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEVFLOW_CONFIG_DIR", str(tmp_path / "cfg"))
        write_config_file(tmp_path / "cfg" / "config.toml", minimal_config(migration_version="20250115000000001"))

        config = load_config(project_dir=tmp_path, logger=make_logger()[0])

        assert config.JIRA_EMAIL == "dev@example.com"

    def test_prerequisite_failure_propagates(self, tmp_path, monkeypatch):
        from devflow.migrations import ConfigMigrator

        path = write_config_file(tmp_path / "config.toml", minimal_config())

        def explode(self, scope, prerequisites_only=False, dry_run=False):
            raise FatalMigrationError("1", "Required step", RuntimeError("boom"))

        monkeypatch.setattr(ConfigMigrator, "migrate", explode)

        with pytest.raises(FatalMigrationError, match="boom"):
            load_config(path, project_dir=tmp_path, auto_upgrade=True, logger=make_logger()[0])
