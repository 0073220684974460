"""Tests for configuration loading."""

from pathlib import Path

import pytest

from mcp_wcag_documentation.config import CONFIG_ENV, DEFAULT_DB_PATH, Settings

ENV_VARS = (
    CONFIG_ENV,
    "MCP_WCAG_DOCS_DB",
    "MCP_WCAG_DOCS_REPO",
    "MCP_WCAG_DOCS_BRANCH",
    "MCP_WCAG_DOCS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables from the environment.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    """Test settings without a configuration file."""
    settings = Settings.load()

    assert settings.db_path == DEFAULT_DB_PATH
    assert settings.repo_url is None
    assert settings.branch == "main"
    assert settings.lint_ignore == []
    assert settings.check_code_samples is True


def test_from_yaml(tmp_path: Path) -> None:
    """Test loading every key from a YAML file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        f"""
db_path: {tmp_path / "guides.db"}
repo_url: https://example.org/a11y-guides.git
branch: develop
docs_path: docs
base_url: https://example.org/guides
log_level: debug
lint:
  ignore:
    - orphan-document
  check_code_samples: false
"""
    )

    settings = Settings.from_yaml(config_file)

    assert settings.db_path == tmp_path / "guides.db"
    assert settings.repo_url == "https://example.org/a11y-guides.git"
    assert settings.branch == "develop"
    assert settings.docs_path == "docs"
    assert settings.base_url == "https://example.org/guides"
    assert settings.log_level == "DEBUG"
    assert settings.lint_ignore == ["orphan-document"]
    assert settings.check_code_samples is False


def test_from_empty_yaml(tmp_path: Path) -> None:
    """Test that an empty file yields defaults."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")

    settings = Settings.from_yaml(config_file)

    assert settings == Settings()


def test_from_yaml_requires_mapping(tmp_path: Path) -> None:
    """Test that a non-mapping file raises error."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="must contain a mapping"):
        Settings.from_yaml(config_file)


def test_load_with_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that environment variables override the configuration file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("repo_url: https://example.org/from-file.git\nbranch: develop\n")
    monkeypatch.setenv(CONFIG_ENV, str(config_file))
    monkeypatch.setenv("MCP_WCAG_DOCS_REPO", "https://example.org/from-env.git")
    monkeypatch.setenv("MCP_WCAG_DOCS_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("MCP_WCAG_DOCS_LOG_LEVEL", "warning")

    settings = Settings.load()

    assert settings.repo_url == "https://example.org/from-env.git"
    assert settings.branch == "develop"
    assert settings.db_path == tmp_path / "env.db"
    assert settings.log_level == "WARNING"


def test_load_missing_config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that a missing configuration file falls back to defaults."""
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("MCP_WCAG_DOCS_BRANCH", "release")

    settings = Settings.load()

    assert settings.repo_url is None
    assert settings.branch == "release"


def test_from_yaml_rejects_unknown_log_level(tmp_path: Path) -> None:
    """Test that a misspelt log level in the file raises error."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("log_level: loud\n")

    with pytest.raises(ValueError, match="Unknown log level: loud"):
        Settings.from_yaml(config_file)


def test_load_rejects_unknown_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that an unknown log level in the environment raises error."""
    monkeypatch.setenv("MCP_WCAG_DOCS_LOG_LEVEL", "verbose")

    with pytest.raises(ValueError, match="Unknown log level: verbose"):
        Settings.load()
