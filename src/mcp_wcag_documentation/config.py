"""Configuration handling for the WCAG documentation index."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_ENV = "MCP_WCAG_DOCS_CONFIG"
DEFAULT_DB_PATH = Path.home() / ".cache" / "mcp-wcag-documentation" / "guides.db"


def _log_level(name: str) -> str:
    """Normalise a log level name, rejecting names logging does not know."""
    level = name.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        msg = f"Unknown log level: {name}"
        raise ValueError(msg)
    return level


@dataclass
class Settings:
    """Main configuration class."""

    db_path: Path = DEFAULT_DB_PATH
    repo_url: str | None = None
    branch: str = "main"
    docs_path: str = ""
    base_url: str | None = None
    log_level: str = "INFO"
    lint_ignore: list[str] = field(default_factory=list)
    check_code_samples: bool = True

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load configuration from YAML file.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            Settings with defaults for keys the file omits.

        Raises:
            ValueError: If the file does not contain a mapping or names an
                unknown log level.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            msg = f"Configuration file must contain a mapping: {path}"
            raise ValueError(msg)

        lint_data = data.get("lint", {}) or {}
        return cls(
            db_path=Path(data["db_path"]).expanduser() if data.get("db_path") else DEFAULT_DB_PATH,
            repo_url=data.get("repo_url"),
            branch=data.get("branch", "main"),
            docs_path=data.get("docs_path", ""),
            base_url=data.get("base_url"),
            log_level=_log_level(str(data.get("log_level", "INFO"))),
            lint_ignore=list(lint_data.get("ignore", [])),
            check_code_samples=bool(lint_data.get("check_code_samples", True)),
        )

    @classmethod
    def load(cls) -> "Settings":
        """Load configuration from the file named by the environment, then apply overrides.

        Raises:
            ValueError: If the configuration names an unknown log level.
        """
        config_path = os.environ.get(CONFIG_ENV)

        if config_path and os.path.exists(config_path):
            settings = cls.from_yaml(Path(config_path))
        else:
            settings = cls()

        if os.environ.get("MCP_WCAG_DOCS_DB"):
            settings.db_path = Path(os.environ["MCP_WCAG_DOCS_DB"]).expanduser()
        if os.environ.get("MCP_WCAG_DOCS_REPO"):
            settings.repo_url = os.environ["MCP_WCAG_DOCS_REPO"]
        if os.environ.get("MCP_WCAG_DOCS_BRANCH"):
            settings.branch = os.environ["MCP_WCAG_DOCS_BRANCH"]
        if os.environ.get("MCP_WCAG_DOCS_LOG_LEVEL"):
            settings.log_level = _log_level(os.environ["MCP_WCAG_DOCS_LOG_LEVEL"])
        return settings
