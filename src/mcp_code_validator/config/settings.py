"""Runtime settings for MCP Code Validator.

Resolution order (later wins):
1. Built-in defaults
2. YAML settings file (``.mcp-code-validator.yaml`` or an explicit path)
3. ``.env`` / ``.env.local`` in the working directory
4. ``MCV_*`` environment variables
5. Explicit overrides (CLI flags)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from ..core.context import CONTEXT_SEPARATOR, DEFAULT_BRANCH, DEFAULT_PROJECT
from ..core.exceptions import ConfigError
from .defaults import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_DB_PATH,
    DEFAULT_LOG_LEVEL,
    VALID_LOG_LEVELS,
)

_ENV_FIELDS = {
    "db_path": "MCV_DB_PATH",
    "default_project": "MCV_DEFAULT_PROJECT",
    "default_branch": "MCV_DEFAULT_BRANCH",
    "log_level": "MCV_LOG_LEVEL",
}


@dataclass
class Settings:
    """Complete runtime configuration."""

    db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    default_project: str = DEFAULT_PROJECT
    default_branch: str = DEFAULT_BRANCH
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path).expanduser()
        self.log_level = str(self.log_level).upper()
        self.validate()

    def validate(self) -> None:
        """Reject values the engine cannot work with.

        Raises:
            ConfigError: If any setting is invalid
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level '{self.log_level}'",
                context={"valid": list(VALID_LOG_LEVELS)},
            )
        if not self.default_project or CONTEXT_SEPARATOR in self.default_project:
            raise ConfigError(
                f"Invalid default project '{self.default_project}'",
                context={"reserved": CONTEXT_SEPARATOR},
            )
        if not self.default_branch:
            raise ConfigError("Default branch must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        unknown = set(data) - set(_ENV_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def load(
        cls,
        config_file: Path | None = None,
        env_dir: Path | None = None,
        **overrides: Any,
    ) -> Settings:
        """Load settings from file, environment and explicit overrides.

        Args:
            config_file: YAML settings file; defaults to ``.mcp-code-validator.yaml``
                in the working directory when present
            env_dir: Directory searched for ``.env`` files (working directory by default)
            **overrides: Values that win over everything else; None is ignored

        Returns:
            Settings instance

        Raises:
            ConfigError: If the file is unreadable or a value is invalid
        """
        data: dict[str, Any] = {}

        path = config_file or Path.cwd() / DEFAULT_CONFIG_FILE
        if path.exists():
            try:
                with open(path) as f:
                    loaded = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Failed to read settings file {path}: {e}") from e
            if not isinstance(loaded, dict):
                raise ConfigError(f"Settings file {path} must contain a mapping")
            data.update(loaded)
            logger.debug(f"Loaded settings from {path}")
        elif config_file is not None:
            raise ConfigError(f"Settings file not found: {config_file}")

        load_env_files(env_dir or Path.cwd())

        for name, env_var in _ENV_FIELDS.items():
            value = os.environ.get(env_var)
            if value:
                data[name] = value

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "db_path": str(self.db_path),
            "default_project": self.default_project,
            "default_branch": self.default_branch,
            "log_level": self.log_level,
        }


def load_env_files(directory: Path) -> None:
    """Load ``.env`` then ``.env.local`` without clobbering the real environment."""
    for env_file in (directory / ".env", directory / ".env.local"):
        if env_file.exists():
            load_dotenv(env_file, override=False)
            logger.debug(f"Loaded environment from {env_file}")
