"""Configuration management for Docvault.

The configuration file lives next to the default vault in ``~/.docvault`` and
is written owner-readable only, since it names where private documents are
kept.
"""

from __future__ import annotations

import os
import textwrap
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import VaultConfig
from .resolver import flatten_for_env, parse_env_overrides, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.docvault/config.yaml")
CONFIG_FILE_MODE = 0o600
_CONFIG_HEADER = textwrap.dedent(
    """\
    # Docvault configuration file
    # Manage via `docvault config edit` or `docvault config set`.
    # Environment variables of the form DOCVAULT__SECTION__KEY take precedence.
    # Permission modes are plain integers (0 is 0o000, 384 is 0o600).
    """
)


class ConfigManager:
    """Read and write the configuration file and resolve effective settings.

    Args:
        config_path: Location of the YAML file; ``~/.docvault/config.yaml`` by default.
        env: Environment consulted for ``DOCVAULT__`` overrides; ``os.environ`` by default.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> VaultConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted or nested values from the command line.
            include_env: Whether ``DOCVAULT__`` environment variables apply.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Environment mapping to use instead of the manager's.

        Returns:
            VaultConfig: Defaults < file < environment < CLI, validated.

        Raises:
            ConfigError: If the file is malformed or a value is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        env_data = None
        if include_env:
            env_data = parse_env_overrides(
                env_overrides if env_overrides is not None else self._env
            )

        return resolve_with_precedence(
            defaults=VaultConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the configuration file."""
        return self._read_file()

    def save(self, config: VaultConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the configuration file, replacing its contents."""
        data = config.model_dump(mode="python") if isinstance(config, VaultConfig) else config
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create the configuration file with default values when it is missing."""
        if not self._config_path.exists():
            self._write_file(VaultConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the configuration file contents, or an empty string."""
        try:
            return self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        text = self.read_text()
        try:
            raw = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        """Replace the file atomically so a failed write never truncates it."""
        directory = self._config_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        staged = directory / f".{self._config_path.name}.{uuid.uuid4().hex}.tmp"
        try:
            staged.write_text(f"{_CONFIG_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8")
            os.chmod(staged, CONFIG_FILE_MODE)
            os.replace(staged, self._config_path)
        except OSError as exc:
            staged.unlink(missing_ok=True)
            raise ConfigError(f"Unable to write configuration file: {exc}") from exc


__all__ = [
    "CONFIG_FILE_MODE",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "VaultConfig",
    "resolve_with_precedence",
    "flatten_for_env",
    "parse_env_overrides",
    "ConfigError",
]
