"""Persistent user-level configuration for rimpub.

The configuration lives in ``~/.rimpub/Config.toml`` (or ``$RIMPUB_HOME``)
and holds two settings:

- ``mods_path``: directory that receives published mods
- ``skip_confirmation``: replace an existing published copy without asking

A single ``GlobalConfig`` is loaded when the CLI starts and handed to every
command that needs it. Every change is written to disk immediately.
"""

import logging
import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import toml

from .exceptions import ConfigError
from .platform_services import PlatformServices, get_platform_services

logger = logging.getLogger(__name__)

APP_DIR_NAME = ".rimpub"
APP_DIR_ENV_VAR = "RIMPUB_HOME"
CONFIG_FILE_NAME = "Config.toml"

KEY_MODS_PATH = "mods_path"
KEY_SKIP_CONFIRMATION = "skip_confirmation"
CONFIG_KEYS = (KEY_MODS_PATH, KEY_SKIP_CONFIRMATION)

GENERATED_HEADER = "# This file was generated by rimpub, do not edit manually\n\n"


def get_app_dir() -> Path:
    """Return the rimpub application directory.

    Returns:
        ``$RIMPUB_HOME`` if set, otherwise ``~/.rimpub``
    """
    override = os.environ.get(APP_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / APP_DIR_NAME


def parse_bool(key: str, value: str) -> bool:
    """Parse a boolean setting given on the command line.

    Args:
        key: Setting name, used in the error message
        value: Raw value ("true" or "false", any case)

    Returns:
        Parsed boolean

    Raises:
        ConfigError: If the value is not a boolean literal
    """
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    raise ConfigError(
        f"Invalid value for '{key}': expected a boolean, got '{value}'", key=key
    )


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable view of the global configuration."""

    mods_path: Optional[Path] = None
    """Directory that receives published mods"""

    skip_confirmation: bool = False
    """Replace an existing published copy without asking"""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigSnapshot":
        """Build a snapshot from parsed TOML data.

        Unknown keys are ignored; missing keys take their defaults.

        Raises:
            ConfigError: If a known key has the wrong type
        """
        mods_path = data.get(KEY_MODS_PATH)
        if mods_path is not None and not isinstance(mods_path, str):
            raise ConfigError(
                f"'{KEY_MODS_PATH}' must be a string path", key=KEY_MODS_PATH
            )
        skip_confirmation = data.get(KEY_SKIP_CONFIRMATION, False)
        if not isinstance(skip_confirmation, bool):
            raise ConfigError(
                f"'{KEY_SKIP_CONFIRMATION}' must be a boolean",
                key=KEY_SKIP_CONFIRMATION,
            )
        return cls(
            mods_path=Path(mods_path) if mods_path else None,
            skip_confirmation=skip_confirmation,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a TOML-serializable dictionary (unset paths omitted)."""
        data: dict[str, Any] = {}
        if self.mods_path is not None:
            data[KEY_MODS_PATH] = str(self.mods_path)
        data[KEY_SKIP_CONFIRMATION] = self.skip_confirmation
        return data


class GlobalConfig:
    """Process-wide configuration store backed by ``Config.toml``.

    Readers take a ``snapshot()``; writers go through ``set()``, which
    validates, mutates and persists while holding the lock.

    Examples:
        >>> config = GlobalConfig.load()
        >>> _ = config.set("skip_confirmation", "true")
        >>> config.snapshot().skip_confirmation
        True
    """

    def __init__(self, snapshot: ConfigSnapshot, config_dir: Path):
        """Initialize the store with an already loaded snapshot.

        Args:
            snapshot: Current configuration values
            config_dir: Directory holding the config file
        """
        self._snapshot = snapshot
        self.config_dir = config_dir
        self._lock = threading.RLock()

    @property
    def config_path(self) -> Path:
        """Path of the persisted config file."""
        return self.config_dir / CONFIG_FILE_NAME

    @classmethod
    def load(
        cls,
        config_dir: Optional[Path] = None,
        platform: Optional[PlatformServices] = None,
    ) -> "GlobalConfig":
        """Load the configuration, creating defaults on first run.

        Args:
            config_dir: Application directory (defaults to ``get_app_dir()``)
            platform: Platform services used for default discovery

        Returns:
            Loaded GlobalConfig

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        config_dir = config_dir or get_app_dir()
        platform = platform or get_platform_services()

        if not config_dir.exists():
            # First run
            try:
                config_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise ConfigError(
                    f"Failed to create config directory {config_dir}: {e}"
                ) from e
            return cls._create_default(config_dir, platform)

        config_path = config_dir / CONFIG_FILE_NAME
        try:
            content = config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.warning(
                "Application directory exists but config file not found, "
                "recreating default config"
            )
            return cls._create_default(config_dir, platform)
        except OSError as e:
            raise ConfigError(f"Failed to read config file {config_path}: {e}") from e

        try:
            data = toml.loads(content)
        except toml.TomlDecodeError as e:
            raise ConfigError(f"Failed to parse config file {config_path}: {e}") from e

        logger.debug(f"Loaded config from {config_path}")
        return cls(ConfigSnapshot.from_dict(data), config_dir)

    @classmethod
    def _create_default(
        cls, config_dir: Path, platform: PlatformServices
    ) -> "GlobalConfig":
        logger.info("Creating default config file")
        try:
            mods_path = platform.find_rimworld_mods_path()
        except OSError as e:
            logger.warning(f"Failed to discover Steam install path: {e}")
            mods_path = None

        if mods_path is None:
            logger.warning(
                f"RimWorld installation not found, '{KEY_MODS_PATH}' will not be set"
            )
        else:
            logger.debug(f"Default '{KEY_MODS_PATH}' set to {mods_path}")

        config = cls(ConfigSnapshot(mods_path=mods_path), config_dir)
        config.save()
        return config

    def snapshot(self) -> ConfigSnapshot:
        """Return a consistent copy of the current values."""
        with self._lock:
            return self._snapshot

    def get(self, key: str) -> Optional[str]:
        """Return a setting formatted for display.

        Args:
            key: Setting name (case-insensitive)

        Returns:
            The value as a string, or None if the setting is unset

        Raises:
            ConfigError: If the key is unknown
        """
        normalized = key.strip().lower()
        snapshot = self.snapshot()
        if normalized == KEY_MODS_PATH:
            return str(snapshot.mods_path) if snapshot.mods_path else None
        if normalized == KEY_SKIP_CONFIRMATION:
            return str(snapshot.skip_confirmation).lower()
        raise ConfigError(f"Unexpected key '{key}' provided", key=key)

    def set(self, key: str, value: str) -> ConfigSnapshot:
        """Validate, apply and persist a single setting.

        Args:
            key: Setting name (case-insensitive)
            value: Raw value from the command line

        Returns:
            Snapshot after the change

        Raises:
            ConfigError: If the key is unknown, the value invalid, or the
                file cannot be written
        """
        normalized = key.strip().lower()
        with self._lock:
            if normalized == KEY_MODS_PATH:
                raw = value.strip()
                if not raw:
                    raise ConfigError(
                        f"'{KEY_MODS_PATH}' cannot be empty", key=KEY_MODS_PATH
                    )
                updated = replace(self._snapshot, mods_path=Path(raw).expanduser())
            elif normalized == KEY_SKIP_CONFIRMATION:
                updated = replace(
                    self._snapshot, skip_confirmation=parse_bool(normalized, value)
                )
            else:
                raise ConfigError(f"Unexpected key '{key}' provided", key=key)

            self._write(updated)
            self._snapshot = updated
            logger.info(f"Set '{normalized}' to {self.get(normalized)}")
            return updated

    def save(self) -> None:
        """Persist the current values."""
        with self._lock:
            self._write(self._snapshot)

    def _write(self, snapshot: ConfigSnapshot) -> None:
        content = GENERATED_HEADER + toml.dumps(snapshot.to_dict())
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                f"Failed to write config file {self.config_path}: {e}"
            ) from e

    def check(self) -> list[str]:
        """Check that the configuration is usable for publishing.

        Returns:
            List of problems found (empty when the config is ready)
        """
        problems = []
        mods_path = self.snapshot().mods_path
        if mods_path is None:
            problems.append(f"'{KEY_MODS_PATH}' not configured")
        elif not mods_path.exists():
            problems.append(f"'{KEY_MODS_PATH}': {mods_path} does not exist")
        elif not mods_path.is_dir():
            problems.append(f"'{KEY_MODS_PATH}': {mods_path} is not a directory")
        return problems
