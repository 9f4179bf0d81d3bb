"""Project-local configuration (``rimpub.toml``)."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import toml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE_NAME = "rimpub.toml"
LEGACY_PROJECT_CONFIG_FILE_NAME = ".rimpub.toml"
PROJECT_CONFIG_FILE_NAMES = (PROJECT_CONFIG_FILE_NAME, LEGACY_PROJECT_CONFIG_FILE_NAME)


def validate_project_name(name: str) -> str:
    """Check that a project name is a single folder name.

    The name becomes a directory directly below the mods path, so it must
    not be ``.``/``..``, contain a path separator or carry a drive or root.

    Raises:
        ConfigError: If the name would resolve outside the mods path
    """
    separators = ("/", "\\")
    if (
        name in (".", "..")
        or any(sep in name for sep in separators)
        or Path(name).anchor
    ):
        raise ConfigError(
            f"Invalid 'name' {name!r}: must be a single folder name", key="name"
        )
    return name


@dataclass
class ProjectConfig:
    """Per-project settings read from the working directory."""

    name: str = ""
    """Folder name of the published copy (empty: use the directory name)"""

    source: Optional[Path] = None
    """File the settings were read from, None when defaults are used"""

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], source: Optional[Path] = None
    ) -> "ProjectConfig":
        name = data.get("name", "")
        if not isinstance(name, str):
            raise ConfigError("'name' must be a string", key="name")
        name = name.strip()
        if name:
            validate_project_name(name)
        return cls(name=name, source=source)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name}

    @classmethod
    def find_file(cls, working_dir: Path) -> Optional[Path]:
        """Return the project config file in ``working_dir``, if any."""
        for file_name in PROJECT_CONFIG_FILE_NAMES:
            candidate = working_dir / file_name
            if candidate.is_file():
                return candidate
        return None

    @classmethod
    def load(cls, working_dir: Path) -> "ProjectConfig":
        """Load the project config, falling back to defaults.

        Args:
            working_dir: Project directory

        Returns:
            Parsed config, or defaults when no file exists

        Raises:
            ConfigError: If the file exists but cannot be read or parsed
        """
        config_path = cls.find_file(working_dir)
        if config_path is None:
            logger.debug("No config file found, using default configuration")
            return cls()

        logger.debug(f"Reading config file: {config_path}")
        try:
            data = toml.loads(config_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e
        except toml.TomlDecodeError as e:
            raise ConfigError(f"Failed to parse {config_path.name}: {e}") from e
        return cls.from_dict(data, source=config_path)

    def resolve_name(self, working_dir: Path) -> str:
        """Fill in an empty name from the directory name.

        Args:
            working_dir: Project directory

        Returns:
            The resolved, non-empty project name

        Raises:
            ConfigError: If the name is not a single folder name, or no name
                is configured and the directory has none
        """
        if not self.name:
            logger.debug("No 'name' configured, using folder name instead")
            self.name = working_dir.resolve().name
            if not self.name:
                raise ConfigError(
                    "Didn't configure 'name' and failed to get directory name",
                    key="name",
                )
        return validate_project_name(self.name)


def load_project_config(working_dir: Path) -> ProjectConfig:
    """Load the project config and resolve its name."""
    project = ProjectConfig.load(working_dir)
    project.resolve_name(working_dir)
    return project
