"""rimpub - publish a RimWorld mod project into the game's Mods folder."""

from .config import ConfigSnapshot, GlobalConfig
from .exceptions import (
    BuildError,
    ConfigError,
    FilesystemError,
    RimpubError,
    WalkError,
)
from .project import ProjectConfig
from .publish import (
    PublishEngine,
    PublishOutcome,
    PublishRequest,
    PublishResult,
)

__version__ = "0.3.0"

__all__ = [
    "GlobalConfig",
    "ConfigSnapshot",
    "ProjectConfig",
    "PublishEngine",
    "PublishOutcome",
    "PublishRequest",
    "PublishResult",
    "RimpubError",
    "ConfigError",
    "FilesystemError",
    "BuildError",
    "WalkError",
]
