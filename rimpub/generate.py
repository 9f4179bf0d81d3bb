"""Template generation for project config and ignore files."""

import logging
from pathlib import Path
from typing import Optional

import toml

from .exceptions import FilesystemError
from .project import PROJECT_CONFIG_FILE_NAME, ProjectConfig
from .publish.ignore import PUBLISH_IGNORE_FILE_NAME

logger = logging.getLogger(__name__)

IGNORE_FILE_TEMPLATE = """\
# Add files or directories to ignore here, one pattern per line.
# Syntax is the same as .gitignore.
#
# Source/
# *.csproj.user
"""


def _write_new_file(path: Path, content: str) -> Optional[Path]:
    if path.exists():
        logger.warning(f"File already exists at {path}")
        return None
    logger.debug(f"Generating file at {path}")
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Failed to write {path}: {e}", path=path) from e
    return path


def generate_config_file(working_dir: Path) -> Optional[Path]:
    """Write a default ``rimpub.toml`` into ``working_dir``.

    Returns:
        The created path, or None if the file already existed
    """
    content = toml.dumps(ProjectConfig().to_dict())
    return _write_new_file(working_dir / PROJECT_CONFIG_FILE_NAME, content)


def generate_ignore_file(working_dir: Path) -> Optional[Path]:
    """Write a commented ``.rimpub-ignore`` into ``working_dir``.

    Returns:
        The created path, or None if the file already existed
    """
    return _write_new_file(working_dir / PUBLISH_IGNORE_FILE_NAME, IGNORE_FILE_TEMPLATE)
