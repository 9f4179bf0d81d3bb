"""Recursive copy of a project tree into the publish destination."""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from ..exceptions import FilesystemError, WalkError

logger = logging.getLogger(__name__)


class EntryFilter(Protocol):
    """Predicate deciding which walked entries are mirrored."""

    def should_include(self, path: Path, is_dir: bool) -> bool: ...


@dataclass
class MirrorError:
    """A single entry that could not be mirrored."""

    path: Path
    """Source path of the failed entry"""

    message: str
    """What went wrong"""

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class MirrorResult:
    """Statistics and per-entry errors of a mirror run."""

    files_copied: int = 0
    directories_created: int = 0
    skipped: int = 0
    errors: list[MirrorError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when every entry was mirrored without error."""
        return not self.errors


class DirectoryMirror:
    """Replicates the included part of a source tree under a destination.

    One bad entry never aborts the walk: failures are collected in the
    returned ``MirrorResult`` and every remaining entry is still attempted.

    Examples:
        >>> mirror = DirectoryMirror()
        >>> result = mirror.mirror(Path("MyMod"), Path("Mods/MyMod"), matcher)
        >>> print(f"Copied {result.files_copied} files")
    """

    def mirror(
        self, source_root: Path, destination_root: Path, matcher: EntryFilter
    ) -> MirrorResult:
        """Mirror ``source_root`` into ``destination_root``.

        Args:
            source_root: Directory to copy from
            destination_root: Directory to copy into (created if missing)
            matcher: Filter deciding which entries are copied

        Returns:
            MirrorResult with counts and per-entry errors

        Raises:
            FilesystemError: If the source root is not a directory
        """
        source_root = Path(source_root).absolute()
        destination_root = Path(destination_root).absolute()
        if not source_root.is_dir():
            raise FilesystemError(
                f"Source directory does not exist: {source_root}", path=source_root
            )

        result = MirrorResult()
        try:
            destination_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            error = WalkError(f"Failed to create directory: {e}", destination_root)
            self._record(result, error)
            return result

        self._walk(source_root, source_root, destination_root, matcher, result)
        return result

    def _record(self, result: MirrorResult, error: WalkError) -> None:
        logger.warning(f"Failed to copy {error.path}: {error}")
        result.errors.append(MirrorError(path=error.path, message=str(error)))

    def _walk(
        self,
        directory: Path,
        source_root: Path,
        destination_root: Path,
        matcher: EntryFilter,
        result: MirrorResult,
    ) -> None:
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as e:
            self._record(result, WalkError(f"Error reading directory: {e}", directory))
            return

        for entry in entries:
            path = Path(entry.path)
            if path == destination_root:
                # Destination nested inside the source tree
                result.skipped += 1
                continue
            try:
                kind = self._entry_kind(entry)
                if kind is None:
                    logger.debug(f"Skipping non-regular entry: {path}")
                    result.skipped += 1
                    continue

                is_dir = kind == "dir"
                if not matcher.should_include(path, is_dir=is_dir):
                    result.skipped += 1
                    continue

                target = destination_root / path.relative_to(source_root)
                if is_dir:
                    self._create_directory(target, source_root, path, result)
                else:
                    self._copy_file(path, target, source_root)
                    result.files_copied += 1
            except WalkError as e:
                self._record(result, e)
                continue

            if is_dir:
                self._walk(path, source_root, destination_root, matcher, result)

    @staticmethod
    def _entry_kind(entry: os.DirEntry) -> Optional[str]:
        """Classify an entry without following symlinks."""
        path = Path(entry.path)
        try:
            if entry.is_symlink():
                return None
            if entry.is_dir(follow_symlinks=False):
                return "dir"
            if entry.is_file(follow_symlinks=False):
                return "file"
        except OSError as e:
            raise WalkError(f"Failed to read entry type: {e}", path) from e
        return None

    @staticmethod
    def _create_directory(
        target: Path, source_root: Path, source: Path, result: MirrorResult
    ) -> None:
        if target.is_dir():
            return
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WalkError(f"Failed to create directory {target}: {e}", source) from e
        result.directories_created += 1
        logger.debug(f"Created directory: {source.relative_to(source_root).as_posix()}")

    @staticmethod
    def _copy_file(source: Path, target: Path, source_root: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(source, target)
        except OSError as e:
            raise WalkError(f"Failed to copy file: {e}", source) from e
        logger.debug(f"Copied file: {source.relative_to(source_root).as_posix()}")
