"""Ignore rules deciding which entries of a project get published.

An entry is excluded when ANY of these layers excludes it:

1. ``.gitignore`` files, hierarchical (nearest file with a matching
   pattern decides, ``!negation`` re-includes)
2. ``.git/info/exclude`` of the enclosing repository
3. the user's global git ignore file (``core.excludesFile``)
4. ``.rimpub-ignore`` files, hierarchical like ``.gitignore``
5. a fixed denylist of names that must never be published

Patterns use gitignore syntax and are matched with ``pathspec``.
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import pathspec

from ..project import PROJECT_CONFIG_FILE_NAMES

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"
GITIGNORE_FILE_NAME = ".gitignore"
PUBLISH_IGNORE_FILE_NAME = ".rimpub-ignore"

DEFAULT_DENYLIST: frozenset[str] = frozenset(
    {
        GIT_DIR_NAME,
        GITIGNORE_FILE_NAME,
        PUBLISH_IGNORE_FILE_NAME,
        *PROJECT_CONFIG_FILE_NAMES,
    }
)


def load_ignore_file(path: Path) -> list[str]:
    """Read the pattern lines of an ignore file.

    Args:
        path: Ignore file to read

    Returns:
        Lines of the file, or an empty list if it cannot be read
    """
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Failed to read ignore file {path}: {e}")
        return []


def find_git_dir(start: Path) -> Optional[tuple[Path, Path]]:
    """Find the git repository enclosing ``start``.

    Handles both a ``.git`` directory and a ``.git`` file pointing to the
    real git directory (worktrees, submodules).

    Args:
        start: Directory to start searching from

    Returns:
        Tuple of (repository root, git directory), or None
    """
    for directory in (start, *start.parents):
        dot_git = directory / GIT_DIR_NAME
        if dot_git.is_dir():
            return directory, dot_git
        if dot_git.is_file():
            for line in load_ignore_file(dot_git):
                if line.startswith("gitdir:"):
                    git_dir = Path(line[len("gitdir:") :].strip())
                    if not git_dir.is_absolute():
                        git_dir = directory / git_dir
                    return directory, git_dir
    return None


def find_global_ignore_file() -> Optional[Path]:
    """Locate the user's global git ignore file.

    Uses ``git config core.excludesFile`` when it is set, otherwise the
    default ``$XDG_CONFIG_HOME/git/ignore`` location, as git does.

    Returns:
        Path to an existing global ignore file, or None
    """
    try:
        completed = subprocess.run(
            ["git", "config", "--global", "--get", "core.excludesFile"],
            check=False,
            text=True,
            capture_output=True,
        )
    except OSError as e:
        logger.debug(f"Cannot query git for core.excludesFile: {e}")
    else:
        value = completed.stdout.strip()
        if completed.returncode == 0 and value:
            configured = Path(value).expanduser()
            if configured.is_file():
                return configured
            logger.debug(f"core.excludesFile {configured} does not exist")
            return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    default = Path(xdg_config) / "git" / "ignore"
    return default if default.is_file() else None


@dataclass
class IgnoreRule:
    """Compiled patterns of a single ignore source."""

    base: Path
    """Directory the patterns are relative to"""

    spec: pathspec.PathSpec
    """Compiled gitignore patterns"""

    source: Optional[Path] = None
    """File the patterns were read from"""

    @classmethod
    def from_lines(
        cls, lines: Iterable[str], base: Path, source: Optional[Path] = None
    ) -> "IgnoreRule":
        return cls(
            base=base,
            spec=pathspec.PathSpec.from_lines("gitwildmatch", lines),
            source=source,
        )

    @property
    def is_empty(self) -> bool:
        return not any(p.include is not None for p in self.spec.patterns)

    def decide(self, path: Path, is_dir: bool) -> Optional[bool]:
        """Evaluate the patterns against a path.

        The last matching pattern wins, as in git.

        Args:
            path: Absolute path of the entry
            is_dir: Whether the entry is a directory

        Returns:
            True if ignored, False if re-included by a negated pattern,
            None if no pattern matches
        """
        try:
            relative = path.relative_to(self.base).as_posix()
        except ValueError:
            return None
        if is_dir:
            relative += "/"

        decision = None
        for pattern in self.spec.patterns:
            if pattern.include is None:
                continue
            if pattern.match_file(relative) is not None:
                decision = pattern.include
        return decision


@dataclass
class _Layer:
    """Hierarchical ignore files sharing one file name."""

    file_name: str
    top: Path
    rules: dict[Path, Optional[IgnoreRule]] = field(default_factory=dict)

    def rule_for(self, directory: Path) -> Optional[IgnoreRule]:
        if directory not in self.rules:
            ignore_file = directory / self.file_name
            rule = None
            if ignore_file.is_file():
                rule = IgnoreRule.from_lines(
                    load_ignore_file(ignore_file), base=directory, source=ignore_file
                )
                logger.debug(f"Loaded ignore file: {ignore_file}")
                if rule.is_empty:
                    rule = None
            self.rules[directory] = rule
        return self.rules[directory]

    def ignores(self, path: Path, is_dir: bool) -> bool:
        directory = path.parent
        while True:
            rule = self.rule_for(directory)
            if rule is not None:
                decision = rule.decide(path, is_dir)
                if decision is not None:
                    return decision
            if directory == self.top or directory.parent == directory:
                return False
            directory = directory.parent


class IgnoreMatcher:
    """Decides whether an entry below a walk root should be published.

    Examples:
        >>> matcher = IgnoreMatcher(Path("/mods/MyMod"))
        >>> matcher.should_include(Path("/mods/MyMod/About/About.xml"), is_dir=False)
        True
        >>> matcher.should_include(Path("/mods/MyMod/.git"), is_dir=True)
        False
    """

    def __init__(
        self,
        root: Path,
        custom_ignore_filename: str = PUBLISH_IGNORE_FILE_NAME,
        denylist: Iterable[str] = DEFAULT_DENYLIST,
        use_git_ignore: bool = True,
        use_git_exclude: bool = True,
        use_git_global: bool = True,
        global_ignore_file: Optional[Path] = None,
    ):
        """Initialize the matcher.

        Args:
            root: Root directory of the walk (never included itself)
            custom_ignore_filename: Name of the project-specific ignore file
            denylist: Entry names excluded at any depth
            use_git_ignore: Respect ``.gitignore`` files
            use_git_exclude: Respect ``.git/info/exclude``
            use_git_global: Respect the user's global git ignore file
            global_ignore_file: Global ignore file to use instead of
                discovering it through git
        """
        self.root = Path(root).absolute()
        self.denylist = frozenset(denylist)

        repo = find_git_dir(self.root)
        self.repo_root = repo[0] if repo else None
        pattern_base = self.repo_root or self.root

        self._layers: list[_Layer] = []
        if use_git_ignore:
            self._layers.append(_Layer(GITIGNORE_FILE_NAME, top=pattern_base))
        self._layers.append(_Layer(custom_ignore_filename, top=self.root))

        self._fixed_rules: list[IgnoreRule] = []
        if use_git_exclude and repo is not None:
            exclude_file = repo[1] / "info" / "exclude"
            if exclude_file.is_file():
                self._add_fixed_rule(exclude_file, pattern_base)
        if use_git_global:
            global_file = global_ignore_file or find_global_ignore_file()
            if global_file is not None:
                self._add_fixed_rule(global_file, pattern_base)

    def _add_fixed_rule(self, ignore_file: Path, base: Path) -> None:
        rule = IgnoreRule.from_lines(load_ignore_file(ignore_file), base, ignore_file)
        if not rule.is_empty:
            logger.debug(f"Loaded ignore file: {ignore_file}")
            self._fixed_rules.append(rule)

    def _absolute(self, path: Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def is_ignored(self, path: Path, is_dir: bool) -> bool:
        """Check whether any ignore layer excludes the entry.

        Args:
            path: Entry path, absolute or relative to the root
            is_dir: Whether the entry is a directory

        Returns:
            True if the entry must not be published
        """
        path = self._absolute(path)
        if path == self.root:
            return True
        if path.name in self.denylist:
            logger.debug(f"Ignoring (always excluded): {path.name}")
            return True

        for layer in self._layers:
            if layer.ignores(path, is_dir):
                logger.debug(f"Ignoring (from {layer.file_name}): {path}")
                return True

        for rule in self._fixed_rules:
            if rule.decide(path, is_dir):
                logger.debug(f"Ignoring (from {rule.source}): {path}")
                return True

        return False

    def should_include(self, path: Path, is_dir: bool) -> bool:
        """Inverse of ``is_ignored``: True if the entry is published."""
        return not self.is_ignored(path, is_dir)
