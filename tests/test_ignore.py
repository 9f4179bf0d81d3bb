"""Unit tests for publish ignore rules."""

import subprocess
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from rimpub.publish.ignore import (
    DEFAULT_DENYLIST,
    PUBLISH_IGNORE_FILE_NAME,
    IgnoreMatcher,
    IgnoreRule,
    find_git_dir,
    find_global_ignore_file,
    load_ignore_file,
)


@pytest.fixture
def temp_dir():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "MyMod"
        root.mkdir()
        yield root


def make_matcher(root: Path, **kwargs) -> IgnoreMatcher:
    """Matcher that does not consult the user's global git config."""
    kwargs.setdefault("use_git_global", False)
    return IgnoreMatcher(root, **kwargs)


class TestIgnoreRule:
    """Tests for IgnoreRule pattern evaluation."""

    def test_decide_no_match(self, temp_dir):
        """Test that unmatched paths return None."""
        rule = IgnoreRule.from_lines(["*.log"], base=temp_dir)
        assert rule.decide(temp_dir / "About.xml", is_dir=False) is None

    def test_decide_match(self, temp_dir):
        """Test that a matching pattern ignores the path."""
        rule = IgnoreRule.from_lines(["*.log"], base=temp_dir)
        assert rule.decide(temp_dir / "debug.log", is_dir=False) is True

    def test_decide_negation_last_match_wins(self, temp_dir):
        """Test that a later negated pattern re-includes the path."""
        rule = IgnoreRule.from_lines(["*.log", "!keep.log"], base=temp_dir)
        assert rule.decide(temp_dir / "keep.log", is_dir=False) is False
        assert rule.decide(temp_dir / "other.log", is_dir=False) is True

    def test_decide_directory_only_pattern(self, temp_dir):
        """Test that 'name/' patterns only match directories."""
        rule = IgnoreRule.from_lines(["obj/"], base=temp_dir)
        assert rule.decide(temp_dir / "obj", is_dir=True) is True
        assert rule.decide(temp_dir / "obj", is_dir=False) is None

    def test_decide_outside_base(self, temp_dir):
        """Test that paths outside the rule base are not matched."""
        rule = IgnoreRule.from_lines(["*"], base=temp_dir / "sub")
        assert rule.decide(temp_dir / "file.txt", is_dir=False) is None

    def test_comments_and_blank_lines_are_empty(self, temp_dir):
        """Test that a file with only comments has no effect."""
        rule = IgnoreRule.from_lines(["# comment", ""], base=temp_dir)
        assert rule.is_empty


class TestLoadIgnoreFile:
    """Tests for load_ignore_file."""

    def test_missing_file(self, temp_dir):
        """Test that a missing file yields no patterns."""
        assert load_ignore_file(temp_dir / ".gitignore") == []

    def test_reads_lines(self, temp_dir):
        """Test that lines are returned without newlines."""
        path = temp_dir / ".gitignore"
        path.write_text("*.log\nobj/\n")
        assert load_ignore_file(path) == ["*.log", "obj/"]


class TestFindGitDir:
    """Tests for git repository discovery."""

    def test_no_repository(self, temp_dir):
        """Test that None is returned outside a repository."""
        assert find_git_dir(temp_dir) is None

    def test_git_directory_in_parent(self, temp_dir):
        """Test discovery of a .git directory above the start."""
        (temp_dir / ".git").mkdir()
        sub = temp_dir / "Source"
        sub.mkdir()
        assert find_git_dir(sub) == (temp_dir, temp_dir / ".git")

    def test_git_file_pointing_elsewhere(self, temp_dir):
        """Test discovery of a worktree-style .git file."""
        real_git_dir = temp_dir.parent / "real-git"
        real_git_dir.mkdir()
        (temp_dir / ".git").write_text(f"gitdir: {real_git_dir}\n")
        assert find_git_dir(temp_dir) == (temp_dir, real_git_dir)


class TestIgnoreMatcher:
    """Tests for IgnoreMatcher layering."""

    def test_root_never_included(self, temp_dir):
        """Test that the walk root itself is not included."""
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir, is_dir=True) is False

    def test_plain_file_included(self, temp_dir):
        """Test that files without rules are included."""
        (temp_dir / "About").mkdir()
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / "About", is_dir=True)
        assert matcher.should_include(temp_dir / "About" / "About.xml", is_dir=False)

    @pytest.mark.parametrize("name", sorted(DEFAULT_DENYLIST))
    def test_denylist_at_any_depth(self, temp_dir, name):
        """Test that tool and VCS files are always excluded."""
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / name, is_dir=False) is False
        assert matcher.should_include(temp_dir / "nested" / name, is_dir=False) is False

    def test_denylist_wins_over_negation(self, temp_dir):
        """Test that re-including a denylisted name has no effect."""
        (temp_dir / ".gitignore").write_text("!rimpub.toml\n")
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / "rimpub.toml", is_dir=False) is False

    def test_gitignore_patterns(self, temp_dir):
        """Test that .gitignore patterns exclude files and directories."""
        (temp_dir / ".gitignore").write_text("*.log\nobj/\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(temp_dir / "debug.log", is_dir=False) is False
        assert matcher.should_include(temp_dir / "obj", is_dir=True) is False
        assert matcher.should_include(temp_dir / "obj", is_dir=False) is True
        assert matcher.should_include(temp_dir / "notes.txt", is_dir=False) is True

    def test_nested_gitignore_nearest_file_wins(self, temp_dir):
        """Test that a deeper .gitignore can re-include a file."""
        sub = temp_dir / "Logs"
        sub.mkdir()
        (temp_dir / ".gitignore").write_text("*.log\n")
        (sub / ".gitignore").write_text("!changelog.log\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(sub / "changelog.log", is_dir=False) is True
        assert matcher.should_include(sub / "debug.log", is_dir=False) is False

    def test_nested_gitignore_scoped_to_subtree(self, temp_dir):
        """Test that a deeper .gitignore does not affect its parents."""
        sub = temp_dir / "Source"
        sub.mkdir()
        (sub / ".gitignore").write_text("*.txt\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(sub / "readme.txt", is_dir=False) is False
        assert matcher.should_include(temp_dir / "readme.txt", is_dir=False) is True

    def test_anchored_pattern(self, temp_dir):
        """Test that a leading slash anchors the pattern to its directory."""
        (temp_dir / "Source").mkdir()
        (temp_dir / ".gitignore").write_text("/build.txt\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(temp_dir / "build.txt", is_dir=False) is False
        assert matcher.should_include(temp_dir / "Source" / "build.txt", is_dir=False)

    def test_custom_ignore_file(self, temp_dir):
        """Test that .rimpub-ignore excludes entries."""
        (temp_dir / PUBLISH_IGNORE_FILE_NAME).write_text("Source/\n*.csproj\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(temp_dir / "Source", is_dir=True) is False
        assert matcher.should_include(temp_dir / "MyMod.csproj", is_dir=False) is False
        assert matcher.should_include(temp_dir / "About", is_dir=True) is True

    def test_custom_ignore_filename_is_configurable(self, temp_dir):
        """Test that another custom ignore file name can be used."""
        (temp_dir / ".publishignore").write_text("*.psd\n")
        matcher = make_matcher(temp_dir, custom_ignore_filename=".publishignore")
        assert matcher.should_include(temp_dir / "icon.psd", is_dir=False) is False

    def test_layers_are_a_union(self, temp_dir):
        """Test that a negation in one layer cannot undo another layer."""
        (temp_dir / ".gitignore").write_text("*.dll\n")
        (temp_dir / PUBLISH_IGNORE_FILE_NAME).write_text("!*.dll\n")
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / "Mod.dll", is_dir=False) is False

    def test_gitignore_can_be_disabled(self, temp_dir):
        """Test that use_git_ignore=False skips .gitignore files."""
        (temp_dir / ".gitignore").write_text("*.dll\n")
        matcher = make_matcher(temp_dir, use_git_ignore=False)
        assert matcher.should_include(temp_dir / "Mod.dll", is_dir=False) is True

    def test_git_exclude_file(self, temp_dir):
        """Test that .git/info/exclude is respected."""
        info = temp_dir / ".git" / "info"
        info.mkdir(parents=True)
        (info / "exclude").write_text("secret.txt\n")
        matcher = make_matcher(temp_dir)

        assert matcher.should_include(temp_dir / "secret.txt", is_dir=False) is False
        assert matcher.should_include(temp_dir / "public.txt", is_dir=False) is True

    def test_git_exclude_can_be_disabled(self, temp_dir):
        """Test that use_git_exclude=False skips .git/info/exclude."""
        info = temp_dir / ".git" / "info"
        info.mkdir(parents=True)
        (info / "exclude").write_text("secret.txt\n")
        matcher = make_matcher(temp_dir, use_git_exclude=False)
        assert matcher.should_include(temp_dir / "secret.txt", is_dir=False) is True

    def test_gitignore_in_repository_parent(self, temp_dir):
        """Test that .gitignore files between repo root and walk root apply."""
        repo = temp_dir.parent
        (repo / ".git").mkdir()
        (repo / ".gitignore").write_text("*.tmp\n")
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / "scratch.tmp", is_dir=False) is False

    def test_global_ignore_file(self, temp_dir):
        """Test that an explicit global ignore file is respected."""
        global_file = temp_dir.parent / "global-ignore"
        global_file.write_text(".DS_Store\n")
        matcher = IgnoreMatcher(temp_dir, global_ignore_file=global_file)
        assert matcher.should_include(temp_dir / ".DS_Store", is_dir=False) is False

    def test_global_ignore_disabled(self, temp_dir):
        """Test that use_git_global=False ignores the global file."""
        global_file = temp_dir.parent / "global-ignore"
        global_file.write_text(".DS_Store\n")
        matcher = IgnoreMatcher(
            temp_dir, use_git_global=False, global_ignore_file=global_file
        )
        assert matcher.should_include(temp_dir / ".DS_Store", is_dir=False) is True

    def test_case_sensitive_matching(self, temp_dir):
        """Test that patterns are matched case-sensitively."""
        (temp_dir / ".gitignore").write_text("*.LOG\n")
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(temp_dir / "debug.log", is_dir=False) is True
        assert matcher.should_include(temp_dir / "debug.LOG", is_dir=False) is False

    def test_relative_paths(self, temp_dir):
        """Test that paths relative to the root are accepted."""
        (temp_dir / ".gitignore").write_text("*.log\n")
        matcher = make_matcher(temp_dir)
        assert matcher.should_include(Path("debug.log"), is_dir=False) is False
        assert matcher.should_include(Path("About") / "About.xml", is_dir=False)

    def test_is_ignored_is_inverse(self, temp_dir):
        """Test that is_ignored mirrors should_include."""
        (temp_dir / ".gitignore").write_text("*.log\n")
        matcher = make_matcher(temp_dir)
        path = temp_dir / "debug.log"
        assert matcher.is_ignored(path, is_dir=False) is True
        assert matcher.should_include(path, is_dir=False) is False


def git_config_result(returncode=0, stdout=""):
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=""
    )


class TestFindGlobalIgnoreFile:
    """Tests for locating the global git excludes file."""

    @pytest.fixture
    def xdg_ignore(self, temp_dir, monkeypatch):
        """Create $XDG_CONFIG_HOME/git/ignore."""
        xdg = temp_dir.parent / "xdg"
        (xdg / "git").mkdir(parents=True)
        ignore_file = xdg / "git" / "ignore"
        ignore_file.write_text(".DS_Store\n")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
        return ignore_file

    @patch("rimpub.publish.ignore.subprocess.run")
    def test_configured_file(self, mock_run, temp_dir, xdg_ignore):
        """Test that core.excludesFile wins over the default location."""
        configured = temp_dir.parent / "excludes"
        configured.write_text("*.bak\n")
        mock_run.return_value = git_config_result(stdout=f"{configured}\n")

        assert find_global_ignore_file() == configured

    @patch("rimpub.publish.ignore.subprocess.run")
    def test_configured_file_missing(self, mock_run, temp_dir, xdg_ignore):
        """Test that a missing configured file disables the default location."""
        missing = temp_dir.parent / "missing-excludes"
        mock_run.return_value = git_config_result(stdout=f"{missing}\n")

        assert find_global_ignore_file() is None

    @patch("rimpub.publish.ignore.subprocess.run")
    def test_unset_uses_default_location(self, mock_run, xdg_ignore):
        """Test that the XDG location is used when the setting is absent."""
        mock_run.return_value = git_config_result(returncode=1)

        assert find_global_ignore_file() == xdg_ignore

    @patch("rimpub.publish.ignore.subprocess.run", side_effect=FileNotFoundError)
    def test_git_not_installed(self, mock_run, xdg_ignore):
        """Test that the XDG location is used when git cannot be run."""
        assert find_global_ignore_file() == xdg_ignore
