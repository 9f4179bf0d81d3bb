"""Tests for template file generation."""

import toml

from rimpub.generate import (
    IGNORE_FILE_TEMPLATE,
    generate_config_file,
    generate_ignore_file,
)
from rimpub.publish.ignore import load_ignore_file


class TestGenerateConfigFile:
    """Tests for generate_config_file."""

    def test_creates_file(self, tmp_path):
        path = generate_config_file(tmp_path)

        assert path == tmp_path / "rimpub.toml"
        assert toml.loads(path.read_text()) == {"name": ""}

    def test_existing_file_untouched(self, tmp_path):
        """Test that an existing config file is never overwritten."""
        existing = tmp_path / "rimpub.toml"
        existing.write_text('name = "Mine"\n')

        assert generate_config_file(tmp_path) is None
        assert existing.read_text() == 'name = "Mine"\n'


class TestGenerateIgnoreFile:
    """Tests for generate_ignore_file."""

    def test_creates_file(self, tmp_path):
        path = generate_ignore_file(tmp_path)

        assert path == tmp_path / ".rimpub-ignore"
        assert path.read_text() == IGNORE_FILE_TEMPLATE

    def test_template_has_no_active_patterns(self, tmp_path):
        """Test that the generated file excludes nothing until edited."""
        path = generate_ignore_file(tmp_path)
        lines = load_ignore_file(path)
        assert all(not line or line.startswith("#") for line in lines)

    def test_existing_file_untouched(self, tmp_path):
        existing = tmp_path / ".rimpub-ignore"
        existing.write_text("Source/\n")

        assert generate_ignore_file(tmp_path) is None
        assert existing.read_text() == "Source/\n"
