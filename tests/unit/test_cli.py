"""Smoke tests for the command line interface."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from synapse_notes import __version__
from synapse_notes.cli import app
from synapse_notes.config import Settings

runner = CliRunner()


@pytest.fixture
def settings(temp_dir):
    """Patch the CLI to use temporary settings."""
    settings = Settings(
        _env_file=None,
        google_api_key="abcdefghijkl",
        embedding_dimension=8,
        storage_path=temp_dir / "uploads",
        database_path=temp_dir / "synapse.db",
    )
    with patch("synapse_notes.cli.get_settings", return_value=settings):
        yield settings


def test_version():
    """Test the version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_config_masks_key(settings):
    """Test that the config command masks the API key."""
    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    assert "abcdef..." in result.stdout
    assert "abcdefghijkl" not in result.stdout


def test_stats_on_empty_database(settings):
    """Test stats on a fresh database."""
    result = runner.invoke(app, ["stats"])

    assert result.exit_code == 0
    assert "Total Notes" in result.stdout


def test_similar_rejects_bad_threshold(settings):
    """Test that an out-of-range threshold exits with an error."""
    result = runner.invoke(app, ["similar", "some-note", "--threshold", "1.5"])

    assert result.exit_code == 1
    assert "Threshold must be between 0 and 1" in result.stdout


def test_link_unknown_notes(settings):
    """Test linking notes that do not exist."""
    result = runner.invoke(app, ["link", "a", "b"])

    assert result.exit_code == 1
    assert "Note not found" in result.stdout
