"""Tests for the Atlas command line interface."""

import pytest
from rich.console import Console
from typer.testing import CliRunner

from atlas.api import cli
from atlas.api.cli import app


@pytest.fixture
def runner(mock_settings, monkeypatch):
    """CLI runner against a temporary archive with a wide console."""
    monkeypatch.setattr(cli, "console", Console(width=200))
    return CliRunner()


@pytest.fixture
def physics(runner):
    """Generate the offline Physics graph."""
    result = runner.invoke(app, ["generate", "Physics", "--scope", "basic", "--offline"])
    assert result.exit_code == 0, result.output
    return result


class TestGenerate:
    """Tests for the generate command."""

    def test_offline_generate(self, physics):
        assert "Knowledge Graph: Physics" in physics.output
        assert "Concepts: 8" in physics.output
        assert "Course length: 4.0h" in physics.output

    def test_requires_api_key_without_offline(self, runner):
        result = runner.invoke(app, ["generate", "Physics"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_invalid_scope(self, runner):
        result = runner.invoke(app, ["generate", "Physics", "--scope", "huge", "--offline"])
        assert result.exit_code != 0


class TestReadCommands:
    """Tests for commands that read stored graphs."""

    def test_list_empty(self, runner):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No knowledge graphs yet" in result.output

    def test_list(self, runner, physics):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "Physics" in result.output
        assert "basic" in result.output

    def test_show(self, runner, physics):
        result = runner.invoke(app, ["show", "Physics"])
        assert result.exit_code == 0
        assert "Basic Terminology" in result.output
        assert "physics_concept_1" in result.output

    def test_show_unknown(self, runner):
        result = runner.invoke(app, ["show", "Astrology"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_search(self, runner, physics):
        result = runner.invoke(app, ["search", "principles"])
        assert result.exit_code == 0
        assert "Fundamental Principles" in result.output

    def test_search_no_match(self, runner, physics):
        result = runner.invoke(app, ["search", "quasar"])
        assert result.exit_code == 0
        assert "No concepts match" in result.output

    def test_deps(self, runner, physics):
        result = runner.invoke(app, ["deps", "physics_concept_3"])
        assert result.exit_code == 0
        assert "Basic Terminology" in result.output

    def test_deps_unknown(self, runner):
        result = runner.invoke(app, ["deps", "ghost"])
        assert result.exit_code == 1
        assert "Concept not found" in result.output


class TestAnalysisCommands:
    """Tests for paths and gaps."""

    def test_paths(self, runner, physics):
        result = runner.invoke(app, ["paths", "Physics", "--difficulty", "beginner", "--hours", "2"])
        assert result.exit_code == 0
        assert "Foundation-First Learning Path" in result.output
        assert "Introduction and Overview" in result.output

    def test_paths_invalid_difficulty(self, runner, physics):
        result = runner.invoke(app, ["paths", "Physics", "--difficulty", "expert"])
        assert result.exit_code == 1
        assert "Unknown target difficulty" in result.output

    def test_paths_nothing_fits(self, runner, physics):
        result = runner.invoke(app, ["paths", "Physics", "--hours", "0.25"])
        assert result.exit_code == 0
        assert "No concepts fit" in result.output

    def test_gaps(self, runner, physics):
        result = runner.invoke(app, ["gaps", "Physics"])
        assert result.exit_code == 0
        assert "Gap Analysis: Physics" in result.output
        assert "Course might be too short" in result.output

    def test_gaps_unknown(self, runner):
        result = runner.invoke(app, ["gaps", "Astrology"])
        assert result.exit_code == 1
