from __future__ import annotations

from typer.testing import CliRunner

from robo_companion.cli.app import app


def test_cli_help_smoke() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    # Basic sanity checks that the command groups are registered.
    assert "programs" in result.stdout
    assert "events" in result.stdout


def test_cli_lists_programs() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["programs", "list"])
    assert result.exit_code == 0
    assert "V5RC" in result.stdout
    assert "RECFEvents" in result.stdout
    assert "VADC" not in result.stdout


def test_cli_routing_status_counts_cache_hits() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["programs", "routing-status", "--program", "VIQRC", "--repeat", "3"])
    assert result.exit_code == 0
    assert "family=RobotEvents" in result.stdout
    assert "hits=2 misses=1" in result.stdout


def test_cli_rejects_unknown_program() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["programs", "routing-status", "--program", "nope"])
    assert result.exit_code != 0
