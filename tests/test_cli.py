"""Smoke tests for the CLI entrypoint."""

from click.testing import CliRunner

from zipwatch.cli import cli


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "zipwatch unpacks zip archives" in result.output
    for command in ("watch", "status", "config"):
        assert command in result.output
