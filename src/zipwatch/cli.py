"""Command line interface for zipwatch."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from zipwatch.config import ConfigError, ConfigManager, ZipwatchConfig
from zipwatch.layout import WorkspaceLayout
from zipwatch.logs import configure_logging
from zipwatch.pipeline import ArchivePipeline, PipelineResult
from zipwatch.status import StatusRecorder
from zipwatch.watch import WatchService

console = Console()
log_console = Console(stderr=True)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)
    raise click.ClickException(message) from original


def _emit_message(message: Any, *, quiet: bool, error: bool = False) -> None:
    if quiet and not error:
        return
    console.print(message)


def _load_config(cli_overrides: dict[str, Any] | None, *, json_output: bool) -> ZipwatchConfig:
    try:
        manager = ConfigManager()
        manager.ensure_exists()
        return manager.load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)


def _emit_result(result: PipelineResult, *, json_output: bool, quiet: bool) -> None:
    """Render output for a processed archive."""
    if json_output:
        console.print_json(data=result.json_payload)
        return

    if not result.succeeded:
        failed = ", ".join(f"{stage.stage}: {stage.message}" for stage in result.failures)
        _emit_message(
            f"[red]{escape(result.archive.name)} failed ({escape(failed)}).[/red]",
            quiet=quiet,
            error=True,
        )
        if result.dead_letter is not None:
            _emit_message(
                f"[yellow]Moved {result.archive.name} to {result.dead_letter}.[/yellow]",
                quiet=quiet,
            )
        return

    parts = [f"folder={result.base_name}", f"timestamp={result.timestamp}"]
    if result.archived_folder is not None:
        parts.append(f"archived={result.archived_folder.name}")
    if result.commit is not None:
        parts.append(f"committed={result.commit.committed}")
    summary = escape(", ".join(parts))
    _emit_message(
        f"[green]Processed {escape(result.archive.name)}: {summary}.[/green]", quiet=quiet
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="zipwatch")
def cli() -> None:
    """zipwatch unpacks zip archives dropped into a folder and commits the result."""


@cli.command()
@click.argument(
    "root",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=str),
)
@click.option("--once", is_flag=True, help="Process archives already present and exit.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing each archive.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.option("--no-commit", is_flag=True, help="Skip the git commit step.")
@click.option(
    "--on-collision",
    type=click.Choice(["fail", "append_number"]),
    help="Policy when an archived folder name is already taken.",
)
@click.pass_context
def watch(
    ctx: click.Context,
    root: str,
    once: bool,
    json_output: bool,
    quiet: bool,
    no_commit: bool,
    on_collision: str | None,
) -> None:
    """Watch ROOT (default: current directory) for new .zip archives.

    Args:
        ctx: Click context for parameter source inspection.
        root: Directory to monitor; also the git working tree.
        once: When True, process existing archives once and exit.
        json_output: When True, emit JSON payloads instead of text.
        quiet: When True, suppress non-error output.
        no_commit: When True, skip committing processed archives.
        on_collision: Optional override for the archived-folder collision policy.

    Raises:
        click.ClickException: If option combinations are invalid.
    """
    if json_output and quiet:
        raise click.ClickException("--json cannot be combined with --quiet.")

    overrides: dict[str, Any] = {}
    if no_commit:
        overrides["git.enabled"] = False
    if on_collision:
        overrides["reconcile.on_collision"] = on_collision
    config = _load_config(overrides or None, json_output=json_output)

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default and not json_output

    layout = WorkspaceLayout.from_settings(Path(root), config.paths)
    try:
        layout.ensure()
    except OSError as exc:
        _handle_cli_error(
            f"Could not prepare {layout.root}: {exc}",
            code="layout_error",
            json_output=json_output,
            original=exc,
        )
    configure_logging(
        config.logging,
        layout.log_file,
        console=log_console,
        quiet=quiet_enabled,
        console_output=not json_output,
    )

    service = WatchService(ArchivePipeline.from_config(layout, config), settings=config.watch)

    if once:
        results = service.process_once()
        if json_output:
            console.print_json(data={"results": [result.json_payload for result in results]})
            return
        if not results:
            _emit_message(
                "[yellow]No zip archives found during the one-shot run.[/yellow]",
                quiet=quiet_enabled,
            )
            return
        for result in results:
            _emit_result(result, json_output=False, quiet=quiet_enabled)
        return

    _emit_message(
        f"[cyan]Watching {layout.root} for new .zip files. Press Ctrl+C to stop.[/cyan]",
        quiet=quiet_enabled or json_output,
    )
    try:
        service.watch(
            lambda result: _emit_result(result, json_output=json_output, quiet=quiet_enabled)
        )
    except KeyboardInterrupt:
        service.stop()
        _emit_message(
            "[yellow]Watch stopped by user request.[/yellow]",
            quiet=quiet_enabled or json_output,
        )
    except RuntimeError as exc:
        _handle_cli_error(
            str(exc), code="watch_runtime_error", json_output=json_output, original=exc
        )


@cli.command()
@click.argument(
    "root",
    required=False,
    default=".",
    type=click.Path(exists=True, file_okay=False, path_type=str),
)
@click.option("--json", "json_output", is_flag=True, help="Emit the status record as JSON.")
def status(root: str, json_output: bool) -> None:
    """Show the most recently processed archive recorded under ROOT.

    Args:
        root: Watched directory containing the status document.
        json_output: When True, emit JSON instead of a table.
    """
    config = _load_config(None, json_output=json_output)
    layout = WorkspaceLayout.from_settings(Path(root), config.paths)
    record = StatusRecorder(layout.status_file).read()

    if json_output:
        console.print_json(data={"status": record.model_dump() if record else None})
        return

    if record is None:
        console.print(f"[yellow]No status record found at {layout.status_file}.[/yellow]")
        return

    table = Table(title="Latest Workflow", show_header=False)
    table.add_row("Folder", record.folder)
    table.add_row("Timestamp", record.timestamp)
    workspace = layout.workflows / record.folder
    table.add_row("Workspace", str(workspace) if workspace.exists() else f"{workspace} (missing)")
    console.print(table)


@cli.group()
def config() -> None:
    """Manage zipwatch configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: ``section.field`` name of the setting to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.read_lines()
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    after = manager.read_lines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key.strip()}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
