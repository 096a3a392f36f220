"""Command line interface for the tagsort project."""

from __future__ import annotations

import difflib
import time
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from tagsort.config import (
    ConfigError,
    ConfigManager,
    TagsortConfig,
    assign_path,
    flatten_for_env,
    resolve_with_precedence,
)
from tagsort.ingestion import (
    DirectoryListingError,
    DirectoryScanner,
    ItemSnapshot,
    sort_for_display,
)
from tagsort.rules import (
    Event,
    LogEntry,
    Rule,
    RuleMap,
    TagExpression,
    all_tags,
    display_path,
    find_tag,
    matching_tags,
)
from tagsort.runtime_logging import LOG_FILENAME, configure_logging
from tagsort.scheduler import ExecutionFailure, PassReport, RuleScheduler
from tagsort.state import ActivityLog, StateError, StateRepository

console = Console()

_ACTIONS = ("copy", "move", "trash")


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _load_config(cli_overrides: dict[str, Any] | None = None) -> TagsortConfig:
    """Load the effective configuration and route runtime logs to the state directory.

    Raises:
        ConfigError: If the configuration file or overrides are invalid.
    """

    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load(cli_overrides=cli_overrides)
    state_dir = Path(config.state.directory).expanduser()
    configure_logging(config.logging, state_dir / LOG_FILENAME)
    return config


def _repository(config: TagsortConfig) -> StateRepository:
    return StateRepository(config.state.directory)


def _error_code(exc: Exception) -> str:
    return "state_error" if isinstance(exc, StateError) else "config_error"


def _resolve_output_modes(
    ctx: click.Context,
    config: TagsortConfig,
    *,
    json_output: bool,
    quiet: bool,
    summary_mode: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured defaults for quiet and summary output.

    Raises:
        click.ClickException: If the requested modes conflict.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _normalise_directory(directory: str) -> Path:
    return Path(directory).expanduser().resolve()


def _build_selector(tags: tuple[str, ...], excludes: tuple[str, ...]) -> TagExpression:
    """Translate ``--tag``/``--exclude`` names into a tag expression.

    Raises:
        click.ClickException: If a name does not match a built-in tag.
    """

    terms = []
    for names, included in ((tags, True), (excludes, False)):
        for name in names:
            tag = find_tag(name)
            if tag is None:
                raise click.ClickException(
                    f"Unknown tag '{name}'. Run `tagsort tags` to list them."
                )
            terms.append((tag, included))
    if not terms:
        return TagExpression()
    return TagExpression.from_terms(terms)


def _build_event(
    action: str,
    target: Optional[str],
    overwrite: bool,
    tags: tuple[str, ...],
    excludes: tuple[str, ...],
) -> Event:
    """Create an event from CLI options.

    Raises:
        click.ClickException: If the options do not describe a valid event.
    """

    selector = _build_selector(tags, excludes)
    if action == "trash":
        if target is not None or overwrite:
            raise click.ClickException("--target and --overwrite do not apply to trash events.")
        return Event.trash(selector=selector)

    event = Event.copy(selector=selector) if action == "copy" else Event.move(selector=selector)
    if target is not None:
        try:
            event.set_target_path(target)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
    event.set_overwrite(overwrite)
    return event


def _select_rule(rule_map: RuleMap, directory: Path, index: int) -> Rule:
    rules = rule_map.get(directory, [])
    if not 1 <= index <= len(rules):
        raise click.ClickException(f"No rule #{index} for {directory}.")
    return rules[index - 1]


def _rules_table(rule_map: RuleMap) -> Table:
    table = Table(title="Rules", show_lines=False)
    table.add_column("Directory", overflow="fold")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Events", overflow="fold")
    for directory, rules in rule_map.items():
        for index, rule in enumerate(rules, start=1):
            events = "\n".join(event.describe() for event in rule.events) or "-"
            table.add_row(
                escape(display_path(directory)), str(index), escape(rule.title), escape(events)
            )
    return table


def _format_log_entry(entry: LogEntry) -> str:
    stamp = entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    if entry.target_dir is None:
        return escape(f"[{stamp}] {entry.event.name.upper()} {entry.source_path}")
    return escape(
        f"[{stamp}] {entry.event.name.upper()} {entry.source_path} -> {entry.resulting_path}"
    )


def _pass_payload(report: PassReport) -> dict[str, Any]:
    return {
        "started_at": report.started_at.isoformat(),
        "finished_at": report.finished_at.isoformat() if report.finished_at else None,
        "entries": [entry.model_dump(mode="json") for entry in report.entries],
        "skipped": report.skipped,
        "failures": [_failure_payload(failure) for failure in report.failures],
    }


def _failure_payload(failure: ExecutionFailure) -> dict[str, Any]:
    return {
        "directory": str(failure.directory),
        "stage": failure.stage,
        "path": str(failure.path) if failure.path is not None else None,
        "rule": failure.rule,
        "message": str(failure.error),
    }


def _emit_pass(report: PassReport, *, json_output: bool, quiet: bool, summary_only: bool) -> None:
    if json_output:
        console.print_json(data=_pass_payload(report))
        return
    for entry in report.entries:
        _emit_message(
            _format_log_entry(entry), mode="detail", quiet=quiet, summary_only=summary_only
        )
    for failure in report.failures:
        _emit_message(
            f"[red]{escape(failure.describe())}[/red]",
            mode="error",
            quiet=quiet,
            summary_only=summary_only,
        )
    _emit_message(
        _format_summary_line(
            "Pass",
            report.finished_at.astimezone().strftime("%H:%M:%S") if report.finished_at else "-",
            {
                "processed": report.processed,
                "skipped": report.skipped,
                "failed": len(report.failures),
            },
        ),
        mode="summary",
        quiet=quiet,
        summary_only=summary_only,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="tagsort")
def cli() -> None:
    """tagsort keeps folders tidy by applying tag-based rules in the background."""


@cli.command()
@click.option("--once", is_flag=True, help="Run a single pass over every rule and exit.")
@click.option("--interval", type=float, help="Override the pause between passes in seconds.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing each pass.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def run(
    ctx: click.Context,
    once: bool,
    interval: float | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Apply the stored rules, once or continuously until interrupted.

    Args:
        ctx: Click context used for parameter source inspection.
        once: When True, run one synchronous pass and exit.
        interval: Optional override of the configured pause between passes.
        json_output: If True, emit one JSON document per pass.
        summary_mode: When True, limit output to summary lines and errors.
        quiet: When True, suppress non-error CLI output entirely.

    Raises:
        click.ClickException: If configuration or state cannot be loaded.
    """

    if interval is not None and interval <= 0:
        raise click.ClickException("--interval must be greater than zero.")

    try:
        overrides = {"scheduler.interval_seconds": interval} if interval is not None else None
        config = _load_config(overrides)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, json_output=json_output, quiet=quiet, summary_mode=summary_mode
        )
        repository = _repository(config)
        rule_map = repository.load_rules()
        log = repository.load_log()
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code=_error_code(exc), json_output=json_output, original=exc)
        return

    if not rule_map:
        _emit_message(
            "[yellow]No rules configured. Add one with `tagsort rules add`.[/yellow]",
            mode="warning",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        return

    def _on_pass(report: PassReport) -> None:
        try:
            repository.save_log(log)
        except StateError as exc:
            _emit_message(
                f"[red]Unable to save the activity log: {escape(str(exc))}[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if once or report.entries or report.failures:
            _emit_pass(
                report, json_output=json_output, quiet=quiet_enabled, summary_only=summary_only
            )

    scheduler = RuleScheduler(
        log,
        interval_seconds=config.scheduler.interval_seconds,
        on_pass=_on_pass,
        wake_on_change=config.scheduler.wake_on_change,
        scanner=DirectoryScanner(include_hidden=config.scanning.include_hidden),
    )

    if once:
        _on_pass(scheduler.run_pass(rule_map))
        return

    if not json_output:
        watched = escape(", ".join(display_path(directory) for directory in rule_map))
        _emit_message(
            f"[cyan]Applying rules to {watched} every {config.scheduler.interval_seconds:g}s. "
            "Press Ctrl+C to stop.[/cyan]",
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    scheduler.restart(rule_map)
    try:
        while scheduler.is_running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        scheduler.stop(wait=True, timeout=30)
        if not json_output:
            _emit_message(
                "[yellow]Stopped by user request.[/yellow]",
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )


@cli.group()
def rules() -> None:
    """Create, inspect and delete rules."""


@rules.command("list")
@click.argument("directory", required=False, type=click.Path(path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit the rules as JSON.")
def rules_list(directory: str | None, json_output: bool) -> None:
    """Show the stored rules, optionally only those bound to DIRECTORY."""

    try:
        config = _load_config()
        rule_map = _repository(config).load_rules()
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code=_error_code(exc), json_output=json_output, original=exc)
        return

    if directory is not None:
        key = _normalise_directory(directory)
        rule_map = {key: rule_map[key]} if key in rule_map else {}

    if json_output:
        console.print_json(
            data={
                "rules": {
                    str(path): [rule.model_dump(mode="json") for rule in rule_list]
                    for path, rule_list in rule_map.items()
                }
            }
        )
        return

    if not rule_map:
        console.print("[yellow]No rules configured.[/yellow]")
        return
    console.print(_rules_table(rule_map))


_event_options = [
    click.option(
        "--action",
        type=click.Choice(_ACTIONS),
        required=True,
        help="What to do with matching items.",
    ),
    click.option("--target", type=str, help="Destination folder for copy and move (default ~)."),
    click.option("--tag", "tags", multiple=True, help="Tag an item must have (repeatable)."),
    click.option(
        "--exclude", "excludes", multiple=True, help="Tag an item must not have (repeatable)."
    ),
    click.option("--overwrite", is_flag=True, help="Replace items already at the target."),
]


def _with_event_options(func: Any) -> Any:
    for option in reversed(_event_options):
        func = option(func)
    return func


@rules.command("add")
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--title", required=True, help="Human readable name of the rule.")
@_with_event_options
def rules_add(
    directory: str,
    title: str,
    action: str,
    target: str | None,
    tags: tuple[str, ...],
    excludes: tuple[str, ...],
    overwrite: bool,
) -> None:
    """Add a rule with a single event to DIRECTORY."""

    event = _build_event(action, target, overwrite, tags, excludes)
    try:
        config = _load_config()
        repository = _repository(config)
        rule_map = repository.load_rules()
        key = _normalise_directory(directory)
        rule_map.setdefault(key, []).append(Rule(title=title, events=[event]))
        repository.save_rules(rule_map)
    except (ConfigError, StateError) as exc:
        raise click.ClickException(str(exc)) from exc

    if not tags and not excludes:
        console.print(
            "[yellow]No tags given; the rule uses the placeholder tag and will not match "
            "anything yet.[/yellow]"
        )
    console.print(
        f"[green]Added rule #{len(rule_map[key])} for {escape(display_path(key))}: "
        f"{escape(event.describe())}.[/green]"
    )


@rules.command("extend")
@click.argument("directory", type=click.Path(path_type=str))
@click.argument("index", type=int)
@_with_event_options
def rules_extend(
    directory: str,
    index: int,
    action: str,
    target: str | None,
    tags: tuple[str, ...],
    excludes: tuple[str, ...],
    overwrite: bool,
) -> None:
    """Append an event to rule INDEX (1-based) of DIRECTORY."""

    event = _build_event(action, target, overwrite, tags, excludes)
    try:
        config = _load_config()
        repository = _repository(config)
        rule_map = repository.load_rules()
        rule = _select_rule(rule_map, _normalise_directory(directory), index)
        rule.events.append(event)
        repository.save_rules(rule_map)
    except (ConfigError, StateError) as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        f"[green]Added event to '{escape(rule.title)}': {escape(event.describe())}.[/green]"
    )


@rules.command("remove")
@click.argument("directory", type=click.Path(path_type=str))
@click.argument("index", type=int)
def rules_remove(directory: str, index: int) -> None:
    """Delete rule INDEX (1-based) of DIRECTORY."""

    try:
        config = _load_config()
        repository = _repository(config)
        rule_map = repository.load_rules()
        key = _normalise_directory(directory)
        rule = _select_rule(rule_map, key, index)
        del rule_map[key][index - 1]
        if not rule_map[key]:
            del rule_map[key]
        repository.save_rules(rule_map)
    except (ConfigError, StateError) as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        f"[green]Removed rule '{escape(rule.title)}' from {escape(display_path(key))}.[/green]"
    )


@cli.command()
def tags() -> None:
    """List the built-in tags available to rules."""

    table = Table(title="Tags")
    table.add_column("Tag")
    table.add_column("Matches")
    table.add_column("Description", overflow="fold")
    for tag in all_tags():
        table.add_row(tag.name, tag.basis.describe(), tag.description)
    console.print(table)


@cli.command()
@click.argument("path", type=click.Path(exists=True, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit matching tags as JSON.")
def inspect(path: str, json_output: bool) -> None:
    """Show which built-in tags hold for PATH, or for each item of a folder PATH."""

    target = Path(path).expanduser()
    try:
        if target.is_dir() and not target.is_symlink():
            items = sort_for_display(DirectoryScanner().scan(target))
        else:
            items = [ItemSnapshot.from_path(target)]
    except (DirectoryListingError, OSError, ValueError) as exc:
        _handle_cli_error(str(exc), code="inspect_error", json_output=json_output, original=exc)
        return

    rows = [(item, matching_tags(item)) for item in items]
    if json_output:
        console.print_json(
            data={
                "items": [
                    {
                        "path": str(item.path),
                        "type": item.entry_type.value,
                        "tags": [tag.name for tag in tag_list],
                    }
                    for item, tag_list in rows
                ]
            }
        )
        return

    if not rows:
        console.print("[yellow]The folder is empty.[/yellow]")
        return
    table = Table(title=escape(display_path(target.resolve())))
    table.add_column("Item", overflow="fold")
    table.add_column("Tags", overflow="fold")
    for item, tag_list in rows:
        table.add_row(
            escape(item.name or str(item.path)), escape(", ".join(tag.name for tag in tag_list))
        )
    console.print(table)


@cli.command()
@click.option("--limit", type=int, help="Maximum number of entries to show.")
@click.option("--json", "json_output", is_flag=True, help="Emit the entries as JSON.")
def log(limit: int | None, json_output: bool) -> None:
    """Show the activity log, newest entries first."""

    try:
        config = _load_config()
        activity: ActivityLog = _repository(config).load_log()
    except (ConfigError, StateError) as exc:
        _handle_cli_error(str(exc), code=_error_code(exc), json_output=json_output, original=exc)
        return

    if limit is not None and limit <= 0:
        raise click.ClickException("--limit must be greater than zero.")
    entries = activity.recent(limit if limit is not None else config.cli.log_history_limit)

    if json_output:
        console.print_json(data={"entries": [entry.model_dump(mode="json") for entry in entries]})
        return
    if not entries:
        console.print("[yellow]The activity log is empty.[/yellow]")
        return
    for entry in entries:
        console.print(_format_log_entry(entry), highlight=False)


@cli.group()
def config() -> None:
    """Manage tagsort configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env", "as_env", is_flag=True, help="Print the configuration as TAGSORT__ variables."
)
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.
        as_env: If True, print `KEY=value` lines suitable for the environment.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in sorted(flatten_for_env(loaded).items()):
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'scheduler.interval_seconds'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        assign_path(file_data, segments, parsed_value, source_name="config")
        resolve_with_precedence(defaults=TagsortConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # the timestamp header always changes, so compare the body only
    diff = list(
        difflib.unified_diff(
            [line for line in before if not line.startswith("# Last updated")],
            [line for line in after if not line.startswith("# Last updated")],
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    if diff:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=TagsortConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
