"""CLI commands for proc-report."""

from pathlib import Path

import click


def _load_config():
    """Load config, exiting with status 1 if the file is invalid."""
    from proc_report.config import Config
    from proc_report.logging import config_invalid

    try:
        return Config.load()
    except ValueError as e:
        config_invalid(str(e))
        raise SystemExit(1) from e


def _run_report(config):
    """Configure logging and produce one report, exiting 1 on fatal errors."""
    from proc_report.assembler import ReportAssembler
    from proc_report.errors import ReportError
    from proc_report.logging import (
        collecting,
        collection_failed,
        configure,
        lines_skipped,
        report_generated,
    )

    configure(config)
    assembler = ReportAssembler(config=config)
    try:
        collecting(assembler.source.kind.value)
        report = assembler.run()
    except ReportError as e:
        collection_failed(e)
        raise SystemExit(1) from e

    report_generated(report)
    if report.skipped_lines:
        lines_skipped(report.skipped_lines)
    return report


def _print_summary(report, top: int) -> None:
    from rich.console import Console

    from proc_report.formatting import summary_renderables

    console = Console(highlight=False)
    for renderable in summary_renderables(report, top):
        console.print(renderable)


@click.group()
@click.version_option(package_name="proc-report")
def main() -> None:
    """Snapshot running processes into CSV/JSON reports."""
    pass


@main.command()
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["csv", "json", "both"]),
    default=None,
    help="Output format (default from config)",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for report files (default from config)",
)
@click.option("--top", "-n", type=click.IntRange(min=1), default=None, help="Summary rows")
@click.option("--no-summary", is_flag=True, help="Skip the console summary")
def report(fmt: str | None, output_dir: Path | None, top: int | None, no_summary: bool) -> None:
    """Collect a process snapshot and write report files."""
    from proc_report.exporters import export_report
    from proc_report.logging import report_written

    config = _load_config()
    result = _run_report(config)

    if fmt == "both":
        formats = ["csv", "json"]
    elif fmt:
        formats = [fmt]
    else:
        formats = config.report.formats

    for path in export_report(result, output_dir or Path(config.report.output_dir), formats):
        report_written(path)

    if not no_summary:
        _print_summary(result, top or config.report.top_count)


@main.command()
@click.option("--top", "-n", type=click.IntRange(min=1), default=None, help="Summary rows")
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
def summary(top: int | None, as_json: bool) -> None:
    """Print a process snapshot without writing files."""
    config = _load_config()
    result = _run_report(config)

    if as_json:
        click.echo(result.to_json())
        return

    _print_summary(result, top or config.report.top_count)


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    cfg = _load_config()

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[report]")
    click.echo(f"  output_dir = {cfg.report.output_dir}")
    click.echo(f"  formats = {', '.join(cfg.report.formats)}")
    click.echo(f"  top_count = {cfg.report.top_count}")
    click.echo()
    click.echo("[collection]")
    click.echo(f"  ps_timeout = {cfg.collection.ps_timeout}")
    click.echo(f"  lookup_timeout = {cfg.collection.lookup_timeout}")
    click.echo(f"  cpu_time_workers = {cfg.collection.cpu_time_workers}")
    click.echo()
    click.echo("[system]")
    click.echo(f"  log_max_bytes = {cfg.system.log_max_bytes}")
    click.echo(f"  log_backup_count = {cfg.system.log_backup_count}")


@config.command("edit")
def config_edit() -> None:
    """Open config file in editor."""
    import os
    import subprocess

    from proc_report.logging import config_created

    cfg = _load_config()

    if not cfg.config_path.exists():
        cfg.save()
        config_created(str(cfg.config_path))

    editor = os.environ.get("EDITOR", "nano")
    subprocess.run([editor, str(cfg.config_path)])


@config.command("reset")
@click.confirmation_option(prompt="Reset config to defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from proc_report.config import Config

    cfg = Config()
    cfg.save()
    click.echo(f"Config reset to defaults at {cfg.config_path}")
