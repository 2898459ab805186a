"""Formatting utilities for console summaries."""

from rich.table import Table

from proc_report.models import NOT_AVAILABLE, ProcessRecord, Report
from proc_report.summary import memory_by_owner, process_count_by_owner, top_by_memory


def format_cpu_time(seconds: float) -> str:
    """Format accumulated CPU time compactly.

    Returns:
        "12.34s" below a minute, "m:ss" below an hour, "h:mm:ss" above.
    """
    if seconds < 60:
        return f"{seconds:.2f}s"
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_percentage(value: float | str) -> str:
    """Format a percentage, passing the N/A sentinel through untouched."""
    if isinstance(value, str):
        return NOT_AVAILABLE
    return f"{value:.2f}%"


def format_memory_mb(value: float) -> str:
    """Format megabytes, switching to GB at 1024 MB."""
    if value >= 1024:
        return f"{value / 1024:.2f} GB"
    return f"{value:.2f} MB"


def top_processes_table(records: list[ProcessRecord], title: str) -> Table:
    """Table of processes with their memory and CPU figures."""
    table = Table(title=title, title_justify="left")
    table.add_column("PID", justify="right", style="dim")
    table.add_column("Name", style="cyan", max_width=28, no_wrap=True)
    table.add_column("Owner", max_width=20, no_wrap=True)
    table.add_column("Memory", justify="right")
    table.add_column("Mem %", justify="right")
    table.add_column("CPU %", justify="right")
    table.add_column("CPU Time", justify="right")
    for r in records:
        table.add_row(
            str(r.pid),
            r.process_name,
            r.owner,
            format_memory_mb(r.total_memory_mb),
            format_percentage(r.memory_percentage),
            format_percentage(r.cpu_percentage),
            format_cpu_time(r.cpu_time_seconds),
        )
    return table


def owners_table(records: list[ProcessRecord] | tuple[ProcessRecord, ...], limit: int) -> Table:
    """Table of memory and process count per owner."""
    counts = process_count_by_owner(records)
    table = Table(title="Memory by owner", title_justify="left")
    table.add_column("Owner")
    table.add_column("Processes", justify="right")
    table.add_column("Memory", justify="right")
    for owner, total_mb in list(memory_by_owner(records).items())[:limit]:
        table.add_row(owner, str(counts[owner]), format_memory_mb(total_mb))
    return table


def summary_header(report: Report) -> str:
    """One-line report header with Rich markup."""
    return (
        f"[bold]{report.computer_name}[/] "
        f"[dim]{report.generated_at:%Y-%m-%d %H:%M:%S} by {report.generated_by}[/] | "
        f"[cyan]{report.process_count}[/] processes, "
        f"[cyan]{report.unique_user_count}[/] users"
    )


def summary_renderables(report: Report, top: int) -> list:
    """Everything printed by the console summary, in order."""
    return [
        summary_header(report),
        top_processes_table(top_by_memory(report.records, top), f"Top {top} by memory"),
        owners_table(report.records, top),
    ]
