"""CSV and JSON report writers."""

import csv
from pathlib import Path

import structlog

from proc_report.models import COLUMNS, Report

log = structlog.get_logger()

FILE_STEM = "ProcessReport"


def report_filename(report: Report, extension: str) -> str:
    """File name for a report, stamped with its generation time."""
    stamp = report.generated_at.strftime("%Y%m%d_%H%M%S")
    return f"{FILE_STEM}_{stamp}.{extension}"


def write_csv(report: Report, path: Path) -> Path:
    """Write one row per process, sentinels written as their literals."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(COLUMNS))
        writer.writeheader()
        for record in report.records:
            writer.writerow(record.to_dict())
    log.info("report_written", format="csv", path=str(path), rows=report.process_count)
    return path


def write_json(report: Report, path: Path) -> Path:
    """Write report metadata and all processes as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.to_json(), encoding="utf-8")
    log.info("report_written", format="json", path=str(path), rows=report.process_count)
    return path


_WRITERS = {
    "csv": write_csv,
    "json": write_json,
}


def export_report(report: Report, output_dir: Path, formats: list[str]) -> list[Path]:
    """Write the report in each requested format.

    Raises:
        ValueError: If a format is not supported.
    """
    unknown = [fmt for fmt in formats if fmt not in _WRITERS]
    if unknown:
        raise ValueError(f"Unsupported format(s): {unknown}. Valid: {sorted(_WRITERS)}")

    written = []
    for fmt in formats:
        writer = _WRITERS[fmt]
        written.append(writer(report, output_dir / report_filename(report, fmt)))
    return written
