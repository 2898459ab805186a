"""Raw process entry to ProcessRecord normalization.

Both platform sources feed this module, so every unit conversion and
sentinel rule lives here and nowhere else. A bad value degrades only the
field it belongs to; the record and the rest of the batch still come out.
"""

import re
from datetime import datetime

import structlog

from proc_report.errors import ErrorKind, ReportError
from proc_report.models import (
    NOT_AVAILABLE,
    START_TIME_FORMAT,
    UNKNOWN,
    MemoryUnit,
    ProcessRecord,
    RawProcessEntry,
)

log = structlog.get_logger()

BYTES_PER_MB = 1024 * 1024

# Markers a source may use instead of a CPU time value
_NOT_APPLICABLE = {"", "-", "n/a", "na", "none", "null"}

# [[dd-]hh:]mm:ss[.ff] as printed by ps TIME columns
_CPU_TIME_RE = re.compile(
    r"^(?:(?:(?P<days>\d+)-)?(?P<hours>\d+):)?(?P<minutes>\d+):(?P<seconds>\d+(?:\.\d+)?)$"
)

# `ps -o lstart` output with LC_ALL=C, e.g. "Mon Oct 19 01:48:00 2026"
_LSTART_FORMAT = "%a %b %d %H:%M:%S %Y"


def _to_number(value: int | float | str, field: str) -> float:
    """Parse a numeric value, raising a PARSE_ERROR ReportError on failure."""
    if isinstance(value, bool):
        raise ReportError(ErrorKind.PARSE_ERROR, f"{field}: boolean is not a number")
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(value.strip())
        except (AttributeError, ValueError) as e:
            raise ReportError(ErrorKind.PARSE_ERROR, f"{field}: {value!r} is not numeric") from e
    if number != number or number in (float("inf"), float("-inf")):
        raise ReportError(ErrorKind.PARSE_ERROR, f"{field}: {value!r} is not finite")
    if number < 0:
        raise ReportError(ErrorKind.PARSE_ERROR, f"{field}: {value!r} is negative")
    return number


def to_megabytes(value: int | float | str | None, unit: MemoryUnit) -> float:
    """Convert a memory size in the given unit to megabytes (2 decimals).

    None means the platform does not expose the value and yields 0.

    Raises:
        ReportError: PARSE_ERROR if the value is not a non-negative number.
    """
    if value is None:
        return 0.0
    size_bytes = _to_number(value, "memory") * unit.value
    return round(size_bytes / BYTES_PER_MB, 2)


def parse_cpu_time(value: float | int | str | None) -> float:
    """Return accumulated CPU time in seconds.

    Accepts plain seconds or ps-style ``[[dd-]hh:]mm:ss[.ff]`` text. Missing
    values, "not applicable" markers and non-numeric text all give 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        text = value.strip()
        if text.lower() in _NOT_APPLICABLE:
            return 0.0
        match = _CPU_TIME_RE.match(text)
        if match:
            seconds = (
                int(match.group("days") or 0) * 86400
                + int(match.group("hours") or 0) * 3600
                + int(match.group("minutes")) * 60
                + float(match.group("seconds"))
            )
            return round(seconds, 2)

    try:
        return round(_to_number(value, "cpu_time"), 2)
    except ReportError:
        log.debug("cpu_time_not_numeric", value=str(value))
        return 0.0


def memory_percentage(process_bytes: float, total_system_bytes: int | None) -> float:
    """Share of total system memory used by a process, in percent (2 decimals).

    Returns 0 when the system total is unknown or not positive.
    """
    if not total_system_bytes or total_system_bytes <= 0:
        return 0.0
    return round(process_bytes / total_system_bytes * 100, 2)


def normalize_owner(owner: str | None) -> str:
    """Return the owner, or UNKNOWN when none was supplied."""
    if owner is None:
        return UNKNOWN
    owner = owner.strip()
    return owner if owner else UNKNOWN


def format_start_time(value: datetime | float | int | str | None) -> str:
    """Format a process start time, or return NOT_AVAILABLE.

    Accepts a datetime, an epoch timestamp, ps ``lstart`` text or text that
    is already in START_TIME_FORMAT.

    Raises:
        ReportError: PARSE_ERROR if text is present but unrecognized.
    """
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, datetime):
        return value.strftime(START_TIME_FORMAT)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value <= 0:
            return NOT_AVAILABLE
        try:
            return datetime.fromtimestamp(value).strftime(START_TIME_FORMAT)
        except (OverflowError, OSError, ValueError) as e:
            raise ReportError(ErrorKind.PARSE_ERROR, f"start_time: {value!r} out of range") from e

    text = " ".join(str(value).split())
    if not text or text == NOT_AVAILABLE:
        return NOT_AVAILABLE
    for fmt in (START_TIME_FORMAT, _LSTART_FORMAT):
        try:
            return datetime.strptime(text, fmt).strftime(START_TIME_FORMAT)
        except ValueError:
            continue
    raise ReportError(ErrorKind.PARSE_ERROR, f"start_time: {value!r} is not a timestamp")


def _normalize_path(path: str | None) -> str:
    if path is None:
        return NOT_AVAILABLE
    path = path.strip()
    return path if path else NOT_AVAILABLE


class ProcessRecordNormalizer:
    """Maps raw platform entries to ProcessRecords.

    The total system memory is fixed per instance: create one normalizer per
    snapshot so the value never outlives the pass that read it.
    """

    def __init__(self, total_memory_bytes: int = 0) -> None:
        self.total_memory_bytes = total_memory_bytes
        self.field_errors = 0

    def _field_failed(self, entry: RawProcessEntry, field: str, error: ReportError) -> None:
        self.field_errors += 1
        log.warning(
            "field_parse_failed",
            pid=entry.pid,
            field=field,
            kind=error.kind.value,
            error=str(error.args[0]),
        )

    def _memory_mb(self, entry: RawProcessEntry, field: str, value) -> float:
        try:
            return to_megabytes(value, entry.memory_unit)
        except ReportError as e:
            self._field_failed(entry, field, e)
            return 0.0

    def _count(self, entry: RawProcessEntry, field: str, value) -> int:
        if value is None:
            return 0
        try:
            return int(_to_number(value, field))
        except ReportError as e:
            self._field_failed(entry, field, e)
            return 0

    def _cpu_percentage(self, entry: RawProcessEntry) -> float | str:
        if entry.cpu_percent is None:
            return NOT_AVAILABLE
        try:
            return round(_to_number(entry.cpu_percent, "cpu_percent"), 2)
        except ReportError as e:
            self._field_failed(entry, "cpu_percent", e)
            return NOT_AVAILABLE

    def _start_time(self, entry: RawProcessEntry) -> str:
        try:
            return format_start_time(entry.start_time)
        except ReportError as e:
            self._field_failed(entry, "start_time", e)
            return NOT_AVAILABLE

    def normalize(self, entry: RawProcessEntry) -> ProcessRecord:
        """Normalize one raw entry. Never raises for bad field values."""
        working_set_mb = self._memory_mb(entry, "working_set", entry.working_set)
        paged_memory_mb = self._memory_mb(entry, "paged_memory", entry.paged_memory)

        total_memory_mb = round(working_set_mb + paged_memory_mb, 2)
        name = (entry.name or "").strip() or NOT_AVAILABLE

        return ProcessRecord(
            pid=entry.pid,
            process_name=name,
            owner=normalize_owner(entry.owner),
            cpu_time_seconds=parse_cpu_time(entry.cpu_time),
            cpu_percentage=self._cpu_percentage(entry),
            working_set_mb=working_set_mb,
            paged_memory_mb=paged_memory_mb,
            total_memory_mb=total_memory_mb,
            memory_percentage=memory_percentage(
                total_memory_mb * BYTES_PER_MB, self.total_memory_bytes
            ),
            handle_count=self._count(entry, "handle_count", entry.handle_count),
            thread_count=self._count(entry, "thread_count", entry.thread_count),
            start_time=self._start_time(entry),
            path=_normalize_path(entry.path),
        )

    def normalize_all(self, entries: list[RawProcessEntry]) -> list[ProcessRecord]:
        """Normalize a batch, one record out per entry in."""
        return [self.normalize(entry) for entry in entries]
