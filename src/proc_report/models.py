"""Data models for process reports."""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# Sentinel literals. Exporters and downstream consumers match on these
# exactly, so they must never be replaced by a parsed number.
UNKNOWN = "Unknown"
NOT_AVAILABLE = "N/A"

START_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Export column names, in output order
COLUMNS = (
    "PID",
    "ProcessName",
    "Owner",
    "CPUTimeSeconds",
    "CPUPercentage",
    "WorkingSetMB",
    "PagedMemoryMB",
    "TotalMemoryMB",
    "MemoryPercentage",
    "HandleCount",
    "ThreadCount",
    "StartTime",
    "Path",
)


class MemoryUnit(Enum):
    """Unit that a source reports memory sizes in."""

    BYTES = 1
    KILOBYTES = 1024


class SourceKind(Enum):
    """Process source variants."""

    WINDOWS = "windows"
    POSIX = "posix"


@dataclass(slots=True)
class RawProcessEntry:
    """One process as reported by a platform source, before normalization.

    Values are whatever the platform handed back: numbers, text, or None
    when the attribute could not be read for this process.
    """

    pid: int
    name: str
    owner: str | None = None
    cpu_time: float | str | None = None
    cpu_percent: float | str | None = None
    working_set: int | float | str | None = None
    paged_memory: int | float | str | None = None
    memory_unit: MemoryUnit = MemoryUnit.BYTES
    handle_count: int | str | None = None
    thread_count: int | str | None = None
    start_time: datetime | float | str | None = None
    path: str | None = None


@dataclass(slots=True)
class RawSnapshot:
    """Everything one collection pass produced."""

    kind: SourceKind
    entries: list[RawProcessEntry]
    total_memory_bytes: int = 0  # 0 when the system total could not be read
    skipped_lines: int = 0


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Normalized process entry.

    This is the canonical record shape for every platform.
    """

    pid: int
    process_name: str
    owner: str
    cpu_time_seconds: float
    cpu_percentage: float | str  # float, or NOT_AVAILABLE
    working_set_mb: float
    paged_memory_mb: float
    total_memory_mb: float
    memory_percentage: float
    handle_count: int
    thread_count: int
    start_time: str  # START_TIME_FORMAT, or NOT_AVAILABLE
    path: str  # Absolute path, or NOT_AVAILABLE

    def to_dict(self) -> dict:
        """Return the export row keyed by column name."""
        return {
            "PID": self.pid,
            "ProcessName": self.process_name,
            "Owner": self.owner,
            "CPUTimeSeconds": self.cpu_time_seconds,
            "CPUPercentage": self.cpu_percentage,
            "WorkingSetMB": self.working_set_mb,
            "PagedMemoryMB": self.paged_memory_mb,
            "TotalMemoryMB": self.total_memory_mb,
            "MemoryPercentage": self.memory_percentage,
            "HandleCount": self.handle_count,
            "ThreadCount": self.thread_count,
            "StartTime": self.start_time,
            "Path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessRecord":
        """Build a record from an export row."""
        return cls(
            pid=data["PID"],
            process_name=data["ProcessName"],
            owner=data["Owner"],
            cpu_time_seconds=data["CPUTimeSeconds"],
            cpu_percentage=data["CPUPercentage"],
            working_set_mb=data["WorkingSetMB"],
            paged_memory_mb=data["PagedMemoryMB"],
            total_memory_mb=data["TotalMemoryMB"],
            memory_percentage=data["MemoryPercentage"],
            handle_count=data["HandleCount"],
            thread_count=data["ThreadCount"],
            start_time=data["StartTime"],
            path=data["Path"],
        )


@dataclass(frozen=True)
class Report:
    """One full process snapshot with run metadata."""

    generated_at: datetime
    computer_name: str
    generated_by: str
    process_count: int
    unique_user_count: int
    records: tuple[ProcessRecord, ...]
    platform: SourceKind = SourceKind.POSIX
    total_memory_bytes: int = 0
    skipped_lines: int = 0

    def to_dict(self) -> dict:
        """Serialize report metadata and rows."""
        return {
            "GeneratedAt": self.generated_at.strftime(START_TIME_FORMAT),
            "ComputerName": self.computer_name,
            "GeneratedBy": self.generated_by,
            "ProcessCount": self.process_count,
            "UniqueUserCount": self.unique_user_count,
            "Platform": self.platform.value,
            "TotalMemoryBytes": self.total_memory_bytes,
            "SkippedLines": self.skipped_lines,
            "Processes": [r.to_dict() for r in self.records],
        }

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, data: str) -> "Report":
        """Deserialize from JSON string."""
        d = json.loads(data)
        records = tuple(ProcessRecord.from_dict(r) for r in d["Processes"])
        return cls(
            generated_at=datetime.strptime(d["GeneratedAt"], START_TIME_FORMAT),
            computer_name=d["ComputerName"],
            generated_by=d["GeneratedBy"],
            process_count=d["ProcessCount"],
            unique_user_count=d["UniqueUserCount"],
            records=records,
            platform=SourceKind(d.get("Platform", SourceKind.POSIX.value)),
            total_memory_bytes=d.get("TotalMemoryBytes", 0),
            skipped_lines=d.get("SkippedLines", 0),
        )
