"""Shared test fixtures for proc-report."""

from datetime import datetime

import pytest

from proc_report.config import Config
from proc_report.models import (
    MemoryUnit,
    ProcessRecord,
    RawProcessEntry,
    RawSnapshot,
    SourceKind,
)

MB = 1024 * 1024
GB = 1024 * MB


def make_raw_entry(
    pid: int = 1234,
    name: str = "test_proc",
    owner: str | None = "john.doe",
    cpu_time: float | str | None = 12.5,
    cpu_percent: float | str | None = None,
    working_set: int | float | str | None = 512 * MB,
    paged_memory: int | float | str | None = 10 * MB,
    memory_unit: MemoryUnit = MemoryUnit.BYTES,
    handle_count: int | str | None = 200,
    thread_count: int | str | None = 8,
    start_time: datetime | float | str | None = datetime(2026, 10, 19, 8, 30, 0),
    path: str | None = "/usr/bin/test_proc",
) -> RawProcessEntry:
    """Create a RawProcessEntry for testing (Windows-style units by default)."""
    return RawProcessEntry(
        pid=pid,
        name=name,
        owner=owner,
        cpu_time=cpu_time,
        cpu_percent=cpu_percent,
        working_set=working_set,
        paged_memory=paged_memory,
        memory_unit=memory_unit,
        handle_count=handle_count,
        thread_count=thread_count,
        start_time=start_time,
        path=path,
    )


def make_record(
    pid: int = 1234,
    process_name: str = "test_proc",
    owner: str = "john.doe",
    cpu_time_seconds: float = 12.5,
    cpu_percentage: float | str = "N/A",
    working_set_mb: float = 512.0,
    paged_memory_mb: float = 10.0,
    memory_percentage: float = 3.19,
    handle_count: int = 200,
    thread_count: int = 8,
    start_time: str = "2026-10-19 08:30:00",
    path: str = "/usr/bin/test_proc",
) -> ProcessRecord:
    """Create a ProcessRecord for testing. Total memory is derived."""
    return ProcessRecord(
        pid=pid,
        process_name=process_name,
        owner=owner,
        cpu_time_seconds=cpu_time_seconds,
        cpu_percentage=cpu_percentage,
        working_set_mb=working_set_mb,
        paged_memory_mb=paged_memory_mb,
        total_memory_mb=round(working_set_mb + paged_memory_mb, 2),
        memory_percentage=memory_percentage,
        handle_count=handle_count,
        thread_count=thread_count,
        start_time=start_time,
        path=path,
    )


class FakeSource:
    """Process source returning a canned snapshot (or raising)."""

    def __init__(
        self,
        entries: list[RawProcessEntry] | None = None,
        total_memory_bytes: int = 16 * GB,
        kind: SourceKind = SourceKind.WINDOWS,
        skipped_lines: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.entries = entries if entries is not None else []
        self.total_memory_bytes = total_memory_bytes
        self.skipped_lines = skipped_lines
        self.error = error
        self.calls = 0

    def list_processes(self) -> RawSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return RawSnapshot(
            kind=self.kind,
            entries=list(self.entries),
            total_memory_bytes=self.total_memory_bytes,
            skipped_lines=self.skipped_lines,
        )


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed generation time."""
    return lambda: datetime(2026, 10, 19, 9, 15, 30)


@pytest.fixture
def config(tmp_path) -> Config:
    """Default config with report output under tmp_path."""
    cfg = Config()
    cfg.report.output_dir = str(tmp_path / "reports")
    cfg.collection.cpu_time_workers = 1
    return cfg
