"""Tests for record groupings."""

from proc_report.summary import (
    memory_by_owner,
    process_count_by_owner,
    top_by_cpu_time,
    top_by_memory,
)
from tests.conftest import make_record

RECORDS = [
    make_record(pid=1, owner="root", working_set_mb=100.0, paged_memory_mb=0.0, cpu_time_seconds=5),
    make_record(pid=2, owner="alice", working_set_mb=300.0, paged_memory_mb=0.5, cpu_time_seconds=1),
    make_record(pid=3, owner="alice", working_set_mb=50.25, paged_memory_mb=0.0, cpu_time_seconds=9),
    make_record(pid=4, owner="Unknown", working_set_mb=10.0, paged_memory_mb=0.0, cpu_time_seconds=0),
    make_record(pid=5, owner="Unknown", working_set_mb=5.0, paged_memory_mb=0.0, cpu_time_seconds=0),
]


def test_memory_by_owner():
    totals = memory_by_owner(RECORDS)
    assert totals == {"alice": 350.75, "root": 100.0, "Unknown": 15.0}
    assert list(totals) == ["alice", "root", "Unknown"]


def test_ownerless_processes_share_one_bucket():
    counts = process_count_by_owner(RECORDS)
    assert counts["Unknown"] == 2
    assert list(counts) == ["Unknown", "alice", "root"]


def test_top_by_memory():
    assert [r.pid for r in top_by_memory(RECORDS, 2)] == [2, 1]


def test_top_by_cpu_time():
    assert [r.pid for r in top_by_cpu_time(RECORDS, 3)] == [3, 1, 2]


def test_top_larger_than_records():
    assert len(top_by_memory(RECORDS, 50)) == len(RECORDS)
