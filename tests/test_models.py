"""Tests for report data models."""

import json
from datetime import datetime

import pytest

from proc_report.errors import ErrorKind, ReportError
from proc_report.models import COLUMNS, ProcessRecord, Report, SourceKind
from tests.conftest import make_record


def make_report(**overrides) -> Report:
    fields = {
        "generated_at": datetime(2026, 10, 19, 9, 15, 30),
        "computer_name": "host-01",
        "generated_by": "operator",
        "process_count": 2,
        "unique_user_count": 1,
        "records": (make_record(pid=1), make_record(pid=2, owner="Unknown", path="N/A")),
        "platform": SourceKind.WINDOWS,
        "total_memory_bytes": 1024,
    }
    fields.update(overrides)
    return Report(**fields)


def test_record_to_dict_uses_export_columns():
    d = make_record().to_dict()
    assert tuple(d) == COLUMNS
    assert d["PID"] == 1234
    assert d["TotalMemoryMB"] == 522.0
    assert d["CPUPercentage"] == "N/A"


def test_record_is_frozen():
    record = make_record()
    with pytest.raises(AttributeError):
        record.pid = 999  # type: ignore[misc]


def test_record_uses_slots():
    assert not hasattr(make_record(), "__dict__")


def test_record_from_dict():
    record = make_record(cpu_percentage=1.5)
    assert ProcessRecord.from_dict(record.to_dict()) == record


def test_report_to_json_keeps_sentinels_literal():
    data = json.loads(make_report().to_json())
    assert data["GeneratedAt"] == "2026-10-19 09:15:30"
    assert data["Platform"] == "windows"
    assert data["Processes"][1]["Owner"] == "Unknown"
    assert data["Processes"][1]["Path"] == "N/A"
    assert data["Processes"][0]["CPUPercentage"] == "N/A"


def test_report_from_json():
    report = make_report()
    restored = Report.from_json(report.to_json())
    assert restored == report


def test_report_error_kind_and_fatal():
    err = ReportError(ErrorKind.PERMISSION_DENIED, "no privilege")
    assert err.kind is ErrorKind.PERMISSION_DENIED
    assert err.fatal
    assert str(err) == "permission_denied: no privilege"
    assert not ReportError(ErrorKind.PARSE_ERROR, "bad line").fatal
