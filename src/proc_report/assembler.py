"""Report assembly: collect, normalize, aggregate."""

import getpass
import socket
import time
from collections.abc import Callable
from datetime import datetime

import structlog

from proc_report.config import Config
from proc_report.errors import ErrorKind, ReportError
from proc_report.models import UNKNOWN, ProcessRecord, Report
from proc_report.normalizer import ProcessRecordNormalizer
from proc_report.sources import ProcessSource, select_source

log = structlog.get_logger()


def current_user() -> str:
    """Return the invoking user's name, or UNKNOWN."""
    try:
        return getpass.getuser() or UNKNOWN
    except (KeyError, OSError):
        # No login name and no passwd entry for the uid
        return UNKNOWN


def unique_owner_count(records: list[ProcessRecord] | tuple[ProcessRecord, ...]) -> int:
    """Count distinct owners, not counting the UNKNOWN bucket."""
    return len({r.owner for r in records if r.owner != UNKNOWN})


def dedupe_by_pid(records: list[ProcessRecord]) -> list[ProcessRecord]:
    """Keep the first record for each PID, preserving collection order."""
    seen: set[int] = set()
    unique: list[ProcessRecord] = []
    for record in records:
        if record.pid in seen:
            log.warning("duplicate_pid_dropped", pid=record.pid, name=record.process_name)
            continue
        seen.add(record.pid)
        unique.append(record)
    return unique


class ReportAssembler:
    """Produces one Report per run() from live process state.

    Holds no state between runs: the source is chosen once, but the total
    system memory and every record are read fresh on each call.
    """

    def __init__(
        self,
        source: ProcessSource | None = None,
        config: Config | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or Config()
        self._source = source
        self._clock = clock

    @property
    def source(self) -> ProcessSource:
        """The platform source, selected on first use."""
        if self._source is None:
            self._source = select_source(self.config.collection)
        return self._source

    def run(self) -> Report:
        """Collect and normalize one snapshot.

        Raises:
            ReportError: PERMISSION_DENIED or UNSUPPORTED_PLATFORM from the
                source, COLLECTION_FAILED if no record could be produced.
        """
        start = time.monotonic()
        generated_at = self._clock()

        try:
            snapshot = self.source.list_processes()
        except ReportError as e:
            if e.kind is ErrorKind.PARSE_ERROR:
                raise ReportError(ErrorKind.COLLECTION_FAILED, str(e)) from e
            raise

        normalizer = ProcessRecordNormalizer(snapshot.total_memory_bytes)
        records = dedupe_by_pid(normalizer.normalize_all(snapshot.entries))

        if not records:
            raise ReportError(
                ErrorKind.COLLECTION_FAILED,
                f"No processes collected from {snapshot.kind.value} source "
                f"({snapshot.skipped_lines} lines skipped)",
            )

        report = Report(
            generated_at=generated_at,
            computer_name=socket.gethostname() or UNKNOWN,
            generated_by=current_user(),
            process_count=len(records),
            unique_user_count=unique_owner_count(records),
            records=tuple(records),
            platform=snapshot.kind,
            total_memory_bytes=snapshot.total_memory_bytes,
            skipped_lines=snapshot.skipped_lines,
        )

        log.info(
            "report_assembled",
            platform=snapshot.kind.value,
            processes=report.process_count,
            users=report.unique_user_count,
            skipped_lines=snapshot.skipped_lines,
            field_errors=normalizer.field_errors,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )
        return report
