"""Platform process sources.

Two variants sit behind one capability, ``list_processes()``:

- WindowsSource walks the OS process table through psutil, asking for the
  owner of every process.
- PosixSource parses a ``ps`` listing and follows up with one CPU time
  query per PID.

select_source() picks one of them once, from the runtime platform.
"""

import concurrent.futures
import os
import re
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Protocol

import psutil
import structlog

from proc_report.config import CollectionConfig
from proc_report.errors import ErrorKind, ReportError
from proc_report.models import MemoryUnit, RawProcessEntry, RawSnapshot, SourceKind

log = structlog.get_logger()

# One -o per column: procps treats everything after "=" as the header text
PS_LIST_COMMAND = [
    "ps",
    "-A",
    "-o", "pid=",
    "-o", "user=",
    "-o", "pcpu=",
    "-o", "rss=",
    "-o", "lstart=",
    "-o", "comm=",
]  # fmt: skip

# pid, user, %cpu, rss (KB), lstart ("Mon Oct 19 01:48:00 2026"), command.
# Numeric columns are captured loosely so a bad value degrades one field
# in the normalizer instead of dropping the whole line.
PS_LINE_RE = re.compile(
    r"^\s*(?P<pid>\d+)\s+"
    r"(?P<user>\S+)\s+"
    r"(?P<cpu>\S+)\s+"
    r"(?P<rss>\S+)\s+"
    r"(?P<start>[A-Za-z]{3}\s+[A-Za-z]{3}\s+\d{1,2}\s+\d{1,2}:\d{2}:\d{2}\s+\d{4})\s+"
    r"(?P<command>\S.*?)\s*$"
)

WINDOWS_ATTRS = [
    "pid",
    "name",
    "username",
    "cpu_times",
    "memory_info",
    "num_handles",
    "num_threads",
    "create_time",
    "exe",
]

# Stable lstart/time formatting regardless of the user's locale
_PS_ENV = {**os.environ, "LC_ALL": "C"}

_PERMISSION_MARKERS = ("permission denied", "not permitted")


class ProcessSource(Protocol):
    """Capability shared by every platform source."""

    kind: SourceKind

    def list_processes(self) -> RawSnapshot: ...


def read_total_memory() -> int:
    """Return total physical memory in bytes, or 0 if it cannot be read."""
    try:
        return int(psutil.virtual_memory().total)
    except (OSError, psutil.Error) as e:
        log.warning("total_memory_unavailable", error=str(e))
        return 0


class WindowsSource:
    """Collects processes from the Windows process table via psutil."""

    kind = SourceKind.WINDOWS

    def _entry_from_info(self, info: dict) -> RawProcessEntry:
        cpu_times = info.get("cpu_times")
        mem = info.get("memory_info")
        return RawProcessEntry(
            pid=info["pid"],
            name=info.get("name") or "",
            owner=info.get("username"),  # None when the owner lookup was refused
            cpu_time=(cpu_times.user + cpu_times.system) if cpu_times else None,
            cpu_percent=None,  # Single snapshot, no second sample to diff against
            working_set=mem.rss if mem else None,
            paged_memory=getattr(mem, "pagefile", None) if mem else None,
            memory_unit=MemoryUnit.BYTES,
            handle_count=info.get("num_handles"),
            thread_count=info.get("num_threads"),
            start_time=info.get("create_time"),
            path=info.get("exe"),
        )

    def list_processes(self) -> RawSnapshot:
        """Enumerate all processes.

        Per-process attribute failures (typically the owner of protected
        system processes) come back as None for that attribute only.

        Raises:
            ReportError: PERMISSION_DENIED if the enumeration itself is refused.
        """
        total_memory = read_total_memory()
        entries: list[RawProcessEntry] = []
        try:
            # process_iter drops processes that exit mid-walk and fills
            # refused attributes with ad_value
            for proc in psutil.process_iter(attrs=WINDOWS_ATTRS, ad_value=None):
                entries.append(self._entry_from_info(proc.info))
        except (psutil.AccessDenied, PermissionError) as e:
            raise ReportError(
                ErrorKind.PERMISSION_DENIED, f"Process enumeration refused: {e}"
            ) from e

        return RawSnapshot(kind=self.kind, entries=entries, total_memory_bytes=total_memory)


class PosixSource:
    """Collects processes by parsing ``ps`` output."""

    kind = SourceKind.POSIX

    def __init__(self, config: CollectionConfig | None = None) -> None:
        self.config = config or CollectionConfig()

    def _run_listing(self) -> str:
        """Run the process listing and return its stdout.

        Raises:
            ReportError: UNSUPPORTED_PLATFORM if ps is missing,
                PERMISSION_DENIED if it may not run or list processes,
                COLLECTION_FAILED on any other failure.
        """
        try:
            completed = subprocess.run(
                PS_LIST_COMMAND,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.config.ps_timeout,
                env=_PS_ENV,
            )
        except FileNotFoundError as e:
            raise ReportError(ErrorKind.UNSUPPORTED_PLATFORM, "ps command not found") from e
        except PermissionError as e:
            raise ReportError(ErrorKind.PERMISSION_DENIED, f"Cannot run ps: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise ReportError(
                ErrorKind.COLLECTION_FAILED,
                f"ps did not finish within {self.config.ps_timeout}s",
            ) from e

        if completed.returncode != 0:
            stderr = completed.stderr.strip()
            if any(marker in stderr.lower() for marker in _PERMISSION_MARKERS):
                raise ReportError(ErrorKind.PERMISSION_DENIED, f"ps refused: {stderr}")
            raise ReportError(
                ErrorKind.COLLECTION_FAILED,
                f"ps exited with status {completed.returncode}: {stderr}",
            )

        return completed.stdout

    def parse_line(self, line: str) -> RawProcessEntry:
        """Parse one listing line into a raw entry.

        Raises:
            ReportError: PARSE_ERROR if the line does not have every column.
        """
        match = PS_LINE_RE.match(line)
        if not match:
            raise ReportError(ErrorKind.PARSE_ERROR, f"Unrecognized ps line: {line!r}")

        command = match.group("command")
        if command.startswith("/"):
            path: str | None = command
            name = Path(command).name
        else:
            path = None
            name = command

        return RawProcessEntry(
            pid=int(match.group("pid")),
            name=name,
            owner=match.group("user"),
            cpu_percent=match.group("cpu"),
            working_set=match.group("rss"),
            paged_memory=None,  # Not exposed by ps, resident size is the total
            memory_unit=MemoryUnit.KILOBYTES,
            start_time=match.group("start"),
            path=path,
        )

    def parse_listing(self, output: str) -> tuple[list[RawProcessEntry], int]:
        """Parse a full listing, skipping lines that do not match.

        Returns:
            Parsed entries and the number of skipped lines.
        """
        entries: list[RawProcessEntry] = []
        skipped = 0
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                entries.append(self.parse_line(line))
            except ReportError as e:
                skipped += 1
                log.warning("ps_line_unparsed", kind=e.kind.value, line=line.strip())
        return entries, skipped

    def lookup_cpu_time(self, pid: int) -> str | None:
        """Query accumulated CPU time for one PID.

        Returns the raw ``ps`` TIME text, or None if the process is gone or
        the query failed. The process may legitimately exit between the
        listing and this call.
        """
        try:
            completed = subprocess.run(
                ["ps", "-o", "time=", "-p", str(pid)],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.config.lookup_timeout,
                env=_PS_ENV,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            log.debug("cpu_time_lookup_failed", pid=pid, error=str(e))
            return None

        value = completed.stdout.strip()
        if completed.returncode != 0 or not value:
            log.debug("cpu_time_lookup_failed", pid=pid, returncode=completed.returncode)
            return None
        return value

    def lookup_exe(self, pid: int) -> str | None:
        """Resolve the executable path via /proc where the platform has one."""
        try:
            return os.readlink(f"/proc/{pid}/exe")
        except OSError:
            return None

    def _follow_up(self, entry: RawProcessEntry) -> None:
        entry.cpu_time = self.lookup_cpu_time(entry.pid)
        if entry.path is None:
            entry.path = self.lookup_exe(entry.pid)

    def list_processes(self) -> RawSnapshot:
        """Enumerate all processes with one listing plus per-PID follow-ups.

        Raises:
            ReportError: From the listing itself. Follow-up failures only
                degrade the affected entry.
        """
        output = self._run_listing()
        total_memory = read_total_memory()
        entries, skipped = self.parse_listing(output)

        workers = self.config.cpu_time_workers
        if workers > 1 and len(entries) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
                # Each follow-up writes only to its own entry
                list(pool.map(self._follow_up, entries))
        else:
            for entry in entries:
                self._follow_up(entry)

        return RawSnapshot(
            kind=self.kind,
            entries=entries,
            total_memory_bytes=total_memory,
            skipped_lines=skipped,
        )


def select_source(
    config: CollectionConfig | None = None,
    platform: str | None = None,
) -> ProcessSource:
    """Pick the process source for the running platform.

    Raises:
        ReportError: UNSUPPORTED_PLATFORM if no source can run here.
    """
    platform = platform or sys.platform
    if platform.startswith(("win32", "cygwin")):
        return WindowsSource()
    if shutil.which("ps"):
        return PosixSource(config)
    raise ReportError(
        ErrorKind.UNSUPPORTED_PLATFORM,
        f"No process source available on {platform!r}: not Windows and ps is not on PATH",
    )
