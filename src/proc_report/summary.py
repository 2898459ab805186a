"""Groupings derived from report records, for summaries and dashboards."""

from collections import Counter, defaultdict
from collections.abc import Iterable

from proc_report.models import ProcessRecord


def memory_by_owner(records: Iterable[ProcessRecord]) -> dict[str, float]:
    """Total memory (MB) per owner, largest first.

    Ownerless processes are grouped under the UNKNOWN sentinel like any
    other owner.
    """
    totals: defaultdict[str, float] = defaultdict(float)
    for record in records:
        totals[record.owner] += record.total_memory_mb
    return {
        owner: round(total, 2)
        for owner, total in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    }


def process_count_by_owner(records: Iterable[ProcessRecord]) -> dict[str, int]:
    """Number of processes per owner, most first."""
    counts = Counter(record.owner for record in records)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def top_by_memory(records: Iterable[ProcessRecord], n: int = 10) -> list[ProcessRecord]:
    """The n processes using the most memory. Ties keep collection order."""
    return sorted(records, key=lambda r: r.total_memory_mb, reverse=True)[:n]


def top_by_cpu_time(records: Iterable[ProcessRecord], n: int = 10) -> list[ProcessRecord]:
    """The n processes with the most accumulated CPU time."""
    return sorted(records, key=lambda r: r.cpu_time_seconds, reverse=True)[:n]
