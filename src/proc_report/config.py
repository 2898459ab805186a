"""Configuration system for proc-report."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

import tomlkit

VALID_FORMATS = ("csv", "json")


@dataclass
class ReportConfig:
    """Report output configuration."""

    output_dir: str = "."  # Directory report files are written to
    formats: list[str] = field(default_factory=lambda: ["csv", "json"])
    top_count: int = 10  # Rows in the console summary


@dataclass
class CollectionConfig:
    """Process collection configuration."""

    ps_timeout: float = 10.0  # Seconds allowed for the process listing
    lookup_timeout: float = 2.0  # Seconds allowed per CPU time follow-up query
    cpu_time_workers: int = 8  # Parallel CPU time lookups (1 = sequential)


@dataclass
class SystemConfig:
    """Logging configuration."""

    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    report: ReportConfig = field(default_factory=ReportConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "proc-report"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "proc-report"

    @property
    def log_path(self) -> Path:
        """JSON Lines log path."""
        return self.state_dir / "report.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("report", "collection", "system"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        Raises:
            ValueError: If the file cannot be parsed or holds invalid values.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            report=_load_report_config(data.get("report", {})),
            collection=_load_collection_config(data.get("collection", {})),
            system=_load_system_config(data.get("system", {})),
        )


def _load_report_config(data: dict) -> ReportConfig:
    """Load report config from TOML data, using dataclass defaults for missing fields."""
    defaults = ReportConfig()

    formats = [str(f).lower() for f in data.get("formats", defaults.formats)]
    invalid = [f for f in formats if f not in VALID_FORMATS]
    if invalid or not formats:
        raise ValueError(f"Invalid formats: {formats!r}. Must be a subset of {VALID_FORMATS}")

    top_count = data.get("top_count", defaults.top_count)
    if top_count < 1:
        raise ValueError(f"top_count must be >= 1, got {top_count}")

    return ReportConfig(
        output_dir=str(data.get("output_dir", defaults.output_dir)),
        formats=formats,
        top_count=top_count,
    )


def _load_collection_config(data: dict) -> CollectionConfig:
    """Load collection config from TOML data."""
    d = CollectionConfig()

    ps_timeout = data.get("ps_timeout", d.ps_timeout)
    lookup_timeout = data.get("lookup_timeout", d.lookup_timeout)
    cpu_time_workers = data.get("cpu_time_workers", d.cpu_time_workers)

    if ps_timeout <= 0:
        raise ValueError(f"ps_timeout must be > 0, got {ps_timeout}")
    if lookup_timeout <= 0:
        raise ValueError(f"lookup_timeout must be > 0, got {lookup_timeout}")
    if cpu_time_workers < 1:
        raise ValueError(f"cpu_time_workers must be >= 1, got {cpu_time_workers}")

    return CollectionConfig(
        ps_timeout=float(ps_timeout),
        lookup_timeout=float(lookup_timeout),
        cpu_time_workers=cpu_time_workers,
    )


def _load_system_config(data: dict) -> SystemConfig:
    """Load system config from TOML data."""
    d = SystemConfig()

    log_max_bytes = data.get("log_max_bytes", d.log_max_bytes)
    log_backup_count = data.get("log_backup_count", d.log_backup_count)

    if log_max_bytes < 1:
        raise ValueError(f"log_max_bytes must be >= 1, got {log_max_bytes}")
    if log_backup_count < 0:
        raise ValueError(f"log_backup_count must be >= 0, got {log_backup_count}")

    return SystemConfig(
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )
