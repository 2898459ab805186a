"""Tests for configuration system."""

import pytest

from proc_report.config import CollectionConfig, Config, ReportConfig, SystemConfig


def test_report_config_defaults():
    """ReportConfig has correct defaults."""
    config = ReportConfig()
    assert config.output_dir == "."
    assert config.formats == ["csv", "json"]
    assert config.top_count == 10


def test_collection_config_defaults():
    """CollectionConfig has correct defaults."""
    config = CollectionConfig()
    assert config.ps_timeout == 10.0
    assert config.lookup_timeout == 2.0
    assert config.cpu_time_workers == 8


def test_system_config_defaults():
    """SystemConfig has correct defaults."""
    config = SystemConfig()
    assert config.log_max_bytes == 5 * 1024 * 1024
    assert config.log_backup_count == 3


def test_config_paths():
    """Config provides correct data paths."""
    config = Config()
    assert "proc-report" in str(config.config_dir)
    assert config.config_path.name == "config.toml"
    assert config.log_path.name == "report.log"
    assert config.log_path.parent == config.state_dir


def test_config_save_creates_file(tmp_path):
    """Config.save() creates config file."""
    config_path = tmp_path / "nested" / "config.toml"
    Config().save(config_path)
    assert config_path.exists()


def test_config_roundtrip(tmp_path):
    """Saved values load back unchanged."""
    config_path = tmp_path / "config.toml"
    config = Config()
    config.report.formats = ["json"]
    config.report.top_count = 25
    config.collection.cpu_time_workers = 2
    config.system.log_backup_count = 7
    config.save(config_path)

    loaded = Config.load(config_path)
    assert loaded.report.formats == ["json"]
    assert loaded.report.top_count == 25
    assert loaded.collection.cpu_time_workers == 2
    assert loaded.collection.ps_timeout == 10.0
    assert loaded.system.log_backup_count == 7


def test_config_load_missing_file_returns_defaults(tmp_path):
    """Config.load() returns defaults if file doesn't exist."""
    config = Config.load(tmp_path / "nonexistent.toml")
    assert config == Config()


def test_config_load_partial_file(tmp_path):
    """Missing keys fall back to dataclass defaults."""
    config_path = tmp_path / "config.toml"
    config_path.write_text('[report]\noutput_dir = "/var/reports"\n')

    config = Config.load(config_path)
    assert config.report.output_dir == "/var/reports"
    assert config.report.formats == ["csv", "json"]
    assert config.collection == CollectionConfig()


def test_config_load_invalid_toml(tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text("[report\nformats = ")
    with pytest.raises(ValueError, match="Failed to parse"):
        Config.load(config_path)


@pytest.mark.parametrize(
    "content",
    [
        '[report]\nformats = ["csv", "xml"]\n',
        "[report]\nformats = []\n",
        "[report]\ntop_count = 0\n",
        "[collection]\nps_timeout = 0\n",
        "[collection]\nlookup_timeout = -1.0\n",
        "[collection]\ncpu_time_workers = 0\n",
        "[system]\nlog_max_bytes = 0\n",
        "[system]\nlog_backup_count = -1\n",
    ],
)
def test_config_load_rejects_invalid_values(tmp_path, content):
    config_path = tmp_path / "config.toml"
    config_path.write_text(content)
    with pytest.raises(ValueError):
        Config.load(config_path)


def test_config_load_allows_zero_log_backups(tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text("[system]\nlog_backup_count = 0\n")
    assert Config.load(config_path).system.log_backup_count == 0
