"""Tests for configuration loading."""

from pathlib import Path

import pytest

from yacht.core.config import (
    ConfigManager,
    _convert_env_value,
    find_default_config_file,
    get_config_file,
    load_config,
    load_env_overrides,
)
from yacht.core.errors import ConfigurationError
from yacht.core.types import YachtConfig


@pytest.fixture
def home(temp_dir, monkeypatch):
    """An empty home directory, so no user configuration is picked up."""
    home_dir = temp_dir / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


class TestDefaults:
    """Test the built-in defaults."""

    def test_defaults(self, home):
        config = ConfigManager().load_config()

        assert config.lane_id == "1"
        assert config.keyspace == "yacht"
        assert config.force is False
        assert config.statement_terminator == ";"
        assert config.diff_max_lines == 60
        assert config.cluster.nodes == 3
        assert config.scylla.builddir == home / "scylla" / "build" / "dev"
        assert config.scylla.srcdir == home / "scylla" / "tests"
        assert config.timeouts.server_startup == 300.0
        assert config.network.first_host == 2

    def test_validation(self):
        with pytest.raises(ConfigurationError):
            YachtConfig(cluster={"nodes": 0})
        with pytest.raises(ConfigurationError):
            YachtConfig(statement_terminator="")
        with pytest.raises(ConfigurationError):
            YachtConfig(keyspace="bad-name")


class TestConfigFile:
    """Test YAML configuration files."""

    def test_load_file(self, home, temp_dir):
        config_file = temp_dir / "yacht.yml"
        config_file.write_text(
            "vardir: var\nkeyspace: ks\nscylla:\n  builddir: ~/build\n  smp: 2\n"
        )

        config = ConfigManager().load_config(config_file=config_file)

        assert config.keyspace == "ks"
        assert config.vardir.is_absolute()
        assert config.scylla.builddir == home / "build"
        assert config.scylla.smp == 2
        assert config.scylla.executable == "scylla"

    def test_default_file_in_home(self, home):
        (home / ".yacht.yml").write_text("lane_id: 7\n")

        assert find_default_config_file() == home / ".yacht.yml"
        assert load_config().lane_id == "7"
        assert get_config_file() == home / ".yacht.yml"

    def test_missing_file(self, home, temp_dir):
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(config_file=temp_dir / "absent.yml")

    def test_unsupported_format(self, home, temp_dir):
        config_file = temp_dir / "yacht.json"
        config_file.write_text("{}")
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(config_file=config_file)

    def test_not_a_mapping(self, home, temp_dir):
        config_file = temp_dir / "yacht.yml"
        config_file.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(config_file=config_file)

    def test_invalid_value(self, home, temp_dir):
        config_file = temp_dir / "yacht.yml"
        config_file.write_text("scylla:\n  smp: many\n")
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(config_file=config_file)


class TestOverrides:
    """Test environment and command line overrides."""

    def test_env_overrides(self, home, monkeypatch):
        monkeypatch.setenv("YACHT_LANE_ID", "2")
        monkeypatch.setenv("YACHT_CLUSTER__NODES", "5")
        monkeypatch.setenv("YACHT_FORCE", "yes")

        config = ConfigManager().load_config()

        assert config.lane_id == "2"
        assert config.cluster.nodes == 5
        assert config.force is True

    def test_precedence(self, home, temp_dir, monkeypatch):
        """Test CLI beats environment beats file, and sections are merged."""
        config_file = temp_dir / "yacht.yml"
        config_file.write_text("keyspace: from_file\nuri: 10.0.0.1\nscylla:\n  smp: 4\n")
        monkeypatch.setenv("YACHT_KEYSPACE", "from_env")
        monkeypatch.setenv("YACHT_SCYLLA__EXECUTABLE", "scylla-dev")

        config = ConfigManager().load_config(
            config_file=config_file, keyspace="from_cli", force=None
        )

        assert config.keyspace == "from_cli"
        assert config.uri == "10.0.0.1"
        assert config.scylla.smp == 4
        assert config.scylla.executable == "scylla-dev"
        assert config.force is False

    def test_load_env_overrides(self, monkeypatch):
        monkeypatch.setenv("YACHT_FILTERS", "lwt, desc")
        monkeypatch.setenv("YACHT_NETWORK__PROBE", "off")

        overrides = load_env_overrides()

        assert overrides["filters"] == ["lwt", "desc"]
        assert overrides["network"] == {"probe": False}

    def test_env_values_follow_field_types(self, monkeypatch):
        """Test a single filter is a list and a comma inside a string field is kept."""
        monkeypatch.setenv("YACHT_FILTERS", "lwt")
        monkeypatch.setenv("YACHT_SCYLLA__READINESS_MARKER", "ready, set")
        monkeypatch.setenv("YACHT_LANE_ID", "3")
        monkeypatch.setenv("YACHT_TIMEOUTS__CONNECT", "2.5")

        overrides = load_env_overrides()

        assert overrides["filters"] == ["lwt"]
        assert overrides["scylla"] == {"readiness_marker": "ready, set"}
        assert overrides["lane_id"] == "3"
        assert overrides["timeouts"] == {"connect": 2.5}

    def test_single_filter_from_env(self, home, monkeypatch):
        monkeypatch.setenv("YACHT_FILTERS", "lwt")
        assert ConfigManager().load_config().filters == ["lwt"]

    @pytest.mark.parametrize(
        "value,expected",
        [("", None), ("3", 3), ("0.5", 0.5), ("true", True), ("no", False), ("text", "text")],
    )
    def test_convert_env_value(self, value, expected):
        assert _convert_env_value(value) == expected

    def test_paths_are_absolute(self, home, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        config = ConfigManager().load_config(vardir=Path("var"))
        assert config.vardir == temp_dir.resolve() / "var"
