# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for configuration loading and validation."""

import tempfile
from pathlib import Path

import pytest
import yaml

from callgraph_engine.config import Config, ConfigurationError


def test_default_config_when_file_missing():
    """Test that defaults are used when config file is missing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "nonexistent.yml"
        config = Config(config_path=config_path)

        assert config.cache_enabled is True
        assert config.cache_max_entries == 100
        assert config.cache_ttl_minutes == 30
        assert config.cache_max_access_count == 1000
        assert config.cache_cleanup_interval_minutes == 5
        assert config.max_ast_size_bytes == 1024 * 1024
        assert config.max_file_lines == 50000
        assert config.ruby_method_max_lines == 100
        assert config.javascript_function_max_lines == 50
        assert config.excluded_frameworks == []


def test_valid_config_loading():
    """Test loading a valid configuration file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "cache_enabled": False,
            "cache_ttl_minutes": 5,
            "ruby_method_max_lines": 200,
            "excluded_frameworks": ["rails"],
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.cache_enabled is False
        assert config.cache_ttl_minutes == 5
        assert config.ruby_method_max_lines == 200
        assert config.excluded_frameworks == ["rails"]
        # Defaults for unspecified values
        assert config.max_file_lines == 50000


def test_invalid_parameter_values():
    """Test that invalid parameter values are rejected and defaults used."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {
            "cache_max_entries": -5,  # Invalid: must be > 0
            "max_file_lines": 0,  # Invalid: must be > 0
            "cache_enabled": "yes",  # Invalid: must be bool
            "ruby_method_max_lines": True,  # Invalid: bool is not a size
            "excluded_frameworks": ["rails", 3],  # Invalid: names must be strings
        }

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.cache_max_entries == 100
        assert config.max_file_lines == 50000
        assert config.cache_enabled is True
        assert config.ruby_method_max_lines == 100
        assert config.excluded_frameworks == []


def test_unknown_parameters_ignored():
    """Test that unknown parameters are ignored."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_data = {"unknown_param": "value", "cache_max_entries": 10}

        with open(config_path, "w") as f:
            yaml.dump(config_data, f)

        config = Config(config_path=config_path)

        assert config.cache_max_entries == 10
        assert "unknown_param" not in config.to_dict()


def test_empty_config_file():
    """Test that an empty config file falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("")

        config = Config(config_path=config_path)

        assert config.to_dict() == Config.DEFAULTS


def test_malformed_yaml():
    """Test that malformed YAML falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("cache_max_entries: [unclosed\n")

        config = Config(config_path=config_path)

        assert config.cache_max_entries == 100


def test_non_dictionary_yaml():
    """Test that a YAML list instead of a mapping falls back to defaults."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yml"
        config_path.write_text("- cache_enabled\n- false\n")

        config = Config(config_path=config_path)

        assert config.cache_enabled is True


def test_default_lists_are_not_shared():
    """Test that instances never share the default list values."""
    with tempfile.TemporaryDirectory() as tmpdir:
        first = Config(config_path=Path(tmpdir) / "missing.yml")
        first.excluded_frameworks.append("rails")

        second = Config(config_path=Path(tmpdir) / "missing.yml")

        assert second.excluded_frameworks == []
        assert Config.DEFAULTS["excluded_frameworks"] == []


def test_from_dict_applies_values():
    """Test that from_dict overrides defaults without reading a file."""
    config = Config.from_dict({"cache_max_entries": 5, "excluded_frameworks": ["rails"]})

    assert config.config_path is None
    assert config.cache_max_entries == 5
    assert config.excluded_frameworks == ["rails"]
    assert config.cache_ttl_minutes == 30


def test_from_dict_rejects_unknown_keys():
    """Test that from_dict is strict about unknown keys."""
    with pytest.raises(ConfigurationError, match="Unknown configuration parameter"):
        Config.from_dict({"cache_size": 1})


def test_from_dict_rejects_invalid_values():
    """Test that from_dict is strict about invalid values."""
    with pytest.raises(ConfigurationError, match="Invalid value"):
        Config.from_dict({"cache_ttl_minutes": 0})

    with pytest.raises(ConfigurationError):
        Config.from_dict({"max_ast_size_bytes": "1MB"})
