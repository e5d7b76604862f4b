# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Configuration loading and validation for the call graph engine."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".callgraph_engine.yml"


class ConfigurationError(Exception):
    """Raised when configuration supplied in code is invalid."""

    pass


class Config:
    """Configuration for the method analysis engine.

    Loads configuration from .callgraph_engine.yml with validation and defaults.
    A broken file never stops analysis: every problem falls back to defaults
    with a logged warning. Values passed programmatically through from_dict()
    are validated strictly and raise ConfigurationError instead.
    """

    DEFAULTS = {
        "cache_enabled": True,
        "cache_max_entries": 100,
        "cache_ttl_minutes": 30,
        "cache_max_access_count": 1000,
        "cache_cleanup_interval_minutes": 5,
        "max_ast_size_bytes": 1024 * 1024,
        "max_file_lines": 50000,
        "ruby_method_max_lines": 100,
        "javascript_function_max_lines": 50,
        # Exclusion rule frameworks to disable, e.g. ["rails"]
        "excluded_frameworks": [],
    }

    POSITIVE_INT_KEYS = frozenset(
        {
            "cache_max_entries",
            "cache_ttl_minutes",
            "cache_max_access_count",
            "cache_cleanup_interval_minutes",
            "max_ast_size_bytes",
            "max_file_lines",
            "ruby_method_max_lines",
            "javascript_function_max_lines",
        }
    )

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_path: Path to configuration file. If None, uses default location.
        """
        if config_path is None:
            config_path = Path.cwd() / CONFIG_FILE_NAME

        self.config_path = config_path
        self._config: Dict[str, Any] = {}
        self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from a dictionary, without reading any file.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.
        """
        config = cls.__new__(cls)
        config.config_path = None
        config._config = cls._defaults()
        for key, value in values.items():
            if key not in cls.DEFAULTS:
                raise ConfigurationError(f"Unknown configuration parameter '{key}'")
            if not config._validate_parameter(key, value):
                raise ConfigurationError(f"Invalid value for '{key}': {value!r}")
            config._config[key] = value
        return config

    @classmethod
    def _defaults(cls) -> Dict[str, Any]:
        # Copy list values so instances never share them
        return {k: list(v) if isinstance(v, list) else v for k, v in cls.DEFAULTS.items()}

    def _load_config(self) -> None:
        """Load and validate configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Configuration file not found at {self.config_path}, using defaults")
            self._config = self._defaults()
            return

        try:
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f)

            if loaded_config is None:
                logger.warning("Configuration file is empty, using defaults")
                self._config = self._defaults()
                return

            if not isinstance(loaded_config, dict):
                logger.warning(
                    f"Configuration file must contain a YAML dictionary, "
                    f"got {type(loaded_config)}, using defaults"
                )
                self._config = self._defaults()
                return

            self._config = self._defaults()
            self._validate_and_merge(loaded_config)

        except yaml.YAMLError as e:
            logger.warning(
                f"Error parsing configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()
        except OSError as e:
            logger.warning(
                f"Could not read configuration file {self.config_path}: {e}, using defaults"
            )
            self._config = self._defaults()

    def _validate_and_merge(self, loaded_config: Dict[str, Any]) -> None:
        """Validate loaded configuration and merge with defaults.

        Invalid parameters are logged as warnings and defaults are used.
        """
        for key, value in loaded_config.items():
            if key not in self.DEFAULTS:
                logger.warning(f"Unknown configuration parameter '{key}', ignoring")
                continue

            if not self._validate_parameter(key, value):
                logger.warning(
                    f"Invalid value for '{key}': {value}, using default {self.DEFAULTS[key]}"
                )
                continue

            self._config[key] = value

    def _validate_parameter(self, key: str, value: Any) -> bool:
        """Validate a configuration parameter.

        Returns:
            True if valid, False if invalid
        """
        expected_type = type(self.DEFAULTS[key])
        # bool is an int subclass; do not let True pass as a size
        if expected_type is int and isinstance(value, bool):
            return False
        if not isinstance(value, expected_type):
            return False

        if key in self.POSITIVE_INT_KEYS:
            return value > 0
        if key == "excluded_frameworks":
            return all(isinstance(item, str) for item in value)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._config)

    # Property accessors for all configuration values
    @property
    def cache_enabled(self) -> bool:
        """Whether TypeScript AST results are cached."""
        value = self._config["cache_enabled"]
        assert isinstance(value, bool)
        return value

    @property
    def cache_max_entries(self) -> int:
        """Maximum number of cached analysis results."""
        value = self._config["cache_max_entries"]
        assert isinstance(value, int)
        return value

    @property
    def cache_ttl_minutes(self) -> int:
        """Minutes before a cached result expires."""
        value = self._config["cache_ttl_minutes"]
        assert isinstance(value, int)
        return value

    @property
    def cache_max_access_count(self) -> int:
        """Number of hits after which a cached result is evicted."""
        value = self._config["cache_max_access_count"]
        assert isinstance(value, int)
        return value

    @property
    def cache_cleanup_interval_minutes(self) -> int:
        """Interval of the optional background eviction timer."""
        value = self._config["cache_cleanup_interval_minutes"]
        assert isinstance(value, int)
        return value

    @property
    def max_ast_size_bytes(self) -> int:
        """Files above this size use the regex fallback instead of the AST."""
        value = self._config["max_ast_size_bytes"]
        assert isinstance(value, int)
        return value

    @property
    def max_file_lines(self) -> int:
        value = self._config["max_file_lines"]
        assert isinstance(value, int)
        return value

    @property
    def ruby_method_max_lines(self) -> int:
        value = self._config["ruby_method_max_lines"]
        assert isinstance(value, int)
        return value

    @property
    def javascript_function_max_lines(self) -> int:
        value = self._config["javascript_function_max_lines"]
        assert isinstance(value, int)
        return value

    @property
    def excluded_frameworks(self) -> List[str]:
        """Exclusion rule frameworks to disable (e.g. ["rails"])."""
        value = self._config["excluded_frameworks"]
        assert isinstance(value, list)
        return value
