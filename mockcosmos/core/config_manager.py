"""
Configuration management for MockCosmos.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "MOCKCOSMOS_"


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Supported log output formats."""
    JSON = "json"
    TEXT = "text"


class QueryConfig(BaseModel):
    """Query execution configuration."""
    strict_mode: bool = Field(
        default=False,
        description="Raise per-document comparison errors instead of excluding the document"
    )
    default_page_size: int = Field(default=100, ge=1)
    max_page_size: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "QueryConfig":
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = Field(default=5, ge=0)
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'mockcosmos.query': 'DEBUG'}"
    )

    model_config = ConfigDict(use_enum_values=True)


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""
    enabled: bool = False
    namespace: str = Field(default="mockcosmos", min_length=1)


class MockCosmosConfig(BaseModel):
    """Main MockCosmos configuration schema."""

    version: str = Field(default="1.0.0", description="Configuration version")

    query: QueryConfig = Field(default_factory=QueryConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


def _env_bool(value: str) -> bool:
    return value.lower() in ['true', '1', 'yes']


class ConfigManager:
    """
    Manages MockCosmos configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (MOCKCOSMOS_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[MockCosmosConfig] = None
        self._config_file: Optional[Path] = None
        self._overrides: Optional[Dict[str, Any]] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> MockCosmosConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Nested dictionary of explicit overrides

        Returns:
            Validated MockCosmosConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading MockCosmos configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable override groups")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
        self._overrides = overrides

        try:
            self._config = MockCosmosConfig(**config_dict)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        logger.debug(f"Active configuration: {json.dumps(self._config.model_dump())}")
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Logging configuration
        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file
        if log_format := os.getenv(f"{ENV_PREFIX}LOG_FORMAT"):
            config.setdefault("logging", {})["format"] = log_format.lower()

        # Query configuration
        if strict_mode := os.getenv(f"{ENV_PREFIX}STRICT_MODE"):
            config.setdefault("query", {})["strict_mode"] = _env_bool(strict_mode)
        if default_page_size := os.getenv(f"{ENV_PREFIX}DEFAULT_PAGE_SIZE"):
            config.setdefault("query", {})["default_page_size"] = int(default_page_size)
        if max_page_size := os.getenv(f"{ENV_PREFIX}MAX_PAGE_SIZE"):
            config.setdefault("query", {})["max_page_size"] = int(max_page_size)

        # Metrics configuration
        if metrics_enabled := os.getenv(f"{ENV_PREFIX}METRICS_ENABLED"):
            config.setdefault("metrics", {})["enabled"] = _env_bool(metrics_enabled)

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get_config(self) -> MockCosmosConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> MockCosmosConfig:
        """
        Reload configuration from the same file, environment and overrides.

        Returns:
            Reloaded MockCosmosConfig instance
        """
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file, overrides=self._overrides)
