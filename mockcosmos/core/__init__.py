"""Core module initialization."""

from .config_manager import (
    ConfigManager,
    MockCosmosConfig,
    QueryConfig,
    LoggingConfig,
    MetricsConfig,
    LogLevel,
    LogFormat,
)
from .logging_config import (
    setup_logging,
    get_logger,
    set_correlation_id,
    clear_correlation_id,
    new_correlation_id,
)

__all__ = [
    "ConfigManager",
    "MockCosmosConfig",
    "QueryConfig",
    "LoggingConfig",
    "MetricsConfig",
    "LogLevel",
    "LogFormat",
    "setup_logging",
    "get_logger",
    "set_correlation_id",
    "clear_correlation_id",
    "new_correlation_id",
]
