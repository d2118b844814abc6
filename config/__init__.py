"""
Configuration module

Exports the configuration classes and helpers
"""

from .config import (
    Config,
    ConfigManager,
    StorageConfig,
    LoggingConfig,
    get_config,
    get_config_manager,
    reload_config,
)

__all__ = [
    "Config",
    "ConfigManager",
    "StorageConfig",
    "LoggingConfig",
    "get_config",
    "get_config_manager",
    "reload_config",
]
