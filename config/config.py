"""
Configuration system

Loads settings from a YAML file, overridden by environment variables
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

from catalog_resources.models.resource import (
    FileStoreConfig,
    FolderPrivilegeMode,
    LayoutStrategy,
    StoreFolderConfig,
    _get_default_data_dir,
)

# Load the .env file
load_dotenv()

ENV_PREFIX = "CR_"


class StorageConfig(BaseModel):
    """Attachment storage configuration"""

    data_dir: Path = Field(default_factory=_get_default_data_dir, description="Root of the record directories")
    backup_dir: Optional[Path] = Field(default=None, description="Root of the removed-record backups")
    node_url: str = Field(default="http://localhost:8080/catalog/", description="Base URL of download links")
    folder_structure_type: LayoutStrategy = Field(
        default=LayoutStrategy.BUCKETED,
        description="Record directory layout (bucketed, template)"
    )
    folder_structure: str = Field(default="", description="Template of the template layout")
    folder_structure_fallback: Optional[str] = Field(
        default=None,
        description="Template used when a record has no resource identifier"
    )
    folder_privileges_strategy: FolderPrivilegeMode = Field(
        default=FolderPrivilegeMode.DEFAULT,
        description="Public/private tier folders (default) or flat record directories (none)"
    )

    @field_validator("data_dir", "backup_dir")
    @classmethod
    def expand_path(cls, v: Optional[Path]) -> Optional[Path]:
        return Path(v).expanduser() if v is not None else None

    def to_filestore_config(self) -> FileStoreConfig:
        """Store configuration built from these settings"""
        return FileStoreConfig(
            data_dir=self.data_dir,
            backup_dir=self.backup_dir,
            node_url=self.node_url,
            folders=StoreFolderConfig(
                folder_structure_type=self.folder_structure_type,
                folder_structure=self.folder_structure,
                folder_structure_fallback=self.folder_structure_fallback,
                folder_privileges_strategy=self.folder_privileges_strategy,
            ),
        )


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        description="Log format"
    )
    file: Optional[str] = Field(default="./logs/catalog_resources.log", description="Log file path")
    max_bytes: int = Field(default=10485760, description="Log file size before rotation (10MB)")
    backup_count: int = Field(default=5, description="Rotated log files kept")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class Config(BaseModel):
    """catalog-resources configuration"""

    environment: str = Field(default="development", description="Environment (development, production, test)")
    debug: bool = Field(default=False, description="Debug mode")

    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate the environment name"""
        valid_envs = ["development", "production", "test"]
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v


class ConfigManager:
    """
    Configuration manager

    Loads a YAML file and applies environment variable overrides
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager

        Args:
            config_path: YAML file path, searched for when omitted
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Config] = None

    @staticmethod
    def _find_config_file() -> str:
        """
        Find the configuration file

        Search order:
        1. ./config/settings.yaml
        2. ./settings.yaml
        3. ~/.config/catalog_resources/settings.yaml
        """
        possible_paths = [
            "./config/settings.yaml",
            "./settings.yaml",
            os.path.expanduser("~/.config/catalog_resources/settings.yaml"),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                return path

        return "./config/settings.yaml"

    def load_yaml(self) -> Dict[str, Any]:
        """
        Load the YAML file

        Returns:
            Configuration dict, empty when the file is missing
        """
        if not os.path.exists(self.config_path):
            return {}

        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _override_from_env(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply environment variable overrides

        Nested keys are separated by __, for example:
        CR_STORAGE__DATA_DIR=/srv/catalog/data
        CR_LOGGING__LEVEL=DEBUG

        Args:
            config_dict: Configuration loaded from YAML

        Returns:
            Overridden configuration
        """
        result = config_dict.copy()

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            key = env_key[len(ENV_PREFIX):].replace("__", ".").lower()
            parts = key.split(".")

            current = result
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = self._parse_env_value(env_value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """
        Parse an environment variable value

        Args:
            value: Raw value

        Returns:
            bool, int, float or the string itself
        """
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    def load(self) -> Config:
        """
        Load the configuration

        Returns:
            Cached configuration object
        """
        if self._config is not None:
            return self._config

        yaml_config = self.load_yaml()
        merged_config = self._override_from_env(yaml_config)

        self._config = Config(**merged_config)
        return self._config

    def reload(self) -> Config:
        """
        Reload the configuration

        Returns:
            Fresh configuration object
        """
        self._config = None
        return self.load()

    def save(self, path: Optional[str] = None) -> None:
        """
        Save the current configuration as YAML

        Args:
            path: Target file, defaults to the loaded file
        """
        save_path = path or self.config_path

        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        config_dict = self.load().model_dump(mode="json", exclude_none=True)

        with open(save_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config_dict, f, allow_unicode=True, default_flow_style=False)


# Global configuration manager
_config_manager: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get the global configuration

    Args:
        config_path: Optional YAML file path

    Returns:
        Configuration object
    """
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager(config_path)

    return _config_manager.load()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager"""
    global _config_manager

    if _config_manager is None:
        _config_manager = ConfigManager()

    return _config_manager


def reload_config() -> Config:
    """
    Reload the global configuration

    Returns:
        Configuration object
    """
    global _config_manager

    if _config_manager is not None:
        return _config_manager.reload()

    return get_config()
