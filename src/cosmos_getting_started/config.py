"""
Configuration management for the Cosmos DB getting-started walkthrough.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "~/.cosmos_getting_started.yaml"

# Environment variable -> dot-separated config key
ENV_OVERRIDES = {
    "COSMOS_ENDPOINT": "cosmos.endpoint",
    "COSMOS_KEY": "cosmos.key",
}


def deep_update(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in update_dict.items():
        if isinstance(value, dict) and key in base_dict and isinstance(base_dict[key], dict):
            deep_update(base_dict[key], value)
        else:
            base_dict[key] = value
    return base_dict


class ConfigManager:
    """Manages configuration for the walkthrough.

    Values come from built-in defaults, overlaid by the YAML file, overlaid
    by ``COSMOS_ENDPOINT`` / ``COSMOS_KEY`` from the environment.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = Path(config_path).expanduser()
        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file and environment."""
        config = self.get_default_config()

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    loaded = yaml.safe_load(f) or {}
                if isinstance(loaded, dict):
                    deep_update(config, loaded)
                else:
                    logger.warning(f"Ignoring {self.config_path}: expected a mapping at top level")
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")

        for env_var, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                self._set_in(config, key, value)

        return config

    def save_config(self, config: Dict[str, Any] = None) -> bool:
        """Save configuration to file."""
        if config is None:
            config = self.config

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
            self.config = config
            return True
        except OSError as e:
            logger.error(f"Failed to save config to {self.config_path}: {e}")
            return False

    def get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "cosmos": {
                "endpoint": "",
                "key": "",
                "application_name": "CosmosDBPythonQuickstart",
                "connection_timeout": None
            },
            "demo": {
                "database_id": "ToDoList",
                "container_id": "Items",
                "partition_key_path": "/partitionKey",
                "throughput_increment": 100,
                "pause": True
            },
            "logging": {
                "level": "INFO",
                "file": None,
                "max_size_mb": 100,
                "backup_count": 5
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by dot-separated key."""
        self._set_in(self.config, key, value)

    @staticmethod
    def _set_in(config: Dict[str, Any], key: str, value: Any) -> None:
        keys = key.split('.')
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def update(self, updates: Dict[str, Any]) -> None:
        """Update configuration with new values."""
        deep_update(self.config, updates)

    def masked(self) -> Dict[str, Any]:
        """Return a copy of the configuration safe to display."""
        shown = deep_update(self.get_default_config(), self.config)
        key = shown["cosmos"].get("key")
        if key:
            shown["cosmos"]["key"] = key[:5] + "... (masked)"
        return shown
