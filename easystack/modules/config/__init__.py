"""
Config Module - Black Box Interface

Purpose: Settings of the API server process
Interface: get_config(), ConfigModule.get(), ConfigModule.get_config_schema()
Hidden: Environment variable names, parsing and validation

Node behaviour is configured per node, never here.
"""

import os
from typing import Any, Dict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Key contract: what every ConfigModule guarantees to hold

REQUIRED_CONFIG_KEYS = {
    "host": "Bind address of the API server",
    "port": "Port of the API server",
    "log_level": f"Log level ({', '.join(LOG_LEVELS)})",
}

OPTIONAL_CONFIG_KEYS = {
    "debug": {
        "description": "Run uvicorn with auto-reload",
        "default": False,
    },
    "flows_file": {
        "description": "YAML file listing nodes to create at startup",
        "default": None,
    },
}


class ConfigModule:
    """Server settings read once from the environment."""

    def __init__(self):
        self._config = self._load_from_env()
        self._validate()

    def _load_from_env(self) -> Dict[str, Any]:
        return {
            "host": os.getenv("API_HOST", "0.0.0.0"),
            "port": int(os.getenv("API_PORT", "1880")),
            "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
            "debug": os.getenv("DEBUG", "false").lower() == "true",
            "flows_file": os.getenv("EASYSTACK_FLOWS_FILE") or None,
        }

    def _validate(self) -> None:
        """
        Check the key contract and the value ranges.

        Raises:
            ValueError: A required key is missing or a value is out of range
        """
        missing = [key for key in REQUIRED_CONFIG_KEYS if self._config.get(key) is None]
        if missing:
            raise ValueError(f"Missing required configuration keys: {', '.join(missing)}")

        if self._config["log_level"] not in LOG_LEVELS:
            raise ValueError(
                f"Invalid LOG_LEVEL {self._config['log_level']!r}; expected one of {', '.join(LOG_LEVELS)}"
            )
        if not 0 < self._config["port"] < 65536:
            raise ValueError(f"Invalid API_PORT {self._config['port']}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        return dict(self._config)

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """The key contract: required keys with descriptions, optional keys with defaults."""
        return {
            "required": dict(REQUIRED_CONFIG_KEYS),
            "optional": dict(OPTIONAL_CONFIG_KEYS),
        }


_instance = None


def get_config() -> ConfigModule:
    """Process-wide ConfigModule, created on first use."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
