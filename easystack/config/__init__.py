"""Typed configuration for EasyStack."""

from .provider import (
    APIConfig,
    ConfigProvider,
    EnvConfigProvider,
    HttpClientConfig,
    ProvisioningConfig,
    StaticConfigProvider,
)

__all__ = [
    "APIConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "HttpClientConfig",
    "ProvisioningConfig",
    "StaticConfigProvider",
]
