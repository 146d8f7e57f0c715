"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, List


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class APIConfig:
    """API configuration."""
    api_keys: List[str]

    @property
    def require_api_key(self) -> bool:
        """Node endpoints require X-API-Key only when keys are configured."""
        return bool(self.api_keys)


@dataclass
class ProvisioningConfig:
    """Provisioning script configuration."""
    scripts_root: Path
    interpreter: str
    timeout: Optional[float]

    def scripts_dir(self, subdir: str) -> Path:
        """Directory holding deploy.sh/uninstall.sh for one node type."""
        return self.scripts_root / subdir


@dataclass
class HttpClientConfig:
    """Outbound HTTP client configuration."""
    timeout: Optional[float]


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration."""
        ...

    def get_provisioning_config(self) -> ProvisioningConfig:
        """Get provisioning configuration."""
        ...

    def get_http_config(self) -> HttpClientConfig:
        """Get outbound HTTP configuration."""
        ...


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_api_config(self) -> APIConfig:
        """Get API configuration from environment variables."""
        api_keys = os.getenv("API_KEYS", "")
        return APIConfig(
            api_keys=[key.strip() for key in api_keys.split(",") if key.strip()]
        )

    def get_provisioning_config(self) -> ProvisioningConfig:
        """Get provisioning configuration from environment variables."""
        return ProvisioningConfig(
            scripts_root=Path(os.getenv("EASYSTACK_SCRIPTS_DIR", "scripts")).resolve(),
            interpreter=os.getenv("EASYSTACK_SCRIPT_INTERPRETER", "bash"),
            timeout=_optional_float(os.getenv("EASYSTACK_PROVISION_TIMEOUT")),
        )

    def get_http_config(self) -> HttpClientConfig:
        """Get outbound HTTP configuration from environment variables."""
        return HttpClientConfig(
            timeout=_optional_float(os.getenv("EASYSTACK_HTTP_TIMEOUT", "30")),
        )


class StaticConfigProvider:
    """Fixed configuration, mainly for tests and embedding."""

    def __init__(
        self,
        api: Optional[APIConfig] = None,
        provisioning: Optional[ProvisioningConfig] = None,
        http: Optional[HttpClientConfig] = None,
    ):
        env = EnvConfigProvider()
        self._api = api or APIConfig(api_keys=[])
        self._provisioning = provisioning or env.get_provisioning_config()
        self._http = http or HttpClientConfig(timeout=30.0)

    def get_api_config(self) -> APIConfig:
        return self._api

    def get_provisioning_config(self) -> ProvisioningConfig:
        return self._provisioning

    def get_http_config(self) -> HttpClientConfig:
        return self._http
