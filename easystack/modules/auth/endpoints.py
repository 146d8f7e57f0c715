"""Endpoints of a deployed instance and the TLS policy for reaching them."""

import ssl
from dataclasses import dataclass
from typing import Optional, Union

ADMIN_REALM = "master"
SERVICE_REALM = "gaia-x"


@dataclass(frozen=True)
class TlsSettings:
    """
    TLS policy for calls to the deployed instance.

    Verification is on unless ``insecure_skip_verify`` is set explicitly;
    clusters with self-signed certificates need either that flag or
    ``ca_cert_path``.
    """

    insecure_skip_verify: bool = False
    ca_cert_path: Optional[str] = None

    def httpx_verify(self) -> Union[bool, ssl.SSLContext]:
        """Value for httpx's ``verify`` argument."""
        if self.insecure_skip_verify:
            return False
        if self.ca_cert_path:
            return ssl.create_default_context(cafile=self.ca_cert_path)
        return True


@dataclass(frozen=True)
class ServiceEndpoints:
    """URLs derived from the node's domain and instance name."""

    domain: str
    instance: str
    admin_realm: str = ADMIN_REALM
    service_realm: str = SERVICE_REALM

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}/{self.instance}"

    def token_url(self, realm: str) -> str:
        return f"{self.base_url}/key-server/realms/{realm}/protocol/openid-connect/token"

    @property
    def admin_token_url(self) -> str:
        return self.token_url(self.admin_realm)

    @property
    def service_token_url(self) -> str:
        return self.token_url(self.service_realm)

    @property
    def service_base_url(self) -> str:
        return f"{self.base_url}/fcservice"
