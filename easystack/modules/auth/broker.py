"""
Token broker for a deployed instance.

Exchanges credentials for bearer tokens with the OAuth2 password grant:
the administrator against the admin realm, service users against the
service realm using the client secret from the node's session.
"""

import json
import logging
from typing import Dict, Optional

import httpx

from ...errors import AuthError, MissingSecretError
from ..session import SessionState
from .endpoints import ServiceEndpoints, TlsSettings

logger = logging.getLogger("easystack.auth")

ADMIN_CLIENT_ID = "admin-cli"


class TokenBroker:
    """Obtains admin and API tokens for one node instance."""

    def __init__(
        self,
        endpoints: ServiceEndpoints,
        session: SessionState,
        admin_user: str,
        admin_pass: str,
        client_id: str,
        default_user: Optional[str] = None,
        default_pass: Optional[str] = None,
        tls: TlsSettings = TlsSettings(),
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            endpoints: URLs of the deployed instance
            session: Node session holding the client secret
            admin_user: Administrator username (admin realm)
            admin_pass: Administrator password
            client_id: Service realm client identifier
            default_user: Service user when the caller gives none
            default_pass: Service password when the caller gives none
            tls: TLS policy
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.endpoints = endpoints
        self.session = session
        self.admin_user = admin_user
        self.admin_pass = admin_pass
        self.client_id = client_id
        self.default_user = default_user
        self.default_pass = default_pass
        self.tls = tls
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            verify=self.tls.httpx_verify(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _post_form(self, url: str, form: Dict[str, str], label: str) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.post(
                    url, data=form, headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            raise AuthError(f"{label} error: {e}") from e

    @staticmethod
    def _body(response: httpx.Response) -> Optional[dict]:
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            return None
        return body if isinstance(body, dict) else None

    async def get_admin_token(self) -> str:
        """
        Password grant against the admin realm with the admin-cli client.

        Raises:
            AuthError: Endpoint unreachable or non-200 response
        """
        form = {
            "client_id": ADMIN_CLIENT_ID,
            "username": self.admin_user,
            "password": self.admin_pass,
            "grant_type": "password",
        }
        response = await self._post_form(self.endpoints.admin_token_url, form, "Admin token")
        body = self._body(response)
        if response.status_code != 200:
            raise AuthError(f"Admin token error: {response.text}", response.status_code)
        if not body or not body.get("access_token"):
            raise AuthError(f"Admin token error: missing access_token: {response.text}", 200)
        logger.debug(f"Admin token issued for {self.endpoints.base_url}")
        return body["access_token"]

    async def get_api_token(
        self,
        override_secret: Optional[str] = None,
        override_user: Optional[str] = None,
        override_pass: Optional[str] = None,
    ) -> str:
        """
        Password grant against the service realm.

        Overrides win over the session secret and the configured default
        user; empty overrides count as absent.

        Raises:
            MissingSecretError: No secret from the caller or the session
            AuthError: Endpoint unreachable, non-200 response, or no token
        """
        secret = override_secret or self.session.get()
        if not secret:
            raise MissingSecretError("clientSecret not available; run deploy first")

        form = {
            "client_id": self.client_id,
            "client_secret": secret,
            "username": override_user or self.default_user or "",
            "password": override_pass or self.default_pass or "",
            "grant_type": "password",
        }
        response = await self._post_form(self.endpoints.service_token_url, form, "API token")
        body = self._body(response)
        if response.status_code != 200:
            detail = (body or {}).get("error_description") or response.text
            raise AuthError(f"API token error: {detail}", response.status_code)
        if not body or not body.get("access_token"):
            raise AuthError(f"API token error: missing access_token: {response.text}", 200)
        logger.debug(f"API token issued for user {form['username']}")
        return body["access_token"]
