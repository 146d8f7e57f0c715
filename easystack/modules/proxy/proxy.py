"""
Service proxy for the deployed catalogue service.

Forwards a caller-chosen method, topic and JSON payload with a bearer
token. The status code is returned as-is; only transport failures raise.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..auth import TlsSettings

logger = logging.getLogger("easystack.proxy")


@dataclass
class ServiceResponse:
    """Status and parsed body of a proxied call."""

    status_code: int
    body: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"statusCode": self.status_code, "body": self.body}


def resolve_method(method: Optional[str], payload: Any) -> str:
    """Explicit method wins; otherwise POST with a payload and GET without."""
    if method:
        return method.upper()
    return "POST" if payload is not None else "GET"


def join_url(base: str, topic: str) -> str:
    return f"{base.rstrip('/')}/{topic.strip().lstrip('/')}"


class ServiceProxy:
    """Issues authenticated requests under one service base URL."""

    def __init__(
        self,
        service_base_url: str,
        tls: TlsSettings = TlsSettings(),
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_base_url = service_base_url
        self.tls = tls
        self.timeout = timeout
        self._transport = transport

    async def call(
        self,
        token: str,
        topic: str,
        method: Optional[str] = None,
        payload: Any = None,
    ) -> ServiceResponse:
        """
        Call ``<service base>/<topic>``.

        Raises:
            httpx.TransportError: DNS, connection, TLS and timeout failures,
                unchanged
        """
        url = join_url(self.service_base_url, topic)
        verb = resolve_method(method, payload)
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        request_kwargs: Dict[str, Any] = {"headers": headers}
        if payload is not None:
            request_kwargs["json"] = payload

        logger.info(f"{verb} {url}")
        async with httpx.AsyncClient(
            verify=self.tls.httpx_verify(),
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(verb, url, **request_kwargs)

        return ServiceResponse(status_code=response.status_code, body=self._parse_body(response))

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            return response.text
