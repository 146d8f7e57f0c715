"""
Authentication Module - Black Box Interface

Purpose: Obtain bearer tokens for a deployed instance
Interface: TokenBroker.get_admin_token(), TokenBroker.get_api_token()
Hidden: Token endpoint URLs, grant parameters, TLS client setup

Tokens are never cached; every call performs a fresh password grant.
"""

from .broker import ADMIN_CLIENT_ID, TokenBroker
from .endpoints import ServiceEndpoints, TlsSettings

__all__ = ["ADMIN_CLIENT_ID", "ServiceEndpoints", "TlsSettings", "TokenBroker"]
