"""
Proxy Module - Black Box Interface

Purpose: Forward API calls to the deployed catalogue service
Interface: ServiceProxy.call()
Hidden: URL joining, method defaulting, body decoding

No retries and no interpretation of status codes.
"""

from .proxy import ServiceProxy, ServiceResponse, resolve_method

__all__ = ["ServiceProxy", "ServiceResponse", "resolve_method"]
