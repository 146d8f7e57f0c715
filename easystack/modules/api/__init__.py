"""
API Module - Black Box Interface

Purpose: Data contracts of the HTTP API and the nodes
Interface: Pydantic models
Hidden: Alias handling between snake_case and the editor's camelCase keys

The API module only describes data - it contains no business logic.
"""

from .models import (
    CatalogueInfoResponse,
    CreateNodeRequest,
    DeploymentConfig,
    NodeAction,
    NodeIndicator,
    NodeListResponse,
    NodeMessage,
    NodeResponse,
    NodeState,
)

__all__ = [
    "CatalogueInfoResponse",
    "CreateNodeRequest",
    "DeploymentConfig",
    "NodeAction",
    "NodeIndicator",
    "NodeListResponse",
    "NodeMessage",
    "NodeResponse",
    "NodeState",
]
