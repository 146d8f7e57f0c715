"""
Nodes Module - Black Box Interface

Purpose: Per-instance deployment lifecycle and message routing
Interface: NodeRegistry.create()/get()/remove(), DeployNode.handle()/close()
Hidden: Credential staging, script argument order, token and proxy wiring

Node types:
- Federated-Catalogue: deploy, extract metadata, proxy service calls
- Orchestration Engine: deploy and uninstall only
"""

from .base import DeployNode, NodeClosedError
from .catalogue import FederatedCatalogueNode
from .flows import FlowNode, apply_flows, load_flows, parse_flows
from .orce import OrchestrationEngineNode
from .registry import NodeConflictError, NodeRegistry, UnknownNodeTypeError, build_registry

__all__ = [
    "DeployNode",
    "FederatedCatalogueNode",
    "FlowNode",
    "NodeClosedError",
    "NodeConflictError",
    "NodeRegistry",
    "OrchestrationEngineNode",
    "UnknownNodeTypeError",
    "apply_flows",
    "build_registry",
    "load_flows",
    "parse_flows",
]
