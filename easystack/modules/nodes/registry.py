"""
Node registry.

Plays the part of the flow runtime: knows the node types, creates node
instances from their configuration, looks them up by id and closes them.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from ...config.provider import HttpClientConfig, ProvisioningConfig
from ..api.models import DeploymentConfig
from ..credentials import CredentialMaterializer
from ..provisioning import ProvisioningInvoker
from .base import DeployNode
from .catalogue import FederatedCatalogueNode
from .orce import OrchestrationEngineNode

logger = logging.getLogger("easystack.nodes")


class UnknownNodeTypeError(ValueError):
    """No node type is registered under the requested name."""


class NodeConflictError(ValueError):
    """A node with the requested id already exists."""


class NodeRegistry:
    """Registry of node types and live node instances."""

    def __init__(
        self,
        provisioning: ProvisioningConfig,
        http: Optional[HttpClientConfig] = None,
        materializer: Optional[CredentialMaterializer] = None,
        transport: Optional[Any] = None,
    ):
        """
        Args:
            provisioning: Script locations, interpreter and timeout
            http: Outbound HTTP settings
            materializer: Shared credential materializer
            transport: Optional httpx transport handed to every node (tests)
        """
        self.provisioning = provisioning
        self.http = http or HttpClientConfig(timeout=30.0)
        self.materializer = materializer or CredentialMaterializer()
        self.transport = transport
        self._types: Dict[str, Type[DeployNode]] = {}
        self._nodes: Dict[str, DeployNode] = {}

    def register_type(self, node_class: Type[DeployNode], name: Optional[str] = None) -> None:
        type_name = name or node_class.type_name
        if not type_name:
            raise ValueError(f"{node_class.__name__} has no type name")
        self._types[type_name] = node_class
        logger.debug(f"Registered node type {type_name}")

    @property
    def types(self) -> List[str]:
        return sorted(self._types)

    def create(
        self,
        type_name: str,
        config: Union[DeploymentConfig, Mapping[str, Any]],
        node_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> DeployNode:
        """
        Create and register a node.

        Raises:
            UnknownNodeTypeError: type_name is not registered
            NodeConflictError: node_id is taken
            pydantic.ValidationError: config is invalid
        """
        node_class = self._types.get(type_name)
        if node_class is None:
            raise UnknownNodeTypeError(
                f"Unknown node type: {type_name}. Available: {', '.join(self.types)}"
            )

        node_id = node_id or uuid.uuid4().hex
        if node_id in self._nodes:
            raise NodeConflictError(f"Node {node_id} already exists")

        if not isinstance(config, DeploymentConfig):
            config = DeploymentConfig.model_validate(dict(config))

        invoker = ProvisioningInvoker(
            self.provisioning.scripts_dir(node_class.scripts_subdir),
            interpreter=self.provisioning.interpreter,
            timeout=self.provisioning.timeout,
        )
        node = node_class(
            node_id,
            config,
            invoker,
            materializer=self.materializer,
            name=name,
            http_timeout=self.http.timeout,
            transport=self.transport,
        )
        self._nodes[node_id] = node
        if config.insecure_skip_tls_verify:
            logger.warning(f"Node {node_id} skips TLS verification for its instance endpoints")
        logger.info(f"Created {type_name} node {node_id}")
        return node

    def get(self, node_id: str) -> Optional[DeployNode]:
        return self._nodes.get(node_id)

    def list(self) -> List[DeployNode]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    async def remove(self, node_id: str, removed: bool = True) -> bool:
        """
        Close a node and forget it.

        Args:
            removed: Uninstall the node's instance before closing

        Returns:
            False when the id is unknown
        """
        node = self._nodes.pop(node_id, None)
        if node is None:
            return False
        await node.close(removed=removed)
        logger.info(f"Removed node {node_id} (uninstalled={removed})")
        return True

    async def close_all(self) -> None:
        """Close every node without uninstalling (runtime shutdown)."""
        for node_id in list(self._nodes):
            await self.remove(node_id, removed=False)


def build_registry(
    provisioning: ProvisioningConfig,
    http: Optional[HttpClientConfig] = None,
    **kwargs,
) -> NodeRegistry:
    """Registry with both built-in node types registered."""
    registry = NodeRegistry(provisioning, http, **kwargs)
    registry.register_type(FederatedCatalogueNode)
    registry.register_type(OrchestrationEngineNode)
    return registry
