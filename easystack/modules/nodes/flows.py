"""
Flows file loader.

A flows file is a YAML list of node definitions created at startup:

    - id: catalogue-1
      type: Federated-Catalogue
      name: staging catalogue
      config:
        kubeconfigContent: |
          ...
        domainAddress: example.org
        instanceName: fc1
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .registry import NodeRegistry

logger = logging.getLogger("easystack.nodes")


@dataclass
class FlowNode:
    """One node definition from a flows file."""

    type: str
    config: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    name: Optional[str] = None


def parse_flows(text: str) -> List[FlowNode]:
    """
    Parse flows YAML.

    Raises:
        ValueError: The document is not a list of node mappings
    """
    data = yaml.safe_load(text)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("Flows file must contain a list of nodes")

    nodes = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"Flow entry {index} is not a mapping")
        if not entry.get("type"):
            raise ValueError(f"Flow entry {index} has no type")
        config = entry.get("config") or {}
        if not isinstance(config, dict):
            raise ValueError(f"Flow entry {index} config is not a mapping")
        nodes.append(
            FlowNode(
                type=entry["type"],
                config=config,
                id=str(entry["id"]) if entry.get("id") is not None else None,
                name=entry.get("name"),
            )
        )
    return nodes


def load_flows(path: Union[str, Path]) -> List[FlowNode]:
    return parse_flows(Path(path).read_text(encoding="utf-8"))


def apply_flows(registry: NodeRegistry, flows: List[FlowNode]) -> List[str]:
    """Create every flow node in the registry; returns the created ids."""
    created = []
    for flow in flows:
        node = registry.create(flow.type, flow.config, node_id=flow.id, name=flow.name)
        created.append(node.id)
    logger.info(f"Loaded {len(created)} node(s) from flows")
    return created
