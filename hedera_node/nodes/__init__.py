"""Node definitions - Built-in workflow nodes."""

from hedera_node.nodes.base import BaseNode, NodeContext, NodeExecutionError
from hedera_node.nodes.hedera import HederaNode
from hedera_node.nodes.registry import NodeRegistry, get_node_registry

__all__ = [
    "BaseNode",
    "HederaNode",
    "NodeContext",
    "NodeExecutionError",
    "NodeRegistry",
    "get_node_registry",
]
