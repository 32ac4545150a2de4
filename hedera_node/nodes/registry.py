"""Node registry.

Maps node names to the node instances the API serves.
"""

from collections.abc import Callable

import structlog

from hedera_node.models.node import NodeCategory, NodeDefinition
from hedera_node.nodes.base import BaseNode

logger = structlog.get_logger()


class NodeRegistryError(Exception):
    """A node name is already taken."""


class NodeRegistry:
    """Named node instances.

    Example usage:
        registry = NodeRegistry()
        registry.register(HederaNode())

        node = registry.get("hedera")
        result = await node.run({"items": [...]}, context)
    """

    def __init__(self) -> None:
        self._nodes: dict[str, BaseNode] = {}

    def register(self, node: BaseNode) -> None:
        """Add a node under its definition name.

        Raises:
            NodeRegistryError: If the name is already registered
        """
        definition = node.get_definition()
        if definition.name in self._nodes:
            raise NodeRegistryError(f"Node '{definition.name}' already registered")
        self._nodes[definition.name] = node
        logger.debug("node_registered", name=definition.name, category=definition.category.value)

    def unregister(self, name: str) -> None:
        self._nodes.pop(name, None)

    def get(self, name: str) -> BaseNode | None:
        return self._nodes.get(name)

    def get_definition(self, name: str) -> NodeDefinition | None:
        node = self._nodes.get(name)
        return node.get_definition() if node is not None else None

    def list_all(self) -> list[NodeDefinition]:
        return [node.get_definition() for node in self._nodes.values()]

    def list_by_category(self, category: NodeCategory) -> list[NodeDefinition]:
        return [d for d in self.list_all() if d.category == category]

    def load_builtin_nodes(self) -> int:
        """Register every built-in node that is not registered yet.

        Returns:
            Number of nodes added
        """
        from hedera_node.nodes.hedera import HederaNode

        factories: list[Callable[[], BaseNode]] = [HederaNode]

        added = 0
        for factory in factories:
            try:
                self.register(factory())
            except NodeRegistryError as e:
                logger.warning("builtin_node_registration_failed", error=str(e))
                continue
            added += 1

        logger.info("builtin_nodes_loaded", count=added)
        return added


_registry: NodeRegistry | None = None


def get_node_registry() -> NodeRegistry:
    """Process-wide registry with the built-in nodes loaded."""
    global _registry
    if _registry is None:
        _registry = NodeRegistry()
        _registry.load_builtin_nodes()
    return _registry
