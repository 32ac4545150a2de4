"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends

from hedera_node.nodes.registry import NodeRegistry, get_node_registry

NodeRegistryDep = Annotated[NodeRegistry, Depends(get_node_registry)]
