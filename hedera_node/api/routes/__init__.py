"""API route handlers."""

from hedera_node.api.routes.nodes import router as nodes_router

__all__ = [
    "nodes_router",
]
