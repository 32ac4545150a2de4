"""Node API endpoints.

Lists the available workflow nodes and executes them.
"""

from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from hedera_node.api.deps import NodeRegistryDep
from hedera_node.models.node import NodeCategory
from hedera_node.nodes.base import NodeContext, NodeExecutionError

logger = structlog.get_logger()

router = APIRouter()

# Failure kind -> HTTP status
_ERROR_STATUS = {
    "ConfigurationError": status.HTTP_400_BAD_REQUEST,
    "ValidationError": status.HTTP_400_BAD_REQUEST,
    "MalformedKeyError": status.HTTP_400_BAD_REQUEST,
    "MalformedTransactionError": status.HTTP_400_BAD_REQUEST,
    "UnsupportedOperationError": status.HTTP_400_BAD_REQUEST,
    "NetworkFailure": status.HTTP_502_BAD_GATEWAY,
    "RejectedByNetwork": status.HTTP_502_BAD_GATEWAY,
    "TimedOut": status.HTTP_504_GATEWAY_TIMEOUT,
}


class ExecuteNodeRequest(BaseModel):
    """Body of a node execution request."""

    credentials: dict[str, Any] = Field(default_factory=dict)
    input_data: dict[str, Any] = Field(default_factory=dict)


@router.get("", response_model=dict[str, Any])
async def list_nodes(
    registry: NodeRegistryDep,
) -> dict[str, Any]:
    """List all available nodes, grouped by category."""
    categories: dict[str, list[dict[str, Any]]] = {c.value: [] for c in NodeCategory}
    definitions = registry.list_all()
    for definition in definitions:
        categories[definition.category.value].append(definition.to_dict())
    return {"total": len(definitions), "categories": categories}


@router.get("/{node_name}", response_model=dict[str, Any])
async def get_node(
    node_name: str,
    registry: NodeRegistryDep,
) -> dict[str, Any]:
    """Get a specific node by name.

    Args:
        node_name: Node identifier
        registry: Node registry

    Returns:
        Node definition
    """
    definition = registry.get_definition(node_name)

    if definition is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Node '{node_name}' not found",
        )

    return definition.to_dict()


@router.post("/{node_name}/execute", response_model=dict[str, Any])
async def execute_node(
    node_name: str,
    request: ExecuteNodeRequest,
    registry: NodeRegistryDep,
) -> dict[str, Any]:
    """Execute a node once with the given credentials and input.

    Per-item failures come back as error records inside ``items``; only
    failures that abort the whole run map to an error status.
    """
    node = registry.get(node_name)
    if node is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Node '{node_name}' not found",
        )

    context = NodeContext(
        execution_id=str(uuid4()),
        credentials=request.credentials,
    )

    try:
        return await node.run(request.input_data, context)
    except NodeExecutionError as e:
        logger.warning(
            "node_execution_rejected",
            node_name=node_name,
            execution_id=context.execution_id,
            error_code=e.error_code,
        )
        raise HTTPException(
            status_code=_ERROR_STATUS.get(e.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail={"error": e.message, "errorKind": e.error_code, **e.details},
        ) from e
