"""Workflow node contract.

A node validates its raw input, runs, and renders its output. Whatever goes
wrong on the way surfaces as a single NodeExecutionError whose error code is
the failure kind, so the host platform can tell a bad credential from a
network outage.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog

from hedera_node.errors import HederaError
from hedera_node.models.node import NodeDefinition

logger = structlog.get_logger()

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class NodeValidationError(Exception):
    """Node input does not have the expected shape."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NodeExecutionError(Exception):
    """A node run failed as a whole.

    ``error_code`` is the failure kind (``ConfigurationError``,
    ``NetworkFailure``, ...); the API maps it to an HTTP status.
    """

    def __init__(
        self,
        message: str,
        node_name: str,
        error_code: str = "InternalError",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.node_name = node_name
        self.error_code = error_code
        self.details = details or {}

    @classmethod
    def from_exception(cls, node_name: str, exc: Exception) -> "NodeExecutionError":
        if isinstance(exc, HederaError):
            return cls(exc.message, node_name, exc.kind, exc.details)
        if isinstance(exc, NodeValidationError):
            return cls(str(exc), node_name, "ValidationError", {"field": exc.field})
        return cls(f"Unexpected error: {type(exc).__name__}", node_name)


@dataclass
class NodeContext:
    """Per-run context handed to a node.

    Setting ``cancel_event`` stops a running batch from dispatching further
    items.
    """

    execution_id: str
    credentials: dict[str, Any] = field(default_factory=dict)
    cancel_event: asyncio.Event | None = None


class BaseNode(ABC, Generic[InputT, OutputT]):
    """Base class for workflow nodes.

    Subclasses describe themselves with get_definition(), turn raw input into
    a typed value with validate_input() and do the work in execute().
    """

    @abstractmethod
    def get_definition(self) -> NodeDefinition:
        pass

    @abstractmethod
    async def execute(self, input_data: InputT, context: NodeContext) -> OutputT:
        pass

    @abstractmethod
    def validate_input(self, input_data: dict[str, Any]) -> InputT:
        """Turn raw input into the node's input type.

        Raises:
            NodeValidationError: If the input has the wrong shape
        """

    @abstractmethod
    def validate_output(self, output_data: OutputT) -> dict[str, Any]:
        pass

    async def run(self, input_data: dict[str, Any], context: NodeContext) -> dict[str, Any]:
        """Validate, execute and render one node run.

        Raises:
            NodeExecutionError: For every failure, with the failure kind as
                ``error_code``
        """
        node_name = self.name
        log = logger.bind(node_name=node_name, execution_id=context.execution_id)
        log.debug("node_execution_starting")

        try:
            output = await self.execute(self.validate_input(input_data), context)
            result = self.validate_output(output)
        except NodeExecutionError:
            raise
        except (HederaError, NodeValidationError) as e:
            error = NodeExecutionError.from_exception(node_name, e)
            log.warning("node_execution_failed", error_kind=error.error_code)
            raise error from e
        except Exception as e:
            log.exception("node_execution_crashed")
            raise NodeExecutionError.from_exception(node_name, e) from e

        log.debug("node_execution_completed")
        return result

    @property
    def name(self) -> str:
        return self.get_definition().name
