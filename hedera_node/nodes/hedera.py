"""Hedera node.

Runs a batch of account and transaction operations against a Hedera
network on behalf of the operator named in the node credentials.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from hedera_node.config import HederaCredentials, Settings, get_settings
from hedera_node.core.dispatcher import Operator, build_dispatcher
from hedera_node.models.node import (
    NodeCategory,
    NodeDefinition,
    NodeInput,
    NodeInputType,
    NodeOutput,
    NodeOutputType,
)
from hedera_node.network.transports import NetworkTransport, create_transport
from hedera_node.nodes.base import BaseNode, NodeContext, NodeValidationError

logger = structlog.get_logger()

TransportFactory = Callable[[Settings], NetworkTransport]


@dataclass
class HederaInput:
    """Input for the Hedera node."""

    items: list[dict[str, Any]]
    fail_fast: bool = False
    max_concurrency: int = 1


@dataclass
class HederaOutput:
    """Output from the Hedera node: one record per input item, in order."""

    items: list[dict[str, Any]] = field(default_factory=list)


def _default_transport(settings: Settings) -> NetworkTransport:
    return create_transport("http", url=settings.gateway_url, timeout=settings.http_timeout)


class HederaNode(BaseNode[HederaInput, HederaOutput]):
    """Hedera account and transaction node.

    Requires 'hedera_api' credentials: ``accountId``, ``privateKey`` and
    ``network``.

    Example:
        result = await node.run(
            {"items": [{"resource": "account", "operation": "transfer",
                        "recipientId": "0.0.1002", "amount": 1.5}]},
            context,
        )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self._settings = settings
        self._transport_factory = transport_factory or _default_transport

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def get_definition(self) -> NodeDefinition:
        """Get node definition."""
        account = {"resource": ["account"]}
        transaction_ops = {
            "resource": ["transaction"],
            "transactionOperation": ["sign", "submit", "signAndSubmit"],
        }
        return NodeDefinition(
            name="hedera",
            display_name="Hedera",
            description="Interact with the Hedera Hashgraph network",
            category=NodeCategory.API,
            credential_type="hedera_api",
            icon="file:hedera.svg",
            inputs=[
                NodeInput(
                    name="resource",
                    display_name="Resource",
                    type=NodeInputType.OPTIONS,
                    description="Resource type to operate on",
                    default="account",
                    options=["account", "transaction"],
                ),
                NodeInput(
                    name="accountOperation",
                    display_name="Operation",
                    type=NodeInputType.OPTIONS,
                    default="create",
                    options=["create", "transfer"],
                    display_options=account,
                ),
                NodeInput(
                    name="recipientId",
                    display_name="Recipient Account ID",
                    type=NodeInputType.STRING,
                    description="Hedera Account ID to send HBAR to",
                    default="",
                    display_options={**account, "accountOperation": ["transfer"]},
                ),
                NodeInput(
                    name="amount",
                    display_name="Amount (HBAR)",
                    type=NodeInputType.NUMBER,
                    description="Amount of HBAR to transfer",
                    default=0,
                    min_value=0,
                    number_precision=8,
                    display_options={**account, "accountOperation": ["transfer"]},
                ),
                NodeInput(
                    name="initialBalance",
                    display_name="Initial Balance (HBAR)",
                    type=NodeInputType.NUMBER,
                    description="Initial HBAR funding for the new account",
                    required=False,
                    default=0,
                    min_value=0,
                    number_precision=8,
                    display_options={**account, "accountOperation": ["create"]},
                ),
                NodeInput(
                    name="keyAlgorithm",
                    display_name="Key Algorithm",
                    type=NodeInputType.OPTIONS,
                    description="Key type for the new account",
                    required=False,
                    options=["ed25519", "ecdsa_secp256k1"],
                    display_options={**account, "accountOperation": ["create"]},
                ),
                NodeInput(
                    name="transactionOperation",
                    display_name="Operation",
                    type=NodeInputType.OPTIONS,
                    default="sign",
                    options=["sign", "submit", "signAndSubmit"],
                    display_options={"resource": ["transaction"]},
                ),
                NodeInput(
                    name="transactionFormat",
                    display_name="Transaction Format",
                    type=NodeInputType.OPTIONS,
                    description="How the transaction payload is encoded",
                    required=False,
                    default="base64",
                    options=["base64", "bufferObject"],
                    display_options=transaction_ops,
                ),
                NodeInput(
                    name="transaction",
                    display_name="Transaction",
                    type=NodeInputType.ANY,
                    description="The transaction to process",
                    default="",
                    display_options=transaction_ops,
                ),
                NodeInput(
                    name="failFast",
                    display_name="Stop On First Error",
                    type=NodeInputType.BOOLEAN,
                    description="Abort the batch at the first failing item",
                    required=False,
                    default=False,
                ),
                NodeInput(
                    name="maxConcurrency",
                    display_name="Max Concurrency",
                    type=NodeInputType.NUMBER,
                    description="Items processed in parallel",
                    required=False,
                    default=1,
                    min_value=1,
                ),
            ],
            outputs=[
                NodeOutput(
                    name="items",
                    display_name="Items",
                    type=NodeOutputType.ARRAY,
                    description="One result or error record per input item",
                ),
            ],
            tags=["hedera", "blockchain", "hbar"],
        )

    def validate_input(self, input_data: dict[str, Any]) -> HederaInput:
        """Validate input data."""
        items = input_data.get("items")
        if not isinstance(items, list):
            raise NodeValidationError("Items must be a list", field="items")

        fail_fast = input_data.get("failFast", self.settings.fail_fast)
        if not isinstance(fail_fast, bool):
            raise NodeValidationError("failFast must be a boolean", field="failFast")

        max_concurrency = input_data.get("maxConcurrency", self.settings.max_concurrency)
        if (
            isinstance(max_concurrency, bool)
            or not isinstance(max_concurrency, int)
            or not 1 <= max_concurrency <= 32
        ):
            raise NodeValidationError(
                "maxConcurrency must be an integer between 1 and 32",
                field="maxConcurrency",
            )

        return HederaInput(items=items, fail_fast=fail_fast, max_concurrency=max_concurrency)

    async def execute(
        self,
        input_data: HederaInput,
        context: NodeContext,
    ) -> HederaOutput:
        """Execute the batch."""
        settings = self.settings
        operator = Operator.from_credentials(HederaCredentials.from_mapping(context.credentials))

        logger.info(
            "hedera_batch_requested",
            execution_id=context.execution_id,
            operator=str(operator.account_id),
            network=operator.network,
            item_count=len(input_data.items),
        )

        async with self._transport_factory(settings) as transport:
            dispatcher = build_dispatcher(operator, transport, settings)
            records = await dispatcher.run_batch(
                input_data.items,
                fail_fast=input_data.fail_fast,
                max_concurrency=input_data.max_concurrency,
                cancel_event=context.cancel_event,
            )

        return HederaOutput(items=[record.to_json(reveal_secrets=True) for record in records])

    def validate_output(self, output_data: HederaOutput) -> dict[str, Any]:
        """Convert output to dictionary."""
        return {"items": output_data.items}
