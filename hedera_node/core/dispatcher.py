"""Operation dispatcher.

Routes each batch item to the handler for its (resource, operation) pair,
composing the key manager, builder, codec and submission client, and turns
per-item outcomes into ordered result records.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import SecretStr

from hedera_node.config import HederaCredentials, Settings
from hedera_node.core.builder import TransactionBuilder
from hedera_node.core.codec import TransactionCodec, to_base64
from hedera_node.core.keys import KeyManager, KeyPair
from hedera_node.core.submission import SubmissionClient
from hedera_node.errors import (
    BatchCancelledError,
    ConfigurationError,
    HederaError,
    InternalError,
    MalformedKeyError,
    RejectedByNetworkError,
    TransactionTimedOutError,
    ValidationError,
)
from hedera_node.models.keys import KeyAlgorithm
from hedera_node.models.ledger import AccountId, Amount
from hedera_node.models.requests import (
    AccountCreateRequest,
    AccountCreateResult,
    AccountTransferRequest,
    BatchRecord,
    OperationRequest,
    ResultModel,
    SignAndSubmitResult,
    SignResult,
    SubmitResult,
    TransactionSignAndSubmitRequest,
    TransactionSignRequest,
    TransactionSubmitRequest,
    TransferResult,
    parse_request,
)
from hedera_node.models.transaction import (
    SignaturePair,
    SignedTransaction,
    SubmissionResult,
    SubmissionState,
    Transaction,
)
from hedera_node.network.transports import NetworkTransport

logger = structlog.get_logger()


@dataclass(frozen=True)
class Operator:
    """Account that pays for and signs every transaction of a batch."""

    account_id: AccountId
    key_pair: KeyPair
    network: str

    @classmethod
    def from_credentials(cls, credentials: HederaCredentials) -> "Operator":
        """Resolve validated credentials into an operator.

        Raises:
            ConfigurationError: If the account id or private key is unusable
        """
        try:
            account_id = AccountId.parse(credentials.account_id, field="accountId")
        except ValidationError as e:
            raise ConfigurationError(
                "Hedera credentials are not set up correctly.",
                {"fields": ["accountId"]},
            ) from e
        try:
            key_pair = KeyManager.load_operator_key(credentials.private_key.get_secret_value())
        except MalformedKeyError as e:
            raise ConfigurationError(
                f"Hedera credentials are not set up correctly. {e.message}",
                {"fields": ["privateKey"]},
            ) from e
        return cls(account_id=account_id, key_pair=key_pair, network=credentials.network)


class OperationDispatcher:
    """Executes operation requests on behalf of one operator.

    Example usage:
        dispatcher = build_dispatcher(operator, transport, settings)
        records = await dispatcher.run_batch(items)
    """

    def __init__(
        self,
        operator: Operator,
        builder: TransactionBuilder,
        client: SubmissionClient,
        codec: TransactionCodec | None = None,
        default_key_algorithm: KeyAlgorithm = KeyAlgorithm.ED25519,
        reveal_private_keys: bool = True,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            operator: Operator account and key
            builder: Builder stamped with the operator as payer
            client: Submission client bound to the operator's network
            codec: Transaction codec
            default_key_algorithm: Algorithm for new accounts when a request
                does not name one
            reveal_private_keys: Whether create results carry the generated
                private key
        """
        self.operator = operator
        self.builder = builder
        self.client = client
        self.codec = codec or TransactionCodec()
        self.default_key_algorithm = default_key_algorithm
        self.reveal_private_keys = reveal_private_keys
        self._handlers: dict[type, Callable[[Any], Awaitable[ResultModel]]] = {
            AccountCreateRequest: self._create_account,
            AccountTransferRequest: self._transfer,
            TransactionSignRequest: self._sign_transaction,
            TransactionSubmitRequest: self._submit_transaction,
            TransactionSignAndSubmitRequest: self._sign_and_submit_transaction,
        }

    async def dispatch(self, item: dict[str, Any] | OperationRequest) -> ResultModel:
        """Execute one request.

        Raises:
            HederaError: Any pipeline failure for this item
        """
        request = parse_request(item) if isinstance(item, dict) else item
        handler = self._handlers[type(request)]
        return await handler(request)

    async def run_batch(
        self,
        items: Sequence[dict[str, Any]],
        fail_fast: bool = False,
        max_concurrency: int = 1,
        cancel_event: asyncio.Event | None = None,
    ) -> list[BatchRecord]:
        """Execute a batch of items.

        Records come back in input order, one per item. In the default
        isolated mode a failing item yields an error record and the batch
        continues; with ``fail_fast`` the first failure is raised.

        Args:
            items: Raw request parameters, one dict per item
            fail_fast: Raise the first failure instead of recording it
            max_concurrency: Items processed in parallel (1 = sequential)
            cancel_event: When set, no further items are dispatched

        Returns:
            One BatchRecord per item

        Raises:
            HederaError: In fail-fast mode, the first item failure
            ConfigurationError: Always, regardless of mode
        """
        logger.info(
            "batch_started",
            item_count=len(items),
            fail_fast=fail_fast,
            max_concurrency=max_concurrency,
            network=self.operator.network,
        )

        if max_concurrency <= 1:
            records = []
            for index, item in enumerate(items):
                records.append(await self._run_item(index, item, fail_fast, cancel_event))
        else:
            records = await self._run_concurrently(items, fail_fast, max_concurrency, cancel_event)

        logger.info(
            "batch_completed",
            item_count=len(records),
            error_count=sum(1 for record in records if record.is_error),
        )
        return records

    async def _run_concurrently(
        self,
        items: Sequence[dict[str, Any]],
        fail_fast: bool,
        max_concurrency: int,
        cancel_event: asyncio.Event | None,
    ) -> list[BatchRecord]:
        semaphore = asyncio.Semaphore(max_concurrency)

        async def run(index: int, item: dict[str, Any]) -> BatchRecord:
            async with semaphore:
                return await self._run_item(index, item, fail_fast, cancel_event)

        tasks = [asyncio.create_task(run(index, item)) for index, item in enumerate(items)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _run_item(
        self,
        index: int,
        item: dict[str, Any],
        fail_fast: bool,
        cancel_event: asyncio.Event | None,
    ) -> BatchRecord:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("batch_item_cancelled", index=index)
            return BatchRecord(
                index=index,
                error=BatchCancelledError("Batch was cancelled before this item was dispatched"),
            )

        try:
            result = await self.dispatch(item)
        except ConfigurationError:
            raise
        except HederaError as e:
            if fail_fast:
                raise
            logger.warning("batch_item_failed", index=index, error_kind=e.kind, error=e.message)
            return BatchRecord(index=index, error=e)
        except Exception as e:
            if fail_fast:
                raise
            logger.exception("batch_item_crashed", index=index)
            return BatchRecord(
                index=index,
                error=InternalError(f"Unexpected error: {type(e).__name__}"),
            )

        record = BatchRecord(index=index, result=result)
        rendered = record.to_json()
        logger.info(
            "batch_item_succeeded",
            index=index,
            fields=sorted(rendered),
            transaction_id=rendered.get("transactionId"),
            status=rendered.get("status"),
        )
        return record

    def _sign(self, transaction: Transaction) -> SignedTransaction:
        key_pair = self.operator.key_pair
        signature = KeyManager.sign(key_pair, self.codec.body_bytes(transaction.body))
        return transaction.with_signature(
            SignaturePair(public_key=key_pair.public_key, signature=signature)
        )

    async def _submit(self, transaction: SignedTransaction) -> SubmissionResult:
        result = await self.client.submit(transaction)
        if result.state == SubmissionState.TIMED_OUT:
            raise TransactionTimedOutError(
                f"No receipt for transaction {result.transaction_id} before the deadline; "
                "query its receipt before resubmitting",
                transaction_id=str(result.transaction_id),
            )
        return result

    async def _create_account(self, request: AccountCreateRequest) -> AccountCreateResult:
        initial_balance = Amount.from_hbar(request.initial_balance, field="initialBalance")
        algorithm = request.key_algorithm or self.default_key_algorithm
        new_key = KeyManager.generate_key_pair(algorithm)

        unsigned = self.builder.build_account_create(new_key.public_key, initial_balance)
        result = await self._submit(self._sign(unsigned))

        if not result.succeeded or result.account_id is None:
            raise RejectedByNetworkError(
                f"Account creation failed: {result.status}",
                status=result.status or "UNKNOWN",
                transaction_id=str(result.transaction_id),
            )

        logger.info(
            "account_created",
            account_id=str(result.account_id),
            transaction_id=str(result.transaction_id),
            algorithm=algorithm.value,
        )
        return AccountCreateResult(
            new_account_id=str(result.account_id),
            new_account_public_key=str(new_key.public_key),
            new_account_private_key=(
                SecretStr(new_key.reveal_private_key()) if self.reveal_private_keys else None
            ),
            transaction_id=str(result.transaction_id),
        )

    async def _transfer(self, request: AccountTransferRequest) -> TransferResult:
        recipient = AccountId.parse(request.recipient_id, field="recipientId")
        amount = Amount.from_hbar(request.amount, field="amount")

        unsigned = self.builder.build_transfer(self.operator.account_id, recipient, amount)
        result = await self._submit(self._sign(unsigned))

        return TransferResult(
            status=result.status or "UNKNOWN",
            transaction_id=str(result.transaction_id),
        )

    async def _sign_transaction(self, request: TransactionSignRequest) -> SignResult:
        transaction = self.codec.decode_external(request.transaction, request.transaction_format)
        signed = self._sign(transaction)
        return SignResult(signed_transaction=to_base64(self.codec.encode(signed)))

    async def _submit_transaction(self, request: TransactionSubmitRequest) -> SubmitResult:
        transaction = self.codec.decode_external(request.transaction, request.transaction_format)
        result = await self._submit(transaction)
        return SubmitResult(
            transaction_id=str(result.transaction_id),
            node_id=str(result.node_id),
            transaction_hash=result.transaction_hash,
            status=result.status or "UNKNOWN",
        )

    async def _sign_and_submit_transaction(
        self,
        request: TransactionSignAndSubmitRequest,
    ) -> SignAndSubmitResult:
        transaction = self.codec.decode_external(request.transaction, request.transaction_format)
        signed = self._sign(transaction)
        result = await self._submit(signed)
        return SignAndSubmitResult(
            transaction_id=str(result.transaction_id),
            node_id=str(result.node_id),
            transaction_hash=result.transaction_hash,
            status=result.status or "UNKNOWN",
            signed_transaction=to_base64(self.codec.encode(signed)),
        )


def build_dispatcher(
    operator: Operator,
    transport: NetworkTransport,
    settings: Settings,
) -> OperationDispatcher:
    """Wire a dispatcher for ``operator`` from settings."""
    codec = TransactionCodec()
    builder = TransactionBuilder(
        payer=operator.account_id,
        node_account_ids=settings.nodes_for(operator.network),
        max_transaction_fee=Amount.from_hbar(settings.max_transaction_fee_hbar),
        valid_duration=settings.transaction_valid_duration,
        memo=settings.transaction_memo,
    )
    client = SubmissionClient(
        transport=transport,
        network=operator.network,
        codec=codec,
        receipt_timeout=settings.receipt_timeout,
        poll_interval=settings.receipt_poll_interval,
        max_poll_interval=settings.receipt_max_poll_interval,
        backoff=settings.receipt_backoff,
    )
    return OperationDispatcher(
        operator=operator,
        builder=builder,
        client=client,
        codec=codec,
        default_key_algorithm=settings.default_key_algorithm,
        reveal_private_keys=settings.reveal_new_account_private_key,
    )
