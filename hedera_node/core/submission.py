"""Submission client.

Sends signed transactions to one network endpoint and waits for their
receipts. Every outcome is classified as SUCCEEDED, FAILED or TIMED_OUT;
a timeout means "unknown", never success or failure.
"""

import asyncio
import hashlib

import structlog

from hedera_node.core.codec import TransactionCodec
from hedera_node.errors import NetworkFailureError, ValidationError
from hedera_node.models.ledger import AccountId, ResponseCode, TransactionId
from hedera_node.models.transaction import (
    SignedTransaction,
    SubmissionResult,
    SubmissionState,
    Transaction,
)
from hedera_node.network.transports import NetworkTransport, ReceiptResponse

logger = structlog.get_logger()


def transaction_hash(payload: bytes) -> str:
    """Hex SHA-384 of the submitted bytes."""
    return hashlib.sha384(payload).hexdigest()


class SubmissionClient:
    """Submits transactions and polls for receipts.

    Holds no per-transaction state, so one client can serve concurrent
    submissions over a shared transport.

    Example usage:
        async with HttpNetworkTransport(url) as transport:
            client = SubmissionClient(transport, "testnet")
            result = await client.submit(signed_tx)
    """

    def __init__(
        self,
        transport: NetworkTransport,
        network: str,
        codec: TransactionCodec | None = None,
        receipt_timeout: float = 30.0,
        poll_interval: float = 0.5,
        max_poll_interval: float = 5.0,
        backoff: float = 1.5,
    ) -> None:
        """Initialize the client.

        Args:
            transport: Connected network transport
            network: Network name the client is bound to
            codec: Codec used to serialize transactions
            receipt_timeout: Deadline for a final receipt in seconds
            poll_interval: First delay between receipt queries
            max_poll_interval: Upper bound for the delay
            backoff: Multiplier applied to the delay after each query
        """
        self.transport = transport
        self.network = network
        self.codec = codec or TransactionCodec()
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self.max_poll_interval = max_poll_interval
        self.backoff = backoff

    async def submit(self, transaction: Transaction) -> SubmissionResult:
        """Submit a signed transaction and wait for its outcome.

        Failed outcomes are returned, not retried.

        Raises:
            ValidationError: If the transaction carries no signature
            NetworkFailureError: If the transaction could not be sent
        """
        if not isinstance(transaction, SignedTransaction):
            raise ValidationError("Transaction must be signed before submission")

        body = transaction.body
        payload = self.codec.encode(transaction)
        tx_hash = transaction_hash(payload)
        log = logger.bind(
            transaction_id=str(body.transaction_id),
            node_id=str(body.node_account_id),
            network=self.network,
        )

        precheck = await self.transport.submit(self.network, payload)
        log.info("transaction_submitted", precheck_code=precheck.code)

        if precheck.code != ResponseCode.OK.value:
            log.warning("transaction_precheck_failed", status=precheck.code)
            return SubmissionResult(
                state=SubmissionState.FAILED,
                transaction_id=body.transaction_id,
                node_id=body.node_account_id,
                transaction_hash=tx_hash,
                status=precheck.code,
            )

        receipt = await self._wait_for_receipt(body.transaction_id)
        if receipt is None:
            log.warning("transaction_receipt_timed_out", timeout=self.receipt_timeout)
            return SubmissionResult(
                state=SubmissionState.TIMED_OUT,
                transaction_id=body.transaction_id,
                node_id=body.node_account_id,
                transaction_hash=tx_hash,
            )

        state = (
            SubmissionState.SUCCEEDED
            if receipt.status == ResponseCode.SUCCESS.value
            else SubmissionState.FAILED
        )
        log.info("transaction_finalized", status=receipt.status, state=state.value)

        return SubmissionResult(
            state=state,
            transaction_id=body.transaction_id,
            node_id=body.node_account_id,
            transaction_hash=tx_hash,
            status=receipt.status,
            account_id=_receipt_account(receipt),
        )

    async def get_receipt(self, transaction_id: TransactionId | str) -> ReceiptResponse | None:
        """Query a receipt once, e.g. to follow up on a timed-out submission.

        Raises:
            NetworkFailureError: On transport-level errors
        """
        return await self.transport.get_receipt(self.network, str(transaction_id))

    async def _wait_for_receipt(self, transaction_id: TransactionId) -> ReceiptResponse | None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.receipt_timeout
        interval = self.poll_interval

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None

            try:
                receipt = await asyncio.wait_for(self.get_receipt(transaction_id), timeout=remaining)
            except asyncio.TimeoutError:
                return None
            except NetworkFailureError as e:
                logger.warning(
                    "receipt_poll_failed",
                    transaction_id=str(transaction_id),
                    error=e.message,
                )
                receipt = None

            if receipt is not None and not ResponseCode.is_pending(receipt.status):
                return receipt

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            await asyncio.sleep(min(interval, remaining))
            interval = min(interval * self.backoff, self.max_poll_interval)


def _receipt_account(receipt: ReceiptResponse) -> AccountId | None:
    if receipt.account_id is None:
        return None
    try:
        return AccountId.parse(receipt.account_id)
    except ValidationError as e:
        raise NetworkFailureError("Receipt carries an invalid account ID") from e
