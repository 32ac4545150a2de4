"""Error taxonomy for the Hedera transaction pipeline.

Every failure raised by the pipeline carries a stable ``kind`` string so that
result records and API responses can keep the category alongside the message.
"""

from typing import Any


class HederaError(Exception):
    """Base class for all pipeline errors."""

    kind = "HederaError"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_record(self) -> dict[str, Any]:
        """Render as an error record for a batch result."""
        return {"error": self.message, "errorKind": self.kind, **self.details}


class ConfigurationError(HederaError):
    """Missing or unusable credentials / settings. Aborts the whole batch."""

    kind = "ConfigurationError"


class ValidationError(HederaError):
    """Invalid request parameters. Never touches the network."""

    kind = "ValidationError"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class MalformedKeyError(HederaError):
    """Key material does not parse as a supported encoding."""

    kind = "MalformedKeyError"


class MalformedTransactionError(HederaError):
    """Transaction bytes are truncated or structurally invalid."""

    kind = "MalformedTransactionError"


class UnsupportedOperationError(HederaError):
    """Unknown resource or operation value."""

    kind = "UnsupportedOperationError"

    def __init__(self, message: str, value: str | None = None) -> None:
        super().__init__(message, {"value": value})
        self.value = value


class NetworkFailureError(HederaError):
    """Transport-level error while talking to the network."""

    kind = "NetworkFailure"


class RejectedByNetworkError(HederaError):
    """The ledger returned an explicit non-success status."""

    kind = "RejectedByNetwork"

    def __init__(
        self,
        message: str,
        status: str,
        transaction_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            {"status": status, "transactionId": transaction_id},
        )
        self.status = status
        self.transaction_id = transaction_id


class TransactionTimedOutError(HederaError):
    """No receipt was observed before the deadline.

    The outcome is unknown: the transaction may still reach consensus. Callers
    should re-query the receipt by ``transaction_id`` instead of resubmitting.
    """

    kind = "TimedOut"

    def __init__(self, message: str, transaction_id: str) -> None:
        super().__init__(message, {"transactionId": transaction_id})
        self.transaction_id = transaction_id


class BatchCancelledError(HederaError):
    """The batch was cancelled before this item was dispatched."""

    kind = "Cancelled"


class InternalError(HederaError):
    """Unexpected failure while handling one item."""

    kind = "InternalError"
