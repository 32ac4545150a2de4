"""Transaction models.

Typed, immutable transaction payloads and submission outcomes.
Serialization lives in hedera_node.core.codec.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from hedera_node.errors import ValidationError
from hedera_node.models.keys import PublicKey
from hedera_node.models.ledger import AccountId, Amount, TransactionId

MAX_MEMO_BYTES = 100
DEFAULT_AUTO_RENEW_PERIOD = 7_776_000  # 90 days


@dataclass(frozen=True)
class AccountAmount:
    """One signed entry of a transfer list (negative = debit)."""

    account_id: AccountId
    amount: Amount


@dataclass(frozen=True)
class CryptoTransferBody:
    """HBAR transfer between two or more accounts.

    Invariants: at least two entries, no account repeated, no zero entries,
    and the signed amounts sum to exactly zero.
    """

    transfers: tuple[AccountAmount, ...]

    def __post_init__(self) -> None:
        if len(self.transfers) < 2:
            raise ValidationError("A transfer needs at least two parties", field="transfers")
        accounts = [entry.account_id for entry in self.transfers]
        if len(set(accounts)) != len(accounts):
            raise ValidationError("An account appears twice in the transfer list", field="transfers")
        if any(entry.amount.tinybars == 0 for entry in self.transfers):
            raise ValidationError("Transfer entries must be non-zero", field="transfers")
        total = sum(entry.amount.tinybars for entry in self.transfers)
        if total != 0:
            raise ValidationError(
                f"Transfer amounts must sum to zero (sum is {total} tinybars)",
                field="transfers",
            )


@dataclass(frozen=True)
class AccountCreateBody:
    """New account controlled by ``key`` and funded with ``initial_balance``."""

    key: PublicKey
    initial_balance: Amount
    auto_renew_period: int = DEFAULT_AUTO_RENEW_PERIOD

    def __post_init__(self) -> None:
        if self.initial_balance.tinybars < 0:
            raise ValidationError("Initial balance must not be negative", field="initialBalance")
        if self.auto_renew_period <= 0:
            raise ValidationError("Auto renew period must be positive", field="autoRenewPeriod")


TransactionData = Union[AccountCreateBody, CryptoTransferBody]


@dataclass(frozen=True)
class TransactionBody:
    """Fields common to every transaction plus the operation-specific data."""

    transaction_id: TransactionId
    node_account_id: AccountId
    max_transaction_fee: Amount
    valid_duration: int
    data: TransactionData
    memo: str = ""

    def __post_init__(self) -> None:
        if len(self.memo.encode("utf-8")) > MAX_MEMO_BYTES:
            raise ValidationError(f"Memo exceeds {MAX_MEMO_BYTES} bytes", field="memo")
        if self.max_transaction_fee.tinybars < 0:
            raise ValidationError("Max transaction fee must not be negative", field="maxTransactionFee")
        if self.valid_duration <= 0:
            raise ValidationError("Valid duration must be positive", field="validDuration")

    @property
    def payer(self) -> AccountId:
        return self.transaction_id.account_id


@dataclass(frozen=True)
class SignaturePair:
    """Signature over the body bytes together with the signing public key."""

    public_key: PublicKey
    signature: bytes


@dataclass(frozen=True)
class UnsignedTransaction:
    """Built transaction that carries no signatures yet."""

    body: TransactionBody

    @property
    def signatures(self) -> tuple[SignaturePair, ...]:
        return ()

    def with_signature(self, pair: SignaturePair) -> "SignedTransaction":
        return SignedTransaction(self.body, (pair,))


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction body plus one or more signatures.

    Whether the set covers every key the ledger requires can only be checked
    by the network.
    """

    body: TransactionBody
    signatures: tuple[SignaturePair, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.signatures:
            raise ValidationError("A signed transaction needs at least one signature")

    def is_signed_by(self, public_key: PublicKey) -> bool:
        return any(pair.public_key == public_key for pair in self.signatures)

    def with_signature(self, pair: SignaturePair) -> "SignedTransaction":
        """Add a signature; a key that already signed is not added twice."""
        if self.is_signed_by(pair.public_key):
            return self
        return SignedTransaction(self.body, self.signatures + (pair,))


Transaction = Union[UnsignedTransaction, SignedTransaction]


class SubmissionState(str, Enum):
    """Lifecycle of a transaction inside the submission client."""

    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class SubmissionResult:
    """Classified outcome of one submission.

    ``status`` is the network's status string verbatim. It is ``None`` only
    when the state is TIMED_OUT and no final receipt was seen.
    """

    state: SubmissionState
    transaction_id: TransactionId
    node_id: AccountId
    transaction_hash: str
    status: str | None = None
    account_id: AccountId | None = None

    @property
    def succeeded(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED
