"""Transaction builder.

Constructs typed, unsigned transactions stamped with the payer's
transaction id, a target node and the fee/duration limits.
"""

import random
from collections.abc import Iterable, Sequence

import structlog

from hedera_node.errors import ValidationError
from hedera_node.models.keys import PublicKey
from hedera_node.models.ledger import AccountId, Amount, TransactionId
from hedera_node.models.transaction import (
    AccountAmount,
    AccountCreateBody,
    CryptoTransferBody,
    TransactionBody,
    TransactionData,
    UnsignedTransaction,
)

logger = structlog.get_logger()


class TransactionBuilder:
    """Builds unsigned account-create and transfer transactions.

    Pure: no network I/O and no key material.

    Example usage:
        builder = TransactionBuilder(
            payer=AccountId.parse("0.0.1001"),
            node_account_ids=[AccountId.parse("0.0.3")],
            max_transaction_fee=Amount.from_hbar(2),
        )
        tx = builder.build_transfer(sender, recipient, Amount.from_hbar("1.5"))
    """

    def __init__(
        self,
        payer: AccountId,
        node_account_ids: Sequence[AccountId],
        max_transaction_fee: Amount,
        valid_duration: int = 120,
        memo: str = "",
    ) -> None:
        """Initialize the builder.

        Args:
            payer: Account paying fees; owns the generated transaction ids
            node_account_ids: Nodes a transaction may be addressed to
            max_transaction_fee: Fee ceiling stamped on every transaction
            valid_duration: Seconds the transaction stays valid after its start
            memo: Default memo

        Raises:
            ValidationError: If no node is configured
        """
        if not node_account_ids:
            raise ValidationError("At least one node account ID is required")
        self.payer = payer
        self.node_account_ids = tuple(node_account_ids)
        self.max_transaction_fee = max_transaction_fee
        self.valid_duration = valid_duration
        self.memo = memo

    def build_account_create(
        self,
        public_key: PublicKey,
        initial_balance: Amount,
        memo: str | None = None,
    ) -> UnsignedTransaction:
        """Build an account-create transaction.

        Raises:
            ValidationError: If ``initial_balance`` is negative
        """
        if initial_balance.tinybars < 0:
            raise ValidationError(
                "Initial balance must not be negative",
                field="initialBalance",
            )
        data = AccountCreateBody(key=public_key, initial_balance=initial_balance)
        return self._build(data, memo)

    def build_transfer(
        self,
        sender: AccountId,
        recipient: AccountId,
        amount: Amount,
        memo: str | None = None,
    ) -> UnsignedTransaction:
        """Build a two-party HBAR transfer.

        The sender is debited ``-amount`` and the recipient credited
        ``+amount``.

        Raises:
            ValidationError: If ``amount <= 0`` or sender equals recipient
        """
        if amount.tinybars <= 0:
            raise ValidationError("Transfer amount must be greater than zero", field="amount")
        if sender == recipient:
            raise ValidationError(
                "Sender and recipient must be different accounts",
                field="recipientId",
            )
        return self.build_multi_transfer([(sender, -amount), (recipient, amount)], memo)

    def build_multi_transfer(
        self,
        transfers: Iterable[tuple[AccountId, Amount]],
        memo: str | None = None,
    ) -> UnsignedTransaction:
        """Build a transfer between any number of accounts.

        Raises:
            ValidationError: If the signed amounts do not sum to zero, an
                account repeats, or an entry is zero
        """
        entries = tuple(
            AccountAmount(account_id=account_id, amount=amount)
            for account_id, amount in transfers
        )
        return self._build(CryptoTransferBody(transfers=entries), memo)

    def _build(self, data: TransactionData, memo: str | None) -> UnsignedTransaction:
        body = TransactionBody(
            transaction_id=TransactionId.generate(self.payer),
            node_account_id=random.choice(self.node_account_ids),
            max_transaction_fee=self.max_transaction_fee,
            valid_duration=self.valid_duration,
            data=data,
            memo=self.memo if memo is None else memo,
        )

        logger.debug(
            "transaction_built",
            transaction_id=str(body.transaction_id),
            node_id=str(body.node_account_id),
            kind=type(data).__name__,
        )

        return UnsignedTransaction(body)
