"""In-memory ledger served through httpx.MockTransport.

Speaks the gateway protocol used by HttpNetworkTransport, decodes submitted
bytes with the real codec, verifies signatures and applies transfers and
account creations to in-memory balances.
"""

import base64
import json
from dataclasses import dataclass, field
from decimal import Decimal
from urllib.parse import unquote

import httpx

from hedera_node.core.codec import TransactionCodec
from hedera_node.core.keys import KeyManager
from hedera_node.errors import MalformedTransactionError
from hedera_node.models.keys import PublicKey
from hedera_node.models.ledger import AccountId, Amount
from hedera_node.models.transaction import (
    AccountCreateBody,
    CryptoTransferBody,
    SignedTransaction,
)

OPERATOR_ID = "0.0.1001"
RECIPIENT_ID = "0.0.1002"
GATEWAY_URL = "http://ledger.test"


@dataclass
class LedgerAccount:
    public_key: PublicKey
    balance: int  # tinybars


@dataclass
class FakeLedger:
    """Fake network.

    Knobs:
        finalize: When False, receipts stay ``UNKNOWN`` forever
        precheck_override: Precheck code returned for every submission
        receipt_failures: Number of receipt queries answered with HTTP 503
    """

    network: str = "testnet"
    finalize: bool = True
    precheck_override: str | None = None
    receipt_failures: int = 0
    codec: TransactionCodec = field(default_factory=TransactionCodec)
    accounts: dict[str, LedgerAccount] = field(default_factory=dict)
    receipts: dict[str, dict] = field(default_factory=dict)
    submissions: list[SignedTransaction] = field(default_factory=list)
    receipt_queries: int = 0
    next_account_num: int = 5000

    def add_account(self, account_id: str, public_key: PublicKey, balance_hbar: str | int = 0) -> None:
        self.accounts[account_id] = LedgerAccount(
            public_key=public_key,
            balance=Amount.from_hbar(balance_hbar).tinybars,
        )

    def balance_of(self, account_id: str) -> Decimal:
        return Amount(self.accounts[account_id].balance).to_hbar()

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        parts = unquote(request.url.path).strip("/").split("/")
        if len(parts) < 4 or parts[:2] != ["api", "v1"] or parts[2] != self.network:
            return httpx.Response(404, json={"detail": "unknown route"})

        if request.method == "POST" and parts[3] == "transactions":
            payload = json.loads(request.content)
            return httpx.Response(200, json={"precheckCode": self._submit(payload["transaction"])})

        if request.method == "GET" and parts[3] == "receipts" and len(parts) == 5:
            return self._receipt(parts[4])

        return httpx.Response(404, json={"detail": "unknown route"})

    def _submit(self, encoded: str) -> str:
        if self.precheck_override is not None:
            return self.precheck_override

        try:
            transaction = self.codec.decode(base64.b64decode(encoded))
        except MalformedTransactionError:
            return "INVALID_TRANSACTION"
        if not isinstance(transaction, SignedTransaction):
            return "INVALID_SIGNATURE"

        body = transaction.body
        message = self.codec.body_bytes(body)
        for pair in transaction.signatures:
            if not KeyManager.verify(pair.public_key, message, pair.signature):
                return "INVALID_SIGNATURE"

        payer = self.accounts.get(str(body.payer))
        if payer is None:
            return "PAYER_ACCOUNT_NOT_FOUND"
        if not transaction.is_signed_by(payer.public_key):
            return "INVALID_SIGNATURE"

        tx_id = str(body.transaction_id)
        if tx_id in self.receipts:
            return "DUPLICATE_TRANSACTION"

        self.submissions.append(transaction)
        self.receipts[tx_id] = self._apply(transaction)
        return "OK"

    def _apply(self, transaction: SignedTransaction) -> dict:
        data = transaction.body.data
        payer_id = str(transaction.body.payer)

        if isinstance(data, AccountCreateBody):
            payer = self.accounts[payer_id]
            if payer.balance < data.initial_balance.tinybars:
                return {"status": "INSUFFICIENT_PAYER_BALANCE", "accountId": None}
            payer.balance -= data.initial_balance.tinybars
            new_id = str(AccountId(0, 0, self.next_account_num))
            self.next_account_num += 1
            self.accounts[new_id] = LedgerAccount(data.key, data.initial_balance.tinybars)
            return {"status": "SUCCESS", "accountId": new_id}

        assert isinstance(data, CryptoTransferBody)
        for entry in data.transfers:
            account = self.accounts.get(str(entry.account_id))
            if account is None:
                return {"status": "INVALID_ACCOUNT_ID", "accountId": None}
            if entry.amount.tinybars < 0:
                if not transaction.is_signed_by(account.public_key):
                    return {"status": "INVALID_SIGNATURE", "accountId": None}
                if account.balance + entry.amount.tinybars < 0:
                    return {"status": "INSUFFICIENT_ACCOUNT_BALANCE", "accountId": None}
        for entry in data.transfers:
            self.accounts[str(entry.account_id)].balance += entry.amount.tinybars
        return {"status": "SUCCESS", "accountId": None}

    def _receipt(self, transaction_id: str) -> httpx.Response:
        self.receipt_queries += 1
        if self.receipt_failures > 0:
            self.receipt_failures -= 1
            return httpx.Response(503, json={"detail": "busy"})

        receipt = self.receipts.get(transaction_id)
        if receipt is None:
            return httpx.Response(404, json={"detail": "receipt not found"})
        if not self.finalize:
            return httpx.Response(200, json={"status": "UNKNOWN", "accountId": None})
        return httpx.Response(200, json=receipt)
