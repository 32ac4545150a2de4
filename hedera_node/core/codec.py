"""Canonical transaction codec.

Wire form is canonical UTF-8 JSON (sorted keys, compact separators):

    {
      "version": 1,
      "body":    { "kind": "cryptoTransfer" | "cryptoCreateAccount", ... },
      "sigMap":  [ { "pubKey": <DER hex>, "signature": <hex> }, ... ]
    }

Signatures cover ``body_bytes(body)``, the canonical encoding of the body
alone. The schema is enforced with pydantic models so that anything decoded
has exactly the shape encode() produces.
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hedera_node.errors import MalformedKeyError, MalformedTransactionError, ValidationError
from hedera_node.models.keys import PublicKey
from hedera_node.models.ledger import AccountId, Amount, TransactionId
from hedera_node.models.requests import TransactionFormat
from hedera_node.models.transaction import (
    AccountAmount,
    AccountCreateBody,
    CryptoTransferBody,
    SignaturePair,
    SignedTransaction,
    Transaction,
    TransactionBody,
    UnsignedTransaction,
)

logger = structlog.get_logger()

WIRE_VERSION = 1


class _WireModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class _WireAccountAmount(_WireModel):
    account_id: str
    amount: int


class _WireBodyBase(_WireModel):
    transaction_id: str
    node_account_id: str
    max_transaction_fee: int
    transaction_valid_duration: int
    memo: str


class _WireCryptoTransfer(_WireBodyBase):
    kind: Literal["cryptoTransfer"]
    transfers: list[_WireAccountAmount]


class _WireAccountCreate(_WireBodyBase):
    kind: Literal["cryptoCreateAccount"]
    key: str
    initial_balance: int
    auto_renew_period: int


_WireBody = Annotated[
    Union[_WireCryptoTransfer, _WireAccountCreate],
    Field(discriminator="kind"),
]


class _WireSignaturePair(_WireModel):
    pub_key: str
    signature: str


class _WireTransaction(_WireModel):
    version: Literal[1]
    body: _WireBody
    sig_map: list[_WireSignaturePair]


def _canonical_json(model: BaseModel) -> bytes:
    data = model.model_dump(by_alias=True, mode="json")
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class TransactionCodec:
    """Encodes and decodes transactions to canonical bytes.

    Stateless - can be shared across requests.

    Example usage:
        codec = TransactionCodec()
        raw = codec.encode(tx)
        assert codec.decode(raw) == tx
    """

    def encode(self, transaction: Transaction) -> bytes:
        """Serialize an unsigned or signed transaction."""
        wire = _WireTransaction(
            version=WIRE_VERSION,
            body=self._body_to_wire(transaction.body),
            sig_map=[
                _WireSignaturePair(
                    pub_key=str(pair.public_key),
                    signature=pair.signature.hex(),
                )
                for pair in transaction.signatures
            ],
        )
        return _canonical_json(wire)

    def body_bytes(self, body: TransactionBody) -> bytes:
        """Canonical bytes of the body alone; this is what gets signed."""
        return _canonical_json(self._body_to_wire(body))

    def decode(self, data: bytes) -> Transaction:
        """Parse transaction bytes.

        Returns:
            SignedTransaction if the bytes carry signatures, otherwise
            UnsignedTransaction

        Raises:
            MalformedTransactionError: If the bytes are truncated or do not
                describe a valid transaction
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise MalformedTransactionError("Transaction must be bytes")
        if not data:
            raise MalformedTransactionError("Transaction bytes are empty")

        try:
            wire = _WireTransaction.model_validate_json(bytes(data))
        except pydantic.ValidationError as e:
            raise MalformedTransactionError(
                f"Transaction bytes are not a valid transaction ({e.error_count()} error(s))"
            ) from e

        try:
            body = self._body_from_wire(wire.body)
            signatures = tuple(
                SignaturePair(
                    public_key=PublicKey.from_string(pair.pub_key),
                    signature=bytes.fromhex(pair.signature),
                )
                for pair in wire.sig_map
            )
        except (ValidationError, MalformedKeyError, ValueError) as e:
            raise MalformedTransactionError(f"Invalid transaction contents: {e}") from e

        if len({pair.public_key for pair in signatures}) != len(signatures):
            raise MalformedTransactionError("Transaction carries two signatures from the same key")

        if signatures:
            return SignedTransaction(body, signatures)
        return UnsignedTransaction(body)

    def decode_external(self, payload: Any, transaction_format: TransactionFormat | str) -> Transaction:
        """Normalize an external representation and decode it."""
        return self.decode(normalize_transaction_payload(payload, transaction_format))

    def _body_to_wire(self, body: TransactionBody) -> _WireCryptoTransfer | _WireAccountCreate:
        common = {
            "transaction_id": str(body.transaction_id),
            "node_account_id": str(body.node_account_id),
            "max_transaction_fee": body.max_transaction_fee.tinybars,
            "transaction_valid_duration": body.valid_duration,
            "memo": body.memo,
        }
        data = body.data
        if isinstance(data, CryptoTransferBody):
            return _WireCryptoTransfer(
                kind="cryptoTransfer",
                transfers=[
                    _WireAccountAmount(
                        account_id=str(entry.account_id),
                        amount=entry.amount.tinybars,
                    )
                    for entry in data.transfers
                ],
                **common,
            )
        return _WireAccountCreate(
            kind="cryptoCreateAccount",
            key=str(data.key),
            initial_balance=data.initial_balance.tinybars,
            auto_renew_period=data.auto_renew_period,
            **common,
        )

    def _body_from_wire(self, wire: _WireCryptoTransfer | _WireAccountCreate) -> TransactionBody:
        if isinstance(wire, _WireCryptoTransfer):
            data = CryptoTransferBody(
                transfers=tuple(
                    AccountAmount(
                        account_id=AccountId.parse(entry.account_id),
                        amount=Amount(entry.amount),
                    )
                    for entry in wire.transfers
                )
            )
        else:
            data = AccountCreateBody(
                key=PublicKey.from_string(wire.key),
                initial_balance=Amount(wire.initial_balance),
                auto_renew_period=wire.auto_renew_period,
            )
        return TransactionBody(
            transaction_id=TransactionId.parse(wire.transaction_id),
            node_account_id=AccountId.parse(wire.node_account_id),
            max_transaction_fee=Amount(wire.max_transaction_fee),
            valid_duration=wire.transaction_valid_duration,
            data=data,
            memo=wire.memo,
        )


def normalize_transaction_payload(payload: Any, transaction_format: TransactionFormat | str) -> bytes:
    """Map an accepted external representation to canonical bytes.

    Upstream producers serialize binary buffers either as base64 text or as
    a JSON ``{"type": "Buffer", "data": [...]}`` object. Both end up as the
    same byte sequence here; nothing past this point sees the difference.

    Raises:
        MalformedTransactionError: If the payload does not match its format
        ValidationError: If the format is unknown
    """
    try:
        fmt = TransactionFormat(transaction_format)
    except ValueError as e:
        raise ValidationError(
            f"Unsupported transaction format: {transaction_format!r}",
            field="transactionFormat",
        ) from e

    if fmt == TransactionFormat.BASE64:
        return _from_base64(payload)
    return _from_buffer_object(payload)


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_buffer_object(data: bytes) -> dict[str, Any]:
    """The JSON shape Node.js gives a serialized Buffer."""
    return {"type": "Buffer", "data": list(data)}


def _from_base64(payload: Any) -> bytes:
    if not isinstance(payload, str):
        raise MalformedTransactionError("Base64 transaction must be a string")
    text = "".join(payload.split())
    if not text:
        raise MalformedTransactionError("Transaction is empty")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedTransactionError("Transaction is not valid base64") from e


def _from_buffer_object(payload: Any) -> bytes:
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedTransactionError("Buffer object is not valid JSON") from e

    if not isinstance(payload, Mapping):
        raise MalformedTransactionError("Buffer object must be an object with a 'data' array")
    if payload.get("type", "Buffer") != "Buffer":
        raise MalformedTransactionError(f"Unexpected buffer type: {payload.get('type')!r}")

    data = payload.get("data")
    if not isinstance(data, list) or not data:
        raise MalformedTransactionError("Buffer object 'data' must be a non-empty array")
    for value in data:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
            raise MalformedTransactionError("Buffer object 'data' must contain bytes (0-255)")
    return bytes(data)
