"""Ledger value types.

Runtime models shared by the builder, codec and submission client.
All types are immutable once constructed.
"""

import re
import threading
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from hedera_node.errors import ValidationError

TINYBARS_PER_HBAR = 100_000_000
HBAR_DECIMALS = 8

_INT64_MAX = 2**63 - 1
# Integer HBAR digits that fit the int64 tinybar range, as a Decimal.adjusted() bound.
_MAX_HBAR_DIGITS = 10
_ACCOUNT_ID_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")
_TRANSACTION_ID_PATTERN = re.compile(r"^(\d+\.\d+\.\d+)@(\d+)\.(\d{1,9})$")

_valid_start_lock = threading.Lock()
_last_valid_start_ns = 0


class ResponseCode(str, Enum):
    """Status codes returned by the network that the pipeline reacts to.

    Statuses outside this set are still surfaced verbatim as strings.
    """

    OK = "OK"
    SUCCESS = "SUCCESS"
    UNKNOWN = "UNKNOWN"
    RECEIPT_NOT_FOUND = "RECEIPT_NOT_FOUND"
    INSUFFICIENT_ACCOUNT_BALANCE = "INSUFFICIENT_ACCOUNT_BALANCE"
    INSUFFICIENT_PAYER_BALANCE = "INSUFFICIENT_PAYER_BALANCE"
    INSUFFICIENT_TX_FEE = "INSUFFICIENT_TX_FEE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_ACCOUNT_ID = "INVALID_ACCOUNT_ID"
    INVALID_TRANSACTION_START = "INVALID_TRANSACTION_START"
    PAYER_ACCOUNT_NOT_FOUND = "PAYER_ACCOUNT_NOT_FOUND"
    DUPLICATE_TRANSACTION = "DUPLICATE_TRANSACTION"
    TRANSACTION_EXPIRED = "TRANSACTION_EXPIRED"
    INVALID_ACCOUNT_AMOUNTS = "INVALID_ACCOUNT_AMOUNTS"

    @classmethod
    def is_pending(cls, status: str) -> bool:
        """Receipt statuses meaning consensus has not been reached yet."""
        return status in (cls.UNKNOWN.value, cls.RECEIPT_NOT_FOUND.value)


@dataclass(frozen=True, order=True)
class AccountId:
    """Ledger account identity (shard.realm.num)."""

    shard: int
    realm: int
    num: int

    def __post_init__(self) -> None:
        for part in (self.shard, self.realm, self.num):
            if isinstance(part, bool) or not isinstance(part, int):
                raise ValidationError("Account ID parts must be integers")
            if part < 0 or part > _INT64_MAX:
                raise ValidationError("Account ID parts must be non-negative int64 values")

    @classmethod
    def parse(cls, value: str, field: str | None = None) -> "AccountId":
        """Parse ``"shard.realm.num"``.

        Raises:
            ValidationError: If the string is not three non-negative integers
        """
        if not isinstance(value, str):
            raise ValidationError("Account ID must be a string", field=field)
        match = _ACCOUNT_ID_PATTERN.match(value.strip())
        if match is None:
            raise ValidationError(
                f"Invalid account ID: {value!r}. Expected 'shard.realm.num'",
                field=field,
            )
        shard, realm, num = (int(part) for part in match.groups())
        if max(shard, realm, num) > _INT64_MAX:
            raise ValidationError(f"Account ID out of range: {value!r}", field=field)
        return cls(shard, realm, num)

    def __str__(self) -> str:
        return f"{self.shard}.{self.realm}.{self.num}"


@dataclass(frozen=True, order=True)
class Amount:
    """HBAR amount held as integer tinybars."""

    tinybars: int

    def __post_init__(self) -> None:
        if isinstance(self.tinybars, bool) or not isinstance(self.tinybars, int):
            raise ValidationError("Amount must be an integer number of tinybars")
        if abs(self.tinybars) > _INT64_MAX:
            raise ValidationError("Amount exceeds the int64 tinybar range")

    @classmethod
    def from_hbar(cls, value: Any, field: str | None = None) -> "Amount":
        """Scale a decimal HBAR value to tinybars.

        Values with more than 8 fractional digits are rejected rather than
        truncated. Floats go through their shortest decimal representation,
        so ``1.1`` means exactly ``1.1`` HBAR.

        Raises:
            ValidationError: If the value is not a finite decimal with at most
                8 fractional digits
        """
        if isinstance(value, bool):
            raise ValidationError("Amount must be a number", field=field)
        if isinstance(value, Decimal):
            decimal_value = value
        elif isinstance(value, (int, float, str)):
            try:
                decimal_value = Decimal(str(value).strip())
            except InvalidOperation as e:
                raise ValidationError(f"Invalid amount: {value!r}", field=field) from e
        else:
            raise ValidationError("Amount must be a number", field=field)

        if not decimal_value.is_finite():
            raise ValidationError("Amount must be finite", field=field)

        # Fractional digits are counted without context arithmetic, which rounds.
        _, digits, exponent = decimal_value.as_tuple()
        while exponent < -HBAR_DECIMALS and digits and digits[-1] == 0:
            digits = digits[:-1]
            exponent += 1
        if digits and exponent < -HBAR_DECIMALS:
            raise ValidationError(
                f"Amount {value!r} has more than {HBAR_DECIMALS} decimal places",
                field=field,
            )
        if decimal_value and decimal_value.adjusted() > _MAX_HBAR_DIGITS:
            raise ValidationError(f"Amount {value!r} is out of range", field=field)

        tinybars = int(decimal_value.scaleb(HBAR_DECIMALS))
        if abs(tinybars) > _INT64_MAX:
            raise ValidationError(f"Amount {value!r} is out of range", field=field)
        return cls(tinybars)

    @classmethod
    def zero(cls) -> "Amount":
        return cls(0)

    def to_hbar(self) -> Decimal:
        return Decimal(self.tinybars).scaleb(-HBAR_DECIMALS)

    def __neg__(self) -> "Amount":
        return Amount(-self.tinybars)

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.tinybars + other.tinybars)

    def __str__(self) -> str:
        hbar = self.to_hbar().normalize()
        return f"{hbar:f} ℏ"


@dataclass(frozen=True, order=True)
class TransactionId:
    """Payer account plus valid-start timestamp."""

    account_id: AccountId
    valid_start_seconds: int
    valid_start_nanos: int

    def __post_init__(self) -> None:
        if self.valid_start_seconds < 0:
            raise ValidationError("Transaction valid start must be non-negative")
        if not 0 <= self.valid_start_nanos < 1_000_000_000:
            raise ValidationError("Transaction valid start nanos out of range")

    @classmethod
    def generate(cls, account_id: AccountId) -> "TransactionId":
        """New transaction id for ``account_id`` starting now.

        Valid-start timestamps are strictly increasing within the process, so
        two ids generated in the same clock tick never collide.
        """
        global _last_valid_start_ns
        with _valid_start_lock:
            now = max(time.time_ns(), _last_valid_start_ns + 1)
            _last_valid_start_ns = now
        return cls(account_id, now // 1_000_000_000, now % 1_000_000_000)

    @classmethod
    def parse(cls, value: str) -> "TransactionId":
        """Parse ``"0.0.1001@1700000000.000000123"``."""
        match = _TRANSACTION_ID_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if match is None:
            raise ValidationError(f"Invalid transaction ID: {value!r}")
        account, seconds, nanos = match.groups()
        return cls(AccountId.parse(account), int(seconds), int(nanos))

    def __str__(self) -> str:
        return f"{self.account_id}@{self.valid_start_seconds}.{self.valid_start_nanos:09d}"
