"""Operation request and result models.

One pydantic model per (resource, operation) pair. Field names follow the
host platform's camelCase parameter names through aliases.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Union

import pydantic
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel

from hedera_node.errors import HederaError, UnsupportedOperationError, ValidationError
from hedera_node.models.keys import KeyAlgorithm


class ResourceKind(str, Enum):
    ACCOUNT = "account"
    TRANSACTION = "transaction"


class TransactionFormat(str, Enum):
    """External representations accepted for transaction payloads."""

    BASE64 = "base64"
    BUFFER_OBJECT = "bufferObject"


def _to_decimal(value: Any) -> Any:
    # Floats go through their shortest repr so 1.1 stays exactly 1.1
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


HbarValue = Annotated[Decimal, BeforeValidator(_to_decimal)]


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class AccountCreateRequest(_RequestModel):
    """Create a new account funded from the operator."""

    resource: Literal["account"] = "account"
    operation: Literal["create"] = "create"
    initial_balance: HbarValue = Field(default=Decimal(0), ge=0, allow_inf_nan=False)
    key_algorithm: KeyAlgorithm | None = None


class AccountTransferRequest(_RequestModel):
    """Transfer HBAR from the operator to ``recipient_id``."""

    resource: Literal["account"] = "account"
    operation: Literal["transfer"] = "transfer"
    recipient_id: str = Field(min_length=1)
    amount: HbarValue = Field(gt=0, allow_inf_nan=False)


class _TransactionPayloadRequest(_RequestModel):
    resource: Literal["transaction"] = "transaction"
    transaction_format: TransactionFormat = TransactionFormat.BASE64
    transaction: Any


class TransactionSignRequest(_TransactionPayloadRequest):
    """Add the operator's signature to a pre-built transaction."""

    operation: Literal["sign"] = "sign"


class TransactionSubmitRequest(_TransactionPayloadRequest):
    """Submit an already signed transaction."""

    operation: Literal["submit"] = "submit"


class TransactionSignAndSubmitRequest(_TransactionPayloadRequest):
    """Sign with the operator, then submit."""

    operation: Literal["signAndSubmit"] = "signAndSubmit"


OperationRequest = Union[
    AccountCreateRequest,
    AccountTransferRequest,
    TransactionSignRequest,
    TransactionSubmitRequest,
    TransactionSignAndSubmitRequest,
]

REQUEST_TYPES: dict[tuple[str, str], type[_RequestModel]] = {
    ("account", "create"): AccountCreateRequest,
    ("account", "transfer"): AccountTransferRequest,
    ("transaction", "sign"): TransactionSignRequest,
    ("transaction", "submit"): TransactionSubmitRequest,
    ("transaction", "signAndSubmit"): TransactionSignAndSubmitRequest,
}

# Per-resource operation parameter names used by the host platform
_OPERATION_ALIASES = {
    "account": "accountOperation",
    "transaction": "transactionOperation",
}


def parse_request(item: dict[str, Any]) -> OperationRequest:
    """Resolve and validate one batch item.

    Args:
        item: Raw parameters for one input item

    Returns:
        The typed request for the item's resource and operation

    Raises:
        UnsupportedOperationError: If resource or operation is unknown
        ValidationError: If the parameters are invalid
    """
    if not isinstance(item, dict):
        raise ValidationError("Request item must be an object")

    resource = item.get("resource", ResourceKind.ACCOUNT.value)
    if not isinstance(resource, str) or resource not in _OPERATION_ALIASES:
        raise UnsupportedOperationError(f"Unsupported resource: {resource}", value=str(resource))

    operation = item.get("operation", item.get(_OPERATION_ALIASES[resource]))
    request_type = REQUEST_TYPES.get((resource, operation)) if isinstance(operation, str) else None
    if request_type is None:
        raise UnsupportedOperationError(
            f"Unsupported {resource} operation: {operation}",
            value=str(operation),
        )

    try:
        return request_type.model_validate({**item, "resource": resource, "operation": operation})
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(f"Invalid parameter '{field}': {first['msg']}", field=field) from e


class ResultModel(BaseModel):
    """Base for per-operation success payloads.

    Secret fields are SecretStr and stay masked unless the record is rendered
    with ``reveal_secrets=True``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_record(self, reveal_secrets: bool = False) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        if reveal_secrets:
            for name, info in type(self).model_fields.items():
                value = getattr(self, name)
                if isinstance(value, SecretStr):
                    data[info.alias or name] = value.get_secret_value()
        return data


class AccountCreateResult(ResultModel):
    new_account_id: str
    new_account_public_key: str
    new_account_private_key: SecretStr | None = None
    transaction_id: str


class TransferResult(ResultModel):
    status: str
    transaction_id: str


class SignResult(ResultModel):
    signed_transaction: str


class SubmitResult(ResultModel):
    transaction_id: str
    node_id: str
    transaction_hash: str
    status: str


class SignAndSubmitResult(SubmitResult):
    signed_transaction: str


@dataclass(frozen=True)
class BatchRecord:
    """Result for one batch item: either a payload or an error."""

    index: int
    result: ResultModel | None = None
    error: HederaError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_json(self, reveal_secrets: bool = False) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_record()
        if self.result is None:
            return {}
        return self.result.to_record(reveal_secrets=reveal_secrets)
