"""Tests for operation request parsing and result records."""

from decimal import Decimal

import pytest
from pydantic import SecretStr

from hedera_node.errors import RejectedByNetworkError, UnsupportedOperationError, ValidationError
from hedera_node.models.keys import KeyAlgorithm
from hedera_node.models.requests import (
    AccountCreateRequest,
    AccountCreateResult,
    AccountTransferRequest,
    BatchRecord,
    TransactionFormat,
    TransactionSignAndSubmitRequest,
    TransferResult,
    parse_request,
)


class TestParseRequest:
    """Tests for parse_request."""

    def test_transfer(self):
        """Test that a transfer item parses into its request model."""
        request = parse_request(
            {"resource": "account", "operation": "transfer", "recipientId": "0.0.2002", "amount": 1.5}
        )

        assert isinstance(request, AccountTransferRequest)
        assert request.recipient_id == "0.0.2002"
        assert request.amount == Decimal("1.5")

    def test_float_amount_keeps_decimal_repr(self):
        """Test that float amounts keep their shortest decimal form."""
        request = parse_request(
            {"resource": "account", "operation": "transfer", "recipientId": "0.0.2", "amount": 0.1}
        )

        assert request.amount == Decimal("0.1")

    def test_defaults_to_account_resource(self):
        """Test that items without a resource default to account."""
        request = parse_request({"operation": "create"})

        assert isinstance(request, AccountCreateRequest)
        assert request.initial_balance == 0
        assert request.key_algorithm is None

    def test_operation_alias(self):
        """Test that accountOperation works as an operation alias."""
        request = parse_request({"resource": "account", "accountOperation": "create", "keyAlgorithm": "ecdsa_secp256k1"})

        assert request.key_algorithm == KeyAlgorithm.ECDSA_SECP256K1

    def test_transaction_operation_alias(self):
        """Test that transactionOperation works as an operation alias."""
        request = parse_request(
            {"resource": "transaction", "transactionOperation": "signAndSubmit", "transaction": "AAAA"}
        )

        assert isinstance(request, TransactionSignAndSubmitRequest)
        assert request.transaction_format == TransactionFormat.BASE64

    def test_unknown_parameters_ignored(self):
        """Test that unknown parameters are ignored."""
        request = parse_request({"operation": "create", "somethingElse": 1})

        assert isinstance(request, AccountCreateRequest)

    @pytest.mark.parametrize(
        "item,value",
        [
            ({"resource": "token", "operation": "create"}, "token"),
            ({"resource": "account", "operation": "delete"}, "delete"),
            ({"resource": "account"}, "None"),
            ({"resource": "transaction", "operation": "transfer"}, "transfer"),
        ],
    )
    def test_unsupported(self, item: dict, value: str):
        """Test that unknown resources and operations are unsupported."""
        with pytest.raises(UnsupportedOperationError) as exc_info:
            parse_request(item)

        assert exc_info.value.value == value

    @pytest.mark.parametrize(
        "item,field",
        [
            ({"operation": "transfer", "amount": 1}, "recipientId"),
            ({"operation": "transfer", "recipientId": "0.0.2", "amount": True}, "amount"),
            ({"operation": "transfer", "recipientId": "0.0.2", "amount": "abc"}, "amount"),
            ({"operation": "transfer", "recipientId": "0.0.2", "amount": float("nan")}, "amount"),
            ({"operation": "create", "keyAlgorithm": "rsa"}, "keyAlgorithm"),
            ({"resource": "transaction", "operation": "sign"}, "transaction"),
        ],
    )
    def test_invalid_parameters(self, item: dict, field: str):
        """Test that bad parameters raise ValidationError with the field."""
        with pytest.raises(ValidationError) as exc_info:
            parse_request(item)

        assert exc_info.value.field == field

    def test_non_dict_item(self):
        """Test that an item must be a mapping."""
        with pytest.raises(ValidationError):
            parse_request(["account"])  # type: ignore[arg-type]


class TestResultRecords:
    """Tests for result and batch records."""

    def test_secret_masked_by_default(self):
        """Test that secrets are masked unless revealed."""
        result = AccountCreateResult(
            new_account_id="0.0.5000",
            new_account_public_key="302a",
            new_account_private_key=SecretStr("302e-secret"),
            transaction_id="0.0.1001@1.000000001",
        )

        assert "302e-secret" not in str(result.to_record())
        assert "302e-secret" not in repr(result)
        assert result.to_record(reveal_secrets=True)["newAccountPrivateKey"] == "302e-secret"

    def test_batch_record_for_result(self):
        """Test that a success record renders its payload."""
        record = BatchRecord(index=0, result=TransferResult(status="SUCCESS", transaction_id="x"))

        assert not record.is_error
        assert record.to_json() == {"status": "SUCCESS", "transactionId": "x"}

    def test_batch_record_for_error_keeps_kind(self):
        """Test that an error record keeps the error kind."""
        error = RejectedByNetworkError("Account creation failed: FAIL", status="FAIL", transaction_id="x")
        record = BatchRecord(index=3, error=error)

        assert record.is_error
        assert record.to_json() == {
            "error": "Account creation failed: FAIL",
            "errorKind": "RejectedByNetwork",
            "status": "FAIL",
            "transactionId": "x",
        }
