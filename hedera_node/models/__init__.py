"""Data models - Ledger values, transactions, requests and node definitions."""

from hedera_node.models.keys import KeyAlgorithm, PublicKey
from hedera_node.models.ledger import AccountId, Amount, ResponseCode, TransactionId
from hedera_node.models.node import NodeCategory, NodeDefinition, NodeInput, NodeOutput
from hedera_node.models.requests import BatchRecord, OperationRequest, TransactionFormat, parse_request
from hedera_node.models.transaction import (
    SignedTransaction,
    SubmissionResult,
    SubmissionState,
    TransactionBody,
    UnsignedTransaction,
)

__all__ = [
    "AccountId",
    "Amount",
    "BatchRecord",
    "KeyAlgorithm",
    "NodeCategory",
    "NodeDefinition",
    "NodeInput",
    "NodeOutput",
    "OperationRequest",
    "PublicKey",
    "ResponseCode",
    "SignedTransaction",
    "SubmissionResult",
    "SubmissionState",
    "TransactionBody",
    "TransactionFormat",
    "TransactionId",
    "UnsignedTransaction",
    "parse_request",
]
