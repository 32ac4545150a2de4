"""Core layer - Key handling, transaction building, encoding and submission."""

from hedera_node.core.builder import TransactionBuilder
from hedera_node.core.codec import TransactionCodec, normalize_transaction_payload
from hedera_node.core.dispatcher import OperationDispatcher, Operator, build_dispatcher
from hedera_node.core.keys import KeyManager, KeyPair
from hedera_node.core.submission import SubmissionClient

__all__ = [
    "KeyManager",
    "KeyPair",
    "OperationDispatcher",
    "Operator",
    "SubmissionClient",
    "TransactionBuilder",
    "TransactionCodec",
    "build_dispatcher",
    "normalize_transaction_payload",
]
