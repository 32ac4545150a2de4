"""Network access for transaction submission."""

from hedera_node.network.transports import (
    HttpNetworkTransport,
    NetworkTransport,
    PrecheckResponse,
    ReceiptResponse,
    create_transport,
)

__all__ = [
    "HttpNetworkTransport",
    "NetworkTransport",
    "PrecheckResponse",
    "ReceiptResponse",
    "create_transport",
]
