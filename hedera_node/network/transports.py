"""Network transport adapters.

The ledger network is a black box reached through a gateway that accepts
signed transaction bytes and answers receipt queries.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import httpx
import structlog

from hedera_node.errors import NetworkFailureError

logger = structlog.get_logger()


@dataclass(frozen=True)
class PrecheckResponse:
    """Immediate answer to a submission (``OK`` means accepted for consensus)."""

    code: str


@dataclass(frozen=True)
class ReceiptResponse:
    """Receipt as reported by the network."""

    status: str
    account_id: str | None = None


class NetworkTransport(ABC):
    """Abstract base class for network transports.

    A transport may be shared by concurrent submissions; implementations
    must not keep per-submission state.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection pool."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection pool."""
        pass

    @abstractmethod
    async def submit(self, network: str, payload: bytes) -> PrecheckResponse:
        """Send signed transaction bytes.

        Raises:
            NetworkFailureError: If the gateway cannot be reached or answers
                with a transport-level error
        """
        pass

    @abstractmethod
    async def get_receipt(self, network: str, transaction_id: str) -> ReceiptResponse | None:
        """Fetch a receipt; ``None`` while the network has none yet.

        Raises:
            NetworkFailureError: On transport-level errors
        """
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if transport is connected."""
        pass

    async def __aenter__(self) -> "NetworkTransport":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()


class HttpNetworkTransport(NetworkTransport):
    """Transport for an HTTP submission gateway.

    Endpoints:
        POST /api/v1/{network}/transactions      {"transaction": <base64>}
            -> {"precheckCode": "OK"}
        GET  /api/v1/{network}/receipts/{txId}
            -> {"status": "SUCCESS", "accountId": "0.0.1234" | null}
            -> 404 while no receipt exists
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize HTTP transport.

        Args:
            url: Gateway base URL
            headers: HTTP headers (for auth)
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.url = url
        self.headers = headers or {}
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Initialize the pooled HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info("network_transport_connected", url=self.url)

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("network_transport_disconnected")

    async def submit(self, network: str, payload: bytes) -> PrecheckResponse:
        """Send transaction bytes via HTTP POST."""
        data = await self._request(
            "POST",
            f"/api/v1/{network}/transactions",
            json={"transaction": base64.b64encode(payload).decode("ascii")},
        )
        code = data.get("precheckCode") if data else None
        if not isinstance(code, str) or not code:
            raise NetworkFailureError("Gateway response is missing 'precheckCode'")
        return PrecheckResponse(code=code)

    async def get_receipt(self, network: str, transaction_id: str) -> ReceiptResponse | None:
        """Fetch a receipt via HTTP GET."""
        data = await self._request("GET", f"/api/v1/{network}/receipts/{transaction_id}")
        if data is None:
            return None
        status = data.get("status")
        if not isinstance(status, str) or not status:
            raise NetworkFailureError("Gateway receipt is missing 'status'")
        account_id = data.get("accountId")
        return ReceiptResponse(status=status, account_id=account_id or None)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any] | None:
        if self._client is None:
            raise NetworkFailureError("Transport is not connected")

        try:
            response = await self._client.request(method, path, **kwargs)
            if response.status_code == 404 and method == "GET":
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkFailureError(
                f"Gateway returned HTTP {e.response.status_code}",
                {"httpStatus": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            raise NetworkFailureError(f"Request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise NetworkFailureError("Gateway response is not valid JSON") from e

        if not isinstance(data, dict):
            raise NetworkFailureError("Gateway response must be a JSON object")
        return data

    @property
    def is_connected(self) -> bool:
        """Check if client is initialized."""
        return self._client is not None


def create_transport(
    transport_type: str,
    **kwargs: Any,
) -> NetworkTransport:
    """Factory function to create appropriate transport.

    Args:
        transport_type: Type of transport (only "http" today)
        **kwargs: Transport-specific arguments

    Returns:
        Configured transport instance

    Raises:
        ValueError: If transport type is unknown
    """
    if transport_type == "http":
        return HttpNetworkTransport(
            url=kwargs["url"],
            headers=kwargs.get("headers"),
            timeout=kwargs.get("timeout", 10.0),
            transport=kwargs.get("transport"),
        )
    raise ValueError(f"Unknown transport type: {transport_type}")
