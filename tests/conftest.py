"""Pytest configuration and fixtures.

Provides common fixtures for all tests including:
- Test settings with fast receipt polling
- Operator keys and credentials
- A fake ledger behind an httpx mock transport
- Wired dispatcher and HTTP client
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hedera_node.config import Settings
from hedera_node.core.codec import TransactionCodec
from hedera_node.core.dispatcher import OperationDispatcher, Operator, build_dispatcher
from hedera_node.core.keys import KeyManager, KeyPair
from hedera_node.models.ledger import AccountId
from hedera_node.network.transports import HttpNetworkTransport
from hedera_node.nodes.hedera import HederaNode
from hedera_node.nodes.registry import NodeRegistry, get_node_registry
from tests.fake_ledger import GATEWAY_URL, OPERATOR_ID, RECIPIENT_ID, FakeLedger


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        gateway_url=GATEWAY_URL,
        receipt_timeout=2.0,
        receipt_poll_interval=0.01,
        receipt_max_poll_interval=0.05,
        testnet_nodes="0.0.3,0.0.4",
        network="testnet",
        debug=True,
    )


@pytest.fixture
def codec() -> TransactionCodec:
    return TransactionCodec()


@pytest.fixture
def operator_key() -> KeyPair:
    """Create the operator's ED25519 key."""
    return KeyManager.generate_key_pair()


@pytest.fixture
def recipient_key() -> KeyPair:
    return KeyManager.generate_key_pair()


@pytest.fixture
def operator(operator_key: KeyPair) -> Operator:
    return Operator(
        account_id=AccountId.parse(OPERATOR_ID),
        key_pair=operator_key,
        network="testnet",
    )


@pytest.fixture
def credentials(operator_key: KeyPair) -> dict[str, str]:
    """Credential mapping as supplied by the host platform."""
    return {
        "accountId": OPERATOR_ID,
        "privateKey": operator_key.reveal_private_key(),
        "network": "testnet",
    }


@pytest.fixture
def ledger(operator_key: KeyPair, recipient_key: KeyPair) -> FakeLedger:
    """Create a fake ledger with a funded operator and a recipient."""
    ledger = FakeLedger()
    ledger.add_account(OPERATOR_ID, operator_key.public_key, 1000)
    ledger.add_account(RECIPIENT_ID, recipient_key.public_key, 0)
    return ledger


@pytest_asyncio.fixture
async def transport(ledger: FakeLedger) -> AsyncGenerator[HttpNetworkTransport, None]:
    """Connected transport talking to the fake ledger."""
    async with HttpNetworkTransport(GATEWAY_URL, transport=ledger.transport()) as transport:
        yield transport


@pytest.fixture
def dispatcher(
    operator: Operator,
    transport: HttpNetworkTransport,
    test_settings: Settings,
) -> OperationDispatcher:
    return build_dispatcher(operator, transport, test_settings)


@pytest.fixture
def node_registry(ledger: FakeLedger, test_settings: Settings) -> NodeRegistry:
    """Registry whose Hedera node talks to the fake ledger."""
    registry = NodeRegistry()
    registry.register(
        HederaNode(
            settings=test_settings,
            transport_factory=lambda settings: HttpNetworkTransport(
                settings.gateway_url,
                transport=ledger.transport(),
            ),
        )
    )
    return registry


@pytest_asyncio.fixture
async def client(node_registry: NodeRegistry) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    from hedera_node.main import app

    app.dependency_overrides[get_node_registry] = lambda: node_registry

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
