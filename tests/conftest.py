"""
Owlpost Test Configuration

Shared fixtures and configuration for pytest.
"""

import pytest
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

from owlpost.services.notifications import set_notification_channel
from owlpost.services.payments import PaymentsService, set_payments_service
from owlpost.services.session_store import InMemorySessionStore
from owlpost.services.wallet import WalletService, set_wallet_service


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks fast, isolated unit tests"
    )


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory for tests."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture(autouse=True)
def reset_backends():
    """Put module-level backends back to their unconfigured defaults."""
    yield
    set_wallet_service(None)
    set_payments_service(None)
    set_notification_channel(None)


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def mock_llm():
    """LLM service double; set ``call.return_value`` or ``call.side_effect``."""
    mock = MagicMock()
    mock.call = MagicMock(return_value='{"intent": "balance", "params": {}}')
    mock.health_check = MagicMock(return_value="healthy")
    return mock


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


# =============================================================================
# Backend Fakes
# =============================================================================

class FakeWalletService(WalletService):
    """Wallet backend with canned data that records transfers."""

    def __init__(self, balances=None, addresses=None):
        self.balances = balances if balances is not None else [
            {"token": "USDC", "network": "base", "amount": "125.50"},
            {"token": "ETH", "network": "base", "amount": "0.042"},
        ]
        self.addresses = addresses if addresses is not None else {
            "evm": "0x1111111111111111111111111111111111111111",
            "solana": "So1anaAddre55",
        }
        self.transfers: List[Dict[str, Any]] = []

    def get_balances(self, user_id, token=None, network=None):
        return [
            b for b in self.balances
            if (token is None or b["token"] == token) and (network is None or b["network"] == network)
        ]

    def get_addresses(self, user_id):
        return dict(self.addresses)

    def create_wallets(self, user_id):
        return dict(self.addresses)

    def prepare_transfer(self, user_id, amount, token, recipient, network=None):
        transfer = {
            "id": f"tx-{len(self.transfers) + 1}",
            "amount": amount,
            "token": token,
            "recipient": recipient,
            "network": network,
        }
        self.transfers.append(transfer)
        return transfer


class FakePaymentsService(PaymentsService):
    """Payments backend with canned data that records what it created."""

    def __init__(self, unpaid: Optional[List[Dict[str, Any]]] = None):
        self.links: List[Dict[str, Any]] = []
        self.invoices: List[Dict[str, Any]] = []
        self.summaries: List[Dict[str, Any]] = []
        self.unpaid = unpaid if unpaid is not None else []

    def create_payment_link(self, user_id, amount, token, network, recipient_email, description):
        link = {
            "id": "pl-1",
            "url": "https://pay.example.com/pl-1",
            "amount": amount,
            "token": token,
            "network": network,
            "recipient_email": recipient_email,
            "description": description,
        }
        self.links.append(link)
        return link

    def create_invoice(self, user_id, amount, token, recipient_email, description):
        invoice = {
            "id": "INV-001",
            "url": "https://pay.example.com/inv/INV-001",
            "amount": amount,
            "token": token,
            "recipient_email": recipient_email,
            "description": description,
        }
        self.invoices.append(invoice)
        return invoice

    def summarize(self, user_id, direction, timeframe=None, token=None, network=None):
        self.summaries.append({"direction": direction, "timeframe": timeframe, "token": token})
        if direction == "in":
            return {"totals": [{"token": "USDC", "amount": "300"}], "count": 2}
        return {"totals": [], "count": 0}

    def list_unpaid(self, user_id, recipient_email=None):
        return [i for i in self.unpaid if recipient_email in (None, i.get("recipient_email"))]


@pytest.fixture
def wallet_service() -> FakeWalletService:
    service = FakeWalletService()
    set_wallet_service(service)
    return service


@pytest.fixture
def payments_service() -> FakePaymentsService:
    service = FakePaymentsService()
    set_payments_service(service)
    return service


@pytest.fixture
def notification_channel():
    channel = MagicMock()
    channel.name = "mock"
    channel.send = MagicMock(return_value=True)
    set_notification_channel(channel)
    return channel
