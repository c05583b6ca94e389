"""Wallet backend interface.

The chat core never talks to a chain directly. Deployments plug a concrete
WalletService in with ``set_wallet_service``; until then every call raises
FeatureUnavailableError and handlers answer politely.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from owlpost.core.errors import FeatureUnavailableError
from owlpost.core.logging import logger


class WalletService(ABC):
    """Operations the wallet handlers need from a custody provider."""

    @abstractmethod
    def get_balances(
        self, user_id: str, token: Optional[str] = None, network: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Balances as dicts with ``token``, ``network`` and ``amount`` keys."""

    @abstractmethod
    def get_addresses(self, user_id: str) -> Dict[str, str]:
        """Deposit addresses keyed by network family ("evm", "solana")."""

    @abstractmethod
    def create_wallets(self, user_id: str) -> Dict[str, str]:
        """Create any missing wallets and return all addresses."""

    @abstractmethod
    def prepare_transfer(
        self,
        user_id: str,
        amount: str,
        token: str,
        recipient: str,
        network: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Stage a transfer for confirmation; returns at least an ``id``."""


class UnconfiguredWalletService(WalletService):
    """Placeholder used until a real provider is configured."""

    def _unavailable(self, what: str):
        raise FeatureUnavailableError(f"Wallet backend not configured ({what})")

    def get_balances(self, user_id, token=None, network=None):
        self._unavailable("balances")

    def get_addresses(self, user_id):
        self._unavailable("addresses")

    def create_wallets(self, user_id):
        self._unavailable("wallet creation")

    def prepare_transfer(self, user_id, amount, token, recipient, network=None):
        self._unavailable("transfers")


_wallet_service: Optional[WalletService] = None


def get_wallet_service() -> WalletService:
    global _wallet_service
    if _wallet_service is None:
        _wallet_service = UnconfiguredWalletService()
    return _wallet_service


def set_wallet_service(service: Optional[WalletService]) -> None:
    global _wallet_service
    _wallet_service = service
    if service is not None:
        logger.info(f"Wallet backend set to {service.__class__.__name__}")
