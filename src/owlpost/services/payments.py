"""Payments backend interface: links, invoices and money-in/money-out reports."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from owlpost.core.errors import FeatureUnavailableError
from owlpost.core.logging import logger


class PaymentsService(ABC):
    """Operations the payment handlers need from the billing provider."""

    @abstractmethod
    def create_payment_link(
        self,
        user_id: str,
        amount: str,
        token: str,
        network: str,
        recipient_email: str,
        description: str,
    ) -> Dict[str, Any]:
        """Create a link; returns at least ``id`` and ``url``."""

    @abstractmethod
    def create_invoice(
        self,
        user_id: str,
        amount: str,
        token: str,
        recipient_email: str,
        description: str,
    ) -> Dict[str, Any]:
        """Create an invoice; returns at least ``id`` and ``url``."""

    @abstractmethod
    def summarize(
        self,
        user_id: str,
        direction: str,
        timeframe: Optional[str] = None,
        token: Optional[str] = None,
        network: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Totals for ``direction`` "in" (earnings) or "out" (spending).

        Returns ``{"totals": [{"token", "amount"}...], "count": int}``.
        """

    @abstractmethod
    def list_unpaid(self, user_id: str, recipient_email: Optional[str] = None) -> List[Dict[str, Any]]:
        """Outstanding links and invoices, each with ``amount``, ``token``, ``url``
        and ``recipient_email``."""


class UnconfiguredPaymentsService(PaymentsService):
    """Placeholder used until a real provider is configured."""

    def _unavailable(self, what: str):
        raise FeatureUnavailableError(f"Payments backend not configured ({what})")

    def create_payment_link(self, user_id, amount, token, network, recipient_email, description):
        self._unavailable("payment links")

    def create_invoice(self, user_id, amount, token, recipient_email, description):
        self._unavailable("invoices")

    def summarize(self, user_id, direction, timeframe=None, token=None, network=None):
        self._unavailable("reports")

    def list_unpaid(self, user_id, recipient_email=None):
        self._unavailable("reminders")


_payments_service: Optional[PaymentsService] = None


def get_payments_service() -> PaymentsService:
    global _payments_service
    if _payments_service is None:
        _payments_service = UnconfiguredPaymentsService()
    return _payments_service


def set_payments_service(service: Optional[PaymentsService]) -> None:
    global _payments_service
    _payments_service = service
    if service is not None:
        logger.info(f"Payments backend set to {service.__class__.__name__}")
