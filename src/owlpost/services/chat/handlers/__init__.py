"""Chat action handlers."""
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler

# General handlers
from owlpost.services.chat.handlers.general import (
    WelcomeHandler,
    HelpHandler,
    ClarificationHandler,
    UnknownIntentHandler,
    ComingSoonHandler,
)

# Wallet handlers
from owlpost.services.chat.handlers.wallet import (
    BalanceHandler,
    WalletAddressHandler,
    CreateWalletsHandler,
    SendHandler,
    SendInstructionsHandler,
)

# Payment handlers
from owlpost.services.chat.handlers.payments import (
    PaymentLinkHandler,
    InvoiceHandler,
    EarningsHandler,
    SpendingHandler,
    ReminderHandler,
)

__all__ = [
    # Base classes
    'IntentHandler',
    'ActionResult',
    'ActionContext',
    # General handlers
    'WelcomeHandler',
    'HelpHandler',
    'ClarificationHandler',
    'UnknownIntentHandler',
    'ComingSoonHandler',
    # Wallet handlers
    'BalanceHandler',
    'WalletAddressHandler',
    'CreateWalletsHandler',
    'SendHandler',
    'SendInstructionsHandler',
    # Payment handlers
    'PaymentLinkHandler',
    'InvoiceHandler',
    'EarningsHandler',
    'SpendingHandler',
    'ReminderHandler',
]
