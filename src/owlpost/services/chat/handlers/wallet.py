"""Wallet handlers - balances, addresses, wallet creation and transfers."""
from typing import Any, Dict, List

from owlpost.core.errors import FeatureUnavailableError
from owlpost.core.logging import logger
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler, inline_keyboard
from owlpost.services.wallet import get_wallet_service


UNAVAILABLE_TEXT = "Wallet features aren't connected yet. Please try again later."

NETWORK_LABELS = {"evm": "Base / EVM", "solana": "Solana"}


def _format_balances(balances: List[Dict[str, Any]]) -> str:
    lines = ["💰 Your balances:"]
    for entry in balances:
        network = entry.get("network")
        suffix = f" ({network})" if network else ""
        lines.append(f"• {entry.get('amount', '0')} {entry.get('token', '')}{suffix}")
    return "\n".join(lines)


class BalanceHandler(IntentHandler):
    """Handle balance queries."""

    actions = ['balance', 'get_wallet_balance', 'wallet_balance', 'show_balance', 'wallet']

    def handle(self, context: ActionContext) -> ActionResult:
        try:
            balances = get_wallet_service().get_balances(
                context.user_id, token=context.token, network=context.network
            )
        except FeatureUnavailableError as e:
            logger.info(f"Balance lookup unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        if not balances:
            scope = ""
            if context.token:
                scope += f" {context.token}"
            if context.network:
                scope += f" on {context.network}"
            return self._success_response(
                f"You don't have any{scope} balance yet. Say 'my address' to get your deposit address."
            )

        return self._success_response(_format_balances(balances))


class WalletAddressHandler(IntentHandler):
    """Show deposit addresses."""

    actions = ['get_wallet_address', 'instruction_deposit', 'deposit']

    def handle(self, context: ActionContext) -> ActionResult:
        try:
            addresses = get_wallet_service().get_addresses(context.user_id)
        except FeatureUnavailableError as e:
            logger.info(f"Address lookup unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        if not addresses:
            return self._success_response(
                "You don't have a wallet yet.",
                reply_markup=inline_keyboard([("➕ Create wallets", "create_wallets")]),
            )

        network = (context.network or "").lower()
        if network == "solana" and "solana" in addresses:
            addresses = {"solana": addresses["solana"]}
        elif network and network != "solana" and "evm" in addresses:
            addresses = {"evm": addresses["evm"]}

        lines = ["📥 Your deposit addresses:"]
        for family, address in addresses.items():
            lines.append(f"• {NETWORK_LABELS.get(family, family)}: {address}")
        lines.append("\nOnly send tokens on the matching network.")
        return self._success_response("\n".join(lines), data={"addresses": addresses})


class CreateWalletsHandler(IntentHandler):
    """Create wallets for a user."""

    actions = ['create_wallets', 'create_wallet']

    def handle(self, context: ActionContext) -> ActionResult:
        try:
            addresses = get_wallet_service().create_wallets(context.user_id)
        except FeatureUnavailableError as e:
            logger.info(f"Wallet creation unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        lines = ["🎉 Your wallets are ready:"]
        for family, address in addresses.items():
            lines.append(f"• {NETWORK_LABELS.get(family, family)}: {address}")
        return self._success_response("\n".join(lines), data={"addresses": addresses})


class SendHandler(IntentHandler):
    """Stage a token transfer and ask the user to confirm it."""

    actions = ['send', 'transfer']

    def handle(self, context: ActionContext) -> ActionResult:
        recipient = context.recipient or context.recipient_email
        missing = []
        if not context.amount:
            missing.append("amount")
        if not context.token:
            missing.append("token")
        if not recipient:
            missing.append("recipient address")
        if missing:
            return self._ask_for(missing, "send crypto")

        try:
            transfer = get_wallet_service().prepare_transfer(
                context.user_id,
                amount=context.amount,
                token=context.token,
                recipient=recipient,
                network=context.network,
            )
        except FeatureUnavailableError as e:
            logger.info(f"Transfer unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        transfer_id = transfer.get("id", "")
        network = f" on {context.network}" if context.network else ""
        return self._success_response(
            f"Please confirm: send {context.amount} {context.token} to {recipient}{network}.",
            reply_markup=inline_keyboard([
                ("✅ Confirm", f"confirm_send:{transfer_id}"),
                ("❌ Cancel", f"cancel_send:{transfer_id}"),
            ]),
            data={"transfer": transfer},
        )


class SendInstructionsHandler(IntentHandler):
    """Explain how sending works."""

    actions = ['instruction_send']

    def handle(self, context: ActionContext) -> ActionResult:
        return self._success_response(
            "To send crypto, tell me the amount, the token and the recipient, for example:\n"
            "\"send 10 USDC to 0x1234...abcd on base\".\n"
            "I'll show you a summary to confirm before anything is sent."
        )
