"""General handlers - greetings, help, clarification and the unknown fallback."""
from owlpost.core.config import settings
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler


UNKNOWN_TEXT = "I didn't understand that command. Type 'help' to see available commands."
CLARIFY_TEXT = (
    "I didn't understand your request. You can ask about checking balance, "
    "sending crypto, or getting crypto prices."
)


def help_text() -> str:
    return (
        f"Here's what {settings.assistant.name} can do:\n\n"
        "💰 Wallet\n"
        "• \"balance\" or \"USDC balance on base\"\n"
        "• \"my wallet address\"\n"
        "• \"send 10 USDC to 0x...\"\n\n"
        "🧾 Payments\n"
        "• \"create payment link for 50 USDC for logo design\"\n"
        "• \"invoice client@example.com 200 USDC for consulting\"\n"
        "• \"remind client@example.com about the invoice\"\n\n"
        "📊 Reports\n"
        "• \"how much did I earn this month?\"\n"
        "• \"what did I spend last week?\""
    )


class WelcomeHandler(IntentHandler):
    """Handle greetings."""

    actions = ['welcome', 'start']

    def handle(self, context: ActionContext) -> ActionResult:
        return self._success_response(
            f"Hi! I'm {settings.assistant.name}, your crypto payments assistant. "
            "I can check balances, send tokens, create payment links and invoices, "
            "and summarize your earnings. Type 'help' to see examples."
        )


class HelpHandler(IntentHandler):
    """List the available commands."""

    actions = ['help', 'commands']

    def handle(self, context: ActionContext) -> ActionResult:
        return self._success_response(help_text())


class ClarificationHandler(IntentHandler):
    """Ask the user to rephrase, echoing the classifier's question if it had one."""

    actions = ['clarification']

    def handle(self, context: ActionContext) -> ActionResult:
        message = context.param("message", "question")
        if isinstance(message, str) and message.strip():
            return self._success_response(message.strip())
        return self._success_response(CLARIFY_TEXT)


class UnknownIntentHandler(IntentHandler):
    """Default handler for intents nobody registered."""

    actions = ['unknown']

    def handle(self, context: ActionContext) -> ActionResult:
        return self._success_response(UNKNOWN_TEXT)


class ComingSoonHandler(IntentHandler):
    """Recognized intents whose feature module is not part of this deployment."""

    FEATURES = {
        'swap': "Token swaps",
        'bridge': "Cross-chain bridging",
        'export_keys': "Key export",
        'get_price': "Price lookups",
        'get_news': "Crypto news",
        'onramp': "Buying crypto with fiat",
        'offramp': "Withdrawals to bank accounts",
        'create_proposal': "Proposals",
        'create_proposal_flow': "Proposals",
        'send_proposal': "Proposals",
        'view_proposal': "Proposals",
        'connect_calendar': "Calendar sync",
        'disconnect_calendar': "Calendar sync",
        'calendar_status': "Calendar sync",
    }

    actions = list(FEATURES)

    def handle(self, context: ActionContext) -> ActionResult:
        feature = self.FEATURES.get(context.intent, "That feature")
        return self._success_response(
            f"{feature} isn't available here yet. Type 'help' to see what I can do right now."
        )
