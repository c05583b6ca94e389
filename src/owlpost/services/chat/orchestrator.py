"""Chat Orchestrator - the pipeline entry point.

For every inbound message it:
1. Resolves the intent (IntentResolver, which also updates the session)
2. Dispatches to the registered handler (ActionDispatcher)
3. Optionally rewrites the reply text (ResponseSynthesizer)
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from owlpost.core.config import settings
from owlpost.core.logging import logger
from owlpost.services.chat.dispatcher import ActionDispatcher, HandlerRegistry, handler_registry
from owlpost.services.chat.handlers.base import ActionResult
from owlpost.services.chat.synthesizer import ResponseContext, ResponseSynthesizer
from owlpost.services.intent.resolver import IntentResolver
from owlpost.services.session_store import SessionStore, create_session_store


@dataclass
class ChatReply:
    """Final reply for one inbound message."""
    user_id: str
    message: str
    intent: str
    text: str
    params: Dict[str, Any] = field(default_factory=dict)
    reply_markup: Optional[Any] = None
    data: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "user_id": self.user_id,
            "message": self.message,
            "intent": self.intent,
            "params": self.params,
            "text": self.text,
            "reply_markup": self.reply_markup,
            "data": self.data,
        }


def register_builtin_handlers(registry: HandlerRegistry) -> None:
    """Register all built-in action handlers."""
    from owlpost.services.chat.handlers.general import (
        WelcomeHandler,
        HelpHandler,
        ClarificationHandler,
        UnknownIntentHandler,
        ComingSoonHandler,
    )
    registry.register(WelcomeHandler)
    registry.register(HelpHandler)
    registry.register(ClarificationHandler)
    registry.register(UnknownIntentHandler)
    registry.register(ComingSoonHandler)

    from owlpost.services.chat.handlers.wallet import (
        BalanceHandler,
        WalletAddressHandler,
        CreateWalletsHandler,
        SendHandler,
        SendInstructionsHandler,
    )
    registry.register(BalanceHandler)
    registry.register(WalletAddressHandler)
    registry.register(CreateWalletsHandler)
    registry.register(SendHandler)
    registry.register(SendInstructionsHandler)

    from owlpost.services.chat.handlers.payments import (
        PaymentLinkHandler,
        InvoiceHandler,
        EarningsHandler,
        SpendingHandler,
        ReminderHandler,
    )
    registry.register(PaymentLinkHandler)
    registry.register(InvoiceHandler)
    registry.register(EarningsHandler)
    registry.register(SpendingHandler)
    registry.register(ReminderHandler)

    logger.info(f"Registered {len(registry.list_handlers())} handlers")


class ChatOrchestrator:
    """Runs resolve -> dispatch -> synthesize for each message."""

    def __init__(
        self,
        resolver: IntentResolver,
        dispatcher: ActionDispatcher,
        synthesizer: Optional[ResponseSynthesizer] = None,
    ):
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.synthesizer = synthesizer or ResponseSynthesizer()

    def handle_message(
        self,
        user_id: str,
        message: str,
        generate_natural_response: bool = True,
    ) -> ChatReply:
        """
        Handle one inbound message.

        Args:
            user_id: Stable identifier of the sender
            message: Raw message text
            generate_natural_response: Conversational mode (LLM classification
                and rewriting) when True, deterministic rules when False

        Returns:
            ChatReply with the intent, params and final reply payload
        """
        logger.info(f"[Orchestrator] Resolving intent for: {message[:50]}...")
        intent = self.resolver.resolve(user_id, message, generate_natural_response)

        logger.info(f"[Orchestrator] Dispatching '{intent.intent}'")
        result = self.dispatcher.dispatch(intent.intent, intent.params, user_id)

        if generate_natural_response:
            result = self._synthesize(message, intent.intent, intent.params, result)

        return ChatReply(
            user_id=user_id,
            message=message,
            intent=intent.intent,
            params=intent.params,
            text=result.text,
            reply_markup=result.reply_markup,
            data=result.data,
        )

    def _synthesize(self, message: str, intent: str, params: Dict[str, Any], result: ActionResult) -> ActionResult:
        try:
            return self.synthesizer.synthesize(
                ResponseContext(message=message, intent=intent, params=params, result=result)
            )
        except Exception as e:
            logger.error(f"[Orchestrator] Synthesis failed for '{intent}': {e}", exc_info=True)
            return result


def build_chat_orchestrator(
    session_store: Optional[SessionStore] = None,
    registry: Optional[HandlerRegistry] = None,
) -> ChatOrchestrator:
    """Wire the default pipeline from settings."""
    registry = registry if registry is not None else handler_registry
    if not registry.frozen:
        register_builtin_handlers(registry)
        registry.freeze()

    store = session_store or create_session_store(settings)
    return ChatOrchestrator(
        resolver=IntentResolver(store),
        dispatcher=ActionDispatcher(registry),
        synthesizer=ResponseSynthesizer(),
    )


_chat_orchestrator: Optional[ChatOrchestrator] = None


def get_chat_orchestrator() -> ChatOrchestrator:
    """Process-wide orchestrator, built on first use."""
    global _chat_orchestrator
    if _chat_orchestrator is None:
        _chat_orchestrator = build_chat_orchestrator()
    return _chat_orchestrator
