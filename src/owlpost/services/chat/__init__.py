"""Chat service package.

The ChatOrchestrator coordinates:
1. Intent resolution (IntentResolver, backed by the session store)
2. Handler dispatch (ActionDispatcher over the HandlerRegistry)
3. Optional response rewriting (ResponseSynthesizer)
"""
from owlpost.services.chat.orchestrator import (
    ChatOrchestrator,
    ChatReply,
    build_chat_orchestrator,
    get_chat_orchestrator,
)
from owlpost.services.chat.dispatcher import ActionDispatcher, HandlerRegistry, handler_registry
from owlpost.services.chat.handlers.base import IntentHandler, ActionContext, ActionResult

__all__ = [
    'ChatOrchestrator',
    'ChatReply',
    'build_chat_orchestrator',
    'get_chat_orchestrator',
    'ActionDispatcher',
    'HandlerRegistry',
    'handler_registry',
    'IntentHandler',
    'ActionContext',
    'ActionResult',
]
