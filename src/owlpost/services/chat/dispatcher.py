"""Action Dispatcher - maps an intent to its handler and runs it safely.

The registry is filled at startup (class handlers and plain functions) and
then frozen. Dispatch always returns an ActionResult: unknown intents go to
the default handler and handler errors become a generic apology.
"""
from typing import Any, Callable, Dict, Optional, Type, Union

from owlpost.core.errors import RegistryFrozenError
from owlpost.core.logging import logger
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler
from owlpost.services.chat.handlers.general import UnknownIntentHandler
from owlpost.services.intent.types import IntentName, intent_name


ActionFunction = Callable[[Dict[str, Any], str], Union[ActionResult, str]]

SAFE_ERROR_MESSAGE = "I encountered an error processing your request. Please try again."


class FunctionHandler(IntentHandler):
    """Adapts a plain ``(params, user_id)`` function to the handler interface."""

    def __init__(self, intent: str, fn: ActionFunction):
        self.actions = [intent]
        self.fn = fn

    def handle(self, context: ActionContext) -> Any:
        return self.fn(context.params, context.user_id)

    @property
    def label(self) -> str:
        return getattr(self.fn, "__name__", repr(self.fn))


class HandlerRegistry:
    """Registry for action handlers.

    Handlers register themselves with the intents they can handle.
    The dispatcher looks up handlers by intent name.
    """

    def __init__(self):
        self._handlers: Dict[str, IntentHandler] = {}
        self._handler_instances: Dict[Type[IntentHandler], IntentHandler] = {}
        self._frozen = False

    def _check_open(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("Handler registry is frozen; register handlers at startup")

    def _bind(self, action: str, handler: IntentHandler, label: str) -> None:
        if action in self._handlers:
            logger.warning(
                f"Action '{action}' already registered to {self.describe(self._handlers[action])}, "
                f"overwriting with {label}"
            )
        self._handlers[action] = handler
        logger.debug(f"Registered handler {label} for action '{action}'")

    def register(self, handler_class: Type[IntentHandler]) -> None:
        """Register a handler class for its declared actions."""
        self._check_open()
        if handler_class not in self._handler_instances:
            self._handler_instances[handler_class] = handler_class()

        handler = self._handler_instances[handler_class]
        for action in handler.actions:
            self._bind(action, handler, handler_class.__name__)

    def register_instance(self, handler: IntentHandler) -> None:
        """Register an already-built handler (for handlers with dependencies)."""
        self._check_open()
        for action in handler.actions:
            self._bind(action, handler, handler.__class__.__name__)

    def register_function(self, intent: IntentName, fn: ActionFunction) -> None:
        """Register a plain ``(params, user_id) -> ActionResult`` function."""
        self._check_open()
        name = intent_name(intent)
        handler = FunctionHandler(name, fn)
        self._bind(name, handler, handler.label)

    def get_handler(self, action: IntentName) -> Optional[IntentHandler]:
        """Get the handler for a given action."""
        return self._handlers.get(intent_name(action))

    def list_handlers(self) -> Dict[str, str]:
        """List all registered handlers and their actions."""
        return {action: self.describe(handler) for action, handler in self._handlers.items()}

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True
        logger.info(f"Handler registry frozen with {len(self._handlers)} actions")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def clear(self) -> None:
        """Clear all registered handlers (useful for testing)."""
        self._handlers.clear()
        self._handler_instances.clear()
        self._frozen = False

    @staticmethod
    def describe(handler: IntentHandler) -> str:
        if isinstance(handler, FunctionHandler):
            return handler.label
        return handler.__class__.__name__


class ActionDispatcher:
    """Runs the handler registered for an intent."""

    def __init__(self, registry: HandlerRegistry, default_handler: Optional[IntentHandler] = None):
        self.registry = registry
        self.default_handler = default_handler or UnknownIntentHandler()

    def dispatch(self, intent: IntentName, params: Optional[Dict[str, Any]], user_id: str) -> ActionResult:
        """Invoke the handler for ``intent``. Never raises."""
        name = intent_name(intent)
        handler = self.registry.get_handler(name)
        if handler is None:
            logger.info(f"[Dispatcher] No handler for '{name}', using default")
            handler = self.default_handler

        context = ActionContext(intent=name, user_id=user_id, params=dict(params) if isinstance(params, dict) else {})

        try:
            result = handler.handle(context)
        except Exception as e:
            logger.error(
                f"[Dispatcher] Handler {self.registry.describe(handler)} failed for '{name}': {e}",
                exc_info=True,
            )
            return ActionResult(text=SAFE_ERROR_MESSAGE)

        if isinstance(result, ActionResult):
            return result
        if isinstance(result, str):
            return ActionResult(text=result)

        logger.error(
            f"[Dispatcher] Handler {self.registry.describe(handler)} returned "
            f"{type(result).__name__} for '{name}'"
        )
        return ActionResult(text=SAFE_ERROR_MESSAGE)


# Global handler registry
handler_registry = HandlerRegistry()
