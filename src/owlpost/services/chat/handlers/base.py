"""Base classes for action handlers."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ActionResult:
    """What a handler hands back to the pipeline.

    ``reply_markup`` and ``data`` are opaque: the pipeline carries them to
    the caller untouched and never looks inside.
    """
    text: str
    reply_markup: Optional[Any] = None
    data: Optional[Any] = None

    @property
    def has_payload(self) -> bool:
        return self.reply_markup is not None or self.data is not None

    def with_text(self, text: str) -> 'ActionResult':
        """Same payloads, new text."""
        return ActionResult(text=text, reply_markup=self.reply_markup, data=self.data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "reply_markup": self.reply_markup,
            "data": self.data,
        }


@dataclass
class ActionContext:
    """Context passed to action handlers."""
    intent: str
    user_id: str
    params: Dict[str, Any] = field(default_factory=dict)

    def param(self, *keys: str, default=None):
        """First non-empty value among ``keys`` (LLMs vary the key names)."""
        for key in keys:
            value = self.params.get(key)
            if value not in (None, ""):
                return value
        return default

    @property
    def amount(self) -> Optional[str]:
        value = self.param("amount")
        return str(value) if value is not None else None

    @property
    def token(self) -> Optional[str]:
        return self.param("token")

    @property
    def network(self) -> Optional[str]:
        return self.param("network", "chain")

    @property
    def recipient(self) -> Optional[str]:
        return self.param("recipient", "to", "address")

    @property
    def recipient_email(self) -> Optional[str]:
        return self.param("recipient_email", "email", "recipientEmail")

    @property
    def description(self) -> Optional[str]:
        return self.param("description", "for", "reason")

    @property
    def timeframe(self) -> Optional[str]:
        return self.param("timeframe", "period")


def inline_keyboard(*rows) -> Dict[str, Any]:
    """Build an inline keyboard from rows of (label, callback_data) pairs."""
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback} for label, callback in row]
            for row in rows
        ]
    }


class IntentHandler(ABC):
    """Abstract base class for action handlers.

    Each handler declares the intents it serves in ``actions`` and turns a
    context into an ActionResult. Exceptions may escape ``handle``; the
    dispatcher converts them into a safe reply.
    """

    # Intent names this handler can process
    actions: List[str] = []

    @abstractmethod
    def handle(self, context: ActionContext) -> ActionResult:
        """
        Handle the intent and return a result.

        Args:
            context: ActionContext with intent, params and user id

        Returns:
            ActionResult for the caller
        """
        pass

    def can_handle(self, action: str) -> bool:
        """Check if this handler can process the given action."""
        return action in self.actions

    def _error_response(self, error_message: str) -> ActionResult:
        """Create a standard error response."""
        return ActionResult(text=f"❌ {error_message}")

    def _success_response(self, text: str, reply_markup=None, data=None) -> ActionResult:
        """Create a standard success response."""
        return ActionResult(text=text, reply_markup=reply_markup, data=data)

    def _ask_for(self, missing: List[str], what: str) -> ActionResult:
        """Prompt the user for the details still needed to finish ``what``."""
        if len(missing) == 1:
            needed = missing[0]
        else:
            needed = ", ".join(missing[:-1]) + f" and {missing[-1]}"
        return ActionResult(text=f"To {what}, please tell me the {needed}.")
