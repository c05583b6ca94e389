"""Intent Resolver - picks a classifier, records the exchange in the session.

Precedence:
- conversational mode: LLM JSON wins outright; any LLM failure becomes a
  "clarification" carrying an apology. The rule classifier is not consulted.
- deterministic mode: rule match, otherwise "unknown".

Both turns of every exchange are written back to the session, failed ones
included, so the next classification sees them as context.
"""
from contextlib import nullcontext
from typing import Optional, Tuple

from owlpost.core.config import settings
from owlpost.core.logging import logger
from owlpost.services.intent.llm_classifier import FALLBACK_REPLY, LLMClassifier
from owlpost.services.intent.rules import RuleBasedClassifier
from owlpost.services.intent.types import Intent, IntentResult
from owlpost.services.session_store import (
    ASSISTANT,
    USER,
    Session,
    SessionStore,
    Turn,
    UserLockRegistry,
    trim_turns,
)


CLARIFICATION_MESSAGE = (
    "Sorry, I didn't quite get that. Could you rephrase? You can ask me to "
    "check your balance, send crypto or create a payment link."
)


class IntentResolver:
    """Resolves a message to an IntentResult. Never raises."""

    def __init__(
        self,
        session_store: SessionStore,
        llm_classifier: Optional[LLMClassifier] = None,
        rule_classifier: Optional[RuleBasedClassifier] = None,
        max_turns: Optional[int] = None,
        serialize_per_user: Optional[bool] = None,
    ):
        self.session_store = session_store
        self.llm_classifier = llm_classifier or LLMClassifier()
        self.rule_classifier = rule_classifier or RuleBasedClassifier()
        self.max_turns = max_turns if max_turns is not None else settings.max_turns
        if serialize_per_user is None:
            serialize_per_user = settings.session.serialize_per_user
        self._locks = UserLockRegistry() if serialize_per_user else None

    def resolve(
        self,
        user_id: str,
        message: str,
        generate_natural_response: bool = True,
    ) -> IntentResult:
        """Classify ``message`` for ``user_id`` and update the session."""
        guard = self._locks.hold(user_id) if self._locks is not None else nullcontext()
        with guard:
            session = self._read_session(user_id)

            if generate_natural_response:
                result, assistant_text = self._resolve_conversational(user_id, message, session)
            else:
                result, assistant_text = self._resolve_deterministic(message)

            self._record_exchange(user_id, session, message, assistant_text)

        logger.info(
            f"[Resolver] {user_id}: '{message[:50]}' => {result.intent} "
            f"(mode={'conversational' if generate_natural_response else 'deterministic'})"
        )
        return result

    def _resolve_conversational(
        self, user_id: str, message: str, session: Session
    ) -> Tuple[IntentResult, str]:
        try:
            raw = self.llm_classifier.classify(user_id, message, session.turns)
            outcome = self.llm_classifier.parse(raw)
        except Exception as e:
            logger.error(f"[Resolver] LLM classification crashed for {user_id}: {e}", exc_info=True)
            return self._clarification(), FALLBACK_REPLY

        if outcome.ok:
            return outcome.to_result(), raw

        return self._clarification(), raw

    def _resolve_deterministic(self, message: str) -> Tuple[IntentResult, str]:
        try:
            result = self.rule_classifier.classify(message)
        except Exception as e:
            logger.error(f"[Resolver] Rule classification crashed: {e}", exc_info=True)
            result = None

        if result is None:
            result = IntentResult(intent=Intent.UNKNOWN.value, params={})
        return result, result.to_context_string()

    @staticmethod
    def _clarification() -> IntentResult:
        return IntentResult(
            intent=Intent.CLARIFICATION.value,
            params={"message": CLARIFICATION_MESSAGE},
        )

    def _read_session(self, user_id: str) -> Session:
        try:
            return self.session_store.get(user_id)
        except Exception as e:
            logger.error(f"[Resolver] Session read failed for {user_id}: {e}")
            return Session.empty(user_id)

    def _record_exchange(self, user_id: str, session: Session, message: str, assistant_text: str) -> None:
        turns = list(session.turns)
        turns.append(Turn(role=USER, content=message))
        turns.append(Turn(role=ASSISTANT, content=assistant_text))
        turns = trim_turns(turns, self.max_turns)
        try:
            self.session_store.put(user_id, turns)
        except Exception as e:
            logger.error(f"[Resolver] Session write failed for {user_id}: {e}")
