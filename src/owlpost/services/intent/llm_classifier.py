"""LLM Classifier Adapter - asks the completion endpoint to name the intent."""
from typing import List, Optional, Sequence

from owlpost.core.config import settings
from owlpost.core.errors import LLMUnavailableError
from owlpost.core.logging import logger
from owlpost.services.intent.prompts import classification_prompt
from owlpost.services.intent.types import ClassifierOutcome, read_params
from owlpost.services.llm import llm_service
from owlpost.services.session_store import USER, Turn
from owlpost.utils.json_parser import ParsedJson, extract_json_object


FALLBACK_REPLY = "Sorry, I couldn't process your request."


class LLMClassifier:
    """Builds the classification prompt, calls the LLM once, parses the reply.

    ``classify`` never raises: transport and provider failures come back as
    FALLBACK_REPLY, which ``parse`` reports as a parse failure.
    """

    def __init__(self, llm=None, system_prompt: Optional[str] = None):
        self.llm = llm or llm_service
        self.system_prompt = system_prompt or classification_prompt(settings.assistant.name)

    def render_prompt(self, message: str, history: Sequence[Turn] = ()) -> str:
        """Prior turns as User:/Assistant: lines followed by the new message."""
        lines: List[str] = []
        for turn in history:
            speaker = "User" if turn.role == USER else "Assistant"
            lines.append(f"{speaker}: {turn.content}")
        lines.append(f"User: {message}")
        return "\n".join(lines)

    def classify(
        self,
        user_id: str,
        message: str,
        history: Sequence[Turn] = (),
        system_prompt: Optional[str] = None,
    ) -> str:
        """Return the raw LLM reply, or FALLBACK_REPLY on any failure."""
        user_content = self.render_prompt(message, history)
        try:
            raw = self.llm.call(
                system_prompt=system_prompt or self.system_prompt,
                user_content=user_content,
            )
        except LLMUnavailableError as e:
            logger.warning(f"[LLMClassifier] Completion failed for {user_id}: {e}")
            return FALLBACK_REPLY
        except Exception as e:
            logger.error(f"[LLMClassifier] Unexpected error for {user_id}: {e}", exc_info=True)
            return FALLBACK_REPLY

        if not raw or not raw.strip():
            return FALLBACK_REPLY
        return raw

    def parse(self, raw_text: str) -> ClassifierOutcome:
        """Turn the raw reply into a json outcome or a parse failure."""
        extracted = extract_json_object(raw_text)
        if not isinstance(extracted, ParsedJson):
            logger.info(f"[LLMClassifier] No usable JSON ({extracted.reason}): {raw_text[:200]}")
            return ClassifierOutcome.parse_failure(raw_text)

        intent = extracted.data.get("intent")
        if not isinstance(intent, str) or not intent.strip():
            logger.info(f"[LLMClassifier] Reply JSON has no intent: {raw_text[:200]}")
            return ClassifierOutcome.parse_failure(raw_text)

        return ClassifierOutcome.from_json(
            intent=intent.strip(),
            params=read_params(extracted.data),
            raw_text=raw_text,
        )
