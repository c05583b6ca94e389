"""Response Synthesizer - rewrites handler text into conversational prose.

Rules, in order:
1. Report intents (balances, earnings, addresses) are never rewritten.
   Preserve intents are left alone whenever they carry markup or data.
2. Everything else goes through one rewrite call asking for {"response": ...}.
3. Anything unusable in the reply keeps the original text.
4. reply_markup and data always pass through untouched.

The rewrite call does not read or write the user's session.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from owlpost.core.config import settings
from owlpost.core.errors import LLMUnavailableError
from owlpost.core.logging import logger
from owlpost.services.chat.handlers.base import ActionResult
from owlpost.services.intent.prompts import REWRITE_SYSTEM_PROMPT, rewrite_prompt
from owlpost.services.llm import llm_service
from owlpost.utils.json_parser import ParsedJson, extract_json_object


TEXT_FIELDS = ("response", "text", "naturalResponse")


@dataclass
class ResponseContext:
    """Everything the synthesizer needs about one request."""
    message: str
    intent: str
    result: ActionResult
    params: Dict[str, Any] = field(default_factory=dict)


class ResponseSynthesizer:
    """Optional natural-language overlay on top of handler results."""

    def __init__(
        self,
        llm=None,
        preserve_intents: Optional[Iterable[str]] = None,
        report_intents: Optional[Iterable[str]] = None,
        enabled: Optional[bool] = None,
    ):
        self.llm = llm or llm_service
        self.preserve_intents = frozenset(
            settings.response.preserve_intents if preserve_intents is None else preserve_intents
        )
        self.report_intents = frozenset(
            settings.response.report_intents if report_intents is None else report_intents
        )
        self.enabled = settings.response.natural_responses if enabled is None else enabled

    def should_preserve(self, intent: str, result: ActionResult) -> bool:
        if intent in self.report_intents:
            return True
        return intent in self.preserve_intents and result.has_payload

    def synthesize(self, context: ResponseContext) -> ActionResult:
        """Return the handler result, possibly with rewritten text. Never raises."""
        original = context.result
        if not self.enabled or not original.text:
            return original
        if self.should_preserve(context.intent, original):
            logger.debug(f"[Synthesizer] Preserving structured response for '{context.intent}'")
            return original

        prompt = rewrite_prompt(context.message, context.intent, context.params, original.text)
        try:
            raw = self.llm.call(system_prompt=REWRITE_SYSTEM_PROMPT, user_content=prompt)
        except LLMUnavailableError as e:
            logger.warning(f"[Synthesizer] Rewrite skipped for '{context.intent}': {e}")
            return original
        except Exception as e:
            logger.error(f"[Synthesizer] Rewrite failed for '{context.intent}': {e}", exc_info=True)
            return original

        text = self.extract_text(raw)
        if text is None:
            return original
        return original.with_text(text)

    @staticmethod
    def extract_text(raw: Optional[str]) -> Optional[str]:
        """Pick the rewritten text out of an LLM reply, or None to keep the original."""
        if not isinstance(raw, str) or not raw.strip():
            return None

        extracted = extract_json_object(raw)
        if isinstance(extracted, ParsedJson):
            for key in TEXT_FIELDS:
                value = extracted.data.get(key)
                if isinstance(value, str) and value.strip():
                    return value.strip()
            logger.info("[Synthesizer] Rewrite JSON had no usable text field")
            return None

        # Not JSON at all: the model answered in prose, use it as is
        return raw.strip()
