"""Unit tests for the response synthesizer."""
import pytest

from owlpost.core.errors import LLMUnavailableError
from owlpost.services.chat.handlers.base import ActionResult, inline_keyboard
from owlpost.services.chat.synthesizer import ResponseContext, ResponseSynthesizer
from owlpost.services.intent.prompts import REWRITE_SYSTEM_PROMPT


MARKUP = inline_keyboard([("✅ Confirm", "confirm_send:tx-1"), ("❌ Cancel", "cancel_send:tx-1")])


def context(intent="help", text="Original text", **kwargs):
    return ResponseContext(
        message="user message",
        intent=intent,
        result=ActionResult(text=text, **kwargs),
        params={"amount": "5"},
    )


class TestResponseSynthesizer:
    """Tests for ResponseSynthesizer."""

    @pytest.fixture
    def synthesizer(self, mock_llm):
        mock_llm.call.return_value = '{"response": "Friendly text"}'
        return ResponseSynthesizer(
            llm=mock_llm,
            preserve_intents=["send", "create_payment_link"],
            report_intents=["balance"],
            enabled=True,
        )

    def test_rewrites_plain_reply(self, synthesizer, mock_llm):
        result = synthesizer.synthesize(context())

        assert result.text == "Friendly text"
        kwargs = mock_llm.call.call_args.kwargs
        assert kwargs["system_prompt"] == REWRITE_SYSTEM_PROMPT
        assert "Original text" in kwargs["user_content"]
        assert "user message" in kwargs["user_content"]

    def test_preserve_intent_with_markup_is_untouched(self, synthesizer, mock_llm):
        ctx = context(intent="send", reply_markup=MARKUP, data={"transfer": {"id": "tx-1"}})

        result = synthesizer.synthesize(ctx)

        assert result is ctx.result
        mock_llm.call.assert_not_called()

    def test_preserve_intent_without_payload_is_rewritten(self, synthesizer):
        result = synthesizer.synthesize(context(intent="send", text="To send crypto, please tell me the token."))

        assert result.text == "Friendly text"

    def test_report_intent_is_never_rewritten(self, synthesizer, mock_llm):
        ctx = context(intent="balance", text="💰 Your balances:\n• 1 ETH")

        assert synthesizer.synthesize(ctx) is ctx.result
        mock_llm.call.assert_not_called()

    def test_markup_survives_rewrite(self, synthesizer):
        ctx = context(intent="help", reply_markup=MARKUP, data={"k": 1})

        result = synthesizer.synthesize(ctx)

        assert result.text == "Friendly text"
        assert result.reply_markup is MARKUP
        assert result.data == {"k": 1}

    def test_disabled(self, mock_llm):
        synthesizer = ResponseSynthesizer(llm=mock_llm, enabled=False)
        ctx = context()

        assert synthesizer.synthesize(ctx) is ctx.result
        mock_llm.call.assert_not_called()

    def test_empty_text_is_not_sent(self, synthesizer, mock_llm):
        ctx = context(text="")

        assert synthesizer.synthesize(ctx) is ctx.result
        mock_llm.call.assert_not_called()

    @pytest.mark.parametrize("error", [LLMUnavailableError("down"), RuntimeError("boom")])
    def test_llm_failure_keeps_original(self, synthesizer, mock_llm, error):
        mock_llm.call.side_effect = error
        ctx = context()

        assert synthesizer.synthesize(ctx) is ctx.result

    def test_unusable_json_keeps_original(self, synthesizer, mock_llm):
        mock_llm.call.return_value = '{"reply": 42}'
        ctx = context()

        assert synthesizer.synthesize(ctx) is ctx.result


class TestExtractText:
    """Tests for picking text out of rewrite replies."""

    @pytest.mark.parametrize("raw,expected", [
        ('{"response": "Hi there"}', "Hi there"),
        ('Here you go: {"text": "Hi"} ', "Hi"),
        ('{"naturalResponse": "  Hey  "}', "Hey"),
        ('{"response": "", "text": "fallback field"}', "fallback field"),
        ('{"response": null}', None),
        ("  Just prose.  ", "Just prose."),
        ("", None),
        (None, None),
    ])
    def test_extract_text(self, raw, expected):
        assert ResponseSynthesizer.extract_text(raw) == expected
