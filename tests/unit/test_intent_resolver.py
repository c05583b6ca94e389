"""Unit tests for IntentResolver."""
import json
import threading
import pytest
from unittest.mock import MagicMock

from owlpost.core.errors import LLMUnavailableError
from owlpost.services.intent.llm_classifier import FALLBACK_REPLY, LLMClassifier
from owlpost.services.intent.resolver import CLARIFICATION_MESSAGE, IntentResolver
from owlpost.services.intent.rules import RuleBasedClassifier
from owlpost.services.session_store import ASSISTANT, USER, InMemorySessionStore, Turn


ADDRESS = "0x1234567890123456789012345678901234567890"


class TestConversationalMode:
    """LLM JSON wins; any LLM failure becomes a clarification."""

    @pytest.fixture
    def rules(self):
        rules = MagicMock(spec=RuleBasedClassifier)
        rules.classify.return_value = None
        return rules

    @pytest.fixture
    def resolver(self, memory_store, mock_llm, rules):
        return IntentResolver(
            memory_store,
            llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="SYSTEM"),
            rule_classifier=rules,
            max_turns=10,
            serialize_per_user=False,
        )

    def test_llm_json_wins(self, resolver, mock_llm, rules):
        mock_llm.call.return_value = 'Sure! {"intent":"balance","params":{"token":"USDC"}} Hope that helps'

        result = resolver.resolve("u1", "how much usdc do I have")

        assert result.intent == "balance"
        assert result.params == {"token": "USDC"}
        rules.classify.assert_not_called()

    def test_transport_failure_becomes_clarification(self, resolver, mock_llm, rules):
        mock_llm.call.side_effect = LLMUnavailableError("timeout")

        result = resolver.resolve("u1", "send 1 eth")

        assert result.intent == "clarification"
        assert result.params["message"] == CLARIFICATION_MESSAGE
        rules.classify.assert_not_called()

    def test_parse_failure_becomes_clarification(self, resolver, mock_llm):
        mock_llm.call.return_value = "I think you want your balance."

        result = resolver.resolve("u1", "balance?")

        assert result.intent == "clarification"
        assert result.params["message"]

    def test_missing_intent_becomes_clarification(self, resolver, mock_llm):
        mock_llm.call.return_value = '{"params": {"amount": "1"}}'

        assert resolver.resolve("u1", "send").intent == "clarification"

    def test_classifier_crash_does_not_raise(self, memory_store, rules):
        llm_classifier = MagicMock(spec=LLMClassifier)
        llm_classifier.classify.side_effect = RuntimeError("bug")
        resolver = IntentResolver(memory_store, llm_classifier=llm_classifier, rule_classifier=rules)

        result = resolver.resolve("u1", "hello")

        assert result.intent == "clarification"
        assert memory_store.get("u1").turns[-1].content == FALLBACK_REPLY

    def test_exchange_recorded_with_raw_reply(self, resolver, memory_store, mock_llm):
        raw = '{"intent": "help", "params": {}}'
        mock_llm.call.return_value = raw

        resolver.resolve("u1", "what can you do")

        turns = memory_store.get("u1").turns
        assert turns == (Turn(USER, "what can you do"), Turn(ASSISTANT, raw))

    def test_failed_exchange_still_recorded(self, resolver, memory_store, mock_llm):
        mock_llm.call.side_effect = LLMUnavailableError("down")

        resolver.resolve("u1", "hello")

        turns = memory_store.get("u1").turns
        assert [t.role for t in turns] == [USER, ASSISTANT]
        assert turns[1].content == FALLBACK_REPLY

    def test_history_is_sent_to_llm(self, resolver, memory_store, mock_llm):
        memory_store.put("u1", [Turn(USER, "send 5 usdc"), Turn(ASSISTANT, "To whom?")])

        resolver.resolve("u1", ADDRESS)

        user_content = mock_llm.call.call_args.kwargs["user_content"]
        assert user_content == f"User: send 5 usdc\nAssistant: To whom?\nUser: {ADDRESS}"

    def test_session_stays_bounded(self, memory_store, mock_llm):
        resolver = IntentResolver(
            memory_store,
            llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="SYSTEM"),
            max_turns=4,
            serialize_per_user=False,
        )

        for i in range(5):
            resolver.resolve("u1", f"message {i}")

        turns = memory_store.get("u1").turns
        assert len(turns) == 4
        assert turns[0] == Turn(USER, "message 3")
        assert turns[2] == Turn(USER, "message 4")

    def test_users_are_isolated(self, resolver, memory_store):
        resolver.resolve("alice", "balance")

        assert memory_store.get("bob").is_empty
        assert len(memory_store.get("alice").turns) == 2


class TestDeterministicMode:
    """Rules only; no LLM traffic."""

    @pytest.fixture
    def resolver(self, memory_store, mock_llm):
        return IntentResolver(
            memory_store,
            llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="SYSTEM"),
            rule_classifier=RuleBasedClassifier(),
            max_turns=10,
            serialize_per_user=False,
        )

    def test_rule_match(self, resolver, mock_llm):
        result = resolver.resolve("u1", f"send 0.01 ETH to {ADDRESS}", generate_natural_response=False)

        assert result.intent == "send"
        assert result.params == {"amount": "0.01", "token": "ETH", "recipient": ADDRESS}
        mock_llm.call.assert_not_called()

    def test_no_match_is_unknown(self, resolver):
        result = resolver.resolve("u1", "asdfgh qwerty", generate_natural_response=False)

        assert result.intent == "unknown"
        assert result.params == {}

    def test_records_context_string(self, resolver, memory_store):
        resolver.resolve("u1", "payment link", generate_natural_response=False)

        assistant_turn = memory_store.get("u1").turns[-1]
        assert json.loads(assistant_turn.content) == {"intent": "create_payment_link", "params": {}}

    def test_same_input_same_result(self, resolver):
        first = resolver.resolve("u1", "swap 1 eth to usdc", generate_natural_response=False)
        second = resolver.resolve("u2", "swap 1 eth to usdc", generate_natural_response=False)

        assert first == second


class TestStoreFailures:
    """Session store faults never escape resolve."""

    def test_read_failure_uses_empty_session(self, mock_llm):
        store = MagicMock()
        store.get.side_effect = OSError("disk gone")
        resolver = IntentResolver(
            store, llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="S"), serialize_per_user=False
        )

        result = resolver.resolve("u1", "balance")

        assert result.intent == "balance"
        mock_llm.call.assert_called_once_with(system_prompt="S", user_content="User: balance")

    def test_write_failure_is_swallowed(self, mock_llm):
        store = InMemorySessionStore()
        store.put = MagicMock(side_effect=OSError("read-only"))
        resolver = IntentResolver(
            store, llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="S"), serialize_per_user=False
        )

        assert resolver.resolve("u1", "balance").intent == "balance"


class TestSerializedSessions:
    """Optional per-user serialization keeps every turn under concurrency."""

    def test_concurrent_messages_keep_all_turns(self, memory_store, mock_llm):
        resolver = IntentResolver(
            memory_store,
            llm_classifier=LLMClassifier(llm=mock_llm, system_prompt="S"),
            max_turns=50,
            serialize_per_user=True,
        )

        threads = [
            threading.Thread(target=resolver.resolve, args=("u1", f"msg {i}"))
            for i in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        turns = memory_store.get("u1").turns
        assert len(turns) == 16
        assert len(resolver._locks) == 0
