"""Unit tests for the action dispatcher and handler registry."""
import pytest
from unittest.mock import Mock

from owlpost.core.errors import RegistryFrozenError
from owlpost.services.chat.dispatcher import (
    SAFE_ERROR_MESSAGE,
    ActionDispatcher,
    FunctionHandler,
    HandlerRegistry,
)
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler
from owlpost.services.chat.handlers.general import UNKNOWN_TEXT
from owlpost.services.intent.types import Intent


class EchoHandler(IntentHandler):
    actions = ['echo', 'repeat']

    def handle(self, context: ActionContext) -> ActionResult:
        return self._success_response(f"{context.user_id}:{context.params.get('text', '')}")


class ExplodingHandler(IntentHandler):
    actions = ['explode']

    def handle(self, context: ActionContext) -> ActionResult:
        raise RuntimeError("database password is hunter2")


class TestHandlerRegistry:
    """Tests for the HandlerRegistry class."""

    def test_register_handler(self):
        registry = HandlerRegistry()

        registry.register(EchoHandler)

        assert 'echo' in registry.list_handlers()
        assert registry.get_handler('echo') is not None

    def test_multiple_actions_share_instance(self):
        registry = HandlerRegistry()
        registry.register(EchoHandler)

        assert registry.get_handler('echo') is registry.get_handler('repeat')

    def test_get_nonexistent_handler(self):
        assert HandlerRegistry().get_handler('nonexistent') is None

    def test_lookup_accepts_enum(self):
        registry = HandlerRegistry()
        registry.register_function(Intent.BALANCE, lambda params, user_id: "ok")

        assert registry.get_handler(Intent.BALANCE) is registry.get_handler("balance")

    def test_register_function(self):
        registry = HandlerRegistry()

        def ping(params, user_id):
            return "pong"

        registry.register_function("ping", ping)

        handler = registry.get_handler("ping")
        assert isinstance(handler, FunctionHandler)
        assert registry.list_handlers() == {"ping": "ping"}

    def test_register_instance(self):
        registry = HandlerRegistry()
        handler = EchoHandler()

        registry.register_instance(handler)

        assert registry.get_handler('echo') is handler

    def test_later_registration_overwrites(self):
        registry = HandlerRegistry()
        registry.register(EchoHandler)

        registry.register_function('echo', lambda params, user_id: "override")

        assert isinstance(registry.get_handler('echo'), FunctionHandler)

    def test_frozen_registry_rejects_registration(self):
        registry = HandlerRegistry()
        registry.register(EchoHandler)
        registry.freeze()

        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register(ExplodingHandler)
        with pytest.raises(RegistryFrozenError):
            registry.register_function('x', lambda params, user_id: "x")
        assert registry.get_handler('echo') is not None

    def test_clear(self):
        registry = HandlerRegistry()
        registry.register(EchoHandler)
        registry.freeze()

        registry.clear()

        assert registry.list_handlers() == {}
        assert not registry.frozen


class TestActionDispatcher:
    """Tests for ActionDispatcher."""

    @pytest.fixture
    def registry(self):
        registry = HandlerRegistry()
        registry.register(EchoHandler)
        registry.register(ExplodingHandler)
        return registry

    @pytest.fixture
    def dispatcher(self, registry):
        return ActionDispatcher(registry)

    def test_dispatch_to_handler(self, dispatcher):
        result = dispatcher.dispatch('echo', {'text': 'hi'}, 'u1')

        assert result == ActionResult(text="u1:hi")

    def test_unknown_intent_uses_default(self, dispatcher):
        result = dispatcher.dispatch('teleport', {}, 'u1')

        assert result.text == UNKNOWN_TEXT
        assert result.reply_markup is None

    def test_custom_default_handler(self, registry):
        dispatcher = ActionDispatcher(registry, default_handler=EchoHandler())

        assert dispatcher.dispatch('teleport', {'text': 'x'}, 'u1').text == "u1:x"

    def test_handler_error_is_contained(self, dispatcher):
        result = dispatcher.dispatch('explode', {}, 'u1')

        assert result.text == SAFE_ERROR_MESSAGE
        assert "hunter2" not in result.text

    def test_none_params(self, dispatcher):
        assert dispatcher.dispatch('echo', None, 'u1').text == "u1:"

    def test_non_dict_params(self, dispatcher):
        assert dispatcher.dispatch('echo', ["bad"], 'u1').text == "u1:"

    def test_params_are_copied(self, dispatcher, registry):
        params = {'text': 'hi'}
        seen = {}

        def grab(p, user_id):
            p['mutated'] = True
            seen.update(p)
            return "ok"

        registry.register_function('grab', grab)
        dispatcher.dispatch('grab', params, 'u1')

        assert seen['mutated'] is True
        assert 'mutated' not in params

    def test_function_returning_string(self, registry, dispatcher):
        registry.register_function('ping', lambda params, user_id: f"pong {user_id}")

        assert dispatcher.dispatch('ping', {}, 'u9') == ActionResult(text="pong u9")

    def test_function_returning_garbage(self, registry, dispatcher):
        registry.register_function('bad', lambda params, user_id: 42)

        assert dispatcher.dispatch('bad', {}, 'u1').text == SAFE_ERROR_MESSAGE

    def test_payloads_pass_through(self, registry, dispatcher):
        markup = {"inline_keyboard": [[{"text": "OK", "callback_data": "ok"}]]}
        registry.register_function(
            'buttons', lambda params, user_id: ActionResult(text="pick", reply_markup=markup, data={"k": 1})
        )

        result = dispatcher.dispatch('buttons', {}, 'u1')

        assert result.reply_markup is markup
        assert result.data == {"k": 1}

    def test_describe(self, registry):
        assert HandlerRegistry.describe(registry.get_handler('echo')) == "EchoHandler"
