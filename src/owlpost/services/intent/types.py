"""Intent vocabulary and classification result types."""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from owlpost.utils.json_parser import ParsedJson, extract_json_object


class Intent(str, Enum):
    """Built-in intents. Handlers may register names outside this set."""

    # Conversation
    WELCOME = "welcome"
    HELP = "help"
    CLARIFICATION = "clarification"
    UNKNOWN = "unknown"

    # Wallet
    BALANCE = "balance"
    GET_WALLET_ADDRESS = "get_wallet_address"
    CREATE_WALLETS = "create_wallets"
    EXPORT_KEYS = "export_keys"
    SEND = "send"
    INSTRUCTION_SEND = "instruction_send"
    SWAP = "swap"
    BRIDGE = "bridge"

    # Payments
    CREATE_PAYMENT_LINK = "create_payment_link"
    CREATE_INVOICE = "create_invoice"
    SEND_REMINDER = "send_reminder"
    CREATE_PROPOSAL = "create_proposal"
    SEND_PROPOSAL = "send_proposal"
    VIEW_PROPOSAL = "view_proposal"
    GET_EARNINGS = "get_earnings"
    GET_SPENDING = "get_spending"
    OFFRAMP = "offramp"
    ONRAMP = "onramp"

    # Information
    GET_PRICE = "get_price"
    GET_NEWS = "get_news"

    # Calendar
    CONNECT_CALENDAR = "connect_calendar"
    DISCONNECT_CALENDAR = "disconnect_calendar"
    CALENDAR_STATUS = "calendar_status"

    def __str__(self) -> str:
        return self.value


IntentName = Union[Intent, str]


def intent_name(intent: IntentName) -> str:
    """Normalize an Intent member or free string to its wire name."""
    if isinstance(intent, Intent):
        return intent.value
    return str(intent).strip()


@dataclass
class IntentResult:
    """Canonical classification output: a non-empty intent and its params."""
    intent: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.intent = intent_name(self.intent)
        if not self.intent:
            raise ValueError("IntentResult.intent must be non-empty")
        if self.params is None:
            self.params = {}

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent, "params": dict(self.params)}

    def to_context_string(self) -> str:
        """Representation stored as an assistant turn in the session."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_llm_text(cls, text: str) -> Optional['IntentResult']:
        """Recover a result from a free-text echo of its context string."""
        extracted = extract_json_object(text)
        if not isinstance(extracted, ParsedJson):
            return None
        intent = extracted.data.get("intent")
        if not isinstance(intent, str) or not intent.strip():
            return None
        return cls(intent=intent, params=read_params(extracted.data))


def read_params(data: Dict[str, Any]) -> Dict[str, Any]:
    """Params live under "params" or, in older prompts, "parameters"."""
    params = data.get("params")
    if params is None:
        params = data.get("parameters")
    return dict(params) if isinstance(params, dict) else {}


class OutcomeKind(str, Enum):
    """How a classifier produced its answer."""
    JSON = "json"
    PARSE_FAILURE = "parse_failure"


@dataclass(frozen=True)
class ClassifierOutcome:
    """Tagged result of one classifier pass."""
    kind: OutcomeKind
    intent: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    raw_text: str = ""

    @classmethod
    def from_json(cls, intent: str, params: Dict[str, Any], raw_text: str = "") -> 'ClassifierOutcome':
        return cls(kind=OutcomeKind.JSON, intent=intent, params=params, raw_text=raw_text)

    @classmethod
    def parse_failure(cls, raw_text: str) -> 'ClassifierOutcome':
        return cls(kind=OutcomeKind.PARSE_FAILURE, raw_text=raw_text)

    @property
    def ok(self) -> bool:
        return self.kind is not OutcomeKind.PARSE_FAILURE and bool(self.intent)

    def to_result(self) -> IntentResult:
        if not self.ok:
            raise ValueError("parse_failure outcome has no intent")
        return IntentResult(intent=self.intent, params=dict(self.params))
