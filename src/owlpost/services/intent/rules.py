"""
Rule-Based Classifier - deterministic intent spotting without the LLM.

RULES is a literal ordered list. Rules are tried top to bottom and the first
predicate that matches wins; its extractor builds the params. Ordering is by
specificity: multi-keyword rules come before single-keyword catch-alls, so
"create payment link" is claimed by the payment-link rule long before the
generic "create" rule at the bottom ever sees it.
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from owlpost.core.logging import logger
from owlpost.services.intent import extractors as ex
from owlpost.services.intent.types import Intent, IntentResult, intent_name


Params = Dict[str, Any]


def _words(*words: str) -> "re.Pattern[str]":
    """Whole-word alternation, longest alternative first."""
    alternatives = sorted((re.escape(w) for w in words), key=len, reverse=True)
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b")


@dataclass(frozen=True)
class Utterance:
    """A message as seen by rules: the raw text and a normalized copy."""
    raw: str
    text: str

    @classmethod
    def of(cls, raw: str) -> 'Utterance':
        raw = (raw or "").strip()
        return cls(raw=raw, text=" ".join(raw.lower().split()))

    def has(self, *phrases: str) -> bool:
        return any(phrase in self.text for phrase in phrases)

    def matches(self, pattern: "re.Pattern[str]") -> bool:
        return pattern.search(self.text) is not None


@dataclass(frozen=True)
class Rule:
    """Predicate over an utterance plus the params producer for its intent."""
    name: str
    intent: str
    matches: Callable[[Utterance], bool]
    extract: Callable[[Utterance], Params]


def _no_params(u: Utterance) -> Params:
    return {}


def _put(params: Params, key: str, value) -> None:
    if value is not None:
        params[key] = value


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

CALENDAR_DISCONNECT = _words("disconnect", "unlink", "remove", "disable")
CALENDAR_CONNECT = _words("connect", "sync", "link", "add", "setup", "set up")
CALENDAR_STATUS = _words("status", "check", "connected")

REMIND = _words("remind", "reminder", "nudge", "follow up")
REMINDER_TARGET = _words("client", "invoice", "invoices", "payment", "payments")

PAYMENT_LINK_PHRASES = (
    "payment link", "pay link", "payment request", "request payment",
    "request money", "ask for payment", "collect payment", "create payment",
)

PROPOSAL = _words("proposal", "proposals")
QUOTE = _words("proposal", "quote", "estimate")
SEND_OR_SHARE = _words("send", "share", "email", "forward")
VIEW = _words("view", "show", "see", "open", "list", "my proposals", "check")

INVOICE = _words("invoice", "invoices", "bill", "charge")

OFFRAMP_PHRASES = (
    "withdraw", "withdrawal", "offramp", "off-ramp", "off ramp",
    "cash out", "cashout", "to my bank", "to bank", "to my account",
    "convert to fiat", "convert to cash",
)

ONRAMP_PHRASES = (
    "buy crypto", "buy cryptocurrency", "buy tokens", "buy token",
    "purchase crypto", "purchase cryptocurrency", "purchase tokens", "purchase token",
    "buy with fiat", "buy with cash", "buy with money",
    "convert fiat", "convert cash", "convert money",
    "fiat to crypto", "cash to crypto", "money to crypto",
    "onramp", "on-ramp", "on ramp",
    "want to buy", "would like to buy", "i'd like to buy",
    "need to buy", "looking to buy", "get some crypto", "get some tokens",
)
BUY = _words("buy", "purchase")

EARNINGS_PHRASES = (
    "earning", "earned", "income", "received", "did i receive",
    "have i made", "did i make", "how much have i got paid", "revenue",
)
SPENDING = _words("spent", "spending", "spend", "expenses", "outgoing")

SWAP = _words("swap", "exchange", "convert", "trade")
BRIDGE = _words("bridge", "bridging")
MOVE = _words("move", "transfer", "send")

HOW = _words("how")
SEND_VERB = _words("send", "transfer", "pay", "tip")

WALLET = _words("wallet", "wallets", "account")
CREATE = _words("create", "make", "generate", "new", "set up", "setup", "open")

EXPORT_PHRASES = (
    "private key", "export key", "export my key", "export wallet",
    "seed phrase", "recovery phrase", "secret key", "mnemonic",
)
ADDRESS_PHRASES = ("address", "deposit", "receive", "fund my wallet", "top up")

PRICE_PHRASES = ("price", "how much is", "how much does", "worth", "market cap")
PRICE_WORDS = _words("rate", "rates", "value")

NEWS = _words("news", "headlines", "latest on", "what's happening", "updates")

BALANCE_PHRASES = (
    "balance", "how much do i have", "how much crypto", "my funds",
    "my wallet", "what do i have", "my holdings",
)

HELP = _words("help", "commands", "what can you do", "how does this work", "menu")
GREETING = re.compile(
    r"^(?:/start|hi|hello|hey|hiya|yo|gm|good (?:morning|afternoon|evening)|howdy|greetings|sup|start)\b"
)
GENERIC_CREATE = _words("create", "make", "generate", "build")


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _is_disconnect_calendar(u: Utterance) -> bool:
    return u.has("calendar") and u.matches(CALENDAR_DISCONNECT)


def _is_connect_calendar(u: Utterance) -> bool:
    return u.has("calendar") and u.matches(CALENDAR_CONNECT) and not u.has("disconnect")


def _is_calendar_status(u: Utterance) -> bool:
    return u.has("calendar") and u.matches(CALENDAR_STATUS)


def _is_send_reminder(u: Utterance) -> bool:
    return u.matches(REMIND) and u.matches(REMINDER_TARGET)


def _is_payment_link(u: Utterance) -> bool:
    return u.has(*PAYMENT_LINK_PHRASES)


def _is_send_proposal(u: Utterance) -> bool:
    return u.matches(PROPOSAL) and u.matches(SEND_OR_SHARE) and not u.matches(CREATE)


def _is_view_proposal(u: Utterance) -> bool:
    return u.matches(PROPOSAL) and u.matches(VIEW) and not u.matches(CREATE)


def _is_create_proposal(u: Utterance) -> bool:
    return u.matches(QUOTE) and not u.has("price quote")


def _is_invoice(u: Utterance) -> bool:
    return u.matches(INVOICE)


def _is_offramp(u: Utterance) -> bool:
    return u.has(*OFFRAMP_PHRASES)


def _is_onramp(u: Utterance) -> bool:
    if u.has(*ONRAMP_PHRASES):
        return True
    if not u.matches(BUY):
        return False
    return bool(ex.extract_tokens(u.text) or ex.extract_fiat(u.text) or ex.extract_network(u.text))


def _is_earnings(u: Utterance) -> bool:
    return u.has(*EARNINGS_PHRASES)


def _is_spending(u: Utterance) -> bool:
    return u.matches(SPENDING)


def _is_swap(u: Utterance) -> bool:
    if u.has("rate") or not u.matches(SWAP):
        return False
    return len(ex.extract_tokens(u.text)) >= 1


def _is_bridge(u: Utterance) -> bool:
    if u.matches(BRIDGE):
        return True
    return u.matches(MOVE) and ex.extract_bridge_networks(u.text) is not None


def _is_instruction_send(u: Utterance) -> bool:
    return u.matches(HOW) and u.matches(SEND_VERB) and not u.has("how much")


def _is_send(u: Utterance) -> bool:
    if not u.matches(SEND_VERB):
        return False
    return (
        ex.extract_amount(u.text) is not None
        or ex.extract_recipient(u.raw) is not None
        or ex.extract_email(u.raw) is not None
        or ex.extract_token(u.text) is not None
    )


def _is_bare_recipient(u: Utterance) -> bool:
    return ex.extract_recipient(u.raw) is not None


def _is_create_wallets(u: Utterance) -> bool:
    return u.matches(WALLET) and u.matches(CREATE)


def _is_export_keys(u: Utterance) -> bool:
    return u.has(*EXPORT_PHRASES)


def _is_wallet_address(u: Utterance) -> bool:
    return u.has(*ADDRESS_PHRASES)


def _is_price(u: Utterance) -> bool:
    return u.has(*PRICE_PHRASES) or (u.matches(PRICE_WORDS) and bool(ex.extract_tokens(u.text)))


def _is_news(u: Utterance) -> bool:
    return u.matches(NEWS)


def _is_balance(u: Utterance) -> bool:
    return u.has(*BALANCE_PHRASES)


def _is_help(u: Utterance) -> bool:
    return u.matches(HELP)


def _is_greeting(u: Utterance) -> bool:
    return GREETING.search(u.text) is not None


def _is_generic_create(u: Utterance) -> bool:
    return u.matches(GENERIC_CREATE)


# ---------------------------------------------------------------------------
# Params producers
# ---------------------------------------------------------------------------

def _money_params(u: Utterance) -> Params:
    """amount / token / network, only those present."""
    params: Params = {}
    token = ex.extract_token(u.text)
    _put(params, "amount", ex.extract_amount(u.text))
    _put(params, "token", token)
    _put(params, "network", ex.extract_network(u.text, token))
    return params


def _send_reminder_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "recipient_email", ex.extract_email(u.raw))
    if u.has("invoice"):
        params["target_type"] = "invoice"
    elif u.has("payment link"):
        params["target_type"] = "payment_link"
    return params


def _billing_params(u: Utterance) -> Params:
    params = _money_params(u)
    _put(params, "recipient_email", ex.extract_email(u.raw))
    _put(params, "description", ex.extract_description(u.raw))
    return params


def _proposal_ref_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "proposal_id", ex.extract_proposal_id(u.text))
    _put(params, "recipient_email", ex.extract_email(u.raw))
    return params


def _offramp_params(u: Utterance) -> Params:
    params = _money_params(u)
    _put(params, "fiat_currency", ex.extract_fiat(u.text))
    if all(key in params for key in ("amount", "token", "fiat_currency")):
        params["has_complete_info"] = True
    return params


def _onramp_params(u: Utterance) -> Params:
    params = _money_params(u)
    if "amount" not in params:
        _put(params, "amount", ex.extract_bare_amount(u.text))
    _put(params, "fiat_currency", ex.extract_fiat(u.text))
    return params


def _period_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "timeframe", ex.extract_timeframe(u.text))
    month = ex.extract_month(u.text)
    if month is not None:
        name, year = month
        params["month"] = name
        _put(params, "year", year)
    token = ex.extract_token(u.text)
    _put(params, "token", token)
    _put(params, "network", ex.extract_network(u.text, token))
    return params


def _swap_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "amount", ex.extract_amount(u.text) or ex.extract_bare_amount(u.text))
    pair = ex.extract_swap_pair(u.text)
    if pair is not None:
        params["from_token"], params["to_token"] = pair
    else:
        tokens = ex.extract_tokens(u.text)
        params["from_token"] = tokens[0]
        if len(tokens) > 1:
            params["to_token"] = tokens[1]
    _put(params, "network", ex.extract_network(u.text, params.get("from_token")))
    return params


def _bridge_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "amount", ex.extract_amount(u.text))
    _put(params, "token", ex.extract_token(u.text))
    networks = ex.extract_bridge_networks(u.text)
    if networks is not None:
        params["from_network"], params["to_network"] = networks
    return params


def _send_params(u: Utterance) -> Params:
    params: Params = {}
    token = ex.extract_token(u.text)
    _put(params, "amount", ex.extract_amount(u.text))
    _put(params, "token", token)
    _put(params, "recipient", ex.extract_recipient(u.raw))
    _put(params, "recipient_email", ex.extract_email(u.raw))
    _put(params, "network", ex.extract_network(u.text, token))
    return params


def _recipient_params(u: Utterance) -> Params:
    return {"recipient": ex.extract_recipient(u.raw)}


def _network_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "network", ex.extract_network(u.text))
    return params


def _balance_params(u: Utterance) -> Params:
    params: Params = {}
    token = ex.extract_token(u.text)
    _put(params, "token", token)
    _put(params, "network", ex.extract_network(u.text, token))
    return params


def _price_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "token", ex.extract_token(u.text))
    _put(params, "fiat_currency", ex.extract_fiat(u.text))
    return params


def _news_params(u: Utterance) -> Params:
    params: Params = {}
    _put(params, "token", ex.extract_token(u.text))
    return params


def _what_to_create(u: Utterance) -> Params:
    return {
        "message": (
            "What would you like to create? I can make a payment link, "
            "an invoice, a proposal or a new wallet."
        )
    }


RULES: List[Rule] = [
    Rule("calendar-disconnect", Intent.DISCONNECT_CALENDAR.value, _is_disconnect_calendar, _no_params),
    Rule("calendar-connect", Intent.CONNECT_CALENDAR.value, _is_connect_calendar, _no_params),
    Rule("calendar-status", Intent.CALENDAR_STATUS.value, _is_calendar_status, _no_params),
    Rule("payment-reminder", Intent.SEND_REMINDER.value, _is_send_reminder, _send_reminder_params),
    Rule("payment-link", Intent.CREATE_PAYMENT_LINK.value, _is_payment_link, _billing_params),
    Rule("proposal-send", Intent.SEND_PROPOSAL.value, _is_send_proposal, _proposal_ref_params),
    Rule("proposal-view", Intent.VIEW_PROPOSAL.value, _is_view_proposal, _proposal_ref_params),
    Rule("proposal-create", Intent.CREATE_PROPOSAL.value, _is_create_proposal, _billing_params),
    Rule("invoice", Intent.CREATE_INVOICE.value, _is_invoice, _billing_params),
    Rule("offramp", Intent.OFFRAMP.value, _is_offramp, _offramp_params),
    Rule("onramp", Intent.ONRAMP.value, _is_onramp, _onramp_params),
    Rule("earnings", Intent.GET_EARNINGS.value, _is_earnings, _period_params),
    Rule("spending", Intent.GET_SPENDING.value, _is_spending, _period_params),
    Rule("swap", Intent.SWAP.value, _is_swap, _swap_params),
    Rule("bridge", Intent.BRIDGE.value, _is_bridge, _bridge_params),
    Rule("send-howto", Intent.INSTRUCTION_SEND.value, _is_instruction_send, _no_params),
    Rule("send", Intent.SEND.value, _is_send, _send_params),
    Rule("bare-recipient", Intent.SEND.value, _is_bare_recipient, _recipient_params),
    Rule("wallet-create", Intent.CREATE_WALLETS.value, _is_create_wallets, _no_params),
    Rule("export-keys", Intent.EXPORT_KEYS.value, _is_export_keys, _no_params),
    Rule("wallet-address", Intent.GET_WALLET_ADDRESS.value, _is_wallet_address, _network_params),
    Rule("price", Intent.GET_PRICE.value, _is_price, _price_params),
    Rule("news", Intent.GET_NEWS.value, _is_news, _news_params),
    Rule("balance", Intent.BALANCE.value, _is_balance, _balance_params),
    Rule("help", Intent.HELP.value, _is_help, _no_params),
    Rule("greeting", Intent.WELCOME.value, _is_greeting, _no_params),
    Rule("generic-create", Intent.CLARIFICATION.value, _is_generic_create, _what_to_create),
]


class RuleBasedClassifier:
    """Evaluates an ordered rule list; the first match wins."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None):
        self.rules: List[Rule] = list(RULES if rules is None else rules)

    def classify(self, text: str) -> Optional[IntentResult]:
        """Classify ``text``, or return None when no rule matches."""
        utterance = Utterance.of(text)
        if not utterance.text:
            return None

        for rule in self.rules:
            if rule.matches(utterance):
                params = rule.extract(utterance)
                logger.debug(f"[RuleClassifier] '{utterance.text[:50]}' => {rule.name}")
                return IntentResult(intent=intent_name(rule.intent), params=params)
        return None


# Singleton instance
rule_classifier = RuleBasedClassifier()
