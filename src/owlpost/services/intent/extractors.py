"""
Parameter extraction over free text.

Every extractor takes the lower-cased text (and, where case matters, the
original text) and returns None when it finds nothing. Callers only put
keys into params for values that were actually found.
"""
import re
from typing import Dict, List, Optional, Tuple


# Canonical token symbols keyed by the spellings users type
TOKEN_SYMBOLS: Dict[str, str] = {
    "eth": "ETH",
    "ether": "ETH",
    "ethereum": "ETH",
    "usdc": "USDC",
    "usdt": "USDT",
    "tether": "USDT",
    "sol": "SOL",
    "solana": "SOL",
    "celo": "CELO",
    "cusd": "cUSD",
    "lsk": "LSK",
    "lisk": "LSK",
    "btc": "BTC",
    "bitcoin": "BTC",
    "cngn": "cNGN",
    "dai": "DAI",
}

# Words that name both a chain and its native token
_CHAIN_TOKEN_WORDS = {"ethereum", "solana", "celo", "lisk"}

NETWORKS: Dict[str, str] = {
    "base": "base",
    "ethereum": "ethereum",
    "mainnet": "ethereum",
    "solana": "solana",
    "celo": "celo",
    "lisk": "lisk",
    "polygon": "polygon",
    "matic": "polygon",
    "arbitrum": "arbitrum",
    "optimism": "optimism",
    "bsc": "bsc",
    "bnb": "bsc",
}

FIAT_CURRENCIES: Dict[str, str] = {
    "usd": "USD",
    "dollar": "USD",
    "dollars": "USD",
    "ngn": "NGN",
    "naira": "NGN",
    "kes": "KES",
    "ksh": "KES",
    "ghs": "GHS",
    "cedi": "GHS",
    "cedis": "GHS",
    "eur": "EUR",
    "euro": "EUR",
    "euros": "EUR",
    "gbp": "GBP",
    "pound": "GBP",
    "pounds": "GBP",
}

MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_TOKEN_ALT = "|".join(sorted(TOKEN_SYMBOLS, key=len, reverse=True))
_NETWORK_ALT = "|".join(sorted(NETWORKS, key=len, reverse=True))
_NUMBER = r"(\d+(?:,\d{3})*(?:\.\d+)?|\.\d+)"

EVM_ADDRESS_RE = re.compile(r"\b0x[a-fA-F0-9]{40}\b")
ENS_NAME_RE = re.compile(r"\b[a-z0-9][a-z0-9-]*\.eth\b", re.IGNORECASE)
EMAIL_RE = re.compile(r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b")

_AMOUNT_BEFORE_TOKEN_RE = re.compile(rf"(?<![\w.]){_NUMBER}\s*({_TOKEN_ALT})\b")
_TOKEN_BEFORE_AMOUNT_RE = re.compile(rf"\b({_TOKEN_ALT})\s*{_NUMBER}(?![\w.])")
_DOLLAR_AMOUNT_RE = re.compile(rf"\${_NUMBER}")
_BARE_AMOUNT_RE = re.compile(rf"(?<![\w.]){_NUMBER}(?![\w.])")
_TOKEN_WORD_RE = re.compile(rf"\b({_TOKEN_ALT})\b")
_EXPLICIT_NETWORK_RE = re.compile(
    rf"\b(?:on|via|using|over|through)\s+(?:the\s+)?({_NETWORK_ALT})(?:\s+(?:network|chain|mainnet))?\b"
)
_NETWORK_WORD_RE = re.compile(rf"\b({_NETWORK_ALT})\b")
_BRIDGE_RE = re.compile(rf"\bfrom\s+({_NETWORK_ALT})\s+to\s+({_NETWORK_ALT})\b")
_SWAP_RE = re.compile(rf"\b({_TOKEN_ALT})\s+(?:to|for|into)\s+({_TOKEN_ALT})\b")
_PROPOSAL_ID_RE = re.compile(r"\bproposal\s+(?:#|id\s*|number\s*)?([a-z]*-?\d[\w-]*)\b")
_LAST_N_DAYS_RE = re.compile(r"\b(?:last|past)\s+(\d+)\s+days?\b")
_MONTH_RE = re.compile(rf"\b({'|'.join(MONTHS)})(?:\s+(\d{{4}}))?\b")
_DESCRIPTION_RE = re.compile(r"\b(?:for|because|reason|regarding)\b[:\s]+(.+)", re.IGNORECASE)
_TRAILING_TARGET_RE = re.compile(
    rf"\s+(?:to|on|via)\s+(?:\S+@\S+|0x[a-fA-F0-9]{{40}}|[\w-]+\.eth|{_NETWORK_ALT})\b.*$",
    re.IGNORECASE,
)


def _without_identifiers(text: str) -> str:
    """Blank out ENS names and emails so "bob.eth" never reads as a token."""
    return EMAIL_RE.sub(" ", ENS_NAME_RE.sub(" ", text))


def _clean_number(value: str) -> str:
    value = value.replace(",", "")
    if value.startswith("."):
        value = "0" + value
    return value


def extract_amount(text: str) -> Optional[str]:
    """First numeric value adjacent to a token keyword, then a $-amount.

    Amounts are returned as strings so "0.01" never becomes 0.01000000001.
    """
    text = _without_identifiers(text)
    candidates = []
    match = _AMOUNT_BEFORE_TOKEN_RE.search(text)
    if match:
        candidates.append((match.start(), match.group(1)))
    match = _TOKEN_BEFORE_AMOUNT_RE.search(text)
    if match:
        candidates.append((match.start(), match.group(2)))
    if candidates:
        return _clean_number(min(candidates)[1])

    match = _DOLLAR_AMOUNT_RE.search(text)
    if match:
        return _clean_number(match.group(1))
    return None


def extract_bare_amount(text: str) -> Optional[str]:
    """Any standalone number, ignoring digits inside addresses and ids."""
    scrubbed = EVM_ADDRESS_RE.sub(" ", text)
    match = _BARE_AMOUNT_RE.search(scrubbed)
    if match:
        return _clean_number(match.group(1))
    return None


def extract_token(text: str) -> Optional[str]:
    """Canonical token symbol, preferring the word next to an amount."""
    text = _without_identifiers(text)
    match = _AMOUNT_BEFORE_TOKEN_RE.search(text)
    if match:
        return TOKEN_SYMBOLS[match.group(2)]
    match = _TOKEN_BEFORE_AMOUNT_RE.search(text)
    if match:
        return TOKEN_SYMBOLS[match.group(1)]

    # A chain name after "on"/"via" is a network, not the token being moved
    network_span = _EXPLICIT_NETWORK_RE.search(text)
    for match in _TOKEN_WORD_RE.finditer(text):
        if network_span and network_span.start() <= match.start() < network_span.end():
            continue
        return TOKEN_SYMBOLS[match.group(1)]
    return None


def extract_network(text: str, token: Optional[str] = None) -> Optional[str]:
    """Explicit "on <network>" first, then any bare network name.

    A bare word already consumed as the token ("send 1 celo") is skipped.
    """
    text = _without_identifiers(text)
    match = _EXPLICIT_NETWORK_RE.search(text)
    if match:
        return NETWORKS[match.group(1)]

    for match in _NETWORK_WORD_RE.finditer(text):
        word = match.group(1)
        if word in _CHAIN_TOKEN_WORDS and token and TOKEN_SYMBOLS.get(word) == token:
            continue
        return NETWORKS[word]
    return None


def extract_recipient(original: str) -> Optional[str]:
    """EVM address (case preserved) or ENS name."""
    match = EVM_ADDRESS_RE.search(original)
    if match:
        return match.group(0)
    match = ENS_NAME_RE.search(original)
    if match:
        return match.group(0).lower()
    return None


def extract_email(original: str) -> Optional[str]:
    match = EMAIL_RE.search(original)
    if match:
        return match.group(0)
    return None


def extract_description(original: str) -> Optional[str]:
    """Free text after a connector word ("for", "because", "regarding").

    A connector followed by an amount ("for 50 USDC") is not a description,
    so later connectors are tried. Trailing recipients and networks are cut.
    """
    search_from = 0
    while True:
        match = _DESCRIPTION_RE.search(original, search_from)
        if not match:
            return None
        candidate = match.group(1).strip()
        if _BARE_AMOUNT_RE.match(candidate) or candidate.startswith("$"):
            search_from = match.start(1)
            continue
        candidate = _TRAILING_TARGET_RE.sub("", candidate).strip(" .,!?")
        if candidate:
            return candidate
        search_from = match.start(1)


def extract_timeframe(text: str) -> Optional[str]:
    """Reporting period keyword used by earnings and spending summaries."""
    if "today" in text:
        return "today"
    if "yesterday" in text:
        return "yesterday"
    match = _LAST_N_DAYS_RE.search(text)
    if match:
        days = int(match.group(1))
        if days <= 7:
            return "last7days"
        if days <= 31:
            return "lastMonth"
        if days <= 93:
            return "last3months"
        return "lastYear"
    if any(phrase in text for phrase in ("this week", "last week", "past week")):
        return "last7days"
    if any(phrase in text for phrase in ("this month", "last month", "past month")):
        return "lastMonth"
    if any(phrase in text for phrase in ("last 3 months", "past 3 months", "this quarter", "last quarter")):
        return "last3months"
    if any(phrase in text for phrase in ("this year", "last year", "past year")):
        return "lastYear"
    if "all time" in text or "ever" in text.split():
        return "allTime"
    return None


def extract_month(text: str) -> Optional[Tuple[str, Optional[int]]]:
    """Month name with an optional four-digit year ("march 2025")."""
    match = _MONTH_RE.search(text)
    if not match:
        return None
    year = int(match.group(2)) if match.group(2) else None
    return match.group(1), year


def extract_fiat(text: str) -> Optional[str]:
    for word in re.findall(r"[a-z]+", text):
        if word in FIAT_CURRENCIES:
            return FIAT_CURRENCIES[word]
    return None


def extract_proposal_id(text: str) -> Optional[str]:
    match = _PROPOSAL_ID_RE.search(text)
    if match:
        return match.group(1)
    return None


def extract_swap_pair(text: str) -> Optional[Tuple[str, str]]:
    """("ETH", "USDC") from "swap 1 eth to usdc"."""
    match = _SWAP_RE.search(text)
    if match:
        return TOKEN_SYMBOLS[match.group(1)], TOKEN_SYMBOLS[match.group(2)]
    return None


def extract_bridge_networks(text: str) -> Optional[Tuple[str, str]]:
    match = _BRIDGE_RE.search(text)
    if match:
        return NETWORKS[match.group(1)], NETWORKS[match.group(2)]
    return None


def extract_tokens(text: str) -> List[str]:
    """All distinct token symbols mentioned, in order of appearance."""
    text = _without_identifiers(text)
    seen: List[str] = []
    for match in _TOKEN_WORD_RE.finditer(text):
        symbol = TOKEN_SYMBOLS[match.group(1)]
        if symbol not in seen:
            seen.append(symbol)
    return seen
