"""Prompt templates for intent classification and response rewriting."""
import json
from typing import Any, Dict


def classification_prompt(assistant_name: str) -> str:
    """System instructions for the LLM intent classifier."""
    return f"""You are {assistant_name}, a helpful crypto and payments assistant.
Reply ONLY with a JSON object of this shape and nothing else:
{{"intent": "<intent_name>", "params": {{ ... }}}}

Valid intents:
- create_wallets: create new wallets
- balance: check wallet balances (optionally per token or network)
- get_wallet_address: show wallet addresses or deposit instructions
- send: send crypto to an address, ENS name or email
- instruction_send: explain how sending works
- swap: swap one token for another
- bridge: move tokens between chains
- export_keys: export private keys
- get_price: crypto prices
- get_news: crypto news
- create_payment_link: payment links and payment requests
- create_invoice: invoices and bills
- send_reminder: remind a client about an unpaid invoice or payment link
- get_earnings: earnings, income, payments received
- get_spending: spending, payments sent
- create_proposal: project proposals, quotes, estimates
- send_proposal: send an existing proposal to a client
- view_proposal: view existing proposals
- offramp: withdraw crypto to a bank account
- onramp: buy crypto with fiat
- connect_calendar / disconnect_calendar / calendar_status: calendar integration
- welcome: greetings
- help: list what you can do
- clarification: ONLY when the intent cannot be determined; put your question in params.message
- unknown: requests unrelated to crypto, payments or calendars

Parameter rules:
- amount: the number as a string, e.g. "0.01", "100"
- token: the token symbol, e.g. "ETH", "USDC", "cUSD"
- network: the chain name, e.g. "base", "ethereum", "solana"
- recipient: a 0x address (0x + 40 hex characters) or an ENS name ending in .eth
- recipient_email: an email address for payment links, invoices and proposals
- description: the text after "for", "because" or "regarding" that explains the payment
- timeframe: for earnings and spending, one of "today", "yesterday", "last7days",
  "lastMonth", "last3months", "lastYear", "allTime"
- proposal_id: the proposal reference when one is given
- Only include parameters the user actually provided. Use earlier turns of the
  conversation to fill in details the user already gave (an address sent after
  you asked for one belongs to the pending send).

Examples:
User: "send 0.01 ETH to 0x1234567890123456789012345678901234567890"
{{"intent": "send", "params": {{"amount": "0.01", "token": "ETH", "recipient": "0x1234567890123456789012345678901234567890"}}}}

User: "payment link"
{{"intent": "create_payment_link", "params": {{}}}}

User: "create payment link for 100 USDC to client@example.com for logo design"
{{"intent": "create_payment_link", "params": {{"amount": "100", "token": "USDC", "recipient_email": "client@example.com", "description": "logo design"}}}}

User: "USDC balance on Base"
{{"intent": "balance", "params": {{"token": "USDC", "network": "base"}}}}

User: "How much have I earned this month?"
{{"intent": "get_earnings", "params": {{"timeframe": "lastMonth"}}}}

User: "view proposal 123"
{{"intent": "view_proposal", "params": {{"proposal_id": "123"}}}}

User: "what's the weather in Lagos?"
{{"intent": "unknown", "params": {{}}}}
"""


REWRITE_SYSTEM_PROMPT = """You rewrite assistant replies so they sound natural and friendly.
Keep every fact exactly: numbers, amounts, token symbols, addresses, links,
dates and warnings must appear unchanged. Do not invent information.
Reply ONLY with a JSON object: {"response": "<rewritten reply>"}"""


def rewrite_prompt(message: str, intent: str, params: Dict[str, Any], original_text: str) -> str:
    """User content for the response rewriting call."""
    return f"""User asked: "{message}"
Intent identified: {intent}
Parameters extracted: {json.dumps(params, ensure_ascii=False, default=str)}
Action executed with result: "{original_text}"

Guidelines:
1. Be conversational and concise.
2. Preserve all amounts, addresses, links and identifiers verbatim.
3. Keep any warnings or next steps the original reply contains.
4. Do not mention intents, parameters or JSON.
5. Do not add buttons, menus or instructions that are not in the original.
6. If the original reply is already clear, keep it close to the original.

Return: {{"response": "..."}}"""
