"""Payment handlers - payment links, invoices, reminders and money reports."""
from typing import Any, Dict, List, Optional

from owlpost.core.config import settings
from owlpost.core.errors import FeatureUnavailableError
from owlpost.core.logging import logger
from owlpost.services.chat.handlers.base import ActionContext, ActionResult, IntentHandler
from owlpost.services.notifications import get_notification_channel
from owlpost.services.payments import get_payments_service


UNAVAILABLE_TEXT = "Payments aren't connected yet. Please try again later."

DEFAULT_LINK_TOKEN = "ETH"
DEFAULT_LINK_NETWORK = "base"
DEFAULT_INVOICE_TOKEN = "USDC"

TIMEFRAME_LABELS = {
    "today": "today",
    "yesterday": "yesterday",
    "last7days": "the last 7 days",
    "lastMonth": "the last month",
    "last3months": "the last 3 months",
    "lastYear": "the last year",
    "allTime": "all time",
}


def _period_label(timeframe: Optional[str]) -> str:
    if not timeframe:
        return "all time"
    return TIMEFRAME_LABELS.get(timeframe, timeframe)


def _missing_billing_fields(context: ActionContext) -> List[str]:
    missing = []
    if not context.amount:
        missing.append("amount")
    if not context.recipient_email:
        missing.append("recipient's email")
    if not context.description:
        missing.append("what the payment is for")
    return missing


class PaymentLinkHandler(IntentHandler):
    """Create a payment link."""

    actions = ['create_payment_link', 'payment_link']

    def handle(self, context: ActionContext) -> ActionResult:
        missing = _missing_billing_fields(context)
        if missing:
            return self._ask_for(missing, "create a payment link")

        token = context.token or DEFAULT_LINK_TOKEN
        network = context.network or DEFAULT_LINK_NETWORK
        try:
            link = get_payments_service().create_payment_link(
                context.user_id,
                amount=context.amount,
                token=token,
                network=network,
                recipient_email=context.recipient_email,
                description=context.description,
            )
        except FeatureUnavailableError as e:
            logger.info(f"Payment link unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        return self._success_response(
            "✅ Payment link created!\n\n"
            f"Amount: {context.amount} {token}\n"
            f"Network: {network}\n"
            f"For: {context.description}\n"
            f"Recipient: {context.recipient_email}\n\n"
            f"🔗 {link.get('url', '')}",
            data={"payment_link": link},
        )


class InvoiceHandler(IntentHandler):
    """Create an invoice."""

    actions = ['create_invoice', 'invoice']

    def handle(self, context: ActionContext) -> ActionResult:
        missing = _missing_billing_fields(context)
        if missing:
            return self._ask_for(missing, "create an invoice")

        token = context.token or DEFAULT_INVOICE_TOKEN
        try:
            invoice = get_payments_service().create_invoice(
                context.user_id,
                amount=context.amount,
                token=token,
                recipient_email=context.recipient_email,
                description=context.description,
            )
        except FeatureUnavailableError as e:
            logger.info(f"Invoice unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        return self._success_response(
            f"🧾 Invoice {invoice.get('id', '')} created for {context.amount} {token}.\n"
            f"Billed to: {context.recipient_email}\n"
            f"For: {context.description}\n\n"
            f"🔗 {invoice.get('url', '')}",
            data={"invoice": invoice},
        )


class _SummaryHandler(IntentHandler):
    """Shared formatting for earnings and spending reports."""

    direction = "in"
    title = ""
    empty_text = ""
    count_label = ""

    def handle(self, context: ActionContext) -> ActionResult:
        try:
            summary = get_payments_service().summarize(
                context.user_id,
                direction=self.direction,
                timeframe=context.timeframe,
                token=context.token,
                network=context.network,
            )
        except FeatureUnavailableError as e:
            logger.info(f"Payment summary unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        period = _period_label(context.timeframe)
        totals: List[Dict[str, Any]] = summary.get("totals") or []
        if not totals:
            return self._success_response(f"{self.empty_text} for {period}.")

        lines = [f"{self.title} ({period}):"]
        for entry in totals:
            lines.append(f"• {entry.get('amount', '0')} {entry.get('token', '')}")
        count = summary.get("count")
        if count:
            lines.append(f"\n{count} {self.count_label}")
        return self._success_response("\n".join(lines), data={"summary": summary})


class EarningsHandler(_SummaryHandler):
    """Summarize money received."""

    actions = ['get_earnings', 'earnings', 'earnings_summary', 'show_earnings_summary']
    direction = "in"
    title = "📈 Your earnings"
    empty_text = "No earnings found"
    count_label = "payment(s) received."


class SpendingHandler(_SummaryHandler):
    """Summarize money sent."""

    actions = ['get_spending', 'spending']
    direction = "out"
    title = "📉 Your spending"
    empty_text = "No spending found"
    count_label = "payment(s) sent."


class ReminderHandler(IntentHandler):
    """Nudge a client about unpaid invoices and payment links."""

    actions = ['send_reminder']

    def handle(self, context: ActionContext) -> ActionResult:
        email = context.recipient_email
        if not email:
            return self._ask_for(["client's email"], "send a reminder")

        try:
            unpaid = get_payments_service().list_unpaid(context.user_id, recipient_email=email)
        except FeatureUnavailableError as e:
            logger.info(f"Reminder lookup unavailable: {e}")
            return self._success_response(UNAVAILABLE_TEXT)

        if not unpaid:
            return self._success_response(f"There are no unpaid invoices or payment links for {email}.")

        lines = [f"Hi! This is a friendly reminder from {settings.assistant.name} about your outstanding payment(s):"]
        for item in unpaid:
            lines.append(f"• {item.get('amount', '')} {item.get('token', '')}: {item.get('url', '')}")
        message = "\n".join(lines)

        delivered = get_notification_channel().send(email, message, payload={"items": unpaid})
        if not delivered:
            logger.warning(f"Reminder delivery to {email} failed for user {context.user_id}")
            return self._success_response(f"I couldn't deliver the reminder to {email}. Please try again later.")

        return self._success_response(
            f"📨 Reminder sent to {email} for {len(unpaid)} unpaid item(s).",
            data={"reminded": [item.get("id") for item in unpaid]},
        )
