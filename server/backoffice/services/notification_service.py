"""Notification messages and the transports that deliver them."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

import httpx

from ..core.config import Settings
from ..core.exceptions import NotificationError

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    """Events that produce a notification."""
    BOOKING_CREATED = "booking.created"
    INQUIRY_CREATED = "inquiry.created"
    INQUIRY_RESPONDED = "inquiry.responded"


@dataclass(frozen=True)
class EmailMessage:
    """A plain-text email ready for a transport."""

    to: str
    subject: str
    body: str


def build_message(event: NotificationEvent, payload: Mapping[str, Any], admin_email: str) -> EmailMessage:
    """
    Render the email for an event.

    Args:
        event: The event that happened
        payload: Event data (customer details, booking or inquiry fields)
        admin_email: Recipient for admin-facing notifications

    Raises:
        NotificationError: If the payload lacks the fields the event needs
    """
    event = NotificationEvent(event)
    try:
        if event is NotificationEvent.BOOKING_CREATED:
            departure = payload.get("departure_date") or "TBD"
            return EmailMessage(
                to=payload["customer_email"],
                subject=f"Booking Confirmation - {payload['package']}",
                body=(
                    f"Dear {payload['customer_name']},\n\n"
                    f"Thank you for your booking of {payload['package']}.\n\n"
                    f"Total amount: {payload.get('total_amount') or 'TBD'}\n"
                    f"Travel date: {departure}\n"
                    f"Status: {payload.get('status', 'pending')}\n"
                ),
            )

        if event is NotificationEvent.INQUIRY_CREATED:
            return EmailMessage(
                to=admin_email,
                subject=f"New Inquiry: {payload['subject']}",
                body=(
                    f"From: {payload['name']} <{payload['email']}>\n"
                    f"Phone: {payload.get('phone') or '-'}\n\n"
                    f"{payload['message']}\n"
                ),
            )

        return EmailMessage(
            to=payload["email"],
            subject=f"Re: {payload['subject']}",
            body=(
                f"Dear {payload['name']},\n\n"
                f"{payload['response']}\n\n"
                f"Best regards,\n{payload.get('responder_name') or 'The Support Team'}\n"
            ),
        )
    except KeyError as e:
        raise NotificationError(event.value, f"missing field {e}") from e


class Notifier(Protocol):
    """Accepts events for delivery without waiting on them."""

    def notify(self, event: NotificationEvent, payload: Mapping[str, Any]) -> None: ...


class NotificationTransport(Protocol):
    """Delivers an email somewhere."""

    async def send(self, message: EmailMessage) -> None: ...


class LoggingTransport:
    """Writes messages to the log instead of sending them."""

    async def send(self, message: EmailMessage) -> None:
        logger.info(
            "Notification (log transport)",
            extra={"to": message.to, "subject": message.subject}
        )


class HttpRelayTransport:
    """Posts messages to an HTTP email relay."""

    def __init__(
        self,
        url: str,
        sender: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.sender = sender
        self.timeout = timeout
        self._transport = transport

    async def send(self, message: EmailMessage) -> None:
        body = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "text": message.body,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError("email", str(e) or e.__class__.__name__) from e


def build_transport(settings: Settings) -> NotificationTransport:
    """Choose the transport for the configured environment."""
    if settings.notification_relay_url:
        return HttpRelayTransport(
            url=settings.notification_relay_url,
            sender=settings.email_sender,
            timeout=settings.notification_timeout_seconds,
        )
    return LoggingTransport()
