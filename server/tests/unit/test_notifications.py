"""Unit tests for notification messages, transports and the dispatcher."""

import asyncio
import logging

import httpx
import pytest

from backoffice.core.config import Settings
from backoffice.core.exceptions import NotificationError
from backoffice.schemas.booking import CreateBookingRequest
from backoffice.services.booking_service import BookingService
from backoffice.services.notification_service import (
    EmailMessage,
    HttpRelayTransport,
    LoggingTransport,
    NotificationEvent,
    build_message,
    build_transport,
)
from backoffice.workers.notification_worker import NotificationDispatcher

from conftest import ADMIN_EMAIL, COMPANY_A, RecordingTransport


class SlowTransport:
    async def send(self, message):
        await asyncio.sleep(5)


def test_booking_confirmation_goes_to_customer():
    message = build_message(
        NotificationEvent.BOOKING_CREATED,
        {
            "customer_name": "Jane",
            "customer_email": "jane@example.com",
            "package": "City Break",
            "total_amount": "500.00",
            "departure_date": "2026-05-01",
        },
        ADMIN_EMAIL,
    )

    assert message.to == "jane@example.com"
    assert "City Break" in message.subject
    assert "500.00" in message.body


def test_new_inquiry_goes_to_admin():
    message = build_message(
        NotificationEvent.INQUIRY_CREATED,
        {"name": "Sam", "email": "sam@example.com", "subject": "Rooms", "message": "Any left?"},
        ADMIN_EMAIL,
    )

    assert message.to == ADMIN_EMAIL
    assert message.subject == "New Inquiry: Rooms"


def test_incomplete_payload():
    with pytest.raises(NotificationError):
        build_message(NotificationEvent.INQUIRY_RESPONDED, {"name": "Sam"}, ADMIN_EMAIL)


def test_transport_selection():
    assert isinstance(build_transport(Settings(notification_relay_url="")), LoggingTransport)
    assert isinstance(
        build_transport(Settings(notification_relay_url="http://relay.test/send")), HttpRelayTransport
    )


@pytest.mark.asyncio
async def test_relay_posts_message():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(202)

    relay = HttpRelayTransport(
        "http://relay.test/send", "noreply@acme.test", transport=httpx.MockTransport(handler)
    )
    await relay.send(EmailMessage(to="jane@example.com", subject="Hi", body="Hello"))

    assert len(seen) == 1
    assert seen[0].url == "http://relay.test/send"


@pytest.mark.asyncio
async def test_relay_error_becomes_notification_error():
    relay = HttpRelayTransport(
        "http://relay.test/send",
        "noreply@acme.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(502)),
    )

    with pytest.raises(NotificationError):
        await relay.send(EmailMessage(to="jane@example.com", subject="Hi", body="Hello"))


@pytest.mark.asyncio
async def test_dispatcher_delivers(dispatcher, transport):
    dispatcher.notify(
        NotificationEvent.INQUIRY_CREATED,
        {"name": "Sam", "email": "sam@example.com", "subject": "Rooms", "message": "Any left?"},
    )
    await asyncio.wait_for(dispatcher.drain(), timeout=2)

    assert [message.to for message in transport.sent] == [ADMIN_EMAIL]


@pytest.mark.asyncio
async def test_dispatcher_times_out_slow_transport(caplog):
    dispatcher = NotificationDispatcher(SlowTransport(), ADMIN_EMAIL, timeout_seconds=0.05)

    with caplog.at_level(logging.ERROR):
        delivered = await dispatcher.deliver(
            NotificationEvent.INQUIRY_CREATED,
            {"name": "Sam", "email": "sam@example.com", "subject": "Rooms", "message": "Any left?"},
        )

    assert delivered is False
    assert "Notification failed" in caplog.text


@pytest.mark.asyncio
async def test_full_queue_drops_without_raising(caplog):
    dispatcher = NotificationDispatcher(RecordingTransport(), ADMIN_EMAIL, max_queue_size=1)
    payload = {"name": "Sam", "email": "sam@example.com", "subject": "Rooms", "message": "Any left?"}

    with caplog.at_level(logging.ERROR):
        dispatcher.notify(NotificationEvent.INQUIRY_CREATED, payload)
        dispatcher.notify(NotificationEvent.INQUIRY_CREATED, payload)

    assert dispatcher.pending == 1
    assert "queue full" in caplog.text


@pytest.mark.asyncio
async def test_failed_email_does_not_undo_booking(tenant_session, agent_a, dispatcher, transport, caplog):
    """A relay outage is logged while the booking stays committed."""
    transport.fail = True
    service = BookingService(tenant_session, COMPANY_A, agent_a, notifier=dispatcher)

    with caplog.at_level(logging.ERROR):
        booking = await service.create_booking(
            CreateBookingRequest(
                customer_name="Jane Traveller",
                customer_email="jane@example.com",
                contact_number="+1 555 0100",
                passengers=1,
                adults=1,
                package="City Break",
                package_price="500.00",
                total_amount="500.00",
                departure_date="2026-05-01",
                return_date="2026-05-05",
            )
        )
        await asyncio.wait_for(dispatcher.drain(), timeout=2)

    assert transport.sent == []
    assert "Notification failed" in caplog.text
    assert (await service.get_booking(booking.id)).id == booking.id
