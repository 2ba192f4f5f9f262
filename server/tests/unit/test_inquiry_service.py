"""Unit tests for the inquiry service."""

import pytest

from backoffice.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    IllegalTransitionError,
    NotFoundError,
)
from backoffice.models.states import ApprovalStatus, InquiryPriority, InquiryStatus
from backoffice.schemas.inquiry import (
    CreateInquiryRequest,
    ListInquiriesRequest,
    RespondInquiryRequest,
    UpdateInquiryRequest,
)
from backoffice.services.inquiry_service import InquiryService
from backoffice.services.notification_service import NotificationEvent

from conftest import AGENT_A_ID, COMPANY_A


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def notify(self, event, payload):
        self.events.append((event, payload))


@pytest.fixture
def inquiry_request(sample_inquiry_data):
    return CreateInquiryRequest.model_validate(sample_inquiry_data)


@pytest.mark.asyncio
async def test_anonymous_inquiry(tenant_session, inquiry_request):
    notifier = RecordingNotifier()
    inquiry = await InquiryService(tenant_session, COMPANY_A, notifier=notifier).create_inquiry(inquiry_request)

    assert inquiry.status is InquiryStatus.PENDING
    assert inquiry.approval_status is ApprovalStatus.PENDING
    assert inquiry.assigned_agent_id is None
    assert inquiry.priority == InquiryPriority.HIGH.value
    assert inquiry.responses == []
    assert notifier.events[0][0] is NotificationEvent.INQUIRY_CREATED


@pytest.mark.asyncio
async def test_agent_inquiry_is_self_assigned(tenant_session, agent_a, inquiry_request):
    inquiry = await InquiryService(tenant_session, COMPANY_A, agent_a).create_inquiry(inquiry_request)

    assert inquiry.assigned_agent_id == agent_a.id


@pytest.mark.asyncio
async def test_responses_keep_arrival_order(tenant_session, admin_a, inquiry_request):
    notifier = RecordingNotifier()
    service = InquiryService(tenant_session, COMPANY_A, admin_a, notifier=notifier)
    inquiry = await service.create_inquiry(inquiry_request)

    inquiry = await service.respond(RespondInquiryRequest(id=inquiry.id, message="Yes, we do."))
    assert inquiry.status is InquiryStatus.RESPONDED

    inquiry = await service.respond(RespondInquiryRequest(id=inquiry.id, message="Prices attached."))
    assert inquiry.status is InquiryStatus.RESPONDED
    assert [reply.message for reply in inquiry.responses] == ["Yes, we do.", "Prices attached."]
    assert all(reply.responder_id == admin_a.id for reply in inquiry.responses)

    responded = [payload for event, payload in notifier.events if event is NotificationEvent.INQUIRY_RESPONDED]
    assert [payload["response"] for payload in responded] == ["Yes, we do.", "Prices attached."]
    assert responded[0]["responder_name"] == admin_a.name


@pytest.mark.asyncio
async def test_closed_inquiry_takes_no_response(tenant_session, admin_a, inquiry_request):
    service = InquiryService(tenant_session, COMPANY_A, admin_a)
    inquiry = await service.create_inquiry(inquiry_request)
    await service.update_inquiry(UpdateInquiryRequest(id=inquiry.id, status=InquiryStatus.CLOSED))

    with pytest.raises(IllegalTransitionError):
        await service.respond(RespondInquiryRequest(id=inquiry.id, message="Too late"))

    with pytest.raises(IllegalTransitionError):
        await service.update_inquiry(UpdateInquiryRequest(id=inquiry.id, status=InquiryStatus.PENDING))


@pytest.mark.asyncio
async def test_assignment_is_admin_only(tenant_session, admin_a, agent_a, agent_a2, inquiry_request):
    inquiry = await InquiryService(tenant_session, COMPANY_A, agent_a).create_inquiry(inquiry_request)

    with pytest.raises(AuthorizationError):
        await InquiryService(tenant_session, COMPANY_A, agent_a).update_inquiry(
            UpdateInquiryRequest(id=inquiry.id, assigned_agent_id=agent_a2.id)
        )

    updated = await InquiryService(tenant_session, COMPANY_A, admin_a).update_inquiry(
        UpdateInquiryRequest(id=inquiry.id, assigned_agent_id=agent_a2.id, priority=InquiryPriority.LOW)
    )
    assert updated.assigned_agent_id == agent_a2.id
    assert updated.priority == InquiryPriority.LOW.value


@pytest.mark.asyncio
async def test_assignment_to_unknown_agent(tenant_session, admin_a, inquiry_request):
    service = InquiryService(tenant_session, COMPANY_A, admin_a)
    inquiry = await service.create_inquiry(inquiry_request)

    with pytest.raises(NotFoundError):
        await service.update_inquiry(
            UpdateInquiryRequest(id=inquiry.id, assigned_agent_id="ffffffffffffffffffffffff")
        )


@pytest.mark.asyncio
async def test_agents_list_only_assigned(tenant_session, admin_a, agent_a, agent_a2, inquiry_request):
    own = await InquiryService(tenant_session, COMPANY_A, agent_a).create_inquiry(inquiry_request)
    await InquiryService(tenant_session, COMPANY_A).create_inquiry(inquiry_request)

    mine = await InquiryService(tenant_session, COMPANY_A, agent_a).list_inquiries(ListInquiriesRequest())
    assert [inquiry.id for inquiry in mine] == [own.id]

    assert await InquiryService(tenant_session, COMPANY_A, agent_a2).list_inquiries(ListInquiriesRequest()) == []

    everything = await InquiryService(tenant_session, COMPANY_A, admin_a).list_inquiries(ListInquiriesRequest())
    assert len(everything) == 2

    high = await InquiryService(tenant_session, COMPANY_A, admin_a).list_inquiries(
        ListInquiriesRequest(priority=InquiryPriority.HIGH, status=InquiryStatus.PENDING)
    )
    assert len(high) == 2


@pytest.mark.asyncio
async def test_list_requires_login(tenant_session):
    with pytest.raises(AuthenticationError):
        await InquiryService(tenant_session, COMPANY_A).list_inquiries(ListInquiriesRequest())


@pytest.mark.asyncio
async def test_approval_and_rejection(tenant_session, admin_a, inquiry_request):
    service = InquiryService(tenant_session, COMPANY_A, admin_a)
    first = await service.create_inquiry(inquiry_request)
    second = await service.create_inquiry(inquiry_request)

    approved = await service.approve_inquiry(first.id)
    assert approved.status is InquiryStatus.RESPONDED
    assert approved.approval_status is ApprovalStatus.APPROVED

    rejected = await service.reject_inquiry(second.id)
    assert rejected.status is InquiryStatus.CLOSED
    assert rejected.approval_status is ApprovalStatus.REJECTED

    with pytest.raises(IllegalTransitionError):
        await service.approve_inquiry(second.id)


@pytest.mark.asyncio
async def test_assigned_agent_may_respond(tenant_session, agent_a, agent_a2, inquiry_request):
    inquiry = await InquiryService(tenant_session, COMPANY_A, agent_a).create_inquiry(inquiry_request)
    assert inquiry.assigned_agent_id == AGENT_A_ID

    with pytest.raises(AuthorizationError):
        await InquiryService(tenant_session, COMPANY_A, agent_a2).respond(
            RespondInquiryRequest(id=inquiry.id, message="Not mine")
        )

    responded = await InquiryService(tenant_session, COMPANY_A, agent_a).respond(
        RespondInquiryRequest(id=inquiry.id, message="On it")
    )
    assert len(responded.responses) == 1


@pytest.mark.asyncio
async def test_delete_inquiry_is_admin_only(tenant_session, admin_a, agent_a, inquiry_request):
    inquiry = await InquiryService(tenant_session, COMPANY_A, agent_a).create_inquiry(inquiry_request)

    with pytest.raises(AuthorizationError):
        await InquiryService(tenant_session, COMPANY_A, agent_a).delete_inquiry(inquiry.id)

    service = InquiryService(tenant_session, COMPANY_A, admin_a)
    await service.delete_inquiry(inquiry.id)
    with pytest.raises(NotFoundError):
        await service.get_inquiry(inquiry.id)
