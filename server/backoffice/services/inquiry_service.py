"""Inquiry service: public submissions, responses and approval."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.authorization import Operation, authorize
from ..core.exceptions import NotFoundError
from ..core.observability import metrics_collector
from ..core.security import Principal
from ..models import Inquiry, InquiryResponse, User
from ..models.states import InquiryState, UserRole
from ..schemas.inquiry import (
    CreateInquiryRequest,
    ListInquiriesRequest,
    RespondInquiryRequest,
    UpdateInquiryRequest,
)
from .approval import InquiryTrigger, apply_inquiry_trigger
from .notification_service import NotificationEvent, Notifier

logger = logging.getLogger(__name__)


class InquiryService:
    """Service for inquiry-related operations inside one company."""

    def __init__(
        self,
        db: AsyncSession,
        tenant_id: str,
        principal: Optional[Principal] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.tenant_id = tenant_id
        self.principal = principal
        self.notifier = notifier

    async def create_inquiry(self, request: CreateInquiryRequest) -> Inquiry:
        """
        Record an inquiry.

        Anyone may submit one. When an agent files it, the agent is assigned.
        The admin notification is queued after commit.
        """
        authorize(self.principal, Operation.INQUIRY_CREATE)
        state = apply_inquiry_trigger(None, InquiryTrigger.CREATE)

        assigned_agent_id = None
        if self.principal is not None and self.principal.role is UserRole.AGENT:
            assigned_agent_id = self.principal.id

        inquiry = Inquiry(
            name=request.name,
            email=request.email,
            phone=request.phone,
            subject=request.subject,
            message=request.message,
            priority=request.priority.value,
            state=state.value,
            assigned_agent_id=assigned_agent_id,
            related_booking_id=request.related_booking_id,
            responses=[],
        )

        self.db.add(inquiry)
        await self.db.commit()
        await self.db.refresh(inquiry)

        metrics_collector.record_inquiry_transition(InquiryTrigger.CREATE.value, state.value)
        logger.info(
            "Inquiry created",
            extra={"inquiry_id": inquiry.id, "tenant_id": self.tenant_id, "priority": inquiry.priority}
        )

        if self.notifier is not None:
            self.notifier.notify(
                NotificationEvent.INQUIRY_CREATED,
                {
                    "inquiry_id": inquiry.id,
                    "name": inquiry.name,
                    "email": inquiry.email,
                    "phone": inquiry.phone,
                    "subject": inquiry.subject,
                    "message": inquiry.message,
                }
            )

        return inquiry

    async def list_inquiries(self, request: ListInquiriesRequest) -> List[Inquiry]:
        """Admins see every inquiry; agents see the ones assigned to them."""
        authorize(self.principal, Operation.INQUIRY_LIST)

        stmt = select(Inquiry)
        if not self.principal.is_admin:
            stmt = stmt.where(Inquiry.assigned_agent_id == self.principal.id)
        if request.status is not None:
            states = [state.value for state in InquiryState if state.status is request.status]
            stmt = stmt.where(Inquiry.state.in_(states))
        if request.priority is not None:
            stmt = stmt.where(Inquiry.priority == request.priority.value)
        stmt = stmt.order_by(Inquiry.created_at.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _get(self, inquiry_id: str) -> Inquiry:
        result = await self.db.execute(select(Inquiry).where(Inquiry.id == inquiry_id))
        inquiry = result.scalar_one_or_none()
        if not inquiry:
            raise NotFoundError("inquiry", inquiry_id)
        return inquiry

    async def get_inquiry(self, inquiry_id: str) -> Inquiry:
        inquiry = await self._get(inquiry_id)
        authorize(self.principal, Operation.INQUIRY_READ, inquiry)
        return inquiry

    async def update_inquiry(self, request: UpdateInquiryRequest) -> Inquiry:
        """
        Change status, priority or assignment.

        Status only moves forward. Assignment is admin-only and must name an
        agent of this company.
        """
        inquiry = await self._get(request.id)
        authorize(self.principal, Operation.INQUIRY_UPDATE, inquiry)

        if request.assigned_agent_id is not None:
            authorize(self.principal, Operation.INQUIRY_ASSIGN, inquiry)
            result = await self.db.execute(
                select(User.id).where(User.id == request.assigned_agent_id, User.is_active.is_(True))
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("agent", request.assigned_agent_id)
            inquiry.assigned_agent_id = request.assigned_agent_id

        if request.status is not None:
            state = apply_inquiry_trigger(
                inquiry.workflow_state,
                InquiryTrigger.SET_STATUS,
                target_status=request.status,
            )
            if state.value != inquiry.state:
                metrics_collector.record_inquiry_transition(InquiryTrigger.SET_STATUS.value, state.value)
            inquiry.state = state.value

        if request.priority is not None:
            inquiry.priority = request.priority.value

        await self.db.commit()
        await self.db.refresh(inquiry)

        logger.info(
            "Inquiry updated",
            extra={"inquiry_id": inquiry.id, "tenant_id": self.tenant_id, "state": inquiry.state}
        )
        return inquiry

    async def respond(self, request: RespondInquiryRequest) -> Inquiry:
        """
        Append a response to an inquiry.

        The first response moves a pending inquiry to responded; later ones
        only extend the thread. Closed inquiries take no responses.
        """
        inquiry = await self._get(request.id)
        authorize(self.principal, Operation.INQUIRY_RESPOND, inquiry)

        state = apply_inquiry_trigger(inquiry.workflow_state, InquiryTrigger.RESPOND)
        previous = inquiry.state

        inquiry.responses.append(
            InquiryResponse(responder_id=self.principal.id, message=request.message)
        )
        inquiry.state = state.value

        await self.db.commit()
        await self.db.refresh(inquiry)

        if state.value != previous:
            metrics_collector.record_inquiry_transition(InquiryTrigger.RESPOND.value, state.value)

        logger.info(
            "Inquiry response added",
            extra={
                "inquiry_id": inquiry.id,
                "tenant_id": self.tenant_id,
                "responses": len(inquiry.responses),
            }
        )

        if self.notifier is not None:
            self.notifier.notify(
                NotificationEvent.INQUIRY_RESPONDED,
                {
                    "inquiry_id": inquiry.id,
                    "name": inquiry.name,
                    "email": inquiry.email,
                    "subject": inquiry.subject,
                    "response": request.message,
                    "responder_name": self.principal.name,
                }
            )

        return inquiry

    async def delete_inquiry(self, inquiry_id: str) -> None:
        inquiry = await self._get(inquiry_id)
        authorize(self.principal, Operation.INQUIRY_DELETE, inquiry)

        await self.db.delete(inquiry)
        await self.db.commit()

        logger.info("Inquiry deleted", extra={"inquiry_id": inquiry_id, "tenant_id": self.tenant_id})

    async def approve_inquiry(self, inquiry_id: str) -> Inquiry:
        return await self._ratify(inquiry_id, InquiryTrigger.APPROVE, Operation.INQUIRY_APPROVE)

    async def reject_inquiry(self, inquiry_id: str) -> Inquiry:
        return await self._ratify(inquiry_id, InquiryTrigger.REJECT, Operation.INQUIRY_REJECT)

    async def _ratify(self, inquiry_id: str, trigger: InquiryTrigger, operation: Operation) -> Inquiry:
        inquiry = await self._get(inquiry_id)
        authorize(self.principal, operation, inquiry)

        state = apply_inquiry_trigger(inquiry.workflow_state, trigger)
        inquiry.state = state.value

        await self.db.commit()
        await self.db.refresh(inquiry)

        metrics_collector.record_inquiry_transition(trigger.value, state.value)
        logger.info(
            f"Inquiry {trigger.value}d",
            extra={"inquiry_id": inquiry.id, "tenant_id": self.tenant_id, "by": self.principal.id}
        )
        return inquiry
