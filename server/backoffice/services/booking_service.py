"""Booking service for business logic operations."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.authorization import Operation, authorize
from ..core.database import utcnow
from ..core.exceptions import NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.security import Principal
from ..models import Booking, User
from ..models.states import ApprovalStatus, BookingState, BookingStatus
from ..schemas.booking import (
    Booking as BookingSchema,
    BookingSnapshot,
    CreateBookingRequest,
    ListBookingsRequest,
    UpdateBookingRequest,
)
from .approval import BookingTrigger, apply_booking_trigger
from .notification_service import NotificationEvent, Notifier

logger = logging.getLogger(__name__)

_STATUS_FOR_APPROVAL = {
    ApprovalStatus.PENDING: BookingStatus.PENDING,
    ApprovalStatus.APPROVED: BookingStatus.CONFIRMED,
    ApprovalStatus.REJECTED: BookingStatus.CANCELLED,
}


def _dump(section: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    return section.model_dump(mode="json") if section is not None else None


class BookingService:
    """Service for booking-related operations inside one company."""

    def __init__(
        self,
        db: AsyncSession,
        tenant_id: str,
        principal: Principal,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.tenant_id = tenant_id
        self.principal = principal
        self.notifier = notifier

    async def create_booking(self, request: CreateBookingRequest) -> Booking:
        """
        Create a booking owned by the calling agent.

        The booking starts pending approval. The customer confirmation email
        is queued after the booking is committed; its outcome never affects
        the result.
        """
        authorize(self.principal, Operation.BOOKING_CREATE)
        state = apply_booking_trigger(None, BookingTrigger.CREATE)

        booking = Booking(
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            contact_number=request.contact_number,
            customer_group=request.customer_email,
            passengers=request.passengers,
            adults=request.adults,
            children=request.children,
            package=request.package,
            package_price=request.package_price,
            total_amount=request.total_amount,
            additional_services=list(request.additional_services),
            payment_method=request.payment_method.value,
            booking_date=request.booking_date,
            departure_date=request.departure_date,
            return_date=request.return_date,
            flight=_dump(request.flight),
            hotel=_dump(request.hotel),
            visa=_dump(request.visa),
            transport=_dump(request.transport),
            payment=request.payment.sanitized() if request.payment else None,
            state=state.value,
            agent_id=self.principal.id,
        )

        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_created(self.tenant_id)
        metrics_collector.record_booking_transition(BookingTrigger.CREATE.value, state.value)

        logger.info(
            "Booking created",
            extra={
                "booking_id": booking.id,
                "tenant_id": self.tenant_id,
                "agent_id": booking.agent_id,
                "total_amount": str(booking.total_amount),
            }
        )

        if self.notifier is not None:
            self.notifier.notify(
                NotificationEvent.BOOKING_CREATED,
                {
                    "booking_id": booking.id,
                    "customer_name": booking.customer_name,
                    "customer_email": booking.customer_email,
                    "package": booking.package,
                    "total_amount": str(booking.total_amount),
                    "departure_date": booking.departure_date.isoformat(),
                    "status": booking.status.value,
                }
            )

        return booking

    async def list_bookings(self, request: ListBookingsRequest) -> List[Booking]:
        """List every booking in the company, newest first."""
        authorize(self.principal, Operation.BOOKING_LIST_ALL)
        return await self._query(status=request.status, agent_id=request.agent_id)

    async def list_my_bookings(self, status: Optional[BookingStatus] = None) -> List[Booking]:
        """List the caller's own bookings, newest first."""
        authorize(self.principal, Operation.BOOKING_LIST_OWN)
        return await self._query(status=status, agent_id=self.principal.id)

    async def _query(self, status: Optional[BookingStatus], agent_id: Optional[str]) -> List[Booking]:
        stmt = select(Booking)
        if status is not None:
            stmt = stmt.where(Booking.state == BookingState.for_status(status).value)
        if agent_id is not None:
            stmt = stmt.where(Booking.agent_id == agent_id)
        stmt = stmt.order_by(Booking.created_at.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _get(self, booking_id: str) -> Booking:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("booking", booking_id)
        return booking

    async def get_booking(self, booking_id: str) -> Booking:
        """
        Get a booking by ID.

        Raises:
            NotFoundError: If no booking in this company has the ID
            AuthorizationError: If the caller is neither the owner nor an admin
        """
        booking = await self._get(booking_id)
        authorize(self.principal, Operation.BOOKING_READ, booking)
        return booking

    async def update_booking(self, request: UpdateBookingRequest) -> Booking:
        """
        Apply edits and status changes to a booking.

        Customer name and email edits are open to the owner and admins.
        Status and approval changes go through the state machine, which
        ignores them for non-admins.
        """
        booking = await self._get(request.id)
        authorize(self.principal, Operation.BOOKING_UPDATE, booking)

        state = booking.workflow_state
        target_status = self._target_status(request)
        if target_status is not None:
            state = apply_booking_trigger(
                state,
                BookingTrigger.SET_STATUS,
                is_admin=self.principal.is_admin,
                target_status=target_status,
            )

        if request.customer_name is not None or request.customer_email is not None:
            state = apply_booking_trigger(state, BookingTrigger.EDIT)
            if request.customer_name is not None:
                booking.customer_name = request.customer_name.strip()
            if request.customer_email is not None:
                booking.customer_email = request.customer_email
                booking.customer_group = request.customer_email

        changed_state = state.value != booking.state
        booking.state = state.value

        await self.db.commit()
        await self.db.refresh(booking)

        if changed_state:
            metrics_collector.record_booking_transition(BookingTrigger.SET_STATUS.value, state.value)

        logger.info(
            "Booking updated",
            extra={
                "booking_id": booking.id,
                "tenant_id": self.tenant_id,
                "state": booking.state,
                "by": self.principal.id,
            }
        )
        return booking

    @staticmethod
    def _target_status(request: UpdateBookingRequest) -> Optional[BookingStatus]:
        if request.approval_status is None:
            return request.status

        implied = _STATUS_FOR_APPROVAL[request.approval_status]
        if request.status is not None and request.status is not implied:
            raise ValidationError(
                detail="status and approvalStatus disagree",
                errors={"approvalStatus": [f"'{request.approval_status.value}' requires status '{implied.value}'"]},
            )
        return implied

    async def delete_booking(self, booking_id: str) -> None:
        """Delete a booking permanently."""
        booking = await self._get(booking_id)
        authorize(self.principal, Operation.BOOKING_DELETE, booking)

        await self.db.delete(booking)
        await self.db.commit()

        logger.info(
            "Booking deleted",
            extra={"booking_id": booking_id, "tenant_id": self.tenant_id, "by": self.principal.id}
        )

    async def approve_booking(self, booking_id: str) -> Booking:
        """Ratify a pending booking, confirming it."""
        return await self._ratify(booking_id, BookingTrigger.APPROVE, Operation.BOOKING_APPROVE)

    async def reject_booking(self, booking_id: str) -> Booking:
        """Reject a pending booking, cancelling it."""
        return await self._ratify(booking_id, BookingTrigger.REJECT, Operation.BOOKING_REJECT)

    async def _ratify(self, booking_id: str, trigger: BookingTrigger, operation: Operation) -> Booking:
        booking = await self._get(booking_id)
        authorize(self.principal, operation, booking)

        state = apply_booking_trigger(booking.workflow_state, trigger, is_admin=self.principal.is_admin)
        booking.state = state.value

        await self.db.commit()
        await self.db.refresh(booking)

        metrics_collector.record_booking_transition(trigger.value, state.value)
        logger.info(
            f"Booking {trigger.value}d",
            extra={"booking_id": booking.id, "tenant_id": self.tenant_id, "by": self.principal.id}
        )
        return booking

    async def snapshot(self, booking_id: str) -> BookingSnapshot:
        """Build the read-only view handed to document renderers."""
        booking = await self.get_booking(booking_id)

        result = await self.db.execute(select(User.name).where(User.id == booking.agent_id))
        agent_name = result.scalar_one_or_none()

        data = BookingSchema.model_validate(booking).model_dump()
        return BookingSnapshot(**data, agent_name=agent_name, generated_at=utcnow())
