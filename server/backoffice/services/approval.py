"""Approval state machine for bookings and inquiries.

Every (state, trigger) pair has a defined outcome: either a new state or an
IllegalTransitionError. Role checks happen earlier in the authorization gate;
the machine only decides what a trigger does to a state, except that a
status change requested by a non-admin never touches the approval half of a
booking.
"""

import logging
from enum import Enum
from typing import Optional

from ..core.exceptions import IllegalTransitionError
from ..models.states import (
    ApprovalStatus,
    BookingState,
    BookingStatus,
    InquiryState,
    InquiryStatus,
)

logger = logging.getLogger(__name__)


class BookingTrigger(str, Enum):
    """Events that can change a booking's state."""
    CREATE = "create"
    SET_STATUS = "set_status"
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"


class InquiryTrigger(str, Enum):
    """Events that can change an inquiry's state."""
    CREATE = "create"
    SET_STATUS = "set_status"
    APPROVE = "approve"
    REJECT = "reject"
    RESPOND = "respond"


_INQUIRY_STATUS_ORDER = {
    InquiryStatus.PENDING: 0,
    InquiryStatus.RESPONDED: 1,
    InquiryStatus.CLOSED: 2,
}


def apply_booking_trigger(
    state: Optional[BookingState],
    trigger: BookingTrigger,
    is_admin: bool = False,
    target_status: Optional[BookingStatus] = None,
) -> BookingState:
    """
    Compute the booking state that results from a trigger.

    Args:
        state: Current state, or None for a booking that does not exist yet
        trigger: The event being applied
        is_admin: Whether the acting principal is an admin
        target_status: Requested operational status for SET_STATUS

    Returns:
        The new state (possibly unchanged)

    Raises:
        IllegalTransitionError: If the trigger is not allowed from the state
    """
    trigger = BookingTrigger(trigger)

    if trigger is BookingTrigger.CREATE:
        if state is not None:
            raise IllegalTransitionError("booking", trigger.value, state.value)
        return BookingState.PENDING

    if state is None:
        raise IllegalTransitionError("booking", trigger.value, "absent")

    if trigger is BookingTrigger.EDIT:
        return state

    if trigger is BookingTrigger.SET_STATUS:
        if target_status is None:
            return state
        if not is_admin:
            logger.warning(
                "Ignoring status change requested by non-admin",
                extra={"state": state.value, "requested_status": str(target_status)}
            )
            return state
        return BookingState.for_status(target_status)

    # APPROVE / REJECT ratify a pending booking only
    if state.approval_status is not ApprovalStatus.PENDING:
        raise IllegalTransitionError("booking", trigger.value, state.value)

    if trigger is BookingTrigger.APPROVE:
        return BookingState.CONFIRMED
    return BookingState.CANCELLED


def apply_inquiry_trigger(
    state: Optional[InquiryState],
    trigger: InquiryTrigger,
    target_status: Optional[InquiryStatus] = None,
) -> InquiryState:
    """
    Compute the inquiry state that results from a trigger.

    Status only moves forward (pending -> responded -> closed); closed is
    terminal. RESPOND moves a pending inquiry to responded the first time and
    leaves any later state alone.

    Raises:
        IllegalTransitionError: If the trigger is not allowed from the state
    """
    trigger = InquiryTrigger(trigger)

    if trigger is InquiryTrigger.CREATE:
        if state is not None:
            raise IllegalTransitionError("inquiry", trigger.value, state.value)
        return InquiryState.PENDING

    if state is None:
        raise IllegalTransitionError("inquiry", trigger.value, "absent")

    closed = state.status is InquiryStatus.CLOSED

    if trigger is InquiryTrigger.RESPOND:
        if closed:
            raise IllegalTransitionError("inquiry", trigger.value, state.value)
        if state is InquiryState.PENDING:
            return InquiryState.RESPONDED
        return state

    if trigger is InquiryTrigger.SET_STATUS:
        if target_status is None:
            return state
        target_status = InquiryStatus(target_status)
        current_rank = _INQUIRY_STATUS_ORDER[state.status]
        target_rank = _INQUIRY_STATUS_ORDER[target_status]
        if target_rank == current_rank:
            return state
        if target_rank < current_rank:
            raise IllegalTransitionError("inquiry", f"set status to {target_status.value} on", state.value)
        return InquiryState.from_pair(target_status, state.approval_status)

    if state.approval_status is not ApprovalStatus.PENDING:
        raise IllegalTransitionError("inquiry", trigger.value, state.value)

    if trigger is InquiryTrigger.APPROVE:
        if closed:
            raise IllegalTransitionError("inquiry", trigger.value, state.value)
        return InquiryState.APPROVED
    return InquiryState.REJECTED
