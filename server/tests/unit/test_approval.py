"""Unit tests for the approval state machine."""

import pytest

from backoffice.core.exceptions import IllegalTransitionError
from backoffice.models.states import (
    ApprovalStatus,
    BookingState,
    BookingStatus,
    InquiryState,
    InquiryStatus,
)
from backoffice.services.approval import (
    BookingTrigger,
    InquiryTrigger,
    apply_booking_trigger,
    apply_inquiry_trigger,
)


class TestBookingTransitions:
    """Booking workflow."""

    def test_create_starts_pending(self):
        state = apply_booking_trigger(None, BookingTrigger.CREATE)

        assert state is BookingState.PENDING
        assert state.status is BookingStatus.PENDING
        assert state.approval_status is ApprovalStatus.PENDING

    def test_create_on_existing_booking_is_illegal(self):
        with pytest.raises(IllegalTransitionError):
            apply_booking_trigger(BookingState.PENDING, BookingTrigger.CREATE)

    def test_approve_confirms(self):
        state = apply_booking_trigger(BookingState.PENDING, BookingTrigger.APPROVE, is_admin=True)

        assert state.status is BookingStatus.CONFIRMED
        assert state.approval_status is ApprovalStatus.APPROVED

    def test_reject_cancels(self):
        state = apply_booking_trigger(BookingState.PENDING, BookingTrigger.REJECT, is_admin=True)

        assert state.status is BookingStatus.CANCELLED
        assert state.approval_status is ApprovalStatus.REJECTED

    @pytest.mark.parametrize("state", [BookingState.CONFIRMED, BookingState.CANCELLED])
    @pytest.mark.parametrize("trigger", [BookingTrigger.APPROVE, BookingTrigger.REJECT])
    def test_ratifying_twice_is_illegal(self, state, trigger):
        with pytest.raises(IllegalTransitionError) as exc_info:
            apply_booking_trigger(state, trigger, is_admin=True)

        assert exc_info.value.status_code == 409
        assert exc_info.value.problem_details["code"] == "ILLEGAL_TRANSITION"

    def test_agent_status_change_is_ignored(self):
        state = apply_booking_trigger(
            BookingState.PENDING,
            BookingTrigger.SET_STATUS,
            is_admin=False,
            target_status=BookingStatus.CONFIRMED,
        )

        assert state is BookingState.PENDING

    @pytest.mark.parametrize("target", list(BookingStatus))
    def test_admin_status_change_keeps_pair_consistent(self, target):
        state = apply_booking_trigger(
            BookingState.CONFIRMED,
            BookingTrigger.SET_STATUS,
            is_admin=True,
            target_status=target,
        )

        assert state.status is target
        assert state is BookingState.for_status(target)

    def test_edit_leaves_state_alone(self):
        assert apply_booking_trigger(BookingState.CANCELLED, BookingTrigger.EDIT) is BookingState.CANCELLED

    def test_trigger_on_missing_booking_is_illegal(self):
        with pytest.raises(IllegalTransitionError):
            apply_booking_trigger(None, BookingTrigger.APPROVE, is_admin=True)


class TestInquiryTransitions:
    """Inquiry workflow."""

    def test_first_response_moves_to_responded(self):
        state = apply_inquiry_trigger(InquiryState.PENDING, InquiryTrigger.RESPOND)

        assert state.status is InquiryStatus.RESPONDED
        assert state.approval_status is ApprovalStatus.PENDING

    def test_second_response_keeps_state(self):
        assert apply_inquiry_trigger(InquiryState.RESPONDED, InquiryTrigger.RESPOND) is InquiryState.RESPONDED
        assert apply_inquiry_trigger(InquiryState.APPROVED, InquiryTrigger.RESPOND) is InquiryState.APPROVED

    @pytest.mark.parametrize(
        "state", [InquiryState.CLOSED, InquiryState.APPROVED_CLOSED, InquiryState.REJECTED]
    )
    def test_closed_takes_no_response(self, state):
        with pytest.raises(IllegalTransitionError):
            apply_inquiry_trigger(state, InquiryTrigger.RESPOND)

    def test_status_moves_forward(self):
        state = apply_inquiry_trigger(
            InquiryState.PENDING, InquiryTrigger.SET_STATUS, target_status=InquiryStatus.CLOSED
        )

        assert state is InquiryState.CLOSED

    def test_status_never_moves_back(self):
        with pytest.raises(IllegalTransitionError):
            apply_inquiry_trigger(
                InquiryState.CLOSED, InquiryTrigger.SET_STATUS, target_status=InquiryStatus.PENDING
            )
        with pytest.raises(IllegalTransitionError):
            apply_inquiry_trigger(
                InquiryState.RESPONDED, InquiryTrigger.SET_STATUS, target_status=InquiryStatus.PENDING
            )

    def test_closing_keeps_approval(self):
        state = apply_inquiry_trigger(
            InquiryState.APPROVED, InquiryTrigger.SET_STATUS, target_status=InquiryStatus.CLOSED
        )

        assert state is InquiryState.APPROVED_CLOSED
        assert state.approval_status is ApprovalStatus.APPROVED

    def test_approve_pending_inquiry(self):
        state = apply_inquiry_trigger(InquiryState.PENDING, InquiryTrigger.APPROVE)

        assert state.status is InquiryStatus.RESPONDED
        assert state.approval_status is ApprovalStatus.APPROVED

    def test_reject_closes(self):
        state = apply_inquiry_trigger(InquiryState.RESPONDED, InquiryTrigger.REJECT)

        assert state.status is InquiryStatus.CLOSED
        assert state.approval_status is ApprovalStatus.REJECTED

    @pytest.mark.parametrize("trigger", [InquiryTrigger.APPROVE, InquiryTrigger.REJECT])
    def test_ratified_inquiry_cannot_be_ratified_again(self, trigger):
        with pytest.raises(IllegalTransitionError):
            apply_inquiry_trigger(InquiryState.APPROVED, trigger)

    def test_closed_unratified_inquiry_cannot_be_approved(self):
        with pytest.raises(IllegalTransitionError):
            apply_inquiry_trigger(InquiryState.CLOSED, InquiryTrigger.APPROVE)

    def test_illegal_pairs_have_no_state(self):
        with pytest.raises(KeyError):
            InquiryState.from_pair(InquiryStatus.PENDING, ApprovalStatus.REJECTED)
