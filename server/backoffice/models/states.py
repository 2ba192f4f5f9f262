"""Status enumerations and the combined workflow states built from them.

A booking or inquiry stores exactly one combined state; its operational status
and approval status are read off that state, so combinations outside the
enumerations below cannot be persisted.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """Operational status of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class InquiryStatus(str, Enum):
    """Operational status of an inquiry."""
    PENDING = "pending"
    RESPONDED = "responded"
    CLOSED = "closed"


class ApprovalStatus(str, Enum):
    """Admin approval status shared by bookings and inquiries."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BookingState(str, Enum):
    """Legal (status, approval status) pairs of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @property
    def status(self) -> BookingStatus:
        return BookingStatus(self.value)

    @property
    def approval_status(self) -> ApprovalStatus:
        return _BOOKING_APPROVAL[self]

    @classmethod
    def for_status(cls, status: BookingStatus) -> "BookingState":
        """The state an admin lands on when setting an operational status."""
        return cls(BookingStatus(status).value)


_BOOKING_APPROVAL = {
    BookingState.PENDING: ApprovalStatus.PENDING,
    BookingState.CONFIRMED: ApprovalStatus.APPROVED,
    BookingState.CANCELLED: ApprovalStatus.REJECTED,
}


class InquiryState(str, Enum):
    """Legal (status, approval status) pairs of an inquiry."""
    PENDING = "pending"
    RESPONDED = "responded"
    CLOSED = "closed"
    APPROVED = "approved"
    APPROVED_CLOSED = "approved_closed"
    REJECTED = "rejected"

    @property
    def status(self) -> InquiryStatus:
        return _INQUIRY_PAIRS[self][0]

    @property
    def approval_status(self) -> ApprovalStatus:
        return _INQUIRY_PAIRS[self][1]

    @classmethod
    def from_pair(cls, status: InquiryStatus, approval: ApprovalStatus) -> "InquiryState":
        """Look up the state for a pair; raises KeyError for illegal pairs."""
        return _INQUIRY_BY_PAIR[(InquiryStatus(status), ApprovalStatus(approval))]


_INQUIRY_PAIRS = {
    InquiryState.PENDING: (InquiryStatus.PENDING, ApprovalStatus.PENDING),
    InquiryState.RESPONDED: (InquiryStatus.RESPONDED, ApprovalStatus.PENDING),
    InquiryState.CLOSED: (InquiryStatus.CLOSED, ApprovalStatus.PENDING),
    InquiryState.APPROVED: (InquiryStatus.RESPONDED, ApprovalStatus.APPROVED),
    InquiryState.APPROVED_CLOSED: (InquiryStatus.CLOSED, ApprovalStatus.APPROVED),
    InquiryState.REJECTED: (InquiryStatus.CLOSED, ApprovalStatus.REJECTED),
}

_INQUIRY_BY_PAIR = {pair: state for state, pair in _INQUIRY_PAIRS.items()}


class InquiryPriority(str, Enum):
    """Inquiry priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class UserRole(str, Enum):
    """Roles a principal can hold."""
    AGENT = "agent"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
