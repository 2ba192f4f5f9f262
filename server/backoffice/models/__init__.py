"""Models module exporting all database models."""

from .booking import Booking
from .company import Company, PlatformUser
from .inquiry import Inquiry, InquiryResponse
from .states import (
    ApprovalStatus,
    BookingState,
    BookingStatus,
    InquiryPriority,
    InquiryState,
    InquiryStatus,
    UserRole,
)
from .user import User

__all__ = [
    # Platform registry
    "Company",
    "PlatformUser",

    # Company database
    "User",
    "Booking",
    "Inquiry",
    "InquiryResponse",

    # Workflow states
    "ApprovalStatus",
    "BookingState",
    "BookingStatus",
    "InquiryPriority",
    "InquiryState",
    "InquiryStatus",
    "UserRole",
]
