"""Service layer package."""

from .agent_service import AgentService
from .auth_service import AuthService
from .booking_service import BookingService
from .company_service import CompanyService
from .inquiry_service import InquiryService

__all__ = [
    "AgentService",
    "AuthService",
    "BookingService",
    "CompanyService",
    "InquiryService",
]
